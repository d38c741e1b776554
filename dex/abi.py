"""
Minimal contract ABIs for on-chain reads.
"""

# Uniswap V2 style router (PancakeSwap, BiSwap)
ROUTER_ABI = [
    {
        "constant": True,
        "inputs": [
            {"name": "amountIn", "type": "uint256"},
            {"name": "path", "type": "address[]"},
        ],
        "name": "getAmountsOut",
        "outputs": [{"name": "amounts", "type": "uint256[]"}],
        "stateMutability": "view",
        "type": "function",
    },
]

# ERC20 metadata
ERC20_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "name",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
]


def _view(name, outputs, inputs=None):
    return {
        "inputs": inputs or [],
        "name": name,
        "outputs": outputs,
        "stateMutability": "view",
        "type": "function",
    }


_UINT256 = [{"name": "", "type": "uint256"}]

# Flash triangular arbitrage contract (read-only subset)
FLASH_ARBITRAGE_ABI = [
    _view(
        "checkArbitrageProfitability",
        outputs=[
            {"name": "expectedProfit", "type": "uint256"},
            {"name": "expectedPlatformFee", "type": "uint256"},
            {"name": "expectedUserProfit", "type": "uint256"},
        ],
        inputs=[
            {
                "name": "data",
                "type": "tuple",
                "components": [
                    {"name": "path1", "type": "address[]"},
                    {"name": "path2", "type": "address[]"},
                    {"name": "path3", "type": "address[]"},
                    {"name": "minAmountsOut", "type": "uint256[]"},
                    {"name": "fromPancake", "type": "bool"},
                ],
            },
            {"name": "loanAmount", "type": "uint256"},
            {"name": "fromPancake", "type": "bool"},
        ],
    ),
    _view("paused", [{"name": "", "type": "bool"}]),
    _view("owner", [{"name": "", "type": "address"}]),
    _view("pancakeSwapFeeNumerator", _UINT256),
    _view("pancakeSwapFeeDenominator", _UINT256),
    _view("biswapFeeNumerator", _UINT256),
    _view("biswapFeeDenominator", _UINT256),
]
