"""
Fakes shared across the unit tests.

They mimic just enough of AsyncWeb3 for the pool, services and oracle to
run without a node: awaitable ``eth.block_number``/``eth.gas_price``
properties and contracts whose functions return scripted values.
"""

from decimal import Decimal
from typing import Dict, List

from dex.types import Exchange
from flash_arbitrage.config_schema import TokenTripleConfig
from flash_arbitrage.exceptions import QuoteError
from flash_arbitrage.types import ProfitabilityResult, TokenDetails


def addr(n: int) -> str:
    """Digits-only address, already in checksum form."""
    return "0x" + f"{n:040d}"


WBNB = addr(1)
BUSD = addr(2)
USDT = addr(3)
CAKE = addr(4)
ROUTER_A = addr(101)
ROUTER_B = addr(102)
CONTRACT = addr(200)

SYMBOLS = {WBNB: "WBNB", BUSD: "BUSD", USDT: "USDT", CAKE: "CAKE"}


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSleep:
    """Records requested delays instead of sleeping."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeContractFunction:
    def __init__(self, value, args):
        self._value = value
        self._args = args

    async def call(self):
        value = self._value
        if callable(value):
            value = value(*self._args)
        if isinstance(value, BaseException):
            raise value
        return value


class FakeContractFunctions:
    def __init__(self, table: Dict[str, object]):
        self._table = table

    def __getattr__(self, name):
        if name not in self._table:
            raise AttributeError(name)
        return lambda *args: FakeContractFunction(self._table[name], args)


class FakeContract:
    def __init__(self, address: str, table: Dict[str, object]):
        self.address = address
        self.functions = FakeContractFunctions(table)


class FakeEth:
    """Scripted subset of AsyncEth."""

    def __init__(self, block_number: int = 100, gas_price: int = 5 * 10**9):
        self.block = block_number
        self.gas = gas_price
        self.error = None
        self.contracts: Dict[str, Dict[str, object]] = {}
        self.code: Dict[str, bytes] = {}
        self.requests = 0

    async def _respond(self, value):
        self.requests += 1
        if self.error is not None:
            raise self.error
        return value

    @property
    def block_number(self):
        return self._respond(self.block)

    @property
    def gas_price(self):
        return self._respond(self.gas)

    def estimate_gas(self, transaction):
        return self._respond(21000 + len(transaction.get("data", "")))

    def get_code(self, address):
        return self._respond(self.code.get(address, b""))

    def contract(self, address, abi):
        return FakeContract(address, self.contracts.get(address, {}))


class FakeWeb3:
    def __init__(self, url: str = "http://fake", timeout: float = 30):
        self.url = url
        self.eth = FakeEth()


class FakePool:
    """Endpoint pool stand-in that always uses a single client."""

    def __init__(self, client=None):
        self.client = client or FakeWeb3()
        self.calls: List[str] = []

    async def execute(self, operation, description="rpc call", timeout=None):
        self.calls.append(description)
        return await operation(self.client)


class FakeQuoter:
    """
    Router quoter driven by per-hop rates.

    ``rates[(exchange, token_in, token_out)]`` multiplies the input; hops
    without a rate have no liquidity.
    """

    def __init__(self, rates=None):
        self.rates: Dict[tuple, Decimal] = dict(rates or {})
        self.calls: List[tuple] = []

    def set_rate(self, exchange, token_in, token_out, rate) -> None:
        self.rates[(exchange, token_in, token_out)] = Decimal(str(rate))

    async def get_amounts_out(self, exchange, amount_in, path):
        self.calls.append((exchange, amount_in, tuple(path)))
        rate = self.rates.get((exchange, path[0], path[1]))
        if rate is None:
            raise QuoteError("No liquidity path", exchange=exchange.value, path=path)
        return [amount_in, int(Decimal(amount_in) * rate)]


class FakeTokenService:
    def __init__(self, decimals: int = 18):
        self.decimals = decimals
        self.error = None

    async def get_token_details(self, address: str) -> TokenDetails:
        if self.error is not None:
            raise self.error
        symbol = SYMBOLS.get(address, "UNKNOWN")
        return TokenDetails(address=address, symbol=symbol, decimals=self.decimals, name=symbol)


class ScriptedEvaluator:
    """Evaluator returning a profit percentage computed from the candidate."""

    def __init__(self, percentage_for=None, threshold: Decimal = Decimal(1)):
        self.percentage_for = percentage_for or (lambda candidate: Decimal(2))
        self.threshold = threshold
        self.calls = []

    async def evaluate(self, candidate, loan_token):
        self.calls.append(candidate)
        pct = Decimal(str(self.percentage_for(candidate)))
        return ProfitabilityResult(
            meets_threshold=pct >= self.threshold,
            profit_percentage=pct,
            net_profit_value=pct,
        )

    def is_profitable(self, result):
        return result.error is None and result.meets_threshold


def make_triple(**overrides) -> TokenTripleConfig:
    data = {
        "name": "WBNB-USDT-BUSD",
        "tokens": {"WBNB": WBNB, "USDT": USDT, "BUSD": BUSD},
        "exchange_a_pairs": {
            "WBNB-USDT": addr(11),
            "USDT-BUSD": addr(12),
            "BUSD-WBNB": addr(13),
        },
        "exchange_b_pairs": {
            "WBNB-USDT": addr(21),
            "USDT-BUSD": addr(22),
            "BUSD-WBNB": addr(23),
        },
        "priority": 1,
        "test_amounts": [1, 2],
    }
    data.update(overrides)
    return TokenTripleConfig(**data)


def set_flat_rates(quoter: FakeQuoter, tokens, exchanges=(Exchange.A, Exchange.B), rate=1):
    """Give every directed hop between ``tokens`` the same rate."""
    for exchange in exchanges:
        for token_in in tokens:
            for token_out in tokens:
                if token_in != token_out:
                    quoter.set_rate(exchange, token_in, token_out, rate)
