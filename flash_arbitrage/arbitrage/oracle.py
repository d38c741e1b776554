"""
Profitability oracle backed by the deployed flash arbitrage contract.

The contract re-derives the on-chain economics of a candidate exactly, so
its view call is the source of truth for expected profit and fees.
"""

import logging
from typing import Tuple

from web3 import AsyncWeb3

from dex.abi import FLASH_ARBITRAGE_ABI

from ..exceptions import OracleError
from ..types import ArbitrageCandidate, FeeParameters

logger = logging.getLogger(__name__)


class ContractOracle:
    """Reads profitability, fee parameters and pause state from the contract."""

    def __init__(self, pool, contract_address: str):
        self.pool = pool
        self.contract_address = contract_address

    def _contract(self, w3: AsyncWeb3):
        return w3.eth.contract(address=self.contract_address, abi=FLASH_ARBITRAGE_ABI)

    async def _call(self, function: str, *args):
        async def _run(w3: AsyncWeb3):
            fn = getattr(self._contract(w3).functions, function)
            return await fn(*args).call()

        return await self.pool.execute(_run, description=f"{function}()")

    async def check_profitability(
        self, candidate: ArbitrageCandidate
    ) -> Tuple[int, int, int]:
        """
        Returns:
            (expected_profit, expected_platform_fee, expected_user_profit)

        Raises:
            OracleError: If the call fails or returns a malformed result
        """
        try:
            result = await self._call(
                "checkArbitrageProfitability",
                candidate.to_contract_args(),
                candidate.loan_amount,
                candidate.start_on_a,
            )
        except Exception as e:
            raise OracleError(
                f"checkArbitrageProfitability failed for {candidate.triple_name}: {e}"
            ) from e

        if result is None or len(result) != 3:
            raise OracleError(
                f"Invalid profitability result for {candidate.symbols[0]}",
                details={"result": result},
            )
        expected_profit, platform_fee, user_profit = result
        return int(expected_profit), int(platform_fee), int(user_profit)

    async def fee_parameters(self) -> FeeParameters:
        """Exchange A maps to the PancakeSwap getters, B to the BiSwap ones."""
        try:
            return FeeParameters(
                exchange_a_numerator=int(await self._call("pancakeSwapFeeNumerator")),
                exchange_a_denominator=int(await self._call("pancakeSwapFeeDenominator")),
                exchange_b_numerator=int(await self._call("biswapFeeNumerator")),
                exchange_b_denominator=int(await self._call("biswapFeeDenominator")),
            )
        except Exception as e:
            raise OracleError(f"Reading fee parameters failed: {e}") from e

    async def is_paused(self) -> bool:
        try:
            return bool(await self._call("paused"))
        except Exception as e:
            raise OracleError(f"Reading paused() failed: {e}") from e

    async def owner(self) -> str:
        try:
            return str(await self._call("owner"))
        except Exception as e:
            raise OracleError(f"Reading owner() failed: {e}") from e

    async def verify_deployed(self) -> str:
        """
        Check that bytecode exists at the contract address.

        Returns:
            The contract owner

        Raises:
            OracleError: If nothing is deployed there or the reads fail
        """
        try:
            code = await self.pool.execute(
                lambda w3: w3.eth.get_code(self.contract_address),
                description="eth_getCode",
            )
        except Exception as e:
            raise OracleError(f"Reading contract code failed: {e}") from e
        if not code or bytes(code) in (b"", b"\x00"):
            raise OracleError(f"No contract found at address {self.contract_address}")
        owner = await self.owner()
        logger.info(f"Contract validation successful. Owner: {owner}")
        return owner
