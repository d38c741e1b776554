"""
Uniswap V2 style router adapter.

Quotes swaps through the router's ``getAmountsOut`` so that fees and
reserves are applied exactly as the venue would apply them on-chain.
"""

import logging
from typing import Dict, List, Optional

from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError

from flash_arbitrage.constants import BPS_DENOMINATOR, SLIPPAGE_BPS
from flash_arbitrage.exceptions import QuoteError

from ..abi import ROUTER_ABI
from ..types import Exchange

logger = logging.getLogger(__name__)


def min_amount_out(amount_out: int, slippage_bps: int = SLIPPAGE_BPS) -> int:
    """
    Minimum acceptable output after slippage, floored to base units.

    With the default 100 bps this is ``amount_out * 99 / 100``.
    """
    if amount_out < 0:
        raise ValueError(f"amount_out must be non-negative: {amount_out}")
    return amount_out * (BPS_DENOMINATOR - slippage_bps) // BPS_DENOMINATOR


class RouterQuoter:
    """
    Reads ``getAmountsOut`` from the router of each exchange.

    Calls go through the endpoint pool so that transport failures are
    attributed to the endpoint that served them. Reverts and empty results
    mean the router has no liquidity path and surface as QuoteError.
    """

    def __init__(
        self,
        pool,
        routers: Dict[Exchange, str],
        names: Optional[Dict[Exchange, str]] = None,
    ):
        self.pool = pool
        self.routers = dict(routers)
        self.names = names or {exchange: exchange.value for exchange in routers}

    def name_of(self, exchange: Exchange) -> str:
        return self.names.get(exchange, exchange.value)

    async def get_amounts_out(
        self, exchange: Exchange, amount_in: int, path: List[str]
    ) -> List[int]:
        """
        Quote ``amount_in`` along ``path`` on ``exchange``.

        Returns:
            One amount per path element, as returned by the router

        Raises:
            QuoteError: No liquidity path (revert, empty or zero output)
            Exception: Transport errors from the endpoint pool
        """
        if amount_in <= 0:
            raise QuoteError(
                f"amount_in must be positive: {amount_in}",
                exchange=self.name_of(exchange),
                path=path,
            )
        router_address = self.routers[exchange]

        async def _call(w3: AsyncWeb3):
            router = w3.eth.contract(address=router_address, abi=ROUTER_ABI)
            return await router.functions.getAmountsOut(amount_in, path).call()

        try:
            amounts = await self.pool.execute(
                _call, description=f"getAmountsOut on {self.name_of(exchange)}"
            )
        except ContractLogicError as e:
            raise QuoteError(
                f"{self.name_of(exchange)} router reverted: {e}",
                exchange=self.name_of(exchange),
                path=path,
            ) from e

        if not amounts or len(amounts) < len(path) or int(amounts[-1]) == 0:
            raise QuoteError(
                f"No liquidity path on {self.name_of(exchange)}",
                exchange=self.name_of(exchange),
                path=path,
                details={"amounts": list(amounts or [])},
            )
        return [int(a) for a in amounts]
