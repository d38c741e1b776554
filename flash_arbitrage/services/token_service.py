"""
ERC20 metadata lookups with an in-process cache.
"""

import logging
from typing import Dict

from web3 import AsyncWeb3

from dex.abi import ERC20_ABI

from ..types import TokenDetails

logger = logging.getLogger(__name__)

FALLBACK_DECIMALS = 18
FALLBACK_SYMBOL = "UNKNOWN"
FALLBACK_NAME = "Unknown Token"


class TokenService:
    """Resolves decimals, symbol and name for token addresses."""

    def __init__(self, pool):
        self.pool = pool
        self._cache: Dict[str, TokenDetails] = {}

    async def _read(self, address: str, function: str):
        async def _call(w3: AsyncWeb3):
            token = w3.eth.contract(address=address, abi=ERC20_ABI)
            return await getattr(token.functions, function)().call()

        return await self.pool.execute(_call, description=f"{function}() on {address}")

    async def get_token_details(self, address: str) -> TokenDetails:
        """
        Metadata for ``address``; cached after the first successful read.

        ``name()`` is optional on many tokens and falls back to the symbol.
        Any other failure returns uncached defaults (18 decimals, UNKNOWN) so
        scanning can continue.
        """
        cached = self._cache.get(address)
        if cached is not None:
            return cached

        try:
            decimals = int(await self._read(address, "decimals"))
            symbol = str(await self._read(address, "symbol"))
        except Exception as e:
            logger.error(f"Error getting token details for {address}: {e}")
            return TokenDetails(
                address=address,
                symbol=FALLBACK_SYMBOL,
                decimals=FALLBACK_DECIMALS,
                name=FALLBACK_NAME,
            )

        try:
            name = str(await self._read(address, "name"))
        except Exception as e:
            logger.debug(f"name() unavailable for {symbol}, using symbol: {e}")
            name = symbol

        details = TokenDetails(address=address, symbol=symbol, decimals=decimals, name=name)
        self._cache[address] = details
        logger.info(f"Cached token details for {symbol} ({address})")
        return details
