"""
Market data: router quotes and token prices in the common value unit.

Prices are expressed in the reference stable (USD in the reference
deployment). The wrapped native asset's price is refreshed on its own
cadence because gas costs are converted through it.
"""

import logging
import time
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from dex.types import Exchange, QuoteResult

from ..constants import (
    DEFAULT_NATIVE_PRICE,
    NATIVE_PRICE_MAX_AGE_SECONDS,
    TOKEN_PRICE_CACHE_SECONDS,
)
from ..exceptions import QuoteError
from ..utils import from_base_units, to_base_units

logger = logging.getLogger(__name__)


class MarketDataService:
    """
    Quotes hops and cycles, and prices tokens in the value unit.

    Args:
        quoter: RouterQuoter (or anything with ``get_amounts_out``)
        native_token: Wrapped native asset address (WBNB)
        reference_stable: Stable token prices are quoted into (BUSD)
        stable_tokens: Addresses valued at exactly 1
        default_native_price: Native price used until the first refresh
        pricing_exchange: Venue used for price lookups
    """

    def __init__(
        self,
        quoter,
        native_token: str,
        reference_stable: str,
        stable_tokens: Iterable[str] = (),
        default_native_price: Decimal = DEFAULT_NATIVE_PRICE,
        pricing_exchange: Exchange = Exchange.A,
        native_decimals: int = 18,
        reference_decimals: int = 18,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.quoter = quoter
        self.native_token = native_token
        self.reference_stable = reference_stable
        self.stable_tokens = set(stable_tokens) | {reference_stable}
        self.pricing_exchange = pricing_exchange
        self.native_decimals = native_decimals
        self.reference_decimals = reference_decimals
        self.native_price = Decimal(default_native_price)
        self.native_price_updated_at: Optional[float] = None
        self._price_cache: Dict[str, Tuple[Decimal, float]] = {}
        self._clock = clock

    async def quote_hop(
        self, exchange: Exchange, amount_in: int, token_in: str, token_out: str
    ) -> Optional[QuoteResult]:
        """
        Quote one swap. Returns None when the router has no usable answer.
        """
        path = [token_in, token_out]
        try:
            amounts = await self.quoter.get_amounts_out(exchange, amount_in, path)
        except QuoteError as e:
            logger.debug(f"No quote on {exchange.value} for {token_in}->{token_out}: {e}")
            return None
        except Exception as e:
            logger.warning(
                f"Quote failed on {exchange.value} for {token_in}->{token_out}: {e}"
            )
            return None
        if len(amounts) < 2 or amounts[-1] <= 0:
            return None
        return QuoteResult(
            exchange=exchange, amount_in=amount_in, amount_out=int(amounts[-1]), path=path
        )

    async def quote_triangular_cycle(
        self, exchange: Exchange, amount_in: int, tokens: List[str]
    ) -> Optional[int]:
        """
        Run ``amount_in`` through a -> b -> c -> a on one exchange.

        Returns the final amount of ``a``, or None if any hop fails.
        """
        if len(tokens) != 3:
            raise ValueError(f"A triangular cycle needs 3 tokens, got {len(tokens)}")
        route = list(tokens) + [tokens[0]]
        amount = amount_in
        for token_in, token_out in zip(route, route[1:]):
            quote = await self.quote_hop(exchange, amount, token_in, token_out)
            if quote is None:
                return None
            amount = quote.amount_out
        return amount

    def native_price_stale(self) -> bool:
        if self.native_price_updated_at is None:
            return True
        return self._clock() - self.native_price_updated_at > NATIVE_PRICE_MAX_AGE_SECONDS

    async def update_native_price(self) -> Decimal:
        """
        Refresh the native asset price from the pricing exchange.

        On failure the previous (or default) price is kept and returned.
        """
        one_native = 10**self.native_decimals
        quote = await self.quote_hop(
            self.pricing_exchange, one_native, self.native_token, self.reference_stable
        )
        if quote is None:
            logger.error(
                f"Error updating native price, keeping ${self.native_price:.2f}"
            )
            return self.native_price
        self.native_price = from_base_units(quote.amount_out, self.reference_decimals)
        self.native_price_updated_at = self._clock()
        logger.info(f"Updated native price: ${self.native_price:.2f}")
        return self.native_price

    async def native_reference_price(self) -> Decimal:
        """Native asset price, refreshed first if older than ten minutes."""
        if self.native_price_stale():
            await self.update_native_price()
        return self.native_price

    async def price_in_value_unit(self, token: str, decimals: int = 18) -> Decimal:
        """
        Price of one whole ``token`` in the value unit.

        Stable tokens are 1 and the native asset uses the reference rate.
        Other tokens try a direct quote into the reference stable, then a
        quote into the native asset; unresolvable tokens price at 0.
        """
        if token in self.stable_tokens:
            return Decimal(1)
        if token == self.native_token:
            return await self.native_reference_price()

        cached = self._price_cache.get(token)
        if cached is not None and self._clock() - cached[1] < TOKEN_PRICE_CACHE_SECONDS:
            return cached[0]

        one_token = to_base_units(1, decimals)
        direct = await self.quote_hop(
            self.pricing_exchange, one_token, token, self.reference_stable
        )
        if direct is not None:
            price = from_base_units(direct.amount_out, self.reference_decimals)
            self._price_cache[token] = (price, self._clock())
            return price

        via_native = await self.quote_hop(
            self.pricing_exchange, one_token, token, self.native_token
        )
        if via_native is not None:
            native_price = await self.native_reference_price()
            price = from_base_units(via_native.amount_out, self.native_decimals) * native_price
            self._price_cache[token] = (price, self._clock())
            return price

        logger.warning(f"Could not determine price for token {token}")
        return Decimal(0)

    async def convert_to_value(self, amount: int, token: str, decimals: int = 18) -> Decimal:
        """Value of ``amount`` base units of ``token``."""
        price = await self.price_in_value_unit(token, decimals)
        return from_base_units(amount, decimals) * price
