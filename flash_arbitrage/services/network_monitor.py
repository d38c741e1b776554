"""
Network condition monitor.

Tracks gas price and whether the chain is fit for arbitrage. A gas price
above the ceiling marks the network unhealthy immediately; sampling
failures only do so after three in a row.
"""

import logging
import time
from decimal import Decimal
from typing import Any, Callable, Dict

from ..constants import (
    DEFAULT_GAS_PRICE_WEI,
    GAS_PRICE_BUFFER,
    GAS_PRICE_REUSE_SECONDS,
    MAX_NETWORK_FAILURES,
    NETWORK_RECHECK_SECONDS,
)
from ..exceptions import NetworkError
from ..types import NetworkHealth
from ..utils import format_gwei

logger = logging.getLogger(__name__)


def apply_multiplier(price: int, multiplier: float) -> int:
    """Scale ``price`` by ``multiplier`` truncated to two decimals."""
    hundredths = int(Decimal(str(multiplier)) * 100)
    return price * hundredths // 100


class NetworkMonitor:
    """Samples gas price through the endpoint pool and keeps NetworkHealth."""

    def __init__(
        self,
        pool,
        max_gas_price: int,
        default_gas_price: int = DEFAULT_GAS_PRICE_WEI,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.pool = pool
        self.max_gas_price = max_gas_price
        self.health = NetworkHealth(gas_price=default_gas_price)
        self._clock = clock

    async def _sample_gas_price(self) -> int:
        price = await self.pool.execute(
            lambda w3: w3.eth.gas_price, description="eth_gasPrice"
        )
        return int(price)

    async def check_health(self) -> bool:
        """
        Sample gas price and update the health flag.

        Returns:
            True when the gas price is at or below the ceiling
        """
        try:
            gas_price = await self._sample_gas_price()
        except Exception as e:
            self.health.failed_attempts += 1
            logger.error(f"Error checking network health: {e}")
            if self.health.failed_attempts >= MAX_NETWORK_FAILURES:
                self.health.healthy = False
                logger.warning("Network marked unhealthy after repeated failed checks")
            return False

        now = self._clock()
        self.health.last_check = now
        self.health.gas_price = gas_price
        self.health.gas_price_updated_at = now

        if gas_price > self.max_gas_price:
            self.health.healthy = False
            logger.warning(
                f"Gas price too high: {format_gwei(gas_price)} "
                f"(max {format_gwei(self.max_gas_price)})"
            )
        else:
            self.health.healthy = True
            self.health.failed_attempts = 0
            logger.info(f"Network health check passed, gas price {format_gwei(gas_price)}")
        return self.health.healthy

    async def is_ready_for_arbitrage(self) -> bool:
        """Health flag, re-checked if the last check is over five minutes old."""
        last = self.health.last_check
        if last is None or self._clock() - last > NETWORK_RECHECK_SECONDS:
            await self.check_health()
        return self.health.healthy

    async def gas_price(self, multiplier: float = GAS_PRICE_BUFFER) -> int:
        """
        Gas price in wei with ``multiplier`` applied.

        A sample younger than two minutes is reused. If sampling fails the
        last known price is used instead.
        """
        updated = self.health.gas_price_updated_at
        if updated is None or self._clock() - updated >= GAS_PRICE_REUSE_SECONDS:
            try:
                self.health.gas_price = await self._sample_gas_price()
                self.health.gas_price_updated_at = self._clock()
            except Exception as e:
                logger.error(
                    f"Error getting gas price, using last known "
                    f"{format_gwei(self.health.gas_price)}: {e}"
                )
        return apply_multiplier(self.health.gas_price, multiplier)

    async def estimate_gas(self, transaction: Dict[str, Any]) -> int:
        """Gas estimate for ``transaction``; raises NetworkError on failure."""
        try:
            estimate = await self.pool.execute(
                lambda w3: w3.eth.estimate_gas(transaction), description="eth_estimateGas"
            )
        except Exception as e:
            logger.error(f"Error estimating gas: {e}")
            raise NetworkError(f"Gas estimation failed: {e}") from e
        return int(estimate)
