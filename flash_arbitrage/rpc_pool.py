"""
Pool of read-only RPC endpoints with health tracking and rotation.

Endpoints are tried in a fixed rotation starting from the primary. An
endpoint that fails three times in a row is benched for a cooldown period
and traffic moves to the next one. When every endpoint is benched the pool
falls back to the primary with all failure counts reset, so callers always
get an endpoint back.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from .constants import (
    DEFAULT_GAS_PRICE_WEI,
    DEFAULT_MAX_GAS_PRICE_GWEI,
    DEFAULT_RPC_RETRY_COUNT,
    DEFAULT_RPC_TIMEOUT_SECONDS,
    ENDPOINT_COOLDOWN_SECONDS,
    ENDPOINT_HEALTH_INTERVAL_SECONDS,
    ENDPOINT_REUSE_INTERVAL_SECONDS,
    HEALTH_PROBE_TIMEOUT_SECONDS,
    MAX_ENDPOINT_FAILURES,
    WEI_PER_GWEI,
)
from .exceptions import NetworkError, RetryExhaustedError
from .retry import retry_async
from .utils import format_gwei, mask_url

logger = logging.getLogger(__name__)

T = TypeVar("T")

# The node answered; the call itself was rejected by the contract
CONTRACT_ERRORS = (ContractLogicError, BadFunctionCallOutput)


def is_rate_limit_error(error: BaseException) -> bool:
    """Detect provider throttling from the error text."""
    message = str(error)
    return (
        "429" in message
        or "Too Many Requests" in message
        or "-32005" in message
        or "limit exceeded" in message.lower()
    )


def default_client_factory(url: str, timeout: float) -> AsyncWeb3:
    return AsyncWeb3(AsyncHTTPProvider(url, request_kwargs={"timeout": timeout}))


@dataclass
class Endpoint:
    """
    One RPC endpoint and its health state.

    Attributes:
        url: Endpoint URL (may embed an API key; use masked_url in logs)
        client: AsyncWeb3 instance bound to the URL
        index: Position in the rotation (0 is the primary)
        failures: Consecutive failures since the last success
        healthy: False while benched or after a failed health probe
        last_used: Monotonic time of the last selection
        cooldown_until: Monotonic time the bench expires
    """

    url: str
    client: Any
    index: int
    failures: int = 0
    healthy: bool = True
    last_used: Optional[float] = None
    cooldown_until: Optional[float] = None

    @property
    def masked_url(self) -> str:
        return mask_url(self.url)

    def label(self) -> str:
        return f"#{self.index} ({self.masked_url})"


class EndpointPool:
    """
    Rotating pool of RPC endpoints.

    ``acquire`` and the ``report_*`` methods are synchronous, so on a single
    event loop their bookkeeping never interleaves with another caller.
    """

    def __init__(
        self,
        urls: List[str],
        timeout: float = DEFAULT_RPC_TIMEOUT_SECONDS,
        retry_count: int = DEFAULT_RPC_RETRY_COUNT,
        max_failures: int = MAX_ENDPOINT_FAILURES,
        reuse_interval: float = ENDPOINT_REUSE_INTERVAL_SECONDS,
        cooldown: float = ENDPOINT_COOLDOWN_SECONDS,
        health_check_interval: float = ENDPOINT_HEALTH_INTERVAL_SECONDS,
        default_gas_price: int = DEFAULT_GAS_PRICE_WEI,
        max_gas_price: int = DEFAULT_MAX_GAS_PRICE_GWEI * WEI_PER_GWEI,
        client_factory: Optional[Callable[[str, float], Any]] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        if not urls:
            raise ValueError("EndpointPool needs at least one RPC URL")

        factory = client_factory or default_client_factory
        self.endpoints = [
            Endpoint(url=url, client=factory(url, timeout), index=i)
            for i, url in enumerate(urls)
        ]
        self.timeout = timeout
        self.retry_count = retry_count
        self.max_failures = max_failures
        self.reuse_interval = reuse_interval
        self.cooldown = cooldown
        self.health_check_interval = health_check_interval
        self.default_gas_price = default_gas_price
        self.max_gas_price = max_gas_price
        self.current_index = 0
        self._clock = clock
        self._sleep = sleep or asyncio.sleep
        self._health_task: Optional[asyncio.Task] = None

        logger.info(f"RPC pool initialized with {len(self.endpoints)} endpoints")

    @classmethod
    def from_settings(cls, rpc, max_gas_price: int, **kwargs) -> "EndpointPool":
        """Build a pool from RpcSettings."""
        return cls(
            urls=rpc.urls,
            timeout=rpc.timeout_seconds,
            retry_count=rpc.retry_count,
            max_failures=rpc.max_failures,
            reuse_interval=rpc.reuse_interval_seconds,
            cooldown=rpc.cooldown_seconds,
            health_check_interval=rpc.health_check_interval_seconds,
            default_gas_price=rpc.default_gas_price_wei,
            max_gas_price=max_gas_price,
            **kwargs,
        )

    @property
    def current(self) -> Endpoint:
        return self.endpoints[self.current_index]

    def _usable(self, endpoint: Endpoint, now: float) -> bool:
        if not endpoint.healthy or endpoint.failures >= self.max_failures:
            return False
        if endpoint.last_used is None:
            return True
        return now - endpoint.last_used >= self.reuse_interval

    def _release_cooldowns(self, now: float) -> None:
        for endpoint in self.endpoints:
            if endpoint.cooldown_until is not None and now >= endpoint.cooldown_until:
                endpoint.cooldown_until = None
                endpoint.healthy = True
                endpoint.failures = 0
                logger.info(f"Endpoint {endpoint.label()} back in rotation after cooldown")

    def acquire(self) -> Endpoint:
        """
        Select the endpoint for the next call.

        Never blocks and never raises. When every healthy endpoint is inside
        its reuse window the first of them is reused; when none is healthy,
        failure counts are reset and the primary is returned.
        """
        now = self._clock()
        self._release_cooldowns(now)

        current = self.current
        if self._usable(current, now):
            current.last_used = now
            return current

        count = len(self.endpoints)
        for offset in range(1, count + 1):
            idx = (self.current_index + offset) % count
            endpoint = self.endpoints[idx]
            if self._usable(endpoint, now):
                if idx != self.current_index:
                    logger.info(f"Switching to endpoint {endpoint.label()}")
                self.current_index = idx
                endpoint.last_used = now
                return endpoint

        # Every healthy endpoint was used within the reuse window
        for endpoint in self.endpoints:
            if endpoint.healthy and endpoint.failures < self.max_failures:
                logger.debug(f"All RPC endpoints busy, reusing {endpoint.label()}")
                self.current_index = endpoint.index
                endpoint.last_used = now
                return endpoint

        logger.warning("All RPC endpoints unhealthy, resetting to primary")
        for endpoint in self.endpoints:
            endpoint.failures = 0
        self.current_index = 0
        primary = self.endpoints[0]
        primary.last_used = now
        return primary

    def report_success(self, endpoint: Endpoint) -> None:
        endpoint.failures = 0

    def report_failure(self, endpoint: Endpoint, error: Optional[BaseException] = None) -> None:
        """Count a failure; the third in a row benches the endpoint."""
        endpoint.failures += 1
        reason = f": {error}" if error is not None else ""
        if error is not None and is_rate_limit_error(error):
            reason = f" (rate limited){reason}"
        logger.info(
            f"Endpoint {endpoint.label()} failure "
            f"{endpoint.failures}/{self.max_failures}{reason}"
        )
        if endpoint.failures < self.max_failures or endpoint.cooldown_until is not None:
            return

        endpoint.healthy = False
        endpoint.cooldown_until = self._clock() + self.cooldown
        logger.warning(
            f"Marking endpoint {endpoint.label()} unhealthy for {self.cooldown:.0f}s"
        )
        if endpoint.index == self.current_index:
            self.current_index = (self.current_index + 1) % len(self.endpoints)

    async def execute(
        self,
        operation: Callable[[Any], Awaitable[T]],
        description: str = "rpc call",
        timeout: Optional[float] = None,
    ) -> T:
        """
        Run ``operation(client)`` on an acquired endpoint.

        Contract reverts are re-raised unchanged and do not count against
        the endpoint. Timeouts are raised as NetworkError; other errors are
        re-raised after being reported.
        """
        endpoint = self.acquire()
        limit = timeout if timeout is not None else self.timeout
        try:
            result = await asyncio.wait_for(operation(endpoint.client), limit)
        except CONTRACT_ERRORS:
            self.report_success(endpoint)
            raise
        except asyncio.TimeoutError as e:
            self.report_failure(endpoint, e)
            raise NetworkError(
                f"{description} timed out after {limit:.1f}s",
                endpoint=endpoint.masked_url,
            ) from e
        except Exception as e:
            self.report_failure(endpoint, e)
            raise
        self.report_success(endpoint)
        return result

    async def execute_with_retry(
        self,
        operation: Callable[[Any], Awaitable[T]],
        description: str = "rpc call",
        attempts: Optional[int] = None,
    ) -> T:
        """``execute`` with backoff, acquiring a fresh endpoint per attempt."""
        return await retry_async(
            lambda: self.execute(operation, description),
            attempts=attempts or self.retry_count,
            description=description,
            sleep=self._sleep,
            fatal=CONTRACT_ERRORS,
        )

    async def get_gas_price(self) -> int:
        """Current gas price in wei, or the configured default if every attempt fails."""
        try:
            price = await self.execute_with_retry(
                lambda w3: w3.eth.gas_price, description="eth_gasPrice"
            )
        except RetryExhaustedError as e:
            logger.error(
                f"{e}; using default gas price {format_gwei(self.default_gas_price)}"
            )
            return self.default_gas_price
        logger.debug(f"Current gas price: {format_gwei(price)}")
        return int(price)

    async def optimal_gas_price(self, expected_profit_value: float = 0) -> int:
        """
        Gas price to bid for a trade expected to earn ``expected_profit_value``.

        Larger expected profits bid further above the market price, capped
        at the configured gas ceiling.
        """
        base = await self.get_gas_price()
        profit = Decimal(str(expected_profit_value))
        if profit > 50:
            multiplier = Decimal("1.3")
        elif profit > 20:
            multiplier = Decimal("1.2")
        elif profit > 10:
            multiplier = Decimal("1.1")
        else:
            multiplier = Decimal("1.05")
        optimal = min(int(Decimal(base) * multiplier), self.max_gas_price)
        logger.info(
            f"Optimal gas price: {format_gwei(optimal)} "
            f"(base {format_gwei(base)}, multiplier {multiplier})"
        )
        return optimal

    async def _probe(self, endpoint: Endpoint) -> Optional[int]:
        async def _block_number():
            return await endpoint.client.eth.block_number

        try:
            block = await asyncio.wait_for(_block_number(), HEALTH_PROBE_TIMEOUT_SECONDS)
        except Exception as e:
            endpoint.healthy = False
            logger.error(f"Endpoint {endpoint.label()} is unhealthy: {e}")
            return None
        endpoint.healthy = True
        logger.debug(f"Endpoint {endpoint.label()} is healthy, block {block}")
        return int(block)

    async def check_health(self) -> Dict[int, Optional[int]]:
        """
        Probe every endpoint's block number.

        Sets each health flag from the probe result; failure counts are left
        alone. Returns index -> block number (None when the probe failed).
        """
        logger.debug("Checking health of RPC endpoints...")
        self._release_cooldowns(self._clock())
        results = {}
        for endpoint in self.endpoints:
            results[endpoint.index] = await self._probe(endpoint)
        return results

    async def connect(self) -> int:
        """
        Initial probe at startup.

        Returns:
            Latest block number seen by a healthy endpoint

        Raises:
            NetworkError: If no endpoint is reachable
        """
        results = await self.check_health()
        blocks = [block for block in results.values() if block is not None]
        if not blocks:
            raise NetworkError(
                f"No RPC endpoint reachable ({len(self.endpoints)} configured)",
                endpoint=self.endpoints[0].masked_url,
            )
        logger.info(
            f"Connected: {len(blocks)}/{len(self.endpoints)} endpoints healthy, "
            f"block {max(blocks)}"
        )
        return max(blocks)

    def snapshot(self) -> List[Dict[str, Any]]:
        """Per-endpoint state, safe to log."""
        self._release_cooldowns(self._clock())
        return [
            {
                "index": e.index,
                "url": e.masked_url,
                "healthy": e.healthy,
                "failures": e.failures,
                "current": e.index == self.current_index,
            }
            for e in self.endpoints
        ]

    async def _health_loop(self) -> None:
        while True:
            await self._sleep(self.health_check_interval)
            try:
                await self.check_health()
                logger.debug(f"Endpoint pool state: {self.snapshot()}")
            except Exception as e:
                logger.error(f"Endpoint health check failed: {e}")

    def start(self) -> None:
        """Schedule periodic health probes on the running loop."""
        if self._health_task is None or self._health_task.done():
            self._health_task = asyncio.create_task(self._health_loop())

    async def close(self) -> None:
        """Stop health probes and release HTTP sessions."""
        if self._health_task is not None:
            self._health_task.cancel()
            try:
                await self._health_task
            except asyncio.CancelledError:
                pass
            self._health_task = None
        for endpoint in self.endpoints:
            provider = getattr(endpoint.client, "provider", None)
            disconnect = getattr(provider, "disconnect", None)
            if disconnect is not None:
                try:
                    await disconnect()
                except Exception as e:
                    logger.debug(f"Error closing endpoint {endpoint.label()}: {e}")
