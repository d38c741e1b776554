"""
Scan coordination: single-flight cycles and the background schedule.

Every cycle (initial, high priority, low priority) shares one guard, so a
cycle that fires while another is running is skipped rather than queued.
"""

import asyncio
import logging
import time
from contextlib import contextmanager
from typing import Awaitable, Callable, Iterator, List, Optional, Sequence

from ..config_schema import TokenTripleConfig
from ..constants import (
    FEE_REFRESH_INTERVAL_SECONDS,
    HIGH_PRIORITY_INTERVAL_SECONDS,
    LOW_PRIORITY_INTERVAL_SECONDS,
    NATIVE_PRICE_INTERVAL_SECONDS,
    NETWORK_HEALTH_INTERVAL_SECONDS,
    TOP_OPPORTUNITIES_LOGGED,
)
from ..interfaces import OpportunitySink, ProfitabilityOracle
from ..types import CycleReport, CycleStatus, Opportunity
from ..utils import format_duration
from .scanner import rank_opportunities

logger = logging.getLogger(__name__)


class SingleFlightGuard:
    """Holds the "scan in progress" flag."""

    def __init__(self):
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def try_acquire(self) -> bool:
        if self._busy:
            return False
        self._busy = True
        return True

    def release(self) -> None:
        self._busy = False

    @contextmanager
    def hold(self) -> Iterator[bool]:
        """Yield whether the flag was acquired; release it on exit if so."""
        acquired = self.try_acquire()
        try:
            yield acquired
        finally:
            if acquired:
                self.release()


class ScanCoordinator:
    """
    Runs scan cycles and the periodic maintenance jobs.

    Args:
        scanner: TriangularScanner
        network_monitor: NetworkMonitor gating scheduled cycles
        oracle: ProfitabilityOracle used for the pause check
        triples: All configured token triples
        guard: Shared single-flight guard
        sink: Receives ranked opportunities when execution is enabled
        execution_enabled: Forward opportunities to ``sink``
    """

    def __init__(
        self,
        scanner,
        network_monitor,
        oracle: ProfitabilityOracle,
        triples: Sequence[TokenTripleConfig],
        guard: Optional[SingleFlightGuard] = None,
        sink: Optional[OpportunitySink] = None,
        execution_enabled: bool = False,
        market_data=None,
        evaluator=None,
        endpoint_pool=None,
        high_priority_interval: float = HIGH_PRIORITY_INTERVAL_SECONDS,
        low_priority_interval: float = LOW_PRIORITY_INTERVAL_SECONDS,
        native_price_interval: float = NATIVE_PRICE_INTERVAL_SECONDS,
        fee_refresh_interval: float = FEE_REFRESH_INTERVAL_SECONDS,
        network_health_interval: float = NETWORK_HEALTH_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], Awaitable[object]]] = None,
    ):
        self.scanner = scanner
        self.network_monitor = network_monitor
        self.oracle = oracle
        self.triples = list(triples)
        self.guard = guard or SingleFlightGuard()
        self.sink = sink
        self.execution_enabled = execution_enabled
        self.market_data = market_data
        self.evaluator = evaluator
        self.endpoint_pool = endpoint_pool
        self.high_priority_interval = high_priority_interval
        self.low_priority_interval = low_priority_interval
        self.native_price_interval = native_price_interval
        self.fee_refresh_interval = fee_refresh_interval
        self.network_health_interval = network_health_interval
        self._clock = clock
        self._sleep = sleep or asyncio.sleep
        self._tasks: List[asyncio.Task] = []

    @property
    def high_priority_triples(self) -> List[TokenTripleConfig]:
        return [t for t in self.triples if t.priority == 1]

    @property
    def low_priority_triples(self) -> List[TokenTripleConfig]:
        return [t for t in self.triples if t.priority > 1]

    async def _contract_paused(self) -> bool:
        try:
            return bool(await self.oracle.is_paused())
        except Exception as e:
            logger.error(f"Error checking contract pause state, treating as paused: {e}")
            return True

    def _log_top(self, opportunities: List[Opportunity]) -> None:
        if not opportunities:
            logger.info("No profitable arbitrage opportunities found.")
            return
        logger.info(f"Found {len(opportunities)} profitable arbitrage opportunities.")
        for rank, opportunity in enumerate(opportunities[:TOP_OPPORTUNITIES_LOGGED], 1):
            logger.info(f"Opportunity {rank}: {opportunity.describe()}")

    async def _forward(self, opportunities: List[Opportunity]) -> None:
        if not opportunities:
            return
        if not self.execution_enabled:
            logger.info(
                "Execution is disabled. Set EXECUTION_ENABLED=true to enable arbitrage execution."
            )
            return
        if self.sink is None:
            logger.warning("Execution enabled but no execution sink configured")
            return
        try:
            await self.sink.submit(opportunities)
        except Exception as e:
            logger.error(f"Execution sink failed: {e}")

    async def run_cycle(
        self,
        triples: Sequence[TokenTripleConfig],
        label: str,
        check_network: bool = True,
    ) -> CycleReport:
        """
        One guarded cycle: network gate, pause check, scan, rank, forward.
        """
        started = self._clock()

        def report(status: CycleStatus, **kwargs) -> CycleReport:
            return CycleReport(
                label=label, status=status, duration=self._clock() - started, **kwargs
            )

        with self.guard.hold() as acquired:
            if not acquired:
                logger.info(f"Previous check still running, skipping {label} check")
                return report(CycleStatus.SKIPPED_BUSY)
            try:
                if check_network and not await self.network_monitor.is_ready_for_arbitrage():
                    logger.info(f"Network conditions unfavorable. Skipping {label} check.")
                    return report(CycleStatus.SKIPPED_NETWORK)

                if await self._contract_paused():
                    logger.info(f"Contract is paused. Skipping {label} check.")
                    return report(CycleStatus.SKIPPED_PAUSED)

                opportunities = rank_opportunities(await self.scanner.scan(triples))
                self._log_top(opportunities)
                await self._forward(opportunities)
                result = report(CycleStatus.COMPLETED, opportunities=opportunities)
                logger.info(f"{label} check finished in {format_duration(result.duration)}")
                return result
            except Exception as e:
                logger.error(f"Error in {label} check: {e}")
                return report(CycleStatus.FAILED, error=str(e))

    async def run_initial_scan(self) -> CycleReport:
        logger.info("Running initial arbitrage check on all triples...")
        return await self.run_cycle(self.triples, "initial", check_network=False)

    async def run_high_priority(self) -> CycleReport:
        return await self.run_cycle(self.high_priority_triples, "high-priority")

    async def run_low_priority(self) -> CycleReport:
        return await self.run_cycle(self.low_priority_triples, "low-priority")

    async def _every(self, interval: float, job: Callable[[], Awaitable[object]], name: str) -> None:
        while True:
            await self._sleep(interval)
            try:
                await job()
            except Exception as e:
                logger.error(f"Scheduled {name} failed: {e}")

    async def prepare(self) -> None:
        """Warm caches before the first scan."""
        if self.market_data is not None:
            await self.market_data.update_native_price()
        if self.evaluator is not None:
            await self.evaluator.update_fee_parameters()
        await self.network_monitor.check_health()

    async def start(self) -> CycleReport:
        """
        Warm up, run the initial scan and launch the periodic jobs.

        Returns the initial scan's report.
        """
        await self.prepare()
        initial = await self.run_initial_scan()

        jobs = [
            (self.high_priority_interval, self.run_high_priority, "high-priority check"),
            (self.low_priority_interval, self.run_low_priority, "low-priority check"),
            (self.network_health_interval, self.network_monitor.check_health, "network health"),
        ]
        if self.market_data is not None:
            jobs.append(
                (self.native_price_interval, self.market_data.update_native_price, "price update")
            )
        if self.evaluator is not None:
            jobs.append(
                (self.fee_refresh_interval, self.evaluator.update_fee_parameters, "fee update")
            )
        for interval, job, name in jobs:
            self._tasks.append(asyncio.create_task(self._every(interval, job, name)))
        if self.endpoint_pool is not None:
            self.endpoint_pool.start()

        logger.info(f"Scanner running with {len(self._tasks)} scheduled jobs")
        return initial

    async def run_forever(self) -> None:
        await self.start()
        await asyncio.gather(*self._tasks)

    async def stop(self) -> None:
        """Cancel scheduled jobs and close the endpoint pool."""
        logger.info("Stopping arbitrage scanner...")
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        if self.endpoint_pool is not None:
            await self.endpoint_pool.close()
