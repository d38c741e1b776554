"""
Wiring of the scanner components from a BotConfig.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from dex.adapters.v2 import RouterQuoter
from dex.types import Exchange

from .arbitrage import (
    ContractOracle,
    ProfitEvaluator,
    ScanCoordinator,
    SingleFlightGuard,
    TriangularScanner,
)
from .config_schema import BotConfig
from .rpc_pool import EndpointPool
from .services import MarketDataService, NetworkMonitor, TokenService

logger = logging.getLogger(__name__)


@dataclass
class ScannerApp:
    """Fully wired scanner."""

    config: BotConfig
    pool: EndpointPool
    oracle: ContractOracle
    market_data: MarketDataService
    network_monitor: NetworkMonitor
    evaluator: ProfitEvaluator
    scanner: TriangularScanner
    coordinator: ScanCoordinator


def build_app(
    config: BotConfig,
    client_factory: Optional[Callable[[str, float], Any]] = None,
    sink=None,
) -> ScannerApp:
    """Construct every component; no network calls are made here."""
    max_gas_price = config.profit.max_gas_price_wei
    pool = EndpointPool.from_settings(
        config.rpc, max_gas_price=max_gas_price, client_factory=client_factory
    )

    names = {
        Exchange.A: config.exchange_a.name,
        Exchange.B: config.exchange_b.name,
    }
    quoter = RouterQuoter(
        pool,
        routers={Exchange.A: config.exchange_a.router, Exchange.B: config.exchange_b.router},
        names=names,
    )
    market_data = MarketDataService(
        quoter,
        native_token=config.pricing.native_token,
        reference_stable=config.pricing.reference_stable,
        stable_tokens=config.pricing.stable_addresses,
        default_native_price=config.pricing.default_native_price,
    )
    network_monitor = NetworkMonitor(
        pool,
        max_gas_price=max_gas_price,
        default_gas_price=config.rpc.default_gas_price_wei,
    )
    oracle = ContractOracle(pool, config.flash_arbitrage_address)
    evaluator = ProfitEvaluator(
        oracle,
        network_monitor,
        market_data,
        min_profit_percentage=config.profit.min_profit_percentage,
        gas_limit=config.profit.gas_limit,
        fee_refresh_interval=config.schedule.fee_refresh_interval,
    )
    scanner = TriangularScanner(
        market_data,
        TokenService(pool),
        evaluator,
        price_gap_reversal_pct=config.profit.price_gap_reversal_pct,
        slippage_bps=config.profit.slippage_bps,
        exchange_names=names,
    )
    coordinator = ScanCoordinator(
        scanner,
        network_monitor,
        oracle,
        config.triples,
        guard=SingleFlightGuard(),
        sink=sink,
        execution_enabled=config.execution_enabled,
        market_data=market_data,
        evaluator=evaluator,
        endpoint_pool=pool,
        high_priority_interval=config.schedule.high_priority_interval,
        low_priority_interval=config.schedule.low_priority_interval,
        native_price_interval=config.schedule.native_price_interval,
        fee_refresh_interval=config.schedule.fee_refresh_interval,
        network_health_interval=config.schedule.network_health_interval,
    )
    logger.info(
        f"Scanner wired: {names[Exchange.A]} vs {names[Exchange.B]}, "
        f"{len(config.triples)} triples, min profit {config.profit.min_profit_percentage}%"
    )
    return ScannerApp(
        config=config,
        pool=pool,
        oracle=oracle,
        market_data=market_data,
        network_monitor=network_monitor,
        evaluator=evaluator,
        scanner=scanner,
        coordinator=coordinator,
    )
