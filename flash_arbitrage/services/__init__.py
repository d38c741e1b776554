"""
Chain-facing services: token metadata, market data and network conditions.
"""

from .market_data import MarketDataService
from .network_monitor import NetworkMonitor
from .token_service import TokenService

__all__ = ["MarketDataService", "NetworkMonitor", "TokenService"]
