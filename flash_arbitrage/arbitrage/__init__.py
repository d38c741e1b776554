"""
Triangular arbitrage discovery, profitability scoring and scheduling.
"""

from .coordinator import ScanCoordinator, SingleFlightGuard
from .oracle import ContractOracle
from .profit_evaluator import ProfitEvaluator
from .scanner import TriangularScanner, rank_opportunities

__all__ = [
    "ContractOracle",
    "ProfitEvaluator",
    "ScanCoordinator",
    "SingleFlightGuard",
    "TriangularScanner",
    "rank_opportunities",
]
