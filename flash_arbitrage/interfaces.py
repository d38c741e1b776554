"""
Protocols for the pluggable seams of the scanner.

The evaluator talks to a ProfitabilityOracle and the coordinator forwards
to an OpportunitySink; tests substitute scripted fakes for both.
"""

from typing import List, Protocol, Tuple, runtime_checkable

from .types import ArbitrageCandidate, FeeParameters, Opportunity


@runtime_checkable
class ProfitabilityOracle(Protocol):
    """Source of truth for on-chain trade economics."""

    async def check_profitability(
        self, candidate: ArbitrageCandidate
    ) -> Tuple[int, int, int]:
        """Return (expected_profit, platform_fee, user_profit) in loan-token units."""
        ...

    async def fee_parameters(self) -> FeeParameters:
        """Read the per-exchange fee fractions."""
        ...

    async def is_paused(self) -> bool:
        """Whether the contract currently rejects trades."""
        ...


@runtime_checkable
class OpportunitySink(Protocol):
    """Receives ranked opportunities (the execution layer)."""

    async def submit(self, opportunities: List[Opportunity]) -> None:
        ...
