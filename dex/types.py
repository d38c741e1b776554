"""
Core venue types for two-exchange triangular scanning.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class Exchange(str, Enum):
    """One of the two V2-style venues being compared."""

    A = "A"
    B = "B"

    @property
    def other(self) -> "Exchange":
        return Exchange.B if self is Exchange.A else Exchange.A


@dataclass
class QuoteResult:
    """
    Output of a single router hop.

    Attributes:
        exchange: Venue that produced the quote
        amount_in: Input amount in base units of path[0]
        amount_out: Output amount in base units of path[-1]
        path: Token addresses of the hop
    """

    exchange: Exchange
    amount_in: int
    amount_out: int
    path: List[str] = field(default_factory=list)
