"""
Core data types for triangular scanning and profitability evaluation.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from dex.adapters.v2 import min_amount_out
from dex.types import Exchange

from .constants import DEFAULT_EXCHANGE_A_FEE, DEFAULT_EXCHANGE_B_FEE, SLIPPAGE_BPS


@dataclass(frozen=True)
class TokenDetails:
    """ERC20 metadata resolved from chain (or fallbacks)."""

    address: str
    symbol: str
    decimals: int
    name: str = ""


@dataclass
class ArbitrageCandidate:
    """
    A fully specified three-hop trade evaluated for one loan size.

    Attributes:
        triple_name: Name of the configured token triple
        tokens: Addresses in cycle order [start, middle, end]
        symbols: Symbols in cycle order
        paths: Two-token path for each hop
        start_on_a: True when hops 1 and 3 run on exchange A
        loan_amount: Borrowed amount in base units of tokens[0]
        amounts_out: Quoted output of each hop, base units
        min_amounts_out: Slippage-adjusted minimum of each hop
    """

    triple_name: str
    tokens: List[str]
    symbols: List[str]
    paths: List[List[str]]
    start_on_a: bool
    loan_amount: int
    amounts_out: List[int]
    min_amounts_out: List[int]

    @property
    def start_exchange(self) -> Exchange:
        return Exchange.A if self.start_on_a else Exchange.B

    @property
    def hop_exchanges(self) -> List[Exchange]:
        start = self.start_exchange
        return [start, start.other, start]

    def to_contract_args(self) -> tuple:
        """Tuple argument for the contract's profitability check."""
        return (
            self.paths[0],
            self.paths[1],
            self.paths[2],
            self.min_amounts_out,
            self.start_on_a,
        )


def build_candidate(
    triple_name: str,
    tokens: List[str],
    symbols: List[str],
    start_on_a: bool,
    loan_amount: int,
    amounts_out: List[int],
    slippage_bps: int = SLIPPAGE_BPS,
) -> Optional[ArbitrageCandidate]:
    """
    Build a candidate from three hop outputs.

    Returns None when any slippage-adjusted minimum is zero, since such a
    trade would accept receiving nothing on that hop.
    """
    if len(tokens) != 3 or len(amounts_out) != 3:
        raise ValueError("A triangular candidate needs exactly three tokens and outputs")
    minimums = [min_amount_out(amount, slippage_bps) for amount in amounts_out]
    if any(m == 0 for m in minimums):
        return None
    start, middle, end = tokens
    return ArbitrageCandidate(
        triple_name=triple_name,
        tokens=list(tokens),
        symbols=list(symbols),
        paths=[[start, middle], [middle, end], [end, start]],
        start_on_a=start_on_a,
        loan_amount=loan_amount,
        amounts_out=list(amounts_out),
        min_amounts_out=minimums,
    )


@dataclass
class FeeParameters:
    """Swap fee fractions the contract applies on each exchange."""

    exchange_a_numerator: int = DEFAULT_EXCHANGE_A_FEE[0]
    exchange_a_denominator: int = DEFAULT_EXCHANGE_A_FEE[1]
    exchange_b_numerator: int = DEFAULT_EXCHANGE_B_FEE[0]
    exchange_b_denominator: int = DEFAULT_EXCHANGE_B_FEE[1]

    def for_exchange(self, exchange: Exchange) -> tuple:
        if exchange is Exchange.A:
            return self.exchange_a_numerator, self.exchange_a_denominator
        return self.exchange_b_numerator, self.exchange_b_denominator

    def flash_loan_fee(self, loan_amount: int, exchange: Exchange) -> int:
        """Fee owed on a flash swap borrowed from ``exchange``, rounded up by one."""
        numerator, denominator = self.for_exchange(exchange)
        return loan_amount * numerator // denominator + 1


@dataclass
class ProfitabilityResult:
    """
    Outcome of evaluating one candidate.

    Token amounts are base units of the loan token; ``*_value`` fields are
    in the value unit (USD in the reference deployment).
    """

    meets_threshold: bool = False
    expected_profit: int = 0
    expected_platform_fee: int = 0
    expected_user_profit: int = 0
    profit_value: Decimal = Decimal(0)
    gas_cost_value: Decimal = Decimal(0)
    loan_value: Decimal = Decimal(0)
    net_profit_value: Decimal = Decimal(0)
    profit_percentage: Decimal = Decimal(0)
    gas_price: int = 0
    flash_loan_fee: int = 0
    error: Optional[str] = None


@dataclass
class NetworkHealth:
    """Last observed chain conditions."""

    last_check: Optional[float] = None
    gas_price: Optional[int] = None
    gas_price_updated_at: Optional[float] = None
    healthy: bool = True
    failed_attempts: int = 0


@dataclass
class Opportunity:
    """A candidate that cleared the profit threshold."""

    candidate: ArbitrageCandidate
    flash_loan_pair: str
    result: ProfitabilityResult
    token_details: List[TokenDetails] = field(default_factory=list)
    direction_reversed: bool = False
    price_gap: Decimal = Decimal(0)

    @property
    def profit_percentage(self) -> Decimal:
        return self.result.profit_percentage

    def describe(self) -> str:
        route = " -> ".join(self.candidate.symbols + self.candidate.symbols[:1])
        return (
            f"{self.candidate.triple_name}: {route} "
            f"(start on {self.candidate.start_exchange.value}) "
            f"{self.profit_percentage:.4f}% net ${self.result.net_profit_value:.2f}"
        )


class CycleStatus(str, Enum):
    COMPLETED = "completed"
    SKIPPED_BUSY = "skipped_busy"
    SKIPPED_NETWORK = "skipped_network"
    SKIPPED_PAUSED = "skipped_paused"
    FAILED = "failed"


@dataclass
class CycleReport:
    """Summary of one scan cycle."""

    label: str
    status: CycleStatus
    opportunities: List[Opportunity] = field(default_factory=list)
    duration: float = 0.0
    error: Optional[str] = None
