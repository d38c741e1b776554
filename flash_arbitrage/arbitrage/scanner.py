"""
Triangular arbitrage scanner.

For every configured triple, both base directions and all three rotations
are simulated hop by hop across the two exchanges. Each rotation sweeps a
set of loan sizes and keeps the most profitable one that clears the
threshold.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from dex.types import Exchange

from ..config_schema import TokenTripleConfig
from ..constants import DEFAULT_PRICE_GAP_REVERSAL_PCT, SLIPPAGE_BPS
from ..types import (
    ArbitrageCandidate,
    Opportunity,
    ProfitabilityResult,
    TokenDetails,
    build_candidate,
)
from ..utils import from_base_units, to_base_units

logger = logging.getLogger(__name__)


def rank_opportunities(opportunities: Sequence[Opportunity]) -> List[Opportunity]:
    """Highest profit percentage first."""
    return sorted(opportunities, key=lambda o: o.profit_percentage, reverse=True)


def direction_label(start_on_a: bool, names: Dict[Exchange, str]) -> str:
    start = Exchange.A if start_on_a else Exchange.B
    return f"{names[start]}->{names[start.other]}->{names[start]}"


class TriangularScanner:
    """
    Finds profitable three-hop cycles across exchange A and exchange B.

    Args:
        market_data: MarketDataService for hop and cycle quotes
        token_service: TokenService for decimals and symbols
        evaluator: ProfitEvaluator scoring each candidate
        price_gap_reversal_pct: Cycle price gap (%) at which the starting
            exchange is swapped
        slippage_bps: Tolerance used for per-hop minimum outputs
        exchange_names: Display names for log lines
    """

    def __init__(
        self,
        market_data,
        token_service,
        evaluator,
        price_gap_reversal_pct: float = DEFAULT_PRICE_GAP_REVERSAL_PCT,
        slippage_bps: int = SLIPPAGE_BPS,
        exchange_names: Optional[Dict[Exchange, str]] = None,
    ):
        self.market_data = market_data
        self.token_service = token_service
        self.evaluator = evaluator
        self.price_gap_reversal_pct = Decimal(str(price_gap_reversal_pct))
        self.slippage_bps = slippage_bps
        self.exchange_names = exchange_names or {Exchange.A: "A", Exchange.B: "B"}

    async def scan(self, triples: Sequence[TokenTripleConfig]) -> List[Opportunity]:
        """
        Scan every triple. Never raises; failures reduce to fewer results.
        """
        logger.info(f"Checking for arbitrage opportunities in {len(triples)} triples...")
        opportunities: List[Opportunity] = []
        for triple in triples:
            try:
                opportunities.extend(await self.scan_triple(triple))
            except Exception as e:
                logger.error(f"Error scanning {triple.name}: {e}")
        return opportunities

    async def scan_triple(self, triple: TokenTripleConfig) -> List[Opportunity]:
        logger.info(f"Checking {triple.name} opportunities...")
        found = []
        gaps: Dict[Tuple[str, ...], Decimal] = {}
        for start_on_a in (True, False):
            for rotation in triple.rotations():
                try:
                    opportunity = await self.check_rotation(triple, rotation, start_on_a, gaps)
                except Exception as e:
                    logger.error(
                        f"Error checking {' -> '.join(rotation)} in {triple.name}: {e}"
                    )
                    continue
                if opportunity is not None:
                    found.append(opportunity)
        return found

    async def price_gap(self, tokens: List[str], decimals: int) -> Decimal:
        """
        Percentage gap between the two exchanges' output for one full unit
        run through the cycle. Zero when either side cannot be quoted.
        """
        unit = 10**decimals
        try:
            out_a = await self.market_data.quote_triangular_cycle(Exchange.A, unit, tokens)
            out_b = await self.market_data.quote_triangular_cycle(Exchange.B, unit, tokens)
        except Exception as e:
            logger.error(f"Error checking price gap: {e}")
            return Decimal(0)
        if not out_a or out_b is None:
            return Decimal(0)
        return Decimal(abs(out_a - out_b)) * 100 / Decimal(out_a)

    async def simulate_hops(
        self,
        start_on_a: bool,
        loan_amount: int,
        tokens: List[str],
        details: List[TokenDetails],
    ) -> Optional[List[int]]:
        """Quote the three hops in order; None if any hop fails."""
        start = Exchange.A if start_on_a else Exchange.B
        hop_exchanges = [start, start.other, start]
        route = list(tokens) + [tokens[0]]
        hop_details = details[1:] + details[:1]

        outputs = []
        amount = loan_amount
        for hop, exchange in enumerate(hop_exchanges):
            quote = await self.market_data.quote_hop(
                exchange, amount, route[hop], route[hop + 1]
            )
            if quote is None:
                logger.info(
                    f"Hop {hop + 1} {details[hop].symbol}->{hop_details[hop].symbol} "
                    f"has no quote on {self.exchange_names[exchange]}"
                )
                return None
            amount = quote.amount_out
            outputs.append(amount)
            logger.debug(
                f"Hop {hop + 1} output: "
                f"{from_base_units(amount, hop_details[hop].decimals)} {hop_details[hop].symbol}"
            )
        return outputs

    async def check_rotation(
        self,
        triple: TokenTripleConfig,
        rotation: List[str],
        start_on_a: bool,
        gaps: Optional[Dict[Tuple[str, ...], Decimal]] = None,
    ) -> Optional[Opportunity]:
        """
        Evaluate one rotation in one base direction.

        The price gap is computed once per rotation (``gaps`` caches it
        across directions).
        """
        tokens = [triple.tokens[symbol] for symbol in rotation]
        details = [await self.token_service.get_token_details(t) for t in tokens]
        start_details = details[0]
        logger.info(
            f"Checking arbitrage: {' -> '.join(rotation + rotation[:1])} "
            f"({direction_label(start_on_a, self.exchange_names)})"
        )

        key = tuple(rotation)
        if gaps is not None and key in gaps:
            gap = gaps[key]
        else:
            gap = await self.price_gap(tokens, start_details.decimals)
            if gaps is not None:
                gaps[key] = gap

        requested = start_on_a
        if gap >= self.price_gap_reversal_pct:
            start_on_a = not start_on_a
            logger.info(
                f"Price gap {gap:.2f}% >= {self.price_gap_reversal_pct}%, reversing "
                f"{direction_label(requested, self.exchange_names)} to "
                f"{direction_label(start_on_a, self.exchange_names)}"
            )

        start_exchange = Exchange.A if start_on_a else Exchange.B
        flash_loan_pair = triple.pair_for(start_exchange, rotation[0], rotation[1])
        if flash_loan_pair is None:
            logger.info(
                f"No {self.exchange_names[start_exchange]} pair configured for "
                f"{rotation[0]}-{rotation[1]}, skipping flash loan of {rotation[0]}"
            )
            return None

        best: Optional[Tuple[ArbitrageCandidate, ProfitabilityResult]] = None
        for amount in triple.amounts_for(rotation[0]):
            loan_amount = to_base_units(amount, start_details.decimals)
            if loan_amount <= 0:
                continue
            logger.debug(f"Testing loan amount: {amount} {rotation[0]}")

            outputs = await self.simulate_hops(start_on_a, loan_amount, tokens, details)
            if outputs is None:
                continue

            candidate = build_candidate(
                triple_name=triple.name,
                tokens=tokens,
                symbols=list(rotation),
                start_on_a=start_on_a,
                loan_amount=loan_amount,
                amounts_out=outputs,
                slippage_bps=self.slippage_bps,
            )
            if candidate is None:
                logger.info(f"Skipping {amount} {rotation[0]}: zero minimum output")
                continue

            result = await self.evaluator.evaluate(candidate, start_details)
            if not self.evaluator.is_profitable(result):
                continue
            if best is None or result.profit_percentage > best[1].profit_percentage:
                best = (candidate, result)

        if best is None:
            return None

        candidate, result = best
        opportunity = Opportunity(
            candidate=candidate,
            flash_loan_pair=flash_loan_pair,
            result=result,
            token_details=details,
            direction_reversed=requested != start_on_a,
            price_gap=gap,
        )
        logger.info(
            f"Found profitable arbitrage: {opportunity.describe()} "
            f"(gap {gap:.2f}%, reversed={opportunity.direction_reversed})"
        )
        return opportunity
