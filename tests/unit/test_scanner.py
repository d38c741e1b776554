"""
Unit tests for flash_arbitrage/arbitrage/scanner.py

Quotes come from per-hop rates, so a flat rate of 1 everywhere means every
cycle returns exactly what went in and the exchanges show no price gap.
"""

from decimal import Decimal

import pytest
from tests.helpers import (
    BUSD,
    USDT,
    WBNB,
    FakeTokenService,
    ScriptedEvaluator,
    addr,
    make_triple,
    set_flat_rates,
)
from dex.types import Exchange
from flash_arbitrage.arbitrage.scanner import (
    TriangularScanner,
    direction_label,
    rank_opportunities,
)
from flash_arbitrage.config_schema import TokenTripleConfig
from flash_arbitrage.services.market_data import MarketDataService
from flash_arbitrage.types import Opportunity, ProfitabilityResult, build_candidate

ONE = 10**18
ROTATION = ["WBNB", "USDT", "BUSD"]


@pytest.fixture
def evaluator():
    return ScriptedEvaluator()


@pytest.fixture
def token_service():
    return FakeTokenService()


@pytest.fixture
def scanner(quoter, token_service, evaluator, clock):
    set_flat_rates(quoter, [WBNB, USDT, BUSD])
    market = MarketDataService(quoter, WBNB, BUSD, stable_tokens=[USDT], clock=clock)
    return TriangularScanner(
        market,
        token_service,
        evaluator,
        price_gap_reversal_pct=5.0,
        exchange_names={Exchange.A: "PancakeSwap", Exchange.B: "BiSwap"},
    )


class TestPriceGapReversal:
    """Direction reversal on large cycle price gaps"""

    @pytest.mark.asyncio
    async def test_six_percent_gap_reverses(self, scanner, quoter, triple):
        quoter.set_rate(Exchange.B, WBNB, USDT, "0.94")

        opportunity = await scanner.check_rotation(triple, ROTATION, True)

        assert opportunity.price_gap == Decimal(6)
        assert opportunity.direction_reversed is True
        assert opportunity.candidate.start_on_a is False
        assert opportunity.flash_loan_pair == addr(21)

    @pytest.mark.asyncio
    async def test_three_percent_gap_keeps_direction(self, scanner, quoter, triple):
        quoter.set_rate(Exchange.B, WBNB, USDT, "0.97")

        opportunity = await scanner.check_rotation(triple, ROTATION, True)

        assert opportunity.price_gap == Decimal(3)
        assert opportunity.direction_reversed is False
        assert opportunity.candidate.start_on_a is True
        assert opportunity.flash_loan_pair == addr(11)

    @pytest.mark.asyncio
    async def test_gap_is_zero_when_one_side_has_no_quote(self, scanner, quoter):
        del quoter.rates[(Exchange.B, USDT, BUSD)]
        assert await scanner.price_gap([WBNB, USDT, BUSD], 18) == Decimal(0)

    @pytest.mark.asyncio
    async def test_gap_is_computed_once_per_rotation(self, scanner, quoter, triple):
        gaps = {}
        await scanner.check_rotation(triple, ROTATION, True, gaps)
        calls = len(quoter.calls)
        await scanner.check_rotation(triple, ROTATION, False, gaps)

        assert list(gaps) == [tuple(ROTATION)]
        # Only the two loan sizes are re-simulated, three hops each
        assert len(quoter.calls) - calls == 6


class TestCheckRotation:
    """Candidate construction and selection"""

    @pytest.mark.asyncio
    async def test_hops_alternate_exchanges(self, scanner, quoter):
        details = [await scanner.token_service.get_token_details(t) for t in (WBNB, USDT, BUSD)]
        outputs = await scanner.simulate_hops(False, ONE, [WBNB, USDT, BUSD], details)

        assert outputs == [ONE, ONE, ONE]
        assert [call[0] for call in quoter.calls] == [Exchange.B, Exchange.A, Exchange.B]
        assert [call[2] for call in quoter.calls] == [(WBNB, USDT), (USDT, BUSD), (BUSD, WBNB)]

    @pytest.mark.asyncio
    async def test_missing_flash_pair_is_skipped(self, scanner, evaluator, triple):
        partial = TokenTripleConfig.model_construct(
            name=triple.name,
            tokens=triple.tokens,
            exchange_a_pairs={"USDT-BUSD": addr(12), "BUSD-WBNB": addr(13)},
            exchange_b_pairs=triple.exchange_b_pairs,
            priority=1,
            test_amounts=[Decimal(1)],
        )

        assert await scanner.check_rotation(partial, ROTATION, True) is None
        assert evaluator.calls == []

    @pytest.mark.asyncio
    async def test_zero_minimum_output_never_reaches_evaluator(
        self, scanner, quoter, evaluator
    ):
        for exchange in (Exchange.A, Exchange.B):
            quoter.set_rate(exchange, WBNB, USDT, "1e-18")

        triple = make_triple(test_amounts=[1])
        assert await scanner.check_rotation(triple, ROTATION, True) is None
        assert evaluator.calls == []

    @pytest.mark.asyncio
    async def test_best_loan_amount_wins(self, scanner, evaluator, triple):
        evaluator.percentage_for = (
            lambda candidate: 3 if candidate.loan_amount == 2 * ONE else Decimal("1.5")
        )

        opportunity = await scanner.check_rotation(triple, ROTATION, True)

        assert opportunity.candidate.loan_amount == 2 * ONE
        assert opportunity.profit_percentage == Decimal(3)

    @pytest.mark.asyncio
    async def test_below_threshold_is_excluded(self, scanner, evaluator, triple):
        evaluator.percentage_for = lambda candidate: Decimal("0.5")

        assert await scanner.check_rotation(triple, ROTATION, True) is None
        assert len(evaluator.calls) == 2

    @pytest.mark.asyncio
    async def test_candidate_paths_and_minimums(self, scanner, evaluator, triple):
        opportunity = await scanner.check_rotation(triple, ROTATION, True)
        candidate = opportunity.candidate

        assert candidate.paths == [[WBNB, USDT], [USDT, BUSD], [BUSD, WBNB]]
        assert candidate.min_amounts_out == [candidate.loan_amount * 99 // 100] * 3


class TestScan:
    """Whole-triple scans"""

    @pytest.mark.asyncio
    async def test_both_directions_and_all_rotations(self, scanner, triple):
        opportunities = await scanner.scan([triple])

        assert len(opportunities) == 6
        starts = {(tuple(o.candidate.symbols), o.candidate.start_on_a) for o in opportunities}
        assert len(starts) == 6

    @pytest.mark.asyncio
    async def test_token_service_errors_never_escape(self, scanner, token_service, triple):
        token_service.error = RuntimeError("node down")
        assert await scanner.scan([triple]) == []

    @pytest.mark.asyncio
    async def test_no_liquidity_finds_nothing(self, scanner, quoter, evaluator, triple):
        quoter.rates.clear()
        assert await scanner.scan([triple]) == []
        assert evaluator.calls == []


def _opportunity(pct):
    candidate = build_candidate(
        "T", [WBNB, USDT, BUSD], ROTATION, True, ONE, [ONE, ONE, ONE]
    )
    result = ProfitabilityResult(meets_threshold=True, profit_percentage=Decimal(pct))
    return Opportunity(candidate=candidate, flash_loan_pair=addr(11), result=result)


def test_rank_opportunities_orders_by_profit():
    ranked = rank_opportunities([_opportunity(1), _opportunity("2.5"), _opportunity(2)])
    assert [o.profit_percentage for o in ranked] == [Decimal("2.5"), Decimal(2), Decimal(1)]


def test_direction_label():
    names = {Exchange.A: "PancakeSwap", Exchange.B: "BiSwap"}
    assert direction_label(True, names) == "PancakeSwap->BiSwap->PancakeSwap"
    assert direction_label(False, names) == "BiSwap->PancakeSwap->BiSwap"
