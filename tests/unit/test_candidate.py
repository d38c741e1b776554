"""Tests for candidate construction and fee arithmetic."""

import pytest
from tests.helpers import BUSD, USDT, WBNB
from dex.adapters.v2 import min_amount_out
from dex.types import Exchange
from flash_arbitrage.types import FeeParameters, build_candidate

ONE = 10**18


def test_minimums_apply_one_percent_slippage():
    candidate = build_candidate(
        triple_name="WBNB-USDT-BUSD",
        tokens=[BUSD, USDT, WBNB],
        symbols=["BUSD", "USDT", "WBNB"],
        start_on_a=True,
        loan_amount=100 * ONE,
        amounts_out=[95 * ONE, 90 * ONE, 102 * ONE],
    )

    assert candidate.min_amounts_out == [9405 * 10**16, 8910 * 10**16, 10098 * 10**16]
    assert candidate.paths == [[BUSD, USDT], [USDT, WBNB], [WBNB, BUSD]]


def test_zero_minimum_rejects_candidate():
    candidate = build_candidate(
        "WBNB-USDT-BUSD", [BUSD, USDT, WBNB], ["BUSD", "USDT", "WBNB"], True, ONE, [ONE, 1, ONE]
    )
    assert candidate is None


def test_wrong_token_count_raises():
    with pytest.raises(ValueError):
        build_candidate("T", [BUSD, USDT], ["BUSD", "USDT"], True, ONE, [ONE, ONE, ONE])


def test_contract_args_and_hop_exchanges():
    candidate = build_candidate(
        "T", [WBNB, USDT, BUSD], ["WBNB", "USDT", "BUSD"], False, ONE, [ONE, ONE, ONE]
    )

    path1, path2, path3, minimums, from_a = candidate.to_contract_args()

    assert (path1, path2, path3) == ([WBNB, USDT], [USDT, BUSD], [BUSD, WBNB])
    assert minimums == candidate.min_amounts_out
    assert from_a is False
    assert candidate.start_exchange is Exchange.B
    assert candidate.hop_exchanges == [Exchange.B, Exchange.A, Exchange.B]


class TestFeeParameters:
    def test_defaults(self):
        fees = FeeParameters()
        assert fees.for_exchange(Exchange.A) == (25, 9975)
        assert fees.for_exchange(Exchange.B) == (20, 9980)

    def test_flash_loan_fee_rounds_up_by_one(self):
        fees = FeeParameters(25, 10000, 20, 10000)
        assert fees.flash_loan_fee(1000 * ONE, Exchange.A) == 25 * 10**17 + 1
        assert fees.flash_loan_fee(1000 * ONE, Exchange.B) == 2 * ONE + 1
        assert fees.flash_loan_fee(0, Exchange.A) == 1


@pytest.mark.parametrize(
    "amount,bps,expected",
    [(10_000, 100, 9_900), (1, 100, 0), (101, 100, 99), (5_000, 0, 5_000)],
)
def test_min_amount_out(amount, bps, expected):
    assert min_amount_out(amount, bps) == expected


def test_min_amount_out_rejects_negative():
    with pytest.raises(ValueError):
        min_amount_out(-1)
