"""
Unit tests for flash_arbitrage/services/market_data.py
"""

from decimal import Decimal

import pytest
from tests.helpers import BUSD, CAKE, USDT, WBNB, FakeQuoter, addr
from dex.types import Exchange
from flash_arbitrage.services.market_data import MarketDataService

ONE = 10**18


@pytest.fixture
def market(quoter, clock):
    return MarketDataService(
        quoter,
        native_token=WBNB,
        reference_stable=BUSD,
        stable_tokens=[USDT],
        default_native_price=Decimal(300),
        clock=clock,
    )


class TestNativePrice:
    """Native asset price refresh"""

    @pytest.mark.asyncio
    async def test_update_reads_router(self, market, quoter):
        quoter.set_rate(Exchange.A, WBNB, BUSD, 400)

        price = await market.update_native_price()

        assert price == Decimal(400)
        assert market.native_price_stale() is False

    @pytest.mark.asyncio
    async def test_failed_update_keeps_previous_price(self, market):
        price = await market.update_native_price()

        assert price == Decimal(300)
        assert market.native_price_updated_at is None

    @pytest.mark.asyncio
    async def test_reference_price_refreshes_when_stale(self, market, quoter, clock):
        quoter.set_rate(Exchange.A, WBNB, BUSD, 400)
        assert await market.native_reference_price() == Decimal(400)

        quoter.set_rate(Exchange.A, WBNB, BUSD, 420)
        clock.advance(300)
        assert await market.native_reference_price() == Decimal(400)

        clock.advance(301)
        assert await market.native_reference_price() == Decimal(420)


class TestTokenPrices:
    """Pricing tokens in the value unit"""

    @pytest.mark.asyncio
    async def test_stable_tokens_are_one(self, market, quoter):
        assert await market.price_in_value_unit(USDT) == Decimal(1)
        assert await market.price_in_value_unit(BUSD) == Decimal(1)
        assert quoter.calls == []

    @pytest.mark.asyncio
    async def test_native_uses_reference_price(self, market, quoter):
        quoter.set_rate(Exchange.A, WBNB, BUSD, 350)
        assert await market.price_in_value_unit(WBNB) == Decimal(350)

    @pytest.mark.asyncio
    async def test_direct_quote_is_cached(self, market, quoter, clock):
        quoter.set_rate(Exchange.A, CAKE, BUSD, 2)
        assert await market.price_in_value_unit(CAKE) == Decimal(2)

        quoter.set_rate(Exchange.A, CAKE, BUSD, 3)
        clock.advance(299)
        assert await market.price_in_value_unit(CAKE) == Decimal(2)

        clock.advance(2)
        assert await market.price_in_value_unit(CAKE) == Decimal(3)

    @pytest.mark.asyncio
    async def test_falls_back_to_native_route(self, market, quoter):
        quoter.set_rate(Exchange.A, WBNB, BUSD, 400)
        quoter.set_rate(Exchange.A, CAKE, WBNB, "0.01")

        assert await market.price_in_value_unit(CAKE) == Decimal(4)

    @pytest.mark.asyncio
    async def test_unresolvable_token_prices_at_zero(self, market):
        assert await market.price_in_value_unit(addr(99)) == Decimal(0)

    @pytest.mark.asyncio
    async def test_convert_to_value_uses_decimals(self, market, quoter):
        # 6-decimal token quoted into an 18-decimal stable
        quoter.set_rate(Exchange.A, CAKE, BUSD, 2 * 10**12)
        value = await market.convert_to_value(5 * 10**6, CAKE, decimals=6)
        assert value == Decimal(10)


class TestCycleQuotes:
    """Hop and cycle quoting"""

    @pytest.mark.asyncio
    async def test_cycle_multiplies_hops(self, market, quoter):
        quoter.set_rate(Exchange.B, WBNB, USDT, 400)
        quoter.set_rate(Exchange.B, USDT, BUSD, 1)
        quoter.set_rate(Exchange.B, BUSD, WBNB, "0.0026")

        out = await market.quote_triangular_cycle(Exchange.B, ONE, [WBNB, USDT, BUSD])

        assert out == int(Decimal(ONE) * 400 * Decimal("0.0026"))
        assert [call[0] for call in quoter.calls] == [Exchange.B] * 3

    @pytest.mark.asyncio
    async def test_cycle_with_missing_hop_is_none(self, market, quoter):
        quoter.set_rate(Exchange.A, WBNB, USDT, 400)
        assert await market.quote_triangular_cycle(Exchange.A, ONE, [WBNB, USDT, BUSD]) is None

    @pytest.mark.asyncio
    async def test_cycle_requires_three_tokens(self, market):
        with pytest.raises(ValueError):
            await market.quote_triangular_cycle(Exchange.A, ONE, [WBNB, USDT])

    @pytest.mark.asyncio
    async def test_transport_error_is_no_quote(self, clock):
        class BrokenQuoter(FakeQuoter):
            async def get_amounts_out(self, exchange, amount_in, path):
                raise ConnectionError("node down")

        market = MarketDataService(BrokenQuoter(), WBNB, BUSD, clock=clock)
        assert await market.quote_hop(Exchange.A, ONE, WBNB, BUSD) is None
