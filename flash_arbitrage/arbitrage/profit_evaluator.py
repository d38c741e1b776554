"""
Profitability evaluation for arbitrage candidates.

Combines the oracle's view of a trade with gas cost and token prices to
produce a net profit percentage relative to the loan value.
"""

import logging
import time
from decimal import Decimal
from typing import Callable, Optional

from ..constants import (
    DEFAULT_GAS_LIMIT,
    DEFAULT_MIN_PROFIT_PERCENTAGE,
    FEE_REFRESH_INTERVAL_SECONDS,
    GAS_PRICE_BUFFER,
)
from ..interfaces import ProfitabilityOracle
from ..types import ArbitrageCandidate, FeeParameters, ProfitabilityResult, TokenDetails
from ..utils import calculate_percentage, from_base_units

logger = logging.getLogger(__name__)


class ProfitEvaluator:
    """
    Scores candidates against the minimum profit threshold.

    Args:
        oracle: ProfitabilityOracle implementation
        network_monitor: Supplies the buffered gas price
        market_data: Supplies native price and value conversion
        min_profit_percentage: Accept when net profit % is at least this
        gas_limit: Fixed gas estimate for one flash arbitrage transaction
    """

    def __init__(
        self,
        oracle: ProfitabilityOracle,
        network_monitor,
        market_data,
        min_profit_percentage: float = DEFAULT_MIN_PROFIT_PERCENTAGE,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        native_decimals: int = 18,
        fee_refresh_interval: float = FEE_REFRESH_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.oracle = oracle
        self.network_monitor = network_monitor
        self.market_data = market_data
        self.min_profit_percentage = Decimal(str(min_profit_percentage))
        self.gas_limit = gas_limit
        self.native_decimals = native_decimals
        self.fee_refresh_interval = fee_refresh_interval
        self.fee_parameters = FeeParameters()
        self.fees_checked_at: Optional[float] = None
        self._clock = clock

    def fee_parameters_stale(self) -> bool:
        if self.fees_checked_at is None:
            return True
        return self._clock() - self.fees_checked_at >= self.fee_refresh_interval

    async def update_fee_parameters(self) -> FeeParameters:
        """Refresh fee fractions from the oracle, keeping the old ones on failure."""
        self.fees_checked_at = self._clock()
        try:
            fees = await self.oracle.fee_parameters()
        except Exception as e:
            logger.error(f"Error updating fee parameters, keeping previous values: {e}")
            return self.fee_parameters
        self.fee_parameters = fees
        logger.info(
            f"Updated fee parameters: A {fees.exchange_a_numerator}/"
            f"{fees.exchange_a_denominator}, B {fees.exchange_b_numerator}/"
            f"{fees.exchange_b_denominator}"
        )
        return fees

    def meets_threshold(self, profit_percentage: Decimal) -> bool:
        return profit_percentage >= self.min_profit_percentage

    def is_profitable(self, result: Optional[ProfitabilityResult]) -> bool:
        if result is None or result.error:
            return False
        return result.meets_threshold and self.meets_threshold(result.profit_percentage)

    async def evaluate(
        self, candidate: ArbitrageCandidate, loan_token: TokenDetails
    ) -> ProfitabilityResult:
        """
        Score one candidate. Never raises; failures yield a rejected result.
        """
        if self.fee_parameters_stale():
            await self.update_fee_parameters()

        try:
            expected_profit, platform_fee, user_profit = (
                await self.oracle.check_profitability(candidate)
            )

            gas_price = await self.network_monitor.gas_price(GAS_PRICE_BUFFER)
            gas_cost_native = from_base_units(gas_price * self.gas_limit, self.native_decimals)
            native_price = await self.market_data.native_reference_price()
            gas_cost_value = gas_cost_native * native_price

            flash_loan_fee = self.fee_parameters.flash_loan_fee(
                candidate.loan_amount, candidate.start_exchange
            )

            profit_value = await self.market_data.convert_to_value(
                user_profit, loan_token.address, loan_token.decimals
            )
            loan_value = await self.market_data.convert_to_value(
                candidate.loan_amount, loan_token.address, loan_token.decimals
            )
        except Exception as e:
            logger.error(
                f"Error calculating profit for {candidate.triple_name} "
                f"({loan_token.symbol}): {e}"
            )
            return ProfitabilityResult(meets_threshold=False, error=str(e))

        # A zero value means no price route, not a free loan
        if loan_value <= 0:
            logger.warning(
                f"Rejecting {candidate.triple_name}: loan token "
                f"{loan_token.symbol} has no price"
            )
            return ProfitabilityResult(
                meets_threshold=False,
                expected_profit=expected_profit,
                expected_platform_fee=platform_fee,
                expected_user_profit=user_profit,
                gas_price=gas_price,
                error="loan token unpriced",
            )

        net_profit_value = profit_value - gas_cost_value
        profit_percentage = calculate_percentage(net_profit_value, loan_value)

        result = ProfitabilityResult(
            meets_threshold=self.meets_threshold(profit_percentage),
            expected_profit=expected_profit,
            expected_platform_fee=platform_fee,
            expected_user_profit=user_profit,
            profit_value=profit_value,
            gas_cost_value=gas_cost_value,
            loan_value=loan_value,
            net_profit_value=net_profit_value,
            profit_percentage=profit_percentage,
            gas_price=gas_price,
            flash_loan_fee=flash_loan_fee,
        )
        loan_display = from_base_units(candidate.loan_amount, loan_token.decimals)
        logger.info(
            f"Loan: {loan_display} {loan_token.symbol} (${loan_value:.2f}), "
            f"Gross Profit: ${profit_value:.2f}, Gas: ${gas_cost_value:.2f}, "
            f"Net Profit: ${net_profit_value:.2f} ({profit_percentage:.2f}%) "
            f"{'accepted' if result.meets_threshold else 'rejected'}"
        )
        return result
