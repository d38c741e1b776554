"""
Default values shared across the scanner.

Configuration models read their defaults from here so that the YAML file
only needs to name what differs from a standard BSC deployment.
"""

from decimal import Decimal

# Endpoint pool
MAX_ENDPOINT_FAILURES = 3
ENDPOINT_REUSE_INTERVAL_SECONDS = 0.5
ENDPOINT_COOLDOWN_SECONDS = 60.0
HEALTH_PROBE_TIMEOUT_SECONDS = 5.0
DEFAULT_RPC_TIMEOUT_SECONDS = 30.0
DEFAULT_RPC_RETRY_COUNT = 3
RETRY_BASE_DELAY_SECONDS = 1.0
RETRY_MAX_DELAY_SECONDS = 10.0

# Gas
WEI_PER_GWEI = 10**9
DEFAULT_GAS_PRICE_WEI = 5 * WEI_PER_GWEI
DEFAULT_MAX_GAS_PRICE_GWEI = 10
DEFAULT_GAS_LIMIT = 500_000
GAS_PRICE_BUFFER = 1.1
GAS_PRICE_REUSE_SECONDS = 120.0
NETWORK_RECHECK_SECONDS = 300.0
MAX_NETWORK_FAILURES = 3

# Pricing
DEFAULT_NATIVE_PRICE = Decimal("300")
NATIVE_PRICE_MAX_AGE_SECONDS = 600.0
TOKEN_PRICE_CACHE_SECONDS = 300.0

# Scanning
SLIPPAGE_BPS = 100
BPS_DENOMINATOR = 10_000
DEFAULT_PRICE_GAP_REVERSAL_PCT = 5.0
DEFAULT_MIN_PROFIT_PERCENTAGE = 1.0
STABLE_TEST_AMOUNTS = (
    Decimal("1000"),
    Decimal("10000"),
    Decimal("50000"),
    Decimal("100000"),
)
VOLATILE_TEST_AMOUNTS = (
    Decimal("0.5"),
    Decimal("1"),
    Decimal("2"),
    Decimal("5"),
)
TOP_OPPORTUNITIES_LOGGED = 3

# Fee parameters read from the flash arbitrage contract
DEFAULT_EXCHANGE_A_FEE = (25, 9975)
DEFAULT_EXCHANGE_B_FEE = (20, 9980)

# Schedules (seconds)
HIGH_PRIORITY_INTERVAL_SECONDS = 300.0
LOW_PRIORITY_INTERVAL_SECONDS = 900.0
NATIVE_PRICE_INTERVAL_SECONDS = 600.0
FEE_REFRESH_INTERVAL_SECONDS = 3600.0
NETWORK_HEALTH_INTERVAL_SECONDS = 300.0
ENDPOINT_HEALTH_INTERVAL_SECONDS = 60.0
