"""
Configuration schema validation using Pydantic
"""

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from web3 import Web3

from dex.types import Exchange

from .constants import (
    DEFAULT_GAS_LIMIT,
    DEFAULT_GAS_PRICE_WEI,
    DEFAULT_MAX_GAS_PRICE_GWEI,
    DEFAULT_MIN_PROFIT_PERCENTAGE,
    DEFAULT_NATIVE_PRICE,
    DEFAULT_PRICE_GAP_REVERSAL_PCT,
    DEFAULT_RPC_RETRY_COUNT,
    DEFAULT_RPC_TIMEOUT_SECONDS,
    ENDPOINT_COOLDOWN_SECONDS,
    ENDPOINT_HEALTH_INTERVAL_SECONDS,
    ENDPOINT_REUSE_INTERVAL_SECONDS,
    FEE_REFRESH_INTERVAL_SECONDS,
    HIGH_PRIORITY_INTERVAL_SECONDS,
    LOW_PRIORITY_INTERVAL_SECONDS,
    MAX_ENDPOINT_FAILURES,
    NATIVE_PRICE_INTERVAL_SECONDS,
    NETWORK_HEALTH_INTERVAL_SECONDS,
    SLIPPAGE_BPS,
    STABLE_TEST_AMOUNTS,
    VOLATILE_TEST_AMOUNTS,
    WEI_PER_GWEI,
)


def checksum(address: str) -> str:
    """Normalize an address to EIP-55 casing, rejecting malformed input."""
    if not isinstance(address, str) or not Web3.is_address(address):
        raise ValueError(f"Invalid address: {address!r}")
    return Web3.to_checksum_address(address)


def split_edge_key(key: str) -> List[str]:
    """Split a ``"SYM1-SYM2"`` pair key into its two symbols."""
    parts = key.split("-")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"Pair key must look like 'SYM1-SYM2': {key!r}")
    return parts


class RpcSettings(BaseModel):
    """RPC endpoint pool configuration"""

    primary_url: str = Field(description="Primary RPC endpoint")
    backup_urls: List[str] = Field(default_factory=list)
    timeout_seconds: float = Field(gt=0, le=300, default=DEFAULT_RPC_TIMEOUT_SECONDS)
    retry_count: int = Field(ge=1, le=10, default=DEFAULT_RPC_RETRY_COUNT)
    max_failures: int = Field(ge=1, le=100, default=MAX_ENDPOINT_FAILURES)
    reuse_interval_seconds: float = Field(
        ge=0, le=60, default=ENDPOINT_REUSE_INTERVAL_SECONDS
    )
    cooldown_seconds: float = Field(ge=0, default=ENDPOINT_COOLDOWN_SECONDS)
    health_check_interval_seconds: float = Field(
        gt=0, default=ENDPOINT_HEALTH_INTERVAL_SECONDS
    )
    default_gas_price_gwei: float = Field(
        gt=0, default=DEFAULT_GAS_PRICE_WEI / WEI_PER_GWEI
    )

    @field_validator("primary_url")
    @classmethod
    def validate_primary_url(cls, v):
        if not v or not v.startswith(("http://", "https://")):
            raise ValueError(f"primary_url must be an http(s) URL: {v!r}")
        return v

    @field_validator("backup_urls")
    @classmethod
    def validate_backup_urls(cls, v):
        cleaned = [url.strip() for url in v if url and url.strip()]
        for url in cleaned:
            if not url.startswith(("http://", "https://")):
                raise ValueError(f"backup URL must be an http(s) URL: {url!r}")
        return cleaned

    @property
    def urls(self) -> List[str]:
        """Primary followed by backups, duplicates removed."""
        ordered = []
        for url in [self.primary_url] + self.backup_urls:
            if url not in ordered:
                ordered.append(url)
        return ordered

    @property
    def default_gas_price_wei(self) -> int:
        return int(Decimal(str(self.default_gas_price_gwei)) * WEI_PER_GWEI)


class ExchangeSettings(BaseModel):
    """One V2-style venue"""

    name: str = Field(min_length=1)
    router: str

    @field_validator("router")
    @classmethod
    def validate_router(cls, v):
        return checksum(v)


class TokenTripleConfig(BaseModel):
    """
    Three tokens plus the pair contracts connecting them on both exchanges.

    ``tokens`` keeps insertion order, which defines the first rotation.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    tokens: Dict[str, str]
    exchange_a_pairs: Dict[str, str]
    exchange_b_pairs: Dict[str, str]
    priority: int = Field(ge=1, default=1)
    test_amounts: List[Decimal] = Field(default_factory=list)

    @field_validator("tokens")
    @classmethod
    def validate_tokens(cls, v):
        if len(v) != 3:
            raise ValueError(f"A token triple needs exactly 3 tokens, got {len(v)}")
        normalized = {symbol: checksum(address) for symbol, address in v.items()}
        if len(set(normalized.values())) != 3:
            raise ValueError("Token addresses in a triple must be distinct")
        return normalized

    @field_validator("exchange_a_pairs", "exchange_b_pairs")
    @classmethod
    def validate_pairs(cls, v):
        normalized = {}
        for key, address in v.items():
            split_edge_key(key)
            normalized[key] = checksum(address)
        return normalized

    @field_validator("test_amounts", mode="before")
    @classmethod
    def coerce_test_amounts(cls, v):
        if v is None:
            return []
        return [Decimal(str(amount)) for amount in v]

    @field_validator("test_amounts")
    @classmethod
    def validate_test_amounts(cls, v):
        for amount in v:
            if amount <= 0:
                raise ValueError(f"Test amounts must be positive: {amount}")
        return v

    @model_validator(mode="after")
    def validate_edges(self):
        symbols = list(self.tokens)
        for pairs, label in (
            (self.exchange_a_pairs, "exchange_a_pairs"),
            (self.exchange_b_pairs, "exchange_b_pairs"),
        ):
            for key in pairs:
                for symbol in split_edge_key(key):
                    if symbol not in self.tokens:
                        raise ValueError(
                            f"{label} key {key!r} names unknown token {symbol!r}"
                        )
            for i in range(3):
                a, b = symbols[i], symbols[(i + 1) % 3]
                if self._lookup(pairs, a, b) is None:
                    raise ValueError(f"{label} is missing a pair for {a}-{b}")
        return self

    @staticmethod
    def _lookup(pairs: Dict[str, str], symbol_a: str, symbol_b: str) -> Optional[str]:
        for key, address in pairs.items():
            first, second = split_edge_key(key)
            if {first, second} == {symbol_a, symbol_b}:
                return address
        return None

    @property
    def symbols(self) -> List[str]:
        return list(self.tokens)

    def rotations(self) -> List[List[str]]:
        """The three cyclic orderings of the triple's symbols."""
        symbols = self.symbols
        return [[symbols[(i + k) % 3] for k in range(3)] for i in range(3)]

    def pair_for(self, exchange: Exchange, symbol_a: str, symbol_b: str) -> Optional[str]:
        """Pair address for an unordered edge on ``exchange``, if configured."""
        pairs = self.exchange_a_pairs if exchange is Exchange.A else self.exchange_b_pairs
        return self._lookup(pairs, symbol_a, symbol_b)

    def amounts_for(self, start_symbol: str) -> List[Decimal]:
        """Loan sizes to sweep when the cycle starts at ``start_symbol``."""
        if self.test_amounts:
            return list(self.test_amounts)
        if "USD" in start_symbol.upper():
            return list(STABLE_TEST_AMOUNTS)
        return list(VOLATILE_TEST_AMOUNTS)


class ProfitSettings(BaseModel):
    """Profitability thresholds and gas economics"""

    min_profit_percentage: float = Field(ge=0, default=DEFAULT_MIN_PROFIT_PERCENTAGE)
    max_gas_price_gwei: float = Field(gt=0, default=DEFAULT_MAX_GAS_PRICE_GWEI)
    gas_limit: int = Field(gt=0, default=DEFAULT_GAS_LIMIT)
    slippage_bps: int = Field(ge=0, lt=10000, default=SLIPPAGE_BPS)
    price_gap_reversal_pct: float = Field(ge=0, default=DEFAULT_PRICE_GAP_REVERSAL_PCT)

    @property
    def max_gas_price_wei(self) -> int:
        return int(Decimal(str(self.max_gas_price_gwei)) * WEI_PER_GWEI)


class PricingSettings(BaseModel):
    """Reference assets used to express values in a common unit"""

    native_token: str = Field(description="Wrapped native asset (WBNB)")
    reference_stable: str = Field(description="Stable token prices are quoted in (BUSD)")
    native_symbol: str = "WBNB"
    reference_symbol: str = "BUSD"
    stable_tokens: Dict[str, str] = Field(default_factory=dict)
    default_native_price: Decimal = Field(gt=0, default=DEFAULT_NATIVE_PRICE)

    @field_validator("default_native_price", mode="before")
    @classmethod
    def coerce_native_price(cls, v):
        return Decimal(str(v))

    @field_validator("native_token", "reference_stable")
    @classmethod
    def validate_address(cls, v):
        return checksum(v)

    @field_validator("stable_tokens")
    @classmethod
    def validate_stable_tokens(cls, v):
        return {symbol: checksum(address) for symbol, address in v.items()}

    @model_validator(mode="after")
    def include_reference_stable(self):
        if self.reference_stable not in self.stable_tokens.values():
            self.stable_tokens[self.reference_symbol] = self.reference_stable
        return self

    @property
    def stable_addresses(self) -> List[str]:
        return list(self.stable_tokens.values())


class ScheduleSettings(BaseModel):
    """Cadences (seconds) of the background loops"""

    high_priority_interval: float = Field(gt=0, default=HIGH_PRIORITY_INTERVAL_SECONDS)
    low_priority_interval: float = Field(gt=0, default=LOW_PRIORITY_INTERVAL_SECONDS)
    native_price_interval: float = Field(gt=0, default=NATIVE_PRICE_INTERVAL_SECONDS)
    fee_refresh_interval: float = Field(gt=0, default=FEE_REFRESH_INTERVAL_SECONDS)
    network_health_interval: float = Field(gt=0, default=NETWORK_HEALTH_INTERVAL_SECONDS)


class BotConfig(BaseModel):
    """Complete scanner configuration"""

    rpc: RpcSettings
    exchange_a: ExchangeSettings
    exchange_b: ExchangeSettings
    flash_arbitrage_address: str
    pricing: PricingSettings
    profit: ProfitSettings = Field(default_factory=ProfitSettings)
    schedule: ScheduleSettings = Field(default_factory=ScheduleSettings)
    triples: List[TokenTripleConfig] = Field(min_length=1)
    execution_enabled: bool = False
    log_level: str = "INFO"

    @field_validator("flash_arbitrage_address")
    @classmethod
    def validate_contract(cls, v):
        return checksum(v)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @model_validator(mode="after")
    def validate_unique_triples(self):
        names = [triple.name for triple in self.triples]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ValueError(f"Duplicate triple names: {sorted(duplicates)}")
        return self
