"""
Exception hierarchy for the flash arbitrage scanner.

Every error raised by the package derives from FlashArbitrageError and
carries an optional ``details`` dict for structured logging.
"""

from typing import Any, Dict, List, Optional


class FlashArbitrageError(Exception):
    """Base exception for all flash arbitrage related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(FlashArbitrageError):
    """Raised when configuration is missing or invalid."""

    pass


class NetworkError(FlashArbitrageError):
    """Raised when RPC endpoints cannot be reached."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint


class QuoteError(FlashArbitrageError):
    """Raised when a router has no usable quote for a path."""

    def __init__(
        self,
        message: str,
        exchange: Optional[str] = None,
        path: Optional[List[str]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.exchange = exchange
        self.path = path or []


class OracleError(FlashArbitrageError):
    """Raised when the profitability contract cannot be queried."""

    pass


class RetryExhaustedError(FlashArbitrageError):
    """Raised when an operation failed on every retry attempt."""

    def __init__(
        self,
        message: str,
        attempts: int = 0,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.attempts = attempts
