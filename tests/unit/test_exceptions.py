"""Tests for the exceptions module."""

from flash_arbitrage.exceptions import (
    ConfigurationError,
    FlashArbitrageError,
    NetworkError,
    OracleError,
    QuoteError,
    RetryExhaustedError,
)


def test_base_exception():
    """Test the base exception class."""
    error = FlashArbitrageError("Test error")
    assert str(error) == "Test error"
    assert error.details == {}

    error_with_details = FlashArbitrageError("Test error", {"key": "value"})
    assert error_with_details.details == {"key": "value"}


def test_configuration_error():
    """Test configuration error."""
    error = ConfigurationError("Config error", {"config_file": "test.yaml"})
    assert str(error) == "Config error"
    assert error.details["config_file"] == "test.yaml"
    assert isinstance(error, FlashArbitrageError)


def test_network_error():
    """Test network error."""
    error = NetworkError("Timed out", endpoint="https://node.example")
    assert error.endpoint == "https://node.example"
    assert isinstance(error, FlashArbitrageError)


def test_quote_error():
    """Test quote error."""
    error = QuoteError("No liquidity", exchange="PancakeSwap", path=["0xa", "0xb"])
    assert error.exchange == "PancakeSwap"
    assert error.path == ["0xa", "0xb"]
    assert QuoteError("No liquidity").path == []


def test_oracle_and_retry_errors():
    """Test oracle and retry errors."""
    assert isinstance(OracleError("paused() failed"), FlashArbitrageError)
    error = RetryExhaustedError("gave up", attempts=3)
    assert error.attempts == 3
    assert isinstance(error, FlashArbitrageError)
