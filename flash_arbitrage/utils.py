"""
Common helpers: unit conversion, percentages, URL masking, formatting.
"""

from decimal import Decimal, InvalidOperation
from typing import Union
from urllib.parse import urlsplit

Number = Union[int, float, Decimal, str]


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without float representation noise."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Not a number: {value!r}") from e


def to_base_units(amount: Number, decimals: int) -> int:
    """Convert a human-readable amount to integer base units (truncating)."""
    scaled = to_decimal(amount) * (Decimal(10) ** decimals)
    return int(scaled)


def from_base_units(amount: int, decimals: int) -> Decimal:
    """Convert integer base units to a human-readable Decimal."""
    return Decimal(int(amount)) / (Decimal(10) ** decimals)


def calculate_percentage(part: Number, whole: Number) -> Decimal:
    """Return part/whole*100, or zero when whole is zero."""
    whole_d = to_decimal(whole)
    if whole_d == 0:
        return Decimal(0)
    return to_decimal(part) / whole_d * 100


def mask_url(url: str) -> str:
    """
    Hide API keys embedded in RPC URLs.

    Keeps only the scheme and host. Long paths (usually keys) are replaced
    with ``/*****``; strings that don't parse as URLs are truncated.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        parts = None
    if parts is None or not parts.scheme or not parts.netloc:
        return url[:20] + "..."
    origin = f"{parts.scheme}://{parts.netloc}"
    if len(parts.path) > 20:
        return origin + "/*****"
    return origin


def format_gwei(wei: int) -> str:
    """Format a wei amount as gwei with two decimals."""
    return f"{Decimal(wei) / Decimal(10**9):.2f} gwei"


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        return f"{seconds / 60:.1f}m"
    return f"{seconds / 3600:.1f}h"
