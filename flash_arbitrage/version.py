"""Version information for the flash triangular arbitrage scanner."""

__version__ = "0.1.0"
