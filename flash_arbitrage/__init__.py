"""
Flash triangular arbitrage scanner.

Discovers and evaluates three-token arbitrage cycles across two V2-style
DEXes on one chain, scoring each candidate against an on-chain
profitability oracle net of gas cost.
"""

from flash_arbitrage.version import __version__

PROJECT_NAME = "flash-triangular-arbitrage"

__all__ = ["PROJECT_NAME", "__version__"]
