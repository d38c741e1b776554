"""
DEX adapter modules for different AMM types.
"""

from .v2 import RouterQuoter, min_amount_out

__all__ = ["RouterQuoter", "min_amount_out"]
