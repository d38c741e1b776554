"""
Logging configuration for cleaner output.

Usage:
    import logging_config
    logging_config.setup()
"""

import logging
import sys


def setup(level=logging.INFO):
    """
    Configure logging for cleaner, more readable output.

    - Suppresses per-request logs from web3 and its HTTP stack
    - Uses shorter timestamp format (HH:MM:SS instead of full datetime)
    """

    # Root logger - minimal format
    root = logging.getLogger()
    root.setLevel(level)

    # Clear existing handlers
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    # Minimal format: time + level + message
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(message)s", datefmt="%H:%M:%S"
    )
    console.setFormatter(formatter)
    root.addHandler(console)

    # Suppress noisy loggers
    for noisy in ("web3", "urllib3", "aiohttp", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger("__main__").setLevel(level)
    logging.getLogger("flash_arbitrage").setLevel(level)
    logging.getLogger("dex").setLevel(level)


def setup_minimal():
    """
    Only warnings and errors.
    Good for production or when you only care about problems.
    """
    setup(level=logging.WARNING)


def setup_debug():
    """
    Verbose logging for debugging, including per-hop quotes.
    Web3 provider traffic is shown too.
    """
    setup(level=logging.DEBUG)
    logging.getLogger("web3").setLevel(logging.DEBUG)
