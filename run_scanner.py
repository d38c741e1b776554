#!/usr/bin/env python3
"""
Flash triangular arbitrage scanner CLI.

Scans configured token triples across both exchanges and logs ranked
opportunities. Runs on a schedule until interrupted, or once with --once.

Usage:
    python3 run_scanner.py
    python3 run_scanner.py --config configs/bsc_triangular.yaml
    python3 run_scanner.py --config configs/bsc_triangular.yaml --once
"""

import argparse
import asyncio
import logging
import sys

import logging_config
from flash_arbitrage.app import build_app
from flash_arbitrage.config_loader import load_config
from flash_arbitrage.config_schema import BotConfig
from flash_arbitrage.exceptions import ConfigurationError, NetworkError, OracleError
from flash_arbitrage.types import CycleStatus

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Flash triangular arbitrage scanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with default config
  python3 run_scanner.py

  # Single scan (for testing/CI)
  python3 run_scanner.py --config configs/bsc_triangular.yaml --once

  # Verbose hop-by-hop output
  python3 run_scanner.py --debug
        """,
    )

    parser.add_argument(
        "--config",
        default="configs/bsc_triangular.yaml",
        help="Path to config YAML file (default: configs/bsc_triangular.yaml)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single scan over all triples and exit",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--debug", action="store_true", help="Verbose logging")
    verbosity.add_argument(
        "--quiet", action="store_true", help="Only log warnings and errors"
    )

    return parser.parse_args()


async def run(config: BotConfig, once: bool) -> int:
    """Connect, validate the contract, then scan once or on schedule."""
    app = build_app(config)
    try:
        await app.pool.connect()
        await app.oracle.verify_deployed()
    except (NetworkError, OracleError) as e:
        print(f"❌ Initialization failed: {e}", file=sys.stderr)
        await app.pool.close()
        return 1

    try:
        if once:
            await app.coordinator.prepare()
            report = await app.coordinator.run_initial_scan()
            return 1 if report.status is CycleStatus.FAILED else 0
        await app.coordinator.run_forever()
    finally:
        await app.coordinator.stop()
    return 0


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_args()

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"❌ Config error: {e}", file=sys.stderr)
        return 1

    if args.debug:
        logging_config.setup_debug()
    elif args.quiet:
        logging_config.setup_minimal()
    else:
        logging_config.setup(level=getattr(logging, config.log_level))

    try:
        return asyncio.run(run(config, args.once))
    except KeyboardInterrupt:
        print("\n\n⏸ Stopped by user")
        return 0


if __name__ == "__main__":
    sys.exit(main())
