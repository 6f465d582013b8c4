"""
Command-line runner for the oracle callback.

Mirrors a local functions-toolkit simulation: pulls the stored resolution
for one market and prints the uint256 result as hex.
"""

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from dbet_relay.config import OracleSettings, get_oracle_settings
from dbet_relay.oracle.callback import OracleCallbackError, fetch_encoded_resolution
from dbet_relay.utils.logging import setup_logging


def build_parser(settings: OracleSettings) -> argparse.ArgumentParser:
    """Argument parser whose defaults come from RELAY_BASE_URL / ORACLE_TIMEOUT_SECONDS."""
    parser = argparse.ArgumentParser(description="Run the oracle callback locally")
    parser.add_argument("market_address", help="Market contract address (args[0])")
    parser.add_argument("--base-url", "-u", default=settings.relay_base_url,
                        help=f"Relay base URL (default: {settings.relay_base_url})")
    parser.add_argument("--timeout", "-t", type=float, default=settings.oracle_timeout_seconds,
                        help=f"HTTP timeout in seconds (default: {settings.oracle_timeout_seconds})")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    settings = get_oracle_settings()
    args = build_parser(settings).parse_args(argv)
    setup_logging(settings.log_level)

    try:
        result = asyncio.run(
            fetch_encoded_resolution([args.market_address], args.base_url, timeout=args.timeout)
        )
    except OracleCallbackError as e:
        print(f"Callback failed: {e}")
        sys.exit(1)

    print(f"0x{result.hex()}")
