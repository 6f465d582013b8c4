#!/usr/bin/env python
"""
Simulate the oracle callback against a running relay.

Usage:
    python scripts/simulate_oracle_callback.py 0xMarketAddress
    python scripts/simulate_oracle_callback.py 0xMarketAddress --base-url http://localhost:3000

Defaults come from RELAY_BASE_URL and ORACLE_TIMEOUT_SECONDS (environment or .env).
"""

import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dbet_relay.oracle.cli import main


if __name__ == "__main__":
    main()
