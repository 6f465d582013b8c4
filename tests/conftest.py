"""
Pytest configuration and fixtures.
"""

import os

import pytest

# Settings refuse to load without an RPC endpoint
os.environ.setdefault("SEPOLIA_RPC_URL", "http://localhost:8545")

from tests.fakes import API_KEY, make_chain  # noqa: E402


@pytest.fixture
def settings():
    """Settings for tests, independent of the local environment and .env."""
    from dbet_relay.config import Settings

    return Settings(
        sepolia_rpc_url="http://localhost:8545",
        api_key=API_KEY,
        rate_limit_global="1000/minute",
        _env_file=None,
    )


@pytest.fixture
def chain():
    return make_chain()


@pytest.fixture
def chain_reader(chain):
    from dbet_relay.services.chain_reader import ChainReader

    return ChainReader(chain, timeout=1.0)
