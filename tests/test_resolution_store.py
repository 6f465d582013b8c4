"""
Tests for resolution storage and the relay.
"""

import pytest

from dbet_relay.errors import InvalidInputError, ResolutionNotFoundError, StoreUnavailableError
from dbet_relay.services.chain_reader import MAX_UINT256
from dbet_relay.services.resolution_store import (
    InMemoryResolutionStore,
    RedisResolutionStore,
    Resolution,
    ResolutionRelay,
)

MIXED_CASE = "0xAbCdEf0123456789aBcDeF0123456789AbCdEf01"


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.closed = False

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value):
        self.data[key] = value

    async def aclose(self):
        self.closed = True


class BrokenRedis:
    async def get(self, key):
        raise ConnectionError("connection refused")

    async def set(self, key, value):
        raise ConnectionError("connection refused")


@pytest.fixture
def relay():
    return ResolutionRelay(InMemoryResolutionStore())


class TestResolutionRelay:
    """Test store/fetch semantics."""

    async def test_store_then_fetch(self, relay):
        """Test that a stored index is served back."""
        result = await relay.store_resolution(MIXED_CASE, 1)
        assert result == Resolution(market_address=MIXED_CASE, winning_option_index=1)
        assert await relay.fetch_resolution(MIXED_CASE) == 1

    async def test_index_zero_is_a_winner(self, relay):
        """Test that index 0 round-trips."""
        await relay.store_resolution(MIXED_CASE, 0)
        assert await relay.fetch_resolution(MIXED_CASE) == 0

    async def test_missing_market_not_found(self, relay):
        """Test that an unknown market is NotFound, not 0."""
        with pytest.raises(ResolutionNotFoundError) as exc_info:
            await relay.fetch_resolution(MIXED_CASE)
        assert exc_info.value.status_code == 404

    async def test_addresses_are_case_insensitive(self, relay):
        """Test lookups and overwrites across address case."""
        await relay.store_resolution(MIXED_CASE, 2)
        assert await relay.fetch_resolution(MIXED_CASE.lower()) == 2
        assert await relay.fetch_resolution(MIXED_CASE.upper().replace("0X", "0x")) == 2

        await relay.store_resolution(MIXED_CASE.lower(), 3)
        assert await relay.fetch_resolution(MIXED_CASE) == 3

    async def test_restore_same_index_is_noop(self, relay):
        """Test storing the same pair twice."""
        await relay.store_resolution(MIXED_CASE, 1)
        await relay.store_resolution(MIXED_CASE, 1)
        assert await relay.fetch_resolution(MIXED_CASE) == 1
        assert len(relay.store) == 1

    async def test_last_write_wins(self, relay):
        """Test that a later resolution replaces an earlier one."""
        await relay.store_resolution(MIXED_CASE, 0)
        await relay.store_resolution(MIXED_CASE, 1)
        assert await relay.fetch_resolution(MIXED_CASE) == 1

    @pytest.mark.parametrize("address", ["", "   ", None, 123])
    async def test_invalid_address_rejected(self, relay, address):
        """Test empty and non-string addresses."""
        with pytest.raises(InvalidInputError):
            await relay.store_resolution(address, 1)

    @pytest.mark.parametrize("index", [None, -1, True, False, 1.0, "1", MAX_UINT256 + 1])
    async def test_invalid_index_rejected(self, relay, index):
        """Test that nothing is stored for an invalid index."""
        with pytest.raises(InvalidInputError):
            await relay.store_resolution(MIXED_CASE, index)
        assert len(relay.store) == 0

    async def test_largest_uint256_accepted(self, relay):
        """Test the top of the uint256 range."""
        await relay.store_resolution(MIXED_CASE, MAX_UINT256)
        assert await relay.fetch_resolution(MIXED_CASE) == MAX_UINT256

    async def test_default_store_is_in_memory(self):
        """Test the default backend."""
        assert isinstance(ResolutionRelay().store, InMemoryResolutionStore)


class TestRedisResolutionStore:
    """Test the Redis-backed store against a fake client."""

    async def test_round_trip_with_prefix(self):
        """Test that keys are prefixed and lowercased."""
        client = FakeRedis()
        relay = ResolutionRelay(RedisResolutionStore(client=client))

        await relay.store_resolution(MIXED_CASE, 0)

        assert client.data == {f"dbet:resolution:{MIXED_CASE.lower()}": "0"}
        assert await relay.fetch_resolution(MIXED_CASE) == 0

    async def test_missing_key_not_found(self):
        """Test a miss on the Redis backend."""
        relay = ResolutionRelay(RedisResolutionStore(client=FakeRedis()))
        with pytest.raises(ResolutionNotFoundError):
            await relay.fetch_resolution(MIXED_CASE)

    async def test_backend_failure_is_not_a_miss(self):
        """Test that Redis errors surface instead of reading as unresolved."""
        relay = ResolutionRelay(RedisResolutionStore(client=BrokenRedis()))
        with pytest.raises(StoreUnavailableError):
            await relay.fetch_resolution(MIXED_CASE)
        with pytest.raises(StoreUnavailableError):
            await relay.store_resolution(MIXED_CASE, 1)

    async def test_close(self):
        """Test that close releases the client."""
        client = FakeRedis()
        await RedisResolutionStore(client=client).close()
        assert client.closed

    def test_requires_url_or_client(self):
        """Test construction with neither URL nor client."""
        with pytest.raises(ValueError):
            RedisResolutionStore()
