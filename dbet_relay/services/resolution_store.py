"""
Resolution storage and relay.

The relay records a market's winning option index once a trusted resolver
reports it, and serves it back to the oracle callback. Storage sits behind
the `ResolutionStore` interface so the in-memory default can be swapped for
a persistent backend without touching relay logic.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from dbet_relay.errors import InvalidInputError, ResolutionNotFoundError, StoreUnavailableError
from dbet_relay.services.chain_reader import MAX_UINT256
from dbet_relay.utils.logging import LoggerMixin, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Resolution:
    """A stored market outcome."""
    market_address: str
    winning_option_index: int


def normalize_address(market_address: str) -> str:
    """Case-normalize a market address for use as a store key."""
    return market_address.strip().lower()


class ResolutionStore(ABC):
    """Key/value contract for resolution records (address -> winning index)."""

    @abstractmethod
    async def get(self, key: str) -> Optional[int]:
        """Return the stored index, or None when the key is absent."""
        pass

    @abstractmethod
    async def set(self, key: str, value: int) -> None:
        """Upsert the index for a key."""
        pass

    async def close(self) -> None:
        """Release backend resources."""
        pass


class InMemoryResolutionStore(ResolutionStore):
    """Dict-backed store. Contents are lost on restart."""

    def __init__(self):
        self._records: dict[str, int] = {}

    async def get(self, key: str) -> Optional[int]:
        return self._records.get(key)

    async def set(self, key: str, value: int) -> None:
        self._records[key] = value

    def __len__(self) -> int:
        return len(self._records)


class RedisResolutionStore(ResolutionStore):
    """Redis-backed store.

    Unlike a cache, a backend failure here is an error: reporting a miss
    would be indistinguishable from an unresolved market.
    """

    KEY_PREFIX = "dbet:resolution:"

    def __init__(self, redis_url: Optional[str] = None, client: Any = None):
        if client is None:
            if not redis_url:
                raise ValueError("redis_url or client is required")
            import redis.asyncio as aioredis

            client = aioredis.from_url(
                redis_url,
                decode_responses=True,
                socket_timeout=5,
                socket_connect_timeout=5,
                retry_on_timeout=True,
            )
        self._redis = client

    def _key(self, key: str) -> str:
        return f"{self.KEY_PREFIX}{key}"

    async def get(self, key: str) -> Optional[int]:
        try:
            raw = await self._redis.get(self._key(key))
        except Exception as e:
            logger.error("resolution_store_get_failed", key=key, error=str(e))
            raise StoreUnavailableError("Resolution store unavailable") from e
        if raw is None:
            return None
        return int(raw)

    async def set(self, key: str, value: int) -> None:
        try:
            await self._redis.set(self._key(key), str(value))
        except Exception as e:
            logger.error("resolution_store_set_failed", key=key, error=str(e))
            raise StoreUnavailableError("Resolution store unavailable") from e

    async def close(self) -> None:
        await self._redis.aclose()
        logger.info("resolution_store_closed")


def _validate_index(winning_option_index: Any) -> int:
    # bool is an int subclass; True/False are not option indexes
    if isinstance(winning_option_index, bool) or not isinstance(winning_option_index, int):
        raise InvalidInputError("winningOptionIndex must be a non-negative integer.")
    if winning_option_index < 0:
        raise InvalidInputError("winningOptionIndex must be a non-negative integer.")
    # published on-chain as a uint256
    if winning_option_index > MAX_UINT256:
        raise InvalidInputError("winningOptionIndex must fit in a uint256.")
    return winning_option_index


class ResolutionRelay(LoggerMixin):
    """Stores resolutions pushed by the resolver and serves them to the oracle."""

    def __init__(self, store: Optional[ResolutionStore] = None):
        self.store = store if store is not None else InMemoryResolutionStore()

    async def store_resolution(self, market_address: Any, winning_option_index: Any) -> Resolution:
        """Record the winning option index for a market.

        Args:
            market_address: Market contract address (any case)
            winning_option_index: Winning option, 0 included

        Returns:
            The stored pair, keyed by the address as given

        Raises:
            InvalidInputError: Empty address or invalid index
        """
        if not isinstance(market_address, str) or not market_address.strip():
            raise InvalidInputError("marketAddress and winningOptionIndex are required.")
        if winning_option_index is None:
            raise InvalidInputError("marketAddress and winningOptionIndex are required.")
        index = _validate_index(winning_option_index)

        await self.store.set(normalize_address(market_address), index)
        self.log.info(
            "resolution_stored",
            market=market_address,
            winning_option_index=index,
        )
        return Resolution(market_address=market_address, winning_option_index=index)

    async def fetch_resolution(self, market_address: str) -> int:
        """Look up the winning option index for a market.

        Raises:
            ResolutionNotFoundError: Nothing stored for the market
        """
        index = await self.store.get(normalize_address(market_address))
        if index is None:
            raise ResolutionNotFoundError(market_address)
        return index
