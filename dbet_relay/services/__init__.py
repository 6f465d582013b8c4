"""
Relay services: chain reads, odds derivation, metadata and resolution storage.
"""

from .chain_reader import ChainReader, MarketOption, PositionView, is_valid_address
from .metadata import AssetTable, MetadataRenderer
from .odds import Derivation, DisplayTier, PositionState, derive, select_tier
from .resolution_store import (
    InMemoryResolutionStore,
    RedisResolutionStore,
    Resolution,
    ResolutionRelay,
    ResolutionStore,
)

__all__ = [
    "AssetTable",
    "ChainReader",
    "Derivation",
    "DisplayTier",
    "InMemoryResolutionStore",
    "MarketOption",
    "MetadataRenderer",
    "PositionState",
    "PositionView",
    "RedisResolutionStore",
    "Resolution",
    "ResolutionRelay",
    "ResolutionStore",
    "derive",
    "is_valid_address",
    "select_tier",
]
