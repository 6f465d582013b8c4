"""
Tests for metadata rendering.
"""

import pytest

from dbet_relay.config import DEFAULT_ASSET_URIS, DEFAULT_DESCRIPTION
from dbet_relay.errors import ChainReadError
from dbet_relay.services.chain_reader import ChainReader
from dbet_relay.services.metadata import AssetTable, MetadataRenderer
from tests.fakes import MARKET_ADDRESS, make_chain

ASSETS = {tier: f"ipfs://{tier}" for tier in DEFAULT_ASSET_URIS}


def renderer_for(**chain_kwargs) -> MetadataRenderer:
    reader = ChainReader(make_chain(**chain_kwargs), timeout=1.0)
    return MetadataRenderer(reader, assets=AssetTable(ASSETS))


def attribute(document: dict, trait: str):
    for attr in document["attributes"]:
        if attr["trait_type"] == trait:
            return attr["value"]
    return None


class TestAssetTable:
    """Test the tier to asset mapping."""

    def test_defaults_cover_every_tier(self):
        """Test that the deployed table has all seven tiers."""
        table = AssetTable()
        assert table["win"] == DEFAULT_ASSET_URIS["win"]
        assert len(table) == 7

    def test_missing_tier_rejected(self):
        """Test that an incomplete table is refused up front."""
        partial = dict(ASSETS)
        del partial["loss"]
        with pytest.raises(ValueError, match="loss"):
            AssetTable(partial)


class TestMetadataRenderer:
    """Test document rendering against a fake chain."""

    async def test_unresolved_position_on_favourite(self):
        """Test the 30/70 market from the option 1 side."""
        document = await renderer_for().render(MARKET_ADDRESS, 1)

        assert document["name"] == "Prediction Market Position #1"
        assert document["description"] == DEFAULT_DESCRIPTION
        assert document["image"] == "ipfs://slight_advantage"
        assert document["attributes"][0] == {"trait_type": "Your Option Odds", "value": "70.00%"}
        assert document["attributes"][1] == {"trait_type": "Result", "value": "Pending"}
        assert attribute(document, "Option") == "No"

    async def test_odds_follow_position_option(self):
        """Test that odds are relative to the token's own option."""
        # Token 2 backs option 0 on the same market
        document = await renderer_for().render(MARKET_ADDRESS, 2)
        assert attribute(document, "Your Option Odds") == "30.00%"
        assert document["image"] == "ipfs://slight_disadvantage"

    async def test_empty_market_is_neutral(self):
        """Test a market with no stake."""
        document = await renderer_for(options=[(b"Yes", 0), (b"No", 0)]).render(MARKET_ADDRESS, 1)
        assert attribute(document, "Your Option Odds") == "50.00%"
        assert document["image"] == "ipfs://initial"

    async def test_resolved_winner(self):
        """Test the win artwork."""
        document = await renderer_for(is_resolved=True, winning_option_index=1).render(MARKET_ADDRESS, 1)
        assert attribute(document, "Result") == "Won"
        assert document["image"] == "ipfs://win"

    async def test_resolved_loser(self):
        """Test the loss artwork."""
        document = await renderer_for(is_resolved=True, winning_option_index=1).render(MARKET_ADDRESS, 2)
        assert attribute(document, "Result") == "Lost"
        assert document["image"] == "ipfs://loss"

    async def test_unnamed_option_has_no_option_attribute(self):
        """Test that an empty bytes32 name adds no Option trait."""
        document = await renderer_for(options=[(b"\x00" * 32, 1), (b"\x00" * 32, 3)]).render(MARKET_ADDRESS, 1)
        assert attribute(document, "Option") is None
        assert len(document["attributes"]) == 2
        assert document["image"] == "ipfs://initial"  # exactly 75.00%

    async def test_chain_failure_propagates(self):
        """Test that a failed read is not rendered as defaults."""
        renderer = renderer_for(is_resolved=RuntimeError("rpc down"))
        with pytest.raises(ChainReadError):
            await renderer.render(MARKET_ADDRESS, 1)
