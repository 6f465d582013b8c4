"""
Dynamic NFT metadata for prediction market positions.

Combines live chain reads with the odds/outcome derivation and the asset
table into an ERC-721 style metadata document.
"""

from collections.abc import Mapping
from typing import Any

from dbet_relay.config import DEFAULT_ASSET_URIS, DEFAULT_DESCRIPTION
from dbet_relay.services.chain_reader import ChainReader, PositionView
from dbet_relay.services.odds import Derivation, DisplayTier, derive
from dbet_relay.utils.logging import LoggerMixin


class AssetTable(Mapping):
    """Maps each display tier to an asset URI. Every tier must be present."""

    def __init__(self, uris: Mapping[str, str] | None = None):
        uris = dict(DEFAULT_ASSET_URIS if uris is None else uris)
        missing = [tier.value for tier in DisplayTier if not uris.get(tier.value)]
        if missing:
            raise ValueError(f"Asset table missing tiers: {', '.join(sorted(missing))}")
        self._uris = uris

    def __getitem__(self, tier: str) -> str:
        return self._uris[getattr(tier, "value", tier)]

    def __iter__(self):
        return iter(self._uris)

    def __len__(self) -> int:
        return len(self._uris)


def build_metadata(
    token_id: int,
    view: PositionView,
    derivation: Derivation,
    assets: AssetTable,
    description: str = DEFAULT_DESCRIPTION,
) -> dict[str, Any]:
    """Assemble the metadata document for a position."""
    attributes = [
        {"trait_type": "Your Option Odds", "value": derivation.formatted_percentage},
        {"trait_type": "Result", "value": derivation.state.value},
    ]
    option_name = view.option.name
    if option_name:
        attributes.append({"trait_type": "Option", "value": option_name})

    return {
        "name": f"Prediction Market Position #{token_id}",
        "description": description,
        "image": assets[derivation.tier],
        "attributes": attributes,
    }


class MetadataRenderer(LoggerMixin):
    """Renders metadata for a (market, token id) pair from live chain state.

    Outcome state comes from the market contract itself; the off-chain
    resolution store is not consulted here.
    """

    def __init__(
        self,
        chain_reader: ChainReader,
        assets: AssetTable | None = None,
        description: str = DEFAULT_DESCRIPTION,
    ):
        self.chain_reader = chain_reader
        self.assets = assets if assets is not None else AssetTable()
        self.description = description

    async def render(self, market_address: str, token_id: int) -> dict[str, Any]:
        """Read the position's chain state and build its metadata.

        Raises:
            ChainReadError: Any chain read failed; no partial document is built
        """
        view = await self.chain_reader.read_position_view(market_address, token_id)
        derivation = derive(
            total_stake=view.total_pool,
            position_option_stake=view.option_stake,
            is_resolved=view.is_resolved,
            winning_index=view.winning_option_index,
            position_option_index=view.option_index,
        )
        self.log.info(
            "metadata_rendered",
            market=market_address,
            token_id=token_id,
            option_index=view.option_index,
            odds=derivation.formatted_percentage,
            state=derivation.state.value,
            tier=derivation.tier.value,
        )
        return build_metadata(token_id, view, derivation, self.assets, self.description)
