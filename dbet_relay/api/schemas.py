"""Pydantic schemas for API requests and responses."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

from ..services.chain_reader import MAX_UINT256


class ResolveMarketRequest(BaseModel):
    """Body posted by the resolver."""
    model_config = ConfigDict(populate_by_name=True)

    market_address: str = Field(..., alias="marketAddress", min_length=1)
    winning_option_index: StrictInt = Field(
        ..., alias="winningOptionIndex", ge=0, le=MAX_UINT256
    )

    @field_validator("market_address")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("marketAddress must not be blank")
        return v


class ResolveMarketResponse(BaseModel):
    """Echo of a stored resolution."""
    message: str = "Resolution stored."
    market: str
    winner: int


class ResolutionResponse(BaseModel):
    """Resolution as consumed by the oracle callback."""
    winningOptionIndex: int


class MetadataAttribute(BaseModel):
    trait_type: str
    value: str


class MetadataResponse(BaseModel):
    """ERC-721 metadata document for a position NFT."""
    name: str
    description: str
    image: str
    attributes: list[MetadataAttribute] = []


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    api_key_configured: bool
