"""
Configuration management using Pydantic Settings.
All environment variables are validated at startup.
"""

import json
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Deployed dNFT artwork, keyed by display tier
DEFAULT_ASSET_URIS: dict[str, str] = {
    "initial": "ipfs://bafybeihnupuikrn6zwq7aozfmtw7eppqf4hhrasyo2lpari7arz27i6pqq",
    "slight_advantage": "ipfs://bafybeihnupuikrn6zwq7aozfmtw7eppqf4hhrasyo2lpari7arz27i6pqq",
    "huge_advantage": "ipfs://bafybeiecjtvd4xxlyjlr2uagy2ermnkfyfhgbdzhqrp4coflmwef33o6pm",
    "win": "ipfs://bafybeigeswyw24exdy5r4hvx2zg3yvfprcazhja5aowqwlvejeviizoomm",
    "slight_disadvantage": "ipfs://bafybeihyqd3sltgm72vcn2mbd2tcm64qqxtmnm232a5rujnonox7j4w77q",
    "huge_disadvantage": "ipfs://bafybeifubqeukm7q5fd5wxulstptokvbrq3jmdho6em5rh6kk4vi6mod2y",
    "loss": "ipfs://bafybeihiaeifcob2wsqc5tqg6ae3voc5wzfuhp7pf2ln56t3njibbjhgkq",
}

DEFAULT_DESCRIPTION = "A dynamic NFT representing a position in a dBet prediction market."

DEFAULT_RELAY_BASE_URL = "https://backend-5z8l.onrender.com"
DEFAULT_ORACLE_TIMEOUT_SECONDS = 5.0


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===================
    # Chain Configuration
    # ===================
    sepolia_rpc_url: str = Field(..., min_length=1, description="Sepolia JSON-RPC endpoint")
    chain_call_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Upper bound on a single contract read"
    )
    market_option_count: int = Field(
        default=2,
        ge=1,
        description="Number of option indexes read from each market contract"
    )

    # ===================
    # Server Configuration
    # ===================
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)

    # ===================
    # Security Configuration
    # ===================
    api_key: Optional[str] = Field(
        default=None,
        description="Shared secret for the resolver; unset leaves /resolve-market open"
    )

    # ===================
    # Metadata Configuration
    # ===================
    asset_uris: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_ASSET_URIS),
        description="JSON object mapping display tier to asset URI"
    )
    metadata_description: str = Field(default=DEFAULT_DESCRIPTION)

    # ===================
    # Storage / Rate Limiting
    # ===================
    redis_url: Optional[str] = Field(default=None, description="Redis URL for resolution storage")
    rate_limit_global: str = Field(default="120/minute")

    # ===================
    # Logging
    # ===================
    log_level: str = Field(default="INFO")

    @field_validator("asset_uris", mode="before")
    @classmethod
    def parse_asset_uris(cls, v):
        """Accept the asset table as a JSON string and overlay it on the defaults."""
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except ValueError:
                raise ValueError("ASSET_URIS must be a JSON object")
        if not isinstance(v, dict):
            raise ValueError("ASSET_URIS must be a JSON object")
        return {**DEFAULT_ASSET_URIS, **v}

    @property
    def is_api_key_configured(self) -> bool:
        """Whether the resolver endpoint is protected."""
        return bool(self.api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


class OracleSettings(BaseSettings):
    """Settings for the oracle callback client.

    Independent of Settings; the callback needs no RPC endpoint.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    relay_base_url: str = Field(
        default=DEFAULT_RELAY_BASE_URL,
        description="Public base URL the oracle callback pulls resolutions from"
    )
    oracle_timeout_seconds: float = Field(default=DEFAULT_ORACLE_TIMEOUT_SECONDS, gt=0)
    log_level: str = Field(default="INFO")

    @field_validator("relay_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache
def get_oracle_settings() -> OracleSettings:
    """Get cached oracle settings instance."""
    return OracleSettings()
