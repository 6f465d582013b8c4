"""
Oracle callback client for publishing stored resolutions on-chain.
"""

from .callback import (
    OracleCallbackError,
    encode_uint256,
    fetch_encoded_resolution,
    fetch_resolution_index,
)

__all__ = [
    "OracleCallbackError",
    "encode_uint256",
    "fetch_encoded_resolution",
    "fetch_resolution_index",
]
