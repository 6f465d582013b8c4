"""
Oracle callback client.

Pulls a stored resolution from the relay and ABI-encodes it as a uint256,
the format the market contract decodes when the oracle fulfils its request.
Mirrors the script run inside the oracle execution sandbox so it can be
simulated locally.
"""

from collections.abc import Sequence
from typing import Optional

import httpx
from eth_abi import encode

from dbet_relay.config import DEFAULT_ORACLE_TIMEOUT_SECONDS
from dbet_relay.services.chain_reader import MAX_UINT256
from dbet_relay.utils.logging import get_logger

logger = get_logger(__name__)


class OracleCallbackError(Exception):
    """The callback could not produce a result; the oracle request fails."""
    pass


def resolution_url(base_url: str, market_address: str) -> str:
    return f"{base_url.rstrip('/')}/get-resolution/{market_address}"


def encode_uint256(value: int) -> bytes:
    """ABI-encode an integer as a 32-byte big-endian uint256."""
    return encode(["uint256"], [value])


async def fetch_resolution_index(
    market_address: str,
    base_url: str,
    timeout: float = DEFAULT_ORACLE_TIMEOUT_SECONDS,
    client: Optional[httpx.AsyncClient] = None,
) -> int:
    """GET the winning option index for a market from the relay.

    Raises:
        OracleCallbackError: Transport error, non-2xx status or missing field
    """
    url = resolution_url(base_url, market_address)
    logger.info("oracle_request", url=url)

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=timeout)
    try:
        response = await client.get(url, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        logger.error("oracle_request_failed", url=url, status=e.response.status_code, body=e.response.text)
        raise OracleCallbackError(f"API request failed: {e.response.status_code} {e.response.text}") from e
    except httpx.HTTPError as e:
        logger.error("oracle_request_failed", url=url, error=str(e))
        raise OracleCallbackError(f"API request failed: {e}") from e
    except ValueError as e:
        raise OracleCallbackError("API response is not valid JSON") from e
    finally:
        if owns_client:
            await client.aclose()

    if not isinstance(data, dict) or "winningOptionIndex" not in data:
        raise OracleCallbackError("'winningOptionIndex' not found in API response")

    index = data["winningOptionIndex"]
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index <= MAX_UINT256:
        raise OracleCallbackError(f"Invalid winningOptionIndex in API response: {index!r}")

    logger.info("oracle_resolution_fetched", market=market_address, winning_option_index=index)
    return index


async def fetch_encoded_resolution(
    args: Sequence[str],
    base_url: str,
    timeout: float = DEFAULT_ORACLE_TIMEOUT_SECONDS,
    client: Optional[httpx.AsyncClient] = None,
) -> bytes:
    """Run the oracle callback.

    Args:
        args: Positional request arguments; args[0] is the market address
        base_url: Public base URL of the relay
        timeout: Bound on the HTTP request, in seconds
        client: Optional shared httpx client

    Returns:
        The winning option index encoded as uint256 bytes
    """
    if not args or not args[0]:
        raise OracleCallbackError("Market address must be provided in args[0]")

    index = await fetch_resolution_index(args[0], base_url, timeout=timeout, client=client)
    return encode_uint256(index)
