"""
Shared-secret authentication for the resolver endpoint.
"""

import hmac
from typing import Optional

from fastapi import Header, Request

from ..config import Settings
from ..errors import UnauthorizedError
from ..utils.logging import get_logger

logger = get_logger(__name__)

API_KEY_HEADER = "x-api-key"


def verify_api_key(provided: Optional[str], expected: Optional[str]) -> bool:
    """
    Check a provided API key against the configured secret.

    Args:
        provided: Value of the x-api-key header, if any
        expected: Configured secret; None or empty disables the check

    Returns:
        True if the request may proceed
    """
    if not expected:
        return True
    if not provided:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())


async def require_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(None, alias=API_KEY_HEADER),
) -> None:
    """FastAPI dependency guarding resolver-only routes."""
    settings: Settings = request.app.state.settings
    if not verify_api_key(x_api_key, settings.api_key):
        logger.warning(
            "unauthorized_request",
            path=request.url.path,
            key_present=bool(x_api_key),
        )
        raise UnauthorizedError("Unauthorized: invalid API key.")
