"""
Error taxonomy for the resolution relay.

Each error carries the HTTP status it maps to at the API boundary.
Server-side failures (5xx) expose only `public_message` to callers.
"""

from typing import Optional


class RelayError(Exception):
    """Base exception for relay errors."""

    status_code: int = 500
    public_message: str = "Internal server error."

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code
        super().__init__(message)

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500

    @property
    def client_message(self) -> str:
        """Message safe to return to an untrusted caller."""
        return self.public_message if self.is_server_error else self.message


class InvalidInputError(RelayError):
    """Raised for malformed addresses, token ids or missing fields."""
    status_code = 400


class UnauthorizedError(RelayError):
    """Raised when the shared API key is missing or wrong."""
    status_code = 401


class ResolutionNotFoundError(RelayError):
    """Raised when no resolution has been stored for a market."""
    status_code = 404

    def __init__(self, market_address: str):
        self.market_address = market_address
        super().__init__("No resolution found for this market.", code="not_found")


class ChainReadError(RelayError):
    """Raised when a contract read fails or returns something unusable."""
    status_code = 500
    public_message = "Failed to fetch metadata."


class UpstreamTimeoutError(ChainReadError):
    """Raised when a chain call exceeds its time bound."""
    pass


class StoreUnavailableError(RelayError):
    """Raised when the resolution store backend cannot be reached."""
    status_code = 500
