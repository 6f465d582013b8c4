"""
REST API module for the dBet resolution relay.
"""

from .routes import router, create_api_app

__all__ = ["router", "create_api_app"]
