"""
Run the dBet resolution relay API server.

Usage:
    python run_api.py

Requires SEPOLIA_RPC_URL (environment or .env). PORT defaults to 3000.
"""

import sys

import uvicorn
from pydantic import ValidationError

from dbet_relay.api import create_api_app
from dbet_relay.config import get_settings
from dbet_relay.utils.logging import get_logger, setup_logging


def main():
    """Run the API server."""
    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging()
        get_logger("run_api").error(
            "invalid_configuration",
            detail="SEPOLIA_RPC_URL must be set in the environment or .env",
            errors=e.errors(include_url=False),
        )
        sys.exit(1)

    setup_logging(settings.log_level)
    log = get_logger("run_api")

    app = create_api_app(settings)

    log.info("relay_listening", host=settings.host, port=settings.port)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
