"""
Structured logging configuration using structlog.
"""

import logging
import sys
from contextlib import AbstractContextManager
from typing import Any, Optional

import structlog
from structlog.typing import Processor


def setup_logging(log_level: str = "INFO", json_logs: Optional[bool] = None) -> None:
    """Configure structured logging for the relay.

    Args:
        log_level: Standard logging level name
        json_logs: Force JSON output; by default JSON is used unless stderr is a TTY
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    # uvicorn and web3 log through the standard library
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if json_logs is None:
        json_logs = not sys.stderr.isatty()

    if json_logs:
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True)
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger, optionally bound to a module name."""
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(module=name)
    return logger


class LoggerMixin:
    """Gives a class a `log` property bound to its class name."""

    @property
    def log(self) -> structlog.BoundLogger:
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger


def log_context(**kwargs: Any) -> AbstractContextManager[None]:
    """Bind key/values to every log line emitted inside the block."""
    return structlog.contextvars.bound_contextvars(**kwargs)
