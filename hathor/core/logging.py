"""Structured logging for hathor servers.

structlog renders hathor's own events and the stdlib records emitted by
uvicorn and FastAPI through a single handler on the root logger.
"""

import logging
import sys
from typing import TYPE_CHECKING

import structlog
from structlog.stdlib import BoundLogger
from structlog.typing import Processor


if TYPE_CHECKING:
    from hathor.config.logging import LoggingSettings


ROUTED_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "fastapi", "hathor")


def _shared_processors() -> list[Processor]:
    # Applied to structlog events and to foreign stdlib records alike
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def configure_structlog() -> None:
    """Configure the processor chain used by every hathor logger."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def setup_logging(json_logs: bool = False, log_level: str = "INFO") -> BoundLogger:
    """Route hathor, uvicorn and FastAPI logging through one structlog handler.

    Returns the ``hathor`` logger.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    configure_structlog()

    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=_shared_processors(),
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)

    for name in ROUTED_LOGGERS:
        routed = logging.getLogger(name)
        routed.handlers = []
        routed.propagate = True
        routed.setLevel(level)

    return get_logger("hathor")


def configure_logging(settings: "LoggingSettings") -> BoundLogger:
    """Apply the level and console or JSON format from ``LoggingSettings``."""
    return setup_logging(
        json_logs=settings.format == "json",
        log_level=settings.level,
    )


def get_logger(name: str | None = None) -> BoundLogger:
    """Get a structlog logger instance."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]
