"""
structlog configuration.

Production emits one JSON object per line; local development gets the
coloured console renderer. Modules log through `get_logger(__name__)` and
pass context as keyword arguments.
"""

import logging
import sys

import structlog
from structlog.stdlib import LoggerFactory

# Third-party loggers that are only interesting when something goes wrong
QUIET_LOGGERS = ("httpx", "httpcore", "psycopg.pool", "uvicorn.access")


def setup_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    renderer = (
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    level = logging.getLevelName(log_level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def log_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    """One line per handled request; 4xx and 5xx are logged as warnings."""
    event = "HTTP request failed" if status_code >= 400 else "HTTP request completed"
    log = get_logger("http").warning if status_code >= 400 else get_logger("http").info
    log(event, method=method, path=path, status_code=status_code, duration_ms=duration_ms)
