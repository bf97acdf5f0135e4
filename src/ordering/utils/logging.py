"""Logging configuration for the coffee orders service.

Standard library logging owns the handlers: stdout always, plus a rotating
log and a rotating error-only log when ``LOG_DIR`` is non-empty (``logs`` by
default). structlog renders events on top of it: JSON in production and
staging, a coloured console stream everywhere else. Request-scoped values
bound through ``bind_request_context`` ride along on every event logged while
the request is handled.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

LOG_FILE_NAME = "coffee_orders.log"
ERROR_LOG_FILE_NAME = "coffee_orders_error.log"

LEVEL_BY_ENVIRONMENT = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

STRUCTURED_ENVIRONMENTS = frozenset({"production", "staging"})

# Third-party loggers that are only interesting when something breaks
QUIET_LOGGERS = ("protean", "urllib3", "asyncio", "uvicorn.access")

_ROTATE_AT_BYTES = 10 * 1024 * 1024
_ROTATED_FILES_KEPT = 5


def current_environment() -> str:
    return (os.getenv("ENV") or os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level(environment: str | None = None) -> str:
    """``LOG_LEVEL`` wins; otherwise the level follows the environment."""
    environment = environment or current_environment()
    return os.getenv("LOG_LEVEL", LEVEL_BY_ENVIRONMENT.get(environment, "INFO"))


def _rotating_handler(path: Path, level: int | str) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=_ROTATE_AT_BYTES,
        backupCount=_ROTATED_FILES_KEPT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def build_handlers(level: str, log_dir: str | None = None) -> list[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    handlers = [console]

    log_dir = os.getenv("LOG_DIR", "logs") if log_dir is None else log_dir
    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        handlers.append(_rotating_handler(directory / LOG_FILE_NAME, level))
        handlers.append(_rotating_handler(directory / ERROR_LOG_FILE_NAME, logging.ERROR))
    return handlers


def setup_stdlib_logging(log_dir: str | None = None) -> None:
    level = get_log_level()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = build_handlers(level, log_dir)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def select_renderer(environment: str):
    if environment in STRUCTURED_ENVIRONMENTS:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=True, max_frames=2),
    )


def setup_structlog(environment: str | None = None) -> None:
    callsite = structlog.processors.CallsiteParameter
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.CallsiteParameterAdder(
                parameters=[callsite.FILENAME, callsite.LINENO, callsite.FUNC_NAME]
            ),
            select_renderer(environment or current_environment()),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(log_dir: str | None = None) -> None:
    setup_stdlib_logging(log_dir)
    setup_structlog()


def bind_request_context(**values: Any) -> None:
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
