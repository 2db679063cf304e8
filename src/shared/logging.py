"""Logging configuration shared by the customer-order and manufacturing contexts.

Everything goes through structlog on top of the stdlib root logger: JSON
lines when deployed, the coloured console renderer with rich tracebacks
otherwise.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

_LEVELS_BY_ENV = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

_ROTATE_AT_BYTES = 10 * 1024 * 1024


def _environment() -> str:
    return (os.getenv("ENV") or os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level() -> str:
    """``LOG_LEVEL`` if set, else the level for the current environment."""
    return os.getenv("LOG_LEVEL", _LEVELS_BY_ENV.get(_environment(), "INFO"))


def _rotating_file(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=_ROTATE_AT_BYTES,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging(log_dir: str | None = None) -> None:
    """Console output always; rotating files only when ``log_dir`` is given."""
    log_level = get_log_level()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    handlers[0].setLevel(log_level)
    if log_dir:
        path = Path(log_dir)
        path.mkdir(exist_ok=True)
        handlers.append(_rotating_file(path / "order_management.log", log_level))
        handlers.append(_rotating_file(path / "order_management_error.log", logging.ERROR))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = handlers

    logging.getLogger("protean").setLevel(logging.WARNING)


def setup_structlog() -> None:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if _environment() in ("production", "staging"):
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=2),
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(log_dir: str | None = None) -> None:
    setup_stdlib_logging(log_dir)
    setup_structlog()


def log_context(**kwargs: Any):
    """Bind key/values to every log line emitted inside the ``with`` block.

    ``None`` values are left out.
    """
    return structlog.contextvars.bound_contextvars(**{k: v for k, v in kwargs.items() if v is not None})
