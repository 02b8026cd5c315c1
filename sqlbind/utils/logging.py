# ruff: noqa: PLR6301
"""Logging setup for sqlbind.

Library modules log at DEBUG through :func:`get_logger`. Log calls about a
statement attach its (truncated) SQL and counts through
:func:`statement_extra`, which :class:`StructuredFormatter` renders as JSON
fields.
"""

import logging
import sys
from typing import TYPE_CHECKING, Any, Final, Optional

from sqlbind._serialization import encode_json

if TYPE_CHECKING:
    from collections.abc import Sequence
    from logging import LogRecord

__all__ = ("MAX_LOGGED_SQL_LENGTH", "StructuredFormatter", "configure_logging", "get_logger", "statement_extra")

MAX_LOGGED_SQL_LENGTH: Final = 200

_ROOT_LOGGER_NAME: Final = "sqlbind"


def statement_extra(sql: str, **fields: Any) -> "dict[str, Any]":
    """Build the ``extra`` mapping for a log call about one statement.

    Args:
        sql: Statement text, cut to ``MAX_LOGGED_SQL_LENGTH`` characters.
        **fields: Additional fields such as counts or slot indexes.

    Returns:
        Mapping suitable for the ``extra`` argument of a logging call.
    """
    if len(sql) > MAX_LOGGED_SQL_LENGTH:
        sql = f"{sql[:MAX_LOGGED_SQL_LENGTH]}..."
    return {"extra_fields": {"sql": sql, **fields}}


class StructuredFormatter(logging.Formatter):
    """JSON formatter emitting the statement fields attached by :func:`statement_extra`."""

    def format(self, record: "LogRecord") -> str:
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            log_entry.update(extra_fields)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return encode_json(log_entry)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger under the ``sqlbind`` namespace.

    Args:
        name: Dotted module path below ``sqlbind``; ``None`` returns the package logger.
    """
    if name is None:
        return logging.getLogger(_ROOT_LOGGER_NAME)
    if not name.startswith(_ROOT_LOGGER_NAME):
        name = f"{_ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: str = "INFO", structured: bool = True, handlers: "Optional[Sequence[logging.Handler]]" = None
) -> logging.Logger:
    """Attach a console handler (plus ``handlers``) to the ``sqlbind`` logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        structured: Emit JSON via :class:`StructuredFormatter` instead of plain text
        handlers: Additional handlers to add

    Returns:
        The configured package logger.
    """
    root_logger = get_logger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    if structured:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    for handler in handlers or ():
        root_logger.addHandler(handler)

    root_logger.propagate = False
    return root_logger
