"""Logging setup for wsloader."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

_NAMESPACE = "wsloader"


class _JsonFormatter(logging.Formatter):
    """One-line JSON formatter.

    Emits ``timestamp``, ``level``, ``logger`` and ``message``. Records logged
    with ``extra={"client_id": ...}`` also carry a ``client_id`` key so that
    per-client lines can be filtered downstream.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        client_id = getattr(record, "client_id", None)
        if client_id is not None:
            entry["client_id"] = client_id
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(
    level: int = logging.INFO,
    *,
    json_format: bool = False,
) -> logging.Logger:
    """Configure and return the ``wsloader`` root logger.

    Calling this more than once only updates the level of the handler that is
    already installed.

    Args:
        level: Logging level, e.g. ``logging.DEBUG`` to see every send.
        json_format: Emit one JSON object per line instead of plain text.

    Returns:
        The configured ``wsloader`` logger.
    """
    logger = logging.getLogger(_NAMESPACE)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_format:
        formatter: logging.Formatter = _JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child logger, e.g. ``get_logger("engine.worker")``."""
    return logging.getLogger(f"{_NAMESPACE}.{name}")
