"""Structured logging utility shared by the extraction pipeline and collaborators."""

from __future__ import annotations

import logging
from typing import Any


def structured_log(
    logger: logging.Logger,
    level: str,
    event: str,
    /,
    **fields: Any,
) -> None:
    """Emit a structured log entry.

    The event name is passed as the log message; the formatters in
    logging_config.py read it back with record.getMessage(). Field names
    must not collide with LogRecord attributes such as `name` or `msg`.

    Usage:
        structured_log(logger, "info", "scholar_cache.hit", scholar_id="qc6CJjYAAAAJ")
    """
    log_method = getattr(logger, level.lower())
    log_method(event, extra=fields)
