from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
import sys
from typing import Any, TextIO

from citeanalyzer.logging_context import get_scholar_id

REDACTED = "[REDACTED]"

_BASE_RECORD = logging.makeLogRecord({})
_STANDARD_RECORD_FIELDS = set(_BASE_RECORD.__dict__.keys()) | {"message", "asctime"}
_HTTP_CLIENT_LOGGERS = ("httpx", "httpcore")

_CONSOLE_SHORT_KEYS = {
    "requested_url": "url",
    "attempt_number": "attempt",
}
_SHORT_LEVELS = {
    "debug": "DBG",
    "info": "INF",
    "warning": "WRN",
    "error": "ERR",
    "critical": "CRT",
}


def parse_redact_fields(raw: str | None) -> set[str]:
    return {field.strip().lower() for field in (raw or "").split(",") if field.strip()}


def configure_logging(
    *,
    level: str,
    log_format: str,
    redact_fields: set[str],
    include_http_client: bool = False,
    stream: TextIO | None = None,
) -> None:
    normalized_level = _normalize_level(level)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(normalized_level)

    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.setLevel(normalized_level)
    handler.addFilter(ScholarContextFilter())
    if log_format.strip().lower() == "json":
        handler.setFormatter(JsonLogFormatter(redact_fields=redact_fields))
    else:
        handler.setFormatter(ConsoleLogFormatter(redact_fields=redact_fields))
    root_logger.addHandler(handler)

    # httpx logs every request at INFO; keep it behind a flag.
    for logger_name in _HTTP_CLIENT_LOGGERS:
        client_logger = logging.getLogger(logger_name)
        client_logger.handlers.clear()
        client_logger.propagate = True
        client_logger.setLevel(normalized_level if include_http_client else logging.WARNING)


class ScholarContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "scholar_id", None):
            scholar_id = get_scholar_id()
            if scholar_id:
                record.scholar_id = scholar_id
        return True


class _FieldsFormatter(logging.Formatter):
    def __init__(self, *, redact_fields: set[str]) -> None:
        super().__init__()
        self._redact_fields = {field.lower() for field in redact_fields}

    def _fields(self, record: logging.LogRecord) -> dict[str, Any]:
        """Extra fields passed to structured_log, with configured keys masked."""
        return {
            key: REDACTED if key.lower() in self._redact_fields else value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_FIELDS and not key.startswith("_")
        }


class JsonLogFormatter(_FieldsFormatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": _format_timestamp(record.created),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        payload.update(self._fields(record))
        return json.dumps(payload, ensure_ascii=True, default=str)


class ConsoleLogFormatter(_FieldsFormatter):
    """One line per event: time | level | logger | event | scholar | status | key=value ..."""

    def format(self, record: logging.LogRecord) -> str:
        fields = self._fields(record)
        parts = [
            _format_timestamp(record.created),
            _SHORT_LEVELS.get(record.levelname.lower(), record.levelname[:3].upper()),
            record.name,
            record.getMessage(),
        ]

        scholar_id = fields.pop("scholar_id", None)
        status_code = fields.pop("status_code", None)
        if scholar_id:
            parts.append(f"scholar={scholar_id}")
        if status_code is not None:
            parts.append(str(status_code))
        for key in sorted(fields):
            parts.append(f"{_CONSOLE_SHORT_KEYS.get(key, key)}={fields[key]}")

        return " | ".join(str(part) for part in parts if part)


def _normalize_level(level: str) -> int:
    normalized = level.strip().upper()
    mapping = logging.getLevelNamesMapping()
    if normalized not in mapping:
        return logging.INFO
    return mapping[normalized]


def _format_timestamp(created_ts: float) -> str:
    dt = datetime.fromtimestamp(created_ts, tz=timezone.utc)
    return dt.strftime("%Y-%m-%d %H:%M:%SZ")
