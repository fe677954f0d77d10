from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from citeanalyzer.services.scholar.source import FetchResult


class CiteAnalyzerError(Exception):
    """Base class for errors surfaced to callers."""


class InvalidArgumentError(CiteAnalyzerError, ValueError):
    """Caller input is malformed; raised before any network or cache activity."""


class RetryableFetchError(CiteAnalyzerError):
    """A single fetch failed in a way the retry controller may absorb."""


class RetryableTransportError(RetryableFetchError):
    def __init__(self, *, requested_url: str, reason: str) -> None:
        super().__init__(f"Request failed: {reason}")
        self.requested_url = requested_url
        self.reason = reason


class RetryableHttpStatusError(RetryableFetchError):
    def __init__(self, fetch_result: FetchResult) -> None:
        super().__init__(f"HTTP {fetch_result.status_code} error: {fetch_result.requested_url}")
        self.fetch_result = fetch_result


class FatalExtractionError(CiteAnalyzerError):
    """Retry budget exhausted; the whole extraction is aborted."""

    def __init__(self, message: str, *, attempts: int, last_error: Exception | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


@dataclass(frozen=True)
class FieldParseWarning:
    code: str
    message: str
    row_index: int | None = None
