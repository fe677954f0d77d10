from __future__ import annotations

import logging
import time
from collections.abc import Callable

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from citeanalyzer.logging_utils import structured_log
from citeanalyzer.services.scholar.errors import (
    FatalExtractionError,
    InvalidArgumentError,
    RetryableFetchError,
    RetryableHttpStatusError,
)
from citeanalyzer.services.scholar.source import FetchResult

logger = logging.getLogger(__name__)


def _log_retry_scheduled(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    error = outcome.exception() if outcome is not None else None
    structured_log(
        logger,
        "warning",
        "scholar_retry.scheduled",
        attempt_number=retry_state.attempt_number,
        sleep_seconds=retry_state.upcoming_sleep,
        error=str(error) if error is not None else None,
    )


class RetryController:
    """Bounded retry around a single fetch.

    Every failed attempt except the last waits the same fixed delay. A 2xx
    result returns at once; any exception that is not a RetryableFetchError
    propagates unchanged.
    """

    def __init__(
        self,
        *,
        max_attempts: int,
        failure_delay_seconds: float,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise InvalidArgumentError("max_attempts must be a positive integer")
        self.max_attempts = int(max_attempts)
        self.failure_delay_seconds = max(float(failure_delay_seconds), 0.0)
        self._sleep = sleep

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.failure_delay_seconds),
            retry=retry_if_exception_type(RetryableFetchError),
            sleep=self._sleep,
            before_sleep=_log_retry_scheduled,
            reraise=False,
        )

    def execute(self, fetch_fn: Callable[[], FetchResult]) -> FetchResult:
        attempts = 0
        try:
            for attempt in self._retrying():
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    result = fetch_fn()
                    if not result.ok:
                        raise RetryableHttpStatusError(result)
                    return result
        except RetryError as exc:
            last_error = exc.last_attempt.exception()
            structured_log(
                logger,
                "error",
                "scholar_retry.exhausted",
                attempts=attempts,
                error=str(last_error) if last_error is not None else None,
            )
            raise FatalExtractionError(
                f"Failed to retrieve data after {attempts} attempts",
                attempts=attempts,
                last_error=last_error if isinstance(last_error, Exception) else None,
            ) from last_error
        raise RuntimeError("Retry loop produced no result.")
