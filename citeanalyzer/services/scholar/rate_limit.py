from __future__ import annotations

import logging
import time
from collections.abc import Callable

from citeanalyzer.logging_utils import structured_log

logger = logging.getLogger(__name__)


def _normalize_interval_seconds(value: float) -> float:
    return max(float(value), 0.0)


class RateGovernor:
    """Spaces the outbound requests of one extraction run.

    The first request goes out at once; every later one waits the base
    delay. State lives on the instance, so parallel runs do not share it.
    """

    def __init__(self, *, base_delay_seconds: float, sleep: Callable[[float], None] = time.sleep) -> None:
        self.base_delay_seconds = _normalize_interval_seconds(base_delay_seconds)
        self._sleep = sleep
        self._requests_started = 0

    @property
    def failure_delay_seconds(self) -> float:
        return 2 * self.base_delay_seconds

    @property
    def requests_started(self) -> int:
        return self._requests_started

    def before_request(self) -> None:
        if self._requests_started > 0 and self.base_delay_seconds > 0:
            structured_log(
                logger,
                "debug",
                "scholar_rate_limit.waiting",
                wait_seconds=self.base_delay_seconds,
                request_number=self._requests_started + 1,
            )
            self._sleep(self.base_delay_seconds)
        self._requests_started += 1
