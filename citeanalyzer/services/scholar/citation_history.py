from __future__ import annotations

import logging
import time
from collections.abc import Callable
from html.parser import HTMLParser
from typing import Any

import httpx

from citeanalyzer.logging_utils import structured_log
from citeanalyzer.services.scholar.errors import InvalidArgumentError
from citeanalyzer.services.scholar.parser_constants import (
    HISTORY_BAR_CLASS,
    HISTORY_COUNT_CLASS,
    HISTORY_YEAR_CLASS,
    VOID_ELEMENTS,
    Z_INDEX_RE,
)
from citeanalyzer.services.scholar.parser_utils import attr_class, attr_value, normalize_space
from citeanalyzer.services.scholar.rate_limit import RateGovernor
from citeanalyzer.services.scholar.retry import RetryController
from citeanalyzer.services.scholar.source import RequestExecutor, build_citation_url
from citeanalyzer.services.scholar.types import CitationHistoryPoint

logger = logging.getLogger(__name__)


class CitationChartParser(HTMLParser):
    """Reads the per-year citation bars of a publication detail page.

    Year labels come in chronological order. Each bar carries a z-index
    counting back from the most recent year, so bar k belongs to the k-th
    label from the end. Years without a bar have no citations.
    """

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.year_texts: list[str] = []
        self.bars: list[dict[str, Any]] = []

        self._year_depth = 0
        self._year_parts: list[str] = []
        self._bar_depth = 0
        self._count_depth = 0

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag in VOID_ELEMENTS:
            return
        if self._year_depth > 0:
            self._year_depth += 1
        if self._bar_depth > 0:
            self._bar_depth += 1
        if self._count_depth > 0:
            self._count_depth += 1

        classes = attr_class(attrs)
        if HISTORY_YEAR_CLASS in classes:
            self._year_depth = 1
            self._year_parts = []
        elif HISTORY_BAR_CLASS in classes:
            self._bar_depth = 1
            match = Z_INDEX_RE.search(attr_value(attrs, "style") or "")
            self.bars.append({"z_index": int(match.group(1)) if match else None, "parts": []})
        elif HISTORY_COUNT_CLASS in classes and self._bar_depth > 0:
            self._count_depth = 1

    def handle_data(self, data: str) -> None:
        if self._year_depth > 0:
            self._year_parts.append(data)
        if self._count_depth > 0 and self.bars:
            self.bars[-1]["parts"].append(data)

    def handle_endtag(self, tag: str) -> None:
        if tag in VOID_ELEMENTS:
            return
        if self._year_depth > 0:
            self._year_depth -= 1
            if self._year_depth == 0:
                self.year_texts.append(normalize_space("".join(self._year_parts)))
        if self._bar_depth > 0:
            self._bar_depth -= 1
        if self._count_depth > 0:
            self._count_depth -= 1


def parse_citation_history(html: str) -> list[CitationHistoryPoint]:
    parser = CitationChartParser()
    parser.feed(html)
    parser.close()

    years: list[int] = []
    for text in parser.year_texts:
        if text.isdecimal():
            years.append(int(text))
        else:
            structured_log(logger, "warning", "scholar_history.year_unparseable", text=text)
    if not years:
        return []

    counts: dict[int, int] = {}
    for bar in parser.bars:
        z_index = bar["z_index"]
        count_text = "".join(ch for ch in "".join(bar["parts"]) if ch.isdigit())
        if z_index is None or not 1 <= z_index <= len(years) or not count_text:
            structured_log(logger, "warning", "scholar_history.bar_unparseable", z_index=z_index)
            continue
        counts[years[-z_index]] = int(count_text)

    first_year, last_year = min(years), max(years)
    return [
        CitationHistoryPoint(year=year, citations=counts.get(year, 0))
        for year in range(first_year, last_year + 1)
    ]


def fetch_citation_history(
    pub_id: str,
    rate_limit_seconds: float = 5,
    retry_attempts: int = 3,
    user_agent: str | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[CitationHistoryPoint]:
    """Fetch the yearly citation counts of one publication.

    `pub_id` is the `Publication.pub_id` token of an extracted profile.
    Returns an empty list when the page carries no citation chart.
    """
    if not isinstance(pub_id, str) or not pub_id.strip():
        raise InvalidArgumentError("pub_id must be a non-empty string")
    if isinstance(rate_limit_seconds, bool) or not isinstance(rate_limit_seconds, (int, float)) or rate_limit_seconds < 0:
        raise InvalidArgumentError("rate_limit_seconds must be a non-negative number")
    if isinstance(retry_attempts, bool) or not isinstance(retry_attempts, int) or retry_attempts <= 0:
        raise InvalidArgumentError("retry_attempts must be a positive integer")

    governor = RateGovernor(base_delay_seconds=rate_limit_seconds, sleep=sleep)
    retry = RetryController(
        max_attempts=retry_attempts,
        failure_delay_seconds=governor.failure_delay_seconds,
        sleep=sleep,
    )
    url = build_citation_url(pub_id=pub_id.strip())

    with RequestExecutor(user_agent=user_agent, transport=transport) as executor:
        result = retry.execute(lambda: executor.fetch(url))

    points = parse_citation_history(result.body)
    structured_log(
        logger,
        "info",
        "scholar_history.fetched",
        pub_id=pub_id,
        year_count=len(points),
        citations=sum(point.citations for point in points),
    )
    return points
