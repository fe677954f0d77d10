from __future__ import annotations

import logging
from dataclasses import dataclass, field

from citeanalyzer.logging_utils import structured_log
from citeanalyzer.services.scholar.errors import FatalExtractionError
from citeanalyzer.services.scholar.parser import parse_profile_page
from citeanalyzer.services.scholar.rate_limit import RateGovernor
from citeanalyzer.services.scholar.retry import RetryController
from citeanalyzer.services.scholar.source import (
    DEFAULT_PAGE_SIZE,
    FetchResult,
    RequestExecutor,
    build_profile_url,
)
from citeanalyzer.services.scholar.types import PaginationState, ParsedProfilePage, Publication

logger = logging.getLogger(__name__)


@dataclass
class PagedLoopState:
    cstart: int = 0
    state: PaginationState = PaginationState.FETCHING_PAGE
    pages_fetched: int = 0
    publications: list[Publication] = field(default_factory=list)
    first_page: ParsedProfilePage | None = None
    last_row_count: int = 0
    last_fetch: FetchResult | None = None


@dataclass(frozen=True)
class PaginationResult:
    first_page: ParsedProfilePage
    publications: list[Publication]
    pages_fetched: int
    state: PaginationState


class PaginationDriver:
    """Walks the result pages of one profile.

    States move FETCHING_PAGE -> PARSING_ROWS -> FETCHING_PAGE ... until a
    short page, an empty page or the publication limit ends the run in DONE.
    An exhausted retry budget moves to ABORTED and the error propagates.
    """

    def __init__(
        self,
        *,
        executor: RequestExecutor,
        governor: RateGovernor,
        retry: RetryController,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._executor = executor
        self._governor = governor
        self._retry = retry
        self._page_size = page_size

    def _fetch_page(self, *, scholar_id: str, cstart: int) -> FetchResult:
        url = build_profile_url(scholar_id=scholar_id, cstart=cstart, pagesize=self._page_size)
        # Pacing applies once per page; retries of the same page only wait the failure delay.
        self._governor.before_request()
        return self._retry.execute(lambda: self._executor.fetch(url))

    def _fetching_page(self, loop: PagedLoopState, *, scholar_id: str, first_page: FetchResult | None) -> None:
        try:
            if loop.pages_fetched == 0 and first_page is not None:
                loop.last_fetch = first_page
            else:
                loop.last_fetch = self._fetch_page(scholar_id=scholar_id, cstart=loop.cstart)
        except FatalExtractionError:
            loop.state = PaginationState.ABORTED
            structured_log(
                logger,
                "error",
                "scholar_pagination.aborted",
                scholar_id=scholar_id,
                cstart=loop.cstart,
                pages_fetched=loop.pages_fetched,
            )
            raise
        loop.pages_fetched += 1
        loop.state = PaginationState.PARSING_ROWS

    def _parsing_rows(self, loop: PagedLoopState, *, max_publications: int) -> None:
        assert loop.last_fetch is not None
        is_first_page = loop.first_page is None
        parsed = parse_profile_page(
            loop.last_fetch.body,
            include_profile_fields=is_first_page,
            cstart=loop.cstart,
        )
        if is_first_page:
            loop.first_page = parsed

        remaining = max_publications - len(loop.publications)
        loop.publications.extend(parsed.publications[: max(remaining, 0)])
        loop.last_row_count = parsed.row_count

        structured_log(
            logger,
            "info",
            "scholar_pagination.page_parsed",
            cstart=loop.cstart,
            row_count=parsed.row_count,
            publication_count=len(parsed.publications),
            accumulated=len(loop.publications),
        )

        if (
            parsed.row_count > 0
            and len(loop.publications) < max_publications
            and parsed.row_count == self._page_size
        ):
            loop.cstart += self._page_size
            loop.state = PaginationState.FETCHING_PAGE
            return
        loop.state = PaginationState.DONE

    def run(
        self,
        *,
        scholar_id: str,
        max_publications: int,
        first_page: FetchResult | None = None,
    ) -> PaginationResult:
        loop = PagedLoopState()
        while loop.state not in {PaginationState.DONE, PaginationState.ABORTED}:
            if loop.state == PaginationState.FETCHING_PAGE:
                self._fetching_page(loop, scholar_id=scholar_id, first_page=first_page)
            elif loop.state == PaginationState.PARSING_ROWS:
                self._parsing_rows(loop, max_publications=max_publications)

        assert loop.first_page is not None
        structured_log(
            logger,
            "info",
            "scholar_pagination.completed",
            scholar_id=scholar_id,
            pages_fetched=loop.pages_fetched,
            publication_count=len(loop.publications),
        )
        return PaginationResult(
            first_page=loop.first_page,
            publications=loop.publications,
            pages_fetched=loop.pages_fetched,
            state=loop.state,
        )
