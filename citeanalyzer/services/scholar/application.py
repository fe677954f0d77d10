from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor

import httpx

from citeanalyzer.logging_context import scholar_log_context
from citeanalyzer.logging_utils import structured_log
from citeanalyzer.services.scholar.cache import ProfileCache
from citeanalyzer.services.scholar.errors import InvalidArgumentError
from citeanalyzer.services.scholar.pagination import PaginationDriver
from citeanalyzer.services.scholar.rate_limit import RateGovernor
from citeanalyzer.services.scholar.retry import RetryController
from citeanalyzer.services.scholar.source import RequestExecutor
from citeanalyzer.services.scholar.types import (
    METRIC_FIELDS,
    UNKNOWN_AFFILIATION,
    UNKNOWN_HOMEPAGE,
    UNKNOWN_INTERESTS,
    UNKNOWN_NAME,
    ParsedProfilePage,
    Publication,
    ResearcherProfile,
)
from citeanalyzer.settings import settings

logger = logging.getLogger(__name__)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_extraction_args(
    *,
    scholar_id: object,
    max_publications: object,
    rate_limit_seconds: object,
    retry_attempts: object,
) -> None:
    if not isinstance(scholar_id, str) or not scholar_id.strip():
        raise InvalidArgumentError("scholar_id must be a non-empty string")
    if not _is_int(max_publications) or max_publications <= 0:  # type: ignore[operator]
        raise InvalidArgumentError("max_publications must be a positive integer")
    if isinstance(rate_limit_seconds, bool) or not isinstance(rate_limit_seconds, (int, float)):
        raise InvalidArgumentError("rate_limit_seconds must be a number")
    if rate_limit_seconds < 0:
        raise InvalidArgumentError("rate_limit_seconds must not be negative")
    if not _is_int(retry_attempts) or retry_attempts <= 0:  # type: ignore[operator]
        raise InvalidArgumentError("retry_attempts must be a positive integer")


def assemble(
    scholar_id: str,
    fields: ParsedProfilePage,
    publications: Sequence[Publication],
    cache: ProfileCache,
) -> ResearcherProfile:
    metrics = {key: getattr(fields, key) or 0 for key in METRIC_FIELDS}
    profile = ResearcherProfile(
        scholar_id=scholar_id,
        name=fields.name or UNKNOWN_NAME,
        affiliation=fields.affiliation or UNKNOWN_AFFILIATION,
        interests=fields.interests or UNKNOWN_INTERESTS,
        homepage=fields.homepage or UNKNOWN_HOMEPAGE,
        publications=tuple(publications),
        **metrics,
    )
    cache.put(profile)
    return profile


def extract(
    scholar_id: str,
    max_publications: int = 100,
    rate_limit_seconds: float = 5,
    retry_attempts: int = 3,
    user_agent: str | None = None,
    cache_dir: str | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> ResearcherProfile:
    """Extract one researcher profile, reusing the cached copy when present.

    The cache is keyed by scholar id alone: a cached profile is returned as
    is, even if it was built with a different `max_publications`. Use
    `ProfileCache.clear` to force a fresh extraction.

    Raises InvalidArgumentError before any cache or network activity when
    the arguments are malformed, and FatalExtractionError when a page could
    not be fetched within `retry_attempts`. Nothing is cached on failure.
    """
    validate_extraction_args(
        scholar_id=scholar_id,
        max_publications=max_publications,
        rate_limit_seconds=rate_limit_seconds,
        retry_attempts=retry_attempts,
    )
    cache = ProfileCache(cache_dir)

    with scholar_log_context(scholar_id):
        cached = cache.get(scholar_id)
        if cached is not None:
            return cached

        structured_log(
            logger,
            "info",
            "scholar_extraction.started",
            max_publications=max_publications,
            rate_limit_seconds=rate_limit_seconds,
            retry_attempts=retry_attempts,
        )
        governor = RateGovernor(base_delay_seconds=rate_limit_seconds, sleep=sleep)
        retry = RetryController(
            max_attempts=retry_attempts,
            failure_delay_seconds=governor.failure_delay_seconds,
            sleep=sleep,
        )
        with RequestExecutor(user_agent=user_agent, transport=transport) as executor:
            driver = PaginationDriver(executor=executor, governor=governor, retry=retry)
            result = driver.run(scholar_id=scholar_id, max_publications=max_publications)

        profile = assemble(scholar_id, result.first_page, result.publications, cache)
        structured_log(
            logger,
            "info",
            "scholar_extraction.completed",
            pages_fetched=result.pages_fetched,
            publication_count=len(profile.publications),
            requests=governor.requests_started,
        )
        return profile


def extract_many(
    scholar_ids: Sequence[str],
    max_workers: int | None = None,
    **extract_kwargs: object,
) -> list[ResearcherProfile]:
    """Run independent extractions in a thread pool, preserving input order.

    Each worker owns its own rate governor and HTTP client. When some
    extractions fail, all workers still finish and the first failure in
    input order is raised.
    """
    if isinstance(scholar_ids, str) or not scholar_ids:
        raise InvalidArgumentError("scholar_ids must be a non-empty sequence of identifiers")
    workers = settings.extraction_max_workers if max_workers is None else max_workers
    if not _is_int(workers) or workers <= 0:
        raise InvalidArgumentError("max_workers must be a positive integer")

    with ThreadPoolExecutor(max_workers=min(workers, len(scholar_ids))) as pool:
        futures = [pool.submit(extract, scholar_id, **extract_kwargs) for scholar_id in scholar_ids]

    profiles: list[ResearcherProfile] = []
    first_error: BaseException | None = None
    for scholar_id, future in zip(scholar_ids, futures):
        error = future.exception()
        if error is None:
            profiles.append(future.result())
            continue
        structured_log(
            logger,
            "error",
            "scholar_extraction.batch_item_failed",
            scholar_id=scholar_id,
            error=str(error),
        )
        if first_error is None:
            first_error = error
    if first_error is not None:
        raise first_error
    return profiles
