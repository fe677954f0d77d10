from __future__ import annotations

import pytest

from citeanalyzer.services.scholar.errors import FatalExtractionError
from citeanalyzer.services.scholar.pagination import PaginationDriver
from citeanalyzer.services.scholar.rate_limit import RateGovernor
from citeanalyzer.services.scholar.retry import RetryController
from citeanalyzer.services.scholar.source import FetchResult, RequestExecutor
from citeanalyzer.services.scholar.types import PaginationState
from tests.unit.helpers import (
    RecordingSleep,
    ScriptedTransport,
    build_profile_page,
    build_publication_row,
    html_response,
    numbered_rows,
)


def _driver(transport: ScriptedTransport, sleep: RecordingSleep, *, retry_attempts: int = 3) -> PaginationDriver:
    governor = RateGovernor(base_delay_seconds=1.0, sleep=sleep)
    retry = RetryController(
        max_attempts=retry_attempts,
        failure_delay_seconds=governor.failure_delay_seconds,
        sleep=sleep,
    )
    executor = RequestExecutor(transport=transport)
    return PaginationDriver(executor=executor, governor=governor, retry=retry)


def test_short_first_page_ends_pagination(recording_sleep: RecordingSleep) -> None:
    transport = ScriptedTransport([html_response(build_profile_page(numbered_rows(30)))])

    result = _driver(transport, recording_sleep).run(scholar_id="abcDEF123456", max_publications=100)

    assert result.state == PaginationState.DONE
    assert result.pages_fetched == 1
    assert len(result.publications) == 30
    assert result.first_page.name == "Test Scholar"
    assert len(transport.requests) == 1
    assert recording_sleep.calls == []


def test_full_pages_continue_with_increasing_offset(recording_sleep: RecordingSleep) -> None:
    transport = ScriptedTransport(
        [
            html_response(build_profile_page(numbered_rows(100))),
            html_response(build_profile_page(numbered_rows(30, start=100))),
        ]
    )

    result = _driver(transport, recording_sleep).run(scholar_id="abcDEF123456", max_publications=500)

    assert result.state == PaginationState.DONE
    assert result.pages_fetched == 2
    assert len(result.publications) == 130
    assert result.publications[0].title == "Paper 0"
    assert result.publications[-1].title == "Paper 129"
    assert "cstart=" not in str(transport.requests[0].url)
    assert "cstart=100" in str(transport.requests[1].url)
    assert recording_sleep.calls == [1.0]


def test_publication_limit_stops_pagination_mid_page(recording_sleep: RecordingSleep) -> None:
    transport = ScriptedTransport(
        [
            html_response(build_profile_page(numbered_rows(100))),
            html_response(build_profile_page(numbered_rows(100, start=100))),
        ]
    )

    result = _driver(transport, recording_sleep).run(scholar_id="abcDEF123456", max_publications=150)

    assert len(result.publications) == 150
    assert result.publications[-1].title == "Paper 149"
    assert result.pages_fetched == 2
    assert len(transport.requests) == 2


def test_limit_reached_on_first_page_makes_single_request(recording_sleep: RecordingSleep) -> None:
    transport = ScriptedTransport([html_response(build_profile_page(numbered_rows(100)))])

    result = _driver(transport, recording_sleep).run(scholar_id="abcDEF123456", max_publications=100)

    assert len(result.publications) == 100
    assert len(transport.requests) == 1


def test_empty_page_finishes_with_no_publications(recording_sleep: RecordingSleep) -> None:
    transport = ScriptedTransport([html_response(build_profile_page([]))])

    result = _driver(transport, recording_sleep).run(scholar_id="abcDEF123456", max_publications=100)

    assert result.state == PaginationState.DONE
    assert result.publications == []
    assert result.first_page.h_index == 129


def test_dropped_rows_still_count_towards_a_full_page(recording_sleep: RecordingSleep) -> None:
    first_page_rows = [build_publication_row(None)] + numbered_rows(99)
    transport = ScriptedTransport(
        [
            html_response(build_profile_page(first_page_rows)),
            html_response(build_profile_page(numbered_rows(5, start=99))),
        ]
    )

    result = _driver(transport, recording_sleep).run(scholar_id="abcDEF123456", max_publications=500)

    assert len(result.publications) == 104
    assert len(transport.requests) == 2


def test_later_page_failure_aborts_the_run(recording_sleep: RecordingSleep) -> None:
    transport = ScriptedTransport(
        [
            html_response(build_profile_page(numbered_rows(100))),
            html_response("blocked", status_code=429),
            html_response("blocked", status_code=429),
        ]
    )

    with pytest.raises(FatalExtractionError):
        _driver(transport, recording_sleep, retry_attempts=2).run(scholar_id="abcDEF123456", max_publications=500)

    assert len(transport.requests) == 3
    # one page wait for the second page, then the doubled failure delay between its attempts
    assert recording_sleep.calls == [1.0, 2.0]


def test_first_page_retry_waits_only_the_failure_delay(recording_sleep: RecordingSleep) -> None:
    transport = ScriptedTransport(
        [
            html_response("Service Unavailable", status_code=503),
            html_response(build_profile_page(numbered_rows(2))),
        ]
    )

    result = _driver(transport, recording_sleep).run(scholar_id="abcDEF123456", max_publications=100)

    assert len(result.publications) == 2
    assert recording_sleep.calls == [2.0]


def test_later_page_retry_composes_page_wait_and_failure_delay(recording_sleep: RecordingSleep) -> None:
    transport = ScriptedTransport(
        [
            html_response(build_profile_page(numbered_rows(100))),
            html_response("Service Unavailable", status_code=503),
            html_response(build_profile_page(numbered_rows(3, start=100))),
        ]
    )

    result = _driver(transport, recording_sleep).run(scholar_id="abcDEF123456", max_publications=500)

    assert len(result.publications) == 103
    assert len(transport.requests) == 3
    assert recording_sleep.calls == [1.0, 2.0]


def test_supplied_first_page_is_not_fetched_again(recording_sleep: RecordingSleep) -> None:
    transport = ScriptedTransport([])
    first_page = FetchResult(
        requested_url="https://scholar.google.com/citations?hl=en&user=abcDEF123456&pagesize=100",
        status_code=200,
        final_url="https://scholar.google.com/citations?hl=en&user=abcDEF123456&pagesize=100",
        body=build_profile_page(numbered_rows(12)),
    )

    result = _driver(transport, recording_sleep).run(
        scholar_id="abcDEF123456",
        max_publications=100,
        first_page=first_page,
    )

    assert len(result.publications) == 12
    assert result.pages_fetched == 1
    assert transport.requests == []
