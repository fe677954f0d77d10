from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from citeanalyzer.services.scholar.application import assemble, extract, extract_many
from citeanalyzer.services.scholar.cache import ProfileCache
from citeanalyzer.services.scholar.errors import FatalExtractionError, InvalidArgumentError
from citeanalyzer.services.scholar.parser import parse_profile_page
from citeanalyzer.services.scholar.types import ResearcherProfile
from tests.unit.helpers import (
    RecordingSleep,
    ScriptedTransport,
    build_profile_page,
    build_publication_row,
    html_response,
    numbered_rows,
)


def test_extract_builds_profile_from_single_page(cache_dir: Path, recording_sleep: RecordingSleep) -> None:
    transport = ScriptedTransport(
        [html_response(build_profile_page([build_publication_row("Paper A", year="2020", citations="100")]))]
    )

    profile = extract(
        "abcDEF123456",
        rate_limit_seconds=5,
        cache_dir=str(cache_dir),
        transport=transport,
        sleep=recording_sleep,
    )

    assert profile.scholar_id == "abcDEF123456"
    assert profile.name == "Test Scholar"
    assert profile.h_index == 129
    assert profile.citations_total == 189291
    assert len(profile.publications) == 1
    assert profile.publications[0].title == "Paper A"
    assert profile.publications[0].year == 2020
    assert profile.publications[0].citedby == 100
    assert (cache_dir / "scholar_data_abcDEF123456.json").exists()
    assert recording_sleep.calls == []


def test_extract_is_idempotent_and_second_call_makes_no_requests(
    cache_dir: Path,
    recording_sleep: RecordingSleep,
) -> None:
    transport = ScriptedTransport([html_response(build_profile_page(numbered_rows(3)))])

    first = extract("abcDEF123456", cache_dir=str(cache_dir), transport=transport, sleep=recording_sleep)
    second = extract("abcDEF123456", cache_dir=str(cache_dir), transport=transport, sleep=recording_sleep)

    assert first == second
    assert len(transport.requests) == 1


def test_cached_profile_is_returned_regardless_of_publication_limit(
    cache_dir: Path,
    recording_sleep: RecordingSleep,
) -> None:
    transport = ScriptedTransport([html_response(build_profile_page(numbered_rows(10)))])

    extract("abcDEF123456", max_publications=10, cache_dir=str(cache_dir), transport=transport, sleep=recording_sleep)
    cached = extract("abcDEF123456", max_publications=2, cache_dir=str(cache_dir), transport=transport, sleep=recording_sleep)

    assert len(cached.publications) == 10


def test_extract_respects_publication_limit(cache_dir: Path, recording_sleep: RecordingSleep) -> None:
    transport = ScriptedTransport([html_response(build_profile_page(numbered_rows(40)))])

    profile = extract(
        "abcDEF123456",
        max_publications=25,
        cache_dir=str(cache_dir),
        transport=transport,
        sleep=recording_sleep,
    )

    assert len(profile.publications) == 25


def test_extract_substitutes_defaults_for_missing_fields(cache_dir: Path, recording_sleep: RecordingSleep) -> None:
    page = build_profile_page(
        [build_publication_row()],
        name=None,
        affiliation=None,
        interests=(),
        homepage=None,
        metrics=("1", "2"),
    )
    transport = ScriptedTransport([html_response(page)])

    profile = extract("abcDEF123456", cache_dir=str(cache_dir), transport=transport, sleep=recording_sleep)

    assert profile.name == "Unknown Scholar"
    assert profile.affiliation == "Unknown Institution"
    assert profile.interests == "Unknown Interests"
    assert profile.homepage == ""
    assert profile.citations_total == 0
    assert profile.i10_index_5y == 0
    assert len(profile.publications) == 1


def test_extract_exhausts_retries_and_caches_nothing(cache_dir: Path, recording_sleep: RecordingSleep) -> None:
    transport = ScriptedTransport([html_response("Service Unavailable", status_code=503) for _ in range(3)])

    with pytest.raises(FatalExtractionError) as exc_info:
        extract(
            "abcDEF123456",
            rate_limit_seconds=5,
            retry_attempts=3,
            cache_dir=str(cache_dir),
            transport=transport,
            sleep=recording_sleep,
        )

    assert exc_info.value.attempts == 3
    assert len(transport.requests) == 3
    assert not (cache_dir / "scholar_data_abcDEF123456.json").exists()
    # retries of the first page wait only the doubled failure delay
    assert recording_sleep.calls == [10.0, 10.0]


def test_extract_retry_of_first_page_skips_the_page_wait(cache_dir: Path, recording_sleep: RecordingSleep) -> None:
    transport = ScriptedTransport(
        [
            html_response("Service Unavailable", status_code=503),
            html_response(build_profile_page(numbered_rows(2))),
        ]
    )

    profile = extract(
        "abcDEF123456",
        rate_limit_seconds=5,
        cache_dir=str(cache_dir),
        transport=transport,
        sleep=recording_sleep,
    )

    assert len(profile.publications) == 2
    assert recording_sleep.calls == [10.0]


def test_extract_recovers_from_a_transient_transport_error(cache_dir: Path, recording_sleep: RecordingSleep) -> None:
    transport = ScriptedTransport(
        [
            httpx.ReadTimeout("timed out"),
            html_response(build_profile_page(numbered_rows(2))),
        ]
    )

    profile = extract("abcDEF123456", cache_dir=str(cache_dir), transport=transport, sleep=recording_sleep)

    assert len(profile.publications) == 2
    assert len(transport.requests) == 2


@pytest.mark.parametrize(
    "kwargs",
    [
        {"scholar_id": ""},
        {"scholar_id": "   "},
        {"scholar_id": None},
        {"max_publications": 0},
        {"max_publications": -5},
        {"max_publications": 2.5},
        {"rate_limit_seconds": -1},
        {"retry_attempts": 0},
        {"retry_attempts": True},
    ],
)
def test_extract_rejects_invalid_arguments_before_any_activity(
    kwargs: dict[str, object],
    cache_dir: Path,
    recording_sleep: RecordingSleep,
) -> None:
    transport = ScriptedTransport([])
    arguments: dict[str, object] = {"scholar_id": "abcDEF123456", **kwargs}

    with pytest.raises(InvalidArgumentError):
        extract(
            arguments.pop("scholar_id"),  # type: ignore[arg-type]
            cache_dir=str(cache_dir),
            transport=transport,
            sleep=recording_sleep,
            **arguments,  # type: ignore[arg-type]
        )

    assert transport.requests == []
    assert not cache_dir.exists()


def test_invalid_argument_error_is_a_value_error(cache_dir: Path) -> None:
    with pytest.raises(ValueError):
        extract("abcDEF123456", max_publications=0, cache_dir=str(cache_dir))


def test_assemble_writes_profile_to_cache(cache_dir: Path) -> None:
    parsed = parse_profile_page(build_profile_page([build_publication_row()]))
    cache = ProfileCache(cache_dir)

    profile = assemble("abcDEF123456", parsed, parsed.publications, cache)

    assert isinstance(profile, ResearcherProfile)
    assert isinstance(profile.publications, tuple)
    assert cache.get("abcDEF123456") == profile


def test_extract_many_keeps_input_order(cache_dir: Path, recording_sleep: RecordingSleep) -> None:
    for scholar_id, name in (("firstID", "First"), ("secondID", "Second")):
        transport = ScriptedTransport([html_response(build_profile_page(numbered_rows(1), name=name))])
        extract(scholar_id, cache_dir=str(cache_dir), transport=transport, sleep=recording_sleep)

    profiles = extract_many(["secondID", "firstID"], max_workers=2, cache_dir=str(cache_dir))

    assert [profile.name for profile in profiles] == ["Second", "First"]


def test_extract_many_raises_first_failure_in_input_order(cache_dir: Path) -> None:
    with pytest.raises(InvalidArgumentError, match="scholar_id"):
        extract_many(["   ", "secondID"], max_workers=2, cache_dir=str(cache_dir), max_publications=0)


def test_extract_many_rejects_empty_input() -> None:
    with pytest.raises(InvalidArgumentError):
        extract_many([])
