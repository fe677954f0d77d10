from __future__ import annotations

import pytest

from citeanalyzer.services.scholar.citation_history import fetch_citation_history, parse_citation_history
from citeanalyzer.services.scholar.errors import FatalExtractionError, InvalidArgumentError
from citeanalyzer.services.scholar.types import CitationHistoryPoint
from tests.unit.helpers import RecordingSleep, ScriptedTransport, html_response

CHART_HTML = """
<html><body>
<div id="gsc_oci_title">Paper A</div>
<div id="gsc_oci_graph_bars" style="width:200px">
  <span class="gsc_oci_g_t" style="left:8px">2018</span>
  <span class="gsc_oci_g_t" style="left:40px">2019</span>
  <span class="gsc_oci_g_t" style="left:72px">2020</span>
  <span class="gsc_oci_g_t" style="left:104px">2021</span>
  <a href="/scholar?oi=bibs&amp;cites=1&amp;as_ylo=2018" class="gsc_oci_g_a" style="left:8px;height:8px;z-index:4">
    <span class="gsc_oci_g_al">12</span>
  </a>
  <a href="/scholar?oi=bibs&amp;cites=1&amp;as_ylo=2020" class="gsc_oci_g_a" style="left:72px;height:20px;z-index:2">
    <span class="gsc_oci_g_al">30</span>
  </a>
  <a href="/scholar?oi=bibs&amp;cites=1&amp;as_ylo=2021" class="gsc_oci_g_a" style="left:104px;height:30px;z-index:1">
    <span class="gsc_oci_g_al">1,045</span>
  </a>
</div>
</body></html>
"""


def test_parse_citation_history_maps_bars_to_years_and_fills_gaps() -> None:
    points = parse_citation_history(CHART_HTML)

    assert points == [
        CitationHistoryPoint(year=2018, citations=12),
        CitationHistoryPoint(year=2019, citations=0),
        CitationHistoryPoint(year=2020, citations=30),
        CitationHistoryPoint(year=2021, citations=1045),
    ]


def test_parse_citation_history_without_chart_is_empty() -> None:
    assert parse_citation_history("<html><body><div id='gsc_oci_title'>Paper</div></body></html>") == []


def test_parse_citation_history_ignores_bars_outside_the_year_axis() -> None:
    html = (
        '<span class="gsc_oci_g_t">2020</span>'
        '<a class="gsc_oci_g_a" style="z-index:5"><span class="gsc_oci_g_al">9</span></a>'
        '<a class="gsc_oci_g_a" style="z-index:1"><span class="gsc_oci_g_al">3</span></a>'
    )

    assert parse_citation_history(html) == [CitationHistoryPoint(year=2020, citations=3)]


def test_fetch_citation_history_requests_the_publication_page(recording_sleep: RecordingSleep) -> None:
    transport = ScriptedTransport([html_response(CHART_HTML)])

    points = fetch_citation_history(
        "abcDEF123456:u5HHmVD_uO8C",
        transport=transport,
        sleep=recording_sleep,
    )

    assert [point.citations for point in points] == [12, 0, 30, 1045]
    url = str(transport.requests[0].url)
    assert "view_op=view_citation" in url
    assert "citation_for_view=abcDEF123456%3Au5HHmVD_uO8C" in url


def test_fetch_citation_history_retries_then_fails(recording_sleep: RecordingSleep) -> None:
    transport = ScriptedTransport([html_response("blocked", status_code=429) for _ in range(2)])

    with pytest.raises(FatalExtractionError):
        fetch_citation_history(
            "abcDEF123456:u5HHmVD_uO8C",
            rate_limit_seconds=1,
            retry_attempts=2,
            transport=transport,
            sleep=recording_sleep,
        )

    assert len(transport.requests) == 2
    assert recording_sleep.calls == [2.0]


@pytest.mark.parametrize("pub_id", ["", "   "])
def test_fetch_citation_history_rejects_empty_pub_id(pub_id: str) -> None:
    with pytest.raises(InvalidArgumentError):
        fetch_citation_history(pub_id, transport=ScriptedTransport([]))
