from __future__ import annotations

from collections.abc import Callable, Sequence

import httpx

DEFAULT_METRICS = ("189291", "51326", "129", "67", "380", "214")


def build_publication_row(
    title: str | None = "Paper A",
    *,
    authors: str = "A Author, B Author",
    journal: str = "Journal of Things 12 (3), 45-67",
    year: str = "2020",
    citations: str = "100",
    pub_id: str | None = "abcDEF123456:u5HHmVD_uO8C",
) -> str:
    href = "/citations?view_op=view_citation&amp;hl=en&amp;user=abcDEF123456"
    if pub_id:
        href += f"&amp;citation_for_view={pub_id}"
    title_html = f'<a href="{href}" class="gsc_a_at">{title}</a>' if title is not None else ""
    return (
        '<tr class="gsc_a_tr">'
        f'<td class="gsc_a_t">{title_html}'
        f'<div class="gs_gray">{authors}</div>'
        f'<div class="gs_gray">{journal}<span class="gs_oph">, {year}</span></div></td>'
        f'<td class="gsc_a_c"><a href="https://scholar.google.com/scholar?cites=1" class="gsc_a_ac gs_ibl">{citations}</a></td>'
        f'<td class="gsc_a_y"><span class="gsc_a_h gsc_a_hc gs_ibl">{year}</span></td>'
        "</tr>"
    )


def build_profile_page(
    rows: Sequence[str] = (),
    *,
    name: str | None = "Test Scholar",
    affiliation: str | None = "University of Testing",
    interests: Sequence[str] = ("machine learning", "neural networks"),
    homepage: str | None = "https://example.edu/~test/",
    metrics: Sequence[str] = DEFAULT_METRICS,
) -> str:
    name_html = f'<div id="gsc_prf_in">{name}</div>' if name is not None else ""
    affiliation_html = f'<div class="gsc_prf_il">{affiliation}</div>' if affiliation is not None else ""
    homepage_html = (
        f'<div class="gsc_prf_il" id="gsc_prf_ivh">Verified email at example.edu - '
        f'<a href="{homepage}" rel="nofollow" class="gsc_prf_ila">Homepage</a></div>'
        if homepage is not None
        else ""
    )
    interests_html = "".join(
        f'<a href="/citations?view_op=search_authors" class="gsc_prf_inta gs_ibl">{term}</a>' for term in interests
    )
    metric_cells = [f'<td class="gsc_rsb_std">{value}</td>' for value in metrics]
    metric_rows = "".join(
        f'<tr><td class="gsc_rsb_sc1">Metric</td>{"".join(metric_cells[index:index + 2])}</tr>'
        for index in range(0, len(metric_cells), 2)
    )
    return (
        "<html><head><meta charset='utf-8'><title>Profile</title></head><body>"
        '<div id="gsc_prf_w">'
        '<img id="gsc_prf_pup-img" src="/citations/images/avatar_scholar_128.png">'
        f"{name_html}{affiliation_html}{homepage_html}"
        f'<div class="gsc_prf_il" id="gsc_prf_int">{interests_html}</div>'
        "</div>"
        f'<table id="gsc_rsb_st"><tbody>{metric_rows}</tbody></table>'
        f'<table id="gsc_a_t"><tbody id="gsc_a_b">{"".join(rows)}</tbody></table>'
        "</body></html>"
    )


def numbered_rows(count: int, *, start: int = 0, citations: int = 10) -> list[str]:
    return [
        build_publication_row(
            f"Paper {start + offset}",
            citations=str(citations),
            pub_id=f"abcDEF123456:p{start + offset}",
        )
        for offset in range(count)
    ]


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class ScriptedTransport(httpx.MockTransport):
    """Serves queued responses in order and records every request."""

    def __init__(self, responses: Sequence[httpx.Response | Exception | Callable[[httpx.Request], httpx.Response]]):
        self.requests: list[httpx.Request] = []
        self._responses = list(responses)
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"unexpected request: {request.url}")
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(request)
        return item


def html_response(body: str, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, text=body, headers={"Content-Type": "text/html; charset=utf-8"})
