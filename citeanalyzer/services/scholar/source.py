from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urlencode

import httpx

from citeanalyzer.logging_utils import structured_log
from citeanalyzer.services.scholar.errors import RetryableTransportError
from citeanalyzer.services.scholar.parser_constants import BLOCKED_KEYWORDS, SCHOLAR_BASE_URL
from citeanalyzer.settings import settings

SCHOLAR_PROFILE_URL = f"{SCHOLAR_BASE_URL}/citations"
DEFAULT_PAGE_SIZE = 100

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResult:
    requested_url: str
    status_code: int
    final_url: str
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class RequestExecutor:
    """Performs single GET requests against the profile source.

    Non-2xx responses come back as a FetchResult for the retry controller to
    inspect. Transport failures raise RetryableTransportError.
    """

    def __init__(
        self,
        *,
        user_agent: str | None = None,
        timeout_seconds: float | None = None,
        accept_language: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        configured_user_agent = (user_agent or "").strip() or settings.scholar_http_user_agent
        configured_timeout = settings.scholar_http_timeout_seconds if timeout_seconds is None else timeout_seconds
        self._user_agent = configured_user_agent
        self._timeout_seconds = max(float(configured_timeout), 0.5)
        self._accept_language = (accept_language or "").strip() or settings.scholar_http_accept_language
        self._client = httpx.Client(
            timeout=self._timeout_seconds,
            follow_redirects=True,
            headers=self._request_headers(),
            transport=transport,
        )

    @property
    def user_agent(self) -> str:
        return self._user_agent

    def _request_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self._user_agent,
            "Accept": "text/html,application/xhtml+xml",
            "Accept-Language": self._accept_language,
        }

    def fetch(self, url: str) -> FetchResult:
        try:
            response = self._client.get(url)
        except httpx.TransportError as exc:
            structured_log(
                logger,
                "warning",
                "scholar_source.fetch_network_error",
                requested_url=url,
                error=str(exc) or type(exc).__name__,
            )
            raise RetryableTransportError(requested_url=url, reason=str(exc) or type(exc).__name__) from exc

        result = FetchResult(
            requested_url=url,
            status_code=response.status_code,
            final_url=str(response.url),
            body=response.text,
        )
        if result.ok:
            structured_log(
                logger,
                "debug",
                "scholar_source.fetch_succeeded",
                requested_url=url,
                status_code=result.status_code,
            )
        else:
            structured_log(
                logger,
                "warning",
                "scholar_source.fetch_http_error",
                requested_url=url,
                status_code=result.status_code,
                final_url=result.final_url,
                block_reason=classify_block_reason(
                    status_code=result.status_code,
                    final_url=result.final_url,
                    body=result.body,
                ),
            )
        return result

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> RequestExecutor:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def classify_block_reason(*, status_code: int, final_url: str, body: str) -> str:
    lowered_url = final_url.lower()
    lowered_body = body.lower()
    if "sorry/index" in lowered_url or "sorry/index" in lowered_body:
        return "blocked_google_sorry_challenge"
    if "our systems have detected" in lowered_body or "unusual traffic" in lowered_body:
        return "blocked_unusual_traffic_detected"
    if "automated queries" in lowered_body:
        return "blocked_automated_queries_detected"
    if any(keyword in lowered_body for keyword in BLOCKED_KEYWORDS):
        return "blocked_challenge_page"
    if status_code == 429:
        return "blocked_http_429_rate_limited"
    return f"http_error_status_{status_code}"


def build_profile_url(*, scholar_id: str, cstart: int, pagesize: int = DEFAULT_PAGE_SIZE) -> str:
    query: dict[str, int | str] = {"hl": "en", "user": scholar_id}
    if cstart > 0:
        query["cstart"] = int(cstart)
    if pagesize > 0:
        query["pagesize"] = int(pagesize)
    return f"{SCHOLAR_PROFILE_URL}?{urlencode(query)}"


def build_citation_url(*, pub_id: str) -> str:
    query = {"hl": "en", "view_op": "view_citation", "citation_for_view": pub_id}
    return f"{SCHOLAR_PROFILE_URL}?{urlencode(query)}"
