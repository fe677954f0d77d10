from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from citeanalyzer.services.scholar.errors import FieldParseWarning

UNKNOWN_NAME = "Unknown Scholar"
UNKNOWN_AFFILIATION = "Unknown Institution"
UNKNOWN_INTERESTS = "Unknown Interests"
UNKNOWN_HOMEPAGE = ""

METRIC_FIELDS = (
    "citations_total",
    "citations_5y",
    "h_index",
    "h_index_5y",
    "i10_index",
    "i10_index_5y",
)


class PaginationState(StrEnum):
    FETCHING_PAGE = "fetching_page"
    PARSING_ROWS = "parsing_rows"
    DONE = "done"
    ABORTED = "aborted"


@dataclass(frozen=True)
class Publication:
    title: str
    authors: str = ""
    journal: str = ""
    year: int | None = None
    citedby: int = 0
    pub_id: str | None = None

    def author_names(self) -> list[str]:
        return [name.strip() for name in self.authors.split(",") if name.strip()]


@dataclass(frozen=True)
class ResearcherProfile:
    scholar_id: str
    name: str = UNKNOWN_NAME
    affiliation: str = UNKNOWN_AFFILIATION
    interests: str = UNKNOWN_INTERESTS
    homepage: str = UNKNOWN_HOMEPAGE
    citations_total: int = 0
    citations_5y: int = 0
    h_index: int = 0
    h_index_5y: int = 0
    i10_index: int = 0
    i10_index_5y: int = 0
    publications: tuple[Publication, ...] = ()

    def citation_counts(self) -> list[int]:
        return [publication.citedby for publication in self.publications]

    def publication_years(self) -> list[int]:
        return [publication.year for publication in self.publications if publication.year is not None]

    def author_lists(self) -> list[list[str]]:
        return [publication.author_names() for publication in self.publications]


@dataclass(frozen=True)
class ParsedProfilePage:
    name: str | None
    affiliation: str | None
    interests: str | None
    homepage: str | None
    citations_total: int | None
    citations_5y: int | None
    h_index: int | None
    h_index_5y: int | None
    i10_index: int | None
    i10_index_5y: int | None
    publications: list[Publication]
    row_count: int
    warnings: list[FieldParseWarning] = field(default_factory=list)


@dataclass(frozen=True)
class CitationHistoryPoint:
    year: int
    citations: int
