from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

TimePeriod = Literal["all", "5y", "10y"]


@dataclass(frozen=True)
class ComparisonRow:
    scholar_id: str
    name: str
    affiliation: str
    h_index: int
    i10_index: int
    citations_total: int
    publications_count: int
    ranks: dict[str, int] = field(default_factory=dict)
    composite_score: float = 0.0
    overall_rank: int = 0


@dataclass(frozen=True)
class YearlyTrend:
    scholar_id: str
    scholar_name: str
    year: int
    publications: int
    total_citations: int
    avg_citations: float
    h_index_estimate: int


@dataclass(frozen=True)
class JournalImpact:
    journal: str
    total_papers: int
    total_citations: int
    avg_citations: float
    median_citations: float
    h5_index: int
    estimated_impact_factor: float
