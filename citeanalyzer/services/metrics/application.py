from __future__ import annotations

import logging
import statistics
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from citeanalyzer.logging_utils import structured_log
from citeanalyzer.services.metrics.types import ComparisonRow, JournalImpact, TimePeriod, YearlyTrend
from citeanalyzer.services.scholar.errors import InvalidArgumentError
from citeanalyzer.services.scholar.types import Publication, ResearcherProfile

PROFILE_METRICS = ("h_index", "i10_index", "m_index", "citations_per_paper")
COMPARISON_METRICS = ("h_index", "i10_index", "citations_total", "publications_count")
I10_THRESHOLD = 10
MIN_JOURNAL_PAPERS = 5
IMPACT_FACTOR_SCALE = 0.8

logger = logging.getLogger(__name__)


def _current_year(current_year: int | None) -> int:
    return current_year if current_year is not None else datetime.now(UTC).year


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _checked_citations(citations: Iterable[object]) -> list[float]:
    values = list(citations)
    for value in values:
        if not _is_number(value):
            raise InvalidArgumentError("citations must be a sequence of numbers")
    return values  # type: ignore[return-value]


def calculate_h_index(citations: Iterable[float]) -> int:
    """Largest h such that at least h entries have h or more citations."""
    ordered = sorted(_checked_citations(citations), reverse=True)
    h = 0
    for index, count in enumerate(ordered, start=1):
        if count < index:
            break
        h = index
    return h


def calculate_i10_index(citations: Iterable[float]) -> int:
    return sum(1 for count in _checked_citations(citations) if count >= I10_THRESHOLD)


def calculate_m_index(
    h_index: float,
    first_publication_year: int,
    *,
    current_year: int | None = None,
) -> float:
    if not _is_number(h_index) or h_index < 0:
        raise InvalidArgumentError("h_index must be a non-negative number")
    if not _is_number(first_publication_year):
        raise InvalidArgumentError("first_publication_year must be numeric")
    career_years = _current_year(current_year) - first_publication_year + 1
    if career_years <= 0:
        return 0.0
    return h_index / career_years


def researcher_metrics(
    profile: ResearcherProfile,
    metrics: Sequence[str] = PROFILE_METRICS,
    *,
    current_year: int | None = None,
) -> dict[str, float]:
    """Compute metrics from the extracted publication list of one profile.

    These are recomputed from the publications actually extracted, so they
    can be lower than the profile's own headline values when the extraction
    was capped by `max_publications`.
    """
    unknown = [name for name in metrics if name not in PROFILE_METRICS]
    if unknown:
        raise InvalidArgumentError(f"Unknown metrics: {', '.join(unknown)}")

    citations = profile.citation_counts()
    result: dict[str, float] = {}
    if "h_index" in metrics:
        result["h_index"] = calculate_h_index(citations)
    if "i10_index" in metrics:
        result["i10_index"] = calculate_i10_index(citations)
    if "m_index" in metrics:
        years = profile.publication_years()
        if years:
            result["m_index"] = calculate_m_index(
                calculate_h_index(citations),
                min(years),
                current_year=current_year,
            )
        else:
            result["m_index"] = 0.0
    if "citations_per_paper" in metrics:
        result["citations_per_paper"] = sum(citations) / len(citations) if citations else 0.0
    return result


def competition_ranks(values: Sequence[float], *, descending: bool) -> list[int]:
    """Rank values with ties sharing the lowest rank ("1224" ranking)."""
    if descending:
        return [1 + sum(1 for other in values if other > value) for value in values]
    return [1 + sum(1 for other in values if other < value) for value in values]


def compare_researchers(
    profiles: Sequence[ResearcherProfile],
    metrics: Sequence[str] = COMPARISON_METRICS,
) -> list[ComparisonRow]:
    if len(profiles) < 2:
        raise InvalidArgumentError("compare_researchers needs at least 2 profiles")
    ranked_metrics = [name for name in metrics if name in COMPARISON_METRICS]
    if not ranked_metrics:
        raise InvalidArgumentError(f"metrics must include at least one of: {', '.join(COMPARISON_METRICS)}")

    columns: dict[str, list[float]] = {
        "h_index": [profile.h_index for profile in profiles],
        "i10_index": [profile.i10_index for profile in profiles],
        "citations_total": [profile.citations_total for profile in profiles],
        "publications_count": [len(profile.publications) for profile in profiles],
    }
    ranks_by_metric = {name: competition_ranks(columns[name], descending=True) for name in ranked_metrics}
    composite_scores = [
        sum(ranks_by_metric[name][index] for name in ranked_metrics) / len(ranked_metrics)
        for index in range(len(profiles))
    ]
    overall_ranks = competition_ranks(composite_scores, descending=False)

    return [
        ComparisonRow(
            scholar_id=profile.scholar_id,
            name=profile.name,
            affiliation=profile.affiliation,
            h_index=profile.h_index,
            i10_index=profile.i10_index,
            citations_total=profile.citations_total,
            publications_count=len(profile.publications),
            ranks={name: ranks_by_metric[name][index] for name in ranked_metrics},
            composite_score=composite_scores[index],
            overall_rank=overall_ranks[index],
        )
        for index, profile in enumerate(profiles)
    ]


def _trend_start_year(time_period: str, current_year: int) -> int | None:
    if time_period == "all":
        return None
    if time_period == "5y":
        return current_year - 5
    if time_period == "10y":
        return current_year - 10
    raise InvalidArgumentError("time_period must be one of: all, 5y, 10y")


def analyze_citation_trends(
    profiles: Sequence[ResearcherProfile],
    time_period: TimePeriod = "all",
    *,
    current_year: int | None = None,
) -> list[YearlyTrend]:
    start_year = _trend_start_year(time_period, _current_year(current_year))
    trends: list[YearlyTrend] = []
    for profile in profiles:
        dated = [
            publication
            for publication in profile.publications
            if publication.year is not None and (start_year is None or publication.year >= start_year)
        ]
        by_year: dict[int, list[int]] = defaultdict(list)
        for publication in dated:
            by_year[publication.year].append(publication.citedby)  # type: ignore[index]

        for year in sorted(by_year):
            counts = by_year[year]
            so_far = [publication.citedby for publication in dated if publication.year <= year]  # type: ignore[operator]
            trends.append(
                YearlyTrend(
                    scholar_id=profile.scholar_id,
                    scholar_name=profile.name,
                    year=year,
                    publications=len(counts),
                    total_citations=sum(counts),
                    avg_citations=sum(counts) / len(counts),
                    h_index_estimate=calculate_h_index(so_far),
                )
            )
    return trends


def estimate_impact_factor(
    publications: Sequence[Publication],
    year_range: int = 5,
    *,
    current_year: int | None = None,
) -> list[JournalImpact]:
    """Rough per-journal impact estimate from one publication list.

    Only journals with at least five publications inside the window are
    reported; the estimate is a fixed fraction of the mean citation count.
    """
    cutoff_year = _current_year(current_year) - year_range
    recent = [
        publication
        for publication in publications
        if publication.year is not None and publication.year >= cutoff_year
    ]
    if not recent:
        raise InvalidArgumentError("No recent publications found for impact factor estimation")

    by_journal: dict[str, list[int]] = defaultdict(list)
    for publication in recent:
        by_journal[publication.journal].append(publication.citedby)

    impacts = [
        JournalImpact(
            journal=journal,
            total_papers=len(counts),
            total_citations=sum(counts),
            avg_citations=sum(counts) / len(counts),
            median_citations=float(statistics.median(counts)),
            h5_index=calculate_h_index(counts),
            estimated_impact_factor=IMPACT_FACTOR_SCALE * sum(counts) / len(counts),
        )
        for journal, counts in by_journal.items()
        if len(counts) >= MIN_JOURNAL_PAPERS
    ]
    if not impacts:
        structured_log(
            logger,
            "warning",
            "metrics.impact_factor_insufficient_papers",
            journals=len(by_journal),
            min_papers=MIN_JOURNAL_PAPERS,
        )
        return []
    return sorted(impacts, key=lambda impact: impact.estimated_impact_factor, reverse=True)
