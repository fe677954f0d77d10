from citeanalyzer.services.metrics.application import (
    analyze_citation_trends,
    calculate_h_index,
    calculate_i10_index,
    calculate_m_index,
    compare_researchers,
    estimate_impact_factor,
    researcher_metrics,
)
from citeanalyzer.services.metrics.types import ComparisonRow, JournalImpact, YearlyTrend

__all__ = [
    "ComparisonRow",
    "JournalImpact",
    "YearlyTrend",
    "analyze_citation_trends",
    "calculate_h_index",
    "calculate_i10_index",
    "calculate_m_index",
    "compare_researchers",
    "estimate_impact_factor",
    "researcher_metrics",
]
