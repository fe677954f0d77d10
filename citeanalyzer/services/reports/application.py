from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any

import networkx as nx

from citeanalyzer.logging_utils import structured_log
from citeanalyzer.services.metrics.application import analyze_citation_trends, researcher_metrics
from citeanalyzer.services.metrics.types import YearlyTrend
from citeanalyzer.services.network.application import create_citation_network
from citeanalyzer.services.scholar.application import extract
from citeanalyzer.services.scholar.errors import InvalidArgumentError
from citeanalyzer.services.scholar.types import ResearcherProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResearcherReport:
    profiles: tuple[ResearcherProfile, ...]
    metrics: dict[str, float]
    trends: list[YearlyTrend]
    network: nx.Graph = field(default_factory=nx.Graph)
    analysis_date: date = field(default_factory=lambda: datetime.now(UTC).date())


def build_researcher_report(
    scholar_id: str,
    max_publications: int = 100,
    include_network: bool = True,
    **extract_kwargs: Any,
) -> ResearcherReport:
    """Extract one profile and bundle its metrics, yearly trends and paper network."""
    profile = extract(scholar_id, max_publications=max_publications, **extract_kwargs)
    metrics = researcher_metrics(profile)
    trends = analyze_citation_trends([profile])

    network = nx.Graph()
    if include_network and profile.publications:
        try:
            network = create_citation_network([profile])
        except InvalidArgumentError as exc:
            structured_log(
                logger,
                "warning",
                "reports.network_unavailable",
                scholar_id=scholar_id,
                error=str(exc),
            )

    structured_log(
        logger,
        "info",
        "reports.completed",
        scholar_id=scholar_id,
        scholar_name=profile.name,
        publication_count=len(profile.publications),
        citations_total=profile.citations_total,
        h_index=profile.h_index,
    )
    return ResearcherReport(
        profiles=(profile,),
        metrics=metrics,
        trends=trends,
        network=network,
    )
