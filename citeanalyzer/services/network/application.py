from __future__ import annotations

import logging
import math
import re
from collections.abc import Sequence
from itertools import combinations

import networkx as nx

from citeanalyzer.logging_utils import structured_log
from citeanalyzer.services.network.types import CollaboratorMatch
from citeanalyzer.services.scholar.errors import InvalidArgumentError
from citeanalyzer.services.scholar.types import Publication, ResearcherProfile

INTEREST_SPLIT_RE = re.compile(r"[,;.]")
INTEREST_WEIGHT = 0.7
H_INDEX_WEIGHT = 0.3
MAX_EDGE_WEIGHT = 10.0

logger = logging.getLogger(__name__)


def jaccard_similarity(left: set[str] | Sequence[str], right: set[str] | Sequence[str]) -> float:
    left_set, right_set = set(left), set(right)
    union = left_set | right_set
    if not union:
        return 0.0
    return len(left_set & right_set) / len(union)


def interest_terms(interests: str) -> set[str]:
    return {term.strip() for term in INTEREST_SPLIT_RE.split(interests.lower()) if term.strip()}


def h_index_similarity(target_h_index: int, candidate_h_index: int) -> float:
    target_log = math.log(target_h_index + 1)
    candidate_log = math.log(candidate_h_index + 1)
    return 1 - abs(target_log - candidate_log) / max(target_log, candidate_log, 1)


def create_citation_network(profiles: Sequence[ResearcherProfile], min_citations: int = 5) -> nx.Graph:
    """Approximate a co-citation network from shared authors.

    Papers cited at least `min_citations` times are linked when they share
    an author. Edge weight grows with the number of shared authors and the
    lesser citation count, then is rescaled so the heaviest edge is 10.
    Papers without any link are left out.
    """
    papers: list[tuple[Publication, ResearcherProfile]] = [
        (publication, profile) for profile in profiles for publication in profile.publications
    ]
    if not papers:
        raise InvalidArgumentError("No publications found to create network")

    papers = [(publication, profile) for publication, profile in papers if publication.citedby >= min_citations]
    if not papers:
        raise InvalidArgumentError(f"No publications meet the minimum citation threshold of {min_citations}")

    graph = nx.Graph()
    author_sets = [set(publication.author_names()) for publication, _ in papers]
    for (left, right) in combinations(range(len(papers)), 2):
        shared = author_sets[left] & author_sets[right]
        if not shared:
            continue
        weight = len(shared) * min(papers[left][0].citedby, papers[right][0].citedby) / 100
        for index in (left, right):
            publication, profile = papers[index]
            graph.add_node(
                f"paper_{index + 1}",
                paper_title=publication.title,
                citations=publication.citedby,
                year=publication.year,
                scholar_name=profile.name,
            )
        graph.add_edge(
            f"paper_{left + 1}",
            f"paper_{right + 1}",
            weight=weight,
            common_authors=len(shared),
        )

    if graph.number_of_edges() == 0:
        structured_log(
            logger,
            "warning",
            "network.no_shared_authors",
            paper_count=len(papers),
            min_citations=min_citations,
        )
        return nx.Graph()

    max_weight = max(weight for _, _, weight in graph.edges(data="weight"))
    if max_weight > 0:
        for _, _, data in graph.edges(data=True):
            data["weight"] = data["weight"] / max_weight * MAX_EDGE_WEIGHT

    structured_log(
        logger,
        "info",
        "network.created",
        node_count=graph.number_of_nodes(),
        edge_count=graph.number_of_edges(),
    )
    return graph


def find_collaborators(
    target: ResearcherProfile,
    candidates: Sequence[ResearcherProfile],
    min_similarity: float = 0.3,
) -> list[CollaboratorMatch]:
    if not candidates:
        raise InvalidArgumentError("candidates must be a non-empty sequence of profiles")

    target_terms = interest_terms(target.interests)
    matches: list[CollaboratorMatch] = []
    for candidate in candidates:
        if candidate.scholar_id == target.scholar_id:
            continue
        candidate_terms = interest_terms(candidate.interests)
        interest_score = jaccard_similarity(target_terms, candidate_terms) if target_terms and candidate_terms else 0.0
        h_score = h_index_similarity(target.h_index, candidate.h_index)
        composite = INTEREST_WEIGHT * interest_score + H_INDEX_WEIGHT * h_score
        if composite < min_similarity:
            continue
        matches.append(
            CollaboratorMatch(
                candidate_name=candidate.name,
                candidate_id=candidate.scholar_id,
                candidate_affiliation=candidate.affiliation,
                interest_similarity=round(interest_score, 3),
                h_index_similarity=round(h_score, 3),
                composite_similarity=round(composite, 3),
                target_h_index=target.h_index,
                candidate_h_index=candidate.h_index,
            )
        )
    return sorted(matches, key=lambda match: match.composite_similarity, reverse=True)
