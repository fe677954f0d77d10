from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CollaboratorMatch:
    candidate_name: str
    candidate_id: str
    candidate_affiliation: str
    interest_similarity: float
    h_index_similarity: float
    composite_similarity: float
    target_h_index: int
    candidate_h_index: int
