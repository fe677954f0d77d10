from citeanalyzer.services.network.application import (
    create_citation_network,
    find_collaborators,
    jaccard_similarity,
)
from citeanalyzer.services.network.types import CollaboratorMatch

__all__ = [
    "CollaboratorMatch",
    "create_citation_network",
    "find_collaborators",
    "jaccard_similarity",
]
