from citeanalyzer.services.scholar.application import assemble, extract, extract_many
from citeanalyzer.services.scholar.cache import ProfileCache
from citeanalyzer.services.scholar.citation_history import fetch_citation_history
from citeanalyzer.services.scholar.errors import (
    CiteAnalyzerError,
    FatalExtractionError,
    FieldParseWarning,
    InvalidArgumentError,
)
from citeanalyzer.services.scholar.types import CitationHistoryPoint, Publication, ResearcherProfile

__all__ = [
    "CitationHistoryPoint",
    "CiteAnalyzerError",
    "FatalExtractionError",
    "FieldParseWarning",
    "InvalidArgumentError",
    "ProfileCache",
    "Publication",
    "ResearcherProfile",
    "assemble",
    "extract",
    "extract_many",
    "fetch_citation_history",
]
