from __future__ import annotations

import logging

from citeanalyzer.logging_utils import structured_log
from citeanalyzer.services.scholar.errors import FieldParseWarning
from citeanalyzer.services.scholar.profile_fields import parse_profile_fields
from citeanalyzer.services.scholar.profile_rows import parse_publications
from citeanalyzer.services.scholar.types import METRIC_FIELDS, ParsedProfilePage

logger = logging.getLogger(__name__)


def _log_warnings(warnings: list[FieldParseWarning], *, cstart: int) -> None:
    for warning in warnings:
        structured_log(
            logger,
            "warning",
            "scholar_parser.field_warning",
            code=warning.code,
            detail=warning.message,
            row_index=warning.row_index,
            cstart=cstart,
        )


def parse_profile_page(html: str, *, include_profile_fields: bool = True, cstart: int = 0) -> ParsedProfilePage:
    """Parse one profile page into optional fields and publication rows.

    Every field is extracted on its own: a missing node or unparseable value
    leaves that field as None and records a FieldParseWarning, while the
    remaining fields and rows are still parsed. Later result pages only need
    their rows, so `include_profile_fields=False` skips the header.
    """
    warnings: list[FieldParseWarning] = []
    if include_profile_fields:
        fields, field_warnings = parse_profile_fields(html)
        warnings.extend(field_warnings)
        name, affiliation, interests, homepage = fields.name, fields.affiliation, fields.interests, fields.homepage
        metrics = fields.metrics
    else:
        name = affiliation = interests = homepage = None
        metrics = {key: None for key in METRIC_FIELDS}

    publications, row_count, row_warnings = parse_publications(html)
    warnings.extend(row_warnings)
    _log_warnings(warnings, cstart=cstart)

    return ParsedProfilePage(
        name=name,
        affiliation=affiliation,
        interests=interests,
        homepage=homepage,
        citations_total=metrics["citations_total"],
        citations_5y=metrics["citations_5y"],
        h_index=metrics["h_index"],
        h_index_5y=metrics["h_index_5y"],
        i10_index=metrics["i10_index"],
        i10_index_5y=metrics["i10_index_5y"],
        publications=publications,
        row_count=row_count,
        warnings=warnings,
    )
