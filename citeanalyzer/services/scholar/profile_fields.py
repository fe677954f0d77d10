from __future__ import annotations

import re
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import Any

from citeanalyzer.services.scholar.errors import FieldParseWarning
from citeanalyzer.services.scholar.parser_constants import (
    PROFILE_HOMEPAGE_MARKER,
    PROFILE_INFO_CLASS,
    PROFILE_INTEREST_CLASS,
    PROFILE_METRIC_CLASS,
    PROFILE_NAME_ID,
    VOID_ELEMENTS,
)
from citeanalyzer.services.scholar.parser_utils import (
    attr_class,
    attr_id,
    attr_value,
    normalize_space,
)
from citeanalyzer.services.scholar.types import METRIC_FIELDS


@dataclass(frozen=True)
class ProfileFields:
    name: str | None
    affiliation: str | None
    interests: str | None
    homepage: str | None
    metrics: dict[str, int | None]


class ProfileHeaderParser(HTMLParser):
    """Collects the header fields of a profile page in a single pass.

    Each capture tracks its own element depth so nested markup inside a
    field does not end the capture early.
    """

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.names: list[str] = []
        self.affiliations: list[str] = []
        self.interests: list[str] = []
        self.metric_texts: list[str] = []
        self.homepage_href: str | None = None

        self._captures: list[dict[str, Any]] = []
        self._homepage_depth = 0
        self._seen_info_block = False

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag in VOID_ELEMENTS:
            return
        for capture in self._captures:
            capture["depth"] += 1
        if self._homepage_depth > 0:
            self._homepage_depth += 1

        classes = attr_class(attrs)
        element_id = attr_id(attrs)

        if element_id == PROFILE_NAME_ID:
            self._begin_capture(self.names)
        if PROFILE_INFO_CLASS in classes and not self._seen_info_block:
            self._seen_info_block = True
            self._begin_capture(self.affiliations)
        if tag == "a" and PROFILE_INTEREST_CLASS in classes:
            self._begin_capture(self.interests)
        if PROFILE_METRIC_CLASS in classes:
            self._begin_capture(self.metric_texts)

        if element_id == PROFILE_HOMEPAGE_MARKER or PROFILE_HOMEPAGE_MARKER in classes:
            self._homepage_depth = 1
        elif tag == "a" and self._homepage_depth > 0 and self.homepage_href is None:
            href = (attr_value(attrs, "href") or "").strip()
            self.homepage_href = href or None

    def handle_data(self, data: str) -> None:
        for capture in self._captures:
            capture["parts"].append(data)

    def handle_endtag(self, tag: str) -> None:
        if tag in VOID_ELEMENTS:
            return
        if self._homepage_depth > 0:
            self._homepage_depth -= 1

        still_open: list[dict[str, Any]] = []
        for capture in self._captures:
            capture["depth"] -= 1
            if capture["depth"] > 0:
                still_open.append(capture)
                continue
            capture["target"].append(normalize_space("".join(capture["parts"])))
        self._captures = still_open

    def _begin_capture(self, target: list[str]) -> None:
        self._captures.append({"depth": 1, "parts": [], "target": target})


def _first_text(values: list[str]) -> str | None:
    for value in values:
        if value:
            return value
    return None


def parse_metric_value(text: str) -> int | None:
    cleaned = re.sub(r"[,\s]", "", text)
    if not cleaned.isdecimal():
        return None
    return int(cleaned)


def _parse_metrics(metric_texts: list[str], warnings: list[FieldParseWarning]) -> dict[str, int | None]:
    if len(metric_texts) < len(METRIC_FIELDS):
        warnings.append(
            FieldParseWarning(
                code="metrics_incomplete",
                message=f"Could not extract all citation metrics ({len(metric_texts)} of {len(METRIC_FIELDS)} found)",
            )
        )
        return {key: None for key in METRIC_FIELDS}

    metrics: dict[str, int | None] = {}
    for key, text in zip(METRIC_FIELDS, metric_texts):
        value = parse_metric_value(text)
        if value is None:
            warnings.append(
                FieldParseWarning(
                    code="metric_unparseable",
                    message=f"Metric {key} value {text!r} is not numeric",
                )
            )
        metrics[key] = value
    return metrics


def parse_profile_fields(html: str) -> tuple[ProfileFields, list[FieldParseWarning]]:
    parser = ProfileHeaderParser()
    parser.feed(html)
    parser.close()
    warnings: list[FieldParseWarning] = []

    name = _first_text(parser.names)
    if name is None:
        warnings.append(FieldParseWarning(code="name_missing", message="Could not extract scholar name"))

    affiliation = _first_text(parser.affiliations)
    if affiliation is None:
        warnings.append(FieldParseWarning(code="affiliation_missing", message="Could not extract affiliation"))

    interest_terms = [term for term in parser.interests if term]
    interests = ", ".join(interest_terms) if interest_terms else None
    if interests is None:
        warnings.append(FieldParseWarning(code="interests_missing", message="Could not extract research interests"))

    homepage = parser.homepage_href
    if homepage is None:
        warnings.append(FieldParseWarning(code="homepage_missing", message="Could not extract homepage"))

    return (
        ProfileFields(
            name=name,
            affiliation=affiliation,
            interests=interests,
            homepage=homepage,
            metrics=_parse_metrics(parser.metric_texts, warnings),
        ),
        warnings,
    )
