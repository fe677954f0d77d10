from __future__ import annotations

import re
from html.parser import HTMLParser
from typing import Any

from citeanalyzer.services.scholar.errors import FieldParseWarning
from citeanalyzer.services.scholar.parser_constants import (
    PUBLICATION_ROW_RE,
    ROW_CITATION_CLASS,
    ROW_GRAY_CLASS,
    ROW_TITLE_CLASS,
    ROW_YEAR_CLASSES,
    VOID_ELEMENTS,
    YEAR_RE,
)
from citeanalyzer.services.scholar.parser_utils import (
    attr_class,
    attr_value,
    normalize_space,
    query_param,
)
from citeanalyzer.services.scholar.types import Publication


class ScholarRowParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.title_href: str | None = None
        self.title_data_href: str | None = None
        self.title_parts: list[str] = []
        self.citation_parts: list[str] = []
        self.year_parts: list[str] = []
        self.gray_texts: list[str] = []

        self._title_depth = 0
        self._citation_depth = 0
        self._year_depth = 0
        self._gray_stack: list[dict[str, Any]] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag in VOID_ELEMENTS:
            return
        if self._title_depth > 0:
            self._title_depth += 1
        if self._citation_depth > 0:
            self._citation_depth += 1
        if self._year_depth > 0:
            self._year_depth += 1
        if self._gray_stack:
            self._gray_stack[-1]["depth"] += 1

        classes = attr_class(attrs)

        if tag == "a" and ROW_TITLE_CLASS in classes:
            self._title_depth = 1
            self.title_href = attr_value(attrs, "href")
            self.title_data_href = attr_value(attrs, "data-href")
            return

        if tag == "a" and ROW_CITATION_CLASS in classes:
            self._citation_depth = 1
            return

        if tag in {"span", "a"} and any(name in classes for name in ROW_YEAR_CLASSES):
            self._year_depth = 1
            return

        if tag == "div" and ROW_GRAY_CLASS in classes:
            self._gray_stack.append({"depth": 1, "parts": []})
            return

    def handle_data(self, data: str) -> None:
        if self._title_depth > 0:
            self.title_parts.append(data)
        if self._citation_depth > 0:
            self.citation_parts.append(data)
        if self._year_depth > 0:
            self.year_parts.append(data)
        if self._gray_stack:
            self._gray_stack[-1]["parts"].append(data)

    def handle_endtag(self, tag: str) -> None:
        if tag in VOID_ELEMENTS:
            return
        if self._title_depth > 0:
            self._title_depth -= 1
        if self._citation_depth > 0:
            self._citation_depth -= 1
        if self._year_depth > 0:
            self._year_depth -= 1
        if self._gray_stack:
            self._gray_stack[-1]["depth"] -= 1
            if self._gray_stack[-1]["depth"] == 0:
                self.gray_texts.append(normalize_space("".join(self._gray_stack[-1]["parts"])))
                self._gray_stack.pop()


def extract_rows(html: str) -> list[str]:
    return [match.group(1) for match in PUBLICATION_ROW_RE.finditer(html)]


def parse_pub_id(*hrefs: str | None) -> str | None:
    for href in hrefs:
        token = query_param(href, "citation_for_view")
        if token:
            return token
    return None


def parse_year(parts: list[str]) -> int | None:
    text = normalize_space(" ".join(parts))
    match = YEAR_RE.search(text)
    if not match:
        return None
    return int(match.group(0))


def parse_citation_count(parts: list[str]) -> int | None:
    text = normalize_space(" ".join(parts))
    if not text:
        return 0
    digits = re.sub(r"\D+", "", text)
    if not digits:
        return None
    return int(digits)


def parse_publication_row(row_html: str, *, row_index: int) -> tuple[Publication | None, list[FieldParseWarning]]:
    parser = ScholarRowParser()
    parser.feed(row_html)
    parser.close()
    warnings: list[FieldParseWarning] = []

    title = normalize_space("".join(parser.title_parts))
    if not title:
        warnings.append(
            FieldParseWarning(
                code="row_missing_title",
                message=f"Could not extract title of publication row {row_index}; row skipped",
                row_index=row_index,
            )
        )
        return None, warnings

    citation_text = normalize_space(" ".join(parser.citation_parts))
    citation_count = parse_citation_count(parser.citation_parts)
    if citation_count is None:
        warnings.append(
            FieldParseWarning(
                code="row_citation_unparseable",
                message=f"Citation count {citation_text!r} of row {row_index} is not numeric",
                row_index=row_index,
            )
        )
        citation_count = 0

    year_text = normalize_space(" ".join(parser.year_parts))
    year = parse_year(parser.year_parts)
    if year_text and year is None:
        warnings.append(
            FieldParseWarning(
                code="row_year_unparseable",
                message=f"Year {year_text!r} of row {row_index} is not a year",
                row_index=row_index,
            )
        )

    authors = parser.gray_texts[0] if len(parser.gray_texts) > 0 else ""
    journal = parser.gray_texts[1] if len(parser.gray_texts) > 1 else ""
    return (
        Publication(
            title=title,
            authors=authors,
            journal=journal,
            year=year,
            citedby=citation_count,
            pub_id=parse_pub_id(parser.title_data_href, parser.title_href),
        ),
        warnings,
    )


def parse_publications(html: str) -> tuple[list[Publication], int, list[FieldParseWarning]]:
    rows = extract_rows(html)
    warnings: list[FieldParseWarning] = []
    publications: list[Publication] = []

    for row_index, row_html in enumerate(rows, start=1):
        publication, row_warnings = parse_publication_row(row_html, row_index=row_index)
        warnings.extend(row_warnings)
        if publication is None:
            continue
        publications.append(publication)

    return publications, len(rows), warnings
