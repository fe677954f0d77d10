from __future__ import annotations

import re

SCHOLAR_BASE_URL = "https://scholar.google.com"

BLOCKED_KEYWORDS = [
    "unusual traffic",
    "sorry/index",
    "not a robot",
    "our systems have detected",
    "automated queries",
]

PUBLICATION_ROW_RE = re.compile(
    r"<tr\b(?=[^>]*\bclass\s*=\s*['\"][^'\"]*\bgsc_a_tr\b[^'\"]*['\"])[^>]*>(.*?)</tr>",
    re.I | re.S,
)
YEAR_RE = re.compile(r"\b(19|20)\d{2}\b")
Z_INDEX_RE = re.compile(r"z-index\s*:\s*(\d+)", re.I)

VOID_ELEMENTS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "track", "wbr"}
)

PROFILE_NAME_ID = "gsc_prf_in"
PROFILE_INFO_CLASS = "gsc_prf_il"
PROFILE_INTEREST_CLASS = "gsc_prf_inta"
PROFILE_HOMEPAGE_MARKER = "gsc_prf_ivh"
PROFILE_METRIC_CLASS = "gsc_rsb_std"

ROW_TITLE_CLASS = "gsc_a_at"
ROW_CITATION_CLASS = "gsc_a_ac"
ROW_YEAR_CLASSES = ("gsc_a_h", "gsc_a_y")
ROW_GRAY_CLASS = "gs_gray"

HISTORY_YEAR_CLASS = "gsc_oci_g_t"
HISTORY_BAR_CLASS = "gsc_oci_g_a"
HISTORY_COUNT_CLASS = "gsc_oci_g_al"
