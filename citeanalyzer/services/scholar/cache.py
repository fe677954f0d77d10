from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import tempfile
import threading
from dataclasses import asdict
from pathlib import Path
from typing import Any

from citeanalyzer.logging_utils import structured_log
from citeanalyzer.services.scholar.types import METRIC_FIELDS, Publication, ResearcherProfile
from citeanalyzer.settings import settings

PROFILE_CACHE_VERSION = 1
CACHE_FILE_PREFIX = "scholar_data_"
SAFE_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")

_DEFAULT_DIR_LOCK = threading.Lock()
_DEFAULT_DIR: Path | None = None

logger = logging.getLogger(__name__)


def default_cache_dir() -> Path:
    """Return the configured cache directory, or one temporary directory per process."""
    global _DEFAULT_DIR
    configured = settings.profile_cache_dir.strip()
    if configured:
        return Path(configured)
    with _DEFAULT_DIR_LOCK:
        if _DEFAULT_DIR is None:
            _DEFAULT_DIR = Path(tempfile.mkdtemp(prefix="citeanalyzer-"))
        return _DEFAULT_DIR


def cache_file_name(scholar_id: str) -> str:
    if SAFE_ID_RE.match(scholar_id):
        return f"{CACHE_FILE_PREFIX}{scholar_id}.json"
    digest = hashlib.sha256(scholar_id.encode("utf-8")).hexdigest()
    return f"{CACHE_FILE_PREFIX}{digest}.json"


class ProfileCache:
    """File-backed profile cache with one JSON document per scholar id.

    Entries never expire; `clear` is the only way to drop them. Writes land
    in a temporary sibling first and are moved into place with os.replace.
    """

    def __init__(self, cache_dir: str | os.PathLike[str] | None = None) -> None:
        self._cache_dir = Path(cache_dir) if cache_dir else None

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir if self._cache_dir is not None else default_cache_dir()

    def path_for(self, scholar_id: str) -> Path:
        return self.cache_dir / cache_file_name(scholar_id)

    def get(self, scholar_id: str) -> ResearcherProfile | None:
        path = self.path_for(scholar_id)
        if not path.exists():
            structured_log(logger, "debug", "scholar_cache.miss", scholar_id=scholar_id, path=str(path))
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            structured_log(
                logger,
                "warning",
                "scholar_cache.unreadable_entry",
                scholar_id=scholar_id,
                path=str(path),
                error=str(exc),
            )
            return None

        profile = _deserialize_document(payload)
        if profile is None or profile.scholar_id != scholar_id:
            structured_log(
                logger,
                "warning",
                "scholar_cache.invalid_entry",
                scholar_id=scholar_id,
                path=str(path),
            )
            return None
        structured_log(logger, "info", "scholar_cache.hit", scholar_id=scholar_id, path=str(path))
        return profile

    def put(self, profile: ResearcherProfile) -> Path:
        path = self.path_for(profile.scholar_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        encoded = json.dumps(_serialize_document(profile), ensure_ascii=False, indent=2)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(encoded)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        structured_log(
            logger,
            "info",
            "scholar_cache.stored",
            scholar_id=profile.scholar_id,
            path=str(path),
            publication_count=len(profile.publications),
        )
        return path

    def clear(self, scholar_id: str | None = None) -> int:
        if scholar_id is not None:
            targets = [self.path_for(scholar_id)]
        elif self.cache_dir.is_dir():
            targets = sorted(self.cache_dir.glob(f"{CACHE_FILE_PREFIX}*.json"))
        else:
            targets = []

        removed = 0
        for path in targets:
            if path.exists():
                path.unlink()
                removed += 1
        structured_log(
            logger,
            "info",
            "scholar_cache.cleared",
            scholar_id=scholar_id,
            removed=removed,
        )
        return removed


def _serialize_document(profile: ResearcherProfile) -> dict[str, Any]:
    return {"version": PROFILE_CACHE_VERSION, "profile": asdict(profile)}


def _deserialize_document(payload: object) -> ResearcherProfile | None:
    if not isinstance(payload, dict):
        return None
    if payload.get("version") != PROFILE_CACHE_VERSION:
        return None
    return _deserialize_profile(payload.get("profile"))


def _deserialize_profile(value: object) -> ResearcherProfile | None:
    if not isinstance(value, dict):
        return None
    publications_payload = value.get("publications")
    if not isinstance(publications_payload, list):
        return None
    publications: list[Publication] = []
    for item in publications_payload:
        publication = _deserialize_publication(item)
        if publication is None:
            return None
        publications.append(publication)

    metrics: dict[str, int] = {}
    for key in METRIC_FIELDS:
        metric = _as_int(value.get(key))
        if metric is None:
            return None
        metrics[key] = metric

    try:
        return ResearcherProfile(
            scholar_id=_as_string(value["scholar_id"]),
            name=_as_string(value["name"]),
            affiliation=_as_string(value["affiliation"]),
            interests=_as_string(value["interests"]),
            homepage=_as_string(value["homepage"]),
            publications=tuple(publications),
            **metrics,
        )
    except (KeyError, TypeError):
        return None


def _deserialize_publication(value: object) -> Publication | None:
    if not isinstance(value, dict):
        return None
    year = value.get("year")
    if year is not None and _as_int(year) is None:
        return None
    citedby = _as_int(value.get("citedby"))
    if citedby is None:
        return None
    pub_id = value.get("pub_id")
    try:
        return Publication(
            title=_as_string(value["title"]),
            authors=_as_string(value.get("authors", "")),
            journal=_as_string(value.get("journal", "")),
            year=year,
            citedby=citedby,
            pub_id=pub_id if isinstance(pub_id, str) else None,
        )
    except (KeyError, TypeError):
        return None


def _as_string(value: object) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected string, got {type(value).__name__}")
    return value


def _as_int(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value
