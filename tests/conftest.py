from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from citeanalyzer.logging_context import set_scholar_id
from tests.unit.helpers import RecordingSleep


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture(autouse=True)
def _reset_scholar_log_context() -> Iterator[None]:
    yield
    set_scholar_id(None)
