from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

_scholar_id_ctx: ContextVar[str | None] = ContextVar("scholar_id", default=None)


def get_scholar_id() -> str | None:
    return _scholar_id_ctx.get()


def set_scholar_id(value: str | None) -> None:
    _scholar_id_ctx.set(value)


@contextmanager
def scholar_log_context(scholar_id: str) -> Iterator[None]:
    token = _scholar_id_ctx.set(scholar_id)
    try:
        yield
    finally:
        _scholar_id_ctx.reset(token)
