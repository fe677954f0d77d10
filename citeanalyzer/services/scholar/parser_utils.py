from __future__ import annotations

from html import unescape
from urllib.parse import parse_qs, urlparse


def normalize_space(value: str) -> str:
    return " ".join(unescape(value).split())


def attr_value(attrs: list[tuple[str, str | None]], name: str) -> str | None:
    for attr_name, raw_value in attrs:
        if attr_name.lower() == name:
            return raw_value
    return None


def attr_class(attrs: list[tuple[str, str | None]]) -> list[str]:
    return (attr_value(attrs, "class") or "").split()


def attr_id(attrs: list[tuple[str, str | None]]) -> str:
    return attr_value(attrs, "id") or ""


def query_param(href: str | None, name: str) -> str | None:
    if not href:
        return None
    values = parse_qs(urlparse(href).query).get(name)
    if not values:
        return None
    token = values[0].strip()
    return token or None
