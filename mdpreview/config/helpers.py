"""Utility helpers shared by the mdpreview configuration loader."""

from __future__ import annotations

import typing as typ

from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .models import PreviewConfigError


def _normalize_names(value: str | list[object] | None) -> list[str]:
    """Normalize a whitespace-separated string or list into non-empty names."""
    if isinstance(value, str):
        return [segment for segment in value.split() if segment]
    if isinstance(value, list):
        normalized: list[str] = []
        for segment in value:
            text = str(segment).strip()
            if text:
                normalized.append(text)
        return normalized
    return []


def _section(raw: typ.Mapping[str, typ.Any], key: str) -> typ.Mapping[str, typ.Any]:
    """Return the mapping stored under ``key`` or an empty one."""
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        msg = f"Section '{key}' must be a mapping."
        raise PreviewConfigError(msg)
    return value


def _pygments_style(value: object, default: str) -> str:
    """Validate a Pygments style name, falling back to ``default`` when unset."""
    if value is None:
        return default
    name = str(value).strip()
    try:
        get_style_by_name(name)
    except ClassNotFound as exc:
        msg = f"Unknown pygments style '{name}'."
        raise PreviewConfigError(msg) from exc
    return name


def _positive_float(value: object, default: float, *, field: str) -> float:
    """Parse a strictly positive number, falling back to ``default`` when unset."""
    if value is None:
        return default
    match value:
        case bool():
            parsed = None
        case int() | float():
            parsed = float(value)
        case str() as text:
            try:
                parsed = float(text)
            except ValueError:
                parsed = None
        case _:
            parsed = None
    if parsed is None or parsed <= 0:
        msg = f"'{field}' must be a positive number."
        raise PreviewConfigError(msg)
    return parsed


def _heading_levels(value: object, default: list[int]) -> list[int]:
    """Validate a list of heading levels between 1 and 6."""
    if value is None:
        return list(default)
    if not isinstance(value, list) or not value:
        msg = "'outline.levels' must be a non-empty list."
        raise PreviewConfigError(msg)
    levels: list[int] = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int) or not 1 <= item <= 6:
            msg = f"Invalid heading level {item!r}; expected 1-6."
            raise PreviewConfigError(msg)
        levels.append(item)
    return sorted(set(levels))


def _extra_attributes(value: object) -> dict[str, list[str]]:
    """Normalize the ``render.extra_attributes`` mapping."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        msg = "'render.extra_attributes' must map tag names to attribute lists."
        raise PreviewConfigError(msg)
    return {
        str(tag).lower(): [name.lower() for name in _normalize_names(names)]
        for tag, names in value.items()
    }


__all__ = [
    "_extra_attributes",
    "_heading_levels",
    "_normalize_names",
    "_positive_float",
    "_pygments_style",
    "_section",
]
