"""Typed dataclasses describing mdpreview configuration structures."""

from __future__ import annotations

import dataclasses as dc

from mdpreview._constants import (
    DEFAULT_PYGMENTS_STYLE,
    HEADING_LEVELS,
    IDLE_FALLBACK_DELAY,
    PLAIN_TEXT_LANGUAGES,
    SEARCH_CLASS,
    SEARCH_CURRENT_CLASS,
)


class PreviewConfigError(ValueError):
    """Raised when the preview configuration is invalid."""


@dc.dataclass(slots=True)
class RenderConfig:
    """Options applied while rendering Markdown."""

    pygments_style: str = DEFAULT_PYGMENTS_STYLE
    plain_text_languages: list[str] = dc.field(
        default_factory=lambda: sorted(PLAIN_TEXT_LANGUAGES)
    )
    extra_attributes: dict[str, list[str]] = dc.field(default_factory=dict)


@dc.dataclass(slots=True)
class SearchConfig:
    """Class names given to search highlight spans."""

    class_name: str = SEARCH_CLASS
    current_class_name: str = SEARCH_CURRENT_CLASS


@dc.dataclass(slots=True)
class OutlineConfig:
    """Heading tracking behaviour."""

    idle_delay: float = IDLE_FALLBACK_DELAY
    levels: list[int] = dc.field(default_factory=lambda: list(HEADING_LEVELS))


@dc.dataclass(slots=True)
class PreviewConfig:
    """Top-level configuration consumed by the CLI and preview sessions."""

    render: RenderConfig = dc.field(default_factory=RenderConfig)
    search: SearchConfig = dc.field(default_factory=SearchConfig)
    outline: OutlineConfig = dc.field(default_factory=OutlineConfig)


__all__ = [
    "OutlineConfig",
    "PreviewConfig",
    "PreviewConfigError",
    "RenderConfig",
    "SearchConfig",
]
