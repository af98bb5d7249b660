"""Load preview configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ

from ruamel.yaml import YAML

from .helpers import (
    _extra_attributes,
    _heading_levels,
    _normalize_names,
    _positive_float,
    _pygments_style,
    _section,
)
from .models import (
    OutlineConfig,
    PreviewConfig,
    PreviewConfigError,
    RenderConfig,
    SearchConfig,
)

if typ.TYPE_CHECKING:
    from pathlib import Path


def load_preview_config(path: Path | None = None) -> PreviewConfig:
    """Load the YAML configuration for rendering, search, and outline tracking.

    Parameters
    ----------
    path : Path, optional
        Filesystem path to the YAML configuration file. ``None`` returns the
        built-in defaults.

    Returns
    -------
    PreviewConfig
        Parsed configuration with defaults applied to omitted fields.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    PreviewConfigError
        If a section or value is invalid.
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> from mdpreview.config import load_preview_config
    >>> config = load_preview_config(Path("preview.yaml"))  # doctest: +SKIP
    >>> config.render.pygments_style  # doctest: +SKIP
    'monokai'
    """
    if path is None:
        return PreviewConfig()
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded)

    return PreviewConfig(
        render=_build_render_config(_section(raw, "render")),
        search=_build_search_config(_section(raw, "search")),
        outline=_build_outline_config(_section(raw, "outline")),
    )


def _build_render_config(payload: typ.Mapping[str, typ.Any]) -> RenderConfig:
    base = RenderConfig()
    languages = payload.get("plain_text_languages")
    return RenderConfig(
        pygments_style=_pygments_style(
            payload.get("pygments_style"), base.pygments_style
        ),
        plain_text_languages=(
            _normalize_names(languages)
            if languages is not None
            else base.plain_text_languages
        ),
        extra_attributes=_extra_attributes(payload.get("extra_attributes")),
    )


def _build_search_config(payload: typ.Mapping[str, typ.Any]) -> SearchConfig:
    base = SearchConfig()
    class_name = str(payload.get("class_name", base.class_name)).strip()
    current = str(payload.get("current_class_name", base.current_class_name)).strip()
    if not class_name or not current:
        msg = "Search class names must not be empty."
        raise PreviewConfigError(msg)
    if class_name == current:
        msg = "'search.class_name' and 'search.current_class_name' must differ."
        raise PreviewConfigError(msg)
    return SearchConfig(class_name=class_name, current_class_name=current)


def _build_outline_config(payload: typ.Mapping[str, typ.Any]) -> OutlineConfig:
    base = OutlineConfig()
    return OutlineConfig(
        idle_delay=_positive_float(
            payload.get("idle_delay"), base.idle_delay, field="outline.idle_delay"
        ),
        levels=_heading_levels(payload.get("levels"), base.levels),
    )


__all__ = ["load_preview_config"]
