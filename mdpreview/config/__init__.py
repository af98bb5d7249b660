"""Load and validate mdpreview configuration YAML.

This subpackage parses an optional ``preview.yaml`` file, applies defaults to
omitted fields, and produces typed dataclasses (:class:`PreviewConfig` and its
sections) that the renderer, highlighter, and outline tracker consume. The
primary entry point is :func:`load_preview_config`.

Examples
--------
>>> from mdpreview.config import load_preview_config
>>> config = load_preview_config()
>>> config.search.current_class_name
'search-text-current'
"""

from .loader import load_preview_config
from .models import (
    OutlineConfig,
    PreviewConfig,
    PreviewConfigError,
    RenderConfig,
    SearchConfig,
)

__all__ = [
    "OutlineConfig",
    "PreviewConfig",
    "PreviewConfigError",
    "RenderConfig",
    "SearchConfig",
    "load_preview_config",
]
