"""Render Markdown into cached intermediate trees and presentable soups."""

from .code_highlight import highlight_code_blocks, stylesheet
from .pipeline import RenderFailure, RenderOptions, RenderResult, render
from .sanitizer import DEFAULT_SCHEMA, SanitizeSchema, sanitize_tree

__all__ = [
    "DEFAULT_SCHEMA",
    "RenderFailure",
    "RenderOptions",
    "RenderResult",
    "SanitizeSchema",
    "highlight_code_blocks",
    "render",
    "sanitize_tree",
    "stylesheet",
]
