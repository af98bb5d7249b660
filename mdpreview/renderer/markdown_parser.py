r"""Convert raw Markdown (with optional front matter) into HTML.

This is the parse stage of the preview pipeline. Front matter fenced with
``---`` is loaded as YAML 1.2 with ``ruamel.yaml``; a ``+++`` block is loaded
as TOML. The remaining body goes through Python-Markdown with the table,
fenced code, strikethrough, and task list extensions enabled.

Example
-------
>>> from mdpreview.renderer.markdown_parser import split_front_matter
>>> meta, body = split_front_matter("---\ntitle: Notes\n---\n# Hi\n")
>>> meta["title"], body
('Notes', '# Hi\n')
"""

from __future__ import annotations

import io
import logging
import re
import tomllib
import typing as typ

from markdown import Markdown
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

logger = logging.getLogger(__name__)

FRONT_MATTER_PATTERN = re.compile(
    r"\A(?P<fence>---|\+\+\+)[ \t]*\r?\n(?P<body>.*?)^(?P=fence)[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)
FENCED_INDENT_PATTERN = re.compile(r"^[ ]{1,3}([`~]{3,})", re.MULTILINE)
FENCE_LABEL_PATTERN = re.compile(
    r"^([`~]{3,})([A-Za-z0-9_+#.-]+)?(,[^\r\n]+)$", re.MULTILINE
)

MARKDOWN_EXTENSIONS: tuple[str, ...] = (
    "tables",
    "fenced_code",
    "sane_lists",
    "pymdownx.tilde",
    "pymdownx.tasklist",
)
EXTENSION_CONFIGS: dict[str, dict[str, typ.Any]] = {
    "tables": {"use_align_attribute": True},
    "pymdownx.tilde": {"subscript": False},
    "pymdownx.tasklist": {"custom_checkbox": False},
}


def _load_metadata(fence: str, text: str) -> object:
    if fence == "+++":
        return tomllib.loads(text)
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    return loader.load(io.StringIO(text))


def split_front_matter(text: str) -> tuple[dict[str, typ.Any], str]:
    """Separate a leading front matter block from the Markdown body.

    Parameters
    ----------
    text : str
        Raw document text.

    Returns
    -------
    tuple[dict[str, Any], str]
        Parsed front matter and the remaining Markdown body. The block is
        always removed from the body; its metadata is empty when the document
        has none, when the block does not parse, or when it is not a mapping,
        so a half-typed block never fails the render.
    """
    match = FRONT_MATTER_PATTERN.match(text)
    if match is None:
        return {}, text
    rest = text[match.end() :]
    try:
        meta = _load_metadata(match.group("fence"), match.group("body"))
    except (YAMLError, tomllib.TOMLDecodeError) as exc:
        logger.debug("ignoring unparseable front matter: %s", exc)
        return {}, rest
    if not isinstance(meta, dict):
        return {}, rest
    return dict(meta), rest


def normalize_fenced_blocks(text: str) -> str:
    """Dedent fence markers and drop ``lang,extra`` fence label suffixes."""
    without_indent = FENCED_INDENT_PATTERN.sub(r"\1", text)

    def _strip_labels(match: re.Match[str]) -> str:
        fence, language, _extras = match.groups()
        return f"{fence}{language or ''}"

    return FENCE_LABEL_PATTERN.sub(_strip_labels, without_indent)


def markdown_to_html(text: str) -> str:
    """Render a Markdown body into an HTML fragment."""
    normalized = normalize_fenced_blocks(text)
    if not normalized.strip():
        return ""
    md = Markdown(
        extensions=list(MARKDOWN_EXTENSIONS),
        extension_configs=EXTENSION_CONFIGS,
        output_format="html",
    )
    return md.convert(normalized)


__all__ = [
    "FRONT_MATTER_PATTERN",
    "MARKDOWN_EXTENSIONS",
    "markdown_to_html",
    "normalize_fenced_blocks",
    "split_front_matter",
]
