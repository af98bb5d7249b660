r"""Asynchronous Markdown → intermediate tree → presentable tree pipeline.

:func:`render` runs the parse, transform, and sanitize stages in order,
yielding to the event loop between them so a newer render can supersede an
older one. The sanitized tree is snapshotted into the cached intermediate tree
before the presentable soup is built from the working copy, so the two never
share nodes.

Example
-------
>>> import asyncio
>>> from mdpreview.renderer import render
>>> result = asyncio.run(render("# Title\n\nfoo **bar**"))
>>> result.presentable_tree.h1.get_text()
'Title'
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import contextlib
import dataclasses as dc
import logging
import typing as typ

from mdpreview._constants import PLAIN_TEXT_LANGUAGES
from mdpreview.syntax_tree import ElementNode, clone_tree, from_html, to_soup

from .code_highlight import highlight_code_blocks
from .markdown_parser import markdown_to_html, split_front_matter
from .sanitizer import DEFAULT_SCHEMA, SanitizeSchema, sanitize_tree

if typ.TYPE_CHECKING:
    from bs4 import BeautifulSoup

    from mdpreview.config import RenderConfig

logger = logging.getLogger(__name__)

Stage = typ.Literal["parse", "transform", "sanitize"]


class RenderFailure(RuntimeError):
    """Raised when a render stage fails; ``stage`` names the failing stage."""

    def __init__(self, stage: Stage, message: str) -> None:
        super().__init__(f"{stage} stage failed: {message}")
        self.stage = stage


@dc.dataclass(slots=True, frozen=True)
class RenderOptions:
    """Knobs for a single render call.

    Attributes
    ----------
    plain_text_languages : frozenset[str]
        Fence languages left uncolored.
    schema : SanitizeSchema
        Allow-list applied during the sanitize stage.
    """

    plain_text_languages: frozenset[str] = PLAIN_TEXT_LANGUAGES
    schema: SanitizeSchema = DEFAULT_SCHEMA

    @classmethod
    def from_config(cls, config: RenderConfig) -> RenderOptions:
        """Build options from the ``render`` section of a preview config."""
        schema = DEFAULT_SCHEMA
        if config.extra_attributes:
            schema = schema.extend(config.extra_attributes)
        languages = frozenset(lang.lower() for lang in config.plain_text_languages)
        return cls(plain_text_languages=languages, schema=schema)


@dc.dataclass(slots=True)
class RenderResult:
    """Output of one render.

    Attributes
    ----------
    intermediate_tree : ElementNode
        Query-independent tree to cache and reuse for every search.
    presentable_tree : BeautifulSoup
        Tree ready for display, without search highlights.
    front_matter : dict[str, Any]
        Parsed front matter; empty when the document has none.
    """

    intermediate_tree: ElementNode
    presentable_tree: BeautifulSoup
    front_matter: dict[str, typ.Any] = dc.field(default_factory=dict)


@contextlib.contextmanager
def _stage(stage: Stage) -> cabc.Iterator[None]:
    """Re-raise any failure inside the block as a ``RenderFailure`` for ``stage``."""
    try:
        yield
    except RenderFailure:
        raise
    except Exception as exc:
        logger.debug("render stage %s failed", stage, exc_info=True)
        raise RenderFailure(stage, str(exc) or type(exc).__name__) from exc


async def render(text: str, *, options: RenderOptions | None = None) -> RenderResult:
    """Render Markdown into a cached intermediate tree and a presentable tree.

    Parameters
    ----------
    text : str
        Raw Markdown document, optionally starting with front matter.
    options : RenderOptions, optional
        Coloring and sanitizing options; defaults to :class:`RenderOptions`.

    Returns
    -------
    RenderResult
        The intermediate tree, the presentable soup, and the front matter.

    Raises
    ------
    RenderFailure
        If any stage fails. ``stage`` is ``"parse"``, ``"transform"``, or
        ``"sanitize"`` and the original exception is chained as the cause.
    """
    opts = options or RenderOptions()

    with _stage("parse"):
        front_matter, body = split_front_matter(text)
        html = markdown_to_html(body)
    await asyncio.sleep(0)

    with _stage("transform"):
        tree = from_html(html)
        colored = highlight_code_blocks(
            tree, plain_text_languages=opts.plain_text_languages
        )
    logger.debug("colored %d code block(s)", colored)
    await asyncio.sleep(0)

    with _stage("sanitize"):
        sanitized = sanitize_tree(tree, opts.schema)

    intermediate = clone_tree(sanitized)
    with _stage("transform"):
        presentable = to_soup(sanitized)
    return RenderResult(intermediate, presentable, front_matter)


__all__ = ["RenderFailure", "RenderOptions", "RenderResult", "Stage", "render"]
