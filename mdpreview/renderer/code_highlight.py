"""Static syntax coloring of fenced code blocks inside the intermediate tree."""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

from pygments.formatters.html import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.token import STANDARD_TYPES
from pygments.util import ClassNotFound

from mdpreview._constants import CODE_BLOCK_CLASS, CODE_CLASS, PLAIN_TEXT_LANGUAGES
from mdpreview.syntax_tree import ElementNode, Node, TextNode, text_content, walk

if typ.TYPE_CHECKING:
    from pygments.lexer import Lexer
    from pygments.token import _TokenType

LANGUAGE_PREFIX = "language-"


def stylesheet(style: str) -> str:
    """Return the CSS rules that color highlighted code blocks for ``style``."""
    formatter = HtmlFormatter(style=style, cssclass=CODE_BLOCK_CLASS)
    return formatter.get_style_defs(f".{CODE_BLOCK_CLASS}")


def _token_class(ttype: _TokenType) -> str:
    """Return the short Pygments class for ``ttype``, walking up to a known parent."""
    while ttype not in STANDARD_TYPES:
        ttype = ttype.parent
    return STANDARD_TYPES[ttype]


def _block_language(code: ElementNode) -> str | None:
    for name in code.class_names:
        if name.startswith(LANGUAGE_PREFIX):
            return name[len(LANGUAGE_PREFIX) :] or None
    return None


def _resolve_lexer(language: str) -> Lexer | None:
    try:
        return get_lexer_by_name(language, stripnl=False, ensurenl=False)
    except ClassNotFound:
        return None


def _colored_children(code: ElementNode, lexer: Lexer) -> list[Node]:
    """Tokenize the block text into runs of text and classed ``span`` elements."""
    runs: list[tuple[str, str]] = []
    for ttype, value in lexer.get_tokens(text_content(code)):
        if not value:
            continue
        css_class = _token_class(ttype)
        if runs and runs[-1][0] == css_class:
            runs[-1] = (css_class, runs[-1][1] + value)
        else:
            runs.append((css_class, value))

    children: list[Node] = []
    for css_class, value in runs:
        text = TextNode(value, code.position)
        if css_class:
            children.append(
                ElementNode("span", {"class": [css_class]}, [text], code.position)
            )
        else:
            children.append(text)
    return children


def _code_blocks(root: ElementNode) -> cabc.Iterator[tuple[ElementNode, ElementNode]]:
    for node in walk(root):
        if not isinstance(node, ElementNode) or node.tag_name != "pre":
            continue
        for child in node.children:
            if isinstance(child, ElementNode) and child.tag_name == "code":
                yield node, child
                break


def highlight_code_blocks(
    root: ElementNode,
    *,
    plain_text_languages: cabc.Collection[str] = PLAIN_TEXT_LANGUAGES,
) -> int:
    """Color every ``pre > code.language-*`` block of ``root`` in place.

    Parameters
    ----------
    root : ElementNode
        Working tree produced by the transform stage.
    plain_text_languages : Collection[str], optional
        Language names rendered without coloring.

    Returns
    -------
    int
        Number of blocks that were colored. Blocks without a language, with a
        plain-text language, or with a language Pygments does not know are
        left untouched.
    """
    colored = 0
    for pre, code in list(_code_blocks(root)):
        language = _block_language(code)
        if language is None or language.lower() in plain_text_languages:
            continue
        lexer = _resolve_lexer(language)
        if lexer is None:
            continue
        code.children = _colored_children(code, lexer)
        if CODE_CLASS not in code.class_names:
            code.properties["class"] = [*code.class_names, CODE_CLASS]
        if CODE_BLOCK_CLASS not in pre.class_names:
            pre.properties["class"] = [*pre.class_names, CODE_BLOCK_CLASS]
        colored += 1
    return colored


__all__ = ["highlight_code_blocks", "stylesheet"]
