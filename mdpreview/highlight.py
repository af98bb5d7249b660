r"""Re-render a cached intermediate tree with search matches marked.

Highlighting never re-parses Markdown. It deep-copies the cached tree, splits
text nodes on every occurrence of the query, and wraps each occurrence in a
``span.search-text`` element (``span.search-text-current`` for the match whose
running counter equals ``current_index``). Matches are counted in document
order across the whole tree, so callers can step through them by moving
``current_index``.

A match has to sit inside a single text node: searching ``"foo bar"`` does not
hit ``foo `bar``` because ``bar`` lives in a separate inline code element.

Example
-------
>>> from mdpreview.highlight import highlight
>>> from mdpreview.syntax_tree import from_html
>>> tree = from_html("<p>foo <strong>bar</strong> foo</p>")
>>> soup = highlight(tree, "foo", 1)
>>> [span["class"] for span in soup.select("span.search-text, span.search-text-current")]
[['search-text'], ['search-text-current']]
"""

from __future__ import annotations

import typing as typ

from ._constants import SEARCH_CLASS, SEARCH_CURRENT_CLASS
from .syntax_tree import ElementNode, Node, Position, TextNode, clone_tree, to_soup, walk

if typ.TYPE_CHECKING:
    from bs4 import BeautifulSoup
    from bs4.element import Tag


def _match_span(
    query: str, css_class: str, position: Position | None
) -> ElementNode:
    return ElementNode(
        "span", {"class": [css_class]}, [TextNode(query, position)], position
    )


def _mark_matches(
    element: ElementNode,
    query: str,
    current_index: int | None,
    class_names: tuple[str, str],
    count: int,
) -> int:
    """Replace matching text children of ``element`` recursively; return the counter."""
    match_class, current_class = class_names
    for position_in_parent, child in enumerate(element.children):
        match child:
            case TextNode(value=value, position=position):
                parts = value.split(query)
                if len(parts) <= 1:
                    continue
                fragments: list[Node] = []
                if parts[0]:
                    fragments.append(TextNode(parts[0], position))
                for rest in parts[1:]:
                    is_current = current_index is not None and count == current_index
                    css_class = current_class if is_current else match_class
                    fragments.append(_match_span(query, css_class, position))
                    count += 1
                    if rest:
                        fragments.append(TextNode(rest, position))
                # The generated span is not visited again.
                element.children[position_in_parent] = ElementNode(
                    "span", {}, fragments, position
                )
            case ElementNode():
                count = _mark_matches(child, query, current_index, class_names, count)
    return count


def highlight(
    tree: ElementNode,
    query: str,
    current_index: int | None = None,
    *,
    class_name: str = SEARCH_CLASS,
    current_class_name: str = SEARCH_CURRENT_CLASS,
) -> BeautifulSoup:
    """Return a presentable tree with every occurrence of ``query`` marked.

    Parameters
    ----------
    tree : ElementNode
        Cached intermediate tree; it is never modified.
    query : str
        Case-sensitive text to find. An empty query returns the plain
        presentable tree.
    current_index : int or None, optional
        0-based index of the match to mark as current; ``None`` marks none.
    class_name : str, optional
        Class applied to ordinary match spans.
    current_class_name : str, optional
        Class applied to the current match span.

    Returns
    -------
    BeautifulSoup
        Freshly built presentable tree.
    """
    if not query:
        return to_soup(tree)
    working = clone_tree(tree)
    _mark_matches(working, query, current_index, (class_name, current_class_name), 0)
    return to_soup(working)


def count_matches(tree: ElementNode, query: str) -> int:
    """Return how many spans :func:`highlight` would create for ``query``."""
    if not query:
        return 0
    return sum(
        node.value.count(query) for node in walk(tree) if isinstance(node, TextNode)
    )


def match_spans(
    soup: BeautifulSoup,
    *,
    class_name: str = SEARCH_CLASS,
    current_class_name: str = SEARCH_CURRENT_CLASS,
) -> list[Tag]:
    """Return the highlight spans of ``soup`` in document order."""
    return soup.find_all("span", class_=[class_name, current_class_name])


def wrap_index(index: int | None, total: int, step: int) -> int | None:
    """Move ``index`` by ``step`` over ``total`` matches, wrapping at both ends.

    Starting from ``None`` lands on the first match when stepping forward and
    on the last match when stepping backward. Returns ``None`` when there are
    no matches.
    """
    if total <= 0:
        return None
    if index is None:
        return 0 if step > 0 else total - 1
    return (index + step) % total


__all__ = ["count_matches", "highlight", "match_spans", "wrap_index"]
