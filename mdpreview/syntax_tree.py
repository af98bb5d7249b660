r"""Node model for the cached intermediate document tree.

The renderer turns Markdown into a tree of :class:`TextNode` and
:class:`ElementNode` values rooted at an element named ``"root"``. That tree is
cached by callers and reused for every search, so every helper here that hands
a tree to someone else returns an owned deep copy rather than a reference.

Example
-------
>>> from mdpreview.syntax_tree import from_html, text_content, to_soup
>>> tree = from_html("<p>foo <strong>bar</strong></p>")
>>> text_content(tree)
'foo bar'
>>> str(to_soup(tree))
'<p>foo <strong>bar</strong></p>'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from ._constants import ROOT_TAG

PropertyValue = str | list[str]
Properties = dict[str, PropertyValue]


@dc.dataclass(slots=True, frozen=True)
class Position:
    """Location of a node in the HTML emitted by the Markdown parser.

    Attributes
    ----------
    line : int
        1-based line number.
    column : int
        0-based column offset within ``line``.
    """

    line: int
    column: int


@dc.dataclass(slots=True)
class TextNode:
    """Leaf node holding a run of character data."""

    value: str
    position: Position | None = None


@dc.dataclass(slots=True)
class ElementNode:
    """Element with a tag name, attribute map, and ordered children.

    Attributes
    ----------
    tag_name : str
        Lowercase HTML tag name, or ``"root"`` for the document root.
    properties : dict[str, str | list[str]]
        Attribute values; ``class`` is always stored as a list of names.
    children : list[TextNode | ElementNode]
        Child nodes in document order.
    position : Position or None
        Source location when the parser reported one.
    """

    tag_name: str
    properties: Properties = dc.field(default_factory=dict)
    children: list[Node] = dc.field(default_factory=list)
    position: Position | None = None

    @property
    def class_names(self) -> list[str]:
        """Return the element's class list (empty when unset)."""
        value = self.properties.get("class")
        match value:
            case list():
                return value
            case str():
                return value.split()
            case _:
                return []


Node = TextNode | ElementNode
NodeT = typ.TypeVar("NodeT", TextNode, ElementNode)


def _copy_properties(properties: Properties) -> Properties:
    return {
        name: list(value) if isinstance(value, list) else value
        for name, value in properties.items()
    }


def clone_tree(node: NodeT) -> NodeT:
    """Return a deep value copy of ``node`` sharing no mutable state with it."""
    match node:
        case TextNode(value=value, position=position):
            return TextNode(value, position)
        case ElementNode(
            tag_name=tag_name,
            properties=properties,
            children=children,
            position=position,
        ):
            return ElementNode(
                tag_name,
                _copy_properties(properties),
                [clone_tree(child) for child in children],
                position,
            )
    msg = f"Unsupported node type: {type(node).__name__}"
    raise TypeError(msg)


def walk(node: Node) -> cabc.Iterator[Node]:
    """Yield ``node`` and its descendants depth-first in document order."""
    yield node
    if isinstance(node, ElementNode):
        for child in node.children:
            yield from walk(child)


def text_content(node: Node) -> str:
    """Concatenate the text of every text node under ``node``."""
    return "".join(
        descendant.value for descendant in walk(node) if isinstance(descendant, TextNode)
    )


def node_at(root: ElementNode, path: cabc.Sequence[int]) -> Node | None:
    """Resolve a path of child indices from ``root``; ``None`` when out of range."""
    current: Node = root
    for index in path:
        if not isinstance(current, ElementNode) or not (
            0 <= index < len(current.children)
        ):
            return None
        current = current.children[index]
    return current


def _tag_position(tag: Tag) -> Position | None:
    if tag.sourceline is None or tag.sourcepos is None:
        return None
    return Position(tag.sourceline, tag.sourcepos)


def _convert_children(parent: Tag, position: Position | None) -> list[Node]:
    children: list[Node] = []
    for child in parent.children:
        match child:
            case Tag():
                children.append(_convert_tag(child))
            case PreformattedString():
                # Comments, doctypes, CDATA and processing instructions.
                continue
            case NavigableString():
                children.append(TextNode(str(child), position))
    return children


def _convert_tag(tag: Tag) -> ElementNode:
    position = _tag_position(tag)
    properties: Properties = {}
    for name, value in tag.attrs.items():
        if isinstance(value, list):
            properties[name] = [str(item) for item in value]
        else:
            properties[name] = "" if value is None else str(value)
    return ElementNode(
        tag.name.lower(), properties, _convert_children(tag, position), position
    )


def from_html(html: str) -> ElementNode:
    """Parse an HTML fragment into an intermediate tree rooted at ``"root"``.

    Parameters
    ----------
    html : str
        HTML emitted by the Markdown parser.

    Returns
    -------
    ElementNode
        Root element whose children mirror the top-level HTML nodes.
    """
    soup = BeautifulSoup(html, "html.parser")
    return ElementNode(ROOT_TAG, {}, _convert_children(soup, None), None)


def _append_node(soup: BeautifulSoup, parent: Tag, node: Node) -> None:
    match node:
        case TextNode(value=value):
            parent.append(soup.new_string(value))
        case ElementNode(tag_name=tag_name, properties=properties, children=children):
            tag = soup.new_tag(tag_name, attrs=_copy_properties(properties))
            if node.position is not None:
                tag.sourceline = node.position.line
                tag.sourcepos = node.position.column
            parent.append(tag)
            for child in children:
                _append_node(soup, tag, child)


def to_soup(root: ElementNode) -> BeautifulSoup:
    """Build a presentable BeautifulSoup document mirroring ``root`` node for node.

    The soup never shares attribute lists with ``root``, so the caller may
    mutate or discard it freely.
    """
    soup = BeautifulSoup("", "html.parser")
    nodes = root.children if root.tag_name == ROOT_TAG else [root]
    for node in nodes:
        _append_node(soup, soup, node)
    return soup


__all__ = [
    "ElementNode",
    "Node",
    "Position",
    "Properties",
    "TextNode",
    "clone_tree",
    "from_html",
    "node_at",
    "text_content",
    "to_soup",
    "walk",
]
