r"""Hold the rendered state of one previewed document.

:class:`PreviewDocument` owns the cached intermediate tree of the latest
render and re-derives the presentable tree whenever the search query or the
current match changes. Loads are versioned: when a newer load starts while an
older one is still rendering, the older render is cancelled and its result is
never applied.

Example
-------
>>> import asyncio
>>> from mdpreview.preview import PreviewDocument
>>> doc = PreviewDocument()
>>> _ = asyncio.run(doc.load("foo **bar** foo"))
>>> doc.search("foo")
>>> doc.match_count
2
>>> doc.next_match(); doc.next_match()
>>> doc.match_index
1
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import logging
import typing as typ

from ._constants import SEARCH_CLASS, SEARCH_CURRENT_CLASS
from .highlight import count_matches, highlight, wrap_index
from .outline import HeadingRecord, headings_from_tree
from .renderer import RenderOptions, RenderResult, render
from .syntax_tree import ElementNode

if typ.TYPE_CHECKING:
    from bs4 import BeautifulSoup

    from .config import PreviewConfig

logger = logging.getLogger(__name__)


def _element_children(node: ElementNode) -> list[tuple[int, ElementNode]]:
    return [
        (index, child)
        for index, child in enumerate(node.children)
        if isinstance(child, ElementNode)
    ]


def _first_difference(
    old: cabc.Sequence[ElementNode], new: cabc.Sequence[ElementNode]
) -> int | None:
    for index, (before, after) in enumerate(zip(old, new, strict=False)):
        if before != after:
            return index
    if len(old) != len(new):
        return min(len(old), len(new))
    return None


def find_last_modified(
    previous: ElementNode | None, current: ElementNode
) -> tuple[int, ...] | None:
    """Locate the element that changed between two renders of a document.

    Parameters
    ----------
    previous : ElementNode or None
        Intermediate tree of the prior render.
    current : ElementNode
        Intermediate tree of the new render.

    Returns
    -------
    tuple[int, ...] or None
        Child-index path from ``current`` to the first differing element,
        descending while the changed element kept its tag and sibling count.
        When elements were only removed at the end, the path points at the
        new last element. ``None`` when there is no previous tree or nothing
        changed at the element level.
    """
    if previous is None:
        return None
    path: list[int] = []
    old, new = previous, current
    while True:
        old_children = _element_children(old)
        new_children = _element_children(new)
        index = _first_difference(
            [child for _, child in old_children], [child for _, child in new_children]
        )
        if index is None:
            break
        if index >= len(new_children):
            if new_children:
                path.append(new_children[-1][0])
            break
        path.append(new_children[index][0])
        if len(old_children) != len(new_children):
            break
        old_child = old_children[index][1]
        new_child = new_children[index][1]
        if old_child.tag_name != new_child.tag_name:
            break
        old, new = old_child, new_child
    return tuple(path) or None


class PreviewDocument:
    """Cached render plus search state for a single document."""

    def __init__(
        self,
        *,
        options: RenderOptions | None = None,
        class_name: str = SEARCH_CLASS,
        current_class_name: str = SEARCH_CURRENT_CLASS,
    ) -> None:
        self._options = options or RenderOptions()
        self._class_name = class_name
        self._current_class_name = current_class_name
        self._version = 0
        self._task: asyncio.Task[RenderResult] | None = None
        self.result: RenderResult | None = None
        self.last_modified: tuple[int, ...] | None = None
        self.query = ""
        self.match_index: int | None = None
        self.match_count = 0
        self.presentable: BeautifulSoup | None = None

    @classmethod
    def from_config(cls, config: PreviewConfig) -> PreviewDocument:
        """Build a document using the render and search sections of ``config``."""
        return cls(
            options=RenderOptions.from_config(config.render),
            class_name=config.search.class_name,
            current_class_name=config.search.current_class_name,
        )

    @property
    def tree(self) -> ElementNode | None:
        """Return the cached intermediate tree of the latest applied render."""
        return self.result.intermediate_tree if self.result else None

    @property
    def version(self) -> int:
        """Return the version number of the most recent load request."""
        return self._version

    async def load(self, text: str) -> RenderResult | None:
        """Render ``text`` and apply it unless a newer load superseded it.

        Returns
        -------
        RenderResult or None
            The applied result, or ``None`` when a newer load took over.

        Raises
        ------
        RenderFailure
            If rendering fails; the previously applied render stays in place.
        """
        self._version += 1
        version = self._version
        if self._task is not None and not self._task.done():
            logger.debug("superseding in-flight render for version %d", version - 1)
            self._task.cancel()
        task = asyncio.ensure_future(render(text, options=self._options))
        self._task = task
        try:
            result = await task
        except asyncio.CancelledError:
            if version != self._version:
                return None
            raise
        finally:
            if self._task is task:
                self._task = None
        if version != self._version:
            logger.debug("discarding stale render for version %d", version)
            return None

        self.last_modified = find_last_modified(self.tree, result.intermediate_tree)
        self.result = result
        self._refresh()
        return result

    def search(self, query: str) -> None:
        """Start a new search; no match is current until the user navigates."""
        self.query = query
        self.match_index = None
        self._refresh()

    def next_match(self) -> None:
        """Make the following match current, wrapping after the last one."""
        self.match_index = wrap_index(self.match_index, self.match_count, 1)
        self._refresh()

    def previous_match(self) -> None:
        """Make the preceding match current, wrapping before the first one."""
        self.match_index = wrap_index(self.match_index, self.match_count, -1)
        self._refresh()

    def select_match(self, index: int | None) -> None:
        """Make match ``index`` current, clamped into range; ``None`` clears it."""
        if index is None or self.match_count == 0:
            self.match_index = None
        else:
            self.match_index = min(max(index, 0), self.match_count - 1)
        self._refresh()

    def headings(self) -> list[HeadingRecord]:
        """Return the outline of the cached tree (no heading is current)."""
        tree = self.tree
        return headings_from_tree(tree) if tree is not None else []

    def _refresh(self) -> None:
        tree = self.tree
        if tree is None:
            self.match_count = 0
            self.match_index = None
            self.presentable = None
            return
        self.match_count = count_matches(tree, self.query)
        if self.match_index is not None and self.match_index >= self.match_count:
            self.match_index = self.match_count - 1 if self.match_count else None
        self.presentable = highlight(
            tree,
            self.query,
            self.match_index,
            class_name=self._class_name,
            current_class_name=self._current_class_name,
        )


__all__ = ["PreviewDocument", "find_last_modified"]
