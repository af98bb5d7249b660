"""Keyboard-driven filterable list used for outline and command pickers.

:class:`Palette` keeps a query and a selected index over caller-supplied items
without ever mutating them. The selected index is stored as typed and clamped
on read against the filtered sequence, so narrowing the query never loses the
user's position once the list grows again.

Example
-------
>>> from types import SimpleNamespace
>>> from mdpreview.palette import KeyPress, Palette
>>> items = [SimpleNamespace(text=t) for t in ("Intro", "Install", "Usage")]
>>> chosen = []
>>> palette = Palette(items, on_select=chosen.append)
>>> palette.set_query("IN")
>>> [item.text for item in palette.filtered_items]
['Intro', 'Install']
>>> palette.handle_key(KeyPress("ArrowDown"))
True
>>> palette.handle_key(KeyPress("Enter"))
True
>>> chosen[0].text
'Install'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import logging
import operator
import typing as typ

logger = logging.getLogger(__name__)

T = typ.TypeVar("T")
ScrollBlock = typ.Literal["center", "nearest"]


class Labeled(typ.Protocol):
    """Item shape accepted by the default label extractor."""

    @property
    def text(self) -> str: ...


_default_label: cabc.Callable[[Labeled], str] = operator.attrgetter("text")


@dc.dataclass(frozen=True, slots=True)
class KeyPress:
    """A key event delivered to the palette input.

    Attributes
    ----------
    key : str
        DOM-style key name such as ``"ArrowDown"``, ``"Enter"``, or ``"n"``.
    ctrl : bool
        Whether the Control modifier was held.
    shift : bool
        Whether the Shift modifier was held.
    """

    key: str
    ctrl: bool = False
    shift: bool = False


@dc.dataclass(slots=True)
class PaletteState:
    """Raw selection state: the query as typed and the unclamped index."""

    query: str = ""
    selected_index: int = 0


def filter_items(
    items: cabc.Sequence[T],
    query: str,
    label: cabc.Callable[[T], str] = _default_label,
) -> list[T]:
    """Return the items whose label contains ``query``, ignoring case.

    An empty query keeps every item in its original order.
    """
    if not query:
        return list(items)
    needle = query.lower()
    return [item for item in items if needle in label(item).lower()]


def clamp_index(selected_index: int, length: int) -> int:
    """Clamp ``selected_index`` into ``[0, length)``; ``0`` for an empty sequence."""
    if selected_index < length:
        return selected_index
    return length - 1 if length > 0 else 0


def scroll_block(index: int, length: int) -> ScrollBlock:
    """Return the alignment used to bring the item at ``index`` into view."""
    return "center" if index in (0, length - 1) else "nearest"


class Palette(typ.Generic[T]):
    """Filterable, wrap-around selection over an ordered sequence of items."""

    def __init__(
        self,
        items: cabc.Sequence[T],
        *,
        on_select: cabc.Callable[[T], None],
        on_close: cabc.Callable[[], None] | None = None,
        on_scroll: cabc.Callable[[T, ScrollBlock], None] | None = None,
        label: cabc.Callable[[T], str] = _default_label,
    ) -> None:
        """Open a palette over ``items``.

        Parameters
        ----------
        items : Sequence[T]
            Items to choose from; never modified.
        on_select : Callable[[T], None]
            Receives the confirmed item.
        on_close : Callable[[], None], optional
            Called once when the palette closes, after ``on_select`` when an
            item was confirmed.
        on_scroll : Callable[[T, ScrollBlock], None], optional
            Asked to scroll the focused item into view whenever focus moves.
        label : Callable[[T], str], optional
            Extracts the text matched against the query; defaults to the
            item's ``text`` attribute.
        """
        self._items = items
        self._label = label
        self._on_select = on_select
        self._on_close = on_close
        self._on_scroll = on_scroll
        self.state = PaletteState()
        self.closed = False
        self._focus: tuple[int, int] | None = None
        self._notify_focus()

    @property
    def query(self) -> str:
        """Return the current (lowercased) query."""
        return self.state.query

    @property
    def filtered_items(self) -> list[T]:
        """Return the items matching the current query."""
        return filter_items(self._items, self.state.query, self._label)

    @property
    def clamped_index(self) -> int:
        """Return the selected index, valid against :attr:`filtered_items`."""
        return clamp_index(self.state.selected_index, len(self.filtered_items))

    @property
    def selected_item(self) -> T | None:
        """Return the focused item, or ``None`` when nothing matches."""
        items = self.filtered_items
        index = clamp_index(self.state.selected_index, len(items))
        return items[index] if index < len(items) else None

    def set_query(self, text: str) -> None:
        """Replace the query; the selected index is left as it was."""
        if self.closed:
            return
        self.state.query = text.lower()
        self._notify_focus()

    def advance(self) -> None:
        """Move focus to the next item, wrapping to the first."""
        length = len(self.filtered_items)
        if self.closed or length == 0:
            return
        self._select((self.clamped_index + 1) % length)

    def retreat(self) -> None:
        """Move focus to the previous item, wrapping to the last."""
        length = len(self.filtered_items)
        if self.closed or length == 0:
            return
        self._select((self.clamped_index - 1 + length) % length)

    def jump_to_end(self) -> None:
        """Focus the last item."""
        if self.closed:
            return
        self._select(max(len(self.filtered_items) - 1, 0))

    def jump_to_start(self) -> None:
        """Focus the first item."""
        if self.closed:
            return
        self._select(0)

    def confirm(self) -> T | None:
        """Emit the focused item and close; no-op when nothing matches."""
        if self.closed:
            return None
        item = self.selected_item
        if item is None:
            return None
        self.select(item)
        return item

    def select(self, item: T) -> None:
        """Emit ``item`` (for example a clicked row) and close."""
        if self.closed:
            return
        self._on_select(item)
        self._close()

    def cancel(self) -> None:
        """Close without emitting an item."""
        if not self.closed:
            self._close()

    def handle_key(self, press: KeyPress) -> bool:
        """Apply a key press; return True when the palette consumed it."""
        if self.closed:
            return False
        match press:
            case (
                KeyPress(key="n", ctrl=True, shift=False)
                | KeyPress(key="ArrowDown", ctrl=False)
                | KeyPress(key="Tab", shift=False)
            ):
                self.advance()
            case (
                KeyPress(key="p", ctrl=True, shift=False)
                | KeyPress(key="ArrowUp", ctrl=False)
                | KeyPress(key="Tab", shift=True)
            ):
                self.retreat()
            case KeyPress(key="ArrowDown", ctrl=True):
                self.jump_to_end()
            case KeyPress(key="ArrowUp", ctrl=True):
                self.jump_to_start()
            case KeyPress(key="Enter"):
                self.confirm()
            case KeyPress(key="Escape"):
                self.cancel()
            case _:
                return False
        return True

    def _select(self, index: int) -> None:
        self.state.selected_index = index
        self._notify_focus()

    def _close(self) -> None:
        self.closed = True
        if self._on_close is not None:
            self._on_close()

    def _notify_focus(self) -> None:
        """Request a scroll when the focused index or the item under it changes."""
        items = self.filtered_items
        index = clamp_index(self.state.selected_index, len(items))
        if index >= len(items):
            self._focus = None
            return
        item = items[index]
        focus = (index, id(item))
        if focus == self._focus:
            return
        self._focus = focus
        if self._on_scroll is not None:
            block = scroll_block(index, len(items))
            logger.debug("scrolling palette item %d into view (%s)", index, block)
            self._on_scroll(item, block)


__all__ = [
    "KeyPress",
    "Labeled",
    "Palette",
    "PaletteState",
    "ScrollBlock",
    "clamp_index",
    "filter_items",
    "scroll_block",
]
