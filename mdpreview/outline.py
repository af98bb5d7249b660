"""Track which heading of a mounted document is current while it scrolls.

The host mounts the presentable tree into a scrollable viewport and exposes it
through the small :class:`MountedRoot` / :class:`MountedElement` protocols.
:class:`OutlineTracker` collects the headings synchronously whenever a new
document is mounted, and coalesces scroll events into a single pending
recomputation: each scroll cancels the handle of the previous, not-yet-run
recomputation before scheduling its own.

Example
-------
>>> from mdpreview.outline import current_heading_index
>>> current_heading_index([0, 100, 300], scroll_top=150, scroll_bottom=250)
1
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import logging
import re
import typing as typ

from ._constants import HEADING_LEVELS
from .scheduling import Callback, DelayScheduler, Handle, Scheduler, choose_scheduler
from .syntax_tree import ElementNode, text_content, walk

if typ.TYPE_CHECKING:
    from .config import OutlineConfig

logger = logging.getLogger(__name__)

HEADING_TAG_PATTERN = re.compile(r"^h([1-6])$", re.IGNORECASE)


@dc.dataclass(slots=True, frozen=True)
class Rect:
    """Bounding box of an element relative to the window."""

    top: float
    left: float
    bottom: float
    right: float


class MountedElement(typ.Protocol):
    """An element of the mounted document."""

    @property
    def tag_name(self) -> str: ...

    @property
    def text_content(self) -> str: ...

    @property
    def offset_top(self) -> float: ...

    def bounding_rect(self) -> Rect: ...

    def scroll_into_view(self, *, behavior: str, block: str, inline: str) -> None: ...


class MountedRoot(typ.Protocol):
    """The scrollable container the presentable tree is mounted into."""

    @property
    def scroll_top(self) -> float: ...

    @property
    def client_height(self) -> float: ...

    @property
    def viewport_width(self) -> float: ...

    @property
    def viewport_height(self) -> float: ...

    def headings(self) -> cabc.Iterable[MountedElement]: ...

    def last_modified(self) -> MountedElement | None: ...


@dc.dataclass(slots=True)
class HeadingRecord:
    """One heading of the outline.

    Attributes
    ----------
    level : int
        Heading level between 1 and 6.
    text : str
        Text content of the heading.
    element : object
        The mounted element (or intermediate tree node) the heading came from.
    current : bool
        Whether this heading represents the visible scroll position.
    """

    level: int
    text: str
    element: typ.Any = dc.field(repr=False, compare=False)
    current: bool = False


def heading_level(tag_name: str) -> int | None:
    """Return the level encoded in an ``h1``..``h6`` tag name, else ``None``."""
    match = HEADING_TAG_PATTERN.match(tag_name)
    return int(match.group(1)) if match else None


def current_heading_index(
    tops: cabc.Sequence[float], *, scroll_top: float, scroll_bottom: float
) -> int | None:
    """Return the index of the current heading given each heading's top offset.

    The first heading at or below ``scroll_top`` wins, unless it also starts
    below ``scroll_bottom``; then the heading before it is current because its
    section is the one on screen. ``None`` when every heading is above the
    viewport.
    """
    for index, top in enumerate(tops):
        if top >= scroll_top:
            if top >= scroll_bottom and index > 0:
                return index - 1
            return index
    return None


def collect_headings(
    root: MountedRoot, *, levels: cabc.Container[int] = HEADING_LEVELS
) -> list[HeadingRecord]:
    """Collect the mounted headings in document order and flag the current one."""
    headings: list[HeadingRecord] = []
    tops: list[float] = []
    for element in root.headings():
        level = heading_level(element.tag_name)
        if level is None or level not in levels:
            continue
        headings.append(HeadingRecord(level, element.text_content or "", element))
        tops.append(element.offset_top)

    scroll_top = root.scroll_top
    current = current_heading_index(
        tops, scroll_top=scroll_top, scroll_bottom=scroll_top + root.client_height
    )
    if current is not None:
        headings[current].current = True
    return headings


def headings_from_tree(
    tree: ElementNode, *, levels: cabc.Container[int] = HEADING_LEVELS
) -> list[HeadingRecord]:
    """Return the headings of an intermediate tree; none is marked current."""
    headings: list[HeadingRecord] = []
    for node in walk(tree):
        if not isinstance(node, ElementNode):
            continue
        level = heading_level(node.tag_name)
        if level is not None and level in levels:
            headings.append(HeadingRecord(level, text_content(node), node))
    return headings


def appears_in_viewport(rect: Rect, width: float, height: float) -> bool:
    """Return True when any part of ``rect`` overlaps the window."""
    outside = rect.bottom < 0 or height < rect.top or rect.right < 0 or width < rect.left
    return not outside


def scroll_to_last_modified(root: MountedRoot) -> bool:
    """Center the last modified element when it is outside the viewport.

    Returns
    -------
    bool
        True when a scroll was requested.
    """
    element = root.last_modified()
    if element is None:
        return False
    if appears_in_viewport(
        element.bounding_rect(), root.viewport_width, root.viewport_height
    ):
        return False
    logger.debug("scrolling to last modified element %r", element)
    element.scroll_into_view(behavior="smooth", block="center", inline="center")
    return True


class OutlineTracker:
    """Publish the heading outline of a mounted document as it scrolls."""

    def __init__(
        self,
        root: MountedRoot,
        on_headings: cabc.Callable[[list[HeadingRecord]], None],
        *,
        scheduler: Scheduler | None = None,
        levels: cabc.Container[int] = HEADING_LEVELS,
    ) -> None:
        """Attach a tracker to ``root``.

        Parameters
        ----------
        root : MountedRoot
            Mounted document to observe.
        on_headings : Callable[[list[HeadingRecord]], None]
            Receives a fresh heading list after every recomputation.
        scheduler : Scheduler, optional
            Defers scroll-driven recomputation; defaults to a
            :class:`~mdpreview.scheduling.DelayScheduler` bound to the running
            event loop, so :meth:`on_scroll` must then be called from inside a
            running loop. Pass a ``DelayScheduler(loop=...)`` or an
            :class:`~mdpreview.scheduling.IdleScheduler` otherwise.
        levels : Container[int], optional
            Heading levels included in the outline.
        """
        self._root = root
        self._on_headings = on_headings
        self._scheduler = scheduler or DelayScheduler()
        self._levels = levels
        self._pending: Handle | None = None

    @classmethod
    def from_config(
        cls,
        root: MountedRoot,
        on_headings: cabc.Callable[[list[HeadingRecord]], None],
        config: OutlineConfig,
        *,
        request_idle: cabc.Callable[[Callback], int] | None = None,
        cancel_idle: cabc.Callable[[int], None] | None = None,
    ) -> OutlineTracker:
        """Build a tracker from the ``outline`` config section.

        Idle callbacks are used when the host supplies both functions; otherwise
        recomputation runs ``config.idle_delay`` seconds after the last scroll.
        """
        scheduler = choose_scheduler(
            request_idle=request_idle,
            cancel_idle=cancel_idle,
            delay=config.idle_delay,
        )
        return cls(root, on_headings, scheduler=scheduler, levels=config.levels)

    @property
    def pending(self) -> bool:
        """Return True while a recomputation is scheduled but has not run."""
        return self._pending is not None

    def document_changed(self) -> None:
        """Recompute synchronously for a newly mounted document, then reveal the edit."""
        self._cancel_pending()
        self._recompute()
        scroll_to_last_modified(self._root)

    def on_scroll(self) -> None:
        """Replace any pending recomputation with a newly scheduled one."""
        self._cancel_pending()
        self._pending = self._scheduler.schedule(self._run_scheduled)

    def close(self) -> None:
        """Drop the pending recomputation, if any."""
        self._cancel_pending()

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            logger.debug("cancelling pending outline recomputation")
            self._pending.cancel()
            self._pending = None

    def _run_scheduled(self) -> None:
        self._pending = None
        self._recompute()

    def _recompute(self) -> None:
        self._on_headings(collect_headings(self._root, levels=self._levels))


__all__ = [
    "HeadingRecord",
    "MountedElement",
    "MountedRoot",
    "OutlineTracker",
    "Rect",
    "appears_in_viewport",
    "collect_headings",
    "current_heading_index",
    "heading_level",
    "headings_from_tree",
    "scroll_to_last_modified",
]
