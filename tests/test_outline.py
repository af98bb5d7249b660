"""Tests for the viewport outline tracker.

The mounted document is modelled with small dataclasses implementing the
``MountedRoot``/``MountedElement`` protocols, and scroll coalescing is checked
with a manual scheduler that records and cancels handles.
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import dataclasses as dc

import pytest

from mdpreview.config import OutlineConfig
from mdpreview.outline import (
    HeadingRecord,
    OutlineTracker,
    Rect,
    appears_in_viewport,
    collect_headings,
    current_heading_index,
    heading_level,
    headings_from_tree,
    scroll_to_last_modified,
)
from mdpreview.scheduling import DelayScheduler, IdleScheduler, choose_scheduler
from mdpreview.syntax_tree import from_html


@dc.dataclass
class FakeElement:
    tag_name: str
    text_content: str = ""
    offset_top: float = 0.0
    rect: Rect = dc.field(default_factory=lambda: Rect(10, 10, 20, 20))
    scrolls: list[dict[str, str]] = dc.field(default_factory=list)

    def bounding_rect(self) -> Rect:
        return self.rect

    def scroll_into_view(self, *, behavior: str, block: str, inline: str) -> None:
        self.scrolls.append({"behavior": behavior, "block": block, "inline": inline})


@dc.dataclass
class FakeRoot:
    elements: list[FakeElement] = dc.field(default_factory=list)
    scroll_top: float = 0.0
    client_height: float = 100.0
    viewport_width: float = 800.0
    viewport_height: float = 600.0
    modified: FakeElement | None = None

    def headings(self) -> cabc.Iterable[FakeElement]:
        return list(self.elements)

    def last_modified(self) -> FakeElement | None:
        return self.modified


@dc.dataclass
class FakeHandle:
    callback: cabc.Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dc.dataclass
class ManualScheduler:
    handles: list[FakeHandle] = dc.field(default_factory=list)

    def schedule(self, callback: cabc.Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(callback)
        self.handles.append(handle)
        return handle

    def run_pending(self) -> None:
        for handle in list(self.handles):
            if not handle.cancelled:
                handle.callback()
        self.handles.clear()


def _three_headings() -> FakeRoot:
    return FakeRoot(
        [
            FakeElement("H1", "Intro", 0),
            FakeElement("H2", "Install", 100),
            FakeElement("H2", "Usage", 300),
        ]
    )


@pytest.mark.parametrize(
    ("tag_name", "expected"),
    [("h1", 1), ("H6", 6), ("h7", None), ("header", None), ("p", None)],
)
def test_heading_level(tag_name: str, expected: int | None) -> None:
    assert heading_level(tag_name) == expected


@pytest.mark.parametrize(
    ("scroll_top", "scroll_bottom", "expected"),
    [
        (150, 250, 1),
        (0, 50, 0),
        (50, 400, 1),
        (310, 410, None),
        (120, 200, 1),
    ],
)
def test_current_heading_index(
    scroll_top: float, scroll_bottom: float, expected: int | None
) -> None:
    """The section on screen is current even when its heading scrolled past."""
    tops = [0, 100, 300]
    assert (
        current_heading_index(tops, scroll_top=scroll_top, scroll_bottom=scroll_bottom)
        == expected
    )


def test_collect_headings_marks_current() -> None:
    root = _three_headings()
    root.scroll_top = 150
    headings = collect_headings(root)
    assert [(h.level, h.text, h.current) for h in headings] == [
        (1, "Intro", False),
        (2, "Install", True),
        (2, "Usage", False),
    ]


def test_collect_headings_none_current_past_last_heading() -> None:
    root = _three_headings()
    root.scroll_top = 500
    assert not any(h.current for h in collect_headings(root))


def test_collect_headings_respects_levels() -> None:
    root = _three_headings()
    headings = collect_headings(root, levels=(1,))
    assert [h.text for h in headings] == ["Intro"]


def test_headings_from_tree() -> None:
    tree = from_html("<h1>Top</h1><p>x</p><section><h3>Deep <em>one</em></h3></section>")
    headings = headings_from_tree(tree)
    assert headings == [HeadingRecord(1, "Top", None), HeadingRecord(3, "Deep one", None)]
    assert not any(h.current for h in headings)


@pytest.mark.parametrize(
    ("rect", "visible"),
    [
        (Rect(10, 10, 20, 20), True),
        (Rect(-50, 0, -1, 10), False),
        (Rect(700, 0, 720, 10), False),
        (Rect(0, 900, 10, 950), False),
        (Rect(-10, -10, 5, 5), True),
    ],
)
def test_appears_in_viewport(rect: Rect, visible: bool) -> None:
    assert appears_in_viewport(rect, 800, 600) is visible


def test_scroll_to_last_modified_scrolls_hidden_element() -> None:
    element = FakeElement("p", rect=Rect(900, 0, 950, 100))
    root = FakeRoot(modified=element)
    assert scroll_to_last_modified(root) is True
    assert element.scrolls == [
        {"behavior": "smooth", "block": "center", "inline": "center"}
    ]


def test_scroll_to_last_modified_skips_visible_or_missing() -> None:
    element = FakeElement("p")
    assert scroll_to_last_modified(FakeRoot(modified=element)) is False
    assert element.scrolls == []
    assert scroll_to_last_modified(FakeRoot()) is False


def test_scrolls_are_coalesced_into_one_recompute() -> None:
    """Two scrolls before the scheduled work runs produce one recomputation."""
    scheduler = ManualScheduler()
    published: list[list[HeadingRecord]] = []
    tracker = OutlineTracker(_three_headings(), published.append, scheduler=scheduler)

    tracker.on_scroll()
    tracker.on_scroll()
    assert tracker.pending
    first, second = scheduler.handles
    assert first.cancelled
    assert not second.cancelled

    scheduler.run_pending()
    assert len(published) == 1
    assert not tracker.pending


def test_document_changed_recomputes_synchronously() -> None:
    """A structural change publishes immediately and drops pending work."""
    scheduler = ManualScheduler()
    published: list[list[HeadingRecord]] = []
    root = _three_headings()
    root.modified = FakeElement("p", rect=Rect(-100, 0, -50, 10))
    tracker = OutlineTracker(root, published.append, scheduler=scheduler)

    tracker.on_scroll()
    tracker.document_changed()
    assert len(published) == 1
    assert [h.text for h in published[0]] == ["Intro", "Install", "Usage"]
    assert scheduler.handles[0].cancelled
    assert not tracker.pending
    assert root.modified.scrolls, "expected the edit to be scrolled into view"


def test_close_cancels_pending() -> None:
    scheduler = ManualScheduler()
    tracker = OutlineTracker(_three_headings(), lambda _: None, scheduler=scheduler)
    tracker.on_scroll()
    tracker.close()
    assert scheduler.handles[0].cancelled
    assert not tracker.pending


def test_delay_scheduler_coalesces_on_event_loop() -> None:
    """The asyncio fallback runs only the last scheduled recomputation."""
    published: list[list[HeadingRecord]] = []

    async def scenario() -> None:
        root = _three_headings()
        tracker = OutlineTracker(
            root, published.append, scheduler=DelayScheduler(delay=0.01)
        )
        tracker.on_scroll()
        root.scroll_top = 150
        tracker.on_scroll()
        await asyncio.sleep(0.05)
        assert not tracker.pending

    asyncio.run(scenario())
    assert len(published) == 1
    assert [h.current for h in published[0]] == [False, True, False]


def test_choose_scheduler_prefers_idle_callbacks() -> None:
    requested: list[cabc.Callable[[], None]] = []
    cancelled: list[int] = []

    def request_idle(callback: cabc.Callable[[], None]) -> int:
        requested.append(callback)
        return len(requested)

    scheduler = choose_scheduler(request_idle=request_idle, cancel_idle=cancelled.append)
    assert isinstance(scheduler, IdleScheduler)
    handle = scheduler.schedule(lambda: None)
    handle.cancel()
    assert cancelled == [1]
    assert isinstance(choose_scheduler(), DelayScheduler)


def test_tracker_from_config_uses_delay_and_levels() -> None:
    """The outline config section sets the fallback delay and heading levels."""
    published: list[list[HeadingRecord]] = []

    async def scenario() -> None:
        tracker = OutlineTracker.from_config(
            _three_headings(),
            published.append,
            OutlineConfig(idle_delay=0.01, levels=[2]),
        )
        tracker.on_scroll()
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert [h.text for h in published[0]] == ["Install", "Usage"]


def test_default_scheduler_needs_running_loop() -> None:
    """Outside a running loop the default scheduler cannot defer work."""
    tracker = OutlineTracker(_three_headings(), lambda _: None)
    with pytest.raises(RuntimeError):
        tracker.on_scroll()
    assert not tracker.pending


def test_delay_scheduler_with_explicit_loop() -> None:
    """An explicit loop lets scrolls be scheduled before the loop runs."""
    published: list[list[HeadingRecord]] = []
    loop = asyncio.new_event_loop()
    try:
        tracker = OutlineTracker(
            _three_headings(),
            published.append,
            scheduler=DelayScheduler(delay=0.01, loop=loop),
        )
        tracker.on_scroll()
        assert tracker.pending
        loop.run_until_complete(asyncio.sleep(0.05))
    finally:
        loop.close()
    assert len(published) == 1
    assert not tracker.pending
