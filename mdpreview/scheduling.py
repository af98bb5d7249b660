"""Deferred-callback schedulers used to coalesce outline recomputation.

Hosts that expose idle callbacks (``request_idle`` / ``cancel_idle`` style
functions) get an :class:`IdleScheduler`; everything else falls back to a
:class:`DelayScheduler` that runs the callback after a short fixed delay on
the asyncio event loop.
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import typing as typ

from ._constants import IDLE_FALLBACK_DELAY

Callback = cabc.Callable[[], None]


class Handle(typ.Protocol):
    """A scheduled callback that can still be cancelled."""

    def cancel(self) -> None: ...


class Scheduler(typ.Protocol):
    """Something that runs a callback later and returns a cancellable handle."""

    def schedule(self, callback: Callback) -> Handle: ...


class _IdleHandle:
    def __init__(self, ident: int, cancel_idle: cabc.Callable[[int], None]) -> None:
        self.ident = ident
        self._cancel_idle = cancel_idle

    def cancel(self) -> None:
        self._cancel_idle(self.ident)


class IdleScheduler:
    """Schedule callbacks through a host's idle-callback functions."""

    def __init__(
        self,
        request_idle: cabc.Callable[[Callback], int],
        cancel_idle: cabc.Callable[[int], None],
    ) -> None:
        self._request_idle = request_idle
        self._cancel_idle = cancel_idle

    def schedule(self, callback: Callback) -> Handle:
        return _IdleHandle(self._request_idle(callback), self._cancel_idle)


class DelayScheduler:
    """Schedule callbacks ``delay`` seconds later on an asyncio event loop.

    Without an explicit ``loop`` the running loop is used at schedule time,
    and :meth:`schedule` raises ``RuntimeError`` when no loop is running.
    """

    def __init__(
        self,
        delay: float = IDLE_FALLBACK_DELAY,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.delay = delay
        self._loop = loop

    def schedule(self, callback: Callback) -> Handle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(self.delay, callback)


def choose_scheduler(
    *,
    request_idle: cabc.Callable[[Callback], int] | None = None,
    cancel_idle: cabc.Callable[[int], None] | None = None,
    delay: float = IDLE_FALLBACK_DELAY,
    loop: asyncio.AbstractEventLoop | None = None,
) -> Scheduler:
    """Prefer idle scheduling when the host provides both idle functions."""
    if request_idle is not None and cancel_idle is not None:
        return IdleScheduler(request_idle, cancel_idle)
    return DelayScheduler(delay, loop)


__all__ = [
    "Callback",
    "DelayScheduler",
    "Handle",
    "IdleScheduler",
    "Scheduler",
    "choose_scheduler",
]
