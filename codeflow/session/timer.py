"""
Timers - Scheduling abstraction and a periodic one-second timer.

The session never sleeps or reads the wall clock directly. It asks a
Scheduler to call it back later, so tests can drive time by hand with
ManualScheduler while the server uses AsyncioScheduler.
"""

from __future__ import annotations
import asyncio
import heapq
import itertools
import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run a callback after a delay."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Handle: ...


class _ManualHandle:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Virtual clock for tests.

    Callbacks fire only when advance() moves time past their due time,
    in due-time order (ties in scheduling order).
    """

    def __init__(self):
        self.now = 0.0
        self._queue: list[tuple[float, int, _ManualHandle]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle(self.now + delay, callback)
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))
        return handle

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing every callback that falls due."""
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            when, _, handle = heapq.heappop(self._queue)
            self.now = when
            if not handle.cancelled:
                handle.callback()
        self.now = target

    @property
    def pending(self) -> int:
        """Number of callbacks still waiting to fire."""
        return sum(1 for _, _, h in self._queue if not h.cancelled)


class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class PeriodicTimer:
    """
    Fires a callback every `interval` seconds while running.

    start() on a running timer and stop() on a stopped timer do nothing,
    so at most one callback is ever pending.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        callback: Callable[[], None],
        interval: float = 1.0,
        name: str = "timer",
    ):
        self.scheduler = scheduler
        self.callback = callback
        self.interval = interval
        self.name = name
        self._handle: Handle | None = None

    @property
    def is_running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is not None:
            return
        logger.debug("Starting %s", self.name)
        self._schedule()

    def stop(self) -> None:
        if self._handle is None:
            return
        logger.debug("Stopping %s", self.name)
        self._handle.cancel()
        self._handle = None

    def _schedule(self) -> None:
        self._handle = self.scheduler.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        # Reschedule first; the callback may stop the timer
        self._schedule()
        self.callback()


class ElapsedCounter:
    """Counts whole seconds up while running (the per-puzzle clock)."""

    def __init__(self, scheduler: Scheduler, name: str = "puzzle timer"):
        self.seconds = 0
        self._timer = PeriodicTimer(scheduler, self._tick, name=name)

    @property
    def is_running(self) -> bool:
        return self._timer.is_running

    def start(self) -> None:
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    def reset(self) -> None:
        self._timer.stop()
        self.seconds = 0

    def _tick(self) -> None:
        self.seconds += 1
