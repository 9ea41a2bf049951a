"""
Tests for the scheduling primitives.
"""

import asyncio

import pytest

from ..session.timer import AsyncioScheduler, ElapsedCounter, ManualScheduler, PeriodicTimer


class TestManualScheduler:
    """Tests for the virtual clock."""

    def test_fires_in_due_order(self, scheduler):
        fired = []
        scheduler.call_later(2, lambda: fired.append("b"))
        scheduler.call_later(1, lambda: fired.append("a"))
        scheduler.call_later(2, lambda: fired.append("c"))

        scheduler.advance(5)

        assert fired == ["a", "b", "c"]
        assert scheduler.now == 5

    def test_does_not_fire_early(self, scheduler):
        fired = []
        scheduler.call_later(3, lambda: fired.append(1))

        scheduler.advance(2.5)
        assert fired == []
        assert scheduler.pending == 1

        scheduler.advance(0.5)
        assert fired == [1]

    def test_cancelled_callback_skipped(self, scheduler):
        fired = []
        handle = scheduler.call_later(1, lambda: fired.append(1))
        handle.cancel()

        scheduler.advance(2)

        assert fired == []
        assert scheduler.pending == 0


class TestPeriodicTimer:
    """Tests for the one-second timer."""

    def test_fires_every_interval(self, scheduler):
        ticks = []
        timer = PeriodicTimer(scheduler, lambda: ticks.append(scheduler.now))
        timer.start()

        scheduler.advance(3)

        assert ticks == [1, 2, 3]

    def test_start_is_idempotent(self, scheduler):
        ticks = []
        timer = PeriodicTimer(scheduler, lambda: ticks.append(1))
        timer.start()
        timer.start()

        scheduler.advance(2)

        assert len(ticks) == 2
        assert scheduler.pending == 1

    def test_stop_is_idempotent(self, scheduler):
        timer = PeriodicTimer(scheduler, lambda: None)
        timer.stop()
        timer.start()
        timer.stop()
        timer.stop()

        assert not timer.is_running
        assert scheduler.pending == 0

    def test_callback_can_stop_timer(self, scheduler):
        ticks = []

        def on_tick():
            ticks.append(1)
            if len(ticks) == 2:
                timer.stop()

        timer = PeriodicTimer(scheduler, on_tick)
        timer.start()
        scheduler.advance(10)

        assert len(ticks) == 2
        assert scheduler.pending == 0


class TestElapsedCounter:
    """Tests for the per-puzzle clock."""

    def test_counts_while_running(self, scheduler):
        counter = ElapsedCounter(scheduler)
        counter.start()
        scheduler.advance(4)
        counter.stop()
        scheduler.advance(4)

        assert counter.seconds == 4

    def test_reset(self, scheduler):
        counter = ElapsedCounter(scheduler)
        counter.start()
        scheduler.advance(3)
        counter.reset()

        assert counter.seconds == 0
        assert not counter.is_running


class TestAsyncioScheduler:
    """Tests for the event-loop scheduler."""

    @pytest.mark.asyncio
    async def test_calls_back_on_running_loop(self):
        done = asyncio.Event()
        AsyncioScheduler().call_later(0.01, done.set)

        await asyncio.wait_for(done.wait(), timeout=1)

        assert done.is_set()
