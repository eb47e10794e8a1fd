"""Tests for the clock implementations."""

import asyncio

import pytest

from plant_autonomy.adapters.clock import LoopClock, VirtualClock


class TestVirtualClock:
    async def test_runs_due_callbacks_in_order(self, clock):
        fired = []
        clock.call_later(2.0, lambda: fired.append("b"))
        clock.call_later(1.0, lambda: fired.append("a"))
        clock.call_later(2.0, lambda: fired.append("c"))
        clock.call_later(5.0, lambda: fired.append("late"))

        await clock.advance(2.0)

        assert fired == ["a", "b", "c"]
        assert clock.monotonic() == 2.0
        assert clock.pending == 1

    async def test_callback_sees_its_due_time(self, clock):
        seen = []
        clock.call_later(1.5, lambda: seen.append(clock.monotonic()))

        await clock.advance(3.0)

        assert seen == [1.5]

    async def test_cancelled_callback_skipped(self, clock):
        fired = []
        handle = clock.call_later(1.0, lambda: fired.append(1))

        handle.cancel()
        await clock.advance(2.0)

        assert fired == []
        assert handle.cancelled

    async def test_awaits_coroutine_callbacks(self, clock):
        fired = []

        async def work():
            fired.append(clock.monotonic())
            clock.call_later(1.0, lambda: fired.append(clock.monotonic()))

        clock.call_later(1.0, work)
        await clock.advance(5.0)

        assert fired == [1.0, 2.0]

    async def test_negative_advance_rejected(self, clock):
        with pytest.raises(ValueError):
            await clock.advance(-1)


class TestLoopClock:
    async def test_runs_sync_and_async_callbacks(self):
        clock = LoopClock()
        fired = []

        async def work():
            fired.append("async")

        clock.call_later(0.01, lambda: fired.append("sync"))
        clock.call_later(0.02, work)
        await asyncio.sleep(0.05)
        await clock.drain()

        assert fired == ["sync", "async"]
        assert clock.pending_tasks == 0

    async def test_cancel_prevents_callback(self):
        clock = LoopClock()
        fired = []

        handle = clock.call_later(0.01, lambda: fired.append(1))
        handle.cancel()
        await asyncio.sleep(0.03)

        assert fired == []

    async def test_failing_task_is_contained(self):
        clock = LoopClock()

        async def broken():
            raise RuntimeError("boom")

        clock.call_later(0.0, broken)
        await asyncio.sleep(0.01)
        await clock.drain()

        assert clock.pending_tasks == 0

    def test_now_is_utc(self):
        assert LoopClock().now().tzinfo is not None
