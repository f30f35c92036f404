"""Tests for the clock abstraction."""

import asyncio

import pytest

from trpg_mocks.clock import FakeClock, RealClock


class TestFakeClock:
    """Tests for virtual time."""

    @pytest.mark.asyncio
    async def test_timers_fire_only_when_due(self):
        """call_later should not fire before its due time."""
        clock = FakeClock()
        fired = []
        clock.call_later(100, fired.append, "a")

        await clock.advance(99)
        assert fired == []

        await clock.advance(1)
        assert fired == ["a"]
        assert clock.now() == 100

    @pytest.mark.asyncio
    async def test_ties_fire_in_registration_order(self):
        """Timers due at the same instant should fire FIFO."""
        clock = FakeClock()
        fired = []
        for name in ["first", "second", "third"]:
            clock.call_later(50, fired.append, name)

        await clock.advance(50)

        assert fired == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_earlier_timer_fires_first(self):
        """Timers should fire in due-time order regardless of registration order."""
        clock = FakeClock()
        fired = []
        clock.call_later(30, fired.append, "late")
        clock.call_later(10, fired.append, "early")

        fired_count = await clock.advance(100)

        assert fired == ["early", "late"]
        assert fired_count == 2

    @pytest.mark.asyncio
    async def test_cancelled_timer_does_not_fire(self):
        """A cancelled timer should be skipped."""
        clock = FakeClock()
        fired = []
        timer = clock.call_later(10, fired.append, "x")
        timer.cancel()

        await clock.advance(20)

        assert fired == []
        assert not timer.active
        assert clock.pending() == 0

    @pytest.mark.asyncio
    async def test_sleep_resumes_after_advance(self):
        """sleep should resume only once the clock reaches the wake time."""
        clock = FakeClock()
        task = asyncio.ensure_future(clock.sleep(100))

        await clock.advance(50)
        assert not task.done()

        await clock.advance(50)
        assert task.done()

    @pytest.mark.asyncio
    async def test_sleep_chain_within_one_advance(self):
        """Coroutines woken during advance can schedule and reach later timers in the same window."""
        clock = FakeClock()
        steps = []

        async def worker():
            await clock.sleep(10)
            steps.append(clock.now())
            await clock.sleep(10)
            steps.append(clock.now())

        task = asyncio.ensure_future(worker())
        await clock.advance(25)

        assert steps == [10, 20]
        assert task.done()

    @pytest.mark.asyncio
    async def test_cancel_all_cancels_sleepers(self):
        """cancel_all should cancel pending sleeps and timers."""
        clock = FakeClock()
        fired = []
        clock.call_later(10, fired.append, "x")
        task = asyncio.ensure_future(clock.sleep(100))
        await clock.advance(0)

        cancelled = clock.cancel_all()

        assert cancelled == 3  # the plain timer, the sleep timer, the sleeper
        with pytest.raises(asyncio.CancelledError):
            await task
        await clock.advance(1000)
        assert fired == []
        assert clock.pending() == 0

    @pytest.mark.asyncio
    async def test_callback_error_does_not_stop_other_timers(self):
        """A failing callback should be logged and not block later timers."""
        clock = FakeClock()
        fired = []

        def boom():
            raise RuntimeError("boom")

        clock.call_later(5, boom)
        clock.call_later(5, fired.append, "ok")

        await clock.advance(5)

        assert fired == ["ok"]

    @pytest.mark.asyncio
    async def test_run_all_drains_everything(self):
        """run_all should fire every timer and jump to the last due time."""
        clock = FakeClock(start_ms=1000)
        fired = []
        clock.call_later(500, fired.append, 2)
        clock.call_later(5, fired.append, 1)

        count = await clock.run_all()

        assert count == 2
        assert fired == [1, 2]
        assert clock.now() == 1500

    def test_call_at_uses_absolute_time(self):
        """call_at should schedule relative to the current time."""
        clock = FakeClock(start_ms=200)
        timer = clock.call_at(250, lambda: None)

        assert timer.due == 250
        assert clock.pending() == 1


class TestRealClock:
    """Tests for the event-loop backed clock."""

    @pytest.mark.asyncio
    async def test_sleep_and_call_later(self):
        """RealClock should fire callbacks on the running loop."""
        clock = RealClock()
        fired = []
        clock.call_later(0, fired.append, "soon")

        await clock.sleep(5)

        assert fired == ["soon"]
        assert clock.pending() == 0

    def test_schedule_without_running_loop(self):
        """Timers scheduled outside a loop should wait for one instead of failing."""
        clock = RealClock()
        fired = []

        clock.call_later(0, fired.append, "deferred")

        assert clock.pending() == 1
        assert clock.deferred() == 1
        asyncio.run(clock.sleep(5))
        assert fired == ["deferred"]
        assert clock.pending() == 0

    def test_cancel_all_drops_deferred_timers(self):
        """cancel_all should also cancel timers still waiting for a loop."""
        clock = RealClock()
        fired = []
        clock.call_later(0, fired.append, "never")

        assert clock.cancel_all() == 1

        asyncio.run(clock.sleep(5))
        assert fired == []
        assert clock.deferred() == 0

    @pytest.mark.asyncio
    async def test_cancel_all(self):
        """cancel_all should prevent pending callbacks from running."""
        clock = RealClock()
        fired = []
        clock.call_later(20, fired.append, "late")

        assert clock.cancel_all() == 1
        await asyncio.sleep(0.05)

        assert fired == []
