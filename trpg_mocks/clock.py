"""Clock abstraction used for every simulated delay.

All simulators schedule work through a :class:`Clock` instead of calling
``asyncio.sleep`` or ``loop.call_later`` directly. :class:`RealClock` runs on
the asyncio event loop; :class:`FakeClock` keeps virtual time that tests move
forward with :meth:`FakeClock.advance`. Both track every outstanding timer so
that :meth:`Clock.cancel_all` leaves nothing behind after teardown.
"""

import asyncio
import heapq
import itertools
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable

logger = logging.getLogger(__name__)

# Event loop passes given to woken coroutines after each fake timer fires.
SETTLE_PASSES = 20


class Timer:
    """Handle for a scheduled callback."""

    def __init__(self, clock: "Clock", due: float, callback: Callable[..., Any], args: tuple):
        self.clock = clock
        self.due = due
        self._callback = callback
        self._args = args
        self.cancelled = False
        self.fired = False
        self._handle: asyncio.TimerHandle | None = None

    def cancel(self) -> None:
        if self.cancelled or self.fired:
            return
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()
        self.clock._forget(self)

    def _fire(self) -> None:
        if self.cancelled or self.fired:
            return
        self.fired = True
        self.clock._forget(self)
        try:
            self._callback(*self._args)
        except Exception:
            logger.exception(f"Timer callback {self._callback!r} failed")

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)


class Clock(ABC):
    """Source of time and scheduled callbacks for the simulators."""

    def __init__(self):
        self._timers: set[Timer] = set()
        self._sleepers: set[asyncio.Future] = set()

    @abstractmethod
    def now(self) -> float:
        """Current time in milliseconds."""
        pass

    @abstractmethod
    def _schedule(self, timer: Timer, delay_ms: float) -> None:
        pass

    def call_later(self, delay_ms: float, callback: Callable[..., Any], *args: Any) -> Timer:
        """Run ``callback(*args)`` after ``delay_ms`` milliseconds."""
        delay_ms = max(0.0, float(delay_ms))
        timer = Timer(self, self.now() + delay_ms, callback, args)
        self._timers.add(timer)
        self._schedule(timer, delay_ms)
        return timer

    def call_at(self, due_ms: float, callback: Callable[..., Any], *args: Any) -> Timer:
        """Run ``callback(*args)`` at absolute clock time ``due_ms``."""
        return self.call_later(due_ms - self.now(), callback, *args)

    async def sleep(self, delay_ms: float) -> None:
        """Suspend the caller for ``delay_ms`` milliseconds of clock time.

        Raises:
            asyncio.CancelledError: If :meth:`cancel_all` runs while sleeping.
        """
        if delay_ms <= 0:
            await asyncio.sleep(0)
            return

        future = asyncio.get_running_loop().create_future()
        self._sleepers.add(future)

        def wake() -> None:
            if not future.done():
                future.set_result(None)

        timer = self.call_later(delay_ms, wake)
        try:
            await future
        finally:
            timer.cancel()
            self._sleepers.discard(future)

    def pending(self) -> int:
        """Number of timers that have neither fired nor been cancelled."""
        return len(self._timers)

    def cancel_all(self) -> int:
        """Cancel every outstanding timer and sleep. Returns how many were cancelled."""
        timers = list(self._timers)
        for timer in timers:
            timer.cancel()
        sleepers = [f for f in self._sleepers if not f.done()]
        for future in sleepers:
            future.cancel()
        self._sleepers.clear()
        if timers or sleepers:
            logger.debug(f"Cancelled {len(timers)} timers and {len(sleepers)} sleepers")
        return len(timers) + len(sleepers)

    def _forget(self, timer: Timer) -> None:
        self._timers.discard(timer)


class RealClock(Clock):
    """Wall-clock time driven by the running asyncio loop.

    Timers scheduled while no loop is running stay pending and are attached
    to the loop the next time the clock is used from inside one.
    """

    def __init__(self):
        super().__init__()
        self._deferred: list[Timer] = []

    def now(self) -> float:
        return time.monotonic() * 1000.0

    def _schedule(self, timer: Timer, delay_ms: float) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._deferred.append(timer)
            logger.debug(f"No running event loop; deferring timer due at {timer.due:.0f}")
            return
        self._attach_deferred(loop)
        self._attach(loop, timer, delay_ms)

    def _attach(self, loop: asyncio.AbstractEventLoop, timer: Timer, delay_ms: float) -> None:
        if delay_ms <= 0:
            timer._handle = loop.call_soon(timer._fire)
        else:
            timer._handle = loop.call_later(delay_ms / 1000.0, timer._fire)

    def _attach_deferred(self, loop: asyncio.AbstractEventLoop) -> None:
        deferred, self._deferred = self._deferred, []
        for timer in deferred:
            if timer.active:
                self._attach(loop, timer, timer.due - self.now())

    async def sleep(self, delay_ms: float) -> None:
        self._attach_deferred(asyncio.get_running_loop())
        await super().sleep(delay_ms)

    def deferred(self) -> int:
        """Number of timers waiting for an event loop."""
        return sum(1 for timer in self._deferred if timer.active)

    def cancel_all(self) -> int:
        count = super().cancel_all()
        self._deferred.clear()
        return count


class FakeClock(Clock):
    """Virtual time for deterministic tests.

    Nothing happens until :meth:`advance` (or :meth:`run_all`) is awaited.
    Timers due at the same instant fire in the order they were scheduled.
    """

    def __init__(self, start_ms: float = 0.0):
        super().__init__()
        self._now = float(start_ms)
        self._heap: list[tuple[float, int, Timer]] = []
        self._sequence = itertools.count()

    def now(self) -> float:
        return self._now

    def _schedule(self, timer: Timer, delay_ms: float) -> None:
        heapq.heappush(self._heap, (timer.due, next(self._sequence), timer))

    async def _settle(self) -> None:
        for _ in range(SETTLE_PASSES):
            await asyncio.sleep(0)

    async def advance(self, delta_ms: float) -> int:
        """Move time forward, firing every timer that comes due.

        Returns:
            Number of timers fired.
        """
        target = self._now + max(0.0, float(delta_ms))
        fired = 0
        await self._settle()
        while self._heap and self._heap[0][0] <= target:
            due, _, timer = heapq.heappop(self._heap)
            if not timer.active:
                continue
            self._now = max(self._now, due)
            timer._fire()
            fired += 1
            await self._settle()
        self._now = target
        await self._settle()
        return fired

    async def run_all(self, limit: int = 10_000) -> int:
        """Fire timers until none remain (bounded by ``limit``)."""
        fired = 0
        await self._settle()
        while self._heap and fired < limit:
            due, _, timer = heapq.heappop(self._heap)
            if not timer.active:
                continue
            self._now = max(self._now, due)
            timer._fire()
            fired += 1
            await self._settle()
        return fired

    def cancel_all(self) -> int:
        count = super().cancel_all()
        self._heap.clear()
        return count
