"""
Cancellable timers for the sync coordinator.

ScheduledTask runs a callback once after a delay; arming it again
before it fires restarts the delay (debounce). RecurringTask runs a
callback on a fixed interval until stopped.

Callbacks run as separate tasks once their timer elapses. Cancelling
or re-arming a timer only affects the wait, never a callback that has
already started.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

Callback = Callable[[], Awaitable[Any]]


class _CallbackRunner:
    """Spawns callbacks and keeps references until they finish."""

    def __init__(self, name: str, callback: Callback):
        self.name = name
        self._callback = callback
        self._running: set[asyncio.Task[Any]] = set()

    def spawn(self) -> asyncio.Task[Any]:
        task = asyncio.create_task(self._callback(), name=f"{self.name}-callback")
        self._running.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task[Any]) -> None:
        self._running.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"{self.name} callback failed: {error!r}", exc_info=error)

    @property
    def in_flight(self) -> int:
        return len(self._running)

    async def drain(self) -> None:
        """Wait for callbacks that are already running."""
        while self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)


class ScheduledTask:
    """One-shot timer with arm/cancel semantics.

    Usage:
        push_timer = ScheduledTask("push", coordinator.push, delay=1.2)
        push_timer.arm()   # starts the 1.2s wait
        push_timer.arm()   # restarts it; only one push fires
        push_timer.cancel()
    """

    def __init__(self, name: str, callback: Callback, delay: float):
        self.name = name
        self.delay = delay
        self._runner = _CallbackRunner(name, callback)
        self._timer: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        """True while armed and waiting to fire."""
        return self._timer is not None and not self._timer.done()

    @property
    def in_flight(self) -> int:
        return self._runner.in_flight

    def arm(self, delay: float | None = None) -> None:
        """Start the timer, replacing any wait already in progress."""
        self.cancel()
        self._timer = asyncio.create_task(
            self._wait_then_fire(self.delay if delay is None else delay),
            name=f"{self.name}-timer",
        )

    def cancel(self) -> bool:
        """Cancel the pending wait. Returns True if one was cancelled."""
        timer, self._timer = self._timer, None
        if timer is not None and not timer.done():
            timer.cancel()
            return True
        return False

    async def _wait_then_fire(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._timer = None
        self._runner.spawn()

    async def drain(self) -> None:
        await self._runner.drain()


class RecurringTask:
    """Fixed-interval timer.

    Each tick spawns the callback without waiting for the previous
    one, so slow callbacks never delay the schedule; callbacks that
    must not overlap guard themselves.
    """

    def __init__(self, name: str, callback: Callback, interval: float):
        self.name = name
        self.interval = interval
        self._runner = _CallbackRunner(name, callback)
        self._loop_task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self) -> None:
        if self.running:
            return
        self._loop_task = asyncio.create_task(self._tick_loop(), name=f"{self.name}-loop")

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self._runner.spawn()

    async def stop(self) -> None:
        """Stop ticking. Callbacks already running are left to finish."""
        task, self._loop_task = self._loop_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def drain(self) -> None:
        await self._runner.drain()
