"""
ringside/timer.py - Countdown clock for the live match.

The clock is a single asyncio task that wakes every ``interval`` seconds and
decrements the remaining time under the shared command lock. Starting the
clock always cancels the previous task first, so only one task ever ticks.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

Callback = Callable[[], Awaitable[None]]


@dataclass
class TimerState:
    """Clock values exposed in snapshots."""

    remaining_seconds: int = 60
    running: bool = False
    paused: bool = False


class TimerEngine:
    """Owns the countdown value and the recurring tick task.

    Args:
        lock: The session's command lock. Each tick holds it while mutating.
        on_tick: Awaited after every tick (decrement or finish).
        on_finished: Awaited once when the clock runs out, before ``on_tick``.
        interval: Seconds between ticks.
        initial_seconds: Starting clock value.
    """

    def __init__(
        self,
        lock: asyncio.Lock,
        on_tick: Callback,
        on_finished: Callback,
        interval: float = 1.0,
        initial_seconds: int = 60,
    ):
        self.state = TimerState(remaining_seconds=initial_seconds)
        self._lock = lock
        self._on_tick = on_tick
        self._on_finished = on_finished
        self._interval = interval
        self._task: asyncio.Task | None = None

    @property
    def remaining_seconds(self) -> int:
        return self.state.remaining_seconds

    @property
    def running(self) -> bool:
        return self.state.running

    @property
    def paused(self) -> bool:
        return self.state.paused

    @property
    def has_live_tick(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Commands (caller holds the lock)
    # ------------------------------------------------------------------

    def start(self, seconds: int) -> None:
        """Cancel any live tick, set the clock and schedule a fresh tick task."""
        self._cancel_task()
        self.state.remaining_seconds = max(0, seconds)
        self.state.running = True
        self.state.paused = False
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        """Cancel the tick if present. Safe to call repeatedly."""
        self._cancel_task()
        self.state.running = False

    def pause(self) -> None:
        self.stop()
        self.state.paused = True

    def resume(self) -> bool:
        """Restart ticking from the current value. Returns False if not eligible."""
        if self.state.remaining_seconds <= 0 or self.state.running:
            return False
        self.state.paused = False
        self.start(self.state.remaining_seconds)
        return True

    def adjust(self, delta: int) -> None:
        """Shift the clock by ``delta`` seconds, clamped at zero."""
        self.state.remaining_seconds = max(0, self.state.remaining_seconds + delta)

    def reset(self, seconds: int) -> None:
        """Set the clock value without touching running/paused."""
        self.state.remaining_seconds = max(0, seconds)

    async def close(self) -> None:
        """Cancel the tick task and wait for it to unwind. Used on shutdown."""
        task = self._task
        self.stop()
        if task is not None and task is not asyncio.current_task():
            try:
                await task
            except asyncio.CancelledError:
                pass

    # ------------------------------------------------------------------
    # Tick loop
    # ------------------------------------------------------------------

    def _cancel_task(self) -> None:
        task = self._task
        self._task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _run(self) -> None:
        me = asyncio.current_task()
        while True:
            await asyncio.sleep(self._interval)
            async with self._lock:
                # Superseded while waiting for the lock
                if self._task is not me:
                    return
                if self.state.remaining_seconds > 0:
                    self.state.remaining_seconds -= 1
                    logger.debug(f"Tick: {self.state.remaining_seconds}s left")
                    await self._on_tick()
                    continue

                self._task = None
                self.state.running = False
                logger.info("Timer finished")
                await self._on_finished()
                await self._on_tick()
                return
