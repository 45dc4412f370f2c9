"""Frame schedulers that drive route animations.

A scheduler hands out one-shot frame callbacks, each called with the frame
timestamp in milliseconds. ``ManualFrameScheduler`` lets tests step time by
hand; ``AsyncioFrameScheduler`` runs frames on an asyncio event loop.
"""

import asyncio
from collections.abc import Callable
import itertools
from typing import Protocol

from storyroute.config import FRAME_INTERVAL_S

FrameCallback = Callable[[float], None]


class FrameScheduler(Protocol):
    def request(self, callback: FrameCallback) -> int:
        """Schedule ``callback`` for the next frame and return a cancellation handle."""
        ...

    def cancel(self, handle: int) -> None:
        """Cancel a pending frame. Unknown or already-fired handles are ignored."""
        ...

    def now(self) -> float:
        """Current clock reading in milliseconds."""
        ...


class ManualFrameScheduler:
    """Deterministic scheduler whose clock only moves when told to."""

    def __init__(self, start_ms: float = 0.0):
        self._now = start_ms
        self._pending: dict[int, FrameCallback] = {}
        self._ids = itertools.count(1)

    def request(self, callback: FrameCallback) -> int:
        handle = next(self._ids)
        self._pending[handle] = callback
        return handle

    def cancel(self, handle: int) -> None:
        self._pending.pop(handle, None)

    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        return len(self._pending)

    def tick(self, delta_ms: float = 0.0) -> int:
        """Advance the clock by ``delta_ms`` and fire every frame pending before the tick.

        Callbacks requested while firing wait for the next tick.

        Returns:
            Number of callbacks fired
        """
        self._now += delta_ms
        due = self._pending
        self._pending = {}
        for callback in due.values():
            callback(self._now)
        return len(due)

    def run_until_idle(self, step_ms: float = 16.0, max_frames: int = 100_000) -> int:
        """Keep ticking until no frame is pending; returns the number of ticks taken."""
        ticks = 0
        while self._pending and ticks < max_frames:
            self.tick(step_ms)
            ticks += 1
        return ticks


class AsyncioFrameScheduler:
    """Real-time scheduler firing frames at a fixed interval on an asyncio loop.

    Without an explicit loop it must be created from inside a running loop.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None, interval_s: float = FRAME_INTERVAL_S):
        self._loop = loop or asyncio.get_running_loop()
        self._interval_s = interval_s
        self._handles: dict[int, asyncio.TimerHandle] = {}
        self._ids = itertools.count(1)

    def request(self, callback: FrameCallback) -> int:
        handle = next(self._ids)

        def _fire() -> None:
            self._handles.pop(handle, None)
            callback(self.now())

        self._handles[handle] = self._loop.call_later(self._interval_s, _fire)
        return handle

    def cancel(self, handle: int) -> None:
        timer = self._handles.pop(handle, None)
        if timer is not None:
            timer.cancel()

    def now(self) -> float:
        return self._loop.time() * 1000.0
