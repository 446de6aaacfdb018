"""Per-client fixed window rate limiter.

Each client key gets a counter that admits up to ``points`` requests per
``duration`` seconds. When the window elapses the counter resets; there is
no rolling average and no queueing. A rejected request does not touch the
counter.

Safe for concurrent admission checks via asyncio.Lock (one lock per key).
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class _RateWindow:
    """Fixed window counter for a single client."""

    window_start: float
    count: int = 0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def expired(self, now: float, duration: float) -> bool:
        return now - self.window_start >= duration

    def reset(self, now: float) -> None:
        self.window_start = now
        self.count = 0


class FixedWindowRateLimiter:
    """Fixed window request counter keyed by client.

    Usage:
        limiter = FixedWindowRateLimiter(points=10, duration=1.0)

        if not await limiter.admit(client_ip):
            ...  # reply 429
    """

    def __init__(
        self,
        points: int = 10,
        duration: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if points < 1:
            raise ValueError("points must be >= 1")
        if duration <= 0:
            raise ValueError("duration must be > 0")
        self.points = points
        self.duration = duration
        self._clock = clock
        self._windows: dict[str, _RateWindow] = {}
        self._last_sweep = clock()

    def _get_window(self, key: str, now: float) -> _RateWindow:
        """Get or create the window for a client key."""
        window = self._windows.get(key)
        if window is None:
            window = _RateWindow(window_start=now)
            self._windows[key] = window
        return window

    def _sweep(self, now: float) -> None:
        """Evict windows that have expired and are not in use."""
        if now - self._last_sweep < self.duration:
            return
        self._last_sweep = now
        stale = [
            key
            for key, window in self._windows.items()
            if window.expired(now, self.duration) and not window.lock.locked()
        ]
        for key in stale:
            del self._windows[key]
        if stale:
            logger.debug("Rate limiter evicted %d idle client windows", len(stale))

    async def admit(self, key: str) -> bool:
        """Count a request for ``key``. Returns False once the window is full."""
        self._sweep(self._clock())
        window = self._get_window(key, self._clock())

        async with window.lock:
            now = self._clock()
            if window.expired(now, self.duration):
                window.reset(now)

            if window.count >= self.points:
                return False

            window.count += 1
            return True

    def retry_after(self, key: str) -> float:
        """Seconds until the current window for ``key`` ends (0 if none)."""
        window = self._windows.get(key)
        if window is None:
            return 0.0
        remaining = window.window_start + self.duration - self._clock()
        return max(remaining, 0.0)

    def get_stats(self, key: str) -> dict:
        """Current counter state for a client key."""
        window = self._windows.get(key)
        now = self._clock()
        if window is None or window.expired(now, self.duration):
            count = 0
        else:
            count = window.count
        return {
            "key": key,
            "count": count,
            "limit": self.points,
            "remaining": self.points - count,
            "window_seconds": self.duration,
            "reset_in": self.retry_after(key) if count else 0.0,
        }

    @property
    def tracked_clients(self) -> int:
        return len(self._windows)

    def reset(self) -> None:
        """Forget every client window."""
        self._windows.clear()
