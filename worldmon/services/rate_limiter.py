"""
RateLimiter - fixed-window request counting per client address.

Each client gets a window that starts with its first request and resets
once ``window`` has elapsed. Requests beyond ``limit`` inside the window are
rejected. Expired windows are swept at most once per window length while
requests keep arriving, so idle clients do not accumulate.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass


@dataclass
class RateWindow:
    """Request count for one client."""

    count: int
    reset_at: float


@dataclass
class RateDecision:
    allowed: bool
    remaining: int
    retry_after: float


class RateLimiter:
    """
    Per-client rate limiter state.

    One instance is owned by the API app; nothing module-level is shared.

    Usage:
        limiter = RateLimiter(limit=100)

        if not limiter.hit(client_ip).allowed:
            reject()
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, RateWindow] = {}
        self._next_sweep = clock() + window_seconds

    def hit(self, client_id: str) -> RateDecision:
        """Count a request from ``client_id`` and decide whether to allow it."""
        now = self._clock()
        if now > self._next_sweep:
            self.prune()
            self._next_sweep = now + self.window_seconds

        window = self._windows.get(client_id)

        if window is None or now > window.reset_at:
            window = RateWindow(count=1, reset_at=now + self.window_seconds)
            self._windows[client_id] = window
        else:
            window.count += 1

        return RateDecision(
            allowed=window.count <= self.limit,
            remaining=max(0, self.limit - window.count),
            retry_after=max(0.0, window.reset_at - now),
        )

    def prune(self) -> int:
        """Drop expired windows. Returns the number removed."""
        now = self._clock()
        expired = [k for k, w in self._windows.items() if now > w.reset_at]
        for key in expired:
            del self._windows[key]
        return len(expired)

    @property
    def tracked_clients(self) -> int:
        return len(self._windows)
