"""Per-caller submission rate limiting.

The in-process limiter counts submissions per caller key in fixed windows.
Its state lives only in this process: separate instances (serverless
containers, worker processes) each keep their own counters, so the
effective ceiling across a deployment is the per-instance ceiling times the
number of instances. Plug in a shared-store implementation of
``RateLimiter`` if a deployment-wide limit is needed.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from src.config import DEFAULT_RATE_LIMIT_MAX, DEFAULT_RATE_LIMIT_WINDOW_SECONDS

logger = logging.getLogger(__name__)


class RateLimiter(Protocol):
    """Decides whether a caller may submit right now."""

    def check(self, key: str) -> bool:
        """Record an attempt for ``key``.

        Returns:
            True if the attempt is within the limit, False if it should be
            refused.
        """
        ...


@dataclass
class _Window:
    count: int
    started_at: float


class InMemoryRateLimiter:
    """Fixed-window counter keyed by caller, guarded by a lock.

    A window starts at a caller's first attempt. Attempts more than
    ``window_seconds`` after the window start reset the count to one;
    otherwise the count is incremented and compared against ``max_requests``.
    Refused attempts still count. Expired windows are evicted at most once
    per window length, when some caller starts a new window.
    """

    def __init__(
        self,
        window_seconds: float = DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
        max_requests: int = DEFAULT_RATE_LIMIT_MAX,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    def check(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            window = self._windows.get(key)
            if window is None or now - window.started_at > self.window_seconds:
                if now - self._last_sweep > self.window_seconds:
                    self._sweep(now)
                self._windows[key] = _Window(count=1, started_at=now)
                count = 1
            else:
                window.count += 1
                count = window.count

        allowed = count <= self.max_requests
        if not allowed:
            logger.debug("Caller %s over limit (%d/%d)", key, count, self.max_requests)
        return allowed

    def _sweep(self, now: float) -> None:
        """Drop expired windows; caller must hold the lock."""
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started_at > self.window_seconds
        ]
        for key in expired:
            del self._windows[key]
        self._last_sweep = now
        if expired:
            logger.debug("Evicted %d expired rate-limit windows", len(expired))

    def reset(self, key: str | None = None) -> None:
        """Forget one caller's window, or all windows."""
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)
