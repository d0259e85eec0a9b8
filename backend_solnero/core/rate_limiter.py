"""
Fixed-window per-client rate limiter.

State is process-local: behind several worker processes each one enforces its
own limits. Expired windows are dropped by sweep(), which the API server's
maintenance thread calls once per interval.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from backend_solnero.solnero_logging import get_logger

logger = get_logger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after: int = 0
    """Seconds until the window resets; 0 when allowed."""
    remaining: int = 0
    reset_at: float = 0.0
    """Clock reading at which the client's current window ends."""


class RateLimiter:
    """
    Fixed-window counter keyed by client.

    Within [window_start, reset_at) the count only grows; the first call after
    reset_at opens a new window with count=1.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def allow(self, client_key: str, max_requests: int, window_ms: int) -> RateLimitDecision:
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")
        with self._lock:
            now = self._clock()
            window = self._windows.get(client_key)
            if window is None or now > window.reset_at:
                window = _Window(count=1, reset_at=now + window_ms / 1000.0)
                self._windows[client_key] = window
                return RateLimitDecision(allowed=True, remaining=max_requests - 1, reset_at=window.reset_at)
            if window.count >= max_requests:
                retry_after = max(1, math.ceil(window.reset_at - now))
                return RateLimitDecision(allowed=False, retry_after=retry_after, reset_at=window.reset_at)
            window.count += 1
            return RateLimitDecision(allowed=True, remaining=max_requests - window.count, reset_at=window.reset_at)

    def count(self, client_key: str) -> int:
        """Requests counted in the client's current window (0 if none)."""
        with self._lock:
            window = self._windows.get(client_key)
            return window.count if window else 0

    def sweep(self) -> int:
        """Remove windows whose reset time has passed; return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, w in self._windows.items() if w.reset_at < now]
            for key in expired:
                del self._windows[key]
        if expired:
            logger.debug("rate_limit_swept", removed=len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)
