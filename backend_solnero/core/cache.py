"""
Short-TTL in-memory cache guarding RPC, price-feed and database calls.

Each entry carries its own TTL (balance 10s, SOL price 60s, stats 30s); an
entry is returned only while now < set_time + ttl. Backed by cachetools'
TLRUCache, which is not thread-safe, so every access holds a lock.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, NamedTuple

from cachetools import TLRUCache

from backend_solnero.solnero_logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_ENTRIES = 10_000

SOL_PRICE_KEY = "sol_price"
STATS_KEY = "stats"


def balance_key(address: str) -> str:
    return f"balance_{address}"


class _Entry(NamedTuple):
    data: Any
    ttl: float


def _time_to_use(key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class TTLStore:
    """Key/value store with per-entry TTL. get() never returns an expired value."""

    def __init__(
        self,
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache: TLRUCache = TLRUCache(maxsize=max_entries, ttu=_time_to_use, timer=clock)
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._cache.get(key)
        return None if entry is None else entry.data

    def set(self, key: str, value: Any, ttl: float) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        with self._lock:
            self._cache[key] = _Entry(value, ttl)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def sweep(self) -> int:
        """Drop expired entries; return how many were removed."""
        with self._lock:
            expired = self._cache.expire()
        if expired:
            logger.debug("cache_swept", removed=len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
