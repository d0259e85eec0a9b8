"""
Per-sender coordination for sends: a mutex registry plus in-flight lamports.

The RPC balance is read at confirmed commitment, so a transfer that was
broadcast but not yet confirmed is invisible to it. Every broadcast reserves
amount + fee under the sender until its confirmation wait ends; the balance
check subtracts those reservations. Entries are dropped once no thread holds,
waits on or reserves against them.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class SenderLocks:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, tuple[threading.Lock, int]] = {}
        self._in_flight: dict[str, int] = {}

    @contextmanager
    def hold(self, sender: str) -> Iterator[None]:
        with self._guard:
            lock, users = self._locks.get(sender, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[sender] = (lock, users + 1)
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                _, users = self._locks[sender]
                if users <= 1:
                    del self._locks[sender]
                else:
                    self._locks[sender] = (lock, users - 1)

    def reserve(self, sender: str, lamports: int) -> None:
        if lamports <= 0:
            raise ValueError("lamports must be positive")
        with self._guard:
            self._in_flight[sender] = self._in_flight.get(sender, 0) + lamports

    def release(self, sender: str, lamports: int) -> None:
        with self._guard:
            left = self._in_flight.get(sender, 0) - lamports
            if left > 0:
                self._in_flight[sender] = left
            else:
                self._in_flight.pop(sender, None)

    def reserved(self, sender: str) -> int:
        """Lamports broadcast from sender whose confirmation wait has not ended."""
        with self._guard:
            return self._in_flight.get(sender, 0)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks.keys() | self._in_flight.keys())
