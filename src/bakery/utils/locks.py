"""Keyed in-process locks for check-and-increment critical sections.

Each key (``slot:<slot_id>``, ``coupon:<CODE>``) maps to its own lock, so
work on different slots or coupons never waits on each other. Callers hold
the lock across the whole command, including the unit-of-work commit.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

logger = structlog.get_logger(__name__)


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0  # holders plus waiters


class KeyedLocks:
    """Locks created on first use and dropped once nobody holds or waits on them."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, _KeyLock] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(key, _KeyLock()).lock

    def _check_out(self, key: str) -> threading.Lock:
        with self._guard:
            entry = self._locks.setdefault(key, _KeyLock())
            entry.users += 1
            return entry.lock

    def _check_in(self, key: str) -> None:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                return
            entry.users -= 1
            if entry.users <= 0:
                del self._locks[key]

    @contextmanager
    def hold(self, *keys: str | None) -> Iterator[None]:
        """Acquire the locks for all non-empty ``keys``.

        Keys are de-duplicated and taken in sorted order so two callers
        asking for overlapping sets cannot deadlock.
        """
        ordered = sorted({key for key in keys if key})
        checked_out: list[str] = []
        acquired: list[threading.Lock] = []
        try:
            for key in ordered:
                lock = self._check_out(key)
                checked_out.append(key)
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in checked_out:
                self._check_in(key)

    def reset(self) -> None:
        with self._guard:
            self._locks.clear()


locks = KeyedLocks()


def slot_key(slot_id: str | None) -> str | None:
    return f"slot:{slot_id}" if slot_id else None


def coupon_key(code: str | None) -> str | None:
    return f"coupon:{code.strip().upper()}" if code else None
