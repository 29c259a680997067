"""Locking primitives for per-trade serialization."""

import asyncio
import threading
from contextlib import asynccontextmanager, contextmanager


class KeyedLock:
    """One asyncio.Lock per key, created on first use and dropped when idle.

    Must be used from a single event loop.
    """

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str, timeout: float | None = None):
        """Hold the lock for ``key``. Raises asyncio.TimeoutError after ``timeout``."""
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            if timeout is None:
                await lock.acquire()
            else:
                await asyncio.wait_for(lock.acquire(), timeout)
            try:
                yield
            finally:
                lock.release()
        finally:
            self._holders[key] -= 1
            if not self._holders[key]:
                del self._holders[key]
                del self._locks[key]

    def locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


class RowLocks:
    """One threading.Lock per key, created on first use and dropped when idle.

    Writers on different keys never share a lock; the internal mutex only
    guards the bookkeeping dicts and is never held while a row lock is.
    """

    def __init__(self):
        self._mutex = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._holders: dict[str, int] = {}

    @contextmanager
    def hold(self, key: str):
        with self._mutex:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            self._holders[key] = self._holders.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._mutex:
                self._holders[key] -= 1
                if not self._holders[key]:
                    del self._holders[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._mutex:
            return len(self._locks)
