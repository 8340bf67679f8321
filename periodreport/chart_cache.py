from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, Tuple

logger = logging.getLogger(__name__)

CacheKey = Tuple[date, date, str, str]


@dataclass(frozen=True)
class CachedChart:
    payload: Any
    expires_at: float | None


@dataclass
class _KeyLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    waiters: int = 0


@dataclass
class ChartCache:
    """In-process store for computed charts.

    Keys are ``(start, end, object_type, chart_name)``. Only one computation
    runs per key at a time; other callers for that key wait for its result.
    Expired entries are swept whenever a new chart is stored, and the oldest
    entries are evicted once ``max_entries`` is reached.
    """

    ttl_seconds: float | None = 300
    max_entries: int = 256
    clock: Callable[[], float] = time.monotonic
    _entries: Dict[CacheKey, CachedChart] = field(default_factory=dict)
    _key_locks: Dict[CacheKey, _KeyLock] = field(default_factory=dict)
    _guard: threading.Lock = field(default_factory=threading.Lock)

    def get_or_compute(self, key: CacheKey, compute: Callable[[], Any]) -> Any:
        cached = self._lookup(key)
        if cached is not None:
            logger.debug("Chart cache hit for %s", key)
            return cached.payload

        key_lock = self._acquire_key_lock(key)
        try:
            with key_lock.lock:
                cached = self._lookup(key)
                if cached is not None:
                    logger.debug("Chart cache hit for %s after wait", key)
                    return cached.payload
                logger.debug("Chart cache miss for %s", key)
                payload = compute()
                self._store(key, payload)
                return payload
        finally:
            self._release_key_lock(key, key_lock)

    def clear(self) -> None:
        with self._guard:
            self._entries.clear()

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    def _lookup(self, key: CacheKey) -> CachedChart | None:
        with self._guard:
            cached = self._entries.get(key)
            if cached is None:
                return None
            if self._is_expired(cached, self.clock()):
                del self._entries[key]
                return None
            return cached

    def _store(self, key: CacheKey, payload: Any) -> None:
        now = self.clock()
        expires_at = None
        if self.ttl_seconds is not None:
            expires_at = now + self.ttl_seconds
        with self._guard:
            expired = [
                stored_key
                for stored_key, cached in self._entries.items()
                if self._is_expired(cached, now)
            ]
            for stored_key in expired:
                del self._entries[stored_key]
            # dicts keep insertion order, so the first keys are the oldest
            while self._entries and len(self._entries) >= self.max_entries:
                del self._entries[next(iter(self._entries))]
            self._entries[key] = CachedChart(payload=payload, expires_at=expires_at)

    def _acquire_key_lock(self, key: CacheKey) -> _KeyLock:
        with self._guard:
            key_lock = self._key_locks.get(key)
            if key_lock is None:
                key_lock = self._key_locks[key] = _KeyLock()
            key_lock.waiters += 1
            return key_lock

    def _release_key_lock(self, key: CacheKey, key_lock: _KeyLock) -> None:
        with self._guard:
            key_lock.waiters -= 1
            if key_lock.waiters == 0:
                self._key_locks.pop(key, None)

    @staticmethod
    def _is_expired(cached: CachedChart, now: float) -> bool:
        return cached.expires_at is not None and cached.expires_at <= now
