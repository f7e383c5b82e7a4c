from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

T = TypeVar("T")

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheSlot(Generic[T]):
    payload: T
    timestamp: float

    def is_fresh(self, now: float, ttl: float) -> bool:
        return now - self.timestamp < ttl


class SingleSlotCache(Generic[T]):
    """One payload, one timestamp. Staleness is checked on every read."""

    def __init__(self, ttl: float, clock: Clock = time.time) -> None:
        self.ttl = ttl
        self._clock = clock
        self._slot: Optional[CacheSlot[T]] = None
        self._lock = threading.Lock()

    def get(self) -> Optional[T]:
        with self._lock:
            slot = self._slot
            if slot is None:
                return None
            if not slot.is_fresh(self._clock(), self.ttl):
                self._slot = None
                return None
            return slot.payload

    def put(self, payload: T) -> None:
        with self._lock:
            self._slot = CacheSlot(payload, self._clock())

    def invalidate(self) -> None:
        with self._lock:
            self._slot = None


class TTLCache(Generic[T]):
    """Keyed cache slots sharing one time-to-live."""

    def __init__(self, ttl: float, clock: Clock = time.time) -> None:
        self.ttl = ttl
        self._clock = clock
        self._slots: Dict[Hashable, CacheSlot[T]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[T]:
        with self._lock:
            slot = self._slots.get(key)
            if slot is None:
                return None
            if not slot.is_fresh(self._clock(), self.ttl):
                del self._slots[key]
                return None
            return slot.payload

    def put(self, key: Hashable, payload: T) -> None:
        with self._lock:
            self._slots[key] = CacheSlot(payload, self._clock())

    def invalidate(self, key: Hashable) -> bool:
        with self._lock:
            return self._slots.pop(key, None) is not None

    def clear(self) -> int:
        with self._lock:
            removed = len(self._slots)
            self._slots.clear()
            return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)


class RateLimiter:
    def __init__(self, clock: Clock = time.time) -> None:
        self._clock = clock
        self._windows: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def check(self, key: str, limit: int, window_seconds: int) -> bool:
        now = self._clock()
        with self._lock:
            current, expires_at = self._windows.get(key, (0, 0.0))
            if expires_at <= now:
                current = 0
                expires_at = now + window_seconds
            current += 1
            self._windows[key] = (current, expires_at)
        return current <= limit

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
