"""In-process reference cache with per-entry expiry."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

type Clock = Callable[[], float]


@dataclass(slots=True)
class _Entry:
    value: int
    expires_at: float


@dataclass(slots=True)
class InMemoryReferenceCache:
    """Thread-safe TTL cache shared by the chunk workers of one process."""

    clock: Clock = field(default=time.monotonic)
    _entries: dict[str, _Entry] = field(default_factory=dict, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def get(self, key: str) -> int | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self.clock():
                del self._entries[key]
                return None
            return entry.value

    def put(self, key: str, value: int, ttl_seconds: float) -> None:
        with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=self.clock() + ttl_seconds)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


if TYPE_CHECKING:
    from assetsync.domain.ports import ReferenceCache

    _cache_check: ReferenceCache = InMemoryReferenceCache()
