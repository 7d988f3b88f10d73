"""Time-boxed cache shared by the fetcher and the aggregator."""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, NamedTuple, Protocol

__all__ = ["Cache", "CacheEntry", "MemoryCache"]


class CacheEntry(NamedTuple):
    value: Any
    expires_at: float


class Cache(Protocol):
    """Narrow interface the pipeline relies on.

    Any backend offering these four methods (an in-process dict, Redis, ...)
    can be handed to :class:`~nuclearpulse.services.fetcher.FeedFetcher` and
    :class:`~nuclearpulse.services.aggregator.NewsAggregator`.
    """

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl: float) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...


class MemoryCache:
    """Process-local cache; entries expire ``ttl`` seconds after being set."""

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or time.monotonic
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl: float) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(value, self._clock() + ttl)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
