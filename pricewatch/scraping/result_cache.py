"""
Time- and size-bounded result cache keyed by source URL.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    payload: T
    inserted_at: float


class ResultCache(Generic[T]):
    """
    Insertion-ordered cache with lazy TTL expiry.

    Expired entries are removed when read, never swept. At capacity the
    oldest-inserted entry is evicted before a new key is added; reads do
    not refresh position.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = 3600.0,
        max_entries: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._ttl_seconds = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry[T]] = OrderedDict()

    def get(self, key: str) -> T | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.inserted_at >= self._ttl_seconds:
            del self._entries[key]
            return None
        return entry.payload

    def put(self, key: str, value: T) -> None:
        if key in self._entries:
            # re-insert so the refreshed entry counts as newest
            del self._entries[key]
        elif len(self._entries) >= self._max_entries:
            self._entries.popitem(last=False)
        self._entries[key] = CacheEntry(payload=value, inserted_at=self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
