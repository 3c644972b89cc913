"""In-memory TTL cache: one slot per provider endpoint, last known good payload."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

DEFAULT_TTL_SEC = 60.0

OPINION_MARKETS = "opinion_markets"
PROBABLE_MARKETS = "probable_markets"
PROBABLE_PRICES = "probable_prices"


@dataclass(frozen=True)
class CacheSlot:
    """Payload and the clock reading at which it was stored."""

    payload: Any = None
    fetched_at: float = 0.0


_EMPTY = CacheSlot()


class TTLCache:
    """Keyed slots with a uniform freshness window.

    Slots are replaced wholesale on put, never mutated. There is no eviction:
    a stale slot keeps its payload and simply stops reporting fresh. The clock
    is injectable so tests can move time without sleeping.
    """

    def __init__(self, ttl_sec: float = DEFAULT_TTL_SEC, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_sec = ttl_sec
        self._clock = clock
        self._slots: dict[str, CacheSlot] = {}

    def slot(self, key: str) -> CacheSlot:
        return self._slots.get(key, _EMPTY)

    def is_fresh(self, key: str) -> bool:
        s = self.slot(key)
        return s.payload is not None and (self._clock() - s.fetched_at) < self.ttl_sec

    def get(self, key: str) -> Any:
        """Last stored payload regardless of freshness (None if never stored)."""
        return self.slot(key).payload

    def put(self, key: str, payload: Any) -> None:
        self._slots[key] = CacheSlot(payload=payload, fetched_at=self._clock())

    def age(self, key: str) -> float | None:
        s = self.slot(key)
        if s.payload is None:
            return None
        return self._clock() - s.fetched_at

    def clear(self) -> None:
        self._slots.clear()
