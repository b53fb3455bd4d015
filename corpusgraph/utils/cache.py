"""Time-bounded cache values owned by the component that computes them."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CachedValue(Generic[T]):
    data: T
    computed_at: float


class TTLCache(Generic[T]):
    """Single-slot cache with a fixed time-to-live.

    Concurrent misses each recompute; there is no single-flight de-duplication.
    """

    def __init__(self, ttl_seconds: float, *, clock: Callable[[], float] | None = None) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._entry: CachedValue[T] | None = None

    @property
    def entry(self) -> CachedValue[T] | None:
        return self._entry

    def is_fresh(self) -> bool:
        entry = self._entry
        if entry is None:
            return False
        return (self._clock() - entry.computed_at) < self.ttl_seconds

    def get_or_compute(self, compute: Callable[[], T]) -> T:
        entry = self._entry
        if entry is not None and (self._clock() - entry.computed_at) < self.ttl_seconds:
            return entry.data
        return self.refresh(compute)

    def refresh(self, compute: Callable[[], T]) -> T:
        data = compute()
        self._entry = CachedValue(data=data, computed_at=self._clock())
        return data

    def invalidate(self) -> None:
        self._entry = None
