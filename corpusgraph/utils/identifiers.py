"""Id generators for derived records (discoveries, clusters).

Discovery ids are not stable across runs by default. Tests and reproducible
reports inject a ``SequenceIdGenerator`` or ``ContentHashIdGenerator`` instead.
"""

from __future__ import annotations

import hashlib
import itertools
import threading
import time
import uuid
from typing import Iterable, Protocol


class IdGenerator(Protocol):
    def new_id(self, prefix: str, *, parts: Iterable[str] = ()) -> str: ...


class RandomIdGenerator:
    """Timestamp + random suffix ids (non-reproducible)."""

    def new_id(self, prefix: str, *, parts: Iterable[str] = ()) -> str:
        return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class SequenceIdGenerator:
    """Monotonic per-prefix counters: ``discovery_1``, ``discovery_2``, ..."""

    def __init__(self, start: int = 1) -> None:
        self._start = start
        self._counters: dict[str, itertools.count[int]] = {}
        self._lock = threading.Lock()

    def new_id(self, prefix: str, *, parts: Iterable[str] = ()) -> str:
        with self._lock:
            counter = self._counters.setdefault(prefix, itertools.count(self._start))
            return f"{prefix}_{next(counter)}"


class ContentHashIdGenerator:
    """Ids derived from the record content; identical inputs give identical ids."""

    def __init__(self, length: int = 12) -> None:
        self.length = length

    def new_id(self, prefix: str, *, parts: Iterable[str] = ()) -> str:
        digest = hashlib.sha1("\x1f".join([prefix, *parts]).encode("utf-8")).hexdigest()
        return f"{prefix}_{digest[: self.length]}"
