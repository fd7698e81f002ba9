"""Storage of the patterns that are currently live."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Hashable, Iterator


class LivePatternsState(ABC):
    """The capabilities needed to maintain the set of live patterns."""

    @abstractmethod
    def add(self, x: Hashable, pattern: str) -> None:
        """Add a pattern for ``x``; several patterns may share one ``x``."""

    @abstractmethod
    def delete(self, x: Hashable) -> int:
        """Remove all patterns for ``x`` and return how many were removed."""

    @abstractmethod
    def iterate(self) -> Iterator[tuple[Hashable, str]]:
        """Yield every stored ``(x, pattern)`` pair."""

    @abstractmethod
    def contains(self, x: Hashable) -> bool:
        """Return True if ``x`` has any live pattern."""


class MemState(LivePatternsState):
    """An in-memory, thread-safe LivePatternsState."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._patterns: dict[Hashable, set[str]] = {}

    def add(self, x: Hashable, pattern: str) -> None:
        with self._lock:
            self._patterns.setdefault(x, set()).add(pattern)

    def contains(self, x: Hashable) -> bool:
        with self._lock:
            return x in self._patterns

    def delete(self, x: Hashable) -> int:
        with self._lock:
            removed = self._patterns.pop(x, None)
        return len(removed) if removed is not None else 0

    def iterate(self) -> Iterator[tuple[Hashable, str]]:
        with self._lock:
            snapshot = [(x, p) for x, patterns in self._patterns.items() for p in patterns]
        yield from snapshot