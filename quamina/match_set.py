"""A set of match identifiers."""

from __future__ import annotations

from collections.abc import Hashable


class MatchSet:
    """Set semantics over the values reported for matched patterns."""

    def __init__(self, items: set[Hashable] | None = None) -> None:
        self._set: set[Hashable] = set(items) if items else set()

    def add(self, *xs: Hashable) -> MatchSet:
        """Return a new set with ``xs`` added, leaving this one unchanged."""
        if not xs:
            return self
        return MatchSet(self._set.union(xs))

    def add_in_place(self, *xs: Hashable) -> MatchSet:
        """Add ``xs`` to this set and return it."""
        self._set.update(xs)
        return self

    def contains(self, x: Hashable) -> bool:
        """Return True if ``x`` is in the set."""
        return x in self._set

    def __contains__(self, x: object) -> bool:
        return x in self._set

    def __len__(self) -> int:
        return len(self._set)

    def matches(self) -> list[Hashable]:
        """Return the members as a list, in no particular order."""
        return list(self._set)