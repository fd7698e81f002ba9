"""Flattened event fields and the interface used to select them."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class ArrayPos:
    """Identifies an array in an event and a position within it.

    Fields whose trails name the same array at different positions must not
    be combined when matching a pattern.
    """

    array: int
    pos: int


@dataclass
class Field:
    """A flattened path/value pair taken from an event.

    ``path`` is the newline-separated path from the event root, ``val`` the
    textual form of the value, and ``array_trail`` the array positions on
    the way down to it.
    """

    path: bytes
    val: bytes
    array_trail: list[ArrayPos] = field(default_factory=list)


class SegmentsTreeTracker(ABC):
    """Tells a flattener which path segments are used by any pattern."""

    @abstractmethod
    def get(self, segment: bytes) -> SegmentsTreeTracker | None:
        """Return the child node for ``segment``, or None if it has none."""

    @abstractmethod
    def is_root(self) -> bool:
        """Return True if this node is the root of the tree."""

    @abstractmethod
    def is_segment_used(self, segment: bytes) -> bool:
        """Return True if ``segment`` is a field or node used by a pattern."""

    @abstractmethod
    def path_for_segment(self, segment: bytes) -> bytes:
        """Return the full path of ``segment`` below this node."""

    @abstractmethod
    def nodes_count(self) -> int:
        """Return the number of child nodes used by patterns."""

    @abstractmethod
    def fields_count(self) -> int:
        """Return the number of leaf fields used by patterns."""