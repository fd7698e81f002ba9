"""Canonical lists of automaton steps, compared by identity as sets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _same_members(first: tuple[Any, ...], second: tuple[Any, ...]) -> bool:
    """True if both sequences hold the same objects (by identity), in any order."""
    if len(first) != len(second):
        return False
    return all(any(item is other for other in second) for item in first)


@dataclass(eq=False)
class StepList:
    """A list of steps; equal step sets always share one instance."""

    steps: list[Any] = field(default_factory=list)


class DfaMemory:
    """Remembers which DFA step was built for a given set of NFA steps."""

    def __init__(self) -> None:
        self._singletons: dict[int, tuple[Any, Any]] = {}
        self._plurals: list[tuple[tuple[Any, ...], Any]] = []

    def remember(self, dfa: Any, *steps: Any) -> None:
        """Record ``dfa`` as the DFA step for the set of ``steps``."""
        if len(steps) == 1:
            step = steps[0]
            self._singletons[id(step)] = (step, dfa)
        else:
            self._plurals.append((tuple(steps), dfa))

    def lookup(self, *steps: Any) -> Any | None:
        """Return the DFA step remembered for ``steps``, or None."""
        if len(steps) == 1:
            entry = self._singletons.get(id(steps[0]))
            return entry[1] if entry is not None else None
        for remembered, dfa in self._plurals:
            if _same_members(remembered, steps):
                return dfa
        return None


class ListMaker:
    """Hands out one shared StepList per distinct set of steps."""

    def __init__(self) -> None:
        self._singletons: dict[int, tuple[Any, StepList]] = {}
        self._plurals: list[StepList] = []

    def get_singleton(self, step: Any) -> StepList:
        """Return the shared list holding only ``step``."""
        entry = self._singletons.get(id(step))
        if entry is not None:
            return entry[1]
        made = StepList([step])
        self._singletons[id(step)] = (step, made)
        return made

    def get_list(self, *steps: Any) -> StepList:
        """Return the shared list holding exactly ``steps``, in any order."""
        if len(steps) == 1:
            return self.get_singleton(steps[0])
        for existing in self._plurals:
            if _same_members(tuple(existing.steps), steps):
                return existing
        made = StepList(list(steps))
        self._plurals.append(made)
        return made