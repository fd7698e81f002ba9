"""Flattening of JSON events into the fields that patterns refer to.

The flattener is a small hand-written parser. It consults a
SegmentsTreeTracker to skip members that no pattern mentions, and stops
reading as soon as every field and node used by the patterns has been seen.
"""

from __future__ import annotations

from enum import Enum, auto

from .fields import ArrayPos, Field, SegmentsTreeTracker
from .json_scan import FALSE_BYTES, NULL_BYTES, SPACE, TRUE_BYTES, EventScanner

_NUMBER_STARTS = frozenset(b"-0123456789")
_LITERALS = {ord("t"): TRUE_BYTES, ord("f"): FALSE_BYTES, ord("n"): NULL_BYTES}


class _State(Enum):
    IN_OBJECT = auto()
    SEEKING_COLON = auto()
    MEMBER_VALUE = auto()
    IN_ARRAY = auto()
    AFTER_VALUE = auto()


class _EarlyStop(Exception):
    """Every field used by a pattern has been read; the rest can be ignored."""


def _copy_trail(trail: list[ArrayPos]) -> list[ArrayPos]:
    return [ArrayPos(pos.array, pos.pos) for pos in trail]


class JSONFlattener(EventScanner):
    """Turns a JSON object into a list of Fields, reusable across events."""

    def __init__(self) -> None:
        super().__init__()
        self.fields: list[Field] = []
        self.skipping = 0
        self.array_trail: list[ArrayPos] = []
        self.array_count = 0

    def reset(self) -> None:
        """Clear per-event state so the flattener can be used again."""
        self.index = 0
        self.fields = []
        self.skipping = 0
        self.array_trail = []
        self.array_count = 0

    def copy(self) -> JSONFlattener:
        """Return a fresh flattener of the same kind."""
        return JSONFlattener()

    def flatten(self, event: bytes | str, tracker: SegmentsTreeTracker) -> list[Field]:
        """Flatten ``event``, a JSON object, keeping only fields ``tracker`` uses.

        Raises FlattenError if the event is not a well-formed JSON object.
        """
        self.reset()
        self.event = event.encode("utf-8") if isinstance(event, str) else bytes(event)
        if not self.event:
            raise self.error("empty event")
        object_read = False
        while True:
            ch = self.ch()
            if not object_read:
                if ch == ord("{"):
                    try:
                        self._read_object(tracker)
                    except _EarlyStop:
                        return self.fields
                    object_read = True
                elif ch not in SPACE:
                    raise self.error("not a JSON object")
            elif ch not in SPACE:
                raise self.error(f"garbage char '{chr(ch)}' after top-level object")
            self.index += 1
            if self.index == len(self.event):
                return self.fields

    def _read_object(self, node: SegmentsTreeTracker) -> None:
        # cursor is on the opening brace
        self.step()
        fields_count = node.fields_count()
        nodes_count = node.nodes_count()
        trail = _copy_trail(self.array_trail) if self.skipping == 0 else []

        member_name = b""
        member_used = False
        state = _State.IN_OBJECT
        while True:
            if nodes_count == 0 and fields_count == 0:
                if node.is_root():
                    raise _EarlyStop
                self.leave_object()
                return

            ch = self.ch()
            if state is _State.IN_OBJECT:
                if ch in SPACE:
                    pass
                elif ch == ord('"'):
                    member_name = self.read_member_name()
                    member_used = self.skipping == 0 and node.is_segment_used(member_name)
                    state = _State.SEEKING_COLON
                elif ch == ord("}"):
                    return
                else:
                    raise self.error(f"illegal character {chr(ch)} in JSON object")
            elif state is _State.SEEKING_COLON:
                if ch in SPACE:
                    pass
                elif ch == ord(":"):
                    state = _State.MEMBER_VALUE
                else:
                    raise self.error(f"illegal character {chr(ch)} while looking for colon")
            elif state is _State.MEMBER_VALUE:
                while ch in SPACE:
                    self._advance("event truncated after colon")
                    ch = self.ch()
                val, descended = self._read_member_value(ch, node, member_name, member_used)
                if descended:
                    nodes_count -= 1
                if val is not None and member_used:
                    self.fields.append(Field(node.path_for_segment(member_name), val, trail))
                    fields_count -= 1
                state = _State.AFTER_VALUE
            else:
                if ch in SPACE:
                    pass
                elif ch == ord(","):
                    state = _State.IN_OBJECT
                elif ch == ord("}"):
                    return
                else:
                    raise self.error(f"illegal character {chr(ch)} in object")
            self.step()

    def _read_member_value(
        self,
        ch: int,
        node: SegmentsTreeTracker,
        name: bytes,
        used: bool,
    ) -> tuple[bytes | None, bool]:
        """Read one member value; return its leaf text and whether a node was entered."""
        if ch == ord('"'):
            if self.skipping > 0 or not used:
                self.skip_string_value()
                return None, False
            return self.read_string_value(), False
        literal = _LITERALS.get(ch)
        if literal is not None:
            return self.read_literal(literal), False
        if ch in _NUMBER_STARTS:
            return self.read_number(), False
        if ch not in (ord("["), ord("{")):
            raise self.error(f"illegal character {chr(ch)} after field name")

        unused_segment = not node.is_segment_used(name)
        if unused_segment:
            self.skipping += 1
        descended = False
        if ch == ord("["):
            if self.skipping > 0 or not used:
                self.skip_block(ord("["), ord("]"))
            else:
                # an array member may be a leaf field or a node with children
                child = node.get(name)
                self._read_array(node.path_for_segment(name), node if child is None else child)
        else:
            if self.skipping > 0 or not used:
                self.skip_block(ord("{"), ord("}"))
            else:
                child = node.get(name)
                if child is None:
                    # matching on a whole object is not supported
                    self.skip_block(ord("{"), ord("}"))
                else:
                    descended = True
                    self._read_object(child)
        if unused_segment:
            self.skipping -= 1
        return None, descended

    def _read_array(self, path: bytes, node: SegmentsTreeTracker) -> None:
        # cursor is on the opening bracket
        self.step()
        tracking = self.skipping == 0
        if tracking:
            self.array_count += 1
            self.array_trail.append(ArrayPos(self.array_count, 0))
        try:
            self._read_array_elements(path, node)
        finally:
            if tracking:
                self.array_trail.pop()

    def _read_array_elements(self, path: bytes, node: SegmentsTreeTracker) -> None:
        state = _State.IN_ARRAY
        while True:
            ch = self.ch()
            if state is _State.IN_ARRAY:
                while ch in SPACE:
                    self._advance("event truncated within array")
                    ch = self.ch()
                val: bytes | None = None
                literal = _LITERALS.get(ch)
                if ch == ord('"'):
                    val = self.read_string_value()
                elif literal is not None:
                    val = self.read_literal(literal)
                elif ch in _NUMBER_STARTS:
                    val = self.read_number()
                elif ch == ord("{"):
                    if self.skipping == 0:
                        self._step_one_array_element()
                    self._read_object(node)
                elif ch == ord("["):
                    if self.skipping == 0:
                        self._step_one_array_element()
                    self._read_array(path, node)
                elif ch == ord("]"):
                    return
                else:
                    raise self.error(f"illegal character {chr(ch)} in array")
                if val is not None and self.skipping == 0:
                    self._step_one_array_element()
                    self.fields.append(Field(path, val, _copy_trail(self.array_trail)))
                state = _State.AFTER_VALUE
            else:
                if ch in SPACE:
                    pass
                elif ch == ord("]"):
                    return
                elif ch == ord(","):
                    state = _State.IN_ARRAY
                else:
                    raise self.error(f"illegal character {chr(ch)} in array")
            self.step()

    def _step_one_array_element(self) -> None:
        self.array_trail[-1].pos += 1