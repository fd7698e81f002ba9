"""Low-level scanning of JSON event bytes.

The scanner works over an immutable ``bytes`` event with a single cursor,
``index``. Readers of leaf values leave the cursor on the last byte of the
value they read, so that the caller can advance past it uniformly.
"""

from __future__ import annotations

from enum import Enum, auto

from .errors import FlattenError

# Bytes at or above this value never occur in well-formed UTF-8 text.
BYTE_CEILING = 0xF6

SPACE = frozenset(b" \r\n\t")
TRUE_BYTES = b"true"
FALSE_BYTES = b"false"
NULL_BYTES = b"null"

_DIGITS = frozenset(b"0123456789")
_NONZERO_DIGITS = frozenset(b"123456789")
_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")
_NUMBER_TERMINATORS = frozenset(b",]} \t\n\r")

_SIMPLE_ESCAPES = {
    ord('"'): b'"',
    ord("\\"): b"\\",
    ord("/"): b"/",
    ord("b"): b"\x08",
    ord("f"): b"\x0c",
    ord("n"): b"\n",
    ord("r"): b"\r",
    ord("t"): b"\t",
}


class _NumberState(Enum):
    START = auto()
    INTEGRAL = auto()
    FRACTION = auto()
    AFTER_E = auto()
    EXPONENT = auto()


class _EscapeState(Enum):
    START = auto()
    WANT_U = auto()
    HEX_DIGIT = auto()


def _is_illegal_text_byte(ch: int) -> bool:
    return ch <= 0x1F or ch >= BYTE_CEILING


class EventScanner:
    """A cursor over the bytes of a JSON event."""

    def __init__(self, event: bytes = b"", index: int = 0) -> None:
        self.event = bytes(event)
        self.index = index

    def ch(self) -> int:
        """Return the byte at the cursor."""
        return self.event[self.index]

    def step(self) -> None:
        """Advance the cursor; raise FlattenError if it runs off the end."""
        self._advance("premature end of event")

    def _advance(self, message: str) -> None:
        self.index += 1
        if self.index >= len(self.event):
            raise self.error(message)

    def error(self, message: str) -> FlattenError:
        """Build a FlattenError that reports the cursor's line and column."""
        line_num = 1
        last_line_start = 0
        for i, byte in enumerate(self.event[: self.index]):
            if byte == 0x0A:
                line_num += 1
                last_line_start = i
        return FlattenError(
            f"at line {line_num} col {self.index - last_line_start}: {message}"
        )

    def read_number(self) -> bytes:
        """Read a number starting at the cursor and return its text."""
        start = self.index
        state = _NumberState.START
        while True:
            ch = self.ch()
            if state is _NumberState.START:
                if ch == ord("-") or ch in _DIGITS:
                    state = _NumberState.INTEGRAL
            elif state is _NumberState.INTEGRAL:
                if ch in _DIGITS:
                    pass
                elif ch == ord("."):
                    state = _NumberState.FRACTION
                elif ch in (ord("e"), ord("E")):
                    state = _NumberState.AFTER_E
                elif ch in _NUMBER_TERMINATORS:
                    self.index -= 1
                    return self.event[start : self.index + 1]
                else:
                    raise self.error(f"illegal char '{chr(ch)}' in number")
            elif state is _NumberState.FRACTION:
                if ch in _DIGITS:
                    pass
                elif ch in _NUMBER_TERMINATORS:
                    self.index -= 1
                    return self.event[start : self.index + 1]
                elif ch in (ord("e"), ord("E")):
                    state = _NumberState.AFTER_E
                else:
                    raise self.error(f"illegal char '{chr(ch)}' in number")
            elif state is _NumberState.AFTER_E:
                if ch != ord("-") and ch not in _NONZERO_DIGITS:
                    raise self.error(f"illegal char '{chr(ch)}' after 'e' in number")
                state = _NumberState.EXPONENT
            else:
                if ch in _DIGITS:
                    pass
                elif ch in _NUMBER_TERMINATORS:
                    self.index -= 1
                    return self.event[start : self.index + 1]
                else:
                    raise self.error(f"illegal char '{chr(ch)}' in exponent")
            self._advance("event truncated in number")

    def read_literal(self, literal: bytes) -> bytes:
        """Check that ``literal`` is at the cursor and return it."""
        for expected in literal:
            if expected != self.ch():
                raise self.error("unknown literal")
            self._advance("truncated literal value")
        self.index -= 1
        return literal

    def read_string_value(self) -> bytes:
        """Read a string value, returning it with quotes and escapes resolved."""
        start = self.index
        self._advance("event truncated in mid-string")
        while True:
            ch = self.ch()
            if ch == ord('"'):
                return self.event[start : self.index + 1]
            if ch == ord("\\"):
                return self._read_string_with_escapes(start)
            if _is_illegal_text_byte(ch):
                raise self.error(f"illegal UTF-8 byte {ch:x} in string value")
            self._advance("event truncated in mid-string")

    def _read_string_with_escapes(self, start: int) -> bytes:
        val = bytearray(b'"')
        pos = start + 1
        while True:
            ch = self.event[pos]
            if ch == ord('"'):
                self.index = pos
                val.append(ch)
                return bytes(val)
            if ch == ord("\\"):
                unescaped, pos = self._read_text_with_escapes(pos)
                val += unescaped
            elif _is_illegal_text_byte(ch):
                raise self.error(f"illegal UTF-8 byte {ch:x} in string value")
            else:
                val.append(ch)
            pos += 1
            if pos == len(self.event):
                raise self.error("premature end of event")

    def read_member_name(self) -> bytes:
        """Read an object member name at the cursor, without its quotes."""
        self._advance("premature end of event")
        start = self.index
        while True:
            ch = self.ch()
            if ch == ord('"'):
                return self.event[start : self.index]
            if ch == ord("\\"):
                return self._read_member_name_with_escapes(start)
            if _is_illegal_text_byte(ch):
                raise self.error(f"illegal UTF-8 byte {ch:x} in field name")
            self._advance("premature end of event")

    def _read_member_name_with_escapes(self, start: int) -> bytes:
        name = bytearray()
        pos = start
        while True:
            ch = self.event[pos]
            if ch == ord('"'):
                self.index = pos
                return bytes(name)
            if _is_illegal_text_byte(ch):
                raise self.error(f"illegal UTF-8 byte {ch:x} in field name")
            if ch == ord("\\"):
                unescaped, pos = self._read_text_with_escapes(pos)
                name += unescaped
            else:
                name.append(ch)
            pos += 1
            if pos == len(self.event):
                raise self.error("premature end of event")

    def _read_text_with_escapes(self, pos: int) -> tuple[bytes, int]:
        """Resolve the escape whose backslash is at ``pos``.

        Returns the unescaped bytes and the offset of the escape's last byte.
        """
        pos += 1
        if pos == len(self.event):
            raise self.error("premature end of event")
        code = self.event[pos]
        if code == ord("u"):
            return self._read_hex_utf16(pos)
        simple = _SIMPLE_ESCAPES.get(code)
        if simple is None:
            raise self.error("malformed \\-escape in text")
        return simple, pos

    def _read_hex_utf16(self, pos: int) -> tuple[bytes, int]:
        """Decode a run of adjacent \\uXXXX escapes, pairing surrogates."""
        units: list[int] = []
        pos -= 1
        hex_count = 0
        state = _EscapeState.START
        while True:
            ch = self.event[pos]
            if state is _EscapeState.START:
                if ch == ord("\\"):
                    state = _EscapeState.WANT_U
                else:
                    return _decode_utf16(units), pos - 1
            elif state is _EscapeState.WANT_U:
                if ch == ord("u"):
                    state = _EscapeState.HEX_DIGIT
                    hex_count = 0
                else:
                    return _decode_utf16(units), pos - 1
            else:
                if ch not in _HEX_DIGITS:
                    self.index = pos
                    raise self.error("four hex digits required after \\u")
                hex_count += 1
                if hex_count == 4:
                    units.append(int(self.event[pos - 3 : pos + 1], 16))
                    state = _EscapeState.START
            pos += 1
            if pos == len(self.event):
                self.index = pos
                raise self.error("event truncated in \\u escape")

    def skip_string_value(self) -> None:
        """Move the cursor from an opening quote to its closing quote."""
        self._advance("event truncated in mid-string")
        data = self.event
        i = self.index
        end = len(data)
        while i < end:
            c = data[i]
            if c == ord("\\") and i + 1 < end and data[i + 1] in (ord("\\"), ord('"')):
                i += 2
                continue
            if c == ord('"'):
                self.index = i
                return
            i += 1
        raise self.error("truncated string")

    def skip_block(self, open_symbol: int, close_symbol: int) -> None:
        """Move the cursor from an opening bracket to its matching close."""
        level = 0
        while self.index < len(self.event):
            ch = self.event[self.index]
            if ch == ord('"'):
                self.skip_string_value()
            elif ch == open_symbol:
                level += 1
            elif ch == close_symbol:
                level -= 1
                if level == 0:
                    return
            self.index += 1
        raise self.error("truncated block")

    def leave_object(self) -> None:
        """Skip the rest of the current object, stopping on its closing brace."""
        while self.index < len(self.event):
            ch = self.event[self.index]
            if ch == ord('"'):
                self.skip_string_value()
            elif ch in (ord("{"), ord("[")):
                # '}' and ']' are two code points after '{' and '['.
                self.skip_block(ch, ch + 2)
            elif ch == ord("}"):
                return
            self.index += 1
        raise self.error("truncated block")


def _decode_utf16(units: list[int]) -> bytes:
    raw = b"".join(unit.to_bytes(2, "big") for unit in units)
    return raw.decode("utf-16-be", errors="replace").encode("utf-8")