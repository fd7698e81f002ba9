"""Compilation of JSON patterns into lists of path/value constraints.

A pattern is a JSON object whose leaves are arrays of allowed values. Each
array may also hold special forms such as ``{"exists": true}``,
``{"prefix": "abc"}``, ``{"shellstyle": "a*b"}`` or
``{"anything-but": ["x", "y"]}``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, auto

from .errors import PatternError

SEGMENT_SEPARATOR = "\n"

_WHITESPACE = " \t\n\r"
_NUMBER = re.compile(r"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")
_STRING_CHUNK = re.compile(r'[^"\\\x00-\x1f]*')
_HEX4 = re.compile(r"[0-9a-fA-F]{4}")
_SIMPLE_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}
_LITERALS = (("true", True), ("false", False), ("null", None))


class ValType(Enum):
    """The kind of constraint a pattern value expresses."""

    STRING = auto()
    NUMBER = auto()
    LITERAL = auto()
    EXISTS_TRUE = auto()
    EXISTS_FALSE = auto()
    SHELL_STYLE = auto()
    ANYTHING_BUT = auto()
    PREFIX = auto()


@dataclass
class TypedVal:
    """One allowed value of a pattern field and the kind of match it asks for.

    ``val`` is the value's text as it appears in flattened events (strings
    keep their quotes); ``values`` holds the excluded values of an
    anything-but match, each quoted.
    """

    v_type: ValType
    val: str = ""
    values: list[bytes] = field(default_factory=list)


@dataclass
class PatternField:
    """A path in a pattern together with its allowed values."""

    path: str
    vals: list[TypedVal] = field(default_factory=list)


@dataclass(frozen=True)
class _Delim:
    char: str


@dataclass(frozen=True)
class _Number:
    text: str


OPEN_OBJECT = _Delim("{")
CLOSE_OBJECT = _Delim("}")
OPEN_ARRAY = _Delim("[")
CLOSE_ARRAY = _Delim("]")


class _EndOfInput(Exception):
    """No more tokens remain in the pattern text."""


class _Expect(Enum):
    VALUE = auto()
    ARRAY_START = auto()
    ARRAY_COMMA = auto()
    OBJECT_START = auto()
    OBJECT_KEY = auto()
    OBJECT_COLON = auto()
    OBJECT_COMMA = auto()


class _Tokenizer:
    """A lazy JSON tokenizer that yields delimiters and scalar values.

    Commas and colons are checked and consumed silently, so callers see
    only delimiters, keys, and values.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0
        self._stack: list[str] = []
        self._expect = _Expect.VALUE

    def token(self) -> object:
        while True:
            c = self._skip_space()
            expect = self._expect
            if expect is _Expect.OBJECT_COLON:
                if c != ":":
                    raise self._invalid(c, "after object key")
                self._pos += 1
                self._expect = _Expect.VALUE
                continue
            if expect is _Expect.ARRAY_COMMA:
                if c == ",":
                    self._pos += 1
                    self._expect = _Expect.VALUE
                    continue
                if c == "]":
                    return self._close(CLOSE_ARRAY)
                raise self._invalid(c, "after array element")
            if expect is _Expect.OBJECT_COMMA:
                if c == ",":
                    self._pos += 1
                    self._expect = _Expect.OBJECT_KEY
                    continue
                if c == "}":
                    return self._close(CLOSE_OBJECT)
                raise self._invalid(c, "after object key:value pair")
            if expect in (_Expect.OBJECT_START, _Expect.OBJECT_KEY):
                if c == "}" and expect is _Expect.OBJECT_START:
                    return self._close(CLOSE_OBJECT)
                if c == '"':
                    key = self._read_string()
                    self._expect = _Expect.OBJECT_COLON
                    return key
                raise self._invalid(c, "looking for beginning of object key string")
            if expect is _Expect.ARRAY_START and c == "]":
                return self._close(CLOSE_ARRAY)
            return self._read_value(c)

    def _skip_space(self) -> str:
        text = self._text
        while self._pos < len(text) and text[self._pos] in _WHITESPACE:
            self._pos += 1
        if self._pos >= len(text):
            raise _EndOfInput()
        return text[self._pos]

    def _invalid(self, c: str, context: str) -> PatternError:
        return PatternError(f"pattern malformed: invalid character {c!r} {context}")

    def _close(self, delim: _Delim) -> _Delim:
        self._pos += 1
        self._stack.pop()
        self._after_value()
        return delim

    def _after_value(self) -> None:
        if not self._stack:
            self._expect = _Expect.VALUE
        elif self._stack[-1] == "[":
            self._expect = _Expect.ARRAY_COMMA
        else:
            self._expect = _Expect.OBJECT_COMMA

    def _read_value(self, c: str) -> object:
        if c == "{":
            self._pos += 1
            self._stack.append("{")
            self._expect = _Expect.OBJECT_START
            return OPEN_OBJECT
        if c == "[":
            self._pos += 1
            self._stack.append("[")
            self._expect = _Expect.ARRAY_START
            return OPEN_ARRAY
        value: object
        if c == '"':
            value = self._read_string()
        elif c == "-" or c.isdigit():
            match = _NUMBER.match(self._text, self._pos)
            if match is None:
                raise self._invalid(self._text[self._pos + 1 : self._pos + 2] or c, "in numeric literal")
            self._pos = match.end()
            value = _Number(match.group())
        else:
            for word, literal in _LITERALS:
                if self._text.startswith(word, self._pos):
                    self._pos += len(word)
                    value = literal
                    break
            else:
                raise self._invalid(c, "looking for beginning of value")
        self._after_value()
        return value

    def _read_string(self) -> str:
        text = self._text
        pos = self._pos + 1
        parts: list[str] = []
        while True:
            chunk = _STRING_CHUNK.match(text, pos)
            assert chunk is not None
            parts.append(chunk.group())
            pos = chunk.end()
            if pos >= len(text):
                raise PatternError("pattern malformed: unexpected end of JSON input")
            c = text[pos]
            if c == '"':
                self._pos = pos + 1
                return "".join(parts)
            if c != "\\":
                raise self._invalid(c, "in string literal")
            escape = text[pos + 1 : pos + 2]
            if escape in _SIMPLE_ESCAPES:
                parts.append(_SIMPLE_ESCAPES[escape])
                pos += 2
            elif escape == "u":
                decoded, pos = self._read_unicode_escape(pos)
                parts.append(decoded)
            elif not escape:
                raise PatternError("pattern malformed: unexpected end of JSON input")
            else:
                raise self._invalid(escape, "in string escape code")

    def _hex_at(self, pos: int) -> int | None:
        match = _HEX4.match(self._text, pos)
        return int(match.group(), 16) if match else None

    def _read_unicode_escape(self, pos: int) -> tuple[str, int]:
        """Decode the \\uXXXX escape at ``pos``; return it and the next offset."""
        unit = self._hex_at(pos + 2)
        if unit is None:
            raise PatternError("pattern malformed: four hex digits required after \\u")
        pos += 6
        if 0xD800 <= unit < 0xDC00:
            if self._text.startswith("\\u", pos):
                low = self._hex_at(pos + 2)
                if low is not None and 0xDC00 <= low < 0xE000:
                    code = 0x10000 + ((unit - 0xD800) << 10) + (low - 0xDC00)
                    return chr(code), pos + 6
            return "\ufffd", pos
        if 0xDC00 <= unit < 0xE000:
            return "\ufffd", pos
        return chr(unit), pos


def _quoted(text: str) -> str:
    return f'"{text}"'


class _PatternBuilder:
    """Walks the tokens of a pattern, collecting one PatternField per leaf array."""

    def __init__(self, text: str) -> None:
        self._tokens = _Tokenizer(text)
        self._path: list[str] = []
        self.results: list[PatternField] = []

    def _next(self, at_end: str) -> object:
        try:
            return self._tokens.token()
        except _EndOfInput:
            raise PatternError(at_end) from None

    def build(self) -> list[PatternField]:
        try:
            first = self._tokens.token()
        except _EndOfInput:
            raise PatternError("empty Pattern") from None
        except PatternError as exc:
            raise PatternError(f"patternField is not a JSON object: {exc}") from exc
        if isinstance(first, _Delim):
            if first != OPEN_OBJECT:
                raise PatternError("patternField is not a JSON object")
        else:
            raise PatternError("event is not a JSON object: doesn't start with '{'")
        self._read_object()
        return self.results

    def _read_object(self) -> None:
        while True:
            tok = self._next("event atEnd mid-object")
            if isinstance(tok, _Delim):
                return
            if isinstance(tok, str):
                self._path.append(tok)
                self._read_member()
                self._path.pop()

    def _read_member(self) -> None:
        tok = self._next("pattern ends mid-field")
        if tok == OPEN_ARRAY:
            self._read_array()
        elif tok == OPEN_OBJECT:
            self._read_object()
        else:
            raise PatternError(f"pattern malformed, illegal {_describe(tok)}")

    def _read_array(self) -> None:
        path = SEGMENT_SEPARATOR.join(self._path)
        exclusive = ""
        element_count = 0
        vals: list[TypedVal] = []
        while True:
            tok = self._next("patternField atEnd mid-field")
            if isinstance(tok, _Delim):
                if tok == CLOSE_ARRAY:
                    if exclusive and element_count > 1:
                        raise PatternError(
                            f"{exclusive} cannot be combined with other values in pattern"
                        )
                    self.results.append(PatternField(path=path, vals=vals))
                    return
                if tok != OPEN_OBJECT:
                    raise PatternError(f"pattern malformed, illegal {tok.char}")
                special = self._read_special(vals)
                if special:
                    exclusive = special
            elif isinstance(tok, str):
                vals.append(TypedVal(ValType.STRING, _quoted(tok)))
            elif isinstance(tok, _Number):
                vals.append(TypedVal(ValType.NUMBER, tok.text))
            elif tok is True:
                vals.append(TypedVal(ValType.LITERAL, "true"))
            elif tok is False:
                vals.append(TypedVal(ValType.LITERAL, "false"))
            elif tok is None:
                vals.append(TypedVal(ValType.LITERAL, "null"))
            element_count += 1

    def _read_special(self, vals: list[TypedVal]) -> str:
        """Read a special-form object into ``vals``; return its name if exclusive."""
        tok = self._next("pattern ends mid-field")
        if not isinstance(tok, str):
            raise PatternError("unrecognized in special pattern: empty object")
        if tok == "anything-but":
            self._read_anything_but(vals)
            return tok
        if tok == "exists":
            self._read_exists(vals)
            return tok
        if tok == "shellstyle":
            self._read_shell_style(vals)
        elif tok == "prefix":
            self._read_prefix(vals)
        else:
            raise PatternError(f"unrecognized in special pattern: {tok}")
        return ""

    def _expect_close(self, what: str) -> None:
        tok = self._next(f"pattern ends inside '{what}' pattern")
        if tok != CLOSE_OBJECT:
            raise PatternError(f"trailing garbage in '{what}' pattern")

    def _read_anything_but(self, vals: list[TypedVal]) -> None:
        tok = self._next("pattern ends mid-field")
        if tok != OPEN_ARRAY:
            raise PatternError("value for anything-but must be an array")
        excluded: list[bytes] = []
        while True:
            tok = self._next("anything-but list truncated")
            if isinstance(tok, _Delim):
                if tok == CLOSE_ARRAY:
                    break
                raise PatternError(f"spurious {tok.char} in anything-but list")
            if not isinstance(tok, str):
                raise PatternError("malformed anything-but list")
            excluded.append(_quoted(tok).encode("utf-8"))
        if not excluded:
            raise PatternError("empty list in 'anything-but' pattern")
        vals.append(TypedVal(ValType.ANYTHING_BUT, values=excluded))
        self._expect_close("anything-but")

    def _read_exists(self, vals: list[TypedVal]) -> None:
        tok = self._next("pattern ends mid-field")
        if tok is True:
            vals.append(TypedVal(ValType.EXISTS_TRUE))
        elif tok is False:
            vals.append(TypedVal(ValType.EXISTS_FALSE))
        else:
            raise PatternError("value for 'exists' pattern must be true or false")
        self._expect_close("exists")

    def _read_shell_style(self, vals: list[TypedVal]) -> None:
        tok = self._next("pattern ends mid-field")
        if not isinstance(tok, str):
            raise PatternError("value for 'shellstyle' must be a string")
        if "**" in tok:
            raise PatternError("adjacent '*' characters not allowed in 'shellstyle' pattern")
        vals.append(TypedVal(ValType.SHELL_STYLE, _quoted(tok)))
        self._expect_close("shellstyle")

    def _read_prefix(self, vals: list[TypedVal]) -> None:
        tok = self._next("pattern ends mid-field")
        if not isinstance(tok, str):
            raise PatternError("value for 'prefix' must be a string")
        vals.append(TypedVal(ValType.PREFIX, _quoted(tok)))
        self._expect_close("prefix")


def _describe(tok: object) -> str:
    if isinstance(tok, _Delim):
        return tok.char
    if isinstance(tok, _Number):
        return tok.text
    return repr(tok)


def pattern_from_json(json_bytes: bytes | str) -> list[PatternField]:
    """Compile a JSON pattern into its list of PatternFields.

    Fields appear in the order their arrays occur in the pattern. Raises
    PatternError if the pattern is malformed.
    """
    text = (
        json_bytes.decode("utf-8", errors="replace")
        if isinstance(json_bytes, (bytes, bytearray))
        else json_bytes
    )
    return _PatternBuilder(text).build()