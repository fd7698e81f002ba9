# quamina

Building blocks for matching JSON events against JSON patterns.

An event is a JSON object. `JSONFlattener` turns it into a list of
`Field` records, each holding a newline-separated path, the raw text of a
value and the array positions the value sits at. It reads only the members
that a `SegmentsTreeTracker` says are used, skips the rest, and stops early
once every used field at the top level has been read.

A pattern is a JSON object whose leaves are arrays of allowed values.
`pattern_from_json` parses it into `PatternField` records. Besides plain
strings, numbers, `true`, `false` and `null`, the arrays may hold the
special forms `{"exists": true|false}`, `{"prefix": "..."}`,
`{"shellstyle": "..."}` and `{"anything-but": ["...", ...]}`.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install .[test]
pytest
```

## Modules

- `quamina.fields`: the `ArrayPos` and `Field` dataclasses, and the
  abstract `SegmentsTreeTracker` with the methods `get`, `is_root`,
  `is_segment_used`, `path_for_segment`, `nodes_count` and `fields_count`.
- `quamina.flatten_json`: `JSONFlattener`, with `flatten(event, tracker)`,
  `reset()` and `copy()`. An event may be given as `bytes` or `str`.
- `quamina.json_scan`: `EventScanner`, the cursor-based JSON reader the
  flattener is built on (`read_number`, `read_literal`,
  `read_string_value`, `read_member_name`, `skip_string_value`,
  `skip_block`, `leave_object`, `step`, `ch`, `error`).
- `quamina.pattern`: `pattern_from_json(json_bytes)`, returning a list of
  `PatternField` (a `path` and its `vals`), each value a `TypedVal` with a
  `ValType`, its text in `val` and, for anything-but, the excluded values
  in `values`.
- `quamina.match_set`: `MatchSet`. `add` returns a new set and leaves the
  old one unchanged; `add_in_place` changes the set itself.
- `quamina.live_patterns`: the abstract `LivePatternsState` and the
  thread-safe in-memory `MemState`, which record the patterns stored for
  each identifier. `delete` returns how many patterns it removed, and
  `iterate` yields `(identifier, pattern)` pairs.
- `quamina.numbers`: `canonicalize(s)`, which turns a number in the open
  range (-1e9, 1e9), written in at most 18 characters, into a 19-character
  string whose order as a string matches its numeric order.
- `quamina.list_maker`: `ListMaker` and `DfaMemory`, which hand back one
  shared object for each distinct set of steps, whatever their order.
- `quamina.errors`: `QuaminaError` and its subclasses `FlattenError`,
  `PatternError` and `NumberError`.

## Examples

Parsing a pattern:

```python
from quamina.pattern import pattern_from_json

fields = pattern_from_json(b'{"a": [1, "x"], "b": {"c": [{"exists": true}]}}')
for field in fields:
    print(repr(field.path), [v.val for v in field.vals])
```

Values keep the text as written, and strings keep their quotation marks,
so `a` comes out with `['1', '"x"']`. Nested paths are joined with a
newline, so the second field has the path `'b\nc'`.

Flattening an event needs a `SegmentsTreeTracker`. A tracker for a few
top-level members only can be as small as this:

```python
from quamina.fields import SegmentsTreeTracker
from quamina.flatten_json import JSONFlattener


class TopLevel(SegmentsTreeTracker):
    def __init__(self, *names):
        self.names = {name.encode() for name in names}

    def get(self, segment):
        return None

    def is_root(self):
        return True

    def is_segment_used(self, segment):
        return segment in self.names

    def path_for_segment(self, segment):
        return segment

    def nodes_count(self):
        return 0

    def fields_count(self):
        return len(self.names)


fields = JSONFlattener().flatten(
    b'{"a": 1, "b": {"x": 2}, "c": [true, "y"]}', TopLevel("a", "c")
)
print([(f.path, f.val) for f in fields])
# [(b'a', b'1'), (b'c', b'true'), (b'c', b'"y"')]
```

Each array element gets its own `array_trail`, here `[ArrayPos(1, 1)]`
and `[ArrayPos(1, 2)]`.

Canonical numbers:

```python
from quamina.numbers import canonicalize

assert canonicalize(b"350") == canonicalize(b"3.5e2")
```

Malformed input raises a subclass of `quamina.errors.QuaminaError`:
`FlattenError` for events, with the line and column in the message,
`PatternError` for patterns and `NumberError` for numbers.

## What this package does not do

The package has no matcher. Nothing here adds patterns to an automaton
and reports which patterns an event matches. `pattern_from_json` only
parses patterns, and the `shellstyle`, `prefix` and `anything-but` forms
are checked and recorded, never evaluated against event values. There is
also no ready-made `SegmentsTreeTracker`: to flatten events, supply your
own, as in the example above.