from __future__ import annotations

import pytest

from quamina.errors import FlattenError
from quamina.fields import ArrayPos, Field, SegmentsTreeTracker
from quamina.flatten_json import JSONFlattener


class _Tree(SegmentsTreeTracker):
    """A minimal tree of the path segments used by patterns."""

    def __init__(self, path: bytes = b"", root: bool = True) -> None:
        self._path = path
        self._root = root
        self._nodes: dict[bytes, _Tree] = {}
        self._fields: dict[bytes, bytes] = {}

    def add(self, path: str) -> None:
        segments = path.encode("utf-8").split(b"\n")
        node = self
        for segment in segments[:-1]:
            child = node._nodes.get(segment)
            if child is None:
                child = _Tree(node.path_for_segment(segment), root=False)
                node._nodes[segment] = child
            node = child
        node._fields[segments[-1]] = node.path_for_segment(segments[-1])

    def get(self, segment):
        return self._nodes.get(segment)

    def is_root(self):
        return self._root

    def is_segment_used(self, segment):
        return segment in self._nodes or segment in self._fields

    def path_for_segment(self, segment):
        return self._path + b"\n" + segment if self._path else segment

    def nodes_count(self):
        return len(self._nodes)

    def fields_count(self):
        return len(self._fields)


def tracker(*paths: str) -> _Tree:
    tree = _Tree()
    for path in paths:
        tree.add(path)
    return tree


def paths_and_vals(fields):
    return [f.path for f in fields], [f.val for f in fields]


IMAGE_EVENT = b"""{
        "Image": {
            "Width":  800,
            "Height": 600,
            "Title":  "View from 15th Floor",
            "Thumbnail": {
                "Url":    "https://www.example.com/image/481989943",
                "Height": 125,
                "Width":  100
            },
            "Animated" : false,
            "IDs": [116, 943, 234, 38793]
          }
      }"""


def test_object_only_pattern_yields_nothing():
    fields = JSONFlattener().flatten(IMAGE_EVENT, tracker("Image\nThumbnail"))
    assert fields == []


def test_object_with_nested_field():
    fields = JSONFlattener().flatten(
        IMAGE_EVENT, tracker("Image\nThumbnail", "Image\nThumbnail\nUrl")
    )
    assert paths_and_vals(fields) == (
        [b"Image\nThumbnail\nUrl"],
        [b'"https://www.example.com/image/481989943"'],
    )


BASIC_EVENT = (
    b'{ "a": 1, "b": "two", "c": true, "d": null, "e": { "e1": 2, "e2": 3.02e-5}, '
    b'"f": [33e2, "x", true, false, null], "g": false, "h": [], "i": {}}'
)


def test_basic_all_fields():
    fields = JSONFlattener().flatten(
        BASIC_EVENT, tracker("a", "b", "c", "d", "e\ne1", "e\ne2", "f", "g", "h")
    )
    paths, vals = paths_and_vals(fields)
    assert paths == [b"a", b"b", b"c", b"d", b"e\ne1", b"e\ne2", b"f", b"f", b"f", b"f", b"f", b"g"]
    assert vals == [
        b"1", b'"two"', b"true", b"null", b"2", b"3.02e-5",
        b"33e2", b'"x"', b"true", b"false", b"null", b"false",
    ]


def test_basic_selected_fields():
    fields = JSONFlattener().flatten(BASIC_EVENT, tracker("a", "f"))
    assert paths_and_vals(fields) == (
        [b"a", b"f", b"f", b"f", b"f", b"f"],
        [b"1", b"33e2", b'"x"', b"true", b"false", b"null"],
    )


def test_strings_and_escapes():
    event = r'''{
		"skipped_escaped_string": "\"hello\"",
		"skipped_escaped_string_in_middle": "\"hello\" world",
		"two_escaping": "\"hello\" world \\",
		"skipped_normal_string": "abc",
		"normal_string": "abc",
		"escaped_string": "\"hello\"",
		"unicode_string": "\uD83D\ude04"
	}'''.encode()
    fields = JSONFlattener().flatten(
        event, tracker("normal_string", "escaped_string", "unicode_string")
    )
    assert paths_and_vals(fields) == (
        [b"normal_string", b"escaped_string", b"unicode_string"],
        [b'"abc"', b'""hello""', '"\U0001F604"'.encode()],
    )


@pytest.mark.parametrize(
    "event",
    [
        b'{ "a": { "v": "hello',
        b'{ "a": ["hello',
        b'{ "k": "',
        b'{ "k": { "a":',
        b'{ "k": {',
        b'{ "k": [1, ',
        b'{ "k": [',
    ],
)
def test_skipping_errors(event):
    with pytest.raises(FlattenError):
        JSONFlattener().flatten(event, tracker("non_existing_value"))


def test_skipping_blocks():
    event = b"""{
		"skipped_objects_with_objects": {
			"num": 1,
			"str": "hello world",
			"arr": [1, "yo", { "k": "val", "arr": [1, 2, "name"] }],
			"obj": {
				"another_obj": {
					"name": "yo",
					"patterns": [{ "a": 1 }, { "b": [1, 2, 3] }, "d"]
				}
			}
		},
		"skipped_array_of_primitives": [1, 324, 534, "string"],
		"skipped_array_of_arrays": [[0, 1], ["lat", "lng"], [{ "name": "quamina" }, { "description": "patterns matching" }]],
		"requested_object": {
			"another_num": 1,
			"another_str": "hello world",
			"another_arr": [1, "yo", { "k": "val", "arr": [1, 2, "name"] }],
			"another_obj": {
				"key": "value"
			}
		},
	}"""
    fields = JSONFlattener().flatten(event, tracker("requested_object\nanother_obj\nkey"))
    assert paths_and_vals(fields) == ([b"requested_object\nanother_obj\nkey"], [b'"value"'])


def test_minimal():
    fields = JSONFlattener().flatten(b'{"a": 1}', tracker("a"))
    assert fields == [Field(b"a", b"1", [])]


def test_accepts_text_event():
    fields = JSONFlattener().flatten('{"a": "x"}', tracker("a"))
    assert paths_and_vals(fields) == ([b"a"], [b'"x"'])


def test_reset_clears_state():
    fj = JSONFlattener()
    fields = fj.flatten(b' { "a" : [1]}', tracker("a", "b", "c", "d", "e", "f", "a\nx"))
    assert len(fields) == 1
    fj.reset()
    assert fj.index == 0
    assert fj.fields == []
    assert fj.skipping == 0
    assert fj.array_trail == []
    assert fields == [Field(b"a", b"1", [ArrayPos(1, 1)])]


BAD_UTF = b"a\x00\x01\x02z"


@pytest.mark.parametrize(
    "event",
    [
        b'{"a',
        b'{"a"' + BAD_UTF + b'": 3}',
        rb'{"a": "a\zb"}',
        rb'{"a\zb": 2}',
        b'{"a": 23z}',
        b"",
        b'"xx"',
        b'{"a": xx}',
        b'{"a": 1} x',
        b"{",
        b'{ "a\x00\x01\x02": 1}',
        b'{ r "a": 1}',
        b'{ "a" r: 1}',
        b'{ "a" :',
        b'{ "a" : ',
        b'{"a" : [ foo ]}',
        b'{"a": { x }}',
        b'{"a": 2',
        b'{"a": 4 4}"',
        b'{"a": [',
        b'{"a": [  ',
        b'{"a" : [ {"a": xx ]}',
        b'{"a" : [ z ]}',
        b'{"a" : [ 34r ]}',
        b'{"a" : [ 34 r ]}',
        b'{"a" : 3.3z}',
        b'{"a" : 3.3e3z}',
        b'{"a" : tru}',
        b'{"a" : tru',
        b'{"a" : truse}',
        b'{"a" : "',
        b'{"a" : "' + BAD_UTF + b'"}"',
        b'{"a" : "t',
        rb'{"a": "\n' + BAD_UTF + b'"}"',
        rb'{"a": "\nab',
        b'{"',
        b'{"a',
        b'{"' + BAD_UTF + b'": 1}',
        b'{"a": "\\',
        b'{"a": -z}',
        b'{"a": 23ez}',
    ],
)
def test_error_cases(event):
    fj = JSONFlattener()
    with pytest.raises(FlattenError):
        fj.flatten(event, tracker("a", "b", "c", "d", "e", "f", "a\nx"))


def test_error_reports_line_and_column():
    with pytest.raises(FlattenError) as info:
        JSONFlattener().flatten(b'{\n"a": x}', tracker("a"))
    assert str(info.value) == "at line 2 col 6: illegal character x after field name"


def test_empty_event_error():
    with pytest.raises(FlattenError, match="empty event"):
        JSONFlattener().flatten(b"", tracker("a"))


@pytest.mark.parametrize(
    "event",
    [
        b'{"nested":{"thing":"whatever","extra":{}}}',
        b'{"nested":{"thing":"whatever","extra":{"empty": false}}}',
        b'{"nested":{"thing":"whatever","extra":[{}]}}',
        b'{"nested":{"thing":"whatever","extra":[{"empty": false}]}}',
        b'{"nested":{"thing":"whatever","extra":[]}}',
        b'{"nested":{"thing":"whatever","extra":[1,"two",true,null]}}',
        b'{"nested":{"thing":"whatever","extra":[],"andAnother":{}}}',
    ],
)
def test_skip_unused_paths(event):
    fields = JSONFlattener().flatten(event, tracker("nested\nthing", "another"))
    assert paths_and_vals(fields) == ([b"nested\nthing"], [b'"whatever"'])


def test_array_trail_for_objects_in_array():
    event = b'{"a": [ {"b": 1, "c": 2}, {"b": 3, "c": 4} ]}'
    fields = JSONFlattener().flatten(event, tracker("a\nb", "a\nc"))
    assert fields == [
        Field(b"a\nb", b"1", [ArrayPos(1, 1)]),
        Field(b"a\nc", b"2", [ArrayPos(1, 1)]),
        Field(b"a\nb", b"3", [ArrayPos(1, 2)]),
        Field(b"a\nc", b"4", [ArrayPos(1, 2)]),
    ]


def test_array_trail_for_nested_arrays():
    fields = JSONFlattener().flatten(b'{"f": [1, [2, 3]]}', tracker("f"))
    assert fields == [
        Field(b"f", b"1", [ArrayPos(1, 1)]),
        Field(b"f", b"2", [ArrayPos(1, 2), ArrayPos(2, 1)]),
        Field(b"f", b"3", [ArrayPos(1, 2), ArrayPos(2, 2)]),
    ]


def test_coordinates_in_geometry():
    event = b"""{"type": "Feature",
      "geometry": {"type": "Polygon", "coordinates": [[[-122.5, 37.7, 0], [-122.4, 37.8, 0]]]},
      "properties": {"FROM_ST": "1917", "ODD_EVEN": "O"}}"""
    fields = JSONFlattener().flatten(event, tracker("geometry\ncoordinates"))
    assert paths_and_vals(fields) == (
        [b"geometry\ncoordinates"] * 6,
        [b"-122.5", b"37.7", b"0", b"-122.4", b"37.8", b"0"],
    )


def test_selects_type_fields():
    event = b"""{"type": "Feature",
      "geometry": {"type": "Polygon", "coordinates": [[[-122.5, 37.7, 0]]]},
      "properties": {"FROM_ST": "1917", "ODD_EVEN": "O"}}"""
    fields = JSONFlattener().flatten(event, tracker("type", "geometry\ntype"))
    assert paths_and_vals(fields) == (
        [b"type", b"geometry\ntype"],
        [b'"Feature"', b'"Polygon"'],
    )


def test_flattener_is_reusable_and_copyable():
    fj = JSONFlattener()
    first = fj.flatten(b'{"a": 1}', tracker("a"))
    second = fj.flatten(b'{"a": 2}', tracker("a"))
    assert [f.val for f in first] == [b"1"]
    assert [f.val for f in second] == [b"2"]
    other = fj.copy()
    assert other is not fj
    assert [f.val for f in other.flatten(b'{"a": 3}', tracker("a"))] == [b"3"]