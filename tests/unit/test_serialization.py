"""Tests for flowline.utils.serialization."""

import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

import pytest
from pydantic import BaseModel

from flowline.utils.serialization import (
    UNSERIALIZABLE,
    format_log_arg,
    safe_json,
    summarize_error,
)


class Color(Enum):
    RED = "red"


@dataclass
class Point:
    x: int
    y: int


class Item(BaseModel):
    title: str
    url: str


class TestSafeJson:
    """Tests for safe_json()."""

    @pytest.mark.parametrize(
        "value",
        [
            {"a": 1, "b": [1, 2, {"c": None}]},
            [1, "two", 3.5, True, None],
            "plain string",
            42,
            {"unicode": "Grüße"},
        ],
    )
    def test_json_compatible_values_read_back_equal(self, value):
        """JSON-compatible values survive a serialize/parse cycle."""
        assert json.loads(safe_json(value)) == value

    def test_output_is_indented(self):
        """Objects are rendered with two-space indentation."""
        assert safe_json({"a": 1}) == '{\n  "a": 1\n}'

    def test_cyclic_value_degrades_to_placeholder(self):
        """A self-referencing structure yields the placeholder instead of raising."""
        cyclic = {"name": "loop"}
        cyclic["self"] = cyclic

        assert safe_json(cyclic) == UNSERIALIZABLE

    def test_unsupported_object_degrades_to_placeholder(self):
        """Arbitrary objects without an encoding yield the placeholder."""
        assert safe_json(object()) == UNSERIALIZABLE

    def test_placeholder_is_valid_json(self):
        """The placeholder itself parses as a JSON string."""
        assert json.loads(UNSERIALIZABLE) == "[unserializable]"

    def test_common_python_types_are_encoded(self):
        """Dataclasses, pydantic models, enums, paths, datetimes and sets are encoded."""
        value = {
            "point": Point(1, 2),
            "item": Item(title="t", url="u"),
            "color": Color.RED,
            "path": Path("/tmp/out"),
            "when": datetime(2024, 1, 2, 3, 4, 5),
            "tags": {"only"},
        }

        decoded = json.loads(safe_json(value))

        assert decoded == {
            "point": {"x": 1, "y": 2},
            "item": {"title": "t", "url": "u"},
            "color": "red",
            "path": "/tmp/out",
            "when": "2024-01-02T03:04:05",
            "tags": ["only"],
        }

    def test_none_serializes_as_null(self):
        assert safe_json(None) == "null"


class TestFormatLogArg:
    """Tests for format_log_arg()."""

    def test_primitives_use_str(self):
        assert format_log_arg(None) == "None"
        assert format_log_arg(True) == "True"
        assert format_log_arg(3) == "3"
        assert format_log_arg(2.5) == "2.5"

    def test_strings_are_verbatim(self):
        assert format_log_arg('say "hi"') == 'say "hi"'

    def test_structures_are_json(self):
        assert format_log_arg({"k": [1]}) == '{\n  "k": [\n    1\n  ]\n}'

    def test_cyclic_structure_uses_placeholder(self):
        cyclic = []
        cyclic.append(cyclic)
        assert format_log_arg(cyclic) == UNSERIALIZABLE


class TestSummarizeError:
    """Tests for summarize_error()."""

    def test_exception_message(self):
        assert summarize_error(ValueError("bad input")) == "bad input"

    def test_exception_without_message_uses_class_name(self):
        assert summarize_error(KeyError()) == "KeyError"

    def test_string_error(self):
        assert summarize_error("already text") == "already text"

    def test_other_values_are_serialized(self):
        assert summarize_error({"code": 500}) == '{\n  "code": 500\n}'
