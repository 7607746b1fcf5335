"""
Tests for structural equality used by the verifier.
"""

from dataclasses import dataclass

import pytest

from effects_as_data import cmd, first_difference, structural_equal


@dataclass(frozen=True)
class HttpGet:
    url: str
    type: str = "httpGet"


def test_mapping_key_order_is_irrelevant():
    assert structural_equal({"type": "a", "x": 1, "y": 2}, {"y": 2, "type": "a", "x": 1})


def test_frozen_command_equals_plain_dict():
    assert structural_equal(cmd("httpGet", url="/a"), {"type": "httpGet", "url": "/a"})


def test_list_and_tuple_are_interchangeable():
    assert structural_equal([1, (2, 3)], (1, [2, 3]))


def test_nested_difference_path():
    expected = {"type": "httpGet", "query": {"ids": [1, 2, 3]}}
    actual = {"type": "httpGet", "query": {"ids": [1, 2, 4]}}

    assert first_difference(expected, actual) == ("query", "ids", 2)


def test_missing_and_extra_keys():
    assert first_difference({"a": 1, "b": 2}, {"a": 1}) == ("b",)
    assert first_difference({"a": 1}, {"a": 1, "c": 3}) == ("c",)


def test_sequence_length_difference():
    assert first_difference([1, 2], [1, 2, 3]) == (2,)


def test_dataclasses_compare_by_fields():
    assert structural_equal(HttpGet("/a"), HttpGet("/a"))
    assert first_difference(HttpGet("/a"), HttpGet("/b")) == ("url",)


def test_container_against_scalar():
    assert first_difference({"a": [1]}, {"a": 1}) == ("a",)


@pytest.mark.parametrize(
    ("left", "right"),
    [(1, 1), ("x", "x"), (None, None), (1, 1.0)],
)
def test_scalars_use_equality(left, right):
    assert structural_equal(left, right)


def test_strings_are_not_sequences():
    assert not structural_equal("ab", ["a", "b"])
