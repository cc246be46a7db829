import pytest

from junction.ports.datatypes import (
    are_data_types_compatible,
    are_data_types_equal,
    merge_data_types,
    normalize_data_types,
    primary_data_type,
    to_data_type_value,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, []),
        ("", []),
        ([], []),
        ("number", ["number"]),
        (["a", "b"], ["a", "b"]),
        (("a", "", "b"), ["a", "b"]),
    ],
)
def test_normalize_data_types(value, expected):
    assert normalize_data_types(value) == expected


def test_merge_keeps_primary_first_and_drops_repeats():
    assert merge_data_types("b", ["a", "b", "c"]) == ["b", "a", "c"]
    assert merge_data_types(None, None) == []
    assert merge_data_types(["x", "x"]) == ["x"]


@pytest.mark.parametrize(
    "a, b, expected",
    [
        (None, "number", True),
        ("number", None, True),
        ([], ["a"], True),
        (["a"], ["b"], False),
        (["a", "b"], ["b", "c"], True),
        ("any", "number", False),
        ("any", "any", True),
    ],
)
def test_are_data_types_compatible(a, b, expected):
    assert are_data_types_compatible(a, b) is expected
    assert are_data_types_compatible(b, a) is expected


def test_are_data_types_equal_ignores_order():
    assert are_data_types_equal(["a", "b"], ["b", "a"])
    assert are_data_types_equal(None, [])
    assert not are_data_types_equal("a", ["a", "b"])


def test_to_data_type_value_and_primary():
    assert to_data_type_value([]) is None
    assert to_data_type_value(["a"]) == "a"
    assert to_data_type_value(["a", "b"]) == ["a", "b"]
    assert primary_data_type(["b", "a"]) == "b"
    assert primary_data_type(None) is None
