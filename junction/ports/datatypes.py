"""
Normalizing and comparing the data type tags a port may declare.

Only the absence of tags means "accepts anything"; the literal tag ``"any"``
is matched like every other string.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Union

DataTypeValue = Union[str, Sequence[str], None]


def normalize_data_types(value: DataTypeValue = None) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [entry for entry in value if isinstance(entry, str) and entry]


def merge_data_types(primary: DataTypeValue = None, secondary: DataTypeValue = None) -> List[str]:
    """
    Concatenate ``primary`` then ``secondary`` dropping repeated tags.
    """

    merged: List[str] = []
    for value in (primary, secondary):
        for entry in normalize_data_types(value):
            if entry not in merged:
                merged.append(entry)
    return merged


def to_data_type_value(types: Sequence[str]) -> Union[str, List[str], None]:
    if not types:
        return None
    if len(types) == 1:
        return types[0]
    return list(types)


def primary_data_type(value: DataTypeValue = None) -> Optional[str]:
    types = normalize_data_types(value)
    return types[0] if types else None


def are_data_types_compatible(a: DataTypeValue = None, b: DataTypeValue = None) -> bool:
    a_types = normalize_data_types(a)
    b_types = normalize_data_types(b)
    if not a_types or not b_types:
        return True
    return any(entry in b_types for entry in a_types)


def are_data_types_equal(a: DataTypeValue = None, b: DataTypeValue = None) -> bool:
    return sorted(normalize_data_types(a)) == sorted(normalize_data_types(b))


__all__ = [
    "are_data_types_compatible",
    "are_data_types_equal",
    "merge_data_types",
    "normalize_data_types",
    "primary_data_type",
    "to_data_type_value",
]
