"""
Generic value model shared by the cereal decoder and encoder.

Every document is a tree of the closed set of variants below. Native Python
objects cross into and out of the tree only through ``from_native`` and
``to_native``; the codec itself never inspects arbitrary objects.
"""

from __future__ import annotations

import struct
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any
from typing import Final

from ._errors import NonStringMapKey
from ._errors import UnsupportedValueKind
from ._path import ROOT
from ._path import FieldPath

INT32_MIN: Final = -(2**31)
INT32_MAX: Final = 2**31 - 1

_FLOAT32: Final = struct.Struct("<f")


def round_float32(x: float) -> float:
    """
    Rounds a double to the nearest IEEE-754 single precision value.

    Raises OverflowError for finite values outside single precision range.
    """
    result: float = _FLOAT32.unpack(_FLOAT32.pack(x))[0]
    return result


@dataclass(frozen=True)
class Bool:
    value: bool

    def __post_init__(self) -> None:
        if not isinstance(self.value, bool):
            raise TypeError("Bool value must be a bool")


@dataclass(frozen=True)
class Int32:
    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("Int32 value must be an int")
        if not INT32_MIN <= self.value <= INT32_MAX:
            raise ValueError(f"{self.value} does not fit in 32 bits")


@dataclass(frozen=True)
class Float32:
    """Single precision float; the payload is rounded on construction."""

    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", round_float32(float(self.value)))


@dataclass(frozen=True)
class Float64:
    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", float(self.value))


@dataclass(frozen=True)
class String:
    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise TypeError("String value must be a str")


@dataclass(frozen=True)
class Map:
    """
    Mapping from key to value.

    Key order carries no meaning; two maps with the same entries are equal
    whatever order they were built in. Keys are expected to be strings,
    the encoder rejects anything else.
    """

    value: Mapping[str, Value]

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", MappingProxyType(dict(self.value)))


@dataclass(frozen=True)
class Array:
    value: tuple[Value, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", tuple(self.value))


Value = Bool | Int32 | Float32 | Float64 | String | Map | Array


def from_native(obj: Any, path: FieldPath = ROOT) -> Value:  # noqa: PLR0911
    """
    Normalizes a native Python object into the value model.

    Args:
        obj: A dict, list, tuple, str, bool, int or float tree, or an
            existing value
        path: Location of ``obj`` in the enclosing document

    Returns:
        The equivalent value tree

    Raises:
        UnsupportedValueKind: For ``None``, integers outside 32 bits and
            any type with no cereal counterpart
        NonStringMapKey: For a dict with a non-string key
    """
    if isinstance(obj, Value):
        return obj
    elif isinstance(obj, bool):
        return Bool(obj)
    elif isinstance(obj, int):
        if not INT32_MIN <= obj <= INT32_MAX:
            raise UnsupportedValueKind("int (out of 32-bit range)", path)
        return Int32(obj)
    elif isinstance(obj, float):
        return Float64(obj)
    elif isinstance(obj, str):
        return String(obj)
    elif isinstance(obj, dict):
        entries: dict[str, Value] = {}
        for key, item in obj.items():
            if not isinstance(key, str):
                raise NonStringMapKey(type(key).__name__, path)
            entries[key] = from_native(item, path.child(key))
        return Map(entries)
    elif isinstance(obj, list | tuple):
        return Array(
            tuple(
                from_native(item, path.index(i)) for i, item in enumerate(obj)
            )
        )
    else:
        raise UnsupportedValueKind(type(obj).__name__, path)


def to_native(value: Value) -> Any:
    """Converts a value tree into plain dicts, lists and scalars."""
    if isinstance(value, Map):
        return {key: to_native(item) for key, item in value.value.items()}
    elif isinstance(value, Array):
        return [to_native(item) for item in value.value]
    return value.value

