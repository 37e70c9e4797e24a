"""
Encoder and decoder for cereal, a compact versioned text interchange format.

A cereal document is a version byte followed by a map. Every value carries
a one byte type marker, structural characters are escaped with a backslash
and failures are reported with the dotted path of the offending field.
"""

import math
import os
import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import IO
from typing import Any
from typing import Final
from typing import TypeAlias

from ._errors import CerealError
from ._errors import DecodeError
from ._errors import EmptyInput
from ._errors import EncodeError
from ._errors import ExpectedOpenBrace
from ._errors import InvalidBool
from ._errors import InvalidFloat32
from ._errors import InvalidFloat64
from ._errors import InvalidInt
from ._errors import InvalidScalar
from ._errors import InvalidTypeMarker
from ._errors import InvalidVersionLength
from ._errors import NestingTooDeep
from ._errors import NonStringMapKey
from ._errors import UnencodableText
from ._errors import UnexpectedEndOfInput
from ._errors import UnsupportedEncodeVersion
from ._errors import UnsupportedValueKind
from ._errors import UnsupportedVersion
from ._path import ROOT as ROOT_PATH
from ._path import FieldPath
from ._value import INT32_MAX
from ._value import INT32_MIN
from ._value import Array
from ._value import Bool
from ._value import Float32
from ._value import Float64
from ._value import Int32
from ._value import Map
from ._value import String
from ._value import Value
from ._value import from_native
from ._value import round_float32
from ._value import to_native

__version__ = "0.1.0"

Position: TypeAlias = int

# Binary input accepted by the decoder
Source: TypeAlias = bytes | bytearray | memoryview | IO[bytes]

VERSION_1: Final = "1"

_OPEN_BRACE: Final = ord("{")
_CLOSE_BRACE: Final = ord("}")
_OPEN_BRACKET: Final = ord("[")
_CLOSE_BRACKET: Final = ord("]")
_COMMA: Final = ord(",")
_COLON: Final = ord(":")
_BACKSLASH: Final = ord("\\")

_FLOAT32_DIGITS: Final = 9
_FLOAT32_MAX: Final = 3.4028234663852886e38

# Keys and strings keep undecodable bytes as lone surrogates
_TEXT_ERRORS: Final = "surrogateescape"

_INT_LITERAL: Final = re.compile(rb"[+-]?[0-9]+")
_FLOAT_LITERAL: Final = re.compile(
    rb"[+-]?(?:(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
    rb"|inf(?:inity)?|nan)",
    re.IGNORECASE,
)

# Set CEREAL_PROFILE to time the parser and encoder; ignored under -O
PROFILE_HOT_PATHS = __debug__ and "CEREAL_PROFILE" in os.environ


@dataclass
class HotPathStats:
    """Accumulated timings for one named hot path."""

    function_name: str
    call_count: int = 0
    total_time_ns: int = 0
    bytes_processed: int = 0

    def record_call(self, duration_ns: int, nbytes: int = 0) -> None:
        """Adds one timed pass and the payload bytes it handled."""
        self.call_count += 1
        self.total_time_ns += duration_ns
        self.bytes_processed += nbytes


_hot_path_stats: dict[str, HotPathStats] = {}


class _TimedSection:
    """Times one pass through a hot path into the shared registry."""

    __slots__ = ("name", "nbytes", "started")

    def __init__(self, name: str, nbytes: int) -> None:
        self.name = name
        self.nbytes = nbytes
        self.started = 0

    def __enter__(self) -> "_TimedSection":
        self.started = time.perf_counter_ns()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        elapsed = time.perf_counter_ns() - self.started
        stats = _hot_path_stats.setdefault(self.name, HotPathStats(self.name))
        stats.record_call(elapsed, self.nbytes)


class _UntimedSection:
    """Shared stand-in used while profiling is off; does nothing."""

    __slots__ = ()

    def __enter__(self) -> "_UntimedSection":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        return None


_UNTIMED: Final = _UntimedSection()


def _profile(name: str, nbytes: int = 0) -> _TimedSection | _UntimedSection:
    """Returns a context timing ``name`` when profiling is enabled."""
    if PROFILE_HOT_PATHS:
        return _TimedSection(name, nbytes)
    return _UNTIMED


def get_hot_path_stats() -> dict[str, HotPathStats]:
    """Returns a snapshot of the recorded hot path timings."""
    return dict(_hot_path_stats)


def clear_hot_path_stats() -> None:
    """Forgets every recorded hot path timing."""
    _hot_path_stats.clear()


class ParseState(Enum):
    """
    Container parser states.

    Maps read KEY -> TYPE -> VALUE, arrays read TYPE -> VALUE. Nested
    containers are parsed recursively straight from TYPE.
    """

    READING_KEY = "reading_key"
    READING_TYPE = "reading_type"
    READING_VALUE = "reading_value"


class ValueKind(Enum):
    """Value kinds keyed by their one byte type marker."""

    BOOL = ord("b")
    INT32 = ord("i")
    FLOAT32 = ord("f")
    FLOAT64 = ord("d")
    STRING = ord('"')
    MAP = _OPEN_BRACE
    ARRAY = _OPEN_BRACKET


_KINDS_BY_MARKER: Final = {kind.value: kind for kind in ValueKind}


@dataclass(frozen=True)
class DecodeConfig:
    """
    Configures decoding behavior with immutable settings.

    ``max_depth`` bounds container nesting (the root map is depth 1);
    ``None`` leaves it to the interpreter's recursion limit.
    ``chunk_size`` is the read size used for binary streams.
    """

    max_depth: int | None = None
    chunk_size: int = 8192

    def __post_init__(self) -> None:
        if self.max_depth is not None and (
            not isinstance(self.max_depth, int) or self.max_depth < 1
        ):
            raise TypeError("max_depth must be a positive integer or None")
        if not isinstance(self.chunk_size, int) or self.chunk_size < 1:
            raise TypeError("chunk_size must be a positive integer")


@dataclass(frozen=True)
class EncodeConfig:
    """
    Configures encoding behavior with immutable settings.

    Map entries are written in the mapping's own iteration order, which is
    not part of the format; ``sort_keys`` opts into sorted output.
    """

    sort_keys: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.sort_keys, bool):
            raise TypeError("sort_keys must be a boolean")


class ByteCursor:
    """
    Single forward cursor over a cereal document.

    Reads binary streams in chunks and hands out one byte at a time,
    tracking the absolute offset for error reporting.
    """

    def __init__(self, source: Source, chunk_size: int = 8192):
        if isinstance(source, str):
            raise TypeError(
                "the cereal document must be bytes or a binary stream, not str"
            )

        if isinstance(source, bytes | bytearray | memoryview):
            self._buffer = bytes(source)
            self._read: Callable[[int], bytes] | None = None
        elif hasattr(source, "read"):
            self._buffer = b""
            self._read = source.read
        else:
            raise TypeError(
                "the cereal document must be bytes or a binary stream, "
                f"not {type(source).__name__}"
            )

        self.chunk_size = chunk_size
        self.pos: Position = 0
        self._offset = 0

    def advance(self) -> int | None:
        """Returns the next byte and advances, or None at end of input."""
        if self._offset >= len(self._buffer) and not self._fill():
            return None

        byte = self._buffer[self._offset]
        self._offset += 1
        self.pos += 1
        return byte

    def _fill(self) -> bool:
        """Refills the buffer from the stream, returns False when drained."""
        if self._read is None:
            return False

        chunk = self._read(self.chunk_size)
        if not chunk:
            self._read = None
            return False
        if isinstance(chunk, str):
            raise TypeError("the cereal stream must be opened in binary mode")

        self._buffer = bytes(chunk)
        self._offset = 0
        return True


class CerealParser:
    """
    Recursive state machine parser for cereal version 1.

    One parser handles one document. Each container call owns its key and
    value buffers, so nothing is shared between nested levels except the
    cursor.
    """

    def __init__(self, cursor: ByteCursor, config: DecodeConfig):
        self.cursor = cursor
        self.config = config

    def parse_document(self) -> Map:
        """Parses the version marker and the root map."""
        version = self.cursor.advance()
        if version is None:
            raise EmptyInput()
        if version != ord(VERSION_1):
            raise UnsupportedVersion(version)

        opening = self.cursor.advance()
        if opening is None:
            raise UnexpectedEndOfInput(ROOT_PATH, self.cursor.pos)
        if opening != _OPEN_BRACE:
            raise ExpectedOpenBrace(ROOT_PATH, self.cursor.pos - 1)

        return self.parse_map(ROOT_PATH, 1)

    def _next_byte(self, path: FieldPath) -> int:
        byte = self.cursor.advance()
        if byte is None:
            raise UnexpectedEndOfInput(path, self.cursor.pos)
        return byte

    def _read_kind(self, marker: int, path: FieldPath) -> ValueKind:
        kind = _KINDS_BY_MARKER.get(marker)
        if kind is None:
            raise InvalidTypeMarker(marker, path, self.cursor.pos - 1)
        return kind

    def _check_depth(self, path: FieldPath, depth: int) -> None:
        max_depth = self.config.max_depth
        if max_depth is not None and depth > max_depth:
            raise NestingTooDeep(max_depth, path, self.cursor.pos - 1)

    def parse_map(self, path: FieldPath, depth: int) -> Map:  # noqa: PLR0912
        """Parses a map body; the opening brace is already consumed."""
        with _profile("parse_map"):
            self._check_depth(path, depth)

            entries: dict[str, Value] = {}
            state = ParseState.READING_KEY
            key = bytearray()
            value = bytearray()
            name = ""
            field_path = path
            kind = ValueKind.STRING
            value_start: Position = 0
            escaped = False

            while True:
                byte = self._next_byte(path)

                if state is ParseState.READING_KEY:
                    if escaped:
                        escaped = False
                        key.append(byte)
                    elif byte == _CLOSE_BRACE and not key:
                        return Map(entries)
                    elif byte == _COMMA and not key:
                        continue
                    elif byte == _COLON:
                        name = key.decode("utf-8", _TEXT_ERRORS)
                        field_path = path.child(name)
                        state = ParseState.READING_TYPE
                    elif byte == _BACKSLASH:
                        escaped = True
                    else:
                        key.append(byte)

                elif state is ParseState.READING_TYPE:
                    kind = self._read_kind(byte, path)

                    if kind is ValueKind.MAP:
                        entries[name] = self.parse_map(field_path, depth + 1)
                    elif kind is ValueKind.ARRAY:
                        entries[name] = self.parse_array(field_path, depth + 1)
                    else:
                        state = ParseState.READING_VALUE
                        value_start = self.cursor.pos
                        continue

                    # Container entries close without a value buffer
                    state = ParseState.READING_KEY
                    key = bytearray()

                else:
                    if escaped:
                        escaped = False
                        value.append(byte)
                    elif byte in (_COMMA, _CLOSE_BRACE):
                        entries[name] = _parse_scalar(
                            bytes(value), kind, field_path, value_start
                        )
                        if byte == _CLOSE_BRACE:
                            return Map(entries)

                        state = ParseState.READING_KEY
                        key = bytearray()
                        value = bytearray()
                    elif byte == _BACKSLASH:
                        escaped = True
                    else:
                        value.append(byte)

    def parse_array(self, path: FieldPath, depth: int) -> Array:
        """Parses an array body; the opening bracket is already consumed."""
        with _profile("parse_array"):
            self._check_depth(path, depth)

            items: list[Value] = []
            state = ParseState.READING_TYPE
            value = bytearray()
            element_path = path
            kind = ValueKind.STRING
            value_start: Position = 0
            escaped = False

            while True:
                byte = self._next_byte(path)

                if state is ParseState.READING_TYPE:
                    if byte == _CLOSE_BRACKET:
                        return Array(tuple(items))
                    elif byte == _COMMA:
                        continue

                    element_path = path.index(len(items))
                    kind = self._read_kind(byte, element_path)

                    if kind is ValueKind.MAP:
                        items.append(self.parse_map(element_path, depth + 1))
                    elif kind is ValueKind.ARRAY:
                        items.append(self.parse_array(element_path, depth + 1))
                    else:
                        state = ParseState.READING_VALUE
                        value_start = self.cursor.pos

                else:
                    if escaped:
                        escaped = False
                        value.append(byte)
                    elif byte in (_COMMA, _CLOSE_BRACKET):
                        items.append(
                            _parse_scalar(
                                bytes(value), kind, element_path, value_start
                            )
                        )
                        if byte == _CLOSE_BRACKET:
                            return Array(tuple(items))

                        state = ParseState.READING_TYPE
                        value = bytearray()
                    elif byte == _BACKSLASH:
                        escaped = True
                    else:
                        value.append(byte)


def _parse_float(raw: bytes) -> float | None:
    """Parses a float literal, None when malformed or out of range."""
    if not _FLOAT_LITERAL.fullmatch(raw):
        return None

    result = float(raw)
    if math.isinf(result) and b"inf" not in raw.lower():
        return None
    return result


def _parse_float32(raw: bytes) -> float | None:
    """
    Parses a float literal rounded once to single precision.

    Rounding the nearest double again can land on the wrong single when
    that double sits exactly between two singles; the exact decimal value
    of the literal decides the direction in that case.

    Raises OverflowError for finite literals beyond single precision.
    """
    parsed = _parse_float(raw)
    if parsed is None:
        return None

    nearest = round_float32(parsed)
    if not math.isfinite(parsed) or nearest == parsed:
        return nearest

    # Mirror of nearest across parsed, a single only at a halfway point
    other = 2 * Fraction(parsed) - Fraction(nearest)
    if abs(other) > _FLOAT32_MAX or round_float32(float(other)) != other:
        return nearest

    exact = Fraction(raw.decode("ascii"))
    if exact == parsed:
        return nearest
    low, high = sorted((Fraction(nearest), other))
    return float(high if exact > parsed else low)


def _parse_scalar(  # noqa: PLR0911
    raw: bytes, kind: ValueKind, path: FieldPath, pos: Position
) -> Value:
    """
    Converts the accumulated text of a scalar into its value.

    The text has already been unescaped by the container parser.
    """
    with _profile("parse_scalar", len(raw)):
        if kind is ValueKind.STRING:
            return String(raw.decode("utf-8", _TEXT_ERRORS))

        text = raw.decode("utf-8", "replace")

        if kind is ValueKind.BOOL:
            if raw == b"0":
                return Bool(False)
            elif raw == b"1":
                return Bool(True)
            raise InvalidBool(text, path, pos)

        elif kind is ValueKind.INT32:
            if _INT_LITERAL.fullmatch(raw):
                try:
                    number = int(raw)
                except ValueError as e:
                    # Beyond the interpreter's digit limit
                    raise InvalidInt(text, path, pos) from e
                if INT32_MIN <= number <= INT32_MAX:
                    return Int32(number)
            raise InvalidInt(text, path, pos)

        elif kind is ValueKind.FLOAT32:
            try:
                parsed = _parse_float32(raw)
            except (OverflowError, ValueError) as e:
                # Out of single range, or beyond the interpreter's digit limit
                raise InvalidFloat32(text, path, pos) from e
            if parsed is None:
                raise InvalidFloat32(text, path, pos)
            return Float32(parsed)

        else:
            parsed = _parse_float(raw)
            if parsed is None:
                raise InvalidFloat64(text, path, pos)
            return Float64(parsed)


def decode(source: Source, **kwargs: Any) -> Map:
    """
    Parses a cereal document into a value tree.

    Accepts bytes-like input or a binary stream. The first error aborts
    the whole decode; no partial result is returned.
    """
    config = DecodeConfig(**kwargs)
    cursor = ByteCursor(source, config.chunk_size)
    return CerealParser(cursor, config).parse_document()


def loads(data: bytes | bytearray | memoryview, **kwargs: Any) -> Any:
    """
    Parses a cereal document into plain dicts, lists and scalars.
    """
    if not isinstance(data, bytes | bytearray | memoryview):
        raise TypeError(
            "the cereal document must be bytes, "
            f"not {type(data).__name__}"
        )

    return to_native(decode(data, **kwargs))


def load(fp: IO[bytes], **kwargs: Any) -> Any:
    """
    Parses a cereal document from a binary file-like object.
    """
    if not hasattr(fp, "read"):
        raise TypeError("fp must have a read() method")

    return to_native(decode(fp, **kwargs))


def _format_float32(x: float) -> str:
    """Shortest decimal that reads back as the same single precision value."""
    if not math.isfinite(x):
        return repr(x)

    for digits in range(1, _FLOAT32_DIGITS):
        text = f"{x:.{digits}g}"
        if _parse_float32(text.encode("ascii")) == x:
            return text
    return f"{x:.{_FLOAT32_DIGITS}g}"


def _encode_text(text: str, path: FieldPath) -> bytes:
    """Encodes a key or string, restoring bytes kept by the decoder."""
    try:
        return text.encode("utf-8", _TEXT_ERRORS)
    except UnicodeEncodeError as e:
        raise UnencodableText(text, path) from e


def _encode_map(
    value: Map, out: bytearray, path: FieldPath, config: EncodeConfig
) -> None:
    """Writes a map, entries in iteration order unless sort_keys is set."""
    entries = list(value.value.items())
    for key, _ in entries:
        if not isinstance(key, str):
            raise NonStringMapKey(type(key).__name__, path)

    if config.sort_keys:
        entries.sort(key=lambda entry: entry[0])

    out.append(_OPEN_BRACE)
    for i, (key, item) in enumerate(entries):
        if i:
            out.append(_COMMA)
        out += _encode_text(key, path)
        out.append(_COLON)
        _encode_value(item, out, path.child(key), config)
    out.append(_CLOSE_BRACE)


def _encode_array(
    value: Array, out: bytearray, path: FieldPath, config: EncodeConfig
) -> None:
    out.append(_OPEN_BRACKET)
    for i, item in enumerate(value.value):
        if i:
            out.append(_COMMA)
        _encode_value(item, out, path.index(i), config)
    out.append(_CLOSE_BRACKET)


def _encode_value(
    value: Value, out: bytearray, path: FieldPath, config: EncodeConfig
) -> None:
    """
    Writes any value with its type marker.

    Keys and strings are written raw: producers escape structural
    characters themselves.
    """
    if isinstance(value, Bool):
        out += b"b1" if value.value else b"b0"
    elif isinstance(value, Int32):
        out += b"i" + str(value.value).encode("ascii")
    elif isinstance(value, Float32):
        out += b"f" + _format_float32(value.value).encode("ascii")
    elif isinstance(value, Float64):
        out += b"d" + repr(value.value).encode("ascii")
    elif isinstance(value, String):
        out += b'"' + _encode_text(value.value, path)
    elif isinstance(value, Map):
        _encode_map(value, out, path, config)
    elif isinstance(value, Array):
        _encode_array(value, out, path, config)
    else:
        raise UnsupportedValueKind(type(value).__name__, path)


def encode(value: Map, version: str = VERSION_1, **kwargs: Any) -> bytes:
    """
    Renders a value tree as a cereal document.

    Raises InvalidVersionLength unless ``version`` is a single byte and
    UnsupportedEncodeVersion for any version other than ``"1"``.
    """
    if not isinstance(version, str):
        raise TypeError("version must be a string")

    config = EncodeConfig(**kwargs)

    version_bytes = version.encode("utf-8")
    if len(version_bytes) != 1:
        raise InvalidVersionLength(version)

    out = bytearray(version_bytes)
    if version != VERSION_1:
        raise UnsupportedEncodeVersion(version, bytes(out))

    if not isinstance(value, Map):
        raise UnsupportedValueKind(type(value).__name__, ROOT_PATH)

    with _profile("encode"):
        _encode_map(value, out, ROOT_PATH, config)
    return bytes(out)


def dumps(obj: Any, version: str = VERSION_1, **kwargs: Any) -> bytes:
    """
    Serializes a dict of plain Python values to cereal bytes.
    """
    if not isinstance(obj, dict | Map):
        raise UnsupportedValueKind(type(obj).__name__, ROOT_PATH)

    root = from_native(obj)
    return encode(root, version, **kwargs)  # type: ignore[arg-type]


def dump(
    obj: Any, fp: IO[bytes], version: str = VERSION_1, **kwargs: Any
) -> None:
    """
    Serializes a dict of plain Python values to a binary file-like object.
    """
    if not hasattr(fp, "write"):
        raise TypeError("fp must have a write() method")

    fp.write(dumps(obj, version, **kwargs))


__all__ = [
    "Array",
    "Bool",
    "ByteCursor",
    "CerealError",
    "CerealParser",
    "DecodeConfig",
    "DecodeError",
    "EmptyInput",
    "EncodeConfig",
    "EncodeError",
    "ExpectedOpenBrace",
    "FieldPath",
    "Float32",
    "Float64",
    "HotPathStats",
    "Int32",
    "InvalidBool",
    "InvalidFloat32",
    "InvalidFloat64",
    "InvalidInt",
    "InvalidScalar",
    "InvalidTypeMarker",
    "InvalidVersionLength",
    "Map",
    "NestingTooDeep",
    "NonStringMapKey",
    "ParseState",
    "ROOT_PATH",
    "String",
    "UnexpectedEndOfInput",
    "UnencodableText",
    "UnsupportedEncodeVersion",
    "UnsupportedValueKind",
    "UnsupportedVersion",
    "VERSION_1",
    "Value",
    "ValueKind",
    "clear_hot_path_stats",
    "decode",
    "dump",
    "dumps",
    "encode",
    "from_native",
    "get_hot_path_stats",
    "load",
    "loads",
    "to_native",
]
