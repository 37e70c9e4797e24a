"""Exception hierarchy shared by the cereal codec and value model."""

from __future__ import annotations

from ._path import FieldPath

_PRINTABLE_LOW = 0x20
_PRINTABLE_HIGH = 0x7E


def describe_byte(byte: int) -> str:
    """Renders a single input byte for an error message."""
    if _PRINTABLE_LOW <= byte <= _PRINTABLE_HIGH:
        return chr(byte)
    return f"\\x{byte:02x}"


class CerealError(ValueError):
    """
    Base class for every failure raised while decoding or encoding cereal.

    The message is prefixed with the dotted field path when the failure
    can be attributed to a field, e.g. ``<root>.a.2: invalid int 'x'``.
    """

    def __init__(self, msg: str, path: FieldPath | None = None) -> None:
        if not isinstance(msg, str):
            raise TypeError("msg must be a string")

        self.msg = msg
        self.path = path

        if path is None:
            super().__init__(msg)
        else:
            super().__init__(f"{path}: {msg}")


class DecodeError(CerealError):
    """
    Handles cereal parsing failures with field path and byte offset.

    ``pos`` is the offset of the byte that triggered the failure, or the
    length of the consumed input when the document ended early.
    """

    def __init__(
        self, msg: str, path: FieldPath | None = None, pos: int = 0
    ) -> None:
        if not isinstance(pos, int) or pos < 0:
            raise ValueError("pos must be a non-negative integer")

        self.pos = pos
        super().__init__(msg, path)


class EmptyInput(DecodeError):
    def __init__(self) -> None:
        super().__init__("expected a version in the first byte")


class UnsupportedVersion(DecodeError):
    def __init__(self, version: int) -> None:
        self.version = version
        super().__init__(f"unexpected version '{describe_byte(version)}'")


class UnexpectedEndOfInput(DecodeError):
    def __init__(self, path: FieldPath, pos: int) -> None:
        super().__init__("unexpected end of input", path, pos)


class ExpectedOpenBrace(DecodeError):
    def __init__(self, path: FieldPath, pos: int) -> None:
        super().__init__("expected '{'", path, pos)


class InvalidTypeMarker(DecodeError):
    def __init__(self, marker: int, path: FieldPath, pos: int) -> None:
        self.marker = marker
        super().__init__(
            f"invalid type marker '{describe_byte(marker)}'", path, pos
        )


class NestingTooDeep(DecodeError):
    def __init__(self, max_depth: int, path: FieldPath, pos: int) -> None:
        self.max_depth = max_depth
        super().__init__(
            f"maximum nesting depth of {max_depth} exceeded", path, pos
        )


class InvalidScalar(DecodeError):
    """
    Raised when the text accumulated for a scalar does not parse as the
    kind selected by its type marker.
    """

    kind = "scalar"

    def __init__(self, raw: str, path: FieldPath, pos: int) -> None:
        self.raw = raw
        super().__init__(f"invalid {self.kind} '{raw}'", path, pos)


class InvalidBool(InvalidScalar):
    kind = "bool"


class InvalidInt(InvalidScalar):
    kind = "int"


class InvalidFloat32(InvalidScalar):
    kind = "float32"


class InvalidFloat64(InvalidScalar):
    kind = "float64"


class EncodeError(CerealError):
    """Handles failures rendering a value tree into cereal bytes."""


class InvalidVersionLength(EncodeError):
    def __init__(self, version: str) -> None:
        self.version = version
        super().__init__("version must be exactly one byte")


class UnsupportedEncodeVersion(EncodeError):
    """
    Raised for a well-formed but unknown version character.

    ``output`` holds the bytes written before the failure, which is the
    version byte alone.
    """

    def __init__(self, version: str, output: bytes) -> None:
        self.version = version
        self.output = output
        super().__init__(f"invalid version {version}")


class UnsupportedValueKind(EncodeError):
    def __init__(self, kind: str, path: FieldPath) -> None:
        self.kind = kind
        super().__init__(f"unsupported value type {kind}", path)


class NonStringMapKey(EncodeError):
    def __init__(self, key_kind: str, path: FieldPath) -> None:
        self.key_kind = key_kind
        super().__init__(
            f"map key type must be string, not {key_kind}", path
        )


class UnencodableText(EncodeError):
    """
    Raised for a key or string holding code points UTF-8 cannot carry,
    such as a lone surrogate that did not come from decoding.
    """

    def __init__(self, text: str, path: FieldPath) -> None:
        self.text = text
        super().__init__(f"cannot encode {text!r} as UTF-8", path)
