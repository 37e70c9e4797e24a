"""
Cereal encoding functionality tests.

Validates rendering of every value kind, version handling, key ordering
and the native conversion performed by dumps.
"""

import io
import math

import pytest

import cereal


def test_dump() -> None:
    """
    Validates dump to a binary file-like object.
    """
    bio = io.BytesIO()
    cereal.dump({}, bio)
    assert bio.getvalue() == b"1{}"


def test_dumps() -> None:
    assert cereal.dumps({}) == b"1{}"
    assert cereal.dumps({"b": True}, "1") == b"1{b:b1}"


def test_dump_requires_write_method() -> None:
    with pytest.raises(TypeError, match="write"):
        cereal.dump({}, b"")  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "value,expected",
    [
        (cereal.Bool(True), b"1{x:b1}"),
        (cereal.Bool(False), b"1{x:b0}"),
        (cereal.Int32(25), b"1{x:i25}"),
        (cereal.Int32(-7), b"1{x:i-7}"),
        (cereal.Int32(-(2**31)), b"1{x:i-2147483648}"),
        (cereal.Float32(1.234), b"1{x:f1.234}"),
        (cereal.Float32(1.0), b"1{x:f1}"),
        (cereal.Float32(1e10), b"1{x:f1e+10}"),
        (cereal.Float32(0.1), b"1{x:f0.1}"),
        (cereal.Float64(1.234), b"1{x:d1.234}"),
        (cereal.Float64(3.0), b"1{x:d3.0}"),
        (cereal.Float64(-0.5), b"1{x:d-0.5}"),
        (cereal.Float64(math.inf), b"1{x:dinf}"),
        (cereal.String("hello"), b'1{x:"hello}'),
        (cereal.String(""), b'1{x:"}'),
        (cereal.String("😀"), '1{x:"😀}'.encode()),
        (cereal.Map({}), b"1{x:{}}"),
        (cereal.Array(()), b"1{x:[]}"),
    ],
)
def test_encode_value_kinds(value: cereal.Value, expected: bytes) -> None:
    """
    Validates the exact rendering of each kind under a single key.
    """
    assert cereal.encode(cereal.Map({"x": value})) == expected


def test_encode_nested_containers() -> None:
    value = cereal.Map(
        {
            "a": cereal.Array(
                (
                    cereal.Int32(1),
                    cereal.Array(()),
                    cereal.Map({"b": cereal.Bool(False)}),
                )
            )
        }
    )
    assert cereal.encode(value) == b"1{a:[i1,[],{b:b0}]}"


def test_dumps_native_types() -> None:
    """
    Validates native values are normalized before rendering.
    """
    assert cereal.dumps({"n": 5}) == b"1{n:i5}"
    assert cereal.dumps({"d": 2.5}) == b"1{d:d2.5}"
    assert cereal.dumps({"s": "text"}) == b'1{s:"text}'
    assert cereal.dumps({"a": [True, 1]}) == b"1{a:[b1,i1]}"
    assert cereal.dumps({"t": (1, 2)}) == b"1{t:[i1,i2]}"
    assert cereal.dumps({"m": {}}) == b"1{m:{}}"
    expected = '1{ключ:"значение}'.encode()
    assert cereal.dumps({"ключ": "значение"}) == expected


def test_dumps_accepts_value_tree() -> None:
    value = cereal.Map({"f": cereal.Float32(0.5)})
    assert cereal.dumps(value) == b"1{f:f0.5}"


def test_sort_keys() -> None:
    """
    Validates sorted output is available on request.
    """
    obj = {"b": 1, "a": 2, "c": {"z": True, "y": False}}
    assert (
        cereal.dumps(obj, sort_keys=True) == b"1{a:i2,b:i1,c:{y:b0,z:b1}}"
    )


def test_unsorted_output_decodes_to_same_map() -> None:
    """
    Validates default output without relying on entry order.
    """
    obj = {"b": 1, "a": 2, "c": 3}
    encoded = cereal.dumps(obj)
    assert encoded.startswith(b"1{")
    assert encoded.endswith(b"}")
    assert sorted(encoded[2:-1].split(b",")) == [b"a:i2", b"b:i1", b"c:i3"]


def test_invalid_sort_keys() -> None:
    with pytest.raises(TypeError):
        cereal.dumps({}, sort_keys="yes")


@pytest.mark.parametrize("version", ["12", "", "😀", "é"])
def test_version_must_be_one_byte(version: str) -> None:
    with pytest.raises(cereal.InvalidVersionLength) as exc_info:
        cereal.dumps({"b": True}, version)
    assert str(exc_info.value) == "version must be exactly one byte"
    assert exc_info.value.path is None


def test_unsupported_version() -> None:
    """
    Validates an unknown single byte version reports what was written.
    """
    with pytest.raises(cereal.UnsupportedEncodeVersion) as exc_info:
        cereal.dumps({"b": True}, "0")
    assert str(exc_info.value) == "invalid version 0"
    assert exc_info.value.output == b"0"
    assert exc_info.value.version == "0"


def test_version_type_checked() -> None:
    with pytest.raises(TypeError):
        cereal.dumps({}, 1)  # type: ignore[arg-type]


def test_output_is_not_escaped() -> None:
    """
    Validates keys and strings are written raw.
    """
    assert cereal.dumps({"k": "a,b"}) == b'1{k:"a,b}'
    assert cereal.dumps({"k": "a\\,b"}) == b'1{k:"a\\,b}'
    assert cereal.loads(cereal.dumps({"k": "a\\,b"})) == {"k": "a,b"}


def test_unescaped_output_does_not_decode() -> None:
    with pytest.raises(cereal.UnexpectedEndOfInput):
        cereal.loads(cereal.dumps({"k": "a,b"}))


def test_float32_shortest_representation() -> None:
    """
    Validates float32 output reads back as the same single precision value.
    """
    for x in [0.1, 3.14159, 1e-7, 16777217.0, -2.5e-38]:
        value = cereal.Float32(x)
        encoded = cereal.encode(cereal.Map({"f": value}))
        assert cereal.decode(encoded) == cereal.Map({"f": value})
        assert len(encoded) <= len(b"1{f:}") + 15


@pytest.mark.parametrize(
    "obj,expected_msg",
    [
        ({"s": "\ud800"}, "<root>.s: cannot encode '\\ud800' as UTF-8"),
        (
            {"a": ["ok", "x\udfff"]},
            "<root>.a.1: cannot encode 'x\\udfff' as UTF-8",
        ),
        ({"m": {"\ud800": 1}}, "<root>.m: cannot encode '\\ud800' as UTF-8"),
    ],
)
def test_unencodable_text(obj: dict[str, object], expected_msg: str) -> None:
    """
    Validates surrogates outside the escaped byte range fail with a path.
    """
    with pytest.raises(cereal.UnencodableText) as exc_info:
        cereal.dumps(obj)

    assert isinstance(exc_info.value, cereal.EncodeError)
    assert str(exc_info.value) == expected_msg


def test_escaped_bytes_written_back() -> None:
    assert cereal.dumps({"s": "a\udcffb"}) == b'1{s:"a\xffb}'
