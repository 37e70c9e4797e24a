"""
Pytest configuration and shared fixtures for cereal tests.

Provides immutable test data fixtures and helpers for parsing bare map
bodies, following the layout of the decode and encode test modules.
"""

from dataclasses import dataclass
from typing import Any

import pytest

import cereal
from cereal import ROOT_PATH


@dataclass(frozen=True)
class CerealTestCase:
    """
    Immutable container for cereal test case data.

    Holds test input and expected behavior for consistent test execution.
    """

    description: str
    input_data: bytes
    should_fail: bool = False
    expected_output: Any = None
    error: type[cereal.DecodeError] | None = None
    message: str = ""


def parse_body(data: bytes, max_depth: int | None = None) -> Any:
    """Parses a map body whose opening brace was already consumed."""
    config = cereal.DecodeConfig(max_depth=max_depth)
    parser = cereal.CerealParser(cereal.ByteCursor(data), config)
    return cereal.to_native(parser.parse_map(ROOT_PATH, 1))


def parse_array_body(data: bytes) -> Any:
    """Parses an array body whose opening bracket was already consumed."""
    parser = cereal.CerealParser(
        cereal.ByteCursor(data), cereal.DecodeConfig()
    )
    return cereal.to_native(parser.parse_array(ROOT_PATH, 1))


@pytest.fixture
def valid_documents() -> list[CerealTestCase]:
    """
    Provides complete documents that must decode successfully.
    """
    return [
        CerealTestCase("single bool", b"1{b:b1}", False, {"b": True}),
        CerealTestCase("empty map", b"1{}", False, {}),
        CerealTestCase("empty array", b"1{a:[]}", False, {"a": []}),
        CerealTestCase("empty nested map", b"1{a:{}}", False, {"a": {}}),
        CerealTestCase(
            "all scalar kinds",
            b'1{t:b1,f:b0,i:i-42,d:d2.5,s:"text,e:f0.5}',
            False,
            {
                "t": True,
                "f": False,
                "i": -42,
                "d": 2.5,
                "s": "text",
                "e": 0.5,
            },
        ),
        CerealTestCase(
            "nested arrays",
            b"1{a:[[b0],[],[i1,i2]]}",
            False,
            {"a": [[False], [], [1, 2]]},
        ),
        CerealTestCase(
            "maps inside array",
            b"1{a:[{x:i1},{y:i2}]}",
            False,
            {"a": [{"x": 1}, {"y": 2}]},
        ),
        CerealTestCase(
            "deep nesting",
            b"1{a:{b:{c:{d:[[[i7]]]}}}}",
            False,
            {"a": {"b": {"c": {"d": [[[7]]]}}}},
        ),
        CerealTestCase(
            "escaped structural characters",
            b'1{\\{\\}\\[\\]\\:\\,\\\\:"\\,\\}\\]\\\\}',
            False,
            {"{}[]:,\\": ",}]\\"},
        ),
        CerealTestCase(
            "utf-8 string", '1{b:"😀}'.encode(), False, {"b": "😀"}
        ),
        CerealTestCase("empty key", b"1{:i1}", False, {"": 1}),
        CerealTestCase("empty string", b'1{s:"}', False, {"s": ""}),
    ]


@pytest.fixture
def malformed_documents() -> list[CerealTestCase]:
    """
    Provides documents that must fail, with the exact error message.
    """
    return [
        CerealTestCase(
            "no input",
            b"",
            True,
            error=cereal.EmptyInput,
            message="expected a version in the first byte",
        ),
        CerealTestCase(
            "unknown version",
            b"2{}",
            True,
            error=cereal.UnsupportedVersion,
            message="unexpected version '2'",
        ),
        CerealTestCase(
            "version only",
            b"1",
            True,
            error=cereal.UnexpectedEndOfInput,
            message="<root>: unexpected end of input",
        ),
        CerealTestCase(
            "root is not a map",
            b"1X",
            True,
            error=cereal.ExpectedOpenBrace,
            message="<root>: expected '{'",
        ),
        CerealTestCase(
            "unterminated root",
            b"1{",
            True,
            error=cereal.UnexpectedEndOfInput,
            message="<root>: unexpected end of input",
        ),
        CerealTestCase(
            "bad bool",
            b"1{b:b2}",
            True,
            error=cereal.InvalidBool,
            message="<root>.b: invalid bool '2'",
        ),
        CerealTestCase(
            "bad type marker",
            b"1{b:X2}",
            True,
            error=cereal.InvalidTypeMarker,
            message="<root>: invalid type marker 'X'",
        ),
        CerealTestCase(
            "unterminated nested map",
            b"1{m:{b:",
            True,
            error=cereal.UnexpectedEndOfInput,
            message="<root>.m: unexpected end of input",
        ),
        CerealTestCase(
            "unterminated nested array",
            b"1{m:[b0",
            True,
            error=cereal.UnexpectedEndOfInput,
            message="<root>.m: unexpected end of input",
        ),
    ]
