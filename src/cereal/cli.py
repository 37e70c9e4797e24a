"""
cereal CLI - convert documents between cereal and JSON.

Commands:
  cereal2json <file>   - Decode a cereal document and print it as JSON
  json2cereal <file>   - Encode a JSON object and print it as cereal

Pass - instead of a file name to read standard input.
"""

from __future__ import annotations

import argparse
import math
import sys

import orjson

import cereal


def _build_parser(prog: str, description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description=description,
        usage=f"{prog} <filename>\n       cat file | {prog} -",
    )
    parser.add_argument(
        "input", nargs="*", help="input file, or - for standard input"
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {cereal.__version__}"
    )
    return parser


def _read_input(path: str) -> bytes:
    """Reads the whole input; the codec never opens files itself."""
    if path == "-":
        return sys.stdin.buffer.read()
    with open(path, "rb") as f:
        return f.read()


def _load_input(
    parser: argparse.ArgumentParser, argv: list[str] | None
) -> bytes | None:
    """Resolves the single input argument, reporting problems on stderr."""
    args = parser.parse_args(argv)
    if len(args.input) != 1:
        parser.print_usage(sys.stderr)
        return None

    try:
        data = _read_input(args.input[0])
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None

    if not data:
        print("input is empty", file=sys.stderr)
        return None
    return data


def _non_finite(value: cereal.Value) -> float | None:
    """Returns the first NaN or infinity in a value tree, JSON has neither."""
    if isinstance(value, cereal.Float32 | cereal.Float64):
        return None if math.isfinite(value.value) else value.value

    if isinstance(value, cereal.Map):
        items = list(value.value.values())
    elif isinstance(value, cereal.Array):
        items = list(value.value)
    else:
        return None

    for item in items:
        found = _non_finite(item)
        if found is not None:
            return found
    return None


def cereal_to_json(argv: list[str] | None = None) -> int:
    """Decode a cereal document and write it to stdout as JSON."""
    parser = _build_parser("cereal2json", "Convert a cereal document to JSON.")
    data = _load_input(parser, argv)
    if data is None:
        return 1

    try:
        value = cereal.decode(data)
    except cereal.DecodeError as e:
        print(e, file=sys.stderr)
        return 1

    bad = _non_finite(value)
    if bad is not None:
        print(f"Error: unsupported value: {bad}", file=sys.stderr)
        return 1

    try:
        output = orjson.dumps(
            cereal.to_native(value), option=orjson.OPT_APPEND_NEWLINE
        )
    except orjson.JSONEncodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    sys.stdout.buffer.write(output)
    sys.stdout.flush()
    return 0


def json_to_cereal(argv: list[str] | None = None) -> int:
    """Encode a JSON object and write it to stdout as a cereal document."""
    parser = _build_parser("json2cereal", "Convert a JSON object to cereal.")
    data = _load_input(parser, argv)
    if data is None:
        return 1

    try:
        obj = orjson.loads(data)
    except orjson.JSONDecodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not isinstance(obj, dict):
        print("Error: JSON input must be an object", file=sys.stderr)
        return 1

    try:
        encoded = cereal.dumps(obj, cereal.VERSION_1)
    except cereal.EncodeError as e:
        print(e, file=sys.stderr)
        return 1

    sys.stdout.buffer.write(encoded)
    sys.stdout.flush()
    return 0


def cereal2json() -> None:
    sys.exit(cereal_to_json())


def json2cereal() -> None:
    sys.exit(json_to_cereal())
