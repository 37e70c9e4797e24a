"""
Test data generators for cereal benchmarks.

Creates native documents that both cereal and JSON can represent:
- Different sizes (small/medium/large)
- Different complexity levels (flat/nested/mixed arrays)
- String-heavy content with escaped structural characters
"""

import random
import re
import string
from typing import Any

import orjson

import cereal

# Constants for random data generation
_INT_TYPE = 1
_FLOAT_TYPE = 2
_STRING_TYPE = 3
_BOOL_TYPE = 4
_ESCAPE_PROBABILITY = 0.3

_STRUCTURAL = re.compile(r"([\\:,{}\[\]])")

DATA_TYPES = [
    "small_object",
    "large_object",
    "mixed_array",
    "nested_structure",
    "string_heavy",
]


def generate_test_data(data_type: str) -> dict[str, Any]:
    """Generates a native document based on specified type."""
    generators = {
        "small_object": _generate_small_object,
        "large_object": _generate_large_object,
        "mixed_array": _generate_mixed_array,
        "nested_structure": _generate_nested_structure,
        "string_heavy": _generate_string_heavy,
    }

    if data_type not in generators:
        raise ValueError(f"Unknown data type: {data_type}")

    return generators[data_type]()


def generate_encoded(data_type: str) -> tuple[bytes, bytes]:
    """Returns the same document as cereal bytes and as JSON bytes."""
    data = generate_test_data(data_type)
    return cereal.dumps(data), orjson.dumps(data)


def escape(text: str) -> str:
    """Backslash-escapes structural characters for use in a document."""
    return _STRUCTURAL.sub(r"\\\1", text)


def _generate_small_object() -> dict[str, Any]:
    """Generates a small object (< 1KB) with basic key-value pairs."""
    return {
        "id": 12345,
        "name": "Alice Johnson",
        "email": "alice@example.com",
        "active": True,
        "balance": 1234.56,
        "metadata": {"created": "2024-01-15", "source": "api"},
    }


def _generate_large_object() -> dict[str, Any]:
    """Generates a large object (> 10KB) with many fields."""
    return {
        "user_id": random.randint(1000000, 9999999),
        "profile": {
            "first_name": _random_string(10),
            "last_name": _random_string(12),
            "email": f"{_random_string(8)}@{_random_string(6)}.com",
            "language": random.choice(["en", "es", "fr", "de", "zh"]),
            "notifications": {
                "email": random.choice([True, False]),
                "sms": random.choice([True, False]),
                "push": random.choice([True, False]),
            },
        },
        "transactions": [
            {
                "id": f"txn_{i:06d}",
                "amount": round(random.uniform(1.0, 1000.0), 2),
                "currency": random.choice(["USD", "EUR", "GBP", "JPY"]),
                "description": f"Payment for {_random_string(20)}",
                "status": random.choice(["completed", "pending", "failed"]),
            }
            for i in range(50)
        ],
        "activity_log": [
            {
                "action": random.choice(
                    ["login", "logout", "purchase", "view", "update"]
                ),
                "user_agent": f"Mozilla/5.0 ({_random_string(20)})",
                "count": random.randint(0, 2**31 - 1),
            }
            for _ in range(30)
        ],
    }


def _generate_mixed_array() -> dict[str, Any]:
    """Generates a large array with mixed data types."""
    array: list[Any] = []

    for i in range(200):
        choice = random.randint(1, 5)
        if choice == _INT_TYPE:
            array.append(random.randint(-1000, 1000))
        elif choice == _FLOAT_TYPE:
            array.append(round(random.uniform(-100.0, 100.0), 3))
        elif choice == _STRING_TYPE:
            array.append(_random_string(random.randint(5, 30)))
        elif choice == _BOOL_TYPE:
            array.append(random.choice([True, False]))
        else:
            array.append(
                {
                    "index": i,
                    "value": _random_string(10),
                    "score": round(random.uniform(0, 100), 2),
                }
            )

    return {"items": array}


def _generate_nested_structure() -> dict[str, Any]:
    """Generates a deeply nested structure."""

    def create_nested_dict(depth: int) -> dict[str, Any]:
        if depth <= 0:
            return {"value": _random_string(10)}

        return {
            "level": depth,
            "data": _random_string(15),
            "items": [create_nested_dict(depth - 1) for _ in range(3)],
            "nested": create_nested_dict(depth - 1),
        }

    return create_nested_dict(8)


def _generate_string_heavy() -> dict[str, Any]:
    """Generates strings where many bytes need a backslash escape."""

    def create_escaped_string() -> str:
        chars = []
        for _ in range(50):
            if random.random() < _ESCAPE_PROBABILITY:
                chars.append(escape(random.choice(":,{}[]\\")))
            else:
                chars.append(
                    random.choice(string.ascii_letters + string.digits + " ")
                )
        return "".join(chars)

    return {
        "strings": [create_escaped_string() for _ in range(100)],
        "mixed_content": {
            f"key_{i}": {
                "description": create_escaped_string(),
                "path": escape(f"C:\\Users\\{_random_string(8)}\\file.txt"),
            }
            for i in range(20)
        },
    }


def _random_string(length: int) -> str:
    """Generates a random string of specified length."""
    return "".join(random.choices(string.ascii_letters, k=length))
