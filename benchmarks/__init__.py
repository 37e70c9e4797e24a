"""
Benchmark suite for cereal encoding and decoding performance.

Compares cereal against standard JSON libraries including:
- Python standard library json
- orjson (C-optimized)
- ujson (ultra-fast JSON)

Measures speed and memory usage across different document shapes.
"""
