"""Unit tests for individual components in isolation.

Coverage:
    - chat/: reveal cadence, presenter lifecycle, webhook reply decoding
    - preview/: type detection, converters, storage fallback, zoom
    - parsing/: PDF inspection and text extraction
    - config: environment-backed settings validation

Follows single responsibility per test function. Leverages pytest-check
for multiple assertions per test.
"""
