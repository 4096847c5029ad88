"""
Tests for the versioned sufficient-statistics codec.
"""

import struct

import numpy as np
import pytest

from pylinreg.core.exceptions import SerializationError
from pylinreg.regression import SufficientStatistics, decode, encode
from pylinreg.regression.codec import (
    CURRENT_VERSION,
    HEADER_DTYPE,
    MAGIC,
    PAYLOAD_DTYPES,
    payload_version,
)


def _bits(value: float) -> bytes:
    return struct.pack('<d', value)


class TestRoundTrip:

    def test_empty(self):
        stats = SufficientStatistics()
        assert decode(encode(stats)) == stats

    def test_fitted(self, fitted_accumulator):
        stats = fitted_accumulator.snapshot()
        decoded = decode(encode(stats))
        assert decoded == stats
        for name in ('sum_x', 'sum_y', 'sum_xx', 'sum_xy'):
            assert _bits(getattr(decoded, name)) == _bits(getattr(stats, name))

    def test_extreme_values_are_bit_exact(self):
        stats = SufficientStatistics(
            n=2**62, sum_x=-0.0, sum_y=5e-324, sum_xx=float('inf'), sum_xy=-1.7976931348623157e308,
        )
        decoded = decode(encode(stats))
        assert decoded.n == 2**62
        for name in ('sum_x', 'sum_y', 'sum_xx', 'sum_xy'):
            assert _bits(getattr(decoded, name)) == _bits(getattr(stats, name))

    def test_accepts_bytearray_and_memoryview(self, fitted_accumulator):
        data = encode(fitted_accumulator.snapshot())
        assert decode(bytearray(data)) == decode(memoryview(data))


class TestLayout:

    def test_header_then_payload(self):
        data = encode(SufficientStatistics(n=3, sum_x=6.0, sum_y=7.0, sum_xx=14.0, sum_xy=16.0))
        assert data[:4] == MAGIC
        assert payload_version(data) == CURRENT_VERSION
        assert len(data) == HEADER_DTYPE.itemsize + PAYLOAD_DTYPES[CURRENT_VERSION].itemsize
        n, sx, sy, sxx, sxy = struct.unpack('<qdddd', data[HEADER_DTYPE.itemsize:])
        assert (n, sx, sy, sxx, sxy) == (3, 6.0, 7.0, 14.0, 16.0)


class TestMalformed:

    def test_empty_buffer(self):
        with pytest.raises(SerializationError, match="too short"):
            decode(b"")

    def test_bad_magic(self):
        data = bytearray(encode(SufficientStatistics()))
        data[:4] = b"XXXX"
        with pytest.raises(SerializationError, match="bad magic"):
            decode(bytes(data))

    def test_unknown_version(self):
        header = np.array([(MAGIC, 99)], dtype=HEADER_DTYPE).tobytes()
        body = encode(SufficientStatistics())[HEADER_DTYPE.itemsize:]
        with pytest.raises(SerializationError, match="unknown payload version 99") as info:
            decode(header + body)
        assert info.value.version == 99

    def test_truncated_payload(self):
        data = encode(SufficientStatistics(n=2, sum_x=1.0, sum_y=1.0, sum_xx=1.0, sum_xy=1.0))
        with pytest.raises(SerializationError, match="payload must be"):
            decode(data[:-1])

    def test_trailing_bytes(self):
        with pytest.raises(SerializationError, match="payload must be"):
            decode(encode(SufficientStatistics()) + b"\x00")

    def test_negative_count(self):
        data = bytearray(encode(SufficientStatistics()))
        data[HEADER_DTYPE.itemsize:HEADER_DTYPE.itemsize + 8] = struct.pack('<q', -1)
        with pytest.raises(SerializationError, match="corrupt payload"):
            decode(bytes(data))

    def test_not_bytes(self):
        with pytest.raises(SerializationError, match="bytes-like"):
            decode("LRSS")
