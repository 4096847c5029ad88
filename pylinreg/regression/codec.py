"""
Versioned binary encoding of sufficient statistics.

Layout (little-endian):
    header   magic b"LRSS" (4 bytes), version uint16
    payload  version-specific record; version 1 is
             n int64, sum_x, sum_y, sum_xx, sum_xy float64

Floats are stored as raw IEEE-754 doubles, so decode(encode(s)) == s bit
for bit. Adding a field means adding a new payload dtype under a new
version; old payloads keep decoding through their own dtype.
"""

import numpy as np

from pylinreg.core.exceptions import SerializationError, ValidationError
from pylinreg.regression.accumulator import SufficientStatistics

MAGIC = b"LRSS"
CURRENT_VERSION = 1

HEADER_DTYPE = np.dtype([
    ('magic', 'S4'),
    ('version', '<u2'),
])

PAYLOAD_DTYPES: dict[int, np.dtype] = {
    1: np.dtype([
        ('n', '<i8'),
        ('sum_x', '<f8'),
        ('sum_y', '<f8'),
        ('sum_xx', '<f8'),
        ('sum_xy', '<f8'),
    ]),
}


def encode(stats: SufficientStatistics) -> bytes:
    """Serialize statistics using the current payload version."""
    header = np.array([(MAGIC, CURRENT_VERSION)], dtype=HEADER_DTYPE)
    payload = np.array(
        [(stats.n, stats.sum_x, stats.sum_y, stats.sum_xx, stats.sum_xy)],
        dtype=PAYLOAD_DTYPES[CURRENT_VERSION],
    )
    return header.tobytes() + payload.tobytes()


def payload_version(data: bytes) -> int:
    """
    Read the version tag of a serialized model without decoding it.

    Raises:
        SerializationError: If the header is truncated or the magic is wrong
    """
    header = _read_header(data)
    return int(header['version'])


def decode(data: bytes) -> SufficientStatistics:
    """
    Deserialize statistics written by encode().

    Raises:
        SerializationError: On truncated or oversized buffers, bad magic,
            unknown versions, or payloads that violate the statistics
            invariants
    """
    header = _read_header(data)
    version = int(header['version'])

    dtype = PAYLOAD_DTYPES.get(version)
    if dtype is None:
        raise SerializationError(
            f"unknown payload version {version}; "
            f"supported versions: {sorted(PAYLOAD_DTYPES)}",
            version=version,
        )

    body = bytes(data)[HEADER_DTYPE.itemsize:]
    if len(body) != dtype.itemsize:
        raise SerializationError(
            f"version {version} payload must be {dtype.itemsize} bytes, got {len(body)}",
            version=version,
        )

    record = np.frombuffer(body, dtype=dtype)[0]
    try:
        return SufficientStatistics(
            n=int(record['n']),
            sum_x=float(record['sum_x']),
            sum_y=float(record['sum_y']),
            sum_xx=float(record['sum_xx']),
            sum_xy=float(record['sum_xy']),
        )
    except ValidationError as e:
        raise SerializationError(f"corrupt payload: {e}", version=version) from e


def _read_header(data: bytes) -> np.void:
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise SerializationError(
            f"expected a bytes-like payload, got {type(data).__name__}"
        )
    data = bytes(data)
    if len(data) < HEADER_DTYPE.itemsize:
        raise SerializationError(
            f"payload too short: {len(data)} bytes, header alone is {HEADER_DTYPE.itemsize}"
        )
    header = np.frombuffer(data[:HEADER_DTYPE.itemsize], dtype=HEADER_DTYPE)[0]
    if bytes(header['magic']) != MAGIC:
        raise SerializationError(f"bad magic {bytes(header['magic'])!r}, expected {MAGIC!r}")
    return header
