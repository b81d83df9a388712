"""CRC-32 (IEEE 802.3) as used by PNG chunk checksums."""

from __future__ import annotations

from functools import cache

_POLYNOMIAL = 0xEDB88320


@cache
def crc32_table() -> tuple[int, ...]:
    """Return the 256-entry lookup table for the reflected polynomial."""
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            c = (_POLYNOMIAL ^ (c >> 1)) if c & 1 else c >> 1
        table.append(c)
    return tuple(table)


def crc32(data: bytes | bytearray | memoryview) -> int:
    """Compute the unsigned CRC-32 of *data*."""
    table = crc32_table()
    crc = 0xFFFFFFFF
    for byte in bytes(data):
        crc = table[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc ^ 0xFFFFFFFF
