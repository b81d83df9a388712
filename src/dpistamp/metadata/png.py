"""pHYs chunk injection for PNG streams."""

from __future__ import annotations

import logging
import struct

from dpistamp.constants import PIXELS_PER_METER_PER_DPI
from dpistamp.crc32 import crc32
from dpistamp.dimensions import round_half_up
from dpistamp.errors import ConfigurationError, InvalidFormatError

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
_PHYS = b"pHYs"
_IHDR = b"IHDR"
_UNIT_METER = 1
# length(4) + type(4) + data(9) + crc(4)
PHYS_CHUNK_SIZE = 21
_MAX_UINT32 = 0xFFFFFFFF


def dpi_to_ppm(dpi: int) -> int:
    """Convert dots per inch to pixels per meter as PNG stores it."""
    return round_half_up(dpi * PIXELS_PER_METER_PER_DPI)


def build_phys_chunk(dpi: int) -> bytes:
    """Return a 21-byte pHYs chunk declaring *dpi* in both axes."""
    if isinstance(dpi, bool) or not isinstance(dpi, int) or dpi < 1:
        raise ConfigurationError(
            f"PNG dpi must be a positive integer, got {dpi!r}",
            hint="Common print values are 300 and 600.",
        )
    ppm = dpi_to_ppm(dpi)
    if ppm > _MAX_UINT32:
        raise ConfigurationError(
            f"PNG dpi {dpi} overflows the pHYs density field",
            hint="Use a realistic print resolution.",
        )
    body = _PHYS + struct.pack(">IIB", ppm, ppm, _UNIT_METER)
    return struct.pack(">I", 9) + body + struct.pack(">I", crc32(body))


def _ihdr_end(data: bytes) -> int:
    """Return the offset just past the IHDR chunk (its CRC included)."""
    if len(data) < 16:
        raise ValueError("stream ends before the first chunk header")
    (length,) = struct.unpack_from(">I", data, 8)
    if data[12:16] != _IHDR:
        raise ValueError(f"first chunk is {data[12:16]!r}, not IHDR")
    end = 8 + 8 + length + 4
    if end > len(data):
        raise ValueError(f"IHDR length {length} runs past end of stream")
    return end


def inject_png_dpi(data: bytes, dpi: int) -> bytes:
    """Insert a pHYs chunk declaring *dpi* right after IHDR.

    Existing pHYs chunks are left in place, so re-tagging an already tagged
    file yields two. Damage past the signature is tolerated by returning
    *data* unchanged.

    Raises:
        InvalidFormatError: If *data* does not start with the PNG signature.
        ConfigurationError: If *dpi* is not a positive integer.
    """
    if data[:8] != PNG_SIGNATURE:
        raise InvalidFormatError(
            "Invalid PNG file: signature mismatch",
            hint="Expected the stream to start with 89 50 4E 47 0D 0A 1A 0A.",
            fmt="png",
        )
    chunk = build_phys_chunk(dpi)
    try:
        insert_at = _ihdr_end(data)
    except ValueError as exc:
        logger.warning("Leaving PNG untagged: %s", exc)
        return data
    return data[:insert_at] + chunk + data[insert_at:]


def read_png_dpi(data: bytes) -> tuple[int, int] | None:
    """Return ``(x, y)`` DPI from the first pHYs chunk, or *None*.

    Densities are converted back from pixels per meter and rounded.
    """
    if data[:8] != PNG_SIGNATURE:
        return None
    pos = 8
    while pos + 8 <= len(data):
        length, ctype = struct.unpack_from(">I4s", data, pos)
        if ctype == _PHYS and length == 9 and pos + 17 <= len(data):
            x_ppm, y_ppm, unit = struct.unpack_from(">IIB", data, pos + 8)
            if unit != _UNIT_METER:
                return None
            return (
                round_half_up(x_ppm / PIXELS_PER_METER_PER_DPI),
                round_half_up(y_ppm / PIXELS_PER_METER_PER_DPI),
            )
        if ctype == b"IDAT" or ctype == b"IEND":
            return None
        pos += 12 + length
    return None
