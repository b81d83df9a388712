"""JFIF APP0 density injection for JPEG streams."""

from __future__ import annotations

import logging
import struct

from dpistamp.constants import MAX_JPEG_DPI
from dpistamp.errors import ConfigurationError, InvalidFormatError

logger = logging.getLogger(__name__)

SOI = b"\xff\xd8"
APP0 = b"\xff\xe0"
_JFIF_ID = b"JFIF\x00"
_JFIF_VERSION = b"\x01\x01"
_UNITS_DPI = 1
# marker(2) + length(2) + "JFIF\0"(5) + version(2) + units(1) + densities(4) + thumb(2)
JFIF_SEGMENT_SIZE = 18


def _check_dpi(dpi: int) -> None:
    if isinstance(dpi, bool) or not isinstance(dpi, int) or not 1 <= dpi <= MAX_JPEG_DPI:
        raise ConfigurationError(
            f"JPEG dpi must be an integer in [1, {MAX_JPEG_DPI}], got {dpi!r}",
            hint="JFIF stores densities as unsigned 16-bit values.",
        )


def build_jfif_segment(dpi: int) -> bytes:
    """Return an 18-byte APP0/JFIF segment declaring *dpi* in both axes."""
    _check_dpi(dpi)
    return (
        APP0
        + struct.pack(">H", 16)
        + _JFIF_ID
        + _JFIF_VERSION
        + struct.pack(">BHH", _UNITS_DPI, dpi, dpi)
        + b"\x00\x00"
    )


def _strip_leading_app0(data: bytes) -> bytes:
    """Return *data* after SOI with any leading APP0 segment removed."""
    if data[2:4] != APP0:
        return data[2:]
    if len(data) < 6:
        raise ValueError("APP0 marker without a length field")
    (length,) = struct.unpack_from(">H", data, 4)
    if length < 2:
        raise ValueError(f"APP0 declares impossible length {length}")
    end = 4 + length
    if end > len(data):
        raise ValueError(f"APP0 length {length} runs past end of stream")
    return data[end:]


def inject_jpeg_dpi(data: bytes, dpi: int) -> bytes:
    """Write *dpi* into a JPEG stream as its leading JFIF segment.

    An existing leading APP0 segment is replaced, so applying this twice
    leaves exactly one segment. Damage past the SOI marker is tolerated by
    returning *data* unchanged.

    Raises:
        InvalidFormatError: If *data* does not start with the SOI marker.
        ConfigurationError: If *dpi* does not fit in 16 bits.
    """
    if data[:2] != SOI:
        raise InvalidFormatError(
            "Invalid JPEG file: missing SOI marker",
            hint="Expected the stream to start with FF D8.",
            fmt="jpeg",
        )
    segment = build_jfif_segment(dpi)
    try:
        rest = _strip_leading_app0(data)
    except ValueError as exc:
        logger.warning("Leaving JPEG untagged: %s", exc)
        return data
    return SOI + segment + rest


def read_jpeg_dpi(data: bytes) -> tuple[int, int] | None:
    """Return ``(x, y)`` DPI from a leading JFIF segment, or *None*.

    Only segments using dots-per-inch units are reported.
    """
    if data[:2] != SOI or data[2:4] != APP0 or len(data) < 18:
        return None
    if data[6:11] != _JFIF_ID:
        return None
    units, x_density, y_density = struct.unpack_from(">BHH", data, 13)
    if units != _UNITS_DPI:
        return None
    return x_density, y_density
