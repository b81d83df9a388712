"""Print-resolution metadata written directly into encoded streams."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dpistamp.errors import InvalidFormatError
from dpistamp.rasterizers.base import EncodedImage

from .jpeg import build_jfif_segment, inject_jpeg_dpi, read_jpeg_dpi
from .png import build_phys_chunk, dpi_to_ppm, inject_png_dpi, read_png_dpi

if TYPE_CHECKING:
    from collections.abc import Callable

_INJECTORS: dict[str, Callable[[bytes, int], bytes]] = {
    "image/jpeg": inject_jpeg_dpi,
    "image/png": inject_png_dpi,
}


def inject_dpi(image: EncodedImage, dpi: int) -> EncodedImage:
    """Return a copy of *image* whose stream declares *dpi*.

    Raises:
        InvalidFormatError: If the MIME type is unsupported or the stream does
            not carry the signature its MIME type promises.
    """
    injector = _INJECTORS.get(image.mime)
    if injector is None:
        raise InvalidFormatError(
            f"No DPI injector for {image.mime!r}",
            hint="dpistamp tags image/jpeg and image/png output.",
        )
    return EncodedImage(data=injector(image.data, dpi), mime=image.mime)


__all__ = [
    "build_jfif_segment",
    "build_phys_chunk",
    "dpi_to_ppm",
    "inject_dpi",
    "inject_jpeg_dpi",
    "inject_png_dpi",
    "read_jpeg_dpi",
    "read_png_dpi",
]
