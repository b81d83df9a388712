"""Pillow-backed rasterizer."""

from __future__ import annotations

from io import BytesIO
import logging
from typing import TYPE_CHECKING

from PIL import Image, UnidentifiedImageError

from dpistamp.errors import RasterizeError
from dpistamp.rasterizers.base import EncodedImage

if TYPE_CHECKING:
    from dpistamp.dimensions import AspectFit, ResolvedDimensions
    from dpistamp.options import OutputFormat
    from dpistamp.source import SourceImage

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255, 255)


class PillowRasterizer:
    """Rasterizer built on Pillow.

    Every call allocates its own canvas, so nothing drawn for one item can
    show up in the next.
    """

    def __init__(
        self, *, resample: Image.Resampling = Image.Resampling.LANCZOS
    ) -> None:
        self.resample = resample

    def encode(
        self,
        source: SourceImage,
        dimensions: ResolvedDimensions,
        fit: AspectFit | None,
        fmt: OutputFormat,
        quality: int,
    ) -> EncodedImage:
        """Decode, draw and encode *source* at *dimensions*."""
        pixels, has_alpha = self._decode(source)
        canvas = self._draw(pixels, dimensions, fit)
        if fmt == "png":
            return self._encode_png(canvas, keep_alpha=has_alpha)
        return self._encode_jpeg(canvas, quality)

    def _decode(self, source: SourceImage) -> tuple[Image.Image, bool]:
        try:
            data = source.content_loader()
            with Image.open(BytesIO(data)) as img:
                img.load()
                has_alpha = img.mode in ("RGBA", "LA", "PA") or (
                    img.mode == "P" and "transparency" in img.info
                )
                return img.convert("RGBA"), has_alpha
        except UnidentifiedImageError as e:
            raise RasterizeError(
                f"Failed to load image file: {source.name}",
                hint="The file is not a decodable JPEG or PNG.",
            ) from e
        except OSError as e:
            raise RasterizeError(
                f"Failed to decode image file: {source.name}", hint=str(e)
            ) from e

    def _draw(
        self,
        pixels: Image.Image,
        dimensions: ResolvedDimensions,
        fit: AspectFit | None,
    ) -> Image.Image:
        size = (dimensions.width, dimensions.height)
        if fit is None:
            return pixels.resize(size, self.resample)

        # Letterbox background is opaque white, never transparent
        canvas = Image.new("RGBA", size, WHITE)
        width, height, x, y = fit.rounded()
        width = max(1, min(width, size[0] - x))
        height = max(1, min(height, size[1] - y))
        drawn = pixels.resize((width, height), self.resample)
        canvas.alpha_composite(drawn, dest=(x, y))
        return canvas

    def _encode_jpeg(self, canvas: Image.Image, quality: int) -> EncodedImage:
        flat = Image.new("RGB", canvas.size, WHITE[:3])
        flat.paste(canvas, mask=canvas.getchannel("A"))
        buffer = BytesIO()
        flat.save(buffer, format="JPEG", quality=quality)
        logger.debug("Encoded %dx%d JPEG at quality %d", *canvas.size, quality)
        return EncodedImage(data=buffer.getvalue(), mime="image/jpeg")

    def _encode_png(self, canvas: Image.Image, *, keep_alpha: bool) -> EncodedImage:
        image = canvas if keep_alpha else canvas.convert("RGB")
        buffer = BytesIO()
        image.save(buffer, format="PNG")
        logger.debug("Encoded %dx%d PNG", *canvas.size)
        return EncodedImage(data=buffer.getvalue(), mime="image/png")
