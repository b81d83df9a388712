"""Target dimension resolution and aspect-fit geometry."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import TYPE_CHECKING

from dpistamp.constants import MAX_RASTER_DIM
from dpistamp.errors import DimensionError
from dpistamp.options import resolve_dpi
from dpistamp.presets import PresetCatalog

if TYPE_CHECKING:
    from dpistamp.options import OutputSettings
    from dpistamp.source import SourceImage

logger = logging.getLogger(__name__)

_DEFAULT_CATALOG = PresetCatalog()


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (``2.5 -> 3``)."""
    return math.floor(value + 0.5)


@dataclass(frozen=True, slots=True)
class ResolvedDimensions:
    """Pixel size and DPI of one output image."""

    width: int
    height: int
    dpi: int


@dataclass(frozen=True, slots=True)
class AspectFit:
    """Where a source is drawn inside the target canvas.

    Values are fractional; the area outside the box is letterboxed in white.
    """

    draw_width: float
    draw_height: float
    offset_x: float
    offset_y: float

    def rounded(self) -> tuple[int, int, int, int]:
        """Return ``(width, height, x, y)`` snapped to whole pixels, min 1x1."""
        return (
            max(1, round_half_up(self.draw_width)),
            max(1, round_half_up(self.draw_height)),
            round_half_up(self.offset_x),
            round_half_up(self.offset_y),
        )


def aspect_fit(
    source_width: int, source_height: int, target_width: int, target_height: int
) -> AspectFit:
    """Fit a source inside a target box preserving the source aspect ratio.

    A wider source fills the width and is centered vertically; otherwise the
    source fills the height and is centered horizontally. Equal ratios take
    the fill-height branch.
    """
    source_aspect = source_width / source_height
    target_aspect = target_width / target_height

    if source_aspect > target_aspect:
        draw_width = float(target_width)
        draw_height = target_width / source_aspect
        return AspectFit(
            draw_width=draw_width,
            draw_height=draw_height,
            offset_x=0.0,
            offset_y=(target_height - draw_height) / 2,
        )

    draw_height = float(target_height)
    draw_width = target_height * source_aspect
    return AspectFit(
        draw_width=draw_width,
        draw_height=draw_height,
        offset_x=(target_width - draw_width) / 2,
        offset_y=0.0,
    )


def _base_dimensions(
    source: SourceImage,
    settings: OutputSettings,
    catalog: PresetCatalog,
    dpi: int,
) -> tuple[float, float, int]:
    mode = settings.sizing_mode
    if mode == "preset":
        preset_id = settings.preset_id or ""
        preset = catalog.get(preset_id)
        if preset is None:
            raise DimensionError(
                f"Unknown preset: {preset_id!r}",
                hint="Built-in presets: " + ", ".join(p.preset_id for p in catalog),
                reason="unknown_preset",
            )
        return preset.width, preset.height, preset.dpi
    if mode == "custom":
        return settings.custom_width or 0, settings.custom_height or 0, dpi
    if mode == "scale_percent":
        scale = (settings.scale_percent or 100) / 100
        return (
            round_half_up(source.width * scale),
            round_half_up(source.height * scale),
            dpi,
        )
    return source.width, source.height, dpi


def resolve(
    source: SourceImage,
    settings: OutputSettings,
    *,
    catalog: PresetCatalog | None = None,
    default_dpi: int | None = None,
    max_dimension: int = MAX_RASTER_DIM,
) -> ResolvedDimensions:
    """Resolve the output pixel size and DPI for *source*.

    When sizing is not ``"original"`` and the requested DPI differs from the
    base DPI (a preset's native DPI), both axes are scaled by
    ``dpi / base_dpi``. The final DPI is always the requested one.

    Raises:
        DimensionError: If the preset is unknown or either axis falls outside
            ``[1, max_dimension]``.
    """
    dpi = resolve_dpi(settings.dpi, default_dpi)
    width, height, base_dpi = _base_dimensions(
        source, settings, _DEFAULT_CATALOG if catalog is None else catalog, dpi
    )

    if settings.sizing_mode != "original" and dpi != base_dpi:
        factor = dpi / base_dpi
        width = round_half_up(width * factor)
        height = round_half_up(height * factor)
        logger.debug("Applied DPI scaling %d -> %d (x%.2f)", base_dpi, dpi, factor)

    w, h = int(width), int(height)
    if w > max_dimension or h > max_dimension:
        raise DimensionError(
            f"Image dimensions too large: {w}x{h} (max {max_dimension}px)",
            hint="Lower the DPI, the scale percentage or the custom size.",
            reason="too_large",
            width=w,
            height=h,
        )
    if w < 1 or h < 1:
        raise DimensionError(
            f"Image dimensions too small: {w}x{h}",
            hint="Raise the scale percentage so each side keeps at least 1px.",
            reason="too_small",
            width=w,
            height=h,
        )
    return ResolvedDimensions(width=w, height=h, dpi=dpi)


def preview_dimensions(
    source: SourceImage,
    settings: OutputSettings,
    *,
    catalog: PresetCatalog | None = None,
    default_dpi: int | None = None,
) -> tuple[int, int]:
    """Return the size of the drawn image area, for display before converting.

    With aspect ratio maintained, this is the aspect-fit box rather than the
    letterboxed canvas.
    """
    dims = resolve(source, settings, catalog=catalog, default_dpi=default_dpi)
    if not settings.maintain_aspect_ratio or settings.sizing_mode == "original":
        return dims.width, dims.height
    fit = aspect_fit(source.width, source.height, dims.width, dims.height)
    width, height, _, _ = fit.rounded()
    return width, height
