"""Output file naming."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dpistamp.dimensions import ResolvedDimensions
    from dpistamp.options import OutputSettings

_EXTENSION_RE = re.compile(r"\.[^/.]+$")


def _sizing_suffix(settings: OutputSettings, dims: ResolvedDimensions) -> str:
    mode = settings.sizing_mode
    if mode == "preset" and settings.preset_id:
        return "_" + settings.preset_id.replace("-", "_")
    if mode == "custom":
        return f"_{dims.width}x{dims.height}"
    if mode == "scale_percent" and settings.scale_percent not in (None, 100):
        return f"_{settings.scale_percent:g}pct"
    return ""


def output_filename(
    source_name: str,
    settings: OutputSettings,
    dims: ResolvedDimensions,
    *,
    system_asset: bool = False,
) -> str:
    """Build the output name for one converted image.

    ``photo.png`` converted with the ``print-quality`` preset to JPEG at
    300 DPI becomes ``photo_print_quality_300dpi.jpg``. Forced system-asset
    conversions carry an ``_asset`` marker.
    """
    base = _EXTENSION_RE.sub("", source_name) or source_name
    suffix = _sizing_suffix(settings, dims)
    marker = "_asset" if system_asset else ""
    return f"{base}{suffix}_{dims.dpi}dpi{marker}.{settings.extension}"
