"""dpistamp: print-ready JPEG/PNG conversion with embedded DPI metadata.

Public API:
    - convert(): Single image conversion
    - convert_many(): Sequential batch conversion with shared settings
    - OutputSettings: Sizing, format, quality and DPI for a batch
    - SourceImage: Explicit input type
    - Config: Configuration dataclass
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from dpistamp.batch import BatchEntry, BatchItem, BatchResult, run_batch
from dpistamp.config import Config
from dpistamp.dimensions import (
    AspectFit,
    ResolvedDimensions,
    aspect_fit,
    preview_dimensions,
    resolve,
)
from dpistamp.errors import (
    ConfigurationError,
    DimensionError,
    DpistampError,
    InternalError,
    InvalidFormatError,
    PersistenceError,
    RasterizeError,
    SourceError,
)
from dpistamp.metadata import inject_dpi
from dpistamp.options import OutputSettings
from dpistamp.presets import BUILTIN_PRESETS, Preset, PresetCatalog
from dpistamp.rasterizers import EncodedImage, PillowRasterizer
from dpistamp.source import SourceImage, detect_output_format

if TYPE_CHECKING:
    from collections.abc import Iterable

    from dpistamp.rasterizers import Rasterizer
    from dpistamp.sinks import PersistenceSink, ProgressSink

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("dpistamp")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("dpistamp").addHandler(logging.NullHandler())


async def convert(
    source: SourceImage,
    *,
    settings: OutputSettings,
    sink: PersistenceSink,
    config: Config | None = None,
    rasterizer: Rasterizer | None = None,
) -> BatchItem:
    """Convert a single image.

    Args:
        source: The image to convert.
        settings: Sizing, format, quality and DPI.
        sink: Receives the tagged output bytes.
        config: Optional configuration; resolved from the environment when *None*.
        rasterizer: Defaults to ``PillowRasterizer()``.

    Returns:
        The BatchItem; inspect ``status`` and ``error``.

    Example:
        item = await convert(
            SourceImage.from_file("cover.png"),
            settings=OutputSettings(sizing_mode="preset", preset_id="print-quality"),
            sink=DirectorySink("out"),
        )
        print(item.status, item.output_name)
    """
    result = await convert_many(
        [source], settings=settings, sink=sink, config=config, rasterizer=rasterizer
    )
    return result.items[0]


async def convert_many(
    sources: Iterable[SourceImage],
    *,
    settings: OutputSettings,
    sink: PersistenceSink,
    config: Config | None = None,
    rasterizer: Rasterizer | None = None,
    progress: ProgressSink | None = None,
) -> BatchResult:
    """Convert several images with shared settings, one at a time.

    System assets are detected per source and forced to JPEG output.

    Returns:
        BatchResult; failures are reported in ``failed``, never raised.
    """
    entries = [BatchEntry(source=s, settings=settings) for s in sources]
    return await run_batch(
        entries,
        rasterizer=rasterizer or PillowRasterizer(),
        sink=sink,
        progress=progress,
        config=config,
    )


# Re-export for convenience
__all__ = [
    "BUILTIN_PRESETS",
    "AspectFit",
    "BatchEntry",
    "BatchItem",
    "BatchResult",
    "Config",
    "ConfigurationError",
    "DimensionError",
    "DpistampError",
    "EncodedImage",
    "InternalError",
    "InvalidFormatError",
    "OutputSettings",
    "PersistenceError",
    "PillowRasterizer",
    "Preset",
    "PresetCatalog",
    "RasterizeError",
    "ResolvedDimensions",
    "SourceError",
    "SourceImage",
    "aspect_fit",
    "convert",
    "convert_many",
    "detect_output_format",
    "inject_dpi",
    "preview_dimensions",
    "resolve",
    "run_batch",
]
