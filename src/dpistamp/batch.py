"""Sequential batch coordination: resolve, rasterize, tag and save each item."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
import time
from typing import TYPE_CHECKING, Literal

from dpistamp.config import Config
from dpistamp.dimensions import ResolvedDimensions, aspect_fit, resolve
from dpistamp.errors import InternalError
from dpistamp.metadata import inject_dpi
from dpistamp.naming import output_filename

if TYPE_CHECKING:
    from collections.abc import Iterable

    from dpistamp.options import OutputSettings
    from dpistamp.presets import PresetCatalog
    from dpistamp.rasterizers.base import Rasterizer
    from dpistamp.sinks import PersistenceSink, ProgressSink
    from dpistamp.source import SourceImage

logger = logging.getLogger(__name__)

ItemStatus = Literal["pending", "succeeded", "failed"]


@dataclass(frozen=True)
class BatchEntry:
    """One requested conversion.

    ``is_system_asset=None`` means "detect from the source".
    """

    source: SourceImage
    settings: OutputSettings
    is_system_asset: bool | None = None


@dataclass
class BatchItem:
    """Outcome record for one entry of a batch."""

    source: SourceImage
    settings: OutputSettings
    status: ItemStatus = "pending"
    output_name: str | None = None
    error: str | None = None
    is_system_asset: bool = False
    dimensions: ResolvedDimensions | None = None
    byte_length: int | None = None


@dataclass(frozen=True)
class BatchResult:
    """Aggregate of a finished batch, items kept in input order."""

    items: tuple[BatchItem, ...]
    duration_s: float = 0.0

    @property
    def succeeded(self) -> list[BatchItem]:
        """Items that were saved."""
        return [i for i in self.items if i.status == "succeeded"]

    @property
    def failed(self) -> list[BatchItem]:
        """Items that failed, with ``error`` set."""
        return [i for i in self.items if i.status == "failed"]

    @property
    def total_count(self) -> int:
        """Number of entries attempted."""
        return len(self.items)

    @property
    def succeeded_count(self) -> int:
        """Number of saved items."""
        return len(self.succeeded)

    @property
    def failed_count(self) -> int:
        """Number of failed items."""
        return len(self.failed)


def _as_entry(
    entry: BatchEntry | tuple[SourceImage, OutputSettings, bool | None],
) -> BatchEntry:
    if isinstance(entry, BatchEntry):
        return entry
    return BatchEntry(*entry)


def _process_item(
    item: BatchItem,
    *,
    rasterizer: Rasterizer,
    sink: PersistenceSink,
    config: Config,
    catalog: PresetCatalog,
) -> None:
    """Run one item through resolve, rasterize, inject and save.

    Raises whatever the failing step raised; the caller records it.
    """
    settings = item.settings
    source = item.source

    dims = resolve(
        source,
        settings,
        catalog=catalog,
        default_dpi=config.default_dpi,
        max_dimension=config.max_dimension,
    )
    item.dimensions = dims

    fit = None
    if settings.maintain_aspect_ratio:
        fit = aspect_fit(source.width, source.height, dims.width, dims.height)

    encoded = rasterizer.encode(
        source, dims, fit, settings.output_format, settings.quality
    )
    if encoded.mime != settings.mime_type:
        raise InternalError(
            f"Rasterizer returned {encoded.mime} for {settings.output_format} output",
            hint=f"{type(rasterizer).__name__}.encode must honor the requested format.",
        )
    tagged = inject_dpi(encoded, dims.dpi)

    name = output_filename(
        source.name, settings, dims, system_asset=item.is_system_asset
    )
    sink.save(tagged.data, name)

    item.output_name = name
    item.byte_length = tagged.byte_length
    item.status = "succeeded"


def _notify(progress: ProgressSink | None, current: int, total: int, text: str) -> None:
    if progress is None:
        return
    try:
        progress.progress(current, total, text)
    except Exception as exc:
        # Fire-and-forget.
        logger.debug("Progress sink failed: %s", exc)


def _record_failure(item: BatchItem, idx: int, exc: BaseException) -> str:
    item.status = "failed"
    item.error = str(exc) or type(exc).__name__
    logger.warning(
        "Failed to process %s (item %d): %s", item.source.name, idx + 1, item.error
    )
    return f"Failed {item.source.name}: {item.error}"


async def run_batch(
    entries: Iterable[BatchEntry | tuple[SourceImage, OutputSettings, bool | None]],
    *,
    rasterizer: Rasterizer,
    sink: PersistenceSink,
    progress: ProgressSink | None = None,
    config: Config | None = None,
    catalog: PresetCatalog | None = None,
) -> BatchResult:
    """Convert every entry, one at a time, in input order.

    Per-item failures are recorded on the item and never raised; the loop
    always runs to completion. Between items control is yielded to the event
    loop so a host UI stays responsive.

    Args:
        entries: ``BatchEntry`` values or ``(source, settings, is_system_asset)``
            tuples.
        rasterizer: Draws and encodes each item.
        sink: Receives each tagged output buffer.
        progress: Optional listener notified after every item.
        config: Session configuration. Defaults to ``Config()``.
        catalog: Preset catalog. Defaults to ``config.catalog()``.

    Returns:
        BatchResult with every item either succeeded or failed. If the
        configuration or preset catalog cannot be loaded, every item fails
        with that error.
    """
    start_time = time.perf_counter()

    items: list[BatchItem] = []
    for raw in entries:
        entry = _as_entry(raw)
        system_asset = (
            entry.source.is_system_asset
            if entry.is_system_asset is None
            else entry.is_system_asset
        )
        settings = entry.settings
        if system_asset and settings.output_format != "jpeg":
            # Untyped platform assets are always normalized to JPEG
            settings = settings.with_format("jpeg")
        items.append(
            BatchItem(
                source=entry.source,
                settings=settings,
                is_system_asset=system_asset,
            )
        )

    total = len(items)
    logger.info("Starting batch of %d item(s)", total)

    setup_error: Exception | None = None
    try:
        config = Config() if config is None else config
        catalog = config.catalog() if catalog is None else catalog
    except Exception as exc:
        setup_error = exc
        logger.warning("Batch configuration could not be loaded: %s", exc)

    for idx, item in enumerate(items):
        if setup_error is not None:
            text = _record_failure(item, idx, setup_error)
        else:
            try:
                _process_item(
                    item,
                    rasterizer=rasterizer,
                    sink=sink,
                    config=config,  # type: ignore[arg-type]
                    catalog=catalog,  # type: ignore[arg-type]
                )
                text = f"Converted {item.source.name} -> {item.output_name}"
            except Exception as exc:
                text = _record_failure(item, idx, exc)

        _notify(progress, idx + 1, total, text)
        await asyncio.sleep(0)

    result = BatchResult(
        items=tuple(items), duration_s=time.perf_counter() - start_time
    )
    logger.info(
        "Batch complete: %d succeeded, %d failed",
        result.succeeded_count,
        result.failed_count,
    )
    return result
