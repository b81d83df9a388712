"""Rasterizer protocol: the seam between the engine and pixel work."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from dpistamp.dimensions import AspectFit, ResolvedDimensions
    from dpistamp.options import OutputFormat
    from dpistamp.source import SourceImage


@dataclass(frozen=True, slots=True)
class EncodedImage:
    """An encoded image buffer. Never mutated; transforms return new instances."""

    data: bytes
    mime: str

    @property
    def byte_length(self) -> int:
        """Size of the encoded buffer in bytes."""
        return len(self.data)


@runtime_checkable
class Rasterizer(Protocol):
    """Minimal rasterizer protocol: decode, draw at a target size, encode.

    Implementations must start every call from a freshly cleared canvas so
    pixels never carry over between items, and must be deterministic for
    identical inputs.
    """

    def encode(
        self,
        source: SourceImage,
        dimensions: ResolvedDimensions,
        fit: AspectFit | None,
        fmt: OutputFormat,
        quality: int,
    ) -> EncodedImage:
        """Draw *source* onto a ``dimensions`` canvas and encode it.

        ``fit`` is the aspect-fit box when the aspect ratio is maintained,
        otherwise *None* (stretch to fill).
        """
        ...
