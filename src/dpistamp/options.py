"""Output settings for a conversion batch."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Literal

from dpistamp.constants import DEFAULT_DPI, DEFAULT_QUALITY
from dpistamp.errors import ConfigurationError

if TYPE_CHECKING:
    from dpistamp.config import Config

SizingMode = Literal["original", "preset", "custom", "scale_percent"]
OutputFormat = Literal["jpeg", "png"]

_SIZING_MODES: frozenset[str] = frozenset(
    {"original", "preset", "custom", "scale_percent"}
)
_FORMAT_ALIASES: dict[str, OutputFormat] = {
    "jpeg": "jpeg",
    "jpg": "jpeg",
    "png": "png",
}


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


@dataclass(frozen=True)
class OutputSettings:
    """How every item of a batch should be sized, encoded and tagged."""

    sizing_mode: SizingMode = "original"
    #: Required when ``sizing_mode="preset"``.
    preset_id: str | None = None
    #: Required together with *custom_height* when ``sizing_mode="custom"``.
    custom_width: int | None = None
    custom_height: int | None = None
    #: Required when ``sizing_mode="scale_percent"``; ``100`` keeps the size.
    scale_percent: float | None = None
    maintain_aspect_ratio: bool = True
    output_format: OutputFormat = "jpeg"
    #: JPEG quality; ignored for PNG output.
    quality: int = DEFAULT_QUALITY
    #: Falls back to ``Config.default_dpi`` and then ``DEFAULT_DPI`` when *None*.
    dpi: int | None = None

    def __post_init__(self) -> None:
        """Validate setting shapes early for clear errors."""
        if self.sizing_mode not in _SIZING_MODES:
            raise ConfigurationError(
                f"Unknown sizing_mode: {self.sizing_mode!r}",
                hint="Use 'original', 'preset', 'custom' or 'scale_percent'.",
            )

        fmt = self.output_format
        normalized = _FORMAT_ALIASES.get(fmt.lower()) if isinstance(fmt, str) else None
        if normalized is None:
            raise ConfigurationError(
                f"Unsupported output_format: {fmt!r}",
                hint="dpistamp writes 'jpeg' or 'png'.",
            )
        object.__setattr__(self, "output_format", normalized)

        if self.sizing_mode == "preset" and not (
            isinstance(self.preset_id, str) and self.preset_id.strip()
        ):
            raise ConfigurationError(
                "preset_id is required when sizing_mode='preset'",
                hint="Pass preset_id='print-quality' or a custom preset id.",
            )

        if self.sizing_mode == "custom":
            for name in ("custom_width", "custom_height"):
                if not _is_positive_int(getattr(self, name)):
                    raise ConfigurationError(
                        f"{name} must be a positive integer when sizing_mode='custom'",
                        hint="Pass custom_width=4500, custom_height=5400.",
                    )

        if self.sizing_mode == "scale_percent":
            pct = self.scale_percent
            if (
                not isinstance(pct, (int, float))
                or isinstance(pct, bool)
                or pct <= 0
            ):
                raise ConfigurationError(
                    "scale_percent must be a positive number when sizing_mode='scale_percent'",
                    hint="Pass scale_percent=50 to halve both dimensions.",
                )

        if not _is_positive_int(self.quality) or self.quality > 100:
            raise ConfigurationError(
                f"quality must be an integer in [1, 100], got {self.quality!r}",
                hint="80 is a good default for print JPEGs.",
            )

        if self.dpi is not None and not _is_positive_int(self.dpi):
            raise ConfigurationError(
                f"dpi must be a positive integer, got {self.dpi!r}",
                hint="Leave dpi=None to use the configured default (300).",
            )

    @classmethod
    def from_config(cls, config: Config, **overrides: object) -> OutputSettings:
        """Build settings whose quality and DPI default to *config* values."""
        values: dict[str, object] = {
            "quality": config.default_quality,
            "dpi": config.default_dpi,
        }
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]

    def with_format(self, output_format: OutputFormat) -> OutputSettings:
        """Return a copy of these settings writing *output_format*."""
        return replace(self, output_format=output_format)

    @property
    def extension(self) -> str:
        """File extension matching the output format."""
        return "png" if self.output_format == "png" else "jpg"

    @property
    def mime_type(self) -> str:
        """MIME type matching the output format."""
        return "image/png" if self.output_format == "png" else "image/jpeg"


def resolve_dpi(explicit: int | None, configured: int | None = None) -> int:
    """Pick the DPI for an item.

    Precedence: explicit setting > configured default > ``DEFAULT_DPI``.
    Only ``None`` falls through; every other value was validated upstream.
    """
    for candidate in (explicit, configured):
        if candidate is not None:
            return candidate
    return DEFAULT_DPI
