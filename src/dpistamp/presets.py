"""Print presets: the built-in catalog plus user-defined entries."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
import tomllib
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from dpistamp.constants import MAX_RASTER_DIM
from dpistamp.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Preset:
    """A named target size with its native print resolution."""

    preset_id: str
    name: str
    width: int
    height: int
    dpi: int


BUILTIN_PRESETS: tuple[Preset, ...] = (
    Preset("print-quality", "Print Quality", 4500, 5400, 300),
    Preset("high-quality", "High Quality", 3000, 3600, 300),
    Preset("standard-print", "Standard Print", 2400, 3000, 300),
    Preset("web-preview", "Web Preview", 1800, 2400, 72),
)


class PresetSpec(BaseModel):
    """Schema for a user-defined preset entry."""

    name: str | None = None
    width: int = Field(gt=0, le=MAX_RASTER_DIM)
    height: int = Field(gt=0, le=MAX_RASTER_DIM)
    dpi: int = Field(gt=0)

    model_config = {"extra": "forbid"}

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, v: Any) -> Any:
        """Trim whitespace and map empty names to None."""
        if isinstance(v, str):
            return v.strip() or None
        return v


@dataclass(frozen=True)
class PresetCatalog:
    """Immutable lookup of presets by id.

    User entries override built-ins that share an id.
    """

    _presets: Mapping[str, Preset] = field(
        default_factory=lambda: {p.preset_id: p for p in BUILTIN_PRESETS}
    )

    def get(self, preset_id: str) -> Preset | None:
        """Return the preset registered under *preset_id*, if any."""
        return self._presets.get(preset_id)

    def __contains__(self, preset_id: object) -> bool:
        return preset_id in self._presets

    def __iter__(self) -> Iterator[Preset]:
        return iter(self._presets.values())

    def __len__(self) -> int:
        return len(self._presets)

    def with_presets(self, presets: Iterable[Preset]) -> PresetCatalog:
        """Return a new catalog extended with *presets*."""
        merged = dict(self._presets)
        for preset in presets:
            merged[preset.preset_id] = preset
        return PresetCatalog(merged)


def presets_from_mapping(data: Mapping[str, Any]) -> list[Preset]:
    """Validate a ``{preset_id: {width, height, dpi, name?}}`` mapping.

    Raises:
        ConfigurationError: If an entry is malformed.
    """
    presets: list[Preset] = []
    for preset_id, raw in data.items():
        key = str(preset_id).strip()
        if not key:
            raise ConfigurationError(
                "Preset ids cannot be empty",
                hint="Use a short slug such as 'poster-a3'.",
            )
        try:
            spec = PresetSpec.model_validate(raw)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid preset {key!r}",
                hint=str(e),
            ) from e
        presets.append(
            Preset(
                preset_id=key,
                name=spec.name or key,
                width=spec.width,
                height=spec.height,
                dpi=spec.dpi,
            )
        )
    return presets


def load_presets_file(path: str | Path) -> list[Preset]:
    """Load user presets from a TOML file with ``[presets.<id>]`` tables."""
    p = Path(path)
    try:
        with p.open("rb") as fh:
            document = tomllib.load(fh)
    except FileNotFoundError as e:
        raise ConfigurationError(
            f"Presets file not found: {p}",
            hint="Check DPISTAMP_PRESETS_FILE or the presets_file argument.",
        ) from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            f"Presets file is not valid TOML: {p}",
            hint=str(e),
        ) from e

    table = document.get("presets", {})
    if not isinstance(table, dict):
        raise ConfigurationError(
            f"'presets' in {p} must be a table",
            hint="Declare entries as [presets.my-id] with width, height and dpi.",
        )
    presets = presets_from_mapping(table)
    logger.debug("Loaded %d custom preset(s) from %s", len(presets), p)
    return presets
