"""Configuration: frozen Config with environment-resolved defaults."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import load_dotenv

from dpistamp.constants import DEFAULT_DPI, DEFAULT_QUALITY, MAX_RASTER_DIM
from dpistamp.errors import ConfigurationError
from dpistamp.presets import PresetCatalog, load_presets_file

load_dotenv()

_ENV_DEFAULT_DPI = "DPISTAMP_DEFAULT_DPI"
_ENV_DEFAULT_QUALITY = "DPISTAMP_DEFAULT_QUALITY"
_ENV_PRESETS_FILE = "DPISTAMP_PRESETS_FILE"


def _int_from_env(name: str) -> int | None:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip())
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}",
            hint=f"Unset {name} or set it to a whole number.",
        ) from e


@dataclass(frozen=True)
class Config:
    """Immutable configuration for a dpistamp session.

    Unset fields are auto-resolved from ``DPISTAMP_*`` environment variables
    (a ``.env`` file is honored), then from built-in defaults.

    Example:
        config = Config(default_dpi=600)
        catalog = config.catalog()
    """

    #: Auto-resolved from ``DPISTAMP_DEFAULT_DPI`` when *None*.
    default_dpi: int | None = None
    #: Auto-resolved from ``DPISTAMP_DEFAULT_QUALITY`` when *None*.
    default_quality: int | None = None
    max_dimension: int = MAX_RASTER_DIM
    #: TOML file of custom presets; auto-resolved from ``DPISTAMP_PRESETS_FILE``.
    presets_file: str | Path | None = None

    def __post_init__(self) -> None:
        """Auto-resolve defaults and validate configuration."""
        if self.default_dpi is None:
            env_dpi = _int_from_env(_ENV_DEFAULT_DPI)
            object.__setattr__(
                self, "default_dpi", DEFAULT_DPI if env_dpi is None else env_dpi
            )
        if self.default_quality is None:
            env_quality = _int_from_env(_ENV_DEFAULT_QUALITY)
            object.__setattr__(
                self,
                "default_quality",
                DEFAULT_QUALITY if env_quality is None else env_quality,
            )
        if self.presets_file is None:
            env_presets = os.environ.get(_ENV_PRESETS_FILE, "").strip()
            if env_presets:
                object.__setattr__(self, "presets_file", Path(env_presets))

        if self.default_dpi < 1:  # type: ignore[operator]
            raise ConfigurationError(
                f"default_dpi must be ≥ 1, got {self.default_dpi}",
                hint="Common print values are 300 and 600; screens use 72 or 96.",
            )
        if not 1 <= self.default_quality <= 100:  # type: ignore[operator]
            raise ConfigurationError(
                f"default_quality must be in [1, 100], got {self.default_quality}",
                hint="This is the JPEG quality used when settings do not set one.",
            )
        if not 1 <= self.max_dimension <= MAX_RASTER_DIM:
            raise ConfigurationError(
                f"max_dimension must be in [1, {MAX_RASTER_DIM}], got {self.max_dimension}",
                hint="This caps the width and height of every output image.",
            )

    def catalog(self) -> PresetCatalog:
        """Return the built-in presets extended with ``presets_file`` entries."""
        catalog = PresetCatalog()
        if self.presets_file is None:
            return catalog
        return catalog.with_presets(load_presets_file(self.presets_file))
