"""Dimension resolution and aspect-fit geometry."""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st
import pytest

from dpistamp.dimensions import aspect_fit, preview_dimensions, resolve, round_half_up
from dpistamp.errors import DimensionError
from dpistamp.options import OutputSettings
from dpistamp.presets import BUILTIN_PRESETS, Preset, PresetCatalog

pytestmark = pytest.mark.unit


@pytest.mark.parametrize("preset", BUILTIN_PRESETS, ids=lambda p: p.preset_id)
def test_preset_at_native_dpi_keeps_preset_size(make_source, preset: Preset) -> None:
    """No DPI rescale is applied when the requested DPI equals the preset's."""
    s = OutputSettings(sizing_mode="preset", preset_id=preset.preset_id, dpi=preset.dpi)

    dims = resolve(make_source(), s)

    assert (dims.width, dims.height, dims.dpi) == (preset.width, preset.height, preset.dpi)


def test_print_quality_scenario(make_source) -> None:
    s = OutputSettings(sizing_mode="preset", preset_id="print-quality", dpi=300)

    dims = resolve(make_source(width=1920, height=1080), s)

    assert (dims.width, dims.height, dims.dpi) == (4500, 5400, 300)


def test_preset_dpi_change_rescales_pixel_grid(make_source) -> None:
    """web-preview is 1800x2400@72; asking for 300 DPI scales by 300/72."""
    s = OutputSettings(sizing_mode="preset", preset_id="web-preview", dpi=300)

    dims = resolve(make_source(), s)

    assert dims.width == round_half_up(1800 * 300 / 72)  # 7500
    assert dims.height == round_half_up(2400 * 300 / 72)  # 10000
    assert dims.dpi == 300


def test_preset_without_explicit_dpi_uses_default_table(make_source) -> None:
    """dpi=None falls back to the configured default, then to 300."""
    s = OutputSettings(sizing_mode="preset", preset_id="web-preview")

    assert resolve(make_source(), s).dpi == 300
    assert resolve(make_source(), s, default_dpi=72) == resolve(
        make_source(), OutputSettings(sizing_mode="preset", preset_id="web-preview", dpi=72)
    )


def test_original_mode_never_rescales(make_source) -> None:
    s = OutputSettings(sizing_mode="original", dpi=600)

    dims = resolve(make_source(width=1920, height=1080), s)

    assert (dims.width, dims.height, dims.dpi) == (1920, 1080, 600)


def test_custom_mode_uses_custom_size_and_requested_dpi(make_source) -> None:
    s = OutputSettings(sizing_mode="custom", custom_width=1000, custom_height=500, dpi=150)

    dims = resolve(make_source(), s)

    assert (dims.width, dims.height, dims.dpi) == (1000, 500, 150)


def test_scale_percent_rounds_half_up(make_source) -> None:
    s = OutputSettings(sizing_mode="scale_percent", scale_percent=50)

    dims = resolve(make_source(width=101, height=33), s)

    # 50.5 -> 51 and 16.5 -> 17, unlike Python's round()
    assert (dims.width, dims.height) == (51, 17)


def test_too_large_is_a_dimension_error(make_source) -> None:
    s = OutputSettings(sizing_mode="custom", custom_width=32768, custom_height=10)

    with pytest.raises(DimensionError) as exc:
        resolve(make_source(), s)

    assert exc.value.reason == "too_large"
    assert exc.value.width == 32768
    assert "too large" in str(exc.value)


def test_limit_itself_is_allowed(make_source) -> None:
    s = OutputSettings(sizing_mode="custom", custom_width=32767, custom_height=1)

    assert resolve(make_source(), s).width == 32767


def test_rescale_can_push_preset_past_limit(make_source) -> None:
    s = OutputSettings(sizing_mode="preset", preset_id="print-quality", dpi=3000)

    with pytest.raises(DimensionError, match="too large"):
        resolve(make_source(), s)


def test_configured_max_dimension_is_enforced(make_source) -> None:
    s = OutputSettings(sizing_mode="original")

    with pytest.raises(DimensionError):
        resolve(make_source(width=2000, height=100), s, max_dimension=1024)


def test_tiny_scale_is_too_small(make_source) -> None:
    s = OutputSettings(sizing_mode="scale_percent", scale_percent=1)

    with pytest.raises(DimensionError) as exc:
        resolve(make_source(width=10, height=10), s)

    assert exc.value.reason == "too_small"


def test_unknown_preset_is_reported(make_source) -> None:
    s = OutputSettings(sizing_mode="preset", preset_id="poster-a0")

    with pytest.raises(DimensionError) as exc:
        resolve(make_source(), s)

    assert exc.value.reason == "unknown_preset"
    assert exc.value.hint is not None and "print-quality" in exc.value.hint


def test_custom_catalog_presets_resolve(make_source) -> None:
    catalog = PresetCatalog().with_presets([Preset("square", "Square", 1000, 1000, 150)])
    s = OutputSettings(sizing_mode="preset", preset_id="square", dpi=300)

    dims = resolve(make_source(), s, catalog=catalog)

    assert (dims.width, dims.height, dims.dpi) == (2000, 2000, 300)


# =============================================================================
# Aspect fit
# =============================================================================


def test_wider_source_fits_to_width_and_centers_vertically() -> None:
    fit = aspect_fit(1920, 1080, 4500, 5400)

    assert fit.draw_width == 4500
    assert fit.draw_height == pytest.approx(4500 / (1920 / 1080))
    assert fit.offset_x == 0
    assert fit.offset_y == pytest.approx((5400 - fit.draw_height) / 2)


def test_taller_source_fits_to_height_and_centers_horizontally() -> None:
    fit = aspect_fit(1000, 4000, 3000, 3600)

    assert fit.draw_height == 3600
    assert fit.draw_width == pytest.approx(900)
    assert fit.offset_x == pytest.approx(1050)
    assert fit.offset_y == 0


def test_equal_aspect_takes_fit_to_height_branch() -> None:
    fit = aspect_fit(100, 200, 300, 600)

    assert fit.draw_height == 600
    assert fit.draw_width == pytest.approx(300)
    assert fit.offset_x == pytest.approx(0)
    assert fit.offset_y == 0


@given(
    sw=st.integers(1, 8000),
    sh=st.integers(1, 8000),
    tw=st.integers(1, 8000),
    th=st.integers(1, 8000),
)
@settings(max_examples=200, deadline=None, derandomize=True)
def test_aspect_fit_preserves_ratio_and_stays_inside(
    sw: int, sh: int, tw: int, th: int
) -> None:
    """Property: the drawn box keeps the source ratio within a pixel and fits."""
    fit = aspect_fit(sw, sh, tw, th)
    width, height, x, y = fit.rounded()

    assert fit.draw_width <= tw + 1e-6
    assert fit.draw_height <= th + 1e-6
    assert fit.offset_x >= -1e-6 and fit.offset_y >= -1e-6
    # width/height == sw/sh up to the rounding of one axis
    if fit.draw_width == tw:
        assert abs(height - tw * sh / sw) <= 1
    else:
        assert abs(width - th * sw / sh) <= 1
    assert x + width <= tw + 1
    assert y + height <= th + 1


def test_preview_shrinks_to_fit_box(make_source) -> None:
    s = OutputSettings(sizing_mode="preset", preset_id="print-quality", dpi=300)

    assert preview_dimensions(make_source(width=1920, height=1080), s) == (4500, 2531)


def test_preview_without_aspect_is_resolved_size(make_source) -> None:
    s = OutputSettings(
        sizing_mode="preset",
        preset_id="print-quality",
        dpi=300,
        maintain_aspect_ratio=False,
    )

    assert preview_dimensions(make_source(), s) == (4500, 5400)


def test_empty_catalog_does_not_fall_back_to_builtins(make_source) -> None:
    s = OutputSettings(sizing_mode="preset", preset_id="print-quality", dpi=300)

    with pytest.raises(DimensionError) as exc:
        resolve(make_source(), s, catalog=PresetCatalog({}))

    assert exc.value.reason == "unknown_preset"
