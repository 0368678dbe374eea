"""
Tests for the watermark stage.

Tests cover:
- Blank text and zero opacity no-ops
- Placement for each fixed position
- Tiled coverage
- Effect passes
- Font sizing
- Fail-closed behaviour and global alpha
"""

import unittest

import numpy as np
import pytest
from PIL import Image

from TD_Libs.constants import MIME_JPEG
from TD_Libs.exceptions import SurfaceUnavailableError
from TD_Libs.ImageEditingLib.drawing_surface import PillowSurface, TextMetrics
from TD_Libs.ImageEditingLib.image_models import RasterImage, WatermarkSpec
from TD_Libs.ImageEditingLib.watermark import (
    anchor_for_position,
    apply_watermark,
    effect_passes,
    tile_origins,
    watermark_font_size,
)

BACKGROUND = (40, 80, 120)


def _changed_mask(result, source):
    before = np.asarray(source.image.convert("RGB"), dtype=np.int16)
    after = np.asarray(result.image.convert("RGB"), dtype=np.int16)
    return np.abs(after - before).max(axis=2) > 0


class RecordingSurface(PillowSurface):
    """Pillow surface that remembers the alpha of each composite."""

    instances = []

    def __init__(self, width, height):
        super().__init__(width, height)
        self.alphas = []
        RecordingSurface.instances.append(self)

    def composite(self, layer, alpha=1.0):
        self.alphas.append(alpha)
        super().composite(layer, alpha)


class TestWatermarkNoOps(unittest.TestCase):
    """Blank text and zero opacity leave the image unchanged."""

    def setUp(self):
        self.source = RasterImage(Image.new("RGB", (300, 200), BACKGROUND))

    def test_blank_text_returns_source(self):
        result = apply_watermark(self.source, WatermarkSpec(text="   "))

        self.assertIs(result, self.source)

    def test_empty_text_pixel_equivalent(self):
        result = apply_watermark(self.source, WatermarkSpec(text=""))

        self.assertEqual(result.image.tobytes(), self.source.image.tobytes())

    def test_zero_opacity_is_invisible(self):
        for position in ("bottomRight", "tile"):
            spec = WatermarkSpec(text="TdAnimator", opacity_percent=0, position=position)

            result = apply_watermark(self.source, spec)

            self.assertEqual(result.size, self.source.size)
            self.assertFalse(_changed_mask(result, self.source).any())


class TestWatermarkPlacement:
    """Fixed positions put the text in the expected region."""

    @pytest.fixture
    def square(self):
        return RasterImage(Image.new("RGB", (500, 500), BACKGROUND))

    def test_bottom_right_scenario(self, square):
        spec = WatermarkSpec(text="X", effect="none", opacity_percent=100, position="bottomRight")

        result = apply_watermark(square, spec)
        changed = _changed_mask(result, square)

        assert changed[450:, 450:].any()
        assert not changed[:250, :250].any()
        assert not changed[:450, :].any()

    def test_top_left(self, square):
        spec = WatermarkSpec(text="X", opacity_percent=100, position="topLeft")

        changed = _changed_mask(apply_watermark(square, spec), square)

        assert changed[:60, :60].any()
        assert not changed[250:, 250:].any()

    def test_top_right(self, square):
        spec = WatermarkSpec(text="X", opacity_percent=100, position="topRight")

        changed = _changed_mask(apply_watermark(square, spec), square)

        assert changed[:60, 440:].any()
        assert not changed[:, :250].any()

    def test_bottom_left(self, square):
        spec = WatermarkSpec(text="X", opacity_percent=100, position="bottomLeft")

        changed = _changed_mask(apply_watermark(square, spec), square)

        assert changed[440:, :60].any()
        assert not changed[:250, :].any()

    def test_center(self, square):
        spec = WatermarkSpec(text="X", opacity_percent=100, position="center")

        changed = _changed_mask(apply_watermark(square, spec), square)

        assert changed[220:280, 220:280].any()
        assert not changed[:150, :].any()
        assert not changed[350:, :].any()

    def test_tile_covers_every_quadrant(self):
        source = RasterImage(Image.new("RGB", (400, 400), BACKGROUND))
        spec = WatermarkSpec(text="TdAnimator", opacity_percent=100, position="tile")

        changed = _changed_mask(apply_watermark(source, spec), source)

        for rows in (slice(0, 200), slice(200, 400)):
            for cols in (slice(0, 200), slice(200, 400)):
                assert changed[rows, cols].any()

    def test_tile_angle_is_configurable(self):
        source = RasterImage(Image.new("RGB", (300, 300), BACKGROUND))
        tilted = apply_watermark(source, WatermarkSpec(text="Td", opacity_percent=100, position="tile"))
        level = apply_watermark(
            source, WatermarkSpec(text="Td", opacity_percent=100, position="tile", tile_angle=0)
        )

        assert tilted.image.tobytes() != level.image.tobytes()


class TestWatermarkResult:
    """Result properties independent of placement."""

    def test_source_not_modified(self, raster):
        before = raster.image.tobytes()

        apply_watermark(raster, WatermarkSpec(text="mark", opacity_percent=100))

        assert raster.image.tobytes() == before

    def test_keeps_mode_and_mime(self):
        source = RasterImage(Image.new("RGB", (120, 80), BACKGROUND), MIME_JPEG)

        result = apply_watermark(source, WatermarkSpec(text="mark"))

        assert result.image.mode == "RGB"
        assert result.mime_type == MIME_JPEG

    def test_neon_on_greyscale_source_keeps_colour(self):
        source = RasterImage(Image.new("L", (240, 160), 0))

        result = apply_watermark(source, WatermarkSpec(text="Td", effect="neon", position="center", opacity_percent=100))

        assert result.image.mode == "RGB"
        pixels = np.asarray(result.image, dtype=np.int16)
        assert (pixels[..., 2] - pixels[..., 0]).max() > 100

    @pytest.mark.parametrize("effect", ["none", "outline", "shadow", "glow", "emboss", "vintage", "neon"])
    def test_every_effect_draws(self, effect):
        source = RasterImage(Image.new("RGB", (240, 160), BACKGROUND))

        result = apply_watermark(source, WatermarkSpec(text="Td", effect=effect, opacity_percent=100))

        assert _changed_mask(result, source).any()

    def test_lower_opacity_changes_less(self):
        source = RasterImage(Image.new("RGB", (240, 160), (0, 0, 0)))
        strong = apply_watermark(source, WatermarkSpec(text="Td", opacity_percent=100, position="center"))
        faint = apply_watermark(source, WatermarkSpec(text="Td", opacity_percent=30, position="center"))

        assert np.asarray(faint.image).max() < np.asarray(strong.image).max()

    def test_global_alpha_only_used_for_watermark_composite(self, raster):
        RecordingSurface.instances = []

        apply_watermark(raster, WatermarkSpec(text="mark", opacity_percent=40), RecordingSurface)

        assert len(RecordingSurface.instances) == 1
        assert RecordingSurface.instances[0].alphas == [pytest.approx(0.4)]

    def test_surface_unavailable_returns_source(self, raster):
        def unavailable(width, height):
            raise SurfaceUnavailableError("no canvas")

        result = apply_watermark(raster, WatermarkSpec(text="mark"), unavailable)

        assert result is raster

    def test_rejects_non_raster(self, solid_rgb):
        with pytest.raises(TypeError):
            apply_watermark(solid_rgb, WatermarkSpec(text="mark"))


class TestWatermarkHelpers:
    """Tests for sizing, anchoring, tiling and effect styles."""

    def test_font_size_scales_with_width(self):
        assert watermark_font_size(1000, "medium") == pytest.approx(35.0)
        assert watermark_font_size(1000, "extraLarge") == pytest.approx(56.0)

    def test_font_size_has_minimum(self):
        assert watermark_font_size(100, "medium") == pytest.approx(20.0)
        assert watermark_font_size(100, "small") == pytest.approx(14.0)

    def test_anchor_padding(self):
        assert anchor_for_position("topLeft", 400, 300) == (10.0, 10.0, "left", "top")
        assert anchor_for_position("bottomRight", 400, 300) == (390.0, 290.0, "right", "bottom")

    def test_center_anchor_has_no_padding(self):
        assert anchor_for_position("center", 400, 300) == (200.0, 150.0, "center", "middle")

    def test_tile_has_no_single_anchor(self):
        with pytest.raises(ValueError):
            anchor_for_position("tile", 400, 300)

    def test_tile_origins_fill_square(self):
        metrics = TextMetrics(width=20, height=10)

        origins = tile_origins(100, metrics)
        xs = sorted({x for x, _ in origins})
        ys = sorted({y for _, y in origins})

        assert xs == [0.0, 30.0, 60.0, 90.0]
        assert ys == [0.0, 30.0, 60.0, 90.0]

    def test_emboss_is_two_opposite_passes(self):
        light, dark = effect_passes("emboss", 40)

        assert light.offset == (2.0, 2.0)
        assert dark.offset == (-2.0, -2.0)
        assert sum(light.fill[:3]) > sum(dark.fill[:3])

    def test_outline_uses_stroke(self):
        (outline,) = effect_passes("outline", 50)

        assert outline.stroke_width == 4
        assert outline.shadow is None

    def test_neon_glow_matches_fill_hue(self):
        (neon,) = effect_passes("neon", 20)

        assert neon.fill[:3] == neon.shadow.color[:3]
        assert neon.shadow.offset_x == 0 and neon.shadow.offset_y == 0

    def test_unknown_effect_raises(self):
        with pytest.raises(ValueError):
            effect_passes("sparkle", 20)


if __name__ == "__main__":
    unittest.main()
