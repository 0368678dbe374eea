"""
Text watermark stage of the image pipeline.

A watermark is rendered as one or more text passes onto a transparent
layer, then composited over the image at the watermark's opacity. The
opacity only applies to that composite; nothing drawn afterwards is
affected.

Effects (one style per draw):
- none:    white fill, small soft drop shadow
- outline: black stroke under a white fill
- shadow:  white fill, soft black drop shadow
- glow:    white fill, wide white halo
- emboss:  light pass at +d, darker pass at -d
- vintage: warm desaturated fill, faint shadow
- neon:    cyan fill, strong cyan halo

Positions: topLeft, topRight, bottomLeft, bottomRight (default), center,
and tile, which repeats the text over a rotated grid covering the image.

Example:
    >>> spec = WatermarkSpec(text="TdAnimator", effect="outline", position="tile")
    >>> marked = apply_watermark(raster, spec)
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFilter

from TD_Libs.constants import (
    WATERMARK_FONT_RATIO,
    WATERMARK_MIN_FONT_SIZE,
    WATERMARK_PADDING_RATIO,
    WATERMARK_SIZE_SCALES,
    WATERMARK_TILE_SPACING_X,
    WATERMARK_TILE_SPACING_Y,
)
from TD_Libs.exceptions import SurfaceUnavailableError
from TD_Libs.ImageEditingLib.drawing_surface import (
    SurfaceFactory,
    TextMetrics,
    create_surface,
    load_watermark_font,
)
from TD_Libs.ImageEditingLib.geometry import anchor_to_origin, covering_square_side
from TD_Libs.ImageEditingLib.image_models import RasterImage, RgbaColor, WatermarkSpec
from TD_Libs.ImageEditingLib.transform_ops import restore_mode

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

SOFT_WHITE: RgbaColor = (255, 255, 255, 217)


@dataclass(frozen=True)
class ShadowStyle:
    color: RgbaColor
    blur: float = 0.0
    offset_x: float = 0.0
    offset_y: float = 0.0


@dataclass(frozen=True)
class TextPass:
    """One draw of the text at every placement.

    Attributes:
        fill: Text fill colour
        shadow: Optional shadow drawn beneath the fill
        stroke_color: Outline colour (used when stroke_width > 0)
        stroke_width: Outline width in pixels
        offset: Shift applied to every placement for this pass
    """
    fill: RgbaColor
    shadow: Optional[ShadowStyle] = None
    stroke_color: Optional[RgbaColor] = None
    stroke_width: int = 0
    offset: Point = (0.0, 0.0)


def watermark_font_size(image_width: int, size: str) -> float:
    """Font size in pixels: 3.5% of the width (minimum 20px) scaled by the size preset."""
    base = max(WATERMARK_MIN_FONT_SIZE, image_width * WATERMARK_FONT_RATIO)
    return base * WATERMARK_SIZE_SCALES[size]


def effect_passes(effect: str, font_size: float) -> List[TextPass]:
    """
    Build the text passes for an effect.

    Raises:
        ValueError: If effect is unknown
    """
    if effect == "none":
        return [TextPass(SOFT_WHITE, shadow=ShadowStyle((0, 0, 0, 153), 2, 1, 1))]

    if effect == "outline":
        return [
            TextPass(
                SOFT_WHITE,
                stroke_color=(0, 0, 0, 230),
                stroke_width=max(2, int(round(font_size * 0.08))),
            )
        ]

    if effect == "shadow":
        return [TextPass(SOFT_WHITE, shadow=ShadowStyle((0, 0, 0, 204), 4, 2, 2))]

    if effect == "glow":
        return [
            TextPass(SOFT_WHITE, shadow=ShadowStyle((255, 255, 255, 179), max(8.0, font_size * 0.2)))
        ]

    if effect == "emboss":
        delta = max(1.0, font_size * 0.05)
        return [
            TextPass((255, 255, 255, 204), offset=(delta, delta)),
            TextPass((100, 100, 100, 204), offset=(-delta, -delta)),
        ]

    if effect == "vintage":
        return [TextPass((200, 180, 150, 230), shadow=ShadowStyle((0, 0, 0, 77), 2, 1, 1))]

    if effect == "neon":
        return [
            TextPass((0, 255, 255, 230), shadow=ShadowStyle((0, 255, 255, 255), max(10.0, font_size * 0.3)))
        ]

    raise ValueError(
        f"Unknown effect: {effect}. "
        f"Valid effects: none, outline, shadow, glow, emboss, vintage, neon"
    )


def anchor_for_position(position: str, width: int, height: int) -> Tuple[float, float, str, str]:
    """
    Anchor point and alignment for a fixed watermark position.

    Returns:
        (x, y, align, baseline) where align is 'left'/'center'/'right' and
        baseline is 'top'/'middle'/'bottom'
    """
    padding = width * WATERMARK_PADDING_RATIO
    if position == "topLeft":
        return padding, padding, "left", "top"
    if position == "topRight":
        return width - padding, padding, "right", "top"
    if position == "bottomLeft":
        return padding, height - padding, "left", "bottom"
    if position == "center":
        return width / 2.0, height / 2.0, "center", "middle"
    if position == "bottomRight":
        return width - padding, height - padding, "right", "bottom"
    raise ValueError(f"No single anchor for position: {position}")


def tile_origins(side: int, metrics: TextMetrics) -> List[Point]:
    """Top-left origins of a grid filling a side x side square."""
    step_x = max(1.0, metrics.width * WATERMARK_TILE_SPACING_X)
    step_y = max(1.0, metrics.height * WATERMARK_TILE_SPACING_Y)
    origins: List[Point] = []
    y = 0.0
    while y < side:
        x = 0.0
        while x < side:
            origins.append((x, y))
            x += step_x
        y += step_y
    return origins


def _text_mask(size: Tuple[int, int], text: str, font: Any, origins: Sequence[Point],
               metrics: TextMetrics, shift: Point = (0.0, 0.0), stroke_width: int = 0) -> Any:
    mask = Image.new("L", size, 0)
    draw = ImageDraw.Draw(mask)
    for x, y in origins:
        position = (
            x + shift[0] - metrics.offset_x,
            y + shift[1] - metrics.offset_y,
        )
        if stroke_width:
            draw.text(position, text, font=font, fill=255, stroke_width=stroke_width, stroke_fill=255)
        else:
            draw.text(position, text, font=font, fill=255)
    return mask


def _tint(mask: Any, color: RgbaColor) -> Any:
    red, green, blue, alpha = color
    layer = Image.new("RGBA", mask.size, (red, green, blue, 0))
    layer.putalpha(mask.point(lambda v: v * alpha // 255))
    return layer


def render_text_layer(
    size: Tuple[int, int],
    text: str,
    font: Any,
    origins: Sequence[Point],
    metrics: TextMetrics,
    passes: Sequence[TextPass],
) -> Any:
    """
    Render text at every origin with the given passes onto a transparent layer.

    Origins are the top-left corners of the measured text box.
    """
    layer = Image.new("RGBA", size, (0, 0, 0, 0))
    for text_pass in passes:
        dx, dy = text_pass.offset
        if text_pass.shadow is not None:
            shadow = text_pass.shadow
            shadow_mask = _text_mask(
                size, text, font, origins, metrics,
                shift=(dx + shadow.offset_x, dy + shadow.offset_y),
            )
            if shadow.blur > 0:
                shadow_mask = shadow_mask.filter(ImageFilter.GaussianBlur(shadow.blur / 2.0))
            layer = Image.alpha_composite(layer, _tint(shadow_mask, shadow.color))
        if text_pass.stroke_width and text_pass.stroke_color is not None:
            stroke_mask = _text_mask(
                size, text, font, origins, metrics,
                shift=(dx, dy), stroke_width=text_pass.stroke_width,
            )
            layer = Image.alpha_composite(layer, _tint(stroke_mask, text_pass.stroke_color))
        fill_mask = _text_mask(size, text, font, origins, metrics, shift=(dx, dy))
        layer = Image.alpha_composite(layer, _tint(fill_mask, text_pass.fill))
    return layer


def _tiled_layer(width: int, height: int, text: str, font: Any, metrics: TextMetrics,
                 passes: Sequence[TextPass], angle: float) -> Any:
    margin = max(metrics.width * WATERMARK_TILE_SPACING_X, metrics.height * WATERMARK_TILE_SPACING_Y)
    side = covering_square_side(width, height, margin)
    grid = render_text_layer((side, side), text, font, tile_origins(side, metrics), metrics, passes)
    # Pillow's positive angle is counter-clockwise, the canvas convention is the opposite
    rotated = grid.rotate(-angle, resample=Image.Resampling.BICUBIC)
    left = (side - width) // 2
    top = (side - height) // 2
    return rotated.crop((left, top, left + width, top + height))


def apply_watermark(
    source: RasterImage,
    spec: WatermarkSpec,
    surface_factory: Optional[SurfaceFactory] = None,
) -> RasterImage:
    """
    Composite a text watermark over an image.

    Args:
        source: Image to mark (never modified)
        spec: Watermark settings
        surface_factory: Creates the drawing surface (default: Pillow)

    Returns:
        New RasterImage with the watermark. The source itself is returned
        when spec.text is blank or no drawing surface can be obtained.
    """
    if not isinstance(source, RasterImage):
        raise TypeError(f"Expected RasterImage, got {type(source)}")
    if spec.is_blank:
        return source

    factory = surface_factory or create_surface
    try:
        surface = factory(source.width, source.height)
    except (SurfaceUnavailableError, MemoryError) as exc:
        logger.warning(f"Drawing surface unavailable, skipping watermark: {exc}")
        return source

    surface.draw_image(source.image)

    text = spec.text.strip()
    font_size = watermark_font_size(source.width, spec.size)
    font = load_watermark_font(font_size)
    metrics = surface.measure_text(text, font)
    passes = effect_passes(spec.effect, font_size)

    if spec.position == "tile":
        layer = _tiled_layer(source.width, source.height, text, font, metrics, passes, spec.tile_angle)
    else:
        x, y, align, baseline = anchor_for_position(spec.position, source.width, source.height)
        origin = anchor_to_origin(x, y, metrics.width, metrics.height, align, baseline)
        layer = render_text_layer(surface.size, text, font, [origin], metrics, passes)

    surface.composite(layer, spec.alpha)
    return source.with_image(restore_mode(surface.snapshot(), source.image.mode))
