"""
Drawing surface abstraction for the image pipeline.

Pipeline operations never touch a global canvas. They ask a SurfaceFactory
for a fresh surface, draw onto it, and take a snapshot. Any backend that
implements DrawingSurface (software rasterizer, GPU surface, headless test
double) can be injected. PillowSurface is the default.

Classes:
    TextMetrics: Measured size and bearing of a text run
    DrawingSurface: Abstract surface contract
    PillowSurface: Pillow-backed RGBA surface

Functions:
    create_surface: Default SurfaceFactory
    load_watermark_font: Cached bold font lookup with Pillow's default as fallback
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Sequence, Tuple

from PIL import Image, ImageFont

from TD_Libs.constants import WATERMARK_FONT_PATHS
from TD_Libs.exceptions import SurfaceUnavailableError
from TD_Libs.ImageEditingLib.color_filters import FilterStep, apply_filter_chain
from TD_Libs.ImageEditingLib.geometry import normalize_rotation

logger = logging.getLogger(__name__)

# Pillow rotates counter-clockwise, so a clockwise quarter turn maps to the opposite transpose
_CLOCKWISE_TRANSPOSE = {
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
}

_FONT_CACHE: Dict[int, Any] = {}


@dataclass(frozen=True)
class TextMetrics:
    """Bounding box of a text run relative to its draw origin."""
    width: int
    height: int
    offset_x: int = 0
    offset_y: int = 0


class DrawingSurface(ABC):
    """A transient 2D drawing target owned by one pipeline call."""

    @property
    @abstractmethod
    def size(self) -> Tuple[int, int]:
        ...

    @abstractmethod
    def draw_image(
        self,
        image: Any,
        filter_chain: Sequence[FilterStep] = (),
        rotation_degrees: int = 0,
        flip_horizontal: bool = False,
        flip_vertical: bool = False,
    ) -> None:
        """Draw image centered on the surface through a filter chain and transform."""

    @abstractmethod
    def new_layer(self) -> Any:
        """Return a transparent RGBA layer matching the surface size."""

    @abstractmethod
    def measure_text(self, text: str, font: Any) -> TextMetrics:
        ...

    @abstractmethod
    def composite(self, layer: Any, alpha: float = 1.0) -> None:
        """Blend an RGBA layer over the surface at the given global alpha."""

    @abstractmethod
    def crop(self, box: Tuple[int, int, int, int]) -> None:
        ...

    @abstractmethod
    def snapshot(self) -> Any:
        """Return a copy of the current surface pixels."""


SurfaceFactory = Callable[[int, int], DrawingSurface]


class PillowSurface(DrawingSurface):
    """RGBA surface backed by a Pillow image."""

    def __init__(self, width: int, height: int) -> None:
        try:
            self._canvas = Image.new("RGBA", (int(width), int(height)), (0, 0, 0, 0))
        except (ValueError, MemoryError) as exc:
            raise SurfaceUnavailableError(
                f"Cannot allocate a {width}x{height} drawing surface: {exc}"
            ) from exc

    @property
    def size(self) -> Tuple[int, int]:
        return self._canvas.size

    def draw_image(
        self,
        image: Any,
        filter_chain: Sequence[FilterStep] = (),
        rotation_degrees: int = 0,
        flip_horizontal: bool = False,
        flip_vertical: bool = False,
    ) -> None:
        if not hasattr(image, "transpose"):
            raise TypeError(f"Expected PIL Image, got {type(image)}")

        drawn = apply_filter_chain(image, filter_chain)
        if drawn.mode != "RGBA":
            drawn = drawn.convert("RGBA")

        # flips are applied closest to the image, then rotation
        if flip_horizontal:
            drawn = drawn.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
        if flip_vertical:
            drawn = drawn.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
        transpose = _CLOCKWISE_TRANSPOSE.get(normalize_rotation(rotation_degrees))
        if transpose is not None:
            drawn = drawn.transpose(transpose)

        canvas_w, canvas_h = self._canvas.size
        offset = ((canvas_w - drawn.width) // 2, (canvas_h - drawn.height) // 2)
        self._canvas.paste(drawn, offset)

    def new_layer(self) -> Any:
        return Image.new("RGBA", self._canvas.size, (0, 0, 0, 0))

    def measure_text(self, text: str, font: Any) -> TextMetrics:
        left, top, right, bottom = font.getbbox(text)
        return TextMetrics(
            width=max(1, int(right - left)),
            height=max(1, int(bottom - top)),
            offset_x=int(left),
            offset_y=int(top),
        )

    def composite(self, layer: Any, alpha: float = 1.0) -> None:
        alpha = max(0.0, min(1.0, float(alpha)))
        if alpha == 0.0:
            return
        if layer.size != self._canvas.size:
            raise ValueError(
                f"Layer size {layer.size} does not match surface size {self._canvas.size}"
            )
        if layer.mode != "RGBA":
            layer = layer.convert("RGBA")
        if alpha < 1.0:
            layer = layer.copy()
            layer.putalpha(layer.getchannel("A").point(lambda v: int(round(v * alpha))))
        self._canvas = Image.alpha_composite(self._canvas, layer)

    def crop(self, box: Tuple[int, int, int, int]) -> None:
        self._canvas = self._canvas.crop(box)

    def snapshot(self) -> Any:
        return self._canvas.copy()


def create_surface(width: int, height: int) -> DrawingSurface:
    """Default SurfaceFactory."""
    return PillowSurface(width, height)


def load_watermark_font(size: float) -> Any:
    """
    Load a bold sans-serif font at the given pixel size.

    Tries the WATERMARK_FONT_PATHS candidates and falls back to Pillow's
    bundled default font. Results are cached per integer size.
    """
    pixel_size = max(1, int(round(size)))
    if pixel_size in _FONT_CACHE:
        return _FONT_CACHE[pixel_size]

    font = None
    for candidate in WATERMARK_FONT_PATHS:
        try:
            font = ImageFont.truetype(candidate, pixel_size)
            break
        except OSError:
            continue
    if font is None:
        logger.debug(f"No TrueType watermark font found, using Pillow default at {pixel_size}px")
        font = ImageFont.load_default(size=pixel_size)

    _FONT_CACHE[pixel_size] = font
    return font
