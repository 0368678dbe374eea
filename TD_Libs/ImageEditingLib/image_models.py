"""
Image editing data models for TdStudio.

This module defines the value types that flow through the image pipeline.

Classes:
    RasterImage: A decoded bitmap together with its source encoding
    AdjustmentParameters: Colour filter settings (brightness, contrast, ...)
    TransformParameters: Rotation, flips, aspect crop and zoom
    WatermarkSpec: Text watermark settings

Type Aliases:
    RgbaColor: A tuple of 4 integers representing RGBA color values (0-255)
"""

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Tuple

from PIL import Image

from TD_Libs.constants import (
    BLUR_RANGE,
    BRIGHTNESS_RANGE,
    CONTRAST_RANGE,
    CROP_ASPECT_RATIOS,
    CROP_ORIGINAL,
    DEFAULT_WATERMARK_EFFECT,
    DEFAULT_WATERMARK_OPACITY,
    DEFAULT_WATERMARK_POSITION,
    DEFAULT_WATERMARK_SIZE,
    HUE_ROTATE_RANGE,
    MIME_PNG,
    MIN_ZOOM_FACTOR,
    SATURATION_RANGE,
    SEPIA_RANGE,
    SUPPORTED_MIME_TYPES,
    WATERMARK_EFFECTS,
    WATERMARK_POSITIONS,
    WATERMARK_SIZE_SCALES,
    WATERMARK_TILE_ANGLE,
)

RgbaColor = Tuple[int, int, int, int]


def _clamp(value: Any, bounds: Tuple[float, float, float]) -> float:
    low, high, _ = bounds
    return max(low, min(high, float(value)))


def _filter_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if k in cls.__dataclass_fields__}


@dataclass
class RasterImage:
    """A decoded image owned by a single pipeline invocation.

    Attributes:
        image: Pillow image holding the pixel buffer
        mime_type: Encoding the image was decoded from ('image/jpeg' or 'image/png')
    """
    image: Image.Image
    mime_type: str = MIME_PNG

    def __post_init__(self):
        if not isinstance(self.image, Image.Image):
            raise TypeError(f"Expected PIL Image, got {type(self.image)}")
        if self.mime_type not in SUPPORTED_MIME_TYPES:
            raise ValueError(
                f"Unsupported mime_type: {self.mime_type}. "
                f"Valid types: {', '.join(sorted(SUPPORTED_MIME_TYPES))}"
            )

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size

    def copy(self) -> "RasterImage":
        return RasterImage(self.image.copy(), self.mime_type)

    def with_image(self, image: Image.Image) -> "RasterImage":
        """Return a new RasterImage with the same encoding but different pixels."""
        return RasterImage(image, self.mime_type)


@dataclass(frozen=True)
class AdjustmentParameters:
    """Colour filter settings. Every field defaults to its identity value.

    Attributes:
        brightness: Percentage, 0-200 (100 = unchanged)
        contrast: Percentage, 0-200 (100 = unchanged)
        saturation: Percentage, 0-200 (100 = unchanged)
        hue_rotate_degrees: -180 to 180 (0 = unchanged)
        sepia_amount: Percentage, 0-100 (0 = unchanged)
        blur_radius_px: Gaussian blur radius, 0-20 (0 = unchanged)
    """
    brightness: float = BRIGHTNESS_RANGE[2]
    contrast: float = CONTRAST_RANGE[2]
    saturation: float = SATURATION_RANGE[2]
    hue_rotate_degrees: float = HUE_ROTATE_RANGE[2]
    sepia_amount: float = SEPIA_RANGE[2]
    blur_radius_px: float = BLUR_RANGE[2]

    def clamped(self) -> "AdjustmentParameters":
        """Return a copy with every field clamped into its domain."""
        return AdjustmentParameters(
            brightness=_clamp(self.brightness, BRIGHTNESS_RANGE),
            contrast=_clamp(self.contrast, CONTRAST_RANGE),
            saturation=_clamp(self.saturation, SATURATION_RANGE),
            hue_rotate_degrees=_clamp(self.hue_rotate_degrees, HUE_ROTATE_RANGE),
            sepia_amount=_clamp(self.sepia_amount, SEPIA_RANGE),
            blur_radius_px=_clamp(self.blur_radius_px, BLUR_RANGE),
        )

    def is_identity(self) -> bool:
        adjust = self.clamped()
        return (
            adjust.brightness == BRIGHTNESS_RANGE[2]
            and adjust.contrast == CONTRAST_RANGE[2]
            and adjust.saturation == SATURATION_RANGE[2]
            and adjust.hue_rotate_degrees == HUE_ROTATE_RANGE[2]
            and adjust.sepia_amount == SEPIA_RANGE[2]
            and adjust.blur_radius_px == BLUR_RANGE[2]
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AdjustmentParameters":
        """Create from dictionary."""
        return cls(**_filter_fields(cls, data)).clamped()


@dataclass(frozen=True)
class TransformParameters:
    """Geometric transform settings.

    Attributes:
        rotation_degrees: Clockwise quarter turn, one of 0, 90, 180, 270 (mod 360)
        flip_horizontal: Mirror left-right
        flip_vertical: Mirror top-bottom
        crop_aspect_ratio: 'original', '1:1', '16:9', '4:3', '3:4' or '9:16'
        zoom_factor: Centered zoom after the aspect crop (>= 1.0, 1.0 = none)
    """
    rotation_degrees: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False
    crop_aspect_ratio: str = CROP_ORIGINAL
    zoom_factor: float = MIN_ZOOM_FACTOR

    def __post_init__(self):
        if self.crop_aspect_ratio not in CROP_ASPECT_RATIOS:
            raise ValueError(
                f"Unknown crop_aspect_ratio: {self.crop_aspect_ratio}. "
                f"Valid ratios: {', '.join(CROP_ASPECT_RATIOS)}"
            )

    def is_identity(self) -> bool:
        return (
            int(self.rotation_degrees) % 360 == 0
            and not self.flip_horizontal
            and not self.flip_vertical
            and self.crop_aspect_ratio == CROP_ORIGINAL
            and max(MIN_ZOOM_FACTOR, float(self.zoom_factor)) == MIN_ZOOM_FACTOR
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransformParameters":
        """Create from dictionary."""
        return cls(**_filter_fields(cls, data))


@dataclass(frozen=True)
class WatermarkSpec:
    """Text watermark settings.

    Attributes:
        text: Watermark text (blank = no watermark)
        effect: 'none', 'outline', 'shadow', 'glow', 'emboss', 'vintage' or 'neon'
        opacity_percent: 0-100
        position: 'topLeft', 'topRight', 'bottomLeft', 'bottomRight', 'center' or 'tile'
        size: 'small', 'medium', 'large' or 'extraLarge'
        tile_angle: Rotation of the tiled grid in degrees (negative = counter-clockwise)
    """
    text: str = ""
    effect: str = DEFAULT_WATERMARK_EFFECT
    opacity_percent: float = DEFAULT_WATERMARK_OPACITY
    position: str = DEFAULT_WATERMARK_POSITION
    size: str = DEFAULT_WATERMARK_SIZE
    tile_angle: float = WATERMARK_TILE_ANGLE

    def __post_init__(self):
        if self.effect not in WATERMARK_EFFECTS:
            raise ValueError(
                f"Unknown effect: {self.effect}. Valid effects: {', '.join(WATERMARK_EFFECTS)}"
            )
        if self.position not in WATERMARK_POSITIONS:
            raise ValueError(
                f"Unknown position: {self.position}. "
                f"Valid positions: {', '.join(WATERMARK_POSITIONS)}"
            )
        if self.size not in WATERMARK_SIZE_SCALES:
            raise ValueError(
                f"Unknown size: {self.size}. Valid sizes: {', '.join(WATERMARK_SIZE_SCALES)}"
            )

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()

    @property
    def alpha(self) -> float:
        """Global alpha for the watermark draw (0.0-1.0)."""
        return max(0.0, min(100.0, float(self.opacity_percent))) / 100.0

    def with_text(self, text: str) -> "WatermarkSpec":
        return replace(self, text=text)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WatermarkSpec":
        """Create from dictionary."""
        return cls(**_filter_fields(cls, data))
