"""
Colour filter chain for the image pipeline.

Each adjustment becomes one FilterStep. Steps at their identity value are
left out of the chain, so an all-identity AdjustmentParameters yields an
empty chain and the image passes through untouched.

Step order matches a CSS filter list:
brightness -> contrast -> saturate -> hue-rotate -> sepia -> blur

Colour steps run on float32 RGB arrays in [0, 1] and clip after every step.
Alpha is never modified by colour steps.

Example:
    >>> from PIL import Image
    >>> img = Image.open("photo.jpg")
    >>> chain = build_filter_chain(AdjustmentParameters(brightness=120, sepia_amount=40))
    >>> warmed = apply_filter_chain(img, chain)
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence

import numpy as np
from PIL import Image, ImageFilter

from TD_Libs.constants import (
    BLUR_RANGE,
    BRIGHTNESS_RANGE,
    CONTRAST_RANGE,
    HUE_ROTATE_RANGE,
    LUMA_BLUE,
    LUMA_GREEN,
    LUMA_RED,
    SATURATION_RANGE,
    SEPIA_RANGE,
)
from TD_Libs.ImageEditingLib.image_models import AdjustmentParameters

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterStep:
    """One entry of a filter chain.

    Attributes:
        name: 'brightness', 'contrast', 'saturate', 'hue-rotate', 'sepia' or 'blur'
        value: Amount in CSS units (ratio for brightness/contrast/saturate/sepia,
               degrees for hue-rotate, pixels for blur)
    """
    name: str
    value: float

    def css(self) -> str:
        if self.name == "hue-rotate":
            return f"hue-rotate({self.value:g}deg)"
        if self.name == "blur":
            return f"blur({self.value:g}px)"
        return f"{self.name}({self.value * 100:g}%)"


def build_filter_chain(adjust: AdjustmentParameters) -> List[FilterStep]:
    """
    Translate adjustment parameters into a filter chain.

    Args:
        adjust: Adjustment parameters (clamped before use)

    Returns:
        List of FilterSteps, empty when every parameter is at identity
    """
    adjust = adjust.clamped()
    chain: List[FilterStep] = []

    if adjust.brightness != BRIGHTNESS_RANGE[2]:
        chain.append(FilterStep("brightness", adjust.brightness / 100.0))
    if adjust.contrast != CONTRAST_RANGE[2]:
        chain.append(FilterStep("contrast", adjust.contrast / 100.0))
    if adjust.saturation != SATURATION_RANGE[2]:
        chain.append(FilterStep("saturate", adjust.saturation / 100.0))
    if adjust.hue_rotate_degrees != HUE_ROTATE_RANGE[2]:
        chain.append(FilterStep("hue-rotate", adjust.hue_rotate_degrees))
    if adjust.sepia_amount != SEPIA_RANGE[2]:
        chain.append(FilterStep("sepia", adjust.sepia_amount / 100.0))
    if adjust.blur_radius_px != BLUR_RANGE[2]:
        chain.append(FilterStep("blur", adjust.blur_radius_px))

    if chain:
        logger.debug(f"Built filter chain: {describe_filter_chain(chain)}")
    return chain


def describe_filter_chain(chain: Sequence[FilterStep]) -> str:
    """Render a chain as a CSS filter string ('none' for an empty chain)."""
    if not chain:
        return "none"
    return " ".join(step.css() for step in chain)


# ============================================================================
# Colour matrices
# ============================================================================

def saturate_matrix(amount: float) -> np.ndarray:
    """3x3 saturation matrix (1.0 = unchanged, 0.0 = greyscale)."""
    s = float(amount)
    return np.array(
        [
            [LUMA_RED + (1 - LUMA_RED) * s, LUMA_GREEN - LUMA_GREEN * s, LUMA_BLUE - LUMA_BLUE * s],
            [LUMA_RED - LUMA_RED * s, LUMA_GREEN + (1 - LUMA_GREEN) * s, LUMA_BLUE - LUMA_BLUE * s],
            [LUMA_RED - LUMA_RED * s, LUMA_GREEN - LUMA_GREEN * s, LUMA_BLUE + (1 - LUMA_BLUE) * s],
        ],
        dtype=np.float32,
    )


def hue_rotate_matrix(degrees: float) -> np.ndarray:
    """3x3 hue rotation matrix. Luminance is preserved for any angle."""
    rad = math.radians(float(degrees))
    cos_a = math.cos(rad)
    sin_a = math.sin(rad)
    return np.array(
        [
            [
                0.213 + cos_a * 0.787 - sin_a * 0.213,
                0.715 - cos_a * 0.715 - sin_a * 0.715,
                0.072 - cos_a * 0.072 + sin_a * 0.928,
            ],
            [
                0.213 - cos_a * 0.213 + sin_a * 0.143,
                0.715 + cos_a * 0.285 + sin_a * 0.140,
                0.072 - cos_a * 0.072 - sin_a * 0.283,
            ],
            [
                0.213 - cos_a * 0.213 - sin_a * 0.787,
                0.715 - cos_a * 0.715 + sin_a * 0.715,
                0.072 + cos_a * 0.928 + sin_a * 0.072,
            ],
        ],
        dtype=np.float32,
    )


def sepia_matrix(amount: float) -> np.ndarray:
    """3x3 sepia blend matrix (0.0 = unchanged, 1.0 = full sepia)."""
    inv = 1.0 - max(0.0, min(1.0, float(amount)))
    return np.array(
        [
            [0.393 + 0.607 * inv, 0.769 - 0.769 * inv, 0.189 - 0.189 * inv],
            [0.349 - 0.349 * inv, 0.686 + 0.314 * inv, 0.168 - 0.168 * inv],
            [0.272 - 0.272 * inv, 0.534 - 0.534 * inv, 0.131 + 0.869 * inv],
        ],
        dtype=np.float32,
    )


# ============================================================================
# Per-step operations on float RGB arrays
# ============================================================================

def adjust_brightness(rgb: np.ndarray, factor: float) -> np.ndarray:
    return rgb * np.float32(factor)


def adjust_contrast(rgb: np.ndarray, factor: float) -> np.ndarray:
    # pivot at mid-grey
    return (rgb - 0.5) * np.float32(factor) + 0.5


def adjust_saturation(rgb: np.ndarray, factor: float) -> np.ndarray:
    return rgb @ saturate_matrix(factor).T


def rotate_hue(rgb: np.ndarray, degrees: float) -> np.ndarray:
    return rgb @ hue_rotate_matrix(degrees).T


def apply_sepia(rgb: np.ndarray, amount: float) -> np.ndarray:
    return rgb @ sepia_matrix(amount).T


_COLOR_STEPS: Dict[str, Callable[[np.ndarray, float], np.ndarray]] = {
    "brightness": adjust_brightness,
    "contrast": adjust_contrast,
    "saturate": adjust_saturation,
    "hue-rotate": rotate_hue,
    "sepia": apply_sepia,
}


def _apply_color_step(image: Any, step: FilterStep) -> Any:
    operation = _COLOR_STEPS[step.name]
    pixels = np.asarray(image, dtype=np.float32) / 255.0
    rgb = np.clip(operation(pixels[..., :3], step.value), 0.0, 1.0)
    pixels[..., :3] = rgb
    out = np.rint(pixels * 255.0).astype(np.uint8)
    return Image.fromarray(out)


def apply_gaussian_blur(image: Any, radius: float) -> Any:
    """
    Apply Gaussian blur to image.

    Args:
        image: PIL Image
        radius: Blur radius in pixels (0 = no blur)

    Returns:
        Blurred PIL Image (same mode as input)

    Raises:
        ValueError: If radius is negative
        TypeError: If image not PIL Image
    """
    if not hasattr(image, "filter"):
        raise TypeError(f"Expected PIL Image, got {type(image)}")
    if radius < 0:
        raise ValueError(f"radius must be >= 0, got {radius}")
    if radius == 0:
        return image.copy()
    return image.filter(ImageFilter.GaussianBlur(radius=radius))


def apply_filter_chain(image: Any, chain: Sequence[FilterStep]) -> Any:
    """
    Run an image through a filter chain.

    Args:
        image: PIL Image
        chain: Steps produced by build_filter_chain

    Returns:
        New PIL Image. An empty chain returns an unmodified copy; any other
        chain returns an RGBA image.

    Raises:
        ValueError: If a step name is unknown
        TypeError: If image not PIL Image
    """
    if not hasattr(image, "convert"):
        raise TypeError(f"Expected PIL Image, got {type(image)}")
    if not chain:
        return image.copy()

    working = image.convert("RGBA")
    for step in chain:
        if step.name == "blur":
            working = apply_gaussian_blur(working, step.value)
        elif step.name in _COLOR_STEPS:
            working = _apply_color_step(working, step)
        else:
            raise ValueError(
                f"Unknown filter step: {step.name}. "
                f"Valid steps: {', '.join(list(_COLOR_STEPS) + ['blur'])}"
            )
    return working
