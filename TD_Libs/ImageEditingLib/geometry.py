"""
Geometry helpers shared by the transform and watermark stages.

Functions:
    normalize_rotation: Snap an angle to a clockwise quarter turn in [0, 360)
    rotated_canvas_size: Canvas size after a quarter-turn rotation
    compute_crop_box: Largest centered aspect crop, optionally zoomed
    anchor_to_origin: Top-left draw origin for an aligned text box
"""

import math
from typing import Optional, Tuple

from TD_Libs.constants import CROP_ASPECT_RATIOS, CROP_ORIGINAL, MIN_ZOOM_FACTOR

Box = Tuple[int, int, int, int]


def normalize_rotation(degrees: float) -> int:
    """Return the nearest of 0, 90, 180, 270 for any angle."""
    quarter_turns = int(round(float(degrees) / 90.0))
    return (quarter_turns * 90) % 360


def rotated_canvas_size(width: int, height: int, rotation_degrees: float) -> Tuple[int, int]:
    """Width and height swap for 90 and 270 degree rotations."""
    if normalize_rotation(rotation_degrees) % 180 != 0:
        return height, width
    return width, height


def aspect_ratio_value(crop_aspect_ratio: str) -> Optional[float]:
    """Numeric width/height ratio for a crop preset (None for 'original')."""
    if crop_aspect_ratio not in CROP_ASPECT_RATIOS:
        raise ValueError(
            f"Unknown crop_aspect_ratio: {crop_aspect_ratio}. "
            f"Valid ratios: {', '.join(CROP_ASPECT_RATIOS)}"
        )
    return CROP_ASPECT_RATIOS[crop_aspect_ratio]


def compute_crop_box(
    width: int,
    height: int,
    crop_aspect_ratio: str = CROP_ORIGINAL,
    zoom_factor: float = MIN_ZOOM_FACTOR,
) -> Box:
    """
    Compute the crop rectangle for an aspect preset and zoom.

    The aspect crop is the largest centered rectangle of the target ratio
    inside width x height: a canvas wider than the ratio loses width,
    otherwise it loses height. A zoom above 1.0 then shrinks that rectangle
    by 1/zoom about its own center.

    Args:
        width: Canvas width in pixels
        height: Canvas height in pixels
        crop_aspect_ratio: Key of CROP_ASPECT_RATIOS
        zoom_factor: Values below 1.0 are treated as 1.0

    Returns:
        (left, top, right, bottom) box in canvas pixels
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Canvas size must be positive, got {width}x{height}")

    ratio = aspect_ratio_value(crop_aspect_ratio)
    crop_w = float(width)
    crop_h = float(height)

    if ratio is not None:
        if width / height > ratio:
            crop_w = height * ratio
        else:
            crop_h = width / ratio

    zoom = max(MIN_ZOOM_FACTOR, float(zoom_factor))
    if zoom > MIN_ZOOM_FACTOR:
        crop_w /= zoom
        crop_h /= zoom

    box_w = max(1, min(width, int(round(crop_w))))
    box_h = max(1, min(height, int(round(crop_h))))
    left = (width - box_w) // 2
    top = (height - box_h) // 2
    return left, top, left + box_w, top + box_h


def anchor_to_origin(
    x: float,
    y: float,
    box_width: float,
    box_height: float,
    align: str = "left",
    baseline: str = "top",
) -> Tuple[float, float]:
    """
    Convert an anchor point and alignment to the box's top-left corner.

    Args:
        align: 'left', 'center' or 'right'
        baseline: 'top', 'middle' or 'bottom'
    """
    if align == "center":
        x -= box_width / 2.0
    elif align == "right":
        x -= box_width
    if baseline == "middle":
        y -= box_height / 2.0
    elif baseline == "bottom":
        y -= box_height
    return x, y


def covering_square_side(width: int, height: int, margin: float = 0.0) -> int:
    """Side of a square that covers a width x height box under any rotation."""
    return int(math.ceil(math.hypot(width, height) + 2.0 * margin))
