"""
Colour adjustment and geometric transform stage of the image pipeline.

The stage draws the source onto a fresh surface through the filter chain,
rotating and flipping about the canvas center, then center-crops to the
requested aspect ratio and zoom.

Functions:
    apply_adjustments_and_transforms: Render a RasterImage through the stage
"""

import logging
from typing import Optional

from TD_Libs.exceptions import SurfaceUnavailableError
from TD_Libs.ImageEditingLib.color_filters import build_filter_chain, describe_filter_chain
from TD_Libs.ImageEditingLib.drawing_surface import SurfaceFactory, create_surface
from TD_Libs.ImageEditingLib.geometry import (
    compute_crop_box,
    normalize_rotation,
    rotated_canvas_size,
)
from TD_Libs.ImageEditingLib.image_models import (
    AdjustmentParameters,
    RasterImage,
    TransformParameters,
)

logger = logging.getLogger(__name__)


def restore_mode(image, mode: str):
    """
    Convert a pipeline result back to the source's mode where that is lossless-safe.

    Greyscale sources come back as RGB so tints and coloured marks survive.
    """
    if mode == "L":
        mode = "RGB"
    if image.mode != mode and mode in ("RGB", "RGBA"):
        return image.convert(mode)
    return image


def apply_adjustments_and_transforms(
    source: RasterImage,
    adjust: Optional[AdjustmentParameters] = None,
    transform: Optional[TransformParameters] = None,
    surface_factory: Optional[SurfaceFactory] = None,
) -> RasterImage:
    """
    Apply colour adjustments, rotation, flips, aspect crop and zoom.

    Steps:
        1. Canvas size: source size, with width/height swapped for 90/270.
        2. Draw the source centered through the filter chain, flipped and
           then rotated clockwise about the canvas center.
        3. Crop to the largest centered rectangle of the target aspect
           ratio, shrunk by 1/zoom about its center.

    All-identity parameters return pixels equal to the source.

    Args:
        source: Image to render (never modified)
        adjust: Colour adjustments (default: identity)
        transform: Geometric transform (default: identity)
        surface_factory: Creates the drawing surface (default: Pillow)

    Returns:
        New RasterImage with the source's mime_type. If no drawing surface
        can be obtained the source itself is returned unchanged.
    """
    if not isinstance(source, RasterImage):
        raise TypeError(f"Expected RasterImage, got {type(source)}")

    adjust = (adjust or AdjustmentParameters()).clamped()
    transform = transform or TransformParameters()
    factory = surface_factory or create_surface

    rotation = normalize_rotation(transform.rotation_degrees)
    canvas_w, canvas_h = rotated_canvas_size(source.width, source.height, rotation)
    chain = build_filter_chain(adjust)

    try:
        surface = factory(canvas_w, canvas_h)
    except (SurfaceUnavailableError, MemoryError) as exc:
        logger.warning(f"Drawing surface unavailable, returning source unchanged: {exc}")
        return source

    surface.draw_image(
        source.image,
        filter_chain=chain,
        rotation_degrees=rotation,
        flip_horizontal=transform.flip_horizontal,
        flip_vertical=transform.flip_vertical,
    )

    crop_box = compute_crop_box(
        canvas_w, canvas_h, transform.crop_aspect_ratio, transform.zoom_factor
    )
    if crop_box != (0, 0, canvas_w, canvas_h):
        surface.crop(crop_box)

    logger.debug(
        f"Rendered {source.width}x{source.height} -> {crop_box[2] - crop_box[0]}x"
        f"{crop_box[3] - crop_box[1]} (filter: {describe_filter_chain(chain)}, rotation: {rotation})"
    )
    return source.with_image(restore_mode(surface.snapshot(), source.image.mode))
