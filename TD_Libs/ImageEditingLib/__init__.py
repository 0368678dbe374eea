"""
ImageEditingLib - Image adjustment, transform and watermark pipeline

This module provides the raster models, codec, drawing surface and the
pipeline operations used by TdStudio.
"""

from TD_Libs.ImageEditingLib.image_models import (
    RasterImage,
    RgbaColor,
    AdjustmentParameters,
    TransformParameters,
    WatermarkSpec,
)
from TD_Libs.ImageEditingLib.image_codec import (
    decode_image,
    encode_image,
    parse_data_url,
    to_data_url,
)
from TD_Libs.ImageEditingLib.drawing_surface import (
    DrawingSurface,
    PillowSurface,
    create_surface,
)
from TD_Libs.ImageEditingLib.transform_ops import apply_adjustments_and_transforms
from TD_Libs.ImageEditingLib.watermark import apply_watermark
from TD_Libs.ImageEditingLib.image_editing_ops import (
    process_reference_image,
    apply_image_filters,
    prepare_download,
    save_artifacts,
)

__all__ = [
    "RasterImage",
    "RgbaColor",
    "AdjustmentParameters",
    "TransformParameters",
    "WatermarkSpec",
    "decode_image",
    "encode_image",
    "parse_data_url",
    "to_data_url",
    "DrawingSurface",
    "PillowSurface",
    "create_surface",
    "apply_adjustments_and_transforms",
    "apply_watermark",
    "process_reference_image",
    "apply_image_filters",
    "prepare_download",
    "save_artifacts",
]
