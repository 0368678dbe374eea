"""
Byte-level image editing operations for TdStudio.

This module wraps the raster pipeline for callers that hold encoded image
bytes: reference-image preprocessing before a generation request, the
edit-and-export flow, and download preparation.

Functions:
    process_reference_image: Apply colour adjustments to a reference image
    apply_image_filters: Adjust, transform and optionally watermark encoded bytes
    artifact_filename: Download filename for an artifact
    prepare_download: Encoded bytes and filename for downloading an artifact
    save_artifacts: Batch save artifacts to a directory
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Tuple

from TD_Libs.constants import DOWNLOAD_FILE_PREFIX, FILE_EXTENSION_BY_MIME, MIME_JPEG, MIME_PNG
from TD_Libs.ImageEditingLib.drawing_surface import SurfaceFactory
from TD_Libs.ImageEditingLib.image_codec import decode_image, encode_image
from TD_Libs.ImageEditingLib.image_models import (
    AdjustmentParameters,
    TransformParameters,
    WatermarkSpec,
)
from TD_Libs.ImageEditingLib.transform_ops import apply_adjustments_and_transforms
from TD_Libs.ImageEditingLib.watermark import apply_watermark

logger = logging.getLogger(__name__)


def process_reference_image(
    data: bytes,
    mime_type: Optional[str],
    adjust: AdjustmentParameters,
    surface_factory: Optional[SurfaceFactory] = None,
) -> bytes:
    """
    Apply colour adjustments to a reference image before it is sent for generation.

    Identity adjustments return the input bytes untouched, without a
    decode/encode round trip.

    Args:
        data: Encoded reference image
        mime_type: Its MIME type (PNG is assumed when unknown)
        adjust: Adjustments chosen for the reference image

    Returns:
        Encoded bytes in the input's MIME type

    Raises:
        ImageDecodeError: If data is not a valid image
    """
    if adjust.is_identity():
        return data

    raster = decode_image(data, mime_type or MIME_PNG)
    adjusted = apply_adjustments_and_transforms(raster, adjust, surface_factory=surface_factory)
    return encode_image(adjusted)


def apply_image_filters(
    data: bytes,
    mime_type: Optional[str],
    adjust: Optional[AdjustmentParameters] = None,
    transform: Optional[TransformParameters] = None,
    watermark: Optional[WatermarkSpec] = None,
    surface_factory: Optional[SurfaceFactory] = None,
) -> bytes:
    """
    Run encoded bytes through adjustments, transforms and an optional watermark.

    Args:
        data: Encoded source image
        mime_type: Source MIME type, also used for the output
        adjust: Colour adjustments (default: identity)
        transform: Geometric transform (default: identity)
        watermark: Watermark to add; skipped when None or blank

    Returns:
        Encoded result bytes

    Raises:
        ImageDecodeError: If data is not a valid image
    """
    raster = decode_image(data, mime_type)
    result = apply_adjustments_and_transforms(raster, adjust, transform, surface_factory)
    if watermark is not None and not watermark.is_blank:
        result = apply_watermark(result, watermark, surface_factory)
    return encode_image(result)


def artifact_filename(created_at_ms: int, mime_type: str) -> str:
    """'tdanimator-<timestamp>.<png|jpg>'"""
    extension = FILE_EXTENSION_BY_MIME.get(mime_type, FILE_EXTENSION_BY_MIME[MIME_JPEG])
    return f"{DOWNLOAD_FILE_PREFIX}-{created_at_ms}.{extension}"


def prepare_download(
    artifact,
    watermark: Optional[WatermarkSpec] = None,
    surface_factory: Optional[SurfaceFactory] = None,
) -> Tuple[str, bytes]:
    """
    Prepare an artifact for download.

    The stored bytes are returned as-is unless a non-blank watermark is
    given, in which case the image is decoded, marked and re-encoded.

    Args:
        artifact: GeneratedArtifact to download
        watermark: Optional watermark settings

    Returns:
        (filename, encoded bytes)
    """
    filename = artifact_filename(artifact.created_at_ms, artifact.mime_type)
    if watermark is None or watermark.is_blank:
        return filename, artifact.image_data

    raster = decode_image(artifact.image_data, artifact.mime_type)
    marked = apply_watermark(raster, watermark, surface_factory)
    return filename, encode_image(marked)


def save_artifacts(
    artifacts: Iterable,
    output_dir: Path,
    watermark: Optional[WatermarkSpec] = None,
) -> int:
    """
    Save multiple artifacts to disk under their download filenames.

    Args:
        artifacts: GeneratedArtifacts to save
        output_dir: Existing directory to write into
        watermark: Optional watermark applied to every file

    Returns:
        The number of files written

    Raises:
        OSError: If directory cannot be accessed or files cannot be written
    """
    output_dir = Path(output_dir)
    if not output_dir.exists():
        raise OSError(f"Output directory does not exist: {output_dir}")

    if not output_dir.is_dir():
        raise OSError(f"Output path is not a directory: {output_dir}")

    saved_count = 0
    for artifact in artifacts:
        filename, data = prepare_download(artifact, watermark)
        (output_dir / filename).write_bytes(data)
        saved_count += 1
    logger.info(f"Saved {saved_count} artifact(s) to {output_dir}")
    return saved_count
