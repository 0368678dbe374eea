"""
Batch export of history artifacts.

Functions:
    build_gallery_archive: ZIP the selected artifacts' stored bytes
    gallery_archive_name: Filename for a gallery archive
"""

import io
import logging
import time
import zipfile
from typing import AbstractSet, Iterable, Optional

from TD_Libs.constants import GALLERY_ARCHIVE_PREFIX, GALLERY_FOLDER_NAME
from TD_Libs.ImageEditingLib.image_editing_ops import artifact_filename

logger = logging.getLogger(__name__)


def gallery_archive_name(now_ms: Optional[int] = None) -> str:
    """'tdanimator-gallery-<epoch ms>.zip'"""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{GALLERY_ARCHIVE_PREFIX}-{now_ms}.zip"


def build_gallery_archive(history: Iterable, selected_ids: AbstractSet[int]) -> Optional[bytes]:
    """
    Build a ZIP archive of the selected artifacts.

    Files are stored under a single folder with their download names and
    the bytes exactly as stored in history (no watermark).

    Args:
        history: GeneratedArtifacts to pick from
        selected_ids: Timestamps of the artifacts to include

    Returns:
        ZIP bytes, or None when no artifact matched the selection
    """
    if not selected_ids:
        return None

    buffer = io.BytesIO()
    count = 0
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for artifact in history:
            if artifact.created_at_ms not in selected_ids:
                continue
            name = artifact_filename(artifact.created_at_ms, artifact.mime_type)
            archive.writestr(f"{GALLERY_FOLDER_NAME}/{name}", artifact.image_data)
            count += 1

    if count == 0:
        return None
    logger.debug(f"Built gallery archive with {count} file(s)")
    return buffer.getvalue()
