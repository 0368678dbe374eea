"""
Pytest configuration and shared fixtures for TdStudio tests.

This module provides shared test fixtures and configuration
used across multiple test modules.
"""

import io
import itertools
import json

import numpy as np
import pytest
from PIL import Image

from TD_Libs.constants import MIME_PNG
from TD_Libs.exceptions import PersistenceError, QuotaExceededError
from TD_Libs.HistoryStoreLib import artifact as artifact_module
from TD_Libs.HistoryStoreLib.artifact import GeneratedArtifact
from TD_Libs.HistoryStoreLib.storage_medium import InMemoryMedium
from TD_Libs.ImageEditingLib.image_models import RasterImage
from TD_Libs.StudioStateLib import studio_controller as controller_module


def encode(image, fmt="PNG"):
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


class ItemCountMedium(InMemoryMedium):
    """
    Medium that only accepts JSON lists up to max_items long.

    Used to simulate a quota that holds a fixed number of history records.
    """

    def __init__(self, max_items):
        super().__init__(quota_chars=None)
        self.max_items = max_items
        self.write_attempts = []

    def set_item(self, key, value):
        count = len(json.loads(value))
        self.write_attempts.append(count)
        if count > self.max_items:
            raise QuotaExceededError(key, count, self.max_items)
        super().set_item(key, value)

    def persisted_timestamps(self, key):
        raw = self.get_item(key)
        if raw is None:
            return []
        return [record["timestamp"] for record in json.loads(raw)]


class BrokenMedium(InMemoryMedium):
    """Medium whose writes and removals always fail for non-capacity reasons."""

    def __init__(self):
        super().__init__(quota_chars=None)

    def set_item(self, key, value):
        raise PersistenceError("disk unplugged")

    def remove_item(self, key):
        raise PersistenceError("disk unplugged")


@pytest.fixture
def solid_rgb():
    """
    Provide a 60x40 RGB image in a single mid-tone colour.

    Returns:
        PIL Image
    """
    return Image.new("RGB", (60, 40), (40, 80, 120))


@pytest.fixture
def gradient_rgba():
    """
    Provide a 400x200 RGBA image whose red channel encodes the column.

    Red is x // 2, green is y, blue is constant and alpha is opaque, so
    any pixel reveals where it came from.

    Returns:
        PIL Image
    """
    height, width = 200, 400
    xs = np.tile(np.arange(width) // 2, (height, 1))
    ys = np.tile(np.arange(height).reshape(height, 1), (1, width))
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[..., 0] = xs.astype(np.uint8)
    pixels[..., 1] = ys.astype(np.uint8)
    pixels[..., 2] = 90
    pixels[..., 3] = 255
    return Image.fromarray(pixels)


@pytest.fixture
def raster(solid_rgb):
    return RasterImage(solid_rgb, MIME_PNG)


@pytest.fixture
def png_bytes():
    """Factory for encoded PNG bytes."""
    def _make(size=(16, 12), color=(200, 30, 30, 255)):
        return encode(Image.new("RGBA", size, color), "PNG")
    return _make


@pytest.fixture
def jpeg_bytes():
    """Factory for encoded JPEG bytes."""
    def _make(size=(16, 12), color=(30, 160, 90)):
        return encode(Image.new("RGB", size, color), "JPEG")
    return _make


@pytest.fixture
def make_artifact(png_bytes):
    """
    Factory for GeneratedArtifacts with a given timestamp.

    Returns:
        Callable (created_at_ms, **overrides) -> GeneratedArtifact
    """
    def _make(created_at_ms, **overrides):
        fields = {
            "image_data": png_bytes(),
            "mime_type": MIME_PNG,
            "prompt": f"prompt {created_at_ms}",
            "created_at_ms": created_at_ms,
        }
        fields.update(overrides)
        return GeneratedArtifact(**fields)
    return _make


@pytest.fixture
def item_count_medium():
    """Factory for media that hold at most N history records."""
    return ItemCountMedium


@pytest.fixture
def broken_medium():
    return BrokenMedium()


@pytest.fixture
def fake_clock(monkeypatch):
    """
    Replace artifact timestamps with a deterministic counter.

    Returns:
        itertools.count the timestamps are drawn from
    """
    counter = itertools.count(1_700_000_000_000)

    def _next(jitter=False):
        return next(counter)

    monkeypatch.setattr(artifact_module, "new_artifact_timestamp", _next)
    monkeypatch.setattr(controller_module, "new_artifact_timestamp", _next)
    return counter
