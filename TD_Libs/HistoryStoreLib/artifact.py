"""
Generated artifact model and its persisted record format.

A GeneratedArtifact is immutable: edits produce a new artifact with a new
timestamp. The timestamp (epoch milliseconds) is the artifact's identity.

Record keys are camelCase and the image bytes travel as base64 text:

    {"base64": "...", "mimeType": "image/png", "prompt": "...",
     "timestamp": 1700000000000, "aspectRatio": "1:1", ...}

Classes:
    GeneratedArtifact: Image bytes plus generation settings

Functions:
    new_artifact_timestamp: Epoch milliseconds, optionally jittered for batches
"""

import random
import time
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from TD_Libs.constants import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_RESOLUTION,
    DEFAULT_STYLE_PRESET,
    DEFAULT_WATERMARK_EFFECT,
    DEFAULT_WATERMARK_OPACITY,
    DEFAULT_WATERMARK_POSITION,
    DEFAULT_WATERMARK_SIZE,
    FIELD_ASPECT_RATIO,
    FIELD_CAMERA,
    FIELD_IMAGE_DATA,
    FIELD_LIGHTING,
    FIELD_MIME_TYPE,
    FIELD_MODEL,
    FIELD_MOOD,
    FIELD_PROMPT,
    FIELD_RESOLUTION,
    FIELD_SEED,
    FIELD_STYLE_PRESET,
    FIELD_TIMESTAMP,
    FIELD_WATERMARK_EFFECT,
    FIELD_WATERMARK_OPACITY,
    FIELD_WATERMARK_POSITION,
    FIELD_WATERMARK_SIZE,
    MIME_PNG,
)
from TD_Libs.ImageEditingLib.image_codec import base64_to_bytes, bytes_to_base64


def new_artifact_timestamp(jitter: bool = False) -> int:
    """Current epoch milliseconds; batch items add a random 0-999 ms offset."""
    now_ms = int(time.time() * 1000)
    if jitter:
        now_ms += random.randint(0, 999)
    return now_ms


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class GeneratedArtifact:
    """A generated image with the settings that produced it.

    Attributes:
        image_data: Encoded image bytes
        mime_type: 'image/jpeg' or 'image/png'
        prompt: Prompt text as entered by the user
        created_at_ms: Epoch milliseconds, used as identity
        aspect_ratio, resolution, style_preset: Generation settings
        lighting, camera, mood: Optional prompt tags
        seed: Optional numeric seed
        model: Optional model identifier
        watermark_*: Watermark settings active when the artifact was created
    """
    image_data: bytes
    mime_type: str
    prompt: str
    created_at_ms: int
    aspect_ratio: str = DEFAULT_ASPECT_RATIO
    resolution: Optional[str] = None
    style_preset: Optional[str] = None
    lighting: Optional[str] = None
    camera: Optional[str] = None
    mood: Optional[str] = None
    seed: Optional[int] = None
    model: Optional[str] = None
    watermark_effect: str = DEFAULT_WATERMARK_EFFECT
    watermark_opacity: float = DEFAULT_WATERMARK_OPACITY
    watermark_position: str = DEFAULT_WATERMARK_POSITION
    watermark_size: str = DEFAULT_WATERMARK_SIZE

    @property
    def identity(self) -> int:
        return self.created_at_ms

    def derive(self, image_data: bytes, created_at_ms: Optional[int] = None, **changes: Any) -> "GeneratedArtifact":
        """New artifact for an edit of this one (new bytes, new timestamp)."""
        timestamp = created_at_ms if created_at_ms is not None else new_artifact_timestamp()
        return replace(self, image_data=image_data, created_at_ms=timestamp, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-ready record."""
        return {
            FIELD_IMAGE_DATA: bytes_to_base64(self.image_data),
            FIELD_MIME_TYPE: self.mime_type,
            FIELD_PROMPT: self.prompt,
            FIELD_TIMESTAMP: self.created_at_ms,
            FIELD_ASPECT_RATIO: self.aspect_ratio,
            FIELD_RESOLUTION: self.resolution,
            FIELD_STYLE_PRESET: self.style_preset,
            FIELD_LIGHTING: self.lighting,
            FIELD_CAMERA: self.camera,
            FIELD_MOOD: self.mood,
            FIELD_SEED: self.seed,
            FIELD_MODEL: self.model,
            FIELD_WATERMARK_EFFECT: self.watermark_effect,
            FIELD_WATERMARK_OPACITY: self.watermark_opacity,
            FIELD_WATERMARK_POSITION: self.watermark_position,
            FIELD_WATERMARK_SIZE: self.watermark_size,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneratedArtifact":
        """
        Create from a persisted record.

        Raises:
            ValueError: If required fields are missing or malformed
        """
        if not isinstance(data, dict):
            raise ValueError(f"Artifact record must be a dict, got {type(data)}")
        try:
            encoded = data[FIELD_IMAGE_DATA]
            timestamp = int(data[FIELD_TIMESTAMP])
        except KeyError as exc:
            raise ValueError(f"Artifact record is missing field {exc}") from exc
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Artifact record has an invalid timestamp: {exc}") from exc

        seed = data.get(FIELD_SEED)
        opacity = data.get(FIELD_WATERMARK_OPACITY)
        return cls(
            image_data=base64_to_bytes(str(encoded)),
            mime_type=str(data.get(FIELD_MIME_TYPE) or MIME_PNG),
            prompt=str(data.get(FIELD_PROMPT) or ""),
            created_at_ms=timestamp,
            aspect_ratio=str(data.get(FIELD_ASPECT_RATIO) or DEFAULT_ASPECT_RATIO),
            resolution=_optional_str(data.get(FIELD_RESOLUTION)),
            style_preset=_optional_str(data.get(FIELD_STYLE_PRESET)),
            lighting=_optional_str(data.get(FIELD_LIGHTING)),
            camera=_optional_str(data.get(FIELD_CAMERA)),
            mood=_optional_str(data.get(FIELD_MOOD)),
            seed=int(seed) if seed is not None else None,
            model=_optional_str(data.get(FIELD_MODEL)),
            watermark_effect=str(data.get(FIELD_WATERMARK_EFFECT) or DEFAULT_WATERMARK_EFFECT),
            watermark_opacity=opacity if opacity is not None else DEFAULT_WATERMARK_OPACITY,
            watermark_position=str(data.get(FIELD_WATERMARK_POSITION) or DEFAULT_WATERMARK_POSITION),
            watermark_size=str(data.get(FIELD_WATERMARK_SIZE) or DEFAULT_WATERMARK_SIZE),
        )

    def restore_settings(self) -> Dict[str, Any]:
        """Settings to put back into the studio when this artifact is restored."""
        return {
            "prompt": self.prompt,
            "aspect_ratio": self.aspect_ratio,
            "resolution": self.resolution or DEFAULT_RESOLUTION,
            "style_preset": self.style_preset or DEFAULT_STYLE_PRESET,
            "watermark_effect": self.watermark_effect,
            "watermark_opacity": self.watermark_opacity,
            "watermark_position": self.watermark_position,
            "watermark_size": self.watermark_size,
        }
