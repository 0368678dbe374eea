"""
Demonstration of the TdStudio image pipeline and history store.

Renders a synthetic image through adjustments, a transform and every
watermark effect, times each step, and writes the results to a folder.
It then fills a tiny history store to show the adaptive shrink under a
storage quota.

Usage:
    python examples/pipeline_demo.py [output_dir]
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import json
import logging
import time

from PIL import Image, ImageDraw

from TD_Libs.constants import HISTORY_STORAGE_KEY, MIME_PNG, WATERMARK_EFFECTS
from TD_Libs.HistoryStoreLib import BoundedHistoryStore, GeneratedArtifact, InMemoryMedium
from TD_Libs.ImageEditingLib import (
    AdjustmentParameters,
    RasterImage,
    TransformParameters,
    WatermarkSpec,
    apply_adjustments_and_transforms,
    apply_watermark,
    encode_image,
)


def make_sample(width=640, height=400):
    """Striped test card so rotations and crops are easy to see."""
    image = Image.new("RGB", (width, height), (30, 60, 110))
    draw = ImageDraw.Draw(image)
    for x in range(0, width, 40):
        draw.rectangle((x, 0, x + 19, height), fill=(70, 120, 180))
    draw.rectangle((0, 0, 80, 80), fill=(220, 60, 40))
    return RasterImage(image, MIME_PNG)


def timed(label, func, *args, **kwargs):
    start = time.time()
    result = func(*args, **kwargs)
    print(f"  {label:<28s} {time.time() - start:.3f}s  -> {result.width}x{result.height}")
    return result


def run_pipeline(output_dir):
    print("\nPipeline")
    print("-" * 60)
    source = make_sample()

    edited = timed(
        "adjust + rotate + crop",
        apply_adjustments_and_transforms,
        source,
        AdjustmentParameters(brightness=110, contrast=120, sepia_amount=30),
        TransformParameters(rotation_degrees=90, crop_aspect_ratio="4:3", zoom_factor=1.2),
    )
    (output_dir / "edited.png").write_bytes(encode_image(edited))

    for effect in WATERMARK_EFFECTS:
        for position in ("bottomRight", "tile"):
            spec = WatermarkSpec(text="TdAnimator", effect=effect, position=position, opacity_percent=80)
            marked = timed(f"watermark {effect}/{position}", apply_watermark, source, spec)
            (output_dir / f"watermark-{effect}-{position}.png").write_bytes(encode_image(marked))


def run_history():
    print("\nHistory under a two-record quota")
    print("-" * 60)
    sample = encode_image(make_sample(64, 64))
    record_chars = len(json.dumps([GeneratedArtifact(sample, MIME_PNG, "demo", 0).to_dict()]))
    medium = InMemoryMedium(quota_chars=len(HISTORY_STORAGE_KEY) + record_chars * 2 + 16)
    store = BoundedHistoryStore(medium)

    for timestamp in range(1, 5):
        committed = store.add(GeneratedArtifact(sample, MIME_PNG, f"demo {timestamp}", timestamp))
        print(
            f"  add {timestamp}: in memory {len(committed)}, "
            f"persisted {committed.outcome.persisted_count}, status {committed.outcome.status.value}"
        )


def main():
    """Run the demonstration."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    output_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("pipeline_demo_output")
    output_dir.mkdir(parents=True, exist_ok=True)

    print("=" * 60)
    print("TdStudio Pipeline Demonstration")
    print("=" * 60)

    try:
        run_pipeline(output_dir)
        run_history()
    except KeyboardInterrupt:
        print("\n\nDemo interrupted by user")
        return

    print("\n" + "=" * 60)
    print(f"Images written to {output_dir.resolve()}")
    print("=" * 60)


if __name__ == "__main__":
    main()
