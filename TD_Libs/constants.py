"""
Constants and configuration values for TdStudio.

This module centralizes all constant values, magic numbers, and
configuration settings used throughout the library.
"""

# History store constants
MAX_HISTORY_ITEMS = 5
HISTORY_STORAGE_KEY = "imagen_studio_history"
DEFAULT_STORAGE_QUOTA_CHARS = 5 * 1024 * 1024
STORAGE_FILE_EXTENSION = ".json"

# Supported encodings
MIME_JPEG = "image/jpeg"
MIME_PNG = "image/png"
SUPPORTED_MIME_TYPES = {MIME_JPEG, MIME_PNG}
PIL_FORMAT_BY_MIME = {MIME_JPEG: "JPEG", MIME_PNG: "PNG"}
MIME_BY_PIL_FORMAT = {"JPEG": MIME_JPEG, "PNG": MIME_PNG}
FILE_EXTENSION_BY_MIME = {MIME_JPEG: "jpg", MIME_PNG: "png"}
DEFAULT_JPEG_QUALITY = 92

# Adjustment domains: (minimum, maximum, identity)
BRIGHTNESS_RANGE = (0.0, 200.0, 100.0)
CONTRAST_RANGE = (0.0, 200.0, 100.0)
SATURATION_RANGE = (0.0, 200.0, 100.0)
HUE_ROTATE_RANGE = (-180.0, 180.0, 0.0)
SEPIA_RANGE = (0.0, 100.0, 0.0)
BLUR_RANGE = (0.0, 20.0, 0.0)

# Luminance weights shared by the saturate, hue-rotate and sepia matrices
LUMA_RED = 0.213
LUMA_GREEN = 0.715
LUMA_BLUE = 0.072

# Transform constants
CROP_ORIGINAL = "original"
CROP_ASPECT_RATIOS = {
    CROP_ORIGINAL: None,
    "1:1": 1.0,
    "16:9": 16.0 / 9.0,
    "4:3": 4.0 / 3.0,
    "3:4": 3.0 / 4.0,
    "9:16": 9.0 / 16.0,
}
MIN_ZOOM_FACTOR = 1.0

# Watermark constants
WATERMARK_EFFECTS = ("none", "outline", "shadow", "glow", "emboss", "vintage", "neon")
WATERMARK_POSITIONS = ("topLeft", "topRight", "bottomLeft", "bottomRight", "center", "tile")
WATERMARK_SIZE_SCALES = {
    "small": 0.7,
    "medium": 1.0,
    "large": 1.3,
    "extraLarge": 1.6,
}
WATERMARK_FONT_RATIO = 0.035
WATERMARK_MIN_FONT_SIZE = 20.0
WATERMARK_PADDING_RATIO = 0.025
WATERMARK_TILE_ANGLE = -25.0
WATERMARK_TILE_SPACING_X = 1.5
WATERMARK_TILE_SPACING_Y = 3.0
DEFAULT_WATERMARK_TEXT = "TdAnimator"
DEFAULT_WATERMARK_EFFECT = "none"
DEFAULT_WATERMARK_OPACITY = 70
DEFAULT_WATERMARK_POSITION = "bottomRight"
DEFAULT_WATERMARK_SIZE = "medium"

# Font candidates tried before Pillow's bundled default font
WATERMARK_FONT_PATHS = (
    "DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "/System/Library/Fonts/Helvetica.ttc",
    "arialbd.ttf",
)

# Generation settings defaults used when restoring older records
DEFAULT_ASPECT_RATIO = "1:1"
DEFAULT_RESOLUTION = "hd"
DEFAULT_STYLE_PRESET = "none"

# File naming
DOWNLOAD_FILE_PREFIX = "tdanimator"
GALLERY_FOLDER_NAME = "tdanimator-collection"
GALLERY_ARCHIVE_PREFIX = "tdanimator-gallery"

# Safe filename characters
SAFE_FILENAME_CHARS = "-_"
FILENAME_REPLACEMENT_CHAR = "_"

# Artifact record field names
FIELD_IMAGE_DATA = "base64"
FIELD_MIME_TYPE = "mimeType"
FIELD_PROMPT = "prompt"
FIELD_TIMESTAMP = "timestamp"
FIELD_ASPECT_RATIO = "aspectRatio"
FIELD_RESOLUTION = "resolution"
FIELD_STYLE_PRESET = "stylePreset"
FIELD_LIGHTING = "lighting"
FIELD_CAMERA = "camera"
FIELD_MOOD = "mood"
FIELD_SEED = "seed"
FIELD_MODEL = "model"
FIELD_WATERMARK_EFFECT = "watermarkTextEffect"
FIELD_WATERMARK_OPACITY = "watermarkOpacity"
FIELD_WATERMARK_POSITION = "watermarkPosition"
FIELD_WATERMARK_SIZE = "watermarkSize"
