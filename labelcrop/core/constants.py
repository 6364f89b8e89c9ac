"""
Constants and enumerations for the crop-and-remap dataset generator.

This module contains all magic strings, numbers, and enums used throughout
the application to ensure consistency and type safety.
"""

from enum import Enum
from typing import Final


# ============================================================================
# Enumerations
# ============================================================================

class ShapeType(str, Enum):
    """LabelMe shape types understood by the crop pipeline."""
    RECTANGLE = "rectangle"
    POLYGON = "polygon"


# LabelMe writes these names; anything not listed here is unsupported
SHAPE_TYPE_ALIASES: Final[dict] = {
    "rectangle": ShapeType.RECTANGLE,
    "bounding_box": ShapeType.RECTANGLE,
    "polygon": ShapeType.POLYGON,
}


# ============================================================================
# File and Path Constants
# ============================================================================

DEFAULT_CONFIG_PATH: Final[str] = "configs/crop_config.yaml"
DEFAULT_OUTPUT_DIR: Final[str] = "cropped_output"
DEFAULT_PREVIEW_DIR: Final[str] = "previews"

# File extensions (compared lower-case)
SUPPORTED_IMAGE_FORMATS: Final[tuple] = (
    '.png', '.jpg', '.jpeg', '.bmp', '.tif', '.tiff', '.webp'
)
ANNOTATION_EXTENSION: Final[str] = '.json'
PREVIEW_EXTENSION: Final[str] = '.jpg'


# ============================================================================
# Processing Constants
# ============================================================================

DEFAULT_PARENT_LABEL: Final[str] = "person"
DEFAULT_PADDING_FACTOR: Final[float] = 1.2
DEFAULT_MAX_WORKERS: Final[int] = 1
DEFAULT_NUM_PREVIEWS: Final[int] = 5

# Substituted extent for zero-width/zero-height parent boxes
MIN_CROP_EXTENT: Final[float] = 1.0

# Allowed characters in the parent label part of output filenames
SAFE_FILENAME_PATTERN: Final[str] = r'[^A-Za-z0-9_-]'

# LabelMe top-level keys rewritten for every cropped annotation
LABELME_REWRITTEN_KEYS: Final[frozenset] = frozenset([
    'shapes', 'imagePath', 'imageData', 'imageWidth', 'imageHeight'
])
LABELME_DEFAULT_VERSION: Final[str] = "5.2.1"


# ============================================================================
# Preview Rendering
# ============================================================================

# Golden-ratio hue step keeps neighbouring shape colors far apart
PREVIEW_HUE_STEP: Final[float] = 0.618033988749895
PREVIEW_SATURATION: Final[float] = 0.85
PREVIEW_VALUE: Final[float] = 0.95
PREVIEW_LINE_THICKNESS: Final[int] = 2
PREVIEW_FONT_SCALE: Final[float] = 0.5
PREVIEW_TEXT_OFFSET: Final[int] = 6
PREVIEW_JPEG_QUALITY: Final[int] = 90


# ============================================================================
# Validation Messages
# ============================================================================

class ValidationMessages:
    """Standard validation error messages."""
    EMPTY_PATH = "{name} path must not be empty"
    DIRECTORY_NOT_FOUND = "Directory not found: {path}"
    NOT_A_DIRECTORY = "Not a directory: {path}"
    FILE_NOT_FOUND = "File not found: {path}"
    CANNOT_CREATE_DIRECTORY = "Failed to create output directory '{path}': {error}"
    CANNOT_READ_DIRECTORY = "Failed to read source directory '{path}': {error}"
    EMPTY_PARENT_LABEL = "Parent label must not be empty"
    INVALID_PADDING_FACTOR = "Padding factor must be a finite number greater than 0, got: {value}"
    INVALID_MAX_WORKERS = "max_workers must be at least 1, got: {value}"
    INVALID_NUM_PREVIEWS = "Number of previews must be non-negative, got: {value}"
    INVALID_IMAGE_SIZE = "Image size must be positive, got: {width}x{height}"
    INVALID_JSON = "Malformed annotation JSON: {error}"
    INVALID_ROOT = "Annotation root must be a JSON object"
    INVALID_SHAPES = "'shapes' must be a list"
    INVALID_SHAPE = "Shape {index}: {reason}"
    IMAGE_DECODE_FAILED = "Failed to decode image: {path}"
    IMAGE_WRITE_FAILED = "Failed to write image: {path}"


# ============================================================================
# Logging Configuration
# ============================================================================

LOG_FORMAT: Final[str] = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT: Final[str] = '%Y-%m-%d %H:%M:%S'
DEFAULT_LOG_LEVEL: Final[str] = 'INFO'
DEFAULT_LOGGER_NAME: Final[str] = 'labelcrop'
