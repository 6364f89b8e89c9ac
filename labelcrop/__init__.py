"""
LabelMe Crop & Remap Dataset Generator.

This package turns a LabelMe-annotated image dataset into a dataset of
crops centred on one "parent" class (e.g. person), with every overlapping
annotation remapped into the crop's coordinate space.

Module Structure:
    scanner.py       - Image/JSON pairing and LabelMe parsing
    matcher.py       - Parent-child association and the OR filter
    geometry.py      - Padded, image-clipped crop rectangles
    remap.py         - Coordinate translation and clamping into crop space
    image.py         - Unicode-safe image decoding, encoding and cropping
    pipeline.py      - Batch crop-and-remap workflow
    visualization.py - Annotated preview rendering

    writers/         - Annotation writers
        labelme.py   - LabelMe JSON output

    core/            - Core infrastructure
        config.py    - Dataclass-based configuration
        constants.py - Enums and constant values
        exceptions.py - Error hierarchy
        logger.py    - Logging utilities

    models/          - Data models
        shapes.py    - Shape and BoundingBox
        records.py   - Image records, crop specs and batch summaries
"""

from .core import (
    ShapeType,
    CropConfig,
    load_config,
    CropRemapError,
    ConfigurationError,
    DatasetIOError,
    AnnotationDataError,
)
from .models import (
    BoundingBox,
    Shape,
    ImageRecord,
    ParentInstance,
    CropSpec,
    CropResult,
    CropSummary,
)
from .scanner import scan_dataset, ScanResult
from .matcher import match_parents, MatchResult
from .geometry import expand_bbox, clip_to_image, compute_crop_spec
from .remap import remap_point, remap_shape, remap_shapes
from .pipeline import crop_and_remap, crop_and_remap_from_config
from .visualization import generate_annotated_previews

__version__ = "1.0.0"

__all__ = [
    # Entry points
    "crop_and_remap",
    "crop_and_remap_from_config",
    "generate_annotated_previews",
    # Stages
    "scan_dataset",
    "ScanResult",
    "match_parents",
    "MatchResult",
    "expand_bbox",
    "clip_to_image",
    "compute_crop_spec",
    "remap_point",
    "remap_shape",
    "remap_shapes",
    # Models
    "ShapeType",
    "BoundingBox",
    "Shape",
    "ImageRecord",
    "ParentInstance",
    "CropSpec",
    "CropResult",
    "CropSummary",
    # Config and errors
    "CropConfig",
    "load_config",
    "CropRemapError",
    "ConfigurationError",
    "DatasetIOError",
    "AnnotationDataError",
]
