"""
LabelMe format annotation writer.

This module handles:
- Output naming for cropped parent instances
- Building LabelMe documents for cropped images
- Atomic JSON writing (temp file + os.replace)

LabelMe format (fields written):
- version, flags and unknown top-level keys: copied from the source file
- shapes: [{label, points: [[x, y], ...], shape_type, group_id, flags, ...}]
- imagePath: cropped image filename, imageData: null
- imageWidth / imageHeight: crop dimensions
"""

import json
import os
import re
from pathlib import Path
from typing import Any, Iterable, Union

from ..core.constants import (
    SAFE_FILENAME_PATTERN,
    LABELME_REWRITTEN_KEYS,
    LABELME_DEFAULT_VERSION,
)
from ..models import ImageRecord, Shape


def sanitize_label(label: str) -> str:
    """
    Make a label safe for use inside a filename.

    Example:
        sanitize_label("hard hat/blue") -> "hardhatblue"
    """
    return re.sub(SAFE_FILENAME_PATTERN, '', label) or 'label'


def output_stem_for(record: ImageRecord, parent_label: str, instance_index: int) -> str:
    """Return ``{stem}_{parent_label}_{instance_index}`` for a crop."""
    return f"{record.stem}_{sanitize_label(parent_label)}_{instance_index}"


def build_labelme_document(
    record: ImageRecord,
    shapes: Iterable[Shape],
    image_filename: str,
    width: int,
    height: int
) -> dict[str, Any]:
    """
    Build the LabelMe document of a cropped image.

    Args:
        record: Source image record (for preserved metadata)
        shapes: Shapes already remapped into crop space
        image_filename: Filename of the cropped image
        width: Crop width in pixels
        height: Crop height in pixels

    Returns:
        JSON-serialisable LabelMe dictionary
    """
    document = {
        "version": record.metadata.get("version", LABELME_DEFAULT_VERSION),
        "flags": record.metadata.get("flags") or {},
        "shapes": [shape.to_labelme() for shape in shapes],
        "imagePath": image_filename,
        "imageData": None,
        "imageHeight": int(height),
        "imageWidth": int(width),
    }
    for key, value in record.metadata.items():
        if key not in LABELME_REWRITTEN_KEYS and key not in document:
            document[key] = value
    return document


def write_labelme_annotation(annotation_path: Union[str, Path], document: dict[str, Any]) -> Path:
    """
    Write a LabelMe document with an atomic replace.

    The JSON is written to ``<name>.tmp`` first and then moved over the
    target, so an interrupted run never leaves a truncated annotation.

    Returns:
        Path of the written file

    Raises:
        OSError: If the file cannot be written
    """
    annotation_path = Path(annotation_path)
    annotation_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = annotation_path.with_name(annotation_path.name + '.tmp')

    try:
        with open(temp_path, 'w', encoding='utf-8') as f:
            json.dump(document, f, indent=2, ensure_ascii=False)
        os.replace(temp_path, annotation_path)
    except BaseException:
        if temp_path.exists():
            temp_path.unlink()
        raise

    return annotation_path
