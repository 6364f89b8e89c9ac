"""
Annotated preview rendering.

This module provides:
- Per-shape outline colors from a golden-ratio hue rotation
- Drawing LabelMe rectangles and polygons with their labels onto an image
- Random preview sampling over a dataset directory

Previews are drawn on copies of the source images and written to a
separate directory; the dataset itself is never modified.
"""

import random
import time
from pathlib import Path
from typing import Any, Optional, Union

import cv2
import numpy as np
from matplotlib.colors import hsv_to_rgb

from .core.constants import (
    PREVIEW_EXTENSION,
    PREVIEW_FONT_SCALE,
    PREVIEW_HUE_STEP,
    PREVIEW_JPEG_QUALITY,
    PREVIEW_LINE_THICKNESS,
    PREVIEW_SATURATION,
    PREVIEW_TEXT_OFFSET,
    PREVIEW_VALUE,
    ShapeType,
    ValidationMessages,
)
from .core.exceptions import ConfigurationError, DatasetIOError
from .core.logger import get_logger
from .image import to_display_bgr, unicode_safe_imread, unicode_safe_imwrite
from .models import Shape
from .scanner import scan_dataset

logger = get_logger(__name__)


def shape_color(index: int) -> tuple[int, int, int]:
    """
    Outline color of the ``index``-th shape of an image, as BGR ints.

    Consecutive indices are spread around the hue circle so neighbouring
    shapes stay distinguishable.
    """
    hue = (index * PREVIEW_HUE_STEP) % 1.0
    r, g, b = hsv_to_rgb((hue, PREVIEW_SATURATION, PREVIEW_VALUE))
    return int(round(b * 255)), int(round(g * 255)), int(round(r * 255))


def draw_shape(image: np.ndarray, shape: Shape, color: tuple[int, int, int]) -> None:
    """Draw one shape outline and its label onto ``image`` in place."""
    bbox = shape.bbox
    if bbox is None:
        return

    if shape.shape_type == ShapeType.RECTANGLE:
        cv2.rectangle(
            image,
            (int(round(bbox.xmin)), int(round(bbox.ymin))),
            (int(round(bbox.xmax)), int(round(bbox.ymax))),
            color,
            PREVIEW_LINE_THICKNESS
        )
    else:
        pts = np.round(np.array(shape.points, dtype=np.float64)).astype(np.int32).reshape(-1, 1, 2)
        cv2.polylines(image, [pts], True, color, PREVIEW_LINE_THICKNESS)

    # Keep the label inside the image for shapes touching the top edge
    text_y = max(int(round(bbox.ymin)) - PREVIEW_TEXT_OFFSET, 12)
    cv2.putText(
        image,
        shape.label,
        (int(round(bbox.xmin)), text_y),
        cv2.FONT_HERSHEY_SIMPLEX,
        PREVIEW_FONT_SCALE,
        color,
        PREVIEW_LINE_THICKNESS
    )


def render_annotations(image: np.ndarray, shapes: list[Shape]) -> np.ndarray:
    """
    Return an 8-bit BGR copy of ``image`` with every shape drawn on it.

    Args:
        image: Decoded source image (any depth or channel count)
        shapes: Shapes in the image's pixel space

    Returns:
        New annotated image; the input array is left untouched
    """
    canvas = to_display_bgr(image)
    for index, shape in enumerate(shapes):
        draw_shape(canvas, shape, shape_color(index))
    return canvas


def generate_annotated_previews(
    source_dir: Union[str, Path],
    num_previews: int,
    temp_dir: Union[str, Path],
    seed: Optional[int] = None
) -> dict[str, Any]:
    """
    Render annotations onto a random sample of dataset images.

    Args:
        source_dir: Dataset directory with images and LabelMe JSON files
        num_previews: Maximum number of previews; all annotated images are
            used when fewer exist
        temp_dir: Directory for the preview JPEGs (created)
        seed: Optional seed for a reproducible sample

    Returns:
        Dictionary with ``preview_count``, ``total_annotated`` and
        ``previews``, a list of ``{id, path, source_path, annotations}``
        entries where ``annotations`` are LabelMe shape dicts

    Raises:
        ConfigurationError: For a negative count or empty paths
        DatasetIOError: If the source cannot be read or ``temp_dir``
            cannot be created
    """
    if source_dir is None or not str(source_dir).strip():
        raise ConfigurationError(ValidationMessages.EMPTY_PATH.format(name="Source"))
    if temp_dir is None or not str(temp_dir).strip():
        raise ConfigurationError(ValidationMessages.EMPTY_PATH.format(name="Preview"))
    if isinstance(num_previews, bool) or not isinstance(num_previews, int) or num_previews < 0:
        raise ConfigurationError(ValidationMessages.INVALID_NUM_PREVIEWS.format(value=num_previews))

    scan = scan_dataset(source_dir)
    annotated = [record for record in scan.records if record.shapes]

    output_dir = Path(temp_dir)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DatasetIOError(
            ValidationMessages.CANNOT_CREATE_DIRECTORY.format(path=output_dir, error=e)
        ) from e

    sample_size = min(num_previews, len(annotated))
    sample = random.Random(seed).sample(annotated, sample_size)
    timestamp = int(time.time() * 1000)

    previews = []
    for record in sample:
        try:
            image = unicode_safe_imread(record.image_path)
        except DatasetIOError as e:
            logger.warning(f"Preview skipped: {e}")
            continue

        preview_id = f"preview_{timestamp}_{len(previews)}"
        preview_path = output_dir / f"{preview_id}{PREVIEW_EXTENSION}"
        canvas = render_annotations(image, record.shapes)
        try:
            unicode_safe_imwrite(preview_path, canvas, [cv2.IMWRITE_JPEG_QUALITY, PREVIEW_JPEG_QUALITY])
        except DatasetIOError as e:
            logger.warning(f"Preview skipped: {e}")
            continue

        previews.append({
            "id": preview_id,
            "path": str(preview_path),
            "source_path": str(record.image_path),
            "annotations": [shape.to_labelme() for shape in record.shapes],
        })

    logger.info(f"Generated {len(previews)} previews from {len(annotated)} annotated images in {output_dir}")
    return {
        "preview_count": len(previews),
        "total_annotated": len(annotated),
        "previews": previews,
    }
