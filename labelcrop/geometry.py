"""
Crop geometry for parent instances.

This module provides:
- Symmetric padding of a parent bounding box about its center
- Clipping of the padded box to the image bounds
- Conversion to an integer pixel CropSpec

Crops never fail at image edges, they narrow. Zero-width or zero-height
parent boxes are widened to a 1-pixel extent before padding.
"""

import math
from pathlib import Path
from typing import Union

from .core.constants import MIN_CROP_EXTENT, ValidationMessages
from .core.config import validate_padding_factor
from .core.exceptions import AnnotationDataError
from .core.logger import get_logger
from .models import BoundingBox, CropSpec

logger = get_logger(__name__)


def expand_bbox(bbox: BoundingBox, padding_factor: float) -> BoundingBox:
    """
    Scale a bounding box about its center.

    Args:
        bbox: Parent bounding box
        padding_factor: Multiplier for width and height (1.2 = 20% larger)

    Returns:
        Expanded box (may extend past the image, see :func:`clip_to_image`)
    """
    padding_factor = validate_padding_factor(padding_factor)
    center_x, center_y = bbox.center
    width = max(bbox.width, MIN_CROP_EXTENT)
    height = max(bbox.height, MIN_CROP_EXTENT)

    half_width = width * padding_factor / 2.0
    half_height = height * padding_factor / 2.0

    expanded = BoundingBox(
        xmin=center_x - half_width,
        ymin=center_y - half_height,
        xmax=center_x + half_width,
        ymax=center_y + half_height
    )

    if padding_factor >= 1.0:
        # Float rounding must not shave the original box
        expanded = BoundingBox(
            xmin=min(expanded.xmin, bbox.xmin),
            ymin=min(expanded.ymin, bbox.ymin),
            xmax=max(expanded.xmax, bbox.xmax),
            ymax=max(expanded.ymax, bbox.ymax)
        )
    return expanded


def _clip_axis(low: float, high: float, limit: int) -> tuple[int, int]:
    start = min(max(0, math.floor(low)), limit - 1)
    end = max(min(limit, math.ceil(high)), start + 1)
    return start, end


def clip_to_image(bbox: BoundingBox, image_width: int, image_height: int) -> tuple[int, int, int, int]:
    """
    Convert a float box to integer pixels inside the image.

    Low edges are floored and high edges ceiled, then both are clamped to
    the image. A box entirely outside the image collapses to a 1-pixel
    strip on the nearest edge so the result is never empty.

    Returns:
        (x0, y0, x1, y1) with 0 <= x0 < x1 <= width and 0 <= y0 < y1 <= height

    Raises:
        AnnotationDataError: If the image size is not positive
    """
    if image_width <= 0 or image_height <= 0:
        raise AnnotationDataError(
            ValidationMessages.INVALID_IMAGE_SIZE.format(width=image_width, height=image_height)
        )

    x0, x1 = _clip_axis(bbox.xmin, bbox.xmax, image_width)
    y0, y1 = _clip_axis(bbox.ymin, bbox.ymax, image_height)
    return x0, y0, x1, y1


def compute_crop_spec(
    parent_bbox: BoundingBox,
    padding_factor: float,
    image_size: tuple[int, int],
    source_image: Union[str, Path],
    output_stem: str
) -> CropSpec:
    """
    Compute the crop rectangle for one parent instance.

    Args:
        parent_bbox: Bounding box of the parent shape
        padding_factor: Expansion factor (> 0)
        image_size: (width, height) of the decoded source image
        source_image: Path of the source image
        output_stem: Filename stem of the crop outputs

    Returns:
        CropSpec whose ``degenerate`` flag marks a substituted extent
    """
    image_width, image_height = image_size
    degenerate = parent_bbox.is_degenerate
    if degenerate:
        logger.warning(
            f"{output_stem}: parent box {parent_bbox.width:g}x{parent_bbox.height:g} is degenerate, "
            f"using a {MIN_CROP_EXTENT:g}px minimum extent"
        )

    expanded = expand_bbox(parent_bbox, padding_factor)
    rect = clip_to_image(expanded, image_width, image_height)

    if not BoundingBox(*rect).overlaps(expanded):
        logger.warning(
            f"{output_stem}: padded parent box {expanded.to_list()} lies outside the "
            f"{image_width}x{image_height} image, pinned to {rect}"
        )

    logger.debug(
        f"{output_stem}: parent {parent_bbox.to_list()} padded x{padding_factor:.2f} -> crop {rect}"
    )
    return CropSpec(
        source_image=Path(source_image),
        rect=rect,
        output_stem=output_stem,
        degenerate=degenerate
    )
