"""
Coordinate remapping from source-image space into crop space.

Every point is translated by the crop origin and each coordinate is then
clamped independently to the crop extent. Rectangles and polygons are
treated the same way. For polygons that cross the crop border this is an
approximation: vertices outside the crop slide onto the border instead of
the polygon being re-clipped edge by edge. A proper polygon clipper can
replace :func:`remap_shape` without changing its contract.
"""

from typing import Iterable, Optional

from .models import BoundingBox, Shape


Rect = tuple[int, int, int, int]


def _clamp(value: float, upper: float) -> float:
    return max(0.0, min(float(upper), value))


def remap_point(x: float, y: float, rect: Rect) -> tuple[float, float]:
    """Translate one point into crop space and clamp it to the crop."""
    x0, y0, x1, y1 = rect
    return _clamp(x - x0, x1 - x0), _clamp(y - y0, y1 - y0)


def remap_shape(shape: Shape, rect: Rect) -> Optional[Shape]:
    """
    Remap a shape into the crop defined by ``rect``.

    Args:
        shape: Shape in source-image coordinates
        rect: Crop rectangle (x0, y0, x1, y1) in source pixels

    Returns:
        New Shape with the same label and type, or None when nothing of
        the shape is left inside the crop (zero-area bounding box)
    """
    points = [remap_point(x, y, rect) for x, y in shape.points]
    bbox = BoundingBox.from_points(points)
    if bbox is None or bbox.area <= 0:
        return None
    return shape.with_points(points)


def remap_shapes(shapes: Iterable[Shape], rect: Rect) -> tuple[list[Shape], int]:
    """
    Remap several shapes, dropping those clipped away entirely.

    Returns:
        Tuple of (remapped shapes in input order, number dropped)
    """
    kept = []
    dropped = 0
    for shape in shapes:
        remapped = remap_shape(shape, rect)
        if remapped is None:
            dropped += 1
        else:
            kept.append(remapped)
    return kept, dropped
