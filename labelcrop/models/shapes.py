"""
Annotation shape models.

Data classes for LabelMe shapes and their axis-aligned bounding boxes.
Shapes are decoded once from JSON at the dataset boundary and are
immutable afterwards.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from ..core.constants import ShapeType, SHAPE_TYPE_ALIASES
from ..core.exceptions import AnnotationDataError


Point = tuple[float, float]


class UnsupportedShapeType(AnnotationDataError):
    """Raised for LabelMe shape types other than rectangle and polygon."""
    pass


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned bounding box in pixel coordinates.

    Format: corners (xmin, ymin) - (xmax, ymax), always xmin <= xmax and
    ymin <= ymax. Zero width or height is allowed (degenerate box).
    """
    xmin: float
    ymin: float
    xmax: float
    ymax: float

    def __post_init__(self):
        if self.xmin > self.xmax or self.ymin > self.ymax:
            raise ValueError(
                f"Invalid bounding box: ({self.xmin}, {self.ymin}) - ({self.xmax}, {self.ymax})"
            )

    @classmethod
    def from_points(cls, points: Sequence[Point]) -> Optional['BoundingBox']:
        """
        Calculate bounding box from a list of (x, y) points.

        Args:
            points: Sequence of (x, y) pairs

        Returns:
            BoundingBox instance, or None when there are no points
        """
        if not points:
            return None

        x_coords = [p[0] for p in points]
        y_coords = [p[1] for p in points]

        return cls(
            xmin=min(x_coords),
            ymin=min(y_coords),
            xmax=max(x_coords),
            ymax=max(y_coords)
        )

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    @property
    def area(self) -> float:
        """Calculate bounding box area."""
        return self.width * self.height

    @property
    def center(self) -> Point:
        return ((self.xmin + self.xmax) / 2.0, (self.ymin + self.ymax) / 2.0)

    @property
    def is_degenerate(self) -> bool:
        """True when the box has zero width or zero height."""
        return self.width <= 0 or self.height <= 0

    def overlaps(self, other: 'BoundingBox') -> bool:
        """
        Check whether two boxes overlap.

        The boxes overlap unless they are separated on some axis. Touching
        edges do not count, but a zero-width box lying strictly inside
        the other one does.
        """
        return (
            self.xmin < other.xmax and
            self.xmax > other.xmin and
            self.ymin < other.ymax and
            self.ymax > other.ymin
        )

    def contains(self, other: 'BoundingBox') -> bool:
        """Check whether ``other`` lies fully inside this box."""
        return (
            self.xmin <= other.xmin and
            self.ymin <= other.ymin and
            self.xmax >= other.xmax and
            self.ymax >= other.ymax
        )

    def to_list(self) -> list[float]:
        """Convert to [xmin, ymin, xmax, ymax]."""
        return [self.xmin, self.ymin, self.xmax, self.ymax]


def _parse_point(raw: Any) -> Point:
    if not isinstance(raw, (list, tuple)) or len(raw) < 2:
        raise ValueError(f"point must be an [x, y] pair, got {raw!r}")
    x, y = raw[0], raw[1]
    # bool is an int subclass but never a coordinate
    if isinstance(x, bool) or isinstance(y, bool):
        raise ValueError(f"non-numeric point {raw!r}")
    try:
        point = (float(x), float(y))
    except (TypeError, ValueError):
        raise ValueError(f"non-numeric point {raw!r}") from None
    if not (math.isfinite(point[0]) and math.isfinite(point[1])):
        raise ValueError(f"non-finite point {raw!r}")
    return point


@dataclass(frozen=True)
class Shape:
    """
    A single labeled LabelMe shape in pixel coordinates.

    ``extra`` keeps the LabelMe fields this package does not interpret
    (group_id, flags, description, ...) so they are written back unchanged.
    """
    label: str
    shape_type: ShapeType
    points: tuple[Point, ...]
    extra: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def bbox(self) -> Optional[BoundingBox]:
        return BoundingBox.from_points(self.points)

    def with_points(self, points: Sequence[Point]) -> 'Shape':
        """Return a copy of this shape with new points."""
        return Shape(
            label=self.label,
            shape_type=self.shape_type,
            points=tuple((float(x), float(y)) for x, y in points),
            extra=dict(self.extra)
        )

    @classmethod
    def from_labelme(cls, data: Any) -> 'Shape':
        """
        Decode one entry of a LabelMe ``shapes`` list.

        Args:
            data: The raw JSON object

        Returns:
            Shape instance

        Raises:
            UnsupportedShapeType: For shape types the pipeline cannot crop
            AnnotationDataError: For missing or malformed required fields
        """
        if not isinstance(data, dict):
            raise AnnotationDataError("shape must be a JSON object")

        label = data.get('label')
        if not isinstance(label, str):
            raise AnnotationDataError("missing or non-string 'label'")

        raw_type = data.get('shape_type')
        if raw_type is None:
            # LabelMe treats a missing shape_type as a polygon
            shape_type = ShapeType.POLYGON
        else:
            shape_type = SHAPE_TYPE_ALIASES.get(str(raw_type).lower())
            if shape_type is None:
                raise UnsupportedShapeType(f"unsupported shape_type '{raw_type}'")

        raw_points = data.get('points')
        if not isinstance(raw_points, list):
            raise AnnotationDataError("missing or non-list 'points'")
        try:
            points = tuple(_parse_point(p) for p in raw_points)
        except ValueError as e:
            raise AnnotationDataError(str(e)) from None

        extra = {
            key: value for key, value in data.items()
            if key not in ('label', 'shape_type', 'points')
        }

        return cls(label=label, shape_type=shape_type, points=points, extra=extra)

    def to_labelme(self) -> dict[str, Any]:
        """
        Convert to a LabelMe shape dictionary.

        Returns:
            Dictionary with label, points, shape_type and preserved extras
        """
        result = {
            "label": self.label,
            "points": [[x, y] for x, y in self.points],
            "shape_type": self.shape_type.value,
        }
        result.update(self.extra)
        result.setdefault("group_id", None)
        result.setdefault("flags", {})
        return result
