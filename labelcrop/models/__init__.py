"""
Data models for the crop-and-remap dataset generator.

This package contains dataclasses for LabelMe shapes, source image
records, crop rectangles and batch results.
"""

from .shapes import BoundingBox, Shape, Point, UnsupportedShapeType
from .records import ImageRecord, ParentInstance, CropSpec, CropResult, CropSummary

__all__ = [
    "BoundingBox",
    "Shape",
    "Point",
    "UnsupportedShapeType",
    "ImageRecord",
    "ParentInstance",
    "CropSpec",
    "CropResult",
    "CropSummary",
]
