"""
Annotation writers.

This package contains format-specific annotation writers:
    labelme.py - LabelMe JSON output for cropped images
"""

from .labelme import (
    sanitize_label,
    output_stem_for,
    build_labelme_document,
    write_labelme_annotation,
)

__all__ = [
    'sanitize_label',
    'output_stem_for',
    'build_labelme_document',
    'write_labelme_annotation',
]
