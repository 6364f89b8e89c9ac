"""
Parent-child annotation matching.

A shape is a child of a parent instance when its bounding box overlaps
the parent's bounding box (any intersection, not full containment, since
equipment such as helmets often sticks out of a body box). An instance is
accepted when no child labels are required, or when at least one of its
children carries one of the required labels.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from .core.logger import get_logger
from .models import ImageRecord, ParentInstance

logger = get_logger(__name__)


@dataclass
class MatchResult:
    """Parent instances of one image, split by the acceptance filter."""
    accepted: list[ParentInstance] = field(default_factory=list)
    rejected: list[ParentInstance] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def found(self) -> int:
        return len(self.accepted) + len(self.rejected)


def is_accepted(instance: ParentInstance, required_child_labels: Iterable[str]) -> bool:
    """
    Apply the OR filter to a parent instance.

    Args:
        instance: Parent instance with its associated children
        required_child_labels: Labels of which at least one must be present;
            an empty collection accepts every instance

    Returns:
        True if the instance should be cropped
    """
    required = set(required_child_labels)
    if not required:
        return True
    return not required.isdisjoint(instance.child_labels())


def match_parents(
    record: ImageRecord,
    parent_label: str,
    required_child_labels: Optional[Iterable[str]] = None,
    retain_only_required: bool = False
) -> MatchResult:
    """
    Find the parent instances of an image and their overlapping children.

    Args:
        record: Parsed source image
        parent_label: Label of the crop anchor shapes
        required_child_labels: OR filter gating instance acceptance
        retain_only_required: If True, accepted instances keep only the
            children whose label is required (default keeps every
            overlapping child)

    Returns:
        MatchResult with accepted and rejected instances in shape order
    """
    required = set(required_child_labels or ())
    result = MatchResult()

    others = [shape for shape in record.shapes if shape.label != parent_label]
    other_boxes = [(shape, shape.bbox) for shape in others]

    instance_index = 0
    for parent_index, parent in enumerate(record.shapes):
        if parent.label != parent_label:
            continue

        parent_bbox = parent.bbox
        if parent_bbox is None:
            message = f"{record.name}: '{parent_label}' shape {parent_index} has no points, skipped"
            logger.warning(message)
            result.warnings.append(message)
            continue

        children = [
            shape for shape, bbox in other_boxes
            if bbox is not None and bbox.overlaps(parent_bbox)
        ]

        instance = ParentInstance(
            record=record,
            parent=parent,
            parent_index=parent_index,
            instance_index=instance_index,
            parent_bbox=parent_bbox,
            associated_children=children
        )
        instance_index += 1

        if is_accepted(instance, required):
            if retain_only_required and required:
                instance.associated_children = [
                    child for child in children if child.label in required
                ]
            result.accepted.append(instance)
        else:
            logger.debug(
                f"{record.name}: '{parent_label}' #{instance.instance_index} has no child "
                f"from {sorted(required)}, rejected"
            )
            result.rejected.append(instance)

    return result
