"""
Dataset and crop result models.

Data classes describing one annotated source image, the parent instances
found in it, the crop rectangle computed for each instance and the outcome
of a whole crop-and-remap batch.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .shapes import BoundingBox, Shape


@dataclass
class ImageRecord:
    """
    One source image paired with its parsed LabelMe annotation.

    ``width``/``height`` come from ``imageWidth``/``imageHeight`` and may be
    None. ``metadata`` holds every other top-level LabelMe key (version,
    flags, unknown fields) so the writer can carry them over.
    """
    image_path: Path
    annotation_path: Path
    width: Optional[int]
    height: Optional[int]
    shapes: list[Shape] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    unsupported_shapes: int = 0
    relative_dir: Path = Path()

    @property
    def stem(self) -> str:
        return self.image_path.stem

    @property
    def extension(self) -> str:
        """Image extension without the leading dot."""
        return self.image_path.suffix.lstrip('.')

    @property
    def name(self) -> str:
        return self.image_path.name

    def labels(self) -> set[str]:
        """Return every label used in this image."""
        return {shape.label for shape in self.shapes}


@dataclass
class ParentInstance:
    """
    A parent-labeled shape together with the shapes that overlap it.

    ``instance_index`` is the ordinal among the parent shapes of the image
    and disambiguates the output filenames; ``parent_index`` is the
    position of the parent in ``record.shapes``.
    """
    record: ImageRecord
    parent: Shape
    parent_index: int
    instance_index: int
    parent_bbox: BoundingBox
    associated_children: list[Shape] = field(default_factory=list)

    def child_labels(self) -> set[str]:
        return {child.label for child in self.associated_children}


@dataclass(frozen=True)
class CropSpec:
    """
    Integer pixel crop rectangle for one parent instance.

    Always satisfies 0 <= x0 < x1 <= image width and
    0 <= y0 < y1 <= image height.
    """
    source_image: Path
    rect: tuple[int, int, int, int]
    output_stem: str
    degenerate: bool = False

    @property
    def width(self) -> int:
        return self.rect[2] - self.rect[0]

    @property
    def height(self) -> int:
        return self.rect[3] - self.rect[1]


@dataclass
class CropResult:
    """Files written for one parent instance."""
    output_image_path: Path
    output_annotation_path: Path
    remapped_shape_count: int
    dropped_shape_count: int = 0
    crop_rect: tuple[int, int, int, int] = (0, 0, 0, 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "output_image_path": str(self.output_image_path),
            "output_annotation_path": str(self.output_annotation_path),
            "remapped_shape_count": self.remapped_shape_count,
            "dropped_shape_count": self.dropped_shape_count,
            "crop_rect": list(self.crop_rect),
        }


@dataclass
class CropSummary:
    """
    Aggregate outcome of a crop-and-remap batch.

    ``skipped`` lists images without an annotation of their own, ``errors``
    lists per-file failures as "<file>: <reason>" strings.
    """
    parent_label: str = ""
    images_scanned: int = 0
    images_with_parents: int = 0
    instances_found: int = 0
    instances_processed: int = 0
    instances_rejected: int = 0
    files_written: int = 0
    shapes_remapped: int = 0
    shapes_dropped: int = 0
    skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    results: list[CropResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True when no per-file error was recorded."""
        return not self.errors

    @property
    def message(self) -> str:
        """Human readable summary of the batch."""
        lines = [
            f"Processing complete. Scanned {self.images_scanned} images, "
            f"found {self.instances_found} '{self.parent_label}' instances in "
            f"{self.images_with_parents} images; processed {self.instances_processed}, "
            f"rejected {self.instances_rejected}, wrote {self.files_written} files."
        ]
        if self.skipped:
            lines.append(f"Skipped {len(self.skipped)} images without an annotation of their own.")
        if self.errors:
            lines.append(f"Encountered errors in {len(self.errors)} files:")
            lines.extend(f" - {error}" for error in self.errors)
        return "\n".join(lines)

    def merge(self, other: 'CropSummary') -> None:
        """Fold the counters and lists of ``other`` into this summary."""
        self.images_scanned += other.images_scanned
        self.images_with_parents += other.images_with_parents
        self.instances_found += other.instances_found
        self.instances_processed += other.instances_processed
        self.instances_rejected += other.instances_rejected
        self.files_written += other.files_written
        self.shapes_remapped += other.shapes_remapped
        self.shapes_dropped += other.shapes_dropped
        self.skipped.extend(other.skipped)
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.results.extend(other.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "parent_label": self.parent_label,
            "images_scanned": self.images_scanned,
            "images_with_parents": self.images_with_parents,
            "instances_found": self.instances_found,
            "instances_processed": self.instances_processed,
            "instances_rejected": self.instances_rejected,
            "files_written": self.files_written,
            "shapes_remapped": self.shapes_remapped,
            "shapes_dropped": self.shapes_dropped,
            "skipped": list(self.skipped),
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "results": [result.to_dict() for result in self.results],
            "message": self.message,
        }
