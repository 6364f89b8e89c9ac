"""
Dataset scanning utilities.

This module provides:
- Image file discovery (flat or recursive, sorted for determinism)
- Same-stem LabelMe JSON pairing
- LabelMe annotation parsing into typed Shape records

Images without an annotation file are reported as skipped; malformed
annotation files are reported as per-file errors. Neither stops the scan.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from .core.constants import SUPPORTED_IMAGE_FORMATS, ANNOTATION_EXTENSION, ValidationMessages
from .core.exceptions import AnnotationDataError, DatasetIOError
from .core.logger import get_logger
from .models import ImageRecord, Shape, UnsupportedShapeType

logger = get_logger(__name__)


@dataclass
class ScanResult:
    """Records found by :func:`scan_dataset` plus what was left out."""
    records: list[ImageRecord] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def images_found(self) -> int:
        return len(self.records) + len(self.skipped) + len(self.errors)


def is_image_file(path: Path) -> bool:
    return path.suffix.lower() in SUPPORTED_IMAGE_FORMATS


def annotation_path_for(image_path: Path) -> Path:
    """Return the LabelMe JSON path that belongs to ``image_path``."""
    return image_path.with_suffix(ANNOTATION_EXTENSION)


def find_image_files(source_dir: Union[str, Path], recursive: bool = False) -> list[Path]:
    """
    Find all supported image files in a directory.

    Args:
        source_dir: Directory to search
        recursive: Also descend into subdirectories

    Returns:
        Image paths sorted by their path relative to ``source_dir``

    Raises:
        DatasetIOError: If the directory does not exist or cannot be listed
    """
    root = Path(source_dir)
    if not root.exists():
        raise DatasetIOError(ValidationMessages.DIRECTORY_NOT_FOUND.format(path=root))
    if not root.is_dir():
        raise DatasetIOError(ValidationMessages.NOT_A_DIRECTORY.format(path=root))

    images = []
    try:
        if recursive:
            for dirpath, dirnames, filenames in os.walk(root):
                dirnames.sort()
                for filename in filenames:
                    path = Path(dirpath) / filename
                    if is_image_file(path):
                        images.append(path)
        else:
            with os.scandir(root) as entries:
                for entry in entries:
                    if entry.is_file() and is_image_file(Path(entry.name)):
                        images.append(root / entry.name)
    except OSError as e:
        raise DatasetIOError(
            ValidationMessages.CANNOT_READ_DIRECTORY.format(path=root, error=e)
        ) from e

    return sorted(images, key=lambda p: p.relative_to(root).as_posix())


def _parse_dimension(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = int(value)
    return value if value > 0 else None


def parse_annotation_file(annotation_path: Path) -> tuple[list[Shape], dict[str, Any], int]:
    """
    Parse a LabelMe JSON file.

    Args:
        annotation_path: Path to the JSON file

    Returns:
        Tuple of (shapes, top-level metadata, unsupported shape count).
        The metadata excludes ``shapes`` and keeps everything else,
        including imageWidth/imageHeight.

    Raises:
        AnnotationDataError: If the file is not a usable LabelMe document
        OSError: If the file cannot be read
    """
    with open(annotation_path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise AnnotationDataError(ValidationMessages.INVALID_JSON.format(error=e)) from e

    if not isinstance(data, dict):
        raise AnnotationDataError(ValidationMessages.INVALID_ROOT)

    raw_shapes = data.get('shapes', [])
    if raw_shapes is None:
        raw_shapes = []
    if not isinstance(raw_shapes, list):
        raise AnnotationDataError(ValidationMessages.INVALID_SHAPES)

    shapes = []
    unsupported = 0
    for index, raw_shape in enumerate(raw_shapes):
        try:
            shapes.append(Shape.from_labelme(raw_shape))
        except UnsupportedShapeType as e:
            unsupported += 1
            logger.warning(f"{annotation_path.name}: shape {index} ignored, {e}")
        except AnnotationDataError as e:
            raise AnnotationDataError(
                ValidationMessages.INVALID_SHAPE.format(index=index, reason=e)
            ) from e

    metadata = {key: value for key, value in data.items() if key != 'shapes'}
    return shapes, metadata, unsupported


def load_image_record(image_path: Path, root: Optional[Path] = None) -> ImageRecord:
    """
    Build an ImageRecord for one image from its sibling annotation file.

    Raises:
        AnnotationDataError: If the annotation is malformed
        OSError: If the annotation cannot be read
    """
    annotation_path = annotation_path_for(image_path)
    shapes, metadata, unsupported = parse_annotation_file(annotation_path)

    relative_dir = Path()
    if root is not None:
        relative_dir = image_path.parent.relative_to(root)

    return ImageRecord(
        image_path=image_path,
        annotation_path=annotation_path,
        width=_parse_dimension(metadata.get('imageWidth')),
        height=_parse_dimension(metadata.get('imageHeight')),
        shapes=shapes,
        metadata=metadata,
        unsupported_shapes=unsupported,
        relative_dir=relative_dir
    )


def _image_named_by(metadata: dict[str, Any], candidates: list[Path]) -> Optional[Path]:
    """Return the candidate whose filename matches the annotation's ``imagePath``."""
    image_path = metadata.get('imagePath')
    if not isinstance(image_path, str) or not image_path.strip():
        return None
    # LabelMe written on Windows stores backslash separators
    name = Path(image_path.replace('\\', '/')).name
    for candidate in candidates:
        if candidate.name == name:
            return candidate
    return None


def scan_dataset(source_dir: Union[str, Path], recursive: bool = False) -> ScanResult:
    """
    Read every image/annotation pair in a dataset directory.

    Several images with the same stem (``a.jpg``, ``a.png``) share one
    ``a.json``. The annotation is then paired with the image its
    ``imagePath`` names and the other images are skipped; if it names none
    of them, every claimant is reported as an error.

    Args:
        source_dir: Dataset directory
        recursive: Also scan subdirectories

    Returns:
        ScanResult with records sorted by relative path

    Raises:
        DatasetIOError: Only if ``source_dir`` itself cannot be opened
    """
    root = Path(source_dir)
    result = ScanResult()

    image_files = find_image_files(root, recursive=recursive)
    claimants: dict[Path, list[Path]] = {}
    for image_path in image_files:
        claimants.setdefault(annotation_path_for(image_path), []).append(image_path)

    def display(path: Path) -> str:
        return path.relative_to(root).as_posix()

    for image_path in image_files:
        display_name = display(image_path)
        annotation_path = annotation_path_for(image_path)

        if not annotation_path.is_file():
            logger.debug(f"No annotation for {display_name}, skipping")
            result.skipped.append(display_name)
            continue

        candidates = claimants[annotation_path]
        if image_path != candidates[0]:
            # Resolved together with the first claimant
            continue

        try:
            record = load_image_record(image_path, root)
        except (AnnotationDataError, OSError, UnicodeDecodeError) as e:
            logger.warning(f"Excluding {display_name}: {e}")
            result.errors.extend(f"{display(path)}: {e}" for path in candidates)
            continue

        if len(candidates) > 1:
            chosen = _image_named_by(record.metadata, candidates)
            if chosen is None:
                names = ", ".join(path.name for path in candidates)
                reason = (f"{annotation_path.name} is shared by {names} and its imagePath "
                          f"names none of them")
                logger.warning(f"Excluding {display_name}: {reason}")
                result.errors.extend(f"{display(path)}: {reason}" for path in candidates)
                continue

            record.image_path = chosen
            for other in candidates:
                if other != chosen:
                    logger.warning(f"{display(other)}: {annotation_path.name} belongs to {chosen.name}, skipping")
                    result.skipped.append(display(other))

        result.records.append(record)

    logger.info(f"Scanned {root}: {len(result.records)} annotated images, "
                f"{len(result.skipped)} without annotations, {len(result.errors)} errors")
    return result
