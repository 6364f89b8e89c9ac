"""
Crop-and-remap dataset generation pipeline.

This is the main processing module that orchestrates the workflow:

1. Scan the source directory for image/LabelMe pairs
2. Match every parent-labeled shape with the shapes overlapping it
3. Compute a padded, image-clipped crop rectangle per accepted instance
4. Crop the bitmap, remap the retained shapes into crop space and write
   the image + LabelMe JSON pair to the output directory

Per-file failures are collected in the summary and never abort the batch.
Only invalid parameters and an unusable source or output root do.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

import cv2
import numpy as np
from tqdm import tqdm

from .core.config import CropConfig, parse_label_list, validate_padding_factor
from .core.constants import (
    ANNOTATION_EXTENSION,
    DEFAULT_PADDING_FACTOR,
    ValidationMessages,
)
from .core.exceptions import AnnotationDataError, ConfigurationError, DatasetIOError
from .core.logger import get_logger
from .geometry import compute_crop_spec
from .image import crop_image, image_size, unicode_safe_imread, unicode_safe_imwrite
from .matcher import match_parents
from .models import CropResult, CropSpec, CropSummary, ImageRecord, ParentInstance
from .remap import remap_shapes
from .scanner import scan_dataset
from .writers.labelme import build_labelme_document, output_stem_for, write_labelme_annotation

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int, str], None]

# Errors that only affect the image or instance being processed
_RECOVERABLE_ERRORS = (DatasetIOError, AnnotationDataError, OSError, cv2.error)


@dataclass(frozen=True)
class _CropRequest:
    """Validated parameters of one crop_and_remap call."""
    output_root: Path
    parent_label: str
    required_child_labels: frozenset
    padding_factor: float
    include_parent: bool
    retain_only_required: bool


# =============================================================================
# Helper Functions
# =============================================================================

def _require_path(value: Union[str, Path, None], name: str) -> Path:
    if value is None or not str(value).strip():
        raise ConfigurationError(ValidationMessages.EMPTY_PATH.format(name=name))
    return Path(value)


def _prepare_output_root(output_dir: Path) -> None:
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DatasetIOError(
            ValidationMessages.CANNOT_CREATE_DIRECTORY.format(path=output_dir, error=e)
        ) from e


def _shapes_for_instance(instance: ParentInstance, include_parent: bool) -> list:
    """Shapes written for an instance, in source order."""
    child_ids = {id(child) for child in instance.associated_children}
    selected = []
    for index, shape in enumerate(instance.record.shapes):
        if index == instance.parent_index:
            if include_parent:
                selected.append(shape)
        elif id(shape) in child_ids:
            selected.append(shape)
    return selected


def _write_instance(
    image: np.ndarray,
    instance: ParentInstance,
    spec: CropSpec,
    output_dir: Path,
    include_parent: bool
) -> CropResult:
    """
    Crop, remap and write one parent instance.

    The image is written first; if the annotation cannot be written the
    image is removed again so the output never holds an unpaired file.
    """
    record = instance.record
    kept, dropped = remap_shapes(_shapes_for_instance(instance, include_parent), spec.rect)

    image_name = f"{spec.output_stem}.{record.extension}"
    image_path = output_dir / image_name
    annotation_path = output_dir / f"{spec.output_stem}{ANNOTATION_EXTENSION}"

    cropped = crop_image(image, spec.rect)
    unicode_safe_imwrite(image_path, cropped)

    document = build_labelme_document(record, kept, image_name, spec.width, spec.height)
    try:
        write_labelme_annotation(annotation_path, document)
    except OSError:
        image_path.unlink(missing_ok=True)
        raise

    logger.debug(f"Saved {image_name} ({spec.width}x{spec.height}, {len(kept)} shapes, {dropped} dropped)")
    return CropResult(
        output_image_path=image_path,
        output_annotation_path=annotation_path,
        remapped_shape_count=len(kept),
        dropped_shape_count=dropped,
        crop_rect=spec.rect
    )


def process_image(record: ImageRecord, request: _CropRequest) -> CropSummary:
    """
    Run matching, cropping and writing for a single source image.

    Args:
        record: Parsed source image
        request: Validated call parameters

    Returns:
        Partial summary covering this image only
    """
    summary = CropSummary(parent_label=request.parent_label)
    display_name = (record.relative_dir / record.name).as_posix()

    match = match_parents(
        record,
        request.parent_label,
        request.required_child_labels,
        retain_only_required=request.retain_only_required
    )
    summary.instances_found = match.found
    summary.instances_rejected = len(match.rejected)
    summary.warnings.extend(match.warnings)
    if match.found:
        summary.images_with_parents = 1

    if not match.accepted:
        return summary

    try:
        image = unicode_safe_imread(record.image_path)
    except _RECOVERABLE_ERRORS as e:
        logger.warning(f"Skipping {display_name}: {e}")
        summary.errors.append(f"{display_name}: {e}")
        return summary

    width, height = image_size(image)
    width_differs = record.width is not None and record.width != width
    height_differs = record.height is not None and record.height != height
    if width_differs or height_differs:
        message = (f"{display_name}: annotation says {record.width}x{record.height}, "
                   f"image is {width}x{height}; using the image size")
        logger.warning(message)
        summary.warnings.append(message)

    output_dir = request.output_root / record.relative_dir
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        summary.errors.append(
            f"{display_name}: {ValidationMessages.CANNOT_CREATE_DIRECTORY.format(path=output_dir, error=e)}"
        )
        return summary

    for instance in match.accepted:
        stem = output_stem_for(record, request.parent_label, instance.instance_index)
        try:
            spec = compute_crop_spec(
                instance.parent_bbox,
                request.padding_factor,
                (width, height),
                record.image_path,
                stem
            )
            if spec.degenerate:
                summary.warnings.append(
                    f"{display_name}: '{request.parent_label}' #{instance.instance_index} has a "
                    f"degenerate bounding box, cropped with a minimum extent"
                )
            result = _write_instance(image, instance, spec, output_dir, request.include_parent)
        except _RECOVERABLE_ERRORS as e:
            logger.warning(f"Failed {stem}: {e}")
            summary.errors.append(f"{display_name} [{request.parent_label} #{instance.instance_index}]: {e}")
            continue

        summary.instances_processed += 1
        summary.files_written += 2
        summary.shapes_remapped += result.remapped_shape_count
        summary.shapes_dropped += result.dropped_shape_count
        summary.results.append(result)

    return summary


# =============================================================================
# Entry Points
# =============================================================================

def crop_and_remap(
    source_dir: Union[str, Path],
    output_dir: Union[str, Path],
    parent_label: str,
    required_child_labels: Optional[Iterable[str]] = None,
    padding_factor: float = DEFAULT_PADDING_FACTOR,
    *,
    include_parent: bool = True,
    retain_only_required: bool = False,
    recursive: bool = False,
    max_workers: int = 1,
    progress_callback: Optional[ProgressCallback] = None,
    show_progress: bool = True
) -> CropSummary:
    """
    Crop every accepted parent instance of a dataset and remap its shapes.

    Args:
        source_dir: Directory with images and same-stem LabelMe JSON files
        output_dir: Directory for the cropped image/JSON pairs (created)
        parent_label: Label of the crop anchor shapes (e.g. "person")
        required_child_labels: Child labels of which at least one must
            overlap a parent for it to be cropped; empty accepts all
        padding_factor: Expansion of the parent box (1.2 = 20% larger)
        include_parent: Also write the remapped parent shape
        retain_only_required: Keep only required-label children
        recursive: Scan subdirectories and mirror them in the output
        max_workers: Number of images processed concurrently
        progress_callback: Called as (current, total, message) per image
        show_progress: Display a tqdm progress bar

    Returns:
        CropSummary with counts, per-file errors and written results.
        A dataset without any parent instance yields an all-zero summary.

    Raises:
        ConfigurationError: For empty paths, empty parent label, a
            non-positive padding factor or max_workers < 1
        DatasetIOError: If the source cannot be read or the output
            directory cannot be created
    """
    source_root = _require_path(source_dir, "Source")
    output_root = _require_path(output_dir, "Output")
    if not parent_label or not str(parent_label).strip():
        raise ConfigurationError(ValidationMessages.EMPTY_PARENT_LABEL)
    padding_factor = validate_padding_factor(padding_factor)
    if not isinstance(max_workers, int) or max_workers < 1:
        raise ConfigurationError(ValidationMessages.INVALID_MAX_WORKERS.format(value=max_workers))

    request = _CropRequest(
        output_root=output_root,
        parent_label=str(parent_label),
        required_child_labels=frozenset(parse_label_list(required_child_labels)),
        padding_factor=padding_factor,
        include_parent=include_parent,
        retain_only_required=retain_only_required
    )

    logger.info(
        f"Crop and remap: source={source_root}, output={output_root}, parent='{request.parent_label}', "
        f"required children={sorted(request.required_child_labels)}, padding={padding_factor:.2f}"
    )

    scan = scan_dataset(source_root, recursive=recursive)
    _prepare_output_root(output_root)

    summary = CropSummary(
        parent_label=request.parent_label,
        images_scanned=scan.images_found,
        skipped=list(scan.skipped),
        errors=list(scan.errors)
    )

    total = len(scan.records)
    if progress_callback:
        progress_callback(0, total, "Starting crop process...")

    def _report(current: int, record: ImageRecord, partial: CropSummary) -> None:
        if progress_callback:
            progress_callback(
                current, total,
                f"Processed {record.name}: {partial.instances_processed} instances"
            )

    pbar = tqdm(total=total, desc="Images", unit="image", disable=not show_progress)
    try:
        if max_workers == 1:
            for current, record in enumerate(scan.records, start=1):
                pbar.set_description(f"Image: {record.name[:30]}")
                partial = process_image(record, request)
                summary.merge(partial)
                pbar.update(1)
                _report(current, record, partial)
        else:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures = [executor.submit(process_image, record, request) for record in scan.records]
                # Merge in scan order so the summary is deterministic
                for current, (record, future) in enumerate(zip(scan.records, futures), start=1):
                    partial = future.result()
                    summary.merge(partial)
                    pbar.update(1)
                    _report(current, record, partial)
    finally:
        pbar.close()

    if summary.errors:
        logger.warning(summary.message)
    else:
        logger.info(summary.message)
    return summary


def crop_and_remap_from_config(
    config: CropConfig,
    progress_callback: Optional[ProgressCallback] = None,
    show_progress: bool = True
) -> CropSummary:
    """Run :func:`crop_and_remap` with the values of a validated config."""
    config.validate()
    return crop_and_remap(
        config.source_dir,
        config.output_dir,
        config.parent_label,
        config.required_child_labels,
        config.padding_factor,
        include_parent=config.output.include_parent,
        retain_only_required=config.output.retain_only_required,
        recursive=config.output.recursive,
        max_workers=config.performance.max_workers,
        progress_callback=progress_callback,
        show_progress=show_progress
    )
