"""
Configuration management with validation.

Loads and validates YAML configuration files, providing type-safe
access to the crop-and-remap parameters. The CLI merges its flags on top
of a loaded configuration with :meth:`CropConfig.override`.
"""

import math
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Iterable, Optional, Union
import yaml

from .constants import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_PREVIEW_DIR,
    DEFAULT_PARENT_LABEL,
    DEFAULT_PADDING_FACTOR,
    DEFAULT_MAX_WORKERS,
    DEFAULT_NUM_PREVIEWS,
    ValidationMessages,
)
from .exceptions import ConfigurationError
from .logger import get_logger

logger = get_logger(__name__)


def parse_label_list(value: Union[str, Iterable[str], None]) -> list[str]:
    """
    Normalize a label list given as a comma-separated string or iterable.

    Example:
        parse_label_list("helmet, vest,") -> ["helmet", "vest"]
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(',')
    else:
        items = value
    labels = []
    for item in items:
        label = str(item).strip()
        if label and label not in labels:
            labels.append(label)
    return labels


def validate_padding_factor(padding_factor: Any) -> float:
    """Return ``padding_factor`` as float or raise ConfigurationError."""
    try:
        value = float(padding_factor)
    except (TypeError, ValueError):
        raise ConfigurationError(
            ValidationMessages.INVALID_PADDING_FACTOR.format(value=padding_factor)
        ) from None
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(
            ValidationMessages.INVALID_PADDING_FACTOR.format(value=padding_factor)
        )
    return value


@dataclass
class OutputConfig:
    """Output policy for cropped annotations."""
    include_parent: bool = True
    retain_only_required: bool = False
    recursive: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'OutputConfig':
        """Create from dictionary."""
        return cls(
            include_parent=bool(data.get('include_parent', True)),
            retain_only_required=bool(data.get('retain_only_required', False)),
            recursive=bool(data.get('recursive', False))
        )


@dataclass
class PerformanceConfig:
    """Performance configuration."""
    max_workers: int = DEFAULT_MAX_WORKERS

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'PerformanceConfig':
        """Create from dictionary."""
        max_workers = data.get('max_workers', DEFAULT_MAX_WORKERS)
        if not isinstance(max_workers, int) or max_workers < 1:
            raise ConfigurationError(ValidationMessages.INVALID_MAX_WORKERS.format(value=max_workers))
        return cls(max_workers=max_workers)


@dataclass
class PreviewConfig:
    """Annotated preview configuration."""
    num_previews: int = DEFAULT_NUM_PREVIEWS
    temp_dir: str = DEFAULT_PREVIEW_DIR
    seed: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'PreviewConfig':
        """Create from dictionary."""
        num_previews = data.get('num_previews', DEFAULT_NUM_PREVIEWS)
        if not isinstance(num_previews, int) or num_previews < 0:
            raise ConfigurationError(ValidationMessages.INVALID_NUM_PREVIEWS.format(value=num_previews))
        return cls(
            num_previews=num_previews,
            temp_dir=data.get('temp_dir', DEFAULT_PREVIEW_DIR),
            seed=data.get('seed')
        )


@dataclass
class CropConfig:
    """Main configuration class."""
    source_dir: str = ""
    output_dir: str = DEFAULT_OUTPUT_DIR
    parent_label: str = DEFAULT_PARENT_LABEL
    required_child_labels: list[str] = field(default_factory=list)
    padding_factor: float = DEFAULT_PADDING_FACTOR

    output: OutputConfig = field(default_factory=OutputConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)
    preview: PreviewConfig = field(default_factory=PreviewConfig)

    def validate(self) -> None:
        """Validate the crop parameters."""
        if not str(self.source_dir).strip():
            raise ConfigurationError(ValidationMessages.EMPTY_PATH.format(name="Source"))
        if not str(self.output_dir).strip():
            raise ConfigurationError(ValidationMessages.EMPTY_PATH.format(name="Output"))
        if not str(self.parent_label).strip():
            raise ConfigurationError(ValidationMessages.EMPTY_PARENT_LABEL)
        self.padding_factor = validate_padding_factor(self.padding_factor)
        if self.performance.max_workers < 1:
            raise ConfigurationError(
                ValidationMessages.INVALID_MAX_WORKERS.format(value=self.performance.max_workers)
            )

        logger.debug("Configuration validated successfully")

    def override(self, **kwargs: Any) -> 'CropConfig':
        """
        Return a copy with the given non-None values replaced.

        Nested keys use their attribute name (``include_parent``,
        ``max_workers``, ``num_previews`` ...).
        """
        top, output, performance, preview = {}, {}, {}, {}
        for key, value in kwargs.items():
            if value is None:
                continue
            if key in OutputConfig.__dataclass_fields__:
                output[key] = value
            elif key in PerformanceConfig.__dataclass_fields__:
                performance[key] = value
            elif key in PreviewConfig.__dataclass_fields__:
                preview[key] = value
            elif key in CropConfig.__dataclass_fields__:
                top[key] = value
            else:
                raise ConfigurationError(f"Unknown configuration key: {key}")

        if 'required_child_labels' in top:
            top['required_child_labels'] = parse_label_list(top['required_child_labels'])

        return replace(
            self,
            output=replace(self.output, **output),
            performance=replace(self.performance, **performance),
            preview=replace(self.preview, **preview),
            **top
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'CropConfig':
        """Create CropConfig from dictionary (not validated)."""
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration root must be a mapping")

        return cls(
            source_dir=str(data.get('source_dir', '') or ''),
            output_dir=str(data.get('output_dir', DEFAULT_OUTPUT_DIR) or ''),
            parent_label=str(data.get('parent_label', DEFAULT_PARENT_LABEL) or ''),
            required_child_labels=parse_label_list(data.get('required_child_labels')),
            padding_factor=data.get('padding_factor', DEFAULT_PADDING_FACTOR),
            output=OutputConfig.from_dict(data.get('output') or {}),
            performance=PerformanceConfig.from_dict(data.get('performance') or {}),
            preview=PreviewConfig.from_dict(data.get('preview') or {})
        )


def load_config(config_path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> CropConfig:
    """
    Load configuration from YAML file.

    Validation is left to the caller because CLI flags may still fill in
    the source and output paths.

    Args:
        config_path: Path to configuration file

    Returns:
        CropConfig object

    Raises:
        ConfigurationError: If the file is missing or not valid YAML
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigurationError(
            ValidationMessages.FILE_NOT_FOUND.format(path=config_path)
        )

    logger.info(f"Loading configuration from: {config_path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    config = CropConfig.from_dict(data)
    logger.info(f"Configuration loaded: parent '{config.parent_label}', "
                f"{len(config.required_child_labels)} required child labels")

    return config
