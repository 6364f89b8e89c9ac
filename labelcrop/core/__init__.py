"""
Core utilities for the crop-and-remap dataset generator.

This package contains fundamental components like constants, configuration,
exceptions and logging that are used throughout the application.
"""

from .constants import (
    ShapeType,
    SUPPORTED_IMAGE_FORMATS,
    DEFAULT_CONFIG_PATH,
    DEFAULT_PADDING_FACTOR,
    DEFAULT_PARENT_LABEL,
)
from .exceptions import (
    CropRemapError,
    ConfigurationError,
    DatasetIOError,
    AnnotationDataError,
)
from .config import CropConfig, load_config, parse_label_list, validate_padding_factor
from .logger import setup_logger, get_logger, LoggerMixin

__all__ = [
    # Enums
    "ShapeType",
    # Constants
    "SUPPORTED_IMAGE_FORMATS",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_PADDING_FACTOR",
    "DEFAULT_PARENT_LABEL",
    # Exceptions
    "CropRemapError",
    "ConfigurationError",
    "DatasetIOError",
    "AnnotationDataError",
    # Config
    "CropConfig",
    "load_config",
    "parse_label_list",
    "validate_padding_factor",
    # Logging
    "setup_logger",
    "get_logger",
    "LoggerMixin",
]
