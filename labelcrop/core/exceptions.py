"""Exception hierarchy for the crop-and-remap pipeline."""


class CropRemapError(Exception):
    """Base error for the crop-and-remap package."""
    pass


class ConfigurationError(CropRemapError, ValueError):
    """Invalid call parameters or configuration file contents."""
    pass


class DatasetIOError(CropRemapError, OSError):
    """Filesystem or image codec failure."""
    pass


class AnnotationDataError(CropRemapError, ValueError):
    """Malformed or unusable annotation data."""
    pass
