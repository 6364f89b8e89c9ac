"""
Image decoding, encoding and cropping utilities.

This module provides:
- Unicode-safe image reading and writing (Windows compatibility)
- Array cropping by pixel rectangle
- Conversion to 8-bit BGR for drawing previews
"""

import os
from pathlib import Path
from typing import Optional, Sequence, Union

import cv2
import numpy as np

from .core.constants import ValidationMessages
from .core.exceptions import DatasetIOError

PathLike = Union[str, Path]


def unicode_safe_imread(filepath: PathLike, flags: int = cv2.IMREAD_UNCHANGED) -> np.ndarray:
    """
    Unicode-safe version of cv2.imread.

    Reads the bytes with numpy and decodes them with cv2.imdecode, which
    works for non-ASCII paths on every platform. The default flag keeps
    the original channel count and bit depth so crops are lossless.

    Args:
        filepath: Path to the image
        flags: cv2.IMREAD_* flags

    Returns:
        Decoded image array (H x W or H x W x C)

    Raises:
        DatasetIOError: If the file cannot be read or decoded
    """
    try:
        data = np.fromfile(str(filepath), dtype=np.uint8)
    except OSError as e:
        raise DatasetIOError(f"Failed to read image file {filepath}: {e}") from e

    image = cv2.imdecode(data, flags) if data.size else None
    if image is None:
        raise DatasetIOError(ValidationMessages.IMAGE_DECODE_FAILED.format(path=filepath))
    return image


def unicode_safe_imwrite(filepath: PathLike, img: np.ndarray, params: Optional[Sequence[int]] = None) -> tuple[int, int]:
    """
    Unicode-safe version of cv2.imwrite for Windows compatibility.
    Falls back to cv2.imencode + file writing to handle Unicode filenames.

    Args:
        filepath: Path to save image, the extension selects the codec
        img: Image data (numpy array)
        params: Optional cv2.IMWRITE_* parameter list

    Returns:
        (width, height) of the written image

    Raises:
        DatasetIOError: If the image cannot be encoded or written
    """
    filepath = str(filepath)
    params = list(params or [])
    height, width = img.shape[:2]

    try:
        # First try standard cv2.imwrite
        if cv2.imwrite(filepath, img, params):
            return width, height
    except cv2.error:
        # Unicode path or unsupported codec, retried below
        pass

    ext = os.path.splitext(filepath)[1].lower() or '.png'
    try:
        success, encoded_img = cv2.imencode(ext, img, params)
    except cv2.error as e:
        raise DatasetIOError(f"{ValidationMessages.IMAGE_WRITE_FAILED.format(path=filepath)} ({e})") from e
    if not success:
        raise DatasetIOError(ValidationMessages.IMAGE_WRITE_FAILED.format(path=filepath))

    try:
        with open(filepath, 'wb') as f:
            f.write(encoded_img.tobytes())
    except OSError as e:
        raise DatasetIOError(f"{ValidationMessages.IMAGE_WRITE_FAILED.format(path=filepath)} ({e})") from e

    return width, height


def image_size(img: np.ndarray) -> tuple[int, int]:
    """Return (width, height) of an image array."""
    height, width = img.shape[:2]
    return width, height


def crop_image(img: np.ndarray, rect: tuple[int, int, int, int]) -> np.ndarray:
    """
    Cut a pixel rectangle out of an image.

    Args:
        img: Source image
        rect: (x0, y0, x1, y1), exclusive upper bounds

    Returns:
        Contiguous copy of the region
    """
    x0, y0, x1, y1 = rect
    return np.ascontiguousarray(img[y0:y1, x0:x1])


def to_display_bgr(img: np.ndarray) -> np.ndarray:
    """
    Convert any decoded image to 8-bit 3-channel BGR for drawing.

    Handles grayscale, BGRA and 16-bit inputs; always returns a new array.
    """
    if img.dtype != np.uint8:
        max_value = float(img.max()) if img.size else 0.0
        if max_value > 255:
            img = (img.astype(np.float32) / max_value * 255).astype(np.uint8)
        elif max_value <= 1.0 and np.issubdtype(img.dtype, np.floating):
            img = (img * 255).astype(np.uint8)
        else:
            img = img.astype(np.uint8)

    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    if img.shape[2] == 1:
        return cv2.cvtColor(img[:, :, 0], cv2.COLOR_GRAY2BGR)
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
    return img.copy()
