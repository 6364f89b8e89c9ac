"""Pytest configuration and shared fixtures for the crop-and-remap tests.

Datasets are built on the fly in temporary directories: images are numpy
arrays written with OpenCV, annotations are LabelMe JSON documents.
"""
import json
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional

import cv2
import numpy as np
import pytest

# Add the project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def rect(label: str, x0: float, y0: float, x1: float, y1: float, **extra: Any) -> dict:
    """LabelMe rectangle shape dict."""
    shape = {"label": label, "points": [[x0, y0], [x1, y1]], "shape_type": "rectangle"}
    shape.update(extra)
    return shape


def poly(label: str, points: list, **extra: Any) -> dict:
    """LabelMe polygon shape dict."""
    shape = {"label": label, "points": [list(p) for p in points], "shape_type": "polygon"}
    shape.update(extra)
    return shape


def gradient_image(width: int, height: int) -> np.ndarray:
    """BGR image whose pixel (x, y) is (x % 256, y % 256, 128)."""
    xs = np.tile(np.arange(width, dtype=np.uint16) % 256, (height, 1))
    ys = np.tile((np.arange(height, dtype=np.uint16) % 256)[:, None], (1, width))
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:, :, 0] = xs
    image[:, :, 1] = ys
    image[:, :, 2] = 128
    return image


class DatasetBuilder:
    """Writes image/LabelMe pairs into a directory."""

    def __init__(self, root: Path):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    def add(
        self,
        name: str,
        shapes: Optional[list] = None,
        width: int = 800,
        height: int = 600,
        ext: str = "png",
        with_json: bool = True,
        subdir: Optional[str] = None,
        **document_fields: Any
    ) -> Path:
        directory = self.root / subdir if subdir else self.root
        directory.mkdir(parents=True, exist_ok=True)

        image_path = directory / f"{name}.{ext}"
        assert cv2.imwrite(str(image_path), gradient_image(width, height))

        if with_json:
            document = {
                "version": "5.2.1",
                "flags": {},
                "shapes": shapes or [],
                "imagePath": image_path.name,
                "imageData": None,
                "imageHeight": height,
                "imageWidth": width,
            }
            document.update(document_fields)
            self.write_json(directory / f"{name}.json", document)
        return image_path

    def write_json(self, path: Path, document: Any) -> Path:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(document, f)
        return path

    def write_text(self, relative: str, text: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path


def load_json(path: Path) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def source_dir(temp_dir):
    path = temp_dir / "source"
    path.mkdir()
    return path


@pytest.fixture
def output_dir(temp_dir):
    return temp_dir / "output"


@pytest.fixture
def dataset(source_dir):
    """Builder for a synthetic LabelMe dataset in ``source_dir``."""
    return DatasetBuilder(source_dir)


@pytest.fixture
def worker_dataset(dataset):
    """Three images with person/helmet/vest annotations."""
    dataset.add("site_a", [
        rect("person", 100, 100, 300, 500),
        rect("helmet", 150, 90, 250, 160),
    ])
    dataset.add("site_b", [
        rect("person", 10, 10, 110, 210),
        rect("vest", 30, 60, 90, 140),
        rect("person", 500, 100, 600, 400),
        rect("glove", 520, 300, 560, 340),
    ])
    dataset.add("site_c", [
        poly("person", [(400, 50), (600, 50), (600, 550), (400, 550)]),
        poly("helmet", [(450, 30), (550, 30), (550, 90)]),
        rect("car", 10, 400, 200, 590),
    ])
    return dataset
