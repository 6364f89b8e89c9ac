"""Tests for the Shape, BoundingBox and summary models."""
import pytest

from labelcrop.core import AnnotationDataError, ShapeType
from labelcrop.models import BoundingBox, CropSummary, Shape, UnsupportedShapeType

from conftest import rect, poly


class TestBoundingBox:
    def test_from_points(self):
        bbox = BoundingBox.from_points([(30, 40), (10, 80), (20, 5)])
        assert bbox == BoundingBox(10, 5, 30, 80)
        assert bbox.width == 20
        assert bbox.height == 75
        assert bbox.area == 1500
        assert bbox.center == (20.0, 42.5)

    def test_from_no_points(self):
        assert BoundingBox.from_points([]) is None

    def test_inverted_box_rejected(self):
        with pytest.raises(ValueError):
            BoundingBox(10, 0, 5, 10)

    def test_degenerate(self):
        assert BoundingBox(5, 5, 5, 20).is_degenerate
        assert not BoundingBox(0, 0, 1, 1).is_degenerate

    def test_partial_overlap(self):
        body = BoundingBox(100, 100, 300, 500)
        helmet_sticking_out = BoundingBox(150, 80, 250, 120)
        assert body.overlaps(helmet_sticking_out)
        assert helmet_sticking_out.overlaps(body)
        assert not body.contains(helmet_sticking_out)

    def test_touching_edges_do_not_overlap(self):
        assert not BoundingBox(0, 0, 10, 10).overlaps(BoundingBox(10, 0, 20, 10))

    def test_degenerate_box_inside_overlaps(self):
        assert BoundingBox(0, 0, 10, 10).overlaps(BoundingBox(5, 2, 5, 8))

    def test_disjoint(self):
        assert not BoundingBox(0, 0, 10, 10).overlaps(BoundingBox(20, 20, 30, 30))

    def test_contains(self):
        assert BoundingBox(0, 0, 10, 10).contains(BoundingBox(2, 2, 8, 8))
        assert BoundingBox(0, 0, 10, 10).contains(BoundingBox(0, 0, 10, 10))


class TestShape:
    def test_rectangle_from_labelme(self):
        shape = Shape.from_labelme(rect("helmet", 1, 2, 3, 4, group_id=7, description="blue"))
        assert shape.label == "helmet"
        assert shape.shape_type == ShapeType.RECTANGLE
        assert shape.points == ((1.0, 2.0), (3.0, 4.0))
        assert shape.extra == {"group_id": 7, "description": "blue"}

    def test_bounding_box_alias(self):
        shape = Shape.from_labelme({"label": "a", "points": [[0, 0], [1, 1]], "shape_type": "bounding_box"})
        assert shape.shape_type == ShapeType.RECTANGLE

    def test_missing_shape_type_is_polygon(self):
        shape = Shape.from_labelme({"label": "a", "points": [[0, 0], [1, 1], [0, 1]]})
        assert shape.shape_type == ShapeType.POLYGON

    def test_unsupported_type(self):
        with pytest.raises(UnsupportedShapeType):
            Shape.from_labelme({"label": "a", "points": [[0, 0], [1, 1]], "shape_type": "circle"})

    @pytest.mark.parametrize("data", [
        {"points": [[0, 0]]},
        {"label": 3, "points": [[0, 0]]},
        {"label": "a"},
        {"label": "a", "points": "0,0"},
        {"label": "a", "points": [["x", 1]]},
        {"label": "a", "points": [[True, 1]]},
        {"label": "a", "points": [[1]]},
        {"label": "a", "points": [[float("nan"), 1]]},
        ["not", "a", "dict"],
    ])
    def test_malformed_shapes(self, data):
        with pytest.raises(AnnotationDataError):
            Shape.from_labelme(data)

    def test_to_labelme_preserves_extras(self):
        shape = Shape.from_labelme(poly("vest", [(0, 0), (4, 0), (4, 4)], flags={"occluded": True}))
        data = shape.to_labelme()
        assert data["label"] == "vest"
        assert data["shape_type"] == "polygon"
        assert data["points"] == [[0.0, 0.0], [4.0, 0.0], [4.0, 4.0]]
        assert data["flags"] == {"occluded": True}
        assert data["group_id"] is None

    def test_with_points_keeps_identity_fields(self):
        shape = Shape.from_labelme(rect("helmet", 1, 2, 3, 4, group_id=1))
        moved = shape.with_points([(0, 0), (2, 2)])
        assert moved.label == "helmet"
        assert moved.shape_type == ShapeType.RECTANGLE
        assert moved.extra == {"group_id": 1}
        assert shape.points == ((1.0, 2.0), (3.0, 4.0))


class TestCropSummary:
    def test_merge_and_success(self):
        total = CropSummary(parent_label="person", images_scanned=3)
        total.merge(CropSummary(instances_found=2, instances_processed=1, instances_rejected=1, files_written=2))
        total.merge(CropSummary(instances_found=1, errors=["b.png: broken"]))
        assert total.images_scanned == 3
        assert total.instances_found == 3
        assert total.instances_processed == 1
        assert total.files_written == 2
        assert not total.success
        assert "b.png: broken" in total.message

    def test_to_dict(self):
        data = CropSummary(parent_label="person").to_dict()
        assert data["instances_processed"] == 0
        assert data["results"] == []
        assert data["message"].startswith("Processing complete.")
