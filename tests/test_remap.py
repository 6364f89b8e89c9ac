"""Tests for coordinate remapping into crop space."""
import random

from labelcrop.core import ShapeType
from labelcrop.models import Shape
from labelcrop.remap import remap_point, remap_shape, remap_shapes

from conftest import rect, poly

CROP = (80, 60, 320, 540)


def test_translates_by_crop_origin():
    assert remap_point(150, 90, CROP) == (70.0, 30.0)


def test_clamps_to_crop_extent():
    assert remap_point(10, 1000, CROP) == (0.0, 480.0)


def test_rectangle_inside_crop():
    shape = Shape.from_labelme(rect("helmet", 150, 90, 250, 160, group_id=3))
    remapped = remap_shape(shape, CROP)
    assert remapped.points == ((70.0, 30.0), (170.0, 100.0))
    assert remapped.label == "helmet"
    assert remapped.shape_type == ShapeType.RECTANGLE
    assert remapped.extra == {"group_id": 3}


def test_partially_outside_is_clamped():
    shape = Shape.from_labelme(rect("vest", 50, 500, 150, 600))
    remapped = remap_shape(shape, CROP)
    assert remapped.points == ((0.0, 440.0), (70.0, 480.0))


def test_polygon_vertices_clamped_independently():
    shape = Shape.from_labelme(poly("arm", [(300, 100), (400, 100), (400, 200), (300, 200)]))
    remapped = remap_shape(shape, CROP)
    assert remapped.points == ((220.0, 40.0), (240.0, 40.0), (240.0, 140.0), (220.0, 140.0))


def test_shape_outside_crop_is_dropped():
    shape = Shape.from_labelme(rect("car", 400, 100, 500, 200))
    assert remap_shape(shape, CROP) is None


def test_remap_shapes_counts_drops_and_keeps_order():
    shapes = [
        Shape.from_labelme(rect("person", 100, 100, 300, 500)),
        Shape.from_labelme(rect("car", 400, 100, 500, 200)),
        Shape.from_labelme(rect("helmet", 150, 90, 250, 160)),
    ]
    kept, dropped = remap_shapes(shapes, CROP)
    assert [s.label for s in kept] == ["person", "helmet"]
    assert dropped == 1


def test_remapped_points_stay_in_bounds():
    rng = random.Random(99)
    for _ in range(200):
        x0, y0 = rng.randint(0, 200), rng.randint(0, 200)
        crop = (x0, y0, x0 + rng.randint(1, 200), y0 + rng.randint(1, 200))
        points = [(rng.uniform(-100, 500), rng.uniform(-100, 500)) for _ in range(rng.randint(3, 8))]
        shape = Shape(label="blob", shape_type=ShapeType.POLYGON, points=tuple(points))

        remapped = remap_shape(shape, crop)
        if remapped is None:
            continue
        for x, y in remapped.points:
            assert 0 <= x <= crop[2] - crop[0]
            assert 0 <= y <= crop[3] - crop[1]
