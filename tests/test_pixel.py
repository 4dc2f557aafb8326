import numpy as np
import pytest

from readout_geometry.geometry.pixel import ReadoutPixel


def test_center_is_inside_random_pixels():
    rng = np.random.default_rng(20240311)
    for _ in range(500):
        pixel = ReadoutPixel(
            origin=rng.uniform(-50, 50, size=2),
            size=rng.uniform(0.1, 20, size=2),
            rotation=rng.uniform(0, 360),
            triangle=bool(rng.integers(0, 2)),
        )
        assert pixel.contains(*pixel.center()), pixel


def test_vertices_follow_rotation_about_origin():
    pixel = ReadoutPixel(origin=(1, 1), size=(2, 1), rotation=90)
    assert pixel.vertex(0) == pytest.approx((1, 1))
    assert pixel.vertex(1) == pytest.approx((1, 3))
    assert pixel.vertex(2) == pytest.approx((0, 3))
    assert pixel.vertex(3) == pytest.approx((0, 1))
    assert pixel.vertex(6) == pytest.approx(pixel.vertex(2))
    assert pixel.center() == pytest.approx((0.5, 2))


def test_rectangle_boundaries_are_inclusive():
    pixel = ReadoutPixel(origin=(0, 0), size=(10, 5))
    assert pixel.contains(0, 0)
    assert pixel.contains(10, 5)
    assert not pixel.contains(10.1, 2)
    assert not pixel.contains(5, -0.1)


def test_rotated_rectangle_containment():
    pixel = ReadoutPixel(origin=(0, 0), size=(10, 10), rotation=45)
    assert pixel.contains(0, 7)
    assert not pixel.contains(7, 0)


def test_triangle_keeps_half_at_origin():
    pixel = ReadoutPixel(origin=(0, 0), size=(10, 10), triangle=True)
    assert pixel.contains(2, 2)
    assert pixel.contains(5, 5)
    assert not pixel.contains(8, 8)
    assert pixel.center() == pytest.approx((2.5, 2.5))
    assert len(pixel.vertices()) == 3


def test_contains_on_arrays():
    pixel = ReadoutPixel(origin=(0, 0), size=(10, 10))
    xs = np.array([1.0, 5.0, 11.0])
    ys = np.array([1.0, 20.0, 5.0])
    np.testing.assert_array_equal(pixel.contains(xs, ys), [True, False, False])
