import logging

import numpy as np
import pytest

from conftest import make_quadrant_module, make_strip_module
from readout_geometry.geometry.plane import ReadoutPlane


@pytest.fixture
def plane():
    plane = ReadoutPlane(plane_id=3, position=(0, 0, 0), normal=(0, 0, 1), cathode_position=(0, 0, 100))
    plane.add_module(make_quadrant_module(module_id=7))
    return plane


def test_drift_distance(plane):
    assert plane.drift_distance == pytest.approx(100)
    assert plane.distance_to((5, 5, 40)) == pytest.approx(40)


@pytest.mark.parametrize("point, expected", [
    ((50, 50, 0), 0),       # on the plane
    ((50, 50, 100), 0),     # on the cathode
    ((50, 50, 50), 0),
    ((50, 50, -0.001), None),
    ((50, 50, 100.001), None),
    ((150, 50, 50), None),  # outside every module
])
def test_drift_volume_is_closed_in_distance(plane, point, expected):
    assert plane.is_inside_drift_volume(point) == expected


def test_negative_normal():
    plane = ReadoutPlane(position=(0, 0, 0), normal=(0, 0, -2), cathode_position=(0, 0, -50))
    plane.add_module(make_quadrant_module())
    assert plane.normal == pytest.approx((0, 0, -1))
    assert plane.drift_distance == pytest.approx(50)
    assert plane.is_inside_drift_volume((10, 10, -20)) == 0
    assert plane.is_inside_drift_volume((10, 10, 20)) is None


def test_projection_axes():
    flat = ReadoutPlane(position=(1, 2, 3), normal=(0, 0, 1), cathode_position=(0, 0, 10))
    assert flat.project((4, 6, 8)) == pytest.approx((3, 4))

    side = ReadoutPlane(position=(0, 0, 0), normal=(1, 0, 0), cathode_position=(10, 0, 0))
    assert side.project((5, 2, 3)) == pytest.approx((2, 3))
    assert np.dot(side.axis_u, side.normal) == pytest.approx(0)
    assert np.dot(side.axis_v, side.normal) == pytest.approx(0)


def test_projection_of_arrays(plane):
    points = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
    u, v = plane.project(points)
    assert u.tolist() == [1.0, 4.0]
    assert v.tolist() == [2.0, 5.0]


def test_first_module_in_list_order_wins():
    plane = ReadoutPlane(cathode_position=(0, 0, 10))
    plane.add_module(make_quadrant_module(module_id=1))
    plane.add_module(make_strip_module(module_id=2, origin=(50, 50)))
    assert plane.is_inside_drift_volume((75, 75, 1)) == 0
    assert plane.is_inside_drift_volume((125, 125, 1)) == 1


def test_set_cathode_position(plane, caplog):
    plane.set_cathode_position((0, 0, 30))
    assert plane.drift_distance == pytest.approx(30)
    assert plane.is_inside_drift_volume((50, 50, 50)) is None

    with caplog.at_level(logging.WARNING, logger="readout_geometry"):
        plane.set_cathode_position((0, 0, -30))
    assert plane.drift_distance == pytest.approx(-30)
    assert any("cathode" in record.getMessage() for record in caplog.records)
    assert plane.is_inside_drift_volume((50, 50, 0)) is None


def test_module_lookups(plane):
    assert plane.number_of_modules == 1
    assert plane.number_of_channels == 1
    assert plane.module_by_id(7) is plane.get_module(0)
    assert plane.module_by_id(8) is None
    with pytest.raises(IndexError):
        plane.get_module(1)


def test_resolve_xy(plane):
    assert plane.resolve_xy(7, 0) == pytest.approx((50, 50))
    with pytest.raises(KeyError):
        plane.resolve_xy(8, 0)


def test_null_normal_is_rejected():
    with pytest.raises(ValueError):
        ReadoutPlane(normal=(0, 0, 0))
