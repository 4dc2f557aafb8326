"""
Pytest configuration and shared fixtures.
"""

import pytest

from readout_geometry.geometry.channel import ReadoutChannel
from readout_geometry.geometry.module import ReadoutModule
from readout_geometry.geometry.pixel import ReadoutPixel


def make_quadrant_module(**kwargs):
    """100x100 module, one channel with four 50x50 pixels tiling the quadrants"""
    module = ReadoutModule(name="quadrants", size=(100, 100), **kwargs)
    channel = ReadoutChannel()
    for origin in [(0, 0), (50, 0), (0, 50), (50, 50)]:
        channel.add_pixel(ReadoutPixel(origin=origin, size=(50, 50)))
    module.add_channel(channel)
    return module


def make_strip_module(name="strips", **kwargs):
    """100x100 module, 10 horizontal strip channels of ten 10x10 pixels each"""
    module = ReadoutModule(name=name, size=(100, 100), **kwargs)
    for row in range(10):
        channel = ReadoutChannel()
        for column in range(10):
            channel.add_pixel(ReadoutPixel(origin=(10 * column, 10 * row), size=(10, 10)))
        module.add_channel(channel)
    return module


def strip_module_definition():
    return {
        'size': (100, 100),
        'tolerance': 1.e-4,
        'channels': [
            {'id': row, 'pixels': [
                {'id': column, 'origin': (10 * column, 10 * row), 'size': (10, 10)}
                for column in range(10)
            ]}
            for row in range(10)
        ],
    }


def column_module_definition(channels=3, width=10.0, height=30.0):
    """One single-pixel column per channel"""
    return {
        'size': (channels * width, height),
        'channels': [
            {'id': ch, 'pixels': [{'id': 0, 'origin': (ch * width, 0), 'size': (width, height)}]}
            for ch in range(channels)
        ],
    }


@pytest.fixture
def quadrant_module():
    return make_quadrant_module()


@pytest.fixture
def strip_module():
    return make_strip_module()


@pytest.fixture
def strip_description():
    """Plane at z=0 looking to +z, cathode at z=100, two placements of one module"""
    return {
        'modules': {'strips': strip_module_definition()},
        'planes': [{
            'id': 0,
            'position': (0, 0, 0),
            'normal': (0, 0, 1),
            'cathode_position': (0, 0, 100),
            'charge_collection': 1,
            'modules': [
                {'module': 'strips', 'id': 1, 'origin': (0, 0), 'first_daq_channel': 0},
                {'module': 'strips', 'id': 2, 'origin': (100, 0), 'first_daq_channel': 100},
            ],
        }],
    }
