import awkward as ak
import numpy as np
import pytest

from readout_geometry import build_readout
from readout_geometry.utils.vectorized_hit_processing import (NOT_FOUND, resolve_daq_ids, resolve_hits,
                                                              resolve_positions)


@pytest.fixture
def readout(strip_description):
    return build_readout(strip_description)


def test_positions_match_scalar_queries(readout):
    rng = np.random.default_rng(3)
    x = rng.uniform(-20, 220, 300)
    y = rng.uniform(-20, 120, 300)
    z = rng.uniform(-10, 110, 300)

    result = resolve_positions(readout, x, y, z)
    for index in range(len(x)):
        expected = readout.resolve_xyz(x[index], y[index], z[index])
        got = tuple(int(result[name][index]) for name in ('daq_id', 'plane_id', 'module_id', 'channel'))
        if expected is None:
            assert got == (NOT_FOUND,) * 4
        else:
            assert got == expected


def test_positions_known_values(readout):
    result = resolve_positions(readout, [35, 135, 35], [47, 12, 47], [10, 10, 500])
    assert result['daq_id'].tolist() == [4, 101, NOT_FOUND]
    assert result['module_id'].tolist() == [1, 2, NOT_FOUND]
    assert result['channel'].tolist() == [4, 1, NOT_FOUND]
    assert result['daq_id'].dtype == np.int64


def test_resolve_hits_keeps_event_structure(readout):
    x = ak.Array([[35.0, 135.0], [], [5.0, 5.0, 300.0]])
    y = ak.Array([[47.0, 12.0], [], [95.0, 5.0, 5.0]])
    z = ak.Array([[10.0, 10.0], [], [1.0, 1.0, 1.0]])

    resolved = resolve_hits(readout, x, y, z)
    assert ak.num(resolved).tolist() == [2, 0, 3]
    assert resolved.daq_id.tolist() == [[4, 101], [], [9, 0, NOT_FOUND]]
    assert resolved.channel.tolist() == [[4, 1], [], [9, 0, NOT_FOUND]]


def test_resolve_daq_ids(readout):
    result = resolve_daq_ids(readout, [4, 104, 4, 50, 109])
    assert result['plane_id'].tolist() == [0, 0, 0, NOT_FOUND, 0]
    assert result['module_id'].tolist() == [1, 2, 1, NOT_FOUND, 2]
    assert result['channel'].tolist() == [4, 4, 4, NOT_FOUND, 9]
