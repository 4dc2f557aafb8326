import awkward as ak
import numpy as np
import uproot

from readout_geometry import build_readout
from readout_geometry.hit_analysis.read_hits import read_hit_positions
from readout_geometry.utils.vectorized_hit_processing import resolve_hits


def _write_hits(path, x, y, z):
    with uproot.recreate(path) as root_file:
        root_file["events"] = {
            "hits_x": ak.Array(x),
            "hits_y": ak.Array(y),
            "hits_z": ak.Array(z),
        }


def test_read_hit_positions(tmp_path):
    path = str(tmp_path / "hits.root")
    _write_hits(path, [[35.0, 135.0], [5.0]], [[47.0, 12.0], [95.0]], [[10.0, 10.0], [1.0]])

    x, y, z = read_hit_positions(path, "hits", branch_format="{collection}_{axis}")
    assert ak.num(x).tolist() == [2, 1]
    assert np.allclose(ak.to_numpy(ak.flatten(y)), [47.0, 12.0, 95.0])
    assert z.tolist() == [[10.0, 10.0], [1.0]]


def test_resolve_hits_from_file(tmp_path, strip_description):
    path = str(tmp_path / "hits.root")
    _write_hits(path, [[35.0, 135.0], [5.0]], [[47.0, 12.0], [95.0]], [[10.0, 10.0], [1.0]])

    readout = build_readout(strip_description)
    resolved = resolve_hits(readout, *read_hit_positions(path, "hits", branch_format="{collection}_{axis}"))
    assert resolved.daq_id.tolist() == [[4, 101], [9]]
