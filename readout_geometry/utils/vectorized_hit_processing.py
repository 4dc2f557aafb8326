"""
Vectorized hit resolution utilities.

Batch versions of the Readout queries for numpy arrays of hit positions
and for awkward arrays holding one list of hits per event. Drift volume
and module containment are evaluated on whole arrays, plane by plane and
module by module; the pixel search of the remaining hits goes through the
module mapping.
"""

import numpy as np
import awkward as ak
from typing import Dict

NOT_FOUND = -1

RESULT_FIELDS = ('daq_id', 'plane_id', 'module_id', 'channel')


def _empty_result(count: int) -> Dict[str, np.ndarray]:
    return {name: np.full(count, NOT_FOUND, dtype=np.int64) for name in RESULT_FIELDS}


def resolve_positions(readout, x, y, z) -> Dict[str, np.ndarray]:
    """
    Resolves flat arrays of hit positions.

    Parameters:
    -----------
    readout : Readout
        Readout used for the lookup; missing mappings are built on demand
    x, y, z : array-like
        Hit coordinates, same length

    Returns:
    --------
    dict of int64 arrays 'daq_id', 'plane_id', 'module_id', 'channel',
    NOT_FOUND (-1) where a hit is not resolved
    """
    points = np.column_stack([np.asarray(x, dtype=float),
                              np.asarray(y, dtype=float),
                              np.asarray(z, dtype=float)])
    result = _empty_result(len(points))
    pending = np.ones(len(points), dtype=bool)

    for plane in readout.planes:
        if not pending.any():
            break
        distance = (points - plane.position) @ plane.normal
        in_volume = pending & (distance >= 0) & (distance <= plane.drift_distance)
        if not in_volume.any():
            continue
        u, v = plane.project(points)

        # First module containing the projection wins
        unassigned = in_volume.copy()
        for module in plane.modules:
            inside = unassigned & module.contains(u, v)
            if not inside.any():
                continue
            unassigned &= ~inside
            readout.get_mapping(module)
            for index in np.flatnonzero(inside):
                channel = module.find_channel(u[index], v[index])
                if channel is None:
                    continue
                result['daq_id'][index] = module.channels[channel].daq_id
                result['plane_id'][index] = plane.plane_id
                result['module_id'][index] = module.module_id
                result['channel'][index] = channel
                pending[index] = False

    return result


def resolve_hits(readout, x, y, z) -> ak.Array:
    """
    Resolves per-event (jagged) hit positions.

    Parameters:
    -----------
    readout : Readout
    x, y, z : ak.Array
        Jagged arrays of hit coordinates, one list per event

    Returns:
    --------
    ak.Array of records (daq_id, plane_id, module_id, channel) with the
    same per-event structure as the input
    """
    counts = ak.num(x)
    flat = resolve_positions(readout,
                             ak.to_numpy(ak.flatten(x)),
                             ak.to_numpy(ak.flatten(y)),
                             ak.to_numpy(ak.flatten(z)))
    records = ak.zip({name: flat[name] for name in RESULT_FIELDS})
    return ak.unflatten(records, counts)


def resolve_daq_ids(readout, daq_ids) -> Dict[str, np.ndarray]:
    """
    Resolves an array of daq ids to plane id, module id and readout channel.

    Returns:
    --------
    dict of int64 arrays 'plane_id', 'module_id', 'channel', NOT_FOUND
    where the daq id belongs to no module
    """
    daq_ids = np.asarray(daq_ids, dtype=np.int64)
    result = {name: np.full(len(daq_ids), NOT_FOUND, dtype=np.int64)
              for name in ('plane_id', 'module_id', 'channel')}

    # Each distinct daq id is resolved once
    unique_ids, inverse = np.unique(daq_ids, return_inverse=True)
    for position, daq_id in enumerate(unique_ids):
        location = readout.resolve_daq(int(daq_id))
        if location is None:
            continue
        mask = inverse == position
        result['plane_id'][mask] = location[0]
        result['module_id'][mask] = location[1]
        result['channel'][mask] = location[2]
    return result
