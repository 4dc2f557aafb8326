import awkward as ak
import uproot

# EDM4hep style branch names, e.g. 'TPCHits/TPCHits.position.x'
DEFAULT_BRANCH_FORMAT = "{collection}/{collection}.position.{axis}"


def read_hit_positions(path, collection, tree="events", branch_format=DEFAULT_BRANCH_FORMAT):
    """
    Reads the hit positions of one collection from a ROOT file.

    Parameters:
    -----------
    path : str
        ROOT file path
    collection : str
        Hit collection name
    tree : str
        Name of the events tree
    branch_format : str
        Branch name pattern with {collection} and {axis} placeholders

    Returns:
    --------
    tuple of ak.Array (x, y, z), one list of hits per event
    """
    branches = {axis: branch_format.format(collection=collection, axis=axis) for axis in 'xyz'}
    with uproot.open(path) as root_file:
        arrays = root_file[tree].arrays(list(branches.values()))

    x = ak.Array(arrays[branches['x']])
    y = ak.Array(arrays[branches['y']])
    z = ak.Array(arrays[branches['z']])
    return x, y, z
