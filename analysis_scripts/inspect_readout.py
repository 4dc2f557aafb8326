"""
Builds a readout from a JSON geometry description and reports on it:
module summary, mapping completeness, decoding tables, and optionally the
fraction of hits from a ROOT file that resolve to a daq channel.

Usage:
    python analysis_scripts/inspect_readout.py readout.json --mappings
    python analysis_scripts/inspect_readout.py readout.json --decoding 3
    python analysis_scripts/inspect_readout.py readout.json --hits sim.root --collection TPCHits
"""

import argparse
import json
import logging
import sys

import awkward as ak
import numpy as np

from readout_geometry import ConfigurationError, ReadoutConfig, build_readout
from readout_geometry.hit_analysis.read_hits import read_hit_positions
from readout_geometry.logging_config import setup_logging
from readout_geometry.utils.vectorized_hit_processing import NOT_FOUND, resolve_hits


def print_decoding(readout, module_id):
    module = readout.module_by_id(module_id)
    if module is None:
        print(f"No module with id {module_id}")
        return
    print(f"\nDecoding of module {module_id} ('{module.name}')")
    print("daqChannel\tphysicalChannel")
    for daq_id, channel in module.decoding_table():
        print(f"{daq_id}\t{channel}")


def print_mappings(readout):
    mappings = readout.build_mappings()
    print("\n" + "=" * 70)
    print(f"{'Module':<20} {'Nodes':<12} {'Unset':<8} {'Overwritten':<12} {'Complete':<8}")
    print("-" * 70)
    for key, mapping in mappings.items():
        name = key if isinstance(key, str) else f"<id {key.module_id}>"
        nodes = f"{mapping.nodes_x}x{mapping.nodes_y}"
        print(f"{name:<20} {nodes:<12} {mapping.number_of_unset_nodes:<8} "
              f"{mapping.overwritten_nodes:<12} {str(mapping.all_nodes_set):<8}")


def print_hit_resolution(readout, path, collection, tree):
    x, y, z = read_hit_positions(path, collection, tree=tree)
    resolved = resolve_hits(readout, x, y, z)
    daq_ids = ak.to_numpy(ak.flatten(resolved.daq_id))
    total = len(daq_ids)
    found = int(np.count_nonzero(daq_ids != NOT_FOUND))
    fraction = found / total if total else 0.0
    print(f"\n{collection}: {len(x)} events, {total} hits, {found} resolved ({100 * fraction:.2f}%)")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Inspect a readout geometry description")
    parser.add_argument("description", help="JSON readout geometry description")
    parser.add_argument("--decoding-path", default=None,
                        help="colon separated directories holding decoding files")
    parser.add_argument("--mappings", action="store_true", help="build and report every mapping")
    parser.add_argument("--decoding", type=int, default=None, metavar="MODULE_ID",
                        help="print the decoding table of a module")
    parser.add_argument("--hits", default=None, help="ROOT file with hits to resolve")
    parser.add_argument("--collection", default="TPCHits", help="hit collection name")
    parser.add_argument("--tree", default="events", help="events tree name")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    with open(args.description) as handle:
        description = json.load(handle)

    decoding_path = args.decoding_path.split(":") if args.decoding_path else None
    config = ReadoutConfig(decoding_path=decoding_path, show_warnings=args.verbose)
    try:
        readout = build_readout(description, config=config)
    except ConfigurationError as exc:
        print("Readout configuration errors:")
        for message in exc.messages:
            print(f"  - {message}")
        return 1

    if args.mappings:
        print_mappings(readout)
    print(readout.summary())
    for warning in readout.build_report.warnings:
        print(f"Warning: {warning}")
    if args.decoding is not None:
        print_decoding(readout, args.decoding)
    if args.hits:
        print_hit_resolution(readout, args.hits, args.collection, args.tree)
    return 0


if __name__ == "__main__":
    sys.exit(main())
