"""
Builds a Readout from a parsed geometry description.

The description is a nested dict, as produced by an external
configuration loader:

    {
        'mapping_nodes': 0,
        'modules': {
            'modName': {
                'size': (100, 100), 'tolerance': 1.e-4,
                'channels': [
                    {'id': 0, 'pixels': [
                        {'id': 0, 'origin': (0, 0), 'size': (10, 10),
                         'rotation': 45, 'triangle': False},
                    ]},
                ],
            },
        },
        'planes': [
            {'id': 0, 'position': (0, 0, -990), 'normal': (0, 0, 1),
             'cathode_position': (0, 0, 0), 'charge_collection': 1,
             'modules': [
                 {'module': 'modName', 'id': 0, 'name': 'north',
                  'origin': (0, 0), 'rotation': 0,
                  'decoding_file': 'module.dec', 'first_daq_channel': 0},
             ]},
        ],
    }

Configuration errors are collected in a BuildReport and raised together
as a ConfigurationError once the whole description has been processed.
"""

import logging
import zlib
from typing import Dict, List, Optional

from readout_geometry.decoding.decoding_tables import (apply_decoding, apply_identity_decoding,
                                                       read_decoding_table)
from readout_geometry.errors import BuildReport, ConfigurationError
from readout_geometry.geometry.channel import ReadoutChannel
from readout_geometry.geometry.module import ReadoutModule
from readout_geometry.geometry.pixel import ReadoutPixel
from readout_geometry.geometry.plane import ReadoutPlane
from readout_geometry.geometry.readout import Readout
from readout_geometry.readout_config import ReadoutConfig

logger = logging.getLogger(__name__)


def module_id_from_name(name: str) -> int:
    """Stable, non-negative module id derived from a unique module name"""
    return zlib.crc32(name.encode('utf-8')) & 0x7fffffff


def order_by_declared_id(entries: List[dict], what: str, report: BuildReport) -> Optional[List[dict]]:
    """
    Places entries at the index given by their declared 'id'.

    Entries without ids keep their order. If any entry declares an id, all
    must, and the ids must be a permutation of 0..N-1.

    Returns:
    --------
    list or None : ordered entries, None if the ids are invalid
    """
    declared = [entry.get('id') for entry in entries]
    if all(value is None for value in declared):
        return list(entries)

    if any(value is None for value in declared):
        report.error(f"{what}: some entries declare an id and others do not")
        return None

    ordered = [None] * len(entries)
    for entry, value in zip(entries, declared):
        index = int(value)
        if index < 0 or index >= len(entries):
            report.error(f"{what}: id {index} outside 0..{len(entries) - 1}")
            return None
        if ordered[index] is not None:
            report.error(f"{what}: id {index} declared twice")
            return None
        ordered[index] = entry
    return ordered


def build_pixel(definition: dict) -> ReadoutPixel:
    return ReadoutPixel(
        origin=definition.get('origin', (0.0, 0.0)),
        size=definition['size'],
        rotation=definition.get('rotation', 0.0),
        triangle=definition.get('triangle', False),
    )


def build_module(name: str, definition: dict, placement: dict, config: ReadoutConfig,
                 report: BuildReport) -> Optional[ReadoutModule]:
    """Creates one placed module from its definition and placement"""
    module = ReadoutModule(
        name=name,
        size=definition['size'],
        origin=placement.get('origin', (0.0, 0.0)),
        rotation=placement.get('rotation', 0.0),
        tolerance=definition.get('tolerance', config.tolerance),
        unique_name=placement.get('name'),
        first_daq_channel=int(placement.get('first_daq_channel', 0)),
        decoding_file=placement.get('decoding_file', "") or "",
        mapping_nodes=int(placement.get('mapping_nodes', definition.get('mapping_nodes', 0)) or 0),
        show_warnings=config.show_warnings,
    )

    channels = order_by_declared_id(definition.get('channels', []), f"Module '{name}' channels", report)
    if channels is None:
        return None

    for ch, channel_def in enumerate(channels):
        pixels = order_by_declared_id(channel_def.get('pixels', []),
                                      f"Module '{name}' channel {ch} pixels", report)
        if pixels is None:
            return None
        channel = ReadoutChannel(pixels=[build_pixel(pixel_def) for pixel_def in pixels])
        module.add_channel(channel)

    return module


def assign_daq_ids(module: ReadoutModule, config: ReadoutConfig, report: BuildReport) -> None:
    """Applies the decoding file of a module, or the identity relation"""
    label = module.unique_name or module.name
    if not config.decoding or not module.decoding_file:
        apply_identity_decoding(module, module.first_daq_channel)
        return

    path = config.resolve_decoding_file(module.decoding_file)
    if path is None:
        message = (f"Module '{label}': decoding file '{module.decoding_file}' not found, "
                   f"using one to one daq relation")
        logger.warning(message)
        report.disable_decoding(label, message)
        apply_identity_decoding(module, module.first_daq_channel)
        return

    try:
        rows = read_decoding_table(path)
        apply_decoding(module, rows, module.first_daq_channel)
    except ConfigurationError as exc:
        for message in exc.messages:
            report.error(message)


def build_readout(description: dict, config: Optional[ReadoutConfig] = None,
                  report: Optional[BuildReport] = None) -> Readout:
    """
    Builds a Readout from a geometry description.

    Parameters:
    -----------
    description : dict
        Parsed geometry description (see module docstring)
    config : ReadoutConfig, optional
        Build options; defaults from ReadoutConfig()
    report : BuildReport, optional
        Accumulator for errors and warnings; a new one if not given

    Returns:
    --------
    Readout, with the report available as readout.build_report

    Raises:
    -------
    ConfigurationError listing every configuration problem found
    """
    if config is None:
        config = ReadoutConfig()
    if report is None:
        report = BuildReport()

    definitions: Dict[str, dict] = description.get('modules', {})
    readout = Readout(config=config)
    readout.build_report = report
    used_ids: Dict[int, str] = {}

    for plane_index, plane_def in enumerate(description.get('planes', [])):
        plane_id = plane_def.get('id', plane_index)
        try:
            plane = ReadoutPlane(
                plane_id=plane_id,
                position=plane_def.get('position', (0.0, 0.0, 0.0)),
                normal=plane_def.get('normal', (0.0, 0.0, 1.0)),
                cathode_position=plane_def['cathode_position'],
                charge_collection=plane_def.get('charge_collection', 1),
            )
        except (KeyError, ValueError) as exc:
            report.error(f"Plane {plane_id}: {exc}")
            continue

        for placement in plane_def.get('modules', []):
            name = placement.get('module')
            if name not in definitions:
                report.error(f"Plane {plane_id}: unknown module definition '{name}'")
                continue

            try:
                module = build_module(name, definitions[name], placement, config, report)
            except (KeyError, TypeError, ValueError) as exc:
                report.error(f"Plane {plane_id}: module '{name}' malformed: {exc!r}")
                continue
            if module is None:
                continue
            if not module.mapping_nodes:
                module.mapping_nodes = int(description.get('mapping_nodes', 0) or 0)

            if placement.get('id') is not None:
                module.module_id = int(placement['id'])
            elif placement.get('name'):
                module.module_id = module_id_from_name(placement['name'])
            else:
                report.error(f"Plane {plane_id}: module '{name}' placed without id or unique name")
                continue

            label = module.unique_name or name
            if module.module_id in used_ids:
                report.error(f"Module id {module.module_id} of '{label}' already used by "
                             f"'{used_ids[module.module_id]}'")
                continue
            used_ids[module.module_id] = label

            assign_daq_ids(module, config, report)
            plane.add_module(module)

        readout.add_plane(plane)

    report.raise_if_errors()
    readout.decoding_enabled = config.decoding and not report.decoding_disabled

    logger.info("Readout built: %d planes, %d modules, %d channels",
                readout.number_of_planes, sum(1 for _ in readout.modules()), readout.number_of_channels)
    for warning in report.warnings:
        logger.debug("Build warning: %s", warning)
    return readout
