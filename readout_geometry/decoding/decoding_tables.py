"""
Decoding tables: the relation between the daq channel numbers of the
acquisition and the readout channel ids of a module.

A decoding file is plain text with two integer columns per line:

    daq_channel    readout_channel

A negative readout channel marks a daq channel that is not connected and
is skipped. Daq channels are shifted by the module's first_daq_channel
when applied, so one file can serve several identically wired modules.
"""

import logging
from typing import Iterable, List, Tuple

from readout_geometry.errors import ConfigurationError

logger = logging.getLogger(__name__)


def read_decoding_table(path) -> List[Tuple[int, int]]:
    """
    Reads a decoding file.

    Parameters:
    -----------
    path : str
        Decoding file path

    Returns:
    --------
    list of (daq_channel, readout_channel), skipped rows removed

    Raises:
    -------
    ConfigurationError if a line does not hold two integers
    """
    rows = []
    with open(path) as handle:
        for line_number, line in enumerate(handle, start=1):
            fields = line.split()
            if not fields or fields[0].startswith('#'):
                continue
            if len(fields) < 2:
                raise ConfigurationError(f"{path}:{line_number}: expected 'daq_channel readout_channel'")
            try:
                daq_channel, readout_channel = int(fields[0]), int(fields[1])
            except ValueError as exc:
                raise ConfigurationError(f"{path}:{line_number}: {exc}") from exc
            if readout_channel < 0:
                continue
            rows.append((daq_channel, readout_channel))
    logger.debug("Read %d decoding rows from %s", len(rows), path)
    return rows


def write_decoding_table(path, rows: Iterable[Tuple[int, int]]) -> None:
    """Writes (daq_channel, readout_channel) rows in decoding file format"""
    with open(path, 'w') as handle:
        for daq_channel, readout_channel in rows:
            handle.write(f"{int(daq_channel)}\t{int(readout_channel)}\n")


def apply_decoding(module, rows, first_daq_channel=0) -> None:
    """
    Assigns daq ids to the channels of *module* from decoding rows, then
    refreshes the module daq bounds.

    Raises:
    -------
    ConfigurationError if the rows do not cover each channel exactly once
    """
    if len(rows) != module.number_of_channels:
        raise ConfigurationError(
            f"Module '{module.name}': decoding table has {len(rows)} rows "
            f"but the module defines {module.number_of_channels} channels")

    seen = set()
    for daq_channel, readout_channel in rows:
        if readout_channel >= module.number_of_channels:
            raise ConfigurationError(
                f"Module '{module.name}': decoding references readout channel {readout_channel}, "
                f"module has {module.number_of_channels} channels")
        if readout_channel in seen:
            raise ConfigurationError(
                f"Module '{module.name}': readout channel {readout_channel} decoded twice")
        seen.add(readout_channel)

    for daq_channel, readout_channel in rows:
        module.channels[readout_channel].daq_id = daq_channel + first_daq_channel

    module.decoding = True
    module.set_daq_bounds()


def apply_identity_decoding(module, first_daq_channel=0) -> None:
    """daq id = readout channel + first_daq_channel for every channel"""
    for index, channel in enumerate(module.channels):
        channel.daq_id = index + first_daq_channel
    module.decoding = False
    module.set_daq_bounds()
