"""
readout_geometry: detector readout geometry and channel decoding.

Resolves daq channels to readout planes, modules and channels, and 3D hit
positions to daq channels, using per-module mapping grids.
"""

__version__ = "0.1"

from readout_geometry.errors import BuildReport, ConfigurationError
from readout_geometry.geometry.channel import ReadoutChannel
from readout_geometry.geometry.module import ReadoutModule
from readout_geometry.geometry.pixel import ReadoutPixel
from readout_geometry.geometry.plane import ReadoutPlane
from readout_geometry.geometry.readout import Readout
from readout_geometry.geometry_parsing.readout_builder import build_readout
from readout_geometry.readout_config import ReadoutConfig
from readout_geometry.segmentation.mapping import ReadoutMapping

__all__ = [
    "BuildReport",
    "ConfigurationError",
    "ReadoutChannel",
    "ReadoutModule",
    "ReadoutPixel",
    "ReadoutPlane",
    "Readout",
    "ReadoutMapping",
    "ReadoutConfig",
    "build_readout",
    "__version__",
]
