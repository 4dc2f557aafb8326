"""
Readout module: a rectangular area of a readout plane holding readout
channels.

The module is placed inside its plane by the position of its origin
(bottom-left corner, also the rotation point) and a rotation in degrees.
Channels and pixels are described in module coordinates, so the same
module definition can be placed several times on a plane.
"""

import logging
from typing import Iterator, List, Optional, Tuple

import numpy as np

from readout_geometry.geometry.channel import ReadoutChannel
from readout_geometry.geometry.pixel import ReadoutPixel

logger = logging.getLogger(__name__)


class ReadoutModule:
    """Readout module: placement, daq decoding range and channel lookups"""

    def __init__(self, name="", size=(0.0, 0.0), origin=(0.0, 0.0), rotation=0.0,
                 tolerance=1.e-6, module_id=-1, unique_name=None,
                 first_daq_channel=0, decoding_file="", mapping_nodes=0,
                 show_warnings=False):
        """
        Parameters:
        -----------
        name : str
            Name of the module definition; modules sharing a name share
            their mapping grid
        size : tuple
            (size_x, size_y) of the module in mm
        origin : tuple
            (x, y) of the module origin in plane coordinates
        rotation : float
            Module rotation in degrees around the origin
        tolerance : float
            Slack allowed for pixels sticking out of the module
        module_id : int
            Identifier, unique across the readout
        unique_name : str, optional
            Name of this placement of the module
        first_daq_channel : int
            Offset added to the daq channels of the decoding table
        decoding_file : str
            Decoding table file used to assign daq ids
        mapping_nodes : int
            Requested mapping grid nodes per axis (0 = automatic)
        show_warnings : bool
            Log pixels found outside the module boundaries
        """
        self.name = name
        self.unique_name = unique_name
        self.module_id = module_id
        self.size_x, self.size_y = (float(size[0]), float(size[1]))
        self.origin_x, self.origin_y = (float(origin[0]), float(origin[1]))
        self.rotation = float(rotation)
        self.tolerance = float(tolerance)
        self.first_daq_channel = first_daq_channel
        self.decoding_file = decoding_file
        self.decoding = False
        self.mapping_nodes = mapping_nodes
        self.show_warnings = show_warnings

        self.channels: List[ReadoutChannel] = []
        self.min_daq_id = -1
        self.max_daq_id = -1
        self.mapping = None

        angle = np.deg2rad(self.rotation)
        self._cos = float(np.cos(angle))
        self._sin = float(np.sin(angle))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    def add_channel(self, channel: ReadoutChannel) -> int:
        """
        Appends a channel, validating that its pixels lie inside the module
        (within tolerance). Out-of-bounds pixels are only reported.

        Returns:
        --------
        int : readout channel index of the new channel
        """
        if self.mapping is not None:
            raise RuntimeError(f"Module '{self.name}' geometry is frozen once its mapping is built")

        index = len(self.channels)
        for px, pixel in enumerate(channel.pixels):
            if not self.pixel_fits(pixel) and self.show_warnings:
                logger.warning(
                    "Pixel outside the module boundaries: module %s, channel %d, pixel %d, "
                    "vertices %s, module size (%g, %g)",
                    self.name, index, px, pixel.vertices(), self.size_x, self.size_y)

        channel.readout_id = index
        self.channels.append(channel)
        return index

    def pixel_fits(self, pixel: ReadoutPixel) -> bool:
        """True if every pixel vertex lies inside the module extended by the tolerance"""
        tol = self.tolerance
        for vx, vy in pixel.vertices():
            if vx < -tol or vy < -tol or vx > self.size_x + tol or vy > self.size_y + tol:
                return False
        return True

    # ------------------------------------------------------------------
    # Channels and pixels
    # ------------------------------------------------------------------
    @property
    def number_of_channels(self):
        return len(self.channels)

    @property
    def total_pixels(self):
        return sum(channel.number_of_pixels for channel in self.channels)

    def get_channel(self, index) -> ReadoutChannel:
        if index < 0 or index >= len(self.channels):
            raise IndexError(f"Channel index {index} out of range (module has {len(self.channels)} channels)")
        return self.channels[index]

    def get_pixel(self, channel, pixel) -> ReadoutPixel:
        return self.get_channel(channel).get_pixel(pixel)

    def iter_pixels(self) -> Iterator[Tuple[int, int, ReadoutPixel]]:
        """Yields (channel index, pixel index, pixel) in definition order"""
        for ch, channel in enumerate(self.channels):
            for px, pixel in enumerate(channel.pixels):
                yield ch, px, pixel

    # ------------------------------------------------------------------
    # Coordinate transformations
    # ------------------------------------------------------------------
    def to_local(self, x, y):
        """Plane coordinates to module coordinates (inverse of the placement)"""
        dx = np.subtract(x, self.origin_x)
        dy = np.subtract(y, self.origin_y)
        local_x = dx * self._cos + dy * self._sin
        local_y = -dx * self._sin + dy * self._cos
        return (local_x, local_y)

    def to_plane(self, local_x, local_y):
        """Module coordinates to plane coordinates"""
        x = self.origin_x + np.multiply(local_x, self._cos) - np.multiply(local_y, self._sin)
        y = self.origin_y + np.multiply(local_x, self._sin) + np.multiply(local_y, self._cos)
        return (x, y)

    def contains_local(self, local_x, local_y):
        return ((local_x >= 0) & (local_x < self.size_x) &
                (local_y >= 0) & (local_y < self.size_y))

    def contains(self, x, y):
        """True if the plane-coordinate point lies in [0, size_x) x [0, size_y) of the module"""
        return self.contains_local(*self.to_local(x, y))

    def channel_contains(self, channel, x, y) -> bool:
        local_x, local_y = self.to_local(x, y)
        return self.get_channel(channel).contains(local_x, local_y)

    def pixel_contains(self, channel, pixel, x, y) -> bool:
        if channel is None or pixel is None or channel < 0 or pixel < 0:
            return False
        return self.pixel_contains_local(channel, pixel, *self.to_local(x, y))

    def pixel_contains_local(self, channel, pixel, local_x, local_y) -> bool:
        if channel is None or pixel is None or channel < 0 or pixel < 0:
            return False
        return bool(self.channels[channel].pixels[pixel].contains(local_x, local_y))

    # ------------------------------------------------------------------
    # Geometry in plane coordinates
    # ------------------------------------------------------------------
    def vertex(self, n):
        """Module corner *n* (modulo 4) in plane coordinates"""
        n = n % 4
        corners = ((0.0, 0.0), (self.size_x, 0.0),
                   (self.size_x, self.size_y), (0.0, self.size_y))
        x, y = self.to_plane(*corners[n])
        return (float(x), float(y))

    def distance_to_module(self, x, y):
        """
        Shortest displacement, in module axes, that moves the point onto the
        module area. (0, 0) if the point is inside.
        """
        local_x, local_y = self.to_local(x, y)
        dx = 0.0
        dy = 0.0
        if local_x < 0:
            dx = -local_x
        elif local_x > self.size_x:
            dx = self.size_x - local_x
        if local_y < 0:
            dy = -local_y
        elif local_y > self.size_y:
            dy = self.size_y - local_y
        return (float(dx), float(dy))

    def pixel_vertex(self, channel, pixel, n):
        x, y = self.to_plane(*self.get_pixel(channel, pixel).vertex(n))
        return (float(x), float(y))

    def pixel_origin(self, channel, pixel):
        return self.pixel_vertex(channel, pixel, 0)

    def pixel_center(self, channel, pixel):
        x, y = self.to_plane(*self.get_pixel(channel, pixel).center())
        return (float(x), float(y))

    def is_pixel_triangle(self, channel, pixel) -> bool:
        return self.get_pixel(channel, pixel).triangle

    def channel_center(self, channel):
        """Mean of the pixel centres of a channel, in plane coordinates"""
        pixels = self.get_channel(channel).pixels
        if not pixels:
            raise ValueError(f"Channel {channel} of module '{self.name}' has no pixels")
        centers = np.array([pixel.center() for pixel in pixels])
        x, y = self.to_plane(*centers.mean(axis=0))
        return (float(x), float(y))

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------
    def set_daq_bounds(self):
        """Caches the minimum and maximum daq id over all channels"""
        if not self.channels:
            self.min_daq_id = -1
            self.max_daq_id = -1
            return
        daq_ids = [channel.daq_id for channel in self.channels]
        self.min_daq_id = min(daq_ids)
        self.max_daq_id = max(daq_ids)

    def daq_in_range(self, daq_id) -> bool:
        """
        Fast pre-filter: True if daq_id is within [min_daq_id, max_daq_id].
        Gaps inside the range also return True.
        """
        return self.min_daq_id <= daq_id <= self.max_daq_id

    def daq_to_channel(self, daq_id) -> Optional[int]:
        """Readout channel index wired to *daq_id*, or None"""
        for index, channel in enumerate(self.channels):
            if channel.daq_id == daq_id:
                return index
        return None

    def decoding_table(self) -> List[Tuple[int, int]]:
        """(daq id, readout channel) pairs sorted by daq id"""
        return sorted((channel.daq_id, index) for index, channel in enumerate(self.channels))

    # ------------------------------------------------------------------
    # Spatial queries
    # ------------------------------------------------------------------
    def find_channel_and_pixel(self, x, y) -> Optional[Tuple[int, int]]:
        """
        Finds the (channel, pixel) containing the plane-coordinate point,
        using the mapping grid. None if the point is outside the module or
        no pixel was found within the search bound.
        """
        if not self.contains(x, y):
            return None
        if self.mapping is None:
            raise RuntimeError(f"Module '{self.name}' has no mapping; build it before spatial queries")
        local_x, local_y = self.to_local(x, y)
        return self.mapping.find_pixel(self, float(local_x), float(local_y))

    def find_channel(self, x, y) -> Optional[int]:
        found = self.find_channel_and_pixel(x, y)
        if found is None:
            return None
        return found[0]

    def __repr__(self):
        return (f"ReadoutModule(name='{self.name}', id={self.module_id}, "
                f"size=({self.size_x}, {self.size_y}), origin=({self.origin_x}, {self.origin_y}), "
                f"rotation={self.rotation}, channels={len(self.channels)})")
