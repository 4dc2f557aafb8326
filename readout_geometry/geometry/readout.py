"""
Readout: the full detector readout, made of readout planes.

Provides the two queries used while processing hits:
  daq id -> (plane id, module id, readout channel)
  (x, y, z) -> (daq id, plane id, module id, readout channel)
and the inverse (plane id, module id, channel) -> (x, y).

Mappings are cached by module name, since modules placed several times
share the same definition; an unnamed module gets an entry of its own.
The cache is filled lazily under a lock per entry, or eagerly with
build_mappings() before concurrent use.
"""

import logging
import threading
from collections import defaultdict
from typing import Dict, Iterator, List, Optional, Tuple

from readout_geometry.geometry.channel import ReadoutChannel
from readout_geometry.geometry.module import ReadoutModule
from readout_geometry.geometry.plane import ReadoutPlane
from readout_geometry.readout_config import ReadoutConfig
from readout_geometry.segmentation.mapping import ReadoutMapping

logger = logging.getLogger(__name__)


class Readout:
    """Collection of readout planes with the global lookups"""

    def __init__(self, planes=None, config: Optional[ReadoutConfig] = None):
        self.config = config if config is not None else ReadoutConfig()
        self.planes: List[ReadoutPlane] = list(planes or [])
        self.decoding_enabled = self.config.decoding
        self.mapping_cache: Dict[object, ReadoutMapping] = {}
        self.build_report = None

        self._cache_lock = threading.Lock()
        self._entry_locks = defaultdict(threading.Lock)

    def add_plane(self, plane: ReadoutPlane) -> int:
        self.planes.append(plane)
        return len(self.planes) - 1

    @property
    def number_of_planes(self):
        return len(self.planes)

    @property
    def number_of_channels(self):
        return sum(plane.number_of_channels for plane in self.planes)

    def modules(self) -> Iterator[Tuple[ReadoutPlane, ReadoutModule]]:
        """Yields (plane, module) for every module in definition order"""
        for plane in self.planes:
            for module in plane.modules:
                yield plane, module

    # ------------------------------------------------------------------
    # Lookups by id
    # ------------------------------------------------------------------
    def plane_by_id(self, plane_id) -> Optional[ReadoutPlane]:
        for plane in self.planes:
            if plane.plane_id == plane_id:
                return plane
        return None

    def module_by_id(self, module_id) -> Optional[ReadoutModule]:
        for plane in self.planes:
            module = plane.module_by_id(module_id)
            if module is not None:
                return module
        return None

    def channel_by_daq_id(self, daq_id) -> Optional[ReadoutChannel]:
        location = self.resolve_daq(daq_id)
        if location is None:
            return None
        _, module_id, channel = location
        return self.module_by_id(module_id).get_channel(channel)

    # ------------------------------------------------------------------
    # Mappings
    # ------------------------------------------------------------------
    @staticmethod
    def mapping_key(module: ReadoutModule):
        """Cache key: the definition name, or the module itself when unnamed"""
        return module.name if module.name else module

    def get_mapping(self, module: ReadoutModule) -> ReadoutMapping:
        """
        Returns the mapping of *module*, building it on first use. Only one
        thread builds a given cache entry; others wait for its result.
        """
        if module.mapping is not None:
            return module.mapping

        key = self.mapping_key(module)
        mapping = self.mapping_cache.get(key)
        if mapping is None:
            with self._cache_lock:
                entry_lock = self._entry_locks[key]
            with entry_lock:
                mapping = self.mapping_cache.get(key)
                if mapping is None:
                    nodes = module.mapping_nodes or self.config.mapping_nodes
                    logger.info("Building mapping for module '%s' (id %s)", module.name, module.module_id)
                    mapping = ReadoutMapping.build(module, nodes)
                    self.mapping_cache[key] = mapping

        module.mapping = mapping
        return mapping

    def build_mappings(self) -> Dict[object, ReadoutMapping]:
        """Builds every module mapping now, before any concurrent query"""
        for _, module in self.modules():
            self.get_mapping(module)
        return dict(self.mapping_cache)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def resolve_daq(self, daq_id) -> Optional[Tuple[int, int, int]]:
        """
        (plane id, module id, readout channel) of a daq channel, or None.
        The first module, in definition order, that knows the daq id wins.
        """
        for plane in self.planes:
            for module in plane.modules:
                if not module.daq_in_range(daq_id):
                    continue
                channel = module.daq_to_channel(daq_id)
                if channel is not None:
                    return (plane.plane_id, module.module_id, channel)
        return None

    def resolve_xyz(self, x, y, z) -> Optional[Tuple[int, int, int, int]]:
        """
        (daq id, plane id, module id, readout channel) of the channel
        collecting charge produced at (x, y, z), or None.
        """
        point = (x, y, z)
        for plane in self.planes:
            module_index = plane.is_inside_drift_volume(point)
            if module_index is None:
                continue
            module = plane.modules[module_index]
            self.get_mapping(module)
            u, v = plane.project(point)
            channel = module.find_channel(u, v)
            if channel is None:
                continue
            daq_id = module.channels[channel].daq_id
            return (daq_id, plane.plane_id, module.module_id, channel)
        return None

    def resolve_xy(self, plane_id, module_id, channel) -> Tuple[float, float]:
        """Plane coordinates of a readout channel"""
        plane = self.plane_by_id(plane_id)
        if plane is None:
            raise KeyError(f"No readout plane with id {plane_id}")
        return plane.resolve_xy(module_id, channel)

    def summary(self) -> str:
        lines = [f"Readout: {self.number_of_planes} planes, {self.number_of_channels} channels"]
        for plane in self.planes:
            lines.append(f"  Plane {plane.plane_id}: drift distance {plane.drift_distance:g} mm, "
                         f"{plane.number_of_modules} modules")
            for module in plane.modules:
                mapping = module.mapping
                state = "not built" if mapping is None else (
                    f"{mapping.nodes_x}x{mapping.nodes_y}, complete={mapping.all_nodes_set}")
                lines.append(f"    Module {module.module_id} ('{module.name}'): "
                             f"{module.number_of_channels} channels, daq [{module.min_daq_id}, "
                             f"{module.max_daq_id}], decoding={module.decoding}, mapping {state}")
        return "\n".join(lines)

    def __repr__(self):
        return f"Readout(planes={len(self.planes)}, channels={self.number_of_channels})"
