"""
Readout plane: a set of readout modules sharing a position, a normal
vector and a cathode. The space between the plane and the cathode, along
the normal, is the drift volume of the plane.
"""

import logging
from typing import List, Optional, Tuple

import numpy as np

from readout_geometry.geometry.module import ReadoutModule

logger = logging.getLogger(__name__)


def _plane_axes(normal: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    In-plane unit axes (u, v) for a unit normal. Planes normal to z keep
    the global x and y axes; other planes use u = z x n and v = n x u.
    """
    z_axis = np.array([0.0, 0.0, 1.0])
    u = np.cross(z_axis, normal)
    if np.linalg.norm(u) < 1e-12:
        return np.array([1.0, 0.0, 0.0]), np.array([0.0, 1.0, 0.0])
    u = u / np.linalg.norm(u)
    v = np.cross(normal, u)
    return u, v


class ReadoutPlane:
    """Readout plane with its modules and drift volume"""

    def __init__(self, plane_id=0, position=(0.0, 0.0, 0.0), normal=(0.0, 0.0, 1.0),
                 cathode_position=(0.0, 0.0, 1.0), charge_collection=1.0):
        """
        Parameters:
        -----------
        plane_id : int
            Plane identifier
        position : tuple
            (x, y, z) of the plane origin, in mm
        normal : tuple
            Plane normal, pointing into the drift volume
        cathode_position : tuple
            Any point of the cathode plane
        charge_collection : float
            Sign of the collected charge
        """
        self.plane_id = plane_id
        self.position = np.asarray(position, dtype=float)
        normal = np.asarray(normal, dtype=float)
        norm = np.linalg.norm(normal)
        if norm == 0:
            raise ValueError(f"Plane {plane_id} normal vector cannot be null")
        self.normal = normal / norm
        self.axis_u, self.axis_v = _plane_axes(self.normal)
        self.charge_sign = float(charge_collection)
        self.modules: List[ReadoutModule] = []

        self.cathode_position = None
        self.drift_distance = 0.0
        self.set_cathode_position(cathode_position)

    def set_cathode_position(self, cathode_position):
        """Sets the cathode and recomputes the drift distance"""
        self.cathode_position = np.asarray(cathode_position, dtype=float)
        self.drift_distance = float(self.distance_to(self.cathode_position))
        if self.drift_distance <= 0:
            logger.warning("Plane %s: cathode is not in front of the plane (drift distance %g)",
                           self.plane_id, self.drift_distance)

    # ------------------------------------------------------------------
    # Modules
    # ------------------------------------------------------------------
    def add_module(self, module: ReadoutModule) -> int:
        self.modules.append(module)
        return len(self.modules) - 1

    @property
    def number_of_modules(self):
        return len(self.modules)

    @property
    def number_of_channels(self):
        return sum(module.number_of_channels for module in self.modules)

    def get_module(self, index) -> ReadoutModule:
        if index < 0 or index >= len(self.modules):
            raise IndexError(f"Module index {index} out of range (plane has {len(self.modules)} modules)")
        return self.modules[index]

    def module_by_id(self, module_id) -> Optional[ReadoutModule]:
        for module in self.modules:
            if module.module_id == module_id:
                return module
        return None

    # ------------------------------------------------------------------
    # 3D geometry
    # ------------------------------------------------------------------
    def distance_to(self, point):
        """Signed distance from the plane to *point* along the normal"""
        return np.dot(np.asarray(point, dtype=float) - self.position, self.normal)

    def project(self, point):
        """Projects 3D point(s) (..., 3) on the plane 2D frame, returns (u, v)"""
        delta = np.asarray(point, dtype=float) - self.position
        return (delta @ self.axis_u, delta @ self.axis_v)

    def is_inside_drift_volume(self, point) -> Optional[int]:
        """
        Index of the first module whose area contains the projection of
        *point*, if the point lies between the plane and the cathode.
        None otherwise.
        """
        distance = self.distance_to(point)
        if distance < 0 or distance > self.drift_distance:
            return None
        u, v = self.project(point)
        for index, module in enumerate(self.modules):
            if module.contains(u, v):
                return index
        return None

    def find_channel(self, module_index, u, v) -> Optional[int]:
        return self.get_module(module_index).find_channel(u, v)

    def resolve_xy(self, module_id, channel) -> Tuple[float, float]:
        """
        Position (u, v) in plane coordinates of a channel: the pixel centre
        for single-pixel channels, the mean pixel centre otherwise.
        """
        module = self.module_by_id(module_id)
        if module is None:
            raise KeyError(f"Plane {self.plane_id} has no module with id {module_id}")
        return module.channel_center(channel)

    def __repr__(self):
        return (f"ReadoutPlane(id={self.plane_id}, position={self.position.tolist()}, "
                f"normal={self.normal.tolist()}, drift_distance={self.drift_distance:g}, "
                f"modules={len(self.modules)})")
