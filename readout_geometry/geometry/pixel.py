"""
Readout pixel: the elementary detection area of a readout channel.

A pixel is a rectangle, or the right triangle holding the right angle at
its origin, placed inside the module coordinate system by its origin, its
size and a rotation (degrees) around the origin.
"""

import numpy as np


class ReadoutPixel:
    """Rectangular or right-triangle pixel in module coordinates"""

    def __init__(self, origin=(0.0, 0.0), size=(1.0, 1.0), rotation=0.0, triangle=False):
        """
        Parameters:
        -----------
        origin : tuple
            (x, y) position of vertex 0, which is also the rotation point
        size : tuple
            (size_x, size_y) of the unrotated pixel
        rotation : float
            Rotation in degrees around the origin
        triangle : bool
            True for a right triangle with vertices 0, 1 and 3
        """
        self.origin_x, self.origin_y = (float(origin[0]), float(origin[1]))
        self.size_x, self.size_y = (float(size[0]), float(size[1]))
        self.rotation = float(rotation)
        self.triangle = bool(triangle)

        angle = np.deg2rad(self.rotation)
        self._cos = float(np.cos(angle))
        self._sin = float(np.sin(angle))

    @property
    def origin(self):
        return (self.origin_x, self.origin_y)

    @property
    def size(self):
        return (self.size_x, self.size_y)

    def _to_module(self, px, py):
        """Rotate a pixel-frame offset and place it at the pixel origin"""
        x = self.origin_x + px * self._cos - py * self._sin
        y = self.origin_y + px * self._sin + py * self._cos
        return (x, y)

    def vertex(self, n):
        """
        Returns vertex *n* (taken modulo 4) in module coordinates.

        0 is the origin, 1 = origin + (size_x, 0), 2 = origin + size,
        3 = origin + (0, size_y), all rotated around the origin.
        """
        n = n % 4
        offsets = ((0.0, 0.0), (self.size_x, 0.0),
                   (self.size_x, self.size_y), (0.0, self.size_y))
        return self._to_module(*offsets[n])

    def vertices(self):
        """Vertices that define the pixel outline (3 for a triangle)"""
        if self.triangle:
            return [self.vertex(0), self.vertex(1), self.vertex(3)]
        return [self.vertex(n) for n in range(4)]

    def center(self):
        # Triangle centre sits a quarter along the 0 -> 2 diagonal, inside the triangle
        fraction = 0.25 if self.triangle else 0.5
        return self._to_module(fraction * self.size_x, fraction * self.size_y)

    def to_pixel_coordinates(self, x, y):
        """Inverse placement: module coordinates to the unrotated pixel frame"""
        dx = np.subtract(x, self.origin_x)
        dy = np.subtract(y, self.origin_y)
        px = dx * self._cos + dy * self._sin
        py = -dx * self._sin + dy * self._cos
        return (px, py)

    def contains(self, x, y):
        """
        Tests if module-coordinate point(s) fall inside the pixel. Works on
        scalars and on numpy arrays. Pixel boundaries are inclusive.
        """
        px, py = self.to_pixel_coordinates(x, y)
        # Rounding slack for points lying exactly on a rotated boundary
        eps = 1e-9 * max(self.size_x, self.size_y, 1.0)
        inside = ((px >= -eps) & (px <= self.size_x + eps) &
                  (py >= -eps) & (py <= self.size_y + eps))
        if self.triangle:
            inside = inside & (py <= self.size_y * (1.0 - px / self.size_x) + eps)
        return inside

    def __repr__(self):
        shape = "triangle" if self.triangle else "rectangle"
        return (f"ReadoutPixel({shape}, origin=({self.origin_x}, {self.origin_y}), "
                f"size=({self.size_x}, {self.size_y}), rotation={self.rotation})")
