"""
Readout mapping: a uniform grid of nodes laid over a module that caches,
for every node, one (channel, pixel) pair.

Finding the pixel that contains a point then costs one grid lookup and a
containment test, with a bounded spiral walk over neighbouring nodes when
the cached pixel is not the right one.

The grid is built in two passes:
  1. every pixel centre labels the node it falls in. A node can hold a
     single pixel, so when two centres share a node the pixel visited last
     (channel order, then pixel order) keeps it.
  2. every node still unset takes the first pixel, in definition order,
     that contains the node centre. Nodes over dead areas stay unset.
"""

import logging
import math
from typing import Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

NOT_SET = -1

# Seeding policy when two pixel centres fall in the same node
NODE_ASSIGNMENT_POLICY = "last-writer-wins"

# The spiral search gives up after visiting this fraction of all nodes
SEARCH_FRACTION = 0.1

# Spiral leg directions, in order: +X, -Y, -X, +Y
SPIRAL_DIRECTIONS = ((1, 0), (0, -1), (-1, 0), (0, 1))


def default_node_count(total_pixels: int) -> int:
    """Nodes per axis used when none is requested: round(2*sqrt(pixels))"""
    return max(1, int(round(2 * math.sqrt(total_pixels))))


class ReadoutMapping:
    """Node grid over a module area, in module coordinates"""

    def __init__(self, nodes_x: int, nodes_y: int, size_x: float, size_y: float):
        if nodes_x < 1 or nodes_y < 1:
            raise ValueError(f"Mapping needs at least one node per axis, got ({nodes_x}, {nodes_y})")
        if size_x <= 0 or size_y <= 0:
            raise ValueError(f"Mapping needs a positive module size, got ({size_x}, {size_y})")

        self.nodes_x = int(nodes_x)
        self.nodes_y = int(nodes_y)
        self.size_x = float(size_x)
        self.size_y = float(size_y)
        self.cell_width = self.size_x / self.nodes_x
        self.cell_height = self.size_y / self.nodes_y

        self.channel_table = np.full((self.nodes_x, self.nodes_y), NOT_SET, dtype=np.int32)
        self.pixel_table = np.full((self.nodes_x, self.nodes_y), NOT_SET, dtype=np.int32)

        self.overwritten_nodes = 0
        self.all_nodes_set = False

    # ------------------------------------------------------------------
    # Node arithmetic
    # ------------------------------------------------------------------
    @property
    def total_nodes(self) -> int:
        return self.nodes_x * self.nodes_y

    def get_node_x(self, x: float) -> int:
        node = int(math.floor(x / self.cell_width))
        return min(max(node, 0), self.nodes_x - 1)

    def get_node_y(self, y: float) -> int:
        node = int(math.floor(y / self.cell_height))
        return min(max(node, 0), self.nodes_y - 1)

    def node_center(self, node_x: int, node_y: int) -> Tuple[float, float]:
        return ((node_x + 0.5) * self.cell_width, (node_y + 0.5) * self.cell_height)

    def node_centers(self):
        """Arrays (nodes_x, nodes_y) of node centre coordinates"""
        xs = (np.arange(self.nodes_x) + 0.5) * self.cell_width
        ys = (np.arange(self.nodes_y) + 0.5) * self.cell_height
        return np.meshgrid(xs, ys, indexing='ij')

    # ------------------------------------------------------------------
    # Node table access
    # ------------------------------------------------------------------
    def get_channel_by_node(self, node_x: int, node_y: int) -> int:
        return int(self.channel_table[node_x, node_y])

    def get_pixel_by_node(self, node_x: int, node_y: int) -> int:
        return int(self.pixel_table[node_x, node_y])

    def is_node_set(self, node_x: int, node_y: int) -> bool:
        return self.channel_table[node_x, node_y] != NOT_SET

    def set_node(self, node_x: int, node_y: int, channel: int, pixel: int) -> bool:
        """
        Labels a node. Returns True if a previous label was overwritten.
        """
        overwritten = self.is_node_set(node_x, node_y)
        self.channel_table[node_x, node_y] = channel
        self.pixel_table[node_x, node_y] = pixel
        return overwritten

    @property
    def number_of_unset_nodes(self) -> int:
        return int(np.count_nonzero(self.channel_table == NOT_SET))

    def nodes_for_pixel(self, channel: int, pixel: int) -> np.ndarray:
        """(n, 2) array of the nodes labelled with (channel, pixel)"""
        mask = (self.channel_table == channel) & (self.pixel_table == pixel)
        return np.argwhere(mask)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def build(cls, module, nodes: Optional[int] = None) -> "ReadoutMapping":
        """
        Builds the mapping of *module*.

        Parameters:
        -----------
        module : ReadoutModule
            Module whose channels and pixels are mapped
        nodes : int, optional
            Nodes per axis; round(2*sqrt(total pixels)) if not given or 0

        Returns:
        --------
        ReadoutMapping : the built grid; check all_nodes_set for gaps
        """
        total_pixels = module.total_pixels
        if total_pixels == 0:
            raise ValueError(f"Module '{module.name}' has no pixels to map")
        if not nodes:
            nodes = default_node_count(total_pixels)

        mapping = cls(nodes, nodes, module.size_x, module.size_y)
        mapping._seed_from_pixel_centers(module)
        mapping._fill_unset_nodes(module)

        unset = mapping.number_of_unset_nodes
        mapping.all_nodes_set = unset == 0
        if mapping.all_nodes_set:
            logger.debug("Mapping of module '%s' complete: %dx%d nodes, %d pixels",
                         module.name, mapping.nodes_x, mapping.nodes_y, total_pixels)
        else:
            logger.warning("Mapping of module '%s' is incomplete: %d of %d nodes not associated to any pixel",
                           module.name, unset, mapping.total_nodes)
        return mapping

    def _seed_from_pixel_centers(self, module) -> None:
        for ch, px, pixel in module.iter_pixels():
            center_x, center_y = pixel.center()
            node_x = self.get_node_x(center_x)
            node_y = self.get_node_y(center_y)
            previous = (self.get_channel_by_node(node_x, node_y), self.get_pixel_by_node(node_x, node_y))
            if self.set_node(node_x, node_y, ch, px):
                self.overwritten_nodes += 1
                logger.debug("Node (%d, %d) of module '%s' reassigned from %s to %s",
                             node_x, node_y, module.name, previous, (ch, px))

        if self.overwritten_nodes:
            logger.info("Module '%s': %d mapping nodes hold more than one pixel centre (%s)",
                        module.name, self.overwritten_nodes, NODE_ASSIGNMENT_POLICY)

    def _fill_unset_nodes(self, module) -> None:
        unset = self.channel_table == NOT_SET
        if not unset.any():
            return
        centers_x, centers_y = self.node_centers()

        # Iterating pixels in definition order gives each node its first containing pixel
        for ch, px, pixel in module.iter_pixels():
            hits = unset & pixel.contains(centers_x, centers_y)
            if hits.any():
                self.channel_table[hits] = ch
                self.pixel_table[hits] = px
                unset &= ~hits
                if not unset.any():
                    break

    # ------------------------------------------------------------------
    # Point location
    # ------------------------------------------------------------------
    def find_pixel(self, module, local_x: float, local_y: float) -> Optional[Tuple[int, int]]:
        """
        Finds the (channel, pixel) of *module* containing a point given in
        module coordinates.

        Starts at the node of the point and walks a square spiral
        (+X, -Y, -X, +Y legs, lengths 1, 1, 2, 2, 3, 3, ...) with indices
        wrapped around the grid. Gives up once more than SEARCH_FRACTION
        of the nodes have been visited.
        """
        node_x = self.get_node_x(local_x)
        node_y = self.get_node_y(local_y)

        channel = self.get_channel_by_node(node_x, node_y)
        pixel = self.get_pixel_by_node(node_x, node_y)
        if module.pixel_contains_local(channel, pixel, local_x, local_y):
            return (channel, pixel)

        max_visits = self.total_nodes * SEARCH_FRACTION
        visited = 0
        direction = 0
        leg_length = 1
        leg_steps = 0

        while True:
            step_x, step_y = SPIRAL_DIRECTIONS[direction]
            node_x = (node_x + step_x) % self.nodes_x
            node_y = (node_y + step_y) % self.nodes_y

            visited += 1
            if visited > max_visits:
                self._report_search_failure(module, local_x, local_y)
                return None

            channel = self.get_channel_by_node(node_x, node_y)
            pixel = self.get_pixel_by_node(node_x, node_y)
            if module.pixel_contains_local(channel, pixel, local_x, local_y):
                return (channel, pixel)

            leg_steps += 1
            if leg_steps == leg_length:
                leg_steps = 0
                direction = (direction + 1) % 4
                # Legs grow after each -Y and each +Y leg
                if direction in (0, 2):
                    leg_length += 1

    def _report_search_failure(self, module, local_x, local_y) -> None:
        logger.warning("No channel found in module '%s' for position (%g, %g)",
                       module.name, local_x, local_y)
        if not logger.isEnabledFor(logging.DEBUG):
            return
        for ch, px, pixel in module.iter_pixels():
            if pixel.contains(local_x, local_y):
                logger.debug("(%g, %g) should be in channel %d pixel %d, labelled nodes %s",
                             local_x, local_y, ch, px, self.nodes_for_pixel(ch, px).tolist())

    def __repr__(self):
        return (f"ReadoutMapping(nodes=({self.nodes_x}, {self.nodes_y}), "
                f"cell=({self.cell_width:g}, {self.cell_height:g}), "
                f"all_nodes_set={self.all_nodes_set})")
