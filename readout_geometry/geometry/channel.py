import numpy as np

from readout_geometry.geometry.pixel import ReadoutPixel


class ReadoutChannel:
    """
    A readout channel: the set of pixels read out by one electronics channel.

    Pixel index equals the order in which pixels were added.
    """

    def __init__(self, daq_id=-1, readout_id=-1, pixels=None):
        self.daq_id = daq_id
        self.readout_id = readout_id
        self.pixels = []
        for pixel in pixels or []:
            self.add_pixel(pixel)

    def add_pixel(self, pixel: ReadoutPixel) -> int:
        """Appends a pixel and returns its index"""
        self.pixels.append(pixel)
        return len(self.pixels) - 1

    @property
    def number_of_pixels(self):
        return len(self.pixels)

    def get_pixel(self, index) -> ReadoutPixel:
        if index < 0 or index >= len(self.pixels):
            raise IndexError(f"Pixel index {index} out of range (channel has {len(self.pixels)} pixels)")
        return self.pixels[index]

    def contains(self, x, y):
        """
        Tests if module-coordinate point(s) lie in any of the pixels. Works on
        scalars and on numpy arrays, like ReadoutPixel.contains.
        """
        inside = np.zeros(np.broadcast(x, y).shape, dtype=bool)
        for pixel in self.pixels:
            inside = np.logical_or(inside, pixel.contains(x, y))
        return inside

    def __len__(self):
        return len(self.pixels)

    def __iter__(self):
        return iter(self.pixels)

    def __repr__(self):
        return f"ReadoutChannel(readout_id={self.readout_id}, daq_id={self.daq_id}, pixels={len(self.pixels)})"
