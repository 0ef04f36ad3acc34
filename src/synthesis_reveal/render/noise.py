"""
Noise Field Renderer
====================

Full-spectrum random color noise shown while the external calls run.

Each frame is a 64x64 grid of independent uniform RGB triples with
opaque alpha, scaled to the display without smoothing.
"""

from typing import Iterator

import numpy as np

from synthesis_reveal.render.frame import (
    DISPLAY_SIZE,
    LOW_RES_SIZE,
    Frame,
    upscale_nearest,
)


def noise_grid(rng: np.random.Generator, resolution: int = LOW_RES_SIZE) -> Frame:
    """
    Generate one low resolution noise frame.

    Args:
        rng: Random source
        resolution: Grid side length

    Returns:
        Frame with uniform random RGB and alpha 255
    """
    pixels = np.empty((resolution, resolution, 4), dtype=np.uint8)
    pixels[..., :3] = rng.integers(0, 256, size=(resolution, resolution, 3), dtype=np.uint8)
    pixels[..., 3] = 255
    return Frame(pixels)


class NoiseFieldRenderer:
    """
    Unbounded lazy sequence of display-ready noise frames.

    The renderer never ends on its own. The animation loop that drives it
    stops pulling frames when it is cancelled.

    Attributes:
        resolution: Working grid side length
        display_size: Side length of emitted frames
    """

    def __init__(
        self,
        rng: np.random.Generator,
        resolution: int = LOW_RES_SIZE,
        display_size: int = DISPLAY_SIZE,
    ) -> None:
        self.rng = rng
        self.resolution = resolution
        self.display_size = display_size
        self._frames_rendered = 0

    def __iter__(self) -> Iterator[Frame]:
        return self

    def __next__(self) -> Frame:
        self._frames_rendered += 1
        return upscale_nearest(noise_grid(self.rng, self.resolution), self.display_size)

    @property
    def frames_rendered(self) -> int:
        """Frames produced so far."""
        return self._frames_rendered
