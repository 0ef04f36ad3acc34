"""
Stipple Transform
=================

Luminance-weighted stochastic point cloud ("light capture") rendering.

The captured frame is sampled on a sparse regular grid. Each sample keeps
a dot with probability brightness ** 2.5, so dim regions stay almost empty
and only bright structure is densely stippled.

Pipeline:
    1. Sample grid every `stride` pixels, starting at (0, 0)
    2. brightness = (0.299 R + 0.587 G + 0.114 B) / 255
    3. keep sample if uniform() < brightness ** exponent
    4. jitter kept samples by up to +/- `jitter` px per axis
    5. rasterize dots as translucent white squares over black

Design Rules:
    - One-shot and synchronous, no incremental state
    - Randomness comes only from the Generator passed in
"""

import logging
from typing import Optional

import numpy as np

from synthesis_reveal.render.frame import Frame


logger = logging.getLogger(__name__)


# Rec. 601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


def luminance(rgb: np.ndarray) -> np.ndarray:
    """
    Perceptual brightness in [0, 1].

    Args:
        rgb: Array (..., 3) of channel values in [0, 255]

    Returns:
        Array (...) of brightness values
    """
    return (np.asarray(rgb, dtype=np.float64) @ LUMA_WEIGHTS) / 255.0


def inclusion_probability(brightness, exponent: float = 2.5):
    """Probability that a sample of the given brightness receives a dot."""
    return np.power(np.clip(brightness, 0.0, 1.0), exponent)


def sample_points(
    frame: Frame,
    rng: np.random.Generator,
    stride: int = 3,
    exponent: float = 2.5,
    jitter: float = 1.0,
) -> np.ndarray:
    """
    Choose dot positions for a frame.

    Args:
        frame: Captured frame
        rng: Random source
        stride: Grid spacing in pixels
        exponent: Brightness response exponent
        jitter: Maximum offset per axis in pixels

    Returns:
        Array (K, 2) of dot origins as (x, y) floats
    """
    grid = frame.pixels[::stride, ::stride, :3]
    probability = inclusion_probability(luminance(grid), exponent)

    draws = rng.random(probability.shape)
    gy, gx = np.nonzero(draws < probability)

    origins = np.stack([gx * stride, gy * stride], axis=1).astype(np.float64)
    offsets = (rng.random(origins.shape) - 0.5) * 2.0 * jitter
    return origins + offsets


def rasterize_points(
    points: np.ndarray,
    size: int,
    dot_size: float = 1.2,
    dot_alpha: float = 0.9,
) -> Frame:
    """
    Draw white square dots over a black background.

    Dots cover fractional pixels by area and are composited source-over,
    so overlapping dots accumulate toward white.

    Args:
        points: Array (K, 2) of dot origins (x, y)
        size: Output side length
        dot_size: Dot side length in pixels
        dot_alpha: Dot opacity

    Returns:
        Point cloud frame of the given size
    """
    # Fraction of light passing through all dots, per pixel
    transmittance = np.ones((size, size), dtype=np.float64)

    if len(points):
        x0 = points[:, 0]
        y0 = points[:, 1]
        base_x = np.floor(x0).astype(np.int64)
        base_y = np.floor(y0).astype(np.int64)

        # A dot narrower than 2 px touches at most 3 pixels per axis
        span = int(np.ceil(dot_size)) + 1
        for oy in range(span):
            py = base_y + oy
            cover_y = np.minimum(py + 1, y0 + dot_size) - np.maximum(py, y0)
            for ox in range(span):
                px = base_x + ox
                cover_x = np.minimum(px + 1, x0 + dot_size) - np.maximum(px, x0)

                coverage = np.clip(cover_x, 0.0, 1.0) * np.clip(cover_y, 0.0, 1.0)
                valid = (
                    (coverage > 0)
                    & (px >= 0) & (px < size)
                    & (py >= 0) & (py < size)
                )
                if not valid.any():
                    continue
                np.multiply.at(
                    transmittance,
                    (py[valid], px[valid]),
                    1.0 - dot_alpha * coverage[valid],
                )

    value = np.rint(255.0 * (1.0 - transmittance)).astype(np.uint8)

    pixels = np.empty((size, size, 4), dtype=np.uint8)
    pixels[..., 0] = value
    pixels[..., 1] = value
    pixels[..., 2] = value
    pixels[..., 3] = 255
    return Frame(pixels)


class StippleTransform:
    """
    Captured frame -> point cloud frame.

    Attributes:
        stride: Grid spacing in pixels
        exponent: Brightness response exponent
        dot_size: Dot side length in pixels
        dot_alpha: Dot opacity
        jitter: Maximum dot offset per axis
    """

    def __init__(
        self,
        stride: int = 3,
        exponent: float = 2.5,
        dot_size: float = 1.2,
        dot_alpha: float = 0.9,
        jitter: float = 1.0,
    ) -> None:
        if stride < 1:
            raise ValueError("stride must be >= 1")
        self.stride = stride
        self.exponent = exponent
        self.dot_size = dot_size
        self.dot_alpha = dot_alpha
        self.jitter = jitter

        self._last_dot_count: Optional[int] = None

    def apply(self, frame: Frame, rng: np.random.Generator) -> Frame:
        """
        Render the point cloud for a captured frame.

        Args:
            frame: Captured frame
            rng: Random source

        Returns:
            Point cloud frame of the same size
        """
        points = sample_points(
            frame,
            rng,
            stride=self.stride,
            exponent=self.exponent,
            jitter=self.jitter,
        )
        self._last_dot_count = len(points)

        logger.debug(f"Stippled {frame.size}px capture: {len(points)} dots")

        return rasterize_points(
            points,
            frame.size,
            dot_size=self.dot_size,
            dot_alpha=self.dot_alpha,
        )

    @property
    def last_dot_count(self) -> Optional[int]:
        """Number of dots drawn by the most recent apply()."""
        return self._last_dot_count
