"""
Progressive Denoiser
====================

Simulated diffusion reveal: pure noise -> low resolution target image.

Schedule (step s = 1..N, progress t = s / N):
    block_size   = clamp(2 ** floor((1 - t) * 6), 1, 32)
    noise_scale  = (1 - t) ** 1.2
    signal_scale = t ** 0.5

Per pixel and channel c:
    target_c = target pixel at the top-left corner of the pixel's tile
    s_c      = 128 + (target_c - 128) * signal_scale
    n_c      = (uniform() - 0.5) * 510 * noise_scale
    out_c    = clamp(s_c + n_c, 0, 255)

Noise fades slightly faster than linear while the signal rises quickly
and levels off, so the image emerges early and grain lingers. Large
tiles early on give a mosaic that sharpens as the tiles shrink.

After the last step one extra frame is emitted: the target copied
verbatim, so the reveal converges exactly.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterator, Optional

import numpy as np

from synthesis_reveal.render.frame import (
    DISPLAY_SIZE,
    Frame,
    upscale_nearest,
)


logger = logging.getLogger(__name__)


TOTAL_STEPS = 90
MAX_BLOCK_SIZE = 32
BLOCK_OCTAVES = 6
NOISE_EXPONENT = 1.2
SIGNAL_EXPONENT = 0.5
NEUTRAL_GRAY = 128.0
NOISE_SPAN = 510.0


def block_size(progress: float) -> int:
    """Tile side length at a given progress in [0, 1]."""
    size = 2 ** math.floor((1.0 - progress) * BLOCK_OCTAVES)
    return max(1, min(MAX_BLOCK_SIZE, size))


def noise_scale(progress: float) -> float:
    """Noise amplitude at a given progress in [0, 1]."""
    return (1.0 - progress) ** NOISE_EXPONENT


def signal_scale(progress: float) -> float:
    """Weight of the target against neutral gray at a given progress."""
    return progress ** SIGNAL_EXPONENT


@dataclass(frozen=True, slots=True)
class AnimationStep:
    """
    Schedule values for one denoising frame.

    Attributes:
        step_index: 1-based step number
        progress: step_index / total_steps
        block_size: Tile side length in pixels
        noise_scale: Noise amplitude in [0, 1]
        signal_scale: Target weight in [0, 1]
    """

    step_index: int
    progress: float
    block_size: int
    noise_scale: float
    signal_scale: float

    @classmethod
    def at(cls, step_index: int, total_steps: int = TOTAL_STEPS) -> "AnimationStep":
        """Compute the schedule for a step."""
        if not 1 <= step_index <= total_steps:
            raise ValueError(
                f"step_index must be in [1, {total_steps}], got {step_index}"
            )
        progress = step_index / total_steps
        return cls(
            step_index=step_index,
            progress=progress,
            block_size=block_size(progress),
            noise_scale=noise_scale(progress),
            signal_scale=signal_scale(progress),
        )


def tile_samples(target: Frame, size: int) -> np.ndarray:
    """
    Replace every pixel by the pixel at its tile's top-left corner.

    Returns:
        Float RGB array (N, N, 3)
    """
    index = np.arange(target.size)
    corner = index - index % size
    rgb = target.pixels[..., :3].astype(np.float64)
    return rgb[corner][:, corner]


def biased_target(samples: np.ndarray, weight: float) -> np.ndarray:
    """Pull target samples toward neutral gray as the weight drops."""
    return NEUTRAL_GRAY + (samples - NEUTRAL_GRAY) * weight


def denoise_frame(
    target: Frame,
    step: AnimationStep,
    rng: np.random.Generator,
) -> Frame:
    """
    Render one intermediate denoising frame at working resolution.

    Args:
        target: Target grid
        step: Schedule values for this frame
        rng: Random source

    Returns:
        Frame of the target's size with alpha 255
    """
    signal = biased_target(tile_samples(target, step.block_size), step.signal_scale)
    noise = (rng.random(signal.shape) - 0.5) * NOISE_SPAN * step.noise_scale

    rgb = np.rint(np.clip(signal + noise, 0.0, 255.0)).astype(np.uint8)

    pixels = np.empty(target.pixels.shape, dtype=np.uint8)
    pixels[..., :3] = rgb
    pixels[..., 3] = 255
    return Frame(pixels)


class ProgressiveDenoiser:
    """
    Finite reveal sequence for one target.

    Yields `total_steps` intermediate frames followed by one terminal
    frame equal to the target, then stops for good. A new target needs
    a new denoiser.

    Attributes:
        target: Target grid
        total_steps: Number of intermediate frames
        display_size: Side length of emitted frames
    """

    def __init__(
        self,
        target: Frame,
        rng: np.random.Generator,
        total_steps: int = TOTAL_STEPS,
        display_size: int = DISPLAY_SIZE,
    ) -> None:
        if total_steps < 1:
            raise ValueError("total_steps must be >= 1")
        self.target = target
        self.rng = rng
        self.total_steps = total_steps
        self.display_size = display_size

        self._step = 0
        self._finished = False
        self._last_grid: Optional[Frame] = None

    def __iter__(self) -> Iterator[Frame]:
        return self

    def __next__(self) -> Frame:
        if self._finished:
            raise StopIteration

        if self._step < self.total_steps:
            self._step += 1
            step = AnimationStep.at(self._step, self.total_steps)
            grid = denoise_frame(self.target, step, self.rng)
        else:
            # Terminal frame: exact copy of the target
            self._finished = True
            grid = self.target
            logger.debug("Denoiser reached terminal frame")

        self._last_grid = grid
        return upscale_nearest(grid, self.display_size)

    @property
    def step_index(self) -> int:
        """Index of the last intermediate step rendered (0 before start)."""
        return self._step

    @property
    def last_grid(self) -> Optional[Frame]:
        """Working resolution version of the last emitted frame."""
        return self._last_grid

    @property
    def finished(self) -> bool:
        """Whether the terminal frame has been emitted."""
        return self._finished
