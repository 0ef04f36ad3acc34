"""
Frame Data Model
=================

Square RGBA pixel buffer shared by every renderer in the pipeline.

Design Rules:
    - This is the ONLY pixel format passed between render stages
    - Width == height, 4 channels, dtype uint8
    - Immutable: the backing array is made read-only on construction
"""

from dataclasses import dataclass

import cv2
import numpy as np


# Working resolution of the noise and denoise renderers
LOW_RES_SIZE = 64

# Display resolution of the synthesis pane (64 px grid drawn at 10x)
DISPLAY_SIZE = 640


@dataclass(frozen=True, slots=True)
class Frame:
    """
    Square RGBA frame.

    Attributes:
        pixels: Array of shape (N, N, 4), dtype uint8, read-only

    Raises:
        ValueError: If the array is not a square RGBA uint8 buffer
    """

    pixels: np.ndarray

    def __post_init__(self) -> None:
        """Validate invariants and freeze the buffer."""
        pixels = self.pixels
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Frame must be (N, N, 4), got {pixels.shape}")
        if pixels.shape[0] != pixels.shape[1]:
            raise ValueError(f"Frame must be square, got {pixels.shape[:2]}")
        if pixels.shape[0] == 0:
            raise ValueError("Frame must not be empty")
        if pixels.dtype != np.uint8:
            raise ValueError(f"Frame dtype must be uint8, got {pixels.dtype}")

        if pixels.flags.writeable:
            pixels = pixels.copy()
            pixels.flags.writeable = False
            object.__setattr__(self, "pixels", pixels)

    @property
    def size(self) -> int:
        """Side length N."""
        return self.pixels.shape[0]

    @property
    def nbytes(self) -> int:
        """Buffer length, always N*N*4."""
        return self.pixels.nbytes

    def tobytes(self) -> bytes:
        """Raw RGBA bytes in row-major order."""
        return self.pixels.tobytes()

    @classmethod
    def solid(cls, size: int, rgba=(0, 0, 0, 255)) -> "Frame":
        """Frame filled with a single color."""
        pixels = np.empty((size, size, 4), dtype=np.uint8)
        pixels[:] = rgba
        return cls(pixels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Frame):
            return NotImplemented
        return np.array_equal(self.pixels, other.pixels)

    def __hash__(self) -> int:
        return hash(self.pixels.tobytes())

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the full buffer."""
        return f"Frame(size={self.size})"


def upscale_nearest(frame: Frame, size: int = DISPLAY_SIZE) -> Frame:
    """
    Scale a frame to the display size without smoothing.

    Each source pixel becomes a flat square block, which keeps the
    low-resolution grid visible on screen.

    Args:
        frame: Source frame
        size: Target side length

    Returns:
        Upscaled frame
    """
    if frame.size == size:
        return frame

    scaled = cv2.resize(
        frame.pixels.copy(),
        (size, size),
        interpolation=cv2.INTER_NEAREST,
    )
    return Frame(scaled)
