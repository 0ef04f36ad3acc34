"""
Capture Sources
===============

Supply one square CapturedFrame per capture gesture.

A source must be ready (non-zero dimensions) before a capture succeeds.
Readiness is a precondition: sources never wait or retry, they raise
CaptureNotReady and the caller decides what to do.

Design Rules:
    - The frame is the centered square of side min(width, height)
    - No device management (the latest image is pushed in from outside)
"""

from typing import Optional, Protocol

import numpy as np

from synthesis_reveal.capture.codec import center_square, decode_rgba
from synthesis_reveal.render.frame import Frame


class CaptureNotReady(Exception):
    """Raised when a capture is attempted before the source has an image."""
    pass


class CaptureSource(Protocol):
    """
    Protocol for capture sources.

    Implementations expose readiness and return a square RGBA frame.
    """

    @property
    def ready(self) -> bool:
        """Whether read() would succeed."""
        ...

    def read(self) -> Frame:
        """
        Grab the current image as a square frame.

        Raises:
            CaptureNotReady: If the source has no usable image yet
        """
        ...


class StillImageSource:
    """
    Capture source backed by the most recent image pushed into it.

    Example:
        source = StillImageSource.from_bytes(jpeg_bytes)
        frame = source.read()
    """

    def __init__(self, image: Optional[np.ndarray] = None) -> None:
        """
        Initialize still image source.

        Args:
            image: RGBA array (H, W, 4), or None for a not-yet-ready source
        """
        self._image: Optional[np.ndarray] = None
        if image is not None:
            self.update(image)

    @classmethod
    def from_bytes(cls, image_bytes: bytes) -> "StillImageSource":
        """
        Build a source from an encoded image.

        Raises:
            ImageDecodeError: If the bytes cannot be decoded
        """
        return cls(decode_rgba(image_bytes))

    def update(self, image: np.ndarray) -> None:
        """Replace the current image."""
        if image.ndim != 3 or image.shape[2] != 4:
            raise ValueError(f"Expected RGBA image (H, W, 4), got {image.shape}")
        if image.dtype != np.uint8:
            raise ValueError(f"Expected uint8 image, got {image.dtype}")
        self._image = image

    @property
    def ready(self) -> bool:
        """Whether an image with non-zero dimensions is available."""
        return (
            self._image is not None
            and self._image.shape[0] > 0
            and self._image.shape[1] > 0
        )

    @property
    def dimensions(self) -> tuple:
        """(width, height) of the current image, (0, 0) if none."""
        if self._image is None:
            return (0, 0)
        return (self._image.shape[1], self._image.shape[0])

    def read(self) -> Frame:
        """
        Return the centered square crop of the current image.

        Raises:
            CaptureNotReady: If no image with non-zero dimensions is set
        """
        if not self.ready:
            width, height = self.dimensions
            raise CaptureNotReady(f"Source not ready ({width}x{height})")
        return center_square(self._image)
