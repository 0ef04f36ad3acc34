"""
Synthesis Engines
=================

Contracts for the two external inference calls, plus deterministic mocks.

    ConceptExtractor: JPEG capture -> short literal description
    ImageGenerator:   prompt -> encoded image bytes

The reveal controller consumes ONLY these protocols. Backends are
pluggable black boxes selected by configuration.

Design Rules:
    - Extractors return raw text; empty-text fallback is the caller's job
    - Empty generator output means "no image data" and counts as failure
    - Mocks make no network calls and are reproducible
"""

import asyncio
import logging
from typing import Optional, Protocol

import cv2
import numpy as np


logger = logging.getLogger(__name__)


CONCEPT_INSTRUCTION = (
    "Describe the main subject in this image in exactly 3 to 6 words. "
    "Focus on raw physical description. Do not use punctuation."
)

STYLE_SUFFIX = ", full color photography, vivid, detailed"

FALLBACK_CONCEPT = "Unidentified object"


class ConceptExtractionError(Exception):
    """Raised when the concept extraction call fails."""
    pass


class ImageGenerationError(Exception):
    """Raised when image generation fails or returns no image data."""
    pass


def build_image_prompt(concept: str, style_suffix: str = STYLE_SUFFIX) -> str:
    """Image generation prompt for a concept."""
    return f"{concept}{style_suffix}"


class ConceptExtractor(Protocol):
    """Protocol for concept extraction backends."""

    async def extract_concept(self, jpeg_bytes: bytes) -> str:
        """
        Describe the captured subject.

        Args:
            jpeg_bytes: JPEG encoded capture

        Returns:
            Response text, possibly empty

        Raises:
            ConceptExtractionError: On any backend failure
        """
        ...


class ImageGenerator(Protocol):
    """Protocol for image generation backends."""

    async def generate_image(self, prompt: str) -> bytes:
        """
        Generate one image for a prompt.

        Args:
            prompt: Text prompt

        Returns:
            Encoded image bytes, empty if the backend returned no image

        Raises:
            ImageGenerationError: On any backend failure
        """
        ...


class MockConceptExtractor:
    """
    Deterministic concept extractor for testing and offline demos.

    Attributes:
        concept: Text returned for every call
        latency: Simulated call duration in seconds
        fail: Raise ConceptExtractionError instead of answering
    """

    def __init__(
        self,
        concept: str = "pale ceramic coffee mug",
        latency: float = 0.0,
        fail: bool = False,
    ) -> None:
        self.concept = concept
        self.latency = latency
        self.fail = fail
        self.call_count = 0
        self.last_request: Optional[bytes] = None

        logger.info(
            f"MockConceptExtractor initialized: concept='{concept}', "
            f"latency={latency}s, fail={fail}"
        )

    async def extract_concept(self, jpeg_bytes: bytes) -> str:
        self.call_count += 1
        self.last_request = jpeg_bytes
        if self.latency > 0:
            await asyncio.sleep(self.latency)
        if self.fail:
            raise ConceptExtractionError("Mock concept extraction failure")
        return self.concept


class MockImageGenerator:
    """
    Deterministic image generator for testing and offline demos.

    Produces a smooth color gradient whose hue depends on the prompt
    length, encoded as PNG.

    Attributes:
        size: Side length of generated images
        latency: Simulated call duration in seconds
        fail: Raise ImageGenerationError instead of answering
        empty: Return no image data
    """

    def __init__(
        self,
        size: int = 256,
        latency: float = 0.0,
        fail: bool = False,
        empty: bool = False,
    ) -> None:
        self.size = size
        self.latency = latency
        self.fail = fail
        self.empty = empty
        self.call_count = 0
        self.last_prompt: Optional[str] = None

        logger.info(
            f"MockImageGenerator initialized: size={size}, "
            f"latency={latency}s, fail={fail}, empty={empty}"
        )

    async def generate_image(self, prompt: str) -> bytes:
        self.call_count += 1
        self.last_prompt = prompt
        if self.latency > 0:
            await asyncio.sleep(self.latency)
        if self.fail:
            raise ImageGenerationError("Mock image generation failure")
        if self.empty:
            return b""
        return render_gradient_png(self.size, seed=len(prompt))


def render_gradient_png(size: int, seed: int = 0) -> bytes:
    """
    Encode a diagonal RGB gradient as PNG.

    Args:
        size: Side length in pixels
        seed: Shifts the color phase

    Returns:
        PNG bytes
    """
    ramp = np.linspace(0.0, 1.0, size)
    xx, yy = np.meshgrid(ramp, ramp)
    phase = (seed % 16) / 16.0

    bgr = np.empty((size, size, 3), dtype=np.uint8)
    bgr[..., 0] = np.rint(255 * yy).astype(np.uint8)
    bgr[..., 1] = np.rint(255 * ((xx + phase) % 1.0)).astype(np.uint8)
    bgr[..., 2] = np.rint(255 * (1.0 - xx * yy)).astype(np.uint8)

    ok, buf = cv2.imencode(".png", bgr)
    if not ok:
        raise ImageGenerationError("Failed to encode mock image")
    return buf.tobytes()
