"""
Test Configuration
==================

Pytest fixtures and test configuration for SynthesisReveal.
"""

import numpy as np
import pytest


@pytest.fixture
def rng():
    """Provide a seeded random generator."""
    return np.random.default_rng(1234)


@pytest.fixture
def make_frame():
    """Build a solid square Frame of a given size and RGB value."""
    from synthesis_reveal.render.frame import Frame

    def _make(size: int = 30, rgb=(0, 0, 0)) -> Frame:
        return Frame.solid(size, rgba=(rgb[0], rgb[1], rgb[2], 255))

    return _make


@pytest.fixture
def gradient_frame():
    """Provide a 48x48 frame with a horizontal brightness ramp."""
    from synthesis_reveal.render.frame import Frame

    ramp = np.linspace(0, 255, 48).round().astype(np.uint8)
    pixels = np.empty((48, 48, 4), dtype=np.uint8)
    pixels[..., 0] = ramp[None, :]
    pixels[..., 1] = ramp[None, :]
    pixels[..., 2] = ramp[None, :]
    pixels[..., 3] = 255
    return Frame(pixels)


@pytest.fixture
def sample_jpeg():
    """Provide a 120x80 JPEG with a bright square in the middle."""
    import cv2

    bgr = np.full((80, 120, 3), 20, dtype=np.uint8)
    bgr[20:60, 40:80] = 230
    ok, buf = cv2.imencode(".jpg", bgr)
    assert ok
    return buf.tobytes()


@pytest.fixture
def make_controller():
    """
    Build a RevealController wired to mock backends.

    Runs animations with no delay between frames and a short denoise
    sequence unless overridden.
    """
    from synthesis_reveal.render.stipple import StippleTransform
    from synthesis_reveal.reveal.controller import RevealController
    from synthesis_reveal.synthesis.engine import MockConceptExtractor, MockImageGenerator

    def _make(
        extractor=None,
        generator=None,
        total_steps: int = 90,
        display_size: int = 64,
        frame_interval: float = 0.0,
    ) -> RevealController:
        return RevealController(
            extractor or MockConceptExtractor(),
            generator or MockImageGenerator(size=64),
            rng=np.random.default_rng(7),
            stipple=StippleTransform(),
            frame_interval=frame_interval,
            grid_resolution=16,
            display_size=display_size,
            total_steps=total_steps,
        )

    return _make
