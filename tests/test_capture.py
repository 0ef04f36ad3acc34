"""
Capture Layer Tests
===================

Tests for the image codec and capture sources.
"""

import base64

import numpy as np
import pytest


class TestCodec:
    """Tests for image encoding and decoding."""

    def test_decode_base64_with_data_url(self):
        """Verify data URL prefixes are stripped."""
        from synthesis_reveal.capture.codec import decode_base64

        payload = base64.b64encode(b"hello").decode()
        assert decode_base64(payload) == b"hello"
        assert decode_base64(f"data:image/jpeg;base64,{payload}") == b"hello"

    def test_decode_base64_rejects_garbage(self):
        """Verify invalid base64 raises ImageDecodeError."""
        from synthesis_reveal.capture.codec import ImageDecodeError, decode_base64

        with pytest.raises(ImageDecodeError):
            decode_base64("not base64 !!!")

    def test_decode_rgba_rejects_bad_bytes(self):
        """Verify empty and corrupt images raise ImageDecodeError."""
        from synthesis_reveal.capture.codec import ImageDecodeError, decode_rgba

        with pytest.raises(ImageDecodeError):
            decode_rgba(b"")
        with pytest.raises(ImageDecodeError):
            decode_rgba(b"definitely not an image")

    def test_decode_rgba_shape(self, sample_jpeg):
        """Verify decoded images are RGBA uint8 with opaque alpha."""
        from synthesis_reveal.capture.codec import decode_rgba

        rgba = decode_rgba(sample_jpeg)
        assert rgba.shape == (80, 120, 4)
        assert rgba.dtype == np.uint8
        assert (rgba[..., 3] == 255).all()

    def test_center_square_crop(self):
        """Verify the centered square of side min(w, h) is kept."""
        from synthesis_reveal.capture.codec import center_square

        rgba = np.zeros((3, 7, 4), dtype=np.uint8)
        rgba[:, 2:5, 0] = 255

        frame = center_square(rgba)
        assert frame.size == 3
        assert (frame.pixels[..., 0] == 255).all()

    def test_center_square_rejects_empty(self):
        """Verify an empty image cannot be cropped."""
        from synthesis_reveal.capture.codec import center_square

        with pytest.raises(ValueError):
            center_square(np.zeros((0, 5, 4), dtype=np.uint8))

    def test_decode_target_grid(self, sample_jpeg):
        """Verify generated images are squeezed to the working grid."""
        from synthesis_reveal.capture.codec import decode_target_grid

        grid = decode_target_grid(sample_jpeg, resolution=16)
        assert grid.size == 16
        assert (grid.pixels[..., 3] == 255).all()
        # Bright square in the middle, dark border
        assert grid.pixels[8, 8, 0] > 150
        assert grid.pixels[0, 0, 0] < 60

    def test_png_is_lossless(self, gradient_frame):
        """Verify PNG encoding preserves every pixel."""
        from synthesis_reveal.capture.codec import center_square, decode_rgba, encode_png

        decoded = center_square(decode_rgba(encode_png(gradient_frame)))
        assert decoded == gradient_frame

    def test_jpeg_quality_changes_size(self, rng):
        """Verify the JPEG quality setting is applied."""
        from synthesis_reveal.capture.codec import encode_jpeg
        from synthesis_reveal.render.noise import noise_grid

        noisy = noise_grid(rng, resolution=64)
        low = encode_jpeg(noisy, quality=10)
        high = encode_jpeg(noisy, quality=95)

        assert low[:2] == b"\xff\xd8"
        assert len(low) < len(high)


class TestStillImageSource:
    """Tests for the still image capture source."""

    def test_empty_source_not_ready(self):
        """Verify an empty source raises CaptureNotReady."""
        from synthesis_reveal.capture.source import CaptureNotReady, StillImageSource

        source = StillImageSource()
        assert not source.ready
        assert source.dimensions == (0, 0)
        with pytest.raises(CaptureNotReady):
            source.read()

    def test_from_bytes_reads_square(self, sample_jpeg):
        """Verify reads return the centered square crop."""
        from synthesis_reveal.capture.source import StillImageSource

        source = StillImageSource.from_bytes(sample_jpeg)
        assert source.ready
        assert source.dimensions == (120, 80)
        assert source.read().size == 80

    def test_zero_sized_image_not_ready(self):
        """Verify a zero-width image does not count as ready."""
        from synthesis_reveal.capture.source import CaptureNotReady, StillImageSource

        source = StillImageSource(np.zeros((10, 0, 4), dtype=np.uint8))
        assert not source.ready
        with pytest.raises(CaptureNotReady):
            source.read()

    def test_update_validates_format(self):
        """Verify only RGBA uint8 images are accepted."""
        from synthesis_reveal.capture.source import StillImageSource

        source = StillImageSource()
        with pytest.raises(ValueError):
            source.update(np.zeros((4, 4, 3), dtype=np.uint8))
        with pytest.raises(ValueError):
            source.update(np.zeros((4, 4, 4), dtype=np.float64))
