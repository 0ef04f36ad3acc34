"""
Capture Module
==============

Image acquisition and codec layer.

Components:
    - CaptureSource: Protocol for anything that yields a square frame
    - StillImageSource: Source backed by the last pushed image
    - codec: JPEG/PNG encoding and target grid decoding (OpenCV)
"""

from synthesis_reveal.capture.codec import (
    ImageDecodeError,
    center_square,
    decode_base64,
    decode_rgba,
    decode_target_grid,
    encode_jpeg,
    encode_png,
)
from synthesis_reveal.capture.source import (
    CaptureNotReady,
    CaptureSource,
    StillImageSource,
)


__all__ = [
    "ImageDecodeError",
    "center_square",
    "decode_base64",
    "decode_rgba",
    "decode_target_grid",
    "encode_jpeg",
    "encode_png",
    "CaptureNotReady",
    "CaptureSource",
    "StillImageSource",
]
