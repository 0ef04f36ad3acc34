"""
Image Codec
===========

Dedicated module for encoding and decoding images with OpenCV.

Design Rules:
    - This is the ONLY place in the codebase that encodes or decodes images
    - Decoded images are RGBA uint8
    - Fails fast on corrupt data with ImageDecodeError
"""

import base64
import binascii
import logging

import cv2
import numpy as np

from synthesis_reveal.render.frame import LOW_RES_SIZE, Frame


logger = logging.getLogger(__name__)


class ImageDecodeError(Exception):
    """Raised when image decoding fails."""
    pass


def decode_base64(data: str) -> bytes:
    """
    Decode a base64 string, accepting an optional data URL prefix.

    Raises:
        ImageDecodeError: If the payload is not valid base64
    """
    if data.startswith("data:"):
        _, _, data = data.partition(",")
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"Base64 decode failed: {e}")


def decode_rgba(image_bytes: bytes) -> np.ndarray:
    """
    Decode encoded image bytes (JPEG, PNG, ...) to an RGBA array.

    Args:
        image_bytes: Encoded image

    Returns:
        Array (H, W, 4), dtype uint8

    Raises:
        ImageDecodeError: If decoding fails or the image is invalid
    """
    if not image_bytes:
        raise ImageDecodeError("Empty image data")

    nparr = np.frombuffer(image_bytes, np.uint8)
    bgr = cv2.imdecode(nparr, cv2.IMREAD_COLOR)

    if bgr is None:
        raise ImageDecodeError("cv2.imdecode returned None")

    if bgr.ndim != 3 or bgr.shape[2] != 3:
        raise ImageDecodeError(f"Invalid image shape: {bgr.shape}")

    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGBA)


def center_square(rgba: np.ndarray) -> Frame:
    """
    Crop the centered square of side min(height, width).

    Raises:
        ValueError: If either dimension is zero
    """
    height, width = rgba.shape[:2]
    size = min(height, width)
    if size == 0:
        raise ValueError(f"Cannot crop empty image {rgba.shape}")

    top = (height - size) // 2
    left = (width - size) // 2
    return Frame(np.ascontiguousarray(rgba[top:top + size, left:left + size]))


def decode_target_grid(image_bytes: bytes, resolution: int = LOW_RES_SIZE) -> Frame:
    """
    Decode a generated image and downsample it to the working grid.

    The whole image is squeezed to resolution x resolution (no crop),
    with area averaging. Alpha is forced opaque.

    Raises:
        ImageDecodeError: If decoding fails
    """
    rgba = decode_rgba(image_bytes)
    logger.debug(
        f"Decoded target image {rgba.shape[1]}x{rgba.shape[0]} -> {resolution}x{resolution}"
    )
    small = cv2.resize(rgba, (resolution, resolution), interpolation=cv2.INTER_AREA)
    small[..., 3] = 255
    return Frame(small)


def encode_jpeg(frame: Frame, quality: int = 80) -> bytes:
    """
    Encode a frame as JPEG (alpha dropped).

    Args:
        frame: Frame to encode
        quality: JPEG quality 0-100

    Returns:
        JPEG bytes
    """
    bgr = cv2.cvtColor(frame.pixels.copy(), cv2.COLOR_RGBA2BGR)
    ok, buf = cv2.imencode(".jpg", bgr, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
    if not ok:
        raise RuntimeError("cv2.imencode failed for JPEG")
    return buf.tobytes()


def encode_png(frame: Frame) -> bytes:
    """Encode a frame as lossless RGBA PNG."""
    bgra = cv2.cvtColor(frame.pixels.copy(), cv2.COLOR_RGBA2BGRA)
    ok, buf = cv2.imencode(".png", bgra)
    if not ok:
        raise RuntimeError("cv2.imencode failed for PNG")
    return buf.tobytes()
