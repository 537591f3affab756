"""
Pixel Converter - raw camera buffer to dense RGB

Supported inputs (format inferred from buffer length):
- RGB24: width*height*3 bytes, passed through unchanged
- YUYV 4:2:2: width*height*2 bytes, groups of (Y0, U, Y1, V) decode to two
  pixels sharing the same chroma
"""

import logging
from typing import Union

import numpy as np

from core.errors import BufferMismatchError
from core.pose_types import PixelFormat, RawFrame, RgbImage

logger = logging.getLogger(__name__)

BufferLike = Union[bytes, bytearray, memoryview]

# BT.601 full-range coefficients
_KR_V = np.float32(1.402)
_KG_U = np.float32(0.344136)
_KG_V = np.float32(0.714136)
_KB_U = np.float32(1.772)
_CHROMA_OFFSET = np.float32(128.0)


def convert(data: BufferLike, width: int, height: int) -> RgbImage:
    """
    Convert a raw frame buffer to an RGB image.

    Args:
        data: Raw bytes as captured
        width: Frame width in pixels
        height: Frame height in pixels

    Returns:
        Newly allocated RgbImage

    Raises:
        BufferMismatchError: If the length matches neither RGB24 nor YUYV
    """
    frame = RawFrame(data=bytes(data), width=int(width), height=int(height))
    pixel_format = frame.format

    if pixel_format is PixelFormat.RGB24:
        pixels = np.frombuffer(frame.data, dtype=np.uint8).reshape(frame.height, frame.width, 3).copy()
        return RgbImage(pixels=pixels, width=frame.width, height=frame.height)

    if pixel_format is PixelFormat.YUYV:
        return RgbImage(
            pixels=yuyv_to_rgb(frame.data, frame.width, frame.height),
            width=frame.width,
            height=frame.height,
        )

    raise BufferMismatchError(frame.width, frame.height, len(frame.data))


def convert_frame(frame: RawFrame) -> RgbImage:
    """Convert a RawFrame (see convert())"""
    return convert(frame.data, frame.width, frame.height)


def yuyv_to_rgb(data: bytes, width: int, height: int) -> np.ndarray:
    """
    Decode a YUYV 4:2:2 buffer.

    Channels are computed in float32, clamped to [0, 255] and truncated.
    An odd pixel count leaves a trailing (Y, U) pair; its V is taken as
    neutral (128).

    Returns:
        (height, width, 3) uint8 array
    """
    pixel_count = width * height
    raw = np.frombuffer(data, dtype=np.uint8)

    if pixel_count % 2:
        raw = np.concatenate([raw, np.array([0, 128], dtype=np.uint8)])

    groups = raw.reshape(-1, 4).astype(np.float32)
    y0 = groups[:, 0]
    u = groups[:, 1] - _CHROMA_OFFSET
    y1 = groups[:, 2]
    v = groups[:, 3] - _CHROMA_OFFSET

    # (group, pixel-in-pair)
    y = np.stack([y0, y1], axis=1)
    u = u[:, None]
    v = v[:, None]

    r = y + _KR_V * v
    g = y - _KG_U * u - _KG_V * v
    b = y + _KB_U * u

    rgb = np.stack([r, g, b], axis=-1)
    rgb = np.clip(rgb, 0.0, 255.0).astype(np.uint8)
    return rgb.reshape(-1, 3)[:pixel_count].reshape(height, width, 3)
