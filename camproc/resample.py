"""Nearest-neighbour scaling of YUV420 frames to RGB, for display."""

from __future__ import annotations

import logging
from typing import Any, NamedTuple

import numpy as np

from .stage import StreamInfo

logger = logging.getLogger(__name__)


class ColourCoefficients(NamedTuple):
    """Luma offset and YUV to RGB matrix entries for one colour space."""

    offset_y: int
    coeff_y: float
    coeff_vr: float
    coeff_ug: float
    coeff_vg: float
    coeff_ub: float


_JPEG = ColourCoefficients(0, 1.0, 1.402, -0.344, -0.714, 1.772)
_SMPTE170M = ColourCoefficients(16, 1.164, 1.596, -0.392, -0.813, 2.017)
_REC709 = ColourCoefficients(16, 1.164, 1.793, -0.213, -0.533, 2.112)


def colour_coefficients(colour_space: str | None) -> ColourCoefficients:
    """Choose the matrix that converts YUV in the given colour space back to RGB."""
    key = (colour_space or "").lower()
    if key == "smpte170m":
        return _SMPTE170M
    if key == "rec709":
        return _REC709
    if key != "sycc":
        logger.info("QtPreview: unexpected colour space %s", colour_space)
    return _JPEG


def yuv420_to_rgb_scaled(data: Any, info: StreamInfo, width: int, height: int) -> np.ndarray:
    """Resample a YUV420 frame to a width x height RGB image.

    Adjacent output pixel pairs share their U and V samples. Returns a
    (height, width, 3) uint8 array.
    """
    if width <= 0 or height <= 0:
        raise ValueError("yuv420_to_rgb_scaled: dimensions must be positive")
    if width % 2 or height % 2:
        raise ValueError("yuv420_to_rgb_scaled: expect even dimensions")
    buf = data.reshape(-1) if isinstance(data, np.ndarray) else np.frombuffer(data, dtype=np.uint8)
    stride = info.stride
    if buf.size < stride * info.height * 3 // 2:
        raise ValueError("yuv420_to_rgb_scaled: buffer too small for the stream")

    x_step = (info.width << 16) // width
    y_step = (info.height << 16) // height
    half = stride >> 1

    rows = (np.arange(height, dtype=np.int64) * y_step) >> 16
    pos0 = (x_step >> 1) + 2 * np.arange(width // 2, dtype=np.int64) * x_step
    pos1 = pos0 + x_step

    y_base = rows[:, None] * stride
    luma0 = buf[y_base + (pos0 >> 16)[None, :]]
    luma1 = buf[y_base + (pos1 >> 16)[None, :]]
    chroma_col = (pos1 >> 17)[None, :]
    u = buf[((4 * info.height + rows) >> 1)[:, None] * half + chroma_col]
    v = buf[((5 * info.height + rows) >> 1)[:, None] * half + chroma_col]

    c = colour_coefficients(info.colour_space)
    f32 = np.float32
    y0 = (luma0.astype(np.int32) - c.offset_y).astype(f32)
    y1 = (luma1.astype(np.int32) - c.offset_y).astype(f32)
    uf = (u.astype(np.int32) - 128).astype(f32)
    vf = (v.astype(np.int32) - 128).astype(f32)
    cy, cvr, cug, cvg, cub = (f32(k) for k in c[1:])

    def _channels(lum: np.ndarray) -> np.ndarray:
        r = cy * lum + cvr * vf
        g = cy * lum + cug * uf + cvg * vf
        b = cy * lum + cub * uf
        return np.clip(np.trunc(np.stack((r, g, b), axis=-1)), 0, 255).astype(np.uint8)

    out = np.empty((height, width, 3), dtype=np.uint8)
    out[:, 0::2] = _channels(y0)
    out[:, 1::2] = _channels(y1)
    return out