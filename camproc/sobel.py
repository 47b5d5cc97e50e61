"""Sobel edge detection stage."""

from __future__ import annotations

from typing import Any, Mapping

import numpy as np
from scipy.ndimage import correlate1d

from .stage import PostProcessingStage, register_stage

NAME = "sobel_cv"
SCHARR = -1


def _binomial_kernel(size: int, order: int) -> np.ndarray:
    kernel = np.array([1.0])
    for _ in range(size - order - 1):
        kernel = np.convolve(kernel, [1.0, 1.0])
    for _ in range(order):
        kernel = np.convolve(kernel, [-1.0, 1.0])
    return kernel


def _gradient(image: np.ndarray, axis: int, ksize: int) -> np.ndarray:
    if ksize == SCHARR:
        deriv, smooth = np.array([-1.0, 0.0, 1.0]), np.array([3.0, 10.0, 3.0])
    else:
        deriv = _binomial_kernel(3 if ksize == 1 else ksize, 1)
        smooth = _binomial_kernel(ksize, 0)
    grad = correlate1d(image, deriv, axis=axis, mode="mirror")
    grad = correlate1d(grad, smooth, axis=1 - axis, mode="mirror")
    return np.clip(np.rint(grad), -32768, 32767)


def sobel_filter(image: np.ndarray, ksize: int = 3) -> np.ndarray:
    """Blur a greyscale image, then return the mean of its absolute x and y gradients."""
    if ksize != SCHARR and not (1 <= ksize <= 31 and ksize % 2 == 1):
        raise ValueError(f"sobel_filter: invalid kernel size {ksize}")
    img = np.asarray(image)
    if img.ndim != 2:
        raise ValueError("sobel_filter: expected a 2D image")

    gauss = np.array([0.25, 0.5, 0.25])
    blurred = correlate1d(img.astype(np.float64), gauss, axis=1, mode="mirror")
    blurred = correlate1d(blurred, gauss, axis=0, mode="mirror")
    blurred = np.clip(np.floor(blurred + 0.5), 0, 255)

    grad_x = np.minimum(np.abs(_gradient(blurred, 1, ksize)), 255)
    grad_y = np.minimum(np.abs(_gradient(blurred, 0, ksize)), 255)
    return np.clip(np.rint(0.5 * grad_x + 0.5 * grad_y), 0, 255).astype(np.uint8)


def _byte_view(buffer: Any) -> np.ndarray:
    if isinstance(buffer, np.ndarray):
        return buffer.reshape(-1)
    return np.frombuffer(buffer, dtype=np.uint8)


class SobelCvStage(PostProcessingStage):
    """Replaces the main image with its edges, in greyscale."""

    def __init__(self, app: Any):
        super().__init__(app)
        self.ksize = 3
        self.stream: Any = None

    def name(self) -> str:
        return NAME

    def read(self, params: Mapping[str, Any]) -> None:
        self.ksize = int(params.get("ksize", 3))

    def configure(self) -> None:
        self.stream = self.app.get_main_stream()
        if self.stream is None or self.app.get_stream_info(self.stream).pixel_format != "YUV420":
            raise RuntimeError("SobelCvStage: only YUV420 format supported")

    def process(self, completed_request: Any) -> bool:
        info = self.app.get_stream_info(self.stream)
        data = _byte_view(completed_request.buffers[self.stream])
        y_size = info.stride * info.height
        luma = data[:y_size].reshape(info.height, info.stride)[:, : info.width]
        luma[...] = sobel_filter(luma, self.ksize)
        data[y_size : y_size + y_size // 2] = 128
        return False


register_stage(NAME, SobelCvStage)