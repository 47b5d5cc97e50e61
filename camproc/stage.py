"""Post-processing stage base class, registry and shared helpers."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence

import numpy as np


@dataclass
class StreamInfo:
    """Geometry and format of an image stream."""

    width: int = 0
    height: int = 0
    stride: int = 0
    pixel_format: str = ""
    colour_space: str | None = None


class PostProcessingStage(ABC):
    """Base class for stages that inspect or modify completed requests."""

    def __init__(self, app: Any):
        self.app = app
        self.use_case: str | None = None
        self.is_running = False

    @abstractmethod
    def name(self) -> str:
        """Name under which the stage is registered."""

    def read(self, params: Mapping[str, Any]) -> None:
        """Read the stage's parameters."""

    def adjust_config(self, use_case: str, config: Any) -> None:
        """Note the use case being configured; the configuration is left as it is."""
        self.use_case = use_case

    def configure(self) -> None:
        """Prepare for the configured streams."""

    def start(self) -> None:
        """Mark the stage as running."""
        self.is_running = True

    @abstractmethod
    def process(self, completed_request: Any) -> bool:
        """Process a request; return True if it should be dropped."""

    def stop(self) -> None:
        """Mark the stage as stopped."""
        self.is_running = False

    def teardown(self) -> None:
        """Forget the configuration the stage was prepared for."""
        self.is_running = False
        self.use_case = None


def _as_bytes_array(src: Any) -> np.ndarray:
    if isinstance(src, np.ndarray):
        return src.astype(np.uint8, copy=False).ravel()
    return np.frombuffer(src, dtype=np.uint8)


def yuv420_to_rgb(src: Any, src_info: StreamInfo, dst_info: StreamInfo) -> np.ndarray:
    """Convert planar YUV420 to packed RGB, cropping from the centre.

    Returns a flat uint8 array of dst_info.height * dst_info.stride bytes.
    """
    if src_info.width < dst_info.width or src_info.height < dst_info.height:
        raise ValueError("yuv420_to_rgb: destination larger than source")
    if dst_info.stride < 3 * dst_info.width:
        raise ValueError("yuv420_to_rgb: destination stride too small")

    data = _as_bytes_array(src)
    off_x = ((src_info.width - dst_info.width) // 2) & ~1
    off_y = ((src_info.height - dst_info.height) // 2) & ~1
    stride = src_info.stride
    y_size = src_info.height * stride
    u_size = (src_info.height // 2) * (stride // 2)

    rows = np.arange(dst_info.height) + off_y
    cols = np.arange(dst_info.width) + off_x
    y_idx = rows[:, None] * stride + cols[None, :]
    u_idx = y_size + (rows // 2)[:, None] * (stride // 2) + (cols // 2)[None, :]

    y = data[y_idx].astype(np.float64)
    u = data[u_idx].astype(np.float64) - 128
    v = data[u_idx + u_size].astype(np.float64) - 128

    r = y + 1.402 * v
    g = y - 0.345 * u - 0.714 * v
    b = y + 1.771 * u
    rgb = np.clip(np.trunc(np.stack((r, g, b), axis=-1)), 0, 255).astype(np.uint8)

    out = np.zeros(dst_info.height * dst_info.stride, dtype=np.uint8)
    out.reshape(dst_info.height, dst_info.stride)[:, : 3 * dst_info.width] = rgb.reshape(
        dst_info.height, 3 * dst_info.width
    )
    return out


def execution_time(func: Callable[..., Any], *args: Any, **kwargs: Any) -> float:
    """Call func and return how long it took, in microseconds."""
    t1 = time.perf_counter()
    func(*args, **kwargs)
    t2 = time.perf_counter()
    return (t2 - t1) * 1e6


def get_json_array(params: Mapping[str, Any], key: str, default: Sequence[Any] = ()) -> list:
    """Read a list under key, padded out with the tail of default."""
    values = list(params[key]) if key in params else []
    values.extend(default[len(values):])
    return values


StageCreateFunc = Callable[[Any], PostProcessingStage]

_STAGES: dict[str, StageCreateFunc] = {}


def register_stage(name: str, create_func: StageCreateFunc) -> StageCreateFunc:
    """Register a factory for the stage called name."""
    _STAGES[name] = create_func
    return create_func


def get_post_processing_stages() -> Mapping[str, StageCreateFunc]:
    """Return a read-only view of all registered stages."""
    return MappingProxyType(_STAGES)