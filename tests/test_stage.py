import numpy as np
import pytest

from camproc.stage import (
    PostProcessingStage,
    StreamInfo,
    execution_time,
    get_json_array,
    get_post_processing_stages,
    register_stage,
    yuv420_to_rgb,
)


def make_yuv(y_plane, stride, u_row_values=None):
    """Build a YUV420 buffer; chroma is neutral unless a U row is given."""
    height = y_plane.shape[0]
    width = y_plane.shape[1]
    y = np.zeros((height, stride), dtype=np.uint8)
    y[:, :width] = y_plane
    chroma_size = (height // 2) * (stride // 2)
    chroma = np.full(2 * chroma_size + stride, 128, dtype=np.uint8)
    if u_row_values is not None:
        for row in range(height // 2):
            start = row * (stride // 2)
            chroma[start:start + len(u_row_values)] = u_row_values
    return np.concatenate([y.ravel(), chroma])


def channels(out, info):
    rgb = out.reshape(info.height, info.stride)[:, : 3 * info.width]
    rgb = rgb.reshape(info.height, info.width, 3)
    return rgb[..., 0], rgb[..., 1], rgb[..., 2]


@pytest.mark.parametrize("width,height", [(8, 4), (6, 2), (7, 3), (5, 5), (1, 1)])
def test_neutral_chroma_gives_grey(width, height):
    rng = np.random.default_rng(1)
    y_plane = rng.integers(0, 256, size=(height, width), dtype=np.uint8)
    stride = width + 3
    src = make_yuv(y_plane, stride)
    src_info = StreamInfo(width, height, stride)
    dst_info = StreamInfo(width, height, 3 * width)
    out = yuv420_to_rgb(src, src_info, dst_info)
    assert out.shape == (height * 3 * width,)
    r, g, b = channels(out, dst_info)
    assert np.array_equal(r, y_plane)
    assert np.array_equal(g, y_plane)
    assert np.array_equal(b, y_plane)


def test_centre_crop():
    y_plane = np.arange(64, dtype=np.uint8).reshape(8, 8)
    src = make_yuv(y_plane, 8)
    dst_info = StreamInfo(4, 4, 12)
    out = yuv420_to_rgb(src, StreamInfo(8, 8, 8), dst_info)
    r, _, _ = channels(out, dst_info)
    assert np.array_equal(r, y_plane[2:6, 2:6])


def test_padding_is_zero():
    y_plane = np.full((2, 4), 200, dtype=np.uint8)
    src = make_yuv(y_plane, 4)
    dst_info = StreamInfo(4, 2, 16)
    out = yuv420_to_rgb(bytes(src), StreamInfo(4, 2, 4), dst_info)
    rows = out.reshape(2, 16)
    assert np.array_equal(rows[:, 12:], np.zeros((2, 4), dtype=np.uint8))
    assert np.array_equal(rows[:, :12], np.full((2, 12), 200, dtype=np.uint8))


def test_values_are_clamped():
    bright = np.full((2, 2), 255, dtype=np.uint8)
    src = make_yuv(bright, 2)
    src[4 + 1] = 255  # V sample
    info = StreamInfo(2, 2, 6)
    r, _, _ = channels(yuv420_to_rgb(src, StreamInfo(2, 2, 2), info), info)
    assert np.array_equal(r, np.full((2, 2), 255, dtype=np.uint8))

    dark = np.zeros((2, 2), dtype=np.uint8)
    src = make_yuv(dark, 2)
    src[4] = 0  # U sample
    _, _, b = channels(yuv420_to_rgb(src, StreamInfo(2, 2, 2), info), info)
    assert np.array_equal(b, np.zeros((2, 2), dtype=np.uint8))


@pytest.mark.parametrize("width", [6, 7, 8])
def test_chroma_shared_by_pixel_pairs(width):
    y_plane = np.full((2, width), 100, dtype=np.uint8)
    u_row = [60, 90, 150, 200]
    src = make_yuv(y_plane, 8, u_row)
    info = StreamInfo(width, 2, 3 * width)
    _, _, b = channels(yuv420_to_rgb(src, StreamInfo(width, 2, 8), info), info)
    pairs = width // 2 * 2
    assert np.array_equal(b[:, 0:pairs:2], b[:, 1:pairs:2])
    assert np.array_equal(b[0], b[1])
    assert np.all(np.diff(b[0, 0::2].astype(int)) >= 0)
    assert b[0, 0] < b[0, -1]


def test_rejects_larger_destination():
    src = make_yuv(np.zeros((2, 2), dtype=np.uint8), 2)
    with pytest.raises(ValueError):
        yuv420_to_rgb(src, StreamInfo(2, 2, 2), StreamInfo(4, 2, 12))


def test_rejects_small_stride():
    src = make_yuv(np.zeros((2, 2), dtype=np.uint8), 2)
    with pytest.raises(ValueError):
        yuv420_to_rgb(src, StreamInfo(2, 2, 2), StreamInfo(2, 2, 4))


def test_get_json_array_present_and_padded():
    params = {"values": [1, 2]}
    assert get_json_array(params, "values") == [1, 2]
    assert get_json_array(params, "values", [9, 9, 3, 4]) == [1, 2, 3, 4]
    assert get_json_array(params, "missing", [5, 6]) == [5, 6]
    assert get_json_array(params, "missing") == []


def test_execution_time_calls_function():
    calls = []
    elapsed = execution_time(lambda a, b=0: calls.append((a, b)), 1, b=2)
    assert calls == [(1, 2)]
    assert elapsed >= 0


class _DropStage(PostProcessingStage):
    def name(self):
        return "drop_everything"

    def process(self, completed_request):
        return True


def test_register_and_lookup_stage():
    register_stage("drop_everything", _DropStage)
    stages = get_post_processing_stages()
    stage = stages["drop_everything"]("app")
    assert stage.name() == "drop_everything"
    assert stage.app == "app"
    assert stage.process(object()) is True
    with pytest.raises(TypeError):
        stages["other"] = _DropStage


def test_base_class_is_abstract():
    with pytest.raises(TypeError):
        PostProcessingStage(None)


def test_default_hooks_do_nothing():
    register_stage("drop_hooks", _DropStage)
    stage = get_post_processing_stages()["drop_hooks"](None)
    assert stage.read({"a": 1}) is None
    assert stage.adjust_config("still", None) is None
    assert [stage.configure(), stage.start(), stage.stop(), stage.teardown()] == [None] * 4