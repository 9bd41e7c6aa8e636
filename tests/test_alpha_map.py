import logging

import numpy as np
import pytest

from gemini_watermark_tool import (
    AlphaMaps,
    LoadError,
    ResizeError,
    WatermarkSize,
    build_alpha_map,
    load_reference,
    resample_alpha_map,
)

from .conftest import LARGE_PEAK, encode_png, make_capture


def test_alpha_is_capture_over_255(small_capture):
    alpha = build_alpha_map(small_capture, 48)
    assert alpha.shape == (48, 48)
    assert alpha.dtype == np.float32
    np.testing.assert_allclose(alpha, small_capture[:, :, 0] / 255.0, atol=1e-6)


def test_alpha_is_clamped_to_unit_range():
    capture = np.full((48, 48, 3), 255, dtype=np.uint8)
    alpha = build_alpha_map(capture, 48, logo_color=(200.0, 200.0, 200.0))
    assert alpha.max() == pytest.approx(1.0)
    assert alpha.min() >= 0.0


def test_alpha_projects_onto_logo_color():
    capture = np.zeros((48, 48, 3), dtype=np.uint8)
    capture[:, :, 0] = 102  # red overlay at alpha 0.4
    alpha = build_alpha_map(capture, 48, logo_color=(255.0, 0.0, 0.0))
    np.testing.assert_allclose(alpha, 0.4, atol=1e-6)


def test_grayscale_and_rgba_captures(small_capture):
    gray = small_capture[:, :, 0]
    rgba = np.dstack([small_capture, np.full((48, 48), 7, dtype=np.uint8)])
    expected = build_alpha_map(small_capture, 48)
    np.testing.assert_allclose(build_alpha_map(gray, 48), expected, atol=1e-6)
    np.testing.assert_allclose(build_alpha_map(rgba, 48), expected, atol=1e-6)


def test_off_size_capture_is_resized(caplog):
    capture = make_capture(120, LARGE_PEAK)
    with caplog.at_level(logging.WARNING):
        alpha = build_alpha_map(capture, 96)
    assert alpha.shape == (96, 96)
    assert "expected 96x96" in caplog.text


def test_empty_capture_rejected():
    with pytest.raises(LoadError):
        build_alpha_map(np.zeros((0, 0, 3), dtype=np.uint8), 48)


def test_load_reference_from_bytes_and_path(tmp_path, small_capture):
    data = encode_png(small_capture)
    path = tmp_path / "capture.png"
    path.write_bytes(data)

    np.testing.assert_array_equal(load_reference(data), small_capture)
    np.testing.assert_array_equal(load_reference(path), small_capture)


def test_load_reference_failures(tmp_path):
    with pytest.raises(LoadError):
        load_reference(tmp_path / "missing.png")
    with pytest.raises(LoadError):
        load_reference(b"not an image")


def test_resample_upscale_and_downscale(large_capture):
    large = build_alpha_map(large_capture, 96)

    up = resample_alpha_map(large, 128, 128)
    down = resample_alpha_map(large, 64, 40)
    assert up.shape == (128, 128)
    assert down.shape == (40, 64)
    assert 0.0 <= up.min() and up.max() <= 1.0
    assert down.mean() == pytest.approx(large.mean(), abs=0.01)


def test_resample_same_size_returns_copy(large_capture):
    large = build_alpha_map(large_capture, 96)
    same = resample_alpha_map(large, 96, 96)
    np.testing.assert_array_equal(same, large)
    assert same is not large


def test_resample_rejects_non_positive_size(large_capture):
    large = build_alpha_map(large_capture, 96)
    with pytest.raises(ResizeError):
        resample_alpha_map(large, 0, 10)


def test_alpha_maps_are_read_only(small_capture, large_capture):
    maps = AlphaMaps.build(small_capture, large_capture)
    assert maps.for_size(WatermarkSize.SMALL).shape == (48, 48)
    assert maps.for_size(WatermarkSize.LARGE).shape == (96, 96)
    with pytest.raises(ValueError):
        maps.large[0, 0] = 1.0


def test_alpha_maps_validate_shapes():
    with pytest.raises(ValueError):
        AlphaMaps(small=np.zeros((96, 96)), large=np.zeros((96, 96)))
