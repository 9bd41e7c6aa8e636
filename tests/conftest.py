import io

import numpy as np
import pytest
from PIL import Image

from gemini_watermark_tool import WatermarkEngine

SMALL_PEAK = 0.3
LARGE_PEAK = 0.5


def make_capture(size: int, peak: float) -> np.ndarray:
    """Diamond-shaped watermark rendered over black, alpha peaking at the centre."""
    yy, xx = np.mgrid[0:size, 0:size].astype(np.float32)
    center = (size - 1) / 2
    distance = (np.abs(xx - center) + np.abs(yy - center)) / center
    alpha = peak * np.clip(1.0 - distance, 0.0, 1.0)
    gray = np.rint(alpha * 255).astype(np.uint8)
    return np.stack([gray, gray, gray], axis=2)


def encode_png(array: np.ndarray) -> bytes:
    buffer = io.BytesIO()
    Image.fromarray(array).save(buffer, format="PNG")
    return buffer.getvalue()


def textured_image(width: int, height: int, mean: float = 90.0, std: float = 25.0, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    noise = rng.normal(mean, std, size=(height, width, 3))
    return np.clip(noise, 0, 255).astype(np.uint8)


@pytest.fixture
def small_capture() -> np.ndarray:
    return make_capture(48, SMALL_PEAK)


@pytest.fixture
def large_capture() -> np.ndarray:
    return make_capture(96, LARGE_PEAK)


@pytest.fixture
def engine(small_capture, large_capture) -> WatermarkEngine:
    return WatermarkEngine.from_bytes(encode_png(small_capture), encode_png(large_capture))


@pytest.fixture
def capture_files(tmp_path, small_capture, large_capture):
    small_path = tmp_path / "bg_48.png"
    large_path = tmp_path / "bg_96.png"
    Image.fromarray(small_capture).save(small_path)
    Image.fromarray(large_capture).save(large_path)
    return small_path, large_path
