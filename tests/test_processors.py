from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from gemini_watermark_tool import LoadError, Rect
from gemini_watermark_tool.processors import is_supported_image, process_image, read_image

from .conftest import textured_image


def save(array: np.ndarray, path: Path) -> Path:
    Image.fromarray(array).save(path)
    return path


def test_supported_formats():
    assert is_supported_image(Path("a.PNG"))
    assert is_supported_image(Path("b.webp"))
    assert not is_supported_image(Path("c.gif"))


def test_read_image_flattens_alpha(tmp_path):
    rgba = np.full((20, 30, 4), 90, dtype=np.uint8)
    path = save(rgba, tmp_path / "rgba.png")
    image = read_image(path)
    assert image.shape == (20, 30, 3)


def test_read_image_failure(tmp_path):
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"garbage")
    with pytest.raises(LoadError):
        read_image(bad)


def test_read_image_oversized(tmp_path, monkeypatch):
    source = save(textured_image(300, 300), tmp_path / "huge.png")
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 20000)
    with pytest.raises(LoadError):
        read_image(source)


def test_add_then_remove_files(tmp_path, engine):
    original = textured_image(320, 240)
    source = save(original, tmp_path / "photo.png")

    marked = process_image(source, engine, remove=False, suffix="_marked")
    assert marked == tmp_path / "photo_marked.png"

    cleaned = process_image(marked, engine, output_path=tmp_path / "out" / "clean.png")
    assert cleaned.exists()

    restored = read_image(cleaned)
    assert np.abs(restored.astype(int) - original.astype(int)).max() <= 1


def test_custom_region(tmp_path, engine):
    source = save(np.zeros((200, 200, 3), dtype=np.uint8), tmp_path / "black.png")
    output = process_image(source, engine, remove=False, region=Rect(10, 10, 64, 64))

    result = read_image(output)
    assert result[10:74, 10:74].any()
    assert not result[100:, 100:].any()


def test_skips_when_confidence_too_low(tmp_path, engine):
    source = save(np.full((300, 300, 3), 128, dtype=np.uint8), tmp_path / "gray.png")
    assert process_image(source, engine, min_confidence=0.5) is None
    assert not (tmp_path / "gray_output.png").exists()
