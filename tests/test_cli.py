import logging

import numpy as np
from PIL import Image
from typer.testing import CliRunner

from gemini_watermark_tool.cli import app

from .conftest import textured_image

runner = CliRunner()


def test_info():
    result = runner.invoke(app, ["info"])
    assert result.exit_code == 0
    assert "Gemini Watermark Tool" in result.output


def test_process_with_captures(tmp_path, capture_files):
    small_path, large_path = capture_files
    source = tmp_path / "photo.png"
    Image.fromarray(textured_image(320, 240)).save(source)

    result = runner.invoke(
        app,
        ["process", str(source), "--add", "--bg-small", str(small_path), "--bg-large", str(large_path)],
    )
    assert result.exit_code == 0, result.output
    assert (tmp_path / "photo_output.png").exists()


def test_process_directory(tmp_path, capture_files):
    small_path, large_path = capture_files
    photos = tmp_path / "photos"
    photos.mkdir()
    for i in range(2):
        Image.fromarray(textured_image(200, 200, seed=i)).save(photos / f"p{i}.png")
    out = tmp_path / "out"

    result = runner.invoke(
        app,
        [
            "process", str(photos), "-o", str(out), "--size", "small",
            "--bg-small", str(small_path), "--bg-large", str(large_path),
        ],
    )
    assert result.exit_code == 0, result.output
    assert sorted(p.name for p in out.iterdir()) == ["p0_output.png", "p1_output.png"]


def test_batch_continues_past_unreadable_file(tmp_path, capture_files, monkeypatch, caplog):
    from gemini_watermark_tool import cli

    monkeypatch.setattr(cli, "setup_logging", lambda verbose: None)
    small_path, large_path = capture_files
    photos = tmp_path / "photos"
    photos.mkdir()
    Image.fromarray(textured_image(300, 300)).save(photos / "a_big.png")
    Image.fromarray(textured_image(100, 100, seed=1)).save(photos / "b_ok.png")
    # Pillow refuses images over twice this many pixels
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 20000)

    with caplog.at_level(logging.ERROR):
        result = runner.invoke(
            app,
            ["process", str(photos), "--bg-small", str(small_path), "--bg-large", str(large_path)],
        )

    assert result.exit_code == 1
    assert (photos / "b_ok_output.png").exists()
    assert not (photos / "a_big_output.png").exists()
    assert any("a_big.png" in record.getMessage() for record in caplog.records)


def test_process_rejects_bad_region(tmp_path, capture_files):
    small_path, large_path = capture_files
    source = tmp_path / "photo.png"
    Image.fromarray(np.zeros((100, 100, 3), dtype=np.uint8)).save(source)

    result = runner.invoke(
        app,
        [
            "process", str(source), "--region", "1,2,3",
            "--bg-small", str(small_path), "--bg-large", str(large_path),
        ],
    )
    assert result.exit_code != 0


def test_process_without_captures_fails(tmp_path, monkeypatch):
    from gemini_watermark_tool.core import engine as engine_module

    monkeypatch.setattr(engine_module, "get_asset_path", lambda name: tmp_path / name)
    source = tmp_path / "photo.png"
    Image.fromarray(np.zeros((100, 100, 3), dtype=np.uint8)).save(source)

    result = runner.invoke(app, ["process", str(source)])
    assert result.exit_code == 1


def test_detect(tmp_path):
    source = tmp_path / "photo.png"
    Image.fromarray(textured_image(300, 300)).save(source)

    result = runner.invoke(app, ["detect", str(source)])
    assert result.exit_code == 0, result.output
    assert "Watermark detection" in result.output
