"""Command-line smoke tests."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image
from typer.testing import CliRunner

from pixel_palette.cli import app

runner = CliRunner()


@pytest.fixture
def tmp_image(tmp_path: Path) -> Path:
    """Write a small non-square test PNG to disk."""
    rng = np.random.default_rng(0)
    img = Image.fromarray(rng.integers(0, 256, (24, 32, 3), dtype=np.uint8))
    p = tmp_path / "test.png"
    img.save(p)
    return p


def test_palettes_lists_catalogue() -> None:
    result = runner.invoke(app, ["palettes"])
    assert result.exit_code == 0
    assert "gameboy" in result.output
    assert "commodore64" in result.output


def test_convert(tmp_image: Path, tmp_path: Path) -> None:
    out = tmp_path / "out.png"
    result = runner.invoke(
        app, ["convert", str(tmp_image), "-o", str(out), "-b", "4", "-p", "gameboy"],
    )
    assert result.exit_code == 0, result.output
    img = Image.open(out).convert("RGB")
    assert img.size == (32, 24)
    allowed = {(15, 56, 15), (48, 98, 48), (139, 172, 15), (155, 188, 15)}
    assert {c for _, c in img.getcolors()} <= allowed


def test_convert_upscale_and_comparison(tmp_image: Path, tmp_path: Path) -> None:
    out = tmp_path / "big.png"
    result = runner.invoke(
        app,
        ["convert", str(tmp_image), "-o", str(out), "-u", "3", "--max-side", "16",
         "--comparison"],
    )
    assert result.exit_code == 0, result.output
    assert Image.open(out).size == (48, 36)
    assert (tmp_path / "big_comparison.png").exists()


def test_convert_jpeg_with_comparison(tmp_image: Path, tmp_path: Path) -> None:
    out = tmp_path / "out.jpg"
    result = runner.invoke(
        app, ["convert", str(tmp_image), "-o", str(out), "-p", "cga", "--comparison"],
    )
    assert result.exit_code == 0, result.output
    assert Image.open(out).mode == "RGB"
    with Image.open(tmp_path / "out_comparison.jpg") as side_by_side:
        assert side_by_side.mode == "RGB"
        assert side_by_side.size == (32 * 2 + 8, 24)


def test_convert_unknown_palette(tmp_image: Path, tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["convert", str(tmp_image), "-o", str(tmp_path / "x.png"), "-p", "nope"],
    )
    assert result.exit_code == 1
    assert "Unknown palette" in result.output


def test_convert_missing_file(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["convert", str(tmp_path / "missing.png"), "-o", str(tmp_path / "x.png")],
    )
    assert result.exit_code == 1


def test_batch(tmp_image: Path, tmp_path: Path) -> None:
    out_dir = tmp_path / "results"
    result = runner.invoke(
        app, ["batch", "-i", str(tmp_path), "-o", str(out_dir), "-p", "cga"],
    )
    assert result.exit_code == 0, result.output
    assert (out_dir / "test_pixel.png").exists()


def test_batch_empty_folder(tmp_path: Path) -> None:
    result = runner.invoke(app, ["batch", "-i", str(tmp_path / "none")])
    assert result.exit_code == 0
    assert "No images found" in result.output
