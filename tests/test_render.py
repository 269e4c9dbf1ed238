"""Tests for the render module."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pytest
from matplotlib import patheffects
from PIL import Image

from glowlines.errors import OutputWriteError
from glowlines.render import LineCanvas, glow_effects
from glowlines.render_constants import GLOW_STEPS


if TYPE_CHECKING:
    from pathlib import Path


def _pixels(canvas: LineCanvas) -> np.ndarray:
    """Return the canvas as an (height, width, 4) array, top row first."""
    return np.asarray(canvas.to_image())


class TestGlowEffects:
    """Tests for glow path effects."""

    def test_layers(self) -> None:
        """Test glow strokes come first, widest first, then the normal stroke."""
        effects = glow_effects(2.0)
        assert len(effects) == GLOW_STEPS + 1
        assert isinstance(effects[-1], patheffects.Normal)
        widths = [effect._gc["linewidth"] for effect in effects[:-1]]
        assert widths == sorted(widths, reverse=True)
        assert all(width > 2.0 for width in widths)

    def test_radius_scales_with_width(self) -> None:
        """Test a wider stroke gets a proportionally wider glow."""
        thin = glow_effects(1.0)[0]._gc["linewidth"]
        thick = glow_effects(3.0)[0]._gc["linewidth"]
        assert thick == pytest.approx(thin * 3)


class TestLineCanvasRaster:
    """Tests for raster canvases."""

    def test_exact_size(self) -> None:
        """Test the pixel buffer matches the requested size."""
        with LineCanvas(123, 77, "png") as canvas:
            image = canvas.to_image()
        assert image.size == (123, 77)
        assert image.mode == "RGBA"

    def test_background_filled(self) -> None:
        """Test a fresh canvas is opaque black."""
        with LineCanvas(40, 30, "png") as canvas:
            pixels = _pixels(canvas)
        assert pixels[..., :3].max() == 0
        assert pixels[..., 3].min() == 255

    def test_draws_white_stroke(self) -> None:
        """Test a horizontal line lights the pixels under it."""
        with LineCanvas(100, 100, "png") as canvas:
            assert canvas.draw_path([0.0, 100.0], [50.0, 50.0], 4.0) is True
            pixels = _pixels(canvas)

        assert pixels[49:51, 50, :3].min() >= 250
        assert pixels[0, 0, :3].max() == 0
        assert canvas.paths_drawn == 1

    def test_origin_is_bottom_left(self) -> None:
        """Test small Y values are drawn near the bottom of the image."""
        with LineCanvas(100, 100, "png") as canvas:
            canvas.draw_path([0.0, 100.0], [10.0, 10.0], 2.0)
            pixels = _pixels(canvas)

        assert pixels[89, 50, 0] > 200
        assert pixels[10, 50, 0] == 0

    def test_glow_surrounds_stroke(self) -> None:
        """Test pixels beside the stroke are partially lit by the glow."""
        with LineCanvas(100, 100, "png") as canvas:
            canvas.draw_path([0.0, 100.0], [50.0, 50.0], 2.0)
            pixels = _pixels(canvas)

        assert 0 < pixels[43, 50, 0] < 255

    def test_overlapping_glow_accumulates(self) -> None:
        """Test repeated strokes brighten the glow."""
        with LineCanvas(100, 100, "png") as once:
            once.draw_path([0.0, 100.0], [50.0, 50.0], 2.0)
            single = int(_pixels(once)[43, 50, 0])
        with LineCanvas(100, 100, "png") as twice:
            twice.draw_path([0.0, 100.0], [50.0, 50.0], 2.0)
            twice.draw_path([0.0, 100.0], [50.0, 50.0], 2.0)
            double = int(_pixels(twice)[43, 50, 0])

        assert double > single

    def test_single_point_is_noop(self) -> None:
        """Test fewer than two points draws nothing."""
        with LineCanvas(50, 50, "png") as canvas:
            assert canvas.draw_path([25.0], [25.0], 5.0) is False
            pixels = _pixels(canvas)
        assert pixels[..., :3].max() == 0
        assert canvas.paths_drawn == 0

    def test_save_png(self, tmp_path: Path) -> None:
        """Test the PNG written matches the canvas size."""
        output = tmp_path / "lines.png"
        with LineCanvas(64, 32, "png") as canvas:
            canvas.draw_path([0.0, 64.0], [0.0, 32.0], 1.0)
            canvas.save(output)

        with Image.open(output) as image:
            assert image.size == (64, 32)
            assert image.format == "PNG"

    def test_save_only_once(self, tmp_path: Path) -> None:
        """Test the canvas is finalised exactly once."""
        with LineCanvas(10, 10, "png") as canvas:
            canvas.save(tmp_path / "a.png")
            with pytest.raises(RuntimeError, match="already been saved"):
                canvas.save(tmp_path / "b.png")
            with pytest.raises(RuntimeError, match="already been saved"):
                canvas.draw_path([0.0, 1.0], [0.0, 1.0], 1.0)

    def test_unwritable_output(self, tmp_path: Path) -> None:
        """Test a missing directory raises OutputWriteError."""
        with LineCanvas(10, 10, "png") as canvas, pytest.raises(OutputWriteError):
            canvas.save(tmp_path / "missing" / "out.png")


class TestLineCanvasVector:
    """Tests for vector canvases."""

    def test_save_pdf(self, tmp_path: Path) -> None:
        """Test PDF output is written."""
        output = tmp_path / "lines.pdf"
        with LineCanvas(200, 100, "pdf") as canvas:
            canvas.draw_path([0.0, 100.0, 200.0], [0.0, 100.0, 50.0], 2.0)
            canvas.save(output)
        assert output.read_bytes().startswith(b"%PDF")

    def test_save_svg(self, tmp_path: Path) -> None:
        """Test SVG output is written."""
        output = tmp_path / "lines.svg"
        with LineCanvas(200, 100, "svg") as canvas:
            canvas.draw_path([0.0, 200.0], [0.0, 100.0], 2.0)
            canvas.save(output)
        assert b"<svg" in output.read_bytes()

    def test_vector_has_no_pixel_buffer(self) -> None:
        """Test vector canvases cannot be read back as images."""
        with LineCanvas(10, 10, "pdf") as canvas, pytest.raises(RuntimeError):
            canvas.to_image()


class TestLineCanvasValidation:
    """Tests for canvas argument validation."""

    def test_unknown_format(self) -> None:
        """Test unsupported formats are rejected."""
        with pytest.raises(ValueError, match="Unsupported output format"):
            LineCanvas(10, 10, "gif")

    def test_non_positive_size(self) -> None:
        """Test the canvas needs a positive size."""
        with pytest.raises(ValueError, match="positive"):
            LineCanvas(0, 10, "png")
