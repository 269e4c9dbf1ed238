"""Canvas setup, path drawing and image output."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import numpy as np
from matplotlib import patheffects
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from PIL import Image

from .config import OUTPUT_FORMATS, RASTER_FORMATS
from .errors import OutputWriteError
from .render_constants import (
    BACKGROUND_COLOR,
    GLOW_ALPHA,
    GLOW_COLOR,
    GLOW_RADIUS_FACTOR,
    GLOW_STEPS,
    RASTER_DPI,
    STROKE_COLOR,
    VECTOR_DPI,
)


if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from matplotlib.axes import Axes


__all__ = ["LineCanvas", "glow_effects"]

logger = logging.getLogger(__name__)


def glow_effects(stroke_width_pt: float) -> list[patheffects.AbstractPathEffect]:
    """Build the glow drawn beneath a stroke.

    The glow is a set of concentric, low-alpha strokes whose outer radius is
    proportional to the stroke width, widest first. Overlapping paths add up,
    so dense areas glow brighter.

    Args:
        stroke_width_pt: Core stroke width in points.

    Returns:
        Path effects ending with the normal stroke.
    """
    effects: list[patheffects.AbstractPathEffect] = []
    for step in range(GLOW_STEPS, 0, -1):
        spread = 2 * GLOW_RADIUS_FACTOR * step / GLOW_STEPS
        effects.append(
            patheffects.Stroke(
                linewidth=stroke_width_pt * (1 + spread),
                foreground=GLOW_COLOR,
                alpha=GLOW_ALPHA,
            )
        )
    effects.append(patheffects.Normal())
    return effects


class LineCanvas:
    """Fixed-size canvas that glowing line paths are drawn onto.

    The axes span the whole figure with limits ``(0, width)`` and
    ``(0, height)``, so pixel coordinates map directly onto the figure with
    the origin at the bottom-left corner.

    For raster output every path is rasterised into the Agg buffer as soon
    as it is drawn and its artist is discarded, so memory stays bounded by
    the pixel buffer. Vector output has to keep every path until it is saved.
    """

    def __init__(self, width: int, height: int, output_format: str = "png") -> None:
        """Create and clear the canvas.

        Args:
            width: Canvas width in pixels.
            height: Canvas height in pixels.
            output_format: One of ``png``, ``pdf`` or ``svg``.
        """
        fmt = output_format.lower()
        if fmt not in OUTPUT_FORMATS:
            raise ValueError(f"Unsupported output format '{output_format}'.")
        if width <= 0 or height <= 0:
            raise ValueError(f"Canvas size must be positive, got {width}x{height}.")

        self.width = width
        self.height = height
        self.output_format = fmt
        self.is_raster = fmt in RASTER_FORMATS
        self.dpi = RASTER_DPI if self.is_raster else VECTOR_DPI
        self.paths_drawn = 0
        self._saved = False

        self.figure = Figure(
            figsize=(width / self.dpi, height / self.dpi),
            dpi=self.dpi,
            facecolor=BACKGROUND_COLOR,
        )
        self._canvas = FigureCanvasAgg(self.figure)
        self.ax: Axes = self.figure.add_axes((0.0, 0.0, 1.0, 1.0))
        self.ax.set_xlim(0, width)
        self.ax.set_ylim(0, height)
        self.ax.set_autoscale_on(False)
        self.ax.set_facecolor(BACKGROUND_COLOR)
        self.ax.set_axis_off()

        if self.is_raster:
            # Paint the background once; paths are blitted on top of it
            self._canvas.draw()

    def __enter__(self) -> LineCanvas:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def px_to_points(self, pixels: float) -> float:
        """Convert a pixel length to matplotlib points at the canvas DPI."""
        return pixels * 72.0 / self.dpi

    def draw_path(
        self,
        xs: Sequence[float] | np.ndarray,
        ys: Sequence[float] | np.ndarray,
        stroke_width: float,
    ) -> bool:
        """Stroke a polyline given in pixel coordinates.

        Args:
            xs: Pixel X coordinates, in vertex order.
            ys: Pixel Y coordinates, in vertex order.
            stroke_width: Line width in pixels; also drives the glow radius.

        Returns:
            True if a path was drawn, False for fewer than two points.
        """
        if self._saved:
            raise RuntimeError("Cannot draw on a canvas that has already been saved.")
        if len(xs) < 2:
            return False

        width_pt = self.px_to_points(stroke_width)
        (line,) = self.ax.plot(
            xs,
            ys,
            color=STROKE_COLOR,
            linewidth=width_pt,
            solid_capstyle="round",
            solid_joinstyle="round",
            antialiased=True,
            path_effects=glow_effects(width_pt),
        )
        if self.is_raster:
            self.ax.draw_artist(line)
            line.remove()

        self.paths_drawn += 1
        return True

    def to_image(self) -> Image.Image:
        """Return the raster canvas as an RGBA image."""
        if not self.is_raster:
            raise RuntimeError("Only raster canvases can be converted to an image.")
        buffer = np.asarray(self._canvas.buffer_rgba())
        return Image.fromarray(buffer.copy())

    def save(self, output_file: Path) -> None:
        """Encode the canvas to ``output_file``. May only be called once.

        Raises:
            OutputWriteError: If the file cannot be written.
        """
        if self._saved:
            raise RuntimeError("Canvas has already been saved.")
        self._saved = True

        logger.info("Generating output to %s", output_file)
        try:
            if self.is_raster:
                self.to_image().save(output_file, format="PNG")
            else:
                save_kwargs: dict[str, Any] = {"facecolor": BACKGROUND_COLOR}
                self.figure.savefig(output_file, format=self.output_format, **save_kwargs)
        except (OSError, ValueError) as e:
            raise OutputWriteError(f"Could not write {output_file}: {e}") from e

    def close(self) -> None:
        """Release the figure's artists."""
        self.figure.clear()
