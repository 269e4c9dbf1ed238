"""Geographic to pixel coordinate projection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np


if TYPE_CHECKING:
    from collections.abc import Sequence

    from .extents import Extents, ImageLayout


__all__ = ["Projector", "project"]


def project(
    point: tuple[float, float],
    extents: Extents,
    width_ratio: float,
    height_ratio: float,
    scale: float = 1.0,
) -> tuple[float, float]:
    """Map a geographic point to pixel space.

    The canvas origin is its bottom-left corner, so the Y axis is not
    inverted: the extents' minimum corner lands on (0, 0).

    Args:
        point: The (x, y) geographic coordinate.
        extents: The extents the image covers.
        width_ratio: Pixels per geographic unit along X.
        height_ratio: Pixels per geographic unit along Y.
        scale: Uniform multiplier applied to both pixel coordinates.

    Returns:
        The (x, y) pixel coordinate.
    """
    x, y = point
    pixel_x = (extents.min_x - x) * -1 * width_ratio * scale
    pixel_y = (y - extents.min_y) * height_ratio * scale
    return (pixel_x, pixel_y)


@dataclass(frozen=True)
class Projector:
    """Projection bound to fixed extents and image dimensions."""

    extents: Extents
    width_ratio: float
    height_ratio: float
    scale: float = 1.0

    @classmethod
    def for_layout(cls, extents: Extents, layout: ImageLayout) -> Projector:
        """Compute the pixel-per-unit ratios once for a whole render."""
        extents.validate()
        return cls(
            extents=extents,
            width_ratio=layout.width / extents.width,
            height_ratio=layout.height / extents.height,
            scale=layout.scale,
        )

    def project(self, point: tuple[float, float]) -> tuple[float, float]:
        """Project a single geographic point."""
        return project(point, self.extents, self.width_ratio, self.height_ratio, self.scale)

    def project_many(self, points: Sequence[tuple[float, float]]) -> tuple[np.ndarray, np.ndarray]:
        """Project a point sequence, keeping vertex order.

        Returns:
            Arrays of pixel X and pixel Y coordinates.
        """
        coords = np.asarray(points, dtype=float).reshape(-1, 2)
        xs = (self.extents.min_x - coords[:, 0]) * -1 * self.width_ratio * self.scale
        ys = (coords[:, 1] - self.extents.min_y) * self.height_ratio * self.scale
        return xs, ys
