"""Geographic extent resolution and image sizing."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from psycopg import sql

from .database import fetch_value
from .errors import ExtentComputationError, MalformedGeometryError, QueryError
from .geometry import load_geometry


if TYPE_CHECKING:
    import psycopg


__all__ = [
    "Extents",
    "ImageLayout",
    "extents_from_wkt",
    "parse_bbox",
    "parse_region",
    "resolve_extents",
]

logger = logging.getLogger(__name__)

EXTENT_SQL = "with foo(geom) as ( {} ) select st_astext(st_extent(geom)) from foo"


@dataclass(frozen=True)
class Extents:
    """Axis-aligned geographic bounding box."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        """Geographic span along the X axis."""
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        """Geographic span along the Y axis."""
        return self.max_y - self.min_y

    @property
    def aspect_ratio(self) -> float:
        """Width over height of the geographic span."""
        return self.width / self.height

    def validate(self) -> Extents:
        """Check that the extents can be used as a projection basis.

        Returns:
            The same extents, for chaining.

        Raises:
            ExtentComputationError: If a bound is not finite, a maximum is below
                its minimum, or either span is zero.
        """
        bounds = (self.min_x, self.min_y, self.max_x, self.max_y)
        if not all(math.isfinite(value) for value in bounds):
            raise ExtentComputationError(f"Extents are not finite: {bounds}")
        if self.max_x < self.min_x or self.max_y < self.min_y:
            raise ExtentComputationError(f"Extents are inverted: {bounds}")
        if self.width == 0 or self.height == 0:
            raise ExtentComputationError(
                f"Extents have zero width or height ({self.width} x {self.height}); "
                "cannot derive an image size"
            )
        return self


@dataclass(frozen=True)
class ImageLayout:
    """Pixel dimensions of the output image."""

    width: int
    height: int
    scale: float = 1.0

    @classmethod
    def for_extents(cls, extents: Extents, width: int, scale: float = 1.0) -> ImageLayout:
        """Derive the image height that preserves the extents' aspect ratio.

        Raises:
            ExtentComputationError: If the derived height rounds to zero.
        """
        extents.validate()
        height = round(width / extents.aspect_ratio)
        if height < 1:
            raise ExtentComputationError(
                f"Extents aspect ratio {extents.aspect_ratio:.3g} gives an image height "
                f"of zero at width {width}"
            )
        return cls(width=width, height=height, scale=scale)


def extents_from_wkt(text: str) -> Extents:
    """Return the bounding box of a WKT (or hex WKB) geometry.

    Raises:
        ExtentComputationError: If the text cannot be decoded or is empty.
    """
    try:
        geom = load_geometry(text)
    except MalformedGeometryError as e:
        raise ExtentComputationError(f"Could not decode extents: {e}") from e
    if geom.is_empty:
        raise ExtentComputationError(f"Extents geometry is empty: {text!r}")
    min_x, min_y, max_x, max_y = geom.bounds
    return Extents(min_x=min_x, min_y=min_y, max_x=max_x, max_y=max_y)


def parse_bbox(text: str) -> Extents:
    """Parse a ``min_x,min_y,max_x,max_y`` string.

    Raises:
        ExtentComputationError: If the string does not hold four numbers.
    """
    parts = [part.strip() for part in text.split(",")]
    if len(parts) != 4:
        raise ExtentComputationError(
            f"Bounding box must be min_x,min_y,max_x,max_y, got {text!r}"
        )
    try:
        min_x, min_y, max_x, max_y = (float(part) for part in parts)
    except ValueError as e:
        raise ExtentComputationError(f"Bounding box values must be numbers: {text!r}") from e
    return Extents(min_x=min_x, min_y=min_y, max_x=max_x, max_y=max_y)


def parse_region(text: str) -> Extents:
    """Decode a user-supplied region given as WKT or as a bounding box string."""
    stripped = text.strip()
    if "(" not in stripped and stripped.count(",") == 3:
        return parse_bbox(stripped)
    return extents_from_wkt(stripped)


def resolve_extents(
    region: str | None,
    conn: psycopg.Connection | None,
    query: str,
) -> Extents:
    """Compute the extents from an explicit region or from the query's data.

    An explicit region is decoded locally, with no database round-trip.
    Otherwise the query is wrapped in a common table expression and the
    database is asked for the aggregate extent of its geometry column.

    Args:
        region: Optional region as WKT or ``min_x,min_y,max_x,max_y``.
        conn: Open database connection; unused when a region is given.
        query: The data query whose first column is the geometry.

    Returns:
        Validated, non-degenerate extents.

    Raises:
        ExtentComputationError: If the query fails, returns no extent, or the
            extents have zero width or height.
    """
    if region:
        logger.info("Using supplied extents")
        return parse_region(region).validate()

    if conn is None:
        raise ExtentComputationError("No region given and no connection to compute extents")

    logger.info("Generating the extents")
    statement = sql.SQL(EXTENT_SQL).format(sql.SQL(query))
    try:
        value = fetch_value(conn, statement)
    except QueryError as e:
        raise ExtentComputationError(f"Failed while getting extents: {e}") from e

    if value is None:
        raise ExtentComputationError("Query returned no geometry; extents are undefined")
    return extents_from_wkt(str(value)).validate()
