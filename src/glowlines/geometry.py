"""Row decoding: geometry text and stroke width."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any

from shapely import wkb, wkt
from shapely.errors import ShapelyError
from shapely.geometry.base import BaseGeometry

from .config import DEFAULT_STROKE_WIDTH
from .errors import MalformedGeometryError, UnsupportedGeometryTypeError


__all__ = [
    "GeometryRecord",
    "PointSequence",
    "decode_linestring",
    "load_geometry",
]

PointSequence = list[tuple[float, float]]

_HEX_RE = re.compile(r"^[0-9A-Fa-f]+$")
_SRID_PREFIX_RE = re.compile(r"^SRID=-?\d+;", re.IGNORECASE)


@dataclass(frozen=True)
class GeometryRecord:
    """One fetched row: geometry text plus the stroke width to draw it with."""

    geometry: str
    stroke_width: float = DEFAULT_STROKE_WIDTH

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> GeometryRecord:
        """Build a record from a result row.

        The first column is the geometry. The optional second column is the
        stroke width; widths are passed through unclamped.

        Raises:
            MalformedGeometryError: If the geometry is missing or the width is
                not a positive finite number.
        """
        if not row or row[0] is None:
            raise MalformedGeometryError("Row has no geometry")

        geometry = row[0]
        if isinstance(geometry, (bytes, bytearray, memoryview)):
            geometry = bytes(geometry).hex()

        if len(row) < 2 or row[1] is None:
            return cls(geometry=str(geometry))

        raw_width = row[1]
        try:
            width = float(raw_width)
        except (TypeError, ValueError) as e:
            raise MalformedGeometryError(f"Stroke width {raw_width!r} is not a number") from e
        if not math.isfinite(width) or width <= 0:
            raise MalformedGeometryError(f"Stroke width must be positive, got {raw_width!r}")
        return cls(geometry=str(geometry), stroke_width=width)


def load_geometry(text: str) -> BaseGeometry:
    """Parse (E)WKT, or hex-encoded (E)WKB as returned for raw PostGIS columns.

    Raises:
        MalformedGeometryError: If the text cannot be parsed.
    """
    stripped = _SRID_PREFIX_RE.sub("", text.strip())
    try:
        if _HEX_RE.match(stripped):
            return wkb.loads(stripped, hex=True)
        return wkt.loads(stripped)
    except (ShapelyError, ValueError, TypeError) as e:
        preview = stripped if len(stripped) <= 60 else f"{stripped[:57]}..."
        raise MalformedGeometryError(f"Could not parse geometry {preview!r}: {e}") from e


def decode_linestring(text: str) -> PointSequence:
    """Decode a line string into its vertices, in original order.

    Z and M values are dropped; coordinates stay geographic.

    Raises:
        UnsupportedGeometryTypeError: If the geometry is not a LineString.
        MalformedGeometryError: If the text cannot be parsed or the line is empty.
    """
    geom = load_geometry(text)
    if geom.geom_type != "LineString":
        raise UnsupportedGeometryTypeError(geom.geom_type)
    if geom.is_empty:
        raise MalformedGeometryError("LineString is empty")
    return [(float(coord[0]), float(coord[1])) for coord in geom.coords]
