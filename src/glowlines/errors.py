"""Error taxonomy shared by the pipeline stages."""

from __future__ import annotations


__all__ = [
    "ConfigError",
    "CursorExhaustedError",
    "DatabaseConnectionError",
    "ExtentComputationError",
    "GlowlinesError",
    "MalformedGeometryError",
    "OutputWriteError",
    "QueryError",
    "RowError",
    "UnsupportedGeometryTypeError",
]


class GlowlinesError(Exception):
    """Base exception for fatal pipeline errors."""

    exit_code = 1
    operation = "render"


class ConfigError(GlowlinesError, ValueError):
    """Raised when render options are invalid."""

    exit_code = 2
    operation = "configuration"


class DatabaseConnectionError(GlowlinesError):
    """Raised when the data source cannot be reached."""

    exit_code = 3
    operation = "database connection"


class QueryError(GlowlinesError):
    """Raised when the query executor reports a failure."""

    exit_code = 4
    operation = "query"


class CursorExhaustedError(QueryError):
    """Raised when fetching from a cursor that already returned an empty batch."""


class ExtentComputationError(GlowlinesError):
    """Raised when extents are missing or degenerate."""

    exit_code = 5
    operation = "extent computation"


class OutputWriteError(GlowlinesError):
    """Raised when the canvas cannot be written to its output file."""

    exit_code = 6
    operation = "output"


class RowError(Exception):
    """Base exception for per-row failures; the row is skipped."""


class UnsupportedGeometryTypeError(RowError):
    """Raised when a row's geometry is not a line string."""

    def __init__(self, geom_type: str) -> None:
        super().__init__(f"Geometry must be a LineString, got {geom_type}")
        self.geom_type = geom_type


class MalformedGeometryError(RowError):
    """Raised when a row's geometry or stroke width cannot be decoded."""
