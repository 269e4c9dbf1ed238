"""Render configuration and option resolution."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigError


__all__ = [
    "BATCH_SIZE",
    "DEFAULT_IMAGE_WIDTH",
    "DEFAULT_SCALE",
    "DEFAULT_STROKE_WIDTH",
    "DSN_ENV_VARS",
    "OUTPUT_FORMATS",
    "RASTER_FORMATS",
    "RenderConfig",
    "get_output_format",
    "mask_dsn",
    "resolve_dsn",
]

# Rows pulled per "fetch forward" round-trip
BATCH_SIZE = 1000
DEFAULT_IMAGE_WIDTH = 5000
DEFAULT_SCALE = 1.0
# Used when the query selects only the geometry column
DEFAULT_STROKE_WIDTH = 1.0
DEFAULT_CONNECT_ATTEMPTS = 3

OUTPUT_FORMATS = ("png", "pdf", "svg")
RASTER_FORMATS = frozenset({"png"})

# Checked in order when no connection string is given on the command line
DSN_ENV_VARS = ("GLOWLINES_DSN", "DATABASE_URL")

_KEYWORD_PASSWORD_RE = re.compile(r"(password\s*=\s*)(\S+)", re.IGNORECASE)
_URL_PASSWORD_RE = re.compile(r"(://[^:/@\s]+:)([^@\s]+)(@)")


def get_output_format(path: str | Path) -> str:
    """Derive the output format from a file extension.

    Args:
        path: The output file path.

    Returns:
        One of ``OUTPUT_FORMATS``.

    Raises:
        ConfigError: If the extension is not a supported format.
    """
    suffix = Path(path).suffix.lower().lstrip(".")
    if suffix not in OUTPUT_FORMATS:
        raise ConfigError(
            f"Unknown file format '{path}' - file should be one of: {', '.join(OUTPUT_FORMATS)}"
        )
    return suffix


def resolve_dsn(explicit: str | None = None) -> str | None:
    """Return the connection string from the CLI or the environment."""
    if explicit:
        return explicit
    for name in DSN_ENV_VARS:
        value = os.environ.get(name)
        if value:
            return value
    return None


def mask_dsn(dsn: str) -> str:
    """Hide the password in a libpq keyword string or connection URL."""
    masked = _KEYWORD_PASSWORD_RE.sub(r"\1****", dsn)
    return _URL_PASSWORD_RE.sub(r"\1****\3", masked)


@dataclass(frozen=True)
class RenderConfig:
    """Configuration for a single render run."""

    dsn: str
    query: str
    output_path: Path
    extents: str | None = None
    image_width: int = DEFAULT_IMAGE_WIDTH
    scale: float = DEFAULT_SCALE
    progress: bool = False
    total_rows: int | None = None
    batch_size: int = BATCH_SIZE
    connect_attempts: int = DEFAULT_CONNECT_ATTEMPTS

    def __post_init__(self) -> None:
        """Validate option values."""
        if not self.dsn:
            raise ConfigError("A database connection string is required.")
        if not self.query or not self.query.strip():
            raise ConfigError("A query is required.")
        if self.image_width <= 0:
            raise ConfigError(f"Image width must be positive, got {self.image_width}.")
        if not self.scale > 0:
            raise ConfigError(f"Scale must be positive, got {self.scale}.")
        if self.total_rows is not None and self.total_rows < 0:
            raise ConfigError(f"Total rows cannot be negative, got {self.total_rows}.")
        if self.batch_size <= 0:
            raise ConfigError(f"Batch size must be positive, got {self.batch_size}.")
        if self.connect_attempts <= 0:
            raise ConfigError("At least one connection attempt is required.")
        # Path coercion on a frozen dataclass
        object.__setattr__(self, "output_path", Path(self.output_path))
        get_output_format(self.output_path)

    @property
    def output_format(self) -> str:
        """The output format derived from the output path."""
        return get_output_format(self.output_path)

    @property
    def is_raster(self) -> bool:
        """Whether the output is a raster image."""
        return self.output_format in RASTER_FORMATS

    @property
    def wants_progress(self) -> bool:
        """Progress is reported when requested or when a row-count hint is given."""
        return self.progress or bool(self.total_rows)
