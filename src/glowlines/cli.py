"""Command-line interface for glowlines."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import NoReturn

from .config import (
    DEFAULT_IMAGE_WIDTH,
    DEFAULT_SCALE,
    DSN_ENV_VARS,
    RenderConfig,
    resolve_dsn,
)
from .errors import GlowlinesError
from .pipeline import run


__all__ = ["EXIT_USAGE", "cli", "create_parser", "main"]

logger = logging.getLogger(__name__)

EXIT_USAGE = 2


def _print_examples() -> None:
    """Print usage examples."""
    print(
        """
PostGIS Line Renderer
=====================

Usage:
  glowlines --pg <connection> --query <sql> --file <output> [options]

The query must return a LineString geometry as WKT (or hex WKB) in its first
column and, optionally, a numeric line width in its second column.

Examples:
  # Streams of New York state, extents computed from the data
  glowlines --pg "host=db.example.com user=reader dbname=gis password=secret" \\
    --query "select st_astext(shape), 1.0 from streams s \\
             join tl_2018_us_state us on s.shape && us.wkb_geometry \\
             where us.stusps = 'NY'" \\
    --file ny_streams.png

  # Continental US with explicit extents and a progress meter
  glowlines --pg "$DATABASE_URL" \\
    --query @streams.sql \\
    --extents "POLYGON((-129 23,-129 51,-62 51,-62 23,-129 23))" \\
    --width 8000 --progress --file conus.png

  # Vector output
  glowlines --pg "$DATABASE_URL" --query @roads.sql --extents=-74.3,40.5,-73.7,40.9 \\
    --file roads.pdf

Options:
  --pg, --dsn       Database connection string (or GLOWLINES_DSN / DATABASE_URL)
  --query, -q       SQL query, or @FILE to read it from a file
  --file, -f        Output path; the extension selects png, pdf or svg
  --extents         Region as WKT or min_x,min_y,max_x,max_y (default: from data)
  --width, -w       Image width in pixels (default: 5000; height keeps aspect ratio)
  --scale           Multiplier applied to projected coordinates (default: 1.0)
  --progress        Report progress in 10% steps
  --total-rows      Expected row count for progress (implies --progress)
"""
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="glowlines",
        description="Render PostGIS line geometries into a glowing PNG, PDF or SVG image",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  glowlines --pg "host=localhost dbname=gis" --query "select st_astext(geom), 1 from rivers" -f rivers.png
  glowlines --pg "$DATABASE_URL" --query @roads.sql --extents=-74.3,40.5,-73.7,40.9 -f roads.pdf
        """,
    )

    parser.add_argument(
        "--pg",
        "--dsn",
        dest="dsn",
        type=str,
        help=f"Database connection string (default: ${' or $'.join(DSN_ENV_VARS)})",
    )
    parser.add_argument(
        "--query",
        "-q",
        type=str,
        help="SQL returning WKT line strings and an optional line width, or @FILE",
    )
    parser.add_argument(
        "--file",
        "-f",
        dest="output",
        type=str,
        help="Output file path (.png, .pdf or .svg)",
    )
    parser.add_argument(
        "--extents",
        type=str,
        help="Region as WKT or min_x,min_y,max_x,max_y (default: computed from the data)",
    )
    parser.add_argument(
        "--width",
        "-w",
        type=int,
        default=DEFAULT_IMAGE_WIDTH,
        help=f"Image width in pixels (default: {DEFAULT_IMAGE_WIDTH})",
    )
    parser.add_argument(
        "--scale",
        type=float,
        default=DEFAULT_SCALE,
        help=f"Scale factor for projected coordinates (default: {DEFAULT_SCALE})",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Report progress in 10%% steps",
    )
    parser.add_argument(
        "--total-rows",
        dest="total_rows",
        type=int,
        help="Anticipated number of rows; implies --progress and skips the count query",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    return parser


def _read_query(value: str) -> str:
    """Return the query text, reading it from a file when given as ``@path``."""
    if not value.startswith("@"):
        return value
    path = Path(value[1:]).expanduser()
    return path.read_text(encoding="utf-8").strip().rstrip(";")


def _missing_options(parsed: argparse.Namespace, dsn: str | None) -> list[str]:
    missing = []
    if not dsn:
        missing.append("--pg")
    if not parsed.query:
        missing.append("--query")
    if not parsed.output:
        missing.append("--file")
    return missing


def cli(args: list[str] | None = None) -> int:
    """Run the CLI with the given arguments.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    # Configure logging for CLI usage
    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    if (len(sys.argv) == 1 and args is None) or args == []:
        _print_examples()
        return EXIT_USAGE

    if parsed.version:
        from . import __version__

        print(f"glowlines {__version__}")
        return 0

    dsn = resolve_dsn(parsed.dsn)
    missing = _missing_options(parsed, dsn)
    if missing:
        print(f"Error: missing required option(s): {', '.join(missing)}\n")
        _print_examples()
        return EXIT_USAGE

    try:
        query = _read_query(parsed.query)
    except OSError as e:
        print(f"Error: could not read query file: {e}")
        return EXIT_USAGE

    print("=" * 50)
    print("PostGIS Line Renderer")
    print("=" * 50)

    try:
        config = RenderConfig(
            dsn=dsn,
            query=query,
            output_path=Path(parsed.output).expanduser(),
            extents=parsed.extents,
            image_width=parsed.width,
            scale=parsed.scale,
            progress=parsed.progress,
            total_rows=parsed.total_rows,
        )
        stats = run(config)
    except GlowlinesError as e:
        logger.debug("Render aborted", exc_info=True)
        print(f"\n✗ Error: {e.operation.capitalize()} failed: {e}")
        return e.exit_code
    except Exception as e:
        print(f"\n✗ Error: {e}")
        import traceback

        traceback.print_exc()
        return 1

    print("\n" + "=" * 50)
    print(f"✓ Rendered {stats.paths_drawn} lines to {config.output_path}")
    if stats.rows_skipped:
        print(f"  {stats.rows_skipped} rows skipped")
    print("=" * 50)
    return 0


def main() -> NoReturn:
    """Main entry point."""
    sys.exit(cli())


if __name__ == "__main__":
    main()
