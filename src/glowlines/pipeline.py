"""Streaming extract-transform-render pipeline."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tqdm import tqdm

from .config import mask_dsn
from .database import connect, count_rows, open_cursor
from .errors import RowError
from .extents import Extents, ImageLayout, resolve_extents
from .geometry import GeometryRecord, decode_linestring
from .progress import ProgressReporter
from .projection import Projector
from .render import LineCanvas


if TYPE_CHECKING:
    from collections.abc import Callable

    from .config import RenderConfig


__all__ = ["RenderStats", "render_row", "run"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderStats:
    """Summary of a completed render."""

    rows_fetched: int
    paths_drawn: int
    rows_skipped: int
    extents: Extents
    layout: ImageLayout


def render_row(row: tuple[Any, ...], projector: Projector, canvas: LineCanvas) -> bool:
    """Decode, project and draw a single result row.

    Returns:
        True if a path was drawn, False if the line had fewer than two points.

    Raises:
        RowError: If the row cannot be decoded or is not a line string.
    """
    record = GeometryRecord.from_row(row)
    points = decode_linestring(record.geometry)
    xs, ys = projector.project_many(points)
    return canvas.draw_path(xs, ys, record.stroke_width)


def _log_config(config: RenderConfig) -> None:
    logger.info('Connecting to database using: "%s"', mask_dsn(config.dsn))
    logger.info("Output format: %s", config.output_format)
    logger.info('Query: "%s"', config.query)
    logger.info("Image Width: %d", config.image_width)
    logger.info("File path: %s", config.output_path)


def run(
    config: RenderConfig,
    observer: Callable[[int], None] | None = None,
    show_progress: bool = True,
) -> RenderStats:
    """Render every line string returned by the configured query.

    The stages run strictly in sequence: extents, optional row count, canvas
    setup, the batched cursor loop, cursor close, and finally the canvas is
    written out. Rows that fail to decode are logged and skipped; every other
    error aborts the run after the connection, cursor and canvas are released.

    Args:
        config: The render configuration.
        observer: Optional callback for progress milestones (percent).
        show_progress: Whether to display a progress bar (TTY only).

    Returns:
        Counts of fetched, drawn and skipped rows plus the resolved geometry.
    """
    _log_config(config)

    with connect(config.dsn, attempts=config.connect_attempts) as conn:
        extents = resolve_extents(config.extents, conn, config.query)
        layout = ImageLayout.for_extents(extents, config.image_width, config.scale)
        projector = Projector.for_layout(extents, layout)

        logger.info("Extents: %s", extents)
        logger.info(
            "lineWidth: %s lineHeight: %s aspectRatio: %s imageWidth: %d imageHeight: %d",
            extents.width,
            extents.height,
            extents.aspect_ratio,
            layout.width,
            layout.height,
        )
        logger.info(
            "Scale: %s imageToLineWidthRatio: %s imageToLineHeightRatio: %s",
            projector.scale,
            projector.width_ratio,
            projector.height_ratio,
        )

        reporter: ProgressReporter | None = None
        total_rows = config.total_rows or 0
        if config.wants_progress:
            if not total_rows:
                total_rows = count_rows(conn, config.query)
                logger.info("Total rows calculated as %d", total_rows)
            reporter = ProgressReporter(total_rows, observer)

        rows_skipped = 0
        rows_seen = 0
        with LineCanvas(layout.width, layout.height, config.output_format) as canvas:
            logger.info("Start rendering...")
            with (
                open_cursor(conn, config.query) as stream,
                tqdm(
                    total=total_rows or None,
                    desc="Rendering",
                    unit="rows",
                    disable=reporter is None or not show_progress or not sys.stderr.isatty(),
                ) as pbar,
            ):
                for batch in stream.batches(config.batch_size):
                    for row in batch:
                        rows_seen += 1
                        try:
                            render_row(row, projector, canvas)
                        except RowError as e:
                            rows_skipped += 1
                            logger.warning("Skipping row %d: %s", rows_seen, e)
                    pbar.update(len(batch))
                    if reporter is not None:
                        reporter.report(len(batch))
                rows_fetched = stream.rows_fetched

            canvas.save(config.output_path)
            paths_drawn = canvas.paths_drawn

    logger.info(
        "Done! Rendered %d of %d rows to %s (%d skipped)",
        paths_drawn,
        rows_fetched,
        config.output_path,
        rows_skipped,
    )
    return RenderStats(
        rows_fetched=rows_fetched,
        paths_drawn=paths_drawn,
        rows_skipped=rows_skipped,
        extents=extents,
        layout=layout,
    )
