"""Coarse progress milestones for the render loop."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Callable


__all__ = ["ProgressReporter", "ProgressState", "milestone_for"]

logger = logging.getLogger(__name__)

MILESTONE_STEP = 10
MAX_PERCENT = 100


def milestone_for(rows_processed: int, total_rows: int) -> int:
    """Round progress to the nearest 10% step, capped at 100."""
    percent = MILESTONE_STEP * round(rows_processed / total_rows * (MAX_PERCENT / MILESTONE_STEP))
    return min(int(percent), MAX_PERCENT)


@dataclass(frozen=True)
class ProgressState:
    """Rows processed so far and the last milestone emitted (-1 for none)."""

    total_rows: int
    rows_processed: int = 0
    last_emitted: int = -1

    def advance(self, rows: int) -> tuple[ProgressState, int | None]:
        """Account for ``rows`` more rows.

        Returns:
            The new state and the milestone to emit, or None when the rounded
            percentage has not passed the last emitted milestone.
        """
        processed = self.rows_processed + rows
        if self.total_rows <= 0:
            return replace(self, rows_processed=processed), None

        percent = milestone_for(processed, self.total_rows)
        if percent > self.last_emitted:
            return replace(self, rows_processed=processed, last_emitted=percent), percent
        return replace(self, rows_processed=processed), None


def _log_milestone(percent: int) -> None:
    logger.info("%d%%", percent)


class ProgressReporter:
    """Threads a :class:`ProgressState` through the fetch loop."""

    def __init__(
        self,
        total_rows: int,
        observer: Callable[[int], None] | None = None,
    ) -> None:
        self.state = ProgressState(total_rows=total_rows)
        self._observer = observer or _log_milestone

    def report(self, rows: int) -> int | None:
        """Record a consumed batch and notify the observer of a new milestone."""
        self.state, milestone = self.state.advance(rows)
        if milestone is not None:
            self._observer(milestone)
        return milestone
