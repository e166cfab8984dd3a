"""Calendar heatmap construction.

This module maps a sparse set of dated activity counts onto a fixed,
contiguous calendar window ending today:
- Every day in the window gets exactly one cell; missing days count as zero.
- Each cell's intensity level (0-4) is derived from its count, never supplied.
- The weekday offset of the first cell is reported as leading padding so a
  renderer can lay cells out in fixed seven-row week columns.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

from .config import DEFAULT_LEVEL_THRESHOLDS, MAX_HEATMAP_DAYS, validate_thresholds, validate_window
from .errors import MalformedRecordError
from .models import DailySummary, HeatmapDay, HeatmapGrid

logger = logging.getLogger(__name__)

# Python weekday numbers (Monday == 0).
MONDAY = 0
SUNDAY = 6

DayCounts = Union[Mapping[dt.date, int], Iterable[Tuple[dt.date, int]]]


def activity_level(count: int, thresholds: Sequence[int] = DEFAULT_LEVEL_THRESHOLDS) -> int:
    """Map a daily activity count to a heatmap level in range 0..4.

    ``thresholds`` are the inclusive upper bounds of levels 1, 2 and 3. With
    the defaults ``(3, 9, 19)``: 0 -> 0, 1-3 -> 1, 4-9 -> 2, 10-19 -> 3 and
    20+ -> 4.
    """
    if count <= 0:
        return 0
    if count <= thresholds[0]:
        return 1
    if count <= thresholds[1]:
        return 2
    if count <= thresholds[2]:
        return 3
    return 4


def week_padding(first_day: dt.date, week_start: int = SUNDAY) -> int:
    """Return how many empty cells precede ``first_day`` in its week column."""
    return (first_day.weekday() - week_start) % 7


def _collect_counts(counts: DayCounts) -> Dict[dt.date, int]:
    pairs = counts.items() if isinstance(counts, Mapping) else counts
    merged: Dict[dt.date, int] = {}

    for day, count in pairs:
        if isinstance(day, dt.datetime) or not isinstance(day, dt.date):
            raise MalformedRecordError(f"Heatmap count is not keyed by a calendar date: {day!r}")
        if isinstance(count, bool) or not isinstance(count, int):
            raise MalformedRecordError(f"Heatmap count for {day.isoformat()} is not an integer: {count!r}")
        if count < 0:
            raise MalformedRecordError(f"Heatmap count for {day.isoformat()} is negative: {count}")
        merged[day] = merged.get(day, 0) + count

    return merged


def build_heatmap(
    counts: DayCounts,
    days: int = 365,
    today: Optional[dt.date] = None,
    thresholds: Sequence[int] = DEFAULT_LEVEL_THRESHOLDS,
    week_start: int = SUNDAY,
) -> HeatmapGrid:
    """Build a contiguous heatmap grid of ``days`` cells ending on ``today``.

    Args:
        counts: Sparse daily counts, either a ``date -> count`` mapping or an
            iterable of ``(date, count)`` pairs (repeated dates are summed).
            Days outside the window are ignored.
        days: Window size in days, inclusive of today.
        today: Last day of the window; defaults to the current local date.
        thresholds: Level thresholds, see :func:`activity_level`.
        week_start: Weekday that opens a calendar column (``SUNDAY`` or ``MONDAY``).

    Returns:
        ``HeatmapGrid`` with exactly ``days`` ascending cells and the leading
        padding of the first cell.

    Raises:
        InvalidWindowError: If ``days`` is not in ``[1, 366]``.
        ConfigurationError: If ``thresholds`` are not valid.
        MalformedRecordError: If a count is negative or not keyed by a date.
    """
    validate_window("days", days, MAX_HEATMAP_DAYS)
    level_thresholds = validate_thresholds(thresholds)
    if week_start not in range(7):
        raise ValueError("week_start must be a weekday number in range 0..6.")

    end = today or dt.date.today()
    start = end - dt.timedelta(days=days - 1)
    counts_by_date = _collect_counts(counts)

    cells = []
    for offset in range(days):
        day = start + dt.timedelta(days=offset)
        count = counts_by_date.get(day, 0)
        cells.append(HeatmapDay(date=day, level=activity_level(count, level_thresholds), count=count))

    grid = HeatmapGrid(days=tuple(cells), padding=week_padding(start, week_start))

    logger.debug(
        "Built heatmap grid",
        extra={
            "start": start.isoformat(),
            "end": end.isoformat(),
            "cells": len(cells),
            "padding": grid.padding,
            "active_days": grid.active_days,
        },
    )

    return grid


def heatmap_counts(summaries: Iterable[DailySummary]) -> Dict[dt.date, int]:
    """Extract daily commit counts, the heatmap's source metric, from summaries.

    Raises:
        MalformedRecordError: If two summaries share the same date.
    """
    counts: Dict[dt.date, int] = {}
    for summary in summaries:
        if summary.date in counts:
            raise MalformedRecordError(f"Duplicate daily summary for {summary.date.isoformat()}")
        counts[summary.date] = summary.totalCommits
    return counts
