"""Percentage deltas and current-vs-previous window totals."""

from __future__ import annotations

import datetime as dt
import logging
import math
from typing import Optional, Sequence

from .config import MAX_SUMMARY_DAYS, validate_window
from .models import DailySummary, WindowComparison
from .periods import fill_daily_window

logger = logging.getLogger(__name__)


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer, resolving .5 ties away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def percent_delta(current: float, previous: float) -> int:
    """Return the signed percentage change from ``previous`` to ``current``.

    A ``previous`` of 0 always yields 0: an increase from nothing is reported
    as no change rather than as an undefined or infinite percentage. Rounding
    is applied once, to the final percentage.
    """
    if previous == 0:
        return 0
    return round_half_away_from_zero((current - previous) / previous * 100)


def compare_windows(
    summaries: Sequence[DailySummary],
    window: int = 30,
    today: Optional[dt.date] = None,
) -> WindowComparison:
    """Compare the most recent ``window`` days against the ``window`` days before.

    The input is zero-filled to ``2 * window`` contiguous days ending on
    ``today`` first, so missing days count as inactive zero days.

    Raises:
        InvalidWindowError: If ``2 * window`` is not in ``[1, 365]``.
        MalformedRecordError: If two summaries share the same date.
    """
    validate_window("window", window, MAX_SUMMARY_DAYS // 2)
    series = fill_daily_window(summaries, days=window * 2, today=today)
    previous, current = series[:window], series[window:]

    current_commits = sum(day.totalCommits for day in current)
    previous_commits = sum(day.totalCommits for day in previous)
    current_prs = sum(day.totalPrs for day in current)
    previous_prs = sum(day.totalPrs for day in previous)
    active_days = sum(1 for day in current if day.is_active)
    previous_active_days = sum(1 for day in previous if day.is_active)

    comparison = WindowComparison(
        window_days=window,
        current_commits=current_commits,
        previous_commits=previous_commits,
        commits_delta=percent_delta(current_commits, previous_commits),
        current_prs=current_prs,
        previous_prs=previous_prs,
        prs_delta=percent_delta(current_prs, previous_prs),
        active_days=active_days,
        previous_active_days=previous_active_days,
        active_days_delta=percent_delta(active_days, previous_active_days),
    )

    logger.debug("Compared activity windows", extra=comparison.to_dict())

    return comparison
