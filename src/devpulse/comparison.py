"""Period-over-period comparison series for overlay charting.

An ordered series is split into a "previous" half and a "current" half and the
two are paired index-wise, so a chart can draw the current period as bars and
the previous period's commits as an overlay line.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Callable, List, Sequence, Tuple, TypeVar, Union

from .models import ComparisonPoint, DailySummary, Granularity, PeriodSummary
from .periods import to_granularity

logger = logging.getLogger(__name__)

_MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

SummaryT = TypeVar("SummaryT", DailySummary, PeriodSummary)


def format_day_label(day: dt.date) -> str:
    """Format a date as ``MM/DD``."""
    return f"{day.month:02d}/{day.day:02d}"


def format_week_label(period: str) -> str:
    """Format a weekly key such as ``2026-W07`` as ``W07``."""
    parts = period.split("-", 1)
    return parts[1] if len(parts) == 2 and parts[1] else period


def format_month_label(period: str) -> str:
    """Format a monthly key such as ``2026-07`` as ``Jul``.

    Keys that do not carry a valid month are returned unchanged.
    """
    parts = period.split("-", 1)
    if len(parts) != 2 or not parts[1].isdigit():
        return period

    month = int(parts[1])
    if not 1 <= month <= 12:
        return period
    return _MONTH_NAMES[month - 1]


def split_halves(items: Sequence[SummaryT]) -> Tuple[List[SummaryT], List[SummaryT]]:
    """Split a series into ``(previous, current)`` halves.

    ``previous`` holds the first ``floor(L/2)`` items and ``current`` the
    remaining ``L - floor(L/2)``, so the current half is never shorter.
    """
    midpoint = len(items) // 2
    return list(items[:midpoint]), list(items[midpoint:])


def build_comparison_series(
    items: Sequence[SummaryT],
    label: Callable[[SummaryT], str],
) -> List[ComparisonPoint]:
    """Pair the current half of a series with its previous half.

    ``items`` must already be ordered oldest to newest; this function never
    reorders its input. Point ``i`` carries the current half's ``i``-th commits
    and PRs plus the previous half's ``i``-th commits, or 0 when the previous
    half has no ``i``-th entry (odd-length input).

    Args:
        items: Chronological daily or period summaries.
        label: Formatter turning one summary into its display label.

    Returns:
        One ``ComparisonPoint`` per item of the current half.
    """
    previous, current = split_halves(items)

    points = [
        ComparisonPoint(
            label=label(item),
            commits=item.totalCommits,
            prs=item.totalPrs,
            prevCommits=previous[index].totalCommits if index < len(previous) else 0,
        )
        for index, item in enumerate(current)
    ]

    logger.debug(
        "Built comparison series",
        extra={"input_length": len(items), "previous_length": len(previous), "points": len(points)},
    )

    return points


def daily_comparison(summaries: Sequence[DailySummary]) -> List[ComparisonPoint]:
    """Build a comparison series over daily summaries labelled ``MM/DD``."""
    return build_comparison_series(summaries, lambda summary: format_day_label(summary.date))


def period_comparison(
    summaries: Sequence[PeriodSummary],
    granularity: Union[Granularity, str],
) -> List[ComparisonPoint]:
    """Build a comparison series over period summaries with short week/month labels."""
    if to_granularity(granularity) is Granularity.WEEKLY:
        formatter = format_week_label
    else:
        formatter = format_month_label
    return build_comparison_series(summaries, lambda summary: formatter(summary.period))
