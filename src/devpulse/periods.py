"""Daily and period (weekly/monthly) roll-ups of activity data.

This module provides utilities for:
- Rolling raw activity records up into one ``DailySummary`` per calendar day.
- Zero-filling a daily series over a fixed window ending today.
- Deriving stable weekly (ISO week) and monthly period keys.
- Bucketing daily summaries into chronologically ordered period summaries.
- Aggregating the last N calendar weeks or months, empty periods included.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .config import MAX_SUMMARY_DAYS, normalize_source, validate_window
from .errors import ConfigurationError, InvalidWindowError, MalformedRecordError
from .models import ActivityRecord, DailySummary, Granularity, PeriodKey, PeriodSummary

logger = logging.getLogger(__name__)

PUSH = "push"
PULL_REQUEST = "pull_request"
CODING = "coding"

_WEEK_LABEL = re.compile(r"^(\d{4})-W(\d{1,2})$")
_MONTH_LABEL = re.compile(r"^(\d{4})-(\d{1,2})$")


def to_granularity(value: Union[Granularity, str]) -> Granularity:
    """Coerce a granularity name to ``Granularity``.

    Raises:
        ConfigurationError: If the value is neither ``weekly`` nor ``monthly``.
    """
    try:
        return Granularity(value)
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid granularity {value!r}: expected 'weekly' or 'monthly'."
        ) from exc


def period_key(day: dt.date, granularity: Union[Granularity, str]) -> PeriodKey:
    """Derive the bucket key of ``day``.

    Weekly keys use the ISO calendar, so days at the very start or end of a
    year may belong to the neighbouring ISO year (2024-12-30 is ``2025-W01``).
    """
    resolved = to_granularity(granularity)
    if resolved is Granularity.WEEKLY:
        iso_year, iso_week, _ = day.isocalendar()
        return PeriodKey(year=iso_year, index=iso_week, granularity=resolved)
    return PeriodKey(year=day.year, index=day.month, granularity=resolved)


def parse_period_label(label: str, granularity: Union[Granularity, str]) -> PeriodKey:
    """Parse an API period label (``2026-W07`` or ``2026-07``) into a key.

    Raises:
        MalformedRecordError: If the label does not match the granularity's format
            or names a week/month that does not exist.
    """
    resolved = to_granularity(granularity)
    pattern = _WEEK_LABEL if resolved is Granularity.WEEKLY else _MONTH_LABEL
    match = pattern.match((label or "").strip())
    if match is None:
        raise MalformedRecordError(f"Invalid {resolved.value} period label: {label!r}")

    year, index = int(match.group(1)), int(match.group(2))
    if resolved is Granularity.WEEKLY:
        try:
            dt.date.fromisocalendar(year, index, 1)
        except ValueError as exc:
            raise MalformedRecordError(f"Invalid ISO week in period label: {label!r}") from exc
    elif not 1 <= index <= 12:
        raise MalformedRecordError(f"Invalid month in period label: {label!r}")

    return PeriodKey(year=year, index=index, granularity=resolved)


def ensure_unique_dates(summaries: Sequence[DailySummary]) -> None:
    """Reject a daily series that contains the same date twice.

    Raises:
        MalformedRecordError: On the first duplicated date.
    """
    seen = set()
    for summary in summaries:
        if summary.date in seen:
            raise MalformedRecordError(f"Duplicate daily summary for {summary.date.isoformat()}")
        seen.add(summary.date)


def aggregate_periods(
    summaries: Sequence[DailySummary],
    granularity: Union[Granularity, str],
    limit: Optional[int] = None,
) -> List[PeriodSummary]:
    """Bucket daily summaries into weekly or monthly period summaries.

    Business logic:
    - Two days share a period iff their derived keys are equal.
    - Each period that contains at least one input day yields one summary with
      per-field sums; partial periods are emitted as-is.
    - Output is sorted by the numeric ``(year, index)`` key, not by label.
    - ``limit`` keeps only the most recent ``limit`` periods.

    Raises:
        ConfigurationError: If ``granularity`` is unknown.
        InvalidWindowError: If ``limit`` is not positive.
        MalformedRecordError: If two input summaries share the same date.
    """
    resolved = to_granularity(granularity)
    if limit is not None and limit <= 0:
        raise InvalidWindowError(f"Invalid value for 'limit': expected an integer greater than 0, got {limit}.")
    ensure_unique_dates(summaries)

    totals: Dict[PeriodKey, List[int]] = {}
    for summary in summaries:
        bucket = totals.setdefault(period_key(summary.date, resolved), [0, 0, 0])
        bucket[0] += summary.totalCommits
        bucket[1] += summary.totalPrs
        bucket[2] += summary.codingMinutes

    periods = [
        PeriodSummary(key=key, totalCommits=commits, totalPrs=prs, codingMinutes=minutes)
        for key, (commits, prs, minutes) in sorted(totals.items())
    ]

    if limit is not None:
        periods = periods[-limit:]

    logger.debug(
        "Aggregated period summaries",
        extra={"granularity": resolved.value, "days": len(summaries), "periods": len(periods)},
    )

    return periods


def sort_periods(periods: Iterable[PeriodSummary]) -> List[PeriodSummary]:
    """Return period summaries in chronological key order."""
    return sorted(periods, key=lambda period: period.key)


def _commit_count(payload: Any) -> int:
    inner = payload.get("payload") if isinstance(payload, Mapping) else None
    if isinstance(inner, Mapping):
        commits = inner.get("commits")
        if isinstance(commits, list):
            return len(commits)
        size = inner.get("size")
        if isinstance(size, int) and not isinstance(size, bool) and size >= 0:
            return size
    return 1


def _coding_minutes(record: ActivityRecord) -> int:
    minutes = record.payload.get("minutes")
    if isinstance(minutes, bool) or not isinstance(minutes, (int, float)) or minutes < 0:
        raise MalformedRecordError(f"Coding activity {record.id} has no valid 'minutes' value")
    return int(minutes)


def summarize_activities(
    records: Iterable[ActivityRecord],
    source: Optional[str] = None,
) -> List[DailySummary]:
    """Roll raw activity records up into one daily summary per active day.

    Business logic:
    - Days are keyed by the UTC calendar date of ``occurredAt``.
    - ``push`` records add their commit count (``payload.commits`` length,
      else ``payload.size``, else 1).
    - ``pull_request`` records add one PR.
    - ``coding`` records add ``payload.minutes`` of coding time.
    - Other record types (reviews, branch creation) count toward no metric.
    - ``source`` restricts the roll-up to a single provider.

    Raises:
        MalformedRecordError: If a record has no type or timestamp, or a
            coding sample has no valid duration.
    """
    wanted_source = normalize_source(source)
    totals: Dict[dt.date, List[int]] = {}
    skipped = 0

    for record in records:
        if not record.type or not isinstance(record.occurredAt, dt.datetime):
            raise MalformedRecordError(f"Activity {record.id!r} is missing its type or occurredAt timestamp")

        if wanted_source is not None and record.source.lower() != wanted_source:
            skipped += 1
            continue

        bucket = totals.setdefault(record.occurred_at_utc.date(), [0, 0, 0])
        if record.type == PUSH:
            bucket[0] += _commit_count(record.payload)
        elif record.type == PULL_REQUEST:
            bucket[1] += 1
        elif record.type == CODING:
            bucket[2] += _coding_minutes(record)

    summaries = [
        DailySummary(date=day, totalCommits=commits, totalPrs=prs, codingMinutes=minutes)
        for day, (commits, prs, minutes) in sorted(totals.items())
    ]

    logger.debug(
        "Summarized activity records",
        extra={"days": len(summaries), "skipped_by_source": skipped, "source": wanted_source},
    )

    return summaries


def fill_date_range(
    summaries: Sequence[DailySummary],
    start: dt.date,
    end: dt.date,
) -> List[DailySummary]:
    """Return one summary per day from ``start`` to ``end`` inclusive.

    Absent days are materialized as zero-valued summaries and days outside the
    range are dropped, so absent and zero days become indistinguishable.

    Raises:
        InvalidWindowError: If ``start`` is after ``end``.
        MalformedRecordError: If two input summaries share the same date.
    """
    if start > end:
        raise InvalidWindowError(f"Invalid date range: {start.isoformat()} is after {end.isoformat()}.")
    ensure_unique_dates(summaries)

    by_date = {summary.date: summary for summary in summaries}

    window: List[DailySummary] = []
    for offset in range((end - start).days + 1):
        day = start + dt.timedelta(days=offset)
        window.append(by_date.get(day) or DailySummary(date=day))
    return window


def fill_daily_window(
    summaries: Sequence[DailySummary],
    days: int,
    today: Optional[dt.date] = None,
) -> List[DailySummary]:
    """Return a contiguous ``days``-long daily series ending on ``today``.

    Raises:
        InvalidWindowError: If ``days`` is not in ``[1, 365]``.
        MalformedRecordError: If two input summaries share the same date.
    """
    validate_window("days", days, MAX_SUMMARY_DAYS)

    end = today or dt.date.today()
    return fill_date_range(summaries, end - dt.timedelta(days=days - 1), end)


def period_window_start(end: dt.date, count: int, granularity: Union[Granularity, str]) -> dt.date:
    """Return the first day of the ``count`` calendar periods ending with ``end``'s period.

    Weekly windows start on the Monday of an ISO week, monthly windows on the
    first of a month.

    Raises:
        InvalidWindowError: If ``count`` is not positive.
    """
    resolved = to_granularity(granularity)
    if count <= 0:
        raise InvalidWindowError(f"Invalid value for 'count': expected an integer greater than 0, got {count}.")

    if resolved is Granularity.WEEKLY:
        return end - dt.timedelta(days=end.weekday(), weeks=count - 1)

    year, month_index = divmod(end.year * 12 + end.month - 1 - (count - 1), 12)
    return dt.date(year, month_index + 1, 1)


def calendar_periods(
    summaries: Sequence[DailySummary],
    granularity: Union[Granularity, str],
    count: int,
    today: Optional[dt.date] = None,
) -> List[PeriodSummary]:
    """Aggregate the last ``count`` calendar periods ending with today's period.

    Every period in the window is emitted, zero-valued when it saw no activity,
    and activity outside the window is ignored.

    Raises:
        InvalidWindowError: If ``count`` is not positive.
        MalformedRecordError: If two input summaries share the same date.
    """
    end = today or dt.date.today()
    start = period_window_start(end, count, granularity)
    return aggregate_periods(fill_date_range(summaries, start, end), granularity, limit=count)
