"""Tests for daily roll-ups and weekly/monthly period aggregation."""

import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from devpulse.errors import ConfigurationError, InvalidWindowError, MalformedRecordError
from devpulse.models import ActivityRecord, DailySummary, Granularity, PeriodKey
from devpulse.periods import (
    aggregate_periods,
    calendar_periods,
    fill_daily_window,
    parse_period_label,
    period_key,
    period_window_start,
    summarize_activities,
)


def _day(value: date, commits: int = 0, prs: int = 0, minutes: int = 0) -> DailySummary:
    return DailySummary(date=value, totalCommits=commits, totalPrs=prs, codingMinutes=minutes)


def _activity(
    activity_id: int,
    activity_type: str,
    occurred_at: datetime,
    payload: dict | None = None,
    source: str = "github",
) -> ActivityRecord:
    return ActivityRecord(
        id=activity_id,
        source=source,
        type=activity_type,
        payload=payload or {},
        occurredAt=occurred_at,
    )


def test_period_key_weekly_uses_iso_calendar_across_year_boundary():
    """Verify late-December days can belong to week 1 of the next ISO year."""
    assert period_key(date(2025, 12, 28), Granularity.WEEKLY) == PeriodKey(2025, 52, Granularity.WEEKLY)
    assert period_key(date(2025, 12, 29), "weekly") == PeriodKey(2026, 1, Granularity.WEEKLY)
    assert period_key(date(2026, 1, 4), "weekly") == PeriodKey(2026, 1, Granularity.WEEKLY)


def test_period_key_monthly_and_labels():
    """Verify monthly keys use calendar year/month and labels are zero-padded."""
    key = period_key(date(2026, 3, 15), Granularity.MONTHLY)

    assert key == PeriodKey(2026, 3, Granularity.MONTHLY)
    assert key.label == "2026-03"
    assert period_key(date(2026, 2, 11), "weekly").label == "2026-W07"


def test_period_key_unknown_granularity_raises_configuration_error():
    """Verify unsupported granularities are rejected."""
    with pytest.raises(ConfigurationError):
        period_key(date(2026, 1, 1), "daily")


def test_aggregate_periods_weekly_sums_and_orders_chronologically_across_years():
    """Verify weekly buckets are summed and ordered by (year, week), not label text."""
    summaries = [
        _day(date(2025, 12, 22), commits=1),
        _day(date(2025, 12, 28), commits=2, prs=1),
        _day(date(2025, 12, 29), commits=3),
        _day(date(2026, 1, 2), commits=4, minutes=30),
        _day(date(2026, 1, 5), commits=5),
    ]

    periods = aggregate_periods(summaries, Granularity.WEEKLY)

    assert [period.period for period in periods] == ["2025-W52", "2026-W01", "2026-W02"]
    assert [period.totalCommits for period in periods] == [3, 7, 5]
    assert periods[0].totalPrs == 1
    assert periods[1].codingMinutes == 30


def test_aggregate_periods_orders_by_key_even_for_unordered_input():
    """Verify output ordering does not depend on input ordering."""
    summaries = [
        _day(date(2026, 2, 1), commits=1),
        _day(date(2025, 11, 3), commits=2),
        _day(date(2026, 10, 1), commits=3),
    ]

    periods = aggregate_periods(summaries, Granularity.MONTHLY)

    assert [period.period for period in periods] == ["2025-11", "2026-02", "2026-10"]
    keys = [period.key for period in periods]
    assert keys == sorted(keys)


def test_aggregate_periods_preserves_commit_totals():
    """Verify no commits are lost or double counted by either granularity."""
    start = date(2025, 11, 20)
    summaries = [_day(start + timedelta(days=offset), commits=offset % 7) for offset in range(120)]
    expected = sum(summary.totalCommits for summary in summaries)

    for granularity in (Granularity.WEEKLY, Granularity.MONTHLY):
        periods = aggregate_periods(summaries, granularity)
        assert sum(period.totalCommits for period in periods) == expected


def test_aggregate_periods_emits_partial_periods_and_skips_empty_ones():
    """Verify partial months are emitted as-is and months without days are absent."""
    summaries = [
        _day(date(2026, 1, 31), commits=2),
        _day(date(2026, 3, 1), commits=7),
    ]

    periods = aggregate_periods(summaries, Granularity.MONTHLY)

    assert [(period.period, period.totalCommits) for period in periods] == [("2026-01", 2), ("2026-03", 7)]


def test_aggregate_periods_limit_keeps_most_recent_periods():
    """Verify limit keeps only the newest periods, still in chronological order."""
    summaries = [_day(date(2026, month, 1), commits=month) for month in range(1, 7)]

    periods = aggregate_periods(summaries, "monthly", limit=2)

    assert [period.period for period in periods] == ["2026-05", "2026-06"]


def test_aggregate_periods_rejects_invalid_limit_and_duplicate_dates():
    """Verify non-positive limits and duplicated dates are rejected."""
    summaries = [_day(date(2026, 1, 1), commits=1)]

    with pytest.raises(InvalidWindowError):
        aggregate_periods(summaries, "weekly", limit=0)

    with pytest.raises(MalformedRecordError):
        aggregate_periods(summaries + [_day(date(2026, 1, 1), commits=2)], "weekly")


def test_aggregate_periods_empty_input_returns_empty_list():
    """Verify aggregating nothing yields no periods."""
    assert aggregate_periods([], Granularity.WEEKLY) == []


def test_parse_period_label_valid_and_invalid_labels():
    """Verify API labels round into keys and invalid labels are malformed."""
    assert parse_period_label("2026-W07", "weekly") == PeriodKey(2026, 7, Granularity.WEEKLY)
    assert parse_period_label("2026-7", "monthly") == PeriodKey(2026, 7, Granularity.MONTHLY)

    for label, granularity in [("2026-W54", "weekly"), ("2026-13", "monthly"), ("garbage", "weekly"), ("", "monthly")]:
        with pytest.raises(MalformedRecordError):
            parse_period_label(label, granularity)


def test_summarize_activities_counts_commits_prs_and_minutes_per_day():
    """Verify activity types map to commits, PRs and coding minutes per UTC day."""
    day_one = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
    day_two = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
    records = [
        _activity(1, "push", day_one, {"repo": "a/b", "payload": {"commits": [{"sha": "1"}, {"sha": "2"}, {"sha": "3"}]}}),
        _activity(2, "push", day_one, {"repo": "a/b", "payload": {"size": 2}}),
        _activity(3, "push", day_two, {"repo": "a/b"}),
        _activity(4, "pull_request", day_two, {"repo": "a/b"}),
        _activity(5, "review", day_two, {"repo": "a/b"}),
        _activity(6, "coding", day_two, {"minutes": 45}, source="wakatime"),
    ]

    summaries = summarize_activities(records)

    assert summaries == [
        DailySummary(date=date(2026, 3, 1), totalCommits=5, totalPrs=0, codingMinutes=0),
        DailySummary(date=date(2026, 3, 2), totalCommits=1, totalPrs=1, codingMinutes=45),
    ]


def test_summarize_activities_uses_utc_calendar_day():
    """Verify offsets are normalized to UTC before picking the day."""
    late_evening = datetime(2026, 3, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5)))

    summaries = summarize_activities([_activity(1, "pull_request", late_evening)])

    assert summaries[0].date == date(2026, 3, 2)


def test_summarize_activities_treats_naive_timestamps_as_utc():
    """Verify naive timestamps are accepted and keyed by their own calendar day."""
    summaries = summarize_activities([_activity(1, "push", datetime(2026, 3, 1, 23, 30), {"payload": {"size": 2}})])

    assert summaries == [DailySummary(date=date(2026, 3, 1), totalCommits=2)]


def test_summarize_activities_source_filter():
    """Verify the source filter excludes other providers and 'all' keeps every source."""
    moment = datetime(2026, 3, 1, tzinfo=timezone.utc)
    records = [
        _activity(1, "pull_request", moment, source="github"),
        _activity(2, "coding", moment, {"minutes": 30}, source="wakatime"),
    ]

    github_only = summarize_activities(records, source="GitHub")
    everything = summarize_activities(records, source="all")

    assert github_only == [DailySummary(date=date(2026, 3, 1), totalPrs=1)]
    assert everything == [DailySummary(date=date(2026, 3, 1), totalPrs=1, codingMinutes=30)]


def test_summarize_activities_rejects_malformed_records():
    """Verify records missing a timestamp or a coding duration fail fast."""
    with pytest.raises(MalformedRecordError):
        summarize_activities([_activity(1, "push", None)])

    with pytest.raises(MalformedRecordError):
        summarize_activities([_activity(2, "coding", datetime(2026, 3, 1, tzinfo=timezone.utc), {})])


def test_fill_daily_window_zero_fills_and_drops_out_of_window_days():
    """Verify absent days become zero summaries and older days are dropped."""
    today = date(2026, 10, 19)
    summaries = [
        _day(today - timedelta(days=10), commits=9),
        _day(today - timedelta(days=2), commits=3),
        _day(today, commits=1),
    ]

    window = fill_daily_window(summaries, days=5, today=today)

    assert [summary.date for summary in window] == [today - timedelta(days=offset) for offset in range(4, -1, -1)]
    assert [summary.totalCommits for summary in window] == [0, 0, 3, 0, 1]


def test_fill_daily_window_rejects_invalid_window():
    """Verify zero-length windows are rejected."""
    with pytest.raises(InvalidWindowError):
        fill_daily_window([], days=0, today=date(2026, 10, 19))


def test_period_window_start_weekly_and_monthly():
    """Verify windows open on an ISO Monday or a month's first day, across year boundaries."""
    today = date(2026, 10, 19)

    assert period_window_start(today, 4, Granularity.WEEKLY) == date(2026, 9, 28)
    assert period_window_start(today, 1, Granularity.WEEKLY) == date(2026, 10, 19)
    assert period_window_start(today, 4, Granularity.MONTHLY) == date(2026, 7, 1)
    assert period_window_start(date(2026, 2, 10), 3, Granularity.MONTHLY) == date(2025, 12, 1)

    with pytest.raises(InvalidWindowError):
        period_window_start(today, 0, Granularity.MONTHLY)


def test_calendar_periods_emits_empty_months_inside_the_window():
    """Verify a month without activity is a zero period, not a missing one."""
    today = date(2026, 10, 19)
    summaries = [_day(date(2026, 7, 15), commits=3), _day(date(2026, 10, 12), commits=9)]

    periods = calendar_periods(summaries, Granularity.MONTHLY, 4, today=today)

    assert [period.period for period in periods] == ["2026-07", "2026-08", "2026-09", "2026-10"]
    assert [period.totalCommits for period in periods] == [3, 0, 0, 9]


def test_calendar_periods_ignores_activity_before_the_window():
    """Verify an old week is not pulled into the last N calendar weeks."""
    today = date(2026, 10, 19)
    summaries = [_day(date(2025, 1, 6), commits=5), _day(date(2026, 10, 12), commits=2)]

    periods = calendar_periods(summaries, Granularity.WEEKLY, 4, today=today)

    assert [period.period for period in periods] == ["2026-W40", "2026-W41", "2026-W42", "2026-W43"]
    assert [period.totalCommits for period in periods] == [0, 0, 2, 0]
