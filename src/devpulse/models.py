"""Domain models for DevPulse activity analytics.

Payload-backed models mirror the dashboard API field names (``totalCommits``,
``occurredAt`` ...) and only carry the subset of fields the analytics core
needs. Derived view models use plain snake_case attributes.

Every model is frozen: builders always return fresh instances and never mutate
their inputs.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


def as_utc(moment: dt.datetime) -> dt.datetime:
    """Return ``moment`` in UTC; naive values are taken to already be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=dt.timezone.utc)
    return moment.astimezone(dt.timezone.utc)


class Granularity(str, Enum):
    """Bucket size used when rolling daily summaries up into periods."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True, slots=True)
class ActivityRecord:
    """Represents one activity event delivered by the ingestion collaborator."""

    id: int
    source: str
    type: str
    payload: Mapping[str, Any]
    occurredAt: dt.datetime

    @property
    def occurred_at_utc(self) -> dt.datetime:
        return as_utc(self.occurredAt)

    @property
    def repo(self) -> Optional[str]:
        repo = self.payload.get("repo")
        if isinstance(repo, str) and repo:
            return repo
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "type": self.type,
            "payload": dict(self.payload),
            "occurredAt": self.occurredAt.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class DailySummary:
    """Represents aggregated activity totals for a single calendar day."""

    date: dt.date
    totalCommits: int = 0
    totalPrs: int = 0
    codingMinutes: int = 0

    @property
    def is_active(self) -> bool:
        return self.totalCommits > 0 or self.totalPrs > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "totalCommits": self.totalCommits,
            "totalPrs": self.totalPrs,
            "codingMinutes": self.codingMinutes,
        }


@dataclass(frozen=True, slots=True, order=True)
class PeriodKey:
    """Chronologically ordered identifier of a weekly or monthly bucket.

    Ordering compares ``(year, index)`` numerically, so keys sort correctly
    across year boundaries regardless of how their labels are rendered.
    """

    year: int
    index: int
    granularity: Granularity

    @property
    def label(self) -> str:
        if self.granularity is Granularity.WEEKLY:
            return f"{self.year:04d}-W{self.index:02d}"
        return f"{self.year:04d}-{self.index:02d}"


@dataclass(frozen=True, slots=True)
class PeriodSummary:
    """Represents aggregated activity totals for one week or month."""

    key: PeriodKey
    totalCommits: int = 0
    totalPrs: int = 0
    codingMinutes: int = 0

    @property
    def period(self) -> str:
        return self.key.label

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period,
            "totalCommits": self.totalCommits,
            "totalPrs": self.totalPrs,
            "codingMinutes": self.codingMinutes,
        }


@dataclass(frozen=True, slots=True)
class HeatmapDay:
    """Single calendar cell of the contribution heatmap."""

    date: dt.date
    level: int
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date.isoformat(), "level": self.level, "count": self.count}


@dataclass(frozen=True, slots=True)
class HeatmapGrid:
    """Contiguous run of heatmap cells plus leading padding for week alignment."""

    days: Tuple[HeatmapDay, ...]
    padding: int

    @property
    def total(self) -> int:
        return sum(day.count for day in self.days)

    @property
    def active_days(self) -> int:
        return sum(1 for day in self.days if day.count > 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "days": [day.to_dict() for day in self.days],
            "padding": self.padding,
            "total": self.total,
            "activeDays": self.active_days,
        }


@dataclass(frozen=True, slots=True)
class RepoStats:
    """Represents activity volume attributed to one repository."""

    name: str
    count: int
    lastActive: Optional[dt.datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "count": self.count,
            "lastActive": self.lastActive.isoformat() if self.lastActive else None,
        }


@dataclass(frozen=True, slots=True)
class ComparisonPoint:
    """One chart position pairing current metrics with the previous period's commits."""

    label: str
    commits: int
    prs: int
    prevCommits: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "commits": self.commits,
            "prs": self.prs,
            "prevCommits": self.prevCommits,
        }


@dataclass(frozen=True, slots=True)
class WindowComparison:
    """Totals of the most recent window against the window immediately before it."""

    window_days: int
    current_commits: int
    previous_commits: int
    commits_delta: int
    current_prs: int
    previous_prs: int
    prs_delta: int
    active_days: int
    previous_active_days: int
    active_days_delta: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "windowDays": self.window_days,
            "currentCommits": self.current_commits,
            "previousCommits": self.previous_commits,
            "commitsDelta": self.commits_delta,
            "currentPrs": self.current_prs,
            "previousPrs": self.previous_prs,
            "prsDelta": self.prs_delta,
            "activeDays": self.active_days,
            "previousActiveDays": self.previous_active_days,
            "activeDaysDelta": self.active_days_delta,
        }


@dataclass(frozen=True, slots=True)
class Dashboard:
    """Fully assembled dashboard view model handed to the rendering collaborator."""

    heatmap: HeatmapGrid
    totals: WindowComparison
    daily_trend: Tuple[ComparisonPoint, ...]
    weekly_trend: Tuple[ComparisonPoint, ...]
    monthly_trend: Tuple[ComparisonPoint, ...]
    top_repos: Tuple[RepoStats, ...]
    recent_activities: Tuple[ActivityRecord, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "heatmap": self.heatmap.to_dict(),
            "totals": self.totals.to_dict(),
            "dailyTrend": [point.to_dict() for point in self.daily_trend],
            "weeklyTrend": [point.to_dict() for point in self.weekly_trend],
            "monthlyTrend": [point.to_dict() for point in self.monthly_trend],
            "topRepos": [repo.to_dict() for repo in self.top_repos],
            "recentActivities": [activity.to_dict() for activity in self.recent_activities],
        }
