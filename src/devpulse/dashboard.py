"""Dashboard input gathering and view-model assembly.

Fetching is the only concurrent, side-effecting step: every independent
request runs in parallel and the dashboard is built only once all of them
have succeeded. Assembly itself is a pure function of the fetched inputs.
"""

from __future__ import annotations

import datetime as dt
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from .client import DashboardClient
from .comparison import daily_comparison, period_comparison
from .config import DashboardConfig
from .delta import compare_windows
from .errors import DevPulseError, FetchFailure
from .heatmap import build_heatmap, heatmap_counts
from .models import ActivityRecord, DailySummary, Dashboard, Granularity, PeriodSummary, RepoStats
from .periods import calendar_periods, fill_daily_window, sort_periods, summarize_activities
from .ranking import rank_entities, repo_stats_from_activities, top_n

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_PAGE_SIZE = 20


@dataclass(frozen=True)
class DashboardInputs:
    """Already fetched and parsed inputs of one dashboard render."""

    daily_summaries: Tuple[DailySummary, ...]
    weekly_summaries: Tuple[PeriodSummary, ...]
    monthly_summaries: Tuple[PeriodSummary, ...]
    heatmap_counts: Dict[dt.date, int]
    repo_stats: Tuple[RepoStats, ...]
    recent_activities: Tuple[ActivityRecord, ...] = ()

    @classmethod
    def from_activities(
        cls,
        records: Sequence[ActivityRecord],
        config: DashboardConfig,
        today: Optional[dt.date] = None,
    ) -> "DashboardInputs":
        """Derive every dashboard input locally from raw activity records.

        Daily summaries are rolled up from the records and then bucketed into
        the last ``weeks`` calendar weeks and ``months`` calendar months ending
        today, so no pre-aggregated API data is needed. Periods without activity
        are kept as zero periods.
        """
        daily = summarize_activities(records, source=config.source)
        end = today or dt.date.today()
        since = dt.datetime.combine(
            end - dt.timedelta(days=config.comparison_window - 1), dt.time.min, tzinfo=dt.timezone.utc
        )
        recent = sorted(records, key=lambda record: record.occurred_at_utc, reverse=True)

        return cls(
            daily_summaries=tuple(daily),
            weekly_summaries=tuple(calendar_periods(daily, Granularity.WEEKLY, config.weeks, today=end)),
            monthly_summaries=tuple(calendar_periods(daily, Granularity.MONTHLY, config.months, today=end)),
            heatmap_counts=heatmap_counts(daily),
            repo_stats=tuple(repo_stats_from_activities(records, source=config.source, since=since)),
            recent_activities=tuple(recent[:RECENT_ACTIVITY_PAGE_SIZE]),
        )


def fetch_dashboard_inputs(client: DashboardClient, config: DashboardConfig) -> DashboardInputs:
    """Fetch every dashboard input concurrently.

    All requests, including the ``api/me`` authentication check, are started
    together and awaited together. If any one of them fails, the whole fetch
    fails with a single error of the same type naming the failed input;
    partial results are discarded.

    Raises:
        FetchFailure: If any request fails.
        MalformedRecordError: If any response carries an invalid record.
    """
    fetches: Dict[str, Callable[[], Any]] = {
        "current_user": client.get_current_user,
        "daily_summaries": lambda: client.list_daily_summaries(config.summary_days),
        "weekly_summaries": lambda: client.list_weekly_summaries(config.weeks),
        "monthly_summaries": lambda: client.list_monthly_summaries(config.months),
        "heatmap_counts": lambda: client.get_heatmap_counts(config.heatmap_days),
        "repo_stats": lambda: client.list_top_repos(config.comparison_window, config.source),
        "recent_activities": lambda: client.list_activities(
            page=1, per_page=RECENT_ACTIVITY_PAGE_SIZE, source=config.source
        ),
    }

    results: Dict[str, Any] = {}
    with ThreadPoolExecutor(max_workers=len(fetches)) as executor:
        futures = {executor.submit(fetch): name for name, fetch in fetches.items()}
        for future in as_completed(futures):
            name = futures[future]
            try:
                results[name] = future.result()
            except DevPulseError as exc:
                for pending in futures:
                    pending.cancel()
                status_code = getattr(exc, "status_code", None)
                logger.info(
                    "Dashboard fetch failed",
                    extra={"input": name, "error": type(exc).__name__, "status_code": status_code},
                )
                message = f"Failed to fetch {name}: {exc}"
                if isinstance(exc, FetchFailure):
                    raise FetchFailure(message, status_code=status_code) from exc
                raise type(exc)(message) from exc

    logger.info("Fetched dashboard inputs", extra={"inputs": len(results)})

    return DashboardInputs(
        daily_summaries=tuple(results["daily_summaries"]),
        weekly_summaries=tuple(results["weekly_summaries"]),
        monthly_summaries=tuple(results["monthly_summaries"]),
        heatmap_counts=dict(results["heatmap_counts"]),
        repo_stats=tuple(results["repo_stats"]),
        recent_activities=tuple(results["recent_activities"]),
    )


def build_dashboard(
    inputs: DashboardInputs,
    config: DashboardConfig,
    today: Optional[dt.date] = None,
) -> Dashboard:
    """Assemble the dashboard view model from fetched inputs.

    Business logic:
    - Heatmap: ``config.heatmap_days`` cells ending today.
    - Totals: last ``summary_days / 2`` days vs the same span before them.
    - Daily trend: the zero-filled ``summary_days`` window split in halves.
    - Weekly/monthly trends: the most recent ``weeks``/``months`` periods
      split in halves.
    - Top repositories: merged, ranked and truncated to ``top_n``.
    """
    end = today or dt.date.today()

    daily_window = fill_daily_window(inputs.daily_summaries, config.summary_days, today=end)
    weekly = sort_periods(inputs.weekly_summaries)[-config.weeks:]
    monthly = sort_periods(inputs.monthly_summaries)[-config.months:]

    dashboard = Dashboard(
        heatmap=build_heatmap(
            inputs.heatmap_counts,
            days=config.heatmap_days,
            today=end,
            thresholds=config.level_thresholds,
        ),
        totals=compare_windows(daily_window, window=config.comparison_window, today=end),
        daily_trend=tuple(daily_comparison(daily_window)),
        weekly_trend=tuple(period_comparison(weekly, Granularity.WEEKLY)),
        monthly_trend=tuple(period_comparison(monthly, Granularity.MONTHLY)),
        top_repos=tuple(top_n(rank_entities(inputs.repo_stats), config.top_n)),
        recent_activities=inputs.recent_activities,
    )

    logger.debug(
        "Built dashboard",
        extra={
            "today": end.isoformat(),
            "heatmap_active_days": dashboard.heatmap.active_days,
            "weekly_points": len(dashboard.weekly_trend),
            "monthly_points": len(dashboard.monthly_trend),
            "top_repos": len(dashboard.top_repos),
        },
    )

    return dashboard
