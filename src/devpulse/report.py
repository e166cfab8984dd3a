"""Plain-text rendering of an assembled dashboard.

This is the reference rendering collaborator: it only formats what the
analytics core already computed and never recomputes any metric.
"""

from __future__ import annotations

from typing import List, Sequence

from .models import ComparisonPoint, Dashboard, HeatmapGrid

_LEVEL_GLYPHS = " .:*#"


def format_delta(delta: int, window_days: int) -> str:
    """Format a percentage delta as ``↑12% vs prev 30d``; zero deltas render empty."""
    if delta == 0:
        return ""
    arrow = "↑" if delta > 0 else "↓"
    return f"{arrow}{abs(delta)}% vs prev {window_days}d"


def render_heatmap(grid: HeatmapGrid) -> List[str]:
    """Render the heatmap as seven weekday rows of one glyph per day.

    Leading padding cells are blank so the first column lines up with its
    weekday row.
    """
    slots: List[str] = [" "] * grid.padding + [_LEVEL_GLYPHS[day.level] for day in grid.days]
    return ["".join(slots[row::7]).rstrip() for row in range(7)]


def render_trend(title: str, points: Sequence[ComparisonPoint]) -> List[str]:
    lines = [title]
    if not points:
        lines.append("   No data yet")
        return lines

    for point in points:
        lines.append(
            f"   {point.label:>6}  commits={point.commits:<4} prs={point.prs:<4} prev={point.prevCommits}"
        )
    return lines


def generate_report(dashboard: Dashboard) -> str:
    """Generate a human-readable dashboard report.

    The report includes the window totals with their deltas, the heatmap, the
    daily/weekly/monthly comparison trends and the top repositories.
    """
    totals = dashboard.totals
    window = totals.window_days

    lines = [
        "DevPulse Activity Report",
        "",
        f"Total Commits: {totals.current_commits} {format_delta(totals.commits_delta, window)}".rstrip(),
        f"Total PRs: {totals.current_prs} {format_delta(totals.prs_delta, window)}".rstrip(),
        f"Active Days: {totals.active_days} {format_delta(totals.active_days_delta, window)}".rstrip(),
        "",
        f"Contributions (last {len(dashboard.heatmap.days)} days, "
        f"{dashboard.heatmap.total} total, {dashboard.heatmap.active_days} active days)",
    ]
    lines.extend(f"   {row}" for row in render_heatmap(dashboard.heatmap))
    lines.append("")
    lines.extend(render_trend("Daily Trend", dashboard.daily_trend))
    lines.append("")
    lines.extend(render_trend("Weekly Trend", dashboard.weekly_trend))
    lines.append("")
    lines.extend(render_trend("Monthly Trend", dashboard.monthly_trend))
    lines.append("")
    lines.append("Top Repos")

    if not dashboard.top_repos:
        lines.append("   No repository data yet.")
    for rank, repo in enumerate(dashboard.top_repos, start=1):
        lines.append(f"   {rank:>2}. {repo.name} ({repo.count})")

    return "\n".join(lines)
