"""Configuration parsing and validation for the DevPulse dashboard."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .errors import AuthenticationError, ConfigurationError, InvalidWindowError

DEFAULT_API_URL = "http://localhost:8080"

DEFAULT_LEVEL_THRESHOLDS: Tuple[int, int, int] = (3, 9, 19)

MAX_HEATMAP_DAYS = 366
MAX_SUMMARY_DAYS = 365
MAX_WEEKS = 52
MAX_MONTHS = 24
MAX_TOP_N = 100

ALL_SOURCES = "all"


@dataclass(frozen=True)
class DashboardConfig:
    """Validated window sizes and connection settings used to build a dashboard."""

    api_url: str = DEFAULT_API_URL
    token: str = ""
    heatmap_days: int = 365
    summary_days: int = 60
    weeks: int = 24
    months: int = 24
    top_n: int = 10
    source: Optional[str] = None
    level_thresholds: Tuple[int, int, int] = DEFAULT_LEVEL_THRESHOLDS

    @property
    def comparison_window(self) -> int:
        """Length of each half of the summary window (current vs previous)."""
        return self.summary_days // 2


def validate_window(name: str, value: int, maximum: int, minimum: int = 1) -> int:
    """Validate a window-size parameter and return it unchanged.

    Window sizes are rejected rather than clamped: a caller asking for
    ``days=0`` gets an error, never a silently different window.

    Raises:
        InvalidWindowError: If ``value`` is not an integer in ``[minimum, maximum]``.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidWindowError(f"Invalid value for '{name}': expected an integer, got {value!r}.")

    if value < minimum or value > maximum:
        raise InvalidWindowError(
            f"Invalid value for '{name}': expected an integer in [{minimum}, {maximum}], got {value}."
        )

    return value


def validate_thresholds(thresholds: Sequence[int]) -> Tuple[int, int, int]:
    """Validate heatmap level thresholds.

    Thresholds are the inclusive upper bounds of levels 1, 2 and 3; anything
    above the last threshold is level 4.

    Raises:
        ConfigurationError: If there are not exactly three strictly increasing
            positive integers.
    """
    values = tuple(thresholds)
    if len(values) != 3 or any(isinstance(v, bool) or not isinstance(v, int) for v in values):
        raise ConfigurationError(
            f"Invalid heatmap thresholds {values!r}: expected three integers."
        )

    if values[0] <= 0 or not values[0] < values[1] < values[2]:
        raise ConfigurationError(
            f"Invalid heatmap thresholds {values!r}: expected strictly increasing positive integers."
        )

    return values  # type: ignore[return-value]


def normalize_source(source: Optional[str]) -> Optional[str]:
    """Map an empty or ``"all"`` source filter to ``None`` (no filtering)."""
    if source is None:
        return None

    normalized = source.strip().lower()
    if not normalized or normalized == ALL_SOURCES:
        return None
    return normalized


def load_config(
    api_url: Optional[str] = None,
    heatmap_days: int = 365,
    summary_days: int = 60,
    weeks: int = 24,
    months: int = 24,
    top_n: int = 10,
    source: Optional[str] = None,
    level_thresholds: Sequence[int] = DEFAULT_LEVEL_THRESHOLDS,
    require_token: bool = True,
) -> DashboardConfig:
    """Build and validate dashboard configuration.

    Args:
        api_url: Dashboard API base URL; falls back to ``DEVPULSE_API_URL`` and
            then to ``http://localhost:8080``.
        heatmap_days: Heatmap window in days, inclusive of today.
        summary_days: Daily summary window; split into two equal halves for
            period-over-period comparison, so it must be even.
        weeks: Number of weekly periods to show.
        months: Number of monthly periods to show.
        top_n: Number of top repositories to show.
        source: Optional provider filter (``None`` or ``"all"`` for every source).
        level_thresholds: Heatmap level thresholds.
        require_token: Whether a missing ``DEVPULSE_TOKEN`` is an error.

    Returns:
        A validated ``DashboardConfig`` instance.

    Raises:
        InvalidWindowError: If any window size is out of range.
        ConfigurationError: If thresholds or the API URL are invalid.
        AuthenticationError: If ``DEVPULSE_TOKEN`` is required but not set.
    """
    validate_window("heatmap_days", heatmap_days, MAX_HEATMAP_DAYS)
    validate_window("summary_days", summary_days, MAX_SUMMARY_DAYS, minimum=2)
    if summary_days % 2:
        raise InvalidWindowError(
            f"Invalid value for 'summary_days': expected an even number of days, got {summary_days}."
        )
    validate_window("weeks", weeks, MAX_WEEKS)
    validate_window("months", months, MAX_MONTHS)
    validate_window("top_n", top_n, MAX_TOP_N)
    thresholds = validate_thresholds(level_thresholds)

    resolved_url = (api_url or os.getenv("DEVPULSE_API_URL", "") or DEFAULT_API_URL).strip().rstrip("/")
    if not resolved_url:
        raise ConfigurationError("Invalid value for 'api_url': expected a non-empty URL.")

    token: str = os.getenv("DEVPULSE_TOKEN", "").strip()
    if require_token and not token:
        raise AuthenticationError(
            "Missing required DevPulse API token. "
            "Set the 'DEVPULSE_TOKEN' environment variable before building the dashboard."
        )

    return DashboardConfig(
        api_url=resolved_url,
        token=token,
        heatmap_days=heatmap_days,
        summary_days=summary_days,
        weeks=weeks,
        months=months,
        top_n=top_n,
        source=normalize_source(source),
        level_thresholds=thresholds,
    )
