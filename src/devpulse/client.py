"""DevPulse dashboard REST API client used to fetch analytics inputs."""

from __future__ import annotations

import datetime as dt
import logging
import time
from typing import Any, Dict, List, Optional

import requests

from .config import DashboardConfig
from .errors import FetchFailure, MalformedRecordError
from .models import ActivityRecord, DailySummary, Granularity, PeriodSummary, RepoStats
from .periods import parse_period_label, sort_periods

logger = logging.getLogger(__name__)


def parse_timestamp(value: Optional[str]) -> Optional[dt.datetime]:
    """Parse ISO8601 timestamps into timezone-aware datetimes.

    Naive timestamps are assumed to be UTC.

    Raises:
        MalformedRecordError: If ``value`` is not a valid ISO8601 timestamp.
    """
    if not value:
        return None
    if not isinstance(value, str):
        raise MalformedRecordError(f"Invalid timestamp in API payload: {value!r}")

    normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = dt.datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise MalformedRecordError(f"Invalid timestamp in API payload: {value!r}") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def parse_activity(item: Dict[str, Any]) -> ActivityRecord:
    """Build an ``ActivityRecord`` from one decoded activity JSON object.

    Raises:
        MalformedRecordError: If ``id``, ``type`` or ``occurredAt`` is missing.
    """
    activity_id = item.get("id")
    activity_type = item.get("type")
    occurred_at = parse_timestamp(item.get("occurredAt"))

    if activity_id is None or not activity_type or occurred_at is None:
        raise MalformedRecordError(f"Activity payload is missing required fields: payload={item}")

    raw_payload = item.get("payload")
    return ActivityRecord(
        id=activity_id,
        source=str(item.get("source") or ""),
        type=str(activity_type),
        payload=raw_payload if isinstance(raw_payload, dict) else {},
        occurredAt=occurred_at,
    )


class DashboardClient:
    """Small, typed client for the DevPulse dashboard API."""

    _MAX_RETRIES = 3
    _MAX_BACKOFF_SECONDS = 30

    def __init__(self, config: DashboardConfig, timeout_seconds: int = 30) -> None:
        """Initialize an authenticated dashboard API client.

        Args:
            config: Validated runtime configuration including base URL and token.
            timeout_seconds: Per-request timeout in seconds.
        """
        self._config = config
        self._timeout_seconds = timeout_seconds
        self._base_url = config.api_url.rstrip("/")

        self._session = requests.Session()
        self._session.headers.update(
            {"Accept": "application/json", "Content-Type": "application/json"}
        )
        if config.token:
            self._session.headers.update({"Authorization": f"Bearer {config.token}"})

    def _build_url(self, path: str) -> str:
        """Build a fully qualified API URL from a path below the base URL."""
        return f"{self._base_url}/{path.lstrip('/')}"

    def _parse_date(self, value: Any) -> dt.date:
        """Parse a ``YYYY-MM-DD`` calendar day."""
        if not isinstance(value, str) or not value:
            raise MalformedRecordError(f"Missing or invalid date in API payload: {value!r}")
        try:
            return dt.date.fromisoformat(value[:10])
        except ValueError as exc:
            raise MalformedRecordError(f"Invalid date in API payload: {value!r}") from exc

    def _parse_count(self, item: Dict[str, Any], field: str) -> int:
        """Read a non-negative integer field, treating a missing field as 0."""
        value = item.get(field, 0)
        if value is None:
            return 0
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise MalformedRecordError(f"Invalid '{field}' in API payload: {item}")
        return value

    def _error_message(self, response: requests.Response) -> str:
        """Extract the human-readable message of a failed response.

        Uses the ``error`` string of a ``{"error": "..."}`` body when present,
        otherwise a generic message carrying the status code.
        """
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            message = body.get("error")
            if isinstance(message, str) and message:
                return message

        return f"Request failed: {response.status_code}"

    def _extract_backoff_seconds(self, response: requests.Response, attempt: int) -> int:
        """Compute exponential backoff seconds, honoring Retry-After when available."""
        retry_after_header = response.headers.get("Retry-After")
        if retry_after_header:
            try:
                retry_after_seconds = int(retry_after_header)
                return min(self._MAX_BACKOFF_SECONDS, max(1, retry_after_seconds))
            except ValueError:
                pass

        return min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1))

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Execute a GET request with retry logic for 429/5xx responses.

        Raises:
            FetchFailure: If the request repeatedly fails, returns a non-2xx
                status, or does not return a JSON object.
        """
        url = self._build_url(path)
        query = {key: value for key, value in (params or {}).items() if value not in (None, "")}

        for attempt in range(1, self._MAX_RETRIES + 1):
            try:
                response = self._session.get(url, params=query, timeout=self._timeout_seconds)
            except requests.RequestException as exc:
                if attempt == self._MAX_RETRIES:
                    raise FetchFailure(f"Request failed: GET {url} ({exc})") from exc
                time.sleep(min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1)))
                continue

            status_code = response.status_code
            is_retryable = status_code == 429 or 500 <= status_code <= 599

            if is_retryable and attempt < self._MAX_RETRIES:
                logger.info(
                    "Retrying dashboard API request",
                    extra={"url": url, "status_code": status_code, "attempt": attempt},
                )
                time.sleep(self._extract_backoff_seconds(response, attempt))
                continue

            if not 200 <= status_code <= 299:
                raise FetchFailure(self._error_message(response), status_code=status_code)

            try:
                payload = response.json()
            except ValueError as exc:
                raise FetchFailure(f"Dashboard API returned invalid JSON: GET {url}", status_code) from exc

            if not isinstance(payload, dict):
                raise FetchFailure(f"Dashboard API returned unexpected payload shape: GET {url}", status_code)

            return payload

        raise FetchFailure(f"Request failed: GET {url}")

    def _items(self, payload: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
        items = payload.get(key)
        if items is None:
            return []
        if not isinstance(items, list):
            raise MalformedRecordError(f"Dashboard API payload field '{key}' is not a list")
        return [item for item in items if isinstance(item, dict)]

    def get_current_user(self) -> Dict[str, Any]:
        """Return the authenticated user's profile."""
        return self._get_json("api/me")

    def list_daily_summaries(self, days: int) -> List[DailySummary]:
        """List daily summaries for the last ``days`` days, oldest first.

        The API returns the most recent day first; the result is re-ordered
        chronologically because every downstream builder expects oldest first.
        """
        payload = self._get_json("api/summaries", params={"days": days})
        summaries = [
            DailySummary(
                date=self._parse_date(item.get("date")),
                totalCommits=self._parse_count(item, "totalCommits"),
                totalPrs=self._parse_count(item, "totalPrs"),
                codingMinutes=self._parse_count(item, "codingMinutes"),
            )
            for item in self._items(payload, "summaries")
        ]
        return sorted(summaries, key=lambda summary: summary.date)

    def _list_period_summaries(self, path: str, params: Dict[str, Any], granularity: Granularity) -> List[PeriodSummary]:
        payload = self._get_json(path, params=params)
        periods = [
            PeriodSummary(
                key=parse_period_label(str(item.get("period") or ""), granularity),
                totalCommits=self._parse_count(item, "totalCommits"),
                totalPrs=self._parse_count(item, "totalPrs"),
                codingMinutes=self._parse_count(item, "codingMinutes"),
            )
            for item in self._items(payload, "summaries")
        ]
        return sort_periods(periods)

    def list_weekly_summaries(self, weeks: int) -> List[PeriodSummary]:
        """List weekly summaries for the last ``weeks`` ISO weeks, oldest first."""
        return self._list_period_summaries("api/summaries/weekly", {"weeks": weeks}, Granularity.WEEKLY)

    def list_monthly_summaries(self, months: int) -> List[PeriodSummary]:
        """List monthly summaries for the last ``months`` months, oldest first."""
        return self._list_period_summaries("api/summaries/monthly", {"months": months}, Granularity.MONTHLY)

    def get_heatmap_counts(self, days: int) -> Dict[dt.date, int]:
        """Return daily contribution counts for the heatmap window.

        Server-provided levels are ignored: levels are always derived locally
        from counts when the grid is built.
        """
        payload = self._get_json("api/summaries/heatmap", params={"days": days})
        counts: Dict[dt.date, int] = {}
        for item in self._items(payload, "days"):
            day = self._parse_date(item.get("date"))
            counts[day] = counts.get(day, 0) + self._parse_count(item, "count")
        return counts

    def list_top_repos(self, days: int, source: Optional[str] = None) -> List[RepoStats]:
        """List per-repository activity counts, in the order returned by the API."""
        payload = self._get_json("api/activities/top-repos", params={"days": days, "source": source})
        repos: List[RepoStats] = []

        for item in self._items(payload, "repos"):
            name = item.get("name")
            if not isinstance(name, str) or not name:
                raise MalformedRecordError(f"Repository stats payload is missing 'name': {item}")
            repos.append(
                RepoStats(
                    name=name,
                    count=self._parse_count(item, "count"),
                    lastActive=parse_timestamp(item.get("lastActive")),
                )
            )

        return repos

    def list_activities(self, page: int = 1, per_page: int = 20, source: Optional[str] = None) -> List[ActivityRecord]:
        """List one page of activity records, most recent first."""
        payload = self._get_json(
            "api/activities",
            params={"page": page, "per_page": per_page, "source": source},
        )
        return [parse_activity(item) for item in self._items(payload, "activities")]
