"""Ranked "top repository" lists built from counted entities."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from .config import normalize_source
from .errors import InvalidWindowError, MalformedRecordError
from .models import ActivityRecord, RepoStats, as_utc

logger = logging.getLogger(__name__)


def _later(first: Optional[dt.datetime], second: Optional[dt.datetime]) -> Optional[dt.datetime]:
    if first is None:
        return second
    if second is None:
        return first
    return second if second > first else first


def rank_entities(entries: Iterable[RepoStats]) -> List[RepoStats]:
    """Merge counted entities by name and rank them by total count.

    Business logic:
    - Entries sharing a ``name`` are merged: counts are summed and the latest
      ``lastActive`` seen is kept.
    - The merged list is sorted by count, descending.
    - Equal counts keep the order in which each name was first seen.
    - No truncation happens here; use :func:`top_n` for that.

    Raises:
        MalformedRecordError: If an entry has an empty name or a negative count.
    """
    merged: Dict[str, RepoStats] = {}

    for entry in entries:
        if not entry.name:
            raise MalformedRecordError("Counted entity is missing its name")
        if entry.count < 0:
            raise MalformedRecordError(f"Counted entity '{entry.name}' has a negative count: {entry.count}")

        existing = merged.get(entry.name)
        if existing is None:
            merged[entry.name] = entry
            continue

        merged[entry.name] = RepoStats(
            name=entry.name,
            count=existing.count + entry.count,
            lastActive=_later(existing.lastActive, entry.lastActive),
        )

    # dicts keep insertion order and sorted() is stable, so ties stay first-seen.
    return sorted(merged.values(), key=lambda stats: stats.count, reverse=True)


def top_n(ranked: Sequence[RepoStats], n: int) -> List[RepoStats]:
    """Return the first ``n`` entries of an already ranked list.

    Raises:
        InvalidWindowError: If ``n`` is not positive.
    """
    if n <= 0:
        raise InvalidWindowError(f"Invalid value for 'n': expected an integer greater than 0, got {n}.")
    return list(ranked[:n])


def repo_stats_from_activities(
    records: Iterable[ActivityRecord],
    source: Optional[str] = None,
    since: Optional[dt.datetime] = None,
) -> List[RepoStats]:
    """Rank repositories by the number of activity records attributed to them.

    Each record counts once toward its ``payload["repo"]``. Records without a
    repository name are skipped: they are unattributed, not malformed.
    ``source`` restricts counting to one provider and ``since`` to records at
    or after that moment. Naive timestamps are read as UTC.
    """
    wanted_source = normalize_source(source)
    cutoff = as_utc(since) if since is not None else None
    counted: List[RepoStats] = []
    unattributed = 0

    for record in records:
        if wanted_source is not None and record.source.lower() != wanted_source:
            continue
        if cutoff is not None and record.occurred_at_utc < cutoff:
            continue

        repo = record.repo
        if repo is None:
            unattributed += 1
            continue
        counted.append(RepoStats(name=repo, count=1, lastActive=record.occurred_at_utc))

    ranked = rank_entities(counted)

    logger.debug(
        "Ranked repositories from activities",
        extra={"repos": len(ranked), "unattributed": unattributed, "source": wanted_source},
    )

    return ranked
