"""Aggregation and heatmap bucketing over Gerrit change and review activity."""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional

from .models import Change, ChangeStatus, ReviewEvent

# Matches the width of GitHub's contribution graph
HEATMAP_WEEKS = 52

TOP_PROJECTS_COUNT = 5

RECENT_WINDOW = timedelta(days=90)

LevelPolicy = Callable[[int, int], int]


# ---------------------------------------------------------------------------
# Intensity levels
# ---------------------------------------------------------------------------

def level_absolute(count: int, max_count: int = 0) -> int:
    """Fixed thresholds on weekly activity: 1-2, 3-5, 6-9, 10+.

    ``max_count`` is accepted so every policy shares one signature; it does
    not affect the result.
    """
    if count <= 0:
        return 0
    if count < 3:
        return 1
    if count < 6:
        return 2
    if count < 10:
        return 3
    return 4


def level_proportional(count: int, max_count: int) -> int:
    """Level relative to the busiest week: ``ceil(count * 4 / max_count)``, capped at 4."""
    if count <= 0 or max_count <= 0:
        return 0
    return min(4, math.ceil(count * 4 / max_count))


LEVEL_POLICIES: Dict[str, LevelPolicy] = {
    'absolute': level_absolute,
    'proportional': level_proportional,
}

DEFAULT_LEVEL_POLICY = 'absolute'


def get_level_policy(name: str) -> LevelPolicy:
    """Look up a level policy by name."""
    try:
        return LEVEL_POLICIES[name]
    except KeyError:
        valid = ', '.join(LEVEL_POLICIES)
        raise ValueError(f"unknown level policy {name!r}; valid names: {valid}") from None


# ---------------------------------------------------------------------------
# Output types
# ---------------------------------------------------------------------------

@dataclass
class WeekBucket:
    """Activity for the week starting on ``week_start`` (a Monday)."""
    week_start: date
    count: int = 0
    review_count: int = 0
    family_counts: Dict[str, int] = field(default_factory=dict)

    def level(self, max_count: int = 0, policy: LevelPolicy = level_absolute) -> int:
        return policy(self.count, max_count)

    def dominant_family(self) -> Optional[str]:
        """Family with the most activity this week, ties broken by name."""
        if not self.family_counts:
            return None
        return min(self.family_counts, key=lambda name: (-self.family_counts[name], name))


@dataclass
class Heatmap:
    """Weekly buckets, oldest first."""
    weeks: List[WeekBucket]
    max_count: int = 0

    def current_streak(self) -> int:
        """Consecutive active weeks ending with the current week."""
        streak = 0
        for bucket in reversed(self.weeks):
            if bucket.count == 0:
                break
            streak += 1
        return streak

    def longest_streak(self) -> int:
        longest = run = 0
        for bucket in self.weeks:
            if bucket.count > 0:
                run += 1
                longest = max(longest, run)
            else:
                run = 0
        return longest

    def levels(self, policy: LevelPolicy = level_absolute) -> List[int]:
        return [bucket.level(self.max_count, policy) for bucket in self.weeks]


@dataclass
class ProjectStat:
    name: str
    merged: int = 0
    insertions: int = 0
    deletions: int = 0


@dataclass(frozen=True)
class Stats:
    """Aggregated statistics for one owner.

    Freezing is shallow: fields cannot be rebound, but the heatmap, its
    week buckets and the ``top_projects`` list are ordinary mutable objects
    owned by this instance. Renderers only read them.
    """
    heatmap: Heatmap
    total_merged: int
    total_insertions: int
    total_deletions: int
    recent_merged_90d: int
    total_reviews: int
    recent_reviews_90d: int
    top_projects: List[ProjectStat]


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def week_start(day: date) -> date:
    """Monday on or before ``day``."""
    return day - timedelta(days=day.weekday())


def project_family(project: str) -> str:
    """Coarse grouping key used to colour heatmap cells.

    A host prefix (``alias::project``) wins over the first path segment.
    """
    if '::' in project:
        return project.split('::', 1)[0]
    return project.split('/', 1)[0]


def compute(changes: Iterable[Change], reviews: Iterable[ReviewEvent], now: datetime) -> Stats:
    """Aggregate changes and review events into heatmap and summary stats.

    Only merged changes with a submission time count towards merge
    statistics; merged changes without one are skipped.

    Args:
        changes: Changes authored by the user
        reviews: Review events for changes the user reviewed
        now: Reference instant; naive values are taken as UTC

    Returns:
        The computed Stats
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    current_week = week_start(_utc_date(now))
    window_start = current_week - timedelta(weeks=HEATMAP_WEEKS - 1)
    buckets = [WeekBucket(week_start=window_start + timedelta(weeks=i)) for i in range(HEATMAP_WEEKS)]
    cutoff_90d = now - RECENT_WINDOW

    def bucket_for(instant: datetime) -> Optional[WeekBucket]:
        start = week_start(_utc_date(instant))
        if window_start <= start <= current_week:
            return buckets[(start - window_start).days // 7]
        return None

    total_merged = total_insertions = total_deletions = recent_merged = 0
    projects: Dict[str, ProjectStat] = {}

    for change in changes:
        if change.status != ChangeStatus.MERGED or change.submitted is None:
            continue

        submitted = _as_utc(change.submitted)
        total_merged += 1
        total_insertions += change.insertions
        total_deletions += change.deletions
        if submitted > cutoff_90d:
            recent_merged += 1

        project = projects.setdefault(change.project, ProjectStat(name=change.project))
        project.merged += 1
        project.insertions += change.insertions
        project.deletions += change.deletions

        bucket = bucket_for(submitted)
        if bucket is not None:
            bucket.count += 1
            _add_family(bucket, change.project)

    total_reviews = recent_reviews = 0
    for event in reviews:
        timestamp = _as_utc(event.timestamp)
        total_reviews += 1
        if timestamp > cutoff_90d:
            recent_reviews += 1

        bucket = bucket_for(timestamp)
        if bucket is not None:
            bucket.count += 1
            bucket.review_count += 1
            _add_family(bucket, event.project)

    max_count = max((b.count for b in buckets), default=0)
    top_projects = sorted(projects.values(), key=lambda p: p.merged, reverse=True)[:TOP_PROJECTS_COUNT]

    return Stats(
        heatmap=Heatmap(weeks=buckets, max_count=max_count),
        total_merged=total_merged,
        total_insertions=total_insertions,
        total_deletions=total_deletions,
        recent_merged_90d=recent_merged,
        total_reviews=total_reviews,
        recent_reviews_90d=recent_reviews,
        top_projects=top_projects,
    )


def _add_family(bucket: WeekBucket, project: str):
    family = project_family(project)
    bucket.family_counts[family] = bucket.family_counts.get(family, 0) + 1


def _as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def _utc_date(instant: datetime) -> date:
    return _as_utc(instant).date()
