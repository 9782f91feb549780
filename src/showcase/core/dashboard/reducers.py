"""
Statistics reducers.

Pure folds from fetched records to the four dashboard slices. None of these
functions perform I/O; anything time-dependent takes ``now`` explicitly so
tests can pin the calendar.

Invariant kept by every categorical distribution here: bucket counts sum to
the number of source records. Records without a category land in the
explicit ``uncategorized`` bucket instead of being dropped.
"""

from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any, TypeVar

from showcase.core.records import (
    ANONYMOUS,
    UNCATEGORIZED,
    ApiKeyStatus,
    PostRecord,
    ProjectRecord,
    Record,
    UserRecord,
)

from .models import (
    BoardStatistics,
    CountBucket,
    Contributor,
    DailyActivity,
    EstimatedDailySeries,
    EstimatedHourlySeries,
    HourlyVisits,
    PopularPost,
    ProjectStatistics,
    ProjectTechCount,
    RankedCount,
    RecentProject,
    TechStackStatistics,
    TimelinePoint,
    UserStatistics,
)

TIMELINE_MONTHS = 6
ACTIVITY_DAYS = 7
RECENT_LIMIT = 5
POPULAR_LIMIT = 5
CONTRIBUTOR_LIMIT = 5
TOP_TECH_LIMIT = 10
TECH_PER_PROJECT_LIMIT = 10

_EPOCH_FLOOR = datetime.min.replace(tzinfo=timezone.utc)

RecordT = TypeVar("RecordT", bound=Record)


# =============================================================================
# Time windows
# =============================================================================


def month_label(moment: datetime) -> str:
    """``YYYY-MM`` label of the UTC calendar month containing ``moment``."""
    moment = moment.astimezone(timezone.utc) if moment.tzinfo else moment
    return f"{moment.year:04d}-{moment.month:02d}"


def month_window(now: datetime, months: int = TIMELINE_MONTHS) -> list[str]:
    """
    Labels of the last ``months`` calendar months, oldest first, ending with
    the month containing ``now``.

    Example:
        >>> month_window(datetime(2024, 2, 10, tzinfo=timezone.utc), 3)
        ['2023-12', '2024-01', '2024-02']
    """
    now = now.astimezone(timezone.utc) if now.tzinfo else now
    current = now.year * 12 + (now.month - 1)
    labels = []
    for offset in range(months - 1, -1, -1):
        year, month_index = divmod(current - offset, 12)
        labels.append(f"{year:04d}-{month_index + 1:02d}")
    return labels


def day_window(now: datetime, days: int = ACTIVITY_DAYS) -> list[str]:
    """ISO date labels of the last ``days`` days, oldest first, ending today."""
    today = (now.astimezone(timezone.utc) if now.tzinfo else now).date()
    return [(today - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]


def timeline(records: Iterable[Record], now: datetime, months: int = TIMELINE_MONTHS) -> list[TimelinePoint]:
    """Count records per creation month over the window; empty months are zero."""
    counts = dict.fromkeys(month_window(now, months), 0)
    for record in records:
        if record.created_at is None:
            continue
        label = month_label(record.created_at)
        if label in counts:
            counts[label] += 1
    return [TimelinePoint(date=label, count=count) for label, count in counts.items()]


# =============================================================================
# Helpers
# =============================================================================


def _category_name(category: str | None) -> str:
    if category is None or not str(category).strip():
        return UNCATEGORIZED
    return str(category)


def _distribution(names: Iterable[str]) -> list[CountBucket]:
    return [CountBucket(name=name, count=count) for name, count in Counter(names).items()]


def _ranked(counts: Counter[str]) -> list[CountBucket]:
    """Buckets by count descending, then name ascending."""
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [CountBucket(name=name, count=count) for name, count in ordered]


def _top_by(records: Sequence[RecordT], key: Callable[[RecordT], Any], limit: int) -> list[RecordT]:
    # Stable sort: id ascending first so equal keys keep id order
    ordered = sorted(records, key=lambda r: r.id)
    ordered.sort(key=key, reverse=True)
    return ordered[:limit]


def percentage(count: int, total: int) -> int:
    """
    Share of ``total`` as a whole percent, rounding halves up.

    Returns 0 when ``total`` is 0.
    """
    if total <= 0:
        return 0
    return (count * 200 + total) // (2 * total)


def _integration_bucket(value: str | None) -> str:
    try:
        return ApiKeyStatus((value or "").strip().lower()).value
    except ValueError:
        return ApiKeyStatus.NONE.value


def _trimmed(names: Iterable[str]) -> list[str]:
    return [name.strip() for name in names if name and name.strip()]


# =============================================================================
# Reducers
# =============================================================================


def reduce_project_stats(projects: Sequence[ProjectRecord], now: datetime) -> ProjectStatistics:
    """
    Fold projects into the project slice.

    The three integration buckets (required, optional, none) are always
    present; missing or unrecognised values count as none.
    """
    integration = dict.fromkeys((s.value for s in ApiKeyStatus), 0)
    for project in projects:
        integration[_integration_bucket(project.integration_status)] += 1

    recent = _top_by(projects, key=lambda p: p.created_at or _EPOCH_FLOOR, limit=RECENT_LIMIT)

    return ProjectStatistics(
        total_projects=len(projects),
        category_distribution=_distribution(_category_name(p.category) for p in projects),
        integration_distribution=[
            CountBucket(name=name, count=count) for name, count in integration.items()
        ],
        recent_projects=[
            RecentProject(id=p.id, title=p.title, created_at=p.created_at, category=p.category)
            for p in recent
        ],
        projects_over_time=timeline(projects, now),
    )


def reduce_board_stats(posts: Sequence[PostRecord], now: datetime) -> BoardStatistics:
    """
    Fold posts into the board slice.

    Comment totals come from each post's denormalised ``comment_count``, so
    they can lag behind the comments collection.
    """
    distribution = _distribution(_category_name(p.category) for p in posts)
    distribution.append(CountBucket(name="all", count=len(posts)))

    popular = _top_by(posts, key=lambda p: p.view_count, limit=POPULAR_LIMIT)

    return BoardStatistics(
        total_posts=len(posts),
        total_comments=sum(p.comment_count for p in posts),
        category_distribution=distribution,
        popular_posts=[
            PopularPost(
                id=p.id,
                title=p.title,
                author_name=p.author.display_name,
                view_count=p.view_count,
                like_count=p.like_count,
            )
            for p in popular
        ],
        posts_over_time=timeline(posts, now),
    )


def estimated_hourly_visits() -> EstimatedHourlySeries:
    return EstimatedHourlySeries(points=[HourlyVisits(hour=hour) for hour in range(24)])


def estimated_daily_activity(now: datetime) -> EstimatedDailySeries:
    return EstimatedDailySeries(points=[DailyActivity(date=day) for day in day_window(now)])


def reduce_user_stats(
    users: Sequence[UserRecord],
    posts: Sequence[PostRecord],
    total_visitors: int,
    now: datetime,
) -> UserStatistics:
    """
    Fold users and posts into the user-activity slice.

    Contributors are grouped by author uid; posts without one are not
    attributed. The display name is taken from the author's first post
    seen. Hourly and daily series are placeholders (see EstimatedSeries).
    """
    counts: Counter[str] = Counter()
    names: dict[str, str] = {}
    for post in posts:
        uid = post.author.uid
        if not uid:
            continue
        counts[uid] += 1
        names.setdefault(uid, post.author.name or ANONYMOUS)

    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:CONTRIBUTOR_LIMIT]

    return UserStatistics(
        total_users=len(users),
        total_visitors=max(int(total_visitors or 0), 0),
        top_contributors=[
            Contributor(user_id=uid, user_name=names[uid], post_count=count)
            for uid, count in ordered
        ],
        visits_by_hour=estimated_hourly_visits(),
        activity_by_day=estimated_daily_activity(now),
    )


def reduce_tech_stats(projects: Sequence[ProjectRecord]) -> TechStackStatistics:
    """
    Fold project technology and tool lists into frequency tables.

    Names are trimmed and compared case-sensitively. Percentages are the
    share of all projects using an entry.
    """
    tech_counts: Counter[str] = Counter()
    tool_counts: Counter[str] = Counter()
    for project in projects:
        tech_counts.update(_trimmed(project.technologies))
        tool_counts.update(_trimmed(project.development_tools))

    total_projects = len(projects)
    tech_distribution = _ranked(tech_counts)
    tool_distribution = _ranked(tool_counts)

    def top(distribution: list[CountBucket]) -> list[RankedCount]:
        return [
            RankedCount(name=b.name, count=b.count, percentage=percentage(b.count, total_projects))
            for b in distribution[:TOP_TECH_LIMIT]
        ]

    def entry_count(project: ProjectRecord) -> int:
        return len(_trimmed(project.technologies)) + len(_trimmed(project.development_tools))

    per_project = _top_by(
        projects,
        key=entry_count,
        limit=TECH_PER_PROJECT_LIMIT,
    )

    return TechStackStatistics(
        total_technologies=len(tech_counts),
        total_development_tools=len(tool_counts),
        technology_distribution=tech_distribution,
        development_tool_distribution=tool_distribution,
        top_technologies=top(tech_distribution),
        top_development_tools=top(tool_distribution),
        technologies_per_project=[
            ProjectTechCount(
                project_id=p.id,
                project_title=p.title,
                tech_count=entry_count(p),
            )
            for p in per_project
        ],
    )


# =============================================================================
# Zero values for degraded slices
# =============================================================================


def empty_board_stats(now: datetime) -> BoardStatistics:
    """Board slice shown when posts could not be read."""
    return BoardStatistics(
        category_distribution=[CountBucket(name="all", count=0)],
        posts_over_time=timeline([], now),
    )


def empty_user_stats(now: datetime) -> UserStatistics:
    """User slice shown when users or posts could not be read."""
    return UserStatistics(
        visits_by_hour=estimated_hourly_visits(),
        activity_by_day=estimated_daily_activity(now),
    )


def empty_tech_stats() -> TechStackStatistics:
    """Tech slice shown when projects could not be read for it."""
    return TechStackStatistics()
