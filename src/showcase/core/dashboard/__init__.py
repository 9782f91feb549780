"""
Dashboard statistics: reducers, store collectors and the TTL cache.
"""

from .cache import DASHBOARD_TTL, CacheEntry, DashboardCache
from .collectors import (
    DashboardCollectors,
    collect_board_stats,
    collect_project_stats,
    collect_tech_stats,
    collect_user_stats,
    read_visitor_count,
)
from .errors import DashboardError, DegradedSliceError
from .models import (
    BoardStatistics,
    CountBucket,
    DashboardSnapshot,
    EstimatedSeries,
    ProjectStatistics,
    TechStackStatistics,
    TimelinePoint,
    UserStatistics,
)
from .reducers import (
    day_window,
    empty_board_stats,
    empty_tech_stats,
    empty_user_stats,
    month_window,
    percentage,
    reduce_board_stats,
    reduce_project_stats,
    reduce_tech_stats,
    reduce_user_stats,
)

__all__ = [
    # Cache
    "DASHBOARD_TTL",
    "CacheEntry",
    "DashboardCache",
    # Collectors
    "DashboardCollectors",
    "collect_board_stats",
    "collect_project_stats",
    "collect_tech_stats",
    "collect_user_stats",
    "read_visitor_count",
    # Errors
    "DashboardError",
    "DegradedSliceError",
    # Models
    "BoardStatistics",
    "CountBucket",
    "DashboardSnapshot",
    "EstimatedSeries",
    "ProjectStatistics",
    "TechStackStatistics",
    "TimelinePoint",
    "UserStatistics",
    # Reducers
    "day_window",
    "empty_board_stats",
    "empty_tech_stats",
    "empty_user_stats",
    "month_window",
    "percentage",
    "reduce_board_stats",
    "reduce_project_stats",
    "reduce_tech_stats",
    "reduce_user_stats",
]
