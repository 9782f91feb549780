"""
List views over store collections: the shared filter/sort/paginate
pipeline and the realtime feed controller.
"""

from .controller import ConnectionStatus, FeedError, FeedState, RealtimeFeedController
from .pipeline import (
    ALL,
    DEFAULT_PAGE_SIZE,
    FilterOptions,
    PaginationInfo,
    SortKey,
    apply_pipeline,
    count_matches,
    filter_records,
    paginate_info,
    sort_records,
)

__all__ = [
    # Pipeline
    "ALL",
    "DEFAULT_PAGE_SIZE",
    "FilterOptions",
    "PaginationInfo",
    "SortKey",
    "apply_pipeline",
    "count_matches",
    "filter_records",
    "paginate_info",
    "sort_records",
    # Controller
    "ConnectionStatus",
    "FeedError",
    "FeedState",
    "RealtimeFeedController",
]
