"""
Collectors: bind each statistics reducer to the record store.

Each collector fetches the collections its reducer needs and folds them.
The project collector lets classified store failures propagate; the other
three wrap them in DegradedSliceError so the cache can substitute a zero
slice.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime

from showcase.core.records import (
    POSTS,
    PROJECTS,
    STATISTICS,
    USERS,
    VISITORS_DOC,
    PostRecord,
    ProjectRecord,
    UserRecord,
    parse_records,
)
from showcase.core.store.backend import RecordStore
from showcase.core.store.errors import StoreError, classify_store_error

from .errors import DegradedSliceError
from .models import BoardStatistics, ProjectStatistics, TechStackStatistics, UserStatistics
from .reducers import reduce_board_stats, reduce_project_stats, reduce_tech_stats, reduce_user_stats

logger = logging.getLogger(__name__)


@dataclass
class DashboardCollectors:
    """
    The four slice collectors, injectable as a bundle.

    Each takes the refresh time and returns its slice. Tests swap in plain
    async functions to control results and failures.
    """

    project: Callable[[datetime], Awaitable[ProjectStatistics]]
    board: Callable[[datetime], Awaitable[BoardStatistics]]
    user: Callable[[datetime], Awaitable[UserStatistics]]
    tech: Callable[[datetime], Awaitable[TechStackStatistics]]

    @classmethod
    def from_store(cls, store: RecordStore) -> "DashboardCollectors":
        """Production collectors reading from ``store``."""

        async def project(now: datetime) -> ProjectStatistics:
            return await collect_project_stats(store, now)

        async def board(now: datetime) -> BoardStatistics:
            return await collect_board_stats(store, now)

        async def user(now: datetime) -> UserStatistics:
            return await collect_user_stats(store, now)

        async def tech(now: datetime) -> TechStackStatistics:
            return await collect_tech_stats(store)

        return cls(project=project, board=board, user=user, tech=tech)


async def _fetch(store: RecordStore, collection: str) -> list[dict]:
    try:
        return await store.fetch_all(collection)
    except StoreError:
        raise
    except Exception as e:
        raise classify_store_error(e) from e


async def collect_project_stats(store: RecordStore, now: datetime) -> ProjectStatistics:
    """
    Project slice.

    Raises:
        StoreError: If the projects collection cannot be read
    """
    projects = parse_records(ProjectRecord, await _fetch(store, PROJECTS))
    return reduce_project_stats(projects, now)


async def collect_board_stats(store: RecordStore, now: datetime) -> BoardStatistics:
    """
    Board slice.

    Raises:
        DegradedSliceError: If the posts collection cannot be read
    """
    try:
        documents = await _fetch(store, POSTS)
    except StoreError as e:
        raise DegradedSliceError("board", e) from e
    return reduce_board_stats(parse_records(PostRecord, documents), now)


async def read_visitor_count(store: RecordStore) -> int:
    """Total visitor count; 0 when the counter is missing or unreadable."""
    try:
        document = await store.fetch_one(STATISTICS, VISITORS_DOC)
    except Exception as e:
        logger.info("Visitor counter unavailable, using 0: %s", e)
        return 0
    if not document:
        return 0
    count = document.get("count")
    return count if isinstance(count, int) and not isinstance(count, bool) and count > 0 else 0


async def collect_user_stats(store: RecordStore, now: datetime) -> UserStatistics:
    """
    User-activity slice.

    Raises:
        DegradedSliceError: If users or posts cannot be read
    """
    try:
        visitors, users, posts = await asyncio.gather(
            read_visitor_count(store),
            _fetch(store, USERS),
            _fetch(store, POSTS),
        )
    except StoreError as e:
        raise DegradedSliceError("user", e) from e
    return reduce_user_stats(
        parse_records(UserRecord, users),
        parse_records(PostRecord, posts),
        visitors,
        now,
    )


async def collect_tech_stats(store: RecordStore) -> TechStackStatistics:
    """
    Tech-stack slice.

    Raises:
        DegradedSliceError: If the projects collection cannot be read
    """
    try:
        documents = await _fetch(store, PROJECTS)
    except StoreError as e:
        raise DegradedSliceError("tech", e) from e
    return reduce_tech_stats(parse_records(ProjectRecord, documents))
