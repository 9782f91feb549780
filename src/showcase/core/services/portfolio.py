"""
Portfolio service: read access to the project gallery.

Usage:
    >>> service = PortfolioService(store)
    >>> featured = await service.list_featured()
    >>> await service.increment_view_count(featured[0].id)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from showcase.core.records import PROJECTS, ProjectRecord, parse_records
from showcase.core.store.backend import RecordStore

logger = logging.getLogger(__name__)

_EPOCH_FLOOR = datetime.min.replace(tzinfo=timezone.utc)


class PortfolioService:
    """
    Service for gallery projects.

    Lists are ordered newest first (ties by id). Counter updates are
    best-effort and never raise.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def list_projects(self) -> list[ProjectRecord]:
        """All projects, newest first."""
        projects = parse_records(ProjectRecord, await self._store.fetch_all(PROJECTS))
        projects.sort(key=lambda p: p.id)
        projects.sort(key=lambda p: p.created_at or _EPOCH_FLOOR, reverse=True)
        return projects

    async def get_project(self, project_id: str) -> ProjectRecord | None:
        document = await self._store.fetch_one(PROJECTS, project_id)
        return ProjectRecord.model_validate(document) if document else None

    async def list_featured(self) -> list[ProjectRecord]:
        return [p for p in await self.list_projects() if p.featured]

    async def list_by_category(self, category: str) -> list[ProjectRecord]:
        return [p for p in await self.list_projects() if p.category == category]

    async def increment_view_count(self, project_id: str) -> None:
        """Add one view. Failures are logged and swallowed."""
        try:
            await self._store.increment(PROJECTS, project_id, "viewCount", 1)
        except Exception as e:
            logger.warning("Failed to increment view count for project %s: %s", project_id, e)

    async def update_comment_count(self, project_id: str, delta: int = 1) -> None:
        """Adjust the denormalised comment counter. Failures are logged and swallowed."""
        try:
            await self._store.increment(PROJECTS, project_id, "commentCount", delta)
        except Exception as e:
            logger.warning("Failed to update comment count for project %s: %s", project_id, e)
