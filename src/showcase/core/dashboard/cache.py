"""
Time-to-live cache for the dashboard snapshot.

One cache slot holds the whole aggregated snapshot. A read inside the TTL
window performs no I/O at all; a miss (or a forced refresh) runs the four
collectors concurrently and stores the result for DASHBOARD_TTL.

Concurrent readers during a refresh share the same in-flight computation.
A refresh keeps running and writes the cache even if every caller stopped
waiting for it.

Record writes do not invalidate the cache: readers can see data up to one
TTL old.

Example:
    >>> cache = DashboardCache.from_store(store)
    >>> snapshot = await cache.get()
    >>> snapshot = await cache.get(force_refresh=True)
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from showcase.core.store.backend import RecordStore
from showcase.core.store.errors import StoreError, classify_store_error
from showcase.utils.clock import Clock, utc_now

from .collectors import DashboardCollectors
from .errors import DashboardError, DegradedSliceError
from .models import DashboardSnapshot
from .reducers import empty_board_stats, empty_tech_stats, empty_user_stats

logger = logging.getLogger(__name__)

DASHBOARD_TTL = timedelta(minutes=5)


def _retrieve_refresh_error(future: asyncio.Future) -> None:
    # Every caller may have been cancelled before the refresh failed
    if not future.cancelled() and future.exception() is not None:
        logger.debug("Dashboard refresh failed: %s", future.exception())


@dataclass
class CacheEntry:
    """The single cache slot. Empty until the first successful refresh."""

    value: DashboardSnapshot | None = None
    expires_at: datetime | None = None

    def is_fresh(self, now: datetime) -> bool:
        return self.value is not None and self.expires_at is not None and now < self.expires_at


class DashboardCache:
    """
    Dashboard snapshot cache with an injected clock and collectors.

    Construct one per process and share it; there is no module-level
    instance.

    Attributes:
        ttl: How long a snapshot stays fresh
        last_error: Classified failure of the most recent refresh, if it failed
    """

    def __init__(
        self,
        collectors: DashboardCollectors,
        clock: Clock = utc_now,
        ttl: timedelta = DASHBOARD_TTL,
    ):
        self.collectors = collectors
        self.clock = clock
        self.ttl = ttl
        self.last_error: StoreError | None = None

        self._entry = CacheEntry()
        self._inflight: asyncio.Future[DashboardSnapshot] | None = None

    @classmethod
    def from_store(
        cls,
        store: RecordStore,
        clock: Clock = utc_now,
        ttl: timedelta = DASHBOARD_TTL,
    ) -> "DashboardCache":
        """Cache wired to the production collectors for ``store``."""
        return cls(DashboardCollectors.from_store(store), clock=clock, ttl=ttl)

    @property
    def expires_at(self) -> datetime | None:
        return self._entry.expires_at

    @property
    def refreshing(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def peek(self) -> DashboardSnapshot | None:
        """Last stored snapshot, fresh or not, without any I/O."""
        return self._entry.value

    def invalidate(self) -> None:
        """Drop the stored snapshot so the next read refreshes."""
        self._entry = CacheEntry()

    async def get(self, force_refresh: bool = False) -> DashboardSnapshot:
        """
        Return the dashboard snapshot.

        Args:
            force_refresh: Recompute even if the cached snapshot is fresh

        Returns:
            Cached or freshly assembled snapshot

        Raises:
            DashboardError: If the project slice could not be loaded. The
                previous snapshot (if any) stays available through peek().
        """
        if not force_refresh and self._entry.is_fresh(self.clock()):
            logger.debug("Dashboard cache hit (expires %s)", self._entry.expires_at)
            return self._entry.value  # type: ignore[return-value]

        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.ensure_future(self._refresh())
            self._inflight.add_done_callback(_retrieve_refresh_error)
        else:
            logger.debug("Joining in-flight dashboard refresh")

        # Shielded so a cancelled caller does not cancel the shared refresh
        return await asyncio.shield(self._inflight)

    async def _refresh(self) -> DashboardSnapshot:
        now = self.clock()
        logger.info("Refreshing dashboard statistics")

        results = await asyncio.gather(
            self.collectors.project(now),
            self.collectors.board(now),
            self.collectors.user(now),
            self.collectors.tech(now),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result

        project, board, user, tech = results
        if isinstance(project, Exception):
            cause = classify_store_error(project)
            self.last_error = cause
            logger.error("Dashboard refresh failed, project statistics unavailable: %s", cause)
            raise DashboardError(cause) from project

        degraded: list[str] = []
        board = self._degrade("board", board, lambda: empty_board_stats(now), degraded)
        user = self._degrade("user", user, lambda: empty_user_stats(now), degraded)
        tech = self._degrade("tech", tech, empty_tech_stats, degraded)

        snapshot = DashboardSnapshot(
            project=project,
            board=board,
            user=user,
            tech=tech,
            last_updated=now,
            degraded_slices=degraded,
        )
        self._entry = CacheEntry(value=snapshot, expires_at=now + self.ttl)
        self.last_error = None
        logger.info(
            "Dashboard refreshed (%d projects, degraded: %s)",
            project.total_projects,
            ", ".join(degraded) or "none",
        )
        return snapshot

    @staticmethod
    def _degrade(name: str, result: Any, zero: Any, degraded: list[str]) -> Any:
        if not isinstance(result, Exception):
            return result
        cause = result.cause if isinstance(result, DegradedSliceError) else classify_store_error(result)
        logger.warning(
            "Dashboard %s statistics degraded to zero values (%s): %s",
            name,
            cause.kind.value,
            cause,
        )
        degraded.append(name)
        return zero()
