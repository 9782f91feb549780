"""
Polling subscriptions for stores without a native change feed.

Fetches a collection at a fixed interval and delivers the full document set
whenever it differs from the last delivery.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from .backend import Document, ErrorCallback, SnapshotCallback
from .errors import classify_store_error

logger = logging.getLogger(__name__)


class CollectionWatcher:
    """
    Poll a collection and detect changes.

    The first successful fetch is always delivered. Later fetches are
    delivered only when the content changed. The first failure is
    classified, sent to ``on_error`` and ends the watch.

    Must be started from inside a running event loop.

    Example:
        >>> watcher = CollectionWatcher(
        ...     fetch=lambda: store.fetch_all("posts"),
        ...     on_snapshot=print,
        ...     on_error=print,
        ...     poll_interval=2.0,
        ... )
        >>> unsubscribe = watcher.start()
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[list[Document]]],
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
        poll_interval: float = 2.0,
        name: str = "collection",
    ):
        self.fetch = fetch
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self.poll_interval = poll_interval
        self.name = name

        self._last: list[Document] | None = None
        self._task: asyncio.Task[None] | None = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> Callable[[], None]:
        """Start polling; returns the stop callable."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self.stop

    def stop(self) -> None:
        """Stop polling. Idempotent."""
        self._stopped = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def poll(self) -> bool:
        """
        Fetch once and deliver if changed.

        Returns:
            True if a snapshot was delivered
        """
        documents = await self.fetch()
        if self._stopped or documents == self._last:
            return False
        self._last = documents
        self.on_snapshot(list(documents))
        return True

    async def _run(self) -> None:
        while not self._stopped:
            try:
                await self.poll()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if self._stopped:
                    return
                error = classify_store_error(e)
                logger.warning("Watch on %s failed (%s): %s", self.name, error.kind.value, error)
                self._stopped = True
                self.on_error(error)
                return
            await asyncio.sleep(self.poll_interval)
