"""
Realtime feed controller.

Mirrors one store collection through the filter/sort/paginate pipeline and
publishes the result as an immutable FeedState.

State machine:

    idle -> connecting -> connected
                 |            |
                 +-> error <--+
                       |
                       +-> connecting (retry)

Every store delivery is the full current set, so each notification simply
replaces the visible records; nothing is diffed or merged.

Every published state carries a sequence number strictly greater than the
previous one. Callbacks from a subscription that has since been released
(stop, error, or a restart) are tagged with an older generation and
discarded.

Example:
    >>> controller = RealtimeFeedController(store)
    >>> controller.add_listener(lambda state: print(state.connection_status))
    >>> controller.start(FilterOptions(category="tip"))
    >>> controller.update_options(controller.state.current_options.replace(search_term="async"))
    >>> controller.stop()
"""

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from showcase.core.records import POSTS, PostRecord, Record, parse_records
from showcase.core.store.backend import Document, RecordStore, Unsubscribe
from showcase.core.store.errors import FailureKind, classify_store_error
from showcase.utils.clock import Clock, utc_now

from .pipeline import FilterOptions, apply_pipeline, count_matches

logger = logging.getLogger(__name__)

StateListener = Callable[["FeedState"], None]


class ConnectionStatus(str, Enum):
    """Health of the feed's store subscription."""

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class FeedError(BaseModel):
    """Classified subscription failure shown to the user."""

    model_config = ConfigDict(frozen=True)

    kind: FailureKind
    message: str = Field(..., description="Human-readable explanation with guidance")
    retryable: bool = False


class FeedState(BaseModel):
    """
    Immutable snapshot of what a feed view should show.

    ``stale`` is set while in the error state: ``visible_records`` then holds
    the last good records and must be presented as out of date.
    """

    model_config = ConfigDict(frozen=True)

    connection_status: ConnectionStatus = ConnectionStatus.IDLE
    current_options: FilterOptions = Field(default_factory=FilterOptions)
    visible_records: list[Record] = Field(default_factory=list)
    total_matches: int = 0
    error: FeedError | None = None
    stale: bool = False
    sequence: int = 0
    updated_at: datetime | None = None


class RealtimeFeedController:
    """
    Keep a filtered, sorted first page of a collection in sync with the store.

    All methods are synchronous and must run on the event loop thread; the
    store delivers snapshots through callbacks on that same loop.
    """

    def __init__(
        self,
        store: RecordStore,
        collection: str = POSTS,
        record_model: type[Record] = PostRecord,
        options: FilterOptions | Mapping[str, Any] | None = None,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.collection = collection
        self.record_model = record_model
        self.clock = clock

        self._state = FeedState(current_options=FilterOptions.coerce(options))
        self._listeners: list[StateListener] = []
        self._records: list[Record] | None = None
        self._unsubscribe: Unsubscribe | None = None
        self._generation = 0

    # -------------------------------------------------------------------------
    # Observation
    # -------------------------------------------------------------------------

    @property
    def state(self) -> FeedState:
        return self._state

    @property
    def subscribed(self) -> bool:
        return self._unsubscribe is not None

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a callback invoked with every accepted state.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def start(self, options: FilterOptions | Mapping[str, Any] | None = None) -> None:
        """
        Open the subscription and move to ``connecting``.

        Any existing subscription is released first. The state becomes
        ``connected`` on the first delivered snapshot.
        """
        if options is not None:
            options = FilterOptions.coerce(options)
        else:
            options = self._state.current_options

        self._release()
        generation = self._generation
        self._publish(
            connection_status=ConnectionStatus.CONNECTING,
            current_options=options,
            error=None,
        )

        try:
            self._unsubscribe = self.store.subscribe(
                self.collection,
                lambda documents: self._deliver(generation, documents),
                lambda err: self._fail(generation, err),
            )
        except Exception as e:
            self.on_error(e)

    def retry(self) -> None:
        """Re-subscribe with the current options (the manual retry control)."""
        self.start(self._state.current_options)

    def on_change_notification(self, documents: Sequence[Document]) -> None:
        """
        Replace the visible set with the pipeline over a full delivery.

        Ignored unless the feed is connecting or connected.
        """
        if self._state.connection_status not in (
            ConnectionStatus.CONNECTING,
            ConnectionStatus.CONNECTED,
        ):
            logger.debug(
                "Ignoring %s snapshot while %s",
                self.collection,
                self._state.connection_status.value,
            )
            return

        self._records = parse_records(self.record_model, documents)
        self._publish_view(ConnectionStatus.CONNECTED, self._state.current_options)

    def update_options(self, options: FilterOptions | Mapping[str, Any]) -> None:
        """
        Replace the options and re-run the pipeline on the held snapshot.

        No store round-trip is made; before the first snapshot only the
        options are recorded.
        """
        options = FilterOptions.coerce(options)
        if self._records is None:
            self._publish(current_options=options)
            return
        self._publish_view(self._state.connection_status, options)

    def on_error(self, err: BaseException) -> None:
        """
        Move to ``error`` and release the subscription.

        The last visible records are kept and marked stale. There is no
        automatic retry.
        """
        if self._state.connection_status is ConnectionStatus.IDLE and not self.subscribed:
            logger.debug("Ignoring %s feed error after stop: %s", self.collection, err)
            return

        classified = classify_store_error(err)
        logger.warning(
            "Feed subscription on %s failed (%s): %s",
            self.collection,
            classified.kind.value,
            classified,
        )
        self._release()
        self._publish(
            connection_status=ConnectionStatus.ERROR,
            error=FeedError(
                kind=classified.kind,
                message=classified.user_message(),
                retryable=classified.retryable,
            ),
            stale=bool(self._state.visible_records),
        )

    def stop(self) -> None:
        """Release the subscription and go idle. Idempotent."""
        if self._state.connection_status is ConnectionStatus.IDLE and not self.subscribed:
            return
        self._release()
        self._publish(connection_status=ConnectionStatus.IDLE, error=None)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _deliver(self, generation: int, documents: Sequence[Document]) -> None:
        if generation != self._generation:
            logger.debug("Discarding %s snapshot from a released subscription", self.collection)
            return
        self.on_change_notification(documents)

    def _fail(self, generation: int, err: BaseException) -> None:
        if generation != self._generation:
            logger.debug("Discarding %s error from a released subscription", self.collection)
            return
        self.on_error(err)

    def _release(self) -> None:
        self._generation += 1
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def _publish_view(self, status: ConnectionStatus, options: FilterOptions) -> None:
        records = self._records or []
        self._publish(
            connection_status=status,
            current_options=options,
            visible_records=apply_pipeline(records, options),
            total_matches=count_matches(records, options),
            stale=status is ConnectionStatus.ERROR and bool(records),
        )

    def _publish(self, **changes: Any) -> None:
        previous = self._state.connection_status
        self._state = self._state.model_copy(
            update={**changes, "sequence": self._state.sequence + 1, "updated_at": self.clock()}
        )
        if self._state.connection_status is not previous:
            logger.debug(
                "Feed %s: %s -> %s",
                self.collection,
                previous.value,
                self._state.connection_status.value,
            )

        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("Feed listener failed")
