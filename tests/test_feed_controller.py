"""
Tests for the realtime feed controller.

Most tests use the FakeStore so snapshots and errors are delivered
synchronously; the last class runs against the in-memory store.
"""

import asyncio

import pytest
from conftest import make_post

from showcase.core.feed import (
    ConnectionStatus,
    FeedState,
    FilterOptions,
    RealtimeFeedController,
)
from showcase.core.records import POSTS
from showcase.core.store import FailureKind, InMemoryRecordStore, StorePermissionError


@pytest.fixture
def controller(fake_store, clock) -> RealtimeFeedController:
    return RealtimeFeedController(fake_store, clock=clock)


@pytest.fixture
def states(controller) -> list[FeedState]:
    captured: list[FeedState] = []
    controller.add_listener(captured.append)
    return captured


class TestLifecycle:
    """Test the idle -> connecting -> connected path."""

    def test_initial_state_is_idle(self, controller):
        assert controller.state.connection_status is ConnectionStatus.IDLE
        assert controller.state.visible_records == []
        assert controller.state.sequence == 0
        assert not controller.subscribed

    def test_start_moves_to_connecting(self, controller, fake_store, states):
        controller.start()
        assert controller.state.connection_status is ConnectionStatus.CONNECTING
        assert controller.subscribed
        assert fake_store.subscriptions[0]["collection"] == POSTS
        assert [s.connection_status for s in states] == [ConnectionStatus.CONNECTING]

    def test_first_snapshot_connects(self, controller, fake_store, sample_posts):
        controller.start()
        fake_store.deliver(sample_posts)
        state = controller.state
        assert state.connection_status is ConnectionStatus.CONNECTED
        assert [p.id for p in state.visible_records] == ["p4", "p1", "p2", "p3"]
        assert state.total_matches == 4
        assert state.error is None

    def test_start_with_options(self, controller, fake_store, sample_posts):
        controller.start({"category": "tip"})
        fake_store.deliver(sample_posts)
        assert controller.state.current_options.category == "tip"
        assert [p.id for p in controller.state.visible_records] == ["p1"]

    def test_updated_at_from_clock(self, controller, clock):
        controller.start()
        assert controller.state.updated_at == clock.now


class TestNotifications:
    """Test full-snapshot replacement."""

    def test_each_snapshot_replaces_visible_set(self, controller, fake_store):
        controller.start()
        fake_store.deliver([make_post("a"), make_post("b")])
        fake_store.deliver([make_post("c")])
        assert [p.id for p in controller.state.visible_records] == ["c"]

    def test_every_notification_published_in_order(self, controller, fake_store, states):
        controller.start()
        for n in range(1, 4):
            fake_store.deliver([make_post(str(i)) for i in range(n)])
        assert [len(s.visible_records) for s in states[1:]] == [1, 2, 3]
        sequences = [s.sequence for s in states]
        assert sequences == sorted(sequences)
        assert len(set(sequences)) == len(sequences)

    def test_sequence_steps_by_one_across_restarts(self, controller, fake_store, states):
        controller.start()
        fake_store.deliver([make_post("a")])
        controller.stop()
        controller.start()
        fake_store.deliver([make_post("b")])
        sequences = [s.sequence for s in states]
        assert sequences == list(range(1, len(states) + 1))

    def test_page_size_caps_visible_records(self, controller, fake_store):
        controller.start(FilterOptions(page_size=2))
        fake_store.deliver([make_post(f"p{i}") for i in range(5)])
        assert len(controller.state.visible_records) == 2
        assert controller.state.total_matches == 5

    def test_document_without_id_still_listed(self, controller, fake_store):
        controller.start()
        fake_store.deliver([make_post("ok"), {"title": "no id"}])
        assert controller.state.total_matches == 2
        assert sorted(p.id for p in controller.state.visible_records) == [
            "missing-id-1",
            "ok",
        ]

    def test_notification_ignored_when_idle(self, controller, sample_posts, states):
        controller.on_change_notification(sample_posts)
        assert controller.state.connection_status is ConnectionStatus.IDLE
        assert states == []


class TestUpdateOptions:
    """Test re-running the pipeline on option changes."""

    def test_reapplies_without_store_round_trip(self, controller, fake_store, sample_posts):
        controller.start()
        fake_store.deliver(sample_posts)
        subscriptions = len(fake_store.subscriptions)

        controller.update_options(
            controller.state.current_options.replace(search_term="vue")
        )

        assert [p.id for p in controller.state.visible_records] == ["p2"]
        assert controller.state.total_matches == 1
        assert len(fake_store.subscriptions) == subscriptions
        assert fake_store.fetch_calls == []

    def test_before_first_snapshot_only_records_options(self, controller):
        controller.start()
        controller.update_options({"sortKey": "popular"})
        assert controller.state.current_options.sort_key.value == "popular"
        assert controller.state.connection_status is ConnectionStatus.CONNECTING
        assert controller.state.visible_records == []

    def test_next_snapshot_uses_latest_options(self, controller, fake_store, sample_posts):
        controller.start()
        controller.update_options({"category": "question"})
        fake_store.deliver(sample_posts)
        assert [p.id for p in controller.state.visible_records] == ["p2"]

    def test_options_and_notification_interleave(self, controller, fake_store, sample_posts, states):
        controller.start()
        fake_store.deliver(sample_posts)
        controller.update_options({"status": "draft"})
        fake_store.deliver(sample_posts[:3])
        assert controller.state.current_options.status == "draft"
        assert controller.state.visible_records == []
        assert states[-1].sequence == controller.state.sequence


class TestErrors:
    """Test the error state and retry."""

    def test_error_classified_and_subscription_released(self, controller, fake_store):
        controller.start()
        fake_store.fail(StorePermissionError("denied"))
        state = controller.state
        assert state.connection_status is ConnectionStatus.ERROR
        assert state.error is not None
        assert state.error.kind is FailureKind.PERMISSION
        assert "access rules" in state.error.message
        assert state.error.retryable is False
        assert fake_store.subscriptions[0]["unsubscribed"]
        assert not controller.subscribed

    def test_connectivity_error_is_retryable(self, controller, fake_store):
        controller.start()
        fake_store.fail(ConnectionError("offline"))
        assert controller.state.error.kind is FailureKind.CONNECTIVITY
        assert controller.state.error.retryable is True

    def test_error_keeps_last_records_marked_stale(self, controller, fake_store, sample_posts):
        controller.start()
        fake_store.deliver(sample_posts)
        fake_store.fail(ConnectionError("offline"))
        assert controller.state.stale is True
        assert len(controller.state.visible_records) == 4

    def test_error_before_any_data_is_not_stale(self, controller, fake_store):
        controller.start()
        fake_store.fail(ConnectionError("offline"))
        assert controller.state.stale is False

    def test_options_change_in_error_state_stays_stale(self, controller, fake_store, sample_posts):
        controller.start()
        fake_store.deliver(sample_posts)
        fake_store.fail(ConnectionError("offline"))
        controller.update_options({"category": "tip"})
        assert controller.state.connection_status is ConnectionStatus.ERROR
        assert controller.state.stale is True
        assert [p.id for p in controller.state.visible_records] == ["p1"]

    def test_no_automatic_retry(self, controller, fake_store):
        controller.start()
        fake_store.fail(ConnectionError("offline"))
        assert len(fake_store.subscriptions) == 1

    def test_retry_resubscribes_with_current_options(self, controller, fake_store, sample_posts):
        controller.start({"category": "tip"})
        fake_store.fail(ConnectionError("offline"))
        controller.retry()
        assert controller.state.connection_status is ConnectionStatus.CONNECTING
        assert controller.state.error is None
        assert len(fake_store.active) == 1
        fake_store.deliver(sample_posts)
        assert controller.state.connection_status is ConnectionStatus.CONNECTED
        assert [p.id for p in controller.state.visible_records] == ["p1"]

    def test_subscribe_raising_moves_to_error(self, controller, fake_store):
        fake_store.subscribe_error = ConnectionError("refused")
        controller.start()
        assert controller.state.connection_status is ConnectionStatus.ERROR
        assert controller.state.error.kind is FailureKind.CONNECTIVITY


class TestStaleCallbacks:
    """Test that released subscriptions cannot change the state."""

    def test_snapshot_from_old_subscription_discarded(self, controller, fake_store, sample_posts):
        controller.start()
        controller.start({"category": "tip"})
        fake_store.deliver(sample_posts, index=0)
        assert controller.state.connection_status is ConnectionStatus.CONNECTING
        assert fake_store.subscriptions[0]["unsubscribed"]

    def test_error_from_old_subscription_discarded(self, controller, fake_store, sample_posts):
        controller.start()
        controller.retry()
        fake_store.deliver(sample_posts)
        fake_store.fail(ConnectionError("late"), index=0)
        assert controller.state.connection_status is ConnectionStatus.CONNECTED

    def test_snapshot_after_stop_discarded(self, controller, fake_store, sample_posts, states):
        controller.start()
        controller.stop()
        published = len(states)
        fake_store.deliver(sample_posts)
        assert controller.state.connection_status is ConnectionStatus.IDLE
        assert len(states) == published


class TestStop:
    """Test teardown."""

    def test_stop_releases_and_goes_idle(self, controller, fake_store, sample_posts):
        controller.start()
        fake_store.deliver(sample_posts)
        controller.stop()
        assert controller.state.connection_status is ConnectionStatus.IDLE
        assert fake_store.subscriptions[0]["unsubscribed"]
        assert not controller.subscribed

    def test_stop_is_idempotent(self, controller, states):
        controller.start()
        controller.stop()
        published = len(states)
        controller.stop()
        controller.stop()
        assert len(states) == published

    def test_stop_before_start_is_noop(self, controller, states):
        controller.stop()
        assert states == []

    def test_error_after_stop_ignored(self, controller):
        controller.start()
        controller.stop()
        controller.on_error(ConnectionError("late"))
        assert controller.state.connection_status is ConnectionStatus.IDLE


class TestListeners:
    """Test listener registration and isolation."""

    def test_remove_listener(self, controller):
        captured: list[FeedState] = []
        remove = controller.add_listener(captured.append)
        controller.start()
        remove()
        controller.stop()
        assert len(captured) == 1

    def test_failing_listener_does_not_break_feed(self, controller, fake_store, sample_posts, caplog):
        def explode(state: FeedState) -> None:
            raise RuntimeError("boom")

        captured: list[FeedState] = []
        controller.add_listener(explode)
        controller.add_listener(captured.append)
        controller.start()
        fake_store.deliver(sample_posts)
        assert controller.state.connection_status is ConnectionStatus.CONNECTED
        assert len(captured) == 2
        assert "Feed listener failed" in caplog.text

    def test_states_are_immutable(self, controller):
        controller.start()
        with pytest.raises(Exception):
            controller.state.connection_status = ConnectionStatus.IDLE  # type: ignore[misc]


class TestWithMemoryStore:
    """Run the controller against the in-memory store's async delivery."""

    @pytest.mark.asyncio
    async def test_live_updates(self, sample_posts):
        store = InMemoryRecordStore({POSTS: sample_posts})
        controller = RealtimeFeedController(store, options={"status": "published"})
        controller.start()
        assert controller.state.connection_status is ConnectionStatus.CONNECTING

        await asyncio.sleep(0)
        assert controller.state.connection_status is ConnectionStatus.CONNECTED
        assert controller.state.total_matches == 3

        await store.add(POSTS, make_post("p9", createdAt="2024-06-14T00:00:00Z"))
        await asyncio.sleep(0)
        assert controller.state.visible_records[0].id == "p9"
        assert controller.state.total_matches == 4

        controller.stop()

    @pytest.mark.asyncio
    async def test_injected_failure_reaches_error_state(self, sample_posts):
        store = InMemoryRecordStore({POSTS: sample_posts})
        controller = RealtimeFeedController(store)
        controller.start()
        await asyncio.sleep(0)

        store.set_failure(POSTS, PermissionError("rules changed"))
        await asyncio.sleep(0)

        assert controller.state.connection_status is ConnectionStatus.ERROR
        assert controller.state.error.kind is FailureKind.PERMISSION
        assert controller.state.stale is True

        store.set_failure(POSTS, None)
        controller.retry()
        await asyncio.sleep(0)
        assert controller.state.connection_status is ConnectionStatus.CONNECTED
