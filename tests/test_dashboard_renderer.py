"""
Tests for the Rich dashboard and feed renderer.
"""

from io import StringIO

import pytest
from rich.console import Console

from showcase.core.dashboard import DashboardSnapshot
from showcase.core.dashboard.models import CountBucket, RankedCount
from showcase.core.dashboard.reducers import (
    empty_board_stats,
    empty_tech_stats,
    empty_user_stats,
    reduce_project_stats,
)
from showcase.core.feed import ConnectionStatus, FeedError, FeedState, FilterOptions
from showcase.core.records import PostRecord, ProjectRecord, parse_records
from showcase.core.store import FailureKind
from showcase.dashboard import DashboardRenderer


@pytest.fixture
def console() -> Console:
    return Console(file=StringIO(), width=120, color_system=None)


@pytest.fixture
def renderer(console) -> DashboardRenderer:
    return DashboardRenderer(console=console)


def render(console: Console, renderable) -> str:
    console.print(renderable)
    return console.file.getvalue()


@pytest.fixture
def snapshot(sample_projects, now) -> DashboardSnapshot:
    tech = empty_tech_stats()
    tech.top_technologies = [RankedCount(name="React", count=3, percentage=75)]
    return DashboardSnapshot(
        project=reduce_project_stats(parse_records(ProjectRecord, sample_projects), now),
        board=empty_board_stats(now),
        user=empty_user_stats(now),
        tech=tech,
        last_updated=now,
    )


class TestRenderSnapshot:
    """Test DashboardRenderer.render_snapshot."""

    def test_sections(self, renderer, console, snapshot):
        output = render(console, renderer.render_snapshot(snapshot))
        for heading in ("SHOWCASE DASHBOARD", "Projects", "Board", "Users", "Tech stack"):
            assert heading in output
        assert "2024-06-15 12:00:00 UTC" in output
        assert "Chat app" in output
        assert "75%" in output

    def test_estimated_series_labelled(self, renderer, console, snapshot):
        output = render(console, renderer.render_snapshot(snapshot))
        assert output.count("estimated / unavailable") == 2

    def test_degraded_slices_flagged(self, renderer, console, snapshot):
        degraded = snapshot.model_copy(update={"degraded_slices": ["board", "user"]})
        output = render(console, renderer.render_snapshot(degraded))
        assert "Unavailable: board, user (showing zeros)" in output

    def test_healthy_snapshot_not_flagged(self, renderer, console, snapshot):
        assert "Unavailable:" not in render(console, renderer.render_snapshot(snapshot))

    def test_empty_distribution(self, renderer, console):
        output = render(console, renderer._render_buckets("Categories", []))
        assert "Categories: none" in output

    def test_bucket_rows(self, renderer, console):
        output = render(
            console, renderer._render_buckets("Categories", [CountBucket(name="tip", count=4)])
        )
        assert "tip" in output
        assert "4" in output


class TestRenderFeed:
    """Test DashboardRenderer.render_feed."""

    def test_connected_feed(self, renderer, console, sample_posts):
        posts = parse_records(PostRecord, sample_posts[:2])
        state = FeedState(
            connection_status=ConnectionStatus.CONNECTED,
            current_options=FilterOptions(category="tip"),
            visible_records=posts,
            total_matches=5,
        )
        output = render(console, renderer.render_feed(state))
        assert "CONNECTED" in output
        assert "category=tip" in output
        assert "Board (2 of 5)" in output
        assert "React tips" in output
        assert "Bob" in output

    def test_empty_connected_feed(self, renderer, console):
        state = FeedState(connection_status=ConnectionStatus.CONNECTED)
        output = render(console, renderer.render_feed(state))
        assert "No posts match the current filters" in output

    def test_connecting_feed_has_no_empty_notice(self, renderer, console):
        state = FeedState(connection_status=ConnectionStatus.CONNECTING)
        output = render(console, renderer.render_feed(state))
        assert "CONNECTING" in output
        assert "No posts match" not in output

    def test_error_banner_with_stale_records(self, renderer, console, sample_posts):
        state = FeedState(
            connection_status=ConnectionStatus.ERROR,
            visible_records=parse_records(PostRecord, sample_posts[:1]),
            total_matches=1,
            error=FeedError(
                kind=FailureKind.CONNECTIVITY,
                message="Could not reach the record store",
                retryable=True,
            ),
            stale=True,
        )
        output = render(console, renderer.render_feed(state, title="Posts"))
        assert "ERROR" in output
        assert "Could not reach the record store" in output
        assert "out of date" in output
        assert "run the command again" in output
        assert "Posts (1 of 1)" in output

    def test_permanent_error_has_no_retry_hint(self, renderer, console):
        state = FeedState(
            connection_status=ConnectionStatus.ERROR,
            error=FeedError(kind=FailureKind.PERMISSION, message="Access denied"),
        )
        output = render(console, renderer.render_feed(state))
        assert "Access denied" in output
        assert "run the command again" not in output
