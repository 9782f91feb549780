"""
Pytest configuration and shared fixtures.

Provides record documents, a controllable clock, seeded stores and a fake
store whose subscription callbacks the tests drive by hand.
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from showcase.core.config import clear_cache
from showcase.core.records import COMMENTS, POSTS, PROJECTS, STATISTICS, USERS
from showcase.core.store import InMemoryRecordStore

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


# ==============================================================================
# Environment isolation
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep user config, SHOWCASE_* variables and the config cache out of tests."""
    for name in (
        "SHOWCASE_STORE",
        "SHOWCASE_DATA_PATH",
        "SHOWCASE_STORE_URL",
        "SHOWCASE_STORE_TOKEN",
        "SHOWCASE_PORT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    clear_cache()
    yield
    clear_cache()


# ==============================================================================
# Clock
# ==============================================================================


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ==============================================================================
# Fake store
# ==============================================================================


class FakeStore:
    """
    Store double that records subscriptions instead of delivering.

    Tests call ``deliver`` / ``fail`` to push snapshots and errors into the
    most recent (or a specific) subscription synchronously.
    """

    def __init__(self, documents: dict[str, list[dict]] | None = None):
        self.documents = documents or {}
        self.subscriptions: list[dict[str, Any]] = []
        self.fetch_calls: list[str] = []
        self.subscribe_error: Exception | None = None

    @property
    def store_name(self) -> str:
        return "fake"

    @property
    def active(self) -> list[dict[str, Any]]:
        return [s for s in self.subscriptions if not s["unsubscribed"]]

    async def fetch_all(self, collection: str) -> list[dict]:
        self.fetch_calls.append(collection)
        return [dict(d) for d in self.documents.get(collection, [])]

    async def fetch_one(self, collection: str, doc_id: str) -> dict | None:
        for document in self.documents.get(collection, []):
            if document["id"] == doc_id:
                return dict(document)
        return None

    def subscribe(
        self,
        collection: str,
        on_snapshot: Callable[[list[dict]], None],
        on_error: Callable[[BaseException], None],
    ) -> Callable[[], None]:
        if self.subscribe_error is not None:
            raise self.subscribe_error
        subscription = {
            "collection": collection,
            "on_snapshot": on_snapshot,
            "on_error": on_error,
            "unsubscribed": False,
        }
        self.subscriptions.append(subscription)

        def unsubscribe() -> None:
            subscription["unsubscribed"] = True

        return unsubscribe

    def deliver(self, documents: list[dict], index: int = -1) -> None:
        self.subscriptions[index]["on_snapshot"](documents)

    def fail(self, error: BaseException, index: int = -1) -> None:
        self.subscriptions[index]["on_error"](error)

    async def increment(self, collection: str, doc_id: str, field: str, delta: int = 1) -> None:
        raise NotImplementedError

    async def add(self, collection: str, data: dict) -> str:
        raise NotImplementedError

    async def update(self, collection: str, doc_id: str, data: dict) -> None:
        raise NotImplementedError

    async def delete(self, collection: str, doc_id: str) -> None:
        raise NotImplementedError


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


# ==============================================================================
# Sample documents
# ==============================================================================


def make_post(post_id: str, **fields: Any) -> dict[str, Any]:
    """Raw post document with sensible defaults."""
    document: dict[str, Any] = {
        "id": post_id,
        "title": f"Post {post_id}",
        "content": "",
        "category": "general",
        "status": "published",
        "author": {"uid": "u1", "name": "Alice"},
        "viewCount": 0,
        "likeCount": 0,
        "commentCount": 0,
        "tags": [],
        "createdAt": "2024-06-01T00:00:00Z",
    }
    document.update(fields)
    return document


def make_project(project_id: str, **fields: Any) -> dict[str, Any]:
    """Raw project document with sensible defaults."""
    document: dict[str, Any] = {
        "id": project_id,
        "title": f"Project {project_id}",
        "description": "",
        "category": "web",
        "technologies": [],
        "developmentTools": [],
        "createdAt": "2024-06-01T00:00:00Z",
    }
    document.update(fields)
    return document


@pytest.fixture
def sample_posts() -> list[dict[str, Any]]:
    return [
        make_post(
            "p1",
            title="React tips",
            content="Hooks in practice",
            category="tip",
            viewCount=40,
            likeCount=3,
            commentCount=2,
            tags=["react"],
            createdAt="2024-06-10T09:00:00Z",
        ),
        make_post(
            "p2",
            title="Vue guide",
            content="Getting started",
            category="question",
            author={"uid": "u2", "name": "Bob"},
            viewCount=10,
            likeCount=7,
            commentCount=1,
            createdAt="2024-05-20T09:00:00Z",
        ),
        make_post(
            "p3",
            title="Release notes",
            category="announcement",
            viewCount=25,
            likeCount=7,
            createdAt="2024-04-02T09:00:00Z",
        ),
        make_post(
            "p4",
            title="Draft about async",
            status="draft",
            tags=["asyncio"],
            createdAt="2024-06-12T09:00:00Z",
        ),
    ]


@pytest.fixture
def sample_projects() -> list[dict[str, Any]]:
    return [
        make_project(
            "a",
            title="Chat app",
            category="ai",
            technologies=["React", "X"],
            developmentTools=["Vite"],
            geminiApiStatus="required",
            featured=True,
            createdAt="2024-06-05T00:00:00Z",
        ),
        make_project(
            "b",
            title="Game",
            category="game",
            technologies=["X", " Three.js "],
            integrationStatus="optional",
            createdAt="2024-03-01T00:00:00Z",
        ),
        make_project(
            "c",
            title="Notes",
            category=None,
            technologies=["X"],
            developmentTools=["Vite", "ESLint"],
            createdAt="2024-06-05T00:00:00Z",
        ),
        make_project(
            "d",
            title="Portfolio",
            category="web",
            technologies=["React"],
            createdAt="2023-01-01T00:00:00Z",
        ),
    ]


@pytest.fixture
def seeded_data(sample_posts, sample_projects) -> dict[str, list[dict[str, Any]]]:
    return {
        POSTS: sample_posts,
        PROJECTS: sample_projects,
        USERS: [{"id": "u1", "name": "Alice"}, {"id": "u2", "name": "Bob"}],
        COMMENTS: [
            {
                "id": "c1",
                "postId": "p1",
                "content": "Nice",
                "author": {"uid": "u2", "name": "Bob"},
                "createdAt": "2024-06-11T00:00:00Z",
            },
            {
                "id": "c2",
                "postId": "p1",
                "content": "Removed",
                "isDeleted": True,
                "createdAt": "2024-06-11T01:00:00Z",
            },
            {
                "id": "c0",
                "postId": "p1",
                "content": "First!",
                "createdAt": "2024-06-10T10:00:00Z",
            },
        ],
        STATISTICS: [{"id": "visitors", "count": 42}],
    }


@pytest.fixture
def memory_store(seeded_data) -> InMemoryRecordStore:
    return InMemoryRecordStore(seeded_data)
