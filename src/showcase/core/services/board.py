"""
Board service: discussion posts and their comments.

Thin typed wrapper around the record store. Reads run the shared
filter/sort/paginate pipeline in memory; counter updates (views, comment
counts) never fail the action that triggered them.

Usage:
    >>> service = BoardService(store)
    >>> page = await service.list_posts(FilterOptions(category="tip"))
    >>> post_id = await service.create_post(PostDraft(title="Hi", content="..."), author)
    >>> await service.increment_view_count(post_id)
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

from showcase.core.feed.pipeline import (
    FilterOptions,
    PaginationInfo,
    apply_pipeline,
    count_matches,
    paginate_info,
)
from showcase.core.records import (
    COMMENTS,
    POSTS,
    Author,
    CommentRecord,
    PostCategory,
    PostRecord,
    PostStatus,
    parse_records,
)
from showcase.core.store.backend import RecordStore
from showcase.core.store.errors import StoreError, classify_store_error
from showcase.utils.clock import Clock, utc_now

from .errors import RecordNotFoundError

logger = logging.getLogger(__name__)

# Default filter for board list views: published posts only
DEFAULT_BOARD_FILTER = FilterOptions(status=PostStatus.PUBLISHED.value)


class PostDraft(BaseModel):
    """User input for a new post."""

    title: str = Field(..., min_length=1)
    content: str = ""
    category: str = PostCategory.GENERAL.value
    status: str = PostStatus.PUBLISHED.value
    tags: list[str] = Field(default_factory=list)
    is_pinned: bool = False


class PostPage(BaseModel):
    """One materialised page of posts."""

    posts: list[PostRecord]
    pagination: PaginationInfo


class BoardService:
    """
    Service for board posts and comments.

    Example:
        >>> service = BoardService(InMemoryRecordStore())
        >>> page = await service.list_posts()
        >>> page.pagination.total_pages
        1
    """

    def __init__(self, store: RecordStore, clock: Clock = utc_now) -> None:
        """
        Initialize service with dependencies.

        Args:
            store: Record store holding posts and comments
            clock: Source of timestamps for new records
        """
        self._store = store
        self._clock = clock

    def _timestamp(self) -> str:
        return self._clock().isoformat()

    # ============================================================================
    # Posts
    # ============================================================================

    async def check_connection(self) -> None:
        """
        Verify the store is reachable and readable.

        Raises:
            StoreError: Classified failure (permission, connectivity, unknown)
        """
        try:
            await self._store.fetch_all(POSTS)
        except Exception as e:
            error = classify_store_error(e)
            logger.warning("Store connection check failed (%s): %s", error.kind.value, error)
            if error is e:
                raise
            raise error from e

    async def list_posts(self, options: FilterOptions | None = None) -> PostPage:
        """
        One-shot (non-realtime) post list.

        Args:
            options: View options (defaults to published posts, latest first)

        Returns:
            First page of matching posts with pagination info
        """
        options = options or DEFAULT_BOARD_FILTER
        posts = parse_records(PostRecord, await self._store.fetch_all(POSTS))
        return PostPage(
            posts=apply_pipeline(posts, options),
            pagination=paginate_info(count_matches(posts, options), options.page_size),
        )

    async def get_post(self, post_id: str) -> PostRecord | None:
        document = await self._store.fetch_one(POSTS, post_id)
        return PostRecord.model_validate(document) if document else None

    async def create_post(self, draft: PostDraft, author: Author) -> str:
        """
        Create a post authored by ``author``.

        Returns:
            Store-assigned post id
        """
        await self.check_connection()
        now = self._timestamp()
        post_id = await self._store.add(
            POSTS,
            {
                "title": draft.title,
                "content": draft.content,
                "category": draft.category,
                "status": draft.status,
                "tags": draft.tags,
                "isPinned": draft.is_pinned,
                "author": author.model_dump(exclude_none=True),
                "viewCount": 0,
                "likeCount": 0,
                "commentCount": 0,
                "createdAt": now,
                "updatedAt": now,
            },
        )
        logger.info("Created post %s", post_id)
        return post_id

    async def update_post(self, post_id: str, changes: dict[str, Any]) -> None:
        """
        Merge ``changes`` into a post and bump its updatedAt.

        Raises:
            RecordNotFoundError: If the post does not exist
        """
        try:
            await self._store.update(POSTS, post_id, {**changes, "updatedAt": self._timestamp()})
        except StoreError as e:
            if e.code == "not-found":
                raise RecordNotFoundError(POSTS, post_id) from e
            raise

    async def delete_post(self, post_id: str) -> None:
        await self._store.delete(POSTS, post_id)

    async def increment_view_count(self, post_id: str) -> None:
        """Add one view. Failures are logged and swallowed."""
        try:
            await self._store.increment(POSTS, post_id, "viewCount", 1)
        except Exception as e:
            logger.warning("Failed to increment view count for post %s: %s", post_id, e)

    async def toggle_like(self, post_id: str, liked: bool) -> None:
        """
        Add (liked=True) or remove one like.

        Raises:
            StoreError: If the counter could not be updated
        """
        await self._store.increment(POSTS, post_id, "likeCount", 1 if liked else -1)

    # ============================================================================
    # Comments
    # ============================================================================

    async def create_comment(
        self,
        post_id: str,
        content: str,
        author: Author,
        parent_id: str | None = None,
    ) -> str:
        """
        Add a comment and bump the post's comment counter.

        The counter bump is best-effort; the comment is kept if it fails.

        Returns:
            Store-assigned comment id
        """
        now = self._timestamp()
        data: dict[str, Any] = {
            "postId": post_id,
            "content": content,
            "author": author.model_dump(exclude_none=True),
            "likeCount": 0,
            "isDeleted": False,
            "createdAt": now,
            "updatedAt": now,
        }
        if parent_id:
            data["parentId"] = parent_id
        comment_id = await self._store.add(COMMENTS, data)

        try:
            await self._store.increment(POSTS, post_id, "commentCount", 1)
        except Exception as e:
            logger.warning("Failed to update comment count for post %s: %s", post_id, e)

        return comment_id

    async def list_comments(self, post_id: str) -> list[CommentRecord]:
        """Live (not deleted) comments of a post, oldest first."""
        comments = [
            c
            for c in parse_records(CommentRecord, await self._store.fetch_all(COMMENTS))
            if c.post_id == post_id and not c.is_deleted
        ]
        comments.sort(key=lambda c: c.id)
        comments.sort(key=lambda c: c.created_at.timestamp() if c.created_at else float("-inf"))
        return comments
