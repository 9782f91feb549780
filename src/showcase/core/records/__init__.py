"""
Typed records for the documents held in the backing store.
"""

from showcase.core.records.models import (
    ANONYMOUS,
    MISSING_ID_PREFIX,
    COMMENTS,
    POSTS,
    PROJECTS,
    STATISTICS,
    UNCATEGORIZED,
    USERS,
    VISITORS_DOC,
    ApiKeyStatus,
    Author,
    CommentRecord,
    PostCategory,
    PostRecord,
    PostStatus,
    ProjectRecord,
    Record,
    UserRecord,
    coerce_counter,
    coerce_timestamp,
    parse_records,
)

__all__ = [
    # Collections
    "COMMENTS",
    "POSTS",
    "PROJECTS",
    "STATISTICS",
    "USERS",
    "VISITORS_DOC",
    # Bucket names
    "ANONYMOUS",
    "UNCATEGORIZED",
    "MISSING_ID_PREFIX",
    # Models
    "ApiKeyStatus",
    "Author",
    "CommentRecord",
    "PostCategory",
    "PostRecord",
    "PostStatus",
    "ProjectRecord",
    "Record",
    "UserRecord",
    # Helpers
    "coerce_counter",
    "coerce_timestamp",
    "parse_records",
]
