"""
Pydantic models for the documents held in the record store.

The store hands out plain documents (dicts with an ``id`` key). These models
give them a typed shape for the pipeline and the statistics reducers:

- ProjectRecord: a gallery project (portfolio item)
- PostRecord: a discussion board post
- CommentRecord: a comment attached to a post
- UserRecord: a registered user row

Documents written by older clients use camelCase keys (``createdAt``,
``viewCount``...) and a mix of timestamp encodings, so every model accepts
both spellings and normalises timestamps to timezone-aware UTC.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

# Collection names in the backing store
PROJECTS = "portfolios"
POSTS = "posts"
COMMENTS = "comments"
USERS = "users"
STATISTICS = "statistics"

# Counter document inside STATISTICS holding the total visitor count
VISITORS_DOC = "visitors"

UNCATEGORIZED = "uncategorized"
ANONYMOUS = "Anonymous"

# Id given to stored documents that arrive without one
MISSING_ID_PREFIX = "missing-id-"


class PostCategory(str, Enum):
    """Built-in board categories. Free-form categories are still accepted."""

    GENERAL = "general"
    QUESTION = "question"
    TIP = "tip"
    ANNOUNCEMENT = "announcement"
    BUG_REPORT = "bug-report"


class PostStatus(str, Enum):
    """Lifecycle status of a board post."""

    PUBLISHED = "published"
    DRAFT = "draft"
    ARCHIVED = "archived"


class ApiKeyStatus(str, Enum):
    """Whether a project needs a third-party API key to run."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    NONE = "none"


def coerce_timestamp(value: Any) -> datetime | None:
    """
    Normalise a stored timestamp to an aware UTC datetime.

    Accepts datetimes, ISO 8601 strings (with or without ``Z``), epoch
    seconds or milliseconds, and ``{"seconds": .., "nanoseconds": ..}``
    timestamp dicts. Anything unparseable becomes None.

    Example:
        >>> coerce_timestamp("2024-01-15T00:00:00.000Z").isoformat()
        '2024-01-15T00:00:00+00:00'
    """
    if value is None or value == "":
        return None

    try:
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, bool):
            return None
        elif isinstance(value, (int, float)):
            # Values this large are epoch milliseconds
            seconds = value / 1000 if abs(value) > 1e11 else value
            parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
        elif isinstance(value, Mapping) and "seconds" in value:
            seconds = float(value["seconds"]) + float(value.get("nanoseconds", 0)) / 1e9
            parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
        elif isinstance(value, str):
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        else:
            return None
    except (ValueError, TypeError, OverflowError, OSError):
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, str)]


def coerce_counter(value: Any) -> int:
    """
    Normalise a stored counter to a non-negative int.

    Missing, negative and non-numeric values count as 0; fractional values
    are truncated.

    Example:
        >>> [coerce_counter(v) for v in (3, "7", 2.9, -1, "many", None)]
        [3, 7, 2, 0, 0, 0]
    """
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return 0
    if not isinstance(value, (int, float)) or value != value or value in (float("inf"), float("-inf")):
        return 0
    return max(0, int(value))


def _optional_text(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    return str(value)


def _author_document(value: Any) -> Any:
    # Some clients stored the author as a bare display name
    if isinstance(value, (Mapping, BaseModel)):
        return value
    if isinstance(value, str) and value.strip():
        return {"name": value}
    return {}


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    if isinstance(value, (int, float)):
        return value != 0
    return False


class Record(BaseModel):
    """
    Base model for every stored document.

    Subclasses expose the fields the filter/sort pipeline reads through a
    small set of accessor methods, so the pipeline never needs to know which
    collection a record came from.

    Field values are coerced rather than rejected: a document with a wrong
    type in one field still counts toward every statistic.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., min_length=1, description="Store-assigned document id")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> datetime | None:
        return coerce_timestamp(value)

    @field_validator(
        "view_count", "like_count", "comment_count", mode="before", check_fields=False
    )
    @classmethod
    def _counter(cls, value: Any) -> int:
        return coerce_counter(value)

    @field_validator("title", "content", "description", mode="before", check_fields=False)
    @classmethod
    def _text(cls, value: Any) -> str:
        return "" if value is None else _optional_text(value)

    @field_validator(
        "category",
        "status",
        "integration_status",
        "live_url",
        "github_url",
        "image_url",
        "parent_id",
        "name",
        "email",
        mode="before",
        check_fields=False,
    )
    @classmethod
    def _as_optional_text(cls, value: Any) -> str | None:
        return _optional_text(value)

    @field_validator("featured", "is_pinned", "is_deleted", mode="before", check_fields=False)
    @classmethod
    def _as_flag(cls, value: Any) -> bool:
        return _flag(value)

    def search_text(self) -> list[str]:
        """Free-text fields matched by the search filter."""
        return []

    def search_tags(self) -> list[str]:
        """Tags matched by the search filter."""
        return []

    def like_total(self) -> int:
        return 0

    def view_total(self) -> int:
        return 0


class Author(BaseModel):
    """Denormalised author identity stored on posts and comments."""

    model_config = ConfigDict(extra="allow")

    uid: str | None = None
    name: str | None = None
    email: str | None = None
    avatar: str | None = None
    role: str | None = None

    @field_validator("uid", "name", "email", "avatar", "role", mode="before")
    @classmethod
    def _as_optional_text(cls, value: Any) -> str | None:
        return _optional_text(value)

    @property
    def display_name(self) -> str:
        return self.name or ANONYMOUS


class ProjectRecord(Record):
    """A project shown in the public gallery."""

    title: str = ""
    description: str = ""
    category: str | None = None
    technologies: list[str] = Field(default_factory=list)
    development_tools: list[str] = Field(default_factory=list, alias="developmentTools")
    integration_status: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "integration_status", "integrationStatus", "geminiApiStatus"
        ),
        serialization_alias="integrationStatus",
        description="API key requirement: required, optional or none",
    )
    featured: bool = False
    live_url: str | None = Field(default=None, alias="liveUrl")
    github_url: str | None = Field(default=None, alias="githubUrl")
    image_url: str | None = Field(default=None, alias="imageUrl")
    view_count: int = Field(default=0, alias="viewCount")
    comment_count: int = Field(default=0, alias="commentCount")

    @field_validator("technologies", "development_tools", mode="before")
    @classmethod
    def _keep_strings(cls, value: Any) -> list[str]:
        return _string_list(value)

    def search_text(self) -> list[str]:
        return [self.title, self.description]

    def search_tags(self) -> list[str]:
        return self.technologies

    def view_total(self) -> int:
        return self.view_count


class PostRecord(Record):
    """A discussion board post."""

    title: str = ""
    content: str = ""
    author: Author = Field(default_factory=Author)
    category: str | None = None
    status: str | None = None
    view_count: int = Field(default=0, alias="viewCount")
    like_count: int = Field(default=0, alias="likeCount")
    comment_count: int = Field(default=0, alias="commentCount")
    tags: list[str] = Field(default_factory=list)
    is_pinned: bool = Field(default=False, alias="isPinned")

    @field_validator("author", mode="before")
    @classmethod
    def _default_author(cls, value: Any) -> Any:
        return _author_document(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _keep_strings(cls, value: Any) -> list[str]:
        return _string_list(value)

    def search_text(self) -> list[str]:
        return [self.title, self.content, self.author.display_name]

    def search_tags(self) -> list[str]:
        return self.tags

    def like_total(self) -> int:
        return self.like_count

    def view_total(self) -> int:
        return self.view_count


class CommentRecord(Record):
    """A comment on a board post."""

    post_id: str = Field(default="", alias="postId")
    content: str = ""
    author: Author = Field(default_factory=Author)
    parent_id: str | None = Field(default=None, alias="parentId")
    like_count: int = Field(default=0, alias="likeCount")
    is_deleted: bool = Field(default=False, alias="isDeleted")

    @field_validator("author", mode="before")
    @classmethod
    def _default_author(cls, value: Any) -> Any:
        return _author_document(value)

    @field_validator("post_id", mode="before")
    @classmethod
    def _empty_if_missing(cls, value: Any) -> str:
        return _optional_text(value) or ""

    def search_text(self) -> list[str]:
        return [self.content, self.author.display_name]

    def like_total(self) -> int:
        return self.like_count


class UserRecord(Record):
    """A registered (signed-in) user."""

    name: str | None = None
    email: str | None = None


RecordT = TypeVar("RecordT", bound=Record)


def parse_records(
    model: type[RecordT],
    documents: Iterable[Mapping[str, Any]],
) -> list[RecordT]:
    """
    Validate raw store documents into records.

    Every mapping becomes a record, so collection sizes match what the
    store holds. A document without a usable id is given the placeholder
    ``missing-id-<position>`` and logged. Only entries that are not
    mappings at all are skipped.

    Args:
        model: Record model to validate against
        documents: Raw documents from the store

    Returns:
        Records in the order the store delivered them
    """
    records: list[RecordT] = []
    for index, document in enumerate(documents):
        if not isinstance(document, Mapping):
            logger.warning(
                "Skipping non-object %s entry at position %d", model.__name__, index
            )
            continue

        raw_id = document.get("id")
        if raw_id is None or (isinstance(raw_id, str) and not raw_id.strip()):
            placeholder = f"{MISSING_ID_PREFIX}{index}"
            logger.warning(
                "%s document at position %d has no id, counting it as %s",
                model.__name__,
                index,
                placeholder,
            )
            document = {**document, "id": placeholder}

        try:
            records.append(model.model_validate(document))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed %s document %r: %s",
                model.__name__,
                document.get("id"),
                e.errors()[0].get("msg") if e.errors() else e,
            )
    return records
