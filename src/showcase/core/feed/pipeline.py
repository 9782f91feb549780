"""
Filter, sort and paginate a fully-fetched record set.

One pure transform shared by the realtime board feed and the one-shot list
endpoints. Steps run in a fixed order and each one only narrows or reorders:

1. category filter (skipped for 'all')
2. status filter (skipped for 'all')
3. case-insensitive search over title, body text, author name and tags
4. sort by the selected key, ties broken by id ascending
5. keep the first ``page_size`` records

Only page 1 is ever materialised: the whole collection is fetched and
sliced in memory.

Example:
    >>> options = FilterOptions(search_term="react")
    >>> [p.title for p in apply_pipeline(posts, options)]
    ['React tips']
"""

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from showcase.core.records import Record

ALL = "all"
DEFAULT_PAGE_SIZE = 10

_EPOCH_FLOOR = datetime.min.replace(tzinfo=timezone.utc)

RecordT = TypeVar("RecordT", bound=Record)


class SortKey(str, Enum):
    """Sort orders offered by list views."""

    LATEST = "latest"
    OLDEST = "oldest"
    POPULAR = "popular"
    MOST_VIEWED = "mostViewed"


class FilterOptions(BaseModel):
    """
    Immutable view options for a record list.

    Never raises for malformed input on these fields: an unknown sort key
    falls back to ``latest`` and a non-positive page size to
    DEFAULT_PAGE_SIZE, since options arrive straight from user interaction.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    category: str = Field(default=ALL, description="Category to keep, or 'all'")
    status: str = Field(default=ALL, description="Lifecycle status to keep, or 'all'")
    search_term: str = Field(default="", alias="searchTerm")
    sort_key: SortKey = Field(default=SortKey.LATEST, alias="sortKey")
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, alias="pageSize")

    @field_validator("category", "status", mode="before")
    @classmethod
    def _all_if_blank(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return ALL
        return value if isinstance(value, str) else str(value)

    @field_validator("search_term", mode="before")
    @classmethod
    def _empty_if_missing(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("sort_key", mode="before")
    @classmethod
    def _latest_if_unknown(cls, value: Any) -> SortKey:
        if isinstance(value, SortKey):
            return value
        try:
            return SortKey(value)
        except ValueError:
            return SortKey.LATEST

    @field_validator("page_size", mode="before")
    @classmethod
    def _default_if_invalid(cls, value: Any) -> int:
        if isinstance(value, bool):
            return DEFAULT_PAGE_SIZE
        if isinstance(value, str):
            try:
                value = int(value.strip())
            except ValueError:
                return DEFAULT_PAGE_SIZE
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if not isinstance(value, int) or value <= 0:
            return DEFAULT_PAGE_SIZE
        return value

    @classmethod
    def coerce(cls, options: "FilterOptions | Mapping[str, Any] | None") -> "FilterOptions":
        """Accept options, a mapping of option values, or None for the defaults."""
        if options is None:
            return cls()
        if isinstance(options, FilterOptions):
            return options
        return cls.model_validate(dict(options))

    def replace(self, **changes: Any) -> "FilterOptions":
        """Return a new value with ``changes`` applied (validated again)."""
        return FilterOptions.model_validate({**self.model_dump(), **changes})


class PaginationInfo(BaseModel):
    """Pagination metadata for a single materialised page."""

    current_page: int = 1
    total_pages: int = 1
    total_items: int = 0
    page_size: int = DEFAULT_PAGE_SIZE
    has_next: bool = False
    has_prev: bool = False


def _matches_search(record: Record, term: str) -> bool:
    if any(term in (text or "").lower() for text in record.search_text()):
        return True
    return any(term in tag.lower() for tag in record.search_tags())


def filter_records(
    records: Sequence[RecordT],
    options: FilterOptions,
) -> list[RecordT]:
    """Apply the category, status and search filters (steps 1-3)."""
    result = list(records)

    if options.category != ALL:
        result = [r for r in result if getattr(r, "category", None) == options.category]

    if options.status != ALL:
        result = [r for r in result if getattr(r, "status", None) == options.status]

    term = options.search_term.strip().lower()
    if term:
        result = [r for r in result if _matches_search(r, term)]

    return result


def sort_records(records: Sequence[RecordT], sort_key: SortKey) -> list[RecordT]:
    """
    Sort by ``sort_key`` with ties broken by id ascending.

    Records without a creation time sort as the oldest.
    """
    # Python's sort is stable: order by id first, then by the key
    result = sorted(records, key=lambda r: r.id)

    if sort_key is SortKey.OLDEST:
        result.sort(key=lambda r: r.created_at or _EPOCH_FLOOR)
    elif sort_key is SortKey.POPULAR:
        result.sort(key=lambda r: r.like_total(), reverse=True)
    elif sort_key is SortKey.MOST_VIEWED:
        result.sort(key=lambda r: r.view_total(), reverse=True)
    else:
        result.sort(key=lambda r: r.created_at or _EPOCH_FLOOR, reverse=True)

    return result


def apply_pipeline(
    records: Sequence[RecordT],
    options: FilterOptions | Mapping[str, Any] | None = None,
) -> list[RecordT]:
    """
    Run the full filter, sort and page-1 slice.

    Pure: the input sequence is never mutated.

    Args:
        records: Fully-fetched records
        options: View options (None for the defaults)

    Returns:
        At most ``options.page_size`` records
    """
    options = FilterOptions.coerce(options)
    matched = sort_records(filter_records(records, options), options.sort_key)
    return matched[: options.page_size]


def count_matches(
    records: Sequence[Record],
    options: FilterOptions | Mapping[str, Any] | None = None,
) -> int:
    """Number of records passing the filters, before the page slice."""
    return len(filter_records(records, FilterOptions.coerce(options)))


def paginate_info(total: int, page_size: int = DEFAULT_PAGE_SIZE) -> PaginationInfo:
    """
    Pagination metadata for the single materialised page.

    Always reports page 1 of 1: further pages are never fetched.
    """
    return PaginationInfo(total_items=total, page_size=page_size)
