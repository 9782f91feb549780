"""
Board post API routes.

- GET /api/posts - Filtered, sorted first page of posts
- GET /api/posts/{post_id} - A single post (counts a view)
- GET /api/posts/{post_id}/comments - Live comments of a post, oldest first
"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query

from showcase.api.dependencies import get_board_service
from showcase.core.feed import DEFAULT_PAGE_SIZE, FilterOptions
from showcase.core.records import CommentRecord, PostRecord, PostStatus
from showcase.core.services import BoardService, PostPage

router = APIRouter()


@router.get("/posts", response_model=PostPage, response_model_by_alias=False)
async def list_posts(
    category: str = Query("all", description="Category to keep, or 'all'"),
    status: str = Query(PostStatus.PUBLISHED.value, description="Status to keep, or 'all'"),
    search: str = Query("", description="Case-insensitive search term"),
    sort: str = Query("latest", description="latest, oldest, popular or mostViewed"),
    limit: int = Query(DEFAULT_PAGE_SIZE, description="Page size"),
    service: BoardService = Depends(get_board_service),
) -> PostPage:
    """
    List posts through the shared filter/sort/paginate pipeline.

    Malformed ``sort`` or ``limit`` values fall back to ``latest`` and the
    default page size instead of failing.
    """
    options = FilterOptions(
        category=category,
        status=status,
        search_term=search,
        sort_key=sort,
        page_size=limit,
    )
    return await service.list_posts(options)


@router.get("/posts/{post_id}", response_model=PostRecord, response_model_by_alias=False)
async def get_post(
    post_id: str,
    background_tasks: BackgroundTasks,
    service: BoardService = Depends(get_board_service),
) -> PostRecord:
    """
    Get a post and count the view.

    The view counter is bumped after the response is sent; its failure never
    affects the response.
    """
    post = await service.get_post(post_id)
    if post is None:
        raise HTTPException(status_code=404, detail=f"Post not found: {post_id}")
    background_tasks.add_task(service.increment_view_count, post_id)
    return post


@router.get(
    "/posts/{post_id}/comments",
    response_model=list[CommentRecord],
    response_model_by_alias=False,
)
async def list_comments(
    post_id: str,
    service: BoardService = Depends(get_board_service),
) -> list[CommentRecord]:
    return await service.list_comments(post_id)
