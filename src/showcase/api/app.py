"""
FastAPI application setup for showcase.

Builds the app around one record store, one DashboardCache and the record
services, all held on ``app.state`` and handed to routes through
dependencies.
"""

import logging
import traceback
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from showcase import __version__
from showcase.api.routes import dashboard, posts, projects
from showcase.core.config import ShowcaseConfig, load_config
from showcase.core.dashboard import DashboardCache, DashboardError
from showcase.core.services import BoardService, PortfolioService, RecordNotFoundError
from showcase.core.store import FailureKind, RecordStore, StoreError, get_store
from showcase.utils.clock import Clock, utc_now

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Standard error codes for API responses."""

    # Client errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Store errors
    STORE_PERMISSION_DENIED = "STORE_PERMISSION_DENIED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    STORE_ERROR = "STORE_ERROR"

    # Server errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error_code: ErrorCode
    message: str
    detail: str | None = None
    request_id: str | None = None


_STORE_ERROR_STATUS: dict[FailureKind, tuple[int, ErrorCode]] = {
    FailureKind.PERMISSION: (status.HTTP_403_FORBIDDEN, ErrorCode.STORE_PERMISSION_DENIED),
    FailureKind.CONNECTIVITY: (status.HTTP_503_SERVICE_UNAVAILABLE, ErrorCode.STORE_UNAVAILABLE),
    FailureKind.UNKNOWN: (status.HTTP_502_BAD_GATEWAY, ErrorCode.STORE_ERROR),
}


def store_error_status(error: StoreError) -> tuple[int, ErrorCode]:
    """HTTP status and error code for a classified store failure."""
    return _STORE_ERROR_STATUS[error.kind]


def _log_response(request: Request, status_code: int, message: str) -> None:
    log = logger.error if status_code >= 500 else logger.info
    log(
        "HTTP %d on %s %s: %s",
        status_code,
        request.method,
        request.url.path,
        message,
        extra={"request_id": id(request)},
    )


def _error_body(
    request: Request,
    error_code: ErrorCode,
    message: str,
    detail: str | None = None,
) -> dict[str, Any]:
    return ErrorResponse(
        error_code=error_code,
        message=message,
        detail=detail,
        request_id=str(id(request)),
    ).model_dump(mode="json")


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Convert HTTPException to the standard error response format."""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        error_code = ErrorCode.NOT_FOUND
    elif exc.status_code < 500:
        error_code = ErrorCode.INVALID_REQUEST
    else:
        error_code = ErrorCode.INTERNAL_ERROR

    detail_msg = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    _log_response(request, exc.status_code, detail_msg)

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, error_code, detail_msg, detail_msg),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return the first validation problem without exposing internals."""
    logger.warning(
        "Validation error on %s %s: %s",
        request.method,
        request.url.path,
        exc.errors(),
        extra={"request_id": id(request)},
    )

    first_error = exc.errors()[0] if exc.errors() else {}
    field = " -> ".join(str(loc) for loc in first_error.get("loc", []))
    error_msg = first_error.get("msg", "Invalid input")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(
            request,
            ErrorCode.VALIDATION_ERROR,
            "Request validation failed",
            f"{field}: {error_msg}" if field else error_msg,
        ),
    )


async def not_found_handler(request: Request, exc: RecordNotFoundError) -> JSONResponse:
    _log_response(request, status.HTTP_404_NOT_FOUND, str(exc))
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=_error_body(request, ErrorCode.NOT_FOUND, str(exc)),
    )


async def store_exception_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Map classified store failures to 403 / 503 / 502."""
    status_code, error_code = store_error_status(exc)
    _log_response(request, status_code, str(exc))
    return JSONResponse(
        status_code=status_code,
        content=_error_body(request, error_code, exc.user_message(), exc.message),
    )


async def dashboard_exception_handler(request: Request, exc: DashboardError) -> JSONResponse:
    """
    Report a failed dashboard load.

    The last cached snapshot, if any, is attached under ``cached`` so a
    client can keep showing it next to the error.
    """
    status_code, error_code = store_error_status(exc.cause)
    _log_response(request, status_code, str(exc))

    content = _error_body(request, error_code, exc.user_message(), exc.cause.message)
    cache: DashboardCache | None = getattr(request.app.state, "dashboard_cache", None)
    previous = cache.peek() if cache is not None else None
    content["cached"] = previous.model_dump(mode="json") if previous is not None else None

    return JSONResponse(status_code=status_code, content=content)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log uncaught exceptions with traceback and return a clean 500."""
    logger.error(
        "Unhandled exception on %s %s: %s\n%s",
        request.method,
        request.url.path,
        str(exc),
        traceback.format_exc(),
        extra={"request_id": id(request)},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            request,
            ErrorCode.INTERNAL_ERROR,
            "An internal server error occurred",
            str(exc),
        ),
    )


def create_app(
    store: RecordStore | None = None,
    config: ShowcaseConfig | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """
    Build the showcase API.

    Args:
        store: Record store (built from config when omitted)
        config: Loaded configuration (load_config() when omitted)
        clock: Time source for the dashboard cache and new records

    Returns:
        Configured FastAPI application
    """
    if config is None:
        config = load_config()
    if store is None:
        store = get_store(config=config.store)
    clock = clock or utc_now

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        aclose = getattr(store, "aclose", None)
        if aclose is not None:
            await aclose()

    app = FastAPI(
        title="Showcase API",
        description="Dashboard statistics and board/gallery lists for the showcase site",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.store = store
    app.state.dashboard_cache = DashboardCache.from_store(store, clock=clock)
    app.state.board_service = BoardService(store, clock=clock)
    app.state.portfolio_service = PortfolioService(store)

    # Local front-end dev servers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(dashboard.router, prefix="/api", tags=["dashboard"])
    app.include_router(posts.router, prefix="/api", tags=["posts"])
    app.include_router(projects.router, prefix="/api", tags=["projects"])

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "store": store.store_name}

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RecordNotFoundError, not_found_handler)
    app.add_exception_handler(StoreError, store_exception_handler)
    app.add_exception_handler(DashboardError, dashboard_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    return app
