"""
Service layer for showcase.

Typed, print-free wrappers around the record store used by the API and CLI.
"""

from showcase.core.services.board import DEFAULT_BOARD_FILTER, BoardService, PostDraft, PostPage
from showcase.core.services.errors import RecordNotFoundError, ServiceError
from showcase.core.services.portfolio import PortfolioService

__all__ = [
    "BoardService",
    "DEFAULT_BOARD_FILTER",
    "PortfolioService",
    "PostDraft",
    "PostPage",
    "RecordNotFoundError",
    "ServiceError",
]
