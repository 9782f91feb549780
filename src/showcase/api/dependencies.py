"""
FastAPI dependencies resolving the shared objects built by create_app().
"""

from fastapi import Request

from showcase.core.dashboard import DashboardCache
from showcase.core.services import BoardService, PortfolioService


def get_dashboard_cache(request: Request) -> DashboardCache:
    cache: DashboardCache = request.app.state.dashboard_cache
    return cache


def get_board_service(request: Request) -> BoardService:
    service: BoardService = request.app.state.board_service
    return service


def get_portfolio_service(request: Request) -> PortfolioService:
    service: PortfolioService = request.app.state.portfolio_service
    return service
