"""
Dashboard API routes.

- GET /api/dashboard - Aggregated statistics snapshot (cached for 5 minutes)
"""

from fastapi import APIRouter, Depends, Query

from showcase.api.dependencies import get_dashboard_cache
from showcase.core.dashboard import DashboardCache, DashboardSnapshot

router = APIRouter()


@router.get("/dashboard", response_model=DashboardSnapshot)
async def get_dashboard(
    refresh: bool = Query(False, description="Recompute even if the cached snapshot is fresh"),
    cache: DashboardCache = Depends(get_dashboard_cache),
) -> DashboardSnapshot:
    """
    Get the dashboard statistics snapshot.

    Served from the cache while it is fresh. When the project collection
    cannot be read the response is an error body carrying the previous
    snapshot under ``cached`` (see the DashboardError handler).

    Example response (abridged):
        {
          "project": {"total_projects": 12, ...},
          "board": {"total_posts": 40, ...},
          "user": {"visits_by_hour": {"available": false, ...}, ...},
          "tech": {"top_technologies": [{"name": "React", "count": 9, "percentage": 75}]},
          "last_updated": "2024-06-01T12:00:00Z",
          "degraded_slices": []
        }
    """
    return await cache.get(force_refresh=refresh)
