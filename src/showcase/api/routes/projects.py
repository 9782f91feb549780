"""
Gallery project API routes.

- GET /api/projects - All projects newest first, optionally by category or featured
- GET /api/projects/{project_id} - A single project (counts a view)
"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query

from showcase.api.dependencies import get_portfolio_service
from showcase.core.records import ProjectRecord
from showcase.core.services import PortfolioService

router = APIRouter()


@router.get("/projects", response_model=list[ProjectRecord], response_model_by_alias=False)
async def list_projects(
    category: str | None = Query(None, description="Only projects in this category"),
    featured: bool = Query(False, description="Only featured projects"),
    service: PortfolioService = Depends(get_portfolio_service),
) -> list[ProjectRecord]:
    if featured:
        projects = await service.list_featured()
    else:
        projects = await service.list_projects()
    if category:
        projects = [p for p in projects if p.category == category]
    return projects


@router.get(
    "/projects/{project_id}",
    response_model=ProjectRecord,
    response_model_by_alias=False,
)
async def get_project(
    project_id: str,
    background_tasks: BackgroundTasks,
    service: PortfolioService = Depends(get_portfolio_service),
) -> ProjectRecord:
    project = await service.get_project(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")
    background_tasks.add_task(service.increment_view_count, project_id)
    return project
