"""
Worknest - Projects API
=======================

Project CRUD. Deleting a project removes its tickets together with their
comments and attachments, including the stored attachment files.
"""

from typing import Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query, Response, status

from worknest.api.deps import CurrentPrincipal, ServicesDep, get_current_principal
from worknest.core.schemas import (
    ErrorResponse,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
    TicketResponse,
)
from worknest.core.ticket_query import TicketQuery

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/projects",
    tags=["Projects"],
    dependencies=[Depends(get_current_principal)],
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)


@router.get("", response_model=list[ProjectResponse], summary="List projects")
async def list_projects(
    services: ServicesDep,
    archived: Optional[bool] = Query(None, description="Filter by archived flag"),
) -> list[ProjectResponse]:
    projects = await services.projects.list_projects(archived=archived)
    return [ProjectResponse.model_validate(p) for p in projects]


@router.post(
    "",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create project",
    responses={400: {"model": ErrorResponse, "description": "Validation error"}},
)
async def create_project(
    data: ProjectCreate,
    principal: CurrentPrincipal,
    services: ServicesDep,
) -> ProjectResponse:
    project = await services.projects.create(data, created_by=principal.user_id)
    return ProjectResponse.model_validate(project)


@router.get(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Get project",
    responses={404: {"model": ErrorResponse, "description": "Project not found"}},
)
async def get_project(project_id: UUID, services: ServicesDep) -> ProjectResponse:
    return ProjectResponse.model_validate(await services.projects.get(project_id))


@router.api_route(
    "/{project_id}",
    methods=["PUT", "PATCH"],
    response_model=ProjectResponse,
    summary="Update project",
    responses={404: {"model": ErrorResponse, "description": "Project not found"}},
)
async def update_project(
    project_id: UUID,
    data: ProjectUpdate,
    services: ServicesDep,
) -> ProjectResponse:
    """Partial update: only fields present in the body change."""
    project = await services.projects.update(project_id, data)
    return ProjectResponse.model_validate(project)


@router.post(
    "/{project_id}/archive",
    response_model=ProjectResponse,
    summary="Archive project",
    responses={404: {"model": ErrorResponse, "description": "Project not found"}},
)
async def archive_project(project_id: UUID, services: ServicesDep) -> ProjectResponse:
    return ProjectResponse.model_validate(await services.projects.archive(project_id))


@router.post(
    "/{project_id}/unarchive",
    response_model=ProjectResponse,
    summary="Unarchive project",
    responses={404: {"model": ErrorResponse, "description": "Project not found"}},
)
async def unarchive_project(project_id: UUID, services: ServicesDep) -> ProjectResponse:
    return ProjectResponse.model_validate(await services.projects.unarchive(project_id))


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete project",
    responses={404: {"model": ErrorResponse, "description": "Project not found"}},
)
async def delete_project(project_id: UUID, services: ServicesDep) -> Response:
    storage_paths = await services.projects.delete(project_id)
    removed = sum(services.storage.remove(path) for path in storage_paths)
    if storage_paths:
        logger.info(
            "Project attachment files removed",
            project_id=str(project_id),
            records=len(storage_paths),
            files=removed,
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{project_id}/tickets",
    response_model=list[TicketResponse],
    summary="List tickets of a project",
    responses={404: {"model": ErrorResponse, "description": "Project not found"}},
)
async def list_project_tickets(
    project_id: UUID,
    response: Response,
    services: ServicesDep,
    limit: Optional[int] = Query(None),
    offset: int = Query(0),
) -> list[TicketResponse]:
    await services.projects.get(project_id)
    query = TicketQuery(project_id=project_id, limit=limit, offset=offset)
    tickets = await services.tickets.list_tickets(query)
    response.headers["X-Total-Count"] = str(await services.tickets.count(query))
    return [TicketResponse.model_validate(t) for t in tickets]
