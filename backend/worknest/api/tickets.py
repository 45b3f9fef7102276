"""
Worknest - Tickets API
======================

Ticket CRUD, filtered listing and full-text search.

``GET /tickets`` accepts ``project_id``, ``status``, ``priority``,
``assignee_id`` (a user id or ``me``), ``sort`` (created_at, updated_at,
priority), ``order`` (asc, desc), ``limit`` and ``offset``. The total
number of matching tickets is returned in ``X-Total-Count``.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from worknest.api.deps import (
    CurrentPrincipal,
    ServicesDep,
    get_current_principal,
    resolve_user_ref,
)
from worknest.core.schemas import (
    ErrorResponse,
    TicketCreate,
    TicketResponse,
    TicketUpdate,
)
from worknest.core.ticket_query import TicketQuery

router = APIRouter(
    prefix="/tickets",
    tags=["Tickets"],
    dependencies=[Depends(get_current_principal)],
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)


@router.get(
    "",
    response_model=list[TicketResponse],
    summary="List tickets",
    responses={400: {"model": ErrorResponse, "description": "Invalid filter"}},
)
async def list_tickets(
    response: Response,
    principal: CurrentPrincipal,
    services: ServicesDep,
    project_id: Optional[UUID] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = Query(None),
    assignee_id: Optional[str] = Query(None, description="User id or 'me'"),
    sort: Optional[str] = Query(None, description="created_at, updated_at or priority"),
    order: Optional[str] = Query(None, description="asc or desc"),
    limit: Optional[int] = Query(None, description="Page size, at most 100"),
    offset: int = Query(0),
) -> list[TicketResponse]:
    query = TicketQuery.build(
        project_id=project_id,
        status=status_filter,
        priority=priority,
        assignee_id=resolve_user_ref(assignee_id, principal),
        sort=sort,
        order=order,
        limit=limit,
        offset=offset,
    )
    tickets = await services.tickets.list_tickets(query)
    response.headers["X-Total-Count"] = str(await services.tickets.count(query))
    return [TicketResponse.model_validate(t) for t in tickets]


@router.get(
    "/search",
    response_model=list[TicketResponse],
    summary="Search tickets",
)
async def search_tickets(
    services: ServicesDep,
    q: str = Query(..., description="Search text"),
    project_id: Optional[UUID] = Query(None),
) -> list[TicketResponse]:
    """Relevance-ranked search over ticket titles and descriptions."""
    tickets = await services.tickets.search(q, project_id=project_id)
    return [TicketResponse.model_validate(t) for t in tickets]


@router.post(
    "",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create ticket",
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        404: {"model": ErrorResponse, "description": "Project not found"},
    },
)
async def create_ticket(
    data: TicketCreate,
    principal: CurrentPrincipal,
    services: ServicesDep,
) -> TicketResponse:
    ticket = await services.tickets.create(data, created_by=principal.user_id)
    return TicketResponse.model_validate(ticket)


@router.get(
    "/{ticket_id}",
    response_model=TicketResponse,
    summary="Get ticket",
    responses={404: {"model": ErrorResponse, "description": "Ticket not found"}},
)
async def get_ticket(ticket_id: UUID, services: ServicesDep) -> TicketResponse:
    return TicketResponse.model_validate(await services.tickets.get(ticket_id))


@router.api_route(
    "/{ticket_id}",
    methods=["PUT", "PATCH"],
    response_model=TicketResponse,
    summary="Update ticket",
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        404: {"model": ErrorResponse, "description": "Ticket not found"},
    },
)
async def update_ticket(
    ticket_id: UUID,
    data: TicketUpdate,
    services: ServicesDep,
) -> TicketResponse:
    """
    Partial update. Omitted fields are unchanged; ``assignee_id`` set to
    null or an empty string unassigns the ticket.
    """
    ticket = await services.tickets.update(ticket_id, data)
    return TicketResponse.model_validate(ticket)


@router.delete(
    "/{ticket_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete ticket",
    responses={404: {"model": ErrorResponse, "description": "Ticket not found"}},
)
async def delete_ticket(ticket_id: UUID, services: ServicesDep) -> Response:
    for storage_path in await services.tickets.delete(ticket_id):
        services.storage.remove(storage_path)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
