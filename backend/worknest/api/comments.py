"""
Worknest - Comments & Attachments API
=====================================

Comments and attachment metadata hang off a ticket. Attachment files are
written to ``UPLOAD_DIR`` out of band; these endpoints record and remove
their metadata.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from worknest.api.deps import CurrentPrincipal, ServicesDep, get_current_principal
from worknest.core.schemas import (
    AttachmentCreate,
    AttachmentResponse,
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    ErrorResponse,
)

router = APIRouter(
    tags=["Comments"],
    dependencies=[Depends(get_current_principal)],
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)


# ==========================================================================
# Comments
# ==========================================================================

@router.get(
    "/tickets/{ticket_id}/comments",
    response_model=list[CommentResponse],
    summary="List comments of a ticket",
    responses={404: {"model": ErrorResponse, "description": "Ticket not found"}},
)
async def list_comments(ticket_id: UUID, services: ServicesDep) -> list[CommentResponse]:
    await services.tickets.get(ticket_id)
    comments = await services.comments.list_by_ticket(ticket_id)
    return [CommentResponse.model_validate(c) for c in comments]


@router.post(
    "/tickets/{ticket_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add comment",
    responses={404: {"model": ErrorResponse, "description": "Ticket not found"}},
)
async def create_comment(
    ticket_id: UUID,
    data: CommentCreate,
    principal: CurrentPrincipal,
    services: ServicesDep,
) -> CommentResponse:
    comment = await services.comments.create(ticket_id, principal.user_id, data)
    return CommentResponse.model_validate(comment)


@router.api_route(
    "/comments/{comment_id}",
    methods=["PUT", "PATCH"],
    response_model=CommentResponse,
    summary="Edit comment",
    responses={404: {"model": ErrorResponse, "description": "Comment not found"}},
)
async def update_comment(
    comment_id: UUID,
    data: CommentUpdate,
    services: ServicesDep,
) -> CommentResponse:
    comment = await services.comments.update(comment_id, data)
    return CommentResponse.model_validate(comment)


@router.delete(
    "/comments/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete comment",
    responses={404: {"model": ErrorResponse, "description": "Comment not found"}},
)
async def delete_comment(comment_id: UUID, services: ServicesDep) -> Response:
    await services.comments.delete(comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==========================================================================
# Attachments
# ==========================================================================

@router.get(
    "/tickets/{ticket_id}/attachments",
    response_model=list[AttachmentResponse],
    tags=["Attachments"],
    summary="List attachments of a ticket",
    responses={404: {"model": ErrorResponse, "description": "Ticket not found"}},
)
async def list_attachments(ticket_id: UUID, services: ServicesDep) -> list[AttachmentResponse]:
    await services.tickets.get(ticket_id)
    attachments = await services.attachments.list_by_ticket(ticket_id)
    return [AttachmentResponse.model_validate(a) for a in attachments]


@router.post(
    "/tickets/{ticket_id}/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Attachments"],
    summary="Record attachment metadata",
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        404: {"model": ErrorResponse, "description": "Ticket not found"},
    },
)
async def create_attachment(
    ticket_id: UUID,
    data: AttachmentCreate,
    principal: CurrentPrincipal,
    services: ServicesDep,
) -> AttachmentResponse:
    services.storage.accept(data.storage_path, data.file_size)
    attachment = await services.attachments.create(ticket_id, principal.user_id, data)
    return AttachmentResponse.model_validate(attachment)


@router.delete(
    "/attachments/{attachment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Attachments"],
    summary="Delete attachment",
    responses={404: {"model": ErrorResponse, "description": "Attachment not found"}},
)
async def delete_attachment(attachment_id: UUID, services: ServicesDep) -> Response:
    attachment = await services.attachments.delete(attachment_id)
    services.storage.remove(attachment.storage_path)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
