"""
Worknest - Attachment Repository
================================

Stores attachment metadata only. Removing the file from upload storage
is the caller's job once ``delete`` has returned the removed record.
"""

from uuid import UUID

import structlog
from sqlalchemy import select

from worknest.core.errors import NotFoundError, Unauthorized
from worknest.core.models import Attachment, Ticket
from worknest.core.repositories.base import BaseRepository
from worknest.core.repositories.comments import ticket_exists
from worknest.core.repositories.users import user_exists
from worknest.core.schemas import AttachmentCreate

logger = structlog.get_logger(__name__)


class AttachmentRepository(BaseRepository[Attachment]):
    model = Attachment
    entity_name = "Attachment"

    async def create(self, ticket_id: UUID, uploaded_by: UUID, data: AttachmentCreate) -> Attachment:
        attachment = Attachment(
            ticket_id=ticket_id,
            filename=data.filename,
            file_size=data.file_size,
            mime_type=data.mime_type,
            storage_path=data.storage_path,
            uploaded_by=uploaded_by,
        )
        async with self.db.transaction() as session:
            if not await user_exists(session, uploaded_by):
                raise Unauthorized("User no longer exists")
            if not await ticket_exists(session, ticket_id):
                raise NotFoundError("Ticket not found")
            session.add(attachment)
            await session.flush()

        logger.info(
            "Attachment recorded",
            attachment_id=str(attachment.id),
            ticket_id=str(ticket_id),
            size=attachment.file_size,
        )
        return attachment

    async def list_by_ticket(self, ticket_id: UUID) -> list[Attachment]:
        return await self._all(
            select(Attachment)
            .where(Attachment.ticket_id == ticket_id)
            .order_by(Attachment.created_at, Attachment.id)
        )

    async def list_by_project(self, project_id: UUID) -> list[Attachment]:
        return await self._all(
            select(Attachment)
            .join(Ticket, Ticket.id == Attachment.ticket_id)
            .where(Ticket.project_id == project_id)
        )

    async def delete(self, attachment_id: UUID) -> Attachment:  # type: ignore[override]
        """
        Delete the record and return it.

        Raises:
            NotFoundError: the attachment does not exist
        """
        async with self.db.transaction() as session:
            attachment = await self._get_in_session(session, attachment_id)
            await session.delete(attachment)

        logger.info("Attachment removed", attachment_id=str(attachment_id))
        return attachment
