"""
Worknest - Comment Repository
=============================
"""

from uuid import UUID

import structlog
from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from worknest.core.errors import NotFoundError, Unauthorized
from worknest.core.models import Comment, Ticket
from worknest.core.repositories.base import BaseRepository
from worknest.core.repositories.users import user_exists
from worknest.core.schemas import CommentCreate

logger = structlog.get_logger(__name__)


async def ticket_exists(session: AsyncSession, ticket_id: UUID) -> bool:
    return bool(await session.scalar(select(exists().where(Ticket.id == ticket_id))))


class CommentRepository(BaseRepository[Comment]):
    model = Comment
    entity_name = "Comment"

    async def create(self, ticket_id: UUID, user_id: UUID, data: CommentCreate) -> Comment:
        comment = Comment(ticket_id=ticket_id, user_id=user_id, content=data.content)
        async with self.db.transaction() as session:
            if not await user_exists(session, user_id):
                raise Unauthorized("User no longer exists")
            if not await ticket_exists(session, ticket_id):
                raise NotFoundError("Ticket not found")
            session.add(comment)
            await session.flush()

        logger.info("Comment added", comment_id=str(comment.id), ticket_id=str(ticket_id))
        return comment

    async def list_by_ticket(self, ticket_id: UUID) -> list[Comment]:
        """Comments of a ticket, oldest first."""
        return await self._all(
            select(Comment)
            .where(Comment.ticket_id == ticket_id)
            .order_by(Comment.created_at, Comment.id)
        )

    async def list_by_user(self, user_id: UUID) -> list[Comment]:
        """Comments written by a user, newest first."""
        return await self._all(
            select(Comment)
            .where(Comment.user_id == user_id)
            .order_by(Comment.created_at.desc(), Comment.id)
        )
