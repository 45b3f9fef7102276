"""
Worknest - Ticket Repository
============================

Ticket CRUD plus listing and search.

The search entry of a ticket is written in the same transaction as the
ticket itself, so search never sees a ticket without its document or a
document without its ticket.
"""

from typing import Any, Optional
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from worknest.core.database import Database
from worknest.core.errors import NotFoundError, Unauthorized, ValidationError
from worknest.core.models import Ticket, TicketStatus
from worknest.core.repositories.base import BaseRepository, delete_ticket_children
from worknest.core.repositories.projects import project_exists
from worknest.core.repositories.users import user_exists
from worknest.core.schemas import TicketCreate
from worknest.core.search import build_search_statement, index_ticket
from worknest.core.ticket_query import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    TicketQuery,
    build_count_statement,
    build_list_statement,
)

logger = structlog.get_logger(__name__)

SEARCHABLE_FIELDS = frozenset({"title", "description"})


class TicketRepository(BaseRepository[Ticket]):
    model = Ticket
    entity_name = "Ticket"

    def __init__(
        self,
        db: Database,
        *,
        default_page_size: int = DEFAULT_LIMIT,
        max_page_size: int = MAX_LIMIT,
        search_limit: int = 50,
    ) -> None:
        super().__init__(db)
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self.search_limit = search_limit

    async def create(self, data: TicketCreate, created_by: UUID) -> Ticket:
        """
        Create an Open ticket and index it for search.

        Raises:
            NotFoundError: the project does not exist
            ValidationError: the assignee does not exist
        """
        async with self.db.transaction() as session:
            if not await user_exists(session, created_by):
                raise Unauthorized("User no longer exists")
            if not await project_exists(session, data.project_id):
                raise NotFoundError("Project not found")
            if data.assignee_id is not None and not await user_exists(session, data.assignee_id):
                raise ValidationError("Assignee does not exist")

            ticket = Ticket(
                project_id=data.project_id,
                title=data.title,
                description=data.description,
                ticket_type=data.ticket_type,
                status=TicketStatus.OPEN,
                priority=data.priority,
                assignee_id=data.assignee_id,
                created_by=created_by,
                due_date=data.due_date,
                estimate_hours=data.estimate_hours,
            )
            session.add(ticket)
            await session.flush()
            await index_ticket(session, ticket)

        logger.info(
            "Ticket created",
            ticket_id=str(ticket.id),
            project_id=str(ticket.project_id),
            ticket_type=ticket.ticket_type.value,
        )
        return ticket

    async def list_tickets(self, query: TicketQuery) -> list[Ticket]:
        """Return one page of tickets matching the query."""
        stmt = build_list_statement(
            query,
            default_limit=self.default_page_size,
            max_limit=self.max_page_size,
        )
        return await self._all(stmt)

    async def count(self, query: TicketQuery) -> int:
        """Total number of tickets matching the query filters."""
        async with self.db.transaction() as session:
            return int(await session.scalar(build_count_statement(query)) or 0)

    async def list_by_project(self, project_id: UUID) -> list[Ticket]:
        return await self._all(
            select(Ticket)
            .where(Ticket.project_id == project_id)
            .order_by(Ticket.created_at.desc(), Ticket.id)
        )

    async def search(
        self,
        text: str,
        *,
        project_id: Optional[UUID] = None,
        limit: Optional[int] = None,
    ) -> list[Ticket]:
        """
        Relevance-ranked full-text search over titles and descriptions.

        Text without any word characters matches nothing.
        """
        stmt = build_search_statement(
            text,
            project_id=project_id,
            limit=min(limit or self.search_limit, self.search_limit),
        )
        if stmt is None:
            return []
        return await self._all(stmt)

    async def _apply_changes(
        self,
        session: AsyncSession,
        entity: Ticket,
        values: dict[str, Any],
    ) -> None:
        assignee_id = values.get("assignee_id")
        if assignee_id is not None and not await user_exists(session, assignee_id):
            raise ValidationError("Assignee does not exist")

        await super()._apply_changes(session, entity, values)

        if SEARCHABLE_FIELDS.intersection(values):
            await index_ticket(session, entity)

    async def _delete_dependents(self, session: AsyncSession, entity: Ticket) -> list[str]:
        return await delete_ticket_children(session, [entity.id])
