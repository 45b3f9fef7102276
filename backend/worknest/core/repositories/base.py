"""
Worknest - Repository Base
==========================

Shared CRUD behaviour for the per-entity repositories.

Every public method opens exactly one ``Database.transaction()``, so each
call is atomic: it either fully applies or leaves the store unchanged.
"""

from typing import Any, Generic, Optional, TypeVar
from uuid import UUID

import structlog
from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from worknest.core.database import Base, Database
from worknest.core.errors import NotFoundError
from worknest.core.models import Attachment, Comment, TicketSearchEntry, utcnow
from worknest.core.schemas import PartialUpdateSchema

logger = structlog.get_logger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Repository for one model type.

    Subclasses set ``model`` and ``entity_name`` and override
    ``_apply_changes`` / ``_delete_dependents`` where an entity needs more
    than attribute assignment or owns child rows.
    """

    model: type[ModelType]
    entity_name: str = "Entity"

    def __init__(self, db: Database) -> None:
        self.db = db

    # ======================================================================
    # Reads
    # ======================================================================

    async def find_by_id(self, entity_id: UUID) -> Optional[ModelType]:
        """Return the entity, or None when it does not exist."""
        async with self.db.transaction() as session:
            return await session.get(self.model, entity_id)

    async def get(self, entity_id: UUID) -> ModelType:
        """Return the entity or raise NotFoundError."""
        entity = await self.find_by_id(entity_id)
        if entity is None:
            raise self.not_found()
        return entity

    async def _all(self, stmt: Select) -> list[ModelType]:
        async with self.db.transaction() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def list_all(self) -> list[ModelType]:
        return await self._all(
            select(self.model).order_by(self.model.created_at.desc(), self.model.id)
        )

    # ======================================================================
    # Writes
    # ======================================================================

    async def update(self, entity_id: UUID, changes: PartialUpdateSchema) -> ModelType:
        """
        Apply the fields the caller explicitly set and refresh ``updated_at``.

        Raises:
            NotFoundError: the entity does not exist
        """
        values = changes.changes()
        async with self.db.transaction() as session:
            entity = await self._get_in_session(session, entity_id)
            await self._apply_changes(session, entity, values)
            entity.updated_at = utcnow()
            await session.flush()

        logger.info(
            "Entity updated",
            entity=self.entity_name,
            entity_id=str(entity_id),
            fields=sorted(values),
        )
        return entity

    async def delete(self, entity_id: UUID) -> list[str]:
        """
        Delete the entity and everything it owns.

        Returns the storage paths of attachment records removed along with
        it, read in the same transaction as the delete.

        Raises:
            NotFoundError: the entity does not exist
        """
        async with self.db.transaction() as session:
            entity = await self._get_in_session(session, entity_id)
            released = await self._delete_dependents(session, entity)
            await session.delete(entity)

        logger.info(
            "Entity deleted",
            entity=self.entity_name,
            entity_id=str(entity_id),
            attachments=len(released),
        )
        return released

    # ======================================================================
    # Hooks & Helpers
    # ======================================================================

    def not_found(self) -> NotFoundError:
        return NotFoundError(f"{self.entity_name} not found")

    async def _get_in_session(self, session: AsyncSession, entity_id: UUID) -> ModelType:
        entity = await session.get(self.model, entity_id)
        if entity is None:
            raise self.not_found()
        return entity

    async def _apply_changes(
        self,
        session: AsyncSession,
        entity: ModelType,
        values: dict[str, Any],
    ) -> None:
        for field, value in values.items():
            setattr(entity, field, value)

    async def _delete_dependents(self, session: AsyncSession, entity: ModelType) -> list[str]:
        return []


async def delete_ticket_children(session: AsyncSession, ticket_ids: Any) -> list[str]:
    """
    Delete comments, attachments and search entries of the given tickets.

    ``ticket_ids`` is a list of ids or a SELECT of ticket ids. Returns the
    storage paths of the removed attachments.
    """
    storage_paths = list(
        await session.scalars(
            select(Attachment.storage_path).where(Attachment.ticket_id.in_(ticket_ids))
        )
    )
    for model in (Comment, Attachment, TicketSearchEntry):
        await session.execute(
            delete(model)
            .where(model.ticket_id.in_(ticket_ids))
            .execution_options(synchronize_session=False)
        )
    return storage_paths
