"""
Worknest - Project Repository
=============================

Deleting a project removes its tickets and, through them, every comment,
attachment record and search entry in one transaction.
"""

from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from worknest.core.errors import Unauthorized
from worknest.core.models import Project, Ticket
from worknest.core.repositories.base import BaseRepository, delete_ticket_children
from worknest.core.repositories.users import user_exists
from worknest.core.schemas import ProjectCreate, ProjectUpdate

logger = structlog.get_logger(__name__)


class ProjectRepository(BaseRepository[Project]):
    model = Project
    entity_name = "Project"

    async def create(self, data: ProjectCreate, created_by: UUID) -> Project:
        project = Project(
            name=data.name,
            description=data.description,
            color=data.color,
            created_by=created_by,
        )
        async with self.db.transaction() as session:
            if not await user_exists(session, created_by):
                raise Unauthorized("User no longer exists")
            session.add(project)
            await session.flush()

        logger.info("Project created", project_id=str(project.id), name=project.name)
        return project

    async def list_projects(
        self,
        *,
        archived: Optional[bool] = None,
        created_by: Optional[UUID] = None,
    ) -> list[Project]:
        """List projects, newest first."""
        stmt = select(Project)
        if archived is not None:
            stmt = stmt.where(Project.archived == archived)
        if created_by is not None:
            stmt = stmt.where(Project.created_by == created_by)
        return await self._all(stmt.order_by(Project.created_at.desc(), Project.id))

    async def archive(self, project_id: UUID) -> Project:
        return await self.update(project_id, ProjectUpdate(archived=True))

    async def unarchive(self, project_id: UUID) -> Project:
        return await self.update(project_id, ProjectUpdate(archived=False))

    async def _delete_dependents(self, session: AsyncSession, entity: Project) -> list[str]:
        ticket_ids = select(Ticket.id).where(Ticket.project_id == entity.id)
        storage_paths = await delete_ticket_children(session, ticket_ids)
        result = await session.execute(
            delete(Ticket)
            .where(Ticket.project_id == entity.id)
            .execution_options(synchronize_session=False)
        )
        logger.debug("Project tickets removed", project_id=str(entity.id), count=result.rowcount)
        return storage_paths


async def project_exists(session: AsyncSession, project_id: UUID) -> bool:
    return bool(await session.scalar(select(exists().where(Project.id == project_id))))
