"""
Worknest - User Repository
==========================
"""

from typing import Any, Optional
from uuid import UUID

import structlog
from sqlalchemy import exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from worknest.core.errors import ConflictError
from worknest.core.models import Attachment, Comment, Project, Ticket, User, utcnow
from worknest.core.repositories.base import BaseRepository

logger = structlog.get_logger(__name__)


class UserRepository(BaseRepository[User]):
    model = User
    entity_name = "User"

    async def create(self, username: str, email: str, password_hash: str) -> User:
        """
        Insert a new user. Emails are stored lowercased.

        Raises:
            ConflictError: username or email already taken
        """
        user = User(
            username=username,
            email=email.lower(),
            password_hash=password_hash,
        )
        async with self.db.transaction() as session:
            session.add(user)
            await session.flush()

        logger.info("User created", user_id=str(user.id), username=user.username)
        return user

    async def find_by_username(self, username: str) -> Optional[User]:
        async with self.db.transaction() as session:
            result = await session.execute(select(User).where(User.username == username))
            return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> Optional[User]:
        async with self.db.transaction() as session:
            result = await session.execute(select(User).where(User.email == email.lower()))
            return result.scalar_one_or_none()

    async def find_by_login(self, login: str) -> Optional[User]:
        """Look a user up by username or email."""
        async with self.db.transaction() as session:
            result = await session.execute(
                select(User)
                .where(or_(User.username == login, User.email == login.lower()))
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def get_password_hash(self, user_id: UUID) -> Optional[str]:
        async with self.db.transaction() as session:
            return await session.scalar(select(User.password_hash).where(User.id == user_id))

    async def exists(self, user_id: UUID) -> bool:
        async with self.db.transaction() as session:
            return await user_exists(session, user_id)

    async def update_password(self, user_id: UUID, password_hash: str) -> None:
        async with self.db.transaction() as session:
            user = await self._get_in_session(session, user_id)
            user.password_hash = password_hash
            user.updated_at = utcnow()

        logger.info("User password changed", user_id=str(user_id))

    async def _apply_changes(
        self,
        session: AsyncSession,
        entity: User,
        values: dict[str, Any],
    ) -> None:
        if "email" in values:
            values["email"] = values["email"].lower()
        await super()._apply_changes(session, entity, values)

    async def _delete_dependents(self, session: AsyncSession, entity: User) -> list[str]:
        # Users own no rows; anything still pointing at them blocks deletion
        referenced = await session.scalar(
            select(
                or_(
                    exists().where(Project.created_by == entity.id),
                    exists().where(Ticket.created_by == entity.id),
                    exists().where(Ticket.assignee_id == entity.id),
                    exists().where(Comment.user_id == entity.id),
                    exists().where(Attachment.uploaded_by == entity.id),
                )
            )
        )
        if referenced:
            raise ConflictError("User is still referenced by projects, tickets or comments")
        return []


async def user_exists(session: AsyncSession, user_id: UUID) -> bool:
    return bool(await session.scalar(select(exists().where(User.id == user_id))))
