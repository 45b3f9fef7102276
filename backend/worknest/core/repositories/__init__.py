"""Repositories over the Worknest SQL store."""

from worknest.core.repositories.attachments import AttachmentRepository
from worknest.core.repositories.base import BaseRepository
from worknest.core.repositories.comments import CommentRepository
from worknest.core.repositories.projects import ProjectRepository
from worknest.core.repositories.tickets import TicketRepository
from worknest.core.repositories.users import UserRepository

__all__ = [
    "AttachmentRepository",
    "BaseRepository",
    "CommentRepository",
    "ProjectRepository",
    "TicketRepository",
    "UserRepository",
]
