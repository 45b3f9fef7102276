"""
Worknest - Service Container
============================

Wires the shared database handle into every repository and service.
Built once per application and passed to request handlers.
"""

from dataclasses import dataclass

from worknest.core.auth_service import AuthService
from worknest.core.config import Settings
from worknest.core.database import Database
from worknest.core.repositories import (
    AttachmentRepository,
    CommentRepository,
    ProjectRepository,
    TicketRepository,
    UserRepository,
)
from worknest.core.security import TokenManager
from worknest.core.storage import AttachmentStorage


@dataclass
class Services:
    database: Database
    tokens: TokenManager
    auth: AuthService
    users: UserRepository
    projects: ProjectRepository
    tickets: TicketRepository
    comments: CommentRepository
    attachments: AttachmentRepository
    storage: AttachmentStorage

    @classmethod
    def build(cls, database: Database, settings: Settings) -> "Services":
        tokens = TokenManager(
            settings.SECRET_KEY,
            algorithm=settings.ALGORITHM,
            expires_in=settings.token_lifetime,
        )
        users = UserRepository(database)
        return cls(
            database=database,
            tokens=tokens,
            auth=AuthService(users, tokens, hash_rounds=settings.PASSWORD_HASH_ROUNDS),
            users=users,
            projects=ProjectRepository(database),
            tickets=TicketRepository(
                database,
                default_page_size=settings.DEFAULT_PAGE_SIZE,
                max_page_size=settings.MAX_PAGE_SIZE,
                search_limit=settings.SEARCH_RESULT_LIMIT,
            ),
            comments=CommentRepository(database),
            attachments=AttachmentRepository(database),
            storage=AttachmentStorage(settings.UPLOAD_DIR, max_file_size=settings.MAX_ATTACHMENT_SIZE),
        )
