"""
Worknest - Authentication Service
=================================

Registration, login and token handling on top of the user repository.

Password hashing is CPU bound, so it always runs in a worker thread and
never while a pooled connection is held.
"""

import asyncio
from typing import Optional
from uuid import UUID

import structlog

from worknest.core.errors import (
    ConflictError,
    InvalidCredentials,
    NotFoundError,
    Unauthorized,
    UserExists,
    ValidationError,
)
from worknest.core.models import User
from worknest.core.repositories.users import UserRepository
from worknest.core.security import (
    DEFAULT_HASH_ROUNDS,
    AuthToken,
    Principal,
    TokenManager,
    hash_password,
    validate_password,
    verify_password,
)

logger = structlog.get_logger(__name__)

MIN_USERNAME_LENGTH = 3


class AuthService:
    """
    Args:
        users: User repository
        tokens: Token issuer/verifier
        hash_rounds: bcrypt cost factor for new hashes
    """

    def __init__(
        self,
        users: UserRepository,
        tokens: TokenManager,
        hash_rounds: int = DEFAULT_HASH_ROUNDS,
    ) -> None:
        self.users = users
        self.tokens = tokens
        self.hash_rounds = hash_rounds

    async def register(self, username: str, email: str, password: str) -> User:
        """
        Create a new account.

        Raises:
            ValidationError: username, email or password malformed
            UserExists: username or email already registered
        """
        if len(username) < MIN_USERNAME_LENGTH:
            raise ValidationError(
                f"Username must be at least {MIN_USERNAME_LENGTH} characters"
            )
        if "@" not in email:
            raise ValidationError("Invalid email address")
        validate_password(password)

        if await self.users.find_by_username(username) is not None:
            raise UserExists("Username already taken")
        if await self.users.find_by_email(email) is not None:
            raise UserExists("Email already registered")

        password_hash = await asyncio.to_thread(hash_password, password, self.hash_rounds)

        try:
            user = await self.users.create(username, email, password_hash)
        except ConflictError:
            # Lost a race with a concurrent registration
            raise UserExists() from None

        logger.info("User registered", user_id=str(user.id), username=username)
        return user

    async def login(self, login: str, password: str) -> tuple[User, AuthToken]:
        """
        Verify credentials and issue a token.

        ``login`` is a username or an email address.

        Raises:
            InvalidCredentials: unknown user or wrong password
        """
        user = await self.users.find_by_login(login)
        if user is None:
            logger.info("Login failed", reason="unknown_user")
            raise InvalidCredentials()

        if not await asyncio.to_thread(verify_password, password, user.password_hash):
            logger.info("Login failed", reason="bad_password", user_id=str(user.id))
            raise InvalidCredentials()

        token = self.issue_token(user)
        logger.info("User logged in", user_id=str(user.id))
        return user, token

    def issue_token(self, user: User) -> AuthToken:
        return self.tokens.issue_token(user.id, user.username)

    def authenticate(self, token: Optional[str]) -> Principal:
        """Verify a bearer token and return its principal. No store access."""
        if not token:
            raise Unauthorized()
        return self.tokens.verify_token(token).principal()

    async def get_user_from_token(self, token: str) -> User:
        principal = self.authenticate(token)
        user = await self.users.find_by_id(principal.user_id)
        if user is None:
            raise Unauthorized("User no longer exists")
        return user

    def refresh_token(self, token: str) -> AuthToken:
        return self.tokens.refresh_token(token)

    async def change_password(self, user_id: UUID, old_password: str, new_password: str) -> None:
        """
        Replace a user's password after checking the current one.

        Raises:
            NotFoundError: the user does not exist
            InvalidCredentials: ``old_password`` is wrong
            ValidationError: ``new_password`` is malformed
        """
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        if not await asyncio.to_thread(verify_password, old_password, user.password_hash):
            raise InvalidCredentials("Current password is incorrect")

        password_hash = await asyncio.to_thread(hash_password, new_password, self.hash_rounds)
        await self.users.update_password(user_id, password_hash)
