"""
Worknest - Security
===================

Password hashing (bcrypt via passlib) and signed, expiring access tokens
(HS256 JWT via python-jose).

Token claims:
    sub       user id
    username  username at issue time
    exp       expiry, unix seconds
    iat       issued at, unix seconds
    jti       unique token id
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, NamedTuple, Optional
from uuid import UUID, uuid4

import structlog
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.hash import bcrypt

from worknest.core.errors import TokenExpired, TokenInvalid, Unauthorized, ValidationError

logger = structlog.get_logger(__name__)

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 72  # bcrypt ignores input beyond 72 bytes
DEFAULT_HASH_ROUNDS = 12
DEFAULT_TOKEN_LIFETIME = timedelta(hours=24)


# ==========================================================================
# Passwords
# ==========================================================================

def validate_password(password: str) -> None:
    """Raise ValidationError unless the password is 8..72 bytes long."""
    size = len(password.encode("utf-8"))
    if size < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    if size > MAX_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at most {MAX_PASSWORD_LENGTH} characters"
        )


def hash_password(password: str, rounds: int = DEFAULT_HASH_ROUNDS) -> str:
    """
    Hash a password with bcrypt.

    Each call uses a fresh salt, so hashing the same password twice
    yields different strings. CPU bound: async callers should run it in
    a worker thread.
    """
    validate_password(password)
    return bcrypt.using(rounds=rounds).hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """
    Check a password against a stored hash. Malformed hashes never match.

    bcrypt reads only the first 72 bytes, so longer candidates are refused
    outright instead of matching on their prefix.
    """
    if len(password.encode("utf-8")) > MAX_PASSWORD_LENGTH:
        return False
    try:
        return bcrypt.verify(password, password_hash)
    except (ValueError, TypeError):
        return False


# ==========================================================================
# Tokens
# ==========================================================================

class AuthToken(NamedTuple):
    token: str
    expires_at: datetime


@dataclass(frozen=True)
class Principal:
    """Authenticated identity attached to a request."""

    user_id: UUID
    username: str


@dataclass(frozen=True)
class TokenClaims:
    sub: str
    username: str
    exp: int
    iat: int
    jti: str

    @property
    def user_id(self) -> UUID:
        return UUID(self.sub)

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.exp, tz=timezone.utc)

    def principal(self) -> Principal:
        return Principal(user_id=self.user_id, username=self.username)


class TokenManager:
    """
    Issues and verifies signed access tokens.

    Args:
        secret: HMAC signing key
        algorithm: JWT algorithm
        expires_in: Lifetime of issued tokens
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_in: timedelta = DEFAULT_TOKEN_LIFETIME,
    ) -> None:
        if not secret:
            raise ValueError("Token secret must not be empty")
        self._secret = secret
        self.algorithm = algorithm
        self.expires_in = expires_in

    def issue_token(self, user_id: UUID, username: str) -> AuthToken:
        now = datetime.now(timezone.utc)
        expires_at = now + self.expires_in
        claims: dict[str, Any] = {
            "sub": str(user_id),
            "username": username,
            "exp": int(expires_at.timestamp()),
            "iat": int(now.timestamp()),
            "jti": str(uuid4()),
        }
        token = jwt.encode(claims, self._secret, algorithm=self.algorithm)
        return AuthToken(token=token, expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc))

    def verify_token(self, token: str) -> TokenClaims:
        """
        Verify signature and expiry and return the claims.

        Raises:
            TokenExpired: the token is past its expiry
            TokenInvalid: bad signature, malformed token or missing claims
        """
        if not token:
            raise TokenInvalid()

        try:
            payload = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise TokenExpired() from None
        except JWTError:
            raise TokenInvalid() from None

        try:
            user_id = UUID(str(payload["sub"]))
            return TokenClaims(
                sub=str(user_id),
                username=str(payload["username"]),
                exp=int(payload["exp"]),
                iat=int(payload["iat"]),
                jti=str(payload["jti"]),
            )
        except (KeyError, TypeError, ValueError):
            raise TokenInvalid() from None

    def refresh_token(self, token: str) -> AuthToken:
        """Issue a fresh token for the holder of a still-valid one."""
        claims = self.verify_token(token)
        return self.issue_token(claims.user_id, claims.username)


def bearer_token(authorization: Optional[str]) -> str:
    """
    Extract the token from an ``Authorization: Bearer <token>`` header value.

    Raises:
        Unauthorized: header missing or not of the form ``Bearer <token>``
    """
    if not authorization:
        raise Unauthorized("Missing Authorization header")

    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise Unauthorized("Invalid Authorization header format")

    return token
