"""
Worknest - API Dependencies
===========================

Shared dependencies for FastAPI endpoints.

Authentication is stateless: the bearer token is verified on every
request and the resulting ``Principal`` is stored on ``request.state``.
No database lookup happens here.
"""

from typing import Annotated, Optional
from uuid import UUID

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from worknest.core.container import Services
from worknest.core.errors import AuthenticationError, ValidationError
from worknest.core.security import Principal, bearer_token

logger = structlog.get_logger(__name__)


# ==========================================================================
# Services
# ==========================================================================

def get_services(request: Request) -> Services:
    return request.app.state.services


ServicesDep = Annotated[Services, Depends(get_services)]


# ==========================================================================
# Security
# ==========================================================================

# Declares the bearer scheme in OpenAPI; the header itself is parsed below.
security = HTTPBearer(auto_error=False)


def _log_rejection(request: Request, exc: AuthenticationError) -> None:
    logger.info(
        "Request rejected",
        reason=type(exc).__name__,
        path=request.url.path,
        method=request.method,
    )


async def get_bearer_token(
    request: Request,
    _credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> str:
    """Raw token from the ``Authorization: Bearer`` header."""
    try:
        return bearer_token(request.headers.get("Authorization"))
    except AuthenticationError as exc:
        _log_rejection(request, exc)
        raise


BearerToken = Annotated[str, Depends(get_bearer_token)]


async def get_current_principal(
    request: Request,
    services: ServicesDep,
    token: BearerToken,
) -> Principal:
    """
    Authenticate the request through the auth service.

    Raises:
        Unauthorized: header missing or malformed
        TokenExpired: token past its expiry
        TokenInvalid: token signature or claims invalid
    """
    try:
        principal = services.auth.authenticate(token)
    except AuthenticationError as exc:
        _log_rejection(request, exc)
        raise

    request.state.principal = principal
    return principal


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


# ==========================================================================
# Parameter Helpers
# ==========================================================================

def resolve_user_ref(value: Optional[str], principal: Principal) -> Optional[UUID]:
    """Turn a user reference query value into an id. ``me`` is the caller."""
    if value is None or not value.strip():
        return None
    value = value.strip()
    if value.lower() == "me":
        return principal.user_id
    try:
        return UUID(value)
    except ValueError:
        raise ValidationError(f"Invalid user id: {value}") from None
