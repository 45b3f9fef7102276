"""
Worknest - Authentication API
=============================

Register, login and token endpoints. ``/register`` and ``/login`` are the
only routes under ``/api`` that do not require a bearer token.
"""

from fastapi import APIRouter, Response, status

from worknest.api.deps import BearerToken, CurrentPrincipal, ServicesDep
from worknest.core.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    ErrorResponse,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    responses={
        201: {"description": "User created and logged in"},
        400: {"model": ErrorResponse, "description": "Validation error"},
        409: {"model": ErrorResponse, "description": "Username or email taken"},
    },
)
async def register(data: RegisterRequest, services: ServicesDep) -> AuthResponse:
    """Create an account and return it together with a fresh token."""
    user = await services.auth.register(data.username, data.email, data.password)
    token = services.auth.issue_token(user)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        token=token.token,
        expires_at=token.expires_at,
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login and get a token",
    responses={
        200: {"description": "Login successful"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(data: LoginRequest, services: ServicesDep) -> AuthResponse:
    """Authenticate with username (or email) and password."""
    user, token = await services.auth.login(data.username, data.password)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        token=token.token,
        expires_at=token.expires_at,
    )


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def get_me(token: BearerToken, services: ServicesDep) -> UserResponse:
    user = await services.auth.get_user_from_token(token)
    return UserResponse.model_validate(user)


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Exchange a valid token for a fresh one",
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def refresh(token: BearerToken, services: ServicesDep) -> TokenResponse:
    refreshed = services.auth.refresh_token(token)
    return TokenResponse(token=refreshed.token, expires_at=refreshed.expires_at)


@router.post(
    "/change-password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change the current user's password",
    responses={
        400: {"model": ErrorResponse, "description": "New password invalid"},
        401: {"model": ErrorResponse, "description": "Current password incorrect"},
    },
)
async def change_password(
    data: ChangePasswordRequest,
    principal: CurrentPrincipal,
    services: ServicesDep,
) -> Response:
    await services.auth.change_password(principal.user_id, data.old_password, data.new_password)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
