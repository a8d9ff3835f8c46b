"""Authentication API endpoints.

GET /health, POST /auth/login, POST /auth/register, POST /auth/logout,
GET|PUT /auth/profile, PUT /auth/change-password,
PUT /auth/reset-password/{user_id}, GET /users,
PUT /users/{user_id}/activate, PUT /users/{user_id}/deactivate.
"""

import uuid
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, status

from ems_api import __version__
from ems_api.core.dependencies import CurrentUser, DbSession, get_token_codec, require_any_role
from ems_api.core.roles import ADMIN_ONLY, ADMIN_OR_HR
from ems_api.core.security import TokenCodec
from ems_api.models.user import User
from ems_api.schemas.auth import (
    ChangePasswordRequest,
    LoginData,
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UserResponse,
)
from ems_api.schemas.common import (
    AUTH_ERROR_RESPONSES,
    ApiResponse,
    ErrorResponse,
    Page,
    PaginationParams,
    build_page,
)
from ems_api.services import auth_service

router = APIRouter(tags=["auth"])


@router.get("/health", status_code=200)
async def health_check() -> ApiResponse[dict]:
    """Health check endpoint (no authentication required)."""
    return ApiResponse(
        data={"timestamp": datetime.now(UTC).isoformat(), "version": __version__},
        message="EMS API is running",
    )


@router.post("/auth/login", responses={401: AUTH_ERROR_RESPONSES[401]})
async def login(
    request: LoginRequest,
    session: DbSession,
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
) -> ApiResponse[LoginData]:
    """Authenticate with email and password and return a bearer token."""
    user = await auth_service.authenticate_user(session, request.email, request.password)
    return ApiResponse(data=auth_service.issue_session(user, codec), message="Login successful")


@router.post("/auth/register", status_code=status.HTTP_201_CREATED, responses=AUTH_ERROR_RESPONSES)
async def register(
    request: RegisterRequest,
    session: DbSession,
    _current_user: Annotated[User, Depends(require_any_role(*ADMIN_OR_HR))],
) -> ApiResponse[UserResponse]:
    """Create a new user account (admin or HR)."""
    user = await auth_service.create_user(session, request)
    return ApiResponse(data=UserResponse.model_validate(user), message="User registered successfully")


@router.post("/auth/logout", responses=AUTH_ERROR_RESPONSES)
async def logout(_current_user: CurrentUser) -> ApiResponse[None]:
    """Acknowledge a logout.

    Tokens are stateless; the client is responsible for discarding its copy.
    """
    return ApiResponse(message="Logged out successfully")


@router.get("/auth/profile", responses=AUTH_ERROR_RESPONSES)
async def get_profile(current_user: CurrentUser) -> ApiResponse[UserResponse]:
    """Get the currently authenticated user's profile."""
    return ApiResponse(data=UserResponse.model_validate(current_user))


@router.put("/auth/profile", responses=AUTH_ERROR_RESPONSES)
async def update_profile(
    request: ProfileUpdateRequest,
    current_user: CurrentUser,
    session: DbSession,
) -> ApiResponse[UserResponse]:
    """Update the caller's name, department or phone."""
    user = await auth_service.update_profile(session, current_user, request)
    return ApiResponse(data=UserResponse.model_validate(user), message="Profile updated successfully")


@router.put("/auth/change-password", responses={**AUTH_ERROR_RESPONSES, 400: {"model": ErrorResponse}})
async def change_password(
    request: ChangePasswordRequest,
    current_user: CurrentUser,
    session: DbSession,
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
) -> ApiResponse[LoginData]:
    """Change the caller's password.

    Every token issued before the change stops working; a fresh one is returned.
    """
    user = await auth_service.change_password(session, current_user, request.current_password, request.new_password)
    return ApiResponse(data=auth_service.issue_session(user, codec), message="Password changed successfully")


@router.put("/auth/reset-password/{user_id}", responses=AUTH_ERROR_RESPONSES)
async def reset_password(
    user_id: uuid.UUID,
    request: ResetPasswordRequest,
    session: DbSession,
    _current_user: Annotated[User, Depends(require_any_role(*ADMIN_ONLY))],
) -> ApiResponse[UserResponse]:
    """Reset another user's password (admin only)."""
    user = await auth_service.reset_password(session, user_id, request.new_password)
    return ApiResponse(data=UserResponse.model_validate(user), message="Password reset successfully")


@router.get("/users", responses=AUTH_ERROR_RESPONSES)
async def list_users(
    _current_user: Annotated[User, Depends(require_any_role(*ADMIN_OR_HR))],
    session: DbSession,
    pagination: Annotated[PaginationParams, Depends()],
) -> ApiResponse[Page[UserResponse]]:
    """List all users (admin or HR)."""
    users, total = await auth_service.list_users(session, pagination.page, pagination.page_size)
    return ApiResponse(data=build_page([UserResponse.model_validate(u) for u in users], total, pagination))


@router.put("/users/{user_id}/activate", responses=AUTH_ERROR_RESPONSES)
async def activate_user(
    user_id: uuid.UUID,
    session: DbSession,
    _current_user: Annotated[User, Depends(require_any_role(*ADMIN_ONLY))],
) -> ApiResponse[UserResponse]:
    """Re-enable a deactivated account (admin only)."""
    user = await auth_service.set_active(session, user_id, active=True)
    return ApiResponse(data=UserResponse.model_validate(user), message="User activated")


@router.put("/users/{user_id}/deactivate", responses=AUTH_ERROR_RESPONSES)
async def deactivate_user(
    user_id: uuid.UUID,
    session: DbSession,
    _current_user: Annotated[User, Depends(require_any_role(*ADMIN_ONLY))],
) -> ApiResponse[UserResponse]:
    """Deactivate an account (admin only); its existing tokens stop working."""
    user = await auth_service.set_active(session, user_id, active=False)
    return ApiResponse(data=UserResponse.model_validate(user), message="User deactivated")
