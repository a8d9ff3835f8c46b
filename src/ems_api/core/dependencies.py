"""FastAPI dependency injection for database sessions, auth, and access control.

Provides get_async_session, get_token_codec, get_current_user (the access
gate) and role-based access control factories built on ``core.policy``.
"""

from collections.abc import AsyncGenerator, Callable
from typing import Annotated, Any

from fastapi import Depends, Header, Path
from sqlalchemy.ext.asyncio import AsyncSession

from ems_api.core import policy
from ems_api.core.config import Settings, get_settings
from ems_api.core.database import get_session_factory
from ems_api.core.gate import authenticate_request
from ems_api.core.roles import Role
from ems_api.core.security import TokenCodec
from ems_api.models.user import User


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Yield an async database session with per-request lifecycle."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


def get_token_codec(settings: Annotated[Settings, Depends(get_settings)]) -> TokenCodec:
    """Build the token codec from application settings."""
    return TokenCodec(settings)


async def get_current_user(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
    authorization: Annotated[str | None, Header()] = None,
) -> User:
    """Authenticate the request's bearer token and return its user.

    Raises:
        Unauthenticated: If no valid, current token is presented.
        Forbidden: If the account is deactivated.
    """
    return await authenticate_request(session, codec, authorization)


def require_any_role(*roles: Role) -> Callable[..., Any]:
    """Factory that creates a dependency requiring one of the given roles.

    Args:
        *roles: Allowed roles.

    Returns:
        A FastAPI dependency function that validates the user's role.
    """
    allowed = frozenset(roles)

    async def role_checker(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        policy.require_any_role(current_user, allowed)
        return current_user

    return role_checker


async def require_self_or_elevated(
    employee_id: Annotated[str, Path(min_length=1, max_length=20)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Allow access to ``/{employee_id}`` routes for the employee themself or elevated roles."""
    policy.require_self_or_elevated(current_user, employee_id)
    return current_user


CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_async_session)]
