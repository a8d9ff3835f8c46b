"""Authentication and user management service.

Handles login, account creation, password changes, profile updates,
activation state, and seeding of the default accounts.
"""

import uuid
from datetime import UTC, datetime

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ems_api.core.config import Settings
from ems_api.core.errors import AuthFailure, BadRequestError, ConflictError, NotFoundError, Unauthenticated
from ems_api.core.roles import Role
from ems_api.core.security import TokenCodec, hash_password, verify_password
from ems_api.models.user import User
from ems_api.schemas.auth import LoginData, ProfileUpdateRequest, RegisterRequest, UserResponse

_UPDATABLE_PROFILE_FIELDS: frozenset[str] = frozenset({"name", "department", "phone"})


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    """Look up a user by email, case-insensitively."""
    result = await session.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def authenticate_user(session: AsyncSession, email: str, password: str) -> User:
    """Authenticate a user by email and password.

    Deactivated accounts are refused with the same error as bad credentials so
    the endpoint does not reveal which accounts exist.

    Args:
        session: The database session.
        email: The login email.
        password: The plaintext password.

    Returns:
        The authenticated User, with login counters updated.

    Raises:
        Unauthenticated: If the credentials are wrong or the account is inactive.
    """
    user = await get_user_by_email(session, email)
    if user is None or not verify_password(password, user.hashed_password):
        logger.info(f"Failed login for {email}")
        raise Unauthenticated(AuthFailure.INVALID_CREDENTIALS)
    if not user.is_active:
        logger.info(f"Login refused for deactivated account {email}")
        raise Unauthenticated(AuthFailure.INVALID_CREDENTIALS)

    user.last_login_at = datetime.now(UTC)
    user.login_count = (user.login_count or 0) + 1
    await session.commit()
    logger.info(f"User {user.email} logged in ({user.login_count} logins)")
    return user


def issue_session(user: User, codec: TokenCodec) -> LoginData:
    """Issue a session token for an authenticated user.

    Args:
        user: The authenticated user.
        codec: Token codec configured from settings.

    Returns:
        Login payload with the user profile and bearer token.
    """
    return LoginData(
        user=UserResponse.model_validate(user),
        token=codec.issue(str(user.id)),
        expires_in=int(codec.lifetime.total_seconds()),
    )


async def create_user(session: AsyncSession, request: RegisterRequest) -> User:
    """Create a new user.

    Args:
        session: The database session.
        request: Registration data.

    Returns:
        The created User.

    Raises:
        ConflictError: If the email or employee id is already in use.
    """
    existing = await session.execute(select(User).where(User.email == request.email))
    if existing.scalar_one_or_none() is not None:
        msg = "User with this email already exists"
        raise ConflictError(msg)
    if request.employee_id is not None:
        linked = await session.execute(select(User).where(User.employee_id == request.employee_id))
        if linked.scalar_one_or_none() is not None:
            msg = f"Employee id {request.employee_id} is already linked to another user"
            raise ConflictError(msg)

    user = User(
        name=request.name.strip(),
        email=request.email,
        hashed_password=hash_password(request.password),
        role=request.role,
        department=request.department,
        phone=request.phone,
        employee_id=request.employee_id,
        is_active=True,
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        msg = "User with this email or employee id already exists"
        raise ConflictError(msg) from e
    await session.refresh(user)
    logger.info(f"Created user {user.email} with role {user.role}")
    return user


async def get_user(session: AsyncSession, user_id: uuid.UUID) -> User:
    """Get a user by ID.

    Raises:
        NotFoundError: If no such user exists.
    """
    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        msg = "User not found"
        raise NotFoundError(msg)
    return user


async def list_users(session: AsyncSession, page: int = 1, page_size: int = 20) -> tuple[list[User], int]:
    """List users with pagination.

    Returns:
        Tuple of (users list, total count).
    """
    count_result = await session.execute(select(func.count(User.id)))
    total = count_result.scalar_one()

    offset = (page - 1) * page_size
    result = await session.execute(select(User).offset(offset).limit(page_size).order_by(User.created_at))
    users = list(result.scalars().all())
    return users, total


async def update_profile(session: AsyncSession, user: User, request: ProfileUpdateRequest) -> User:
    """Apply a self-service profile update."""
    for field, value in request.model_dump(exclude_unset=True).items():
        if field in _UPDATABLE_PROFILE_FIELDS and value is not None:
            setattr(user, field, value)
    await session.commit()
    await session.refresh(user)
    return user


async def _set_password(session: AsyncSession, user: User, new_password: str) -> None:
    user.hashed_password = hash_password(new_password)
    user.password_changed_at = datetime.now(UTC)
    await session.commit()
    await session.refresh(user)


async def change_password(session: AsyncSession, user: User, current_password: str, new_password: str) -> User:
    """Change a user's own password, invalidating every token issued before now.

    A wrong current password leaves the caller's existing tokens valid.

    Raises:
        BadRequestError: If the current password is wrong.
    """
    if not verify_password(current_password, user.hashed_password):
        raise BadRequestError("Current password is incorrect.", reason="incorrect_password")
    await _set_password(session, user, new_password)
    logger.info(f"User {user.email} changed password")
    return user


async def reset_password(session: AsyncSession, user_id: uuid.UUID, new_password: str) -> User:
    """Set another user's password (administrator action)."""
    user = await get_user(session, user_id)
    await _set_password(session, user, new_password)
    logger.info(f"Password reset for {user.email}")
    return user


async def set_active(session: AsyncSession, user_id: uuid.UUID, *, active: bool) -> User:
    """Activate or deactivate an account; users are never hard-deleted."""
    user = await get_user(session, user_id)
    user.is_active = active
    await session.commit()
    await session.refresh(user)
    logger.info(f"User {user.email} {'activated' if active else 'deactivated'}")
    return user


async def seed_default_users(session: AsyncSession, settings: Settings) -> list[User]:
    """Create the default administrator and HR accounts when missing.

    Returns:
        The users created by this call (empty when both already exist).
    """
    defaults = [
        ("System Administrator", settings.seed_admin_email, settings.seed_admin_password, Role.ADMIN, "IT", "EMP001"),
        ("HR Manager", settings.seed_hr_email, settings.seed_hr_password, Role.HR, "Human Resources", "EMP002"),
    ]
    created: list[User] = []
    for name, email, password, role, department, employee_id in defaults:
        if await get_user_by_email(session, email) is not None:
            continue
        user = User(
            name=name,
            email=email.strip().lower(),
            hashed_password=hash_password(password),
            role=role,
            department=department,
            employee_id=employee_id,
            is_active=True,
        )
        session.add(user)
        created.append(user)
    if created:
        await session.commit()
    logger.info(f"Default account seeding complete: {len(created)} created")
    return created
