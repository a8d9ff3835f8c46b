"""Access gate: turn an ``Authorization`` header into an authenticated user.

The checks run in a fixed order and the first failure is terminal:

1. a bearer token must be present,
2. it must verify against the token codec,
3. it must reference an existing user,
4. that user must be active (reported as ``Forbidden``),
5. it must not predate the user's last password change.
"""

import uuid
from datetime import UTC, datetime

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ems_api.core.errors import AuthFailure, Forbidden, ServerError, Unauthenticated
from ems_api.core.security import TokenClaims, TokenCodec, TokenExpired, TokenError
from ems_api.models.user import User

BEARER_PREFIX = "bearer"


def extract_bearer_token(authorization: str | None) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header.

    Raises:
        Unauthenticated: If the header is missing, uses another scheme, or is empty.
    """
    if not authorization:
        raise Unauthenticated(AuthFailure.NO_TOKEN)
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != BEARER_PREFIX or not token:
        raise Unauthenticated(AuthFailure.NO_TOKEN)
    return token


def verify_token(codec: TokenCodec, token: str) -> TokenClaims:
    """Verify a token, mapping codec errors onto authentication failures."""
    try:
        return codec.verify(token)
    except TokenExpired as e:
        raise Unauthenticated(AuthFailure.EXPIRED_TOKEN) from e
    except TokenError as e:
        raise Unauthenticated(AuthFailure.INVALID_TOKEN) from e


def issued_before_password_change(issued_at: datetime, password_changed_at: datetime | None) -> bool:
    """Return whether a token was issued before the last password change.

    Token ``iat`` values are whole seconds, so the change time is truncated
    to the second before comparing. A token issued earlier within the same
    second as the change is therefore still accepted; at most one second of
    pre-change tokens survives a password change.
    """
    if password_changed_at is None:
        return False
    if password_changed_at.tzinfo is None:
        password_changed_at = password_changed_at.replace(tzinfo=UTC)
    changed_second = int(password_changed_at.timestamp())
    return int(issued_at.timestamp()) < changed_second


async def _load_user(session: AsyncSession, subject_id: str) -> User | None:
    try:
        user_id = uuid.UUID(subject_id)
    except ValueError as e:
        raise Unauthenticated(AuthFailure.INVALID_TOKEN) from e
    try:
        result = await session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.exception(f"User lookup failed during authentication for subject {subject_id}")
        raise ServerError from e


async def resolve_identity(session: AsyncSession, codec: TokenCodec, token: str) -> User:
    """Verify a bearer token and load the user it authenticates.

    Args:
        session: The database session.
        codec: Token codec configured with the signing secret.
        token: The raw bearer token.

    Returns:
        The authenticated, active User.

    Raises:
        Unauthenticated: Invalid, expired or superseded token, or unknown user.
        Forbidden: The user account is deactivated.
        ServerError: The user lookup failed.
    """
    claims = verify_token(codec, token)

    user = await _load_user(session, claims.subject_id)
    if user is None:
        logger.info(f"Rejected token for unknown user {claims.subject_id}")
        raise Unauthenticated(AuthFailure.UNKNOWN_USER)

    if not user.is_active:
        logger.info(f"Rejected token for deactivated user {user.email}")
        raise Forbidden(AuthFailure.ACCOUNT_DEACTIVATED)

    if issued_before_password_change(claims.issued_at, user.password_changed_at):
        logger.info(f"Rejected token issued before password change for {user.email}")
        raise Unauthenticated(AuthFailure.PASSWORD_CHANGED)

    return user


async def authenticate_request(session: AsyncSession, codec: TokenCodec, authorization: str | None) -> User:
    """Run the full gate for a raw ``Authorization`` header value."""
    token = extract_bearer_token(authorization)
    return await resolve_identity(session, codec, token)