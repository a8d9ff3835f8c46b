"""JWT token codec and password hashing.

Uses PyJWT for JWT operations and passlib with bcrypt for password hashing.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt
from passlib.context import CryptContext

from ems_api.core.config import Settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a plaintext password using bcrypt.

    Args:
        password: The plaintext password to hash.

    Returns:
        The bcrypt-hashed password string.
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against a bcrypt hash.

    Args:
        plain_password: The plaintext password to verify.
        hashed_password: The bcrypt hash to verify against.

    Returns:
        True if the password matches, False otherwise.
    """
    return pwd_context.verify(plain_password, hashed_password)


class TokenError(Exception):
    """Base class for token verification failures."""


class InvalidSignature(TokenError):
    """The token signature does not match the configured secret."""


class TokenExpired(TokenError):
    """The token's embedded expiry has passed."""


class MalformedToken(TokenError):
    """The token cannot be decoded or lacks required claims."""


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of a session token."""

    subject_id: str
    issued_at: datetime


class TokenCodec:
    """Signs and verifies compact session tokens.

    Tokens carry the subject id (``sub``), the issue time (``iat``) and an
    expiry (``exp``) and are signed with the symmetric secret from settings.
    """

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.jwt_secret_key
        self._algorithm = settings.jwt_algorithm
        self._lifetime = timedelta(minutes=settings.jwt_access_token_expire_minutes)

    @property
    def lifetime(self) -> timedelta:
        return self._lifetime

    def issue(self, subject_id: str, *, now: datetime | None = None) -> str:
        """Create a signed token for a subject.

        Args:
            subject_id: Identifier of the user the token authenticates.
            now: Issue time override, defaults to the current UTC time.

        Returns:
            The encoded JWT string.
        """
        issued_at = now or datetime.now(UTC)
        payload = {
            "sub": subject_id,
            "iat": issued_at,
            "exp": issued_at + self._lifetime,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Decode and validate a token.

        Args:
            token: The JWT string to verify.

        Returns:
            The verified claims.

        Raises:
            TokenExpired: If the token has expired.
            InvalidSignature: If the signature does not match.
            MalformedToken: If the token is otherwise invalid.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpired(str(e)) from e
        except jwt.InvalidSignatureError as e:
            raise InvalidSignature(str(e)) from e
        except jwt.InvalidTokenError as e:
            raise MalformedToken(str(e)) from e

        subject_id = payload["sub"]
        if not isinstance(subject_id, str) or not subject_id:
            msg = "Token subject must be a non-empty string"
            raise MalformedToken(msg)
        return TokenClaims(
            subject_id=subject_id,
            issued_at=datetime.fromtimestamp(int(payload["iat"]), UTC),
        )
