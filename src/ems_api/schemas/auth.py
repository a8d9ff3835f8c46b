"""Authentication and user Pydantic v2 schemas.

Defines request/response schemas for login, registration, profile and
password management.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from ems_api.core.roles import Role


def _normalize_employee_id(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip().upper()
    return value or None


class LoginRequest(BaseModel):
    """Login request with email and password."""

    email: EmailStr
    password: str = Field(min_length=1, max_length=72)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()


class UserResponse(BaseModel):
    """User information response (never includes the password hash)."""

    id: UUID
    name: str
    email: str
    role: Role
    department: str
    phone: str
    employee_id: str | None = None
    is_active: bool
    last_login_at: datetime | None = None
    login_count: int = 0
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class LoginData(BaseModel):
    """Payload of a successful login."""

    user: UserResponse
    token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Token lifetime in seconds")


class RegisterRequest(BaseModel):
    """Request to create a new user account."""

    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)
    role: Role = Role.EMPLOYEE
    department: str = Field(default="", max_length=100)
    phone: str = Field(default="", max_length=30)
    employee_id: str | None = Field(default=None, max_length=20)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("employee_id")
    @classmethod
    def upper_employee_id(cls, v: str | None) -> str | None:
        return _normalize_employee_id(v)


class ProfileUpdateRequest(BaseModel):
    """Self-service profile update; role, status and email are not editable here."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    department: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=30)


class ChangePasswordRequest(BaseModel):
    """Change the caller's own password."""

    current_password: str = Field(min_length=1, max_length=72)
    new_password: str = Field(min_length=6, max_length=72)


class ResetPasswordRequest(BaseModel):
    """Administrator reset of another user's password."""

    new_password: str = Field(min_length=6, max_length=72)
