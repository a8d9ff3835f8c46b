"""User model for authentication and role-based access control."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ems_api.core.roles import Role
from ems_api.models.base import Base, TimestampMixin, UUIDMixin


class User(Base, UUIDMixin, TimestampMixin):
    """Account that can sign in to the system.

    Attributes:
        email: Login identity, stored lower-cased. Unique.
        role: One of the ``Role`` values.
        employee_id: Business id of the linked employee record, if any. Unique when set.
        is_active: Deactivated accounts cannot hold a valid session.
        password_changed_at: Tokens issued before this instant are rejected.
        login_count: Successful logins so far.
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(
        Enum(Role, native_enum=False, length=20, values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=Role.EMPLOYEE,
    )
    employee_id: Mapped[str | None] = mapped_column(String(20), unique=True, nullable=True, index=True)
    department: Mapped[str] = mapped_column(String(100), nullable=False, default="", server_default="")
    phone: Mapped[str] = mapped_column(String(30), nullable=False, default="", server_default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    password_changed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    login_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
