"""Daily attendance and leave request models."""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from ems_api.models.base import Base, TimestampMixin, UUIDMixin


class AttendanceStatus(enum.StrEnum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half-day"
    WORK_FROM_HOME = "work-from-home"
    ON_LEAVE = "on-leave"


class WorkLocation(enum.StrEnum):
    OFFICE = "office"
    HOME = "home"
    CLIENT_SITE = "client-site"
    OTHER = "other"


class LeaveType(enum.StrEnum):
    SICK = "sick"
    VACATION = "vacation"
    PERSONAL = "personal"
    EMERGENCY = "emergency"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    CASUAL = "casual"
    ANNUAL = "annual"


class LeaveStatus(enum.StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class HalfDayPeriod(enum.StrEnum):
    MORNING = "morning"
    AFTERNOON = "afternoon"


class Attendance(Base, UUIDMixin, TimestampMixin):
    """One employee's attendance for one day.

    ``working_hours`` and ``overtime`` are derived from check-in, check-out
    and break time by ``attendance_service.apply_hours``.
    """

    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("employee_id", "attendance_date", name="uq_attendance_employee_date"),
        CheckConstraint("break_minutes >= 0", name="ck_attendance_break_non_negative"),
    )

    employee_id: Mapped[str] = mapped_column(
        String(20), ForeignKey("employees.employee_id"), nullable=False, index=True
    )
    employee_name: Mapped[str] = mapped_column(String(50), nullable=False)
    attendance_date: Mapped[date] = mapped_column(Date, nullable=False)
    check_in: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    check_out: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AttendanceStatus.PRESENT, server_default=AttendanceStatus.PRESENT.value
    )
    working_hours: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0"))
    break_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    overtime: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0"))
    location: Mapped[str] = mapped_column(
        String(20), nullable=False, default=WorkLocation.OFFICE, server_default=WorkLocation.OFFICE.value
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    recorded_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id"), nullable=True)
    is_manual_entry: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")


class LeaveRequest(Base, UUIDMixin, TimestampMixin):
    """A request for time off, decided by a manager or above."""

    __tablename__ = "leave_requests"
    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_leave_requests_date_order"),
        CheckConstraint("days >= 0.5", name="ck_leave_requests_min_days"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'cancelled')", name="ck_leave_requests_status"
        ),
    )

    employee_id: Mapped[str] = mapped_column(
        String(20), ForeignKey("employees.employee_id"), nullable=False, index=True
    )
    employee_name: Mapped[str] = mapped_column(String(50), nullable=False)
    leave_type: Mapped[str] = mapped_column(String(20), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    days: Mapped[Decimal] = mapped_column(Numeric(5, 1), nullable=False)
    reason: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=LeaveStatus.PENDING, server_default=LeaveStatus.PENDING.value
    )
    is_half_day: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    half_day_period: Mapped[str | None] = mapped_column(String(20), nullable=True)
    approved_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id"), nullable=True)
    approved_by_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    approved_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    handover_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
