"""Attendance and leave request Pydantic v2 schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Self
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from ems_api.models.attendance import AttendanceStatus, HalfDayPeriod, LeaveStatus, LeaveType, WorkLocation


class AttendanceCreateRequest(BaseModel):
    """Manual attendance entry for any employee."""

    employee_id: str = Field(min_length=1, max_length=20)
    attendance_date: date
    check_in: datetime | None = None
    check_out: datetime | None = None
    status: AttendanceStatus = AttendanceStatus.PRESENT
    break_minutes: int = Field(default=0, ge=0, le=24 * 60)
    location: WorkLocation = WorkLocation.OFFICE
    notes: str | None = None

    @field_validator("employee_id")
    @classmethod
    def upper_employee_id(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def check_out_after_check_in(self) -> Self:
        if self.check_in and self.check_out and self.check_out < self.check_in:
            msg = "check_out cannot be before check_in"
            raise ValueError(msg)
        return self


class AttendanceUpdateRequest(BaseModel):
    """Correction of an attendance record (all fields optional)."""

    check_in: datetime | None = None
    check_out: datetime | None = None
    status: AttendanceStatus | None = None
    break_minutes: int | None = Field(default=None, ge=0, le=24 * 60)
    location: WorkLocation | None = None
    notes: str | None = None


class CheckInRequest(BaseModel):
    location: WorkLocation = WorkLocation.OFFICE
    notes: str | None = None


class CheckOutRequest(BaseModel):
    break_minutes: int = Field(default=0, ge=0, le=24 * 60)
    notes: str | None = None


class AttendanceResponse(BaseModel):
    """Attendance record response."""

    id: UUID
    employee_id: str
    employee_name: str
    attendance_date: date
    check_in: datetime | None = None
    check_out: datetime | None = None
    status: AttendanceStatus
    working_hours: Decimal
    break_minutes: int
    overtime: Decimal
    location: WorkLocation
    notes: str | None = None
    is_manual_entry: bool

    model_config = {"from_attributes": True}


class AttendanceSummary(BaseModel):
    """Attendance of one employee over a date range."""

    employee_id: str
    date_from: date | None = None
    date_to: date | None = None
    days_by_status: dict[str, int]
    total_working_hours: Decimal
    total_overtime: Decimal
    records: list[AttendanceResponse]


class LeaveCreateRequest(BaseModel):
    """Request for time off.

    ``days`` defaults to the inclusive calendar span, or 0.5 for a single
    half day.
    """

    employee_id: str = Field(min_length=1, max_length=20)
    leave_type: LeaveType
    start_date: date
    end_date: date
    days: Decimal | None = Field(default=None, ge=Decimal("0.5"), max_digits=5, decimal_places=1)
    reason: str = Field(min_length=1, max_length=500)
    is_half_day: bool = False
    half_day_period: HalfDayPeriod | None = None
    handover_notes: str | None = None

    @field_validator("employee_id")
    @classmethod
    def upper_employee_id(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def check_dates_and_half_day(self) -> Self:
        if self.end_date < self.start_date:
            msg = "end_date must not be before start_date"
            raise ValueError(msg)
        if self.is_half_day and self.half_day_period is None:
            msg = "half_day_period is required for a half-day leave"
            raise ValueError(msg)
        return self


class LeaveRejectRequest(BaseModel):
    rejection_reason: str = Field(min_length=1, max_length=1000)


class LeaveResponse(BaseModel):
    """Leave request response."""

    id: UUID
    employee_id: str
    employee_name: str
    leave_type: LeaveType
    start_date: date
    end_date: date
    days: Decimal
    reason: str
    status: LeaveStatus
    is_half_day: bool
    half_day_period: HalfDayPeriod | None = None
    approved_by_name: str | None = None
    approved_date: datetime | None = None
    rejection_reason: str | None = None
    handover_notes: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
