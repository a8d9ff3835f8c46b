"""Salary and advance salary Pydantic v2 schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Self
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from ems_api.models.salary import AdvanceStatus, DeductionSchedule, PaymentMethod, SalaryStatus

_MONEY = {"ge": 0, "max_digits": 12, "decimal_places": 2}


class SalaryCreateRequest(BaseModel):
    """Request to record one month of salary for an employee."""

    employee_id: str = Field(min_length=1, max_length=20)
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2020, le=9999)
    basic_salary: Decimal = Field(**_MONEY)
    hra: Decimal = Field(default=Decimal("0"), **_MONEY)
    transport_allowance: Decimal = Field(default=Decimal("0"), **_MONEY)
    medical_allowance: Decimal = Field(default=Decimal("0"), **_MONEY)
    bonus: Decimal = Field(default=Decimal("0"), **_MONEY)
    other_allowance: Decimal = Field(default=Decimal("0"), **_MONEY)
    pf: Decimal = Field(default=Decimal("0"), **_MONEY)
    esi: Decimal = Field(default=Decimal("0"), **_MONEY)
    tax: Decimal = Field(default=Decimal("0"), **_MONEY)
    advance_deduction: Decimal = Field(default=Decimal("0"), **_MONEY)
    other_deduction: Decimal = Field(default=Decimal("0"), **_MONEY)
    overtime_hours: Decimal = Field(default=Decimal("0"), ge=0, max_digits=6, decimal_places=2)
    overtime_rate: Decimal = Field(default=Decimal("0"), **_MONEY)
    working_days: int = Field(ge=0, le=31)
    present_days: int = Field(ge=0, le=31)
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    payment_reference: str | None = Field(default=None, max_length=100)
    notes: str | None = None

    @field_validator("employee_id")
    @classmethod
    def upper_employee_id(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def present_within_working_days(self) -> Self:
        if self.present_days > self.working_days:
            msg = "present_days cannot exceed working_days"
            raise ValueError(msg)
        return self


class SalaryUpdateRequest(BaseModel):
    """Partial update of a salary record (all fields optional)."""

    basic_salary: Decimal | None = Field(default=None, **_MONEY)
    hra: Decimal | None = Field(default=None, **_MONEY)
    transport_allowance: Decimal | None = Field(default=None, **_MONEY)
    medical_allowance: Decimal | None = Field(default=None, **_MONEY)
    bonus: Decimal | None = Field(default=None, **_MONEY)
    other_allowance: Decimal | None = Field(default=None, **_MONEY)
    pf: Decimal | None = Field(default=None, **_MONEY)
    esi: Decimal | None = Field(default=None, **_MONEY)
    tax: Decimal | None = Field(default=None, **_MONEY)
    advance_deduction: Decimal | None = Field(default=None, **_MONEY)
    other_deduction: Decimal | None = Field(default=None, **_MONEY)
    overtime_hours: Decimal | None = Field(default=None, ge=0, max_digits=6, decimal_places=2)
    overtime_rate: Decimal | None = Field(default=None, **_MONEY)
    working_days: int | None = Field(default=None, ge=0, le=31)
    present_days: int | None = Field(default=None, ge=0, le=31)
    status: SalaryStatus | None = None
    payment_method: PaymentMethod | None = None
    payment_reference: str | None = Field(default=None, max_length=100)
    notes: str | None = None


class SalaryResponse(BaseModel):
    """Salary record with its derived totals."""

    id: UUID
    employee_id: str
    employee_name: str
    month: int
    year: int
    basic_salary: Decimal
    hra: Decimal
    transport_allowance: Decimal
    medical_allowance: Decimal
    bonus: Decimal
    other_allowance: Decimal
    allowances_total: Decimal
    pf: Decimal
    esi: Decimal
    tax: Decimal
    advance_deduction: Decimal
    other_deduction: Decimal
    deductions_total: Decimal
    overtime_hours: Decimal
    overtime_rate: Decimal
    overtime_amount: Decimal
    working_days: int
    present_days: int
    absent_days: int
    total_salary: Decimal
    net_salary: Decimal
    status: SalaryStatus
    approved_by_name: str | None = None
    approved_date: datetime | None = None
    paid_date: datetime | None = None
    payment_method: PaymentMethod
    payment_reference: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class AdvanceSalaryCreateRequest(BaseModel):
    """Request for an advance on salary.

    A ``custom`` deduction schedule needs an explicit ``monthly_deduction``.
    """

    employee_id: str = Field(min_length=1, max_length=20)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    reason: str = Field(min_length=1, max_length=1000)
    deduction_schedule: DeductionSchedule = DeductionSchedule.SINGLE_MONTH
    monthly_deduction: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    notes: str | None = None

    @field_validator("employee_id")
    @classmethod
    def upper_employee_id(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def custom_schedule_needs_amount(self) -> Self:
        if self.deduction_schedule == DeductionSchedule.CUSTOM and self.monthly_deduction is None:
            msg = "monthly_deduction is required for a custom deduction schedule"
            raise ValueError(msg)
        return self


class AdvanceSalaryUpdateRequest(BaseModel):
    """Edit a pending advance request."""

    amount: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    reason: str | None = Field(default=None, min_length=1, max_length=1000)
    deduction_schedule: DeductionSchedule | None = None
    monthly_deduction: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    notes: str | None = None


class AdvanceRejectRequest(BaseModel):
    rejection_reason: str = Field(min_length=1, max_length=1000)


class AdvancePayRequest(BaseModel):
    """Payment details recorded when an approved advance is paid out."""

    payment_method: PaymentMethod
    deduction_start_month: str = Field(pattern=r"^\d{4}-(0[1-9]|1[0-2])$", description="YYYY-MM")
    notes: str | None = None


class AdvanceSalaryResponse(BaseModel):
    """Advance salary request response."""

    id: UUID
    employee_id: str
    employee_name: str
    amount: Decimal
    reason: str
    request_date: date
    status: AdvanceStatus
    approved_by_name: str | None = None
    approved_date: datetime | None = None
    rejection_reason: str | None = None
    payment_date: datetime | None = None
    payment_method: PaymentMethod
    deduction_schedule: DeductionSchedule
    monthly_deduction: Decimal
    total_deducted: Decimal
    remaining_amount: Decimal
    is_fully_deducted: bool
    deduction_start_month: str | None = None
    notes: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class AdvanceSummary(BaseModel):
    """An employee's outstanding advances and recent advance history."""

    employee_id: str
    total_advance_amount: Decimal
    pending_advances: list[AdvanceSalaryResponse]
    advance_history: list[AdvanceSalaryResponse]
