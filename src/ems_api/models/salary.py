"""Monthly salary records and advance salary requests."""

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
from sqlalchemy.orm import Mapped, MappedColumn, mapped_column

from ems_api.models.base import Base, TimestampMixin, UUIDMixin

_MONEY = Numeric(12, 2)


class SalaryStatus(enum.StrEnum):
    DRAFT = "draft"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


class PaymentMethod(enum.StrEnum):
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"
    CHEQUE = "cheque"


class AdvanceStatus(enum.StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PAID = "paid"


class DeductionSchedule(enum.StrEnum):
    """How an advance is recovered from later salaries."""

    SINGLE_MONTH = "single_month"
    TWO_MONTHS = "two_months"
    THREE_MONTHS = "three_months"
    CUSTOM = "custom"


def _money() -> MappedColumn[Decimal]:
    return mapped_column(_MONEY, nullable=False, default=Decimal("0"), server_default="0")


class Salary(Base, UUIDMixin, TimestampMixin):
    """One employee's salary for one month.

    The ``*_total``, ``overtime_amount``, ``absent_days``, ``total_salary`` and
    ``net_salary`` columns are derived by ``salary_service.apply_totals``.
    """

    __tablename__ = "salaries"
    __table_args__ = (
        UniqueConstraint("employee_id", "month", "year", name="uq_salaries_employee_period"),
        CheckConstraint("month BETWEEN 1 AND 12", name="ck_salaries_month"),
        CheckConstraint("year >= 2020", name="ck_salaries_year"),
        CheckConstraint("basic_salary >= 0", name="ck_salaries_basic_non_negative"),
        CheckConstraint("status IN ('draft', 'approved', 'paid', 'cancelled')", name="ck_salaries_status"),
    )

    employee_id: Mapped[str] = mapped_column(
        String(20), ForeignKey("employees.employee_id"), nullable=False, index=True
    )
    employee_name: Mapped[str] = mapped_column(String(50), nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    basic_salary: Mapped[Decimal] = mapped_column(_MONEY, nullable=False)

    hra: Mapped[Decimal] = _money()
    transport_allowance: Mapped[Decimal] = _money()
    medical_allowance: Mapped[Decimal] = _money()
    bonus: Mapped[Decimal] = _money()
    other_allowance: Mapped[Decimal] = _money()
    allowances_total: Mapped[Decimal] = _money()

    pf: Mapped[Decimal] = _money()
    esi: Mapped[Decimal] = _money()
    tax: Mapped[Decimal] = _money()
    advance_deduction: Mapped[Decimal] = _money()
    other_deduction: Mapped[Decimal] = _money()
    deductions_total: Mapped[Decimal] = _money()

    overtime_hours: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False, default=Decimal("0"))
    overtime_rate: Mapped[Decimal] = _money()
    overtime_amount: Mapped[Decimal] = _money()

    working_days: Mapped[int] = mapped_column(Integer, nullable=False)
    present_days: Mapped[int] = mapped_column(Integer, nullable=False)
    absent_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_salary: Mapped[Decimal] = _money()
    net_salary: Mapped[Decimal] = _money()

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SalaryStatus.DRAFT, server_default=SalaryStatus.DRAFT.value
    )
    approved_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id"), nullable=True)
    approved_by_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    approved_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    payment_method: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentMethod.BANK_TRANSFER, server_default="bank_transfer"
    )
    payment_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class AdvanceSalary(Base, UUIDMixin, TimestampMixin):
    """A request to be paid part of a salary ahead of time.

    Attributes:
        monthly_deduction: Amount recovered per month once paid.
        remaining_amount: Amount not yet recovered.
        deduction_start_month: First month of recovery, ``YYYY-MM``.
    """

    __tablename__ = "advance_salaries"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_advance_salaries_amount_positive"),
        CheckConstraint("status IN ('pending', 'approved', 'rejected', 'paid')", name="ck_advance_salaries_status"),
    )

    employee_id: Mapped[str] = mapped_column(
        String(20), ForeignKey("employees.employee_id"), nullable=False, index=True
    )
    employee_name: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(_MONEY, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    request_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AdvanceStatus.PENDING, server_default=AdvanceStatus.PENDING.value
    )
    approved_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id"), nullable=True)
    approved_by_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    approved_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    payment_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    payment_method: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentMethod.BANK_TRANSFER, server_default="bank_transfer"
    )
    deduction_schedule: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DeductionSchedule.SINGLE_MONTH, server_default="single_month"
    )
    monthly_deduction: Mapped[Decimal] = _money()
    total_deducted: Mapped[Decimal] = _money()
    remaining_amount: Mapped[Decimal] = _money()
    is_fully_deducted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    deduction_start_month: Mapped[str | None] = mapped_column(String(7), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
