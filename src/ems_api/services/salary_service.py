"""Salary and advance salary service.

Salary totals are recomputed on every write. Advance requests move through
pending -> approved -> paid, or pending -> rejected; only pending requests can
be edited and only pending or rejected ones deleted.
"""

import uuid
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ems_api.core.errors import BadRequestError, ConflictError, NotFoundError
from ems_api.models.salary import AdvanceSalary, AdvanceStatus, DeductionSchedule, Salary, SalaryStatus
from ems_api.models.user import User
from ems_api.schemas.salary import (
    AdvancePayRequest,
    AdvanceSalaryCreateRequest,
    AdvanceSalaryUpdateRequest,
    SalaryCreateRequest,
    SalaryUpdateRequest,
)
from ems_api.services.employee_service import get_employee

_CENT = Decimal("0.01")
_ADVANCE_HISTORY_LIMIT = 10
_SCHEDULE_MONTHS: dict[DeductionSchedule, int] = {
    DeductionSchedule.SINGLE_MONTH: 1,
    DeductionSchedule.TWO_MONTHS: 2,
    DeductionSchedule.THREE_MONTHS: 3,
}


def _cents(value: Decimal) -> Decimal:
    return Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def apply_totals(salary: Salary) -> Salary:
    """Recompute the derived salary columns from their inputs.

    ``net_salary`` may be negative when deductions exceed the gross amount.
    """
    salary.allowances_total = _cents(
        salary.hra + salary.transport_allowance + salary.medical_allowance + salary.bonus + salary.other_allowance
    )
    salary.deductions_total = _cents(
        salary.pf + salary.esi + salary.tax + salary.advance_deduction + salary.other_deduction
    )
    salary.overtime_amount = _cents(salary.overtime_hours * salary.overtime_rate)
    salary.absent_days = salary.working_days - salary.present_days
    salary.total_salary = _cents(salary.basic_salary + salary.allowances_total + salary.overtime_amount)
    salary.net_salary = salary.total_salary - salary.deductions_total
    return salary


async def list_salaries(
    session: AsyncSession,
    *,
    employee_id: str | None = None,
    month: int | None = None,
    year: int | None = None,
    status: SalaryStatus | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Salary], int]:
    """List salary records, newest period first.

    Returns:
        Tuple of (salary list, total count).
    """
    conditions = []
    if employee_id:
        conditions.append(Salary.employee_id == employee_id.strip().upper())
    if month is not None:
        conditions.append(Salary.month == month)
    if year is not None:
        conditions.append(Salary.year == year)
    if status:
        conditions.append(Salary.status == status.value)

    total = (await session.execute(select(func.count(Salary.id)).where(*conditions))).scalar_one()
    result = await session.execute(
        select(Salary)
        .where(*conditions)
        .order_by(Salary.year.desc(), Salary.month.desc(), Salary.employee_id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


async def get_salary(session: AsyncSession, salary_id: uuid.UUID) -> Salary:
    """Get a salary record by id.

    Raises:
        NotFoundError: If no such record exists.
    """
    salary = await session.get(Salary, salary_id)
    if salary is None:
        msg = "Salary record not found"
        raise NotFoundError(msg)
    return salary


async def create_salary(session: AsyncSession, request: SalaryCreateRequest) -> Salary:
    """Record a month of salary for an existing employee.

    Raises:
        NotFoundError: If the employee does not exist.
        ConflictError: If the employee already has a record for that month.
    """
    employee = await get_employee(session, request.employee_id)
    existing = await session.execute(
        select(Salary.id).where(
            Salary.employee_id == employee.employee_id,
            Salary.month == request.month,
            Salary.year == request.year,
        )
    )
    if existing.scalar_one_or_none() is not None:
        msg = f"Salary for {employee.employee_id} {request.year}-{request.month:02d} already exists"
        raise ConflictError(msg)

    salary = Salary(employee_name=employee.name, **request.model_dump(mode="python"))
    apply_totals(salary)
    session.add(salary)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        msg = f"Salary for {employee.employee_id} {request.year}-{request.month:02d} already exists"
        raise ConflictError(msg) from e
    await session.refresh(salary)
    logger.info(f"Created salary {salary.year}-{salary.month:02d} for {salary.employee_id}")
    return salary


async def update_salary(
    session: AsyncSession, salary_id: uuid.UUID, request: SalaryUpdateRequest, actor: User
) -> Salary:
    """Partially update a salary record and recompute its totals.

    Moving to ``approved`` records the approver; moving to ``paid`` stamps the
    payment date.

    Raises:
        NotFoundError: If no such record exists.
        BadRequestError: If present days would exceed working days.
    """
    salary = await get_salary(session, salary_id)
    changes = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None}
    if changes.get("present_days", salary.present_days) > changes.get("working_days", salary.working_days):
        msg = "present_days cannot exceed working_days"
        raise BadRequestError(msg, reason="invalid_attendance_days")

    previous_status = salary.status
    for field, value in changes.items():
        setattr(salary, field, value)
    apply_totals(salary)

    now = datetime.now(UTC)
    if salary.status != previous_status:
        if salary.status == SalaryStatus.APPROVED:
            salary.approved_by = actor.id
            salary.approved_by_name = actor.name
            salary.approved_date = now
        elif salary.status == SalaryStatus.PAID:
            salary.paid_date = now
    await session.commit()
    await session.refresh(salary)
    logger.info(f"Updated salary {salary.id} for {salary.employee_id} ({salary.status})")
    return salary


async def delete_salary(session: AsyncSession, salary_id: uuid.UUID) -> None:
    """Delete a salary record."""
    salary = await get_salary(session, salary_id)
    employee_id = salary.employee_id
    await session.delete(salary)
    await session.commit()
    logger.info(f"Deleted salary {salary_id} for {employee_id}")


def _schedule_deduction(advance: AdvanceSalary, monthly_deduction: Decimal | None = None) -> None:
    months = _SCHEDULE_MONTHS.get(DeductionSchedule(advance.deduction_schedule))
    if months is not None:
        advance.monthly_deduction = _cents(advance.amount / months)
    elif monthly_deduction is not None:
        advance.monthly_deduction = monthly_deduction
    advance.remaining_amount = advance.amount - (advance.total_deducted or Decimal("0"))


async def list_advances(
    session: AsyncSession,
    *,
    employee_id: str | None = None,
    status: AdvanceStatus | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[AdvanceSalary], int]:
    """List advance requests, newest first.

    Returns:
        Tuple of (advance list, total count).
    """
    conditions = []
    if employee_id:
        conditions.append(AdvanceSalary.employee_id == employee_id.strip().upper())
    if status:
        conditions.append(AdvanceSalary.status == status.value)

    total = (await session.execute(select(func.count(AdvanceSalary.id)).where(*conditions))).scalar_one()
    result = await session.execute(
        select(AdvanceSalary)
        .where(*conditions)
        .order_by(AdvanceSalary.created_at.desc(), AdvanceSalary.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


async def get_advance(session: AsyncSession, advance_id: uuid.UUID) -> AdvanceSalary:
    """Get an advance request by id.

    Raises:
        NotFoundError: If no such request exists.
    """
    advance = await session.get(AdvanceSalary, advance_id)
    if advance is None:
        msg = "Advance salary request not found"
        raise NotFoundError(msg)
    return advance


async def create_advance(session: AsyncSession, request: AdvanceSalaryCreateRequest) -> AdvanceSalary:
    """Open an advance request for an existing employee.

    Raises:
        NotFoundError: If the employee does not exist.
        ConflictError: If the employee already has a pending or approved request.
    """
    employee = await get_employee(session, request.employee_id)
    open_request = await session.execute(
        select(AdvanceSalary.id).where(
            AdvanceSalary.employee_id == employee.employee_id,
            AdvanceSalary.status.in_([AdvanceStatus.PENDING.value, AdvanceStatus.APPROVED.value]),
        )
    )
    if open_request.first() is not None:
        msg = "Employee already has a pending advance salary request"
        raise ConflictError(msg)

    advance = AdvanceSalary(
        employee_id=employee.employee_id,
        employee_name=employee.name,
        amount=request.amount,
        reason=request.reason.strip(),
        deduction_schedule=request.deduction_schedule,
        notes=request.notes,
        total_deducted=Decimal("0"),
    )
    _schedule_deduction(advance, request.monthly_deduction)
    session.add(advance)
    await session.commit()
    await session.refresh(advance)
    logger.info(f"Advance of {advance.amount} requested for {advance.employee_id}")
    return advance


def _require_status(advance: AdvanceSalary, *allowed: AdvanceStatus, action: str) -> None:
    if advance.status not in allowed:
        msg = f"Cannot {action} an advance salary request that is {advance.status}"
        raise BadRequestError(msg, reason="invalid_state")


async def update_advance(
    session: AsyncSession, advance_id: uuid.UUID, request: AdvanceSalaryUpdateRequest
) -> AdvanceSalary:
    """Edit a pending advance request."""
    advance = await get_advance(session, advance_id)
    _require_status(advance, AdvanceStatus.PENDING, action="update")
    changes = request.model_dump(exclude_unset=True)
    for field in ("amount", "reason", "deduction_schedule", "notes"):
        if changes.get(field) is not None:
            setattr(advance, field, changes[field])
    if (
        DeductionSchedule(advance.deduction_schedule) == DeductionSchedule.CUSTOM
        and request.monthly_deduction is None
        and not advance.monthly_deduction
    ):
        msg = "monthly_deduction is required for a custom deduction schedule"
        raise BadRequestError(msg, reason="missing_monthly_deduction")
    _schedule_deduction(advance, request.monthly_deduction)
    await session.commit()
    await session.refresh(advance)
    return advance


def _stamp_decision(advance: AdvanceSalary, actor: User) -> None:
    advance.approved_by = actor.id
    advance.approved_by_name = actor.name
    advance.approved_date = datetime.now(UTC)


async def approve_advance(session: AsyncSession, advance_id: uuid.UUID, actor: User) -> AdvanceSalary:
    """Approve a pending request."""
    advance = await get_advance(session, advance_id)
    _require_status(advance, AdvanceStatus.PENDING, action="approve")
    advance.status = AdvanceStatus.APPROVED
    _stamp_decision(advance, actor)
    await session.commit()
    await session.refresh(advance)
    logger.info(f"{actor.email} approved advance {advance.id} for {advance.employee_id}")
    return advance


async def reject_advance(
    session: AsyncSession, advance_id: uuid.UUID, actor: User, rejection_reason: str
) -> AdvanceSalary:
    """Reject a pending request with a reason."""
    advance = await get_advance(session, advance_id)
    _require_status(advance, AdvanceStatus.PENDING, action="reject")
    advance.status = AdvanceStatus.REJECTED
    advance.rejection_reason = rejection_reason.strip()
    _stamp_decision(advance, actor)
    await session.commit()
    await session.refresh(advance)
    logger.info(f"{actor.email} rejected advance {advance.id} for {advance.employee_id}")
    return advance


async def pay_advance(session: AsyncSession, advance_id: uuid.UUID, request: AdvancePayRequest) -> AdvanceSalary:
    """Mark an approved request as paid and start recovering it."""
    advance = await get_advance(session, advance_id)
    _require_status(advance, AdvanceStatus.APPROVED, action="pay")
    advance.status = AdvanceStatus.PAID
    advance.payment_date = datetime.now(UTC)
    advance.payment_method = request.payment_method
    advance.deduction_start_month = request.deduction_start_month
    advance.remaining_amount = advance.amount
    if request.notes:
        advance.notes = request.notes
    await session.commit()
    await session.refresh(advance)
    logger.info(f"Advance {advance.id} paid to {advance.employee_id} by {advance.payment_method}")
    return advance


async def delete_advance(session: AsyncSession, advance_id: uuid.UUID) -> None:
    """Delete a pending or rejected request."""
    advance = await get_advance(session, advance_id)
    _require_status(advance, AdvanceStatus.PENDING, AdvanceStatus.REJECTED, action="delete")
    employee_id = advance.employee_id
    await session.delete(advance)
    await session.commit()
    logger.info(f"Deleted advance {advance_id} for {employee_id}")


async def advance_summary(
    session: AsyncSession, employee_id: str
) -> tuple[Decimal, list[AdvanceSalary], list[AdvanceSalary]]:
    """Summarize an employee's advances.

    Returns:
        Tuple of (outstanding amount, paid advances still being recovered
        ordered by payment date, the most recent requests).
    """
    employee_id = employee_id.strip().upper()
    outstanding = await session.execute(
        select(AdvanceSalary)
        .where(
            AdvanceSalary.employee_id == employee_id,
            AdvanceSalary.status == AdvanceStatus.PAID.value,
            AdvanceSalary.is_fully_deducted.is_(False),
        )
        .order_by(AdvanceSalary.payment_date)
    )
    pending = list(outstanding.scalars().all())
    history = await session.execute(
        select(AdvanceSalary)
        .where(AdvanceSalary.employee_id == employee_id)
        .order_by(AdvanceSalary.created_at.desc(), AdvanceSalary.id)
        .limit(_ADVANCE_HISTORY_LIMIT)
    )
    total = sum((a.remaining_amount for a in pending), Decimal("0"))
    return total, pending, list(history.scalars().all())
