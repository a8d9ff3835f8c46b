"""Attendance service: manual entries, self-service check-in/out and summaries."""

import uuid
from collections import Counter
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ems_api.core.errors import BadRequestError, ConflictError, NotFoundError
from ems_api.models.attendance import Attendance, AttendanceStatus
from ems_api.models.user import User
from ems_api.schemas.attendance import (
    AttendanceCreateRequest,
    AttendanceUpdateRequest,
    CheckInRequest,
    CheckOutRequest,
)
from ems_api.services.employee_service import get_employee

STANDARD_WORKING_HOURS = Decimal("8")
HALF_DAY_HOURS = Decimal("4")
_HUNDREDTH = Decimal("0.01")


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def apply_hours(record: Attendance) -> Attendance:
    """Derive working hours, overtime and status once both punches are known.

    Break minutes are subtracted from the span; overtime is anything beyond
    the standard eight hours. A full day is ``present``, four hours or more
    is ``half-day`` and anything less is ``late``.
    """
    if record.check_in is None or record.check_out is None:
        return record
    span = _as_utc(record.check_out) - _as_utc(record.check_in)
    hours = Decimal(span.total_seconds()) / 3600 - Decimal(record.break_minutes or 0) / 60
    hours = max(Decimal("0"), hours).quantize(_HUNDREDTH, rounding=ROUND_HALF_UP)

    record.working_hours = hours
    record.overtime = max(Decimal("0"), hours - STANDARD_WORKING_HOURS)
    if hours >= STANDARD_WORKING_HOURS:
        record.status = AttendanceStatus.PRESENT
    elif hours >= HALF_DAY_HOURS:
        record.status = AttendanceStatus.HALF_DAY
    elif hours > 0:
        record.status = AttendanceStatus.LATE
    return record


def _date_conditions(employee_id: str | None, date_from: date | None, date_to: date | None) -> list:
    conditions = []
    if employee_id:
        conditions.append(Attendance.employee_id == employee_id.strip().upper())
    if date_from:
        conditions.append(Attendance.attendance_date >= date_from)
    if date_to:
        conditions.append(Attendance.attendance_date <= date_to)
    return conditions


async def list_attendance(
    session: AsyncSession,
    *,
    employee_id: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    status: AttendanceStatus | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Attendance], int]:
    """List attendance records, most recent day first.

    Returns:
        Tuple of (records list, total count).
    """
    conditions = _date_conditions(employee_id, date_from, date_to)
    if status:
        conditions.append(Attendance.status == status.value)

    total = (await session.execute(select(func.count(Attendance.id)).where(*conditions))).scalar_one()
    result = await session.execute(
        select(Attendance)
        .where(*conditions)
        .order_by(Attendance.attendance_date.desc(), Attendance.employee_id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


async def get_attendance(session: AsyncSession, attendance_id: uuid.UUID) -> Attendance:
    """Get an attendance record by id.

    Raises:
        NotFoundError: If no such record exists.
    """
    record = await session.get(Attendance, attendance_id)
    if record is None:
        msg = "Attendance record not found"
        raise NotFoundError(msg)
    return record


async def _find_day(session: AsyncSession, employee_id: str, day: date) -> Attendance | None:
    result = await session.execute(
        select(Attendance).where(Attendance.employee_id == employee_id, Attendance.attendance_date == day)
    )
    return result.scalar_one_or_none()


async def _save_new(session: AsyncSession, record: Attendance) -> Attendance:
    session.add(record)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        msg = f"Attendance for {record.employee_id} on {record.attendance_date} already exists"
        raise ConflictError(msg) from e
    await session.refresh(record)
    return record


async def record_attendance(session: AsyncSession, request: AttendanceCreateRequest, actor: User) -> Attendance:
    """Enter a day's attendance on behalf of an employee.

    Raises:
        NotFoundError: If the employee does not exist.
        ConflictError: If that day is already recorded.
    """
    employee = await get_employee(session, request.employee_id)
    if await _find_day(session, employee.employee_id, request.attendance_date) is not None:
        msg = f"Attendance for {employee.employee_id} on {request.attendance_date} already exists"
        raise ConflictError(msg)

    record = Attendance(
        employee_id=employee.employee_id,
        employee_name=employee.name,
        attendance_date=request.attendance_date,
        check_in=request.check_in,
        check_out=request.check_out,
        status=request.status,
        break_minutes=request.break_minutes,
        location=request.location,
        notes=request.notes,
        recorded_by=actor.id,
        is_manual_entry=True,
        working_hours=Decimal("0"),
        overtime=Decimal("0"),
    )
    apply_hours(record)
    record = await _save_new(session, record)
    logger.info(f"{actor.email} recorded attendance for {record.employee_id} on {record.attendance_date}")
    return record


def _linked_employee_id(user: User) -> str:
    if not user.employee_id:
        msg = "Your account is not linked to an employee record"
        raise BadRequestError(msg, reason="no_employee_record")
    return user.employee_id


async def check_in(
    session: AsyncSession, user: User, request: CheckInRequest, *, now: datetime | None = None
) -> Attendance:
    """Open today's attendance for the caller's own employee record.

    Raises:
        BadRequestError: If the account has no linked employee.
        NotFoundError: If the linked employee record does not exist.
        ConflictError: If the caller already checked in today.
    """
    now = now or datetime.now(UTC)
    employee = await get_employee(session, _linked_employee_id(user))
    if await _find_day(session, employee.employee_id, now.date()) is not None:
        msg = "Already checked in today"
        raise ConflictError(msg)

    record = Attendance(
        employee_id=employee.employee_id,
        employee_name=employee.name,
        attendance_date=now.date(),
        check_in=now,
        status=AttendanceStatus.PRESENT,
        location=request.location,
        notes=request.notes,
        break_minutes=0,
        working_hours=Decimal("0"),
        overtime=Decimal("0"),
        is_manual_entry=False,
    )
    record = await _save_new(session, record)
    logger.info(f"{employee.employee_id} checked in at {now.isoformat()}")
    return record


async def check_out(
    session: AsyncSession, user: User, request: CheckOutRequest, *, now: datetime | None = None
) -> Attendance:
    """Close today's attendance for the caller and compute the hours worked.

    Raises:
        BadRequestError: If there is no open check-in for today.
    """
    now = now or datetime.now(UTC)
    employee_id = _linked_employee_id(user).strip().upper()
    record = await _find_day(session, employee_id, now.date())
    if record is None or record.check_in is None:
        msg = "No check-in recorded today"
        raise BadRequestError(msg, reason="not_checked_in")
    if record.check_out is not None:
        msg = "Already checked out today"
        raise BadRequestError(msg, reason="already_checked_out")

    record.check_out = now
    record.break_minutes = request.break_minutes
    if request.notes:
        record.notes = request.notes
    apply_hours(record)
    await session.commit()
    await session.refresh(record)
    logger.info(f"{employee_id} checked out after {record.working_hours} hours")
    return record


async def update_attendance(
    session: AsyncSession, attendance_id: uuid.UUID, request: AttendanceUpdateRequest
) -> Attendance:
    """Correct an attendance record and recompute its hours.

    Raises:
        BadRequestError: If the corrected check-out precedes the check-in.
    """
    record = await get_attendance(session, attendance_id)
    changes = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None}
    check_in_at = changes.get("check_in", record.check_in)
    check_out_at = changes.get("check_out", record.check_out)
    if check_in_at and check_out_at and _as_utc(check_out_at) < _as_utc(check_in_at):
        msg = "check_out cannot be before check_in"
        raise BadRequestError(msg, reason="invalid_times")

    for field, value in changes.items():
        setattr(record, field, value)
    apply_hours(record)
    await session.commit()
    await session.refresh(record)
    return record


async def delete_attendance(session: AsyncSession, attendance_id: uuid.UUID) -> None:
    record = await get_attendance(session, attendance_id)
    await session.delete(record)
    await session.commit()
    logger.info(f"Deleted attendance {attendance_id}")


async def attendance_summary(
    session: AsyncSession,
    employee_id: str,
    *,
    date_from: date | None = None,
    date_to: date | None = None,
) -> tuple[list[Attendance], dict[str, int], Decimal, Decimal]:
    """Collect an employee's attendance over a date range.

    Returns:
        Tuple of (records newest first, day count per status, total working
        hours, total overtime).
    """
    result = await session.execute(
        select(Attendance)
        .where(*_date_conditions(employee_id, date_from, date_to))
        .order_by(Attendance.attendance_date.desc())
    )
    records = list(result.scalars().all())
    by_status = Counter(str(r.status) for r in records)
    hours = sum((r.working_hours for r in records), Decimal("0"))
    overtime = sum((r.overtime for r in records), Decimal("0"))
    return records, dict(by_status), hours, overtime
