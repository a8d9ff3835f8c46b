"""Leave request service."""

import uuid
from datetime import UTC, datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ems_api.core.errors import BadRequestError, ConflictError, NotFoundError
from ems_api.models.attendance import LeaveRequest, LeaveStatus, LeaveType
from ems_api.models.user import User
from ems_api.schemas.attendance import LeaveCreateRequest
from ems_api.services.employee_service import get_employee

_OPEN_STATUSES = (LeaveStatus.PENDING.value, LeaveStatus.APPROVED.value)


def leave_days(request: LeaveCreateRequest) -> Decimal:
    """Days charged for a request: the given value, else the inclusive span.

    A half-day request spanning a single day counts as 0.5.
    """
    if request.days is not None:
        return request.days
    days = Decimal((request.end_date - request.start_date).days + 1)
    if request.is_half_day and days == 1:
        return Decimal("0.5")
    return days


async def list_leave_requests(
    session: AsyncSession,
    *,
    employee_id: str | None = None,
    status: LeaveStatus | None = None,
    leave_type: LeaveType | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[LeaveRequest], int]:
    """List leave requests, latest start date first.

    Returns:
        Tuple of (requests list, total count).
    """
    conditions = []
    if employee_id:
        conditions.append(LeaveRequest.employee_id == employee_id.strip().upper())
    if status:
        conditions.append(LeaveRequest.status == status.value)
    if leave_type:
        conditions.append(LeaveRequest.leave_type == leave_type.value)

    total = (await session.execute(select(func.count(LeaveRequest.id)).where(*conditions))).scalar_one()
    result = await session.execute(
        select(LeaveRequest)
        .where(*conditions)
        .order_by(LeaveRequest.start_date.desc(), LeaveRequest.employee_id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


async def get_leave_request(session: AsyncSession, leave_id: uuid.UUID) -> LeaveRequest:
    """Get a leave request by id.

    Raises:
        NotFoundError: If no such request exists.
    """
    leave = await session.get(LeaveRequest, leave_id)
    if leave is None:
        msg = "Leave request not found"
        raise NotFoundError(msg)
    return leave


async def create_leave_request(session: AsyncSession, request: LeaveCreateRequest) -> LeaveRequest:
    """File a leave request for an existing employee.

    Raises:
        NotFoundError: If the employee does not exist.
        ConflictError: If it overlaps a pending or approved request.
    """
    employee = await get_employee(session, request.employee_id)
    overlapping = await session.execute(
        select(LeaveRequest.id).where(
            LeaveRequest.employee_id == employee.employee_id,
            LeaveRequest.status.in_(_OPEN_STATUSES),
            LeaveRequest.start_date <= request.end_date,
            LeaveRequest.end_date >= request.start_date,
        )
    )
    if overlapping.first() is not None:
        msg = "Leave overlaps an existing pending or approved request"
        raise ConflictError(msg)

    leave = LeaveRequest(
        employee_id=employee.employee_id,
        employee_name=employee.name,
        leave_type=request.leave_type,
        start_date=request.start_date,
        end_date=request.end_date,
        days=leave_days(request),
        reason=request.reason.strip(),
        is_half_day=request.is_half_day,
        half_day_period=request.half_day_period,
        handover_notes=request.handover_notes,
        status=LeaveStatus.PENDING,
    )
    session.add(leave)
    await session.commit()
    await session.refresh(leave)
    logger.info(f"{leave.employee_id} requested {leave.days} days of {leave.leave_type} leave")
    return leave


def _require_status(leave: LeaveRequest, *allowed: LeaveStatus, action: str) -> None:
    if leave.status not in allowed:
        msg = f"Cannot {action} a leave request that is {leave.status}"
        raise BadRequestError(msg, reason="invalid_state")


def _stamp_decision(leave: LeaveRequest, actor: User) -> None:
    leave.approved_by = actor.id
    leave.approved_by_name = actor.name
    leave.approved_date = datetime.now(UTC)


async def approve_leave_request(session: AsyncSession, leave_id: uuid.UUID, actor: User) -> LeaveRequest:
    leave = await get_leave_request(session, leave_id)
    _require_status(leave, LeaveStatus.PENDING, action="approve")
    leave.status = LeaveStatus.APPROVED
    _stamp_decision(leave, actor)
    await session.commit()
    await session.refresh(leave)
    logger.info(f"{actor.email} approved leave {leave.id} for {leave.employee_id}")
    return leave


async def reject_leave_request(
    session: AsyncSession, leave_id: uuid.UUID, actor: User, rejection_reason: str
) -> LeaveRequest:
    leave = await get_leave_request(session, leave_id)
    _require_status(leave, LeaveStatus.PENDING, action="reject")
    leave.status = LeaveStatus.REJECTED
    leave.rejection_reason = rejection_reason.strip()
    _stamp_decision(leave, actor)
    await session.commit()
    await session.refresh(leave)
    logger.info(f"{actor.email} rejected leave {leave.id} for {leave.employee_id}")
    return leave


async def cancel_leave_request(session: AsyncSession, leave_id: uuid.UUID) -> LeaveRequest:
    """Withdraw a pending or approved request."""
    leave = await get_leave_request(session, leave_id)
    _require_status(leave, LeaveStatus.PENDING, LeaveStatus.APPROVED, action="cancel")
    leave.status = LeaveStatus.CANCELLED
    await session.commit()
    await session.refresh(leave)
    logger.info(f"Leave {leave.id} for {leave.employee_id} cancelled")
    return leave
