"""Attendance and leave request API endpoints.

Employees check themselves in and out and file their own leave. Managers and
above list, enter and correct attendance and decide leave requests. Each
employee can read their own history.
"""

import uuid
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from ems_api.core import policy
from ems_api.core.dependencies import CurrentUser, DbSession, require_any_role, require_self_or_elevated
from ems_api.core.roles import ADMIN_OR_HR, MANAGER_OR_ABOVE
from ems_api.models.attendance import AttendanceStatus, LeaveStatus, LeaveType
from ems_api.models.user import User
from ems_api.schemas.attendance import (
    AttendanceCreateRequest,
    AttendanceResponse,
    AttendanceSummary,
    AttendanceUpdateRequest,
    CheckInRequest,
    CheckOutRequest,
    LeaveCreateRequest,
    LeaveRejectRequest,
    LeaveResponse,
)
from ems_api.schemas.common import AUTH_ERROR_RESPONSES, ApiResponse, Page, PaginationParams, build_page
from ems_api.services import attendance_service, leave_service

attendance_router = APIRouter(prefix="/attendance", tags=["attendance"], responses=AUTH_ERROR_RESPONSES)
leave_router = APIRouter(prefix="/leave-requests", tags=["leave"], responses=AUTH_ERROR_RESPONSES)

ManagerOrAbove = Annotated[User, Depends(require_any_role(*MANAGER_OR_ABOVE))]


@attendance_router.get("")
async def list_attendance(
    session: DbSession,
    _user: ManagerOrAbove,
    pagination: Annotated[PaginationParams, Depends()],
    employee_id: Annotated[str | None, Query(max_length=20)] = None,
    date_from: date | None = None,
    date_to: date | None = None,
    attendance_status: Annotated[AttendanceStatus | None, Query(alias="status")] = None,
) -> ApiResponse[Page[AttendanceResponse]]:
    """List attendance records (manager or above)."""
    records, total = await attendance_service.list_attendance(
        session,
        employee_id=employee_id,
        date_from=date_from,
        date_to=date_to,
        status=attendance_status,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return ApiResponse(data=build_page([AttendanceResponse.model_validate(r) for r in records], total, pagination))


@attendance_router.post("", status_code=status.HTTP_201_CREATED)
async def record_attendance(
    request: AttendanceCreateRequest,
    session: DbSession,
    current_user: ManagerOrAbove,
) -> ApiResponse[AttendanceResponse]:
    """Enter attendance for an employee (manager or above)."""
    record = await attendance_service.record_attendance(session, request, current_user)
    return ApiResponse(data=AttendanceResponse.model_validate(record), message="Attendance recorded")


@attendance_router.post("/check-in", status_code=status.HTTP_201_CREATED)
async def check_in(
    request: CheckInRequest, session: DbSession, current_user: CurrentUser
) -> ApiResponse[AttendanceResponse]:
    """Check the caller in for today."""
    record = await attendance_service.check_in(session, current_user, request)
    return ApiResponse(data=AttendanceResponse.model_validate(record), message="Checked in")


@attendance_router.post("/check-out")
async def check_out(
    request: CheckOutRequest, session: DbSession, current_user: CurrentUser
) -> ApiResponse[AttendanceResponse]:
    """Check the caller out for today."""
    record = await attendance_service.check_out(session, current_user, request)
    return ApiResponse(data=AttendanceResponse.model_validate(record), message="Checked out")


@attendance_router.get("/employee/{employee_id}")
async def attendance_summary(
    employee_id: str,
    session: DbSession,
    _user: Annotated[User, Depends(require_self_or_elevated)],
    date_from: date | None = None,
    date_to: date | None = None,
) -> ApiResponse[AttendanceSummary]:
    """One employee's attendance and totals over a date range."""
    records, by_status, hours, overtime = await attendance_service.attendance_summary(
        session, employee_id, date_from=date_from, date_to=date_to
    )
    return ApiResponse(
        data=AttendanceSummary(
            employee_id=employee_id.strip().upper(),
            date_from=date_from,
            date_to=date_to,
            days_by_status=by_status,
            total_working_hours=hours,
            total_overtime=overtime,
            records=[AttendanceResponse.model_validate(r) for r in records],
        )
    )


@attendance_router.get("/{attendance_id}")
async def get_attendance(
    attendance_id: uuid.UUID, session: DbSession, current_user: CurrentUser
) -> ApiResponse[AttendanceResponse]:
    """Get one attendance record (its employee, or manager and above)."""
    record = await attendance_service.get_attendance(session, attendance_id)
    policy.require_self_or_elevated(current_user, record.employee_id)
    return ApiResponse(data=AttendanceResponse.model_validate(record))


@attendance_router.put("/{attendance_id}")
async def update_attendance(
    attendance_id: uuid.UUID,
    request: AttendanceUpdateRequest,
    session: DbSession,
    _user: ManagerOrAbove,
) -> ApiResponse[AttendanceResponse]:
    """Correct an attendance record (manager or above)."""
    record = await attendance_service.update_attendance(session, attendance_id, request)
    return ApiResponse(data=AttendanceResponse.model_validate(record), message="Attendance updated")


@attendance_router.delete("/{attendance_id}")
async def delete_attendance(
    attendance_id: uuid.UUID,
    session: DbSession,
    _user: Annotated[User, Depends(require_any_role(*ADMIN_OR_HR))],
) -> ApiResponse[None]:
    """Delete an attendance record (admin or HR)."""
    await attendance_service.delete_attendance(session, attendance_id)
    return ApiResponse(message="Attendance record deleted")


@leave_router.get("")
async def list_leave_requests(
    session: DbSession,
    _user: ManagerOrAbove,
    pagination: Annotated[PaginationParams, Depends()],
    employee_id: Annotated[str | None, Query(max_length=20)] = None,
    leave_status: Annotated[LeaveStatus | None, Query(alias="status")] = None,
    leave_type: LeaveType | None = None,
) -> ApiResponse[Page[LeaveResponse]]:
    """List leave requests (manager or above)."""
    requests, total = await leave_service.list_leave_requests(
        session,
        employee_id=employee_id,
        status=leave_status,
        leave_type=leave_type,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return ApiResponse(data=build_page([LeaveResponse.model_validate(r) for r in requests], total, pagination))


@leave_router.post("", status_code=status.HTTP_201_CREATED)
async def create_leave_request(
    request: LeaveCreateRequest, session: DbSession, current_user: CurrentUser
) -> ApiResponse[LeaveResponse]:
    """File a leave request (for oneself, or for anyone as manager and above)."""
    policy.require_self_or_elevated(current_user, request.employee_id)
    leave = await leave_service.create_leave_request(session, request)
    return ApiResponse(data=LeaveResponse.model_validate(leave), message="Leave request submitted")


@leave_router.get("/employee/{employee_id}")
async def list_employee_leave(
    employee_id: str,
    session: DbSession,
    _user: Annotated[User, Depends(require_self_or_elevated)],
    pagination: Annotated[PaginationParams, Depends()],
) -> ApiResponse[Page[LeaveResponse]]:
    """One employee's leave history."""
    requests, total = await leave_service.list_leave_requests(
        session, employee_id=employee_id, page=pagination.page, page_size=pagination.page_size
    )
    return ApiResponse(data=build_page([LeaveResponse.model_validate(r) for r in requests], total, pagination))


@leave_router.get("/{leave_id}")
async def get_leave_request(
    leave_id: uuid.UUID, session: DbSession, current_user: CurrentUser
) -> ApiResponse[LeaveResponse]:
    leave = await leave_service.get_leave_request(session, leave_id)
    policy.require_self_or_elevated(current_user, leave.employee_id)
    return ApiResponse(data=LeaveResponse.model_validate(leave))


@leave_router.put("/{leave_id}/approve")
async def approve_leave_request(
    leave_id: uuid.UUID, session: DbSession, current_user: ManagerOrAbove
) -> ApiResponse[LeaveResponse]:
    leave = await leave_service.approve_leave_request(session, leave_id, current_user)
    return ApiResponse(data=LeaveResponse.model_validate(leave), message="Leave request approved")


@leave_router.put("/{leave_id}/reject")
async def reject_leave_request(
    leave_id: uuid.UUID,
    request: LeaveRejectRequest,
    session: DbSession,
    current_user: ManagerOrAbove,
) -> ApiResponse[LeaveResponse]:
    leave = await leave_service.reject_leave_request(session, leave_id, current_user, request.rejection_reason)
    return ApiResponse(data=LeaveResponse.model_validate(leave), message="Leave request rejected")


@leave_router.put("/{leave_id}/cancel")
async def cancel_leave_request(
    leave_id: uuid.UUID, session: DbSession, current_user: CurrentUser
) -> ApiResponse[LeaveResponse]:
    """Withdraw a pending or approved request (its employee, or manager and above)."""
    leave = await leave_service.get_leave_request(session, leave_id)
    policy.require_self_or_elevated(current_user, leave.employee_id)
    leave = await leave_service.cancel_leave_request(session, leave_id)
    return ApiResponse(data=LeaveResponse.model_validate(leave), message="Leave request cancelled")
