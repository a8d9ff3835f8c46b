"""Salary and advance salary API endpoints.

Salary records are created, listed, edited and deleted by managers and above.
Any single salary can be read by the employee it belongs to. Employees may
request advances for themselves; deciding and paying them is for managers and
above.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from ems_api.core import policy
from ems_api.core.dependencies import CurrentUser, DbSession, require_any_role, require_self_or_elevated
from ems_api.core.roles import MANAGER_OR_ABOVE
from ems_api.models.salary import AdvanceStatus, SalaryStatus
from ems_api.models.user import User
from ems_api.schemas.common import AUTH_ERROR_RESPONSES, ApiResponse, Page, PaginationParams, build_page
from ems_api.schemas.salary import (
    AdvancePayRequest,
    AdvanceRejectRequest,
    AdvanceSalaryCreateRequest,
    AdvanceSalaryResponse,
    AdvanceSalaryUpdateRequest,
    AdvanceSummary,
    SalaryCreateRequest,
    SalaryResponse,
    SalaryUpdateRequest,
)
from ems_api.services import salary_service

salaries_router = APIRouter(prefix="/salaries", tags=["salaries"], responses=AUTH_ERROR_RESPONSES)
advances_router = APIRouter(prefix="/advance-salary", tags=["advance-salary"], responses=AUTH_ERROR_RESPONSES)

ManagerOrAbove = Annotated[User, Depends(require_any_role(*MANAGER_OR_ABOVE))]
SelfOrElevated = Annotated[User, Depends(require_self_or_elevated)]


@salaries_router.get("")
async def list_salaries(
    session: DbSession,
    _user: ManagerOrAbove,
    pagination: Annotated[PaginationParams, Depends()],
    employee_id: Annotated[str | None, Query(max_length=20)] = None,
    month: Annotated[int | None, Query(ge=1, le=12)] = None,
    year: Annotated[int | None, Query(ge=2020)] = None,
    salary_status: Annotated[SalaryStatus | None, Query(alias="status")] = None,
) -> ApiResponse[Page[SalaryResponse]]:
    """List salary records (manager or above)."""
    salaries, total = await salary_service.list_salaries(
        session,
        employee_id=employee_id,
        month=month,
        year=year,
        status=salary_status,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return ApiResponse(data=build_page([SalaryResponse.model_validate(s) for s in salaries], total, pagination))


@salaries_router.post("", status_code=status.HTTP_201_CREATED)
async def create_salary(
    request: SalaryCreateRequest,
    session: DbSession,
    current_user: ManagerOrAbove,
) -> ApiResponse[SalaryResponse]:
    """Record a month of salary (manager or above)."""
    salary = await salary_service.create_salary(session, request)
    logger.info(f"{current_user.email} created salary {salary.id}")
    return ApiResponse(data=SalaryResponse.model_validate(salary), message="Salary record created successfully")


@salaries_router.get("/employee/{employee_id}")
async def list_employee_salaries(
    employee_id: str,
    session: DbSession,
    _user: SelfOrElevated,
    pagination: Annotated[PaginationParams, Depends()],
) -> ApiResponse[Page[SalaryResponse]]:
    """An employee's salary history (the employee themself, or manager and above)."""
    salaries, total = await salary_service.list_salaries(
        session, employee_id=employee_id, page=pagination.page, page_size=pagination.page_size
    )
    return ApiResponse(data=build_page([SalaryResponse.model_validate(s) for s in salaries], total, pagination))


@salaries_router.get("/{salary_id}")
async def get_salary(
    salary_id: uuid.UUID, session: DbSession, current_user: CurrentUser
) -> ApiResponse[SalaryResponse]:
    """Get one salary record (its employee, or manager and above)."""
    salary = await salary_service.get_salary(session, salary_id)
    policy.require_self_or_elevated(current_user, salary.employee_id)
    return ApiResponse(data=SalaryResponse.model_validate(salary))


@salaries_router.put("/{salary_id}")
async def update_salary(
    salary_id: uuid.UUID,
    request: SalaryUpdateRequest,
    session: DbSession,
    current_user: ManagerOrAbove,
) -> ApiResponse[SalaryResponse]:
    """Edit a salary record (manager or above)."""
    salary = await salary_service.update_salary(session, salary_id, request, current_user)
    return ApiResponse(data=SalaryResponse.model_validate(salary), message="Salary record updated successfully")


@salaries_router.delete("/{salary_id}")
async def delete_salary(salary_id: uuid.UUID, session: DbSession, current_user: ManagerOrAbove) -> ApiResponse[None]:
    """Delete a salary record (manager or above)."""
    await salary_service.delete_salary(session, salary_id)
    logger.info(f"{current_user.email} deleted salary {salary_id}")
    return ApiResponse(message="Salary record deleted")


@advances_router.get("")
async def list_advances(
    session: DbSession,
    _user: ManagerOrAbove,
    pagination: Annotated[PaginationParams, Depends()],
    employee_id: Annotated[str | None, Query(max_length=20)] = None,
    advance_status: Annotated[AdvanceStatus | None, Query(alias="status")] = None,
) -> ApiResponse[Page[AdvanceSalaryResponse]]:
    """List advance salary requests (manager or above)."""
    advances, total = await salary_service.list_advances(
        session,
        employee_id=employee_id,
        status=advance_status,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return ApiResponse(
        data=build_page([AdvanceSalaryResponse.model_validate(a) for a in advances], total, pagination)
    )


@advances_router.post("", status_code=status.HTTP_201_CREATED)
async def create_advance(
    request: AdvanceSalaryCreateRequest,
    session: DbSession,
    current_user: CurrentUser,
) -> ApiResponse[AdvanceSalaryResponse]:
    """Request an advance (for oneself, or for anyone as manager and above)."""
    policy.require_self_or_elevated(current_user, request.employee_id)
    advance = await salary_service.create_advance(session, request)
    return ApiResponse(
        data=AdvanceSalaryResponse.model_validate(advance),
        message="Advance salary request created successfully",
    )


@advances_router.get("/employee/{employee_id}/summary")
async def advance_summary(employee_id: str, session: DbSession, _user: SelfOrElevated) -> ApiResponse[AdvanceSummary]:
    """Outstanding advances and recent history for one employee."""
    total, pending, history = await salary_service.advance_summary(session, employee_id)
    return ApiResponse(
        data=AdvanceSummary(
            employee_id=employee_id.strip().upper(),
            total_advance_amount=total,
            pending_advances=[AdvanceSalaryResponse.model_validate(a) for a in pending],
            advance_history=[AdvanceSalaryResponse.model_validate(a) for a in history],
        )
    )


@advances_router.get("/{advance_id}")
async def get_advance(
    advance_id: uuid.UUID, session: DbSession, current_user: CurrentUser
) -> ApiResponse[AdvanceSalaryResponse]:
    """Get one advance request (its employee, or manager and above)."""
    advance = await salary_service.get_advance(session, advance_id)
    policy.require_self_or_elevated(current_user, advance.employee_id)
    return ApiResponse(data=AdvanceSalaryResponse.model_validate(advance))


@advances_router.put("/{advance_id}")
async def update_advance(
    advance_id: uuid.UUID,
    request: AdvanceSalaryUpdateRequest,
    session: DbSession,
    current_user: CurrentUser,
) -> ApiResponse[AdvanceSalaryResponse]:
    """Edit a pending advance request (its employee, or manager and above)."""
    advance = await salary_service.get_advance(session, advance_id)
    policy.require_self_or_elevated(current_user, advance.employee_id)
    advance = await salary_service.update_advance(session, advance_id, request)
    return ApiResponse(
        data=AdvanceSalaryResponse.model_validate(advance),
        message="Advance salary request updated successfully",
    )


@advances_router.put("/{advance_id}/approve")
async def approve_advance(
    advance_id: uuid.UUID, session: DbSession, current_user: ManagerOrAbove
) -> ApiResponse[AdvanceSalaryResponse]:
    advance = await salary_service.approve_advance(session, advance_id, current_user)
    return ApiResponse(
        data=AdvanceSalaryResponse.model_validate(advance),
        message="Advance salary request approved successfully",
    )


@advances_router.put("/{advance_id}/reject")
async def reject_advance(
    advance_id: uuid.UUID,
    request: AdvanceRejectRequest,
    session: DbSession,
    current_user: ManagerOrAbove,
) -> ApiResponse[AdvanceSalaryResponse]:
    advance = await salary_service.reject_advance(session, advance_id, current_user, request.rejection_reason)
    return ApiResponse(
        data=AdvanceSalaryResponse.model_validate(advance),
        message="Advance salary request rejected successfully",
    )


@advances_router.put("/{advance_id}/pay")
async def pay_advance(
    advance_id: uuid.UUID,
    request: AdvancePayRequest,
    session: DbSession,
    _user: ManagerOrAbove,
) -> ApiResponse[AdvanceSalaryResponse]:
    advance = await salary_service.pay_advance(session, advance_id, request)
    return ApiResponse(
        data=AdvanceSalaryResponse.model_validate(advance),
        message="Advance salary marked as paid successfully",
    )


@advances_router.delete("/{advance_id}")
async def delete_advance(advance_id: uuid.UUID, session: DbSession, _user: ManagerOrAbove) -> ApiResponse[None]:
    """Delete a pending or rejected advance request (manager or above)."""
    await salary_service.delete_advance(session, advance_id)
    return ApiResponse(message="Advance salary request deleted successfully")
