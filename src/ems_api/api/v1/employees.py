"""Employee record API endpoints.

Listing and termination are limited to managers and above, creation and
edits to admin and HR. A single record can be read by the employee it
belongs to or by any elevated role.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from ems_api.core.dependencies import DbSession, require_any_role, require_self_or_elevated
from ems_api.core.roles import ADMIN_OR_HR, MANAGER_OR_ABOVE
from ems_api.models.employee import EmployeeStatus
from ems_api.models.user import User
from ems_api.schemas.common import AUTH_ERROR_RESPONSES, ApiResponse, Page, PaginationParams, build_page
from ems_api.schemas.employee import EmployeeCreateRequest, EmployeeResponse, EmployeeUpdateRequest
from ems_api.services import employee_service

employees_router = APIRouter(prefix="/employees", tags=["employees"], responses=AUTH_ERROR_RESPONSES)


@employees_router.get("")
async def list_employees(
    session: DbSession,
    _user: Annotated[User, Depends(require_any_role(*MANAGER_OR_ABOVE))],
    pagination: Annotated[PaginationParams, Depends()],
    department: Annotated[str | None, Query(max_length=100)] = None,
    employee_status: Annotated[EmployeeStatus | None, Query(alias="status")] = None,
) -> ApiResponse[Page[EmployeeResponse]]:
    """List employees (manager or above)."""
    employees, total = await employee_service.list_employees(
        session,
        department=department,
        status=employee_status,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return ApiResponse(data=build_page([EmployeeResponse.model_validate(e) for e in employees], total, pagination))


@employees_router.post("", status_code=status.HTTP_201_CREATED)
async def create_employee(
    request: EmployeeCreateRequest,
    session: DbSession,
    current_user: Annotated[User, Depends(require_any_role(*ADMIN_OR_HR))],
) -> ApiResponse[EmployeeResponse]:
    """Create an employee record (admin or HR)."""
    employee = await employee_service.create_employee(session, request)
    logger.info(f"{current_user.email} created employee {employee.employee_id}")
    return ApiResponse(data=EmployeeResponse.model_validate(employee), message="Employee created successfully")


@employees_router.get("/{employee_id}")
async def get_employee(
    employee_id: str,
    session: DbSession,
    _user: Annotated[User, Depends(require_self_or_elevated)],
) -> ApiResponse[EmployeeResponse]:
    """Get one employee record (the employee themself, or manager and above)."""
    employee = await employee_service.get_employee(session, employee_id)
    return ApiResponse(data=EmployeeResponse.model_validate(employee))


@employees_router.put("/{employee_id}")
async def update_employee(
    employee_id: str,
    request: EmployeeUpdateRequest,
    session: DbSession,
    _user: Annotated[User, Depends(require_any_role(*ADMIN_OR_HR))],
) -> ApiResponse[EmployeeResponse]:
    """Update an employee record (admin or HR)."""
    employee = await employee_service.update_employee(session, employee_id, request)
    return ApiResponse(data=EmployeeResponse.model_validate(employee), message="Employee updated successfully")


@employees_router.delete("/{employee_id}")
async def terminate_employee(
    employee_id: str,
    session: DbSession,
    current_user: Annotated[User, Depends(require_any_role(*MANAGER_OR_ABOVE))],
) -> ApiResponse[EmployeeResponse]:
    """Mark an employee as terminated (manager or above)."""
    employee = await employee_service.terminate_employee(session, employee_id)
    logger.info(f"{current_user.email} terminated employee {employee.employee_id}")
    return ApiResponse(data=EmployeeResponse.model_validate(employee), message="Employee terminated")
