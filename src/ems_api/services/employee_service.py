"""Employee record service."""

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ems_api.core.errors import ConflictError, NotFoundError
from ems_api.models.employee import Employee, EmployeeStatus
from ems_api.models.user import User
from ems_api.schemas.employee import EmployeeCreateRequest, EmployeeUpdateRequest


async def list_employees(
    session: AsyncSession,
    *,
    department: str | None = None,
    status: EmployeeStatus | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Employee], int]:
    """List employees with optional filters and pagination.

    Returns:
        Tuple of (employees list, total count).
    """
    query = select(Employee)
    count_query = select(func.count(Employee.id))
    if department:
        query = query.where(Employee.department == department)
        count_query = count_query.where(Employee.department == department)
    if status:
        query = query.where(Employee.status == status.value)
        count_query = count_query.where(Employee.status == status.value)

    total = (await session.execute(count_query)).scalar_one()
    offset = (page - 1) * page_size
    result = await session.execute(query.order_by(Employee.employee_id).offset(offset).limit(page_size))
    return list(result.scalars().all()), total


async def get_employee(session: AsyncSession, employee_id: str) -> Employee:
    """Get an employee by business id.

    Raises:
        NotFoundError: If no such employee exists.
    """
    result = await session.execute(select(Employee).where(Employee.employee_id == employee_id.strip().upper()))
    employee = result.scalar_one_or_none()
    if employee is None:
        msg = f"Employee {employee_id} not found"
        raise NotFoundError(msg)
    return employee


async def create_employee(session: AsyncSession, request: EmployeeCreateRequest) -> Employee:
    """Create an employee record.

    Raises:
        ConflictError: If the employee id or email is already taken.
    """
    existing = await session.execute(
        select(Employee).where((Employee.employee_id == request.employee_id) | (Employee.email == request.email))
    )
    if existing.scalar_one_or_none() is not None:
        msg = "Employee with this ID or email already exists"
        raise ConflictError(msg)

    employee = Employee(**request.model_dump(mode="python"))
    session.add(employee)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        msg = "Employee with this ID or email already exists"
        raise ConflictError(msg) from e
    await session.refresh(employee)
    logger.info(f"Created employee {employee.employee_id}")
    return employee


async def _deactivate_linked_user(session: AsyncSession, employee_id: str) -> None:
    result = await session.execute(select(User).where(User.employee_id == employee_id))
    for user in result.scalars():
        if user.is_active:
            user.is_active = False
            logger.info(f"Deactivated account {user.email} of terminated employee {employee_id}")


async def update_employee(session: AsyncSession, employee_id: str, request: EmployeeUpdateRequest) -> Employee:
    """Partially update an employee record.

    Setting the status to terminated also deactivates the linked user account.
    """
    employee = await get_employee(session, employee_id)
    for field, value in request.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(employee, field, value)
    if employee.status == EmployeeStatus.TERMINATED:
        await _deactivate_linked_user(session, employee.employee_id)
    await session.commit()
    await session.refresh(employee)
    logger.info(f"Updated employee {employee.employee_id}")
    return employee


async def terminate_employee(session: AsyncSession, employee_id: str) -> Employee:
    """Mark an employee as terminated and deactivate their user account.

    Records are kept for payroll history; the account can be re-activated by
    an administrator.
    """
    employee = await get_employee(session, employee_id)
    employee.status = EmployeeStatus.TERMINATED
    await _deactivate_linked_user(session, employee.employee_id)
    await session.commit()
    await session.refresh(employee)
    logger.info(f"Terminated employee {employee.employee_id}")
    return employee
