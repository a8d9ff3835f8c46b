"""ORM models; importing this package registers every table on ``Base.metadata``."""

from ems_api.models.attendance import (
    Attendance,
    AttendanceStatus,
    HalfDayPeriod,
    LeaveRequest,
    LeaveStatus,
    LeaveType,
    WorkLocation,
)
from ems_api.models.base import Base
from ems_api.models.employee import Employee, EmployeeStatus
from ems_api.models.salary import AdvanceSalary, AdvanceStatus, DeductionSchedule, PaymentMethod, Salary, SalaryStatus
from ems_api.models.user import User

__all__ = [
    "AdvanceSalary",
    "AdvanceStatus",
    "Attendance",
    "AttendanceStatus",
    "Base",
    "DeductionSchedule",
    "Employee",
    "EmployeeStatus",
    "HalfDayPeriod",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "PaymentMethod",
    "Salary",
    "SalaryStatus",
    "User",
    "WorkLocation",
]
