"""Employee Pydantic v2 schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from ems_api.models.employee import EmployeeStatus


class EmployeeCreateRequest(BaseModel):
    """Request to create an employee record."""

    employee_id: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=50)
    email: EmailStr
    phone: str = Field(default="", max_length=30)
    department: str = Field(min_length=1, max_length=100)
    position: str = Field(min_length=1, max_length=100)
    salary: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    hire_date: date
    status: EmployeeStatus = EmployeeStatus.ACTIVE

    @field_validator("employee_id")
    @classmethod
    def upper_employee_id(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()


class EmployeeUpdateRequest(BaseModel):
    """Partial update of an employee record (all fields optional)."""

    name: str | None = Field(default=None, min_length=1, max_length=50)
    phone: str | None = Field(default=None, max_length=30)
    department: str | None = Field(default=None, min_length=1, max_length=100)
    position: str | None = Field(default=None, min_length=1, max_length=100)
    salary: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    status: EmployeeStatus | None = None


class EmployeeResponse(BaseModel):
    """Employee record response."""

    id: UUID
    employee_id: str
    name: str
    email: str
    phone: str
    department: str
    position: str
    salary: Decimal
    hire_date: date
    status: EmployeeStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
