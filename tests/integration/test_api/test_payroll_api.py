"""Integration tests for the salary and advance salary endpoints."""

from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from ems_api.core.roles import Role
from ems_api.core.security import TokenCodec, hash_password
from ems_api.models.employee import Employee
from ems_api.models.user import User
from ems_api.schemas.employee import EmployeeCreateRequest
from ems_api.services.employee_service import create_employee

_SALARY = {
    "employee_id": "EMP010",
    "month": 4,
    "year": 2025,
    "basic_salary": "40000.00",
    "hra": "8000.00",
    "pf": "4800.00",
    "working_days": 22,
    "present_days": 22,
}


@pytest.fixture
def admin_headers(codec: TokenCodec, admin_user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {codec.issue(str(admin_user.id))}"}


@pytest.fixture
def employee_headers(codec: TokenCodec, employee_user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {codec.issue(str(employee_user.id))}"}


@pytest.fixture
async def manager_headers(async_session: AsyncSession, codec: TokenCodec) -> dict[str, str]:
    manager = User(
        name="Mo Manager",
        email="mo@company.com",
        hashed_password=hash_password("manager123"),
        role=Role.MANAGER,
        employee_id="EMP005",
    )
    async_session.add(manager)
    await async_session.commit()
    return {"Authorization": f"Bearer {codec.issue(str(manager.id))}"}


@pytest.fixture
async def employees(async_session: AsyncSession) -> list[Employee]:
    created = []
    for employee_id, name in (("EMP010", "Asha Rao"), ("EMP011", "Ben Ode")):
        request = EmployeeCreateRequest(
            employee_id=employee_id,
            name=name,
            email=f"{employee_id.lower()}@company.com",
            department="Sales",
            position="Account Executive",
            salary=Decimal("52000.00"),
            hire_date=date(2024, 4, 1),
        )
        created.append(await create_employee(async_session, request))
    return created


async def _create_salary(client: AsyncClient, headers: dict[str, str], **overrides: object) -> dict:
    response = await client.post("/api/salaries", headers=headers, json={**_SALARY, **overrides})
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def _request_advance(client: AsyncClient, headers: dict[str, str], employee_id: str = "EMP010") -> dict:
    response = await client.post(
        "/api/advance-salary",
        headers=headers,
        json={"employee_id": employee_id, "amount": "6000.00", "reason": "Rent deposit"},
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.usefixtures("employees")
class TestSalaries:
    """Tests for /api/salaries."""

    async def test_manager_creates_with_totals(self, client: AsyncClient, manager_headers: dict[str, str]) -> None:
        data = await _create_salary(client, manager_headers)

        assert data["employee_name"] == "Asha Rao"
        assert data["status"] == "draft"
        assert Decimal(data["total_salary"]) == Decimal("48000.00")
        assert Decimal(data["net_salary"]) == Decimal("43200.00")

    async def test_employee_cannot_create(self, client: AsyncClient, employee_headers: dict[str, str]) -> None:
        response = await client.post("/api/salaries", headers=employee_headers, json=_SALARY)
        assert response.status_code == 403
        assert response.json()["reason"] == "insufficient_role"

    async def test_present_days_validated(self, client: AsyncClient, admin_headers: dict[str, str]) -> None:
        response = await client.post(
            "/api/salaries", headers=admin_headers, json={**_SALARY, "working_days": 20, "present_days": 21}
        )
        assert response.status_code == 422

    async def test_duplicate_period(self, client: AsyncClient, admin_headers: dict[str, str]) -> None:
        await _create_salary(client, admin_headers)
        response = await client.post("/api/salaries", headers=admin_headers, json=_SALARY)
        assert response.status_code == 409

    async def test_list_is_elevated_only(
        self, client: AsyncClient, admin_headers: dict[str, str], employee_headers: dict[str, str]
    ) -> None:
        await _create_salary(client, admin_headers)
        await _create_salary(client, admin_headers, employee_id="EMP011")

        response = await client.get("/api/salaries", headers=admin_headers, params={"employee_id": "emp011"})
        assert response.status_code == 200
        assert response.json()["data"]["pagination"]["total"] == 1

        response = await client.get("/api/salaries", headers=employee_headers)
        assert response.status_code == 403

    async def test_employee_reads_own_history_only(
        self, client: AsyncClient, admin_headers: dict[str, str], employee_headers: dict[str, str]
    ) -> None:
        own = await _create_salary(client, admin_headers)
        other = await _create_salary(client, admin_headers, employee_id="EMP011")

        response = await client.get("/api/salaries/employee/EMP010", headers=employee_headers)
        assert response.status_code == 200
        assert [s["id"] for s in response.json()["data"]["items"]] == [own["id"]]

        response = await client.get("/api/salaries/employee/EMP011", headers=employee_headers)
        assert response.status_code == 403
        assert response.json()["reason"] == "not_self"

        assert (await client.get(f"/api/salaries/{own['id']}", headers=employee_headers)).status_code == 200
        assert (await client.get(f"/api/salaries/{other['id']}", headers=employee_headers)).status_code == 403

    async def test_approve_via_update(self, client: AsyncClient, manager_headers: dict[str, str]) -> None:
        salary = await _create_salary(client, manager_headers)
        response = await client.put(
            f"/api/salaries/{salary['id']}", headers=manager_headers, json={"status": "approved", "bonus": "500"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "approved"
        assert data["approved_by_name"] == "Mo Manager"
        assert Decimal(data["total_salary"]) == Decimal("48500.00")

    async def test_delete_then_missing(self, client: AsyncClient, admin_headers: dict[str, str]) -> None:
        salary = await _create_salary(client, admin_headers)
        response = await client.delete(f"/api/salaries/{salary['id']}", headers=admin_headers)
        assert response.status_code == 200

        response = await client.get(f"/api/salaries/{salary['id']}", headers=admin_headers)
        assert response.status_code == 404


@pytest.mark.usefixtures("employees")
class TestAdvanceSalary:
    """Tests for /api/advance-salary."""

    async def test_employee_requests_own_advance(
        self, client: AsyncClient, employee_headers: dict[str, str]
    ) -> None:
        data = await _request_advance(client, employee_headers)
        assert data["status"] == "pending"
        assert Decimal(data["monthly_deduction"]) == Decimal("6000.00")

    async def test_employee_cannot_request_for_others(
        self, client: AsyncClient, employee_headers: dict[str, str]
    ) -> None:
        response = await client.post(
            "/api/advance-salary",
            headers=employee_headers,
            json={"employee_id": "EMP011", "amount": "100.00", "reason": "x"},
        )
        assert response.status_code == 403

    async def test_second_open_request_conflicts(
        self, client: AsyncClient, employee_headers: dict[str, str]
    ) -> None:
        await _request_advance(client, employee_headers)
        response = await client.post(
            "/api/advance-salary",
            headers=employee_headers,
            json={"employee_id": "EMP010", "amount": "100.00", "reason": "Again"},
        )
        assert response.status_code == 409

    async def test_employee_cannot_approve(self, client: AsyncClient, employee_headers: dict[str, str]) -> None:
        advance = await _request_advance(client, employee_headers)
        response = await client.put(f"/api/advance-salary/{advance['id']}/approve", headers=employee_headers)
        assert response.status_code == 403

    async def test_full_lifecycle_and_summary(
        self, client: AsyncClient, employee_headers: dict[str, str], manager_headers: dict[str, str]
    ) -> None:
        advance = await _request_advance(client, employee_headers)

        response = await client.put(
            f"/api/advance-salary/{advance['id']}/pay",
            headers=manager_headers,
            json={"payment_method": "cash", "deduction_start_month": "2025-05"},
        )
        assert response.status_code == 400
        assert response.json()["reason"] == "invalid_state"

        response = await client.put(f"/api/advance-salary/{advance['id']}/approve", headers=manager_headers)
        assert response.status_code == 200
        assert response.json()["data"]["approved_by_name"] == "Mo Manager"

        response = await client.put(
            f"/api/advance-salary/{advance['id']}/pay",
            headers=manager_headers,
            json={"payment_method": "cash", "deduction_start_month": "2025-05"},
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "paid"

        response = await client.get("/api/advance-salary/employee/EMP010/summary", headers=employee_headers)
        assert response.status_code == 200
        summary = response.json()["data"]
        assert Decimal(summary["total_advance_amount"]) == Decimal("6000.00")
        assert len(summary["pending_advances"]) == 1

        response = await client.get("/api/advance-salary/employee/EMP011/summary", headers=employee_headers)
        assert response.status_code == 403

    async def test_bad_start_month(self, client: AsyncClient, manager_headers: dict[str, str]) -> None:
        advance = await _request_advance(client, manager_headers)
        await client.put(f"/api/advance-salary/{advance['id']}/approve", headers=manager_headers)
        response = await client.put(
            f"/api/advance-salary/{advance['id']}/pay",
            headers=manager_headers,
            json={"payment_method": "cash", "deduction_start_month": "2025-13"},
        )
        assert response.status_code == 422

    async def test_reject_then_delete(
        self, client: AsyncClient, employee_headers: dict[str, str], admin_headers: dict[str, str]
    ) -> None:
        advance = await _request_advance(client, employee_headers)
        response = await client.put(
            f"/api/advance-salary/{advance['id']}/reject",
            headers=admin_headers,
            json={"rejection_reason": "Outstanding advance elsewhere"},
        )
        assert response.status_code == 200
        assert response.json()["data"]["rejection_reason"] == "Outstanding advance elsewhere"

        response = await client.delete(f"/api/advance-salary/{advance['id']}", headers=admin_headers)
        assert response.status_code == 200
        response = await client.get(f"/api/advance-salary/{advance['id']}", headers=admin_headers)
        assert response.status_code == 404
