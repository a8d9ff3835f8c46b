"""Integration tests for the attendance and leave request endpoints."""

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

_ENTRY = {
    "employee_id": "EMP010",
    "attendance_date": "2025-03-03",
    "check_in": "2025-03-03T09:00:00Z",
    "check_out": "2025-03-03T18:30:00Z",
    "break_minutes": 30,
}
_LEAVE = {
    "employee_id": "EMP010",
    "leave_type": "sick",
    "start_date": "2025-06-02",
    "end_date": "2025-06-03",
    "reason": "Flu",
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


@pytest.mark.usefixtures("employees")
class TestAttendance:
    """Tests for /api/attendance."""

    async def test_check_in_and_out(self, client: AsyncClient, employee_headers: dict[str, str]) -> None:
        response = await client.post("/api/attendance/check-in", headers=employee_headers, json={"location": "home"})
        assert response.status_code == 201
        assert response.json()["data"]["employee_id"] == "EMP010"
        assert response.json()["data"]["location"] == "home"

        response = await client.post("/api/attendance/check-in", headers=employee_headers, json={})
        assert response.status_code == 409

        response = await client.post("/api/attendance/check-out", headers=employee_headers, json={})
        assert response.status_code == 200
        assert response.json()["data"]["check_out"] is not None

        response = await client.post("/api/attendance/check-out", headers=employee_headers, json={})
        assert response.status_code == 400
        assert response.json()["reason"] == "already_checked_out"

    async def test_check_out_before_check_in(self, client: AsyncClient, employee_headers: dict[str, str]) -> None:
        response = await client.post("/api/attendance/check-out", headers=employee_headers, json={})
        assert response.status_code == 400
        assert response.json()["reason"] == "not_checked_in"

    async def test_manager_records_entry(self, client: AsyncClient, manager_headers: dict[str, str]) -> None:
        response = await client.post("/api/attendance", headers=manager_headers, json=_ENTRY)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["is_manual_entry"] is True
        assert Decimal(data["working_hours"]) == Decimal("9.00")
        assert Decimal(data["overtime"]) == Decimal("1.00")
        assert data["status"] == "present"

    async def test_reversed_times_rejected(self, client: AsyncClient, manager_headers: dict[str, str]) -> None:
        response = await client.post(
            "/api/attendance", headers=manager_headers, json={**_ENTRY, "check_out": "2025-03-03T08:00:00Z"}
        )
        assert response.status_code == 422

    async def test_employee_cannot_enter_or_list(
        self, client: AsyncClient, employee_headers: dict[str, str]
    ) -> None:
        assert (await client.post("/api/attendance", headers=employee_headers, json=_ENTRY)).status_code == 403
        assert (await client.get("/api/attendance", headers=employee_headers)).status_code == 403

    async def test_summary_is_self_or_elevated(
        self, client: AsyncClient, manager_headers: dict[str, str], employee_headers: dict[str, str]
    ) -> None:
        await client.post("/api/attendance", headers=manager_headers, json=_ENTRY)
        await client.post(
            "/api/attendance", headers=manager_headers, json={**_ENTRY, "attendance_date": "2025-04-01"}
        )

        response = await client.get(
            "/api/attendance/employee/EMP010",
            headers=employee_headers,
            params={"date_from": "2025-03-01", "date_to": "2025-03-31"},
        )
        assert response.status_code == 200
        summary = response.json()["data"]
        assert summary["days_by_status"] == {"present": 1}
        assert len(summary["records"]) == 1

        response = await client.get("/api/attendance/employee/EMP011", headers=employee_headers)
        assert response.status_code == 403

    async def test_record_access(
        self,
        client: AsyncClient,
        manager_headers: dict[str, str],
        employee_headers: dict[str, str],
        admin_headers: dict[str, str],
    ) -> None:
        other = await client.post("/api/attendance", headers=manager_headers, json={**_ENTRY, "employee_id": "EMP011"})
        record_id = other.json()["data"]["id"]

        assert (await client.get(f"/api/attendance/{record_id}", headers=employee_headers)).status_code == 403
        assert (await client.delete(f"/api/attendance/{record_id}", headers=manager_headers)).status_code == 403
        assert (await client.delete(f"/api/attendance/{record_id}", headers=admin_headers)).status_code == 200
        assert (await client.get(f"/api/attendance/{record_id}", headers=admin_headers)).status_code == 404

    async def test_correction_recomputes(self, client: AsyncClient, manager_headers: dict[str, str]) -> None:
        created = await client.post("/api/attendance", headers=manager_headers, json=_ENTRY)
        response = await client.put(
            f"/api/attendance/{created.json()['data']['id']}",
            headers=manager_headers,
            json={"check_out": "2025-03-03T14:00:00Z", "break_minutes": 0},
        )

        assert response.status_code == 200
        assert Decimal(response.json()["data"]["working_hours"]) == Decimal("5.00")
        assert response.json()["data"]["status"] == "half-day"


@pytest.mark.usefixtures("employees")
class TestLeaveRequests:
    """Tests for /api/leave-requests."""

    async def test_employee_files_own_leave(self, client: AsyncClient, employee_headers: dict[str, str]) -> None:
        response = await client.post("/api/leave-requests", headers=employee_headers, json=_LEAVE)

        assert response.status_code == 201
        assert Decimal(response.json()["data"]["days"]) == 2
        assert response.json()["data"]["status"] == "pending"

    async def test_employee_cannot_file_for_others(
        self, client: AsyncClient, employee_headers: dict[str, str]
    ) -> None:
        response = await client.post(
            "/api/leave-requests", headers=employee_headers, json={**_LEAVE, "employee_id": "EMP011"}
        )
        assert response.status_code == 403

    async def test_overlap_conflicts(self, client: AsyncClient, employee_headers: dict[str, str]) -> None:
        await client.post("/api/leave-requests", headers=employee_headers, json=_LEAVE)
        response = await client.post(
            "/api/leave-requests", headers=employee_headers, json={**_LEAVE, "start_date": "2025-06-03"}
        )
        assert response.status_code == 409

    async def test_decision_flow(
        self, client: AsyncClient, employee_headers: dict[str, str], manager_headers: dict[str, str]
    ) -> None:
        created = await client.post("/api/leave-requests", headers=employee_headers, json=_LEAVE)
        leave_id = created.json()["data"]["id"]

        response = await client.put(f"/api/leave-requests/{leave_id}/approve", headers=employee_headers)
        assert response.status_code == 403

        response = await client.put(f"/api/leave-requests/{leave_id}/approve", headers=manager_headers)
        assert response.status_code == 200
        assert response.json()["data"]["approved_by_name"] == "Mo Manager"

        response = await client.put(
            f"/api/leave-requests/{leave_id}/reject", headers=manager_headers, json={"rejection_reason": "No"}
        )
        assert response.status_code == 400
        assert response.json()["reason"] == "invalid_state"

        response = await client.put(f"/api/leave-requests/{leave_id}/cancel", headers=employee_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "cancelled"

    async def test_history_is_self_or_elevated(
        self, client: AsyncClient, employee_headers: dict[str, str], manager_headers: dict[str, str]
    ) -> None:
        await client.post("/api/leave-requests", headers=employee_headers, json=_LEAVE)
        other = await client.post(
            "/api/leave-requests", headers=manager_headers, json={**_LEAVE, "employee_id": "EMP011"}
        )

        response = await client.get("/api/leave-requests/employee/EMP010", headers=employee_headers)
        assert response.status_code == 200
        assert response.json()["data"]["pagination"]["total"] == 1

        assert (await client.get("/api/leave-requests/employee/EMP011", headers=employee_headers)).status_code == 403
        leave_id = other.json()["data"]["id"]
        assert (await client.get(f"/api/leave-requests/{leave_id}", headers=employee_headers)).status_code == 403
        assert (await client.put(f"/api/leave-requests/{leave_id}/cancel", headers=employee_headers)).status_code == 403

        response = await client.get("/api/leave-requests", headers=manager_headers, params={"status": "pending"})
        assert response.json()["data"]["pagination"]["total"] == 2
