"""Tests for the request lifecycle: submit, approve, reject, cancel, balance
effects, certificate rules, concurrency and audit.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import date
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import func, select
from sqlmodel import col

from conftest import ADMIN_HEADERS, ADMIN_ID, EMPLOYEE_HEADERS, EMPLOYEE_ID, FINANCE_ID, OTHER_EMPLOYEE_ID
from leave_engine.config import reset_settings
from leave_engine.exceptions import InvalidTransition
from leave_engine.models.audit import AuditLog
from leave_engine.models.request import LeaveRequest
from leave_engine.schemas.auth import AuthContext
from leave_engine.schemas.request import RejectPayload, SubmitRequestPayload
from leave_engine.services import request as request_service
from leave_engine.services.employee import EmployeeInfo

if TYPE_CHECKING:
    from httpx import AsyncClient, Response
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.services.employee import InMemoryEmployeeService

pytestmark = pytest.mark.usefixtures("directory", "departments")

YEAR = 2027
OTHER_HEADERS = {"X-User-Id": str(OTHER_EMPLOYEE_ID), "X-Role": "employee"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _payload(**overrides: Any) -> dict[str, Any]:
    # 2027-03-01 is a Monday; the default request covers Mon-Wed.
    data: dict[str, Any] = {
        "employee_id": str(EMPLOYEE_ID),
        "leave_type": "annual",
        "start_date": "2027-03-01",
        "end_date": "2027-03-03",
        "reason": "Family visit in Baucau",
    }
    data.update(overrides)
    return data


async def _submit(client: AsyncClient, headers: dict[str, str] | None = None, **overrides: Any) -> Response:
    return await client.post("/requests", json=_payload(**overrides), headers=headers or EMPLOYEE_HEADERS)


async def _balance(client: AsyncClient, leave_type: str = "annual") -> dict[str, Any]:
    response = await client.get(
        f"/employees/{EMPLOYEE_ID}/balances/{leave_type}", params={"year": YEAR}, headers=EMPLOYEE_HEADERS
    )
    assert response.status_code == 200
    return response.json()


async def _enroll(client: AsyncClient) -> None:
    response = await client.post(
        f"/employees/{EMPLOYEE_ID}/balances/enroll", json={"period_year": YEAR}, headers=ADMIN_HEADERS
    )
    assert response.status_code == 200


async def _approve(client: AsyncClient, request_id: str, note: str | None = None) -> Response:
    return await client.post(f"/requests/{request_id}/approve", json={"note": note}, headers=ADMIN_HEADERS)


async def _reject(client: AsyncClient, request_id: str, reason: str | None = "Peak period") -> Response:
    return await client.post(f"/requests/{request_id}/reject", json={"reason": reason}, headers=ADMIN_HEADERS)


async def _request_count(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(LeaveRequest))
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Submit
# ---------------------------------------------------------------------------


async def test_submit_creates_pending_request(async_client: AsyncClient) -> None:
    response = await _submit(async_client)

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["duration"] == 3
    assert data["period_year"] == YEAR
    assert data["employee_name"] == "Maria Soares"
    assert data["department"] == "Finance"
    assert data["department_id"] == str(FINANCE_ID)
    assert data["half_day"] is False
    assert data["half_day_period"] is None
    assert data["certificate_missing"] is False


async def test_submit_holds_days_on_balance(async_client: AsyncClient) -> None:
    await _submit(async_client)

    balance = await _balance(async_client)
    assert balance["entitled"] == 12
    assert balance["pending"] == 3
    assert balance["used"] == 0
    assert balance["remaining"] == 9


async def test_submit_over_balance_changes_nothing(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await _enroll(async_client)

    # Mon 1 March to Wed 17 March: 13 working days against 12 entitled.
    response = await _submit(async_client, end_date="2027-03-17")

    assert response.status_code == 400
    assert response.json()["error"] == "InsufficientBalance"
    balance = await _balance(async_client)
    assert balance["pending"] == 0
    assert balance["remaining"] == 12
    assert balance["version"] == 1
    assert await _request_count(db_session) == 0


async def test_failed_submit_does_not_keep_lazy_balance(async_client: AsyncClient) -> None:
    response = await _submit(async_client, end_date="2027-03-17")
    assert response.status_code == 400

    response = await async_client.get(
        f"/employees/{EMPLOYEE_ID}/balances/annual", params={"year": YEAR}, headers=EMPLOYEE_HEADERS
    )
    assert response.status_code == 404


async def test_submit_excludes_weekend(async_client: AsyncClient) -> None:
    response = await _submit(async_client, start_date="2027-03-05", end_date="2027-03-08")
    assert response.json()["duration"] == 2


async def test_submit_excludes_holidays(async_client: AsyncClient) -> None:
    await async_client.post("/holidays", json={"date": "2027-03-02", "name": "Carnival"}, headers=ADMIN_HEADERS)

    response = await _submit(async_client)
    assert response.json()["duration"] == 2


async def test_submit_counts_holidays_when_disabled(
    async_client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("EXCLUDE_HOLIDAYS", "false")
    reset_settings()
    await async_client.post("/holidays", json={"date": "2027-03-02", "name": "Carnival"}, headers=ADMIN_HEADERS)

    response = await _submit(async_client)
    assert response.json()["duration"] == 3


async def test_submit_half_day(async_client: AsyncClient) -> None:
    response = await _submit(async_client, end_date="2027-03-01", half_day=True)

    assert response.status_code == 201
    data = response.json()
    assert data["duration"] == 0.5
    assert data["half_day_period"] == "morning"
    assert (await _balance(async_client))["remaining"] == 11.5


async def test_submit_half_day_afternoon(async_client: AsyncClient) -> None:
    response = await _submit(async_client, end_date="2027-03-01", half_day=True, half_day_period="afternoon")
    assert response.json()["half_day_period"] == "afternoon"


async def test_half_day_over_two_dates(async_client: AsyncClient) -> None:
    response = await _submit(async_client, end_date="2027-03-02", half_day=True)
    assert response.status_code == 422
    assert response.json()["error"] == "InvalidHalfDayRange"


async def test_half_day_on_weekend(async_client: AsyncClient) -> None:
    response = await _submit(async_client, start_date="2027-03-06", end_date="2027-03-06", half_day=True)
    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"


async def test_half_day_period_without_half_day(async_client: AsyncClient) -> None:
    response = await _submit(async_client, half_day_period="morning")
    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"


async def test_weekend_only_request(async_client: AsyncClient) -> None:
    response = await _submit(async_client, start_date="2027-03-06", end_date="2027-03-07")
    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"


async def test_start_after_end(async_client: AsyncClient) -> None:
    response = await _submit(async_client, start_date="2027-03-05", end_date="2027-03-01")
    assert response.status_code == 422
    assert response.json()["error"] == "InvalidRange"


async def test_blank_reason(async_client: AsyncClient) -> None:
    response = await _submit(async_client, reason="   ")
    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"


async def test_missing_field(async_client: AsyncClient) -> None:
    payload = _payload()
    del payload["start_date"]
    response = await async_client.post("/requests", json=payload, headers=EMPLOYEE_HEADERS)
    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"


async def test_unknown_leave_type(async_client: AsyncClient) -> None:
    response = await _submit(async_client, leave_type="sabbatical")
    assert response.status_code == 404
    assert response.json()["error"] == "UnknownLeaveType"


async def test_unknown_employee(async_client: AsyncClient) -> None:
    response = await _submit(async_client, employee_id=str(uuid.uuid4()))
    assert response.status_code == 404
    assert response.json()["error"] == "EmployeeNotFound"


async def test_employee_without_department(async_client: AsyncClient, directory: InMemoryEmployeeService) -> None:
    newcomer = EmployeeInfo(id=uuid.uuid4(), first_name="Ana", last_name="Guterres", email="ana@example.tl")
    directory.seed(newcomer)

    response = await _submit(async_client, employee_id=str(newcomer.id))

    data = response.json()
    assert data["department"] == "Unassigned"
    assert data["department_id"] is None


async def test_request_charged_to_start_year(async_client: AsyncClient) -> None:
    # Fri 31 Dec 2027 to Mon 3 Jan 2028.
    response = await _submit(async_client, start_date="2027-12-31", end_date="2028-01-03")
    data = response.json()
    assert data["period_year"] == YEAR
    assert data["duration"] == 2


# ---------------------------------------------------------------------------
# Certificates
# ---------------------------------------------------------------------------


async def test_sick_leave_over_threshold_requires_certificate(async_client: AsyncClient) -> None:
    await _enroll(async_client)

    response = await _submit(async_client, leave_type="sick", end_date="2027-03-12")

    assert response.status_code == 422
    assert response.json()["error"] == "CertificateRequired"
    assert "Medical Certificate" in response.json()["detail"]
    balance = await _balance(async_client, "sick")
    assert balance["pending"] == 0
    assert balance["remaining"] == 12


async def test_sick_leave_with_certificate(async_client: AsyncClient) -> None:
    response = await _submit(async_client, leave_type="sick", end_date="2027-03-12", has_certificate=True)
    assert response.status_code == 201
    assert response.json()["certificate_kind"] == "Medical Certificate"


async def test_short_sick_leave_needs_no_certificate(async_client: AsyncClient) -> None:
    response = await _submit(async_client, leave_type="sick")
    assert response.status_code == 201


async def test_paternity_always_requires_certificate(async_client: AsyncClient) -> None:
    response = await _submit(async_client, leave_type="paternity", end_date="2027-03-01")
    assert response.status_code == 422
    assert "Birth Certificate" in response.json()["detail"]


async def test_flag_mode_accepts_and_marks_missing_certificate(
    async_client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("CERTIFICATE_ENFORCEMENT", "flag")
    reset_settings()

    response = await _submit(async_client, leave_type="sick", end_date="2027-03-12")

    assert response.status_code == 201
    assert response.json()["certificate_missing"] is True


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


async def test_approve_moves_pending_to_used(async_client: AsyncClient) -> None:
    submitted = (await _submit(async_client)).json()

    response = await _approve(async_client, submitted["id"], note="Enjoy")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "approved"
    assert data["decided_by"] == str(ADMIN_ID)
    assert data["decided_at"] is not None
    assert data["decision_note"] == "Enjoy"
    assert data["pay_breakdown"]["full_pay_days"] == 3
    balance = await _balance(async_client)
    assert balance["used"] == 3
    assert balance["pending"] == 0
    assert balance["remaining"] == 9


async def test_sick_pay_breakdown_crosses_into_half_pay(async_client: AsyncClient) -> None:
    first = (await _submit(async_client, leave_type="sick", end_date="2027-03-05", has_certificate=True)).json()
    await _approve(async_client, first["id"])

    second = (await _submit(async_client, leave_type="sick", start_date="2027-03-08", end_date="2027-03-10")).json()
    response = await _approve(async_client, second["id"])

    breakdown = response.json()["pay_breakdown"]
    assert breakdown["full_pay_days"] == 1
    assert breakdown["reduced_pay_days"] == 2
    assert breakdown["reduced_pay_rate"] == 0.5


async def test_reject_releases_days(async_client: AsyncClient) -> None:
    submitted = (await _submit(async_client)).json()

    response = await _reject(async_client, submitted["id"], reason="Year-end closing")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "rejected"
    assert data["rejection_reason"] == "Year-end closing"
    balance = await _balance(async_client)
    assert balance["pending"] == 0
    assert balance["used"] == 0
    assert balance["remaining"] == 12


async def test_reject_requires_reason(async_client: AsyncClient) -> None:
    submitted = (await _submit(async_client)).json()

    response = await _reject(async_client, submitted["id"], reason=" ")

    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"
    assert (await _balance(async_client))["pending"] == 3


async def test_second_decision_is_invalid_transition(async_client: AsyncClient) -> None:
    submitted = (await _submit(async_client)).json()
    await _approve(async_client, submitted["id"])

    response = await _reject(async_client, submitted["id"])
    assert response.status_code == 409
    assert response.json()["error"] == "InvalidTransition"

    response = await _approve(async_client, submitted["id"])
    assert response.status_code == 409
    assert (await _balance(async_client))["used"] == 3


async def test_employee_cannot_approve(async_client: AsyncClient) -> None:
    submitted = (await _submit(async_client)).json()
    response = await async_client.post(f"/requests/{submitted['id']}/approve", headers=EMPLOYEE_HEADERS)
    assert response.status_code == 403


async def test_approve_unknown_request(async_client: AsyncClient) -> None:
    response = await _approve(async_client, str(uuid.uuid4()))
    assert response.status_code == 404
    assert response.json()["error"] == "NotFound"


async def test_reject_unknown_request_without_reason(async_client: AsyncClient) -> None:
    response = await _reject(async_client, str(uuid.uuid4()), reason=None)
    assert response.status_code == 404
    assert response.json()["error"] == "NotFound"


# ---------------------------------------------------------------------------
# Cancel
# ---------------------------------------------------------------------------


async def test_owner_cancels_pending_request(async_client: AsyncClient) -> None:
    submitted = (await _submit(async_client)).json()

    response = await async_client.post(f"/requests/{submitted['id']}/cancel", headers=EMPLOYEE_HEADERS)

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    balance = await _balance(async_client)
    assert balance["pending"] == 0
    assert balance["remaining"] == 12

    response = await _approve(async_client, submitted["id"])
    assert response.status_code == 409
    assert response.json()["error"] == "InvalidTransition"


async def test_other_employee_cannot_cancel(async_client: AsyncClient) -> None:
    submitted = (await _submit(async_client)).json()
    response = await async_client.post(f"/requests/{submitted['id']}/cancel", headers=OTHER_HEADERS)
    assert response.status_code == 403
    assert (await _balance(async_client))["pending"] == 3


async def test_admin_can_cancel(async_client: AsyncClient) -> None:
    submitted = (await _submit(async_client)).json()
    response = await async_client.post(f"/requests/{submitted['id']}/cancel", headers=ADMIN_HEADERS)
    assert response.status_code == 200


async def test_cannot_cancel_approved_request(async_client: AsyncClient) -> None:
    submitted = (await _submit(async_client)).json()
    await _approve(async_client, submitted["id"])

    response = await async_client.post(f"/requests/{submitted['id']}/cancel", headers=EMPLOYEE_HEADERS)
    assert response.status_code == 409
    assert (await _balance(async_client))["used"] == 3


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def test_get_request(async_client: AsyncClient) -> None:
    submitted = (await _submit(async_client)).json()
    response = await async_client.get(f"/requests/{submitted['id']}", headers=EMPLOYEE_HEADERS)
    assert response.status_code == 200
    assert response.json()["id"] == submitted["id"]


async def test_get_unknown_request(async_client: AsyncClient) -> None:
    response = await async_client.get(f"/requests/{uuid.uuid4()}", headers=EMPLOYEE_HEADERS)
    assert response.status_code == 404


async def test_list_requests_filters(async_client: AsyncClient) -> None:
    first = (await _submit(async_client)).json()
    await _submit(async_client, leave_type="sick", start_date="2027-04-05", end_date="2027-04-05")
    await _submit(async_client, headers=OTHER_HEADERS, employee_id=str(OTHER_EMPLOYEE_ID))
    await _approve(async_client, first["id"])

    response = await async_client.get("/requests", headers=ADMIN_HEADERS)
    assert response.json()["total"] == 3

    response = await async_client.get("/requests", params={"status": "approved"}, headers=ADMIN_HEADERS)
    assert [r["id"] for r in response.json()["items"]] == [first["id"]]

    response = await async_client.get("/requests", params={"employee_id": str(EMPLOYEE_ID)}, headers=ADMIN_HEADERS)
    assert response.json()["total"] == 2

    response = await async_client.get("/requests", params={"leave_type": "sick"}, headers=ADMIN_HEADERS)
    assert response.json()["total"] == 1

    response = await async_client.get(
        "/requests", params={"start_date": "2027-04-01", "end_date": "2027-04-30"}, headers=ADMIN_HEADERS
    )
    assert response.json()["total"] == 1

    response = await async_client.get("/requests", params={"department_id": str(FINANCE_ID)}, headers=ADMIN_HEADERS)
    assert response.json()["total"] == 3


async def test_list_requests_pagination(async_client: AsyncClient) -> None:
    for day in ("2027-03-01", "2027-03-02", "2027-03-03"):
        await _submit(async_client, start_date=day, end_date=day)

    response = await async_client.get("/requests", params={"offset": 1, "limit": 1}, headers=ADMIN_HEADERS)
    data = response.json()
    assert data["total"] == 3
    assert len(data["items"]) == 1


async def test_list_requests_invalid_status(async_client: AsyncClient) -> None:
    response = await async_client.get("/requests", params={"status": "archived"}, headers=ADMIN_HEADERS)
    assert response.status_code == 422


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


async def test_lifecycle_is_audited(async_client: AsyncClient, db_session: AsyncSession) -> None:
    submitted = (await _submit(async_client)).json()
    await _approve(async_client, submitted["id"])

    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_id) == uuid.UUID(submitted["id"]))
    )
    entries = {entry.action: entry for entry in result.scalars().all()}
    assert set(entries) == {"SUBMIT", "APPROVE"}
    assert entries["SUBMIT"].actor_id == EMPLOYEE_ID
    assert entries["APPROVE"].before_json is not None
    assert entries["APPROVE"].before_json["status"] == "pending"
    assert entries["APPROVE"].after_json is not None
    assert entries["APPROVE"].after_json["status"] == "approved"


async def test_audit_log_endpoint(async_client: AsyncClient) -> None:
    submitted = (await _submit(async_client)).json()

    response = await async_client.get(
        "/audit-log", params={"entity_type": "REQUEST", "entity_id": submitted["id"]}, headers=ADMIN_HEADERS
    )
    assert response.status_code == 200
    assert [e["action"] for e in response.json()["items"]] == ["SUBMIT"]

    response = await async_client.get("/audit-log", headers=EMPLOYEE_HEADERS)
    assert response.status_code == 403


# ---------------------------------------------------------------------------
# In-process serialization
# ---------------------------------------------------------------------------


async def test_simultaneous_submits_against_last_day(async_client: AsyncClient) -> None:
    # Use 11 of 12 days so exactly one day remains.
    response = await _submit(async_client, end_date="2027-03-15")
    assert response.json()["duration"] == 11

    results = await asyncio.gather(
        _submit(async_client, start_date="2027-04-05", end_date="2027-04-05"),
        _submit(async_client, start_date="2027-04-06", end_date="2027-04-06"),
    )

    assert sorted(r.status_code for r in results) == [201, 400]
    balance = await _balance(async_client)
    assert balance["pending"] == 12
    assert balance["remaining"] == 0


async def test_simultaneous_decisions(async_client: AsyncClient) -> None:
    submitted = (await _submit(async_client)).json()

    results = await asyncio.gather(
        _approve(async_client, submitted["id"]),
        _reject(async_client, submitted["id"]),
    )

    assert sorted(r.status_code for r in results) == [200, 409]
    balance = await _balance(async_client)
    assert balance["pending"] == 0
    assert balance["used"] + balance["remaining"] == 12


async def test_reject_at_service_level_then_approve(db_session: AsyncSession) -> None:
    employee = AuthContext(user_id=EMPLOYEE_ID)
    admin = AuthContext(user_id=ADMIN_ID, role="admin")
    submitted = await request_service.submit_request(
        db_session,
        employee,
        SubmitRequestPayload(
            employee_id=EMPLOYEE_ID,
            leave_type="marriage",
            start_date=date(2027, 5, 3),
            end_date=date(2027, 5, 7),
            reason="Wedding",
            has_certificate=True,
        ),
    )

    rejected = await request_service.reject_request(db_session, admin, submitted.id, RejectPayload(reason="No cover"))
    assert rejected.status == "rejected"

    with pytest.raises(InvalidTransition):
        await request_service.approve_request(db_session, admin, submitted.id)
