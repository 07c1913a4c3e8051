# ruff: noqa: TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter

from leave_engine.api.deps import AdminDep, AuthDep
from leave_engine.schemas.employee import DepartmentListResponse, DepartmentResponse, UpsertDepartmentRequest
from leave_engine.services.department import DepartmentInfo, get_department_service

departments_router = APIRouter(prefix="/departments", tags=["departments"])


@departments_router.put("/{department_id}", response_model=DepartmentResponse)
async def upsert_department(
    department_id: uuid.UUID,
    payload: UpsertDepartmentRequest,
    auth: AdminDep,
) -> DepartmentResponse:
    """Create or rename a department in the stub registry (admin only)."""
    department = DepartmentInfo(id=department_id, name=payload.name)
    get_department_service().seed(department)  # ty: ignore[unresolved-attribute]
    return DepartmentResponse(id=department.id, name=department.name)


@departments_router.get("", response_model=DepartmentListResponse)
async def list_departments(auth: AuthDep) -> DepartmentListResponse:
    """List departments from the registry."""
    departments = await get_department_service().list_departments()
    return DepartmentListResponse(
        items=[DepartmentResponse(id=d.id, name=d.name) for d in departments],
        total=len(departments),
    )
