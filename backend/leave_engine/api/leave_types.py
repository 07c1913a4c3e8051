from __future__ import annotations

from fastapi import APIRouter

from leave_engine.api.deps import AuthDep
from leave_engine.schemas.catalog import LeaveTypeDefinition, LeaveTypeListResponse
from leave_engine.services.catalog import get_catalog

leave_types_router = APIRouter(prefix="/leave-types", tags=["leave-types"])


@leave_types_router.get("", response_model=LeaveTypeListResponse)
async def list_leave_types(auth: AuthDep) -> LeaveTypeListResponse:
    """List every leave type with its entitlement and certificate rules."""
    definitions = get_catalog().definitions()
    return LeaveTypeListResponse(items=definitions, total=len(definitions))


@leave_types_router.get("/{leave_type}", response_model=LeaveTypeDefinition)
async def get_leave_type(leave_type: str, auth: AuthDep) -> LeaveTypeDefinition:
    """Get one leave type definition."""
    return get_catalog().lookup(leave_type)
