# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


class DepartmentInfo(BaseModel):
    """Department metadata from the department registry."""

    id: uuid.UUID
    name: str


@runtime_checkable
class DepartmentService(Protocol):
    """Interface for the department registry."""

    async def find_department_id(self, name: str) -> uuid.UUID | None:
        """Resolve a department name to its id. Returns None if unknown."""
        ...

    async def list_departments(self) -> list[DepartmentInfo]:
        ...


class InMemoryDepartmentService:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._departments: dict[uuid.UUID, DepartmentInfo] = {}

    def seed(self, department: DepartmentInfo) -> None:
        """Seed a department for testing."""
        self._departments[department.id] = department

    async def find_department_id(self, name: str) -> uuid.UUID | None:
        wanted = name.strip().casefold()
        for department in self._departments.values():
            if department.name.casefold() == wanted:
                return department.id
        return None

    async def list_departments(self) -> list[DepartmentInfo]:
        return sorted(self._departments.values(), key=lambda d: d.name)


_department_service: DepartmentService = InMemoryDepartmentService()


def get_department_service() -> DepartmentService:
    """FastAPI dependency for the department registry."""
    return _department_service


def set_department_service(service: DepartmentService) -> None:
    """Override the service (for testing or production wiring)."""
    global _department_service
    _department_service = service
