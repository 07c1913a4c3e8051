# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import Literal

from pydantic import BaseModel, Field


class UpsertEmployeeRequest(BaseModel):
    """Request body for upserting an employee in the stub directory."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=1, max_length=255)
    department: str | None = Field(default=None, max_length=255)
    status: Literal["active", "inactive"] = "active"
    hire_date: date | None = None


class EmployeeResponse(BaseModel):
    """Response schema for an employee."""

    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    department: str | None
    status: str
    hire_date: date | None


class EmployeeListResponse(BaseModel):
    """List of employees."""

    items: list[EmployeeResponse]
    total: int


class UpsertDepartmentRequest(BaseModel):
    """Request body for upserting a department in the stub registry."""

    name: str = Field(min_length=1, max_length=255)


class DepartmentResponse(BaseModel):
    """Response schema for a department."""

    id: uuid.UUID
    name: str


class DepartmentListResponse(BaseModel):
    """List of departments."""

    items: list[DepartmentResponse]
    total: int
