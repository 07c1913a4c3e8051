# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated, Literal

from fastapi import Depends, Header

from leave_engine.exceptions import Forbidden
from leave_engine.schemas.auth import AuthContext


async def get_auth_context(
    x_user_id: uuid.UUID = Header(),
    x_role: Literal["employee", "admin"] = Header(default="employee"),
) -> AuthContext:
    """Extract the acting user from request headers."""
    return AuthContext(user_id=x_user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require the admin (approver) role for the request."""
    if not auth.is_admin:
        raise Forbidden("Admin access required")
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]
