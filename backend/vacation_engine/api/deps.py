# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header, Path

from vacation_engine.exceptions import NotAuthorized
from vacation_engine.models.enums import Role
from vacation_engine.schemas.auth import AuthContext


async def get_auth_context(
    x_company_id: uuid.UUID = Header(),
    x_user_id: uuid.UUID = Header(),
    x_role: str = Header(default="employee"),
) -> AuthContext:
    """Extract the pre-authenticated caller from gateway headers."""
    try:
        role = Role(x_role.lower())
    except ValueError:
        msg = f"Unknown role '{x_role}'"
        raise NotAuthorized(msg) from None
    return AuthContext(company_id=x_company_id, user_id=x_user_id, role=role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_hr_or_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require the HR or admin role for the request."""
    if not auth.is_hr_or_admin:
        raise NotAuthorized("HR or admin access required")
    return auth


HRDep = Annotated[AuthContext, Depends(require_hr_or_admin)]


async def validate_company_scope(
    company_id: uuid.UUID = Path(),
    auth: AuthContext = Depends(get_auth_context),
) -> AuthContext:
    """Ensure the path company_id matches the auth header company_id."""
    if company_id != auth.company_id:
        raise NotAuthorized("Company ID mismatch")
    return auth
