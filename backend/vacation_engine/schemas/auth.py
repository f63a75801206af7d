# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from vacation_engine.models.enums import Role


class AuthContext(BaseModel):
    """Pre-authenticated caller identity supplied by the gateway headers."""

    company_id: uuid.UUID
    user_id: uuid.UUID
    role: Role = Role.EMPLOYEE

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_hr_or_admin(self) -> bool:
        return self.role in (Role.HR, Role.ADMIN)
