# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from vacation_engine.models.base import TenantMixin, UUIDBase, now_utc


class VacationAuditLog(UUIDBase, TenantMixin, table=True):
    """Immutable record of one vacation state mutation.

    Snapshots hold identifiers, statuses and day counts only.
    """

    __tablename__ = "vacation_audit_log"
    __table_args__ = (
        sa.Index("ix_vacation_audit_employee", "company_id", "employee_id"),
        sa.Index("ix_vacation_audit_request", "request_id", "action"),
    )

    employee_id: uuid.UUID = Field(sa_type=sa.Uuid)
    action: str = Field(max_length=50)
    request_id: uuid.UUID | None = Field(default=None, sa_type=sa.Uuid)
    performed_by: uuid.UUID = Field(sa_type=sa.Uuid)
    previous_state: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    new_state: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    quantity: float | None = None
    description: str | None = None
    timestamp: datetime = Field(
        default_factory=now_utc,
        index=True,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )


class AuditReport(UUIDBase, TenantMixin, table=True):
    """Findings of one audit run for one company."""

    __tablename__ = "vacation_audit_report"

    timestamp: datetime = Field(
        default_factory=now_utc,
        index=True,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
    )
    status: str = Field(max_length=20, index=True)
    findings: dict[str, Any] = Field(default_factory=dict, sa_type=sa.JSON)
    notification_sent: bool = False
    notification_error: str | None = None
