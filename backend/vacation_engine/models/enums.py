from __future__ import annotations

import enum


class CalculationBase(enum.IntEnum):
    """Calendar convention used as the accrual denominator."""

    COMMERCIAL = 360
    CALENDAR = 365


class RequestStatus(enum.StrEnum):
    """States of the double-approval vacation workflow."""

    REQUESTED = "requested"
    LEADER_APPROVED = "leader_approved"
    LEADER_REJECTED = "leader_rejected"
    HR_APPROVED = "hr_approved"
    HR_REJECTED = "hr_rejected"
    SCHEDULED = "scheduled"
    ENJOYED = "enjoyed"
    CANCELLED = "cancelled"


class RequestAction(enum.StrEnum):
    """Inputs to the request state machine."""

    LEADER_APPROVE = "leader_approve"
    LEADER_REJECT = "leader_reject"
    HR_APPROVE = "hr_approve"
    HR_REJECT = "hr_reject"
    SCHEDULE = "schedule"
    ENJOY = "enjoy"
    CANCEL = "cancel"


class RejectionStage(enum.StrEnum):
    LEADER = "leader"
    HR = "hr"


class Role(enum.StrEnum):
    """Caller roles supplied by the identity provider."""

    EMPLOYEE = "employee"
    LEADER = "leader"
    HR = "hr"
    ADMIN = "admin"


class SuspensionReason(enum.StrEnum):
    """Why an interval is excluded from accrual."""

    UNPAID_LEAVE = "unpaid_leave"
    DISCIPLINARY = "disciplinary"
    OTHER = "other"


class HistoricalVacationType(enum.StrEnum):
    ENJOYED = "enjoyed"
    COMPENSATED = "compensated"


class AuditAction(enum.StrEnum):
    """Action recorded in the vacation audit trail."""

    REQUEST = "request"
    APPROVE = "approve"
    REJECT = "reject"
    SCHEDULE = "schedule"
    ENJOY = "enjoy"
    ACCRUE = "accrue"
    CANCEL = "cancel"
    UPDATE = "update"


class Severity(enum.StrEnum):
    """Audit finding severity. CRITICAL triggers a notification."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class AuditStatus(enum.StrEnum):
    """Roll-up of an audit run: FAILED if any error, WARNING if any warning."""

    PASSED = "PASSED"
    WARNING = "WARNING"
    FAILED = "FAILED"
