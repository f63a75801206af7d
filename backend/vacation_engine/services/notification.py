# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationSink(Protocol):
    """Receives CRITICAL audit outcomes. Delivery is best effort."""

    async def notify(self, company_id: uuid.UUID, severity: str, findings: dict[str, Any]) -> None:
        """Deliver an alert. May raise; callers must not let that fail the audit."""
        ...


class LoggingNotificationSink:
    """Default sink: writes the alert to the application log."""

    async def notify(self, company_id: uuid.UUID, severity: str, findings: dict[str, Any]) -> None:
        summary = findings.get("summary", {})
        logger.warning(
            "Vacation audit alert company=%s severity=%s errors=%s critical=%s",
            company_id,
            severity,
            summary.get("total_errors"),
            summary.get("critical_errors"),
        )


@dataclass
class SentNotification:
    company_id: uuid.UUID
    severity: str
    findings: dict[str, Any]


class InMemoryNotificationSink:
    """Collects alerts in memory so tests can assert on them."""

    def __init__(self, fail_with: Exception | None = None) -> None:
        self.sent: list[SentNotification] = []
        self._fail_with = fail_with

    async def notify(self, company_id: uuid.UUID, severity: str, findings: dict[str, Any]) -> None:
        if self._fail_with is not None:
            raise self._fail_with
        self.sent.append(SentNotification(company_id=company_id, severity=severity, findings=findings))


_notification_sink: NotificationSink = LoggingNotificationSink()


def get_notification_sink() -> NotificationSink:
    """Return the configured alert sink."""
    return _notification_sink


def set_notification_sink(sink: NotificationSink) -> None:
    """Override the sink (for testing or production wiring)."""
    global _notification_sink
    _notification_sink = sink
