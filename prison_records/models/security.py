"""Security Alert and Security Log — incident records raised inside the facility."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from prison_records.models.base import LocalDateTime, Record, RequiredStr, resolve_now


class Severity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class AlertStatus(str, Enum):
    ACTIVE = "Active"
    ACKNOWLEDGED = "Acknowledged"
    RESOLVED = "Resolved"


class LogStatus(str, Enum):
    PENDING = "Pending"
    INVESTIGATING = "Investigating"
    RESOLVED = "Resolved"


class SecurityAlert(Record):
    """
    A raised alarm that must be acknowledged and resolved by staff.

    Lifecycle: Active -> Acknowledged -> Resolved. An alert may also be
    resolved straight from Active. Resolved is terminal.
    """

    id_field = "alert_id"
    lifecycle_fields = frozenset({
        "status", "triggered_at", "acknowledged_by", "acknowledged_at",
        "resolved_by", "resolved_at", "resolution_notes",
    })

    alert_id: RequiredStr
    alert_type: RequiredStr                 # e.g., "Unauthorized Access", "Emergency"
    severity: Severity
    description: RequiredStr
    location: RequiredStr
    triggered_by: Optional[str] = None      # System or employee ID
    assigned_to: Optional[str] = None
    requires_response: bool = True
    response_time_minutes: int = Field(ge=0, default=5)

    status: AlertStatus = AlertStatus.ACTIVE
    triggered_at: LocalDateTime = Field(default_factory=datetime.now)
    acknowledged_by: Optional[str] = None
    acknowledged_at: Optional[LocalDateTime] = None
    resolved_by: Optional[str] = None
    resolved_at: Optional[LocalDateTime] = None
    resolution_notes: Optional[str] = None

    @property
    def is_critical(self) -> bool:
        return self.severity == Severity.CRITICAL

    @property
    def is_open(self) -> bool:
        return self.status != AlertStatus.RESOLVED

    def acknowledge(self, acknowledged_by: str, now: Optional[datetime] = None) -> "SecurityAlert":
        return self._transition(
            "acknowledge",
            (AlertStatus.ACTIVE,),
            status=AlertStatus.ACKNOWLEDGED,
            acknowledged_by=acknowledged_by,
            acknowledged_at=resolve_now(now),
        )

    def resolve(
        self,
        resolved_by: str,
        resolution_notes: str = "",
        now: Optional[datetime] = None,
    ) -> "SecurityAlert":
        return self._transition(
            "resolve",
            (AlertStatus.ACTIVE, AlertStatus.ACKNOWLEDGED),
            status=AlertStatus.RESOLVED,
            resolved_by=resolved_by,
            resolved_at=resolve_now(now),
            resolution_notes=resolution_notes,
        )

    def assign(self, employee_id: str) -> "SecurityAlert":
        """Hand the alert to a responder. Resolved alerts cannot be reassigned."""
        return self._transition(
            "assign",
            (AlertStatus.ACTIVE, AlertStatus.ACKNOWLEDGED),
            assigned_to=employee_id,
        )


class SecurityLog(Record):
    """An audited security event (logins, denied access, breaches)."""

    id_field = "log_id"
    lifecycle_fields = frozenset({
        "status", "timestamp", "resolved_by", "resolved_at", "resolution_notes",
    })

    log_id: RequiredStr
    event_type: RequiredStr                 # e.g., "Login", "Access_Denied"
    severity: Severity
    description: RequiredStr
    location: RequiredStr
    employee_id: Optional[str] = None
    affected_entity: Optional[str] = None
    ip_address: Optional[str] = None

    status: LogStatus = LogStatus.PENDING
    timestamp: LocalDateTime = Field(default_factory=datetime.now)
    resolved_by: Optional[str] = None
    resolved_at: Optional[LocalDateTime] = None
    resolution_notes: Optional[str] = None

    @property
    def is_critical(self) -> bool:
        return self.severity == Severity.CRITICAL

    def investigate(self) -> "SecurityLog":
        return self._transition(
            "investigate",
            (LogStatus.PENDING,),
            status=LogStatus.INVESTIGATING,
        )

    def resolve(
        self,
        resolved_by: str,
        resolution_notes: str = "",
        now: Optional[datetime] = None,
    ) -> "SecurityLog":
        return self._transition(
            "resolve",
            (LogStatus.PENDING, LogStatus.INVESTIGATING),
            status=LogStatus.RESOLVED,
            resolved_by=resolved_by,
            resolved_at=resolve_now(now),
            resolution_notes=resolution_notes,
        )
