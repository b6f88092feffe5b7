"""
Security Service — alerts, security logs and access-control grants.

Behavioral Contract:
- Alerts move Active -> Acknowledged -> Resolved and never back
- Access grants are revoked, never deleted; expiry is evaluated on read
- Permission checks consider only grants that are active and unexpired
"""

import logging
from datetime import datetime
from typing import List, Optional

from prison_records.models.access import AccessControl, PermissionLevel
from prison_records.models.security import AlertStatus, SecurityAlert, SecurityLog
from prison_records.persistence.repository import Repository
from prison_records.reporting.filters import (
    compute_health_score,
    filter_by_field,
    filter_by_status,
    filter_by_time_window,
)
from prison_records.services.base import RecordService

logger = logging.getLogger(__name__)


class SecurityService(RecordService):
    def __init__(
        self,
        alerts: Repository[SecurityAlert],
        logs: Repository[SecurityLog],
        access_controls: Repository[AccessControl],
    ):
        self.alerts = alerts
        self.logs = logs
        self.access_controls = access_controls

    # --- Alerts ---

    def raise_alert(self, **fields) -> SecurityAlert:
        fields.setdefault("alert_id", self.alerts.next_id())
        alert = self._create(self.alerts, SecurityAlert.create(**fields))
        if alert.is_critical:
            logger.warning(
                f"Critical alert {alert.alert_id} at {alert.location}: {alert.description}"
            )
        return alert

    def get_alert(self, alert_id: str) -> SecurityAlert:
        return self.alerts.require(alert_id)

    def list_alerts(
        self,
        status: Optional[str] = None,
        severity: Optional[str] = None,
        hours_back: int = 0,
        now: Optional[datetime] = None,
    ) -> List[SecurityAlert]:
        alerts = filter_by_time_window(self.alerts.list_all(), "triggered_at", hours_back, now)
        if status:
            alerts = filter_by_status(alerts, status)
        if severity:
            alerts = filter_by_field(alerts, "severity", severity)
        return alerts

    def open_alerts(self) -> List[SecurityAlert]:
        """Alerts still needing attention (Active or Acknowledged)."""
        return [a for a in self.alerts.list_all() if a.is_open]

    def acknowledge_alert(
        self, alert_id: str, acknowledged_by: str, now: Optional[datetime] = None
    ) -> SecurityAlert:
        return self._apply(
            self.alerts, alert_id, "Acknowledged",
            lambda a: a.acknowledge(acknowledged_by, now),
        )

    def resolve_alert(
        self,
        alert_id: str,
        resolved_by: str,
        resolution_notes: str = "",
        now: Optional[datetime] = None,
    ) -> SecurityAlert:
        return self._apply(
            self.alerts, alert_id, "Resolved",
            lambda a: a.resolve(resolved_by, resolution_notes, now),
        )

    def assign_alert(self, alert_id: str, employee_id: str) -> SecurityAlert:
        return self._apply(
            self.alerts, alert_id, f"Assigned to {employee_id}",
            lambda a: a.assign(employee_id),
        )

    def health_score(self) -> float:
        return compute_health_score(self.alerts.list_by(status=AlertStatus.ACTIVE))

    # --- Security logs ---

    def log_event(self, **fields) -> SecurityLog:
        fields.setdefault("log_id", self.logs.next_id())
        return self._create(self.logs, SecurityLog.create(**fields))

    def get_log(self, log_id: str) -> SecurityLog:
        return self.logs.require(log_id)

    def list_logs(
        self,
        status: Optional[str] = None,
        severity: Optional[str] = None,
        hours_back: int = 0,
        now: Optional[datetime] = None,
    ) -> List[SecurityLog]:
        logs = filter_by_time_window(self.logs.list_all(), "timestamp", hours_back, now)
        if status:
            logs = filter_by_status(logs, status)
        if severity:
            logs = filter_by_field(logs, "severity", severity)
        return logs

    def investigate_log(self, log_id: str) -> SecurityLog:
        return self._apply(self.logs, log_id, "Investigating", lambda l: l.investigate())

    def resolve_log(
        self,
        log_id: str,
        resolved_by: str,
        resolution_notes: str = "",
        now: Optional[datetime] = None,
    ) -> SecurityLog:
        return self._apply(
            self.logs, log_id, "Resolved",
            lambda l: l.resolve(resolved_by, resolution_notes, now),
        )

    # --- Access control ---

    def grant_access(self, **fields) -> AccessControl:
        fields.setdefault("control_id", self.access_controls.next_id())
        return self._create(self.access_controls, AccessControl.create(**fields))

    def get_access(self, control_id: str) -> AccessControl:
        return self.access_controls.require(control_id)

    def list_access(
        self,
        employee_id: Optional[str] = None,
        module: Optional[str] = None,
        status: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[AccessControl]:
        filters = {}
        if employee_id:
            filters["employee_id"] = employee_id
        if module:
            filters["module"] = module
        grants = self.access_controls.list_by(**filters)
        if status:
            wanted = status.lower()
            grants = [g for g in grants if g.effective_status(now).value.lower() == wanted]
        return grants

    def revoke_access(
        self,
        control_id: str,
        revoked_by: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AccessControl:
        return self._apply(
            self.access_controls, control_id, "Revoked",
            lambda g: g.revoke(revoked_by, now),
        )

    def has_permission(
        self,
        employee_id: str,
        module: str,
        required: PermissionLevel,
        now: Optional[datetime] = None,
    ) -> bool:
        grants = self.access_controls.list_by(employee_id=employee_id, module=module)
        return any(g.grants(required, now) for g in grants)
