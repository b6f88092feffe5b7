"""Tests for filters, health scoring and dashboard summaries."""

from datetime import date, datetime, time, timedelta

import pytest

from prison_records.errors import ValidationError
from prison_records.models.access import AccessControl
from prison_records.models.cell import Cell
from prison_records.models.duty import GuardDuty
from prison_records.models.people import Prisoner, Visitor
from prison_records.models.security import SecurityAlert, SecurityLog
from prison_records.models.task import Task
from prison_records.models.visit import Visit
from prison_records.reporting.dashboard import (
    custody_summary,
    operations_summary,
    security_summary,
)
from prison_records.reporting.filters import (
    HEALTH_CRITICAL,
    HEALTH_DEGRADED,
    HEALTH_NOMINAL,
    compute_health_score,
    count_where,
    filter_by_field,
    filter_by_status,
    filter_by_time_window,
    search,
)

NOW = datetime(2024, 3, 15, 10, 30)


def _alert(alert_id: str, severity: str = "Medium", hours_ago: float = 1, **restore) -> SecurityAlert:
    return SecurityAlert.restore(
        alert_id=alert_id,
        alert_type="Perimeter Breach",
        severity=severity,
        description=f"Alert {alert_id}",
        location="Yard",
        triggered_at=NOW - timedelta(hours=hours_ago),
        **restore,
    )


class TestFilters:
    def test_filter_by_status_ignores_case(self):
        alerts = [
            _alert("ALT001"),
            _alert("ALT002", status="Resolved"),
            _alert("ALT003"),
        ]
        active = filter_by_status(alerts, "active")
        assert [a.alert_id for a in active] == ["ALT001", "ALT003"]
        assert filter_by_status(alerts, "RESOLVED")[0].alert_id == "ALT002"

    def test_filter_by_status_unknown_value(self):
        assert filter_by_status([_alert("ALT001")], "Exploded") == []

    def test_filter_by_field(self):
        alerts = [_alert("ALT001", "Critical"), _alert("ALT002", "Low")]
        assert filter_by_field(alerts, "severity", "critical") == [alerts[0]]

    def test_search_across_fields(self):
        alerts = [_alert("ALT001"), _alert("ALT002")]
        assert search(alerts, "alt002", ["description"]) == [alerts[1]]
        assert search(alerts, "yard", ["description", "location"]) == alerts
        assert search(alerts, "  ", ["description"]) == alerts

    def test_time_window(self):
        alerts = [
            _alert("ALT001", hours_ago=1),
            _alert("ALT002", hours_ago=30),
            _alert("ALT003", hours_ago=24),
        ]
        recent = filter_by_time_window(alerts, "triggered_at", 24, now=NOW)
        assert [a.alert_id for a in recent] == ["ALT001", "ALT003"]

    def test_zero_hours_means_no_filtering(self):
        alerts = [_alert("ALT001", hours_ago=1000)]
        assert filter_by_time_window(alerts, "triggered_at", 0, now=NOW) == alerts

    def test_negative_hours_rejected(self):
        with pytest.raises(ValidationError):
            filter_by_time_window([], "triggered_at", -1, now=NOW)

    def test_time_window_skips_missing_timestamps(self):
        acked = _alert("ALT001").acknowledge("EMP001", now=NOW)
        unacked = _alert("ALT002")
        recent = filter_by_time_window([acked, unacked], "acknowledged_at", 2, now=NOW)
        assert recent == [acked]

    def test_time_window_on_dates(self):
        task = Task.create(task_id="TSK001", task_name="Count", due_date=date(2024, 3, 15))
        assert filter_by_time_window([task], "due_date", 12, now=NOW) == [task]
        assert filter_by_time_window([task], "due_date", 10, now=NOW) == []

    def test_count_where(self):
        alerts = [_alert("ALT001", "Critical"), _alert("ALT002")]
        assert count_where(alerts, lambda a: a.is_critical) == 1


class TestHealthScore:
    def test_no_alerts_is_nominal(self):
        assert compute_health_score([]) == HEALTH_NOMINAL

    def test_critical_active_alert(self):
        alerts = [_alert("ALT001", "Critical")]
        assert compute_health_score(alerts) == HEALTH_CRITICAL

    def test_many_active_alerts_degrade(self):
        alerts = [_alert(f"ALT{i:03d}") for i in range(6)]
        assert compute_health_score(alerts) == HEALTH_DEGRADED

    def test_five_active_alerts_still_nominal(self):
        alerts = [_alert(f"ALT{i:03d}") for i in range(5)]
        assert compute_health_score(alerts) == HEALTH_NOMINAL

    def test_acknowledged_critical_does_not_count(self):
        alerts = [_alert("ALT001", "Critical", status="Acknowledged")]
        assert compute_health_score(alerts) == HEALTH_NOMINAL

    def test_critical_wins_over_count(self):
        alerts = [_alert(f"ALT{i:03d}") for i in range(10)]
        alerts.append(_alert("ALT999", "Critical"))
        assert compute_health_score(alerts) == HEALTH_CRITICAL


class TestDashboards:
    def test_security_summary(self):
        alerts = [
            _alert("ALT001", "Critical"),
            _alert("ALT002", status="Acknowledged", hours_ago=48),
            _alert("ALT003", status="Resolved"),
        ]
        logs = [
            SecurityLog.restore(
                log_id="LOG001", event_type="Breach", severity="Critical",
                description="Fence cut", location="North wall",
            ),
            SecurityLog.restore(
                log_id="LOG002", event_type="Login", severity="Low",
                description="Login", location="Office", status="Resolved",
            ),
        ]
        grants = [
            AccessControl.restore(
                control_id="ACC001", employee_id="EMP001", employee_name="A",
                module="SECURITY", permission_level="Full",
            ),
            AccessControl.restore(
                control_id="ACC002", employee_id="EMP002", employee_name="B",
                module="SECURITY", permission_level="View", expires_on="2024-01-01",
            ),
            AccessControl.restore(
                control_id="ACC003", employee_id="EMP003", employee_name="C",
                module="SECURITY", permission_level="View", is_active=False,
            ),
        ]

        summary = security_summary(alerts, logs, grants, recent_hours=24, now=NOW)
        assert summary.active_alerts == 1
        assert summary.acknowledged_alerts == 1
        assert summary.critical_active_alerts == 1
        assert summary.recent_alerts == 2
        assert summary.pending_logs == 1
        assert summary.critical_logs == 1
        assert summary.active_permissions == 1
        assert summary.expired_permissions == 1
        assert summary.revoked_permissions == 1
        assert summary.health_score == HEALTH_CRITICAL
        assert summary.generated_at == NOW

    def test_custody_summary(self):
        prisoners = [
            Prisoner.restore(identity={"id": "PRS001", "name": "A"}, crime="Theft", cell_number="C101"),
            Prisoner.restore(identity={"id": "PRS002", "name": "B"}, crime="Fraud"),
            Prisoner.restore(identity={"id": "PRS003", "name": "C"}, crime="Arson", status="Released"),
        ]
        cells = [
            Cell.restore(
                cell_number="C101", cell_type="Single", capacity=1,
                security_level="Maximum", occupant_ids=["PRS001"],
            ),
            Cell.restore(
                cell_number="C102", cell_type="General", capacity=3, security_level="Minimum",
            ),
        ]

        summary = custody_summary(prisoners, cells, now=NOW)
        assert summary.prisoners_in_custody == 2
        assert summary.prisoners_released == 1
        assert summary.unassigned_prisoners == 1
        assert summary.total_capacity == 4
        assert summary.total_occupancy == 1
        assert summary.occupancy_percentage == 25.0
        assert summary.cells_by_status["Full"] == 1
        assert summary.cells_by_status["Vacant"] == 1
        assert summary.cells_by_status["Under Maintenance"] == 0

    def test_custody_summary_without_cells(self):
        assert custody_summary([], [], now=NOW).occupancy_percentage == 0.0

    def test_operations_summary(self):
        visits = [
            Visit.restore(
                visit_id="VIS001", prisoner_id="PRS001", visitor_id="VST001",
                scheduled_at=NOW - timedelta(hours=1), duration_minutes=30,
            ),
            Visit.restore(
                visit_id="VIS002", prisoner_id="PRS001", visitor_id="VST001",
                scheduled_at=NOW + timedelta(days=1), duration_minutes=30,
            ),
            Visit.restore(
                visit_id="VIS003", prisoner_id="PRS001", visitor_id="VST001",
                scheduled_at=NOW, duration_minutes=30, status="In Progress",
            ),
        ]
        visitors = [
            Visitor.restore(
                identity={"id": "VST001", "name": "V"}, relationship="Friend",
                prisoner_id="PRS001", status="Approved",
            ),
            Visitor.restore(
                identity={"id": "VST002", "name": "W"}, relationship="Friend",
                prisoner_id="PRS001",
            ),
        ]
        tasks = [
            Task.create(task_id="TSK001", task_name="Late", due_date=date(2024, 3, 1)),
            Task.create(task_id="TSK002", task_name="Open"),
            Task.restore(task_id="TSK003", task_name="Done", status="Completed"),
        ]
        duties = [
            GuardDuty.create(
                duty_id="DTY001", officer_id="EMP001", officer_name="O",
                duty_type="Patrol", location="Yard", duty_date=date(2024, 3, 14),
                start_time=time(8, 0), end_time=time(16, 0),
            ),
        ]

        summary = operations_summary(visits, visitors, tasks, duties, now=NOW)
        assert summary.visits_today == 2
        assert summary.overdue_visits == 1
        assert summary.visits_in_progress == 1
        assert summary.approved_visitors == 1
        assert summary.pending_visitors == 1
        assert summary.open_tasks == 2
        assert summary.overdue_tasks == 1
        assert summary.overdue_duties == 1
