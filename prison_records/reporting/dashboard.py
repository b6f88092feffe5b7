"""Dashboard tallies built from record snapshots."""

from datetime import datetime
from typing import Dict, Iterable, Optional

from pydantic import BaseModel

from prison_records.models.access import AccessControl, AccessStatus
from prison_records.models.base import resolve_now
from prison_records.models.cell import Cell, CellStatus
from prison_records.models.duty import GuardDuty
from prison_records.models.people import Prisoner, PrisonerStatus, Visitor, VisitorStatus
from prison_records.models.security import AlertStatus, LogStatus, SecurityAlert, SecurityLog
from prison_records.models.task import Task
from prison_records.models.visit import Visit, VisitStatus
from prison_records.reporting.filters import (
    compute_health_score,
    count_where,
    filter_by_time_window,
)


class SecuritySummary(BaseModel):
    active_alerts: int
    acknowledged_alerts: int
    critical_active_alerts: int
    recent_alerts: int
    pending_logs: int
    critical_logs: int
    active_permissions: int
    expired_permissions: int
    revoked_permissions: int
    health_score: float
    generated_at: datetime


class CustodySummary(BaseModel):
    prisoners_in_custody: int
    prisoners_released: int
    prisoners_transferred: int
    unassigned_prisoners: int
    total_capacity: int
    total_occupancy: int
    occupancy_percentage: float
    cells_by_status: Dict[str, int]
    generated_at: datetime


class OperationsSummary(BaseModel):
    visits_today: int
    overdue_visits: int
    visits_in_progress: int
    approved_visitors: int
    pending_visitors: int
    open_tasks: int
    overdue_tasks: int
    overdue_duties: int
    generated_at: datetime


def security_summary(
    alerts: Iterable[SecurityAlert],
    logs: Iterable[SecurityLog],
    permissions: Iterable[AccessControl],
    recent_hours: int = 24,
    now: Optional[datetime] = None,
) -> SecuritySummary:
    now = resolve_now(now)
    alerts, logs, permissions = list(alerts), list(logs), list(permissions)
    statuses = [p.effective_status(now) for p in permissions]
    return SecuritySummary(
        active_alerts=count_where(alerts, lambda a: a.status == AlertStatus.ACTIVE),
        acknowledged_alerts=count_where(
            alerts, lambda a: a.status == AlertStatus.ACKNOWLEDGED
        ),
        critical_active_alerts=count_where(
            alerts, lambda a: a.is_critical and a.status == AlertStatus.ACTIVE
        ),
        recent_alerts=len(filter_by_time_window(alerts, "triggered_at", recent_hours, now)),
        pending_logs=count_where(logs, lambda l: l.status != LogStatus.RESOLVED),
        critical_logs=count_where(logs, lambda l: l.is_critical),
        active_permissions=statuses.count(AccessStatus.ACTIVE),
        expired_permissions=statuses.count(AccessStatus.EXPIRED),
        revoked_permissions=statuses.count(AccessStatus.REVOKED),
        health_score=compute_health_score(alerts),
        generated_at=now,
    )


def custody_summary(
    prisoners: Iterable[Prisoner],
    cells: Iterable[Cell],
    now: Optional[datetime] = None,
) -> CustodySummary:
    prisoners, cells = list(prisoners), list(cells)
    capacity = sum(c.capacity for c in cells)
    occupancy = sum(c.current_occupancy for c in cells)
    return CustodySummary(
        prisoners_in_custody=count_where(prisoners, lambda p: p.is_in_custody),
        prisoners_released=count_where(
            prisoners, lambda p: p.status == PrisonerStatus.RELEASED
        ),
        prisoners_transferred=count_where(
            prisoners, lambda p: p.status == PrisonerStatus.TRANSFERRED
        ),
        unassigned_prisoners=count_where(
            prisoners, lambda p: p.is_in_custody and not p.cell_number
        ),
        total_capacity=capacity,
        total_occupancy=occupancy,
        occupancy_percentage=round(occupancy / capacity * 100, 1) if capacity else 0.0,
        cells_by_status={
            s.value: count_where(cells, lambda c, s=s: c.status == s) for s in CellStatus
        },
        generated_at=resolve_now(now),
    )


def operations_summary(
    visits: Iterable[Visit],
    visitors: Iterable[Visitor],
    tasks: Iterable[Task],
    duties: Iterable[GuardDuty],
    now: Optional[datetime] = None,
) -> OperationsSummary:
    now = resolve_now(now)
    visits, visitors = list(visits), list(visitors)
    tasks, duties = list(tasks), list(duties)
    return OperationsSummary(
        visits_today=count_where(visits, lambda v: v.is_scheduled_for(now.date())),
        overdue_visits=count_where(visits, lambda v: v.is_overdue(now)),
        visits_in_progress=count_where(
            visits, lambda v: v.status == VisitStatus.IN_PROGRESS
        ),
        approved_visitors=count_where(
            visitors, lambda v: v.status == VisitorStatus.APPROVED
        ),
        pending_visitors=count_where(
            visitors, lambda v: v.status == VisitorStatus.PENDING
        ),
        open_tasks=count_where(tasks, lambda t: t.is_active),
        overdue_tasks=count_where(tasks, lambda t: t.is_overdue(now)),
        overdue_duties=count_where(duties, lambda d: d.is_overdue(now)),
        generated_at=now,
    )
