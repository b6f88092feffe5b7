"""
Prison Records API — FastAPI endpoints.

Exposes read-only projections of facility records and the lifecycle
commands staff trigger on them:
- Security alerts, security logs and access control
- Prisoners and cell assignment
- Visitors and visits
- Employees, tasks and guard duties
- Dashboards and snapshot refresh
"""

import logging
from datetime import date, time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from prison_records.errors import (
    PersistenceError,
    RecordNotFoundError,
    StateError,
    ValidationError,
)
from prison_records.models.base import LocalDateTime
from prison_records.models.config import FacilityConfig
from prison_records.persistence.database import Database
from prison_records.persistence.repository import RecordRepositories
from prison_records.refresh.loop import SnapshotRefresher
from prison_records.reporting.dashboard import (
    custody_summary,
    operations_summary,
    security_summary,
)
from prison_records.services.custody import CustodyService
from prison_records.services.security import SecurityService
from prison_records.services.staff import StaffService
from prison_records.services.visitation import VisitationService

logger = logging.getLogger(__name__)


# --- Request Models ---

class AlertRaiseRequest(BaseModel):
    alert_type: str
    severity: str
    description: str
    location: str
    triggered_by: Optional[str] = None
    assigned_to: Optional[str] = None
    requires_response: bool = True
    response_time_minutes: int = 5


class ActorRequest(BaseModel):
    actor: str
    notes: str = ""


class AssignAlertRequest(BaseModel):
    employee_id: str


class LogEventRequest(BaseModel):
    event_type: str
    severity: str
    description: str
    location: str
    employee_id: Optional[str] = None
    affected_entity: Optional[str] = None
    ip_address: Optional[str] = None


class AccessGrantRequest(BaseModel):
    employee_id: str
    employee_name: str
    module: str
    permission_level: str
    granted_by: Optional[str] = None
    expires_on: Optional[str] = None


class RevokeRequest(BaseModel):
    revoked_by: Optional[str] = None


class PrisonerAdmitRequest(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    crime: str
    sentence_duration: Optional[str] = None
    cell_number: Optional[str] = None


class TransferRequest(BaseModel):
    facility: str


class CellCreateRequest(BaseModel):
    cell_number: str
    cell_type: str
    capacity: int
    security_level: str


class CellAssignRequest(BaseModel):
    prisoner_id: str


class MaintenanceRequest(BaseModel):
    under_maintenance: bool


class VisitorRegisterRequest(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    relationship: str
    prisoner_id: str


class VisitScheduleRequest(BaseModel):
    prisoner_id: str
    visitor_id: str
    scheduled_at: LocalDateTime
    duration_minutes: int


class ReasonRequest(BaseModel):
    reason: str = ""


class RescheduleRequest(BaseModel):
    scheduled_at: LocalDateTime


class EmployeeHireRequest(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    position: str
    department: str
    salary: float
    username: Optional[str] = None
    role: str = "Officer"


class PromoteRequest(BaseModel):
    position: str
    salary: float


class TaskCreateRequest(BaseModel):
    task_name: str
    description: str = ""
    assigned_to_id: Optional[str] = None
    priority: str = "Medium"
    category: str = "Operational"
    due_date: Optional[date] = None
    estimated_hours: int = 0
    created_by: Optional[str] = None


class TaskCompleteRequest(BaseModel):
    completed_by: str
    notes: str = ""


class DutyScheduleRequest(BaseModel):
    officer_id: str
    duty_type: str
    location: str
    duty_date: date
    start_time: time
    end_time: time
    priority: str = "Medium"
    notes: str = ""


def _dump(records) -> list:
    return [r.model_dump(mode="json") for r in records]


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# --- Application Factory ---

def create_app(
    config: Optional[FacilityConfig] = None,
    repositories: Optional[RecordRepositories] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Prison Records API",
        description="Correctional facility records — lifecycle and reporting",
        version="0.1.0",
    )

    config = config or FacilityConfig()
    if repositories is None:
        database = Database(config.database)
        database.wait_until_ready()
        repositories = RecordRepositories(database)

    security = SecurityService(
        repositories.alerts, repositories.logs, repositories.access_controls
    )
    custody = CustodyService(repositories.prisoners, repositories.cells)
    visitation = VisitationService(
        repositories.visitors, repositories.visits, repositories.prisoners
    )
    staff = StaffService(repositories.employees, repositories.tasks, repositories.duties)
    refresher = SnapshotRefresher(repositories, config.refresh)

    # Store components on app state for access in endpoints
    app.state.config = config
    app.state.repositories = repositories
    app.state.security = security
    app.state.custody = custody
    app.state.visitation = visitation
    app.state.staff = staff
    app.state.refresher = refresher

    # === ERROR MAPPING ===

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return _error(422, exc)

    @app.exception_handler(StateError)
    async def state_error(request: Request, exc: StateError):
        return _error(409, exc)

    @app.exception_handler(RecordNotFoundError)
    async def not_found_error(request: Request, exc: RecordNotFoundError):
        return _error(404, exc)

    @app.exception_handler(PersistenceError)
    async def persistence_error(request: Request, exc: PersistenceError):
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return _error(503, exc)

    # === SECURITY ALERTS ===

    @app.get("/alerts")
    def list_alerts(
        status: Optional[str] = None, severity: Optional[str] = None, hours: int = 0
    ):
        return _dump(security.list_alerts(status=status, severity=severity, hours_back=hours))

    @app.post("/alerts")
    def raise_alert(req: AlertRaiseRequest):
        return security.raise_alert(**req.model_dump()).model_dump(mode="json")

    @app.get("/alerts/{alert_id}")
    def get_alert(alert_id: str):
        return security.get_alert(alert_id).model_dump(mode="json")

    @app.post("/alerts/{alert_id}/acknowledge")
    def acknowledge_alert(alert_id: str, req: ActorRequest):
        return security.acknowledge_alert(alert_id, req.actor).model_dump(mode="json")

    @app.post("/alerts/{alert_id}/resolve")
    def resolve_alert(alert_id: str, req: ActorRequest):
        return security.resolve_alert(alert_id, req.actor, req.notes).model_dump(mode="json")

    @app.post("/alerts/{alert_id}/assign")
    def assign_alert(alert_id: str, req: AssignAlertRequest):
        return security.assign_alert(alert_id, req.employee_id).model_dump(mode="json")

    # === SECURITY LOGS ===

    @app.get("/logs")
    def list_logs(
        status: Optional[str] = None, severity: Optional[str] = None, hours: int = 0
    ):
        return _dump(security.list_logs(status=status, severity=severity, hours_back=hours))

    @app.post("/logs")
    def log_event(req: LogEventRequest):
        return security.log_event(**req.model_dump()).model_dump(mode="json")

    @app.post("/logs/{log_id}/investigate")
    def investigate_log(log_id: str):
        return security.investigate_log(log_id).model_dump(mode="json")

    @app.post("/logs/{log_id}/resolve")
    def resolve_log(log_id: str, req: ActorRequest):
        return security.resolve_log(log_id, req.actor, req.notes).model_dump(mode="json")

    # === ACCESS CONTROL ===

    @app.get("/access")
    def list_access(
        employee_id: Optional[str] = None,
        module: Optional[str] = None,
        status: Optional[str] = None,
    ):
        return _dump(security.list_access(employee_id=employee_id, module=module, status=status))

    @app.post("/access")
    def grant_access(req: AccessGrantRequest):
        return security.grant_access(**req.model_dump()).model_dump(mode="json")

    @app.post("/access/{control_id}/revoke")
    def revoke_access(control_id: str, req: RevokeRequest):
        return security.revoke_access(control_id, req.revoked_by).model_dump(mode="json")

    # === PRISONERS & CELLS ===

    @app.get("/prisoners")
    def list_prisoners(status: Optional[str] = None, cell_number: Optional[str] = None):
        return _dump(custody.list_prisoners(status=status, cell_number=cell_number))

    @app.post("/prisoners")
    def admit_prisoner(req: PrisonerAdmitRequest):
        prisoner = custody.admit_prisoner(
            identity={"id": req.id, "name": req.name, "phone": req.phone},
            crime=req.crime,
            sentence_duration=req.sentence_duration,
            cell_number=req.cell_number,
        )
        return prisoner.model_dump(mode="json")

    @app.get("/prisoners/{prisoner_id}")
    def get_prisoner(prisoner_id: str):
        return custody.get_prisoner(prisoner_id).model_dump(mode="json")

    @app.post("/prisoners/{prisoner_id}/release")
    def release_prisoner(prisoner_id: str):
        return custody.release_prisoner(prisoner_id).model_dump(mode="json")

    @app.post("/prisoners/{prisoner_id}/transfer")
    def transfer_prisoner(prisoner_id: str, req: TransferRequest):
        return custody.transfer_prisoner(prisoner_id, req.facility).model_dump(mode="json")

    @app.get("/cells")
    def list_cells(status: Optional[str] = None, security_level: Optional[str] = None):
        return _dump(custody.list_cells(status=status, security_level=security_level))

    @app.post("/cells")
    def add_cell(req: CellCreateRequest):
        return custody.add_cell(**req.model_dump()).model_dump(mode="json")

    @app.get("/cells/{cell_number}")
    def get_cell(cell_number: str):
        return custody.get_cell(cell_number).model_dump(mode="json")

    @app.post("/cells/{cell_number}/assign")
    def assign_to_cell(cell_number: str, req: CellAssignRequest):
        custody.assign_prisoner_to_cell(req.prisoner_id, cell_number)
        return custody.get_cell(cell_number).model_dump(mode="json")

    @app.post("/cells/{cell_number}/remove")
    def remove_from_cell(cell_number: str, req: CellAssignRequest):
        prisoner = custody.get_prisoner(req.prisoner_id)
        if prisoner.cell_number != cell_number:
            raise StateError(f"Prisoner {req.prisoner_id} is not in cell {cell_number}")
        custody.remove_prisoner_from_cell(req.prisoner_id)
        return custody.get_cell(cell_number).model_dump(mode="json")

    @app.post("/cells/{cell_number}/maintenance")
    def set_maintenance(cell_number: str, req: MaintenanceRequest):
        return custody.set_maintenance(cell_number, req.under_maintenance).model_dump(mode="json")

    # === VISITORS & VISITS ===

    @app.get("/visitors")
    def list_visitors(status: Optional[str] = None, prisoner_id: Optional[str] = None):
        return _dump(visitation.list_visitors(status=status, prisoner_id=prisoner_id))

    @app.post("/visitors")
    def register_visitor(req: VisitorRegisterRequest):
        visitor = visitation.register_visitor(
            identity={"id": req.id, "name": req.name, "phone": req.phone},
            relationship=req.relationship,
            prisoner_id=req.prisoner_id,
        )
        return visitor.model_dump(mode="json")

    @app.post("/visitors/{visitor_id}/approve")
    def approve_visitor(visitor_id: str):
        return visitation.approve_visitor(visitor_id).model_dump(mode="json")

    @app.post("/visitors/{visitor_id}/ban")
    def ban_visitor(visitor_id: str):
        return visitation.ban_visitor(visitor_id).model_dump(mode="json")

    @app.get("/visits")
    def list_visits(status: Optional[str] = None, day: Optional[date] = None):
        return _dump(visitation.list_visits(status=status, day=day))

    @app.post("/visits")
    def schedule_visit(req: VisitScheduleRequest):
        return visitation.schedule_visit(**req.model_dump()).model_dump(mode="json")

    @app.post("/visits/{visit_id}/start")
    def start_visit(visit_id: str):
        return visitation.start_visit(visit_id).model_dump(mode="json")

    @app.post("/visits/{visit_id}/complete")
    def complete_visit(visit_id: str):
        return visitation.complete_visit(visit_id).model_dump(mode="json")

    @app.post("/visits/{visit_id}/cancel")
    def cancel_visit(visit_id: str, req: ReasonRequest):
        return visitation.cancel_visit(visit_id, req.reason).model_dump(mode="json")

    @app.post("/visits/{visit_id}/reschedule")
    def reschedule_visit(visit_id: str, req: RescheduleRequest):
        return visitation.reschedule_visit(visit_id, req.scheduled_at).model_dump(mode="json")

    # === STAFF ===

    @app.get("/employees")
    def list_employees(status: Optional[str] = None, department: Optional[str] = None):
        return _dump(staff.list_employees(status=status, department=department))

    @app.post("/employees")
    def hire_employee(req: EmployeeHireRequest):
        fields = req.model_dump()
        identity = {k: fields.pop(k) for k in ("id", "name", "phone")}
        return staff.hire_employee(identity=identity, **fields).model_dump(mode="json")

    @app.post("/employees/{employee_id}/promote")
    def promote_employee(employee_id: str, req: PromoteRequest):
        return staff.promote_employee(employee_id, req.position, req.salary).model_dump(mode="json")

    @app.post("/employees/{employee_id}/suspend")
    def suspend_employee(employee_id: str):
        return staff.suspend_employee(employee_id).model_dump(mode="json")

    @app.post("/employees/{employee_id}/reinstate")
    def reinstate_employee(employee_id: str):
        return staff.reinstate_employee(employee_id).model_dump(mode="json")

    @app.post("/employees/{employee_id}/terminate")
    def terminate_employee(employee_id: str):
        return staff.terminate_employee(employee_id).model_dump(mode="json")

    @app.get("/tasks")
    def list_tasks(status: Optional[str] = None, assigned_to_id: Optional[str] = None):
        return _dump(staff.list_tasks(status=status, assigned_to_id=assigned_to_id))

    @app.post("/tasks")
    def create_task(req: TaskCreateRequest):
        return staff.create_task(**req.model_dump()).model_dump(mode="json")

    @app.post("/tasks/{task_id}/start")
    def start_task(task_id: str):
        return staff.start_task(task_id).model_dump(mode="json")

    @app.post("/tasks/{task_id}/complete")
    def complete_task(task_id: str, req: TaskCompleteRequest):
        return staff.complete_task(task_id, req.completed_by, req.notes).model_dump(mode="json")

    @app.post("/tasks/{task_id}/cancel")
    def cancel_task(task_id: str, req: ReasonRequest):
        return staff.cancel_task(task_id, req.reason).model_dump(mode="json")

    @app.get("/duties")
    def list_duties(
        officer_id: Optional[str] = None,
        day: Optional[date] = None,
        status: Optional[str] = None,
    ):
        return _dump(staff.list_duties(officer_id=officer_id, day=day, status=status))

    @app.post("/duties")
    def schedule_duty(req: DutyScheduleRequest):
        return staff.schedule_duty(**req.model_dump()).model_dump(mode="json")

    @app.post("/duties/{duty_id}/start")
    def start_duty(duty_id: str):
        return staff.start_duty(duty_id).model_dump(mode="json")

    @app.post("/duties/{duty_id}/complete")
    def complete_duty(duty_id: str):
        return staff.complete_duty(duty_id).model_dump(mode="json")

    @app.post("/duties/{duty_id}/cancel")
    def cancel_duty(duty_id: str, req: ReasonRequest):
        return staff.cancel_duty(duty_id, req.reason).model_dump(mode="json")

    # === DASHBOARDS ===

    @app.get("/dashboard/security")
    def security_dashboard():
        return security_summary(
            repositories.alerts.list_all(),
            repositories.logs.list_all(),
            repositories.access_controls.list_all(),
            recent_hours=config.refresh.recent_window_hours,
        ).model_dump(mode="json")

    @app.get("/dashboard/custody")
    def custody_dashboard():
        return custody_summary(
            repositories.prisoners.list_all(), repositories.cells.list_all()
        ).model_dump(mode="json")

    @app.get("/dashboard/operations")
    def operations_dashboard():
        return operations_summary(
            repositories.visits.list_all(),
            repositories.visitors.list_all(),
            repositories.tasks.list_all(),
            repositories.duties.list_all(),
        ).model_dump(mode="json")

    # === REFRESH ===

    @app.get("/refresh/status")
    def refresh_status():
        latest = refresher.latest
        return {
            "status": refresher.status,
            "config": refresher.config.model_dump(),
            "last_snapshot_at": latest.taken_at.isoformat() if latest else None,
            "consecutive_failures": refresher.consecutive_failures,
        }

    @app.post("/refresh/trigger")
    def trigger_refresh():
        """Force a snapshot refresh."""
        snapshot = refresher.refresh_once()
        return {
            "taken_at": snapshot.taken_at.isoformat(),
            "counts": {
                name: len(getattr(snapshot, name))
                for name in repositories.all()
            },
        }

    return app


# Default application instance
app = create_app()
