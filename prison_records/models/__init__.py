"""Prison records data models."""

from prison_records.models.access import AccessControl, AccessStatus, PermissionLevel
from prison_records.models.base import Record
from prison_records.models.cell import Cell, CellStatus, CellType, SecurityLevel
from prison_records.models.config import DatabaseConfig, FacilityConfig, RefreshConfig
from prison_records.models.duty import DutyStatus, GuardDuty
from prison_records.models.people import (
    Employee,
    EmployeeStatus,
    Identity,
    Person,
    Prisoner,
    PrisonerStatus,
    Visitor,
    VisitorStatus,
)
from prison_records.models.security import (
    AlertStatus,
    LogStatus,
    SecurityAlert,
    SecurityLog,
    Severity,
)
from prison_records.models.task import Priority, Task, TaskCategory, TaskStatus
from prison_records.models.visit import Visit, VisitStatus

__all__ = [
    "AccessControl",
    "AccessStatus",
    "AlertStatus",
    "Cell",
    "CellStatus",
    "CellType",
    "DatabaseConfig",
    "DutyStatus",
    "Employee",
    "EmployeeStatus",
    "FacilityConfig",
    "GuardDuty",
    "Identity",
    "LogStatus",
    "PermissionLevel",
    "Person",
    "Priority",
    "Prisoner",
    "PrisonerStatus",
    "Record",
    "RefreshConfig",
    "SecurityAlert",
    "SecurityLevel",
    "SecurityLog",
    "Severity",
    "Task",
    "TaskCategory",
    "TaskStatus",
    "Visit",
    "VisitStatus",
    "Visitor",
    "VisitorStatus",
]
