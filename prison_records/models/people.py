"""
People — prisoners, employees and visitors.

Each role is its own record type embedding a shared `Identity` rather than
inheriting from a common person class. `Person` is the union used where the
three are handled together.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from prison_records.models.base import LocalDateTime, Record, RequiredStr, resolve_now


class Identity(BaseModel):
    """Who someone is, independent of their role in the facility."""

    model_config = ConfigDict(frozen=True)

    id: RequiredStr
    name: RequiredStr
    phone: Optional[str] = None


class _PersonRecord(Record):
    identity: Identity

    @property
    def record_id(self) -> str:
        return self.identity.id

    @property
    def name(self) -> str:
        return self.identity.name


class PrisonerStatus(str, Enum):
    IN_CUSTODY = "In Custody"
    RELEASED = "Released"
    TRANSFERRED = "Transferred"


class Prisoner(_PersonRecord):
    lifecycle_fields = frozenset({
        "status", "release_date", "transferred_to", "created_at",
    })

    crime: RequiredStr
    sentence_duration: Optional[str] = None
    cell_number: Optional[str] = None
    admission_date: date = Field(default_factory=date.today)

    status: PrisonerStatus = PrisonerStatus.IN_CUSTODY
    release_date: Optional[date] = None
    transferred_to: Optional[str] = None
    created_at: LocalDateTime = Field(default_factory=datetime.now)

    @property
    def is_in_custody(self) -> bool:
        return self.status == PrisonerStatus.IN_CUSTODY

    def move_to_cell(self, cell_number: Optional[str]) -> "Prisoner":
        return self._transition(
            "move", (PrisonerStatus.IN_CUSTODY,), cell_number=cell_number
        )

    def release(self, now: Optional[datetime] = None) -> "Prisoner":
        return self._transition(
            "release",
            (PrisonerStatus.IN_CUSTODY,),
            status=PrisonerStatus.RELEASED,
            release_date=resolve_now(now).date(),
            cell_number=None,
        )

    def transfer(self, facility: str) -> "Prisoner":
        return self._transition(
            "transfer",
            (PrisonerStatus.IN_CUSTODY,),
            status=PrisonerStatus.TRANSFERRED,
            transferred_to=facility,
            cell_number=None,
        )


class EmployeeStatus(str, Enum):
    ACTIVE = "Active"
    SUSPENDED = "Suspended"
    INACTIVE = "Inactive"


class Employee(_PersonRecord):
    lifecycle_fields = frozenset({"status", "created_at"})

    position: RequiredStr
    department: RequiredStr
    salary: float = Field(ge=0)             # Monthly
    hire_date: date = Field(default_factory=date.today)
    username: Optional[str] = None
    role: str = "Officer"

    status: EmployeeStatus = EmployeeStatus.ACTIVE
    created_at: LocalDateTime = Field(default_factory=datetime.now)

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE

    @property
    def annual_salary(self) -> float:
        return self.salary * 12

    def promote(self, new_position: str, new_salary: float) -> "Employee":
        promoted = self._transition(
            "promote",
            (EmployeeStatus.ACTIVE,),
            position=new_position,
            salary=new_salary,
        )
        # Re-run field validation on the new position and salary
        return Employee.restore(**promoted.model_dump())

    def suspend(self) -> "Employee":
        return self._transition(
            "suspend", (EmployeeStatus.ACTIVE,), status=EmployeeStatus.SUSPENDED
        )

    def reinstate(self) -> "Employee":
        return self._transition(
            "reinstate", (EmployeeStatus.SUSPENDED,), status=EmployeeStatus.ACTIVE
        )

    def terminate(self) -> "Employee":
        return self._transition(
            "terminate",
            (EmployeeStatus.ACTIVE, EmployeeStatus.SUSPENDED),
            status=EmployeeStatus.INACTIVE,
        )


class VisitorStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    BANNED = "Banned"


class Visitor(_PersonRecord):
    lifecycle_fields = frozenset({
        "status", "visit_count", "last_visit_date", "created_at",
    })

    relationship: RequiredStr
    prisoner_id: RequiredStr

    status: VisitorStatus = VisitorStatus.PENDING
    visit_count: int = Field(ge=0, default=0)
    last_visit_date: Optional[date] = None
    created_at: LocalDateTime = Field(default_factory=datetime.now)

    @property
    def can_visit(self) -> bool:
        return self.status == VisitorStatus.APPROVED

    def approve(self) -> "Visitor":
        return self._transition(
            "approve", (VisitorStatus.PENDING,), status=VisitorStatus.APPROVED
        )

    def ban(self) -> "Visitor":
        return self._transition(
            "ban",
            (VisitorStatus.PENDING, VisitorStatus.APPROVED),
            status=VisitorStatus.BANNED,
        )

    def record_visit(self, now: Optional[datetime] = None) -> "Visitor":
        return self._transition(
            "record a visit for",
            (VisitorStatus.APPROVED,),
            visit_count=self.visit_count + 1,
            last_visit_date=resolve_now(now).date(),
        )


Person = Union[Prisoner, Employee, Visitor]
