"""Staff Service — employees, their tasks and their guard duties."""

import logging
from datetime import date, datetime
from typing import List, Optional

from prison_records.errors import StateError
from prison_records.models.duty import GuardDuty
from prison_records.models.people import Employee
from prison_records.models.task import Task, TaskStatus
from prison_records.persistence.repository import Repository
from prison_records.reporting.filters import filter_by_field, filter_by_status
from prison_records.services.base import RecordService

logger = logging.getLogger(__name__)


class StaffService(RecordService):
    def __init__(
        self,
        employees: Repository[Employee],
        tasks: Repository[Task],
        duties: Repository[GuardDuty],
    ):
        self.employees = employees
        self.tasks = tasks
        self.duties = duties

    # --- Employees ---

    def hire_employee(self, **fields) -> Employee:
        return self._create(self.employees, Employee.create(**fields))

    def get_employee(self, employee_id: str) -> Employee:
        return self.employees.require(employee_id)

    def list_employees(
        self, status: Optional[str] = None, department: Optional[str] = None
    ) -> List[Employee]:
        employees = self.employees.list_all()
        if status:
            employees = filter_by_status(employees, status)
        if department:
            employees = filter_by_field(employees, "department", department)
        return employees

    def promote_employee(
        self, employee_id: str, new_position: str, new_salary: float
    ) -> Employee:
        return self._apply(
            self.employees, employee_id, f"Promoted to {new_position}",
            lambda e: e.promote(new_position, new_salary),
        )

    def suspend_employee(self, employee_id: str) -> Employee:
        return self._apply(self.employees, employee_id, "Suspended", lambda e: e.suspend())

    def reinstate_employee(self, employee_id: str) -> Employee:
        return self._apply(self.employees, employee_id, "Reinstated", lambda e: e.reinstate())

    def terminate_employee(self, employee_id: str) -> Employee:
        return self._apply(self.employees, employee_id, "Terminated", lambda e: e.terminate())

    def _active_employee(self, employee_id: str) -> Employee:
        employee = self.employees.require(employee_id)
        if not employee.is_active:
            raise StateError(f"Employee {employee_id} is {employee.status.value}")
        return employee

    # --- Tasks ---

    def create_task(self, **fields) -> Task:
        fields.setdefault("task_id", self.tasks.next_id())
        if fields.get("assigned_to_id"):
            employee = self._active_employee(fields["assigned_to_id"])
            fields.setdefault("assigned_to_name", employee.name)
        return self._create(self.tasks, Task.create(**fields))

    def get_task(self, task_id: str) -> Task:
        return self.tasks.require(task_id)

    def list_tasks(
        self,
        status: Optional[str] = None,
        assigned_to_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[Task]:
        tasks = (
            self.tasks.list_by(assigned_to_id=assigned_to_id)
            if assigned_to_id else self.tasks.list_all()
        )
        if status and status.lower() == TaskStatus.OVERDUE.value.lower():
            return [t for t in tasks if t.is_overdue(now)]
        return filter_by_status(tasks, status) if status else tasks

    def start_task(self, task_id: str) -> Task:
        return self._apply(self.tasks, task_id, "Started", lambda t: t.mark_in_progress())

    def complete_task(
        self,
        task_id: str,
        completed_by: str,
        notes: str = "",
        now: Optional[datetime] = None,
    ) -> Task:
        return self._apply(
            self.tasks, task_id, "Completed", lambda t: t.complete(completed_by, notes, now)
        )

    def cancel_task(self, task_id: str, reason: str = "") -> Task:
        return self._apply(self.tasks, task_id, "Cancelled", lambda t: t.cancel(reason))

    # --- Guard duties ---

    def schedule_duty(self, **fields) -> GuardDuty:
        fields.setdefault("duty_id", self.duties.next_id())
        officer = self._active_employee(fields.get("officer_id", ""))
        fields.setdefault("officer_name", officer.name)
        return self._create(self.duties, GuardDuty.create(**fields))

    def get_duty(self, duty_id: str) -> GuardDuty:
        return self.duties.require(duty_id)

    def list_duties(
        self,
        officer_id: Optional[str] = None,
        day: Optional[date] = None,
        status: Optional[str] = None,
    ) -> List[GuardDuty]:
        duties = (
            self.duties.list_by(officer_id=officer_id)
            if officer_id else self.duties.list_all()
        )
        if day:
            duties = [d for d in duties if d.duty_date == day]
        return filter_by_status(duties, status) if status else duties

    def start_duty(self, duty_id: str) -> GuardDuty:
        return self._apply(self.duties, duty_id, "Started", lambda d: d.start())

    def complete_duty(self, duty_id: str, now: Optional[datetime] = None) -> GuardDuty:
        return self._apply(self.duties, duty_id, "Completed", lambda d: d.complete(now))

    def cancel_duty(self, duty_id: str, reason: str = "") -> GuardDuty:
        return self._apply(self.duties, duty_id, "Cancelled", lambda d: d.cancel(reason))
