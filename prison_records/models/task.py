"""Task — work items assigned to staff."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from prison_records.models.base import LocalDateTime, Record, RequiredStr, resolve_now


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class TaskStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    OVERDUE = "Overdue"                     # Derived, never stored


class TaskCategory(str, Enum):
    SECURITY = "Security"
    MAINTENANCE = "Maintenance"
    ADMINISTRATIVE = "Administrative"
    OPERATIONAL = "Operational"
    EMERGENCY = "Emergency"


_OPEN_TASK_STATUSES = (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)


class Task(Record):
    """A unit of work with a due date and a completion record."""

    id_field = "task_id"
    lifecycle_fields = frozenset({
        "status", "created_at", "completed_by", "completed_date", "completion_notes",
    })

    task_id: RequiredStr
    task_name: RequiredStr
    description: str = ""
    assigned_to_id: Optional[str] = None
    assigned_to_name: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    category: TaskCategory = TaskCategory.OPERATIONAL
    due_date: Optional[date] = None
    estimated_hours: int = Field(ge=0, default=0)
    created_by: Optional[str] = None

    status: TaskStatus = TaskStatus.PENDING
    created_at: LocalDateTime = Field(default_factory=datetime.now)
    completed_by: Optional[str] = None
    completed_date: Optional[date] = None
    completion_notes: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status in _OPEN_TASK_STATUSES

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        if self.due_date is None or not self.is_active:
            return False
        return self.due_date < resolve_now(now).date()

    def effective_status(self, now: Optional[datetime] = None) -> TaskStatus:
        return TaskStatus.OVERDUE if self.is_overdue(now) else self.status

    def days_until_due(self, now: Optional[datetime] = None) -> Optional[int]:
        if self.due_date is None:
            return None
        return (self.due_date - resolve_now(now).date()).days

    def mark_in_progress(self) -> "Task":
        return self._transition(
            "start", (TaskStatus.PENDING,), status=TaskStatus.IN_PROGRESS
        )

    def complete(
        self,
        completed_by: str,
        notes: str = "",
        now: Optional[datetime] = None,
    ) -> "Task":
        return self._transition(
            "complete",
            _OPEN_TASK_STATUSES,
            status=TaskStatus.COMPLETED,
            completed_by=completed_by,
            completion_notes=notes,
            completed_date=resolve_now(now).date(),
        )

    def cancel(self, reason: str = "") -> "Task":
        return self._transition(
            "cancel",
            _OPEN_TASK_STATUSES,
            status=TaskStatus.CANCELLED,
            completion_notes=reason,
        )
