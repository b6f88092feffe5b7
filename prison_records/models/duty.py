"""Guard Duty — a scheduled shift for one officer at one post."""

from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from prison_records.models.base import LocalDateTime, Record, RequiredStr, resolve_now
from prison_records.models.task import Priority


class DutyStatus(str, Enum):
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


_OPEN_DUTY_STATUSES = (DutyStatus.SCHEDULED, DutyStatus.IN_PROGRESS)


class GuardDuty(Record):
    id_field = "duty_id"
    lifecycle_fields = frozenset({"status", "completed_at", "created_at"})

    duty_id: RequiredStr
    officer_id: RequiredStr
    officer_name: RequiredStr
    duty_type: RequiredStr                  # e.g., "Patrol", "Gate Duty", "Tower Watch"
    location: RequiredStr
    duty_date: date
    start_time: time
    end_time: time
    priority: Priority = Priority.MEDIUM
    notes: str = ""

    status: DutyStatus = DutyStatus.SCHEDULED
    completed_at: Optional[LocalDateTime] = None
    created_at: LocalDateTime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def validate_shift(self):
        if self.start_time == self.end_time:
            raise ValueError("Shift start and end times must differ")
        return self

    @property
    def is_overnight(self) -> bool:
        """An end time earlier than the start time falls on the next day."""
        return self.end_time < self.start_time

    @property
    def shift_start(self) -> datetime:
        return datetime.combine(self.duty_date, self.start_time)

    @property
    def shift_end(self) -> datetime:
        end_date = self.duty_date + timedelta(days=1) if self.is_overnight else self.duty_date
        return datetime.combine(end_date, self.end_time)

    @property
    def duration_minutes(self) -> int:
        return int((self.shift_end - self.shift_start).total_seconds() // 60)

    @property
    def shift_hours(self) -> float:
        return (self.shift_end - self.shift_start).total_seconds() / 3600

    def is_currently_active(self, now: Optional[datetime] = None) -> bool:
        """In progress and inside the shift window."""
        if self.status != DutyStatus.IN_PROGRESS:
            return False
        return self.shift_start <= resolve_now(now) < self.shift_end

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        """Not yet completed or cancelled although the shift has already ended."""
        if self.status not in _OPEN_DUTY_STATUSES:
            return False
        return self.shift_end < resolve_now(now)

    def start(self) -> "GuardDuty":
        return self._transition(
            "start", (DutyStatus.SCHEDULED,), status=DutyStatus.IN_PROGRESS
        )

    def complete(self, now: Optional[datetime] = None) -> "GuardDuty":
        return self._transition(
            "complete",
            (DutyStatus.IN_PROGRESS,),
            status=DutyStatus.COMPLETED,
            completed_at=resolve_now(now),
        )

    def cancel(self, reason: str = "") -> "GuardDuty":
        notes = f"{self.notes}\nCancelled: {reason}".strip() if reason else self.notes
        return self._transition(
            "cancel",
            _OPEN_DUTY_STATUSES,
            status=DutyStatus.CANCELLED,
            notes=notes,
        )
