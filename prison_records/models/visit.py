"""Visit — a scheduled meeting between a visitor and a prisoner."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from prison_records.models.base import (
    LocalDateTime,
    Record,
    RequiredStr,
    resolve_now,
    to_local_naive,
)

_DISPLAY_FORMAT = "%Y-%m-%d %H:%M"


class VisitStatus(str, Enum):
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class Visit(Record):
    """
    Lifecycle: Scheduled -> In Progress -> Completed, or Cancelled before
    completion. Cancelled visits may be rescheduled. Completed is terminal.
    """

    id_field = "visit_id"
    lifecycle_fields = frozenset({
        "status", "notes", "actual_start", "actual_end", "created_at",
    })

    visit_id: RequiredStr
    prisoner_id: RequiredStr
    visitor_id: RequiredStr
    scheduled_at: LocalDateTime
    duration_minutes: int = Field(gt=0)

    status: VisitStatus = VisitStatus.SCHEDULED
    notes: str = ""
    actual_start: Optional[LocalDateTime] = None
    actual_end: Optional[LocalDateTime] = None
    created_at: LocalDateTime = Field(default_factory=datetime.now)

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        """Still Scheduled although its start time has passed."""
        return (
            self.status == VisitStatus.SCHEDULED
            and self.scheduled_at < resolve_now(now)
        )

    def is_scheduled_for(self, day: date) -> bool:
        return self.scheduled_at.date() == day

    @property
    def actual_duration_minutes(self) -> Optional[int]:
        if self.actual_start is None or self.actual_end is None:
            return None
        return int((self.actual_end - self.actual_start).total_seconds() // 60)

    def start(self, now: Optional[datetime] = None) -> "Visit":
        return self._transition(
            "start",
            (VisitStatus.SCHEDULED,),
            status=VisitStatus.IN_PROGRESS,
            actual_start=resolve_now(now),
        )

    def complete(self, now: Optional[datetime] = None) -> "Visit":
        return self._transition(
            "complete",
            (VisitStatus.SCHEDULED, VisitStatus.IN_PROGRESS),
            status=VisitStatus.COMPLETED,
            actual_end=resolve_now(now),
        )

    def cancel(self, reason: str = "") -> "Visit":
        return self._transition(
            "cancel",
            (VisitStatus.SCHEDULED, VisitStatus.IN_PROGRESS),
            status=VisitStatus.CANCELLED,
            notes=self._append_note(f"Cancelled: {reason}" if reason else "Cancelled"),
        )

    def reschedule(self, new_time: datetime) -> "Visit":
        new_time = to_local_naive(new_time)
        return self._transition(
            "reschedule",
            (VisitStatus.SCHEDULED, VisitStatus.CANCELLED),
            status=VisitStatus.SCHEDULED,
            scheduled_at=new_time,
            notes=self._append_note(f"Rescheduled to: {new_time.strftime(_DISPLAY_FORMAT)}"),
        )

    def _append_note(self, note: str) -> str:
        return f"{self.notes}\n{note}" if self.notes else note
