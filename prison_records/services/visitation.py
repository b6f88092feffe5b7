"""Visitation Service — visitor registration and visit scheduling."""

import logging
from datetime import date, datetime
from typing import List, Optional

from prison_records.errors import StateError, ValidationError
from prison_records.models.people import Prisoner, Visitor
from prison_records.models.visit import Visit
from prison_records.persistence.repository import Repository
from prison_records.reporting.filters import filter_by_status
from prison_records.services.base import RecordService

logger = logging.getLogger(__name__)


class VisitationService(RecordService):
    def __init__(
        self,
        visitors: Repository[Visitor],
        visits: Repository[Visit],
        prisoners: Repository[Prisoner],
    ):
        self.visitors = visitors
        self.visits = visits
        self.prisoners = prisoners

    # --- Visitors ---

    def register_visitor(self, **fields) -> Visitor:
        visitor = Visitor.create(**fields)
        self.prisoners.require(visitor.prisoner_id)
        return self._create(self.visitors, visitor)

    def get_visitor(self, visitor_id: str) -> Visitor:
        return self.visitors.require(visitor_id)

    def list_visitors(
        self, status: Optional[str] = None, prisoner_id: Optional[str] = None
    ) -> List[Visitor]:
        visitors = (
            self.visitors.list_by(prisoner_id=prisoner_id)
            if prisoner_id else self.visitors.list_all()
        )
        return filter_by_status(visitors, status) if status else visitors

    def approve_visitor(self, visitor_id: str) -> Visitor:
        return self._apply(self.visitors, visitor_id, "Approved", lambda v: v.approve())

    def ban_visitor(self, visitor_id: str) -> Visitor:
        return self._apply(self.visitors, visitor_id, "Banned", lambda v: v.ban())

    # --- Visits ---

    def schedule_visit(
        self,
        prisoner_id: str,
        visitor_id: str,
        scheduled_at: datetime,
        duration_minutes: int,
        visit_id: Optional[str] = None,
    ) -> Visit:
        visitor = self.visitors.require(visitor_id)
        prisoner = self.prisoners.require(prisoner_id)
        if visitor.prisoner_id != prisoner_id:
            raise ValidationError(
                f"Visitor {visitor_id} is registered for prisoner "
                f"{visitor.prisoner_id}, not {prisoner_id}"
            )
        if not visitor.can_visit:
            raise StateError(f"Visitor {visitor_id} is {visitor.status.value}")
        if not prisoner.is_in_custody:
            raise StateError(f"Prisoner {prisoner_id} is {prisoner.status.value}")

        visit = Visit.create(
            visit_id=visit_id or self.visits.next_id(),
            prisoner_id=prisoner_id,
            visitor_id=visitor_id,
            scheduled_at=scheduled_at,
            duration_minutes=duration_minutes,
        )
        return self._create(self.visits, visit)

    def get_visit(self, visit_id: str) -> Visit:
        return self.visits.require(visit_id)

    def list_visits(
        self, status: Optional[str] = None, day: Optional[date] = None
    ) -> List[Visit]:
        visits = self.visits.list_all()
        if status:
            visits = filter_by_status(visits, status)
        if day:
            visits = [v for v in visits if v.is_scheduled_for(day)]
        return visits

    def overdue_visits(self, now: Optional[datetime] = None) -> List[Visit]:
        return [v for v in self.visits.list_all() if v.is_overdue(now)]

    def start_visit(self, visit_id: str, now: Optional[datetime] = None) -> Visit:
        return self._apply(self.visits, visit_id, "Started", lambda v: v.start(now))

    def complete_visit(self, visit_id: str, now: Optional[datetime] = None) -> Visit:
        """Complete a visit and count it on the visitor's record."""
        visit = self.visits.require(visit_id)
        completed = visit.complete(now)
        writes = [(self.visits, completed, visit)]
        visitor = self.visitors.get(visit.visitor_id)
        if visitor is not None and visitor.can_visit:
            writes.append((self.visitors, visitor.record_visit(now), visitor))
        self._write_all(writes)
        logger.info(f"Completed: Visit {visit_id}")
        return completed

    def cancel_visit(self, visit_id: str, reason: str = "") -> Visit:
        return self._apply(self.visits, visit_id, "Cancelled", lambda v: v.cancel(reason))

    def reschedule_visit(self, visit_id: str, new_time: datetime) -> Visit:
        return self._apply(
            self.visits, visit_id, "Rescheduled", lambda v: v.reschedule(new_time)
        )
