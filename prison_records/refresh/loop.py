"""
Snapshot Refresher — periodic reload of facility records.

Each cycle reads every record type once and hands the resulting snapshot to
the registered subscribers. Records are frozen, so a snapshot can be passed
to another thread and read there without further coordination; subscribers
never receive a live reference to anything the services will later change.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from prison_records.errors import RecordsError
from prison_records.models.access import AccessControl
from prison_records.models.base import resolve_now
from prison_records.models.cell import Cell
from prison_records.models.config import RefreshConfig
from prison_records.models.duty import GuardDuty
from prison_records.models.people import Employee, Prisoner, Visitor
from prison_records.models.security import SecurityAlert, SecurityLog
from prison_records.models.task import Task
from prison_records.models.visit import Visit
from prison_records.persistence.repository import RecordRepositories

logger = logging.getLogger(__name__)


class FacilitySnapshot(BaseModel):
    """Every record in the facility as read at `taken_at`."""

    model_config = ConfigDict(frozen=True)

    taken_at: datetime
    alerts: Tuple[SecurityAlert, ...] = ()
    logs: Tuple[SecurityLog, ...] = ()
    access_controls: Tuple[AccessControl, ...] = ()
    prisoners: Tuple[Prisoner, ...] = ()
    employees: Tuple[Employee, ...] = ()
    visitors: Tuple[Visitor, ...] = ()
    visits: Tuple[Visit, ...] = ()
    cells: Tuple[Cell, ...] = ()
    tasks: Tuple[Task, ...] = ()
    duties: Tuple[GuardDuty, ...] = ()


SnapshotSubscriber = Callable[[FacilitySnapshot], None]


class SnapshotRefresher:
    """
    States:
      STOPPED → RUNNING (refresh every interval) → STOPPED
    """

    def __init__(
        self,
        repositories: RecordRepositories,
        config: Optional[RefreshConfig] = None,
    ):
        self.repositories = repositories
        self.config = config or RefreshConfig()
        self._subscribers: List[SnapshotSubscriber] = []
        self._latest: Optional[FacilitySnapshot] = None
        self._running = False
        self._failures = 0
        self._subscriber_failures = 0

    @property
    def status(self) -> str:
        return "running" if self._running else "stopped"

    @property
    def latest(self) -> Optional[FacilitySnapshot]:
        """The most recent snapshot, or None before the first refresh."""
        return self._latest

    @property
    def consecutive_failures(self) -> int:
        return self._failures

    @property
    def subscriber_failures(self) -> int:
        return self._subscriber_failures

    def subscribe(self, subscriber: SnapshotSubscriber) -> None:
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: SnapshotSubscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def take_snapshot(self, now: Optional[datetime] = None) -> FacilitySnapshot:
        repos = self.repositories.all()
        return FacilitySnapshot(
            taken_at=resolve_now(now),
            **{name: tuple(repo.list_all()) for name, repo in repos.items()},
        )

    def refresh_once(self, now: Optional[datetime] = None) -> FacilitySnapshot:
        """Take a snapshot and deliver it to every subscriber. Subscriber errors propagate."""
        snapshot = self.take_snapshot(now)
        self._latest = snapshot
        for subscriber in list(self._subscribers):
            subscriber(snapshot)
        return snapshot

    def _publish(self, snapshot: FacilitySnapshot) -> None:
        """Deliver to every subscriber; one failing subscriber does not stop the rest."""
        self._latest = snapshot
        for subscriber in list(self._subscribers):
            try:
                subscriber(snapshot)
            except Exception as e:
                self._subscriber_failures += 1
                logger.exception(f"Snapshot subscriber {subscriber!r} failed: {e}")

    async def run_async(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """
        Refresh until `stop_event` is set.

        Store and validation failures are logged and counted, and the next
        cycle retries. Subscriber failures are logged and counted without
        interrupting delivery to the others.
        """
        self._running = True
        if stop_event is None:
            stop_event = asyncio.Event()

        try:
            while not stop_event.is_set():
                try:
                    snapshot = self.take_snapshot()
                except RecordsError as e:
                    self._failures += 1
                    logger.error(f"Snapshot refresh failed ({self._failures} in a row): {e}")
                else:
                    self._failures = 0
                    self._publish(snapshot)
                try:
                    await asyncio.wait_for(
                        stop_event.wait(),
                        timeout=self.config.interval_seconds,
                    )
                except asyncio.TimeoutError:
                    continue
        finally:
            self._running = False
