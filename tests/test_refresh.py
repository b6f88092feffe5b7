"""Tests for the snapshot refresher."""

import asyncio
from datetime import datetime

import pytest

from prison_records.errors import PersistenceError, ValidationError
from prison_records.models.config import RefreshConfig
from prison_records.persistence.database import Database
from prison_records.persistence.repository import RecordRepositories
from prison_records.refresh.loop import FacilitySnapshot, SnapshotRefresher
from prison_records.services.security import SecurityService

NOW = datetime(2024, 3, 15, 10, 30)


class TestSnapshotRefresher:
    def setup_method(self):
        self.repos = RecordRepositories(Database())
        self.security = SecurityService(
            self.repos.alerts, self.repos.logs, self.repos.access_controls
        )
        self.refresher = SnapshotRefresher(self.repos, RefreshConfig(interval_seconds=1))

    def _raise_alert(self):
        return self.security.raise_alert(
            alert_type="Fire", severity="High", description="Smoke", location="Kitchen",
        )

    def test_initial_state(self):
        assert self.refresher.status == "stopped"
        assert self.refresher.latest is None
        assert self.refresher.consecutive_failures == 0

    def test_snapshot_contains_every_record_type(self):
        self._raise_alert()
        snapshot = self.refresher.take_snapshot(now=NOW)
        assert isinstance(snapshot, FacilitySnapshot)
        assert snapshot.taken_at == NOW
        assert [a.alert_id for a in snapshot.alerts] == ["ALT001"]
        assert snapshot.prisoners == ()

    def test_snapshot_is_isolated_from_later_writes(self):
        self._raise_alert()
        snapshot = self.refresher.refresh_once(now=NOW)
        self.security.resolve_alert("ALT001", "EMP001")
        self._raise_alert()
        assert len(snapshot.alerts) == 1
        assert snapshot.alerts[0].is_open

    def test_subscribers_receive_snapshots(self):
        received = []
        self.refresher.subscribe(received.append)
        self.refresher.refresh_once(now=NOW)
        self.refresher.unsubscribe(received.append)
        self.refresher.refresh_once(now=NOW)
        assert len(received) == 1
        assert self.refresher.latest.taken_at == NOW

    def test_run_until_stopped(self):
        received = []

        async def scenario():
            stop = asyncio.Event()
            self.refresher.subscribe(lambda s: (received.append(s), stop.set()))
            await self.refresher.run_async(stop)

        asyncio.run(scenario())
        assert len(received) == 1
        assert self.refresher.status == "stopped"

    def test_store_failure_is_counted_and_retried(self):
        calls = []

        def failing_snapshot(now=None):
            calls.append(now)
            raise PersistenceError("database is locked")

        self.refresher.take_snapshot = failing_snapshot

        async def scenario():
            stop = asyncio.Event()
            task = asyncio.create_task(self.refresher.run_async(stop))
            while not calls:
                await asyncio.sleep(0.01)
            assert self.refresher.status == "running"
            stop.set()
            await task

        asyncio.run(scenario())
        assert self.refresher.consecutive_failures == 1
        assert self.refresher.latest is None

    def test_subscriber_errors_propagate(self):
        def broken(snapshot):
            raise RuntimeError("subscriber failed")

        self.refresher.subscribe(broken)
        with pytest.raises(RuntimeError):
            self.refresher.refresh_once()

    def test_invalid_stored_record_does_not_stop_loop(self):
        calls = []

        def failing_snapshot(now=None):
            calls.append(now)
            raise ValidationError("Invalid SecurityAlert: severity")

        self.refresher.take_snapshot = failing_snapshot

        async def scenario():
            stop = asyncio.Event()
            task = asyncio.create_task(self.refresher.run_async(stop))
            while not calls:
                await asyncio.sleep(0.01)
            stop.set()
            await task

        asyncio.run(scenario())
        assert self.refresher.consecutive_failures == 1
        assert self.refresher.status == "stopped"

    def test_failing_subscriber_isolated_in_loop(self):
        received = []

        def broken(snapshot):
            raise RuntimeError("subscriber failed")

        async def scenario():
            stop = asyncio.Event()
            self.refresher.subscribe(broken)
            self.refresher.subscribe(lambda s: (received.append(s), stop.set()))
            await self.refresher.run_async(stop)

        self._raise_alert()
        asyncio.run(scenario())
        assert len(received) == 1
        assert self.refresher.subscriber_failures == 1
        assert self.refresher.consecutive_failures == 0
        assert self.refresher.latest is received[0]
