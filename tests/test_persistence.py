"""Tests for the SQLite database and record repositories."""

import pytest

from prison_records.errors import PersistenceError, RecordNotFoundError
from prison_records.models.cell import Cell
from prison_records.models.config import DatabaseConfig
from prison_records.models.security import AlertStatus, SecurityAlert
from prison_records.persistence.database import Database
from prison_records.persistence.repository import RecordRepositories, Repository


def _make_alert(alert_id: str = "ALT001", severity: str = "High") -> SecurityAlert:
    return SecurityAlert.create(
        alert_id=alert_id,
        alert_type="Unauthorized Access",
        severity=severity,
        description="Door forced open",
        location="Block A",
    )


class TestDatabase:
    def test_in_memory_ready(self):
        db = Database()
        assert db.ping()
        db.wait_until_ready()
        db.close()

    def test_file_database(self, tmp_path):
        path = str(tmp_path / "records.db")
        db = Database(DatabaseConfig(path=path))
        db.execute("CREATE TABLE t (x TEXT)")
        db.execute("INSERT INTO t VALUES (?)", ("hello",))
        db.close()

        reopened = Database(DatabaseConfig(path=path))
        assert reopened.fetchone("SELECT x FROM t")["x"] == "hello"
        reopened.close()

    def test_unreachable_database_gives_up(self, tmp_path):
        config = DatabaseConfig(
            path=str(tmp_path / "missing" / "dir" / "records.db"),
            connect_retries=2,
            connect_retry_delay_seconds=0,
        )
        db = Database(config)
        assert not db.ping()
        with pytest.raises(PersistenceError, match="2 attempts"):
            db.wait_until_ready()

    def test_bad_statement_surfaces_as_persistence_error(self):
        db = Database()
        with pytest.raises(PersistenceError):
            db.execute("SELECT * FROM no_such_table")
        with pytest.raises(PersistenceError):
            db.fetchall("SELECT * FROM no_such_table")


class TestRepository:
    def setup_method(self):
        self.repos = RecordRepositories(Database())
        self.alerts = self.repos.alerts

    def test_create_and_get(self):
        self.alerts.create(_make_alert())
        stored = self.alerts.get("ALT001")
        assert stored is not None
        assert stored.description == "Door forced open"
        assert stored.status == AlertStatus.ACTIVE

    def test_get_missing(self):
        assert self.alerts.get("ALT404") is None
        with pytest.raises(RecordNotFoundError):
            self.alerts.require("ALT404")

    def test_duplicate_create_refused(self):
        self.alerts.create(_make_alert())
        with pytest.raises(PersistenceError, match="already exists"):
            self.alerts.create(_make_alert())

    def test_update_replaces_row(self):
        alert = self.alerts.create(_make_alert())
        self.alerts.update(alert.acknowledge("EMP001"))
        stored = self.alerts.require("ALT001")
        assert stored.status == AlertStatus.ACKNOWLEDGED
        assert stored.acknowledged_by == "EMP001"
        assert self.alerts.count() == 1

    def test_update_missing_record(self):
        with pytest.raises(RecordNotFoundError):
            self.alerts.update(_make_alert("ALT404"))

    def test_list_all_in_insertion_order(self):
        for alert_id in ("ALT003", "ALT001", "ALT002"):
            self.alerts.create(_make_alert(alert_id))
        assert [a.alert_id for a in self.alerts.list_all()] == ["ALT003", "ALT001", "ALT002"]

    def test_list_by_indexed_columns(self):
        self.alerts.create(_make_alert("ALT001", "Critical"))
        self.alerts.create(_make_alert("ALT002", "Low"))
        self.alerts.update(self.alerts.require("ALT002").resolve("EMP001"))

        assert [a.alert_id for a in self.alerts.list_by(severity="critical")] == ["ALT001"]
        assert [a.alert_id for a in self.alerts.list_by(status=AlertStatus.RESOLVED)] == ["ALT002"]
        assert self.alerts.list_by(status="Active", severity="Low") == []

    def test_list_by_unknown_column(self):
        with pytest.raises(ValueError):
            self.alerts.list_by(description="Door")

    def test_next_id(self):
        assert self.alerts.next_id() == "ALT001"
        self.alerts.create(_make_alert("ALT001"))
        self.alerts.create(_make_alert("ALT007"))
        self.alerts.create(_make_alert("MANUAL"))
        assert self.alerts.next_id() == "ALT008"

    def test_cell_occupants_survive_storage(self):
        cells = self.repos.cells
        cell = Cell.create(
            cell_number="C101", cell_type="Double", capacity=2, security_level="Medium",
        )
        cells.create(cell.assign("PRS001"))
        stored = cells.require("C101")
        assert stored.occupant_ids == ("PRS001",)
        assert stored.current_occupancy == 1

    def test_invalid_table_name_rejected(self):
        with pytest.raises(ValueError):
            Repository(Database(), "alerts; DROP TABLE x", SecurityAlert)

    def test_repositories_share_one_database(self):
        repos = self.repos.all()
        assert set(repos) == {
            "alerts", "logs", "access_controls", "prisoners", "employees",
            "visitors", "visits", "cells", "tasks", "duties",
        }
        assert all(r.database is self.repos.database for r in repos.values())
