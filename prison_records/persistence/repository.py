"""
Record repositories — one table per record type.

Each row keeps the record ID, a handful of indexed filter columns and the
full record as JSON. Reads rebuild records through `Record.restore`, so a
stored row that no longer validates surfaces as a ValidationError rather
than a half-built record.

Behavioral Contract:
- create() refuses an ID that is already stored.
- update() replaces the stored row for an existing ID and never inserts.
- Rows are never deleted.
"""

import json
import logging
import re
from typing import Dict, Generic, List, Optional, Sequence, Type, TypeVar

from prison_records.errors import PersistenceError, RecordNotFoundError
from prison_records.models.access import AccessControl
from prison_records.models.base import Record
from prison_records.models.cell import Cell
from prison_records.models.duty import GuardDuty
from prison_records.models.people import Employee, Prisoner, Visitor
from prison_records.models.security import SecurityAlert, SecurityLog
from prison_records.models.task import Task
from prison_records.models.visit import Visit
from prison_records.persistence.database import Database

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


def _column_value(value):
    if value is None:
        return None
    return str(getattr(value, "value", value))


class Repository(Generic[R]):
    """CRUD access to one record type."""

    def __init__(
        self,
        database: Database,
        table: str,
        model: Type[R],
        columns: Sequence[str] = (),
        id_prefix: str = "",
    ):
        for name in (table, *columns):
            if not _IDENTIFIER.match(name):
                raise ValueError(f"Invalid table or column name: {name!r}")
        self.database = database
        self.table = table
        self.model = model
        self.columns = tuple(columns)
        self.id_prefix = id_prefix
        self._init_schema()

    def _init_schema(self) -> None:
        """Create the table and its filter indexes if they don't exist."""
        extra = "".join(f",\n                {c} TEXT" for c in self.columns)
        self.database.execute(f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                record_id TEXT PRIMARY KEY{extra},
                record_json TEXT NOT NULL,
                stored_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)
        for column in self.columns:
            self.database.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{self.table}_{column} "
                f"ON {self.table}({column})"
            )

    def _serialize(self, record: R) -> tuple:
        values = [_column_value(getattr(record, c, None)) for c in self.columns]
        return (*values, record.model_dump_json())

    def _deserialize(self, row) -> R:
        return self.model.restore(**json.loads(row["record_json"]))

    def create(self, record: R) -> R:
        if self.exists(record.record_id):
            raise PersistenceError(
                f"{self.model.__name__} {record.record_id} already exists"
            )
        names = ", ".join(("record_id", *self.columns, "record_json"))
        placeholders = ", ".join("?" for _ in range(len(self.columns) + 2))
        self.database.execute(
            f"INSERT INTO {self.table} ({names}) VALUES ({placeholders})",
            (record.record_id, *self._serialize(record)),
        )
        logger.debug(f"Stored {self.model.__name__} {record.record_id}")
        return record

    def update(self, record: R) -> R:
        assignments = ", ".join(f"{c} = ?" for c in (*self.columns, "record_json"))
        cursor = self.database.execute(
            f"UPDATE {self.table} SET {assignments} WHERE record_id = ?",
            (*self._serialize(record), record.record_id),
        )
        if cursor.rowcount == 0:
            raise RecordNotFoundError(
                f"{self.model.__name__} {record.record_id} not found"
            )
        return record

    def exists(self, record_id: str) -> bool:
        row = self.database.fetchone(
            f"SELECT 1 FROM {self.table} WHERE record_id = ?", (record_id,)
        )
        return row is not None

    def get(self, record_id: str) -> Optional[R]:
        row = self.database.fetchone(
            f"SELECT record_json FROM {self.table} WHERE record_id = ?", (record_id,)
        )
        return self._deserialize(row) if row else None

    def require(self, record_id: str) -> R:
        record = self.get(record_id)
        if record is None:
            raise RecordNotFoundError(f"{self.model.__name__} {record_id} not found")
        return record

    def list_all(self) -> List[R]:
        rows = self.database.fetchall(
            f"SELECT record_json FROM {self.table} ORDER BY rowid"
        )
        return [self._deserialize(r) for r in rows]

    def list_by(self, **filters: str) -> List[R]:
        """Records whose indexed columns match every filter, ignoring case."""
        unknown = set(filters) - set(self.columns)
        if unknown:
            raise ValueError(
                f"{self.table} cannot be filtered by {', '.join(sorted(unknown))}"
            )
        if not filters:
            return self.list_all()
        clauses = " AND ".join(f"LOWER({c}) = LOWER(?)" for c in filters)
        rows = self.database.fetchall(
            f"SELECT record_json FROM {self.table} WHERE {clauses} ORDER BY rowid",
            tuple(_column_value(v) for v in filters.values()),
        )
        return [self._deserialize(r) for r in rows]

    def count(self) -> int:
        row = self.database.fetchone(f"SELECT COUNT(*) AS cnt FROM {self.table}")
        return row["cnt"]

    def next_id(self) -> str:
        """Next sequential ID for this table, e.g. ALT001, ALT002."""
        highest = 0
        for row in self.database.fetchall(f"SELECT record_id FROM {self.table}"):
            suffix = row["record_id"][len(self.id_prefix):]
            if row["record_id"].startswith(self.id_prefix) and suffix.isdigit():
                highest = max(highest, int(suffix))
        return f"{self.id_prefix}{highest + 1:03d}"


class RecordRepositories:
    """Every repository the services need, built over one database."""

    def __init__(self, database: Database):
        self.database = database
        self.alerts: Repository[SecurityAlert] = Repository(
            database, "security_alerts", SecurityAlert,
            columns=("status", "severity", "alert_type", "location"), id_prefix="ALT",
        )
        self.logs: Repository[SecurityLog] = Repository(
            database, "security_logs", SecurityLog,
            columns=("status", "severity", "event_type", "location"), id_prefix="LOG",
        )
        self.access_controls: Repository[AccessControl] = Repository(
            database, "access_controls", AccessControl,
            columns=("employee_id", "module", "permission_level"), id_prefix="ACC",
        )
        self.prisoners: Repository[Prisoner] = Repository(
            database, "prisoners", Prisoner,
            columns=("status", "cell_number"), id_prefix="PRS",
        )
        self.employees: Repository[Employee] = Repository(
            database, "employees", Employee,
            columns=("status", "department", "position"), id_prefix="EMP",
        )
        self.visitors: Repository[Visitor] = Repository(
            database, "visitors", Visitor,
            columns=("status", "prisoner_id"), id_prefix="VST",
        )
        self.visits: Repository[Visit] = Repository(
            database, "visits", Visit,
            columns=("status", "prisoner_id", "visitor_id"), id_prefix="VIS",
        )
        self.cells: Repository[Cell] = Repository(
            database, "cells", Cell,
            columns=("cell_type", "security_level"), id_prefix="C",
        )
        self.tasks: Repository[Task] = Repository(
            database, "tasks", Task,
            columns=("status", "priority", "category", "assigned_to_id"), id_prefix="TSK",
        )
        self.duties: Repository[GuardDuty] = Repository(
            database, "guard_duties", GuardDuty,
            columns=("status", "officer_id", "duty_type"), id_prefix="DTY",
        )

    def all(self) -> Dict[str, Repository]:
        return {
            name: repo for name, repo in vars(self).items()
            if isinstance(repo, Repository)
        }
