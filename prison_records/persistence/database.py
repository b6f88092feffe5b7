"""
Database — the SQLite connection shared by every record repository.

Prototype: SQLite, one connection per process. Statements are serialized
through a lock so the snapshot refresher and request handlers can share it.
"""

import logging
import sqlite3
import threading
import time
from typing import Optional, Sequence

from prison_records.errors import PersistenceError
from prison_records.models.config import DatabaseConfig

logger = logging.getLogger(__name__)


class Database:
    def __init__(self, config: Optional[DatabaseConfig] = None):
        self.config = config or DatabaseConfig()
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    @property
    def path(self) -> str:
        return self.config.path

    def _connect(self) -> sqlite3.Connection:
        if self._conn is None:
            conn = sqlite3.connect(self.config.path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            self._conn = conn
            logger.info(f"Connected to records database at {self.config.path}")
        return self._conn

    def ping(self) -> bool:
        """True when the store answers a trivial query."""
        try:
            with self._lock:
                self._connect().execute("SELECT 1").fetchone()
            return True
        except sqlite3.Error as e:
            logger.warning(f"Database connectivity check failed: {e}")
            self._conn = None
            return False

    def wait_until_ready(self) -> None:
        """
        Check connectivity a bounded number of times with a fixed delay.

        Raises PersistenceError once every attempt has failed.
        """
        retries = self.config.connect_retries
        for attempt in range(1, retries + 1):
            if self.ping():
                return
            if attempt < retries:
                logger.warning(
                    f"Retrying database connection ({attempt}/{retries}) "
                    f"in {self.config.connect_retry_delay_seconds}s"
                )
                time.sleep(self.config.connect_retry_delay_seconds)
        logger.error(f"Database unreachable after {retries} attempts")
        raise PersistenceError(f"Database {self.config.path} unreachable after {retries} attempts")

    def execute(self, sql: str, params: Sequence = ()) -> sqlite3.Cursor:
        """Run one statement and commit. sqlite errors surface as PersistenceError."""
        with self._lock:
            try:
                cursor = self._connect().execute(sql, params)
                self._conn.commit()
                return cursor
            except sqlite3.Error as e:
                logger.error(f"Statement failed: {e}")
                raise PersistenceError(str(e)) from e

    def fetchall(self, sql: str, params: Sequence = ()) -> list:
        with self._lock:
            try:
                return self._connect().execute(sql, params).fetchall()
            except sqlite3.Error as e:
                logger.error(f"Query failed: {e}")
                raise PersistenceError(str(e)) from e

    def fetchone(self, sql: str, params: Sequence = ()) -> Optional[sqlite3.Row]:
        rows = self.fetchall(sql, params)
        return rows[0] if rows else None

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
