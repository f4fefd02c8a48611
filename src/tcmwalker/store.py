"""SQLite record store for tcmwalker.

The schema is created and filled once at startup by the descriptor loader.
During the session the store only answers ``fetch_all`` and ``execute``.
"""

import logging
import sqlite3
from collections.abc import Iterable
from pathlib import Path

from tcmwalker.config import DEPLOY_TABLE, HOSTS_TABLE, PROCS_TABLE
from tcmwalker.exceptions import StoreError
from tcmwalker.models import DeployRecord, HostRecord, JoinedRecord, ProcessRecord

logger = logging.getLogger(__name__)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS hosts (
        id INTEGER PRIMARY KEY,
        inner_ip TEXT NOT NULL,
        host_name TEXT NOT NULL,
        world_id TEXT NOT NULL,
        zone_id TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS procs (
        func_id INTEGER PRIMARY KEY,
        proc_type TEXT NOT NULL,
        work_path TEXT NOT NULL,
        func_name TEXT NOT NULL,
        proc_name TEXT NOT NULL,
        proc_group_name TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS deploy (
        id INTEGER PRIMARY KEY,
        host_id INTEGER NOT NULL,
        group_name TEXT NOT NULL,
        inst_id INTEGER NOT NULL,
        UNIQUE(host_id, group_name, inst_id)
    )
    """,
]


def _host_from_row(row: dict) -> HostRecord:
    return HostRecord(
        inner_ip=row["inner_ip"],
        host_name=row["host_name"],
        world_id=row["world_id"],
        zone_id=row["zone_id"],
    )


def _proc_from_row(row: dict) -> ProcessRecord:
    return ProcessRecord(
        func_id=int(row["func_id"]),
        func_name=row["func_name"],
        proc_name=row["proc_name"],
        group_name=row["proc_group_name"],
        work_path=row["work_path"],
        proc_type=row["proc_type"],
    )


def _deploy_from_row(row: dict) -> DeployRecord:
    return DeployRecord(
        host_id=int(row["host_id"]),
        group_name=row["group_name"],
        inst_id=int(row["inst_id"]),
    )


def _joined_from_row(row: dict) -> JoinedRecord:
    return JoinedRecord(
        host_id=int(row["host_id"]),
        inner_ip=row["inner_ip"],
        host_name=row["host_name"],
        world_id=row["world_id"],
        zone_id=row["zone_id"],
        func_id=int(row["func_id"]),
        proc_type=row["proc_type"],
        work_path=row["work_path"],
        func_name=row["func_name"],
        proc_name=row["proc_name"],
        group_name=row["proc_group_name"],
        inst_id=int(row["inst_id"]),
    )


_ROW_MAPPERS = {
    HOSTS_TABLE: _host_from_row,
    PROCS_TABLE: _proc_from_row,
    DEPLOY_TABLE: _deploy_from_row,
}


class TopologyStore:
    """SQLite connection owner for the topology tables."""

    def __init__(self, db_path: Path | str = ":memory:") -> None:
        """
        Open the database.

        Args:
            db_path: SQLite file path, or ":memory:" for a private database.
        """
        self.db_path = db_path
        try:
            self._conn = sqlite3.connect(str(db_path))
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open database {db_path}: {e}") from e

    def close(self) -> None:
        """Close the connection."""
        self._conn.close()

    def create_schema(self) -> None:
        """Create the hosts, procs and deploy tables."""
        logger.info("Creating schema in %s", self.db_path)
        with self._conn:
            for sql in SCHEMA:
                self._conn.execute(sql)

    def insert_hosts(self, hosts: Iterable[HostRecord]) -> None:
        with self._conn:
            self._conn.executemany(
                "INSERT INTO hosts (inner_ip, host_name, world_id, zone_id) VALUES (?, ?, ?, ?)",
                [(h.inner_ip, h.host_name, h.world_id, h.zone_id) for h in hosts],
            )

    def insert_procs(self, procs: Iterable[ProcessRecord]) -> None:
        with self._conn:
            self._conn.executemany(
                "INSERT INTO procs (func_id, proc_type, work_path, func_name, proc_name, "
                "proc_group_name) VALUES (?, ?, ?, ?, ?, ?)",
                [
                    (p.func_id, p.proc_type, p.work_path, p.func_name, p.proc_name, p.group_name)
                    for p in procs
                ],
            )

    def insert_deploys(self, deploys: Iterable[DeployRecord]) -> None:
        # A group deployed twice with the same instance on a host is one placement
        with self._conn:
            self._conn.executemany(
                "INSERT OR IGNORE INTO deploy (host_id, group_name, inst_id) VALUES (?, ?, ?)",
                [(d.host_id, d.group_name, d.inst_id) for d in deploys],
            )

    def get_host_id(self, inner_ip: str, world_id: str, zone_id: str) -> int | None:
        """Look up the row id of a host placement."""
        row = self._conn.execute(
            "SELECT id FROM hosts WHERE inner_ip = ? AND world_id = ? AND zone_id = ?",
            (inner_ip, world_id, zone_id),
        ).fetchone()
        return row[0] if row else None

    def _query(self, sql: str) -> list[dict]:
        """Run a query, returning rows keyed by column name (first column wins)."""
        logger.debug("SQL: %s", sql)
        try:
            cursor = self._conn.execute(sql)
            names = [column[0] for column in cursor.description]
            rows = []
            for values in cursor.fetchall():
                row: dict = {}
                for name, value in zip(names, values):
                    row.setdefault(name, value)
                rows.append(row)
            return rows
        except sqlite3.Error as e:
            raise StoreError(f"Query failed: {e}", sql=sql) from e

    async def fetch_all(self, table: str) -> list:
        """
        Return every record of a table.

        Raises:
            StoreError: Unknown table or database failure.
        """
        mapper = _ROW_MAPPERS.get(table)
        if mapper is None:
            raise StoreError(f"Unknown table: {table}")
        return [mapper(row) for row in self._query(f"select * from {table}")]

    async def execute(self, sql: str) -> list[JoinedRecord]:
        """
        Run a compiled address query.

        Raises:
            StoreError: The SQL is rejected by SQLite.
        """
        try:
            return [_joined_from_row(row) for row in self._query(sql)]
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Unexpected result shape: {e}", sql=sql) from e
