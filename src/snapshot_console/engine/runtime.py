"""Embedded SQL engine runtimes.

A runtime turns raw snapshot bytes into an open handle. Handles run SQL
synchronously and report failures as EngineError carrying the engine's own
message; classification into user-facing messages happens in the runner.

Backends:
- SqliteRuntime: stdlib sqlite3, database deserialized straight into memory
- DuckDBRuntime: DuckDB, database materialized to a temporary file
"""

from __future__ import annotations

import contextlib
import os
import sqlite3
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import duckdb

from snapshot_console.config import EngineBackend
from snapshot_console.engine.statements import split_statements
from snapshot_console.query.models import EngineError, LoadError, ResultSet

if TYPE_CHECKING:
    from snapshot_console.config import EngineConfig


class EngineHandle(Protocol):
    """An open database."""

    def query(self, sql: str) -> list[ResultSet]: ...

    def run(self, sql: str) -> None: ...

    def close(self) -> None: ...


class EngineRuntime(Protocol):
    """An initialized engine able to open databases from bytes."""

    name: str

    def open(self, data: bytes) -> EngineHandle: ...


class SqliteHandle:
    """Handle over an in-memory SQLite connection."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection: sqlite3.Connection | None = connection

    def _conn(self) -> sqlite3.Connection:
        if self._connection is None:
            raise EngineError("database handle is closed")
        return self._connection

    def query(self, sql: str) -> list[ResultSet]:
        """Run every statement and collect the result set of each row-producing one."""
        conn = self._conn()
        results: list[ResultSet] = []
        cursor = conn.cursor()
        try:
            for statement in split_statements(sql):
                cursor.execute(statement)
                if cursor.description is not None:
                    columns = [column[0] for column in cursor.description]
                    rows = [list(row) for row in cursor.fetchall()]
                    results.append(ResultSet(columns=columns, rows=rows))
        except sqlite3.Error as e:
            raise EngineError(str(e)) from e
        finally:
            cursor.close()
        return results

    def run(self, sql: str) -> None:
        """Run statements for their side effects."""
        try:
            self._conn().executescript(sql)
        except sqlite3.Error as e:
            raise EngineError(str(e)) from e

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None


class SqliteRuntime:
    """SQLite runtime backed by the interpreter's sqlite3 module."""

    name = EngineBackend.SQLITE.value

    @classmethod
    def init(cls, config: EngineConfig) -> SqliteRuntime:  # noqa: ARG003
        """Verify the sqlite3 build can load databases from memory."""
        if not hasattr(sqlite3.Connection, "deserialize"):
            raise RuntimeError(
                f"sqlite3 {sqlite3.sqlite_version} does not support in-memory deserialization"
            )
        return cls()

    def open(self, data: bytes) -> SqliteHandle:
        """Open a database from raw file bytes.

        Raises:
            LoadError: If the bytes are not a valid SQLite database.
        """
        conn = sqlite3.connect(":memory:", check_same_thread=False, isolation_level=None)
        try:
            conn.deserialize(data)
            conn.execute("SELECT count(*) FROM sqlite_master").fetchone()
        except sqlite3.Error as e:
            conn.close()
            raise LoadError(f"Invalid database file: {e}") from e
        return SqliteHandle(conn)


class DuckDBHandle:
    """Handle over a DuckDB connection to a temporary database file."""

    def __init__(self, connection: duckdb.DuckDBPyConnection, path: Path) -> None:
        self._connection: duckdb.DuckDBPyConnection | None = connection
        self._path = path

    def _conn(self) -> duckdb.DuckDBPyConnection:
        if self._connection is None:
            raise EngineError("database handle is closed")
        return self._connection

    def query(self, sql: str) -> list[ResultSet]:
        conn = self._conn()
        results: list[ResultSet] = []
        try:
            for statement in split_statements(sql):
                conn.execute(statement)
                if conn.description is not None:
                    columns = [column[0] for column in conn.description]
                    rows = [list(row) for row in conn.fetchall()]
                    results.append(ResultSet(columns=columns, rows=rows))
        except duckdb.Error as e:
            raise EngineError(str(e)) from e
        return results

    def run(self, sql: str) -> None:
        conn = self._conn()
        try:
            for statement in split_statements(sql):
                conn.execute(statement)
        except duckdb.Error as e:
            raise EngineError(str(e)) from e

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            with contextlib.suppress(FileNotFoundError):
                self._path.unlink()


class DuckDBRuntime:
    """DuckDB runtime with configured memory and thread limits."""

    name = EngineBackend.DUCKDB.value

    def __init__(self, config: EngineConfig) -> None:
        self._config = config

    def _apply_limits(self, conn: duckdb.DuckDBPyConnection) -> None:
        conn.execute(f"SET memory_limit = '{self._config.memory_limit}'")
        conn.execute(f"SET threads = {self._config.threads}")

    @classmethod
    def init(cls, config: EngineConfig) -> DuckDBRuntime:
        """Verify DuckDB accepts the configured limits."""
        runtime = cls(config)
        conn = duckdb.connect(":memory:")
        try:
            runtime._apply_limits(conn)
        finally:
            conn.close()
        return runtime

    def open(self, data: bytes) -> DuckDBHandle:
        """Open a database from raw DuckDB file bytes.

        Raises:
            LoadError: If DuckDB cannot open the bytes as a database.
        """
        fd, name = tempfile.mkstemp(prefix="snapshot-", suffix=".duckdb")
        path = Path(name)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        try:
            conn = duckdb.connect(str(path))
        except duckdb.Error as e:
            path.unlink(missing_ok=True)
            raise LoadError(f"Invalid database file: {e}") from e
        try:
            self._apply_limits(conn)
        except duckdb.Error as e:
            conn.close()
            path.unlink(missing_ok=True)
            raise LoadError(f"Invalid database file: {e}") from e
        return DuckDBHandle(conn, path)


RUNTIMES: dict[EngineBackend, type[SqliteRuntime] | type[DuckDBRuntime]] = {
    EngineBackend.SQLITE: SqliteRuntime,
    EngineBackend.DUCKDB: DuckDBRuntime,
}


def init_runtime(config: EngineConfig) -> EngineRuntime:
    """Initialize the runtime selected by configuration (blocking)."""
    return RUNTIMES[config.backend].init(config)
