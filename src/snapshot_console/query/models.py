"""Data models for snapshot loading and query execution.

Provides:
- The error taxonomy shared by the session, runner and console
- Snapshot and query request records
- The QueryResult union (rows, acknowledgement, failure)
- Mutable QueryStatus tracking for the request lifecycle
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Stable failure categories surfaced to the host UI."""

    VALIDATION = "validation_error"
    ENGINE_INIT = "engine_init_error"
    FETCH = "fetch_error"
    LOAD = "load_error"
    SESSION = "session_error"
    BUSY = "busy_error"
    ENGINE = "engine_error"
    SOURCE_UNAVAILABLE = "source_unavailable"


class ConsoleError(Exception):
    """Base error for every failure the console knows how to report."""

    kind: ErrorKind = ErrorKind.ENGINE

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ConsoleError):
    """Raised when the submitted query text is empty."""

    kind = ErrorKind.VALIDATION


class EngineInitError(ConsoleError):
    """Raised when the engine runtime fails to initialize."""

    kind = ErrorKind.ENGINE_INIT


class FetchError(ConsoleError):
    """Raised when snapshot bytes cannot be downloaded."""

    kind = ErrorKind.FETCH

    def __init__(self, message: str, url: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class LoadError(ConsoleError):
    """Raised when snapshot bytes are not a usable database."""

    kind = ErrorKind.LOAD


class SessionError(ConsoleError):
    """Raised when no usable session exists after a load attempt."""

    kind = ErrorKind.SESSION


class BusyError(ConsoleError):
    """Raised when a request arrives while another is running."""

    kind = ErrorKind.BUSY


class EngineError(ConsoleError):
    """Raised when the engine fails to execute a statement."""

    kind = ErrorKind.ENGINE


class SourceUnavailableError(ConsoleError):
    """Raised when no snapshot URL could be resolved."""

    kind = ErrorKind.SOURCE_UNAVAILABLE


@dataclass(frozen=True)
class Snapshot:
    """An immutable, URL-addressable database file for one revision."""

    url: str
    revision_id: str


@dataclass(frozen=True)
class QueryRequest:
    """A submitted query."""

    text: str
    started_at: float = field(default_factory=time.monotonic)


@dataclass(frozen=True)
class ResultSet:
    """One result set as returned by an engine handle."""

    columns: list[str]
    rows: list[list[Any]]


@dataclass(frozen=True)
class RowsResult:
    """Rows produced by a projection statement."""

    columns: list[str]
    rows: list[list[Any]]

    @property
    def row_count(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class AckResult:
    """Acknowledgement for a statement that produces no rows."""

    message: str = "Query executed successfully"


@dataclass(frozen=True)
class FailureResult:
    """A classified failure."""

    kind: ErrorKind
    message: str

    @classmethod
    def from_error(cls, error: ConsoleError) -> FailureResult:
        return cls(kind=error.kind, message=error.message)


QueryResult = RowsResult | AckResult | FailureResult


@dataclass
class QueryStatus:
    """Lifecycle status of the most recent request.

    Reset when a request starts and finalized exactly once when it ends.
    """

    running: bool = False
    success: bool = False
    elapsed_seconds: float | None = None
    row_count: int = 0

    def start(self) -> None:
        """Mark a request as running."""
        self.running = True
        self.success = False
        self.elapsed_seconds = None
        self.row_count = 0

    def finish(self, result: QueryResult, started_at: float) -> None:
        """Finalize the status from a request's result.

        Args:
            result: Result of the request.
            started_at: Monotonic timestamp the request started at.
        """
        self.running = False
        self.success = isinstance(result, (RowsResult, AckResult))
        self.elapsed_seconds = time.monotonic() - started_at
        self.row_count = result.row_count if isinstance(result, RowsResult) else 0
