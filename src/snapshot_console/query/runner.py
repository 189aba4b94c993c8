"""Query runner for executing SQL against a database session.

Provides:
- Validation of query text
- Lazy session loading on first use
- Single-flight guard on the shared QueryStatus
- Projection vs. side-effecting statement dispatch
- Classification of engine errors into stable messages
- Execution metrics and tracing
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from snapshot_console.engine.statements import leading_keyword
from snapshot_console.observability import (
    decrement_active_queries,
    get_logger,
    get_tracer,
    increment_active_queries,
    record_query_duration,
    record_query_rows,
)
from snapshot_console.query.models import (
    AckResult,
    BusyError,
    ConsoleError,
    ErrorKind,
    FailureResult,
    QueryRequest,
    QueryResult,
    RowsResult,
    SessionError,
    ValidationError,
)

if TYPE_CHECKING:
    from snapshot_console.engine.session import DatabaseSession
    from snapshot_console.query.models import QueryStatus

logger = get_logger(__name__)

# Checked in order against the lower-cased engine message.
ERROR_MESSAGES: tuple[tuple[str, str], ...] = (
    ("no such table", "table not found"),
    ("syntax error", "SQL syntax error"),
    ("constraint failed", "constraint violation"),
    ("readonly", "database is read-only"),
)

PROJECTION_KEYWORD = "SELECT"


def classify_engine_error(message: str) -> str:
    """Map a raw engine error message to a user-facing one.

    Unmatched messages are returned verbatim.
    """
    lowered = message.lower()
    for needle, friendly in ERROR_MESSAGES:
        if needle in lowered:
            return friendly
    return message


def is_projection(sql: str) -> bool:
    """Check whether a statement starts with SELECT, ignoring case and leading comments."""
    return leading_keyword(sql) == PROJECTION_KEYWORD


class QueryRunner:
    """Executes query text against a session and records its status."""

    def validate(self, text: str) -> FailureResult | None:
        """Return a validation failure for empty text, else None."""
        if not text or not text.strip():
            return FailureResult.from_error(ValidationError("Query is empty"))
        return None

    def _run(self, session: DatabaseSession, text: str) -> QueryResult:
        handle = session.handle
        if handle is None:
            raise SessionError("Database session is not loaded")

        if is_projection(text):
            result_sets = handle.query(text)
            if not result_sets:
                return RowsResult(columns=[], rows=[])
            # Only the first result set of a multi-statement string is shown.
            first = result_sets[0]
            return RowsResult(columns=first.columns, rows=first.rows)

        handle.run(text)
        return AckResult()

    async def execute(
        self, session: DatabaseSession, text: str, status: QueryStatus
    ) -> QueryResult:
        """Execute query text and finalize the status.

        Args:
            session: Session to run against; loaded first if needed.
            text: SQL text.
            status: Shared status record, mutated across the request.

        Returns:
            RowsResult, AckResult or FailureResult. Never raises for query errors.
        """
        failure = self.validate(text)
        if failure is not None:
            return failure

        if status.running:
            logger.warning("query_rejected_busy")
            return FailureResult.from_error(BusyError("A query is already running"))

        if not session.loaded:
            try:
                await session.load()
            except ConsoleError as e:
                return FailureResult(
                    kind=ErrorKind.SESSION,
                    message=f"No usable database session: {e.message}",
                )

        request = QueryRequest(text=text)
        status.start()
        increment_active_queries()
        try:
            with get_tracer().start_as_current_span("sql.query") as span:
                span.set_attribute("db.statement.projection", is_projection(text))
                try:
                    result = self._run(session, request.text)
                except Exception as e:
                    message = e.message if isinstance(e, ConsoleError) else str(e)
                    result = FailureResult(
                        kind=ErrorKind.ENGINE, message=classify_engine_error(message)
                    )
                    span.set_attribute("error.message", message)
        finally:
            decrement_active_queries()

        status.finish(result, request.started_at)
        elapsed = status.elapsed_seconds or 0.0
        if isinstance(result, FailureResult):
            record_query_duration(elapsed, status=result.kind.value)
            logger.warning("query_failed", error=result.message, duration_seconds=elapsed)
        else:
            record_query_duration(elapsed)
            record_query_rows(status.row_count)
            logger.info("query_completed", rows=status.row_count, duration_seconds=elapsed)
        return result
