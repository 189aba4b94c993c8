"""Shared helpers for API routes.

Provides conversions from console objects to response models:
- JSON-safe cell values
- Query results in table or record view
- Console state snapshots
"""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from snapshot_console.models.console import (
    ConsoleStateResponse,
    QueryResultModel,
    QueryStatusModel,
    ResultView,
    SnapshotModel,
)
from snapshot_console.query.formatter import to_records, to_table
from snapshot_console.query.models import AckResult, RowsResult

if TYPE_CHECKING:
    from snapshot_console.console.service import Console
    from snapshot_console.query.models import QueryResult


def convert_value(value: Any) -> Any:
    """Convert an engine value to a JSON-serializable Python value."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def serialize_result(
    result: QueryResult | None, view: ResultView = ResultView.TABLE
) -> QueryResultModel | None:
    """Render a query result for the API."""
    if result is None:
        return None
    if isinstance(result, AckResult):
        return QueryResultModel(type="ack", message=result.message)
    if isinstance(result, RowsResult):
        if view is ResultView.RECORDS:
            records = [
                {key: convert_value(value) for key, value in record.items()}
                for record in to_records(result)
            ]
            return QueryResultModel(type="rows", columns=result.columns, records=records)
        table = to_table(result)
        rows = [[convert_value(value) for value in row] for row in table.rows]
        return QueryResultModel(type="rows", columns=table.columns, rows=rows)
    return QueryResultModel(type="failure", kind=result.kind.value, message=result.message)


def serialize_console(console: Console) -> ConsoleStateResponse:
    """Render the console's observable state."""
    snapshot = console.snapshot
    session = console.session
    return ConsoleStateResponse(
        state=console.state.value,
        snapshot=(
            SnapshotModel(url=snapshot.url, revision_id=snapshot.revision_id)
            if snapshot is not None
            else None
        ),
        loaded=session is not None and session.loaded,
        text=console.text,
        status=QueryStatusModel(
            running=console.status.running,
            success=console.status.success,
            elapsed_seconds=console.status.elapsed_seconds,
            row_count=console.status.row_count,
        ),
        message=console.message,
    )
