"""Result projections for display and export.

- to_table: column/row view
- to_records: one mapping per row for JSON-style display
- to_arrow / to_csv: Arrow table and CSV bytes for downloads

Only RowsResult carries data; acknowledgements and failures project to
empty views.
"""

from __future__ import annotations

from typing import Any

import pyarrow as pa
import pyarrow.csv as pa_csv

from snapshot_console.query.models import QueryResult, ResultSet, RowsResult


def to_table(result: QueryResult) -> ResultSet:
    """Project a result into columns and rows."""
    if isinstance(result, RowsResult):
        return ResultSet(columns=result.columns, rows=result.rows)
    return ResultSet(columns=[], rows=[])


def to_records(result: QueryResult) -> list[dict[str, Any]]:
    """Zip column names with each row.

    Duplicate column names collapse: the last column with a given name wins.
    """
    if not isinstance(result, RowsResult):
        return []
    return [dict(zip(result.columns, row)) for row in result.rows]


def _column_array(values: list[Any]) -> pa.Array:
    """Build an Arrow array, falling back to strings for mixed-type columns."""
    try:
        return pa.array(values)
    except (pa.ArrowInvalid, pa.ArrowTypeError):
        return pa.array([None if v is None else str(v) for v in values], type=pa.string())


def to_arrow(result: QueryResult) -> pa.Table:
    """Convert a result to an Arrow table, keeping duplicate column names."""
    table = to_table(result)
    arrays = [
        _column_array([row[index] for row in table.rows]) for index in range(len(table.columns))
    ]
    return pa.Table.from_arrays(arrays, names=list(table.columns))


def to_csv(result: QueryResult) -> bytes:
    """Render a result as CSV with a header row."""
    sink = pa.BufferOutputStream()
    pa_csv.write_csv(to_arrow(result), sink)
    return sink.getvalue().to_pybytes()
