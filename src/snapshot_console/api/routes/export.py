"""Export API routes for downloading query results.

Provides endpoints for:
- CSV download of the console's current row result
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response

from snapshot_console.config import get_settings
from snapshot_console.console.service import get_console
from snapshot_console.observability import get_logger
from snapshot_console.query.formatter import to_csv
from snapshot_console.query.models import RowsResult

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/export", tags=["export"])


def _sanitize_filename(filename: str) -> str:
    """Make a filename safe for filesystems and the Content-Disposition header."""
    for char in '"/<>:\\|?*\x00\n\r':
        filename = filename.replace(char, "_")
    return filename[:200]


@router.get("/csv")
async def export_csv(
    filename: str | None = Query(default=None, description="Download name without extension"),
) -> Response:
    """Download the current query result as CSV.

    Raises:
        HTTPException: 409 if the current result has no rows to export,
            413 if the CSV exceeds the configured size limit.
    """
    console = get_console()
    result = console.result
    if not isinstance(result, RowsResult):
        raise HTTPException(status_code=409, detail="No row result to export")

    data = to_csv(result)
    max_size = get_settings().export.max_size_bytes
    if len(data) > max_size:
        raise HTTPException(
            status_code=413, detail=f"Export size exceeds maximum of {max_size} bytes"
        )

    revision = console.snapshot.revision_id if console.snapshot is not None else "query"
    name = _sanitize_filename(filename or f"export_{revision}")
    logger.info("csv_exported", rows=result.row_count, size=len(data))
    return Response(
        content=data,
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{name}.csv"',
            "Cache-Control": "no-cache",
        },
    )
