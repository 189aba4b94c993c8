"""API models for the console endpoints.

Provides Pydantic models for:
- Console commands (open, set text)
- Console state and query status
- Query results in table or record view
- Example query listings
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ResultView(str, Enum):
    """How row results are rendered."""

    TABLE = "table"
    RECORDS = "records"


class OpenConsoleRequest(BaseModel):
    """Request to bind the console to a revision."""

    revision_id: str | None = Field(
        default=None,
        description="Revision to open. Defaults to the configured revision.",
    )


class SetQueryTextRequest(BaseModel):
    """Request to replace the current query text."""

    text: str = Field(..., description="SQL text for the next execution.")


class QueryStatusModel(BaseModel):
    """Status of the most recent query."""

    running: bool = Field(..., description="Whether a query is in flight.")
    success: bool = Field(..., description="Whether the last query succeeded.")
    elapsed_seconds: float | None = Field(
        default=None, description="Duration of the last query in seconds."
    )
    row_count: int = Field(..., description="Rows returned by the last query.")


class SnapshotModel(BaseModel):
    """The snapshot the console is bound to."""

    url: str = Field(..., description="Snapshot download URL.")
    revision_id: str = Field(..., description="Resolved revision identifier.")


class ExampleQueryModel(BaseModel):
    """A curated example query."""

    id: str = Field(..., description="Stable example identifier.")
    name: str = Field(..., description="Display name.")
    text: str = Field(..., description="SQL text.")
    description: str = Field(..., description="What the query shows.")


class QueryResultModel(BaseModel):
    """A query result, acknowledgement or failure."""

    type: str = Field(..., description="Result type: rows, ack or failure.")
    columns: list[str] | None = Field(default=None, description="Column names (rows only).")
    rows: list[list[Any]] | None = Field(default=None, description="Row values (table view).")
    records: list[dict[str, Any]] | None = Field(
        default=None, description="One mapping per row (records view)."
    )
    message: str | None = Field(default=None, description="Acknowledgement or error message.")
    kind: str | None = Field(default=None, description="Error kind (failure only).")


class ConsoleStateResponse(BaseModel):
    """Current console state."""

    state: str = Field(..., description="Lifecycle state of the console.")
    snapshot: SnapshotModel | None = Field(default=None, description="Bound snapshot.")
    loaded: bool = Field(..., description="Whether the snapshot database is loaded.")
    text: str = Field(..., description="Current query text.")
    status: QueryStatusModel = Field(..., description="Status of the last query.")
    message: str | None = Field(default=None, description="Latest user-facing message.")


class CommandResponse(BaseModel):
    """Outcome of a console command, with the resulting state."""

    console: ConsoleStateResponse = Field(..., description="Console state after the command.")
    result: QueryResultModel | None = Field(
        default=None, description="Command result or failure, if any."
    )


class ExampleListResponse(BaseModel):
    """Available example queries."""

    examples: list[ExampleQueryModel] = Field(..., description="Examples in display order.")
