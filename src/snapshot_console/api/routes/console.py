"""Console API routes.

Provides endpoints for:
- Reading console state
- Opening a revision and reloading its snapshot
- Editing query text and selecting examples
- Executing the current query

Query and load failures are part of the normal response payload; HTTP
errors are reserved for malformed requests.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from snapshot_console.api.routes.utils import serialize_console, serialize_result
from snapshot_console.console.service import get_console
from snapshot_console.models.console import (
    CommandResponse,
    ConsoleStateResponse,
    ExampleListResponse,
    ExampleQueryModel,
    OpenConsoleRequest,
    ResultView,
    SetQueryTextRequest,
)

router = APIRouter(prefix="/api/v1/console", tags=["console"])


@router.get("", response_model=ConsoleStateResponse)
async def get_console_state() -> ConsoleStateResponse:
    """Get the current console state."""
    return serialize_console(get_console())


@router.post("/open", response_model=CommandResponse)
async def open_revision(request: OpenConsoleRequest) -> CommandResponse:
    """Bind the console to a revision.

    Releases the current session. The new snapshot is loaded lazily on the
    next execution or explicitly via reload.
    """
    console = get_console()
    failure = await console.open(request.revision_id)
    return CommandResponse(console=serialize_console(console), result=serialize_result(failure))


@router.put("/query", response_model=ConsoleStateResponse)
async def set_query_text(request: SetQueryTextRequest) -> ConsoleStateResponse:
    """Replace the current query text."""
    console = get_console()
    console.set_query_text(request.text)
    return serialize_console(console)


@router.get("/examples", response_model=ExampleListResponse)
async def list_examples() -> ExampleListResponse:
    """List the example queries in display order."""
    return ExampleListResponse(
        examples=[
            ExampleQueryModel(
                id=example.id,
                name=example.name,
                text=example.text,
                description=example.description,
            )
            for example in get_console().examples
        ]
    )


@router.post("/examples/{example_id}/select", response_model=ConsoleStateResponse)
async def select_example(example_id: str) -> ConsoleStateResponse:
    """Load an example's text into the editor without running it.

    Raises:
        HTTPException: 404 if the example id is unknown.
    """
    console = get_console()
    if console.select_example(example_id) is None:
        raise HTTPException(status_code=404, detail=f"Example not found: {example_id}")
    return serialize_console(console)


@router.post("/execute", response_model=CommandResponse)
async def execute_query(
    view: ResultView = Query(default=ResultView.TABLE, description="Result rendering"),
) -> CommandResponse:
    """Execute the current query text."""
    console = get_console()
    result = await console.execute()
    return CommandResponse(
        console=serialize_console(console), result=serialize_result(result, view)
    )


@router.post("/reload", response_model=CommandResponse)
async def reload_snapshot() -> CommandResponse:
    """Download and load the bound snapshot again."""
    console = get_console()
    failure = await console.reload()
    return CommandResponse(console=serialize_console(console), result=serialize_result(failure))
