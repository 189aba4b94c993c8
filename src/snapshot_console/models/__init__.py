"""Models package for Snapshot Console."""

from snapshot_console.models.console import (
    CommandResponse,
    ConsoleStateResponse,
    ExampleListResponse,
    ExampleQueryModel,
    OpenConsoleRequest,
    QueryResultModel,
    QueryStatusModel,
    ResultView,
    SetQueryTextRequest,
    SnapshotModel,
)

__all__ = [
    "CommandResponse",
    "ConsoleStateResponse",
    "ExampleListResponse",
    "ExampleQueryModel",
    "OpenConsoleRequest",
    "QueryResultModel",
    "QueryStatusModel",
    "ResultView",
    "SetQueryTextRequest",
    "SnapshotModel",
]
