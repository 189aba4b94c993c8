"""Console lifecycle state machine.

    IDLE -> LOADING -> READY -> RUNNING -> READY | FAILED

plus UNAVAILABLE when no snapshot URL resolves and the terminal DISABLED
state once engine initialization retries are exhausted. Opening a revision
holds LOADING while its URL resolves, then settles in IDLE or UNAVAILABLE.
Pairs missing from the table leave the state unchanged.
"""

from __future__ import annotations

from enum import Enum


class ConsoleState(str, Enum):
    """Console lifecycle states."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    RUNNING = "running"
    FAILED = "failed"
    UNAVAILABLE = "unavailable"
    DISABLED = "disabled"


class ConsoleEvent(str, Enum):
    """Events driving console transitions."""

    LOAD_STARTED = "load_started"
    LOAD_SUCCEEDED = "load_succeeded"
    LOAD_FAILED = "load_failed"
    SOURCE_UNAVAILABLE = "source_unavailable"
    INIT_EXHAUSTED = "init_exhausted"
    QUERY_STARTED = "query_started"
    QUERY_SUCCEEDED = "query_succeeded"
    QUERY_FAILED = "query_failed"
    RELEASED = "released"
    OPEN_STARTED = "open_started"
    OPENED = "opened"


S = ConsoleState
E = ConsoleEvent

TRANSITIONS: dict[tuple[ConsoleState, ConsoleEvent], ConsoleState] = {
    (S.IDLE, E.LOAD_STARTED): S.LOADING,
    (S.IDLE, E.SOURCE_UNAVAILABLE): S.UNAVAILABLE,
    (S.IDLE, E.OPEN_STARTED): S.LOADING,
    (S.LOADING, E.LOAD_SUCCEEDED): S.READY,
    (S.LOADING, E.LOAD_FAILED): S.FAILED,
    (S.LOADING, E.INIT_EXHAUSTED): S.DISABLED,
    (S.LOADING, E.RELEASED): S.IDLE,
    (S.LOADING, E.OPENED): S.IDLE,
    (S.LOADING, E.SOURCE_UNAVAILABLE): S.UNAVAILABLE,
    (S.READY, E.QUERY_STARTED): S.RUNNING,
    (S.READY, E.LOAD_STARTED): S.LOADING,
    (S.READY, E.SOURCE_UNAVAILABLE): S.UNAVAILABLE,
    (S.READY, E.RELEASED): S.IDLE,
    (S.RUNNING, E.QUERY_SUCCEEDED): S.READY,
    (S.RUNNING, E.QUERY_FAILED): S.FAILED,
    (S.FAILED, E.LOAD_STARTED): S.LOADING,
    (S.FAILED, E.QUERY_STARTED): S.RUNNING,
    (S.FAILED, E.SOURCE_UNAVAILABLE): S.UNAVAILABLE,
    (S.FAILED, E.RELEASED): S.IDLE,
    (S.UNAVAILABLE, E.SOURCE_UNAVAILABLE): S.UNAVAILABLE,
    (S.UNAVAILABLE, E.RELEASED): S.IDLE,
}


def transition(state: ConsoleState, event: ConsoleEvent) -> ConsoleState:
    """Return the state that follows an event."""
    return TRANSITIONS.get((state, event), state)


def is_busy(state: ConsoleState) -> bool:
    """Check whether a load or query is in flight."""
    return state in (ConsoleState.LOADING, ConsoleState.RUNNING)
