"""Health and readiness endpoints for monitoring.

Provides:
- GET /health - Returns engine and console health
- GET /ready - Returns whether the console can serve queries
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from pydantic import BaseModel, Field

from snapshot_console import __version__
from snapshot_console.console.service import get_console
from snapshot_console.console.state import ConsoleState
from snapshot_console.engine.loader import get_engine_loader

router = APIRouter(tags=["health"])


class ComponentHealth(BaseModel):
    """Health status of a component."""

    healthy: bool = Field(..., description="Whether the component is healthy.")
    detail: str | None = Field(default=None, description="State or error detail.")


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str = Field(..., description="Overall status: healthy, degraded, or unhealthy.")
    version: str = Field(..., description="Application version.")
    components: dict[str, ComponentHealth] = Field(
        ...,
        description="Health status of individual components.",
    )


class ReadyResponse(BaseModel):
    """Response for readiness check endpoint."""

    ready: bool = Field(..., description="Whether the console can serve queries.")
    reason: str | None = Field(default=None, description="Reason if not ready.")


@router.get("/health", response_model=HealthResponse)
async def health_check(response: Response) -> HealthResponse:
    """Check application health.

    The engine is unhealthy only after a failed initialization; a console in
    FAILED or UNAVAILABLE state is degraded, a DISABLED console unhealthy.
    Returns 503 when not healthy.
    """
    loader = get_engine_loader()
    console = get_console()

    engine = ComponentHealth(
        healthy=loader.last_error is None,
        detail=loader.last_error or ("initialized" if loader.is_initialized else "not loaded"),
    )
    console_health = ComponentHealth(
        healthy=console.state not in (
            ConsoleState.FAILED,
            ConsoleState.UNAVAILABLE,
            ConsoleState.DISABLED,
        ),
        detail=console.message or console.state.value,
    )
    components = {"engine": engine, "console": console_health}

    if console.state is ConsoleState.DISABLED:
        status = "unhealthy"
        response.status_code = 503
    elif all(c.healthy for c in components.values()):
        status = "healthy"
    else:
        status = "degraded"
        response.status_code = 503

    return HealthResponse(status=status, version=__version__, components=components)


@router.get("/ready", response_model=ReadyResponse)
async def readiness_check(response: Response) -> ReadyResponse:
    """Check whether a snapshot is loaded and the console is idle enough to query."""
    console = get_console()
    session = console.session
    if session is not None and session.loaded and console.state is ConsoleState.READY:
        return ReadyResponse(ready=True)

    response.status_code = 503
    return ReadyResponse(ready=False, reason=console.message or f"Console is {console.state.value}")
