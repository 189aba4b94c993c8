"""Main entry point for Snapshot Console."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from snapshot_console import __version__
from snapshot_console.api.routes.console import router as console_router
from snapshot_console.api.routes.export import router as export_router
from snapshot_console.api.routes.health import router as health_router
from snapshot_console.console.service import get_console, reset_console
from snapshot_console.observability import setup_opentelemetry, shutdown_opentelemetry


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - bind the configured revision, release on shutdown."""
    setup_opentelemetry(app)
    await get_console().open()
    yield
    reset_console()
    shutdown_opentelemetry()


app = FastAPI(
    title="Snapshot Console",
    description="SQL console over remote, versioned database snapshots",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(console_router)
app.include_router(export_router)
app.include_router(health_router)


def main() -> None:
    """Run the application server."""
    import uvicorn

    from snapshot_console.config import get_settings

    settings = get_settings()
    uvicorn.run(app, host=settings.server.host, port=settings.server.port)


if __name__ == "__main__":
    main()
