"""Database session bound to one snapshot.

A session owns at most one open engine handle. Loading resolves the engine
runtime, downloads the snapshot bytes and opens them; any previously held
handle is released on every exit path, successful or not.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from snapshot_console.config import get_settings
from snapshot_console.engine.loader import get_engine_loader
from snapshot_console.observability import get_logger, get_tracer, record_snapshot_bytes
from snapshot_console.query.models import ConsoleError, FetchError, LoadError, SessionError

if TYPE_CHECKING:
    from snapshot_console.config import Settings
    from snapshot_console.engine.loader import EngineLoader
    from snapshot_console.engine.runtime import EngineHandle, EngineRuntime
    from snapshot_console.query.models import Snapshot

logger = get_logger(__name__)


class DatabaseSession:
    """Live binding between one snapshot and one engine handle."""

    def __init__(
        self,
        snapshot: Snapshot,
        loader: EngineLoader | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize an unloaded session.

        Args:
            snapshot: Snapshot this session serves.
            loader: Engine loader. If None, uses the global loader.
            settings: Application settings. If None, uses cached settings.
            transport: Optional httpx transport used for the snapshot download.
        """
        self.snapshot = snapshot
        self._loader = loader or get_engine_loader()
        self._settings = settings or get_settings()
        self._transport = transport
        self._handle: EngineHandle | None = None

    @property
    def handle(self) -> EngineHandle | None:
        return self._handle

    @property
    def loaded(self) -> bool:
        return self._handle is not None

    async def _fetch(self) -> bytes:
        url = self.snapshot.url
        async with httpx.AsyncClient(
            timeout=self._settings.snapshot.fetch_timeout,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            try:
                response = await client.get(url)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise FetchError(f"Failed to fetch snapshot {url}: {e}", url=url) from e

        if not response.is_success:
            raise FetchError(
                f"Failed to fetch snapshot {url}: HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )
        return response.content

    def _open(self, runtime: EngineRuntime, data: bytes) -> EngineHandle:
        try:
            return runtime.open(data)
        except ConsoleError:
            raise
        except Exception as e:
            raise LoadError(f"Failed to open snapshot {self.snapshot.url}: {e}") from e

    async def load(self, snapshot: Snapshot | None = None) -> None:
        """Load the snapshot into a fresh engine handle.

        Args:
            snapshot: Must be this session's snapshot if given; a different
                revision needs a new session.

        Raises:
            SessionError: If called with a snapshot the session is not bound to.
            EngineInitError: If the engine runtime cannot be initialized.
            FetchError: If the snapshot cannot be downloaded.
            LoadError: If the bytes are not a valid database.
        """
        if snapshot is not None and snapshot != self.snapshot:
            raise SessionError(
                f"Session is bound to revision {self.snapshot.revision_id}, "
                f"not {snapshot.revision_id}"
            )

        with get_tracer().start_as_current_span("snapshot.load") as span:
            span.set_attribute("snapshot.revision", self.snapshot.revision_id)
            span.set_attribute("snapshot.url", self.snapshot.url)
            try:
                runtime = await self._loader.initialize()
                data = await self._fetch()
                handle = self._open(runtime, data)
            except ConsoleError as e:
                self.release()
                span.set_attribute("error.kind", e.kind.value)
                logger.warning(
                    "snapshot_load_failed",
                    revision=self.snapshot.revision_id,
                    kind=e.kind.value,
                    error=e.message,
                )
                raise

            self.release()
            self._handle = handle
            span.set_attribute("snapshot.bytes", len(data))

        record_snapshot_bytes(len(data))
        logger.info(
            "snapshot_loaded",
            revision=self.snapshot.revision_id,
            engine=runtime.name,
            size=len(data),
        )

    def release(self) -> None:
        """Close the handle if one is open. Safe to call repeatedly."""
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.close()
            logger.debug("session_released", revision=self.snapshot.revision_id)
