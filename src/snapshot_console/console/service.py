"""Console composition root.

Wires snapshot resolution, the session lifecycle, example selection and
query execution. Every command returns a result or failure instead of
raising, so the host UI only ever renders state.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from snapshot_console.config import get_settings
from snapshot_console.console.state import ConsoleEvent, ConsoleState, is_busy, transition
from snapshot_console.engine.session import DatabaseSession
from snapshot_console.observability import get_logger
from snapshot_console.query.library import QueryLibrary
from snapshot_console.query.models import (
    BusyError,
    ConsoleError,
    EngineInitError,
    ErrorKind,
    FailureResult,
    LoadError,
    QueryStatus,
    SourceUnavailableError,
)
from snapshot_console.query.runner import QueryRunner
from snapshot_console.snapshot import SnapshotResolver

if TYPE_CHECKING:
    from collections.abc import Callable

    from snapshot_console.config import Settings
    from snapshot_console.query.library import ExampleQuery
    from snapshot_console.query.models import QueryResult, Snapshot

logger = get_logger(__name__)


class Console:
    """One SQL console bound to at most one snapshot at a time."""

    def __init__(
        self,
        settings: Settings | None = None,
        resolver: SnapshotResolver | None = None,
        library: QueryLibrary | None = None,
        runner: QueryRunner | None = None,
        session_factory: Callable[[Snapshot], DatabaseSession] | None = None,
    ) -> None:
        """Initialize an idle console.

        Args:
            settings: Application settings. If None, uses cached settings.
            resolver: Snapshot URL resolver.
            library: Example query registry.
            runner: Query runner.
            session_factory: Builds a session for a snapshot. Defaults to
                DatabaseSession with the global engine loader.
        """
        self._settings = settings or get_settings()
        self._resolver = resolver or SnapshotResolver(self._settings)
        self._library = library or QueryLibrary()
        self._runner = runner or QueryRunner()
        self._session_factory = session_factory or (
            lambda snapshot: DatabaseSession(snapshot, settings=self._settings)
        )
        self._session: DatabaseSession | None = None
        self._init_failures = 0

        self.state = ConsoleState.IDLE
        self.status = QueryStatus()
        self.result: QueryResult | None = None
        self.text = ""
        self.message: str | None = None
        self.snapshot: Snapshot | None = None

    @property
    def examples(self) -> tuple[ExampleQuery, ...]:
        return self._library.list()

    @property
    def session(self) -> DatabaseSession | None:
        return self._session

    @property
    def busy(self) -> bool:
        return self.status.running or is_busy(self.state)

    def _dispatch(self, event: ConsoleEvent) -> None:
        previous = self.state
        self.state = transition(previous, event)
        if self.state is not previous:
            logger.debug(
                "console_transition",
                console_event=event.value,
                from_state=previous.value,
                to_state=self.state.value,
            )

    def _fail(self, error: ConsoleError) -> FailureResult:
        self.message = error.message
        return FailureResult.from_error(error)

    def _guard(self) -> FailureResult | None:
        """Reject commands while disabled or while work is in flight."""
        if self.state is ConsoleState.DISABLED:
            return self._fail(
                EngineInitError("SQL engine is unavailable; the console is disabled")
            )
        if self.busy:
            return FailureResult.from_error(
                BusyError("A query or load is in progress; wait and retry")
            )
        return None

    def _release_session(self) -> None:
        if self._session is not None:
            self._session.release()
            self._session = None
        self._dispatch(ConsoleEvent.RELEASED)

    async def _load(self, session: DatabaseSession) -> FailureResult | None:
        self._dispatch(ConsoleEvent.LOAD_STARTED)
        try:
            await session.load()
        except EngineInitError as e:
            self._init_failures += 1
            limit = self._settings.engine.max_init_attempts
            if self._init_failures >= limit:
                self._dispatch(ConsoleEvent.INIT_EXHAUSTED)
                logger.error("console_disabled", attempts=self._init_failures, error=e.message)
                return self._fail(
                    EngineInitError(
                        f"SQL engine failed to initialize after {self._init_failures} "
                        f"attempts: {e.message}"
                    )
                )
            self._dispatch(ConsoleEvent.LOAD_FAILED)
            return self._fail(e)
        except ConsoleError as e:
            self._dispatch(ConsoleEvent.LOAD_FAILED)
            return self._fail(e)
        except asyncio.CancelledError:
            self._dispatch(ConsoleEvent.LOAD_FAILED)
            raise
        except Exception as e:
            self._dispatch(ConsoleEvent.LOAD_FAILED)
            logger.exception("snapshot_load_crashed", revision=session.snapshot.revision_id)
            return self._fail(LoadError(f"Snapshot load failed: {e}"))

        self._init_failures = 0
        self._dispatch(ConsoleEvent.LOAD_SUCCEEDED)
        self.message = None
        return None

    async def open(self, revision_id: str | None = None) -> FailureResult | None:
        """Bind the console to a revision, releasing any previous session.

        Args:
            revision_id: Revision to open. Defaults to the configured revision.

        Returns:
            None on success, or a failure if the source is unavailable.
        """
        rejected = self._guard()
        if rejected is not None:
            return rejected

        self._release_session()
        self.snapshot = None
        revision = revision_id or self._settings.snapshot.revision
        reason = f"Snapshot source unavailable for revision '{revision}'"
        # LOADING until the revision settles; other commands are rejected meanwhile.
        self._dispatch(ConsoleEvent.OPEN_STARTED)
        try:
            snapshot = await self._resolver.resolve(revision)
        except asyncio.CancelledError:
            self._dispatch(ConsoleEvent.OPENED)
            raise
        except Exception as e:
            logger.warning("snapshot_resolution_failed", revision=revision, error=str(e))
            snapshot = None
            reason = f"{reason}: {e}"

        if snapshot is None:
            self._dispatch(ConsoleEvent.SOURCE_UNAVAILABLE)
            return self._fail(SourceUnavailableError(reason))

        self.snapshot = snapshot
        self._dispatch(ConsoleEvent.OPENED)
        self.message = None
        logger.info("console_opened", revision=snapshot.revision_id, url=snapshot.url)
        return None

    def select_example(self, query_id: str) -> str | None:
        """Replace the query text with an example's text.

        Unknown ids return None and leave the text unchanged.
        """
        text = self._library.select(query_id)
        if text is not None:
            self.text = text
        return text

    def set_query_text(self, text: str) -> None:
        self.text = text

    async def execute(self) -> QueryResult:
        """Run the current query text, loading the snapshot first if needed."""
        rejected = self._guard()
        if rejected is not None:
            if rejected.kind is not ErrorKind.BUSY:
                self.result = rejected
            return rejected

        invalid = self._runner.validate(self.text)
        if invalid is not None:
            self.result = invalid
            self.message = invalid.message
            return invalid

        if self.snapshot is None:
            self.result = self._fail(SourceUnavailableError("No snapshot is open"))
            return self.result

        if self._session is not None and self._session.snapshot != self.snapshot:
            self._release_session()
        if self._session is None:
            self._session = self._session_factory(self.snapshot)

        if not self._session.loaded:
            load_failure = await self._load(self._session)
            if load_failure is not None:
                if self.state is not ConsoleState.DISABLED:
                    load_failure = FailureResult(
                        kind=ErrorKind.SESSION,
                        message=f"No usable database session: {load_failure.message}",
                    )
                    self.message = load_failure.message
                self.result = load_failure
                return load_failure

        self._dispatch(ConsoleEvent.QUERY_STARTED)
        result = await self._runner.execute(self._session, self.text, self.status)
        if isinstance(result, FailureResult):
            self._dispatch(ConsoleEvent.QUERY_FAILED)
            self.message = result.message
        else:
            self._dispatch(ConsoleEvent.QUERY_SUCCEEDED)
            self.message = None
        self.result = result
        return result

    async def reload(self) -> FailureResult | None:
        """Discard the current session and load the snapshot again."""
        rejected = self._guard()
        if rejected is not None:
            return rejected
        if self.snapshot is None:
            return self._fail(SourceUnavailableError("No snapshot is open"))

        self._release_session()
        self._session = self._session_factory(self.snapshot)
        return await self._load(self._session)

    def close(self) -> None:
        """Release the session on teardown."""
        self._release_session()


_console: Console | None = None


def get_console() -> Console:
    """Get the global console (cached)."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def reset_console() -> None:
    """Close and reset the global console (useful for testing)."""
    global _console
    if _console is not None:
        _console.close()
    _console = None
