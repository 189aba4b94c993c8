"""Snapshot URL resolution.

Snapshots live in object storage at
``{base_url}/projects/{project_id}/{revision}/{filename}``. The ``latest``
alias is resolved through an optional async callback and cached for the
lifetime of the resolver.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from snapshot_console.config import get_settings
from snapshot_console.observability import get_logger
from snapshot_console.query.models import Snapshot, SourceUnavailableError

if TYPE_CHECKING:
    from snapshot_console.config import Settings

LATEST = "latest"

LatestRevisionResolver = Callable[[], Awaitable[str | None]]

logger = get_logger(__name__)


class SnapshotResolver:
    """Resolves a revision identifier to a downloadable snapshot URL."""

    def __init__(
        self,
        settings: Settings | None = None,
        resolve_latest_rev: LatestRevisionResolver | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            settings: Application settings. If None, uses cached settings.
            resolve_latest_rev: Async callback returning the active revision
                for the ``latest`` alias.
        """
        config = (settings or get_settings()).snapshot
        self._base_url = config.base_url.rstrip("/")
        self._project_id = config.project_id
        self._filename = config.filename
        self._resolve_latest_rev = resolve_latest_rev
        self._active_rev: str | None = None

    def get_project_url(self, path: str = "") -> str:
        """Build a URL under the project's storage prefix."""
        url = f"{self._base_url}/projects/{self._project_id}"
        if path:
            url += path if path.startswith("/") else f"/{path}"
        return url

    async def resolve_revision(self, revision_id: str) -> str | None:
        """Resolve ``latest`` to a concrete revision; other ids pass through.

        Returns:
            The concrete revision, or None if ``latest`` has no resolver.

        Raises:
            SourceUnavailableError: If the resolver returns an empty revision.
        """
        if revision_id != LATEST:
            return revision_id
        if self._active_rev is not None:
            return self._active_rev
        if self._resolve_latest_rev is None:
            return None

        revision = await self._resolve_latest_rev()
        if not revision:
            raise SourceUnavailableError("Latest revision resolved to an empty revision")
        self._active_rev = revision
        logger.debug("latest_revision_resolved", revision=revision)
        return revision

    async def get_snapshot_url(self, revision_id: str) -> str | None:
        """Return the snapshot URL for a revision, or None if it cannot be resolved."""
        if not self._project_id or not revision_id:
            return None
        revision = await self.resolve_revision(revision_id)
        if revision is None:
            return None
        return self.get_project_url(f"/{revision}/{self._filename}")

    async def resolve(self, revision_id: str) -> Snapshot | None:
        """Resolve a revision to a Snapshot, or None when the source is unavailable."""
        url = await self.get_snapshot_url(revision_id)
        if url is None:
            return None
        revision = await self.resolve_revision(revision_id)
        return Snapshot(url=url, revision_id=revision or revision_id)
