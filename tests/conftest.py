"""Shared fixtures: a small content snapshot served over a mock HTTP transport."""

from __future__ import annotations

import asyncio
import os
import sqlite3
from collections.abc import Callable
from typing import TYPE_CHECKING

import httpx
import pytest
from fastapi.testclient import TestClient

from snapshot_console.config import EngineConfig, Settings, SnapshotConfig, reset_settings
from snapshot_console.console.service import Console, reset_console
from snapshot_console.engine.loader import EngineLoader, reset_engine_loader
from snapshot_console.engine.session import DatabaseSession
from snapshot_console.query.models import Snapshot
from snapshot_console.snapshot import SnapshotResolver

if TYPE_CHECKING:
    from collections.abc import Generator

PROJECT_ID = "proj-1"
REVISION = "rev-1"
SNAPSHOT_URL = f"https://static.repo.md/projects/{PROJECT_ID}/{REVISION}/content.sqlite"

SNAPSHOT_SQL = """
CREATE TABLE posts (
    _id TEXT PRIMARY KEY,
    _slug TEXT NOT NULL,
    _title TEXT,
    _content TEXT,
    _backlinks TEXT,
    _wordCount INTEGER,
    _created TEXT,
    _modified TEXT,
    _path TEXT,
    _type TEXT,
    _frontmatter TEXT,
    _frontmatter_normalized TEXT
);
CREATE TABLE medias (
    id TEXT PRIMARY KEY,
    hash TEXT,
    filename TEXT,
    path TEXT,
    url TEXT,
    width INTEGER,
    height INTEGER,
    filesize INTEGER,
    mime_type TEXT,
    created TEXT,
    modified TEXT,
    embedding TEXT
);
CREATE TABLE tags (id INTEGER PRIMARY KEY AUTOINCREMENT, tag TEXT NOT NULL UNIQUE);
CREATE TABLE post_tags (post_id TEXT, tag_id INTEGER, PRIMARY KEY (post_id, tag_id));
CREATE TABLE links (source_id TEXT, target_id TEXT, PRIMARY KEY (source_id, target_id));
CREATE TABLE post_media (post_id TEXT, media_id TEXT, PRIMARY KEY (post_id, media_id));

INSERT INTO posts (_id, _slug, _title, _wordCount, _created, _type) VALUES
    ('p1', 'hello-world', 'Hello World', 120, '2024-01-01', 'post'),
    ('p2', 'second-post', 'Second Post', 300, '2024-02-01', 'post'),
    ('p3', 'about', 'About', 80, '2024-03-01', 'page');
INSERT INTO tags (tag) VALUES ('python'), ('sql');
INSERT INTO post_tags VALUES ('p1', 1), ('p2', 1), ('p2', 2);
INSERT INTO links VALUES ('p2', 'p1'), ('p3', 'p1'), ('p1', 'p2');
INSERT INTO medias (id, filename, filesize, mime_type) VALUES
    ('m1', 'cover.png', 2048, 'image/png'),
    ('m2', 'photo.jpg', 4096, 'image/jpeg');
INSERT INTO post_media VALUES ('p1', 'm1'), ('p2', 'm2');
"""


def build_snapshot_bytes() -> bytes:
    """Build the test snapshot and return its raw SQLite file bytes."""
    conn = sqlite3.connect(":memory:")
    try:
        conn.executescript(SNAPSHOT_SQL)
        return conn.serialize()
    finally:
        conn.close()


class SnapshotServer:
    """Mock object storage: serves one payload and counts requests.

    Setting ``gate`` holds every download until the event is set.
    """

    def __init__(self, content: bytes) -> None:
        self.content = content
        self.status_code = 200
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.requests: list[httpx.Request] = []

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if self.status_code != 200:
            return httpx.Response(self.status_code, text="error")
        return httpx.Response(200, content=self.content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture(autouse=True)
def clean_state(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Reset environment and global state before and after each test."""
    for key in [key for key in os.environ if key.startswith("SNAPSHOT_CONSOLE_")]:
        monkeypatch.delenv(key, raising=False)
    reset_settings()
    reset_engine_loader()
    reset_console()
    yield
    reset_console()
    reset_engine_loader()
    reset_settings()


@pytest.fixture
def snapshot_bytes() -> bytes:
    return build_snapshot_bytes()


@pytest.fixture
def server(snapshot_bytes: bytes) -> SnapshotServer:
    return SnapshotServer(snapshot_bytes)


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at the test project and revision."""
    return Settings(
        snapshot=SnapshotConfig(project_id=PROJECT_ID, revision=REVISION),
        engine=EngineConfig(max_init_attempts=2),
    )


@pytest.fixture
def snapshot() -> Snapshot:
    return Snapshot(url=SNAPSHOT_URL, revision_id=REVISION)


@pytest.fixture
def loader(settings: Settings) -> EngineLoader:
    return EngineLoader(config=settings.engine)


@pytest.fixture
def session(
    snapshot: Snapshot, loader: EngineLoader, settings: Settings, server: SnapshotServer
) -> Generator[DatabaseSession, None, None]:
    """An unloaded session backed by the mock server."""
    session = DatabaseSession(snapshot, loader=loader, settings=settings, transport=server.transport)
    yield session
    session.release()


@pytest.fixture
def loaded_session(session: DatabaseSession) -> DatabaseSession:
    asyncio.run(session.load())
    return session


@pytest.fixture
def make_console(
    settings: Settings, loader: EngineLoader, server: SnapshotServer
) -> Generator[Callable[..., Console], None, None]:
    """Factory for consoles wired to the mock server and a private loader."""
    consoles: list[Console] = []

    def factory(
        console_settings: Settings | None = None,
        engine_loader: EngineLoader | None = None,
        resolver: SnapshotResolver | None = None,
    ) -> Console:
        active_settings = console_settings or settings
        active_loader = engine_loader or loader
        console = Console(
            settings=active_settings,
            resolver=resolver or SnapshotResolver(active_settings),
            session_factory=lambda snap: DatabaseSession(
                snap, loader=active_loader, settings=active_settings, transport=server.transport
            ),
        )
        consoles.append(console)
        return console

    yield factory
    for console in consoles:
        console.close()


@pytest.fixture
def console(make_console, monkeypatch: pytest.MonkeyPatch) -> Console:
    """Install a console wired to the mock snapshot server as the global console."""
    from snapshot_console.console import service

    console = make_console()
    asyncio.run(console.open())
    monkeypatch.setattr(service, "_console", console)
    return console


@pytest.fixture
def client() -> TestClient:
    """Create a test client for the FastAPI app."""
    from snapshot_console.main import app

    return TestClient(app)
