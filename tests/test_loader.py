"""Tests for the engine loader."""

from __future__ import annotations

import asyncio
import threading
import time

import pytest

from snapshot_console.config import EngineBackend, EngineConfig
from snapshot_console.engine.loader import EngineLoader, get_engine_loader, reset_engine_loader
from snapshot_console.engine.runtime import DuckDBRuntime, SqliteRuntime
from snapshot_console.query.models import EngineInitError


class CountingInit:
    """Blocking runtime factory that counts calls and can be told to fail."""

    def __init__(self, fail: bool = False, delay: float = 0.05) -> None:
        self.fail = fail
        self.delay = delay
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self, config: EngineConfig) -> SqliteRuntime:
        with self._lock:
            self.calls += 1
        time.sleep(self.delay)
        if self.fail:
            raise RuntimeError("engine payload unavailable")
        return SqliteRuntime.init(config)


class TestEngineLoader:
    """Tests for single-flight initialization."""

    def test_initialize_returns_runtime(self):
        loader = EngineLoader(config=EngineConfig())
        runtime = asyncio.run(loader.initialize())
        assert isinstance(runtime, SqliteRuntime)
        assert loader.is_initialized

    def test_duckdb_backend(self):
        loader = EngineLoader(config=EngineConfig(backend=EngineBackend.DUCKDB))
        assert isinstance(asyncio.run(loader.initialize()), DuckDBRuntime)

    def test_concurrent_callers_share_one_load(self):
        init = CountingInit()
        loader = EngineLoader(config=EngineConfig(), init_func=init)

        async def run() -> list:
            return await asyncio.gather(*(loader.initialize() for _ in range(5)))

        runtimes = asyncio.run(run())
        assert init.calls == 1
        assert all(runtime is runtimes[0] for runtime in runtimes)

    def test_later_calls_use_cache(self):
        init = CountingInit()
        loader = EngineLoader(config=EngineConfig(), init_func=init)
        first = asyncio.run(loader.initialize())
        second = asyncio.run(loader.initialize())
        assert first is second
        assert init.calls == 1

    def test_failure_reaches_every_waiter(self):
        init = CountingInit(fail=True)
        loader = EngineLoader(config=EngineConfig(), init_func=init)

        async def run() -> list:
            return await asyncio.gather(
                *(loader.initialize() for _ in range(3)), return_exceptions=True
            )

        results = asyncio.run(run())
        assert init.calls == 1
        assert all(isinstance(r, EngineInitError) for r in results)
        assert "engine payload unavailable" in str(results[0])
        assert not loader.is_initialized
        assert loader.last_error == "engine payload unavailable"

    def test_retry_after_failure(self):
        init = CountingInit(fail=True)
        loader = EngineLoader(config=EngineConfig(), init_func=init)

        with pytest.raises(EngineInitError):
            asyncio.run(loader.initialize())

        init.fail = False
        runtime = asyncio.run(loader.initialize())
        assert runtime is not None
        assert init.calls == 2
        assert loader.last_error is None


class TestGlobalLoader:
    """Tests for the process-wide loader."""

    def test_get_engine_loader_returns_same_instance(self):
        assert get_engine_loader() is get_engine_loader()

    def test_reset_engine_loader(self):
        first = get_engine_loader()
        reset_engine_loader()
        assert get_engine_loader() is not first
