"""Process-wide engine runtime loader.

The runtime is initialized at most once per process. Concurrent callers share
the in-flight initialization; a failed initialization is reported to every
waiter and cleared so a later call can retry.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

from snapshot_console.config import get_settings
from snapshot_console.engine.runtime import init_runtime
from snapshot_console.observability import get_logger
from snapshot_console.query.models import EngineInitError

if TYPE_CHECKING:
    from snapshot_console.config import EngineConfig
    from snapshot_console.engine.runtime import EngineRuntime

logger = get_logger(__name__)


class EngineLoader:
    """Single-flight initializer for the embedded SQL engine."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        init_func: Callable[[EngineConfig], EngineRuntime] | None = None,
    ) -> None:
        """Initialize the loader.

        Args:
            config: Engine configuration. If None, uses cached settings.
            init_func: Blocking runtime factory. Defaults to the configured backend.
        """
        self._config = config or get_settings().engine
        self._init_func = init_func or init_runtime
        self._lock = threading.Lock()
        self._runtime: EngineRuntime | None = None
        self._task: asyncio.Task[EngineRuntime] | None = None
        self.last_error: str | None = None

    @property
    def backend(self) -> str:
        return self._config.backend.value

    @property
    def is_initialized(self) -> bool:
        return self._runtime is not None

    async def initialize(self) -> EngineRuntime:
        """Return the engine runtime, initializing it on first use.

        Raises:
            EngineInitError: If initialization fails.
        """
        loop = asyncio.get_running_loop()
        with self._lock:
            if self._runtime is not None:
                return self._runtime
            if self._task is not None and self._task.get_loop() is not loop:
                self._task = None
            if self._task is None:
                self._task = loop.create_task(self._load())
            task = self._task
        return await asyncio.shield(task)

    async def _load(self) -> EngineRuntime:
        logger.info("engine_init_started", backend=self.backend)
        try:
            runtime = await asyncio.to_thread(self._init_func, self._config)
        except Exception as e:
            self.last_error = str(e)
            logger.warning("engine_init_failed", backend=self.backend, error=str(e))
            raise EngineInitError(f"Failed to initialize {self.backend} engine: {e}") from e
        finally:
            with self._lock:
                self._task = None
        with self._lock:
            self._runtime = runtime
        self.last_error = None
        logger.info("engine_init_completed", backend=self.backend)
        return runtime


_loader: EngineLoader | None = None
_loader_lock = threading.Lock()


def get_engine_loader() -> EngineLoader:
    """Get the global engine loader (cached)."""
    global _loader
    with _loader_lock:
        if _loader is None:
            _loader = EngineLoader()
        return _loader


def reset_engine_loader() -> None:
    """Reset the global engine loader (useful for testing)."""
    global _loader
    with _loader_lock:
        _loader = None
