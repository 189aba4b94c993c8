"""Tests for health and readiness endpoints."""

from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from snapshot_console import __version__
from snapshot_console.api.routes.health import ComponentHealth, HealthResponse, ReadyResponse
from snapshot_console.console.service import Console
from snapshot_console.console.state import ConsoleState
from snapshot_console.engine.loader import get_engine_loader

from conftest import SnapshotServer


class TestHealthModels:
    """Tests for health-related Pydantic models."""

    def test_component_health_model(self):
        """Test ComponentHealth model defaults."""
        component = ComponentHealth(healthy=True)
        assert component.healthy is True
        assert component.detail is None

    def test_health_response_model(self):
        """Test HealthResponse model."""
        response = HealthResponse(
            status="healthy",
            version="0.1.0",
            components={
                "engine": ComponentHealth(healthy=True),
                "console": ComponentHealth(healthy=True, detail="idle"),
            },
        )
        assert response.status == "healthy"
        assert len(response.components) == 2

    def test_ready_response_not_ready(self):
        """Test ReadyResponse model when not ready."""
        response = ReadyResponse(ready=False, reason="Console is idle")
        assert response.ready is False
        assert response.reason == "Console is idle"


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_healthy_when_idle(self, client: TestClient, console: Console):
        """Test that an idle console with an unloaded engine is healthy."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == __version__
        assert data["components"]["engine"] == {"healthy": True, "detail": "not loaded"}
        assert data["components"]["console"] == {"healthy": True, "detail": "idle"}

    def test_degraded_after_failed_load(
        self, client: TestClient, console: Console, server: SnapshotServer
    ):
        """Test that a failed snapshot load degrades health."""
        server.status_code = 500
        asyncio.run(console.reload())

        response = client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"]["console"]["healthy"] is False
        assert "500" in data["components"]["console"]["detail"]

    def test_degraded_after_engine_error(self, client: TestClient, console: Console):
        """Test that an engine init failure is reported."""
        get_engine_loader().last_error = "wasm payload missing"

        response = client.get("/health")

        assert response.status_code == 503
        engine = response.json()["components"]["engine"]
        assert engine == {"healthy": False, "detail": "wasm payload missing"}

    def test_unhealthy_when_disabled(self, client: TestClient, console: Console):
        """Test that a disabled console is unhealthy."""
        console.state = ConsoleState.DISABLED

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"


class TestReadyEndpoint:
    """Tests for GET /ready."""

    def test_not_ready_before_load(self, client: TestClient, console: Console):
        """Test that readiness waits for a loaded snapshot."""
        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json() == {"ready": False, "reason": "Console is idle"}

    def test_ready_after_load(self, client: TestClient, console: Console):
        """Test readiness once the snapshot is loaded."""
        asyncio.run(console.reload())

        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json() == {"ready": True, "reason": None}

    def test_not_ready_when_unavailable(self, client: TestClient, make_console, monkeypatch):
        """Test that an unavailable source reports its message."""
        from snapshot_console.config import Settings
        from snapshot_console.console import service

        unavailable = make_console(console_settings=Settings())
        asyncio.run(unavailable.open("rev-1"))
        monkeypatch.setattr(service, "_console", unavailable)

        response = client.get("/ready")

        assert response.status_code == 503
        assert "unavailable" in response.json()["reason"]
