"""Tests for export API routes."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from snapshot_console.api.routes.export import _sanitize_filename
from snapshot_console.config import reset_settings
from snapshot_console.console.service import Console

from conftest import REVISION


class TestSanitizeFilename:
    """Tests for download name sanitizing."""

    def test_plain_name_unchanged(self):
        assert _sanitize_filename("posts-2024") == "posts-2024"

    def test_unsafe_characters_replaced(self):
        assert _sanitize_filename('a/b\\c"d\r\n') == "a_b_c_d__"

    def test_length_capped(self):
        assert len(_sanitize_filename("x" * 500)) == 200


class TestCSVExport:
    """Tests for GET /api/v1/export/csv."""

    def test_no_result_yet(self, client: TestClient, console: Console):
        """Test that exporting before any query is a conflict."""
        response = client.get("/api/v1/export/csv")
        assert response.status_code == 409

    def test_failure_result_not_exportable(self, client: TestClient, console: Console):
        """Test that a failed query has nothing to export."""
        client.post("/api/v1/console/execute")
        assert client.get("/api/v1/export/csv").status_code == 409

    def test_export_rows(self, client: TestClient, console: Console):
        """Test downloading the last row result."""
        console.set_query_text("SELECT tag, id FROM tags ORDER BY id")
        client.post("/api/v1/console/execute")

        response = client.get("/api/v1/export/csv")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.headers["content-disposition"] == (
            f'attachment; filename="export_{REVISION}.csv"'
        )
        lines = [line.replace('"', "") for line in response.text.splitlines()]
        assert lines == ["tag,id", "python,1", "sql,2"]

    def test_custom_filename_is_sanitized(self, client: TestClient, console: Console):
        """Test that unsafe filename characters are replaced."""
        console.set_query_text("SELECT 1 AS n")
        client.post("/api/v1/console/execute")

        response = client.get("/api/v1/export/csv", params={"filename": 'my/"report"'})

        assert response.status_code == 200
        assert 'filename="my__report_.csv"' in response.headers["content-disposition"]

    def test_size_limit(
        self, client: TestClient, console: Console, monkeypatch: pytest.MonkeyPatch
    ):
        """Test that oversized exports are rejected."""
        monkeypatch.setenv("SNAPSHOT_CONSOLE_EXPORT__MAX_SIZE_BYTES", "4")
        reset_settings()
        console.set_query_text("SELECT _slug FROM posts")
        client.post("/api/v1/console/execute")

        response = client.get("/api/v1/export/csv")

        assert response.status_code == 413
        assert "4 bytes" in response.json()["detail"]
