"""Tests for the health endpoint.

The health endpoint is a liveness check that reports configured backends
without calling any of them.
"""

import dataclasses

from fastapi.testclient import TestClient


class TestHealthEndpoint:
    """Tests for GET /health"""

    def test_health_returns_200(self, client: TestClient):
        """Health endpoint returns 200 OK."""
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_reports_configured_backends(self, client: TestClient):
        """Backends present on the gateway are reported; moderation is off."""
        response = client.get("/health")

        assert response.json() == {
            "data": {
                "status": "ok",
                "backends": {
                    "metadata_store": True,
                    "object_store": True,
                    "message_host_bot": True,
                    "moderation": False,
                },
            }
        }

    def test_health_without_metadata_store(self, make_client, gateway):
        """A gateway without KV still reports healthy."""
        client = make_client(dataclasses.replace(gateway, metadata_store=None))

        body = client.get("/health").json()

        assert body["data"]["status"] == "ok"
        assert body["data"]["backends"]["metadata_store"] is False

    def test_health_content_type_is_json(self, client: TestClient):
        """Health endpoint returns JSON content type."""
        response = client.get("/health")
        assert response.headers["content-type"] == "application/json"

    def test_health_has_no_file_cors_headers(self, client: TestClient):
        """CORS headers are scoped to /file/*."""
        response = client.get("/health")
        assert "access-control-allow-origin" not in response.headers


class TestLauncher:
    """Tests for the uvicorn entrypoint."""

    def test_launcher_registers_routes(self):
        """apps.api.main builds an app with the gateway routes mounted."""
        from apps.api.main import app

        paths = {route.path for route in app.routes}
        assert "/health" in paths
        assert "/file/{file_id:path}" in paths
        assert "/api/manage/delete/{file_id:path}" in paths
