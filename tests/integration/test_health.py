"""Integration tests for GET /health."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from config import EmailSettings
from errors import register_error_handlers
from routes.health_routes import router as health_router


def _build_test_app(
    settings, mongo_ok: bool = True, email_configured: bool = True
) -> FastAPI:
    """
    Build a minimal FastAPI app with a mocked DB injected via lifespan.
    No real network connections are made.
    """
    mock_db = MagicMock()
    if mongo_ok:
        mock_db.client.admin.command = AsyncMock(return_value={"ok": 1})
    else:
        mock_db.client.admin.command = AsyncMock(
            side_effect=Exception("connection refused")
        )

    settings.email = EmailSettings(
        zepto_api_token="zepto-token" if email_configured else ""
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.db = mock_db
        app.state.settings = settings
        yield

    app = FastAPI(lifespan=lifespan)
    register_error_handlers(app)
    app.include_router(health_router)
    return app


class TestHealthEndpoint:
    def test_healthy_when_all_ok(self, settings):
        with TestClient(_build_test_app(settings)) as client:
            resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {
            "status": "healthy",
            "checks": {"mongodb": "ok", "email": "ok"},
        }

    def test_unhealthy_when_mongo_fails(self, settings):
        with TestClient(_build_test_app(settings, mongo_ok=False)) as client:
            resp = client.get("/health")
        assert resp.status_code == 503
        body = resp.json()
        assert body["status"] == "unhealthy"
        assert body["checks"]["mongodb"] == "error"

    def test_degraded_when_email_not_configured(self, settings):
        with TestClient(_build_test_app(settings, email_configured=False)) as client:
            resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "degraded"
        assert body["checks"]["email"] == "not_configured"

    def test_mongo_failure_outranks_email(self, settings):
        app = _build_test_app(settings, mongo_ok=False, email_configured=False)
        with TestClient(app) as client:
            resp = client.get("/health")
        assert resp.status_code == 503
        assert resp.json()["status"] == "unhealthy"
