from __future__ import annotations

import contextlib

import pytest
from httpx import ASGITransport, AsyncClient

from gastown_mail import config as _config
from gastown_mail.http import build_http_app, create_app


@pytest.mark.asyncio
async def test_request_logging_middleware_and_liveness(isolated_env, monkeypatch):
    monkeypatch.setenv("HTTP_REQUEST_LOG_ENABLED", "true")
    with contextlib.suppress(Exception):
        _config.clear_settings_cache()
    settings = _config.get_settings()
    assert settings.http.request_log_enabled is True
    app = build_http_app(settings)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.get("/health/liveness")
        assert r.status_code == 200
        assert r.json() == {"status": "alive"}


@pytest.mark.asyncio
async def test_readiness_ok_when_gt_installed(isolated_env, fake_gt):
    fake_gt()
    app = build_http_app(_config.get_settings())
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.get("/health/readiness")
        assert r.status_code == 200
        assert r.json() == {"status": "ready"}


@pytest.mark.asyncio
async def test_readiness_503_when_gt_missing(isolated_env, monkeypatch):
    monkeypatch.setenv("GT_BIN", "gt-definitely-not-installed")
    _config.clear_settings_cache()
    app = build_http_app(_config.get_settings())
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.get("/health/readiness")
        assert r.status_code == 503
        assert "gt-definitely-not-installed" in r.json()["detail"]


@pytest.mark.asyncio
async def test_readiness_503_when_gastown_path_missing(isolated_env, fake_gt, monkeypatch, tmp_path):
    fake_gt()
    monkeypatch.setenv("GASTOWN_PATH", str(tmp_path / "nowhere"))
    _config.clear_settings_cache()
    app = build_http_app(_config.get_settings())
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.get("/health/readiness")
        assert r.status_code == 503


@pytest.mark.asyncio
async def test_cors_headers_present_when_enabled(isolated_env, monkeypatch):
    monkeypatch.setenv("HTTP_CORS_ENABLED", "true")
    monkeypatch.setenv("HTTP_CORS_ORIGINS", "http://localhost:3000")
    _config.clear_settings_cache()
    app = build_http_app(_config.get_settings())
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.options(
            "/api/mail",
            headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "POST"},
        )
        assert r.status_code == 200
        assert r.headers.get("access-control-allow-origin") == "http://localhost:3000"


def test_create_app_registers_mail_routes(isolated_env):
    app = create_app()
    paths = {getattr(route, "path", None) for route in app.routes}
    assert {"/api/mail", "/health/liveness", "/health/readiness"} <= paths
