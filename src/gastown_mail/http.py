"""HTTP transport: the ``/api/mail`` routes and health probes on FastAPI."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import Any, Optional, cast

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from .config import Settings, get_settings
from .mail import fetch_inbox, resolve_gt_executable, resolve_identity, send_mail

__all__ = ["build_http_app", "create_app"]

_LOGGING_CONFIGURED = False

REQUIRED_FIELDS_ERROR = "to, subject, and body are required"
SEND_FAILED_ERROR = "Failed to send mail"


def _configure_logging(settings: Settings) -> None:
    """Initialize structlog and stdlib logging formatting."""
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
    ]
    if settings.log_json_enabled:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.processors.KeyValueRenderer(key_order=["event", "path", "status"]))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(level=level)
    _LOGGING_CONFIGURED = True


def readiness_check(settings: Settings) -> None:
    """Raise RuntimeError unless ``gt`` and the Gas Town directory are usable."""
    base_path = settings.mail.base_path
    if not base_path.is_dir():
        raise RuntimeError(f"GASTOWN_PATH {base_path} is not a directory")
    if resolve_gt_executable(settings.mail) is None:
        raise RuntimeError(f"{settings.mail.gt_bin} executable not found on PATH")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: FastAPI, rich_enabled: bool = False) -> None:
        super().__init__(app)
        self._rich_enabled = rich_enabled

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        start = time.time()
        response = await call_next(request)
        dur_ms = int((time.time() - start) * 1000)
        method = request.method
        path = request.url.path
        status_code = getattr(response, "status_code", 0)
        client = request.client.host if request.client else "-"
        structlog.get_logger("http").info(
            "request",
            method=method,
            path=path,
            status=status_code,
            duration_ms=dur_ms,
            client_ip=client,
        )
        if self._rich_enabled:
            from .rich_logger import print_request_panel

            print_request_panel(method, path, status_code, dur_ms, client)
        return response


def build_http_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    _configure_logging(settings)

    fastapi_app = FastAPI(title="Gas Town Mail Gateway")

    if settings.http.request_log_enabled:
        app_any = cast(Any, fastapi_app)
        app_any.add_middleware(RequestLoggingMiddleware, rich_enabled=settings.log_rich_enabled)

    if settings.cors.enabled:
        app_any2 = cast(Any, fastapi_app)
        app_any2.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors.origins or ["*"],
            allow_credentials=settings.cors.allow_credentials,
            allow_methods=settings.cors.allow_methods or ["*"],
            allow_headers=settings.cors.allow_headers or ["*"],
        )

    # Health endpoints
    @fastapi_app.get("/health/liveness")
    async def liveness() -> JSONResponse:
        return JSONResponse({"status": "alive"})

    @fastapi_app.get("/health/readiness")
    async def readiness() -> JSONResponse:
        try:
            await asyncio.to_thread(readiness_check, settings)
        except Exception as exc:
            structlog.get_logger("health").error("health.readiness_error", error=str(exc))
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
        return JSONResponse({"status": "ready"})

    @fastapi_app.get("/api/mail")
    async def list_mail(agent: Optional[str] = None, rig: Optional[str] = None) -> JSONResponse:
        try:
            identity = resolve_identity(agent, rig)
            messages = await asyncio.to_thread(fetch_inbox, identity, settings)
            return JSONResponse({"messages": [m.to_dict() for m in messages], "available": True})
        except Exception:
            structlog.get_logger("mail").exception("mail.fetch_failed", agent=agent, rig=rig)
            return JSONResponse({"messages": [], "available": False})

    @fastapi_app.post("/api/mail")
    async def create_mail(request: Request) -> JSONResponse:
        try:
            payload = await request.json()
            if not isinstance(payload, dict):
                payload = {}
            to = payload.get("to")
            subject = payload.get("subject")
            body = payload.get("body")
            if not to or not subject or not body:
                return JSONResponse({"error": REQUIRED_FIELDS_ERROR}, status_code=status.HTTP_400_BAD_REQUEST)

            success = await asyncio.to_thread(send_mail, to, subject, body, settings)
            if not success:
                return JSONResponse({"error": SEND_FAILED_ERROR}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
            return JSONResponse({"success": True}, status_code=status.HTTP_201_CREATED)
        except Exception:
            with contextlib.suppress(Exception):
                structlog.get_logger("mail").exception("mail.send_error")
            return JSONResponse({"error": SEND_FAILED_ERROR}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return fastapi_app


def create_app() -> FastAPI:
    """Application factory for ASGI servers (uvicorn --factory, gunicorn)."""
    return build_http_app(get_settings())

