"""HTTP surface for submitting audit records."""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from auditsink import __version__
from auditsink.config import Settings, settings
from auditsink.errors import AuditSinkError
from auditsink.models.entry import LogRequest
from auditsink.persistence.service import AuditLogService

logger = logging.getLogger(__name__)


def configure_logging(config: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path and client address for every request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        client = request.client.host if request.client else "-"
        logger.info("%s %s %s", request.method, request.url.path, client)
        return await call_next(request)


def _build_openapi_schema(base_url: str) -> dict[str, Any]:
    """Build a compact OpenAPI schema for the sink endpoints."""
    return {
        "openapi": "3.1.0",
        "info": {
            "title": "Audit Sink API",
            "version": __version__,
            "description": "Append-only audit log collection with rotating files.",
        },
        "servers": [{"url": base_url}],
        "paths": {
            "/log": {
                "post": {
                    "summary": "Record an audit entry",
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/LogRequest"},
                            }
                        },
                    },
                    "responses": {
                        "200": {"description": "Recorded"},
                        "400": {"description": "Malformed body"},
                        "500": {"description": "Storage failure"},
                    },
                }
            },
            "/health": {"get": {"summary": "Health check", "responses": {"200": {"description": "OK"}}}},
            "/stats": {"get": {"summary": "Log directory statistics", "responses": {"200": {"description": "Stats"}}}},
        },
        "components": {"schemas": {"LogRequest": LogRequest.model_json_schema()}},
    }


def create_app(
    service: AuditLogService | None = None,
    config: Settings | None = None,
) -> Starlette:
    """Create a Starlette app exposing the audit sink over HTTP.

    When no service is given one is built from ``config`` and closed on
    shutdown; an injected service stays owned by the caller.
    """
    app_settings = config or settings
    app_service = service or AuditLogService(app_settings)
    owns_service = service is None

    def error(message: str, status: int = 400) -> JSONResponse:
        return JSONResponse({"error": message}, status_code=status)

    def require_auth(request: Request) -> JSONResponse | None:
        if not app_settings.api_key:
            return None
        auth = request.headers.get("authorization", "")
        expected = f"Bearer {app_settings.api_key}"
        if auth == expected:
            return None
        return error("Unauthorized", status=401)

    async def write_log(request: Request) -> JSONResponse:
        auth = require_auth(request)
        if auth:
            return auth
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return error("Invalid request body", status=400)
        try:
            body = LogRequest.model_validate(payload)
        except ValidationError as e:
            return error(str(e), status=422)

        try:
            await run_in_threadpool(app_service.write_log, body)
        except AuditSinkError as e:
            logger.error(f"Error writing log: {e}")
            return error("Error writing log", status=500)
        return JSONResponse({"status": "ok", "message": "Log recorded"})

    async def health(_: Request) -> JSONResponse:
        return JSONResponse(app_service.health())

    async def stats(request: Request) -> JSONResponse:
        auth = require_auth(request)
        if auth:
            return auth
        try:
            return JSONResponse(await run_in_threadpool(app_service.stats))
        except OSError as e:
            logger.error(f"Error reading log directory: {e}")
            return error("Error reading log directory", status=500)

    async def openapi(request: Request) -> JSONResponse:
        base_url = str(request.base_url).rstrip("/")
        return JSONResponse(_build_openapi_schema(base_url))

    @asynccontextmanager
    async def lifespan(_: Starlette):
        yield
        if owns_service:
            app_service.close()

    routes = [
        Route("/log", write_log, methods=["POST"]),
        Route("/health", health, methods=["GET"]),
        Route("/stats", stats, methods=["GET"]),
        Route("/openapi.json", openapi, methods=["GET"]),
    ]

    return Starlette(
        debug=False,
        routes=routes,
        middleware=[Middleware(RequestLoggingMiddleware)],
        lifespan=lifespan,
    )


def main() -> None:
    """Run the audit sink server."""
    configure_logging(settings)
    app = create_app()
    logger.info("Starting audit sink on %s:%s", settings.host, settings.port)
    logger.info("Log directory: %s", settings.log_dir)
    logger.info("Log lifetime: %d hours", settings.log_file_lifetime_hours)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
