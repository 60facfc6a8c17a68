"""Translate gateway failures into the JSON error envelope."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pve_gateway.errors import NotFoundError, PermissionDenied, UpstreamError, ValidationError
from pve_gateway.schemas import ErrorResponse, NotFoundResponse
from pve_gateway.settings import ConfigError

logger = logging.getLogger(__name__)

AVAILABLE_ENDPOINTS = [
    "GET /health",
    "GET /nodes",
    "GET /nodes/:node",
    "GET /vms",
    "GET /vms/:node/:vmid",
    "POST /vms/:node/:vmid/command",
    "GET /storage",
    "GET /storage/:storage",
    "GET /cluster/health",
    "GET /cluster/resources",
    "GET /api/openapi.json",
    "GET /api/docs",
    "GET /api/docs/redoc",
]


def _error(status_code: int, message: str, upstream_status: int | None = None) -> JSONResponse:
    body = ErrorResponse(error=message, upstream_status=upstream_status)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True, exclude_none=True))


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def _validation(request: Request, exc: ValidationError):
        return _error(status.HTTP_400_BAD_REQUEST, exc.message)

    @app.exception_handler(PermissionDenied)
    async def _forbidden(request: Request, exc: PermissionDenied):
        return _error(status.HTTP_403_FORBIDDEN, exc.message)

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return _error(status.HTTP_404_NOT_FOUND, exc.message, exc.status)

    @app.exception_handler(UpstreamError)
    async def _upstream(request: Request, exc: UpstreamError):
        logger.warning("%s %s failed upstream: %s", request.method, request.url.path, exc.message)
        return _error(status.HTTP_502_BAD_GATEWAY, exc.message, exc.status)

    @app.exception_handler(ConfigError)
    async def _config(request: Request, exc: ConfigError):
        logger.error("Gateway misconfigured: %s", exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Configuration error: {exc}")

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
        )
        return _error(status.HTTP_400_BAD_REQUEST, f"Invalid request: {details}")

    @app.exception_handler(StarletteHTTPException)
    async def _http(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            body = NotFoundResponse(
                error="Endpoint not found",
                path=request.url.path,
                available_endpoints=AVAILABLE_ENDPOINTS,
            )
            return JSONResponse(status_code=exc.status_code, content=body.model_dump(by_alias=True))
        return _error(exc.status_code, str(exc.detail))
