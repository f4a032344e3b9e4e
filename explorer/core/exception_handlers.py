"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Domain exceptions become
their to_dict() JSON with a status chosen by error_code; anything else is
a 500 that only shows its message in debug mode.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from explorer.core.config import get_settings
from explorer.domain.exceptions import ExplorerException

logger = logging.getLogger(__name__)

# Map domain error_code to HTTP status; unlisted codes are server errors
_ERROR_CODE_STATUS: dict[str, int] = {
    "INVALID_ARGUMENT": 400,
    "CACHE_UNAVAILABLE": 503,
    "TOKEN_ACQUISITION_ERROR": 502,
}

# Seconds a client should wait before retrying while Redis is unreachable
CACHE_RETRY_AFTER_SECONDS = 5


def _explorer_exception_handler(request: Request, exc: ExplorerException) -> JSONResponse:
    status = _ERROR_CODE_STATUS.get(exc.error_code, 500)
    headers = None
    if status == 503:
        headers = {"Retry-After": str(CACHE_RETRY_AFTER_SECONDS)}
    if status >= 500:
        logger.error("%s on %s: %s", exc.error_code, request.url.path, exc.message)
    return JSONResponse(status_code=status, content=exc.to_dict(), headers=headers)


def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return JSON for Starlette HTTP exceptions (e.g. 404, or 503 before startup)."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP_ERROR", "message": exc.detail},
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s: %s", request.url.path, exc)
    message = str(exc) if get_settings().debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register ExplorerException, HTTPException and catch-all handlers on app."""
    app.add_exception_handler(ExplorerException, _explorer_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
