"""
Error boundary: maps application errors to JSON responses.

Body shape is always {"success": false, "error": ...}; rate limits add
retryAfter, development mode adds details (traceback or validation errors).
"""

from __future__ import annotations

import traceback

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend_solnero.core.exceptions import AppError, ErrorKind, RateLimitedError
from backend_solnero.solnero_logging import get_logger

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."
PERSISTENCE_ERROR_MESSAGE = "Database temporarily unavailable. Please try again later."

# kind -> message shown outside development (None = the error's own message)
_PUBLIC_MESSAGE: dict[ErrorKind, str | None] = {
    ErrorKind.VALIDATION: None,
    ErrorKind.DOMAIN: None,
    ErrorKind.NOT_FOUND: None,
    ErrorKind.RATE_LIMITED: None,
    ErrorKind.UPSTREAM: None,
    ErrorKind.PERSISTENCE: PERSISTENCE_ERROR_MESSAGE,
}

_missing = set(ErrorKind) - set(_PUBLIC_MESSAGE)
if _missing:
    raise RuntimeError(f"No error policy for kinds: {sorted(k.value for k in _missing)}")


def _is_development(request: Request) -> bool:
    return request.app.state.solnero.settings.is_development


def _traceback(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def app_error_body(exc: AppError, *, development: bool) -> dict:
    public = _PUBLIC_MESSAGE[exc.kind]
    body: dict = {"success": False, "error": exc.message if (development or public is None) else public}
    if isinstance(exc, RateLimitedError):
        body["retryAfter"] = exc.retry_after
    if development:
        body["details"] = _traceback(exc)
    return body


def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    development = _is_development(request)
    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            path=request.url.path,
            kind=exc.kind.value,
            error=exc.message,
            exc_info=exc,
        )
    else:
        logger.info("request_rejected", path=request.url.path, kind=exc.kind.value, error=exc.message)
    headers = {"Retry-After": str(exc.retry_after)} if isinstance(exc, RateLimitedError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=app_error_body(exc, development=development),
        headers=headers,
    )


def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "invalid request")
    error = f"Validation error: {location}: {message}" if location else f"Validation error: {message}"
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": error, "details": jsonable_encoder(errors)},
    )


def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "request_unhandled_error",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    if _is_development(request):
        content = {"success": False, "error": str(exc) or type(exc).__name__, "details": _traceback(exc)}
    else:
        content = {"success": False, "error": GENERIC_ERROR_MESSAGE}
    return JSONResponse(status_code=500, content=content)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_error)
