from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler, request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .app_context import templates
from Security.encryption import DecryptionError, EncryptionError

logger = logging.getLogger("booking_platform.errors")

_TITLES = {
    400: "Bad request",
    401: "Authentication required",
    403: "Access denied",
    404: "Page not found",
    405: "Method not allowed",
    413: "Upload too large",
    422: "Invalid input",
}

_REASONS = {
    400: "The request data was invalid or incomplete.",
    401: "Your session is missing, expired, or invalid.",
    403: "You do not have permission to access this resource.",
    404: "The URL does not match any existing route or the resource was removed.",
    405: "This endpoint exists, but it does not allow this HTTP method.",
    413: "The uploaded file exceeds the allowed size.",
    422: "The submitted form data is invalid.",
}


def _is_html_page_request(request: Request) -> bool:
    if request.url.path.startswith("/api"):
        return False
    accept = (request.headers.get("accept") or "").lower()
    return "text/html" in accept


def _error_title(status_code: int) -> str:
    if status_code >= 500:
        return "Internal server error"
    return _TITLES.get(status_code, "Request failed")


def _error_reason(status_code: int) -> str:
    if status_code >= 500:
        return "The server hit an unexpected condition while processing your request."
    return _REASONS.get(status_code, "The request could not be completed.")


def _detail_from_exc(exc: Any, fallback: str) -> str:
    raw = getattr(exc, "detail", None)
    if isinstance(raw, str) and raw.strip():
        return raw
    if raw is not None:
        return str(raw)
    return fallback


def _detail_from_validation(exc: RequestValidationError) -> str:
    errors = exc.errors() or []
    if not errors:
        return "Request validation failed."
    first = errors[0]
    field = ".".join(str(x) for x in first.get("loc", []) if x != "body")
    msg = first.get("msg") or "Invalid input."
    if field:
        return f"{field}: {msg}"
    return msg


def _render_error_page(request: Request, status_code: int, detail: str):
    return templates.TemplateResponse(
        request,
        "common/error.html",
        {
            "status_code": status_code,
            "path": request.url.path,
            "detail": detail,
            "error_title": _error_title(status_code),
            "error_reason": _error_reason(status_code),
        },
        status_code=status_code,
    )


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        if _is_html_page_request(request):
            return _render_error_page(request, 422, _detail_from_validation(exc))
        return await request_validation_exception_handler(request, exc)

    @app.exception_handler(StarletteHTTPException)
    async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException):
        if _is_html_page_request(request):
            detail = _detail_from_exc(exc, _error_reason(exc.status_code))
            return _render_error_page(request, exc.status_code, detail)
        return await http_exception_handler(request, exc)

    @app.exception_handler(EncryptionError)
    @app.exception_handler(DecryptionError)
    async def crypto_exception_handler(request: Request, exc: Exception):
        # Cause was already logged by the encryption helper
        if _is_html_page_request(request):
            return _render_error_page(request, 500, "Stored data could not be processed.")
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        if _is_html_page_request(request):
            return _render_error_page(request, 500, "Unhandled server exception")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
