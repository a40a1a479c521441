"""Uniform error envelope.

Every failure leaves the API as ``{"success": false, "error": ..., "message": ...}``
with the matching HTTP status.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

_DEFAULT_LABELS = {
    400: "Validation failed",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not found",
    409: "Conflict",
    429: "Too many attempts",
    500: "Server error",
}


class ApiError(HTTPException):
    """HTTPException with a short error label, a human message and optional payload."""

    def __init__(
        self,
        status_code: int,
        error: str,
        message: Optional[str] = None,
        data: Any = None,
        headers: Optional[dict] = None,
    ):
        super().__init__(status_code=status_code, detail=message or error, headers=headers)
        self.error = error
        self.message = message or error
        self.data = data


def error_body(status_code: int, error: str, message: str, **extra) -> dict:
    body = {"success": False, "error": error, "message": message}
    body.update({k: v for k, v in extra.items() if v is not None})
    return body


async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(
            error_body(exc.status_code, exc.error, exc.message, data=exc.data)
        ),
        headers=exc.headers,
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        # no route matched
        return JSONResponse(
            status_code=404,
            content=error_body(404, "Route not found", "Route not found", path=request.url.path),
        )
    label = _DEFAULT_LABELS.get(exc.status_code, "Error")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, label, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


def _describe(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    return f"{location}: {error.get('msg')}" if location else error.get("msg", "")


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = _describe(errors[0]) if errors else "Invalid request"
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder(
            error_body(400, "Validation failed", message, errors=[_describe(e) for e in errors])
        ),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body(500, "Server error", str(exc)))


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
