"""Error types and the JSON error envelope used by every route.

The browser client reads failures as ``{"error": ...}`` rather than FastAPI's
default ``{"detail": ...}``, so HTTP exceptions and request-validation
failures are both rendered through the handlers below.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class InvalidTransition(RuntimeError):
    """Raised when a job is asked to move along an edge its state machine lacks."""

    def __init__(self, job_id: str, current: str, target: str):
        super().__init__(f"Job {job_id}: cannot move from '{current}' to '{target}'")
        self.job_id = job_id
        self.current = current
        self.target = target


class ParseServiceError(RuntimeError):
    """The external parse service answered, but not with usable content."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UploadTooLarge(ValueError):
    """An upload or download exceeded the configured byte limit."""

    def __init__(self, limit: int):
        if limit >= 1024 * 1024:
            readable = f"{limit // (1024 * 1024)} MB"
        else:
            readable = f"{limit} bytes"
        super().__init__(f"File too large (max {readable})")
        self.limit = limit


def error_body(message) -> dict:
    return {"error": message}


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    logger.debug("Rejected request to %s: %s", request.url.path, message)
    return JSONResponse(status_code=400, content=error_body(message))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
