"""HTTP-facing errors and their FastAPI handlers.

Every error response has the same JSON shape (``ErrorResponse``) whether it
comes from an ``APIError`` raised in a controller, a scheduling core
validation failure, or a plain ``HTTPException`` raised by FastAPI itself.

    from whenworks.errors import NotFoundError

    if event is None:
        raise NotFoundError(detail="Event not found", slug=slug)
"""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from whenworks.scheduling.errors import SchedulingError

logger = logging.getLogger(__name__)

_ERROR_TYPES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    422: "validation_error",
    429: "rate_limited",
    500: "internal_error",
    503: "service_unavailable",
}


class ErrorResponse(BaseModel):
    error: str
    detail: str | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None


class APIError(Exception):
    """Base class for errors that map onto an HTTP status.

    Extra keyword arguments end up in the response ``context``.
    """

    status_code: int = 500
    error: str = "internal_error"
    detail: str = "An unexpected error occurred"

    def __init__(self, detail: str | None = None, error_code: str | None = None, **context: Any) -> None:
        self.detail = detail or type(self).detail
        self.error_code = error_code
        self.context = context or None
        super().__init__(self.detail)

    def headers(self) -> dict[str, str] | None:
        return None

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error=self.error,
            detail=self.detail,
            error_code=self.error_code,
            context=self.context,
        )


class BadRequestError(APIError):
    status_code = 400
    error = "bad_request"
    detail = "Invalid request"


class NotFoundError(APIError):
    status_code = 404
    error = "not_found"
    detail = "Resource not found"


class ConflictError(APIError):
    """The participant name belongs to another session."""

    status_code = 409
    error = "conflict"
    detail = "Resource already exists"


class RateLimitedError(APIError):
    status_code = 429
    error = "rate_limited"
    detail = "Too many requests"

    def headers(self) -> dict[str, str] | None:
        if self.context and "reset_in" in self.context:
            return {"Retry-After": str(self.context["reset_in"])}
        return None


class ServiceUnavailableError(APIError):
    status_code = 503
    error = "service_unavailable"
    detail = "Service temporarily unavailable"


def _status_to_error_type(status_code: int) -> str:
    return _ERROR_TYPES.get(status_code, "error")


def _json(status_code: int, body: ErrorResponse, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    logger.warning("API error: %s (status=%d, path=%s)", exc.detail, exc.status_code, request.url.path)
    return _json(exc.status_code, exc.to_response(), exc.headers())


async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    """Invalid times, keys or limits that reached the core are client errors."""
    logger.warning("Scheduling error: %s (path=%s)", exc, request.url.path)
    body = ErrorResponse(error="bad_request", detail=str(exc), error_code=type(exc).__name__)
    return _json(400, body)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    body = ErrorResponse(error=_status_to_error_type(exc.status_code), detail=str(exc.detail))
    return _json(exc.status_code, body, getattr(exc, "headers", None))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(SchedulingError, scheduling_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
