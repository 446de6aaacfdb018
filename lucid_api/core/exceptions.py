"""Application error taxonomy.

Every error carries the HTTP status and the user-facing message rendered as
``{"error": true, "message": ...}`` by the handler registered in ``main``.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base class for errors that map to a structured JSON response."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class RateLimitExceededError(AppError):
    status_code = 429
    default_message = "Too many requests, please try again later."

    def __init__(self, message: str | None = None, retry_after: float = 0.0):
        super().__init__(message)
        self.retry_after = retry_after


class ConfigurationError(AppError):
    status_code = 500
    default_message = "Server configuration error"


class UpstreamError(AppError):
    """Base for failures talking to an LLM provider."""

    status_code = 502
    default_message = "Upstream service error"


class UpstreamRejectedError(UpstreamError):
    """Provider answered with a non-2xx status."""


class UpstreamBadResponseError(UpstreamError):
    status_code = 502
    default_message = "Search provider returned an invalid response"


class UpstreamUnreachableError(UpstreamError):
    status_code = 503
    default_message = "Search service is unavailable. Please try again later."


class UpstreamTimeoutError(UpstreamError):
    status_code = 504
    default_message = "Search request timed out. Please try again later."


def error_body(message: str) -> dict:
    return {"error": True, "message": message}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimitExceededError) and exc.retry_after > 0:
        headers = {"Retry-After": str(max(1, round(exc.retry_after)))}
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message), headers=headers)
