"""
Error handling for the Battery Insights API.

This module provides:
1. ApiError, the exception services raise for client-facing failures
2. Helpers for the common 400/401/404/429 cases
3. FastAPI exception handlers that render every error as {"error": {...}}
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Something went wrong. Try again later."


class ApiError(Exception):
    """Exception carrying an HTTP status, a stable error code and optional details."""
    def __init__(self, status_code: int, code: str, message: str, details: Any = None):
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return {"error": body}


def bad_request_error(message: str, details: Any = None) -> ApiError:
    return ApiError(400, "BAD_REQUEST", message, details)


def unauthorized_error(message: str = "Unauthorized") -> ApiError:
    return ApiError(401, "UNAUTHORIZED", message)


def not_found_error(message: str) -> ApiError:
    return ApiError(404, "NOT_FOUND", message)


def too_many_requests_error(limit: str) -> ApiError:
    return ApiError(429, "TOO_MANY_REQUESTS", "Too many requests, please try again later.", {"limit": limit})


def _error_response(error: ApiError, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content=jsonable_encoder(error.to_dict()),
        headers=headers,
    )


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    headers = {"WWW-Authenticate": "ApiKey"} if exc.status_code == 401 else None
    return _error_response(exc, headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = bad_request_error("Request validation failed", exc.errors())
    return _error_response(error)


def rate_limit_error_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Render a rate limit rejection in the API error format.

    Must stay synchronous: slowapi's middleware calls it without awaiting.
    """
    response = _error_response(too_many_requests_error(str(exc.detail)))
    limiter = getattr(request.app.state, "limiter", None)
    current_limit = getattr(request.state, "view_rate_limit", None)
    if limiter is not None and current_limit is not None:
        response = limiter._inject_headers(response, current_limit)
    return response


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "INTERNAL_SERVER_ERROR", "message": INTERNAL_ERROR_MESSAGE}},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach the API error handlers to an application."""
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
