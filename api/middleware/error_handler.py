"""
Global Error Handler Middleware - API Layer

Centralized error handling: every failure leaves the service as
``{"error": "<message>"}`` with the mapped status code.

@.architecture
Incoming: app.py (middleware registration), Exception objects from endpoints --- {FastAPI Request objects, Python exceptions}
Processing: dispatch(), _handle_error(), _classify_error(), _build_error_response(), _log_error(), register_exception_handlers() --- {5 jobs: exception_catching, error_classification, response_formatting, sanitization, logging}
Outgoing: monitoring/logging.py, Frontend (HTTP) --- {structured error logs, JSONResponse with {error: message}}
"""

import logging
import traceback
from typing import Any, Callable, Dict, Optional, Tuple

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from core.errors import FileServiceError, NotFound, PathTraversalRejected

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Internal server error"

DEFAULT_STATUS_MESSAGES: Dict[int, str] = {
    400: "Invalid request",
    404: "File not found",
    405: "Method not allowed",
    413: "Request entity too large",
    415: "Unsupported media type",
    500: GENERIC_SERVER_ERROR,
}


def error_body(message: str) -> Dict[str, Any]:
    return {"error": message}


class ErrorHandlerConfig:
    """Configuration for error handler."""

    def __init__(self, include_traceback: bool = False, log_errors: bool = True):
        """
        Args:
            include_traceback: Include traceback in 500 responses (development only)
            log_errors: Log errors to logger
        """
        self.include_traceback = include_traceback
        self.log_errors = log_errors


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware for global error handling.

    - Maps FileServiceError subclasses to their status codes
    - Turns anything else into a 500 without leaking paths or stack traces
    - Logs traversal attempts and missing files distinctly even though
      clients see the same 404
    """

    def __init__(self, app: ASGIApp, config: Optional[ErrorHandlerConfig] = None):
        super().__init__(app)
        self.config = config or ErrorHandlerConfig()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return self._handle_error(request, e)

    def _handle_error(self, request: Request, error: Exception) -> JSONResponse:
        status_code, message = self._classify_error(error)

        if self.config.log_errors:
            self._log_error(request, error, status_code)

        return JSONResponse(
            status_code=status_code,
            content=self._build_error_response(status_code, message, error)
        )

    def _classify_error(self, error: Exception) -> Tuple[int, str]:
        if isinstance(error, FileServiceError):
            return error.status_code, error.public_message
        return 500, GENERIC_SERVER_ERROR

    def _build_error_response(self, status_code: int, message: str, error: Exception) -> Dict[str, Any]:
        response = error_body(message)
        if self.config.include_traceback and status_code >= 500:
            response["traceback"] = traceback.format_exception(
                type(error), error, error.__traceback__
            )
        return response

    def _log_error(self, request: Request, error: Exception, status_code: int) -> None:
        context = {
            "method": request.method,
            "path": str(request.url.path),
            "status_code": status_code,
            "error_type": type(error).__name__,
            "client": request.client.host if request.client else "unknown"
        }
        # JSONFormatter serializes extra_fields only
        extra = {"extra_fields": context}

        if isinstance(error, PathTraversalRejected):
            logger.warning(f"Path traversal rejected: {error}", extra=extra)
        elif isinstance(error, NotFound):
            logger.info(f"File not found: {error}", extra=extra)
        elif status_code >= 500:
            logger.error(f"Server error: {error}", extra=extra, exc_info=error)
        else:
            logger.warning(f"Client error: {error}", extra=extra)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = DEFAULT_STATUS_MESSAGES.get(exc.status_code)
    if message is None:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message),
        headers=getattr(exc, "headers", None)
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info(f"Request validation failed on {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content=error_body(DEFAULT_STATUS_MESSAGES[400]))


def register_exception_handlers(app: FastAPI) -> None:
    """Give framework-raised errors the same {"error"} body as ours."""
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)


def create_error_handler_middleware(development: bool = False):
    """
    Create error handler middleware factory with environment-appropriate config.

    Returns:
        Middleware class and kwargs for FastAPI
    """
    config = ErrorHandlerConfig(include_traceback=development, log_errors=True)
    return (ErrorHandlerMiddleware, {"config": config})
