"""
Middleware and exception handlers for the sqlcloak FastAPI application.

This module contains:
- HTTP middleware for trace IDs and request logging
- Centralized exception handlers converting errors to ErrorResponse

Exception Handling Strategy:
- SQLCloakException subclasses carry their own http_status and error_code
- Request validation and HTTP errors are normalized to the same shape
- Anything else becomes a generic 500 without internal details
- Every response carries the request's trace_id

Usage in main.py:
    from .api.middleware import register_exception_handlers
    register_exception_handlers(app)
"""

import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..domain.errors import SQLCloakException
from ..domain.responses import ErrorResponse
from ..utils.logging import get_module_logger
from ..utils.tracing import current_trace_id, generate_trace_id, set_trace_id

logger = get_module_logger()

TRACE_HEADER = "X-Trace-ID"

# Status code -> error code for framework HTTP errors
_HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    500: "INTERNAL_ERROR",
    503: "SERVICE_UNAVAILABLE",
}


# =============================================================================
# Middleware Functions
# =============================================================================


async def trace_id_middleware(request: Request, call_next: Callable) -> Response:
    """
    Bind a trace ID to the request.

    Reuses the caller's X-Trace-ID header when present and echoes the
    trace ID back on the response.
    """
    trace_id = request.headers.get(TRACE_HEADER) or generate_trace_id()
    set_trace_id(trace_id)

    response = await call_next(request)
    response.headers[TRACE_HEADER] = trace_id
    return response


async def logging_middleware(request: Request, call_next: Callable) -> Response:
    """
    Log each request with its status code and duration.

    Request bodies are never logged: they hold the queries being encrypted.
    """
    started = time.perf_counter()
    trace_id = current_trace_id()

    logger.info(
        "HTTP request started",
        method=request.method,
        path=request.url.path,
        client_ip=request.client.host if request.client else None,
        trace_id=trace_id,
    )

    response = await call_next(request)

    duration_ms = round((time.perf_counter() - started) * 1000, 2)
    response.headers["X-Process-Time"] = str(duration_ms)

    logger.info(
        "HTTP request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=duration_ms,
        trace_id=trace_id,
    )

    return response


# =============================================================================
# Exception Handlers
# =============================================================================


def _error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """
    Build the standard error body:
    {"error", "message", "details"?, "trace_id", "timestamp"}
    """
    body = ErrorResponse(
        error=error_code.lower(),
        message=message,
        details=details,
        trace_id=current_trace_id(),
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


async def sqlcloak_exception_handler(request: Request, exc: SQLCloakException) -> JSONResponse:
    """Handler for all SQLCloakException subclasses."""
    log = logger.warning if exc.http_status < 500 else logger.error
    log(
        f"{exc.__class__.__name__}: {exc.message}",
        error_code=exc.error_code,
        http_status=exc.http_status,
        details=exc.details,
        path=request.url.path,
        method=request.method,
        trace_id=current_trace_id(),
    )

    return _error_response(exc.http_status, exc.error_code, exc.message, exc.details or None)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for request body validation errors (HTTP 422)."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    logger.warning(
        "Request validation failed",
        error_count=len(errors),
        errors=errors,
        path=request.url.path,
        method=request.method,
        trace_id=current_trace_id(),
    )

    return _error_response(422, "VALIDATION_ERROR", "Request validation failed", {"errors": errors})


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handler for Starlette/FastAPI HTTP exceptions (unknown routes, wrong methods)."""
    error_code = _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")

    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"HTTP {exc.status_code}: {exc.detail}",
        error_code=error_code,
        http_status=exc.status_code,
        path=request.url.path,
        method=request.method,
        trace_id=current_trace_id(),
    )

    message = str(exc.detail) if exc.detail else f"HTTP {exc.status_code} error"
    return _error_response(exc.status_code, error_code, message)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback for unhandled exceptions; details stay in the logs."""
    logger.error(
        "Unhandled exception occurred",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        trace_id=current_trace_id(),
        exc_info=True,
    )

    return _error_response(500, "INTERNAL_ERROR", "An internal server error occurred. Please try again later.")


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Usage:
        app = FastAPI()
        register_exception_handlers(app)
    """
    app.add_exception_handler(SQLCloakException, sqlcloak_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info(
        "Exception handlers registered",
        handlers=["SQLCloakException", "RequestValidationError", "StarletteHTTPException", "Exception (fallback)"],
    )


# =============================================================================
# OpenAPI Error Response Models (for documentation)
# =============================================================================


def _example(error: str, message: str) -> Dict[str, Any]:
    return {
        "application/json": {
            "example": {
                "error": error,
                "message": message,
                "trace_id": "550e8400-e29b-41d4-a716-446655440000",
                "timestamp": "2024-01-15T10:30:00Z",
            }
        }
    }


ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    404: {
        "description": "Unknown Schema - The schema name is not in the catalog",
        "content": _example("unknown_schema", "Can not find encryption schema with name sales"),
    },
    409: {
        "description": "No Schema Selected - No schema given and none selected",
        "content": _example("no_schema_selected", "No encryption schema selected"),
    },
    422: {
        "description": "Validation Error - Request or mapping document is invalid",
        "content": _example("validation_error", "Request validation failed"),
    },
    503: {
        "description": "Mapping Fetch Failed - The catalog or mapping source is unavailable",
        "content": _example("mapping_fetch_failed", "Failed to fetch encryption_tables.json"),
    },
}
