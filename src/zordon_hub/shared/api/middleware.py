"""
Shared API Middleware
======================

Common middleware and exception handlers for the FastAPI application.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from zordon_hub.core import ApplicationException, ValidationException
from zordon_hub.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Propagates ``X-Correlation-ID`` (minting one when absent) onto request state and response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID") or uuid.uuid4().hex
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """One structured log line per request, plus an ``X-Response-Time`` header."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        context = {
            "correlation_id": getattr(request.state, "correlation_id", "unknown"),
            "method": request.method,
            "path": request.url.path,
            "caller": request.headers.get("X-User-Id"),
        }

        try:
            response = await call_next(request)
        except Exception as e:
            context["response_time_ms"] = int((time.perf_counter() - started) * 1000)
            logger.error("Request crashed", extra={**context, "error": str(e)})
            raise

        elapsed = time.perf_counter() - started
        response.headers["X-Response-Time"] = f"{elapsed:.3f}s"

        log = logger.info if response.status_code < 500 else logger.error
        log(
            "Request handled",
            extra={**context, "status_code": response.status_code, "response_time_ms": int(elapsed * 1000)}
        )
        return response


async def application_exception_handler(request: Request, exc: ApplicationException) -> JSONResponse:
    """Maps domain/application errors to their structured HTTP result."""
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request rejected",
        extra={
            "correlation_id": correlation_id,
            "path": request.url.path,
            "error_kind": exc.kind,
            "error_message": exc.message
        }
    )

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Generic 500 for anything unhandled; internals never reach the client."""
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    logger.error(
        "Unhandled exception",
        extra={
            "correlation_id": correlation_id,
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error_message": str(exc)
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "Internal server error",
            "error": "internal",
            "correlation_id": correlation_id,
        }
    )


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and parameters report as ``invalid_input`` like service-side checks."""
    error = ValidationException(
        "Invalid request",
        {"errors": jsonable_encoder(exc.errors(), exclude={"ctx", "url", "input"})}
    )
    return await application_exception_handler(request, error)
