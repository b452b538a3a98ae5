"""
Error Handling for the wishlist API

Centralized error handling:
- Structured error responses
- Logging of errors
- Exception translation
"""

import traceback
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from ...exceptions import (
    WishlistException,
    BadRequestError,
    UnauthorizedError,
    NotFoundError,
    ConflictError,
    UnsupportedMediaTypeError,
)
from .logging import get_request_id


def create_error_response(
    error: str,
    code: str,
    status_code: int,
    detail: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    """Create standardized error response."""
    content = {
        "error": error,
        "code": code,
        "detail": detail,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if extra:
        content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def _describe_validation_errors(exc: RequestValidationError) -> str:
    """Flatten pydantic error entries into one line."""
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        message = err.get("msg", "invalid")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def setup_exception_handlers(app):
    """Register exception handlers with FastAPI app."""

    @app.exception_handler(WishlistException)
    async def wishlist_exception_handler(request: Request, exc: WishlistException):
        logger.warning(f"[{get_request_id()}] Wishlist error: {exc.code} - {exc.message} ({request.url.path})")
        return create_error_response(
            error=exc.message,
            code=exc.code,
            status_code=exc.status_code,
            detail=exc.detail,
            extra=exc.extra,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        detail = _describe_validation_errors(exc)
        logger.warning(f"Validation error on {request.url.path}: {detail}")
        return create_error_response(
            error="Bad Request",
            code="BAD_REQUEST",
            status_code=400,
            detail=detail,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"[{get_request_id()}] Unhandled exception: {type(exc).__name__}: {str(exc)}\n{traceback.format_exc()}"
        )
        # Don't expose internal error details
        return create_error_response(
            error="Internal Server Error",
            code="INTERNAL_ERROR",
            status_code=500,
            detail="An unexpected error occurred",
        )
