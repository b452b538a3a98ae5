"""
Exception hierarchy for the wishlist service.

Raised by the stores and route handlers, translated into HTTP responses by
the handlers registered in ``wishlist.api.middleware.error_handler``.
"""

from typing import Any, Optional


class WishlistException(Exception):
    """Base exception for wishlist errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        detail: Optional[str] = None,
        extra: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.detail = detail
        self.extra = extra or {}
        super().__init__(message)


class BadRequestError(WishlistException):
    """Malformed, missing or disallowed input."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="BAD_REQUEST",
            status_code=400,
            detail=detail,
        )


class UnauthorizedError(WishlistException):
    """Missing or invalid credentials, or an ownership violation."""

    def __init__(self, message: str = "unauthorized", detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
            status_code=401,
            detail=detail,
        )


class NotFoundError(WishlistException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            status_code=404,
            detail=f"No {resource} with identifier '{identifier}' exists",
        )


class ConflictError(WishlistException):
    """Stale sequence number on an optimistic update."""

    def __init__(self, entry_id: int, seq: int, current_seq: int):
        super().__init__(
            message="stale sequence number",
            code="CONFLICT",
            status_code=409,
            detail=f"Entry {entry_id} is at seq {current_seq}, request was based on {seq}",
            extra={"id": entry_id, "seq": seq, "current_seq": current_seq},
        )


class UnsupportedMediaTypeError(WishlistException):
    """Request body is not JSON."""

    def __init__(self, content_type: Optional[str]):
        super().__init__(
            message="Unsupported Media Type",
            code="UNSUPPORTED_MEDIA_TYPE",
            status_code=415,
            detail=f"Expected application/json, got '{content_type or ''}'",
        )
