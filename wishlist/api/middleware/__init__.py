"""
API middleware components.

Provides cross-cutting concerns for the API:
- Error handling
- CORS configuration
- JSON media type enforcement
- Request/response logging
"""

from .error_handler import (
    WishlistException,
    BadRequestError,
    UnauthorizedError,
    NotFoundError,
    ConflictError,
    UnsupportedMediaTypeError,
    setup_exception_handlers,
    create_error_response,
)

from .cors import (
    CORSConfig,
    get_cors_config,
    setup_cors,
)

from .content_type import (
    ContentTypeConfig,
    ContentTypeMiddleware,
    setup_content_type_check,
)

from .logging import (
    AccessLogConfig,
    StructuredLogFormatter,
    RequestLoggingMiddleware,
    setup_logging,
    get_request_id,
    next_request_id,
    redact_sensitive_data,
)


__all__ = [
    # Error handling
    "WishlistException",
    "BadRequestError",
    "UnauthorizedError",
    "NotFoundError",
    "ConflictError",
    "UnsupportedMediaTypeError",
    "setup_exception_handlers",
    "create_error_response",
    # CORS
    "CORSConfig",
    "get_cors_config",
    "setup_cors",
    # Media type
    "ContentTypeConfig",
    "ContentTypeMiddleware",
    "setup_content_type_check",
    # Logging
    "AccessLogConfig",
    "StructuredLogFormatter",
    "RequestLoggingMiddleware",
    "setup_logging",
    "get_request_id",
    "next_request_id",
    "redact_sensitive_data",
]
