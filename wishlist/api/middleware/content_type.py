"""
Media type enforcement.

Every request that carries a body under the API prefix must declare
``Content-Type: application/json``. Anything else is answered with 415 before
routing.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Set

from fastapi import FastAPI, Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from ...exceptions import UnsupportedMediaTypeError
from .error_handler import create_error_response


@dataclass
class ContentTypeConfig:
    """Which requests must be JSON."""

    path_prefix: str = "/api"

    media_type: str = "application/json"

    methods: Set[str] = field(default_factory=lambda: {"POST", "PUT", "PATCH", "DELETE"})


def has_body(request: Request) -> bool:
    """True when the request declares a non-empty body."""
    if "transfer-encoding" in request.headers:
        return True
    length = request.headers.get("content-length")
    if length is None:
        return False
    try:
        return int(length) > 0
    except ValueError:
        return True


def media_type_of(content_type: Optional[str]) -> str:
    """Strip parameters such as charset from a Content-Type value."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


class ContentTypeMiddleware(BaseHTTPMiddleware):
    """Reject non-JSON request bodies with 415."""

    def __init__(self, app: FastAPI, config: Optional[ContentTypeConfig] = None):
        super().__init__(app)
        self.config = config or ContentTypeConfig()

    def _requires_json(self, request: Request) -> bool:
        return (
            request.method in self.config.methods
            and request.url.path.startswith(self.config.path_prefix)
            and has_body(request)
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if self._requires_json(request):
            content_type = request.headers.get("content-type")
            if media_type_of(content_type) != self.config.media_type:
                exc = UnsupportedMediaTypeError(content_type)
                logger.warning(f"{exc.message}: {content_type!r} on {request.url.path}")
                return create_error_response(
                    error=exc.message,
                    code=exc.code,
                    status_code=exc.status_code,
                    detail=exc.detail,
                )

        return await call_next(request)


def setup_content_type_check(app: FastAPI, config: Optional[ContentTypeConfig] = None) -> None:
    """Install the JSON media type check."""
    app.add_middleware(ContentTypeMiddleware, config=config)
