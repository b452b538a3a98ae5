"""
Access logging for the wishlist API.

Every request gets an id (the client's X-Request-ID if it sent one, else the
next value of a process-wide counter). The id lives in a ContextVar so error
handlers can tag their own log lines with it, and is echoed back on the
response. Each request produces a START and a FINISH line.

Session cookies and credential fields never reach the log.
"""

import itertools
import json
import logging
import time
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

MASK = "[REDACTED]"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# next() on itertools.count is atomic
_request_ids = itertools.count(1)

logger = logging.getLogger("wishlist.api")


@dataclass
class AccessLogConfig:
    """What the access log records and what it hides."""

    enabled: bool = True
    log_bodies: bool = False
    body_limit: int = 10_000
    slow_after: float = 2.0
    id_header: str = "X-Request-ID"
    quiet_paths: frozenset = frozenset({"/health", "/favicon.ico"})
    masked_headers: frozenset = frozenset({"cookie", "set-cookie"})
    masked_fields: frozenset = frozenset({"password", "invite_code"})


def next_request_id() -> str:
    return str(next(_request_ids))


def get_request_id() -> str:
    """Id of the request being served, or "" outside a request."""
    return request_id_var.get()


def redact_sensitive_data(data: Any, fields: Iterable[str], mask: str = MASK) -> Any:
    """Replace the values of ``fields`` anywhere inside a decoded JSON document."""
    fields = set(fields)
    if isinstance(data, dict):
        return {
            key: mask if key.lower() in fields else redact_sensitive_data(value, fields, mask)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [redact_sensitive_data(item, fields, mask) for item in data]
    return data


class StructuredLogFormatter(logging.Formatter):
    """One JSON object per line, tagged with the current request id."""

    extras = ("request", "response", "duration_ms")

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if request_id_var.get():
            entry["request_id"] = request_id_var.get()
        for name in self.extras:
            if hasattr(record, name):
                entry[name] = getattr(record, name)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and writes its START and FINISH lines."""

    def __init__(self, app: FastAPI, config: Optional[AccessLogConfig] = None):
        super().__init__(app)
        self.config = config or AccessLogConfig()

    def _headers(self, headers) -> dict:
        return {
            name: MASK if name.lower() in self.config.masked_headers else value
            for name, value in headers.items()
        }

    async def _body(self, request: Request) -> Optional[str]:
        raw = await request.body()
        if not raw:
            return None
        if len(raw) > self.config.body_limit:
            return f"<{len(raw)} bytes>"
        try:
            document = json.loads(raw)
        except ValueError:
            # Not JSON; the media type check rejects it further in
            return raw.decode("utf-8", errors="replace")
        return json.dumps(redact_sensitive_data(document, self.config.masked_fields))

    def _level(self, status: int, elapsed: float) -> int:
        if status >= 500:
            return logging.ERROR
        if status >= 400 or elapsed > self.config.slow_after:
            return logging.WARNING
        return logging.INFO

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.config.id_header) or next_request_id()
        request_id_var.set(request_id)

        path = request.url.path
        if not self.config.enabled or path in self.config.quiet_paths:
            response = await call_next(request)
            response.headers[self.config.id_header] = request_id
            return response

        peer = request.client.host if request.client else "-"
        prefix = f"{request_id} {peer} {request.method} {path}"

        summary = {
            "method": request.method,
            "path": path,
            "query": request.url.query or None,
            "headers": self._headers(request.headers),
        }
        if self.config.log_bodies:
            body = await self._body(request)
            if body is not None:
                summary["body"] = body
        logger.info(f"{prefix} START", extra={"request": summary})

        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        response.headers[self.config.id_header] = request_id

        duration_ms = round(elapsed * 1000, 2)
        line = f"{prefix} FINISH {response.status_code} ({duration_ms}ms)"
        if elapsed > self.config.slow_after:
            line += " slow"
        logger.log(
            self._level(response.status_code, elapsed),
            line,
            extra={
                "response": {
                    "status_code": response.status_code,
                    "headers": self._headers(response.headers),
                },
                "duration_ms": duration_ms,
            },
        )
        return response


def setup_logging(
    app: FastAPI,
    config: Optional[AccessLogConfig] = None,
    structured: bool = True,
) -> None:
    """
    Install the access log middleware.

    With ``structured`` set, the ``wishlist`` logger writes JSON lines to
    stderr; the handler is only attached once per process.
    """
    if structured:
        root = logging.getLogger("wishlist")
        if not any(isinstance(h.formatter, StructuredLogFormatter) for h in root.handlers):
            handler = logging.StreamHandler()
            handler.setFormatter(StructuredLogFormatter())
            root.addHandler(handler)
        root.setLevel(logging.INFO)

    app.add_middleware(RequestLoggingMiddleware, config=config or AccessLogConfig())
