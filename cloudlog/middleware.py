"""Request logging middleware with Cloud Trace correlation.

Binds the trace context propagated by Cloud Run for the duration of each
request, so that every record logged while handling it carries the
``logging.googleapis.com/trace`` fields, then logs one summary record
with a populated ``httpRequest`` document.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from cloudlog.models.schemas import HttpMethod, HttpRequest
from cloudlog.trace_context import (
    bind_trace_context,
    parse_cloud_trace_header,
    parse_traceparent,
    reset_trace_context,
)

logger = logging.getLogger(__name__)

# File extensions considered static assets (matched by suffix).
_STATIC_EXTENSIONS = frozenset(
    (".css", ".js", ".ico", ".png", ".jpg", ".jpeg", ".svg", ".webp",
     ".woff2", ".woff", ".ttf", ".map", ".webmanifest")
)


def _is_static_asset(path: str) -> bool:
    """Return True if the request path is for a static file."""
    dot = path.rfind(".")
    return dot != -1 and path[dot:] in _STATIC_EXTENSIONS


def format_latency(seconds: float) -> str:
    """Format a duration as Cloud Logging expects, e.g. ``"0.0125s"``."""
    text = f"{max(seconds, 0.0):.9f}".rstrip("0").rstrip(".")
    return f"{text}s"


def _status_level(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, URL, status and latency for each request.

    Trace context comes from ``X-Cloud-Trace-Context`` or, failing that,
    the W3C ``traceparent`` header. Static assets and ``exclude_paths``
    still get the trace context but no summary record.
    """

    def __init__(self, app, exclude_paths: tuple[str, ...] = ()) -> None:
        super().__init__(app)
        self.exclude_paths = frozenset(exclude_paths)

    async def dispatch(self, request: Request, call_next) -> Response:
        context = parse_cloud_trace_header(
            request.headers.get("x-cloud-trace-context")
        ) or parse_traceparent(request.headers.get("traceparent"))
        token = bind_trace_context(context)
        try:
            start = time.monotonic()
            response = await call_next(request)
            latency = time.monotonic() - start

            path = request.url.path
            if not _is_static_asset(path) and path not in self.exclude_paths:
                http_request = self._describe(request, response, latency)
                logger.log(
                    _status_level(response.status_code),
                    "%s %s -> %d",
                    request.method,
                    path,
                    response.status_code,
                    extra={"http_request": http_request},
                )
            return response
        finally:
            reset_trace_context(token)

    @staticmethod
    def _describe(request: Request, response: Response, latency: float) -> HttpRequest:
        http_version = request.scope.get("http_version")
        return HttpRequest(
            request_method=HttpMethod.parse(request.method),
            request_url=str(request.url),
            request_size=request.headers.get("content-length"),
            status=response.status_code,
            response_size=response.headers.get("content-length"),
            user_agent=request.headers.get("user-agent"),
            remote_ip=request.client.host if request.client else None,
            latency=format_latency(latency),
            protocol=f"HTTP/{http_version}" if http_version else None,
        )
