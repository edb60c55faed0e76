"""Request-scoped trace correlation for log entries.

Cloud Run and the Google load balancers propagate trace context in the
``X-Cloud-Trace-Context`` header; OpenTelemetry clients send the W3C
``traceparent`` header instead. Either is parsed into a TraceContext and
bound to a ContextVar so every record logged while handling the request
is correlated with its trace, without sharing state across requests.
"""

import re
from contextvars import ContextVar, Token
from dataclasses import dataclass

_CLOUD_TRACE_RE = re.compile(
    r"^(?P<trace>[0-9a-fA-F]{1,32})(?:/(?P<span>\d{1,20}))?(?:;o=(?P<options>\d+))?$"
)
_TRACEPARENT_RE = re.compile(
    r"^(?P<version>[0-9a-f]{2})-(?P<trace>[0-9a-f]{32})-(?P<span>[0-9a-f]{16})-(?P<flags>[0-9a-f]{2})$"
)


@dataclass(frozen=True)
class TraceContext:
    trace_id: str
    span_id: str | None = None
    sampled: bool | None = None

    def resource_name(self, project_id: str = "") -> str:
        """Return the trace as ``projects/<id>/traces/<trace>`` when possible."""
        if project_id:
            return f"projects/{project_id}/traces/{self.trace_id}"
        return self.trace_id


def parse_cloud_trace_header(value: str | None) -> TraceContext | None:
    """Parse ``TRACE_ID/SPAN_ID;o=OPTIONS``; malformed headers yield None.

    The span id arrives as an unsigned decimal and is re-encoded as the
    16-character hex form that Cloud Logging expects.
    """
    if not value:
        return None
    match = _CLOUD_TRACE_RE.match(value.strip())
    if match is None:
        return None
    span_id = None
    if match["span"] is not None:
        span = int(match["span"])
        if 0 < span < 2**64:
            span_id = f"{span:016x}"
    sampled = None
    if match["options"] is not None:
        sampled = match["options"] == "1"
    return TraceContext(trace_id=match["trace"].lower(), span_id=span_id, sampled=sampled)


def parse_traceparent(value: str | None) -> TraceContext | None:
    """Parse a W3C ``traceparent`` header; malformed headers yield None."""
    if not value:
        return None
    match = _TRACEPARENT_RE.match(value.strip().lower())
    if match is None or match["version"] == "ff":
        return None
    # All-zero ids are invalid in W3C Trace Context.
    if set(match["trace"]) == {"0"} or set(match["span"]) == {"0"}:
        return None
    return TraceContext(
        trace_id=match["trace"],
        span_id=match["span"],
        sampled=bool(int(match["flags"], 16) & 0x01),
    )


_current: ContextVar[TraceContext | None] = ContextVar("cloudlog_trace_context", default=None)


def current_trace_context() -> TraceContext | None:
    return _current.get()


def bind_trace_context(context: TraceContext | None) -> Token:
    """Bind ``context`` for the current task; pass the token to reset_trace_context."""
    return _current.set(context)


def reset_trace_context(token: Token) -> None:
    _current.reset(token)
