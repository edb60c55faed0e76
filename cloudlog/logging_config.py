"""Structured JSON logging for Google Cloud Logging integration.

Cloud Run captures structured JSON from stdout as Cloud Logging entries,
providing severity levels, timestamps, trace correlation and Error
Reporting grouping automatically. Locally the same records render as
plain one-line text instead.

Typical use::

    from cloudlog.config import Settings
    from cloudlog.logging_config import setup_logging

    setup_logging(Settings.load())
"""

import logging
import sys
from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum

from cloudlog.backtrace import format_backtrace
from cloudlog.config import LogFormat, Settings
from cloudlog.models.schemas import (
    REPORTED_ERROR_EVENT_TYPE,
    LogEncodingError,
    LogEntry,
    Operation,
    Severity,
    SourceLocation,
)
from cloudlog.trace_context import TraceContext, current_trace_context

TRACE = 5
logging.addLevelName(TRACE, "TRACE")


class Level(str, Enum):
    """The five record levels the formatter distinguishes."""

    ERROR = "ERROR"
    WARN = "WARN"
    INFO = "INFO"
    DEBUG = "DEBUG"
    TRACE = "TRACE"

    @classmethod
    def from_levelno(cls, levelno: int) -> "Level":
        # CRITICAL and any custom level above ERROR collapse into ERROR.
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARN
        if levelno >= logging.INFO:
            return cls.INFO
        if levelno >= logging.DEBUG:
            return cls.DEBUG
        return cls.TRACE


SEVERITY_BY_LEVEL: dict[Level, Severity] = {
    Level.ERROR: Severity.ERROR,
    Level.WARN: Severity.WARNING,
    Level.INFO: Severity.INFO,
    Level.DEBUG: Severity.DEBUG,
    Level.TRACE: Severity.DEFAULT,
}

# Text output only carries a backtrace for these levels; JSON always does.
_TEXT_BACKTRACE_LEVELS = frozenset((Level.ERROR, Level.WARN))

TEXT_FORMAT = "%-5s:%s - %s%s"

# Record attributes (passed via ``extra=``) copied onto the entry as-is.
_ENTRY_EXTRAS = ("http_request", "labels", "insert_id", "operation")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CloudLogFormatter(logging.Formatter):
    """Formats log records as text lines or Cloud Logging JSON entries.

    Args:
        log_format: Output mode. Unrecognised values render as text.
        operation: Static ``logging.googleapis.com/operation`` descriptor
            attached to every JSON entry, usually the service identity.
        project_id: Project used to expand bare trace ids into resource names.
        clock: Returns the entry timestamp. Defaults to the UTC wall clock.
        backtrace: Produces backtrace text for a record. The result is
            appended verbatim to the message.
    """

    def __init__(
        self,
        log_format: LogFormat | str | None = LogFormat.TEXT,
        *,
        operation: Operation | None = None,
        project_id: str = "",
        clock: Callable[[], datetime] | None = None,
        backtrace: Callable[[logging.LogRecord], str] | None = None,
    ) -> None:
        super().__init__()
        self.log_format = LogFormat.parse(log_format)
        self.operation = operation
        self.project_id = project_id
        self.clock = clock or _utc_now
        self.backtrace = backtrace or format_backtrace

    def format(self, record: logging.LogRecord) -> str:
        level = Level.from_levelno(record.levelno)
        message = record.getMessage()
        if self.log_format is LogFormat.JSON:
            return self.format_json(record, level, message)
        return self.format_text(record, level, message)

    def format_text(self, record: logging.LogRecord, level: Level, message: str) -> str:
        trailing = self.backtrace(record) if level in _TEXT_BACKTRACE_LEVELS else ""
        return TEXT_FORMAT % (level.value, record.name, message, trailing)

    def format_json(self, record: logging.LogRecord, level: Level, message: str) -> str:
        try:
            entry = self.build_entry(record, level, message)
        except ValueError as e:
            raise LogEncodingError(f"Cannot build log entry: {e}") from e
        return entry.to_json()

    def build_entry(self, record: logging.LogRecord, level: Level, message: str) -> LogEntry:
        fields = {
            "severity": SEVERITY_BY_LEVEL[level],
            "message": message + self.backtrace(record),
            "operation": self.operation,
            "source_location": SourceLocation(
                file=record.pathname,
                line=record.lineno,
                function=record.funcName,
            ),
            "time": self.clock(),
        }
        if level is Level.ERROR:
            fields["report_type"] = REPORTED_ERROR_EVENT_TYPE
        for name in _ENTRY_EXTRAS:
            value = getattr(record, name, None)
            if value is not None:
                fields[name] = value
        fields.update(self._trace_fields(record))
        return LogEntry(**fields)

    def _trace_fields(self, record: logging.LogRecord) -> dict:
        """Correlation fields from the record, else from the bound request."""
        trace = getattr(record, "trace", None)
        if trace is not None:
            fields = {
                "trace": self._expand_trace(trace),
                "span_id": getattr(record, "span_id", None),
                "trace_sampled": getattr(record, "trace_sampled", None),
            }
            return {k: v for k, v in fields.items() if v is not None}

        context = current_trace_context()
        if context is None:
            return {}
        fields = {"trace": context.resource_name(self.project_id)}
        if context.span_id is not None:
            fields["span_id"] = context.span_id
        if context.sampled is not None:
            fields["trace_sampled"] = context.sampled
        return fields

    def _expand_trace(self, trace: str) -> str:
        if "/" in trace:
            return trace
        return TraceContext(trace_id=trace).resource_name(self.project_id)


class CloudLogHandler(logging.StreamHandler):
    """Writes one rendered line per record to stdout.

    Entries that fail to encode are dropped: ``dropped`` is incremented and
    the stdlib ``handleError`` hook reports the failure on stderr. The
    calling code never sees the exception.
    """

    def __init__(self, stream=None, formatter: logging.Formatter | None = None) -> None:
        super().__init__(stream if stream is not None else sys.stdout)
        self.dropped = 0
        if formatter is not None:
            self.setFormatter(formatter)

    def enabled(self, record: logging.LogRecord) -> bool:
        """Level filtering belongs to the logger; every record is enabled here."""
        return True

    def emit(self, record: logging.LogRecord) -> None:
        if self.enabled(record):
            super().emit(record)

    def handleError(self, record: logging.LogRecord) -> None:
        if isinstance(sys.exc_info()[1], LogEncodingError):
            self.dropped += 1
        super().handleError(record)


def setup_logging(
    settings: Settings | None = None,
    *,
    logger: logging.Logger | None = None,
    stream=None,
    clock: Callable[[], datetime] | None = None,
    backtrace: Callable[[logging.LogRecord], str] | None = None,
) -> CloudLogHandler:
    """Install a CloudLogHandler on ``logger`` (the root logger by default).

    Existing handlers on that logger are replaced. The handler is returned
    so callers can inspect or remove it.
    """
    settings = settings or Settings.load()
    operation = None
    if settings.service_name or settings.service_producer:
        operation = Operation(
            id=settings.service_name or None,
            producer=settings.service_producer or None,
        )
    formatter = CloudLogFormatter(
        settings.log_format,
        operation=operation,
        project_id=settings.gcp_project_id,
        clock=clock,
        backtrace=backtrace,
    )
    handler = CloudLogHandler(stream, formatter)

    target = logger if logger is not None else logging.getLogger()
    target.handlers.clear()
    target.addHandler(handler)
    target.setLevel(settings.log_level)
    logging.getLogger(__name__).debug(
        "Logging configured (format=%s, level=%s)",
        settings.log_format.value,
        settings.log_level,
    )
    return handler
