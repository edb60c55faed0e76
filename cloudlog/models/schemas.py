"""Pydantic models for Google Cloud Logging structured log entries.

The field names mirror the LogEntry document that the Cloud Logging agent
reads from stdout. Wire names are a fixed contract with the backend, see
https://cloud.google.com/logging/docs/structured-logging for the reference.
"""

import json
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Error Reporting groups entries tagged with this @type.
REPORTED_ERROR_EVENT_TYPE = (
    "type.googleapis.com/google.devtools.clouderrorreporting.v1beta1.ReportedErrorEvent"
)

_VENDOR_PREFIX = "logging.googleapis.com/"
LABELS_KEY = _VENDOR_PREFIX + "labels"


class LogEncodingError(ValueError):
    """Raised when a log entry cannot be represented as JSON."""


class Severity(str, Enum):
    """Cloud Logging severities, declared in ascending criticality."""

    DEFAULT = "default"
    DEBUG = "debug"
    INFO = "info"
    NOTICE = "notice"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"
    ALERT = "alert"
    EMERGENCY = "emergency"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)

    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


class HttpMethod(str, Enum):
    GET = "get"
    HEAD = "head"
    PUT = "put"
    POST = "post"

    @classmethod
    def parse(cls, verb: str | None) -> "HttpMethod | None":
        """Return the member for an HTTP verb, or None for unsupported verbs."""
        if not verb:
            return None
        try:
            return cls(verb.strip().lower())
        except ValueError:
            return None


class _WireModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


def _as_decimal_string(value):
    # bool is an int subclass but never a valid size or line number.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class HttpRequest(_WireModel):
    """The LogEntry ``httpRequest`` sub-document."""

    request_method: HttpMethod | None = None
    request_url: str | None = None
    request_size: str | None = None
    status: int | None = None
    response_size: str | None = None
    user_agent: str | None = None
    remote_ip: str | None = None
    server_ip: str | None = None
    # Seconds with up to nine fractional digits, terminated by "s".
    latency: str | None = None
    protocol: str | None = None

    @field_validator("request_size", "response_size", mode="before")
    @classmethod
    def coerce_sizes(cls, value):
        return _as_decimal_string(value)


class Operation(_WireModel):
    """Groups entries belonging to one long-running operation."""

    id: str | None = None
    producer: str | None = None
    first: bool | None = None
    last: bool | None = None


class SourceLocation(_WireModel):
    file: str | None = None
    line: str | None = None
    function: str | None = None

    @field_validator("line", mode="before")
    @classmethod
    def coerce_line(cls, value):
        return _as_decimal_string(value)


class LogEntry(_WireModel):
    """A single structured log entry, built per record and serialized once.

    Every field is optional. Unset fields are dropped from the wire form,
    and an empty ``labels`` mapping is dropped as well.
    """

    severity: Severity | None = None
    message: str | None = None
    report_type: str | None = Field(default=None, alias="@type")
    http_request: HttpRequest | None = None
    time: datetime | None = None
    insert_id: str | None = Field(default=None, alias=_VENDOR_PREFIX + "insertId")
    labels: dict[str, str] = Field(default_factory=dict, alias=LABELS_KEY)
    operation: Operation | None = Field(default=None, alias=_VENDOR_PREFIX + "operation")
    source_location: SourceLocation | None = Field(
        default=None, alias=_VENDOR_PREFIX + "sourceLocation"
    )
    span_id: str | None = Field(default=None, alias=_VENDOR_PREFIX + "spanId")
    trace: str | None = Field(default=None, alias=_VENDOR_PREFIX + "trace")
    trace_sampled: bool | None = Field(default=None, alias=_VENDOR_PREFIX + "trace_sampled")

    @field_validator("time")
    @classmethod
    def normalise_time(cls, value):
        # Naive timestamps are taken as UTC; the wire form always ends in Z.
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def to_wire(self) -> dict:
        """Return the JSON-compatible mapping keyed by wire names."""
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if not data.get(LABELS_KEY):
            data.pop(LABELS_KEY, None)
        return data

    def to_json(self) -> str:
        try:
            return json.dumps(self.to_wire(), separators=(",", ":"))
        except (TypeError, ValueError) as e:
            raise LogEncodingError(f"Cannot encode log entry: {e}") from e

    @classmethod
    def from_wire(cls, data: dict) -> "LogEntry":
        return cls.model_validate(data)

    @classmethod
    def from_json(cls, text: str) -> "LogEntry":
        return cls.model_validate_json(text)
