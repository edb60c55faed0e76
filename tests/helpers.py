import io
import json
import logging
from datetime import datetime, timezone

FIXED_TIME = datetime(2026, 10, 17, 12, 30, 45, tzinfo=timezone.utc)

BACKTRACE = (
    ":"
    "\n   at services::module_name::he77c0bac773c93b4 line: 42"
    "\n   at services::module_name::h7ad5e699ac5d6658"
)


def make_record(
    level: int = logging.INFO,
    msg: str = "Start logging",
    *args,
    name: str = "svc.module",
    exc_info=None,
    **extra,
) -> logging.LogRecord:
    record = logging.LogRecord(
        name=name,
        level=level,
        pathname="/srv/svc/module.py",
        lineno=42,
        msg=msg,
        args=args,
        exc_info=exc_info,
        func="handle",
    )
    record.__dict__.update(extra)
    return record


def read_entries(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]
