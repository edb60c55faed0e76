"""Render exception tracebacks in the backtrace text convention.

The rendered text is appended directly after the log message::

    Something failed:
       at app.worker.run line: 42
       at app.worker.main line: 17

A leading ``:`` closes the message, then each frame is on its own line
indented by three spaces and prefixed with ``at ``. The ``line:`` suffix
is optional.
"""

import logging
import traceback
from pathlib import Path

_FRAME_PREFIX = "\n   at "


def format_frame(module: str, function: str, line: int | None = None) -> str:
    text = f"{_FRAME_PREFIX}{module}.{function}"
    if line:
        text += f" line: {line}"
    return text


def format_backtrace(record: logging.LogRecord) -> str:
    """Return backtrace text for the record's exception, innermost frame first.

    Records logged without ``exc_info`` yield an empty string.
    """
    if not record.exc_info or record.exc_info[2] is None:
        return ""
    frames = traceback.extract_tb(record.exc_info[2])
    lines = [
        format_frame(Path(frame.filename).stem, frame.name, frame.lineno)
        for frame in reversed(frames)
    ]
    return ":" + "".join(lines)
