import io
import logging

import pytest

from cloudlog.config import LogFormat, Settings
from cloudlog.logging_config import CloudLogFormatter, setup_logging
from tests.helpers import BACKTRACE, FIXED_TIME


@pytest.fixture
def json_formatter():
    return CloudLogFormatter(
        LogFormat.JSON,
        clock=lambda: FIXED_TIME,
        backtrace=lambda record: BACKTRACE,
    )


@pytest.fixture
def text_formatter():
    return CloudLogFormatter(LogFormat.TEXT, backtrace=lambda record: BACKTRACE)


@pytest.fixture
def root_json_stream():
    """Route the root logger to an in-memory JSON handler for one test."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    stream = io.StringIO()
    setup_logging(
        Settings(log_format=LogFormat.JSON, gcp_project_id="demo-project"),
        stream=stream,
        clock=lambda: FIXED_TIME,
    )
    yield stream
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)
