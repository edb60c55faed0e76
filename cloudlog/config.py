"""Logging configuration loaded from environment variables.

Uses a frozen dataclass for immutable settings that are read once at
startup. Unknown values fall back to safe defaults instead of failing,
so a misconfigured deployment still produces readable logs.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum


class LogFormat(str, Enum):
    TEXT = "text"
    JSON = "json"

    @classmethod
    def parse(cls, value: str | None) -> "LogFormat":
        """Resolve a configured format name; anything but "json" means text."""
        if value is not None and value.strip().lower() == cls.JSON.value:
            return cls.JSON
        return cls.TEXT


def _first_env(*names: str, default: str = "") -> str:
    """Return the first non-blank environment variable among ``names``."""
    for name in names:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return default


@dataclass(frozen=True)
class Settings:
    """Immutable logging settings populated from environment variables."""

    log_format: LogFormat = LogFormat.TEXT
    log_level: str = "INFO"

    # logging.googleapis.com/operation id and producer
    service_name: str = ""
    service_producer: str = ""

    # Expands bare trace ids into projects/<id>/traces/<trace> resource names.
    gcp_project_id: str = ""

    def __post_init__(self) -> None:
        """Normalise settings after initialisation."""
        if not isinstance(self.log_format, LogFormat):
            object.__setattr__(self, "log_format", LogFormat.parse(self.log_format))
        level = str(self.log_level).strip().upper()
        # TRACE is registered by cloudlog.logging_config, which may load later.
        if level != "TRACE" and not isinstance(logging.getLevelName(level), int):
            level = "INFO"
        object.__setattr__(self, "log_level", level)

    @classmethod
    def load(cls) -> "Settings":
        """Create a Settings instance from the current environment variables."""
        return cls(
            log_format=LogFormat.parse(os.environ.get("LOG_FORMAT")),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            # Cloud Run exposes the service name as K_SERVICE.
            service_name=_first_env("SERVICE_NAME", "K_SERVICE"),
            service_producer=_first_env("SERVICE_PRODUCER"),
            gcp_project_id=_first_env("GOOGLE_CLOUD_PROJECT", "GCP_PROJECT_ID"),
        )
