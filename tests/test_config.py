import dataclasses

import pytest

from cloudlog.config import LogFormat, Settings

_ENV_VARS = (
    "LOG_FORMAT",
    "LOG_LEVEL",
    "SERVICE_NAME",
    "K_SERVICE",
    "SERVICE_PRODUCER",
    "GOOGLE_CLOUD_PROJECT",
    "GCP_PROJECT_ID",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLogFormat:
    def test_json(self):
        assert LogFormat.parse("json") is LogFormat.JSON

    def test_json_is_case_and_whitespace_insensitive(self):
        assert LogFormat.parse(" JSON ") is LogFormat.JSON

    @pytest.mark.parametrize("value", ["text", "xml", "", None, "jsonl"])
    def test_everything_else_is_text(self, value):
        assert LogFormat.parse(value) is LogFormat.TEXT


class TestSettings:
    def test_default_values(self):
        s = Settings()
        assert s.log_format is LogFormat.TEXT
        assert s.log_level == "INFO"
        assert s.service_name == ""
        assert s.service_producer == ""
        assert s.gcp_project_id == ""

    def test_load_defaults_without_env(self):
        assert Settings.load() == Settings()

    def test_load_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "json")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("SERVICE_NAME", "My Service")
        monkeypatch.setenv("SERVICE_PRODUCER", "MyService.Backend")
        monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "demo-project")
        s = Settings.load()
        assert s.log_format is LogFormat.JSON
        assert s.log_level == "DEBUG"
        assert s.service_name == "My Service"
        assert s.service_producer == "MyService.Backend"
        assert s.gcp_project_id == "demo-project"

    def test_unknown_format_falls_back_to_text(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "xml")
        assert Settings.load().log_format is LogFormat.TEXT

    def test_cloud_run_fallbacks(self, monkeypatch):
        monkeypatch.setenv("K_SERVICE", "questforge")
        monkeypatch.setenv("GCP_PROJECT_ID", "legacy-project")
        s = Settings.load()
        assert s.service_name == "questforge"
        assert s.gcp_project_id == "legacy-project"

    def test_explicit_service_name_wins(self, monkeypatch):
        monkeypatch.setenv("K_SERVICE", "questforge")
        monkeypatch.setenv("SERVICE_NAME", "explicit")
        assert Settings.load().service_name == "explicit"

    def test_string_format_normalised(self):
        assert Settings(log_format="json").log_format is LogFormat.JSON
        assert Settings(log_format="bogus").log_format is LogFormat.TEXT

    def test_invalid_level_falls_back_to_info(self):
        assert Settings(log_level="LOUD").log_level == "INFO"

    def test_trace_level_accepted(self):
        assert Settings(log_level="trace").log_level == "TRACE"

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            Settings().log_level = "DEBUG"
