import json
import logging

import pytest

from cloudlog.__main__ import main


@pytest.fixture(autouse=True)
def restore_root_logger(monkeypatch):
    for name in ("LOG_FORMAT", "LOG_LEVEL", "SERVICE_NAME", "K_SERVICE", "SERVICE_PRODUCER"):
        monkeypatch.delenv(name, raising=False)
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


class TestExample:
    def test_text_output(self, capsys):
        main(["--format", "text"])
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "INFO :cloudlog.example - Start logging"
        assert lines[1] == "WARN :cloudlog.example - Oh no, things might go wrong soon."
        assert lines[2] == "ERROR:cloudlog.example - Yeah, this is not good.:"
        assert lines[3].startswith("   at __main__._fail line: ")
        # TRACE is below the default INFO level.
        assert not any(line.startswith("TRACE") for line in lines)

    def test_json_output_with_trace_level(self, capsys, monkeypatch):
        monkeypatch.setenv("SERVICE_NAME", "My Service")
        main(["--format", "json", "--level", "trace"])
        entries = [
            e
            for e in map(json.loads, capsys.readouterr().out.splitlines())
            if e["logging.googleapis.com/sourceLocation"]["file"].endswith("__main__.py")
        ]
        assert [e["severity"] for e in entries] == ["info", "warning", "error", "default"]
        assert entries[0]["message"] == "Start logging"
        assert "@type" not in entries[0]
        assert entries[2]["@type"].endswith("ReportedErrorEvent")
        assert entries[2]["message"].startswith("Yeah, this is not good.:\n   at __main__._fail")
        assert entries[3]["logging.googleapis.com/operation"] == {"id": "My Service"}

    def test_format_from_environment(self, capsys, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "json")
        main([])
        first = capsys.readouterr().out.splitlines()[0]
        assert json.loads(first)["severity"] == "info"
