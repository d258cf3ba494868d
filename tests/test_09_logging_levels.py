"""Tests for the logging level system and formatters."""
from __future__ import annotations

import json
import logging

import pytest


def _record(msg="provider_call", **attrs):
    record = logging.LogRecord("decible.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


class TestLogLevelEnum:
    """Test LogLevel enum values."""

    def test_level_enum_values(self):
        from decible.core.logging import LogLevel

        assert LogLevel.MINIMAL == 1
        assert LogLevel.NORMAL == 2
        assert LogLevel.VERBOSE == 3
        assert LogLevel.DEBUG == 4

    def test_level_map(self):
        from decible.core.logging import LEVEL_MAP, LogLevel

        assert LEVEL_MAP[LogLevel.MINIMAL] == logging.WARNING
        assert LEVEL_MAP[LogLevel.NORMAL] == logging.INFO
        assert LEVEL_MAP[LogLevel.DEBUG] < logging.DEBUG


class TestLevelCoercion:
    """Test level coercion from various input types."""

    @pytest.mark.parametrize("value,expected", [
        (1, 1),
        (4, 4),
        ("verbose", 3),
        ("TRACE", 4),
        ("2", 2),
        ("INFO", 2),
        ("WARNING", 1),
        (logging.INFO, 2),
        (logging.ERROR, 1),
        (logging.DEBUG, 4),
        ("garbage", 2),
        (None, 2),
        (True, 2),
    ])
    def test_coerce(self, value, expected):
        from decible.core.logging import coerce_level

        assert int(coerce_level(value)) == expected


class TestJsonlFormatter:
    def test_fields(self):
        from decible.core.logging import JsonlFormatter

        line = JsonlFormatter().format(_record(
            tag="SUCCESS",
            request_id="abc123",
            numeric_level=2,
            seconds=0.25,
            extra_data={"voice": "brian", "bytes": 1024},
        ))
        payload = json.loads(line)

        assert payload["message"] == "provider_call"
        assert payload["logger"] == "decible.test"
        assert payload["tag"] == "SUCCESS"
        assert payload["request_id"] == "abc123"
        assert payload["level"] == 2
        assert payload["seconds"] == 0.25
        assert payload["extra"] == {"voice": "brian", "bytes": 1024}
        assert "ts" in payload

    def test_plain_record(self):
        from decible.core.logging import JsonlFormatter

        payload = json.loads(JsonlFormatter().format(_record()))
        assert payload["tag"] == "INFO"
        assert payload["request_id"] == "-"
        assert "extra" not in payload


class TestConsoleFormatter:
    def test_line_without_colors(self):
        from decible.core.logging import ConsoleFormatter, formatters

        previous = formatters.USE_COLORS
        formatters.set_colors(False)
        try:
            line = ConsoleFormatter().format(_record(
                tag="INFO",
                request_id="abc123",
                seconds=0.5,
                extra_data={"voice": "brian", "status": 200},
            ))
        finally:
            formatters.set_colors(previous)

        assert "[ INFO  ]" in line
        assert "(abc123)" in line
        assert "provider_call" in line
        assert "voice=brian" in line
        assert "status=200" in line
        assert line.endswith("0.500s")
        assert "\033[" not in line

    def test_colors_applied(self):
        from decible.core.logging import Colors, ConsoleFormatter, formatters

        previous = formatters.USE_COLORS
        formatters.set_colors(True)
        try:
            line = ConsoleFormatter().format(_record(tag="FAIL", extra_data={"status": 502}))
        finally:
            formatters.set_colors(previous)

        assert Colors.BRIGHT_RED in line
        assert f"{Colors.RED}status=502{Colors.RESET}" in line

    def test_no_color_env(self, monkeypatch):
        from decible.core.logging import supports_color

        monkeypatch.setenv("NO_COLOR", "1")
        assert supports_color() is False


class TestRequestId:
    def test_default_and_set(self):
        import contextvars

        from decible.core.logging import get_request_id, set_request_id

        def inner():
            assert get_request_id() == "-"
            set_request_id("rid-1")
            return get_request_id()

        assert contextvars.Context().run(inner) == "rid-1"


class TestReadLoggingConfig:
    def test_env_overrides(self, monkeypatch, tmp_path):
        from decible.core.logging.context import read_logging_config

        settings = tmp_path / "settings.yaml"
        settings.write_text("logging:\n  level: 3\n  jsonl_file: app.jsonl\n", encoding="utf-8")
        monkeypatch.setenv("DECIBLE_SETTINGS", str(settings))
        monkeypatch.setenv("DECIBLE_LOG_LEVEL", "4")
        monkeypatch.setenv("DECIBLE_LOG_DIR", str(tmp_path / "logs"))
        monkeypatch.setenv("DECIBLE_LOG_ROTATE_BYTES", "not-a-number")

        cfg = read_logging_config()

        assert cfg["level"] == "4"
        assert cfg["jsonl_file"] == "app.jsonl"
        assert cfg["log_dir"] == str(tmp_path / "logs")
        assert "rotate_max_bytes" not in cfg

    def test_missing_file(self, monkeypatch, tmp_path):
        from decible.core.logging.context import read_logging_config

        monkeypatch.setenv("DECIBLE_SETTINGS", str(tmp_path / "none.yaml"))
        for name in ("DECIBLE_LOG_LEVEL", "DECIBLE_LOG_DIR", "DECIBLE_JSONL_FILE",
                     "DECIBLE_LOG_ROTATE_BYTES", "DECIBLE_LOG_ROTATE_BACKUP"):
            monkeypatch.delenv(name, raising=False)
        assert read_logging_config() == {}


class TestJsonlPersistence:
    def test_configure_writes_jsonl(self, monkeypatch, tmp_path):
        from decible.core import logging as dlog

        monkeypatch.setenv("DECIBLE_SETTINGS", str(tmp_path / "none.yaml"))
        monkeypatch.setenv("DECIBLE_LOG_DIR", str(tmp_path))
        monkeypatch.setenv("DECIBLE_JSONL_FILE", "test.jsonl")
        root = logging.getLogger()
        saved_handlers = list(root.handlers)
        try:
            dlog.configure_logging(level=2, force=True)
            log = dlog.get_logger("decible.test")
            dlog.set_request_id("persist-1")
            dlog.info(log, "hello", voice="brian")
            dlog.verbose(log, "hidden_at_normal")
            for handler in root.handlers:
                handler.flush()

            lines = (tmp_path / "test.jsonl").read_text(encoding="utf-8").splitlines()
            events = [json.loads(line) for line in lines]
            messages = [e["message"] for e in events]
            assert "hello" in messages
            assert "hidden_at_normal" not in messages
            hello = events[messages.index("hello")]
            assert hello["request_id"] == "persist-1"
            assert hello["extra"] == {"voice": "brian"}
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers = saved_handlers
            dlog.set_request_id("-")
