import json
import logging
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog

from shared.logging import MAX_LOGGED_VALUE_LENGTH, _serialize_enums, _truncate_long_values, setup_logging


@pytest.fixture(autouse=True)
def _cleanup_root_logger():
    """Close and remove all handlers from the root logger after each test."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)


@pytest.fixture(autouse=True)
def _allow_file_logging():
    """Disable the _is_test guard so these tests can create real file handlers."""
    with patch("shared.logging._is_test", return_value=False):
        yield


@pytest.fixture(autouse=True)
def _default_log_env(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)


class TestSetupLogging:
    def test_configures_stdout_handler(self):
        setup_logging()
        root = logging.getLogger()

        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter)

    def test_configures_file_handler_in_log_dir(self, tmp_path):
        log_dir = tmp_path / "bridge"
        setup_logging(log_dir=log_dir)
        root = logging.getLogger()

        assert len(root.handlers) == 2
        file_handler = root.handlers[1]
        assert isinstance(file_handler, logging.FileHandler)
        assert Path(file_handler.baseFilename).parent == log_dir

    def test_log_file_has_datetime_in_name(self, tmp_path):
        fixed_time = datetime(2025, 3, 15, 10, 30, 45, tzinfo=UTC)
        with patch("shared.logging.datetime") as mock_dt:
            mock_dt.now.return_value = fixed_time
            log_path = setup_logging(log_dir=tmp_path / "bridge")

        assert log_path is not None
        assert log_path.name == "2025-03-15_10-30-45.log"

    def test_returns_none_without_log_dir(self):
        assert setup_logging() is None

    def test_skips_file_output_under_pytest(self, tmp_path):
        with patch("shared.logging._is_test", return_value=True):
            assert setup_logging(log_dir=tmp_path / "bridge") is None
        assert not (tmp_path / "bridge").exists()

    def test_writes_to_nested_log_dir(self, tmp_path):
        log_dir = tmp_path / "nested" / "dir"
        log_path = setup_logging(log_dir=str(log_dir))

        structlog.get_logger("test.nested").info("nested log")

        assert log_dir.exists()
        assert log_path is not None
        assert "nested log" in log_path.read_text()

    def test_clears_existing_handlers_on_repeated_calls(self):
        setup_logging()
        setup_logging()

        assert len(logging.getLogger().handlers) == 1

    def test_log_level_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        setup_logging()

        assert logging.getLogger().level == logging.DEBUG

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "error")
        setup_logging(level=logging.DEBUG)

        assert logging.getLogger().level == logging.DEBUG

    def test_quiets_http_client_loggers(self):
        setup_logging(level=logging.DEBUG)

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("uvicorn.access").level == logging.WARNING

    def test_invalid_log_level_raises(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "bogus")
        with pytest.raises(ValueError, match="Invalid LOG_LEVEL"):
            setup_logging()

    def test_invalid_log_format_raises(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "xml")
        with pytest.raises(ValueError, match="Invalid LOG_FORMAT"):
            setup_logging()

    def test_json_mode_produces_valid_json(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "json")
        log_path = setup_logging(log_dir=tmp_path / "bridge")

        structlog.contextvars.bind_contextvars(game_id="abc123")
        structlog.get_logger("test.json").info("pushed data refreshed", fingerprint="deadbeef")
        structlog.contextvars.clear_contextvars()

        assert log_path is not None
        parsed = json.loads(log_path.read_text().strip().splitlines()[0])
        assert parsed["event"] == "pushed data refreshed"
        assert parsed["game_id"] == "abc123"
        assert parsed["fingerprint"] == "deadbeef"

    def test_long_values_are_truncated_in_output(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "json")
        log_path = setup_logging(log_dir=tmp_path / "bridge")

        structlog.get_logger("test.truncate").info("raw payload", game_data="x" * 10_000)

        assert log_path is not None
        parsed = json.loads(log_path.read_text().strip().splitlines()[0])
        assert parsed["game_data"].endswith(f"<{10_000 - MAX_LOGGED_VALUE_LENGTH} more chars>")


class TestSerializeEnums:
    class _Source(Enum):
        REAL = "real"

    def test_replaces_enum_with_value(self):
        result = _serialize_enums(None, "", {"source": self._Source.REAL, "msg": "hello"})
        assert result == {"source": "real", "msg": "hello"}

    def test_leaves_non_enum_values_unchanged(self):
        result = _serialize_enums(None, "", {"count": 42})
        assert result == {"count": 42}


class TestTruncateLongValues:
    def test_short_values_unchanged(self):
        result = _truncate_long_values(None, "", {"event": "x", "value": "short"})
        assert result["value"] == "short"

    def test_truncates_long_string(self):
        result = _truncate_long_values(None, "", {"value": "a" * (MAX_LOGGED_VALUE_LENGTH + 10)})
        assert result["value"] == "a" * MAX_LOGGED_VALUE_LENGTH + "...<10 more chars>"

    def test_event_name_is_never_truncated(self):
        event = "e" * (MAX_LOGGED_VALUE_LENGTH * 2)
        result = _truncate_long_values(None, "", {"event": event})
        assert result["event"] == event
