import json
import logging
from datetime import UTC, datetime
from enum import IntEnum, StrEnum
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog

from shared.logging import _serialize_enums, setup_logging


class Slot(IntEnum):
    FIRST = 1
    SECOND = 2


class Outcome(StrEnum):
    BUSY = "busy"


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
    """Disable the _is_test guard so logging tests can create real file handlers."""
    with patch("shared.logging._is_test", return_value=False):
        yield


@pytest.fixture
def log_dir(tmp_path) -> Path:
    return tmp_path / "shuffler"


class TestSetupLogging:
    def test_stdout_only_without_log_dir(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        assert setup_logging() is None

        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], logging.StreamHandler)
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_file_handler_in_log_dir(self, log_dir):
        log_path = setup_logging(log_dir=log_dir)

        file_handler = logging.getLogger().handlers[1]
        assert isinstance(file_handler, logging.FileHandler)
        assert log_path is not None
        assert Path(file_handler.baseFilename) == log_path
        assert log_path.parent == log_dir
        assert log_path.suffix == ".log"

    def test_log_file_named_after_start_time(self, log_dir):
        fixed_time = datetime(2025, 3, 15, 10, 30, 45, tzinfo=UTC)
        with patch("shared.logging.datetime") as mock_dt:
            mock_dt.now.return_value = fixed_time
            log_path = setup_logging(log_dir=log_dir)

        assert log_path is not None
        assert log_path.name == "2025-03-15_10-30-45.log"

    def test_creates_nested_directory_from_string(self, tmp_path):
        log_dir = tmp_path / "nested" / "dir"
        log_path = setup_logging(log_dir=str(log_dir))

        structlog.get_logger("test.nested").info("nested log")

        assert log_dir.exists()
        assert log_path is not None
        assert "nested log" in log_path.read_text()

    def test_repeated_calls_replace_handlers(self):
        setup_logging()
        setup_logging()

        assert len(logging.getLogger().handlers) == 1

    def test_quiets_http_client_loggers(self):
        setup_logging(level=logging.DEBUG)

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "error")
        setup_logging(level=logging.DEBUG)

        assert logging.getLogger().level == logging.DEBUG

    def test_log_level_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        setup_logging()

        assert logging.getLogger().level == logging.WARNING

    def test_invalid_log_level_raises(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "loud")
        with pytest.raises(ValueError, match="Invalid LOG_LEVEL"):
            setup_logging()

    def test_json_lines_carry_bound_context(self, log_dir, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "json")
        log_path = setup_logging(log_dir=log_dir)

        structlog.contextvars.bind_contextvars(conversation="lobby-1")
        structlog.get_logger("test.json").info("reshuffle planned", relocations=3, slot=Slot.SECOND)

        assert log_path is not None
        parsed = json.loads(log_path.read_text().strip().splitlines()[0])
        assert parsed["event"] == "reshuffle planned"
        assert parsed["conversation"] == "lobby-1"
        assert parsed["relocations"] == 3
        assert parsed["slot"] == 2

    def test_console_mode_writes_event(self, log_dir, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "console")
        log_path = setup_logging(log_dir=log_dir)

        structlog.get_logger("test.console").warning("relocation failed, continuing")

        assert log_path is not None
        assert "relocation failed, continuing" in log_path.read_text()

    def test_invalid_log_format_raises(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "xml")
        with pytest.raises(ValueError, match="Invalid LOG_FORMAT"):
            setup_logging()

    def test_no_file_under_test_guard(self, log_dir):
        with patch("shared.logging._is_test", return_value=True):
            assert setup_logging(log_dir=log_dir) is None

        assert not log_dir.exists()


class TestSerializeEnums:
    def test_replaces_enum_with_value(self):
        result = _serialize_enums(None, "", {"outcome": Outcome.BUSY, "msg": "hello"})

        assert result == {"outcome": "busy", "msg": "hello"}

    def test_replaces_enum_inside_dict_value(self):
        result = _serialize_enums(None, "", {"seat": {"team": 3, "slot": Slot.FIRST}})

        assert result["seat"] == {"team": 3, "slot": 1}

    def test_replaces_enum_inside_sequence(self):
        result = _serialize_enums(None, "", {"slots": (Slot.FIRST, Slot.SECOND)})

        assert result["slots"] == [1, 2]

    def test_leaves_non_enum_values_unchanged(self):
        assert _serialize_enums(None, "", {"count": 42, "name": "test"}) == {"count": 42, "name": "test"}
