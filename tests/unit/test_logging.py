"""Tests for logging setup and the inventory report."""

from loguru import logger

import settings.logging as log_settings
from kvshadow.models import DURABLE, FailureEvent, TableInventory
from kvshadow.services import log_event
from shadow_report import print_report


class TestSetupLogging:
    def test_file_sink_creates_dir(self, tmp_path, monkeypatch):
        log_dir = tmp_path / "logs"
        monkeypatch.setattr(log_settings, "LOG_DIR", log_dir)
        try:
            assert log_settings.setup_logging(level="WARNING", to_file=True) is logger
            assert log_dir.is_dir()
        finally:
            logger.remove()

    def test_console_only(self, tmp_path, monkeypatch):
        log_dir = tmp_path / "logs"
        monkeypatch.setattr(log_settings, "LOG_DIR", log_dir)
        try:
            log_settings.setup_logging(to_file=False)
            assert not log_dir.exists()
        finally:
            logger.remove()

    def test_level_from_environment(self, capsys, monkeypatch):
        monkeypatch.setattr(log_settings, "LOG_LEVEL", "error")
        try:
            log_settings.setup_logging(to_file=False)
            logger.warning("quiet")
            logger.error("loud")
        finally:
            logger.remove()
        err = capsys.readouterr().err
        assert "loud" in err
        assert "quiet" not in err

    def test_explicit_level_wins(self, capsys, monkeypatch):
        monkeypatch.setattr(log_settings, "LOG_LEVEL", "ERROR")
        try:
            log_settings.setup_logging(level="DEBUG", to_file=False)
            logger.debug("traced")
        finally:
            logger.remove()
        assert "traced" in capsys.readouterr().err

    def test_failures_file_gets_engine_errors_only(self, tmp_path, monkeypatch):
        monkeypatch.setattr(log_settings, "LOG_DIR", tmp_path)
        try:
            log_settings.setup_logging(level="CRITICAL", to_file=True)
            log_event(FailureEvent(kind=DURABLE, message="disk full", key="set:tags"))
            logger.error("outside the engine")
        finally:
            logger.remove()
        failures = (tmp_path / log_settings.FAILURES_LOG).read_text()
        assert "durable failure on set:tags: disk full" in failures
        assert "outside the engine" not in failures


class TestReport:
    def test_prints_tables(self, capsys):
        print_report(
            [
                TableInventory(table="set_tags", kind="set", key="set:tags", rows=2, cached=False),
                TableInventory(table="str_users", kind="string", key="str:users", rows=5),
            ]
        )
        out = capsys.readouterr().out
        assert "set_tags" in out
        assert "cold" in out
        assert "2 tables, 1 cold" in out

    def test_empty(self, capsys):
        print_report([])
        assert "No shadow tables found" in capsys.readouterr().out
