"""Tests for logging service configuration."""

import logging
import tempfile
from pathlib import Path

import pytest

from expenditures.constants import ROOT_DOMAIN_ID
from expenditures.services.errors import PermissionDeniedError
from expenditures.services.expenditure_service import ExpenditureService
from expenditures.services.logging import get_log_level, setup_server_logging


class TestServerLogging:
    """Test server logging configuration."""

    def setup_method(self):
        """Save original handlers before each test."""
        self.root_logger = logging.getLogger()
        self.original_handlers = self.root_logger.handlers.copy()
        self.original_level = self.root_logger.level

    def teardown_method(self):
        """Restore original handlers after each test."""
        self.root_logger = logging.getLogger()
        for handler in self.root_logger.handlers[:]:
            handler.close()
            self.root_logger.removeHandler(handler)
        for handler in self.original_handlers:
            self.root_logger.addHandler(handler)
        self.root_logger.setLevel(self.original_level)

    def test_setup_server_logging_creates_log_directory(self) -> None:
        """Verify setup_server_logging creates logs directory if missing."""
        with tempfile.TemporaryDirectory() as temp_dir:
            log_file = Path(temp_dir) / "test_logs" / "ledger.log"

            assert not log_file.parent.exists()

            setup_server_logging(str(log_file))

            assert log_file.parent.exists()

    def test_setup_server_logging_creates_handlers(self) -> None:
        """Verify setup_server_logging creates both stdout and file handlers."""
        with tempfile.TemporaryDirectory() as temp_dir:
            setup_server_logging(str(Path(temp_dir) / "ledger.log"))

            assert len(self.root_logger.handlers) == 2

    def test_setup_server_logging_explicit_level(self) -> None:
        """Verify an explicit level name overrides the default."""
        with tempfile.TemporaryDirectory() as temp_dir:
            setup_server_logging(str(Path(temp_dir) / "ledger.log"), level_name="warning")

            assert self.root_logger.level == logging.WARNING

    def test_messages_reach_log_file(self) -> None:
        """Verify log records are written to the file."""
        with tempfile.TemporaryDirectory() as temp_dir:
            log_file = Path(temp_dir) / "ledger.log"
            setup_server_logging(str(log_file), level_name="INFO")

            logging.getLogger("expenditures.test").info("pot 1 credited")
            for handler in self.root_logger.handlers:
                handler.flush()

            assert "pot 1 credited" in log_file.read_text()


class TestLogLevel:
    """Tests for get_log_level."""

    def test_env_var(self, monkeypatch):
        """Test that LOG_LEVEL is honoured."""
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        assert get_log_level() == logging.DEBUG

    def test_unknown_falls_back_to_info(self, monkeypatch):
        """Test that unknown level names fall back to INFO."""
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert get_log_level("chatty") == logging.INFO


class TestOperationLogging:
    """Tests for log lines emitted by failing operations."""

    def test_failure_logged_once_with_code(self, ctx, caplog):
        """Test that a rejected operation logs one warning carrying the error code."""
        with caplog.at_level(logging.WARNING, logger="expenditures"):
            with pytest.raises(PermissionDeniedError):
                ExpenditureService(ctx).create("user", ROOT_DOMAIN_ID, 0, ROOT_DOMAIN_ID)

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "create_expenditure failed [permission_denied]" in warnings[0].getMessage()
