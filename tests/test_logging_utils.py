"""Tests for logging setup."""

from __future__ import annotations

import json
import logging

import pytest

from gym_session_storage.logging_utils import (
    StructuredJsonFormatter,
    SyncLoggerAdapter,
    configure_logging,
)


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="gym_session_storage.sync.coordinator",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Push failed: %s",
        args=("offline",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def scratch_logger():
    logger = logging.getLogger("gym_session_storage.tests.scratch")
    yield logger
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


class TestStructuredJsonFormatter:
    """Tests for StructuredJsonFormatter."""

    def test_formats_single_line_json(self) -> None:
        """Test the JSON line layout."""
        line = StructuredJsonFormatter().format(make_record(account_id="user-1"))

        data = json.loads(line)
        assert "\n" not in line
        assert data["level"] == "WARNING"
        assert data["logger"] == "gym_session_storage.sync.coordinator"
        assert data["message"] == "Push failed: offline"
        assert data["account_id"] == "user-1"
        assert data["operation"] is None

    def test_extra_fields_are_included(self) -> None:
        """Test that extra fields are copied into the line."""
        data = json.loads(StructuredJsonFormatter().format(make_record(trigger="interval")))

        assert data["trigger"] == "interval"
        assert "msg" not in data
        assert "args" not in data

    def test_unserializable_extra_becomes_string(self) -> None:
        """Test that non-JSON extras are stringified."""
        data = json.loads(StructuredJsonFormatter().format(make_record(details={1, 2})))

        assert isinstance(data["details"], str)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_replaces_handlers(self, scratch_logger) -> None:
        """Test that repeated setup keeps a single handler."""
        configure_logging(logging.DEBUG, json_logs=True, logger_name=scratch_logger.name)
        configure_logging(logging.DEBUG, json_logs=True, logger_name=scratch_logger.name)

        assert len(scratch_logger.handlers) == 1
        assert isinstance(scratch_logger.handlers[0].formatter, StructuredJsonFormatter)
        assert scratch_logger.level == logging.DEBUG

    def test_plain_text(self, scratch_logger) -> None:
        """Test the plain text formatter."""
        configure_logging(logging.INFO, logger_name=scratch_logger.name)

        formatter = scratch_logger.handlers[0].formatter
        assert not isinstance(formatter, StructuredJsonFormatter)

    def test_quiets_azure_sdk(self, scratch_logger) -> None:
        """Test that Azure SDK loggers are raised to WARNING."""
        configure_logging(logging.DEBUG, logger_name=scratch_logger.name)

        assert logging.getLogger("azure.core.pipeline.policies").level == logging.WARNING


class TestSyncLoggerAdapter:
    """Tests for SyncLoggerAdapter."""

    def test_adds_account(self, caplog) -> None:
        """Test that the adapter stamps the account id."""
        logger = logging.getLogger("gym_session_storage.tests.adapter")
        adapter = SyncLoggerAdapter.for_account(logger, "user-1")

        with caplog.at_level(logging.INFO, logger=logger.name):
            adapter.info("pulled", extra={"operation": "pull"})

        record = caplog.records[-1]
        assert adapter.account_id == "user-1"
        assert record.account_id == "user-1"
        assert record.operation == "pull"

    def test_call_extra_wins(self, caplog) -> None:
        """Test that per-call extra overrides the adapter's own."""
        logger = logging.getLogger("gym_session_storage.tests.adapter")
        adapter = SyncLoggerAdapter.for_account(logger, "user-1")

        with caplog.at_level(logging.INFO, logger=logger.name):
            adapter.info("switched", extra={"account_id": "user-2"})

        assert caplog.records[-1].account_id == "user-2"
