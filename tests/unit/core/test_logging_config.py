"""
Tests for logging infrastructure.
"""

import logging
import json

import pytest

from blobsas.core.logging_config import (
    setup_logging,
    log_with_context,
    JSONFormatter,
    SensitiveDataFilter,
    _parse_size
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Restore root logger handlers after each test."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


class TestLoggingSetup:
    """Test suite for logging setup."""

    def test_setup_logging_defaults(self):
        setup_logging()

        root_logger = logging.getLogger()
        assert root_logger.level == logging.INFO
        assert any(isinstance(h.formatter, JSONFormatter) for h in root_logger.handlers)

    def test_setup_logging_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "blobsas.log"
        setup_logging(log_file=str(log_file), format_type="text")

        logging.getLogger("blobsas.test").info("Test message")

        assert log_file.exists()
        assert "Test message" in log_file.read_text()

    def test_setup_logging_with_module_levels(self):
        setup_logging(module_levels={"blobsas.sas.issuer": "DEBUG"})

        assert logging.getLogger("blobsas.sas.issuer").level == logging.DEBUG


class TestJSONFormatter:
    """Test suite for JSON formatter."""

    def test_format_with_context(self):
        logger = logging.getLogger("blobsas.test.json")
        record = logger.makeRecord(
            logger.name, logging.INFO, __file__, 1, "Issued SAS", None, None,
            extra={"context": {"signed_resource": "c"}},
        )

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "Issued SAS"
        assert data["level"] == "INFO"
        assert data["context"] == {"signed_resource": "c"}


class TestSensitiveDataFilter:
    """Test suite for sensitive data redaction."""

    def _filtered(self, msg, args=None):
        record = logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)
        SensitiveDataFilter().filter(record)
        return record.getMessage()

    def test_redacts_signature(self):
        message = self._filtered("https://a.blob.core.windows.net/c?sv=2021-06-08&sig=abc%2Bdef&se=x")
        assert "abc%2Bdef" not in message
        assert "sig=***REDACTED***&se=x" in message

    def test_redacts_account_key(self):
        message = self._filtered("AccountName=a;AccountKey=c2VjcmV0;EndpointSuffix=x")
        assert "c2VjcmV0" not in message

    def test_redacts_formatted_args(self):
        message = self._filtered("uri=%s", ("https://x/c?sig=secret",))
        assert "secret" not in message


def test_log_with_context_drops_none(caplog):
    logger = logging.getLogger("blobsas.test.context")
    with caplog.at_level(logging.INFO, logger=logger.name):
        log_with_context(logger, logging.INFO, "hello", mode="ad-hoc", policy_id=None)

    assert caplog.records[0].context == {"mode": "ad-hoc"}


@pytest.mark.parametrize(
    "size,expected",
    [("10MB", 10 * 1024 ** 2), ("1GB", 1024 ** 3), ("512KB", 512 * 1024), ("100", 100)],
)
def test_parse_size(size, expected):
    assert _parse_size(size) == expected
