"""Tests for structured logging."""

import json
import logging

import pytest

from fieldcipher.errors import InvalidEnvelopeError
from fieldcipher.logging import (
    HumanFormatter,
    StructuredFormatter,
    get_logger,
    log_operation,
    mask_sensitive,
    operation_id_var,
    setup_logging,
)


def _record(msg="hello", level=logging.INFO, **fields):
    record = logging.LogRecord("fieldcipher.test", level, __file__, 10, msg, (), None)
    if fields:
        record.extra_fields = fields
    return record


class TestMaskSensitive:
    """Tests for mask_sensitive()."""

    def test_masks_secrets(self):
        masked = mask_sensitive({"key": "k", "plaintext": "p", "passes": 4})
        assert masked == {"key": "[REDACTED]", "plaintext": "[REDACTED]", "passes": 4}

    def test_partial_names(self):
        masked = mask_sensitive({"secret_key": "x", "default_value": "y"})
        assert masked == {"secret_key": "[REDACTED]", "default_value": "[REDACTED]"}

    def test_nested(self):
        masked = mask_sensitive({"request": {"password": "p", "passes": 2}})
        assert masked == {"request": {"password": "[REDACTED]", "passes": 2}}


class TestFormatters:
    """Tests for the JSON and human formatters."""

    def test_json_output(self):
        line = StructuredFormatter().format(_record(passes=3, key="secret"))
        entry = json.loads(line)

        assert entry["message"] == "hello"
        assert entry["level"] == "INFO"
        assert entry["logger"] == "fieldcipher.test"
        assert entry["passes"] == 3
        assert entry["key"] == "[REDACTED]"
        assert "source" not in entry

    def test_json_warning_has_source(self):
        entry = json.loads(StructuredFormatter().format(_record(level=logging.WARNING)))
        assert entry["source"]["line"] == 10

    def test_json_operation_id(self):
        token = operation_id_var.set("abc123")
        try:
            entry = json.loads(StructuredFormatter().format(_record()))
        finally:
            operation_id_var.reset(token)
        assert entry["operation_id"] == "abc123"

    def test_human_output(self):
        line = HumanFormatter().format(_record(passes=3, value="plain"))
        assert "[fieldcipher.test] hello" in line
        assert "passes=3" in line
        assert "value=[REDACTED]" in line
        assert "plain" not in line


class TestLogOperation:
    """Tests for the log_operation decorator."""

    def test_sets_operation_id(self):
        @log_operation("probe")
        def probe():
            return operation_id_var.get()

        first = probe()
        assert first is not None
        assert probe() != first
        assert operation_id_var.get() is None

    @pytest.mark.asyncio
    async def test_sets_operation_id_async(self):
        @log_operation("probe")
        async def probe():
            return operation_id_var.get()

        assert await probe() is not None
        assert operation_id_var.get() is None

    def test_logs_failure(self, service, caplog):
        with caplog.at_level(logging.WARNING, logger="fieldcipher"):
            with pytest.raises(InvalidEnvelopeError):
                service.decrypt("not an envelope")

        failures = [r for r in caplog.records if r.getMessage() == "decrypt failed"]
        assert len(failures) == 1
        assert failures[0].extra_fields["error"] == "InvalidEnvelopeError"

    def test_logs_success_at_debug(self, service, caplog):
        with caplog.at_level(logging.DEBUG, logger="fieldcipher"):
            service.encrypt("value")

        messages = [r.getMessage() for r in caplog.records]
        assert "Encrypted buffer" in messages
        assert "encrypt completed" in messages

    def test_never_logs_plaintext_or_key(self, service, caplog):
        with caplog.at_level(logging.DEBUG, logger="fieldcipher"):
            envelope = service.encrypt("top-secret-value")
            service.decrypt(envelope)

        for record in caplog.records:
            rendered = StructuredFormatter().format(record)
            assert "top-secret-value" not in rendered
            assert "test-key" not in rendered


class TestSetup:
    """Tests for setup_logging()."""

    def test_json_handler(self):
        setup_logging(json_output=True, level="debug")
        logger = logging.getLogger("fieldcipher")

        assert logger.level == logging.DEBUG
        assert logger.propagate is False
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, StructuredFormatter)

    def test_replaces_handlers(self):
        setup_logging()
        setup_logging()
        logger = logging.getLogger("fieldcipher")
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, HumanFormatter)

    def test_get_logger_accepts_fields(self, caplog):
        logger = get_logger("fieldcipher.test_fields")
        with caplog.at_level(logging.INFO, logger="fieldcipher"):
            logger.info("with fields", passes=2)
        assert caplog.records[-1].extra_fields == {"passes": 2}
