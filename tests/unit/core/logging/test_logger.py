"""
Tests for ApiClientLogger.
"""

import json
import logging

import pytest

from api_client.core.logging import (
    ApiClientLogger,
    LogFormat,
    LogLevel,
    LoggingConfig,
    reset_correlation_id,
    set_correlation_id,
)


@pytest.fixture
def json_file_logger(tmp_path):
    log_file = tmp_path / "requests.log"
    config = LoggingConfig.create(
        level="DEBUG",
        format="json",
        enable_console=False,
        enable_file=True,
        file_path=str(log_file),
    )
    logger = ApiClientLogger(config, name="test.json_file_logger")
    yield logger, log_file
    logger.close()


def _records(log_file):
    return [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]


class TestApiClientLogger:
    """Tests for ApiClientLogger class."""

    def test_defaults(self):
        logger = ApiClientLogger()
        try:
            assert logger.name == "api_client.requests"
            assert logger.config.level == LogLevel.INFO
            assert logger.config.format == LogFormat.TEXT
            assert logger.logger.propagate is False
            assert len(logger.logger.handlers) == 1
        finally:
            logger.close()

    def test_level_applied(self):
        logger = ApiClientLogger(LoggingConfig.create(level="WARNING"), name="test.level")
        try:
            assert not logger.is_enabled_for(logging.INFO)
            assert logger.is_enabled_for(logging.ERROR)
        finally:
            logger.close()

    def test_same_name_instances_keep_own_handlers(self, tmp_path):
        log_file = tmp_path / "shared.log"
        config = LoggingConfig.create(enable_console=False, enable_file=True, file_path=str(log_file))
        first = ApiClientLogger(config, name="test.same_host")
        second = ApiClientLogger(config, name="test.same_host")
        try:
            assert first.name == second.name
            assert first.logger is not second.logger
            assert len(first.logger.handlers) == 1

            second.close()
            assert len(first.logger.handlers) == 1
            first.info("still logging")
        finally:
            first.close()

        assert log_file.read_text(encoding="utf-8").count("still logging") == 1

    def test_fields_written(self, json_file_logger):
        logger, log_file = json_file_logger
        logger.info("Request completed", method="GET", status_code=200, duration_ms=12.5)

        record = _records(log_file)[0]
        assert record["message"] == "Request completed"
        assert record["level"] == "INFO"
        assert record["method"] == "GET"
        assert record["status_code"] == 200

    def test_sensitive_fields_masked(self, json_file_logger):
        logger, log_file = json_file_logger
        logger.info("Request started", authorization="Basic dXNlcjpwYXNz", url="https://x?token=abc")

        record = _records(log_file)[0]
        assert record["authorization"] == "***REDACTED***"
        assert "abc" not in record["url"]

    def test_correlation_id_added(self, json_file_logger):
        logger, log_file = json_file_logger
        token = set_correlation_id("run-42")
        try:
            logger.warning("Artifact skipped")
        finally:
            reset_correlation_id(token)
        logger.warning("No correlation")

        first, second = _records(log_file)
        assert first["correlation_id"] == "run-42"
        assert "correlation_id" not in second

    def test_extra_fields(self, tmp_path):
        log_file = tmp_path / "extra.log"
        config = LoggingConfig.create(
            format="json",
            enable_console=False,
            enable_file=True,
            file_path=str(log_file),
            extra_fields={"suite": "smoke"},
        )
        with ApiClientLogger(config, name="test.extra") as logger:
            logger.error("boom")

        assert _records(log_file)[0]["suite"] == "smoke"

    def test_exception_includes_traceback(self, json_file_logger):
        logger, log_file = json_file_logger
        try:
            raise ValueError("bad payload")
        except ValueError:
            logger.exception("Decode failed")

        record = _records(log_file)[0]
        assert record["level"] == "ERROR"
        assert "ValueError: bad payload" in record["exception"]

    def test_debug_below_level_skipped(self, tmp_path):
        log_file = tmp_path / "info.log"
        config = LoggingConfig.create(level="INFO", enable_console=False, enable_file=True, file_path=str(log_file))
        with ApiClientLogger(config, name="test.info_only") as logger:
            logger.debug("hidden")
            logger.info("shown")

        text = log_file.read_text(encoding="utf-8")
        assert "hidden" not in text
        assert "shown" in text

    def test_close_idempotent(self):
        logger = ApiClientLogger(name="test.close")
        logger.close()
        logger.close()
        assert logger.logger.handlers == []
