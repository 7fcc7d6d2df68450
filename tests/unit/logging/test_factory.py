"""Tests for logger factory and formatters."""

import json
import logging
import logging.handlers
import sys

import pytest
import structlog

from dbinspector.core.exceptions import ValidationError
from dbinspector.logging import (
    JSONFormatter,
    PerformanceLogger,
    StructuredLogger,
    TextFormatter,
    configure_logging,
    get_factory,
    get_formatter,
    get_logger,
    get_performance_logger,
    shutdown_logging,
)
from dbinspector.logging.factory import LoggerConfig, LoggerFactory, build_processors


class TestLoggerFactory:
    """Test cases for LoggerFactory."""

    def test_default_config(self, logger_factory):
        assert logger_factory.config == LoggerConfig()
        assert not logger_factory.initialized

    def test_get_logger_configures_lazily(self, logger_factory):
        logger = logger_factory.get_logger("inspector.oracle")

        assert isinstance(logger, StructuredLogger)
        assert logger_factory.initialized
        assert logger.name == "inspector.oracle"

    def test_loggers_are_cached(self, logger_factory):
        first = logger_factory.get_logger("pool.db2")

        assert logger_factory.get_logger("pool.db2") is first
        assert logger_factory.get_logger("pool.db2", level="DEBUG") is not first

    def test_performance_loggers_are_cached(self, logger_factory):
        perf_logger = logger_factory.get_performance_logger("inspector.hana")

        assert isinstance(perf_logger, PerformanceLogger)
        assert logger_factory.get_performance_logger("inspector.hana") is perf_logger
        assert perf_logger.logger.name == "perf.inspector.hana"

    def test_configure_from_config_writes_file(self, logger_factory, sample_logging_config, temp_log_file):
        logger_factory.configure_from_config(sample_logging_config)

        root_handlers = logging.getLogger().handlers
        assert len(root_handlers) == 1
        assert isinstance(root_handlers[0], logging.handlers.RotatingFileHandler)

        logger_factory.get_logger("inspector.file").info("Connected", host="db01")
        root_handlers[0].flush()

        content = temp_log_file.read_text(encoding="utf-8")
        assert "Connected" in content
        assert "db01" in content

    def test_console_handler(self, logger_factory):
        logger_factory.configure_from_dict({"format": "text", "console_output": True})

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert handlers[0].stream is sys.stderr
        assert isinstance(handlers[0].formatter, TextFormatter)

    def test_configure_from_dict_ignores_unknown_keys(self, logger_factory):
        logger_factory.configure_from_dict({"level": "WARNING", "colour": "blue"})

        assert logger_factory.config.level == "WARNING"
        assert not hasattr(logger_factory.config, "colour")
        assert logging.getLogger().level == logging.WARNING

    def test_driver_loggers_quieted(self, logger_factory):
        logger_factory.configure_from_dict({"console_output": False, "driver_level": "ERROR"})

        assert logging.getLogger("asyncpg").level == logging.ERROR
        assert logging.getLogger("aiomysql").level == logging.ERROR

    @pytest.mark.parametrize("format,renderer", [
        ("json", structlog.processors.JSONRenderer),
        ("text", structlog.dev.ConsoleRenderer),
    ])
    def test_processor_chain_renderer(self, format, renderer):
        assert isinstance(build_processors(format)[-1], renderer)

    def test_set_level_for_all_loggers(self, logger_factory):
        logger = logger_factory.get_logger("inspector.sybase")

        logger_factory.set_level("debug")

        assert logger_factory.config.level == "DEBUG"
        assert logger.get_level() == "DEBUG"

    def test_set_level_for_one_logger(self, logger_factory):
        logger_factory.set_level("ERROR", "pool.informix")

        assert logging.getLogger("pool.informix").level == logging.ERROR

    def test_set_invalid_level(self, logger_factory):
        with pytest.raises(ValidationError):
            logger_factory.set_level("LOUD")

    def test_logger_info(self, logger_factory):
        logger_factory.get_logger("inspector.netezza")
        logger_factory.get_performance_logger("inspector.netezza")

        info = logger_factory.get_logger_info()

        assert info["initialized"] is True
        assert info["config"]["format"] == "json"
        assert info["loggers"]["structured"] == ["inspector.netezza_None", "perf.inspector.netezza_None"]
        assert info["loggers"]["performance"] == ["inspector.netezza_True_True"]

    def test_shutdown(self, logger_factory):
        logger_factory.get_logger("inspector.firebird")

        logger_factory.shutdown()

        assert not logger_factory.initialized
        assert logger_factory.get_logger_info()["loggers"]["structured"] == []

    def test_repr(self):
        assert repr(LoggerFactory()) == "LoggerFactory(level='INFO', format='json', initialized=False)"


class TestGlobalFunctions:

    def test_get_logger(self):
        logger = get_logger("test.simple")

        assert logger.name == "test.simple"
        assert get_logger("test.simple") is logger

    def test_basic_logging_does_not_raise(self):
        logger = get_logger("test.basic")

        logger.info("Test info message", table="orders")
        logger.debug("Test debug message")
        logger.warning("Test warning message")
        logger.error("Test error message")

    def test_configure_logging(self):
        configure_logging(level="DEBUG", format="text", console_output=False)

        assert get_factory().config.level == "DEBUG"
        assert logging.getLogger().handlers == []

    def test_get_performance_logger(self):
        assert get_performance_logger("inspector.mysql") is get_performance_logger("inspector.mysql")

    def test_shutdown_logging(self):
        get_logger("test.shutdown")

        shutdown_logging()

        assert not get_factory().initialized


class TestFormatters:
    """Test cases for the stdlib formatters."""

    def test_json_formatter(self, log_record):
        record = log_record("Connected", connection_id="c-1", attempt=2)

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "Connected"
        assert data["level"] == "INFO"
        assert data["logger"] == "inspector.postgresql"
        assert data["connection_id"] == "c-1"
        assert data["attempt"] == 2
        assert "line" not in data

    def test_json_formatter_location_and_exclusions(self, log_record):
        record = log_record("Connected", password="hunter2")

        data = json.loads(JSONFormatter(include_location=True, exclude_fields=["password"]).format(record))

        assert data["line"] == 42
        assert "password" not in data

    def test_json_formatter_exception(self, log_record):
        try:
            raise RuntimeError("socket closed")
        except RuntimeError:
            record = log_record("Close failed", level=logging.ERROR, exc_info=sys.exc_info())

        data = json.loads(JSONFormatter().format(record))

        assert data["exception"]["type"] == "RuntimeError"
        assert data["exception"]["message"] == "socket closed"
        assert "Traceback" in data["exception"]["traceback"]

    def test_text_formatter(self, log_record):
        record = log_record("Pool drained", pool="p-1", closed=3)

        line = TextFormatter().format(record)

        assert "[INFO] inspector.postgresql: Pool drained (pool=p-1, closed=3)" in line

    def test_text_formatter_colors(self, log_record):
        line = TextFormatter(colors=True, include_extras=False).format(log_record("Connected"))

        assert "\033[32m[INFO]\033[0m" in line

    @pytest.mark.parametrize("name,formatter_type", [
        ("json", JSONFormatter),
        ("TEXT", TextFormatter),
    ])
    def test_get_formatter(self, name, formatter_type):
        assert isinstance(get_formatter(name), formatter_type)

    def test_get_formatter_unknown(self):
        with pytest.raises(ValueError):
            get_formatter("xml")
