"""Logging-specific test configuration and fixtures."""

import logging
import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest

from dbinspector.config.models import LoggingConfig
from dbinspector.logging.factory import LoggerFactory


@pytest.fixture
def temp_log_file():
    """Create temporary log file for testing."""
    with tempfile.NamedTemporaryFile(suffix=".log", delete=False) as temp_file:
        temp_path = Path(temp_file.name)

    yield temp_path

    temp_path.unlink(missing_ok=True)


@pytest.fixture
def sample_logging_config(temp_log_file):
    """Create sample logging configuration."""
    return LoggingConfig(
        level="INFO",
        format="json",
        file_path=temp_log_file,
        console_output=False,
        max_file_size=1048576,  # 1MB
        backup_count=3,
    )


@pytest.fixture
def logger_factory():
    """Create clean logger factory for testing."""
    factory = LoggerFactory()
    yield factory
    factory.shutdown()


@pytest.fixture
def structlog_mock():
    """Mock standing in for the structlog bound logger."""
    return Mock()


@pytest.fixture
def log_record():
    """Factory for stdlib log records carrying extra fields."""
    def make(message="Connected", level=logging.INFO, **extra):
        record = logging.LogRecord(
            name="inspector.postgresql",
            level=level,
            pathname=__file__,
            lineno=42,
            msg=message,
            args=(),
            exc_info=None,
        )
        record.__dict__.update(extra)
        return record
    return make


@pytest.fixture(autouse=True)
def cleanup_global_logging():
    """Clean up global logging state after each test."""
    yield

    from dbinspector.logging.factory import _global_factory
    _global_factory.shutdown()

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.WARNING)
