"""Simple import test to verify logging module can be imported."""

import pytest


def test_import_logging_module():
    """Test that logging module can be imported without errors."""
    try:
        from dbinspector.logging import (
            PerformanceLogger,
            StructuredLogger,
            configure_logging,
            get_logger,
        )
    except ImportError as e:
        pytest.fail(f"Failed to import logging module: {e}")

    assert callable(get_logger) and callable(configure_logging)
    assert StructuredLogger is not None and PerformanceLogger is not None


def test_package_exports():
    import dbinspector

    assert dbinspector.__version__ == "1.0.0"
    assert dbinspector.database.DatabaseInspector is not None
    assert dbinspector.logging.get_logger is not None


def test_create_simple_logger():
    """Test creating a simple logger."""
    from dbinspector.logging import get_logger

    logger = get_logger("test.simple")

    assert logger is not None
    assert logger.name == "test.simple"
