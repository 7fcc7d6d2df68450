"""dbinspector structured logging.

Example:
    >>> from dbinspector.logging import get_logger, get_performance_logger
    >>> logger = get_logger("inspector.postgresql")
    >>> logger.info("Connected", connection_id="c-1")
    >>>
    >>> perf_logger = get_performance_logger("inspector.postgresql")
    >>> with perf_logger.measure("get_tables"):
    ...     pass
"""

from .factory import (
    LoggerConfig,
    LoggerFactory,
    configure_logging,
    get_factory,
    get_logger,
    get_performance_logger,
    shutdown_logging,
)
from .formatters import JSONFormatter, TextFormatter, get_formatter
from .performance import PerformanceLogger, PerformanceMetrics, TimingContext, TimingMetrics
from .structured import LogContext, StructuredLogger

__all__ = [
    # Factory and configuration
    "LoggerConfig",
    "LoggerFactory",
    "configure_logging",
    "get_factory",
    "get_logger",
    "get_performance_logger",
    "shutdown_logging",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "get_formatter",
    # Performance logging
    "PerformanceLogger",
    "PerformanceMetrics",
    "TimingContext",
    "TimingMetrics",
    # Structured logging
    "LogContext",
    "StructuredLogger",
]
