"""Logger factory: one place that wires stdlib logging and structlog together.

Inspectors never configure logging themselves. They ask the global factory
for ``inspector.<platform>``/``pool.<platform>`` loggers, and the first such
request installs the root handlers and the structlog processor chain.

Example:
    >>> from dbinspector.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", format="text")
    >>> logger = get_logger("inspector.oracle")
    >>> logger.info("Connected", host="db01")
"""

import logging
import logging.handlers
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog

from .formatters import get_formatter
from .performance import PerformanceLogger
from .structured import StructuredLogger
from ..config.models import LoggingConfig
from ..core.exceptions import ValidationError

# Native driver loggers that are chatty at INFO.
DRIVER_LOGGERS = ("asyncpg", "aiomysql")


@dataclass
class LoggerConfig:
    """Settings the factory applies; ``max_file_size`` is in bytes."""
    level: str = "INFO"
    format: str = "json"
    console_output: bool = True
    file_output: bool = False
    file_path: Optional[str] = None
    max_file_size: int = 10485760
    backup_count: int = 5
    correlation_ids: bool = True
    driver_level: str = "WARNING"


def _level_number(level: str) -> Optional[int]:
    number = getattr(logging, level.upper(), None)
    return number if isinstance(number, int) else None


def build_processors(format: str) -> List[Any]:
    """structlog processor chain ending in the renderer for ``format``."""
    renderer = (
        structlog.processors.JSONRenderer()
        if format.lower() == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


class LoggerFactory:
    """Configures logging once and hands out cached loggers.

    Structured loggers are cached per ``(name, level)``; performance loggers
    per ``(name, auto_log, track_metrics)``, so every inspector for the same
    platform shares one set of timing metrics.
    """

    def __init__(self, config: Optional[LoggerConfig] = None) -> None:
        self.config = config or LoggerConfig()
        self.initialized = False
        self._loggers: Dict[str, StructuredLogger] = {}
        self._performance_loggers: Dict[str, PerformanceLogger] = {}

    def configure_from_config(self, logging_config: LoggingConfig) -> None:
        file_path = logging_config.file_path
        self.config = LoggerConfig(
            level=logging_config.level,
            format=logging_config.format,
            console_output=logging_config.console_output,
            file_output=file_path is not None,
            file_path=None if file_path is None else str(file_path),
            max_file_size=logging_config.max_file_size,
            backup_count=logging_config.backup_count,
        )
        self._reconfigure()

    def configure_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """Apply the known keys of ``config_dict`` over the current settings."""
        known = {f.name for f in fields(LoggerConfig)}
        for key in known & config_dict.keys():
            setattr(self.config, key, config_dict[key])
        self._reconfigure()

    def _reconfigure(self) -> None:
        self.initialized = False
        self._ensure_configured()

    def _ensure_configured(self) -> None:
        if self.initialized:
            return

        level = _level_number(self.config.level) or logging.INFO
        root = logging.getLogger()
        root.setLevel(level)
        root.handlers.clear()
        for handler in self._build_handlers():
            handler.setLevel(level)
            handler.setFormatter(get_formatter(self.config.format))
            root.addHandler(handler)

        driver_level = _level_number(self.config.driver_level) or logging.WARNING
        for name in DRIVER_LOGGERS:
            logging.getLogger(name).setLevel(driver_level)

        structlog.configure(
            processors=build_processors(self.config.format),
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            context_class=dict,
            cache_logger_on_first_use=True,
        )
        self.initialized = True

    def _build_handlers(self) -> List[logging.Handler]:
        handlers: List[logging.Handler] = []
        if self.config.console_output:
            handlers.append(logging.StreamHandler(sys.stderr))
        if self.config.file_output and self.config.file_path:
            path = Path(self.config.file_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.handlers.RotatingFileHandler(
                filename=str(path),
                maxBytes=self.config.max_file_size,
                backupCount=self.config.backup_count,
                encoding="utf-8",
            ))
        return handlers

    def get_logger(self, name: str, *, level: Optional[str] = None) -> StructuredLogger:
        self._ensure_configured()
        key = f"{name}_{level}"
        logger = self._loggers.get(key)
        if logger is None:
            logger = self._loggers[key] = StructuredLogger(
                name=name,
                level=level or self.config.level,
                enable_correlation=self.config.correlation_ids,
            )
        return logger

    def get_performance_logger(
        self,
        name: str,
        *,
        auto_log: bool = True,
        track_metrics: bool = True,
    ) -> PerformanceLogger:
        self._ensure_configured()
        key = f"{name}_{auto_log}_{track_metrics}"
        perf_logger = self._performance_loggers.get(key)
        if perf_logger is None:
            perf_logger = self._performance_loggers[key] = PerformanceLogger(
                name=name,
                auto_log=auto_log,
                track_metrics=track_metrics,
                logger=self.get_logger(f"perf.{name}"),
            )
        return perf_logger

    def set_level(self, level: str, logger_name: Optional[str] = None) -> None:
        """Change the level of one stdlib logger, or of the root and every cached logger.

        Raises:
            ValidationError: ``level`` is not a logging level name
        """
        number = _level_number(level)
        if number is None:
            raise ValidationError(f"Invalid log level: {level}", context={"level": level})

        if logger_name:
            logging.getLogger(logger_name).setLevel(number)
            return

        self.config.level = level.upper()
        logging.getLogger().setLevel(number)
        for logger in self._loggers.values():
            logger.set_level(level)

    def get_logger_info(self) -> Dict[str, Any]:
        settings = ("level", "format", "console_output", "file_output", "file_path")
        return {
            "config": {name: getattr(self.config, name) for name in settings},
            "initialized": self.initialized,
            "loggers": {
                "structured": list(self._loggers),
                "performance": list(self._performance_loggers),
            },
        }

    def shutdown(self) -> None:
        """Drop cached loggers and flush every stdlib handler."""
        self._loggers.clear()
        self._performance_loggers.clear()
        logging.shutdown()
        self.initialized = False

    def __repr__(self) -> str:
        return (
            f"LoggerFactory(level={self.config.level!r}, format={self.config.format!r}, "
            f"initialized={self.initialized})"
        )


_global_factory = LoggerFactory()


def configure_logging(
    *,
    level: str = "INFO",
    format: str = "json",
    console_output: bool = True,
    file_output: bool = False,
    file_path: Optional[str] = None,
    **kwargs: Any
) -> None:
    """Configure the process-wide factory.

    Example:
        >>> configure_logging(level="DEBUG", format="text", driver_level="INFO")
    """
    settings = dict(
        level=level,
        format=format,
        console_output=console_output,
        file_output=file_output,
        file_path=file_path,
    )
    settings.update(kwargs)
    _global_factory.configure_from_dict(settings)


def get_logger(name: str, *, level: Optional[str] = None) -> StructuredLogger:
    return _global_factory.get_logger(name, level=level)


def get_performance_logger(
    name: str,
    *,
    auto_log: bool = True,
    track_metrics: bool = True,
) -> PerformanceLogger:
    return _global_factory.get_performance_logger(name, auto_log=auto_log, track_metrics=track_metrics)


def get_factory() -> LoggerFactory:
    return _global_factory


def shutdown_logging() -> None:
    _global_factory.shutdown()
