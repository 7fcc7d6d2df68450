"""Structured logging for dbinspector.

Classes:
    LogContext: Task-local context merged into every log event
    StructuredLogger: Keyword-structured logger over structlog

Example:
    >>> logger = StructuredLogger("inspector.postgresql")
    >>> with logger.context(connection_id="c-1", schema="public"):
    ...     logger.info("Listing tables")
    ...     logger.warning("Column query failed", table="orders")
"""

import contextvars
import logging
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

import structlog

from ..core.exceptions import InspectorException
from ..core.utils import ValidationUtils


class LogContext:
    """Context values included in every event of one logger.

    Values are stored in a ``contextvars.ContextVar`` so concurrent asyncio
    tasks never see each other's context.

    Example:
        >>> context = LogContext()
        >>> context.set("connection_id", "c-1")
        >>> context.get_all()
        {'connection_id': 'c-1'}
    """

    def __init__(self) -> None:
        self._var: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
            f"log_context_{id(self)}", default={}
        )

    def set(self, key: str, value: Any) -> None:
        self._var.set({**self._var.get(), key: value})

    def get(self, key: str, default: Any = None) -> Any:
        return self._var.get().get(key, default)

    def get_all(self) -> Dict[str, Any]:
        return dict(self._var.get())

    def update(self, context: Dict[str, Any]) -> None:
        self._var.set({**self._var.get(), **context})

    def replace(self, context: Dict[str, Any]) -> None:
        self._var.set(dict(context))

    def clear(self) -> None:
        self._var.set({})


class StructuredLogger:
    """Keyword-structured logger over ``structlog`` with scoped context.

    Every event carries the logger's current context and, unless disabled,
    a correlation id that stays fixed for the task that first logged.
    The level is held on the stdlib logger of the same name, so handler
    configuration from ``LoggerFactory`` applies.

    Example:
        >>> logger = StructuredLogger("pool.oracle")
        >>> logger.debug("Connection acquired", connection_id="c-1", wait_time_ms=0.4)
    """

    LEVELS = ("debug", "info", "warning", "error", "critical")

    def __init__(
        self,
        name: str,
        *,
        level: str = "INFO",
        enable_correlation: bool = True,
    ) -> None:
        self.name = name
        self._enable_correlation = enable_correlation
        self._logger = structlog.get_logger(name)
        self._context = LogContext()
        self._stdlib_logger = logging.getLogger(name)
        number = getattr(logging, level.upper(), None)
        self._stdlib_logger.setLevel(number if isinstance(number, int) else logging.INFO)

    def _ensure_correlation_id(self) -> None:
        if self._enable_correlation and not self._context.get("correlation_id"):
            self._context.set("correlation_id", str(uuid.uuid4()))

    def _event_fields(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        self._ensure_correlation_id()
        merged = self._context.get_all()
        merged.update(fields)
        return merged

    def _emit(self, level: str, message: str, fields: Dict[str, Any], **extra: Any) -> None:
        getattr(self._logger, level)(message, **extra, **self._event_fields(fields))

    def debug(self, message: str, **kwargs: Any) -> None:
        self._emit("debug", message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._emit("info", message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._emit("warning", message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._emit("error", message, kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        self._emit("critical", message, kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Error-level event carrying the traceback of the exception being handled."""
        self._emit("error", message, kwargs, exc_info=True)

    def log(self, level: str, message: str, **kwargs: Any) -> None:
        """Emit at a level chosen at runtime, e.g. ``"debug" if ok else "error"``.

        Raises:
            InspectorException: ``level`` is not one of ``LEVELS``
        """
        name = level.lower()
        if name not in self.LEVELS:
            raise InspectorException(f"Unknown log level: {level}", code="UNKNOWN_LOG_LEVEL")
        self._emit(name, message, kwargs)

    @contextmanager
    def context(self, **context_data: Any) -> Generator[None, None, None]:
        """Add ``context_data`` to every event logged inside the block.

        Example:
            >>> with logger.context(schema="public", table="orders"):
            ...     logger.warning("Column query failed")
        """
        self._ensure_correlation_id()
        saved = self._context.get_all()
        self._context.update(context_data)
        try:
            yield
        finally:
            self._context.replace(saved)

    def bind(self, **context_data: Any) -> "StructuredLogger":
        """New logger with this logger's current context plus ``context_data``."""
        bound = StructuredLogger(self.name, level=self.get_level(), enable_correlation=self._enable_correlation)
        bound._context.replace({**self._context.get_all(), **context_data})
        return bound

    def set_level(self, level: str) -> None:
        """
        Raises:
            InspectorException: ``INVALID_LOG_LEVEL`` for malformed names,
                ``UNKNOWN_LOG_LEVEL`` for names logging does not define
        """
        if not ValidationUtils.validate_identifier(level):
            raise InspectorException(f"Invalid log level: {level}", code="INVALID_LOG_LEVEL")
        number = getattr(logging, level.upper(), None)
        if not isinstance(number, int):
            raise InspectorException(f"Unknown log level: {level}", code="UNKNOWN_LOG_LEVEL")
        self._stdlib_logger.setLevel(number)

    def get_level(self) -> str:
        return logging.getLevelName(self._stdlib_logger.getEffectiveLevel())

    def set_correlation_id(self, correlation_id: str) -> None:
        if self._enable_correlation:
            self._context.set("correlation_id", correlation_id)

    def get_correlation_id(self) -> Optional[str]:
        return self._context.get("correlation_id") if self._enable_correlation else None

    def get_context(self) -> Dict[str, Any]:
        return self._context.get_all()

    def clear_context(self) -> None:
        self._context.clear()

    def __repr__(self) -> str:
        return (
            f"StructuredLogger(name={self.name!r}, level={self.get_level()!r}, "
            f"correlation={self._enable_correlation})"
        )
