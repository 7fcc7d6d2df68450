"""Stdlib log formatters for dbinspector.

Classes:
    JSONFormatter: One JSON object per record, for log aggregation
    TextFormatter: Human-readable single-line records

Functions:
    get_formatter: Formatter for a configured format name
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

# Attributes every LogRecord carries; everything else is structured extra data.
_STANDARD_RECORD_FIELDS = frozenset({
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "message", "exc_info", "exc_text",
    "stack_info", "taskName",
})


def _extra_fields(record: logging.LogRecord, exclude: frozenset) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_RECORD_FIELDS and key not in exclude
    }


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured log output.

    Example:
        {"message":"Connection acquired","timestamp":"2024-03-07T10:30:45.123456",
         "level":"DEBUG","logger":"pool.postgresql","connection_id":"c0a8..."}
    """

    def __init__(self, *, include_location: bool = False, exclude_fields: Optional[list] = None) -> None:
        super().__init__()
        self.include_location = include_location
        self.exclude_fields = frozenset(exclude_fields or [])

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "message": record.getMessage(),
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }

        if self.include_location:
            log_data["module"] = record.module
            log_data["function"] = record.funcName
            log_data["line"] = record.lineno

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        log_data.update(_extra_fields(record, self.exclude_fields))

        for key in self.exclude_fields:
            log_data.pop(key, None)

        return json.dumps(log_data, default=str, separators=(",", ":"))


class TextFormatter(logging.Formatter):
    """Human-readable text formatter.

    Example:
        2024-03-07 10:30:45.123 [INFO] inspector.oracle: Connected (connection_id=..., host=db01)
    """

    color_codes = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
        "RESET": "\033[0m",
    }

    def __init__(self, *, include_extras: bool = True, colors: bool = False) -> None:
        super().__init__()
        self.include_extras = include_extras
        self.colors = colors

    def format(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%Y-%m-%d %H:%M:%S.") + f"{dt.microsecond:06d}"[:3]

        level = record.levelname
        if self.colors and level in self.color_codes:
            level_text = f"{self.color_codes[level]}[{level}]{self.color_codes['RESET']}"
        else:
            level_text = f"[{level}]"

        parts = [timestamp, level_text, f"{record.name}:", record.getMessage()]

        if self.include_extras:
            extras = [
                f"{key}={value}" if isinstance(value, str) else f"{key}={value!r}"
                for key, value in _extra_fields(record, frozenset()).items()
            ]
            if extras:
                parts.append("(" + ", ".join(extras) + ")")

        formatted = " ".join(parts)
        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)
        return formatted


def get_formatter(format_name: str) -> logging.Formatter:
    """Return the formatter for a configured format name ("json" or "text")."""
    if format_name.lower() == "json":
        return JSONFormatter()
    if format_name.lower() == "text":
        return TextFormatter()
    raise ValueError(f"Unsupported log format: {format_name}")
