"""Operation timing for inspectors and pools.

Every inspector owns a ``PerformanceLogger`` named after its platform. Catalog
calls are wrapped in ``measure``; statement execution reports its own elapsed
time through ``record_timing`` because the timeout path needs the figure
before the error is raised.

Example:
    >>> perf_logger = PerformanceLogger("inspector.postgresql")
    >>> with perf_logger.measure("get_tables", schema="public") as timer:
    ...     tables = await inspector.get_tables(connection)
    >>> timer.duration_ms
    12.7
"""

import statistics
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union

from .structured import StructuredLogger
from ..core.utils import FormatUtils


@dataclass
class TimingMetrics:
    """One timed call. Times are ``time.perf_counter()`` readings; ``duration`` is seconds."""
    operation: str
    start_time: float
    end_time: Optional[float] = None
    duration: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    success: bool = True
    error: Optional[str] = None

    def complete(self, success: bool = True, error: Optional[str] = None) -> None:
        self.end_time = time.perf_counter()
        self.duration = self.end_time - self.start_time
        self.success, self.error = success, error

    @property
    def duration_ms(self) -> Optional[float]:
        if self.duration is None:
            return None
        return self.duration * 1000

    @property
    def is_complete(self) -> bool:
        return self.end_time is not None


def _percentage(part: int, whole: int) -> float:
    return part / whole * 100 if whole else 0.0


@dataclass
class PerformanceMetrics:
    """Running totals for one operation name.

    Only the raw durations are stored; the distribution figures are computed
    on read.
    """
    operation: str
    successful_calls: int = 0
    failed_calls: int = 0
    errors: List[str] = field(default_factory=list)
    durations: List[float] = field(default_factory=list, repr=False)

    def add_timing(self, timing: TimingMetrics) -> None:
        if timing.duration is None or not timing.is_complete:
            return
        self.durations.append(timing.duration)
        if timing.success:
            self.successful_calls += 1
            return
        self.failed_calls += 1
        if timing.error:
            self.errors.append(timing.error)

    @property
    def total_calls(self) -> int:
        return len(self.durations)

    @property
    def total_duration(self) -> float:
        return sum(self.durations)

    @property
    def min_duration(self) -> Optional[float]:
        return min(self.durations, default=None)

    @property
    def max_duration(self) -> Optional[float]:
        return max(self.durations, default=None)

    @property
    def avg_duration(self) -> Optional[float]:
        return statistics.fmean(self.durations) if self.durations else None

    @property
    def median_duration(self) -> Optional[float]:
        return statistics.median(self.durations) if self.durations else None

    @property
    def success_rate(self) -> float:
        return _percentage(self.successful_calls, self.total_calls)

    @property
    def error_rate(self) -> float:
        return _percentage(self.failed_calls, self.total_calls)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "operation": self.operation,
            "total_calls": self.total_calls,
            "successful_calls": self.successful_calls,
            "failed_calls": self.failed_calls,
            "success_rate": self.success_rate,
            "error_rate": self.error_rate,
            "total_duration": self.total_duration,
        }
        for stat in ("min", "max", "avg", "median"):
            data[f"{stat}_duration"] = getattr(self, f"{stat}_duration")
        data["error_count"] = len(self.errors)
        return data


class TimingContext:
    """Times a ``with`` block and, given a logger, reports start and outcome.

    Exceptions raised in the block are recorded as failures and re-raised.
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[StructuredLogger] = None,
        metadata: Optional[Dict[str, Any]] = None,
        auto_log: bool = True,
    ) -> None:
        self.operation = operation
        self.metadata = dict(metadata or {})
        self.logger = logger if auto_log else None
        self._timing: Optional[TimingMetrics] = None

    @property
    def timing(self) -> Optional[TimingMetrics]:
        return self._timing

    @property
    def duration(self) -> Optional[float]:
        return None if self._timing is None else self._timing.duration

    @property
    def duration_ms(self) -> Optional[float]:
        return None if self._timing is None else self._timing.duration_ms

    def elapsed_ms(self) -> float:
        """Milliseconds since entry; readable while the block is still running."""
        if self._timing is None:
            return 0.0
        return (time.perf_counter() - self._timing.start_time) * 1000

    def __enter__(self) -> "TimingContext":
        self._timing = TimingMetrics(self.operation, time.perf_counter(), metadata=self.metadata)
        if self.logger is not None:
            self.logger.debug("Operation started", operation=self.operation, **self.metadata)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._timing is None:
            return
        failed = exc_type is not None
        self._timing.complete(success=not failed, error=str(exc_val) if failed else None)
        if self.logger is None:
            return

        fields = dict(self.metadata, operation=self.operation, duration_ms=self._timing.duration_ms)
        if failed:
            self.logger.error("Operation failed", success=False, error=self._timing.error, **fields)
        else:
            self.logger.debug("Operation completed", success=True, **fields)


class PerformanceLogger:
    """Per-operation timing aggregation with optional structured log output.

    Attributes:
        name: Name the logger was created under (``inspector.<platform>``)
        logger: Structured logger receiving timing events
        slow_threshold_ms: Completed calls slower than this are logged at warning level
    """

    def __init__(
        self,
        name: str,
        *,
        auto_log: bool = True,
        track_metrics: bool = True,
        slow_threshold_ms: Optional[float] = None,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self.name = name
        self.auto_log = auto_log
        self.track_metrics = track_metrics
        self.slow_threshold_ms = slow_threshold_ms
        self.logger = logger or StructuredLogger(f"perf.{name}")
        self._metrics: Dict[str, PerformanceMetrics] = {}

    def _track(self, timing: TimingMetrics) -> None:
        if not self.track_metrics:
            return
        metrics = self._metrics.setdefault(timing.operation, PerformanceMetrics(timing.operation))
        metrics.add_timing(timing)

    def _check_slow(self, timing: TimingMetrics) -> None:
        if self.slow_threshold_ms is None or not self.auto_log:
            return
        if timing.success and (timing.duration_ms or 0.0) > self.slow_threshold_ms:
            self.logger.warning(
                "Slow operation",
                operation=timing.operation,
                duration_ms=timing.duration_ms,
                threshold_ms=self.slow_threshold_ms,
            )

    @contextmanager
    def measure(self, operation: str, **metadata: Any) -> Iterator[TimingContext]:
        """Time the enclosed block under ``operation``.

        Example:
            >>> with perf_logger.measure("get_schemas", platform="db2"):
            ...     schemas = await inspector.get_schemas(connection)
        """
        timer = TimingContext(operation, logger=self.logger, metadata=metadata, auto_log=self.auto_log)
        try:
            with timer:
                yield timer
        finally:
            if timer.timing is not None:
                self._track(timer.timing)
                self._check_slow(timer.timing)

    def record_timing(
        self,
        operation: str,
        duration: float,
        success: bool = True,
        error: Optional[str] = None,
        **metadata: Any
    ) -> None:
        """Record a call timed by the caller; ``duration`` is in seconds."""
        timing = TimingMetrics(operation, time.perf_counter() - duration, metadata=metadata)
        timing.complete(success=success, error=error)
        timing.duration = duration

        if self.auto_log:
            self.logger.log(
                "debug" if success else "error",
                f"Timing recorded: {operation}",
                operation=operation,
                duration_ms=timing.duration_ms,
                success=success,
                error=error,
                **metadata
            )
        self._track(timing)
        self._check_slow(timing)

    def get_metrics(self, operation: Optional[str] = None) -> Union[PerformanceMetrics, Dict[str, PerformanceMetrics]]:
        """Metrics for one operation (empty when never timed), or a copy of all of them."""
        if operation is None:
            return dict(self._metrics)
        return self._metrics.get(operation) or PerformanceMetrics(operation)

    def reset_metrics(self, operation: Optional[str] = None) -> None:
        if operation is None:
            self._metrics.clear()
        else:
            self._metrics.pop(operation, None)

    def get_summary(self) -> Dict[str, Any]:
        calls = sum(m.total_calls for m in self._metrics.values())
        succeeded = sum(m.successful_calls for m in self._metrics.values())
        elapsed = sum(m.total_duration for m in self._metrics.values())
        return {
            "total_operations": len(self._metrics),
            "total_calls": calls,
            "total_duration": elapsed,
            "total_duration_formatted": FormatUtils.format_duration(elapsed),
            "overall_success_rate": _percentage(succeeded, calls),
            "operations": {name: m.to_dict() for name, m in self._metrics.items()},
        }

    def __repr__(self) -> str:
        return f"PerformanceLogger(name={self.name!r}, operations={len(self._metrics)}, auto_log={self.auto_log})"
