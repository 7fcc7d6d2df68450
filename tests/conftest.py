"""Pytest configuration and shared fixtures.

This module provides pytest configuration and shared fixtures for all tests
in the dbinspector test suite, including a scripted in-memory connector
that stands in for a database driver.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union
from unittest.mock import MagicMock

import pytest
import structlog

from dbinspector.config.models import DatabaseConfig, InspectorConfig, PoolConfig
from dbinspector.core.protocols import NativeColumn, NativeResult

def configure_test_logging() -> None:
    """Route structlog into a capture sink so tests stay quiet."""
    structlog.configure(
        processors=[structlog.testing.LogCapture()],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        logger_factory=structlog.testing.ReturnLoggerFactory(),
        cache_logger_on_first_use=False,
    )


configure_test_logging()


@pytest.fixture(autouse=True)
def quiet_structlog():
    """Restore the test logging setup; some tests install a real pipeline."""
    configure_test_logging()
    yield
    configure_test_logging()


Response = Union[NativeResult, BaseException, Callable[[str, List[Any]], NativeResult]]


def make_result(
    columns: Sequence[Union[str, Tuple[str, Optional[str]]]] = (),
    rows: Sequence[Any] = (),
    affected_rows: Optional[int] = None,
) -> NativeResult:
    """Build a NativeResult; a bare column name has no reported type."""
    native_columns = [
        NativeColumn(column) if isinstance(column, str) else NativeColumn(*column)
        for column in columns
    ]
    return NativeResult(columns=native_columns, rows=list(rows), affected_rows=affected_rows)


class FakeHandle:
    """Native session handle produced by FakeConnector."""

    def __init__(self, number: int) -> None:
        self.number = number
        self.closed = False

    def __repr__(self) -> str:
        return f"FakeHandle({self.number}, closed={self.closed})"


class FakeConnector:
    """Scripted NativeConnector.

    Statements are matched against scripted responses by case-insensitive
    substring, in registration order. A response is a NativeResult, an
    exception to raise, or a callable ``(sql, params) -> NativeResult``.
    Unmatched statements return an empty result.
    """

    def __init__(self) -> None:
        self._responses: List[Tuple[str, Response]] = []
        self.calls: List[Tuple[FakeHandle, str, List[Any]]] = []
        self.opened: List[FakeHandle] = []
        self.closed: List[FakeHandle] = []
        self.open_error: Optional[BaseException] = None
        self.close_error: Optional[BaseException] = None
        self.exec_delay = 0.0

    def on(self, fragment: str, response: Response) -> "FakeConnector":
        key = fragment.lower()
        self._responses = [(k, r) for k, r in self._responses if k != key]
        self._responses.append((key, response))
        return self

    def statements(self, *, include_validation: bool = False) -> List[str]:
        return [
            " ".join(sql.split())
            for _, sql, _ in self.calls
            if include_validation or sql.strip().upper() != "SELECT 1"
        ]

    async def open(self, config: DatabaseConfig) -> FakeHandle:
        if self.open_error is not None:
            raise self.open_error
        handle = FakeHandle(len(self.opened) + 1)
        self.opened.append(handle)
        return handle

    async def close(self, handle: FakeHandle) -> None:
        handle.closed = True
        self.closed.append(handle)
        if self.close_error is not None:
            raise self.close_error

    async def exec(self, handle: FakeHandle, sql: str, params: Sequence[Any]) -> NativeResult:
        self.calls.append((handle, sql, list(params)))
        if self.exec_delay:
            await asyncio.sleep(self.exec_delay)

        lowered = sql.lower()
        for fragment, response in self._responses:
            if fragment in lowered:
                if isinstance(response, BaseException):
                    raise response
                if callable(response):
                    return response(sql, list(params))
                return response
        return NativeResult()


@pytest.fixture
def fake_connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def native_result() -> Callable[..., NativeResult]:
    """Factory fixture for scripted results."""
    return make_result


@pytest.fixture
def pg_config() -> DatabaseConfig:
    return DatabaseConfig(
        type="postgres",
        host="db.local",
        dbname="orders",
        user="app_user",
        password="s3cret",
    )


@pytest.fixture
def small_pool() -> PoolConfig:
    """Two-slot pool with a short acquire timeout and no background top-up."""
    return PoolConfig(
        max_size=2,
        min_idle=0,
        acquire_timeout=0.2,
        shutdown_timeout=0.5,
        reap_interval=60.0,
    )


@pytest.fixture
def pg_inspector_config(small_pool: PoolConfig) -> InspectorConfig:
    return InspectorConfig(platform="postgresql", pool=small_pool)


@pytest.fixture
def mock_logger():
    """Mock structured logger for testing."""
    logger = MagicMock()
    logger.bind.return_value = logger
    return logger


# Pytest markers for different test categories
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, isolated)"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (real databases)"
    )
    config.addinivalue_line(
        "markers", "database: marks tests exercising the database layer"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests that take > 1 second"
    )


# Auto-mark tests based on their location
def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(config.rootdir) / "tests")

        if test_path.parts[0] == "unit":
            item.add_marker(pytest.mark.unit)
        elif test_path.parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)

        if "database" in test_path.parts or "connectors" in test_path.parts:
            item.add_marker(pytest.mark.database)


@pytest.fixture(autouse=True)
def reset_global_registry():
    """Drop the global platform registry so registrations do not leak."""
    yield
    from dbinspector.database import registry
    registry._global_registry = None
