"""Component base classes shared by inspectors.

``BaseComponent`` owns a validated configuration object. ``AsyncComponent``
adds an async setup/teardown pair that inspectors use to create and drain
their connection pools.

Example:
    >>> class DatabaseInspector(AsyncComponent[InspectorConfig]):
    ...     async def _async_initialize(self) -> None:
    ...         ...
"""

import asyncio
import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Awaitable, Callable, ClassVar, Dict, Generic, TypeVar

import structlog

from .exceptions import ConfigurationError, ErrorCodes, InspectorException, ValidationError

T = TypeVar("T")


class BaseComponent(Generic[T], ABC):
    """Holds a configuration of type ``T`` and reports component health.

    Subclasses set ``component_name`` and ``version`` and may override
    ``validate_config`` to reject configurations at construction time.
    """

    component_name: ClassVar[str] = "BaseComponent"
    version: ClassVar[str] = "1.0.0"

    def __init__(self, config: T) -> None:
        """
        Raises:
            ValidationError: ``config`` is None (code ``CONFIG_NULL``)
            ConfigurationError: ``validate_config`` returned False
        """
        context = {"component": self.component_name}
        if config is None:
            raise ValidationError("Configuration cannot be None", code="CONFIG_NULL", context=context)

        self._config: T = config
        self._initialized = False
        self._created_at = time.time()
        self._logger = structlog.get_logger(self.__class__.__name__).bind(component=self.component_name)

        if not self.validate_config():
            raise ConfigurationError(
                f"Invalid configuration for {self.component_name}",
                code=ErrorCodes.CONFIG_INVALID,
                context=context,
            )

    @property
    def config(self) -> T:
        return self._config

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def uptime(self) -> float:
        return time.time() - self._created_at

    def validate_config(self) -> bool:
        return True

    def get_health_status(self) -> Dict[str, Any]:
        return {
            "component": self.component_name,
            "version": self.version,
            "initialized": self._initialized,
            "uptime_seconds": self.uptime,
            "status": "healthy" if self._initialized else "not_initialized",
        }

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.component_name!r}, "
            f"initialized={self._initialized}, uptime={self.uptime:.2f}s)"
        )


class AsyncComponent(BaseComponent[T]):
    """Component with idempotent async ``initialize``/``cleanup``.

    Concurrent ``initialize`` calls run the hook once. ``cleanup`` on a
    component that was never initialized does nothing. Unexpected errors from
    ``_async_initialize`` are wrapped as ``INIT_FAILED``; package exceptions
    pass through unchanged.
    """

    def __init__(self, config: T) -> None:
        super().__init__(config)
        self._lifecycle_lock = asyncio.Lock()

    async def _run_phase(self, phase: str, hook: Callable[[], Awaitable[None]]) -> None:
        self._logger.info(f"Component {phase} started")
        try:
            await hook()
        except InspectorException as e:
            self._logger.error(f"Component {phase} failed", code=e.code)
            raise
        except Exception as e:
            self._logger.error(f"Component {phase} failed", error=str(e))
            if phase != "initialization":
                raise
            raise InspectorException(
                f"Failed to initialize {self.component_name}",
                code="INIT_FAILED",
                context={"component": self.component_name},
                cause=e,
            ) from e
        self._logger.info(f"Component {phase} finished")

    async def initialize(self) -> None:
        async with self._lifecycle_lock:
            if not self._initialized:
                await self._run_phase("initialization", self._async_initialize)
                self._initialized = True

    async def cleanup(self) -> None:
        async with self._lifecycle_lock:
            if not self._initialized:
                return
            try:
                await self._run_phase("cleanup", self._async_cleanup)
            finally:
                self._initialized = False

    @abstractmethod
    async def _async_initialize(self) -> None:
        ...

    async def _async_cleanup(self) -> None:
        return None

    @asynccontextmanager
    async def managed_lifecycle(self) -> AsyncGenerator["AsyncComponent[T]", None]:
        """Initialize on entry and clean up on exit, even when the block raises."""
        await self.initialize()
        try:
            yield self
        finally:
            await self.cleanup()

    async def __aenter__(self) -> "AsyncComponent[T]":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.cleanup()
