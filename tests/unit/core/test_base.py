"""Unit tests for the component base classes."""

import asyncio

import pytest
import structlog

from dbinspector.core.base import AsyncComponent, BaseComponent
from dbinspector.core.exceptions import (
    ConfigurationError,
    InspectorException,
    MetadataError,
    ValidationError,
)


class ReaderSettings:
    """Plain settings object; components accept any config type."""

    def __init__(self, platform: str = "postgresql", max_size: int = 5):
        self.platform = platform
        self.max_size = max_size


class CatalogReader(BaseComponent[ReaderSettings]):
    component_name = "CatalogReader"
    version = "0.3.0"

    def validate_config(self) -> bool:
        return self.config.max_size > 0


class PoolOwner(AsyncComponent[ReaderSettings]):
    component_name = "PoolOwner"

    def __init__(self, config, *, open_error=None, close_error=None):
        super().__init__(config)
        self.open_error = open_error
        self.close_error = close_error
        self.opened = 0
        self.drained = 0

    async def _async_initialize(self) -> None:
        self.opened += 1
        await asyncio.sleep(0)
        if self.open_error is not None:
            raise self.open_error

    async def _async_cleanup(self) -> None:
        self.drained += 1
        if self.close_error is not None:
            raise self.close_error


class TestBaseComponent:

    def test_holds_config(self):
        settings = ReaderSettings(platform="db2")
        reader = CatalogReader(settings)

        assert reader.config is settings
        assert not reader.is_initialized
        assert reader.uptime >= 0
        assert (reader.component_name, reader.version) == ("CatalogReader", "0.3.0")

    def test_none_config(self):
        with pytest.raises(ValidationError) as exc_info:
            CatalogReader(None)

        assert exc_info.value.code == "CONFIG_NULL"
        assert exc_info.value.context == {"component": "CatalogReader"}

    def test_rejected_config(self):
        with pytest.raises(ConfigurationError) as exc_info:
            CatalogReader(ReaderSettings(max_size=0))

        assert exc_info.value.code == "CONFIG_INVALID"

    def test_health_before_initialize(self):
        health = CatalogReader(ReaderSettings()).get_health_status()

        assert health["component"] == "CatalogReader"
        assert health["version"] == "0.3.0"
        assert health["initialized"] is False
        assert health["status"] == "not_initialized"
        assert health["uptime_seconds"] >= 0

    def test_repr(self):
        assert repr(CatalogReader(ReaderSettings())).startswith(
            "CatalogReader(name='CatalogReader', initialized=False"
        )

    def test_logger_binds_extra_fields(self):
        with structlog.testing.capture_logs() as events:
            reader = CatalogReader(ReaderSettings())
            reader._logger.bind(table="orders").info("Columns read")

        assert len(events) == 1
        assert events[0]["event"] == "Columns read"
        assert events[0]["component"] == "CatalogReader"
        assert events[0]["table"] == "orders"


class TestAsyncComponent:

    @pytest.mark.asyncio
    async def test_initialize_then_cleanup(self):
        owner = PoolOwner(ReaderSettings())

        await owner.initialize()
        assert owner.is_initialized
        assert owner.get_health_status()["status"] == "healthy"

        await owner.cleanup()
        assert not owner.is_initialized
        assert owner.drained == 1

    @pytest.mark.asyncio
    async def test_lifecycle_events_name_the_component(self):
        with structlog.testing.capture_logs() as events:
            owner = PoolOwner(ReaderSettings())
            await owner.initialize()

        assert [event["event"] for event in events] == [
            "Component initialization started",
            "Component initialization finished",
        ]
        assert {event["component"] for event in events} == {"PoolOwner"}

    @pytest.mark.asyncio
    async def test_concurrent_initialize_runs_once(self):
        owner = PoolOwner(ReaderSettings())

        await asyncio.gather(*(owner.initialize() for _ in range(3)))

        assert owner.opened == 1

    @pytest.mark.asyncio
    async def test_cleanup_before_initialize(self):
        owner = PoolOwner(ReaderSettings())

        await owner.cleanup()

        assert owner.drained == 0

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped(self):
        cause = RuntimeError("driver missing")
        owner = PoolOwner(ReaderSettings(), open_error=cause)

        with pytest.raises(InspectorException) as exc_info:
            await owner.initialize()

        assert exc_info.value.code == "INIT_FAILED"
        assert exc_info.value.cause is cause
        assert exc_info.value.__cause__ is cause
        assert not owner.is_initialized

    @pytest.mark.asyncio
    async def test_package_error_passes_through(self):
        error = MetadataError("catalog unreadable")
        owner = PoolOwner(ReaderSettings(), open_error=error)

        with pytest.raises(MetadataError) as exc_info:
            await owner.initialize()

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_failed_cleanup_still_resets(self):
        owner = PoolOwner(ReaderSettings(), close_error=OSError("socket closed"))
        await owner.initialize()

        with pytest.raises(OSError):
            await owner.cleanup()

        assert not owner.is_initialized

    @pytest.mark.asyncio
    async def test_async_with(self):
        owner = PoolOwner(ReaderSettings())

        async with owner as active:
            assert active is owner
            assert owner.is_initialized

        assert owner.drained == 1
        assert not owner.is_initialized

    @pytest.mark.asyncio
    async def test_managed_lifecycle_cleans_up_after_error(self):
        owner = PoolOwner(ReaderSettings())

        with pytest.raises(KeyError):
            async with owner.managed_lifecycle():
                raise KeyError("orders")

        assert owner.drained == 1
        assert not owner.is_initialized
