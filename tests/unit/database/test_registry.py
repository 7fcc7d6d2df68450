"""Unit tests for the platform and connection registries."""

from unittest.mock import MagicMock

import pytest

from dbinspector.config.models import DatabaseConfig
from dbinspector.core.exceptions import (
    ConfigurationError,
    ErrorCodes,
    NotConnected,
    UnsupportedPlatformError,
)
from dbinspector.database.dialects import get_dialect
from dbinspector.database.factory import DatabaseInspectorFactory
from dbinspector.database.models import ConnectionState
from dbinspector.database.registry import (
    ConnectionRegistry,
    DatabaseInspectorRegistry,
    get_global_registry,
    list_platforms,
    register_platform,
    resolve_platform,
)


class TestPlatformRegistry:
    """Test suite for DatabaseInspectorRegistry."""

    def test_builtin_platforms(self):
        registry = DatabaseInspectorRegistry()

        assert registry.list_platforms() == [
            "db2", "firebird", "hana", "informix", "mysql",
            "netezza", "oracle", "postgresql", "sqlserver", "sybase",
        ]

    def test_empty_registry(self):
        assert DatabaseInspectorRegistry(register_builtin=False).list_platforms() == []

    @pytest.mark.parametrize("alias,expected", [
        ("postgres", "postgresql"),
        ("PG", "postgresql"),
        ("mariadb", "mysql"),
        ("MSSQL", "sqlserver"),
        ("sap-hana", "hana"),
        ("  Oracle ", "oracle"),
    ])
    def test_aliases_resolve(self, alias, expected):
        assert DatabaseInspectorRegistry().resolve_platform(alias) == expected

    def test_unknown_platform(self):
        registry = DatabaseInspectorRegistry()

        with pytest.raises(UnsupportedPlatformError) as exc_info:
            registry.resolve_platform("cobolbase")

        assert exc_info.value.code == ErrorCodes.UNSUPPORTED_PLATFORM
        assert str(exc_info.value) == "UNSUPPORTED_PLATFORM: Unsupported database type: cobolbase"
        assert "postgresql" in exc_info.value.context["available_platforms"]
        assert not registry.is_platform_supported("cobolbase")

    def test_default_connectors(self):
        registry = DatabaseInspectorRegistry()

        assert registry.get_connector_factory("postgresql") is not None
        assert registry.get_connector_factory("mysql") is not None
        assert registry.get_connector_factory("oracle") is None
        assert registry.get_platform_metadata("oracle")["default_connector"] == "no"

    def test_register_custom_platform(self):
        registry = DatabaseInspectorRegistry(register_builtin=False)
        connector_factory = object

        registry.register_platform("Warehouse", get_dialect("postgresql"), connector_factory, "Custom PG fork")

        assert registry.is_platform_supported("warehouse")
        assert registry.get_connector_factory("WAREHOUSE") is connector_factory
        assert registry.get_platform_metadata("warehouse")["description"] == "Custom PG fork"

    def test_register_rejects_non_dialect(self):
        with pytest.raises(ConfigurationError) as exc_info:
            DatabaseInspectorRegistry().register_platform("broken", "not a dialect")

        assert exc_info.value.code == ErrorCodes.CONFIG_INVALID

    def test_unregister(self):
        registry = DatabaseInspectorRegistry()

        registry.unregister_platform("informix")

        assert not registry.is_platform_supported("informix")
        with pytest.raises(UnsupportedPlatformError):
            registry.get_dialect("informix")


class TestGlobalRegistry:

    def test_singleton(self):
        assert get_global_registry() is get_global_registry()

    def test_module_functions(self):
        register_platform("tenant_pg", get_dialect("postgresql"))

        assert resolve_platform("TENANT_PG") == "tenant_pg"
        assert "tenant_pg" in list_platforms()


@pytest.fixture
def connections(fake_connector):
    registry = DatabaseInspectorRegistry()
    registry.register_platform("postgresql", get_dialect("postgresql"), lambda: fake_connector)
    return ConnectionRegistry(DatabaseInspectorFactory(registry))


class TestConnectionRegistry:
    """Test suite for ConnectionRegistry."""

    @pytest.mark.asyncio
    async def test_connect_and_get(self, connections, pg_config):
        connection_id = await connections.connect(pg_config)

        inspector, connection = connections.get(connection_id)
        assert connection.connection_id == connection_id
        assert connection.state is ConnectionState.CONNECTED
        assert inspector.platform == "postgresql"
        assert connections.active_connections() == [connection_id]
        await connections.close_all()

    @pytest.mark.asyncio
    async def test_inspector_shared_per_platform(self, connections, pg_config):
        first = await connections.connect(pg_config)
        second = await connections.connect(pg_config)

        assert connections.get(first)[0] is connections.get(second)[0]
        await connections.close_all()

    @pytest.mark.asyncio
    async def test_disconnect(self, connections, pg_config):
        connection_id = await connections.connect(pg_config)
        _, connection = connections.get(connection_id)

        await connections.disconnect(connection_id)
        await connections.disconnect(connection_id)

        assert connection.state is ConnectionState.DISCONNECTED
        with pytest.raises(NotConnected) as exc_info:
            connections.get(connection_id)
        assert exc_info.value.code == ErrorCodes.NOT_CONNECTED
        await connections.close_all()

    def test_unknown_id(self, connections):
        with pytest.raises(NotConnected):
            connections.get("postgresql_nowhere_0_0")

    @pytest.mark.asyncio
    async def test_unsupported_platform(self, connections):
        config = DatabaseConfig(type="cobolbase", dbname="ledger")

        with pytest.raises(UnsupportedPlatformError):
            await connections.connect(config)

    @pytest.mark.asyncio
    async def test_close_all(self, connections, pg_config, fake_connector):
        ids = [await connections.connect(pg_config) for _ in range(2)]
        handles = [connections.get(connection_id)[1] for connection_id in ids]

        await connections.close_all()

        assert connections.active_connections() == []
        assert all(connection.state is ConnectionState.DISCONNECTED for connection in handles)
        assert all(handle.closed for handle in fake_connector.opened)

    @pytest.mark.asyncio
    async def test_supplied_connector_used_for_first_inspector(self, fake_connector, pg_config):
        registry = DatabaseInspectorRegistry()
        factory = DatabaseInspectorFactory(registry)
        connections = ConnectionRegistry(factory)

        connection_id = await connections.connect(pg_config, fake_connector)

        inspector, _ = connections.get(connection_id)
        assert inspector.connector is fake_connector
        await connections.close_all()

    @pytest.mark.asyncio
    async def test_different_connector_rejected_after_first_connect(self, connections, pg_config, fake_connector):
        first = await connections.connect(pg_config, fake_connector)
        other = MagicMock(name="other_driver")

        with pytest.raises(ConfigurationError) as exc_info:
            await connections.connect(pg_config, other)

        assert exc_info.value.code == ErrorCodes.CONFIG_INVALID
        assert exc_info.value.context["platform"] == "postgresql"
        other.open.assert_not_called()
        assert connections.active_connections() == [first]

        second = await connections.connect(pg_config, fake_connector)
        assert connections.get(second)[0] is connections.get(first)[0]
        await connections.close_all()

    def test_default_factory_uses_global_registry(self):
        assert ConnectionRegistry().factory.registry is get_global_registry()
