"""Unit tests for the inspector factory."""

import pytest

from dbinspector.config.models import DatabaseConfig, InspectorConfig
from dbinspector.core.exceptions import ConfigurationError, ErrorCodes, UnsupportedPlatformError
from dbinspector.database.base import DatabaseInspector
from dbinspector.database.connectors.postgresql import AsyncpgConnector
from dbinspector.database.factory import (
    DatabaseInspectorFactory,
    create_inspector,
    create_inspector_from_dict,
    get_supported_platforms,
    is_platform_supported,
)


@pytest.fixture
def factory():
    return DatabaseInspectorFactory()


class TestCreateInspector:
    """Test suite for inspector creation."""

    def test_injected_connector(self, factory, fake_connector):
        inspector = factory.create_inspector("postgres", fake_connector)

        assert isinstance(inspector, DatabaseInspector)
        assert inspector.platform == "postgresql"
        assert inspector.connector is fake_connector
        assert inspector.config.platform == "postgresql"

    def test_default_connector(self, factory):
        inspector = factory.create_inspector("postgresql")

        assert isinstance(inspector.connector, AsyncpgConnector)

    def test_platform_without_default_connector(self, factory):
        with pytest.raises(ConfigurationError) as exc_info:
            factory.create_inspector("oracle")

        assert exc_info.value.code == ErrorCodes.CONFIG_NOT_FOUND
        assert exc_info.value.context["platform"] == "oracle"

    def test_every_engine_accepts_an_injected_connector(self, factory, fake_connector):
        for platform in factory.get_supported_platforms():
            inspector = factory.create_inspector(platform, fake_connector)
            assert inspector.dialect.platform == platform

    def test_unsupported_platform(self, factory, fake_connector):
        with pytest.raises(UnsupportedPlatformError) as exc_info:
            factory.create_inspector("cobolbase", fake_connector)

        assert "Unsupported database type" in exc_info.value.message

    def test_explicit_config(self, factory, fake_connector):
        config = InspectorConfig(platform="mssql", default_schema="sales", include_views=False)

        inspector = factory.create_inspector("sqlserver", fake_connector, config)

        assert inspector.config is config
        assert inspector.dialect.display_name == "SQL Server"

    def test_config_for_other_platform(self, factory, fake_connector):
        with pytest.raises(ConfigurationError) as exc_info:
            factory.create_inspector("mysql", fake_connector, InspectorConfig(platform="oracle"))

        assert exc_info.value.code == ErrorCodes.CONFIG_INVALID


class TestCreateFromDict:

    def test_valid(self, factory, fake_connector):
        inspector = factory.create_inspector_from_dict(
            {"platform": "ase", "default_schema": "dbo", "pool": {"max_size": 3, "min_idle": 1}},
            fake_connector,
        )

        assert inspector.platform == "sybase"
        assert inspector.config.pool.max_size == 3

    def test_invalid_fields(self, factory, fake_connector):
        with pytest.raises(ConfigurationError) as exc_info:
            factory.create_inspector_from_dict({"platform": "pg", "pool": {"max_size": 0}}, fake_connector)

        assert exc_info.value.code == ErrorCodes.CONFIG_INVALID
        assert exc_info.value.cause is not None

    def test_unknown_key(self, factory, fake_connector):
        with pytest.raises(ConfigurationError):
            factory.create_inspector_from_dict({"platform": "pg", "colour": "blue"}, fake_connector)


class TestValidateConfiguration:

    @pytest.mark.parametrize("config", [
        DatabaseConfig(type="postgres", host="db.local", dbname="orders"),
        DatabaseConfig(type="firebird", dbname="/var/lib/firebird/employee.fdb"),
        DatabaseConfig(type="informix", host="ifx01", dbname="stores"),
    ])
    def test_accepted(self, factory, config):
        assert factory.validate_configuration(config)

    def test_unsupported_platform_rejected(self, factory):
        assert not factory.validate_configuration(DatabaseConfig(type="cobolbase", dbname="ledger"))


class TestModuleFunctions:

    def test_supported_platforms(self):
        platforms = get_supported_platforms()

        assert len(platforms) == 10
        assert is_platform_supported("MariaDB")
        assert not is_platform_supported("sqlite")

    def test_create_inspector(self, fake_connector):
        assert create_inspector("hana", fake_connector).platform == "hana"

    def test_create_inspector_from_dict(self, fake_connector):
        inspector = create_inspector_from_dict({"platform": "netezza"}, fake_connector)

        assert inspector.platform == "netezza"
