"""Unit tests for configuration models."""

import pytest
from pydantic import SecretStr
from pydantic import ValidationError as PydanticValidationError

from dbinspector.config.models import (
    DatabaseConfig,
    InspectorConfig,
    LoggingConfig,
    PoolConfig,
    canonical_platform,
)


class TestCanonicalPlatform:

    @pytest.mark.parametrize("tag,expected", [
        ("Postgres", "postgresql"),
        ("pg", "postgresql"),
        ("MariaDB", "mysql"),
        ("sql-server", "sqlserver"),
        ("SAPHANA", "hana"),
        ("ase", "sybase"),
        ("custom_engine", "custom_engine"),
        ("", ""),
        (None, ""),
    ])
    def test_aliases(self, tag, expected):
        assert canonical_platform(tag) == expected


class TestDatabaseConfig:
    """Connection target descriptor."""

    def test_wire_aliases(self):
        config = DatabaseConfig.model_validate({
            "type": "mssql",
            "host": "sql01",
            "dbname": "sales",
            "user": "sa",
            "password": "pw",
            "schema": "reporting",
            "connectionLimit": 4,
            "minIdle": 1,
            "idleTimeout": 60,
            "acquireTimeout": 5,
        })

        assert config.platform == "sqlserver"
        assert config.database == "sales"
        assert config.schema_name == "reporting"
        assert config.connection_limit == 4
        assert config.port is None

    def test_field_names_accepted(self):
        config = DatabaseConfig(platform="oracle", database="ORCL", schema_name="HR")

        assert (config.platform, config.database, config.schema_name) == ("oracle", "ORCL", "HR")

    def test_defaults(self):
        config = DatabaseConfig(type="postgres", dbname="orders")

        assert config.host == "localhost"
        assert config.user == ""
        assert isinstance(config.password, SecretStr)
        assert config.options == {}

    def test_immutable(self, pg_config):
        with pytest.raises(PydanticValidationError):
            pg_config.host = "elsewhere"

    @pytest.mark.parametrize("overrides", [
        {"type": ""},
        {"dbname": "   "},
        {"port": 0},
        {"port": 70000},
        {"connectionLimit": 0},
        {"connectionLimit": 2, "minIdle": 3},
        {"unexpected": True},
    ])
    def test_invalid(self, overrides):
        values = {"type": "postgres", "dbname": "orders", **overrides}

        with pytest.raises(PydanticValidationError):
            DatabaseConfig.model_validate(values)

    def test_password_masked(self, pg_config):
        assert pg_config.to_dict()["password"] == "***MASKED***"
        assert pg_config.to_dict(mask_secrets=False)["password"] == "s3cret"
        assert "s3cret" not in repr(pg_config)

    def test_pool_key(self, pg_config):
        same_target = DatabaseConfig(type="pg", host="DB.LOCAL", dbname="orders", user="app_user", password="s3cret")
        other_user = DatabaseConfig(type="pg", host="db.local", dbname="orders", user="report", password="s3cret")

        assert pg_config.pool_key == same_target.pool_key
        assert pg_config.pool_key != other_user.pool_key

    def test_pool_key_includes_login_and_options(self, pg_config):
        wrong_password = pg_config.model_copy(update={"password": SecretStr("WRONG")})
        with_options = pg_config.model_copy(update={"options": {"ssl": True}})

        assert pg_config.pool_key != wrong_password.pool_key
        assert pg_config.pool_key != with_options.pool_key
        assert "s3cret" not in repr(pg_config.pool_key)

    def test_single_connection_target(self):
        config = DatabaseConfig(type="postgres", dbname="orders", connectionLimit=1)

        pool = config.pool_config()

        assert (pool.max_size, pool.min_idle) == (1, 1)

    def test_pool_config(self):
        config = DatabaseConfig(
            type="pg", dbname="orders", connectionLimit=5, minIdle=1, idleTimeout=12, acquireTimeout=3,
        )

        pool = config.pool_config(test_on_borrow=False)

        assert (pool.max_size, pool.min_idle, pool.idle_timeout, pool.acquire_timeout) == (5, 1, 12, 3)
        assert pool.test_on_borrow is False

    def test_update_from_dict(self, pg_config):
        updated = pg_config.update_from_dict({"host": "replica.local"})

        assert updated.host == "replica.local"
        assert pg_config.host == "db.local"


class TestPoolConfig:

    def test_defaults(self):
        pool = PoolConfig()

        assert (pool.max_size, pool.min_idle) == (10, 2)
        assert pool.test_on_borrow

    def test_min_idle_bounded_by_max_size(self):
        with pytest.raises(PydanticValidationError):
            PoolConfig(max_size=1, min_idle=2)

    def test_validate_assignment(self):
        pool = PoolConfig()

        with pytest.raises(PydanticValidationError):
            pool.max_size = 0


class TestInspectorConfig:

    def test_platform_normalized(self):
        assert InspectorConfig(platform="MSSQL").platform == "sqlserver"

    def test_nested_pool(self):
        config = InspectorConfig.model_validate({"platform": "hana", "pool": {"max_size": 3, "min_idle": 0}})

        assert config.pool.max_size == 3

    def test_query_timeout_positive(self):
        with pytest.raises(PydanticValidationError):
            InspectorConfig(platform="pg", query_timeout=0)


class TestLoggingConfig:

    def test_level_normalized(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_invalid_format(self):
        with pytest.raises(PydanticValidationError):
            LoggingConfig(format="xml")
