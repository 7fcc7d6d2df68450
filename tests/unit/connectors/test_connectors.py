# tests/unit/connectors/test_connectors.py
"""Unit tests for the native connectors."""

import asyncio
import sqlite3
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import aiomysql
import asyncpg
import pytest
from pymysql.constants import FIELD_TYPE

from dbinspector.config.models import DatabaseConfig
from dbinspector.core.exceptions import (
    AuthenticationError,
    ConnectionError,
    ErrorCodes,
    NetworkError,
)
from dbinspector.core.protocols import NativeConnector
from dbinspector.database.connectors import DBAPIConnector, default_connect_kwargs, type_name_of
from dbinspector.database.connectors.mysql import FIELD_TYPE_NAMES, AiomysqlConnector
from dbinspector.database.connectors.postgresql import AsyncpgConnector, _affected_rows


@pytest.fixture
def postgres_config():
    """PostgreSQL test configuration."""
    return DatabaseConfig(
        type="postgresql",
        host="localhost",
        port=5432,
        dbname="test_db",
        user="test_user",
        password="test_password",
        options={"ssl": "prefer"},
    )


@pytest.fixture
def mysql_config():
    """MySQL test configuration."""
    return DatabaseConfig(
        type="mysql",
        host="localhost",
        port=3306,
        dbname="test_db",
        user="test_user",
        password="test_password",
    )


def pg_statement(columns, records, status="SELECT 1"):
    """Mock asyncpg prepared statement."""
    statement = MagicMock()
    statement.get_attributes.return_value = [
        SimpleNamespace(name=name, type=SimpleNamespace(name=type_name)) for name, type_name in columns
    ]
    statement.fetch = AsyncMock(return_value=records)
    statement.get_statusmsg.return_value = status
    return statement


class MockCursor:
    """Mock aiomysql cursor usable as an async context manager."""

    def __init__(self, description=None, rows=(), rowcount=-1):
        self.description = description
        self.rowcount = rowcount
        self.execute = AsyncMock()
        self.fetchall = AsyncMock(return_value=list(rows))

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None


class TestAsyncpgConnector:
    """Test suite for the PostgreSQL connector."""

    def test_satisfies_protocol(self):
        assert isinstance(AsyncpgConnector(), NativeConnector)

    @pytest.mark.asyncio
    async def test_open_passes_connection_parameters(self, postgres_config):
        connection = AsyncMock()
        connector = AsyncpgConnector(connect_timeout=3.0)

        with patch("asyncpg.connect", AsyncMock(return_value=connection)) as connect:
            handle = await connector.open(postgres_config)

        assert handle is connection
        kwargs = connect.call_args.kwargs
        assert kwargs["host"] == "localhost"
        assert kwargs["port"] == 5432
        assert kwargs["database"] == "test_db"
        assert kwargs["password"] == "test_password"
        assert kwargs["timeout"] == 3.0
        assert kwargs["ssl"] == "prefer"

    @pytest.mark.asyncio
    async def test_open_auth_failure(self, postgres_config):
        """Test PostgreSQL authentication failure handling."""
        error = asyncpg.InvalidAuthorizationSpecificationError("auth failed")

        with patch("asyncpg.connect", AsyncMock(side_effect=error)):
            with pytest.raises(AuthenticationError) as exc_info:
                await AsyncpgConnector().open(postgres_config)

        assert exc_info.value.code == ErrorCodes.AUTH_FAILED
        assert "auth failed" in str(exc_info.value)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error,error_type,code", [
        (asyncio.TimeoutError(), ConnectionError, ErrorCodes.CONNECTION_TIMEOUT),
        (ConnectionRefusedError(111, "Connection refused"), ConnectionError, ErrorCodes.CONNECTION_REFUSED),
        (OSError(113, "No route to host"), NetworkError, ErrorCodes.NETWORK_UNREACHABLE),
    ])
    async def test_open_network_failures(self, postgres_config, error, error_type, code):
        with patch("asyncpg.connect", AsyncMock(side_effect=error)):
            with pytest.raises(error_type) as exc_info:
                await AsyncpgConnector().open(postgres_config)

        assert exc_info.value.code == code
        assert exc_info.value.cause is error

    @pytest.mark.asyncio
    async def test_exec_select(self):
        handle = MagicMock()
        handle.prepare = AsyncMock(return_value=pg_statement(
            [("id", "int4"), ("name", "varchar")],
            [{"id": 1, "name": "ada"}, {"id": 2, "name": "grace"}],
            status="SELECT 2",
        ))

        result = await AsyncpgConnector().exec(handle, "SELECT id, name FROM users WHERE id > $1", [0])

        assert [(c.name, c.type_name) for c in result.columns] == [("id", "int4"), ("name", "varchar")]
        assert result.rows == [(1, "ada"), (2, "grace")]
        assert result.affected_rows == 2
        handle.prepare.return_value.fetch.assert_awaited_once_with(0)

    @pytest.mark.asyncio
    async def test_exec_empty_result_keeps_columns(self):
        handle = MagicMock()
        handle.prepare = AsyncMock(return_value=pg_statement([("id", "int8")], [], status="SELECT 0"))

        result = await AsyncpgConnector().exec(handle, "SELECT id FROM empty", [])

        assert [c.type_name for c in result.columns] == ["int8"]
        assert result.rows == []

    @pytest.mark.asyncio
    async def test_exec_dml(self):
        handle = MagicMock()
        handle.prepare = AsyncMock(return_value=pg_statement([], []))
        handle.execute = AsyncMock(return_value="UPDATE 3")

        result = await AsyncpgConnector().exec(handle, "UPDATE users SET active = $1", [False])

        assert result.columns == []
        assert result.affected_rows == 3
        handle.execute.assert_awaited_once_with("UPDATE users SET active = $1", False)

    @pytest.mark.asyncio
    async def test_transaction_control_skips_prepare(self):
        handle = MagicMock()
        handle.prepare = AsyncMock()
        handle.execute = AsyncMock(return_value="BEGIN")

        result = await AsyncpgConnector().exec(handle, "BEGIN", [])

        assert result.affected_rows is None
        handle.prepare.assert_not_awaited()

    @pytest.mark.parametrize("status,expected", [
        ("INSERT 0 5", 5),
        ("DELETE 2", 2),
        ("SELECT 10", 10),
        ("CREATE TABLE", None),
        (None, None),
    ])
    def test_affected_rows_from_status(self, status, expected):
        assert _affected_rows(status) == expected


class TestAiomysqlConnector:
    """Test suite for the MySQL connector."""

    @pytest.mark.asyncio
    async def test_open_uses_autocommit(self, mysql_config):
        with patch("aiomysql.connect", AsyncMock(return_value=MagicMock())) as connect:
            await AiomysqlConnector().open(mysql_config)

        kwargs = connect.call_args.kwargs
        assert kwargs["autocommit"] is True
        assert kwargs["db"] == "test_db"
        assert kwargs["charset"] == "utf8mb4"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mysql_code,error_type,code", [
        (1045, AuthenticationError, ErrorCodes.AUTH_FAILED),
        (2005, NetworkError, ErrorCodes.NETWORK_UNREACHABLE),
        (2003, ConnectionError, ErrorCodes.CONNECTION_REFUSED),
    ])
    async def test_open_failures(self, mysql_config, mysql_code, error_type, code):
        error = aiomysql.OperationalError(mysql_code, "server said no")

        with patch("aiomysql.connect", AsyncMock(side_effect=error)):
            with pytest.raises(error_type) as exc_info:
                await AiomysqlConnector().open(mysql_config)

        assert exc_info.value.code == code

    @pytest.mark.asyncio
    async def test_open_timeout(self, mysql_config):
        with patch("aiomysql.connect", AsyncMock(side_effect=asyncio.TimeoutError())):
            with pytest.raises(ConnectionError) as exc_info:
                await AiomysqlConnector(connect_timeout=2.0).open(mysql_config)

        assert exc_info.value.code == ErrorCodes.CONNECTION_TIMEOUT

    @pytest.mark.asyncio
    async def test_exec_select(self):
        cursor = MockCursor(
            description=[("id", FIELD_TYPE.LONG, None, 11, 11, 0, False),
                         ("name", FIELD_TYPE.VAR_STRING, None, 255, 255, 0, True)],
            rows=[(1, "ada")],
        )
        handle = MagicMock()
        handle.cursor.return_value = cursor

        result = await AiomysqlConnector().exec(handle, "SELECT id, name FROM users WHERE id = %s", [1])

        assert [(c.name, c.type_name) for c in result.columns] == [("id", "long"), ("name", "var_string")]
        assert result.rows == [(1, "ada")]
        cursor.execute.assert_awaited_once_with("SELECT id, name FROM users WHERE id = %s", (1,))

    @pytest.mark.asyncio
    async def test_exec_dml(self):
        cursor = MockCursor(rowcount=4)
        handle = MagicMock()
        handle.cursor.return_value = cursor

        result = await AiomysqlConnector().exec(handle, "DELETE FROM sessions", [])

        assert result.affected_rows == 4
        cursor.execute.assert_awaited_once_with("DELETE FROM sessions", None)

    @pytest.mark.asyncio
    async def test_close(self):
        handle = MagicMock()

        await AiomysqlConnector().close(handle)

        handle.close.assert_called_once_with()

    def test_field_type_names(self):
        assert FIELD_TYPE_NAMES[FIELD_TYPE.TINY] == "tiny"
        assert FIELD_TYPE_NAMES[FIELD_TYPE.NEWDECIMAL] == "newdecimal"
        assert FIELD_TYPE_NAMES[FIELD_TYPE.JSON] == "json"


class TestDBAPIConnector:
    """Test suite for the DB-API adapter, exercised against sqlite3."""

    @pytest.fixture
    def connector(self):
        return DBAPIConnector(
            sqlite3.connect,
            connect_kwargs_builder=lambda config: {"database": ":memory:", "check_same_thread": False},
        )

    @pytest.fixture
    def config(self):
        return DatabaseConfig(type="informix", host="ifx01", dbname="stores")

    @pytest.mark.asyncio
    async def test_round_trip(self, connector, config):
        handle = await connector.open(config)
        try:
            created = await connector.exec(handle, "CREATE TABLE items (id INTEGER, label TEXT)", [])
            inserted = await connector.exec(handle, "INSERT INTO items VALUES (?, ?)", [1, "bolt"])
            selected = await connector.exec(handle, "SELECT id, label FROM items", [])
        finally:
            await connector.close(handle)

        assert created.columns == []
        assert inserted.affected_rows == 1
        assert [c.name for c in selected.columns] == ["id", "label"]
        assert selected.rows == [(1, "bolt")]

    @pytest.mark.asyncio
    async def test_open_failure(self, config):
        connect = MagicMock(side_effect=RuntimeError("no listener"))

        with pytest.raises(ConnectionError) as exc_info:
            await DBAPIConnector(connect).open(config)

        assert exc_info.value.code == ErrorCodes.CONNECTION_REFUSED
        assert exc_info.value.context["platform"] == "informix"
        assert "no listener" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_cursor_closed_after_error(self, config):
        cursor = MagicMock()
        cursor.execute.side_effect = RuntimeError("syntax error")
        handle = MagicMock()
        handle.cursor.return_value = cursor

        with pytest.raises(RuntimeError):
            await DBAPIConnector(MagicMock()).exec(handle, "SELEC 1", [])

        cursor.close.assert_called_once_with()

    def test_default_connect_kwargs(self):
        config = DatabaseConfig(
            type="hana", host="hana01", port=30015, dbname="HXE", user="SYSTEM",
            password="pw", options={"encrypt": True},
        )

        assert default_connect_kwargs(config) == {
            "host": "hana01",
            "port": 30015,
            "database": "HXE",
            "user": "SYSTEM",
            "password": "pw",
            "encrypt": True,
        }

    @pytest.mark.parametrize("type_code,expected", [
        ("VARCHAR", "VARCHAR"),
        (37, 37),
        (None, None),
        (SimpleNamespace(name="DB_TYPE_NUMBER"), "number"),
        (str, "str"),
        (object(), None),
    ])
    def test_type_name_of(self, type_code, expected):
        assert type_name_of(type_code) == expected
