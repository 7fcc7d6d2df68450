"""MySQL/MariaDB native connector backed by aiomysql."""

import asyncio
from typing import Any, Dict, Optional, Sequence

import aiomysql
from pymysql.constants import FIELD_TYPE

from ...config.models import DatabaseConfig
from ...core.exceptions import AuthenticationError, ConnectionError, ErrorCodes, NetworkError
from ...core.protocols import NativeColumn, NativeResult
from ...logging import get_logger

# CHAR and INTERVAL alias TINY and ENUM in the protocol constants.
FIELD_TYPE_NAMES: Dict[int, str] = {
    getattr(FIELD_TYPE, name): name.lower()
    for name in dir(FIELD_TYPE)
    if name.isupper() and name not in ("CHAR", "INTERVAL")
}

ACCESS_DENIED = 1045
CANNOT_CONNECT = 2003
UNKNOWN_HOST = 2005


class AiomysqlConnector:
    """Opens aiomysql connections in autocommit mode.

    Transactions are driven by explicit ``START TRANSACTION``/``COMMIT``
    statements issued by the inspector.
    """

    platform = "mysql"

    def __init__(self, *, connect_timeout: float = 10.0, charset: str = "utf8mb4") -> None:
        self.connect_timeout = connect_timeout
        self.charset = charset
        self.logger = get_logger("connector.mysql")

    async def open(self, config: DatabaseConfig) -> aiomysql.Connection:
        context = {"host": config.host, "port": config.port, "database": config.database}
        try:
            return await aiomysql.connect(
                host=config.host,
                port=config.port,
                db=config.database,
                user=config.user,
                password=config.password.get_secret_value(),
                charset=self.charset,
                autocommit=True,
                connect_timeout=self.connect_timeout,
                **config.options,
            )
        except aiomysql.OperationalError as e:
            error_code = e.args[0] if e.args else 0
            if error_code == ACCESS_DENIED:
                raise AuthenticationError(
                    f"MySQL authentication failed: {e}",
                    code=ErrorCodes.AUTH_FAILED,
                    context=context,
                    cause=e,
                ) from e
            if error_code == UNKNOWN_HOST:
                raise NetworkError(
                    f"MySQL host unknown: {e}",
                    code=ErrorCodes.NETWORK_UNREACHABLE,
                    context=context,
                    cause=e,
                ) from e
            raise ConnectionError(
                f"MySQL connection refused: {e}" if error_code == CANNOT_CONNECT else f"MySQL connection failed: {e}",
                code=ErrorCodes.CONNECTION_REFUSED,
                context={**context, "mysql_error": error_code},
                cause=e,
            ) from e
        except asyncio.TimeoutError as e:
            raise ConnectionError(
                f"MySQL connection timeout after {self.connect_timeout}s",
                code=ErrorCodes.CONNECTION_TIMEOUT,
                context=context,
                cause=e,
            ) from e

    async def close(self, handle: aiomysql.Connection) -> None:
        handle.close()

    async def exec(self, handle: aiomysql.Connection, sql: str, params: Sequence[Any]) -> NativeResult:
        async with handle.cursor() as cursor:
            await cursor.execute(sql, tuple(params) if params else None)
            if cursor.description is None:
                return NativeResult(affected_rows=_row_count(cursor.rowcount))

            columns = [
                NativeColumn(description[0], FIELD_TYPE_NAMES.get(description[1]))
                for description in cursor.description
            ]
            rows = await cursor.fetchall()
            return NativeResult(columns=columns, rows=[tuple(row) for row in rows])


def _row_count(count: Optional[int]) -> Optional[int]:
    return count if count is not None and count >= 0 else None
