"""PostgreSQL native connector backed by asyncpg."""

import asyncio
import re
from typing import Any, Optional, Sequence

import asyncpg

from ...config.models import DatabaseConfig
from ...core.exceptions import AuthenticationError, ConnectionError, ErrorCodes, NetworkError
from ...core.protocols import NativeColumn, NativeResult
from ...core.utils import StringUtils
from ...logging import get_logger

# Statements asyncpg cannot describe usefully; run them through the simple protocol.
_STATUS_ONLY = {"BEGIN", "START", "COMMIT", "END", "ROLLBACK", "ABORT", "SAVEPOINT", "RELEASE", "SET"}
_STATUS_COUNT = re.compile(r"(\d+)\s*$")


def _affected_rows(status: Optional[str]) -> Optional[int]:
    """Row count from a command tag such as ``UPDATE 3`` or ``INSERT 0 1``."""
    if not status:
        return None
    verb = status.split(" ", 1)[0]
    if verb not in ("INSERT", "UPDATE", "DELETE", "MERGE", "COPY", "SELECT", "MOVE", "FETCH"):
        return None
    match = _STATUS_COUNT.search(status)
    return int(match.group(1)) if match else None


class AsyncpgConnector:
    """Opens asyncpg connections and runs statements on them.

    Column types come from the prepared statement, so empty result sets are
    still described.

    Args:
        connect_timeout: Seconds allowed for the connection handshake
        command_timeout: Default asyncpg statement timeout
    """

    platform = "postgresql"

    def __init__(self, *, connect_timeout: float = 10.0, command_timeout: Optional[float] = None) -> None:
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout
        self.logger = get_logger("connector.postgresql")

    async def open(self, config: DatabaseConfig) -> asyncpg.Connection:
        context = {"host": config.host, "port": config.port, "database": config.database}
        try:
            return await asyncpg.connect(
                host=config.host,
                port=config.port,
                database=config.database,
                user=config.user or None,
                password=config.password.get_secret_value() or None,
                timeout=self.connect_timeout,
                command_timeout=self.command_timeout,
                **config.options,
            )
        except asyncpg.InvalidAuthorizationSpecificationError as e:
            raise AuthenticationError(
                f"PostgreSQL authentication failed: {e}",
                code=ErrorCodes.AUTH_FAILED,
                context=context,
                cause=e,
            ) from e
        except asyncio.TimeoutError as e:
            raise ConnectionError(
                f"PostgreSQL connection timeout after {self.connect_timeout}s",
                code=ErrorCodes.CONNECTION_TIMEOUT,
                context=context,
                cause=e,
            ) from e
        except ConnectionRefusedError as e:
            raise ConnectionError(
                f"PostgreSQL connection refused: {e}",
                code=ErrorCodes.CONNECTION_REFUSED,
                context=context,
                cause=e,
            ) from e
        except OSError as e:
            raise NetworkError(
                f"PostgreSQL host unreachable: {e}",
                code=ErrorCodes.NETWORK_UNREACHABLE,
                context=context,
                cause=e,
            ) from e

    async def close(self, handle: asyncpg.Connection) -> None:
        await handle.close()

    async def exec(self, handle: asyncpg.Connection, sql: str, params: Sequence[Any]) -> NativeResult:
        if StringUtils.leading_keyword(sql) in _STATUS_ONLY:
            status = await handle.execute(sql, *params)
            return NativeResult(affected_rows=_affected_rows(status))

        statement = await handle.prepare(sql)
        columns = [
            NativeColumn(attribute.name, attribute.type.name)
            for attribute in statement.get_attributes()
        ]
        if not columns:
            status = await handle.execute(sql, *params)
            return NativeResult(affected_rows=_affected_rows(status))

        records = await statement.fetch(*params)
        return NativeResult(
            columns=columns,
            rows=[tuple(record.values()) for record in records],
            affected_rows=_affected_rows(statement.get_statusmsg()),
        )
