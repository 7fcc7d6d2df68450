"""Adapter from any PEP 249 driver to the NativeConnector protocol.

The remaining engines ship blocking DB-API drivers (``oracledb``,
``pyodbc``, ``ibm_db_dbi``, ``hdbcli.dbapi``, ``firebird.driver``,
``nzpy``). ``DBAPIConnector`` runs every blocking call in a worker thread.

Example:
    >>> import oracledb
    >>> connector = DBAPIConnector(
    ...     oracledb.connect,
    ...     connect_kwargs_builder=lambda c: {
    ...         "user": c.user,
    ...         "password": c.password.get_secret_value(),
    ...         "dsn": f"{c.host}:{c.port}/{c.database}",
    ...     },
    ... )
    >>> inspector = create_inspector("oracle", connector)
"""

import asyncio
from typing import Any, Callable, Dict, Optional, Sequence, Union

from ...config.models import DatabaseConfig
from ...core.exceptions import ConnectionError, ErrorCodes
from ...core.protocols import NativeColumn, NativeResult
from ...logging import get_logger

KwargsBuilder = Callable[[DatabaseConfig], Dict[str, Any]]


def default_connect_kwargs(config: DatabaseConfig) -> Dict[str, Any]:
    """Common keyword spelling; drivers that differ need a custom builder."""
    return {
        "host": config.host,
        "port": config.port,
        "database": config.database,
        "user": config.user,
        "password": config.password.get_secret_value(),
        **config.options,
    }


def type_name_of(type_code: Any) -> Optional[Union[str, int]]:
    """Best-effort native type name from a ``cursor.description`` type code.

    Strings and integer codes pass through. Driver type objects are reduced
    to their name, dropping ``DB_TYPE_`` style prefixes.
    """
    if type_code is None or isinstance(type_code, (str, int)):
        return type_code
    name = getattr(type_code, "name", None) or getattr(type_code, "__name__", None)
    if not isinstance(name, str):
        return None
    name = name.lower()
    if name.startswith("db_type_"):
        name = name[len("db_type_"):]
    return name


class DBAPIConnector:
    """NativeConnector over a blocking DB-API ``connect`` callable.

    Args:
        connect_callable: The driver's ``connect`` function
        connect_kwargs_builder: Maps a DatabaseConfig to ``connect`` keywords
    """

    def __init__(
        self,
        connect_callable: Callable[..., Any],
        *,
        connect_kwargs_builder: Optional[KwargsBuilder] = None,
    ) -> None:
        self.connect_callable = connect_callable
        self.connect_kwargs_builder = connect_kwargs_builder or default_connect_kwargs
        self.logger = get_logger("connector.dbapi")

    async def open(self, config: DatabaseConfig) -> Any:
        kwargs = self.connect_kwargs_builder(config)
        try:
            return await asyncio.to_thread(self.connect_callable, **kwargs)
        except Exception as e:
            raise ConnectionError(
                f"Failed to connect to {config.platform}: {e}",
                code=ErrorCodes.CONNECTION_REFUSED,
                context={
                    "platform": config.platform,
                    "host": config.host,
                    "port": config.port,
                    "database": config.database,
                },
                cause=e,
            ) from e

    async def close(self, handle: Any) -> None:
        await asyncio.to_thread(handle.close)

    async def exec(self, handle: Any, sql: str, params: Sequence[Any]) -> NativeResult:
        return await asyncio.to_thread(self._exec, handle, sql, params)

    @staticmethod
    def _exec(handle: Any, sql: str, params: Sequence[Any]) -> NativeResult:
        cursor = handle.cursor()
        try:
            if params:
                cursor.execute(sql, tuple(params))
            else:
                cursor.execute(sql)

            rowcount = getattr(cursor, "rowcount", -1)
            affected = rowcount if isinstance(rowcount, int) and rowcount >= 0 else None
            if cursor.description is None:
                return NativeResult(affected_rows=affected)

            columns = [
                NativeColumn(description[0], type_name_of(description[1]))
                for description in cursor.description
            ]
            return NativeResult(
                columns=columns,
                rows=[tuple(row) for row in cursor.fetchall()],
            )
        finally:
            cursor.close()
