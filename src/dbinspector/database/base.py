"""
Generic database inspector.

One ``DatabaseInspector`` class serves every engine: the engine-specific
parts are the injected ``NativeConnector``, the ``Dialect`` (SQL syntax and
catalog queries) and the ``TypeNormalizer``. Operations return only the
canonical models from ``database.models``; driver objects never cross this
boundary.

Error boundary:
    - ``connect``, ``get_tables``, ``get_table_constraints``,
      ``get_database_info`` and ``execute_transaction`` raise.
    - ``execute_query`` and ``test_connection`` return structured results.
    - ``NotConnected`` is raised by every operation on a dead handle.
"""

import asyncio
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..config.models import DatabaseConfig, InspectorConfig
from ..core import AsyncComponent
from ..core.exceptions import (
    ConfigurationError,
    ErrorCodes,
    InspectorException,
    MetadataError,
    NotConnected,
    QueryError,
    TransactionAborted,
    create_error_from_exception,
)
from ..core.protocols import NativeConnector, NativeResult
from ..core.utils import StringUtils
from ..logging import get_logger, get_performance_logger
from .assembler import MetadataAssembler, field_value
from .catalog import CatalogQuery
from .connection import Connection
from .dialects import Dialect, get_dialect
from .models import (
    CanonicalType,
    Cell,
    ColumnDescriptor,
    ConnectionState,
    ConnectionTestResult,
    ConstraintInfo,
    DatabaseInfo,
    InspectionOptions,
    PoolMetrics,
    QueryOptions,
    QueryResult,
    Row,
    Statement,
    TableInfo,
    TableType,
)
from .normalizer import TypeNormalizer, infer_canonical_type
from .pool import ConnectionPool


class DatabaseInspector(AsyncComponent[InspectorConfig]):
    """Inspector adapter for one engine.

    Pools are created lazily, one per distinct ``DatabaseConfig.pool_key``,
    on the first ``connect`` for that target; ``cleanup`` drains them all.

    Example:
        >>> inspector = DatabaseInspector(InspectorConfig(platform="postgresql"), AsyncpgConnector())
        >>> async with inspector:
        ...     connection = await inspector.connect(config)
        ...     tables = await inspector.get_tables(connection)
        ...     await inspector.disconnect(connection)
    """

    component_name = "DatabaseInspector"
    version = "1.0.0"

    def __init__(
        self,
        config: InspectorConfig,
        connector: NativeConnector,
        *,
        dialect: Optional[Dialect] = None,
        normalizer: Optional[TypeNormalizer] = None,
    ) -> None:
        super().__init__(config)
        if not isinstance(connector, NativeConnector):
            raise ConfigurationError(
                f"Connector {type(connector).__name__} does not implement open/close/exec",
                code=ErrorCodes.CONFIG_INVALID,
                context={"platform": config.platform},
            )

        self.connector = connector
        self.dialect = dialect or get_dialect(config.platform)
        self.platform = self.dialect.platform
        self.normalizer = normalizer or TypeNormalizer(
            self.platform, signed_scale=self.dialect.signed_scale
        )
        self.assembler = MetadataAssembler(self.normalizer)

        self.logger = get_logger(f"inspector.{self.platform}")
        self.perf_logger = get_performance_logger(f"inspector.{self.platform}")

        self._pools: Dict[Tuple[Any, ...], ConnectionPool] = {}
        self._pools_lock = asyncio.Lock()
        self._connections: Dict[str, Connection] = {}

    async def _async_initialize(self) -> None:
        self.logger.info("Inspector ready", platform=self.platform, dialect=self.dialect.display_name)

    async def _async_cleanup(self) -> None:
        for connection in list(self._connections.values()):
            await self.disconnect(connection)

        pools, self._pools = list(self._pools.values()), {}
        for pool in pools:
            await pool.drain()
        self.logger.info("Inspector pools drained", pools=len(pools))

    # Configuration helpers

    def _prepare_config(self, config: DatabaseConfig) -> DatabaseConfig:
        if config.platform != self.platform:
            raise ConfigurationError(
                f"Inspector for {self.platform} cannot open {config.platform} targets",
                code=ErrorCodes.CONFIG_INVALID,
                context={"expected": self.platform, "received": config.platform},
            )
        if config.port is None:
            return config.model_copy(update={"port": self.dialect.default_port})
        return config

    def resolve_default_schema(self, config: DatabaseConfig) -> str:
        """Configured schema, then the inspector default, then the dialect default."""
        if config.schema_name:
            return config.schema_name
        if self.config.default_schema:
            return self.config.default_schema
        return self.dialect.resolve_default_schema(config)

    def _resolve_options(self, options: Optional[InspectionOptions]) -> InspectionOptions:
        options = options or InspectionOptions()
        return InspectionOptions(
            schema=options.schema,
            include_views=(
                self.config.include_views if options.include_views is None else options.include_views
            ),
            include_system_tables=(
                self.config.include_system_tables
                if options.include_system_tables is None
                else options.include_system_tables
            ),
            include_constraints=(
                self.config.include_constraints
                if options.include_constraints is None
                else options.include_constraints
            ),
            table_types=options.table_types,
        )

    async def _pool_for(self, config: DatabaseConfig) -> ConnectionPool:
        async with self._pools_lock:
            pool = self._pools.get(config.pool_key)
            if pool is None:
                pool = ConnectionPool(
                    self.connector,
                    config,
                    self.config.pool or config.pool_config(),
                    validation_query=self.dialect.validation_query,
                )
                pool.start()
                self._pools[config.pool_key] = pool
            return pool

    # Connection lifecycle

    async def connect(self, config: DatabaseConfig) -> Connection:
        """Open a connection to ``config``.

        Raises:
            ConnectionError: The target refused, was unreachable or rejected the login
            PoolExhausted: Every pooled connection stayed borrowed past the acquire timeout
        """
        await self.initialize()
        config = self._prepare_config(config)
        pool = await self._pool_for(config)

        connection = Connection(config, pool, default_schema=self.resolve_default_schema(config))
        connection.transition(ConnectionState.CONNECTING)
        self.logger.info("Connecting", connection_id=connection.connection_id, target=config.to_dict())

        try:
            with self.perf_logger.measure("connect", host=config.host, database=config.database):
                pooled = await pool.acquire()
        except InspectorException as e:
            connection.transition(ConnectionState.FAILED)
            self.logger.error(
                "Connection failed",
                connection_id=connection.connection_id,
                code=e.code,
                error=e.message,
            )
            raise

        connection.attach(pooled)
        self._connections[connection.connection_id] = connection
        self.logger.info(
            "Connected",
            connection_id=connection.connection_id,
            default_schema=connection.default_schema,
        )
        return connection

    async def disconnect(self, connection: Connection) -> None:
        """Return the connection's session to its pool. Calling twice is a no-op."""
        if connection.state not in (ConnectionState.CONNECTED, ConnectionState.FAILED):
            return

        connection.transition(ConnectionState.DISCONNECTED)
        self._connections.pop(connection.connection_id, None)
        pooled = connection.detach()
        if pooled is not None:
            await connection.pool.release(pooled)

        self.logger.info(
            "Disconnected",
            connection_id=connection.connection_id,
            suspect=pooled.is_suspect if pooled else False,
        )

    async def test_connection(self, config: DatabaseConfig) -> ConnectionTestResult:
        """Open a short-lived session, query the version, and always close it.

        Never raises; failures are reported in the result.
        """
        started = time.perf_counter()
        handle = None
        try:
            target = self._prepare_config(config)
            handle = await self.connector.open(target)
            native = await self._with_timeout(
                self.connector.exec(handle, self.dialect.catalog.version.sql, []),
                self.config.query_timeout,
            )
            rows = self._tag(native)[1]
            version = str(rows[0].cells[0].value) if rows and rows[0].cells else None
            return ConnectionTestResult(
                success=True,
                version=version,
                latency_ms=(time.perf_counter() - started) * 1000,
            )
        except Exception as e:
            error = create_error_from_exception(
                e, context={"operation": "test_connection", "platform": self.platform}
            )
            self.logger.warning("Connection test failed", code=error.code, error=error.message)
            return ConnectionTestResult(
                success=False,
                error=error.message,
                latency_ms=(time.perf_counter() - started) * 1000,
            )
        finally:
            if handle is not None:
                try:
                    await self.connector.close(handle)
                except Exception as e:
                    self.logger.warning("Error closing test connection", error=str(e))

    # Statement execution

    @staticmethod
    async def _with_timeout(awaitable: Any, timeout: Optional[float]) -> Any:
        if timeout:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        return await awaitable

    async def _run(
        self,
        connection: Connection,
        sql: str,
        params: Sequence[Any] = (),
        *,
        timeout: Optional[float] = None,
        operation: str = "execute_query",
        locked: bool = False,
    ) -> NativeResult:
        """Execute one statement, wrapping native failures as QueryError.

        A timed-out statement marks the connection suspect.
        """
        if locked:
            return await self._exec(connection, sql, params, timeout, operation)
        async with connection.lock:
            return await self._exec(connection, sql, params, timeout, operation)

    async def _exec(
        self,
        connection: Connection,
        sql: str,
        params: Sequence[Any],
        timeout: Optional[float],
        operation: str,
    ) -> NativeResult:
        handle = connection.ensure_connected(operation)
        limit = timeout if timeout is not None else self.config.query_timeout
        context = {
            "operation": operation,
            "platform": self.platform,
            "connection_id": connection.connection_id,
            "sql": StringUtils.truncate_string(sql.strip(), 200),
        }
        try:
            return await self._with_timeout(self.connector.exec(handle, sql, list(params)), limit)
        except asyncio.TimeoutError as e:
            connection.mark_suspect()
            raise QueryError(
                f"Statement timed out after {limit}s",
                code=ErrorCodes.QUERY_TIMEOUT,
                context=context,
                cause=e,
            ) from e
        except InspectorException:
            raise
        except Exception as e:
            raise QueryError(
                str(e) or e.__class__.__name__,
                code=ErrorCodes.QUERY_EXECUTION_FAILED,
                context=context,
                cause=e,
            ) from e

    def _tag(self, native: NativeResult) -> Tuple[List[ColumnDescriptor], List[Row]]:
        """Convert a native result into column descriptors and tagged rows."""
        names = [column.name for column in native.columns]
        if not names and native.rows and isinstance(native.rows[0], Mapping):
            names = list(native.rows[0].keys())

        matrix = [
            [raw.get(name) for name in names] if isinstance(raw, Mapping) else list(raw)
            for raw in native.rows
        ]

        descriptors: List[ColumnDescriptor] = []
        for index, name in enumerate(names):
            type_name = native.columns[index].type_name if index < len(native.columns) else None
            canonical = self.normalizer.normalize_type(type_name)
            if canonical is CanonicalType.UNKNOWN:
                sample = next(
                    (values[index] for values in matrix if index < len(values) and values[index] is not None),
                    None,
                )
                canonical = infer_canonical_type(sample)
            descriptors.append(ColumnDescriptor(
                name=name,
                canonical_type=canonical,
                native_type=self.normalizer.native_name(type_name) or None,
            ))

        rows = [
            Row(
                Cell(descriptor.name, descriptor.canonical_type, values[index] if index < len(values) else None)
                for index, descriptor in enumerate(descriptors)
            )
            for values in matrix
        ]
        return descriptors, rows

    def _build_result(self, native: NativeResult, sql: str, elapsed_ms: float) -> QueryResult:
        columns, rows = self._tag(native)
        return QueryResult(
            success=True,
            rows=rows,
            row_count=len(rows),
            columns=columns,
            execution_time=elapsed_ms,
            affected_rows=native.affected_rows,
            command=StringUtils.leading_keyword(sql) or None,
            sql=sql,
        )

    async def execute_query(
        self,
        connection: Connection,
        sql: str,
        options: Optional[QueryOptions] = None,
    ) -> QueryResult:
        """Execute one statement.

        Failures are captured in ``QueryResult.error``; only ``NotConnected``
        is raised.
        """
        options = options or QueryOptions()
        connection.ensure_connected("execute_query")

        final_sql = self.dialect.apply_row_limit(sql, options.max_rows)
        started = time.perf_counter()
        try:
            native = await self._run(
                connection,
                final_sql,
                options.params,
                timeout=options.timeout,
                operation="execute_query",
            )
        except NotConnected:
            raise
        except InspectorException as e:
            elapsed = (time.perf_counter() - started) * 1000
            self.perf_logger.record_timing("execute_query", elapsed / 1000, success=False, error=e.code)
            self.logger.warning(
                "Query failed",
                connection_id=connection.connection_id,
                code=e.code,
                error=e.message,
            )
            return QueryResult.failure(
                e.message,
                sql=final_sql,
                execution_time=elapsed,
                command=StringUtils.leading_keyword(final_sql) or None,
            )

        elapsed = (time.perf_counter() - started) * 1000
        self.perf_logger.record_timing("execute_query", elapsed / 1000)
        return self._build_result(native, final_sql, elapsed)

    @staticmethod
    def _split_statement(statement: Statement) -> Tuple[str, Sequence[Any]]:
        if isinstance(statement, str):
            return statement, ()
        sql, params = statement
        return sql, params

    @staticmethod
    def _as_query_error(error: InspectorException) -> QueryError:
        if isinstance(error, QueryError):
            return error
        return QueryError(error.message, code=error.code, context=error.context, cause=error)

    async def _rollback(self, connection: Connection) -> None:
        try:
            await self._run(
                connection,
                self.dialect.rollback_statement(),
                operation="rollback",
                locked=True,
            )
        except InspectorException as e:
            self.logger.warning(
                "Rollback failed",
                connection_id=connection.connection_id,
                code=ErrorCodes.ROLLBACK_FAILED,
                error=e.message,
            )

    async def execute_transaction(
        self,
        connection: Connection,
        statements: Sequence[Statement],
    ) -> List[QueryResult]:
        """Run statements in order between BEGIN and COMMIT.

        Raises:
            TransactionAborted: A statement failed; the transaction was rolled
                back and later statements were not run. ``results`` holds
                the successes followed by the failing statement's result.
            NotConnected: The connection is not live
        """
        connection.ensure_connected("execute_transaction")
        results: List[QueryResult] = []
        context = {"platform": self.platform, "connection_id": connection.connection_id}

        async with connection.lock:
            try:
                await self._run(connection, self.dialect.begin_statement(), operation="begin", locked=True)
            except NotConnected:
                raise
            except InspectorException as e:
                raise TransactionAborted(
                    f"Failed to begin transaction: {e.message}",
                    query_error=self._as_query_error(e),
                    results=results,
                    context=context,
                ) from e

            for index, statement in enumerate(statements):
                sql, params = self._split_statement(statement)
                started = time.perf_counter()
                try:
                    native = await self._run(
                        connection, sql, params, operation="execute_transaction", locked=True
                    )
                except NotConnected:
                    raise
                except InspectorException as e:
                    elapsed = (time.perf_counter() - started) * 1000
                    results.append(QueryResult.failure(
                        e.message,
                        sql=sql,
                        execution_time=elapsed,
                        command=StringUtils.leading_keyword(sql) or None,
                    ))
                    self.logger.warning(
                        "Transaction statement failed, rolling back",
                        connection_id=connection.connection_id,
                        statement_index=index,
                        error=e.message,
                    )
                    await self._rollback(connection)
                    raise TransactionAborted(
                        f"Transaction aborted at statement {index}: {e.message}",
                        statement_index=index,
                        query_error=self._as_query_error(e),
                        results=results,
                        context={**context, "statement_index": index},
                    ) from e
                results.append(self._build_result(native, sql, (time.perf_counter() - started) * 1000))

            try:
                await self._run(connection, self.dialect.commit_statement(), operation="commit", locked=True)
            except NotConnected:
                raise
            except InspectorException as e:
                await self._rollback(connection)
                raise TransactionAborted(
                    f"Failed to commit transaction: {e.message}",
                    query_error=self._as_query_error(e),
                    results=results,
                    context=context,
                ) from e

        self.logger.debug(
            "Transaction committed",
            connection_id=connection.connection_id,
            statements=len(results),
        )
        return results

    # Catalog introspection

    async def _catalog(
        self,
        connection: Connection,
        query: CatalogQuery,
        operation: str,
        **values: Any,
    ) -> List[Row]:
        sql = query.render(self.dialect.placeholder)
        native = await self._run(connection, sql, query.bind(**values), operation=operation)
        return self._tag(native)[1]

    async def get_schemas(self, connection: Connection) -> List[str]:
        """List user schemas; never empty, falling back to the default schema."""
        connection.ensure_connected("get_schemas")
        fallback = [connection.default_schema]
        query = self.dialect.catalog.schemas
        if query is None:
            return fallback

        try:
            records = await self._catalog(connection, query, "get_schemas")
        except NotConnected:
            raise
        except InspectorException as e:
            self.logger.warning(
                "Schema query failed, using default schema",
                schema=connection.default_schema,
                error=e.message,
            )
            return fallback

        schemas = []
        for record in records:
            name = field_value(record, "schema_name")
            if name is None:
                continue
            name = str(name).strip()
            if name and not self.dialect.is_system_schema(name):
                schemas.append(name)

        if not schemas:
            self.logger.warning("Schema query returned no schemas, using default schema",
                                schema=connection.default_schema)
            return fallback
        return schemas

    def _keep_table(self, table: TableInfo, options: InspectionOptions) -> bool:
        if options.table_types is not None and table.table_type not in options.table_types:
            return False
        if not options.include_system_tables and (
            table.table_type is TableType.SYSTEM_TABLE or self.dialect.is_system_schema(table.schema_name)
        ):
            return False
        if not options.include_views and table.table_type is TableType.VIEW:
            return False
        return True

    async def get_tables(
        self,
        connection: Connection,
        options: Optional[InspectionOptions] = None,
    ) -> List[TableInfo]:
        """List tables and views of one schema with fully populated columns.

        Raises:
            MetadataError: The table listing itself failed
            NotConnected: The connection is not live
        """
        connection.ensure_connected("get_tables")
        resolved = self._resolve_options(options)
        schema = resolved.schema or connection.default_schema

        with self.perf_logger.measure("get_tables", schema=schema):
            try:
                records = await self._catalog(
                    connection, self.dialect.catalog.tables, "get_tables", schema=schema
                )
            except NotConnected:
                raise
            except InspectorException as e:
                raise MetadataError(
                    f"Failed to list tables in schema {schema!r}: {e.message}",
                    code=ErrorCodes.METADATA_EXTRACTION_FAILED,
                    context={"operation": "get_tables", "platform": self.platform, "schema": schema},
                    cause=e,
                ) from e

            tables = [
                table
                for table in self.assembler.assemble_tables(records, default_schema=schema)
                if self._keep_table(table, resolved)
            ]
            await self.get_table_columns(connection, tables)
            if resolved.include_constraints:
                await self._apply_constraints(connection, tables)

        self.logger.info("Tables inspected", schema=schema, tables=len(tables))
        return tables

    async def get_table_columns(self, connection: Connection, tables: List[TableInfo]) -> List[TableInfo]:
        """Populate ``columns`` on each table in place.

        A table whose column query fails gets ``columns = []`` and a logged
        warning; the other tables are still processed.
        """
        connection.ensure_connected("get_table_columns")
        for table in tables:
            try:
                records = await self._catalog(
                    connection,
                    self.dialect.catalog.columns,
                    "get_table_columns",
                    schema=table.schema_name or connection.default_schema,
                    table=table.table_name,
                )
            except NotConnected:
                raise
            except InspectorException as e:
                self.logger.warning(
                    "Failed to fetch columns",
                    table=table.qualified_name,
                    code=e.code,
                    error=e.message,
                )
                table.columns = []
                continue
            table.columns = self.assembler.assemble_columns(records, table=table.qualified_name)
        return tables

    async def _apply_constraints(self, connection: Connection, tables: List[TableInfo]) -> None:
        for table in tables:
            if table.table_type is not TableType.TABLE:
                continue
            try:
                constraints = await self.get_table_constraints(
                    connection, table.schema_name, table.table_name
                )
            except MetadataError as e:
                self.logger.warning(
                    "Failed to apply key flags",
                    table=table.qualified_name,
                    error=e.message,
                )
                continue
            self.assembler.apply_key_flags(table, constraints)

    async def get_table_constraints(
        self,
        connection: Connection,
        schema: Optional[str],
        table: str,
    ) -> List[ConstraintInfo]:
        """List key and check constraints, one entry per constraint column.

        Raises:
            MetadataError: The constraint query failed
        """
        connection.ensure_connected("get_table_constraints")
        schema = schema or connection.default_schema
        try:
            records = await self._catalog(
                connection,
                self.dialect.catalog.constraints,
                "get_table_constraints",
                schema=schema,
                table=table,
            )
        except NotConnected:
            raise
        except InspectorException as e:
            raise MetadataError(
                f"Failed to read constraints of {table!r}: {e.message}",
                code=ErrorCodes.METADATA_EXTRACTION_FAILED,
                context={
                    "operation": "get_table_constraints",
                    "platform": self.platform,
                    "schema": schema,
                    "table": table,
                },
                cause=e,
            ) from e
        return self.assembler.assemble_constraints(records, schema=schema, table=table)

    async def get_database_info(self, connection: Connection) -> DatabaseInfo:
        """Server version, database name, and encoding and collation where the engine reports them.

        Raises:
            MetadataError: The info query failed
        """
        connection.ensure_connected("get_database_info")
        try:
            records = await self._catalog(connection, self.dialect.catalog.info, "get_database_info")
        except NotConnected:
            raise
        except InspectorException as e:
            raise MetadataError(
                f"Failed to read database info: {e.message}",
                code=ErrorCodes.METADATA_EXTRACTION_FAILED,
                context={"operation": "get_database_info", "platform": self.platform},
                cause=e,
            ) from e
        return self.assembler.assemble_database_info(
            records[0] if records else None,
            fallback_name=connection.config.database,
        )

    # Monitoring

    def pool_metrics(self, config: DatabaseConfig) -> PoolMetrics:
        """Snapshot of the pool serving ``config``; zeros when none exists yet."""
        config = self._prepare_config(config)
        pool = self._pools.get(config.pool_key)
        if pool is None:
            sizing = self.config.pool or config.pool_config()
            return PoolMetrics(total=0, available=0, pending=0, max_size=sizing.max_size)
        return pool.metrics()

    def get_health_status(self) -> Dict[str, Any]:
        status = super().get_health_status()
        status.update({
            "platform": self.platform,
            "active_connections": len(self._connections),
            "pools": [pool.get_stats() for pool in self._pools.values()],
            "performance": self.perf_logger.get_summary(),
        })
        return status

    def __repr__(self) -> str:
        return (
            f"DatabaseInspector(platform={self.platform!r}, "
            f"pools={len(self._pools)}, connections={len(self._connections)})"
        )
