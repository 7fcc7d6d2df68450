"""
dbinspector database layer.

One generic ``DatabaseInspector`` serves every supported engine. Engines
differ only in data: a ``Dialect`` (row limiting, transaction statements,
quoting, catalog queries), a ``TypeNormalizer`` table, and the injected
``NativeConnector``.

Supported Platforms:
- PostgreSQL (asyncpg)
- MySQL/MariaDB (aiomysql)
- Oracle, SQL Server, DB2, SAP HANA, Sybase ASE, Netezza, Informix,
  Firebird (any DB-API driver through ``DBAPIConnector``)
"""

from .assembler import MetadataAssembler
from .base import DatabaseInspector
from .catalog import CatalogQueries, CatalogQuery
from .connection import Connection, generate_connection_id
from .dialects import DIALECTS, Dialect, LimitStyle, ParamStyle, get_dialect, list_dialects
from .factory import (
    DatabaseInspectorFactory,
    create_inspector,
    create_inspector_from_dict,
    get_supported_platforms,
    is_platform_supported,
)
from .models import (
    CanonicalType,
    Cell,
    ColumnDescriptor,
    ColumnMetadata,
    ConnectionState,
    ConnectionTestResult,
    ConstraintInfo,
    ConstraintKind,
    DatabaseInfo,
    InspectionOptions,
    PoolMetrics,
    QueryOptions,
    QueryResult,
    Row,
    TableInfo,
    TableType,
)
from .normalizer import (
    NormalizedType,
    ParsedType,
    TypeNormalizer,
    normalize_type,
    parse_type_string,
    to_canonical_type_string,
)
from .pool import ConnectionPool, PooledConnection
from .registry import (
    ConnectionRegistry,
    DatabaseInspectorRegistry,
    get_global_registry,
    register_platform,
    resolve_platform,
)

__all__ = [
    # Models
    "CanonicalType",
    "Cell",
    "ColumnDescriptor",
    "ColumnMetadata",
    "ConnectionState",
    "ConnectionTestResult",
    "ConstraintInfo",
    "ConstraintKind",
    "DatabaseInfo",
    "InspectionOptions",
    "PoolMetrics",
    "QueryOptions",
    "QueryResult",
    "Row",
    "TableInfo",
    "TableType",
    # Normalization
    "NormalizedType",
    "ParsedType",
    "TypeNormalizer",
    "normalize_type",
    "parse_type_string",
    "to_canonical_type_string",
    # Dialects
    "DIALECTS",
    "CatalogQueries",
    "CatalogQuery",
    "Dialect",
    "LimitStyle",
    "ParamStyle",
    "get_dialect",
    "list_dialects",
    # Core classes
    "Connection",
    "ConnectionPool",
    "DatabaseInspector",
    "MetadataAssembler",
    "PooledConnection",
    "generate_connection_id",
    # Registry and factory
    "ConnectionRegistry",
    "DatabaseInspectorFactory",
    "DatabaseInspectorRegistry",
    "create_inspector",
    "create_inspector_from_dict",
    "get_global_registry",
    "get_supported_platforms",
    "is_platform_supported",
    "register_platform",
    "resolve_platform",
]
