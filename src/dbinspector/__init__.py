"""dbinspector - Unified inspector layer for relational database engines.

dbinspector connects to PostgreSQL, MySQL, Oracle, SQL Server, DB2,
SAP HANA, Sybase, Netezza, Informix and Firebird through one interface
and returns engine-independent metadata.

Modules:
    core: Exceptions, component base classes and collaborator protocols
    config: Configuration models
    logging: Structured logging framework
    database: Inspectors, dialects, pooling and type normalization

Example:
    >>> from dbinspector.config import DatabaseConfig
    >>> from dbinspector.database import create_inspector
    >>>
    >>> inspector = create_inspector("postgres")
    >>> async with inspector:
    ...     connection = await inspector.connect(
    ...         DatabaseConfig(type="postgres", host="localhost", dbname="orders", user="app")
    ...     )
    ...     for table in await inspector.get_tables(connection):
    ...         print(table.qualified_name, [c.type_string for c in table.columns])
    ...     await inspector.disconnect(connection)
"""

from . import config, core, database, logging

__version__ = "1.0.0"
__title__ = "dbinspector"
__description__ = "Database inspector abstraction and metadata normalization layer"

__all__ = [
    "config",
    "core",
    "database",
    "logging",
    "__version__",
    "__title__",
    "__description__",
]
