"""SQL dialect rules per engine.

A ``Dialect`` is data: the row-limiting strategy, transaction statement
spellings, identifier quoting, placeholder style, default schema and the
catalog queries for one engine. The generic inspector never branches on
the engine tag; it asks its dialect.

Example:
    >>> get_dialect("postgresql").apply_row_limit("SELECT * FROM orders", 5)
    'SELECT * FROM orders LIMIT 5'
    >>> get_dialect("sqlserver").apply_row_limit("SELECT * FROM orders", 5)
    'SELECT TOP 5 * FROM orders'
    >>> get_dialect("postgresql").quote_identifier('a"b')
    '"a""b"'
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Pattern, Tuple

from .catalog import CATALOGS, CatalogQueries
from ..config.models import canonical_platform
from ..core.exceptions import ErrorCodes, UnsupportedPlatformError
from ..core.utils import StringUtils

if TYPE_CHECKING:
    from ..config.models import DatabaseConfig


class LimitStyle(str, Enum):
    """Where the row-limiting clause goes."""
    LIMIT = "limit"              # appended: LIMIT n
    FETCH_FIRST = "fetch_first"  # appended: FETCH FIRST n ROWS ONLY
    TOP = "top"                  # after SELECT [DISTINCT|ALL]: TOP n
    FIRST = "first"              # after SELECT, before DISTINCT: FIRST n


class SchemaSource(str, Enum):
    """Where the default schema comes from when none is configured."""
    FIXED = "fixed"
    DATABASE = "database"
    USER = "user"


class ParamStyle(str, Enum):
    NUMERIC_DOLLAR = "numeric_dollar"  # $1
    FORMAT = "format"                  # %s
    NUMERIC = "numeric"                # :1
    QMARK = "qmark"                    # ?


_SELECT_HEAD = re.compile(
    r"^(?P<head>\s*(?:--[^\n]*\n\s*|/\*.*?\*/\s*)*SELECT\b)(?P<quantifier>\s+(?:DISTINCT|ALL)\b)?",
    re.IGNORECASE | re.DOTALL,
)


def _keyword_pattern(keyword: str) -> Pattern[str]:
    words = r"\s+".join(re.escape(word) for word in keyword.split())
    return re.compile(rf"\b{words}\b", re.IGNORECASE)


@dataclass(frozen=True)
class Dialect:
    """SQL syntax differences of one engine.

    Attributes:
        platform: Canonical engine tag
        display_name: Human-readable engine name
        limit_style: Row-limit injection strategy
        limit_keywords: Keywords meaning the statement is already limited
        begin_sql: Statement opening a transaction
        commit_sql: Statement committing a transaction
        rollback_sql: Statement rolling a transaction back
        quote_open: Opening identifier quote
        quote_close: Closing identifier quote, doubled when embedded
        default_schema: Fixed default schema (``SchemaSource.FIXED``)
        schema_source: How the default schema is resolved
        system_schemas: Schemas hidden from listings, compared case-insensitively
        system_schema_prefixes: Prefixes hiding whole schema families
        validation_query: Trivial round trip used by test-on-borrow
        default_port: Port used when a config names none
        paramstyle: Placeholder style of the engine's driver
        signed_scale: Catalog scale is a signed exponent
        catalog: System-catalog queries
    """
    platform: str
    display_name: str
    limit_style: LimitStyle
    limit_keywords: Tuple[str, ...]
    begin_sql: str
    commit_sql: str
    rollback_sql: str
    quote_open: str
    quote_close: str
    default_schema: str
    schema_source: SchemaSource
    system_schemas: Tuple[str, ...]
    system_schema_prefixes: Tuple[str, ...]
    validation_query: str
    default_port: int
    paramstyle: ParamStyle
    catalog: CatalogQueries
    signed_scale: bool = False

    def is_select(self, sql: str) -> bool:
        return StringUtils.leading_keyword(sql) == "SELECT"

    def has_row_limit(self, sql: str) -> bool:
        return any(_keyword_pattern(keyword).search(sql) for keyword in self.limit_keywords)

    def apply_row_limit(self, sql: str, max_rows: Optional[int]) -> str:
        """Inject this engine's row-limiting clause into a SELECT.

        Statements that are not SELECTs, or already carry a limiting
        keyword, are returned unchanged, as is every statement when ``max_rows``
        is None, zero or negative. Applying twice equals applying once.
        """
        if not max_rows or max_rows < 0:
            return sql
        if not self.is_select(sql) or self.has_row_limit(sql):
            return sql

        n = int(max_rows)
        body = sql.strip().rstrip(";").rstrip()

        # A trailing line comment would swallow a clause appended on the same line.
        sep = "\n" if "--" in body.rsplit("\n", 1)[-1] else " "
        if self.limit_style is LimitStyle.LIMIT:
            return f"{body}{sep}LIMIT {n}"
        if self.limit_style is LimitStyle.FETCH_FIRST:
            return f"{body}{sep}FETCH FIRST {n} ROWS ONLY"

        match = _SELECT_HEAD.match(body)
        if match is None:
            return sql
        head, quantifier = match.group("head"), match.group("quantifier") or ""
        rest = body[match.end():]
        if self.limit_style is LimitStyle.TOP:
            return f"{head}{quantifier} TOP {n}{rest}"
        return f"{head} FIRST {n}{quantifier}{rest}"

    def begin_statement(self) -> str:
        return self.begin_sql

    def commit_statement(self) -> str:
        return self.commit_sql

    def rollback_statement(self) -> str:
        return self.rollback_sql

    def quote_identifier(self, name: str) -> str:
        """Quote an identifier, doubling any embedded closing quote."""
        escaped = str(name).replace(self.quote_close, self.quote_close * 2)
        return f"{self.quote_open}{escaped}{self.quote_close}"

    def qualify(self, *parts: Optional[str]) -> str:
        """Quote and dot-join name parts; empty parts are omitted.

        Example:
            >>> get_dialect("mysql").qualify("shop", "orders")
            '`shop`.`orders`'
        """
        return ".".join(self.quote_identifier(part) for part in parts if part)

    def placeholder(self, position: int) -> str:
        """Bind placeholder for a 1-based parameter position."""
        if self.paramstyle is ParamStyle.NUMERIC_DOLLAR:
            return f"${position}"
        if self.paramstyle is ParamStyle.NUMERIC:
            return f":{position}"
        if self.paramstyle is ParamStyle.FORMAT:
            return "%s"
        return "?"

    def resolve_default_schema(self, config: "DatabaseConfig") -> str:
        if self.schema_source is SchemaSource.DATABASE:
            return config.database
        if self.schema_source is SchemaSource.USER and config.user:
            return config.user.upper()
        return self.default_schema

    def is_system_schema(self, schema: Optional[str]) -> bool:
        if not schema:
            return False
        folded = schema.lower()
        if folded in (name.lower() for name in self.system_schemas):
            return True
        return any(folded.startswith(prefix.lower()) for prefix in self.system_schema_prefixes)


_ANSI_QUOTES = {"quote_open": '"', "quote_close": '"'}
_BRACKETS = {"quote_open": "[", "quote_close": "]"}

DIALECTS: Dict[str, Dialect] = {
    "postgresql": Dialect(
        platform="postgresql",
        display_name="PostgreSQL",
        limit_style=LimitStyle.LIMIT,
        limit_keywords=("LIMIT",),
        begin_sql="BEGIN",
        commit_sql="COMMIT",
        rollback_sql="ROLLBACK",
        default_schema="public",
        schema_source=SchemaSource.FIXED,
        system_schemas=("information_schema", "pg_catalog", "pg_toast"),
        system_schema_prefixes=(),
        validation_query="SELECT 1",
        default_port=5432,
        paramstyle=ParamStyle.NUMERIC_DOLLAR,
        catalog=CATALOGS["postgresql"],
        **_ANSI_QUOTES,
    ),
    "mysql": Dialect(
        platform="mysql",
        display_name="MySQL",
        limit_style=LimitStyle.LIMIT,
        limit_keywords=("LIMIT",),
        begin_sql="START TRANSACTION",
        commit_sql="COMMIT",
        rollback_sql="ROLLBACK",
        quote_open="`",
        quote_close="`",
        default_schema="",
        schema_source=SchemaSource.DATABASE,
        system_schemas=("information_schema", "mysql", "performance_schema", "sys"),
        system_schema_prefixes=(),
        validation_query="SELECT 1",
        default_port=3306,
        paramstyle=ParamStyle.FORMAT,
        catalog=CATALOGS["mysql"],
    ),
    "oracle": Dialect(
        platform="oracle",
        display_name="Oracle",
        limit_style=LimitStyle.FETCH_FIRST,
        limit_keywords=("FETCH FIRST", "FETCH NEXT", "ROWNUM"),
        begin_sql="SET TRANSACTION READ WRITE",
        commit_sql="COMMIT",
        rollback_sql="ROLLBACK",
        default_schema="",
        schema_source=SchemaSource.USER,
        system_schemas=("SYS", "SYSTEM", "XDB", "CTXSYS", "MDSYS", "OUTLN", "DBSNMP"),
        system_schema_prefixes=(),
        validation_query="SELECT 1 FROM DUAL",
        default_port=1521,
        paramstyle=ParamStyle.NUMERIC,
        catalog=CATALOGS["oracle"],
        **_ANSI_QUOTES,
    ),
    "sqlserver": Dialect(
        platform="sqlserver",
        display_name="SQL Server",
        limit_style=LimitStyle.TOP,
        limit_keywords=("TOP",),
        begin_sql="BEGIN TRANSACTION",
        commit_sql="COMMIT TRANSACTION",
        rollback_sql="ROLLBACK TRANSACTION",
        default_schema="dbo",
        schema_source=SchemaSource.FIXED,
        system_schemas=("sys", "INFORMATION_SCHEMA", "guest"),
        system_schema_prefixes=("db_",),
        validation_query="SELECT 1",
        default_port=1433,
        paramstyle=ParamStyle.QMARK,
        catalog=CATALOGS["sqlserver"],
        **_BRACKETS,
    ),
    "db2": Dialect(
        platform="db2",
        display_name="IBM DB2",
        limit_style=LimitStyle.FETCH_FIRST,
        limit_keywords=("FETCH FIRST", "LIMIT"),
        begin_sql="BEGIN TRANSACTION",
        commit_sql="COMMIT",
        rollback_sql="ROLLBACK",
        default_schema="",
        schema_source=SchemaSource.USER,
        system_schemas=(),
        system_schema_prefixes=("SYS",),
        validation_query="SELECT 1 FROM SYSIBM.SYSDUMMY1",
        default_port=50000,
        paramstyle=ParamStyle.QMARK,
        catalog=CATALOGS["db2"],
        **_ANSI_QUOTES,
    ),
    "hana": Dialect(
        platform="hana",
        display_name="SAP HANA",
        limit_style=LimitStyle.LIMIT,
        limit_keywords=("LIMIT",),
        begin_sql="BEGIN TRANSACTION",
        commit_sql="COMMIT",
        rollback_sql="ROLLBACK",
        default_schema="",
        schema_source=SchemaSource.USER,
        system_schemas=("_SYS_BI", "_SYS_REPO"),
        system_schema_prefixes=("SYS", "_SYS_"),
        validation_query="SELECT 1 FROM DUMMY",
        default_port=30015,
        paramstyle=ParamStyle.QMARK,
        catalog=CATALOGS["hana"],
        **_ANSI_QUOTES,
    ),
    "sybase": Dialect(
        platform="sybase",
        display_name="Sybase ASE",
        limit_style=LimitStyle.TOP,
        limit_keywords=("TOP",),
        begin_sql="BEGIN TRANSACTION",
        commit_sql="COMMIT TRANSACTION",
        rollback_sql="ROLLBACK TRANSACTION",
        default_schema="dbo",
        schema_source=SchemaSource.FIXED,
        system_schemas=("sys",),
        system_schema_prefixes=(),
        validation_query="SELECT 1",
        default_port=5000,
        paramstyle=ParamStyle.QMARK,
        catalog=CATALOGS["sybase"],
        **_BRACKETS,
    ),
    "netezza": Dialect(
        platform="netezza",
        display_name="Netezza",
        limit_style=LimitStyle.LIMIT,
        limit_keywords=("LIMIT",),
        begin_sql="BEGIN",
        commit_sql="COMMIT",
        rollback_sql="ROLLBACK",
        default_schema="ADMIN",
        schema_source=SchemaSource.FIXED,
        system_schemas=("SYSTEM", "INFORMATION_SCHEMA"),
        system_schema_prefixes=(),
        validation_query="SELECT 1",
        default_port=5480,
        paramstyle=ParamStyle.QMARK,
        catalog=CATALOGS["netezza"],
        **_ANSI_QUOTES,
    ),
    "informix": Dialect(
        platform="informix",
        display_name="Informix",
        limit_style=LimitStyle.FIRST,
        limit_keywords=("FIRST", "LIMIT"),
        begin_sql="BEGIN WORK",
        commit_sql="COMMIT WORK",
        rollback_sql="ROLLBACK WORK",
        default_schema="informix",
        schema_source=SchemaSource.FIXED,
        system_schemas=(),
        system_schema_prefixes=(),
        validation_query="SELECT 1 FROM systables WHERE tabid = 1",
        default_port=9088,
        paramstyle=ParamStyle.QMARK,
        catalog=CATALOGS["informix"],
        **_ANSI_QUOTES,
    ),
    "firebird": Dialect(
        platform="firebird",
        display_name="Firebird",
        limit_style=LimitStyle.FIRST,
        limit_keywords=("FIRST", "ROWS"),
        begin_sql="SET TRANSACTION",
        commit_sql="COMMIT",
        rollback_sql="ROLLBACK",
        default_schema="",
        schema_source=SchemaSource.FIXED,
        system_schemas=(),
        system_schema_prefixes=(),
        validation_query="SELECT 1 FROM RDB$DATABASE",
        default_port=3050,
        paramstyle=ParamStyle.QMARK,
        catalog=CATALOGS["firebird"],
        signed_scale=True,
        **_ANSI_QUOTES,
    ),
}


def get_dialect(platform: str) -> Dialect:
    """Look up the dialect for an engine tag or alias.

    Raises:
        UnsupportedPlatformError: If no dialect exists for the tag
    """
    tag = canonical_platform(platform)
    try:
        return DIALECTS[tag]
    except KeyError:
        raise UnsupportedPlatformError(
            f"Unsupported database type: {platform}",
            code=ErrorCodes.UNSUPPORTED_PLATFORM,
            context={"platform": platform, "supported": list_dialects()},
        ) from None


def list_dialects() -> List[str]:
    return sorted(DIALECTS)
