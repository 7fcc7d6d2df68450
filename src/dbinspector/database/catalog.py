"""System-catalog queries per engine.

Every query emits the same lower-case column aliases so the metadata
assembler reads one shape regardless of engine:

    schemas      schema_name
    tables       schema_name, table_name, table_type, row_count, table_size, description
    columns      column_name, data_type, sub_type, data_length, numeric_precision,
                 numeric_scale, is_nullable, default_value, ordinal_position,
                 is_auto_increment, description
    constraints  constraint_name, constraint_type, table_name, column_name,
                 foreign_table, foreign_column
    info         version, database_name, db_encoding, db_collation, edition

Bind parameters are written as ``{p1}``, ``{p2}``... and rendered with the
dialect's placeholder style. ``params`` names the value bound at each
position, so a query that filters twice on the schema lists it twice.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class CatalogQuery:
    sql: str
    params: Tuple[str, ...] = ()

    def render(self, placeholder: Callable[[int], str]) -> str:
        return self.sql.format(**{f"p{i}": placeholder(i) for i in range(1, len(self.params) + 1)})

    def bind(self, **values: Any) -> List[Any]:
        return [values[name] for name in self.params]


@dataclass(frozen=True)
class CatalogQueries:
    """Catalog queries for one engine. ``schemas`` is None for engines without schemas."""
    tables: CatalogQuery
    columns: CatalogQuery
    constraints: CatalogQuery
    info: CatalogQuery
    version: CatalogQuery
    schemas: Optional[CatalogQuery] = None


POSTGRESQL = CatalogQueries(
    schemas=CatalogQuery("""
        SELECT schema_name
        FROM information_schema.schemata
        WHERE schema_name NOT IN ('information_schema', 'pg_catalog', 'pg_toast')
        ORDER BY schema_name
    """),
    tables=CatalogQuery("""
        SELECT
            n.nspname AS schema_name,
            c.relname AS table_name,
            CASE c.relkind
                WHEN 'r' THEN 'TABLE'
                WHEN 'p' THEN 'TABLE'
                WHEN 'v' THEN 'VIEW'
                WHEN 'm' THEN 'VIEW'
                WHEN 'f' THEN 'FOREIGN TABLE'
                ELSE c.relkind::text
            END AS table_type,
            c.reltuples::bigint AS row_count,
            pg_total_relation_size(c.oid) AS table_size,
            obj_description(c.oid, 'pg_class') AS description
        FROM pg_catalog.pg_class c
        JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
        WHERE n.nspname = {p1}
          AND c.relkind IN ('r', 'p', 'v', 'm', 'f')
        ORDER BY c.relname
    """, ("schema",)),
    columns=CatalogQuery("""
        SELECT
            c.column_name,
            CASE WHEN c.data_type IN ('USER-DEFINED', 'ARRAY') THEN c.udt_name ELSE c.data_type END AS data_type,
            c.character_maximum_length AS data_length,
            c.numeric_precision,
            c.numeric_scale,
            c.is_nullable,
            c.column_default AS default_value,
            c.ordinal_position,
            CASE WHEN c.is_identity = 'YES' OR c.column_default LIKE 'nextval(%' THEN 1 ELSE 0 END AS is_auto_increment
        FROM information_schema.columns c
        WHERE c.table_schema = {p1} AND c.table_name = {p2}
        ORDER BY c.ordinal_position
    """, ("schema", "table")),
    constraints=CatalogQuery("""
        SELECT
            tc.constraint_name,
            tc.constraint_type,
            tc.table_name,
            kcu.column_name,
            ccu.table_name AS foreign_table,
            ccu.column_name AS foreign_column
        FROM information_schema.table_constraints tc
        LEFT JOIN information_schema.key_column_usage kcu
            ON tc.constraint_name = kcu.constraint_name
           AND tc.table_schema = kcu.table_schema
           AND tc.table_name = kcu.table_name
        LEFT JOIN information_schema.constraint_column_usage ccu
            ON tc.constraint_type = 'FOREIGN KEY'
           AND tc.constraint_name = ccu.constraint_name
           AND tc.constraint_schema = ccu.constraint_schema
        WHERE tc.table_schema = {p1} AND tc.table_name = {p2}
        ORDER BY tc.constraint_name, kcu.ordinal_position
    """, ("schema", "table")),
    info=CatalogQuery("""
        SELECT
            version() AS version,
            current_database() AS database_name,
            pg_encoding_to_char(d.encoding) AS db_encoding,
            d.datcollate AS db_collation
        FROM pg_catalog.pg_database d
        WHERE d.datname = current_database()
    """),
    version=CatalogQuery("SELECT version() AS version"),
)

# aiomysql formats with %, so literal percent signs are avoided below.
MYSQL = CatalogQueries(
    schemas=CatalogQuery("""
        SELECT SCHEMA_NAME AS schema_name
        FROM information_schema.SCHEMATA
        WHERE SCHEMA_NAME NOT IN ('information_schema', 'mysql', 'performance_schema', 'sys')
        ORDER BY SCHEMA_NAME
    """),
    tables=CatalogQuery("""
        SELECT
            TABLE_SCHEMA AS schema_name,
            TABLE_NAME AS table_name,
            TABLE_TYPE AS table_type,
            TABLE_ROWS AS row_count,
            DATA_LENGTH + INDEX_LENGTH AS table_size,
            TABLE_COMMENT AS description
        FROM information_schema.TABLES
        WHERE TABLE_SCHEMA = {p1}
        ORDER BY TABLE_NAME
    """, ("schema",)),
    columns=CatalogQuery("""
        SELECT
            COLUMN_NAME AS column_name,
            COLUMN_TYPE AS data_type,
            CHARACTER_MAXIMUM_LENGTH AS data_length,
            NUMERIC_PRECISION AS numeric_precision,
            NUMERIC_SCALE AS numeric_scale,
            IS_NULLABLE AS is_nullable,
            COLUMN_DEFAULT AS default_value,
            ORDINAL_POSITION AS ordinal_position,
            CASE WHEN LOCATE('auto_increment', EXTRA) > 0 THEN 1 ELSE 0 END AS is_auto_increment,
            COLUMN_COMMENT AS description
        FROM information_schema.COLUMNS
        WHERE TABLE_SCHEMA = {p1} AND TABLE_NAME = {p2}
        ORDER BY ORDINAL_POSITION
    """, ("schema", "table")),
    constraints=CatalogQuery("""
        SELECT
            tc.CONSTRAINT_NAME AS constraint_name,
            tc.CONSTRAINT_TYPE AS constraint_type,
            tc.TABLE_NAME AS table_name,
            kcu.COLUMN_NAME AS column_name,
            kcu.REFERENCED_TABLE_NAME AS foreign_table,
            kcu.REFERENCED_COLUMN_NAME AS foreign_column
        FROM information_schema.TABLE_CONSTRAINTS tc
        LEFT JOIN information_schema.KEY_COLUMN_USAGE kcu
            ON tc.CONSTRAINT_SCHEMA = kcu.CONSTRAINT_SCHEMA
           AND tc.CONSTRAINT_NAME = kcu.CONSTRAINT_NAME
           AND tc.TABLE_NAME = kcu.TABLE_NAME
        WHERE tc.TABLE_SCHEMA = {p1} AND tc.TABLE_NAME = {p2}
        ORDER BY tc.CONSTRAINT_NAME, kcu.ORDINAL_POSITION
    """, ("schema", "table")),
    info=CatalogQuery("""
        SELECT
            VERSION() AS version,
            DATABASE() AS database_name,
            @@character_set_database AS db_encoding,
            @@collation_database AS db_collation
    """),
    version=CatalogQuery("SELECT VERSION() AS version"),
)

ORACLE = CatalogQueries(
    schemas=CatalogQuery("""
        SELECT username AS schema_name
        FROM all_users
        WHERE username NOT IN ('SYS', 'SYSTEM', 'XDB', 'CTXSYS', 'MDSYS', 'OUTLN', 'DBSNMP')
        ORDER BY username
    """),
    tables=CatalogQuery("""
        SELECT t.owner AS schema_name, t.table_name, 'TABLE' AS table_type,
               t.num_rows AS row_count, cm.comments AS description
        FROM all_tables t
        LEFT JOIN all_tab_comments cm ON cm.owner = t.owner AND cm.table_name = t.table_name
        WHERE t.owner = {p1}
        UNION ALL
        SELECT v.owner, v.view_name, 'VIEW', NULL, NULL
        FROM all_views v
        WHERE v.owner = {p2}
        UNION ALL
        SELECT s.owner, s.synonym_name, 'SYNONYM', NULL, NULL
        FROM all_synonyms s
        WHERE s.owner = {p3}
        ORDER BY 2
    """, ("schema", "schema", "schema")),
    columns=CatalogQuery("""
        SELECT
            c.column_name,
            c.data_type,
            CASE WHEN c.data_type = 'RAW' THEN c.data_length ELSE NULLIF(c.char_length, 0) END AS data_length,
            c.data_precision AS numeric_precision,
            c.data_scale AS numeric_scale,
            c.nullable AS is_nullable,
            c.data_default AS default_value,
            c.column_id AS ordinal_position,
            cm.comments AS description
        FROM all_tab_columns c
        LEFT JOIN all_col_comments cm
            ON cm.owner = c.owner AND cm.table_name = c.table_name AND cm.column_name = c.column_name
        WHERE c.owner = {p1} AND c.table_name = {p2}
        ORDER BY c.column_id
    """, ("schema", "table")),
    constraints=CatalogQuery("""
        SELECT
            c.constraint_name,
            CASE c.constraint_type
                WHEN 'P' THEN 'PRIMARY KEY'
                WHEN 'R' THEN 'FOREIGN KEY'
                WHEN 'U' THEN 'UNIQUE'
                WHEN 'C' THEN 'CHECK'
            END AS constraint_type,
            c.table_name,
            cc.column_name,
            rc.table_name AS foreign_table,
            rc.column_name AS foreign_column
        FROM all_constraints c
        JOIN all_cons_columns cc
            ON c.owner = cc.owner AND c.constraint_name = cc.constraint_name
        LEFT JOIN all_cons_columns rc
            ON c.r_owner = rc.owner AND c.r_constraint_name = rc.constraint_name AND cc.position = rc.position
        WHERE c.owner = {p1} AND c.table_name = {p2}
          AND c.constraint_type IN ('P', 'R', 'U', 'C')
        ORDER BY c.constraint_name, cc.position
    """, ("schema", "table")),
    info=CatalogQuery("""
        SELECT
            v.banner AS version,
            SYS_CONTEXT('USERENV', 'DB_NAME') AS database_name,
            (SELECT value FROM nls_database_parameters WHERE parameter = 'NLS_CHARACTERSET') AS db_encoding
        FROM v$version v
        WHERE ROWNUM = 1
    """),
    version=CatalogQuery("SELECT banner AS version FROM v$version WHERE ROWNUM = 1"),
)

SQLSERVER = CatalogQueries(
    schemas=CatalogQuery("""
        SELECT name AS schema_name
        FROM sys.schemas
        WHERE name NOT IN ('sys', 'INFORMATION_SCHEMA', 'guest')
          AND name NOT LIKE 'db[_]%'
        ORDER BY name
    """),
    tables=CatalogQuery("""
        SELECT
            TABLE_SCHEMA AS schema_name,
            TABLE_NAME AS table_name,
            TABLE_TYPE AS table_type
        FROM INFORMATION_SCHEMA.TABLES
        WHERE TABLE_SCHEMA = {p1}
        ORDER BY TABLE_NAME
    """, ("schema",)),
    columns=CatalogQuery("""
        SELECT
            COLUMN_NAME AS column_name,
            DATA_TYPE AS data_type,
            CHARACTER_MAXIMUM_LENGTH AS data_length,
            NUMERIC_PRECISION AS numeric_precision,
            NUMERIC_SCALE AS numeric_scale,
            IS_NULLABLE AS is_nullable,
            COLUMN_DEFAULT AS default_value,
            ORDINAL_POSITION AS ordinal_position,
            COLUMNPROPERTY(OBJECT_ID(QUOTENAME(TABLE_SCHEMA) + '.' + QUOTENAME(TABLE_NAME)),
                           COLUMN_NAME, 'IsIdentity') AS is_auto_increment
        FROM INFORMATION_SCHEMA.COLUMNS
        WHERE TABLE_SCHEMA = {p1} AND TABLE_NAME = {p2}
        ORDER BY ORDINAL_POSITION
    """, ("schema", "table")),
    constraints=CatalogQuery("""
        SELECT
            tc.CONSTRAINT_NAME AS constraint_name,
            tc.CONSTRAINT_TYPE AS constraint_type,
            tc.TABLE_NAME AS table_name,
            kcu.COLUMN_NAME AS column_name,
            ccu.TABLE_NAME AS foreign_table,
            ccu.COLUMN_NAME AS foreign_column
        FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
        LEFT JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE kcu
            ON tc.CONSTRAINT_NAME = kcu.CONSTRAINT_NAME AND tc.TABLE_SCHEMA = kcu.TABLE_SCHEMA
        LEFT JOIN INFORMATION_SCHEMA.REFERENTIAL_CONSTRAINTS rc
            ON tc.CONSTRAINT_NAME = rc.CONSTRAINT_NAME AND tc.CONSTRAINT_SCHEMA = rc.CONSTRAINT_SCHEMA
        LEFT JOIN INFORMATION_SCHEMA.CONSTRAINT_COLUMN_USAGE ccu
            ON rc.UNIQUE_CONSTRAINT_NAME = ccu.CONSTRAINT_NAME
        WHERE tc.TABLE_SCHEMA = {p1} AND tc.TABLE_NAME = {p2}
        ORDER BY tc.CONSTRAINT_NAME, kcu.ORDINAL_POSITION
    """, ("schema", "table")),
    info=CatalogQuery("""
        SELECT
            @@VERSION AS version,
            DB_NAME() AS database_name,
            CAST(SERVERPROPERTY('Collation') AS NVARCHAR(128)) AS db_collation,
            CAST(SERVERPROPERTY('Edition') AS NVARCHAR(128)) AS edition
    """),
    version=CatalogQuery("SELECT @@VERSION AS version"),
)

DB2 = CatalogQueries(
    schemas=CatalogQuery("""
        SELECT SCHEMANAME AS schema_name
        FROM SYSCAT.SCHEMATA
        WHERE SCHEMANAME NOT LIKE 'SYS%'
        ORDER BY SCHEMANAME
    """),
    tables=CatalogQuery("""
        SELECT
            TABSCHEMA AS schema_name,
            TABNAME AS table_name,
            CASE TYPE
                WHEN 'T' THEN 'TABLE'
                WHEN 'V' THEN 'VIEW'
                WHEN 'A' THEN 'SYNONYM'
                WHEN 'N' THEN 'FOREIGN TABLE'
                ELSE TYPE
            END AS table_type,
            CARD AS row_count,
            REMARKS AS description
        FROM SYSCAT.TABLES
        WHERE TABSCHEMA = {p1} AND TYPE IN ('T', 'V', 'A', 'N')
        ORDER BY TABNAME
    """, ("schema",)),
    columns=CatalogQuery("""
        SELECT
            COLNAME AS column_name,
            CASE WHEN CODEPAGE = 0 AND TYPENAME IN ('CHARACTER', 'VARCHAR')
                 THEN TYPENAME || ' FOR BIT DATA' ELSE TYPENAME END AS data_type,
            CASE WHEN TYPENAME IN ('DECIMAL', 'NUMERIC') THEN NULL ELSE LENGTH END AS data_length,
            CASE WHEN TYPENAME IN ('DECIMAL', 'NUMERIC') THEN LENGTH ELSE NULL END AS numeric_precision,
            SCALE AS numeric_scale,
            NULLS AS is_nullable,
            DEFAULT AS default_value,
            COLNO + 1 AS ordinal_position,
            IDENTITY AS is_auto_increment,
            REMARKS AS description
        FROM SYSCAT.COLUMNS
        WHERE TABSCHEMA = {p1} AND TABNAME = {p2}
        ORDER BY COLNO
    """, ("schema", "table")),
    constraints=CatalogQuery("""
        SELECT
            tc.CONSTNAME AS constraint_name,
            CASE tc.TYPE
                WHEN 'P' THEN 'PRIMARY KEY'
                WHEN 'F' THEN 'FOREIGN KEY'
                WHEN 'U' THEN 'UNIQUE'
                WHEN 'K' THEN 'CHECK'
            END AS constraint_type,
            tc.TABNAME AS table_name,
            kc.COLNAME AS column_name,
            r.REFTABNAME AS foreign_table,
            rk.COLNAME AS foreign_column
        FROM SYSCAT.TABCONST tc
        LEFT JOIN SYSCAT.KEYCOLUSE kc
            ON tc.TABSCHEMA = kc.TABSCHEMA AND tc.TABNAME = kc.TABNAME AND tc.CONSTNAME = kc.CONSTNAME
        LEFT JOIN SYSCAT.REFERENCES r
            ON tc.TABSCHEMA = r.TABSCHEMA AND tc.TABNAME = r.TABNAME AND tc.CONSTNAME = r.CONSTNAME
        LEFT JOIN SYSCAT.KEYCOLUSE rk
            ON r.REFTABSCHEMA = rk.TABSCHEMA AND r.REFKEYNAME = rk.CONSTNAME AND kc.COLSEQ = rk.COLSEQ
        WHERE tc.TABSCHEMA = {p1} AND tc.TABNAME = {p2}
        ORDER BY tc.CONSTNAME, kc.COLSEQ
    """, ("schema", "table")),
    info=CatalogQuery("""
        SELECT SERVICE_LEVEL AS version, CURRENT SERVER AS database_name
        FROM SYSIBMADM.ENV_INST_INFO
    """),
    version=CatalogQuery("SELECT SERVICE_LEVEL AS version FROM SYSIBMADM.ENV_INST_INFO"),
)

HANA = CatalogQueries(
    schemas=CatalogQuery("""
        SELECT SCHEMA_NAME AS schema_name
        FROM SYS.SCHEMAS
        WHERE SCHEMA_NAME NOT LIKE 'SYS%'
          AND LEFT(SCHEMA_NAME, 5) <> '_SYS_'
        ORDER BY SCHEMA_NAME
    """),
    tables=CatalogQuery("""
        SELECT SCHEMA_NAME AS schema_name, TABLE_NAME AS table_name,
               CASE WHEN IS_SYSTEM_TABLE = 'TRUE' THEN 'SYSTEM TABLE' ELSE 'TABLE' END AS table_type,
               COMMENTS AS description
        FROM SYS.TABLES
        WHERE SCHEMA_NAME = {p1}
        UNION ALL
        SELECT SCHEMA_NAME, VIEW_NAME, 'VIEW', COMMENTS
        FROM SYS.VIEWS
        WHERE SCHEMA_NAME = {p2}
        UNION ALL
        SELECT SCHEMA_NAME, SYNONYM_NAME, 'SYNONYM', NULL
        FROM SYS.SYNONYMS
        WHERE SCHEMA_NAME = {p3}
        ORDER BY 2
    """, ("schema", "schema", "schema")),
    columns=CatalogQuery("""
        SELECT
            COLUMN_NAME AS column_name,
            DATA_TYPE_NAME AS data_type,
            CASE WHEN DATA_TYPE_NAME IN ('DECIMAL', 'SMALLDECIMAL') THEN NULL ELSE LENGTH END AS data_length,
            CASE WHEN DATA_TYPE_NAME IN ('DECIMAL', 'SMALLDECIMAL') THEN LENGTH ELSE NULL END AS numeric_precision,
            SCALE AS numeric_scale,
            IS_NULLABLE AS is_nullable,
            DEFAULT_VALUE AS default_value,
            POSITION AS ordinal_position,
            CASE WHEN GENERATION_TYPE IS NULL THEN 0 ELSE 1 END AS is_auto_increment,
            COMMENTS AS description
        FROM SYS.TABLE_COLUMNS
        WHERE SCHEMA_NAME = {p1} AND TABLE_NAME = {p2}
        UNION ALL
        SELECT
            COLUMN_NAME,
            DATA_TYPE_NAME,
            CASE WHEN DATA_TYPE_NAME IN ('DECIMAL', 'SMALLDECIMAL') THEN NULL ELSE LENGTH END,
            CASE WHEN DATA_TYPE_NAME IN ('DECIMAL', 'SMALLDECIMAL') THEN LENGTH ELSE NULL END,
            SCALE,
            IS_NULLABLE,
            DEFAULT_VALUE,
            POSITION,
            0,
            COMMENTS
        FROM SYS.VIEW_COLUMNS
        WHERE SCHEMA_NAME = {p3} AND VIEW_NAME = {p4}
        ORDER BY 8
    """, ("schema", "table", "schema", "table")),
    constraints=CatalogQuery("""
        SELECT
            CONSTRAINT_NAME AS constraint_name,
            CASE
                WHEN IS_PRIMARY_KEY = 'TRUE' THEN 'PRIMARY KEY'
                WHEN IS_UNIQUE_KEY = 'TRUE' THEN 'UNIQUE'
                ELSE 'CHECK'
            END AS constraint_type,
            TABLE_NAME AS table_name,
            COLUMN_NAME AS column_name,
            NULL AS foreign_table,
            NULL AS foreign_column
        FROM SYS.CONSTRAINTS
        WHERE SCHEMA_NAME = {p1} AND TABLE_NAME = {p2}
        UNION ALL
        SELECT CONSTRAINT_NAME, 'FOREIGN KEY', TABLE_NAME, COLUMN_NAME,
               REFERENCED_TABLE_NAME, REFERENCED_COLUMN_NAME
        FROM SYS.REFERENTIAL_CONSTRAINTS
        WHERE SCHEMA_NAME = {p3} AND TABLE_NAME = {p4}
        ORDER BY 1
    """, ("schema", "table", "schema", "table")),
    info=CatalogQuery("SELECT VERSION AS version, DATABASE_NAME AS database_name FROM SYS.M_DATABASE"),
    version=CatalogQuery("SELECT VERSION AS version FROM SYS.M_DATABASE"),
)

# Sybase ASE owners play the role of schemas. Key constraints report their
# first key column only; multi-column keys need sp_helpconstraint.
SYBASE = CatalogQueries(
    schemas=CatalogQuery("""
        SELECT DISTINCT user_name(uid) AS schema_name
        FROM sysobjects
        WHERE type IN ('U', 'V')
        ORDER BY 1
    """),
    tables=CatalogQuery("""
        SELECT
            user_name(o.uid) AS schema_name,
            o.name AS table_name,
            CASE RTRIM(o.type)
                WHEN 'U' THEN 'TABLE'
                WHEN 'V' THEN 'VIEW'
                WHEN 'S' THEN 'SYSTEM TABLE'
            END AS table_type
        FROM sysobjects o
        WHERE user_name(o.uid) = {p1} AND RTRIM(o.type) IN ('U', 'V', 'S')
        ORDER BY o.name
    """, ("schema",)),
    columns=CatalogQuery("""
        SELECT
            c.name AS column_name,
            t.name AS data_type,
            c.length AS data_length,
            c.prec AS numeric_precision,
            c.scale AS numeric_scale,
            CASE WHEN c.status & 8 = 8 THEN 'YES' ELSE 'NO' END AS is_nullable,
            c.colid AS ordinal_position,
            CASE WHEN c.status & 128 = 128 THEN 1 ELSE 0 END AS is_auto_increment
        FROM syscolumns c
        JOIN systypes t ON c.usertype = t.usertype
        JOIN sysobjects o ON c.id = o.id
        WHERE user_name(o.uid) = {p1} AND o.name = {p2}
        ORDER BY c.colid
    """, ("schema", "table")),
    constraints=CatalogQuery("""
        SELECT
            i.name AS constraint_name,
            CASE WHEN i.status & 2048 = 2048 THEN 'PRIMARY KEY' ELSE 'UNIQUE' END AS constraint_type,
            o.name AS table_name,
            index_col(o.name, i.indid, 1, o.uid) AS column_name,
            NULL AS foreign_table,
            NULL AS foreign_column
        FROM sysindexes i
        JOIN sysobjects o ON i.id = o.id
        WHERE user_name(o.uid) = {p1} AND o.name = {p2}
          AND (i.status & 2048 = 2048 OR i.status2 & 8 = 8)
        UNION ALL
        SELECT
            object_name(r.constrid),
            'FOREIGN KEY',
            object_name(r.tableid),
            col_name(r.tableid, r.fokey1),
            object_name(r.reftabid),
            col_name(r.reftabid, r.refkey1)
        FROM sysreferences r
        JOIN sysobjects o ON r.tableid = o.id
        WHERE user_name(o.uid) = {p3} AND o.name = {p4}
        ORDER BY 1
    """, ("schema", "table", "schema", "table")),
    info=CatalogQuery("SELECT @@version AS version, db_name() AS database_name"),
    version=CatalogQuery("SELECT @@version AS version"),
)

NETEZZA = CatalogQueries(
    schemas=CatalogQuery("""
        SELECT SCHEMA AS schema_name
        FROM _V_SCHEMA
        WHERE SCHEMA NOT IN ('SYSTEM', 'INFORMATION_SCHEMA')
        ORDER BY SCHEMA
    """),
    tables=CatalogQuery("""
        SELECT SCHEMA AS schema_name, TABLENAME AS table_name, 'TABLE' AS table_type,
               RELTUPLES AS row_count, DESCRIPTION AS description
        FROM _V_TABLE
        WHERE SCHEMA = {p1} AND OBJTYPE = 'TABLE'
        UNION ALL
        SELECT SCHEMA, VIEWNAME, 'VIEW', NULL, DESCRIPTION
        FROM _V_VIEW
        WHERE SCHEMA = {p2} AND OBJTYPE = 'VIEW'
        UNION ALL
        SELECT SCHEMA, TABLENAME, 'EXTERNAL TABLE', NULL, DESCRIPTION
        FROM _V_EXTERNAL
        WHERE SCHEMA = {p3}
        ORDER BY 2
    """, ("schema", "schema", "schema")),
    columns=CatalogQuery("""
        SELECT
            ATTNAME AS column_name,
            FORMAT_TYPE AS data_type,
            CASE WHEN ATTNOTNULL THEN 'NO' ELSE 'YES' END AS is_nullable,
            COLDEFAULT AS default_value,
            ATTNUM AS ordinal_position,
            DESCRIPTION AS description
        FROM _V_RELATION_COLUMN
        WHERE SCHEMA = {p1} AND NAME = {p2}
        ORDER BY ATTNUM
    """, ("schema", "table")),
    constraints=CatalogQuery("""
        SELECT
            CONSTRAINTNAME AS constraint_name,
            CASE CONTYPE
                WHEN 'p' THEN 'PRIMARY KEY'
                WHEN 'f' THEN 'FOREIGN KEY'
                WHEN 'u' THEN 'UNIQUE'
            END AS constraint_type,
            RELATION AS table_name,
            ATTNAME AS column_name,
            PKRELATION AS foreign_table,
            PKATTNAME AS foreign_column
        FROM _V_RELATION_KEYDATA
        WHERE SCHEMA = {p1} AND RELATION = {p2}
        ORDER BY CONSTRAINTNAME, CONSEQ
    """, ("schema", "table")),
    info=CatalogQuery("SELECT VERSION() AS version, CURRENT_CATALOG AS database_name"),
    version=CatalogQuery("SELECT VERSION() AS version"),
)

# Informix encodes the column type as a code in syscolumns.coltype; values of
# 256 and above carry the NOT NULL flag. Objects with tabid <= 99 are catalog.
INFORMIX = CatalogQueries(
    schemas=CatalogQuery("""
        SELECT DISTINCT TRIM(owner) AS schema_name
        FROM systables
        WHERE tabid > 99
        ORDER BY 1
    """),
    tables=CatalogQuery("""
        SELECT
            TRIM(owner) AS schema_name,
            TRIM(tabname) AS table_name,
            CASE tabtype
                WHEN 'T' THEN 'TABLE'
                WHEN 'V' THEN 'VIEW'
                WHEN 'P' THEN 'SYNONYM'
                WHEN 'S' THEN 'SYNONYM'
                WHEN 'E' THEN 'EXTERNAL TABLE'
            END AS table_type,
            nrows AS row_count
        FROM systables
        WHERE tabid > 99 AND TRIM(owner) = {p1}
        ORDER BY tabname
    """, ("schema",)),
    columns=CatalogQuery("""
        SELECT
            TRIM(c.colname) AS column_name,
            CASE MOD(c.coltype, 256)
                WHEN 0 THEN 'CHAR'
                WHEN 1 THEN 'SMALLINT'
                WHEN 2 THEN 'INTEGER'
                WHEN 3 THEN 'FLOAT'
                WHEN 4 THEN 'SMALLFLOAT'
                WHEN 5 THEN 'DECIMAL'
                WHEN 6 THEN 'SERIAL'
                WHEN 7 THEN 'DATE'
                WHEN 8 THEN 'MONEY'
                WHEN 10 THEN 'DATETIME'
                WHEN 11 THEN 'BYTE'
                WHEN 12 THEN 'TEXT'
                WHEN 13 THEN 'VARCHAR'
                WHEN 14 THEN 'INTERVAL'
                WHEN 15 THEN 'NCHAR'
                WHEN 16 THEN 'NVARCHAR'
                WHEN 17 THEN 'INT8'
                WHEN 18 THEN 'SERIAL8'
                WHEN 43 THEN 'LVARCHAR'
                WHEN 45 THEN 'BOOLEAN'
                WHEN 52 THEN 'BIGINT'
                WHEN 53 THEN 'BIGSERIAL'
                ELSE 'UDT'
            END AS data_type,
            CASE WHEN MOD(c.coltype, 256) IN (0, 13, 15, 16, 43) THEN c.collength END AS data_length,
            CASE WHEN MOD(c.coltype, 256) IN (5, 8) THEN TRUNC(c.collength / 256) END AS numeric_precision,
            CASE WHEN MOD(c.coltype, 256) IN (5, 8) THEN MOD(c.collength, 256) END AS numeric_scale,
            CASE WHEN c.coltype >= 256 THEN 'NO' ELSE 'YES' END AS is_nullable,
            c.colno AS ordinal_position,
            CASE WHEN MOD(c.coltype, 256) IN (6, 18, 53) THEN 1 ELSE 0 END AS is_auto_increment
        FROM systables t
        JOIN syscolumns c ON c.tabid = t.tabid
        WHERE TRIM(t.owner) = {p1} AND t.tabname = {p2}
        ORDER BY c.colno
    """, ("schema", "table")),
    constraints=CatalogQuery("""
        SELECT
            TRIM(sc.constrname) AS constraint_name,
            CASE sc.constrtype
                WHEN 'P' THEN 'PRIMARY KEY'
                WHEN 'R' THEN 'FOREIGN KEY'
                WHEN 'U' THEN 'UNIQUE'
                WHEN 'C' THEN 'CHECK'
            END AS constraint_type,
            TRIM(t.tabname) AS table_name,
            TRIM(col.colname) AS column_name,
            TRIM(pt.tabname) AS foreign_table,
            NULL AS foreign_column
        FROM sysconstraints sc
        JOIN systables t ON sc.tabid = t.tabid
        LEFT JOIN sysindexes i ON sc.idxname = i.idxname AND i.tabid = t.tabid
        LEFT JOIN syscolumns col ON col.tabid = t.tabid AND col.colno = ABS(i.part1)
        LEFT JOIN sysreferences r ON r.constrid = sc.constrid
        LEFT JOIN systables pt ON pt.tabid = r.ptabid
        WHERE TRIM(t.owner) = {p1} AND t.tabname = {p2}
        ORDER BY 1
    """, ("schema", "table")),
    info=CatalogQuery("""
        SELECT DBINFO('version', 'full') AS version, DBINFO('dbname') AS database_name
        FROM systables
        WHERE tabid = 1
    """),
    version=CatalogQuery("SELECT DBINFO('version', 'full') AS version FROM systables WHERE tabid = 1"),
)

# Firebird has no schemas; relations are addressed by name only.
FIREBIRD = CatalogQueries(
    tables=CatalogQuery("""
        SELECT
            '' AS schema_name,
            TRIM(r.rdb$relation_name) AS table_name,
            CASE
                WHEN r.rdb$system_flag = 1 THEN 'SYSTEM TABLE'
                WHEN r.rdb$view_blr IS NOT NULL THEN 'VIEW'
                WHEN r.rdb$external_file IS NOT NULL THEN 'EXTERNAL TABLE'
                ELSE 'TABLE'
            END AS table_type
        FROM rdb$relations r
        ORDER BY r.rdb$relation_name
    """),
    columns=CatalogQuery("""
        SELECT
            TRIM(rf.rdb$field_name) AS column_name,
            f.rdb$field_type AS data_type,
            f.rdb$field_sub_type AS sub_type,
            COALESCE(f.rdb$character_length, f.rdb$field_length) AS data_length,
            f.rdb$field_precision AS numeric_precision,
            f.rdb$field_scale AS numeric_scale,
            CASE WHEN COALESCE(rf.rdb$null_flag, f.rdb$null_flag, 0) = 1 THEN 'NO' ELSE 'YES' END AS is_nullable,
            rf.rdb$default_source AS default_value,
            rf.rdb$field_position + 1 AS ordinal_position
        FROM rdb$relation_fields rf
        JOIN rdb$fields f ON rf.rdb$field_source = f.rdb$field_name
        WHERE rf.rdb$relation_name = {p1}
        ORDER BY rf.rdb$field_position
    """, ("table",)),
    constraints=CatalogQuery("""
        SELECT
            TRIM(rc.rdb$constraint_name) AS constraint_name,
            TRIM(rc.rdb$constraint_type) AS constraint_type,
            TRIM(rc.rdb$relation_name) AS table_name,
            TRIM(s.rdb$field_name) AS column_name,
            TRIM(rp.rdb$relation_name) AS foreign_table,
            TRIM(sp.rdb$field_name) AS foreign_column
        FROM rdb$relation_constraints rc
        LEFT JOIN rdb$index_segments s ON rc.rdb$index_name = s.rdb$index_name
        LEFT JOIN rdb$ref_constraints ref ON rc.rdb$constraint_name = ref.rdb$constraint_name
        LEFT JOIN rdb$relation_constraints rp ON ref.rdb$const_name_uq = rp.rdb$constraint_name
        LEFT JOIN rdb$index_segments sp
            ON rp.rdb$index_name = sp.rdb$index_name AND s.rdb$field_position = sp.rdb$field_position
        WHERE rc.rdb$relation_name = {p1}
        ORDER BY rc.rdb$constraint_name, s.rdb$field_position
    """, ("table",)),
    info=CatalogQuery("""
        SELECT
            rdb$get_context('SYSTEM', 'ENGINE_VERSION') AS version,
            rdb$get_context('SYSTEM', 'DB_NAME') AS database_name,
            TRIM(d.rdb$character_set_name) AS db_encoding
        FROM rdb$database d
    """),
    version=CatalogQuery("SELECT rdb$get_context('SYSTEM', 'ENGINE_VERSION') AS version FROM rdb$database"),
)


CATALOGS: Dict[str, CatalogQueries] = {
    "postgresql": POSTGRESQL,
    "mysql": MYSQL,
    "oracle": ORACLE,
    "sqlserver": SQLSERVER,
    "db2": DB2,
    "hana": HANA,
    "sybase": SYBASE,
    "netezza": NETEZZA,
    "informix": INFORMIX,
    "firebird": FIREBIRD,
}
