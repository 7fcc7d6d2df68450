"""Metadata assembly from raw catalog rows.

Catalog rows arrive as mappings whose keys follow the aliases in
``catalog.py``; some engines upper-case unquoted aliases, so keys are
matched case-insensitively. The assembler enforces the canonical
invariants itself rather than trusting the catalog:

- column ordinals are 1-based and contiguous, renumbered in arrival order
  when the source numbering is missing or has gaps;
- a column name appears at most once per table;
- table types come from a closed set, unknown kinds read as ``table``;
- a row with a missing type becomes an ``unknown`` column.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..core.utils import safe_cast
from ..logging import get_logger
from .models import (
    ColumnMetadata,
    ConstraintInfo,
    ConstraintKind,
    DatabaseInfo,
    TableInfo,
    TableType,
)
from .normalizer import TypeNormalizer

TABLE_TYPES: Dict[str, TableType] = {
    "table": TableType.TABLE,
    "base table": TableType.TABLE,
    "user table": TableType.TABLE,
    "partitioned table": TableType.TABLE,
    "view": TableType.VIEW,
    "materialized view": TableType.VIEW,
    "system table": TableType.SYSTEM_TABLE,
    "system view": TableType.SYSTEM_TABLE,
    "synonym": TableType.SYNONYM,
    "alias": TableType.SYNONYM,
    "foreign table": TableType.FOREIGN_TABLE,
    "external table": TableType.FOREIGN_TABLE,
    "nickname": TableType.FOREIGN_TABLE,
}

CONSTRAINT_KINDS: Dict[str, ConstraintKind] = {
    "primary key": ConstraintKind.PRIMARY_KEY,
    "foreign key": ConstraintKind.FOREIGN_KEY,
    "references": ConstraintKind.FOREIGN_KEY,
    "unique": ConstraintKind.UNIQUE,
    "check": ConstraintKind.CHECK,
}

_TRUE = {"yes", "y", "true", "t", "1"}
_FALSE = {"no", "n", "false", "f", "0"}


def field_value(record: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """Read ``key`` from a catalog row regardless of identifier case."""
    for candidate in (key, key.upper(), key.lower()):
        if candidate in record:
            return record[candidate]
    folded = key.lower()
    for name in record:
        if str(name).lower() == folded:
            return record[name]
    return default


def parse_flag(value: Any) -> Optional[bool]:
    """Interpret the YES/NO, Y/N, TRUE/FALSE and 1/0 spellings catalogs use."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_table_type(raw: Any) -> TableType:
    """Map a catalog table-kind string into the closed set; unknown kinds are tables."""
    key = " ".join(str(raw or "").lower().split())
    return TABLE_TYPES.get(key, TableType.TABLE)


def normalize_constraint_kind(raw: Any) -> Optional[ConstraintKind]:
    key = " ".join(str(raw or "").lower().split())
    return CONSTRAINT_KINDS.get(key)


class MetadataAssembler:
    """Builds canonical metadata objects for one engine.

    Args:
        normalizer: Type normalizer of the engine the rows came from
    """

    def __init__(self, normalizer: TypeNormalizer) -> None:
        self.normalizer = normalizer
        self.logger = get_logger("metadata.assembler")

    def build_column(self, record: Mapping[str, Any]) -> Optional[ColumnMetadata]:
        name = _text(field_value(record, "column_name"))
        if name is None:
            self.logger.warning("Catalog row without column name skipped", row=dict(record))
            return None

        raw_type = field_value(record, "data_type")
        sub_type = safe_cast(field_value(record, "sub_type"), int)
        described = self.normalizer.describe_type(
            raw_type,
            field_value(record, "data_length"),
            field_value(record, "numeric_precision"),
            field_value(record, "numeric_scale"),
            sub_type=sub_type,
        )
        nullable = parse_flag(field_value(record, "is_nullable"))

        return ColumnMetadata(
            name=name,
            canonical_type=described.canonical,
            native_type=self.normalizer.native_name(raw_type, sub_type),
            type_string=described.type_string,
            nullable=True if nullable is None else nullable,
            length=described.length,
            precision=described.precision,
            scale=described.scale,
            default_value=_text(field_value(record, "default_value")),
            is_auto_increment=bool(parse_flag(field_value(record, "is_auto_increment"))),
            comment=_text(field_value(record, "description")),
            ordinal_position=safe_cast(field_value(record, "ordinal_position"), int, default=0),
        )

    def assemble_columns(
        self,
        records: Iterable[Mapping[str, Any]],
        *,
        table: Optional[str] = None,
    ) -> List[ColumnMetadata]:
        """Build an ordered, duplicate-free column list."""
        columns: List[ColumnMetadata] = []
        seen = set()
        for record in records:
            column = self.build_column(record)
            if column is None:
                continue
            if column.name in seen:
                self.logger.warning(
                    "Duplicate column dropped",
                    table=table,
                    column=column.name,
                )
                continue
            seen.add(column.name)
            columns.append(column)

        ordinals = sorted(column.ordinal_position for column in columns)
        if ordinals == list(range(1, len(columns) + 1)):
            columns.sort(key=lambda column: column.ordinal_position)
        else:
            for position, column in enumerate(columns, start=1):
                column.ordinal_position = position
        return columns

    def assemble_tables(
        self,
        records: Iterable[Mapping[str, Any]],
        *,
        default_schema: str = "",
    ) -> List[TableInfo]:
        tables: List[TableInfo] = []
        seen = set()
        for record in records:
            name = _text(field_value(record, "table_name"))
            if name is None:
                self.logger.warning("Catalog row without table name skipped", row=dict(record))
                continue
            schema = _text(field_value(record, "schema_name")) or default_schema
            if (schema, name) in seen:
                self.logger.warning("Duplicate table dropped", schema=schema, table=name)
                continue
            seen.add((schema, name))

            row_count = safe_cast(field_value(record, "row_count"), int)
            tables.append(TableInfo(
                schema_name=schema,
                table_name=name,
                table_type=normalize_table_type(field_value(record, "table_type")),
                row_count=row_count if row_count is not None and row_count >= 0 else None,
                size=safe_cast(field_value(record, "table_size"), int),
                comment=_text(field_value(record, "description")),
            ))
        return tables

    def assemble_constraints(
        self,
        records: Iterable[Mapping[str, Any]],
        *,
        schema: Optional[str] = None,
        table: Optional[str] = None,
    ) -> List[ConstraintInfo]:
        """One ConstraintInfo per constraint/column pair; unknown kinds are skipped."""
        constraints: List[ConstraintInfo] = []
        for record in records:
            raw_kind = field_value(record, "constraint_type")
            kind = normalize_constraint_kind(raw_kind)
            if kind is None:
                self.logger.debug("Constraint kind skipped", kind=raw_kind, table=table)
                continue
            constraints.append(ConstraintInfo(
                name=_text(field_value(record, "constraint_name")) or "",
                kind=kind,
                table_name=_text(field_value(record, "table_name")) or table or "",
                column_name=_text(field_value(record, "column_name")),
                schema_name=schema,
                foreign_table=_text(field_value(record, "foreign_table")),
                foreign_column=_text(field_value(record, "foreign_column")),
            ))
        return constraints

    @staticmethod
    def apply_key_flags(table: TableInfo, constraints: Iterable[ConstraintInfo]) -> None:
        """Set primary, foreign and unique key flags on the table's columns."""
        by_name = {column.name: column for column in table.columns}
        for constraint in constraints:
            column = by_name.get(constraint.column_name or "")
            if column is None:
                continue
            if constraint.kind is ConstraintKind.PRIMARY_KEY:
                column.is_primary_key = True
            elif constraint.kind is ConstraintKind.FOREIGN_KEY:
                column.is_foreign_key = True
                column.foreign_table = constraint.foreign_table
                column.foreign_column = constraint.foreign_column
            elif constraint.kind is ConstraintKind.UNIQUE:
                column.is_unique = True

    @staticmethod
    def assemble_database_info(record: Optional[Mapping[str, Any]], *, fallback_name: str = "") -> DatabaseInfo:
        record = record or {}
        return DatabaseInfo(
            version=_text(field_value(record, "version")) or "unknown",
            name=_text(field_value(record, "database_name")) or fallback_name,
            encoding=_text(field_value(record, "db_encoding")),
            collation=_text(field_value(record, "db_collation")),
            edition=_text(field_value(record, "edition")),
        )
