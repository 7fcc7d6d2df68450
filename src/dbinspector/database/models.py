"""Canonical data models returned by every inspector adapter.

Nothing in this module refers to a driver object; results handed across
the inspector boundary are built only from these types.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union


class CanonicalType(str, Enum):
    """Engine-independent column type classification."""
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    BINARY = "binary"
    UNKNOWN = "unknown"


class TableType(str, Enum):
    """Closed set of table kinds exposed to consumers."""
    TABLE = "table"
    VIEW = "view"
    SYSTEM_TABLE = "system table"
    SYNONYM = "synonym"
    FOREIGN_TABLE = "foreign table"


class ConstraintKind(str, Enum):
    PRIMARY_KEY = "PRIMARY KEY"
    FOREIGN_KEY = "FOREIGN KEY"
    UNIQUE = "UNIQUE"
    CHECK = "CHECK"


class ConnectionState(str, Enum):
    """Lifecycle of a Connection handle."""
    CREATED = "created"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"
    DISCONNECTED = "disconnected"


class Cell(NamedTuple):
    """One tagged value of a result row."""
    name: str
    canonical_type: CanonicalType
    value: Any


class Row(Mapping[str, Any]):
    """Ordered tuple of tagged cells that also reads as a name -> value mapping.

    When a result carries two columns with the same label, mapping access
    returns the first one; ``cells`` keeps both.

    Example:
        >>> row = Row([Cell("id", CanonicalType.NUMBER, 1), Cell("name", CanonicalType.STRING, "a")])
        >>> row["name"]
        'a'
        >>> [cell.canonical_type.value for cell in row.cells]
        ['number', 'string']
    """

    __slots__ = ("_cells", "_index")

    def __init__(self, cells: Iterable[Cell]) -> None:
        self._cells: Tuple[Cell, ...] = tuple(cells)
        self._index: Dict[str, int] = {}
        for position, cell in enumerate(self._cells):
            self._index.setdefault(cell.name, position)

    @property
    def cells(self) -> Tuple[Cell, ...]:
        return self._cells

    def __getitem__(self, key: str) -> Any:
        return self._cells[self._index[key]].value

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def type_of(self, key: str) -> CanonicalType:
        return self._cells[self._index[key]].canonical_type

    def as_dict(self) -> Dict[str, Any]:
        return {name: self[name] for name in self._index}

    def __repr__(self) -> str:
        return f"Row({self.as_dict()!r})"


@dataclass(frozen=True)
class ColumnDescriptor:
    """Result-set column as seen by consumers."""
    name: str
    canonical_type: CanonicalType
    native_type: Optional[str] = None


@dataclass
class QueryResult:
    """Result of one statement.

    A failed result never carries rows and always carries an error message;
    a successful one never carries an error.
    """
    success: bool
    rows: List[Row] = field(default_factory=list)
    row_count: int = 0
    columns: List[ColumnDescriptor] = field(default_factory=list)
    execution_time: float = 0.0
    error: Optional[str] = None
    affected_rows: Optional[int] = None
    command: Optional[str] = None
    sql: Optional[str] = None

    def __post_init__(self) -> None:
        if self.success:
            self.error = None
            if not self.row_count:
                self.row_count = len(self.rows)
        else:
            self.rows = []
            self.row_count = 0
            if not self.error:
                self.error = "Unknown error"

    @classmethod
    def failure(cls, error: str, *, sql: Optional[str] = None, execution_time: float = 0.0,
                command: Optional[str] = None) -> "QueryResult":
        return cls(
            success=False,
            error=error,
            sql=sql,
            execution_time=execution_time,
            command=command,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "rows": [row.as_dict() for row in self.rows],
            "row_count": self.row_count,
            "columns": [
                {"name": c.name, "type": c.canonical_type.value, "native_type": c.native_type}
                for c in self.columns
            ],
            "execution_time": self.execution_time,
            "error": self.error,
            "affected_rows": self.affected_rows,
            "command": self.command,
        }


@dataclass
class ColumnMetadata:
    """Canonical column descriptor.

    ``ordinal_position`` is 1-based and contiguous within its table.
    """
    name: str
    canonical_type: CanonicalType
    native_type: str
    type_string: str = ""
    nullable: bool = True
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    default_value: Optional[str] = None
    is_primary_key: bool = False
    is_foreign_key: bool = False
    foreign_table: Optional[str] = None
    foreign_column: Optional[str] = None
    is_unique: bool = False
    is_auto_increment: bool = False
    comment: Optional[str] = None
    ordinal_position: int = 0


@dataclass
class TableInfo:
    """Canonical table or view descriptor."""
    schema_name: str
    table_name: str
    table_type: TableType = TableType.TABLE
    columns: List[ColumnMetadata] = field(default_factory=list)
    row_count: Optional[int] = None
    size: Optional[int] = None
    comment: Optional[str] = None

    @property
    def qualified_name(self) -> str:
        return f"{self.schema_name}.{self.table_name}" if self.schema_name else self.table_name

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    def get_column(self, name: str) -> Optional[ColumnMetadata]:
        for column in self.columns:
            if column.name == name:
                return column
        return None


@dataclass
class ConstraintInfo:
    """One constraint/column pair; multi-column constraints yield one entry per column."""
    name: str
    kind: ConstraintKind
    table_name: str
    column_name: Optional[str] = None
    schema_name: Optional[str] = None
    foreign_table: Optional[str] = None
    foreign_column: Optional[str] = None


@dataclass
class DatabaseInfo:
    version: str
    name: str
    encoding: Optional[str] = None
    collation: Optional[str] = None
    edition: Optional[str] = None


@dataclass
class ConnectionTestResult:
    success: bool
    version: Optional[str] = None
    error: Optional[str] = None
    latency_ms: Optional[float] = None


@dataclass
class InspectionOptions:
    """Options for ``get_tables``; ``None`` falls back to the adapter defaults."""
    schema: Optional[str] = None
    include_views: Optional[bool] = None
    include_system_tables: Optional[bool] = None
    include_constraints: Optional[bool] = None
    table_types: Optional[Sequence[TableType]] = None


@dataclass
class QueryOptions:
    """Options for ``execute_query``.

    Attributes:
        max_rows: Inject the dialect row limit into SELECT statements
        timeout: Per-statement timeout in seconds
        params: Positional bind parameters
    """
    max_rows: Optional[int] = None
    timeout: Optional[float] = None
    params: Sequence[Any] = ()


# A transaction statement is either bare SQL or (SQL, positional params).
Statement = Union[str, Tuple[str, Sequence[Any]]]


@dataclass(frozen=True)
class PoolMetrics:
    """Point-in-time pool snapshot. ``borrowed`` is always derived."""
    total: int
    available: int
    pending: int
    max_size: int

    @property
    def borrowed(self) -> int:
        return self.total - self.available

    @property
    def utilization(self) -> float:
        return self.total / self.max_size if self.max_size else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "available": self.available,
            "borrowed": self.borrowed,
            "pending": self.pending,
            "max_size": self.max_size,
            "utilization": self.utilization,
        }
