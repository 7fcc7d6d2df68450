"""Type normalization for native column types.

Maps each engine's native type names (and Firebird's numeric type codes)
to a ``CanonicalType`` and to a reconstructable canonical type string such
as ``varchar(255)`` or ``numeric(10,2)``. Unknown types never raise: they
classify as ``unknown`` and keep their lower-cased native spelling.

Example:
    >>> normalizer = TypeNormalizer("postgresql")
    >>> normalizer.normalize_type("character varying", length=255)
    <CanonicalType.STRING: 'string'>
    >>> normalizer.to_canonical_type_string("NUMERIC", precision=10, scale=2)
    'numeric(10,2)'
    >>> parse_type_string("numeric(10,2)")
    ParsedType(family=<CanonicalType.NUMBER: 'number'>, base_name='numeric', length=None, precision=10, scale=2)
"""

import datetime
import decimal
import re
import uuid
from typing import Dict, List, Mapping, NamedTuple, Optional, Tuple, Union

from .models import CanonicalType
from ..core.utils import safe_cast

# Parameter kinds: how a type carries its size in the canonical string.
LENGTH = "length"
DECIMAL = "decimal"
PLAIN = "plain"

TypeRule = Tuple[CanonicalType, str]

_S, _N, _D, _B, _X = (
    CanonicalType.STRING,
    CanonicalType.NUMBER,
    CanonicalType.DATE,
    CanonicalType.BOOLEAN,
    CanonicalType.BINARY,
)


def _rules(canonical: CanonicalType, kind: str, *names: str) -> Dict[str, TypeRule]:
    return {name: (canonical, kind) for name in names}


COMMON_TYPES: Dict[str, TypeRule] = {
    **_rules(_S, LENGTH,
             "char", "character", "varchar", "character varying", "char varying",
             "nchar", "national char", "national character", "nvarchar",
             "national char varying", "national character varying",
             "varchar2", "nvarchar2", "graphic", "vargraphic", "long varchar",
             "alphanum", "shorttext", "lvarchar", "unichar", "univarchar", "bpchar",
             "cstring"),
    **_rules(_S, PLAIN,
             "text", "tinytext", "mediumtext", "longtext", "clob", "nclob", "dbclob",
             "ntext", "unitext", "string", "json", "jsonb", "xml", "uuid",
             "uniqueidentifier", "enum", "set", "citext", "name", "sysname",
             "long vargraphic", "character large object", "blob sub_type text",
             "inet", "cidr", "macaddr", "rowid", "urowid"),
    **_rules(_N, PLAIN,
             "smallint", "integer", "int", "bigint", "tinyint", "mediumint",
             "int2", "int4", "int8", "byteint", "serial", "smallserial", "bigserial",
             "serial8", "int64", "float", "real", "double", "double precision",
             "float4", "float8", "binary_float", "binary_double", "smallfloat",
             "money", "smallmoney", "decfloat", "binary_integer", "pls_integer", "oid"),
    **_rules(_N, DECIMAL, "decimal", "numeric", "number", "dec", "smalldecimal"),
    **_rules(_D, PLAIN,
             "date", "time", "timestamp", "datetime", "datetime2", "smalldatetime",
             "datetimeoffset", "timestamp with time zone", "timestamp without time zone",
             "time with time zone", "time without time zone", "timestamptz", "timetz",
             "timestamp with local time zone", "seconddate", "interval", "bigdatetime",
             "bigtime", "abstime", "year"),
    **_rules(_B, PLAIN, "boolean", "bool", "bit"),
    **_rules(_X, LENGTH, "binary", "varbinary", "raw", "bit varying", "varbit"),
    **_rules(_X, PLAIN,
             "blob", "tinyblob", "mediumblob", "longblob", "bytea", "image",
             "long raw", "byte", "binary large object", "bfile", "rowversion"),
}

# Per-engine differences from COMMON_TYPES.
ENGINE_TYPES: Dict[str, Dict[str, TypeRule]] = {
    "postgresql": {
        **_rules(_S, PLAIN, "tsvector", "tsquery", "regclass"),
    },
    "mysql": {
        # cursor.description type names reported by the MySQL protocol
        **_rules(_S, LENGTH, "var_string"),
        **_rules(_N, PLAIN, "tiny", "short", "long", "longlong", "int24"),
        **_rules(_N, DECIMAL, "newdecimal"),
        **_rules(_D, PLAIN, "newdate"),
        **_rules(_S, PLAIN, "geometry"),
        **_rules(_X, PLAIN, "tiny_blob", "medium_blob", "long_blob"),
    },
    "oracle": {
        **_rules(_S, PLAIN, "long"),
        **_rules(_D, PLAIN, "interval year to month", "interval day to second"),
    },
    "sqlserver": {
        # SQL Server TIMESTAMP is a row version, not a temporal type.
        **_rules(_X, PLAIN, "timestamp"),
        **_rules(_S, PLAIN, "hierarchyid", "sql_variant"),
    },
    "sybase": {
        **_rules(_X, PLAIN, "timestamp"),
    },
    "informix": {
        **_rules(_N, DECIMAL, "money"),
        **_rules(_X, PLAIN, "byte"),
        **_rules(_S, PLAIN, "text"),
    },
    "db2": {},
    "hana": {},
    "netezza": {},
    "firebird": {
        **_rules(_N, PLAIN, "d_float", "quad"),
    },
}

FIREBIRD_TYPE_CODES: Dict[int, str] = {
    7: "smallint",
    8: "integer",
    9: "quad",
    10: "float",
    11: "d_float",
    12: "date",
    13: "time",
    14: "char",
    16: "bigint",
    23: "boolean",
    27: "double precision",
    35: "timestamp",
    37: "varchar",
    40: "cstring",
    261: "blob",
}

# Integer widths reclassified as numeric(p, s) when a signed-scale engine
# reports a negative scale.
SCALED_INTEGER_PRECISION: Dict[str, int] = {
    "smallint": 4,
    "integer": 9,
    "int": 9,
    "bigint": 18,
    "int64": 18,
}

_TEMPORAL_PREFIXES = ("interval", "datetime", "timestamp")
_PARAMS = re.compile(r"\(([^)]*)\)")
_FOR_BIT_DATA = re.compile(r"\bfor\s+bit\s+data\b")
_MODIFIERS = re.compile(r"\b(?:unsigned|signed|zerofill|identity)\b")
_SPACES = re.compile(r"\s+")


class NormalizedType(NamedTuple):
    """Complete normalization of one native type."""
    canonical: CanonicalType
    type_string: str
    base_name: str
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None


class ParsedType(NamedTuple):
    """Result of re-reading a canonical type string."""
    family: CanonicalType
    base_name: str
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None


def _split_native_name(native: str) -> Tuple[str, List[Optional[int]], bool]:
    """Split a native type spelling into base name, numeric params and FOR BIT DATA."""
    text = native.strip().lower()
    for_bit_data = bool(_FOR_BIT_DATA.search(text))
    text = _FOR_BIT_DATA.sub(" ", text)

    params: List[Optional[int]] = []
    match = _PARAMS.search(text)
    if match:
        params = [safe_cast(part, int) for part in match.group(1).split(",")]
    text = _PARAMS.sub(" ", text)
    text = _MODIFIERS.sub(" ", text)
    return _SPACES.sub(" ", text).strip(), params, for_bit_data


def _positive(value: Optional[int]) -> Optional[int]:
    return value if value is not None and value > 0 else None


def _render(base: str, kind: str, length: Optional[int], precision: Optional[int],
            scale: Optional[int]) -> str:
    if kind == LENGTH:
        return f"{base}({length})" if length else base
    if kind == DECIMAL:
        if precision is not None and scale is not None:
            return f"numeric({precision},{scale})"
        if precision is not None:
            return f"numeric({precision})"
        return "numeric"
    return base


class TypeNormalizer:
    """Per-engine type normalizer.

    Args:
        platform: Canonical engine tag selecting the engine lookup table
        signed_scale: Interpret negative scales as fixed-point integers
        overrides: Extra ``name -> (CanonicalType, kind)`` rules
    """

    def __init__(
        self,
        platform: str,
        *,
        signed_scale: bool = False,
        overrides: Optional[Mapping[str, TypeRule]] = None,
    ) -> None:
        self.platform = platform
        self.signed_scale = signed_scale
        self._rules: Dict[str, TypeRule] = {
            **COMMON_TYPES,
            **ENGINE_TYPES.get(platform, {}),
            **(overrides or {}),
        }

    def lookup(self, base_name: str) -> Optional[TypeRule]:
        rule = self._rules.get(base_name)
        if rule is None and base_name.startswith(_TEMPORAL_PREFIXES):
            rule = (_D, PLAIN)
        return rule

    def native_name(self, native: Optional[Union[str, int]], sub_type: Optional[int] = None) -> str:
        """Native type name as reported to consumers; numeric type codes are resolved."""
        if native is None:
            return ""
        if self.platform == "firebird" or isinstance(native, int):
            return self._resolve_code(native, sub_type)
        return str(native).strip()

    def _resolve_code(self, native: Union[str, int], sub_type: Optional[int]) -> str:
        code = native if isinstance(native, int) else safe_cast(str(native), int)
        if code is None or code not in FIREBIRD_TYPE_CODES:
            return str(native)
        name = FIREBIRD_TYPE_CODES[code]
        if name == "blob" and safe_cast(sub_type, int) == 1:
            return "blob sub_type text"
        return name

    def describe_type(
        self,
        native: Optional[Union[str, int]],
        length: Optional[int] = None,
        precision: Optional[int] = None,
        scale: Optional[int] = None,
        *,
        sub_type: Optional[int] = None,
    ) -> NormalizedType:
        """Normalize a native type name or code.

        Explicit ``length``/``precision``/``scale`` win over parameters
        embedded in the name.
        """
        if native is None or str(native).strip() == "":
            return NormalizedType(CanonicalType.UNKNOWN, "unknown", "")

        if self.platform == "firebird" or isinstance(native, int):
            native = self._resolve_code(native, sub_type)

        base, params, for_bit_data = _split_native_name(str(native))
        rule = self.lookup(base)
        if rule is None:
            return NormalizedType(CanonicalType.UNKNOWN, str(native).strip().lower(), base)

        canonical, kind = rule
        if for_bit_data:
            canonical = CanonicalType.BINARY

        length = safe_cast(length, int)
        precision = safe_cast(precision, int)
        scale = safe_cast(scale, int)

        if kind == LENGTH and length is None and params:
            length = params[0]
        if kind == DECIMAL:
            if precision is None and params:
                precision = params[0]
            if scale is None and len(params) > 1:
                scale = params[1]

        if self.signed_scale and scale is not None and scale < 0:
            if base in SCALED_INTEGER_PRECISION:
                width = SCALED_INTEGER_PRECISION[base]
                actual = abs(scale)
                return NormalizedType(
                    CanonicalType.NUMBER, f"numeric({width},{actual})", "numeric",
                    precision=width, scale=actual,
                )
            scale = abs(scale)

        if kind == LENGTH:
            length = _positive(length)
            return NormalizedType(canonical, _render(base, kind, length, None, None), base, length=length)
        if kind == DECIMAL:
            return NormalizedType(
                canonical, _render(base, kind, None, precision, scale), base,
                precision=precision, scale=scale,
            )
        return NormalizedType(canonical, base, base)

    def normalize_type(
        self,
        native: Optional[Union[str, int]],
        length: Optional[int] = None,
        precision: Optional[int] = None,
        scale: Optional[int] = None,
        *,
        sub_type: Optional[int] = None,
    ) -> CanonicalType:
        return self.describe_type(native, length, precision, scale, sub_type=sub_type).canonical

    def to_canonical_type_string(
        self,
        native: Optional[Union[str, int]],
        length: Optional[int] = None,
        precision: Optional[int] = None,
        scale: Optional[int] = None,
        *,
        sub_type: Optional[int] = None,
    ) -> str:
        return self.describe_type(native, length, precision, scale, sub_type=sub_type).type_string


_generic = TypeNormalizer("generic")


def infer_canonical_type(value: object) -> CanonicalType:
    """Classify a Python value returned by a driver that reported no column type."""
    if value is None:
        return CanonicalType.UNKNOWN
    if isinstance(value, bool):
        return CanonicalType.BOOLEAN
    if isinstance(value, (int, float, decimal.Decimal)):
        return CanonicalType.NUMBER
    if isinstance(value, (datetime.date, datetime.time, datetime.timedelta)):
        return CanonicalType.DATE
    if isinstance(value, (bytes, bytearray, memoryview)):
        return CanonicalType.BINARY
    if isinstance(value, (str, uuid.UUID)):
        return CanonicalType.STRING
    return CanonicalType.UNKNOWN


def parse_type_string(type_string: str) -> ParsedType:
    """Re-read a canonical type string into its family and parameters.

    Example:
        >>> parse_type_string("varchar(255)").length
        255
    """
    base, params, for_bit_data = _split_native_name(type_string or "")
    rule = _generic.lookup(base)
    if rule is None:
        return ParsedType(CanonicalType.UNKNOWN, base)

    family, kind = rule
    if for_bit_data:
        family = CanonicalType.BINARY
    if kind == LENGTH:
        return ParsedType(family, base, length=_positive(params[0]) if params else None)
    if kind == DECIMAL:
        return ParsedType(
            family, base,
            precision=params[0] if params else None,
            scale=params[1] if len(params) > 1 else None,
        )
    return ParsedType(family, base)


def normalize_type(platform: str, native: Optional[Union[str, int]], length: Optional[int] = None,
                   precision: Optional[int] = None, scale: Optional[int] = None) -> CanonicalType:
    """Module-level shortcut; signed-scale handling follows the platform."""
    return TypeNormalizer(platform, signed_scale=platform == "firebird").normalize_type(
        native, length, precision, scale
    )


def to_canonical_type_string(platform: str, native: Optional[Union[str, int]], length: Optional[int] = None,
                             precision: Optional[int] = None, scale: Optional[int] = None) -> str:
    return TypeNormalizer(platform, signed_scale=platform == "firebird").to_canonical_type_string(
        native, length, precision, scale
    )
