"""Configuration models for dbinspector.

Pydantic models for every configuration object the inspector layer
consumes. ``DatabaseConfig`` is the complete external contract for
describing a target; the other models tune adapters, pools and logging.

Classes:
    BaseConfig: Base configuration class
    PoolConfig: Connection pool sizing and timeouts
    DatabaseConfig: Connection target descriptor
    InspectorConfig: Generic adapter settings
    LoggingConfig: Logging configuration

Example:
    >>> config = DatabaseConfig(
    ...     type="postgres",
    ...     host="localhost",
    ...     dbname="orders",
    ...     user="app_user",
    ...     password="secure_password",
    ... )
    >>> config.platform
    'postgresql'
"""

import hashlib
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)

# Engine tag aliases accepted from callers, mapped to canonical platform names.
PLATFORM_ALIASES: Dict[str, str] = {
    "postgresql": "postgresql",
    "postgres": "postgresql",
    "pg": "postgresql",
    "mysql": "mysql",
    "mariadb": "mysql",
    "oracle": "oracle",
    "sqlserver": "sqlserver",
    "mssql": "sqlserver",
    "sql-server": "sqlserver",
    "db2": "db2",
    "sap-hana": "hana",
    "hana": "hana",
    "saphana": "hana",
    "sybase": "sybase",
    "ase": "sybase",
    "netezza": "netezza",
    "informix": "informix",
    "firebird": "firebird",
}


def canonical_platform(platform: str) -> str:
    """Normalize an engine type tag.

    Known aliases are mapped to their canonical name; unknown tags are
    returned lower-cased so a registry can still resolve custom platforms.
    """
    tag = (platform or "").strip().lower()
    return PLATFORM_ALIASES.get(tag, tag)


class BaseConfig(BaseModel):
    """Base configuration class with common functionality.

    Example:
        >>> class MyConfig(BaseConfig):
        ...     name: str
        ...     value: int = 42
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        populate_by_name=True,
        validate_default=True,
    )

    def to_dict(self, *, mask_secrets: bool = True) -> Dict[str, Any]:
        """Convert configuration to dictionary.

        Args:
            mask_secrets: Whether to mask secret values

        Returns:
            Dictionary representation of configuration
        """
        def convert(value: Any) -> Any:
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            if isinstance(value, list):
                return [convert(item) for item in value]
            if isinstance(value, SecretStr):
                return "***MASKED***" if mask_secrets else value.get_secret_value()
            return value

        return convert(self.model_dump())

    def update_from_dict(self, data: Dict[str, Any]) -> "BaseConfig":
        """Return a new validated configuration with values replaced.

        Args:
            data: Dictionary with updated values

        Returns:
            New configuration instance with updated values
        """
        current = self.model_dump()
        current.update(data)
        return self.__class__.model_validate(current)


class PoolConfig(BaseConfig):
    """Connection pool configuration.

    Attributes:
        max_size: Upper bound on live connections
        min_idle: Idle connections kept open by the reaper
        idle_timeout: Seconds an idle connection may live above ``min_idle``
        acquire_timeout: Seconds ``acquire`` waits before ``PoolExhausted``
        shutdown_timeout: Seconds ``drain`` waits for outstanding borrows
        test_on_borrow: Validate connections before handing them out
        reap_interval: Seconds between idle-reaper passes
    """

    max_size: int = Field(10, ge=1, description="Maximum pool size")
    min_idle: int = Field(2, ge=0, description="Minimum idle connections")
    idle_timeout: float = Field(30.0, gt=0, description="Idle timeout in seconds")
    acquire_timeout: float = Field(30.0, gt=0, description="Acquire timeout in seconds")
    shutdown_timeout: float = Field(30.0, ge=0, description="Drain timeout in seconds")
    test_on_borrow: bool = Field(True, description="Validate connections on borrow")
    reap_interval: float = Field(5.0, gt=0, description="Idle reaper period in seconds")

    @model_validator(mode="after")
    def validate_sizes(self) -> "PoolConfig":
        if self.min_idle > self.max_size:
            raise ValueError("min_idle cannot exceed max_size")
        return self


class DatabaseConfig(BaseConfig):
    """Connection target descriptor.

    Immutable once constructed. Field aliases accept the camel-case wire
    shape (``dbname``, ``connectionLimit``, ``idleTimeout``,
    ``acquireTimeout``, ``type``, ``schema``).
    """

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        frozen=True,
    )

    platform: str = Field(..., alias="type", description="Engine type tag")
    host: str = Field("localhost", description="Database host")
    port: Optional[int] = Field(None, ge=1, le=65535, description="Database port")
    database: str = Field(..., alias="dbname", description="Database name")
    user: str = Field("", description="Login user")
    password: SecretStr = Field(SecretStr(""), description="Login password")
    schema_name: Optional[str] = Field(None, alias="schema", description="Default schema")
    connection_limit: int = Field(10, ge=1, alias="connectionLimit")
    min_idle: int = Field(2, ge=0, alias="minIdle")
    idle_timeout: float = Field(30.0, gt=0, alias="idleTimeout")
    acquire_timeout: float = Field(30.0, gt=0, alias="acquireTimeout")
    options: Dict[str, Any] = Field(default_factory=dict, description="Driver-specific options")

    @field_validator("platform")
    @classmethod
    def normalize_platform(cls, v: str) -> str:
        tag = canonical_platform(v)
        if not tag:
            raise ValueError("Database type cannot be empty")
        return tag

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        return v.strip() or "localhost"

    @field_validator("database")
    @classmethod
    def validate_database(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Database name is required")
        return v.strip()

    @model_validator(mode="after")
    def validate_pool_sizes(self) -> "DatabaseConfig":
        # The default min_idle is clamped in pool_config; only an explicit value can conflict.
        if "min_idle" in self.model_fields_set and self.min_idle > self.connection_limit:
            raise ValueError("min_idle cannot exceed connection_limit")
        return self

    @property
    def pool_key(self) -> Tuple[Any, ...]:
        """Identity of the target and its login; two configs with equal keys share a pool.

        The password enters only as a SHA-256 digest.
        """
        secret = hashlib.sha256(self.password.get_secret_value().encode("utf-8")).hexdigest()
        return (
            self.platform,
            self.host.lower(),
            self.port,
            self.database,
            self.user,
            secret,
            self.schema_name,
            tuple(sorted((name, repr(value)) for name, value in self.options.items())),
        )

    def pool_config(self, **overrides: Any) -> PoolConfig:
        """Build the pool configuration for this target."""
        values: Dict[str, Any] = {
            "max_size": self.connection_limit,
            "min_idle": min(self.min_idle, self.connection_limit),
            "idle_timeout": self.idle_timeout,
            "acquire_timeout": self.acquire_timeout,
        }
        values.update(overrides)
        return PoolConfig(**values)

    def __repr__(self) -> str:
        return (
            f"DatabaseConfig(platform={self.platform!r}, host={self.host!r}, "
            f"port={self.port!r}, database={self.database!r}, user={self.user!r})"
        )


class InspectorConfig(BaseConfig):
    """Settings for one generic inspector adapter.

    Attributes:
        platform: Engine type tag the adapter serves
        default_schema: Overrides the dialect default schema
        include_views: Default for ``InspectionOptions.include_views``
        include_system_tables: Default for ``InspectionOptions.include_system_tables``
        include_constraints: Default for ``InspectionOptions.include_constraints``
        query_timeout: Default per-statement timeout in seconds
        pool: Replaces the pool configuration derived from each DatabaseConfig
    """

    platform: str
    default_schema: Optional[str] = None
    include_views: bool = True
    include_system_tables: bool = False
    include_constraints: bool = True
    query_timeout: Optional[float] = Field(None, gt=0)
    pool: Optional[PoolConfig] = None

    @field_validator("platform")
    @classmethod
    def normalize_platform(cls, v: str) -> str:
        tag = canonical_platform(v)
        if not tag:
            raise ValueError("Platform cannot be empty")
        return tag


class LoggingConfig(BaseConfig):
    """Logging configuration.

    Attributes:
        level: Log level
        format: Log format (json, text)
        file_path: Log file path
        max_file_size: Maximum log file size in bytes
        backup_count: Number of backup files to keep
        console_output: Enable console output
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Logging level"
    )
    format: Literal["json", "text"] = Field("json", description="Log format")
    file_path: Optional[Path] = Field(None, description="Log file path")
    max_file_size: int = Field(10485760, gt=0, description="Max file size in bytes (10MB)")
    backup_count: int = Field(5, ge=0, description="Number of backup files")
    console_output: bool = Field(True, description="Enable console output")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v
