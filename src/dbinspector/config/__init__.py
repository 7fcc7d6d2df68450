"""dbinspector configuration models.

Example:
    >>> from dbinspector.config import DatabaseConfig
    >>> config = DatabaseConfig(type="mssql", host="db01", dbname="sales", user="sa")
    >>> config.platform
    'sqlserver'
"""

from .models import (
    PLATFORM_ALIASES,
    BaseConfig,
    DatabaseConfig,
    InspectorConfig,
    LoggingConfig,
    PoolConfig,
    canonical_platform,
)

__all__ = [
    "PLATFORM_ALIASES",
    "BaseConfig",
    "DatabaseConfig",
    "InspectorConfig",
    "LoggingConfig",
    "PoolConfig",
    "canonical_platform",
]
