"""Core infrastructure for dbinspector.

Exports the exception taxonomy, component base classes, the native
connector protocol and shared utilities.
"""

from .base import AsyncComponent, BaseComponent
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    ConnectionError,
    ConnectionPoolError,
    ErrorCodes,
    InspectorException,
    MetadataError,
    NetworkError,
    NotConnected,
    PoolClosed,
    PoolExhausted,
    QueryError,
    TransactionAborted,
    UnsupportedPlatformError,
    ValidationError,
    create_error_from_exception,
)
from .protocols import NativeColumn, NativeConnector, NativeResult
from .utils import FormatUtils, StringUtils, ValidationUtils, safe_cast

__all__ = [
    # Base classes
    "AsyncComponent",
    "BaseComponent",
    # Exceptions
    "AuthenticationError",
    "ConfigurationError",
    "ConnectionError",
    "ConnectionPoolError",
    "ErrorCodes",
    "InspectorException",
    "MetadataError",
    "NetworkError",
    "NotConnected",
    "PoolClosed",
    "PoolExhausted",
    "QueryError",
    "TransactionAborted",
    "UnsupportedPlatformError",
    "ValidationError",
    "create_error_from_exception",
    # Protocols
    "NativeColumn",
    "NativeConnector",
    "NativeResult",
    # Utilities
    "FormatUtils",
    "StringUtils",
    "ValidationUtils",
    "safe_cast",
]
