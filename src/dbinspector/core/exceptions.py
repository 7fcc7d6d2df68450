"""dbinspector exception hierarchy.

This module defines the exception taxonomy shared by every inspector
adapter. Each exception carries an error code, a context dictionary that
describes the failed operation, and the underlying native error (if any).

Classes:
    InspectorException: Base exception for all inspector operations
    ConfigurationError: Invalid or unsupported configuration
    ConnectionError: A session cannot be established or validated
    ConnectionPoolError: Pool level failures (exhaustion, shutdown)
    NotConnected: Operation attempted on a closed or never-opened handle
    QueryError: Statement execution failed
    TransactionAborted: A statement inside a transaction failed
    MetadataError: Catalog introspection failed

Example:
    >>> try:
    ...     connection = await inspector.connect(config)
    ... except ConnectionError as e:
    ...     logger.error("Connection failed", error_code=e.code, context=e.context)
"""

import asyncio
from typing import Any, Dict, List, Optional


class InspectorException(Exception):
    """Root of every error raised by dbinspector.

    ``code`` is a stable ``ErrorCodes`` value (the class name when omitted),
    ``context`` names the operation, platform and object involved, and
    ``cause`` keeps the driver exception that triggered the failure.

    Example:
        >>> raise InspectorException(
        ...     "Catalog query failed",
        ...     code=ErrorCodes.METADATA_EXTRACTION_FAILED,
        ...     context={"operation": "get_tables", "platform": "oracle"}
        ... )
    """

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.code: str = code or type(self).__name__
        self.context: Dict[str, Any] = dict(context or {})
        self.cause: Optional[BaseException] = cause

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, code={self.code!r}, "
            f"context={self.context!r}, cause={self.cause!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly form attached to log events."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "code": self.code,
            "context": self.context,
            "cause": None if self.cause is None else str(self.cause),
        }


class ConfigurationError(InspectorException):
    """The supplied configuration is invalid or names something unknown."""
    pass


class ValidationError(ConfigurationError):
    """Data validation errors."""
    pass


class UnsupportedPlatformError(ConfigurationError):
    """Raised when an engine type tag cannot be resolved to a dialect."""
    pass


class ConnectionError(InspectorException):
    """A session to the database engine cannot be established or validated.

    Covers bad hosts, bad credentials and incompatible server versions.
    Always surfaced to the caller, never retried by this package.
    """
    pass


class AuthenticationError(ConnectionError):
    """Database authentication failed."""
    pass


class NetworkError(ConnectionError):
    """The database host could not be reached."""
    pass


class ConnectionPoolError(InspectorException):
    """Connection pool management errors."""
    pass


class PoolExhausted(ConnectionPoolError):
    """The acquire timeout elapsed with no connection available.

    Callers may retry.
    """
    pass


class PoolClosed(ConnectionPoolError):
    """The pool is draining or closed and accepts no new acquisitions."""
    pass


class NotConnected(InspectorException):
    """Operation attempted on a disconnected or never-connected handle."""
    pass


class QueryError(InspectorException):
    """Statement execution failed as reported by the engine.

    Captured into ``QueryResult.error`` by ``execute_query``; never raised
    from it.
    """
    pass


class TransactionAborted(QueryError):
    """A statement within a transaction failed and the transaction was rolled back.

    Attributes:
        statement_index: 0-based index of the failing statement, or None when
            the BEGIN or COMMIT statement itself failed
        query_error: The QueryError that triggered the abort
        results: Results of the statements that ran, the failing one last
    """

    def __init__(
        self,
        message: str,
        *,
        statement_index: Optional[int] = None,
        query_error: Optional[QueryError] = None,
        results: Optional[List[Any]] = None,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(
            message,
            code=code or ErrorCodes.TRANSACTION_ABORTED,
            context=context,
            cause=cause or query_error,
        )
        self.statement_index = statement_index
        self.query_error = query_error
        self.results: List[Any] = list(results or [])

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["statement_index"] = self.statement_index
        data["result_count"] = len(self.results)
        return data


class MetadataError(InspectorException):
    """Catalog introspection failed.

    Aborts whole-list operations such as ``get_tables``; degrades to an
    empty column list for per-table enrichment.
    """
    pass


class ErrorCodes:
    """Common error codes for dbinspector exceptions."""

    # Configuration errors
    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    CONFIG_INVALID = "CONFIG_INVALID"
    UNSUPPORTED_PLATFORM = "UNSUPPORTED_PLATFORM"

    # Connection errors
    CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"
    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    AUTH_FAILED = "AUTH_FAILED"
    NETWORK_UNREACHABLE = "NETWORK_UNREACHABLE"
    NOT_CONNECTED = "NOT_CONNECTED"

    # Pool errors
    POOL_EXHAUSTED = "POOL_EXHAUSTED"
    POOL_CLOSED = "POOL_CLOSED"

    # Query errors
    QUERY_EXECUTION_FAILED = "QUERY_EXECUTION_FAILED"
    QUERY_TIMEOUT = "QUERY_TIMEOUT"
    TRANSACTION_ABORTED = "TRANSACTION_ABORTED"
    ROLLBACK_FAILED = "ROLLBACK_FAILED"

    # Metadata errors
    METADATA_EXTRACTION_FAILED = "METADATA_EXTRACTION_FAILED"


def create_error_from_exception(
    exc: BaseException,
    message: Optional[str] = None,
    code: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
) -> InspectorException:
    """Wrap a driver or builtin exception in the matching package exception.

    Package exceptions are returned unchanged. Otherwise the first type in
    ``exc``'s MRO with a known mapping picks the class and default code:
    refused connections, OS-level network errors, timeouts, and bad values.

    Example:
        >>> try:
        ...     handle = await connector.open(config)
        ... except ConnectionRefusedError as e:
        ...     raise create_error_from_exception(e, context={"host": config.host}) from e
    """
    if isinstance(exc, InspectorException):
        return exc

    error_message = message or str(exc) or exc.__class__.__name__

    exception_mapping = {
        ConnectionRefusedError: (ConnectionError, ErrorCodes.CONNECTION_REFUSED),
        OSError: (NetworkError, ErrorCodes.NETWORK_UNREACHABLE),
        asyncio.TimeoutError: (QueryError, ErrorCodes.QUERY_TIMEOUT),
        TimeoutError: (QueryError, ErrorCodes.QUERY_TIMEOUT),
        ValueError: (ValidationError, ErrorCodes.CONFIG_INVALID),
        TypeError: (ValidationError, ErrorCodes.CONFIG_INVALID),
    }

    exception_class, default_code = InspectorException, None
    for exc_type in type(exc).__mro__:
        if exc_type in exception_mapping:
            exception_class, default_code = exception_mapping[exc_type]
            break

    return exception_class(
        error_message,
        code=code or default_code,
        context=context or {},
        cause=exc,
    )
