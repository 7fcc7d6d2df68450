"""Collaborator protocols for dbinspector.

The inspector layer never talks to a database driver directly. Every
adapter receives a ``NativeConnector`` that opens, closes and executes on
native session handles; anything implementing these three coroutines can
back an inspector.

Classes:
    NativeColumn: Column descriptor reported by a driver
    NativeResult: Raw result of one statement
    NativeConnector: Protocol for injected engine connectors
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Protocol, Sequence, Union, runtime_checkable

if TYPE_CHECKING:
    from ..config.models import DatabaseConfig


@dataclass(frozen=True)
class NativeColumn:
    """Column as described by the driver.

    Attributes:
        name: Column label
        type_name: Native type name or code, if the driver reports one
    """
    name: str
    type_name: Optional[Union[str, int]] = None


@dataclass
class NativeResult:
    """Raw statement result returned by ``NativeConnector.exec``.

    ``rows`` may hold sequences aligned with ``columns`` or mappings keyed by
    column name.
    """
    columns: List[NativeColumn] = field(default_factory=list)
    rows: List[Union[Sequence[Any], Mapping[str, Any]]] = field(default_factory=list)
    affected_rows: Optional[int] = None


@runtime_checkable
class NativeConnector(Protocol):
    """Protocol for engine connectors injected into an inspector.

    Example:
        >>> class MyConnector:
        ...     async def open(self, config): return driver.connect(...)
        ...     async def close(self, handle): handle.close()
        ...     async def exec(self, handle, sql, params): ...
    """

    async def open(self, config: "DatabaseConfig") -> Any:
        """Open a native session for the given target."""
        ...

    async def close(self, handle: Any) -> None:
        """Close a native session opened by ``open``."""
        ...

    async def exec(self, handle: Any, sql: str, params: Sequence[Any]) -> NativeResult:
        """Execute one statement on a native session."""
        ...
