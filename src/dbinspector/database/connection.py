"""Connection handles returned by ``DatabaseInspector.connect``."""

import asyncio
import time
from typing import Any, Dict, List, Optional, Tuple

from ..config.models import DatabaseConfig
from ..core.exceptions import ErrorCodes, InspectorException, NotConnected
from ..core.utils import StringUtils
from .models import ConnectionState
from .pool import ConnectionPool, PooledConnection

_TRANSITIONS: Dict[ConnectionState, Tuple[ConnectionState, ...]] = {
    ConnectionState.CREATED: (ConnectionState.CONNECTING,),
    ConnectionState.CONNECTING: (ConnectionState.CONNECTED, ConnectionState.FAILED),
    ConnectionState.CONNECTED: (ConnectionState.DISCONNECTED,),
    ConnectionState.FAILED: (ConnectionState.DISCONNECTED,),
    ConnectionState.DISCONNECTED: (),
}


def generate_connection_id(config: DatabaseConfig) -> str:
    """Opaque id of the form ``{platform}_{host}_{database}_{epoch_ms}_{random}``.

    Example:
        >>> generate_connection_id(config)
        'postgresql_localhost_orders_1718000000000_k3j9x2'
    """
    parts = [
        config.platform,
        config.host or "localhost",
        config.database,
        str(int(time.time() * 1000)),
        StringUtils.generate_random_string(6),
    ]
    return "_".join(parts).lower()


class Connection:
    """One live session to one engine instance.

    The connection holds a pooled native session exclusively from ``connect``
    until ``disconnect`` returns it. It is not safe for concurrent use; the
    inspector serializes operations on it through ``lock``.

    Attributes:
        connection_id: Opaque identifier
        config: Target this connection was opened for
        default_schema: Schema used when an operation names none
    """

    def __init__(
        self,
        config: DatabaseConfig,
        pool: ConnectionPool,
        *,
        default_schema: str = "",
        connection_id: Optional[str] = None,
    ) -> None:
        self.config = config
        self.pool = pool
        self.default_schema = default_schema
        self.connection_id = connection_id or generate_connection_id(config)
        self.lock = asyncio.Lock()
        self.connected_at: Optional[float] = None

        self._pooled: Optional[PooledConnection] = None
        self._state = ConnectionState.CREATED
        self._history: List[ConnectionState] = [self._state]

    @property
    def platform(self) -> str:
        return self.config.platform

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def history(self) -> List[ConnectionState]:
        return list(self._history)

    @property
    def connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def is_suspect(self) -> bool:
        return self._pooled is not None and self._pooled.is_suspect

    def transition(self, new_state: ConnectionState) -> None:
        """Move to ``new_state``.

        Raises:
            InspectorException: If the state machine forbids the move
        """
        if new_state not in _TRANSITIONS[self._state]:
            raise InspectorException(
                f"Invalid connection state transition {self._state.value} -> {new_state.value}",
                code="INVALID_STATE_TRANSITION",
                context={"connection_id": self.connection_id},
            )
        self._state = new_state
        self._history.append(new_state)

    def attach(self, pooled: PooledConnection) -> None:
        self._pooled = pooled
        self.connected_at = time.time()
        self.transition(ConnectionState.CONNECTED)

    def detach(self) -> Optional[PooledConnection]:
        """Give up the pooled session; returns None when already detached."""
        pooled, self._pooled = self._pooled, None
        return pooled

    def ensure_connected(self, operation: Optional[str] = None) -> Any:
        """Return the native handle.

        Raises:
            NotConnected: If the connection is not in the connected state
        """
        if not self.connected or self._pooled is None:
            raise NotConnected(
                f"Connection {self.connection_id} is not connected",
                code=ErrorCodes.NOT_CONNECTED,
                context={
                    "connection_id": self.connection_id,
                    "state": self._state.value,
                    "operation": operation,
                },
            )
        return self._pooled.handle

    def mark_suspect(self) -> None:
        """Flag the session so the pool discards it instead of reusing it."""
        if self._pooled is not None:
            self._pooled.is_suspect = True

    def __repr__(self) -> str:
        return (
            f"Connection(id={self.connection_id!r}, platform={self.platform!r}, "
            f"state={self._state.value!r})"
        )
