"""Platform and connection registries."""

import asyncio
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple

from ..config.models import DatabaseConfig, canonical_platform
from ..core.exceptions import (
    ConfigurationError,
    ErrorCodes,
    NotConnected,
    UnsupportedPlatformError,
)
from ..core.protocols import NativeConnector
from ..logging import get_logger
from .base import DatabaseInspector
from .connection import Connection
from .dialects import DIALECTS, Dialect

if TYPE_CHECKING:
    from .factory import DatabaseInspectorFactory

ConnectorFactory = Callable[[], NativeConnector]


def _asyncpg_connector() -> NativeConnector:
    from .connectors.postgresql import AsyncpgConnector
    return AsyncpgConnector()


def _aiomysql_connector() -> NativeConnector:
    from .connectors.mysql import AiomysqlConnector
    return AiomysqlConnector()


DEFAULT_CONNECTORS: Dict[str, ConnectorFactory] = {
    "postgresql": _asyncpg_connector,
    "mysql": _aiomysql_connector,
}


class DatabaseInspectorRegistry:
    """Maps canonical engine tags to their dialect and default connector.

    Engine tags are normalized through the alias table before lookup, so
    ``"postgres"``, ``"PG"`` and ``"postgresql"`` resolve to the same entry.
    """

    def __init__(self, *, register_builtin: bool = True) -> None:
        self.logger = get_logger("database.registry")
        self._dialects: Dict[str, Dialect] = {}
        self._connector_factories: Dict[str, Optional[ConnectorFactory]] = {}
        self._metadata: Dict[str, Dict[str, str]] = {}

        if register_builtin:
            for platform, dialect in DIALECTS.items():
                self.register_platform(platform, dialect, DEFAULT_CONNECTORS.get(platform))

    def register_platform(
        self,
        platform: str,
        dialect: Dialect,
        connector_factory: Optional[ConnectorFactory] = None,
        description: Optional[str] = None,
    ) -> None:
        """Register or replace the dialect serving ``platform``."""
        if not isinstance(dialect, Dialect):
            raise ConfigurationError(
                f"Expected a Dialect for platform {platform!r}, got {type(dialect).__name__}",
                code=ErrorCodes.CONFIG_INVALID,
                context={"platform": platform},
            )

        tag = canonical_platform(platform)
        if tag in self._dialects:
            self.logger.warning("Overriding existing platform registration", platform=tag)

        self._dialects[tag] = dialect
        self._connector_factories[tag] = connector_factory
        self._metadata[tag] = {
            "platform": tag,
            "display_name": dialect.display_name,
            "description": description or f"{dialect.display_name} inspector",
            "default_connector": "yes" if connector_factory else "no",
        }
        self.logger.debug("Platform registered", platform=tag, has_connector=connector_factory is not None)

    def resolve_platform(self, platform: str) -> str:
        """Canonical tag for ``platform``.

        Raises:
            UnsupportedPlatformError: If the tag is not registered
        """
        tag = canonical_platform(platform)
        if tag not in self._dialects:
            raise UnsupportedPlatformError(
                f"Unsupported database type: {platform}",
                code=ErrorCodes.UNSUPPORTED_PLATFORM,
                context={"platform": platform, "available_platforms": self.list_platforms()},
            )
        return tag

    def get_dialect(self, platform: str) -> Dialect:
        return self._dialects[self.resolve_platform(platform)]

    def get_connector_factory(self, platform: str) -> Optional[ConnectorFactory]:
        return self._connector_factories[self.resolve_platform(platform)]

    def is_platform_supported(self, platform: str) -> bool:
        return canonical_platform(platform) in self._dialects

    def list_platforms(self) -> List[str]:
        return sorted(self._dialects)

    def get_platform_metadata(self, platform: str) -> Dict[str, str]:
        return dict(self._metadata[self.resolve_platform(platform)])

    def unregister_platform(self, platform: str) -> None:
        tag = self.resolve_platform(platform)
        del self._dialects[tag]
        del self._connector_factories[tag]
        del self._metadata[tag]
        self.logger.info("Platform unregistered", platform=tag)


_global_registry: Optional[DatabaseInspectorRegistry] = None


def get_global_registry() -> DatabaseInspectorRegistry:
    global _global_registry
    if _global_registry is None:
        _global_registry = DatabaseInspectorRegistry()
    return _global_registry


def register_platform(
    platform: str,
    dialect: Dialect,
    connector_factory: Optional[ConnectorFactory] = None,
    description: Optional[str] = None,
) -> None:
    get_global_registry().register_platform(platform, dialect, connector_factory, description)


def resolve_platform(platform: str) -> str:
    return get_global_registry().resolve_platform(platform)


def list_platforms() -> List[str]:
    return get_global_registry().list_platforms()


class ConnectionRegistry:
    """Tracks live connections by opaque id.

    One inspector is cached per canonical platform and shared by every
    connection to that platform.

    Example:
        >>> registry = ConnectionRegistry()
        >>> connection_id = await registry.connect(config)
        >>> inspector, connection = registry.get(connection_id)
        >>> await registry.disconnect(connection_id)
    """

    def __init__(self, factory: Optional["DatabaseInspectorFactory"] = None) -> None:
        if factory is None:
            from .factory import DatabaseInspectorFactory
            factory = DatabaseInspectorFactory()
        self.factory = factory
        self.logger = get_logger("database.connections")
        self._inspectors: Dict[str, DatabaseInspector] = {}
        self._connections: Dict[str, Tuple[DatabaseInspector, Connection]] = {}
        self._lock = asyncio.Lock()

    async def _inspector_for(
        self,
        platform: str,
        connector: Optional[NativeConnector],
    ) -> DatabaseInspector:
        async with self._lock:
            inspector = self._inspectors.get(platform)
            if inspector is None:
                inspector = self.factory.create_inspector(platform, connector)
                self._inspectors[platform] = inspector
            elif connector is not None and connector is not inspector.connector:
                raise ConfigurationError(
                    f"An inspector for {platform!r} is already bound to a different connector",
                    code=ErrorCodes.CONFIG_INVALID,
                    context={
                        "platform": platform,
                        "connector": type(connector).__name__,
                        "bound_connector": type(inspector.connector).__name__,
                    },
                )
            return inspector

    async def connect(self, config: DatabaseConfig, connector: Optional[NativeConnector] = None) -> str:
        """Open a connection and return its id.

        The first connect for a platform fixes its connector; later calls may
        omit ``connector`` or pass the same one.

        Raises:
            ConfigurationError: ``connector`` differs from the one already bound
        """
        platform = self.factory.registry.resolve_platform(config.platform)
        inspector = await self._inspector_for(platform, connector)
        connection = await inspector.connect(config)
        self._connections[connection.connection_id] = (inspector, connection)
        return connection.connection_id

    def get(self, connection_id: str) -> Tuple[DatabaseInspector, Connection]:
        """Look up a live connection.

        Raises:
            NotConnected: If the id is unknown or was disconnected
        """
        try:
            return self._connections[connection_id]
        except KeyError:
            raise NotConnected(
                f"No active connection with id {connection_id}",
                code=ErrorCodes.NOT_CONNECTED,
                context={"connection_id": connection_id},
            ) from None

    async def disconnect(self, connection_id: str) -> None:
        """Close a connection; an unknown id is treated as already closed."""
        entry = self._connections.pop(connection_id, None)
        if entry is None:
            self.logger.debug("Disconnect of unknown connection ignored", connection_id=connection_id)
            return
        inspector, connection = entry
        await inspector.disconnect(connection)

    def active_connections(self) -> List[str]:
        return list(self._connections)

    async def close_all(self) -> None:
        """Disconnect everything and clean up every cached inspector."""
        for connection_id in list(self._connections):
            await self.disconnect(connection_id)

        inspectors, self._inspectors = list(self._inspectors.values()), {}
        for inspector in inspectors:
            await inspector.cleanup()
        self.logger.info("Connection registry closed", inspectors=len(inspectors))
