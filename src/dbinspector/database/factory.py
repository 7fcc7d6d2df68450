"""Inspector factory."""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..config.models import DatabaseConfig, InspectorConfig
from ..core.exceptions import ConfigurationError, ErrorCodes, InspectorException
from ..core.protocols import NativeConnector
from ..logging import get_logger
from .base import DatabaseInspector
from .registry import DatabaseInspectorRegistry, get_global_registry


class DatabaseInspectorFactory:
    """Builds generic inspectors from the platform registry.

    Example:
        >>> factory = DatabaseInspectorFactory()
        >>> inspector = factory.create_inspector("postgres")
        >>> inspector.dialect.display_name
        'PostgreSQL'
    """

    def __init__(self, registry: Optional[DatabaseInspectorRegistry] = None) -> None:
        self.logger = get_logger("database.factory")
        self.registry = registry or get_global_registry()

    def create_inspector(
        self,
        platform: str,
        connector: Optional[NativeConnector] = None,
        config: Optional[InspectorConfig] = None,
    ) -> DatabaseInspector:
        """Create an inspector for ``platform``.

        Args:
            platform: Engine tag or alias
            connector: Native connector; the platform default when omitted
            config: Adapter settings; defaults derived from ``platform``

        Raises:
            UnsupportedPlatformError: Unknown engine tag
            ConfigurationError: No connector was given and the platform has no default
        """
        tag = self.registry.resolve_platform(platform)
        config = config or InspectorConfig(platform=tag)
        if config.platform != tag:
            raise ConfigurationError(
                f"Inspector config is for {config.platform}, not {tag}",
                code=ErrorCodes.CONFIG_INVALID,
                context={"platform": tag, "config_platform": config.platform},
            )

        if connector is None:
            connector_factory = self.registry.get_connector_factory(tag)
            if connector_factory is None:
                raise ConfigurationError(
                    f"No default connector for {tag}; pass a NativeConnector",
                    code=ErrorCodes.CONFIG_NOT_FOUND,
                    context={"platform": tag},
                )
            connector = connector_factory()

        inspector = DatabaseInspector(config, connector, dialect=self.registry.get_dialect(tag))
        self.logger.info(
            "Inspector created",
            platform=tag,
            connector_class=type(connector).__name__,
        )
        return inspector

    def create_inspector_from_dict(
        self,
        config_dict: Dict[str, Any],
        connector: Optional[NativeConnector] = None,
    ) -> DatabaseInspector:
        """Create an inspector from a plain ``InspectorConfig`` dictionary."""
        try:
            config = InspectorConfig.model_validate(config_dict)
        except PydanticValidationError as e:
            raise ConfigurationError(
                f"Invalid inspector configuration: {e}",
                code=ErrorCodes.CONFIG_INVALID,
                context={"fields": sorted(config_dict)},
                cause=e,
            ) from e
        return self.create_inspector(config.platform, connector, config)

    def get_supported_platforms(self) -> List[str]:
        return self.registry.list_platforms()

    def is_platform_supported(self, platform: str) -> bool:
        return self.registry.is_platform_supported(platform)

    def validate_configuration(self, config: DatabaseConfig) -> bool:
        """True when ``config`` names a supported platform and a usable target."""
        try:
            self._validate_configuration(config)
        except InspectorException as e:
            self.logger.debug("Configuration rejected", code=e.code, error=e.message)
            return False
        return True

    def _validate_configuration(self, config: DatabaseConfig) -> None:
        tag = self.registry.resolve_platform(config.platform)

        if not config.database:
            raise ConfigurationError(
                "Database configuration missing required field: database",
                code=ErrorCodes.CONFIG_INVALID,
                context={"field": "database", "platform": tag},
            )
        if tag != "firebird" and not config.host:
            raise ConfigurationError(
                "Database configuration missing required field: host",
                code=ErrorCodes.CONFIG_INVALID,
                context={"field": "host", "platform": tag},
            )


def create_inspector(
    platform: str,
    connector: Optional[NativeConnector] = None,
    config: Optional[InspectorConfig] = None,
) -> DatabaseInspector:
    return DatabaseInspectorFactory().create_inspector(platform, connector, config)


def create_inspector_from_dict(
    config_dict: Dict[str, Any],
    connector: Optional[NativeConnector] = None,
) -> DatabaseInspector:
    return DatabaseInspectorFactory().create_inspector_from_dict(config_dict, connector)


def get_supported_platforms() -> List[str]:
    return DatabaseInspectorFactory().get_supported_platforms()


def is_platform_supported(platform: str) -> bool:
    return DatabaseInspectorFactory().is_platform_supported(platform)
