"""Native connectors.

``AsyncpgConnector`` and ``AiomysqlConnector`` import their drivers on
module import; ``DBAPIConnector`` wraps any PEP 249 driver supplied by the
caller.
"""

from .dbapi import DBAPIConnector, default_connect_kwargs, type_name_of

__all__ = [
    "DBAPIConnector",
    "default_connect_kwargs",
    "type_name_of",
]
