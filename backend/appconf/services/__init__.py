"""Business logic services for appconf."""

from appconf.services.store import MUTABLE_FIELDS, ConfigurationStore

__all__ = [
    "ConfigurationStore",
    "MUTABLE_FIELDS",
]
