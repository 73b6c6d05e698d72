"""Database package for appconf."""

from appconf.db.base import Base
from appconf.db.session import (
    create_engine_from_settings,
    create_session_maker,
    get_db,
    init_db,
)

__all__ = [
    "Base",
    "create_engine_from_settings",
    "create_session_maker",
    "get_db",
    "init_db",
]
