"""Database models for appconf."""

from appconf.db.models.app_configure import MAX_ID, AppConfigure
from appconf.db.models.enums import DataType, decode_type, encode_type

__all__ = [
    # Models
    "AppConfigure",
    "MAX_ID",
    # Enums
    "DataType",
    "decode_type",
    "encode_type",
]
