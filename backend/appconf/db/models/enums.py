"""Enum types for database models."""

from __future__ import annotations

import enum


class DataType(str, enum.Enum):
    """Declared type of a configuration entry's textual ``data``.

    Values are the codes stored in the ``data_type`` column.
    """

    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    STRING = "string"


def decode_type(code: str | None) -> DataType:
    """Map a stored type code to a DataType.

    Unrecognized codes fall back to STRING instead of raising.
    """
    try:
        return DataType(code)
    except ValueError:
        return DataType.STRING


def encode_type(data_type: DataType) -> str:
    """Map a DataType to its stored code."""
    return data_type.value
