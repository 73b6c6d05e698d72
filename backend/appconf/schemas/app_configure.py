"""Pydantic schemas for configuration entries and the response envelope."""

from __future__ import annotations

import math
import re
from typing import Any

from pydantic import BaseModel, Field

from appconf.core.exceptions import ConfigurationParseError
from appconf.db.models import MAX_ID, AppConfigure, DataType, decode_type, encode_type

_INT_LITERAL = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class ConfigurationEntry(BaseModel):
    """One configuration entry as seen by the store and the API."""

    id: int | None = Field(
        default=None, ge=0, le=MAX_ID, description="Assigned by storage on insert"
    )
    name: str = Field(description="Logical key of the setting")
    data_type: DataType = Field(default=DataType.STRING, description="How data must be parsed")
    data: str = Field(default="", description="Raw textual value")
    description: str | None = Field(default=None, description="Free-form note")
    effective: bool | None = Field(default=None, description="Whether the setting is active")

    @classmethod
    def from_row(cls, row: AppConfigure) -> ConfigurationEntry:
        """Build an entry from a table row, decoding unknown type codes as STRING."""
        return cls(
            id=row.id,
            name=row.name,
            data_type=decode_type(row.data_type),
            data=row.data if row.data is not None else "",
            description=row.description,
            effective=row.effective,
        )

    def typed_value(self) -> int | float | bool | str:
        """Parse ``data`` according to ``data_type``.

        Raises:
            ConfigurationParseError: If an INT or FLOAT entry holds text that
                is not a valid literal of that type, or an INT falls outside
                the signed 64-bit range.
        """
        text = self.data
        if self.data_type is DataType.INT:
            if not _INT_LITERAL.fullmatch(text):
                raise ConfigurationParseError(
                    f"Configuration '{self.name}' has invalid int data: {text!r}",
                    name=self.name,
                )
            value = int(text)
            if not _INT64_MIN <= value <= _INT64_MAX:
                raise ConfigurationParseError(
                    f"Configuration '{self.name}' int data out of 64-bit range: {text!r}",
                    name=self.name,
                )
            return value

        if self.data_type is DataType.FLOAT:
            try:
                if "_" in text or text != text.strip():
                    raise ValueError(text)
                value = float(text)
            except ValueError:
                value = math.nan
            if not math.isfinite(value):
                raise ConfigurationParseError(
                    f"Configuration '{self.name}' has invalid float data: {text!r}",
                    name=self.name,
                )
            return value

        if self.data_type is DataType.BOOL:
            return text.lower() == "true"

        return text

    def to_external_value(self) -> dict[str, Any]:
        """Return the JSON representation with ``data`` converted to its type."""
        return {
            "id": self.id,
            "name": self.name,
            "data": self.typed_value(),
            "data_type": encode_type(self.data_type),
            "effective": self.effective,
            "description": self.description,
        }


class UpdateOneRequest(BaseModel):
    """Request to update a single field of the entry with the given name.

    All three fields are required; they are declared optional so the route
    can report which one is missing.
    """

    name: str | None = Field(default=None, description="Name of the entry to update")
    field: str | None = Field(default=None, description="Column to update")
    value: str | None = Field(default=None, description="New value, as text")


class Envelope(BaseModel):
    """Uniform response envelope: code 1 on success, 0 on failure."""

    code: int = Field(description="1 for success, 0 for a caller-facing failure")
    result: Any = Field(default=None, description="Payload or error message")

    @classmethod
    def success(cls, result: Any) -> Envelope:
        return cls(code=1, result=result)

    @classmethod
    def failure(cls, message: Any) -> Envelope:
        return cls(code=0, result=message)
