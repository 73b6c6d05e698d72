"""Application configuration table."""

from __future__ import annotations

from sqlalchemy import Boolean, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from appconf.db.base import Base

# Largest value the 32-bit INTEGER id column can hold.
MAX_ID = 2**31 - 1


class AppConfigure(Base):
    """One named, typed configuration setting.

    ``data`` is always stored as text; ``data_type`` holds the raw type code
    so rows written by other tools with unknown codes still load.
    """

    __tablename__ = "app_configure"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(Text, nullable=False)
    data_type: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    effective: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    def __repr__(self) -> str:
        return f"<AppConfigure id={self.id} name={self.name!r} data_type={self.data_type!r}>"
