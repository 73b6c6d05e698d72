"""Configuration store: CRUD over the app_configure table."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from appconf.core.exceptions import (
    ConfigurationNotFoundError,
    ConfigurationStorageError,
    ConfigurationValidationError,
)
from appconf.core.logging import get_logger
from appconf.db.models import MAX_ID, AppConfigure, DataType, encode_type
from appconf.schemas.app_configure import ConfigurationEntry

logger = get_logger(__name__)


def _coerce_name(value: str) -> str:
    if not value:
        raise ConfigurationValidationError("name must not be empty")
    return value


def _coerce_data_type(value: str) -> str:
    try:
        return encode_type(DataType(value))
    except ValueError:
        codes = ", ".join(t.value for t in DataType)
        raise ConfigurationValidationError(
            f"Unknown data_type {value!r}. Valid codes: {codes}"
        ) from None


def _coerce_effective(value: str) -> bool:
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ConfigurationValidationError(f"effective must be 'true' or 'false', got {value!r}")


def _identity(value: str) -> str:
    return value


def _storable_id(entry_id: int) -> bool:
    return 0 <= entry_id <= MAX_ID


# Columns that update_field_by_name may touch, with the converter applied to
# the incoming text before it is bound.
MUTABLE_FIELDS: dict[str, tuple[Any, Callable[[str], Any]]] = {
    "name": (AppConfigure.name, _coerce_name),
    "data": (AppConfigure.data, _identity),
    "data_type": (AppConfigure.data_type, _coerce_data_type),
    "description": (AppConfigure.description, _identity),
    "effective": (AppConfigure.effective, _coerce_effective),
}


class ConfigurationStore:
    """Reads and writes configuration entries through an async session.

    Writes are flushed but not committed; callers commit the unit of work
    with :meth:`commit`. Every database failure surfaces as
    ConfigurationStorageError.
    """

    def __init__(self, db: AsyncSession):
        """Initialize the store.

        Args:
            db: The database session.
        """
        self.db = db

    async def list_all(self) -> list[ConfigurationEntry]:
        """Return every entry, in storage order."""
        rows = await self._scalars(select(AppConfigure), "list_all")
        return [ConfigurationEntry.from_row(row) for row in rows]

    async def list_effective(self) -> list[ConfigurationEntry]:
        """Return entries whose effective flag is true."""
        rows = await self._scalars(
            select(AppConfigure).where(AppConfigure.effective.is_(True)),
            "list_effective",
        )
        return [ConfigurationEntry.from_row(row) for row in rows]

    async def get_by_id(self, entry_id: int) -> ConfigurationEntry:
        """Return the entry with the given id.

        Raises:
            ConfigurationNotFoundError: If no row has that id.
        """
        if not _storable_id(entry_id):
            raise ConfigurationNotFoundError(f"No configuration with id {entry_id}")
        rows = await self._scalars(
            select(AppConfigure).where(AppConfigure.id == entry_id),
            "get_by_id",
        )
        if not rows:
            raise ConfigurationNotFoundError(f"No configuration with id {entry_id}")
        return ConfigurationEntry.from_row(rows[0])

    async def get_by_name(self, name: str) -> ConfigurationEntry:
        """Return the entry with the given name.

        When several rows share the name, the one with the lowest id wins.

        Raises:
            ConfigurationNotFoundError: If no row has that name.
        """
        rows = await self._scalars(
            select(AppConfigure)
            .where(AppConfigure.name == name)
            .order_by(AppConfigure.id)
            .limit(1),
            "get_by_name",
        )
        if not rows:
            raise ConfigurationNotFoundError(f"No configuration named '{name}'")
        return ConfigurationEntry.from_row(rows[0])

    async def insert(self, entry: ConfigurationEntry) -> ConfigurationEntry:
        """Persist a new entry and return it with its assigned id.

        Raises:
            ConfigurationValidationError: If the entry already has an id or
                its name is empty.
        """
        if entry.id is not None:
            raise ConfigurationValidationError("A new configuration entry must not have an id")
        if not entry.name:
            raise ConfigurationValidationError("name must not be empty")

        row = AppConfigure(
            name=entry.name,
            data_type=encode_type(entry.data_type),
            data=entry.data,
            description=entry.description,
            effective=entry.effective,
        )
        try:
            self.db.add(row)
            await self.db.flush()
        except SQLAlchemyError as e:
            raise self._storage_error("insert", e) from e

        logger.info("configuration_inserted", id=row.id, name=row.name)
        return ConfigurationEntry.from_row(row)

    async def update(self, entry: ConfigurationEntry) -> ConfigurationEntry:
        """Replace every mutable column of the entry's row.

        Entries without an id are inserted instead.

        Raises:
            ConfigurationNotFoundError: If no row has the entry's id.
            ConfigurationValidationError: If the name is empty.
        """
        if entry.id is None:
            return await self.insert(entry)
        if not entry.name:
            raise ConfigurationValidationError("name must not be empty")
        if not _storable_id(entry.id):
            raise ConfigurationNotFoundError(f"No configuration with id {entry.id}")

        rows = await self._scalars(
            select(AppConfigure).where(AppConfigure.id == entry.id),
            "update",
        )
        if not rows:
            raise ConfigurationNotFoundError(f"No configuration with id {entry.id}")

        row = rows[0]
        row.name = entry.name
        row.data = entry.data
        row.data_type = encode_type(entry.data_type)
        row.description = entry.description
        row.effective = entry.effective
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            raise self._storage_error("update", e) from e

        logger.info("configuration_updated", id=row.id, name=row.name)
        return ConfigurationEntry.from_row(row)

    async def update_field_by_name(self, name: str, field: str, value: str) -> bool:
        """Set one column of the entry with the given name.

        Args:
            name: Name of the entry; the lowest id wins on duplicates.
            field: One of the keys of MUTABLE_FIELDS.
            value: New value as text, converted for the target column.

        Returns:
            True if exactly one row was updated, False if no row has the name.

        Raises:
            ConfigurationValidationError: If the field is not mutable or the
                value is invalid for it.
        """
        if field not in MUTABLE_FIELDS:
            allowed = ", ".join(MUTABLE_FIELDS)
            raise ConfigurationValidationError(
                f"Field {field!r} cannot be updated. Allowed fields: {allowed}"
            )
        column, convert = MUTABLE_FIELDS[field]
        converted = convert(value)

        try:
            result = await self.db.execute(
                select(func.min(AppConfigure.id)).where(AppConfigure.name == name)
            )
            target_id = result.scalar()
            if target_id is None:
                logger.info("configuration_field_update_missed", name=name, field=field)
                return False

            result = await self.db.execute(
                update(AppConfigure)
                .where(AppConfigure.id == target_id)
                .values({column: converted})
                .execution_options(synchronize_session="evaluate")
            )
        except SQLAlchemyError as e:
            raise self._storage_error("update_field_by_name", e) from e

        updated = result.rowcount == 1
        logger.info(
            "configuration_field_updated",
            id=target_id,
            name=name,
            field=field,
            updated=updated,
        )
        return updated

    async def delete(self, entry_id: int) -> None:
        """Delete the entry with the given id; unknown ids are ignored."""
        if not _storable_id(entry_id):
            logger.info("configuration_deleted", id=entry_id, deleted=0)
            return
        try:
            result = await self.db.execute(
                delete(AppConfigure)
                .where(AppConfigure.id == entry_id)
                .execution_options(synchronize_session="evaluate")
            )
        except SQLAlchemyError as e:
            raise self._storage_error("delete", e) from e

        logger.info("configuration_deleted", id=entry_id, deleted=result.rowcount)

    async def commit(self) -> None:
        """Commit pending writes."""
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise self._storage_error("commit", e) from e

    async def _scalars(self, statement: Any, operation: str) -> Sequence[AppConfigure]:
        try:
            result = await self.db.execute(statement)
            return result.scalars().all()
        except SQLAlchemyError as e:
            raise self._storage_error(operation, e) from e

    @staticmethod
    def _storage_error(operation: str, error: Exception) -> ConfigurationStorageError:
        logger.error(
            "configuration_storage_failed",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
        )
        return ConfigurationStorageError(
            f"Failed to {operation.replace('_', ' ')} configuration",
            operation=operation,
        )
