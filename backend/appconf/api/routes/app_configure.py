"""API endpoints for application configuration entries."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from appconf.api.dependencies import get_store
from appconf.core.exceptions import ConfigurationParseError, ConfigurationValidationError
from appconf.core.logging import get_logger
from appconf.db.models import encode_type
from appconf.schemas.app_configure import ConfigurationEntry, Envelope, UpdateOneRequest
from appconf.services.store import ConfigurationStore

logger = get_logger(__name__)

router = APIRouter(tags=["app-configure"])


def _external_or_error(entry: ConfigurationEntry) -> dict[str, Any]:
    """External form of an entry, or an error item if its data does not parse."""
    try:
        return entry.to_external_value()
    except ConfigurationParseError as e:
        logger.warning(
            "configuration_parse_failed",
            id=entry.id,
            name=entry.name,
            data_type=encode_type(entry.data_type),
        )
        return {
            "id": entry.id,
            "name": entry.name,
            "data_type": encode_type(entry.data_type),
            "error": e.message,
        }


# =============================================================================
# Read Endpoints
# =============================================================================


@router.get("/all-app-configure", response_model=Envelope)
async def all_app_configure(
    store: ConfigurationStore = Depends(get_store),
) -> Envelope:
    """List every configuration entry with typed values."""
    entries = await store.list_all()
    return Envelope.success([_external_or_error(entry) for entry in entries])


@router.get("/effective-app-configure", response_model=Envelope)
async def effective_app_configure(
    store: ConfigurationStore = Depends(get_store),
) -> Envelope:
    """List the entries currently marked effective, with typed values."""
    entries = await store.list_effective()
    return Envelope.success([_external_or_error(entry) for entry in entries])


@router.get("/query-one/{name}", response_model=Envelope)
async def query_one(
    name: str,
    store: ConfigurationStore = Depends(get_store),
) -> Envelope:
    """Get a single entry by name, as stored (``data`` stays text)."""
    entry = await store.get_by_name(name)
    return Envelope.success(entry.model_dump(mode="json"))


@router.get("/query-by-id/{entry_id}", response_model=Envelope)
async def query_by_id(
    entry_id: int,
    store: ConfigurationStore = Depends(get_store),
) -> Envelope:
    """Get a single entry by id, as stored."""
    entry = await store.get_by_id(entry_id)
    return Envelope.success(entry.model_dump(mode="json"))


# =============================================================================
# Write Endpoints
# =============================================================================


@router.post("/update-one", response_model=Envelope)
async def update_one(
    body: UpdateOneRequest,
    store: ConfigurationStore = Depends(get_store),
) -> Envelope:
    """Update one field of the entry with the given name.

    Responds ``{"code": 0, "result": "fail"}`` when no entry has the name.
    """
    if body.name is None:
        raise ConfigurationValidationError("name is required")
    if body.field is None:
        raise ConfigurationValidationError("field is required")
    if body.value is None:
        raise ConfigurationValidationError("value is required")

    updated = await store.update_field_by_name(body.name, body.field, body.value)
    if not updated:
        return Envelope.failure("fail")

    await store.commit()
    return Envelope.success("success")


@router.post("/insert-one", response_model=Envelope)
async def insert_one(
    entry: ConfigurationEntry,
    store: ConfigurationStore = Depends(get_store),
) -> Envelope:
    """Create a new entry; the body must not carry an id."""
    created = await store.insert(entry)
    await store.commit()
    return Envelope.success(created.model_dump(mode="json"))


@router.post("/save-one", response_model=Envelope)
async def save_one(
    entry: ConfigurationEntry,
    store: ConfigurationStore = Depends(get_store),
) -> Envelope:
    """Replace the entry with the body's id, or create it when id is absent."""
    saved = await store.update(entry)
    await store.commit()
    return Envelope.success(saved.model_dump(mode="json"))


@router.post("/delete-one/{entry_id}", response_model=Envelope)
async def delete_one(
    entry_id: int,
    store: ConfigurationStore = Depends(get_store),
) -> Envelope:
    """Delete an entry by id; unknown ids succeed without effect."""
    await store.delete(entry_id)
    await store.commit()
    logger.info("configuration_deleted_via_api", id=entry_id)
    return Envelope.success("success")
