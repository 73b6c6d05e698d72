"""FastAPI dependencies shared by the route modules."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from appconf.db import get_db
from appconf.services.store import ConfigurationStore


async def get_store(db: AsyncSession = Depends(get_db)) -> ConfigurationStore:
    """Dependency providing a ConfigurationStore bound to the request session."""
    return ConfigurationStore(db)
