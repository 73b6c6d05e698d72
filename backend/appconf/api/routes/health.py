"""Liveness endpoint."""

from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/")
async def hello_world() -> str:
    """Liveness probe; returns a fixed greeting."""
    return "Hello World!"
