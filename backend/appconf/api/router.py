"""API router that aggregates all routes."""

from fastapi import APIRouter

from appconf.api.routes import app_configure, health

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(app_configure.router)
