"""FastAPI application entry point."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from appconf.api.router import api_router
from appconf.core.config import Settings
from appconf.core.config import settings as default_settings
from appconf.core.exceptions import ConfigurationError
from appconf.core.logging import get_logger, setup_logging
from appconf.core.middleware import RequestLoggingMiddleware
from appconf.db import create_engine_from_settings, create_session_maker, init_db
from appconf.schemas.app_configure import Envelope

logger = get_logger(__name__)


def _envelope_response(status_code: int, message: object) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=Envelope.failure(message).model_dump(mode="json"),
    )


def _request_context(request: Request) -> dict[str, str]:
    return {"method": request.method, "path": request.url.path}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create the database engine for the lifetime of the application."""
    settings: Settings = app.state.settings
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.version,
        host=settings.host,
        port=settings.port,
    )

    engine = create_engine_from_settings(settings)
    try:
        await init_db(engine, create_schema=settings.create_schema)
    except Exception:
        logger.exception("database_unavailable")
        await engine.dispose()
        raise

    app.state.engine = engine
    app.state.session_maker = create_session_maker(engine)
    logger.info("database_connected", pool_size=settings.db_pool_size)

    try:
        yield
    finally:
        logger.info("shutting_down_application")
        await engine.dispose()


def setup_exception_handlers(app: FastAPI) -> None:
    """Map every failure to the ``{code: 0, result: message}`` envelope."""

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "configuration_server_error",
                error_code=exc.code,
                error_message=exc.message,
                **_request_context(request),
            )
        else:
            logger.warning(
                "configuration_client_error",
                error_code=exc.code,
                error_message=exc.message,
                **_request_context(request),
            )
        return _envelope_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
        else:
            message = "Invalid request"
        logger.warning("request_validation_failed", error_message=message, **_request_context(request))
        return _envelope_response(422, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=Envelope.failure(exc.detail).model_dump(mode="json"),
            headers=getattr(exc, "headers", None) or None,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled_exception",
            exception_type=type(exc).__name__,
            exception_message=str(exc),
            exc_info=exc,
            **_request_context(request),
        )
        return _envelope_response(500, "Internal server error")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or default_settings
    setup_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="CRUD service for typed application configuration entries",
        version=settings.version,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["content-type"],
    )
    # Added last so it wraps everything, CORS included.
    app.add_middleware(
        RequestLoggingMiddleware,
        max_body_bytes=settings.max_body_bytes,
        log_body_chars=settings.log_body_chars,
    )

    setup_exception_handlers(app)
    app.include_router(api_router)

    return app


# Create the application instance
app = create_app()


def main() -> None:
    """Run the application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "appconf.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
    )


if __name__ == "__main__":
    main()
