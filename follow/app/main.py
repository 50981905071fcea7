"""
FastAPI Application Entry Point.

This is the main application file for the Follow backend. `create_app`
builds everything a running instance needs from one `Settings` value and
keeps it on `app.state`; there are no process-wide singletons.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException

from follow.app.api.v1.router import router as api_v1_router
from follow.app.api.web import router as web_router
from follow.app.core.config import Settings
from follow.app.core.exceptions import (
    AppException,
    app_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from follow.app.core.observability import ObservabilityMiddleware, configure_logging
from follow.app.db.session import Base, build_engine, build_session_factory

# Import models to ensure they are registered with Base
from follow.app.models.device import Device  # noqa: F401
from follow.app.models.report import Report  # noqa: F401


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates database tables on startup.
    2. Disposes of the connection pool on shutdown.
    """
    engine = app.state.engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        description="Location reports from authenticated tracking devices",
        lifespan=lifespan,
    )

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.templates = Jinja2Templates(directory=settings.templates_dir)

    # Register global exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.add_middleware(ObservabilityMiddleware)
    if settings.cors_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allowed_origins,
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type", "X-Signature"],
            expose_headers=["Location"],
        )

    @app.get("/health_check", tags=["Health"])
    async def health_check():
        return Response(status_code=200)

    app.include_router(web_router)
    app.include_router(api_v1_router, prefix=settings.api_prefix)

    return app


app = create_app()
