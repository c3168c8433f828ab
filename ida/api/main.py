"""
FastAPI Application.

Main API entry point.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import Settings, get_settings
from ida import __version__
from ida.errors import NotFoundError, StoreError, UnknownStateError, ValidationError
from ida.store import Database
from ida.utils import get_logger, setup_logging
from ida.workflow import UNKNOWN_STATUS_MESSAGE

from .routes import analysis_mapping_router, inspection_data_router, router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    logger.info("Starting IDA API...")

    settings: Settings = app.state.settings
    database = Database.from_config(settings.postgres)
    if settings.postgres.create_schema:
        await database.init_db()
    app.state.database = database

    yield

    logger.info("Shutting down IDA API...")
    await database.close()


def register_exception_handlers(app: FastAPI) -> None:
    """Map the error taxonomy onto HTTP responses."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        logger.error(
            "store_error",
            method=request.method,
            path=request.url.path,
            operation=exc.operation,
            error=str(exc.cause),
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.exception_handler(UnknownStateError)
    async def unknown_state_handler(request: Request, exc: UnknownStateError) -> JSONResponse:
        # Pipeline reports a status this version does not know.
        logger.error(
            "unknown_workflow_status",
            path=request.url.path,
            status=exc.value,
        )
        return JSONResponse(status_code=500, content={"detail": UNKNOWN_STATUS_MESSAGE})


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title="Inspection Data Analyzer API",
        description="Analysis mappings and anonymization status of inspection data",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings or get_settings()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routes
    app.include_router(router, prefix="/api/v1")
    app.include_router(analysis_mapping_router, prefix="/api/v1")
    app.include_router(inspection_data_router, prefix="/api/v1")

    return app


# Create app instance
app = create_app()


def main() -> None:
    """Run the application."""
    import uvicorn

    settings = get_settings()
    setup_logging(settings)

    uvicorn.run(
        "ida.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
    )


if __name__ == "__main__":
    main()
