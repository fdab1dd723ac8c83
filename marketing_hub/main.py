"""
Marketing Hub
Main FastAPI application
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from marketing_hub.config import get_settings
from marketing_hub.exceptions import IngestionError
from marketing_hub.utils.logger import log
from marketing_hub import __version__

# Import routers
from marketing_hub.api import health, webhook, drive_import, sync, marketing_data

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    log.info(f"Starting {settings.app_name} v{__version__}")
    log.info(f"Environment: {settings.environment}")

    from marketing_hub.models.base import init_db
    init_db()
    log.info("Database initialized")

    # Start the scheduler for automated syncs
    from marketing_hub.scheduler import start_scheduler, stop_scheduler
    if settings.enable_scheduler:
        start_scheduler()

    yield

    # Shutdown
    stop_scheduler()
    log.info("Shutting down application")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="""
    Marketing data ingestion and aggregation backend

    - Dataslayer webhook for vendor-pushed metrics
    - Google Drive CSV import (single file or whole folder)
    - Google Sheets sync into per-source aggregated records
    - Typed aggregated views and connection status for dashboards
    """,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(IngestionError)
async def ingestion_error_handler(request: Request, exc: IngestionError):
    if exc.status_code >= 500:
        log.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        log.warning(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_response()))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are client errors (400), not FastAPI's default 422
    log.warning(f"{request.method} {request.url.path} invalid request body")
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder({"error": "Invalid request body", "details": exc.errors()}),
    )


# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(webhook.router)
app.include_router(drive_import.router)
app.include_router(sync.router)
app.include_router(marketing_data.router)
