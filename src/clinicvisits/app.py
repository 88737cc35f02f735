"""
FastAPI application factory and main app configuration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clinicvisits.api.routers import finance, health, visits
from clinicvisits.core.config import get_settings
from clinicvisits.core.logging import configure_logging
from clinicvisits.domain.errors import DomainError

logger = logging.getLogger(__name__)


async def init_database(settings) -> None:
    """Connect Beanie to MongoDB and register the document models."""
    from beanie import init_beanie
    from motor.motor_asyncio import AsyncIOMotorClient

    from clinicvisits.adapters.db.mongo.models.participant_m import ParticipantMongo
    from clinicvisits.adapters.db.mongo.models.visit_m import VisitMongo

    client = AsyncIOMotorClient(settings.database.uri)
    await init_beanie(
        database=client[settings.database.db_name],
        document_models=[VisitMongo, ParticipantMongo],
    )
    logger.info("MongoDB/Beanie initialized (database %s)", settings.database.db_name)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    logger.info(
        "Starting %s v%s (environment %s, storage %s)",
        settings.app_name,
        settings.app_version,
        settings.app_env,
        settings.storage.backend,
    )
    if settings.storage.backend == "mongo":
        await init_database(settings)

    yield

    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()
    configure_logging(settings.logging)

    app = FastAPI(
        title=settings.app_name,
        description="Visit lifecycle, treatment billing and finance reporting for clinics",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allowed_origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allowed_methods,
        allow_headers=settings.cors.allowed_headers,
    )

    # Include routers
    app.include_router(health.router)
    app.include_router(visits.router)
    app.include_router(finance.router)

    # Global exception handler for domain errors
    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        return JSONResponse(
            status_code=exc.http_status,
            content={
                "error": exc.error_code,
                "message": exc.message,
                "details": exc.details,
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled error in %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": {"type": exc.__class__.__name__},
            },
        )

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.app_env,
            "status": "running",
            "docs": "/docs" if settings.debug else "disabled",
            "endpoints": {
                "health": "/health",
                "schedule_visit": "POST /visits/",
                "my_visits": "GET /visits/",
                "visit_status": "POST /visits/{id}/start|complete|cancel",
                "treatments": "POST /visits/{id}/treatments",
                "finance_search": "GET /finance/visits",
                "finance_dashboard": "GET /finance/dashboard",
                "finance_export": "GET /finance/export",
            },
        }

    return app


# Create the app instance
app = create_app()
