"""
Logistics record service: users, locations, priced orders, payments and
shipments over HTTP.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
import subprocess
import os

from logistics.core import ServiceHealth, setup_logging, RequestLoggingMiddleware, get_logger
from logistics.core_settings import Settings, get_settings
from logistics.api.routes import routers
from logistics.application.container import build_container
from logistics.domain.errors import ServiceError, ValidationError
from logistics.domain.pricing import PricingPolicy
from logistics.infrastructure.db import init_models, make_engine, make_session_factory
from logistics.infrastructure.providers import Clock, IdGenerator

SERVICE_NAME = "logistics-service"
SERVICE_DESCRIPTION = "Users, locations, orders, payments and shipments"

logger = get_logger(__name__)

def run_migrations():
    logger.info("Running database migrations")
    result = subprocess.run(
        ["alembic", "upgrade", "head"],
        cwd=os.path.join(os.path.dirname(__file__), ".."),
        capture_output=True,
        text=True,
        check=False
    )
    if result.returncode != 0:
        logger.warning(f"Migration output: {result.stderr}")
    else:
        logger.info("Database migrations completed")

def create_app(
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
    ids: Optional[IdGenerator] = None,
    pricing: Optional[PricingPolicy] = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {SERVICE_NAME} version {settings.SERVICE_VERSION}")

        if settings.RUN_MIGRATIONS:
            run_migrations()

        engine = make_engine(settings.database_url)
        init_models(engine)
        app.state.container = build_container(
            make_session_factory(engine), settings, clock=clock, ids=ids, pricing=pricing, engine=engine
        )
        logger.info(f"{SERVICE_NAME} started successfully")

        yield

        logger.info(f"Shutting down {SERVICE_NAME}")
        app.state.container = None
        engine.dispose()

    app = FastAPI(
        title=SERVICE_NAME,
        description=SERVICE_DESCRIPTION,
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json"
    )
    app.state.container = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        logger.warning(
            f"{exc.kind}: {exc.message}",
            extra={'extra_fields': {'path': request.url.path, 'kind': exc.kind}}
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        # Bodies FastAPI rejects before a repository sees them (e.g. not a JSON object)
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return await service_error_handler(request, ValidationError(f"Invalid request: {problems}"))

    def current_engine():
        container = app.state.container
        return container.engine if container else None

    health_service = ServiceHealth(
        SERVICE_NAME, settings.SERVICE_VERSION, engine_provider=current_engine, settings=settings
    )
    app.include_router(health_service.create_health_router())

    for router in routers:
        app.include_router(router)

    @app.get("/")
    async def root():
        return {
            "service": SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "status": "running",
            "docs": "/api/docs"
        }

    @app.get("/info")
    async def info():
        return {
            "service": SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "description": SERVICE_DESCRIPTION,
            "environment": settings.ENVIRONMENT,
            "parent_order_checks": {
                "payments": settings.PAYMENT_ORDER_CHECK,
                "shipments": settings.SHIPMENT_ORDER_CHECK,
            },
            "endpoints": {
                "health": "/health",
                "ready": "/health/ready",
                "live": "/health/live",
                "metrics": "/metrics",
                "docs": "/api/docs"
            }
        }

    return app

def build_app() -> FastAPI:
    """ASGI factory: ``uvicorn logistics.main:build_app --factory``."""
    settings = get_settings()
    setup_logging(service_name=SERVICE_NAME, level=settings.LOG_LEVEL)
    return create_app(settings)
