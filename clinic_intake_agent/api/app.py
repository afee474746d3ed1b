"""
FastAPI application factory and configuration.
"""

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import Settings, get_settings
from ..utils.logging import configure_logging, get_logger
from .container import ServiceContainer, build_services
from .middleware import SecurityHeaders, LoggingMiddleware
from .webhooks import ZApiWebhook
from .handlers import AdminHandler, HealthHandler

logger = get_logger("clinic.app")


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[ServiceContainer] = None,
) -> FastAPI:
    """Create and configure FastAPI application."""
    if services is not None:
        settings = services.settings
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    services = services or build_services(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await services.store.initialize()
        logger.info(f"{settings.app_name} {settings.app_version} started")
        yield

    app = FastAPI(
        title=settings.app_name,
        description="WhatsApp intake assistant for EviDenS Clinic",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.services = services

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add custom middleware
    app.add_middleware(SecurityHeaders)
    app.add_middleware(LoggingMiddleware)

    # Initialize handlers
    health_handler = HealthHandler(settings, services.store)
    admin_handler = AdminHandler(services)
    zapi_webhook = ZApiWebhook(services.orchestrator)

    # Register routes
    app.include_router(health_handler.router, prefix="/health", tags=["health"])
    app.include_router(zapi_webhook.router, prefix="/webhook", tags=["webhooks"])
    app.include_router(admin_handler.router, prefix="/admin", tags=["admin"])

    return app
