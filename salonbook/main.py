"""
SalonBook - Main Application Entry Point
Multi-tenant salon booking backend: subscriptions, plan entitlements and business settings
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from sqlmodel import Session
import structlog

from salonbook import __version__
from salonbook.core.config import get_settings
from salonbook.core.database import engine
from salonbook.core.events import event_bus
from salonbook.core.exception_handlers import register_exception_handlers
from salonbook.api import plans, settings as settings_api, subscriptions, webhooks
from salonbook.services.notifications import register_notification_handlers

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info("Initializing SalonBook backend")
    # Tables are created by Alembic migrations, not auto-generated
    register_notification_handlers(event_bus, lambda: Session(engine))

    yield

    # Shutdown
    event_bus.clear_subscribers()
    logger.info("Shutting down SalonBook backend")


# Create FastAPI application
app = FastAPI(
    title="SalonBook API",
    description="Multi-tenant salon booking with subscription plans and entitlements",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(subscriptions.router, prefix=settings.API_V1_PREFIX)
app.include_router(plans.router, prefix=settings.API_V1_PREFIX)
app.include_router(settings_api.router, prefix=settings.API_V1_PREFIX)
app.include_router(webhooks.router, prefix=settings.API_V1_PREFIX)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "salonbook-api"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "salonbook.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level="info",
    )
