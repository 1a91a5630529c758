"""
Paywall - FastAPI Application

Main entry point for the backend API.
Provides billing, article, and Stripe webhook endpoints.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from paywall.config.settings import settings
from paywall.api.errors import paywall_error_handler
from paywall.infrastructure.exceptions import PaywallError

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info(f"Paywall backend starting in {settings.environment} mode...")

    if not settings.stripe_secret_key:
        logger.warning("STRIPE_SECRET_KEY is not set, billing endpoints will fail")

    if settings.database_url:
        from paywall.infrastructure.db.database import init_db
        await init_db()
        logger.info("Database connection pool initialized")

    yield

    if settings.database_url:
        from paywall.infrastructure.db.database import close_db
        await close_db()
        logger.info("Database connection pool closed")

    logger.info("Paywall backend shutting down...")


app = FastAPI(
    title="Paywall",
    description="Paywalled articles with Stripe subscriptions and one-off purchases",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS configuration from Settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Service errors (also raised by Result.unwrap) map to status codes by type
app.add_exception_handler(PaywallError, paywall_error_handler)


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "paywall"}


# ============================================================================
# Import and register routers
# ============================================================================

from paywall.api.routes import articles, billing, webhooks  # noqa: E402

app.include_router(billing.router, prefix="/api", tags=["Billing"])
app.include_router(articles.router, prefix="/api", tags=["Articles"])
app.include_router(webhooks.router, prefix="/api", tags=["Webhooks"])
