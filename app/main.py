"""
Renewal desk API with connector lifecycle management.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.config import settings
from app.features.renewals import renewals_router
from app.features.renewals.pipeline.enrichment import RenewalAssembler
from app.features.renewals.repository import PlacementRepository, RenewalStore
from app.features.renewals.services import SyncOrchestrator
from app.infrastructure.observability.logging import get_logger, setup_logging
from app.routes import health
from app.services.google import google_clients_from_settings
from app.services.hubspot.client import hubspot_client_from_settings

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown with proper resource management."""

    # Startup sequence
    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    hubspot_client = hubspot_client_from_settings()
    gmail_client, calendar_client = google_clients_from_settings()
    clients = [c for c in (hubspot_client, gmail_client, calendar_client) if c is not None]

    placements = PlacementRepository.load(settings.PLACEMENTS_CSV_PATH)
    sync_config = settings.get_sync_config()

    app.state.sync_orchestrator = SyncOrchestrator(
        store=RenewalStore(),
        deal_source=hubspot_client,
        email_source=gmail_client,
        calendar_source=calendar_client,
        assembler=RenewalAssembler(placements),
        email_limit=sync_config["email_limit"],
        calendar_lookback_days=sync_config["calendar_lookback_days"],
        fetch_timeout=sync_config["fetch_timeout"],
    )
    logger.info(
        "Renewal sync initialized",
        connectors=app.state.sync_orchestrator.connector_status(),
        placement_count=len(placements),
    )

    yield

    # Shutdown sequence
    logger.info("Application shutting down")

    shutdown_errors = []
    for client in clients:
        try:
            await client.close()
        except Exception as e:
            logger.error("Error closing API client", service=client.service_name, error=str(e))
            shutdown_errors.append(f"{client.service_name}: {e}")

    if shutdown_errors:
        logger.warning("Some clients had shutdown errors", errors=shutdown_errors)
    else:
        logger.info("All clients closed successfully")


app = FastAPI(
    title="Renewal Desk",
    description="Insurance renewal dashboard backed by HubSpot, Gmail and Google Calendar",
    version="0.1.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(health.router)
app.include_router(renewals_router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    logger.info(
        "HTTP request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
