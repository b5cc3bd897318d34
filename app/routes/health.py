"""
Health check endpoints with connector and cache status.
"""

import time

from fastapi import APIRouter, Request

from app.config import settings

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "renewal-desk-backend"}


@router.get("/readyz")
async def readyz(request: Request):
    """
    Readiness check covering connector configuration and the renewal cache.
    Missing connectors are reported but do not fail readiness; a sync simply
    runs with empty data for them.
    """
    checks = {}
    overall_ok = True

    # 1) Sync orchestrator
    orchestrator = getattr(request.app.state, "sync_orchestrator", None)
    if orchestrator is None:
        checks["sync"] = {"ok": False, "error": "Sync orchestrator not initialized"}
        overall_ok = False
    else:
        sync_status = orchestrator.get_sync_status()
        checks["sync"] = {
            "ok": True,
            "has_synced": sync_status.has_synced,
            "record_count": sync_status.record_count,
            "last_sync": sync_status.last_sync.isoformat() if sync_status.last_sync else None,
        }
        checks["connectors"] = orchestrator.connector_status()

    # 2) Configuration checks
    config_issues = []
    if not settings.hubspot_connected():
        config_issues.append("HUBSPOT_ACCESS_TOKEN not set")
    if not settings.google_connected():
        config_issues.append("GOOGLE_ACCESS_TOKEN not set")

    checks["configuration"] = {
        "ok": True,
        "issues": config_issues if config_issues else None,
        "environment": settings.environment,
    }

    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}
