"""
Renewal routes.

Sync trigger, cache status, the ranked renewal list and the debug views of
the last orchestration run all live here, next to the feature they serve.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from app.features.renewals.api.schemas import (
    RenewalResponse,
    RenewalsListResponse,
    SyncResponse,
    SyncStatusResponse,
)
from app.features.renewals.domain.models import Renewal
from app.features.renewals.pipeline.scoring import rank_all, score
from app.features.renewals.services import SyncOrchestrator, build_orchestration_stats
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["renewals"])


def get_sync_orchestrator(request: Request) -> SyncOrchestrator:
    """Return the orchestrator created at startup."""
    orchestrator = getattr(request.app.state, "sync_orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Renewal sync is not initialized",
        )
    return orchestrator


def _renewal_response(renewal: Renewal, priority_score: float, breakdown: dict) -> RenewalResponse:
    return RenewalResponse(**renewal.to_dict(), priority_score=priority_score, score_breakdown=breakdown)


def _find_renewal(orchestrator: SyncOrchestrator, renewal_id: str) -> Renewal:
    renewal = orchestrator.get_renewal(renewal_id)
    if renewal is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Renewal not found")
    return renewal


@router.post("/sync", response_model=SyncResponse)
async def trigger_sync(orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator)):
    """Fetch every source, rebuild the renewals and replace the cache."""
    result = await orchestrator.sync()
    response = SyncResponse.from_result(result)

    if not result.success:
        logger.error("Sync request failed", error=result.error)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=response.model_dump(mode="json"),
        )
    return response


@router.get("/sync/status", response_model=SyncStatusResponse)
async def get_sync_status(orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator)):
    """Report when the cache was last replaced and how many renewals it holds."""
    return SyncStatusResponse.from_status(orchestrator.get_sync_status())


@router.get("/renewals", response_model=RenewalsListResponse)
async def list_renewals(orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator)):
    """List cached renewals, highest priority first."""
    ranked = rank_all(orchestrator.get_renewals())
    sync_status = orchestrator.get_sync_status()

    return RenewalsListResponse(
        renewals=[
            _renewal_response(item.renewal, item.priority_score, item.score_breakdown)
            for item in ranked
        ],
        total=len(ranked),
        last_sync=sync_status.last_sync,
    )


@router.get("/renewals/{renewal_id}", response_model=RenewalResponse)
async def get_renewal(
    renewal_id: str, orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator)
):
    renewal = _find_renewal(orchestrator, renewal_id)
    result = score(renewal)
    return _renewal_response(renewal, result.value, result.breakdown)


@router.get("/debug/orchestration")
async def get_orchestration_stats(orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator)):
    """Show how the last sync linked emails and meetings to deals."""
    return build_orchestration_stats(orchestrator.get_renewals(), orchestrator.get_sync_status())


@router.get("/debug/renewal/{renewal_id}")
async def get_renewal_debug(
    renewal_id: str, orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator)
):
    """Full renewal record plus enrichment flags."""
    renewal = _find_renewal(orchestrator, renewal_id)
    comms = renewal.communications
    contact = renewal.primary_contact
    result = score(renewal)

    return {
        "renewal": renewal.to_dict(),
        "priority_score": result.value,
        "score_breakdown": result.breakdown,
        "debug": {
            "has_contact": contact.hubspot_id is not None,
            "has_email": bool(contact.email),
            "has_phone": bool(contact.phone),
            "email_count": comms.email_count,
            "meeting_count": comms.meeting_count,
            "total_touchpoints": comms.total_touchpoints,
            "last_contact": comms.last_contact_date,
            "source_tracking": renewal.to_dict()["sources"],
        },
    }
