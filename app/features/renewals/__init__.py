"""
Renewals feature package.

This vertical slice keeps every layer of the renewal dashboard co-located
(domain models, pipeline stages, repositories, services and the API router)
so contributors can follow a sync from the CRM fetch to the ranked list
without hunting through global folders.
"""

# Re-export the primary building blocks for easy access.
from .domain.models import CommunicationItem, Deal, Renewal, SyncResult  # noqa: F401
from .pipeline.scoring.service import rank_all, score  # noqa: F401
from .repository.renewal_store import RenewalStore  # noqa: F401
from .services.sync_service import SyncOrchestrator  # noqa: F401
from .api.router import router as renewals_router  # noqa: F401
