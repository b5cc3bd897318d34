from .placement_repository import PlacementRepository
from .renewal_store import RenewalStore

__all__ = ["PlacementRepository", "RenewalStore"]
