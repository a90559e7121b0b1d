# =============================================================================
# wardrobe_core/services/__init__.py
# Service Layer for the Wardrobe Sync Core
# =============================================================================
"""
Facades over the remote store and the local cache.

Usage Example:
-------------
    from wardrobe_core.data.supabase_client import RemoteStore
    from wardrobe_core.offline import get_local_database
    from wardrobe_core.services import WardrobeService, OutfitService

    local_db = get_local_database()
    remote = RemoteStore()

    wardrobe = WardrobeService(local_db, remote)
    items = wardrobe.read_local(user_id) or wardrobe.fetch_and_sync(user_id)

    outfits = OutfitService(local_db, remote)
    candidates = outfits.filter_items(items, season=["Summer"])
    result = outfits.compose_outfit(candidates, items, outfits.build_context(season=["Summer"]))
    if result.success:
        outfits.add_outfit(user_id, result.data.garments)
"""

from .base_service import BaseService, ServiceResult
from .wardrobe_service import WardrobeService
from .outfit_service import OutfitService, OutfitSuggestion, FREE_DAILY_OUTFIT_LIMIT
from .stats_service import WardrobeStats, calculate_wardrobe_stats

__all__ = [
    # Base
    "BaseService",
    "ServiceResult",
    # Facades
    "WardrobeService",
    "OutfitService",
    "OutfitSuggestion",
    "FREE_DAILY_OUTFIT_LIMIT",
    # Statistics
    "WardrobeStats",
    "calculate_wardrobe_stats",
]
