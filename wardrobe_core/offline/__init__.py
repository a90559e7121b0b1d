# =============================================================================
# wardrobe_core/offline/__init__.py
# Local-First Cache and Reconciliation
# =============================================================================
"""
Offline-first storage for the wardrobe.

Architecture:
------------
    WardrobeService / OutfitService   (facades, wardrobe_core.services)
              │                 │
              ▼                 ▼
        RemoteStore        LocalDatabase ◄── SyncEngine
        (Supabase)          (SQLite)          (remote snapshot -> cache)

Reads paint from SQLite first and are then superseded by the reconciled
remote snapshot. Writes go to Supabase first (outfits: SQLite first) and are
mirrored into SQLite on a best-effort basis.

Usage:
------
from wardrobe_core.offline import get_local_database

db = get_local_database()
db.reconcile_garments(owner_id, remote_garments)
items = db.get_garments(owner_id)
"""

from wardrobe_core.offline.local_database import (
    GARMENTS,
    OUTFITS,
    LocalDatabase,
    UpsertResult,
    get_local_database,
)

from wardrobe_core.offline.sync_engine import (
    ReconcileResult,
    SyncEngine,
    SyncState,
)

__all__ = [
    "GARMENTS",
    "OUTFITS",
    # Local Database
    "LocalDatabase",
    "UpsertResult",
    "get_local_database",
    # Sync Engine
    "ReconcileResult",
    "SyncEngine",
    "SyncState",
]
