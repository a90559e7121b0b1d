# =============================================================================
# wardrobe_core/state/wardrobe_provider.py
# In-memory wardrobe state for the signed-in user (two-phase load)
# =============================================================================
"""
WardrobeProvider - UI-facing garment list for the current user.

States:
    SIGNED_OUT --set_user(id)--> LOADING --fetch settles--> READY
    READY --refresh() / set_user(other)--> LOADING
    any --set_user(None)--> SIGNED_OUT

A load paints the cached garments first (when there are any) and then the
remote snapshot, which always supersedes the cached paint. A remote failure
keeps the cached paint and records a sync error; the load still ends READY.
"""

from __future__ import annotations
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from wardrobe_core.errors import SyncError
from wardrobe_core.logging import get_logger
from wardrobe_core.models import GarmentRecord
from wardrobe_core.services.wardrobe_service import WardrobeService

logger = get_logger(__name__)

SYNC_ERROR_MESSAGE = "Could not sync with cloud."


class ProviderStatus(Enum):
    SIGNED_OUT = "signed_out"
    LOADING = "loading"
    READY = "ready"


@dataclass
class WardrobeSnapshot:
    """One painted item list."""
    generation: int
    source: str                     # "local", "remote" or "signed_out"
    items: List[GarmentRecord] = field(default_factory=list)


class WardrobeProvider:
    """
    Holds the painted garment list and drives the two-phase load.

    Each load cycle gets a generation number; a paint from a cycle that has
    been superseded (by a refresh, a user change or a sign-out) is dropped.
    """

    def __init__(self, service: WardrobeService):
        self.service = service
        self.user_id: Optional[str] = None
        self.items: List[GarmentRecord] = []
        self.status = ProviderStatus.SIGNED_OUT
        self.loading = False
        self.initial_load_complete = False
        self.sync_error: Optional[str] = None
        self.last_error: Optional[SyncError] = None
        self._generation = 0
        self._lock = threading.RLock()
        self._callbacks: List[Callable[[WardrobeSnapshot], None]] = []

    @property
    def generation(self) -> int:
        return self._generation

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def set_user(self, user_id: Optional[str]) -> None:
        """
        Switch the signed-in user.

        ``None`` signs out: the item list is cleared (the cache is kept) and
        the initial load counts as complete. A different user drops the
        previous user's items before its load starts.
        """
        if user_id is None:
            self._sign_out()
            return

        with self._lock:
            if user_id == self.user_id and self.status != ProviderStatus.SIGNED_OUT:
                return
            if user_id != self.user_id:
                self.items = []
                self.sync_error = None
                self.last_error = None
            self.user_id = user_id
        self.load()

    def refresh(self) -> None:
        """Reload the current user's garments."""
        if self.user_id is None:
            return
        self.load()

    def _sign_out(self) -> None:
        with self._lock:
            self._generation += 1
            self.user_id = None
            self.items = []
            self.status = ProviderStatus.SIGNED_OUT
            self.loading = False
            self.sync_error = None
            self.last_error = None
            self.initial_load_complete = True
            snapshot = WardrobeSnapshot(self._generation, "signed_out", [])
        logger.info("Signed out, wardrobe cleared")
        self._notify(snapshot)

    # =========================================================================
    # LOADING
    # =========================================================================

    def load(self) -> None:
        """Run one load cycle for the current user (blocking)."""
        with self._lock:
            user_id = self.user_id
            if user_id is None:
                return
            self._generation += 1
            generation = self._generation
            self.status = ProviderStatus.LOADING
            self.loading = True

        try:
            self.service.initialize()

            cached = self.service.read_local(user_id)
            if cached:
                self._paint(generation, "local", cached)

            fresh = self.service.fetch_and_sync(user_id)
            self._paint(generation, "remote", fresh)
            self._set_sync_error(generation, None)
        except Exception as e:
            logger.error(f"Failed to load wardrobe for {user_id}: {e}")
            self._set_sync_error(
                generation,
                SyncError(SYNC_ERROR_MESSAGE, owner_id=user_id, kind="garments", details={"cause": str(e)}),
            )
        finally:
            self._settle(generation)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _paint(self, generation: int, source: str, items: List[GarmentRecord]) -> bool:
        with self._lock:
            if not self._is_current(generation):
                logger.debug(f"Dropping {source} paint from superseded load {generation}")
                return False
            self.items = list(items)
            snapshot = WardrobeSnapshot(generation, source, list(items))
        self._notify(snapshot)
        return True

    def _set_sync_error(self, generation: int, error: Optional[SyncError]) -> None:
        with self._lock:
            if self._is_current(generation):
                self.last_error = error
                self.sync_error = error.message if error else None

    def _settle(self, generation: int) -> None:
        with self._lock:
            if not self._is_current(generation):
                return
            self.loading = False
            self.status = ProviderStatus.READY
            self.initial_load_complete = True

    # =========================================================================
    # OBSERVERS
    # =========================================================================

    def register_callback(self, callback: Callable[[WardrobeSnapshot], None]) -> None:
        """Register a callback receiving every painted snapshot."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def _notify(self, snapshot: WardrobeSnapshot) -> None:
        for callback in self._callbacks:
            try:
                callback(snapshot)
            except Exception as e:
                logger.error(f"Error in wardrobe callback: {e}")
