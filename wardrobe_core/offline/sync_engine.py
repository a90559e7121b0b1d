# =============================================================================
# wardrobe_core/offline/sync_engine.py
# Reconciliation Engine (remote snapshot -> local cache)
# =============================================================================
"""
SyncEngine - Converges the local cache to an authoritative remote snapshot.

Algorithm (identical for garments and outfits):
1. Read the cached ids for the owner
2. stale = cached ids - remote ids (outfits still queued for a push are kept)
3. Delete stale ids one at a time (a failing row is logged, the loop goes on)
4. Upsert every remote record (new rows inserted, drifted rows overwritten)

A pass never raises. A partially applied pass is healed by the next one,
since running the same snapshot twice yields the same cache contents.
Passes for the same owner are serialized by a per-owner lock.
"""

from __future__ import annotations
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, TYPE_CHECKING
import logging

from wardrobe_core.offline.local_database import GARMENTS, OUTFITS, Record

if TYPE_CHECKING:
    from wardrobe_core.offline.local_database import LocalDatabase

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation pass."""
    kind: str
    owner_id: str
    deleted: int = 0
    upserted: int = 0
    failed_ids: List[Optional[str]] = field(default_factory=list)
    completed: bool = True      # False when a whole step could not run

    @property
    def ok(self) -> bool:
        return self.completed and not self.failed_ids


@dataclass
class SyncState:
    """Current sync state."""
    is_syncing: bool = False
    last_sync: Optional[datetime] = None
    last_sync_success: Optional[datetime] = None
    last_result: Optional[ReconcileResult] = None
    total_deleted: int = 0
    total_upserted: int = 0
    failed_count: int = 0


class SyncEngine:
    """
    Reconciles cached garments/outfits with remote snapshots.

    Usage:
        engine = SyncEngine(local_db)
        engine.reconcile("garments", owner_id, remote_records)
    """

    KINDS = (GARMENTS, OUTFITS)

    def __init__(self, local_db: LocalDatabase):
        """
        Args:
            local_db: Cache the engine mutates
        """
        self._local_db = local_db
        self._state = SyncState()
        self._callbacks: List[Callable[[SyncState], None]] = []
        self._owner_locks: Dict[str, threading.Lock] = {}
        self._owner_locks_guard = threading.Lock()
        self._active = 0

    @property
    def state(self) -> SyncState:
        """Get current sync state."""
        return self._state

    @property
    def is_syncing(self) -> bool:
        return self._state.is_syncing

    def _owner_lock(self, owner_id: str) -> threading.Lock:
        with self._owner_locks_guard:
            lock = self._owner_locks.get(owner_id)
            if lock is None:
                lock = threading.Lock()
                self._owner_locks[owner_id] = lock
            return lock

    def reconcile(
        self,
        kind: str,
        owner_id: str,
        remote_records: Sequence[Record],
    ) -> ReconcileResult:
        """
        Make the cached ``kind`` records of ``owner_id`` equal to the snapshot.

        Args:
            kind: "garments" or "outfits"
            owner_id: Owner whose cache is reconciled
            remote_records: Authoritative snapshot (all records of the owner)

        Returns:
            ReconcileResult; never raises
        """
        result = ReconcileResult(kind=kind, owner_id=owner_id)
        if kind not in self.KINDS:
            logger.error(f"Cannot reconcile unknown record kind: {kind}")
            result.completed = False
            return result

        with self._owner_lock(owner_id):
            self._begin()
            try:
                self._run_pass(result, remote_records)
            finally:
                self._finish(result)

        return result

    def reconcile_garments(self, owner_id: str, remote_records: Sequence[Record]) -> ReconcileResult:
        return self.reconcile(GARMENTS, owner_id, remote_records)

    def reconcile_outfits(self, owner_id: str, remote_records: Sequence[Record]) -> ReconcileResult:
        return self.reconcile(OUTFITS, owner_id, remote_records)

    def _run_pass(self, result: ReconcileResult, remote_records: Sequence[Record]) -> None:
        kind, owner_id = result.kind, result.owner_id
        remote_ids = {record.id for record in remote_records if record.id}

        # 1-2. Stale ids
        try:
            local_ids = self._local_db.get_ids(kind, owner_id)
        except Exception as e:
            logger.error(f"Could not read cached {kind} ids for {owner_id}: {e}")
            local_ids = set()
            result.completed = False

        stale_ids = local_ids - remote_ids

        # Outfits saved offline are not stale until their push has succeeded
        if kind == OUTFITS and stale_ids:
            try:
                stale_ids -= self._local_db.get_queued_outfit_ids(owner_id)
            except Exception as e:
                logger.error(f"Could not read outfit sync queue for {owner_id}: {e}")
                stale_ids = set()
                result.completed = False

        # 3. Row-by-row deletes
        for stale_id in sorted(stale_ids):
            try:
                self._local_db.delete_record(kind, stale_id)
                result.deleted += 1
            except Exception as e:
                logger.error(f"Error deleting stale {kind} record {stale_id}: {e}")
                result.failed_ids.append(stale_id)

        # 4. Upsert the snapshot
        try:
            upsert = self._local_db.write_records(kind, remote_records)
            result.upserted = upsert.written
            result.failed_ids.extend(upsert.skipped)
        except Exception as e:
            logger.error(f"Error upserting {kind} snapshot for {owner_id}: {e}")
            result.completed = False

        logger.info(
            f"Reconciled {kind} for {owner_id}: "
            f"{result.deleted} deleted, {result.upserted} upserted, "
            f"{len(result.failed_ids)} failed"
        )

    # =========================================================================
    # STATE & CALLBACKS
    # =========================================================================

    def _begin(self) -> None:
        with self._owner_locks_guard:
            self._active += 1
            self._state.is_syncing = True
            self._state.last_sync = datetime.now()
        self._notify_callbacks()

    def _finish(self, result: ReconcileResult) -> None:
        with self._owner_locks_guard:
            self._active -= 1
            self._state.is_syncing = self._active > 0
            self._state.last_result = result
            self._state.total_deleted += result.deleted
            self._state.total_upserted += result.upserted
            self._state.failed_count = len(result.failed_ids)
            if result.ok:
                self._state.last_sync_success = datetime.now()
        self._notify_callbacks()

    def register_callback(self, callback: Callable[[SyncState], None]) -> None:
        """Register a callback for sync state changes."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def _notify_callbacks(self) -> None:
        """Notify all registered callbacks."""
        for callback in self._callbacks:
            try:
                callback(self._state)
            except Exception as e:
                logger.error(f"Error in sync callback: {e}")

    def get_status_display(self) -> Dict[str, Any]:
        """Get sync status for UI display."""
        return {
            "is_syncing": self._state.is_syncing,
            "last_sync": self._state.last_sync.isoformat() if self._state.last_sync else None,
            "last_success": self._state.last_sync_success.isoformat() if self._state.last_sync_success else None,
            "failed_count": self._state.failed_count,
            "total_deleted": self._state.total_deleted,
            "total_upserted": self._state.total_upserted,
        }
