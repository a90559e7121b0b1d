# =============================================================================
# wardrobe_core/services/outfit_service.py
# Outfit Facade: local-first saves, delete-safety and outfit composition
# =============================================================================

from __future__ import annotations
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, Set

from wardrobe_core.api import StylistConnector
from wardrobe_core.data.supabase_client import RemoteStore
from wardrobe_core.errors import CacheError, RemoteStoreError
from wardrobe_core.models import GarmentRecord, OutfitRecord
from wardrobe_core.offline.local_database import LocalDatabase
from wardrobe_core.utils import format_label

from .base_service import BaseService, ServiceResult


# Category terms (substring match against category / sub-category)
TOP_TERMS = ("top", "shirt", "t-shirt", "blouse", "sweater", "hoodie", "jacket", "coat")
BOTTOM_TERMS = ("bottom", "pants", "trousers", "jeans", "skirt", "shorts")

# Narrower terms and safe colors used when filters leave a side empty
FALLBACK_TOP_TERMS = ("top", "shirt", "t-shirt", "blouse", "sweater", "hoodie")
FALLBACK_BOTTOM_TERMS = ("bottom", "pants", "trousers", "jeans", "skirt")
NEUTRAL_TOP_COLORS = ("white", "black", "grey", "gray", "beige")
NEUTRAL_BOTTOM_COLORS = ("black", "blue", "navy", "grey", "gray", "denim")

ALL_SEASONS = ("all seasons", "all season", "all_seasons", "all_season")

# Free accounts may create this many outfits per day
FREE_DAILY_OUTFIT_LIMIT = 2


@dataclass
class OutfitSuggestion:
    """Garments chosen for an outfit and how they were chosen."""
    garments: List[GarmentRecord] = field(default_factory=list)
    reason: Optional[str] = None
    from_stylist: bool = False

    @property
    def item_ids(self) -> List[str]:
        return [garment.id for garment in self.garments]


def _local_midnight_utc() -> str:
    """Start of the current local day, as a UTC ISO-8601 string."""
    midnight = datetime.now().astimezone().replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc).isoformat()


def _neutral(garments: Iterable[GarmentRecord], colors: Sequence[str]) -> List[GarmentRecord]:
    result = []
    for garment in garments:
        primary = (garment.analysis.primary_color or "").lower()
        if any(color in primary for color in colors):
            result.append(garment)
    return result


class OutfitService(BaseService):
    """
    Outfit facade.

    Saving is local first: the id is generated on the client, the cache is
    written immediately and the remote insert is attempted afterwards.
    Deleting is remote first: the cached row is only removed once the remote
    delete succeeded.
    """

    def __init__(
        self,
        local_db: LocalDatabase,
        remote: RemoteStore,
        stylist: Optional[StylistConnector] = None,
        rng: Optional[random.Random] = None,
    ):
        super().__init__()
        self.local_db = local_db
        self.remote = remote
        self._stylist = stylist
        self._rng = rng or random.Random()

    @property
    def stylist(self) -> StylistConnector:
        if self._stylist is None:
            self._stylist = StylistConnector(settings=self.remote.settings)
        return self._stylist

    # =========================================================================
    # SYNC
    # =========================================================================

    def fetch_and_sync(self, owner_id: str) -> List[OutfitRecord]:
        """
        Push queued offline outfits, then fetch all outfits from the remote
        store and reconcile the cache.

        Outfits whose push fails again stay queued and stay in the cache.

        Raises:
            RemoteStoreError: if the remote query fails
        """
        with self.log_operation(f"Syncing outfits for owner {owner_id}"):
            self.push_queued(owner_id)
            outfits = self.remote.query_outfits(owner_id)

            # An insert that failed on our side may still have landed remotely
            landed = {outfit.id for outfit in outfits} & self._queued_ids(owner_id)
            for outfit_id in landed:
                self.local_db.mark_outfit_synced(outfit_id)

            self.local_db.reconcile_outfits(owner_id, outfits)
            return outfits

    def push_queued(self, owner_id: str) -> int:
        """
        Retry the remote insert of every outfit queued for ``owner_id``.

        Returns:
            Number of outfits that reached the remote store
        """
        queued = self._queued_ids(owner_id)
        if not queued:
            return 0

        cached = {outfit.id: outfit for outfit in self.local_db.get_outfits(owner_id)}
        pushed = 0
        for outfit_id in sorted(queued):
            outfit = cached.get(outfit_id)
            if outfit is None:
                self.logger.warning(f"Queued outfit {outfit_id} is no longer cached, dropping it")
                self.local_db.mark_outfit_synced(outfit_id)
                continue
            try:
                self.remote.insert_outfit(outfit)
            except RemoteStoreError as e:
                self.logger.warning(f"Outfit {outfit_id} is still waiting for sync: {e}")
                self.local_db.mark_outfit_sync_failed(outfit_id, str(e))
                continue
            self.local_db.mark_outfit_synced(outfit_id)
            pushed += 1

        if pushed:
            self.logger.info(f"Pushed {pushed}/{len(queued)} queued outfits for owner {owner_id}")
        return pushed

    def _queued_ids(self, owner_id: str) -> Set[str]:
        try:
            return self.local_db.get_queued_outfit_ids(owner_id)
        except CacheError as e:
            self.logger.error(f"Could not read outfit sync queue: {e}")
            return set()

    def read_local(self, owner_id: str) -> List[OutfitRecord]:
        """Cached outfits, newest first. Never raises."""
        return self.local_db.get_outfits(owner_id)

    # =========================================================================
    # WRITES
    # =========================================================================

    def add_outfit(self, owner_id: str, items: Sequence[GarmentRecord]) -> OutfitRecord:
        """
        Save an outfit locally, then try the remote insert.

        A failed remote insert does not raise: the outfit stays in the cache,
        is queued, and is pushed again by the next ``fetch_and_sync``.
        """
        outfit = OutfitRecord.create(owner_id, list(items))

        if not self.local_db.upsert_outfits([outfit]):
            self.logger.warning(f"Outfit {outfit.id} was not written to the local cache")

        try:
            self.remote.insert_outfit(outfit)
            self.logger.info(f"Saved outfit {outfit.id} for owner {owner_id}")
        except RemoteStoreError as e:
            self.logger.error(f"Outfit {outfit.id} saved locally only, queued for sync: {e}")
            self.local_db.queue_outfit(outfit.id, owner_id)

        return outfit

    def delete_outfit(self, outfit_id: str) -> None:
        """
        Delete an outfit remotely, then from the cache.

        Raises:
            RemoteStoreError: if the remote delete fails; the cached row is kept
        """
        self.remote.delete_outfit(outfit_id)
        self.local_db.delete_outfit(outfit_id)
        self.logger.info(f"Deleted outfit {outfit_id}")

    # =========================================================================
    # DAILY COUNT
    # =========================================================================

    def count_today(self, owner_id: str) -> int:
        """Outfits created since local midnight (cache count when offline)."""
        since = _local_midnight_utc()
        try:
            return self.remote.count_outfits_since(owner_id, since)
        except RemoteStoreError as e:
            self.logger.warning(f"Using cached outfit count for {owner_id}: {e}")
            return self.local_db.count_outfits_since(owner_id, since)

    def daily_limit_reached(self, owner_id: str, limit: int = FREE_DAILY_OUTFIT_LIMIT) -> bool:
        return self.count_today(owner_id) >= limit

    # =========================================================================
    # COMPOSITION
    # =========================================================================

    @staticmethod
    def filter_items(
        items: Sequence[GarmentRecord],
        season: Optional[Sequence[str]] = None,
        style: Optional[Sequence[str]] = None,
        color: Optional[str] = None,
    ) -> List[GarmentRecord]:
        """
        Narrow a wardrobe by the outfit filters.

        Args:
            season: Season tags; items tagged "all seasons" always match
            style: Style tags (exact, case-insensitive)
            color: Primary color ("any" disables the filter)
        """
        season = [s.lower() for s in season or []]
        style = [s.lower() for s in style or []]
        color = (color or "").lower()
        if color == "any":
            color = ""

        if not (season or style or color):
            return list(items)

        result = []
        for item in items:
            analysis = item.analysis

            if season:
                item_seasons = [s.lower() for s in analysis.seasons]
                matches = any(
                    tag in item_seasons or tag.replace(" ", "_") in item_seasons
                    for tag in season
                )
                if not matches and not any(s in item_seasons for s in ALL_SEASONS):
                    continue

            if style and (analysis.style or "").lower() not in style:
                continue

            if color and (analysis.primary_color or "").lower() != color:
                continue

            result.append(item)
        return result

    @staticmethod
    def build_context(
        season: Optional[Sequence[str]] = None,
        style: Optional[Sequence[str]] = None,
        color: Optional[str] = None,
    ) -> str:
        """Stylist prompt describing the selected filters."""
        parts = []
        if season:
            parts.append(f"Season: {', '.join(format_label(s) for s in season)}")
        if style:
            parts.append(f"Style: {', '.join(format_label(s) for s in style)}")
        if color:
            parts.append(f"Color Preference: {format_label(color)}")

        if not parts:
            return "Create a stylish and coordinated outfit."
        return f"User Preferences: {'; '.join(parts)}. Create a cohesive outfit based on these requirements."

    def _split(
        self,
        candidates: Sequence[GarmentRecord],
        wardrobe: Sequence[GarmentRecord],
    ):
        tops = [g for g in candidates if g.analysis.matches_category(TOP_TERMS)]
        bottoms = [g for g in candidates if g.analysis.matches_category(BOTTOM_TERMS)]

        if not tops:
            all_tops = [g for g in wardrobe if g.analysis.matches_category(FALLBACK_TOP_TERMS)]
            tops = _neutral(all_tops, NEUTRAL_TOP_COLORS) or all_tops
            if tops:
                self.logger.info(f"No top matched the filters, using {len(tops)} from the wardrobe")

        if not bottoms:
            all_bottoms = [g for g in wardrobe if g.analysis.matches_category(FALLBACK_BOTTOM_TERMS)]
            bottoms = _neutral(all_bottoms, NEUTRAL_BOTTOM_COLORS) or all_bottoms
            if bottoms:
                self.logger.info(f"No bottom matched the filters, using {len(bottoms)} from the wardrobe")

        return tops, bottoms

    def compose_outfit(
        self,
        candidates: Sequence[GarmentRecord],
        wardrobe: Optional[Sequence[GarmentRecord]] = None,
        context: str = "",
    ) -> ServiceResult:
        """
        Pick a top, a bottom and optional extras for an outfit.

        The stylist is consulted first; whenever it fails, declines or names
        garments that are not candidates, a random top and bottom are used.

        Args:
            candidates: Garments left after filtering
            wardrobe: The whole wardrobe, used when a side has no candidate
            context: Stylist prompt (see ``build_context``)

        Returns:
            ServiceResult with an OutfitSuggestion, or a failure when the
            wardrobe has no top or no bottom at all
        """
        wardrobe = list(wardrobe) if wardrobe is not None else list(candidates)
        tops, bottoms = self._split(candidates, wardrobe)

        if not tops or not bottoms:
            return ServiceResult.fail(
                "To create an outfit, we need at least one Top and one Bottom matching your filters.",
                error_code="OUTFIT_001",
            )

        pool = {g.id: g for g in list(candidates) + tops + bottoms if g.id}
        top_ids = {g.id for g in tops}
        bottom_ids = {g.id for g in bottoms}

        top = bottom = None
        extras: List[GarmentRecord] = []
        reason = None

        try:
            response = self.stylist.select_outfit(list(pool.values()), context)
            selection = response.selection
            if selection is None:
                self.logger.info(f"Stylist declined: {response.message}")
                reason = response.message
            else:
                top = pool.get(selection.top_id) if selection.top_id in top_ids else None
                bottom = pool.get(selection.bottom_id) if selection.bottom_id in bottom_ids else None
                for extra_id in [selection.shoes_id, *selection.accessory_ids]:
                    if extra_id in pool and extra_id not in (selection.top_id, selection.bottom_id):
                        extras.append(pool[extra_id])
                reason = selection.reason
        except Exception as e:
            self.logger.warning(f"Stylist failed, falling back to a random pick: {e}")

        from_stylist = top is not None and bottom is not None
        if top is None:
            top = self._rng.choice(tops)
        if bottom is None:
            bottom = self._rng.choice(bottoms)
        if not from_stylist:
            reason = reason or "Randomly selected"

        suggestion = OutfitSuggestion(
            garments=[top, bottom, *extras],
            reason=reason,
            from_stylist=from_stylist,
        )
        self.logger.info(
            f"Composed outfit {suggestion.item_ids} "
            f"({'stylist' if from_stylist else 'random'})"
        )
        return ServiceResult.ok(suggestion)
