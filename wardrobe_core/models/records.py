# =============================================================================
# wardrobe_core/models/records.py
# Garment and Outfit records shared by the local cache and the remote store
# =============================================================================

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional
import uuid

from wardrobe_core.models.analysis import GarmentAnalysis, normalize_analysis


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string (the created_at format)."""
    return datetime.now(timezone.utc).isoformat()


def new_outfit_id() -> str:
    """Client-side outfit id."""
    return str(uuid.uuid4())


@dataclass
class GarmentRecord:
    """
    A wardrobe item.

    ``id`` is assigned by the remote store on insert. ``analysis_payload`` is
    kept as an opaque document; use ``analysis`` for a typed view.
    """
    id: Optional[str]
    owner_id: Optional[str]
    image_url: Optional[str] = None
    analysis_payload: Dict[str, Any] = field(default_factory=dict)
    created_at: str = field(default_factory=utc_now_iso)

    @property
    def analysis(self) -> GarmentAnalysis:
        return normalize_analysis(self.analysis_payload)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> GarmentRecord:
        """Build from a Supabase ``clothes`` row (or an equivalent dict)."""
        raw_id = row.get("id")
        return cls(
            id=str(raw_id) if raw_id is not None else None,
            owner_id=row.get("user_id"),
            image_url=row.get("image_url"),
            analysis_payload=dict(row.get("analysis_json") or {}),
            created_at=row.get("created_at") or utc_now_iso(),
        )

    def to_row(self) -> Dict[str, Any]:
        """Serialize back into the ``clothes`` row shape."""
        return {
            "id": self.id,
            "user_id": self.owner_id,
            "image_url": self.image_url,
            "analysis_json": self.analysis_payload,
            "created_at": self.created_at,
        }


@dataclass
class OutfitRecord:
    """
    A saved outfit: an ordered snapshot of garments at assembly time.

    Unlike garments, the id is generated on the client so the outfit can be
    written locally before the remote insert.
    """
    id: Optional[str]
    owner_id: Optional[str]
    items_payload: List[Dict[str, Any]] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def create(cls, owner_id: str, garments: List[GarmentRecord]) -> OutfitRecord:
        """Assemble a new outfit with a fresh client-side id."""
        return cls(
            id=new_outfit_id(),
            owner_id=owner_id,
            items_payload=[garment.to_row() for garment in garments],
        )

    @property
    def garments(self) -> List[GarmentRecord]:
        return [GarmentRecord.from_row(item) for item in self.items_payload]

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> OutfitRecord:
        """Build from a Supabase ``outfits`` row."""
        raw_id = row.get("id")
        return cls(
            id=str(raw_id) if raw_id is not None else None,
            owner_id=row.get("user_id"),
            items_payload=list(row.get("items") or []),
            created_at=row.get("created_at") or utc_now_iso(),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.owner_id,
            "items": self.items_payload,
            "created_at": self.created_at,
        }
