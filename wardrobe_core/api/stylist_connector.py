"""
Stylist Connector
Asks the ``consult-stylist`` edge function to pick an outfit from candidates
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from wardrobe_core.config import WardrobeSettings, get_settings
from wardrobe_core.errors import StylistError
from wardrobe_core.logging import get_logger
from wardrobe_core.models import GarmentRecord

from .base_connector import APIConfig, BaseEdgeFunctionConnector

logger = get_logger(__name__)


@dataclass
class StylistSelection:
    """Garment ids picked by the stylist"""
    top_id: Optional[str] = None
    bottom_id: Optional[str] = None
    shoes_id: Optional[str] = None
    accessory_ids: List[str] = field(default_factory=list)
    reason: Optional[str] = None

    @property
    def item_ids(self) -> List[str]:
        ids = [self.top_id, self.bottom_id, self.shoes_id, *self.accessory_ids]
        return [i for i in ids if i]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StylistSelection":
        return cls(
            top_id=data.get("top_id"),
            bottom_id=data.get("bottom_id"),
            shoes_id=data.get("shoes_id"),
            accessory_ids=list(data.get("accessory_ids") or []),
            reason=data.get("reason"),
        )


@dataclass
class StylistResponse:
    """Either a selection, or None with the stylist's explanation"""
    selection: Optional[StylistSelection]
    message: Optional[str] = None


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, (list, tuple)) and len(value) == 0)


def build_candidate(garment: GarmentRecord) -> Dict[str, Any]:
    """Lightweight candidate entry; empty attributes are dropped"""
    analysis = garment.analysis
    raw = {
        "id": garment.id,
        "type": analysis.type_label,
        "colors": analysis.colors,
        "style": analysis.style,
        "season": analysis.seasons,
        "formality": analysis.formality,
        "fit": analysis.fit,
    }
    return {k: v for k, v in raw.items() if not _is_empty(v)}


class StylistConnector(BaseEdgeFunctionConnector):
    """Opaque outfit recommendation service"""

    error_class = StylistError

    def __init__(self, config: Optional[APIConfig] = None, settings: Optional[WardrobeSettings] = None, **kwargs):
        settings = settings or get_settings()
        self.function_name = settings.stylist_function
        super().__init__(config or APIConfig.from_settings("stylist", settings), **kwargs)

    def select_outfit(self, candidates: Sequence[GarmentRecord], context: str = "") -> StylistResponse:
        """
        Consult the stylist.

        Args:
            candidates: Garments the stylist may choose from
            context: Free-text description of the desired look

        Raises:
            StylistError: transport failure or malformed response
        """
        payload = {
            "candidates": [build_candidate(garment) for garment in candidates],
            "context": context,
        }
        logger.info(f"Consulting stylist with {len(payload['candidates'])} candidates")

        response = self._make_request(self.function_name, json=payload)
        if response.status_code >= 400:
            raise StylistError(
                f"Stylist failed with HTTP {response.status_code}",
                candidate_count=len(candidates),
            )
        body = self._json_body(response)

        selection = body.get("selection")
        if not selection:
            return StylistResponse(selection=None, message=body.get("message") or body.get("reason"))
        if not isinstance(selection, dict):
            raise StylistError("Stylist returned a malformed selection", candidate_count=len(candidates))
        return StylistResponse(selection=StylistSelection.from_dict(selection), message=body.get("message"))
