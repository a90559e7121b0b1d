# =============================================================================
# wardrobe_core/models/analysis.py
# Typed view over the garment analysis payload
# =============================================================================
"""
The analysis payload stored with every garment is an opaque document as far
as the cache is concerned. Two shapes exist in the wild:

    {"analysis": {"basic_info": {...}, "visual_details": {...}, ...}}   # current
    {"basic_info": {...}, "visual_details": {...}, ...}                 # legacy

``normalize_analysis`` resolves both into a single ``GarmentAnalysis`` so that
filtering, stylist payloads and statistics never look at raw dictionaries.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional


def _section(payload: Mapping[str, Any], name: str) -> Dict[str, Any]:
    """Merge a section from the nested and flattened locations (nested wins)."""
    merged: Dict[str, Any] = {}
    flat = payload.get(name)
    if isinstance(flat, Mapping):
        merged.update({k: v for k, v in flat.items() if v not in (None, "")})
    nested_root = payload.get("analysis")
    if isinstance(nested_root, Mapping):
        nested = nested_root.get(name)
        if isinstance(nested, Mapping):
            merged.update({k: v for k, v in nested.items() if v not in (None, "")})
    return merged


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, Iterable):
        return [str(v) for v in value if v not in (None, "")]
    return [str(value)]


def _as_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


@dataclass
class GarmentAnalysis:
    """Fields of a garment analysis that the services actually read."""
    category: Optional[str] = None
    sub_category: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_colors: List[str] = field(default_factory=list)
    pattern: Optional[str] = None
    material: Optional[str] = None
    style: Optional[str] = None
    fit: Optional[str] = None
    features: List[str] = field(default_factory=list)
    seasons: List[str] = field(default_factory=list)
    formality: Optional[str] = None

    @property
    def type_label(self) -> str:
        """Compact ``category/sub_category`` label."""
        return "/".join(part for part in (self.category, self.sub_category) if part)

    @property
    def colors(self) -> List[str]:
        """Primary color followed by secondary colors."""
        head = [self.primary_color] if self.primary_color else []
        return head + list(self.secondary_colors)

    def matches_category(self, terms: Iterable[str]) -> bool:
        """Substring match of any term against category or sub-category."""
        haystacks = [(self.category or "").lower(), (self.sub_category or "").lower()]
        return any(term in hay for term in terms for hay in haystacks if hay)

    def to_columns(self) -> Dict[str, Any]:
        """Flattened column values for the remote ``clothes`` table."""
        return {
            "category": self.category,
            "sub_category": self.sub_category,
            "primary_color": self.primary_color,
            "secondary_colors": self.secondary_colors or None,
            "seasons": self.seasons,
            "formality": self.formality,
            "pattern": self.pattern,
            "style": self.style,
            "material": self.material,
            "fit": self.fit,
            "features": self.features,
        }


def normalize_analysis(payload: Optional[Mapping[str, Any]]) -> GarmentAnalysis:
    """
    Resolve a raw analysis payload (either shape) into a GarmentAnalysis.

    Args:
        payload: Vision result as stored in ``analysis_json``

    Returns:
        GarmentAnalysis with missing fields left as None / empty lists
    """
    if not isinstance(payload, Mapping):
        return GarmentAnalysis()

    basic = _section(payload, "basic_info")
    visual = _section(payload, "visual_details")
    attributes = _section(payload, "attributes")
    context = _section(payload, "context")

    return GarmentAnalysis(
        category=_as_text(basic.get("category")),
        sub_category=_as_text(basic.get("sub_category")),
        primary_color=_as_text(visual.get("primary_color")),
        secondary_colors=_as_list(visual.get("secondary_colors")),
        pattern=_as_text(visual.get("pattern") or attributes.get("pattern")),
        material=_as_text(attributes.get("material")),
        style=_as_text(attributes.get("style")),
        fit=_as_text(attributes.get("fit")),
        features=_as_list(attributes.get("features")),
        seasons=_as_list(context.get("seasons")),
        formality=_as_text(context.get("formality")),
    )
