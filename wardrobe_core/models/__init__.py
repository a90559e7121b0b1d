from wardrobe_core.models.analysis import GarmentAnalysis, normalize_analysis
from wardrobe_core.models.records import (
    GarmentRecord,
    OutfitRecord,
    new_outfit_id,
    utc_now_iso,
)

__all__ = [
    "GarmentAnalysis",
    "normalize_analysis",
    "GarmentRecord",
    "OutfitRecord",
    "new_outfit_id",
    "utc_now_iso",
]
