"""
Stats Service - Wardrobe composition statistics.

Counts garments per category, primary color and style for the wardrobe
overview. Garments without a value are counted under "other".
"""

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import pandas as pd

from wardrobe_core.models import GarmentRecord

TOP_N = 5
MISSING_LABEL = "other"

# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class WardrobeStats:
    """Container for wardrobe statistics (label, count) pairs, largest first."""

    total: int = 0
    categories: List[Tuple[str, int]] = field(default_factory=list)
    top_colors: List[Tuple[str, int]] = field(default_factory=list)     # At most TOP_N
    top_styles: List[Tuple[str, int]] = field(default_factory=list)     # At most TOP_N

    def category_share(self, category: str) -> float:
        """Fraction of the wardrobe in one category (0.0 for an empty wardrobe)."""
        if not self.total:
            return 0.0
        return dict(self.categories).get(category, 0) / self.total


# =============================================================================
# CALCULATION
# =============================================================================

def garments_to_frame(garments: Sequence[GarmentRecord]) -> pd.DataFrame:
    """One row per garment with the lowercased category, color and style."""
    rows = []
    for garment in garments:
        analysis = garment.analysis
        rows.append({
            "id": garment.id,
            "category": analysis.category,
            "color": analysis.primary_color,
            "style": analysis.style,
        })

    df = pd.DataFrame(rows, columns=["id", "category", "color", "style"])
    for column in ("category", "color", "style"):
        df[column] = df[column].fillna(MISSING_LABEL).astype(str).str.lower()
    return df


def _ranked(series: pd.Series, limit: int = None) -> List[Tuple[str, int]]:
    counts = series.value_counts(sort=False).sort_values(ascending=False, kind="stable")
    if limit is not None:
        counts = counts.head(limit)
    return [(str(label), int(count)) for label, count in counts.items()]


def calculate_wardrobe_stats(garments: Sequence[GarmentRecord]) -> WardrobeStats:
    """
    Compute wardrobe statistics.

    Returns:
        WardrobeStats with every category and the TOP_N colors and styles
    """
    if not garments:
        return WardrobeStats()

    df = garments_to_frame(garments)
    return WardrobeStats(
        total=len(df),
        categories=_ranked(df["category"]),
        top_colors=_ranked(df["color"], TOP_N),
        top_styles=_ranked(df["style"], TOP_N),
    )
