"""
Edge Function Connectors
Opaque remote services consumed by the wardrobe and outfit facades
"""

from .base_connector import APIConfig, BaseEdgeFunctionConnector
from .vision_connector import VisionConnector
from .stylist_connector import (
    StylistConnector,
    StylistResponse,
    StylistSelection,
    build_candidate,
)

__all__ = [
    "APIConfig",
    "BaseEdgeFunctionConnector",
    "VisionConnector",
    "StylistConnector",
    "StylistResponse",
    "StylistSelection",
    "build_candidate",
]
