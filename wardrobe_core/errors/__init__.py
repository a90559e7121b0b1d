# =============================================================================
# wardrobe_core/errors/__init__.py
# Centralized Error Handling for the Wardrobe Sync Core
# =============================================================================

from .exceptions import (
    WardrobeError,
    CacheError,
    RemoteStoreError,
    SyncError,
    AnalysisError,
    GarmentNotDetectedError,
    FaceDetectedError,
    StylistError,
    ConfigurationError,
)

from .handlers import (
    handle_error,
    error_boundary,
)

__all__ = [
    # Exceptions
    "WardrobeError",
    "CacheError",
    "RemoteStoreError",
    "SyncError",
    "AnalysisError",
    "GarmentNotDetectedError",
    "FaceDetectedError",
    "StylistError",
    "ConfigurationError",
    # Handlers
    "handle_error",
    "error_boundary",
]
