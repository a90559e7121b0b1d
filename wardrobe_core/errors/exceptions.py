# =============================================================================
# wardrobe_core/errors/exceptions.py
# Custom Exception Hierarchy for the Wardrobe Sync Core
# =============================================================================

from typing import Optional, Dict, Any


class WardrobeError(Exception):
    """
    Base exception for all wardrobe core errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "REMOTE_001")
        details: Additional context as a dictionary
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "WR_000"
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# STORAGE LAYER EXCEPTIONS
# =============================================================================

class CacheError(WardrobeError):
    """Raised when the local SQLite cache cannot be read or written"""

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if table:
            details["table"] = table
        if record_id:
            details["record_id"] = record_id

        super().__init__(
            message=message,
            code="CACHE_001",
            details=details,
            **kwargs,
        )


class RemoteStoreError(WardrobeError):
    """Raised when a Supabase table or storage operation fails"""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        table: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation
        if table:
            details["table"] = table

        super().__init__(
            message=message,
            code="REMOTE_001",
            details=details,
            **kwargs,
        )


class SyncError(WardrobeError):
    """Raised when a sync cycle cannot be started at all"""

    def __init__(
        self,
        message: str,
        owner_id: Optional[str] = None,
        kind: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if owner_id:
            details["owner_id"] = owner_id
        if kind:
            details["kind"] = kind

        super().__init__(
            message=message,
            code="SYNC_001",
            details=details,
            **kwargs,
        )


# =============================================================================
# REMOTE SERVICE EXCEPTIONS
# =============================================================================

class AnalysisError(WardrobeError):
    """Raised when the garment analysis edge function fails"""

    def __init__(self, message: str, code: str = "VISION_001", **kwargs):
        super().__init__(message=message, code=code, **kwargs)


class GarmentNotDetectedError(AnalysisError):
    """Raised when the analysed photo does not contain a clothing item"""

    def __init__(self, message: str = "No clothing item detected in the image.", **kwargs):
        super().__init__(message=message, code="VISION_002", **kwargs)


class FaceDetectedError(AnalysisError):
    """Raised when the analysed photo contains a human face"""

    def __init__(self, message: str = "Human face detected in the image.", **kwargs):
        super().__init__(message=message, code="VISION_003", **kwargs)


class StylistError(WardrobeError):
    """Raised when the stylist edge function fails"""

    def __init__(
        self,
        message: str,
        candidate_count: Optional[int] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if candidate_count is not None:
            details["candidate_count"] = candidate_count

        super().__init__(
            message=message,
            code="STYLIST_001",
            details=details,
            **kwargs,
        )


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(WardrobeError):
    """Raised when configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type

        super().__init__(
            message=message,
            code="CONFIG_001",
            details=details,
            recoverable=False,
            **kwargs,
        )
