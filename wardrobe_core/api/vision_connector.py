"""
Vision Connector
Sends a garment photo to the ``analyze-photo`` edge function and returns the
structured garment descriptor
"""
from typing import Any, Dict, Optional

from wardrobe_core.config import WardrobeSettings, get_settings
from wardrobe_core.errors import AnalysisError, FaceDetectedError, GarmentNotDetectedError
from wardrobe_core.logging import get_logger

from .base_connector import APIConfig, BaseEdgeFunctionConnector

logger = get_logger(__name__)

# Error codes returned by the edge function in ``{"success": false, "error": ...}``
TERMINAL_ERRORS = {
    "NO_CLOTHING": GarmentNotDetectedError,
    "NOT_CLOTHING": GarmentNotDetectedError,
    "FACE_DETECTED": FaceDetectedError,
}


class VisionConnector(BaseEdgeFunctionConnector):
    """Opaque garment analysis service"""

    error_class = AnalysisError

    def __init__(self, config: Optional[APIConfig] = None, settings: Optional[WardrobeSettings] = None, **kwargs):
        settings = settings or get_settings()
        self.function_name = settings.analyze_function
        super().__init__(config or APIConfig.from_settings("vision", settings), **kwargs)

    def analyze(
        self,
        image: bytes,
        filename: str = "photo.jpg",
        content_type: str = "image/jpeg",
    ) -> Dict[str, Any]:
        """
        Analyse a garment photo.

        Returns:
            Garment descriptor (``analysis.basic_info``, ``visual_details``,
            ``attributes``, ``context`` ...), stored as the analysis payload

        Raises:
            GarmentNotDetectedError: no clothing in the photo
            FaceDetectedError: a human face is in the photo
            AnalysisError: any other failure
        """
        response = self._make_request(
            self.function_name,
            files={"file": (filename, image, content_type)},
        )
        body = self._json_body(response)

        if body.get("success") is False or body.get("error"):
            code = str(body.get("error") or "")
            message = body.get("message") or code or "Photo could not be analysed"
            error_cls = TERMINAL_ERRORS.get(code)
            if error_cls is not None:
                logger.info(f"Analysis rejected photo: {code}")
                raise error_cls(message)
            raise AnalysisError(message, details={"status": response.status_code})

        if response.status_code >= 400:
            raise AnalysisError(
                f"Analysis failed with HTTP {response.status_code}",
                details={"status": response.status_code},
            )

        return body
