"""
Base Connector for Supabase Edge Functions
Provides the shared HTTP plumbing for the vision and stylist services
"""
from abc import ABC
from typing import Any, Dict, Optional, Type
from dataclasses import dataclass

import requests

from wardrobe_core.config import WardrobeSettings, get_settings
from wardrobe_core.errors import WardrobeError


@dataclass
class APIConfig:
    """Configuration for an edge function endpoint"""
    api_name: str
    base_url: str
    api_key: Optional[str] = None
    headers: Optional[Dict[str, str]] = None
    timeout: int = 30

    @classmethod
    def from_settings(cls, api_name: str, settings: Optional[WardrobeSettings] = None) -> "APIConfig":
        """Edge functions live under ``<supabase_url>/functions/v1``."""
        settings = settings or get_settings()
        settings.require_remote()
        return cls(
            api_name=api_name,
            base_url=f"{settings.supabase_url.rstrip('/')}/functions/v1",
            api_key=settings.supabase_key,
            timeout=settings.request_timeout,
        )


class BaseEdgeFunctionConnector(ABC):
    """Abstract base class for edge function connectors"""

    # Raised for transport failures; subclasses narrow it
    error_class: Type[WardrobeError] = WardrobeError

    def __init__(self, config: APIConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()

        if config.headers:
            self.session.headers.update(config.headers)

        if config.api_key:
            self._set_auth_header(config.api_key)

    def _set_auth_header(self, api_key: str) -> None:
        """Supabase gateways expect both ``apikey`` and a bearer token"""
        self.session.headers.update({
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
        })

    def set_access_token(self, access_token: str) -> None:
        """Call functions on behalf of a signed-in user"""
        self.session.headers["Authorization"] = f"Bearer {access_token}"

    def _make_request(
        self,
        function_name: str,
        json: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """
        POST to an edge function.

        The response is returned even for 4xx/5xx statuses so subclasses can
        read structured error bodies; transport failures are raised as
        ``error_class``.
        """
        url = f"{self.config.base_url}/{function_name}"

        try:
            return self.session.post(
                url,
                json=json,
                files=files,
                timeout=self.config.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise self.error_class(
                f"Request to {self.config.api_name} failed: {e}",
                details={"function": function_name},
            ) from e

    def _json_body(self, response: requests.Response) -> Dict[str, Any]:
        """Decode a JSON object body, raising ``error_class`` otherwise"""
        try:
            body = response.json()
        except ValueError as e:
            raise self.error_class(
                f"{self.config.api_name} returned a non-JSON response (HTTP {response.status_code})",
            ) from e
        if not isinstance(body, dict):
            raise self.error_class(f"{self.config.api_name} returned an unexpected payload")
        return body
