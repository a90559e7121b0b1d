# =============================================================================
# wardrobe_core/config.py
# Runtime Settings (Supabase credentials, cache location, timeouts)
# =============================================================================
"""
Settings are resolved from Streamlit secrets first and environment variables
second, mirroring how the Supabase client has always been configured:

    .streamlit/secrets.toml
        [supabase]
        url = "https://your-project.supabase.co"
        key = "your-anon-key"

    or SUPABASE_URL / SUPABASE_KEY in the environment.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import streamlit as st

from wardrobe_core.errors import ConfigurationError
from wardrobe_core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_DB_PATH = Path(__file__).parent.parent / "local_data" / "wardrobe.db"


@dataclass(frozen=True)
class WardrobeSettings:
    """Resolved configuration for the sync core."""
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    db_path: Path = DEFAULT_DB_PATH
    image_bucket: str = "uploads"
    garments_table: str = "clothes"
    outfits_table: str = "outfits"
    request_timeout: int = 30          # Seconds for PostgREST, Storage and edge functions
    analyze_function: str = "analyze-photo"
    stylist_function: str = "consult-stylist"

    @property
    def has_remote(self) -> bool:
        """True when Supabase credentials are configured."""
        return bool(self.supabase_url and self.supabase_key)

    def require_remote(self) -> None:
        """Raise ConfigurationError unless Supabase credentials are present."""
        if not self.supabase_url:
            raise ConfigurationError("Supabase URL is not configured", config_key="SUPABASE_URL")
        if not self.supabase_key:
            raise ConfigurationError("Supabase key is not configured", config_key="SUPABASE_KEY")


def _read_streamlit_secrets() -> Dict[str, Any]:
    """Return the [supabase] secrets section, or {} when no secrets file exists."""
    try:
        if "supabase" in st.secrets:
            return dict(st.secrets["supabase"])
    except Exception as e:
        logger.debug(f"Streamlit secrets not available: {e}")
    return {}


def load_settings(secrets: Optional[Dict[str, Any]] = None) -> WardrobeSettings:
    """
    Build settings from a secrets mapping and the environment.

    Args:
        secrets: Parsed ``[supabase]`` section; read from st.secrets if None
    """
    secrets = _read_streamlit_secrets() if secrets is None else secrets

    url = secrets.get("url") or os.getenv("SUPABASE_URL")
    key = secrets.get("key") or os.getenv("SUPABASE_KEY")
    db_path = secrets.get("db_path") or os.getenv("WARDROBE_DB_PATH")
    timeout = secrets.get("request_timeout") or os.getenv("WARDROBE_REQUEST_TIMEOUT")

    try:
        request_timeout = int(timeout) if timeout else WardrobeSettings.request_timeout
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Invalid request timeout: {timeout!r}",
            config_key="WARDROBE_REQUEST_TIMEOUT",
            expected_type="int",
        )

    return WardrobeSettings(
        supabase_url=url,
        supabase_key=key,
        db_path=Path(db_path) if db_path else DEFAULT_DB_PATH,
        image_bucket=secrets.get("bucket", WardrobeSettings.image_bucket),
        request_timeout=request_timeout,
    )


@lru_cache(maxsize=1)
def get_settings() -> WardrobeSettings:
    """Get the process-wide settings (resolved once)."""
    return load_settings()
