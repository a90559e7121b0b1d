# =============================================================================
# wardrobe_core/data/supabase_client.py
# Supabase Client Configuration and Remote Store for the Wardrobe
# Handles the clothes/outfits tables and the image bucket
# =============================================================================

from __future__ import annotations
import threading
import time
from typing import Any, Dict, List, Optional

from supabase import Client, ClientOptions, create_client

from wardrobe_core.config import WardrobeSettings, get_settings
from wardrobe_core.errors import RemoteStoreError
from wardrobe_core.logging import get_logger
from wardrobe_core.models import GarmentRecord, OutfitRecord

logger = get_logger(__name__)


def image_content_type(ext: str) -> str:
    """MIME type for an image extension (``jpg`` maps to ``image/jpeg``)."""
    ext = ext.lstrip(".").lower() or "jpg"
    return "image/jpeg" if ext in ("jpg", "jpeg") else f"image/{ext}"


def get_supabase_client(settings: Optional[WardrobeSettings] = None) -> Client:
    """
    Create a Supabase client from settings.

    Every PostgREST, Storage and Functions call made through the client is
    bounded by ``settings.request_timeout`` so a hung request surfaces as an
    error instead of blocking a load forever.

    Raises:
        ConfigurationError: if URL or key are missing
    """
    settings = settings or get_settings()
    settings.require_remote()

    options = ClientOptions(
        postgrest_client_timeout=settings.request_timeout,
        storage_client_timeout=settings.request_timeout,
        function_client_timeout=settings.request_timeout,
    )
    return create_client(settings.supabase_url, settings.supabase_key, options=options)


# Shared client, created once per process
_supabase_client: Optional[Client] = None
_client_lock = threading.Lock()


def get_cached_supabase_client(settings: Optional[WardrobeSettings] = None) -> Client:
    """Get the process-wide Supabase client (reused across sessions)."""
    global _supabase_client
    if _supabase_client is None:
        with _client_lock:
            if _supabase_client is None:
                _supabase_client = get_supabase_client(settings)
    return _supabase_client


class RemoteStore:
    """
    Typed access to the wardrobe tables and image bucket in Supabase.

    All methods raise RemoteStoreError on failure; the remote store is the
    source of truth, so its failures are never swallowed here.
    """

    def __init__(
        self,
        client: Optional[Client] = None,
        settings: Optional[WardrobeSettings] = None,
    ):
        """
        Args:
            client: Supabase client (created from settings when omitted)
            settings: Table/bucket names and credentials
        """
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_cached_supabase_client(self.settings)
        return self._client

    def _table(self, name: str):
        return self.client.table(name)

    def _bucket(self):
        return self.client.storage.from_(self.settings.image_bucket)

    # =========================================================================
    # GARMENTS
    # =========================================================================

    def query_garments(self, owner_id: str) -> List[GarmentRecord]:
        """All garments of an owner, newest first."""
        table = self.settings.garments_table
        try:
            response = (
                self._table(table)
                .select("*")
                .eq("user_id", owner_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise RemoteStoreError(
                f"Error fetching wardrobe items: {e}", operation="select", table=table
            ) from e
        return [GarmentRecord.from_row(row) for row in response.data or []]

    def get_garment(self, garment_id: str) -> Optional[GarmentRecord]:
        """Fetch one garment by id (None if it does not exist)."""
        table = self.settings.garments_table
        try:
            response = (
                self._table(table)
                .select("*")
                .eq("id", garment_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise RemoteStoreError(
                f"Error fetching wardrobe item: {e}", operation="select", table=table
            ) from e
        rows = response.data or []
        return GarmentRecord.from_row(rows[0]) if rows else None

    def insert_garment(self, row: Dict[str, Any]) -> GarmentRecord:
        """
        Insert a garment row and return it with its server-assigned id.

        Args:
            row: Column values (``user_id``, ``image_url``, ``analysis_json``
                 and the flattened analysis columns)
        """
        table = self.settings.garments_table
        try:
            response = self._table(table).insert(row).execute()
        except Exception as e:
            raise RemoteStoreError(
                f"Error inserting wardrobe item: {e}", operation="insert", table=table
            ) from e

        rows = response.data or []
        if not rows or rows[0].get("id") is None:
            raise RemoteStoreError(
                "Insert returned no row with an id", operation="insert", table=table
            )
        return GarmentRecord.from_row(rows[0])

    def delete_garment(self, garment_id: str) -> None:
        table = self.settings.garments_table
        try:
            self._table(table).delete().eq("id", garment_id).execute()
        except Exception as e:
            raise RemoteStoreError(
                f"Error deleting wardrobe item: {e}", operation="delete", table=table
            ) from e

    # =========================================================================
    # OUTFITS
    # =========================================================================

    def query_outfits(self, owner_id: str) -> List[OutfitRecord]:
        """All outfits of an owner, newest first."""
        table = self.settings.outfits_table
        try:
            response = (
                self._table(table)
                .select("*")
                .eq("user_id", owner_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise RemoteStoreError(
                f"Error fetching outfits: {e}", operation="select", table=table
            ) from e
        return [OutfitRecord.from_row(row) for row in response.data or []]

    def insert_outfit(self, outfit: OutfitRecord) -> OutfitRecord:
        """Insert an outfit with its client-generated id."""
        table = self.settings.outfits_table
        try:
            response = self._table(table).insert(outfit.to_row()).execute()
        except Exception as e:
            raise RemoteStoreError(
                f"Error saving outfit: {e}", operation="insert", table=table
            ) from e
        rows = response.data or []
        return OutfitRecord.from_row(rows[0]) if rows else outfit

    def delete_outfit(self, outfit_id: str) -> None:
        table = self.settings.outfits_table
        try:
            self._table(table).delete().eq("id", outfit_id).execute()
        except Exception as e:
            raise RemoteStoreError(
                f"Error deleting outfit: {e}", operation="delete", table=table
            ) from e

    def count_outfits_since(self, owner_id: str, since: str) -> int:
        """Number of outfits an owner created at or after ``since``."""
        table = self.settings.outfits_table
        try:
            response = (
                self._table(table)
                .select("id", count="exact")
                .eq("user_id", owner_id)
                .gte("created_at", since)
                .execute()
            )
        except Exception as e:
            raise RemoteStoreError(
                f"Error counting outfits: {e}", operation="count", table=table
            ) from e
        return response.count or 0

    # =========================================================================
    # IMAGE STORAGE
    # =========================================================================

    def upload_image(
        self,
        owner_id: str,
        data: bytes,
        ext: str = "jpg",
        content_type: Optional[str] = None,
    ) -> str:
        """
        Upload image bytes under ``<owner_id>/<millis>.<ext>``.

        Returns:
            Public URL of the stored object
        """
        ext = ext.lstrip(".").lower() or "jpg"
        path = f"{owner_id}/{int(time.time() * 1000)}.{ext}"
        try:
            self._bucket().upload(
                path,
                data,
                {"content-type": content_type or image_content_type(ext), "upsert": "false"},
            )
            return self._bucket().get_public_url(path)
        except Exception as e:
            raise RemoteStoreError(
                f"Error uploading image: {e}",
                operation="upload",
                details={"bucket": self.settings.image_bucket},
            ) from e

    def delete_image(self, path: str) -> None:
        try:
            self._bucket().remove([path])
        except Exception as e:
            raise RemoteStoreError(
                f"Error deleting image: {e}",
                operation="remove",
                details={"bucket": self.settings.image_bucket, "path": path},
            ) from e

    def storage_path_from_url(self, image_url: Optional[str]) -> Optional[str]:
        """Object path inside the bucket for one of its public URLs."""
        if not image_url:
            return None
        marker = f"/object/public/{self.settings.image_bucket}/"
        if marker not in image_url:
            return None
        path = image_url.split(marker, 1)[1].split("?", 1)[0]
        return path or None
