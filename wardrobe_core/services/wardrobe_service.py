# =============================================================================
# wardrobe_core/services/wardrobe_service.py
# Wardrobe Facade: two-phase garment loading and mirrored add/delete
# =============================================================================

from __future__ import annotations
from typing import Any, Dict, List, Optional

from wardrobe_core.api import VisionConnector
from wardrobe_core.data.supabase_client import RemoteStore, image_content_type
from wardrobe_core.errors import RemoteStoreError
from wardrobe_core.models import GarmentRecord, normalize_analysis
from wardrobe_core.offline.local_database import LocalDatabase

from .base_service import BaseService


class WardrobeService(BaseService):
    """
    Garment facade over the remote store and the local cache.

    Remote writes are authoritative and must succeed; the cache is mirrored
    afterwards on a best-effort basis. Remote failures are raised to the
    caller, cache failures never are.

    Usage:
        service = WardrobeService(get_local_database(), RemoteStore())
        cached = service.read_local(owner_id)        # immediate paint
        fresh = service.fetch_and_sync(owner_id)     # authoritative paint
    """

    def __init__(
        self,
        local_db: LocalDatabase,
        remote: RemoteStore,
        vision: Optional[VisionConnector] = None,
    ):
        super().__init__()
        self.local_db = local_db
        self.remote = remote
        self._vision = vision

    @property
    def vision(self) -> VisionConnector:
        if self._vision is None:
            self._vision = VisionConnector(settings=self.remote.settings)
        return self._vision

    def initialize(self) -> None:
        """Prepare the local cache (idempotent)."""
        self.local_db.initialize()

    # =========================================================================
    # READS
    # =========================================================================

    def fetch_and_sync(self, owner_id: str) -> List[GarmentRecord]:
        """
        Fetch all garments from the remote store and reconcile the cache.

        Returns:
            The fetched garments, newest first

        Raises:
            RemoteStoreError: if the remote query fails (the cache is untouched)
        """
        with self.log_operation(f"Syncing garments for owner {owner_id}"):
            garments = self.remote.query_garments(owner_id)
            self.local_db.reconcile_garments(owner_id, garments)
            return garments

    def read_local(self, owner_id: str) -> List[GarmentRecord]:
        """Cached garments, newest first. Never raises."""
        return self.local_db.get_garments(owner_id)

    # =========================================================================
    # WRITES
    # =========================================================================

    def add_garment(
        self,
        owner_id: str,
        analysis_result: Dict[str, Any],
        image_url: str,
    ) -> GarmentRecord:
        """
        Insert a garment remotely, then mirror it into the cache.

        Args:
            owner_id: Owning user
            analysis_result: Vision result, stored verbatim as ``analysis_json``
            image_url: Public URL of the uploaded photo

        Returns:
            The stored record with its remote-assigned id

        Raises:
            RemoteStoreError: if the remote insert fails
        """
        analysis = normalize_analysis(analysis_result)
        row = {
            "user_id": owner_id,
            "image_url": image_url,
            **analysis.to_columns(),
            "analysis_json": analysis_result,
        }

        garment = self.remote.insert_garment(row)
        self.logger.info(f"Added garment {garment.id} for owner {owner_id}")

        if not self.local_db.upsert_garments([garment]):
            self.logger.warning(f"Garment {garment.id} was not mirrored into the local cache")
        return garment

    def delete_garment(self, garment_id: str) -> None:
        """
        Delete a garment: best-effort image removal, then the remote row,
        then the cached row.

        Raises:
            RemoteStoreError: if the remote row could not be deleted (the
                cached row is left in place)
        """
        image_url = None
        try:
            garment = self.remote.get_garment(garment_id)
            image_url = garment.image_url if garment else None
        except RemoteStoreError as e:
            self.logger.warning(f"Could not look up image for garment {garment_id}: {e}")

        path = self.remote.storage_path_from_url(image_url)
        if path:
            try:
                self.remote.delete_image(path)
            except RemoteStoreError as e:
                self.logger.warning(f"Image {path} left in storage: {e}")

        self.remote.delete_garment(garment_id)
        self.local_db.delete_garment(garment_id)
        self.logger.info(f"Deleted garment {garment_id}")

    def upload_and_add(
        self,
        owner_id: str,
        image_bytes: bytes,
        ext: str = "jpg",
    ) -> GarmentRecord:
        """
        Full add-item flow: analyse the photo, upload it, store the garment.

        The analysis function may store a cleaned-up copy of the photo itself
        and return its ``image_url``; the original bytes are only uploaded
        when it does not.

        Raises:
            GarmentNotDetectedError, FaceDetectedError: photo rejected; the
                flow stops before anything is uploaded and is not retried
            AnalysisError: analysis failed
            RemoteStoreError: upload or insert failed
        """
        ext = ext.lstrip(".").lower() or "jpg"
        content_type = image_content_type(ext)

        with self.log_operation(f"Adding garment for owner {owner_id}"):
            analysis_result = self.vision.analyze(
                image_bytes,
                filename=f"photo.{ext}",
                content_type=content_type,
            )
            image_url = analysis_result.get("image_url")
            if not image_url:
                image_url = self.remote.upload_image(
                    owner_id, image_bytes, ext=ext, content_type=content_type
                )
            return self.add_garment(owner_id, analysis_result, image_url)
