# =============================================================================
# tests/unit/test_supabase_client.py
# Unit Tests for RemoteStore (Supabase client mocked)
# =============================================================================

import pytest
from unittest.mock import MagicMock, patch

from conftest import make_analysis


@pytest.fixture
def store(mock_supabase, settings):
    from wardrobe_core.data.supabase_client import RemoteStore

    return RemoteStore(client=mock_supabase, settings=settings)


class TestGarmentQueries:
    """Test table access"""

    def test_query_garments_maps_rows(self, store, mock_supabase):
        query = mock_supabase.table.return_value.select.return_value.eq.return_value.order.return_value
        query.execute.return_value.data = [
            {"id": "g1", "user_id": "u1", "image_url": "https://x", "analysis_json": make_analysis(),
             "created_at": "2024-01-01T00:00:00+00:00"},
        ]

        garments = store.query_garments("u1")

        mock_supabase.table.assert_called_with("clothes")
        mock_supabase.table.return_value.select.return_value.eq.assert_called_with("user_id", "u1")
        mock_supabase.table.return_value.select.return_value.eq.return_value.order.assert_called_with(
            "created_at", desc=True
        )
        assert [g.id for g in garments] == ["g1"]
        assert garments[0].analysis.category == "top"

    def test_query_failure_raises_remote_error(self, store, mock_supabase):
        from wardrobe_core.errors import RemoteStoreError

        mock_supabase.table.return_value.select.side_effect = ConnectionError("offline")

        with pytest.raises(RemoteStoreError) as exc_info:
            store.query_garments("u1")

        assert exc_info.value.details["operation"] == "select"
        assert exc_info.value.details["table"] == "clothes"

    def test_insert_requires_returned_id(self, store, mock_supabase):
        from wardrobe_core.errors import RemoteStoreError

        mock_supabase.table.return_value.insert.return_value.execute.return_value.data = []

        with pytest.raises(RemoteStoreError):
            store.insert_garment({"user_id": "u1"})

    def test_insert_returns_assigned_id(self, store, mock_supabase):
        mock_supabase.table.return_value.insert.return_value.execute.return_value.data = [
            {"id": 7, "user_id": "u1", "analysis_json": {}, "created_at": "t"}
        ]

        garment = store.insert_garment({"user_id": "u1"})

        assert garment.id == "7"

    def test_count_outfits_since(self, store, mock_supabase):
        chain = mock_supabase.table.return_value.select.return_value.eq.return_value.gte.return_value
        chain.execute.return_value.count = 3

        assert store.count_outfits_since("u1", "2024-01-01T00:00:00+00:00") == 3
        mock_supabase.table.return_value.select.assert_called_with("id", count="exact")


class TestImageStorage:
    """Test bucket access"""

    def test_upload_returns_public_url(self, store, mock_supabase):
        bucket = mock_supabase.storage.from_.return_value
        bucket.get_public_url.return_value = "https://test.supabase.co/storage/v1/object/public/uploads/u1/1.png"

        url = store.upload_image("u1", b"bytes", ext=".PNG")

        mock_supabase.storage.from_.assert_called_with("uploads")
        path, data, options = bucket.upload.call_args[0]
        assert path.startswith("u1/") and path.endswith(".png")
        assert options["content-type"] == "image/png"
        assert url.endswith("u1/1.png")

    @pytest.mark.parametrize("ext", ["jpg", ".JPG", "jpeg"])
    def test_jpeg_uploads_use_registered_mime_type(self, store, mock_supabase, ext):
        bucket = mock_supabase.storage.from_.return_value

        store.upload_image("u1", b"bytes", ext=ext)

        options = bucket.upload.call_args[0][2]
        assert options["content-type"] == "image/jpeg"

    def test_explicit_content_type_wins(self, store, mock_supabase):
        bucket = mock_supabase.storage.from_.return_value

        store.upload_image("u1", b"bytes", ext="jpg", content_type="image/webp")

        assert bucket.upload.call_args[0][2]["content-type"] == "image/webp"

    def test_delete_image_failure_raises(self, store, mock_supabase):
        from wardrobe_core.errors import RemoteStoreError

        mock_supabase.storage.from_.return_value.remove.side_effect = RuntimeError("403")

        with pytest.raises(RemoteStoreError):
            store.delete_image("u1/1.png")

    @pytest.mark.parametrize("url, expected", [
        ("https://p.supabase.co/storage/v1/object/public/uploads/u1/1.jpg", "u1/1.jpg"),
        ("https://p.supabase.co/storage/v1/object/public/uploads/u1/1.jpg?t=1", "u1/1.jpg"),
        ("https://elsewhere.com/u1/1.jpg", None),
        (None, None),
    ])
    def test_storage_path_from_url(self, store, url, expected):
        assert store.storage_path_from_url(url) == expected


class TestClientFactory:
    """Test client creation from settings"""

    def test_missing_credentials_raise(self, tmp_path):
        from wardrobe_core.config import WardrobeSettings
        from wardrobe_core.data.supabase_client import get_supabase_client
        from wardrobe_core.errors import ConfigurationError

        with pytest.raises(ConfigurationError):
            get_supabase_client(WardrobeSettings(db_path=tmp_path / "x.db"))

    def test_timeouts_passed_to_client(self, settings):
        from wardrobe_core.data import supabase_client

        with patch.object(supabase_client, "create_client", return_value=MagicMock()) as create:
            supabase_client.get_supabase_client(settings)

        url, key = create.call_args[0]
        options = create.call_args[1]["options"]
        assert (url, key) == ("https://test.supabase.co", "anon-key")
        assert options.postgrest_client_timeout == settings.request_timeout
        assert options.storage_client_timeout == settings.request_timeout
