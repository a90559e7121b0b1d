# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import pytest
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

from wardrobe_core.config import WardrobeSettings
from wardrobe_core.data.supabase_client import RemoteStore
from wardrobe_core.errors import RemoteStoreError
from wardrobe_core.models import GarmentRecord, OutfitRecord
from wardrobe_core.offline.local_database import LocalDatabase


# =============================================================================
# SAMPLE DATA
# =============================================================================

def make_analysis(
    category: str = "top",
    sub_category: str = "t-shirt",
    primary_color: str = "white",
    style: str = "casual",
    seasons: Optional[List[str]] = None,
    nested: bool = True,
) -> Dict[str, Any]:
    """Vision-style analysis payload (nested under "analysis" by default)"""
    body = {
        "basic_info": {"category": category, "sub_category": sub_category},
        "visual_details": {"primary_color": primary_color, "secondary_colors": []},
        "attributes": {"style": style, "fit": "regular", "material": "cotton"},
        "context": {"seasons": seasons or ["summer"], "formality": "casual"},
    }
    return {"analysis": body} if nested else body


def make_garment(
    garment_id: Optional[str] = "g1",
    owner_id: Optional[str] = "u1",
    created_at: str = "2024-01-01T10:00:00+00:00",
    image_url: str = "https://test.supabase.co/storage/v1/object/public/uploads/u1/1.jpg",
    **analysis_kwargs,
) -> GarmentRecord:
    return GarmentRecord(
        id=garment_id,
        owner_id=owner_id,
        image_url=image_url,
        analysis_payload=make_analysis(**analysis_kwargs),
        created_at=created_at,
    )


def make_outfit(
    outfit_id: Optional[str] = "o1",
    owner_id: Optional[str] = "u1",
    created_at: str = "2024-01-01T10:00:00+00:00",
    items: Optional[List[GarmentRecord]] = None,
) -> OutfitRecord:
    items = items if items is not None else [make_garment()]
    return OutfitRecord(
        id=outfit_id,
        owner_id=owner_id,
        items_payload=[garment.to_row() for garment in items],
        created_at=created_at,
    )


@pytest.fixture
def sample_wardrobe():
    """A small wardrobe with two tops, two bottoms and shoes"""
    return [
        make_garment("top-white", category="top", sub_category="t-shirt", primary_color="white",
                     created_at="2024-01-05T10:00:00+00:00"),
        make_garment("top-red", category="top", sub_category="blouse", primary_color="red",
                     style="chic", created_at="2024-01-04T10:00:00+00:00"),
        make_garment("bottom-navy", category="bottom", sub_category="jeans", primary_color="navy",
                     created_at="2024-01-03T10:00:00+00:00"),
        make_garment("bottom-pink", category="bottom", sub_category="skirt", primary_color="pink",
                     style="chic", seasons=["spring"], created_at="2024-01-02T10:00:00+00:00"),
        make_garment("shoes-black", category="shoes", sub_category="sneakers", primary_color="black",
                     seasons=["all seasons"], created_at="2024-01-01T10:00:00+00:00"),
    ]


# =============================================================================
# STORE FIXTURES
# =============================================================================

@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a throwaway database"""
    return WardrobeSettings(
        supabase_url="https://test.supabase.co",
        supabase_key="anon-key",
        db_path=tmp_path / "wardrobe.db",
    )


@pytest.fixture
def local_db(tmp_path):
    """Initialized LocalDatabase backed by a temporary file"""
    db = LocalDatabase(tmp_path / "wardrobe.db")
    db.initialize()
    yield db
    db.close()


class FakeRemoteStore(RemoteStore):
    """
    In-memory RemoteStore.

    Set ``fail_on`` to a set of method names to make those calls raise
    RemoteStoreError. Every call is appended to ``calls``.
    """

    def __init__(self, settings: WardrobeSettings):
        super().__init__(client=MagicMock(), settings=settings)
        self.garments: Dict[str, GarmentRecord] = {}
        self.outfits: Dict[str, OutfitRecord] = {}
        self.images: Dict[str, bytes] = {}
        self.fail_on = set()
        self.calls: List[str] = []
        self._next_id = 1

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise RemoteStoreError(f"{name} failed (simulated)", operation=name)

    def query_garments(self, owner_id):
        self._call("query_garments")
        rows = [g for g in self.garments.values() if g.owner_id == owner_id]
        return sorted(rows, key=lambda g: g.created_at, reverse=True)

    def get_garment(self, garment_id):
        self._call("get_garment")
        return self.garments.get(garment_id)

    def insert_garment(self, row):
        self._call("insert_garment")
        garment_id = f"remote-{self._next_id}"
        self._next_id += 1
        garment = GarmentRecord.from_row({**row, "id": garment_id})
        self.garments[garment_id] = garment
        self.last_inserted_row = row
        return garment

    def delete_garment(self, garment_id):
        self._call("delete_garment")
        self.garments.pop(garment_id, None)

    def query_outfits(self, owner_id):
        self._call("query_outfits")
        rows = [o for o in self.outfits.values() if o.owner_id == owner_id]
        return sorted(rows, key=lambda o: o.created_at, reverse=True)

    def insert_outfit(self, outfit):
        self._call("insert_outfit")
        self.outfits[outfit.id] = outfit
        return outfit

    def delete_outfit(self, outfit_id):
        self._call("delete_outfit")
        self.outfits.pop(outfit_id, None)

    def count_outfits_since(self, owner_id, since):
        self._call("count_outfits_since")
        return sum(1 for o in self.outfits.values() if o.owner_id == owner_id and o.created_at >= since)

    def upload_image(self, owner_id, data, ext="jpg", content_type=None):
        self._call("upload_image")
        self.last_content_type = content_type
        path = f"{owner_id}/{len(self.images) + 1}.{ext}"
        self.images[path] = data
        return f"{self.settings.supabase_url}/storage/v1/object/public/{self.settings.image_bucket}/{path}"

    def delete_image(self, path):
        self._call("delete_image")
        self.images.pop(path, None)


@pytest.fixture
def fake_remote(settings):
    """In-memory remote store"""
    return FakeRemoteStore(settings)


# =============================================================================
# MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_streamlit(monkeypatch):
    """Replace the Streamlit module used by the error handlers and session binding"""
    mock_st = MagicMock()
    mock_st.session_state = {}

    import wardrobe_core.errors.handlers as handlers
    import wardrobe_core.state.session as session
    monkeypatch.setattr(handlers, "st", mock_st)
    monkeypatch.setattr(session, "st", mock_st)

    yield mock_st


@pytest.fixture
def mock_supabase():
    """Mock Supabase client"""
    mock_client = MagicMock()
    mock_client.table.return_value.select.return_value.eq.return_value.order.return_value.execute.return_value.data = []
    mock_client.table.return_value.insert.return_value.execute.return_value = MagicMock()
    return mock_client
