# =============================================================================
# tests/unit/test_connectors.py
# Unit Tests for the edge function connectors
# =============================================================================

import pytest
import requests
from unittest.mock import MagicMock

from conftest import make_garment


def _response(status=200, body=None):
    response = MagicMock()
    response.status_code = status
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    mock_session = MagicMock()
    mock_session.headers = {}
    return mock_session


class TestBaseConnector:
    """Test shared request plumbing"""

    def test_auth_headers_and_url(self, settings, session):
        from wardrobe_core.api import VisionConnector

        session.post.return_value = _response(body={"analysis": {}})
        connector = VisionConnector(settings=settings, session=session)

        connector.analyze(b"img")

        assert session.headers["apikey"] == "anon-key"
        assert session.headers["Authorization"] == "Bearer anon-key"
        url = session.post.call_args[0][0]
        assert url == "https://test.supabase.co/functions/v1/analyze-photo"
        assert session.post.call_args[1]["timeout"] == settings.request_timeout

    def test_access_token_overrides_bearer(self, settings, session):
        from wardrobe_core.api import StylistConnector

        connector = StylistConnector(settings=settings, session=session)
        connector.set_access_token("user-jwt")

        assert session.headers["Authorization"] == "Bearer user-jwt"
        assert session.headers["apikey"] == "anon-key"


class TestVisionConnector:
    """Test garment analysis error mapping"""

    def test_returns_descriptor(self, settings, session):
        from wardrobe_core.api import VisionConnector

        payload = {"analysis": {"basic_info": {"category": "top"}}}
        session.post.return_value = _response(body=payload)

        result = VisionConnector(settings=settings, session=session).analyze(b"img", "a.png", "image/png")

        assert result == payload
        assert session.post.call_args[1]["files"]["file"] == ("a.png", b"img", "image/png")

    @pytest.mark.parametrize("code, error_name", [
        ("NO_CLOTHING", "GarmentNotDetectedError"),
        ("FACE_DETECTED", "FaceDetectedError"),
        ("QUOTA", "AnalysisError"),
    ])
    def test_error_codes(self, settings, session, code, error_name):
        from wardrobe_core import errors
        from wardrobe_core.api import VisionConnector

        session.post.return_value = _response(400, {"success": False, "error": code, "message": "nope"})

        with pytest.raises(getattr(errors, error_name)) as exc_info:
            VisionConnector(settings=settings, session=session).analyze(b"img")

        assert exc_info.value.message == "nope"

    def test_transport_error(self, settings, session):
        from wardrobe_core.api import VisionConnector
        from wardrobe_core.errors import AnalysisError

        session.post.side_effect = requests.exceptions.Timeout("read timed out")

        with pytest.raises(AnalysisError):
            VisionConnector(settings=settings, session=session).analyze(b"img")

    def test_non_json_body(self, settings, session):
        from wardrobe_core.api import VisionConnector
        from wardrobe_core.errors import AnalysisError

        session.post.return_value = _response(502, ValueError("no json"))

        with pytest.raises(AnalysisError):
            VisionConnector(settings=settings, session=session).analyze(b"img")


class TestStylistConnector:
    """Test candidate payloads and selections"""

    def test_candidate_is_compact(self):
        from wardrobe_core.api import build_candidate

        candidate = build_candidate(make_garment("g1", sub_category=""))

        assert candidate == {
            "id": "g1",
            "type": "top",
            "colors": ["white"],
            "style": "casual",
            "season": ["summer"],
            "formality": "casual",
            "fit": "regular",
        }

    def test_selection_parsed(self, settings, session):
        from wardrobe_core.api import StylistConnector

        session.post.return_value = _response(body={
            "selection": {"top_id": "t", "bottom_id": "b", "accessory_ids": ["a"], "reason": "neat"}
        })

        response = StylistConnector(settings=settings, session=session).select_outfit(
            [make_garment("t"), make_garment("b")], "context"
        )

        body = session.post.call_args[1]["json"]
        assert body["context"] == "context"
        assert [c["id"] for c in body["candidates"]] == ["t", "b"]
        assert response.selection.item_ids == ["t", "b", "a"]
        assert response.selection.reason == "neat"

    def test_null_selection_with_message(self, settings, session):
        from wardrobe_core.api import StylistConnector

        session.post.return_value = _response(body={"selection": None, "message": "Need shoes"})

        response = StylistConnector(settings=settings, session=session).select_outfit([], "")

        assert response.selection is None
        assert response.message == "Need shoes"

    def test_http_error_raises(self, settings, session):
        from wardrobe_core.api import StylistConnector
        from wardrobe_core.errors import StylistError

        session.post.return_value = _response(500, {"error": "boom"})

        with pytest.raises(StylistError):
            StylistConnector(settings=settings, session=session).select_outfit([make_garment()], "")
