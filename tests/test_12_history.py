"""
Tests for generation history.

Tests cover:
- Row reshaping and fallbacks
- Limit handling and backend query shape
- Anonymous callers rejected before any backend access
- Persistence failures -> generic 500
"""
import pytest
from fastapi.testclient import TestClient

from conftest import FakeBackend, auth_header, make_settings, make_token

from decible.main import create_app
from decible.services.errors import AuthRequiredError, PersistenceError
from decible.services.history import HistoryItem, HistoryService
from decible.services.models import UserIdentity

ROW = {
    "id": "gen-1",
    "user_id": "user-1",
    "text": "Once upon a time",
    "voice_id": "rachel",
    "voice_name": "Rachel",
    "audio_url": "https://backend.test/storage/v1/object/public/generations/user-1/1-a.mp3",
    "characters_used": 16,
    "credits_used": 16,
    "status": "completed",
    "created_at": "2026-01-15T12:00:00+00:00",
}


class TestHistoryItem:
    """HistoryItem.from_row() reshaping."""

    def test_full_row(self):
        assert HistoryItem.from_row(ROW).to_dict() == {
            "id": "gen-1",
            "text": "Once upon a time",
            "voiceId": "rachel",
            "voiceName": "Rachel",
            "date": "2026-01-15T12:00:00+00:00",
            "duration": "16 chars",
            "url": ROW["audio_url"],
            "status": "completed",
            "creditsUsed": 16,
        }

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_text_fallback(self, text):
        assert HistoryItem.from_row({**ROW, "text": text}).text == "Voice Generation"

    def test_voice_name_fallback(self):
        assert HistoryItem.from_row({**ROW, "voice_name": None}).voice_name == "Unknown Voice"

    @pytest.mark.parametrize("chars", [None, 0, -4, "12", True])
    def test_duration_fallback(self, chars):
        assert HistoryItem.from_row({**ROW, "characters_used": chars}).duration == "Audio"

    def test_minimal_row(self):
        item = HistoryItem.from_row({"id": 3})
        assert item.text == "Voice Generation"
        assert item.voice_name == "Unknown Voice"
        assert item.duration == "Audio"
        assert item.status == "completed"
        assert item.credits_used == 0


class TestHistoryService:
    def test_anonymous_rejected_before_backend(self):
        backend = FakeBackend([ROW])
        with pytest.raises(AuthRequiredError):
            HistoryService(backend).list_for_user(None)
        assert backend.selects == []

    def test_query_shape(self):
        backend = FakeBackend([ROW])
        items = HistoryService(backend).list_for_user(UserIdentity(id="user-1"))

        assert [i.id for i in items] == ["gen-1"]
        assert backend.selects == [{
            "table": "generation_history",
            "filters": {"user_id": "user-1"},
            "order": "created_at",
            "descending": True,
            "limit": 50,
        }]

    @pytest.mark.parametrize("raw,expected", [("10", 10), ("1000", 100), ("x", 50), ("0", 50)])
    def test_limit(self, raw, expected):
        backend = FakeBackend()
        HistoryService(backend).list_for_user(UserIdentity(id="u"), raw)
        assert backend.selects[0]["limit"] == expected

    def test_backend_failure(self):
        backend = FakeBackend()
        backend.fail_select = True
        with pytest.raises(PersistenceError):
            HistoryService(backend).list_for_user(UserIdentity(id="u"))


class TestHistoryEndpoint:
    """GET /api/user/history."""

    def test_unauthenticated_is_401_and_never_builds_backend(self):
        app = create_app(make_settings())
        with TestClient(app) as c:
            r = c.get("/api/user/history")
        assert r.status_code == 401
        body = r.json()
        assert body["ok"] is False
        assert body["error"] == "AUTH_REQUIRED"
        assert app.state.backend.initialized is False

    def test_invalid_token_is_401(self):
        app = create_app(make_settings())
        with TestClient(app) as c:
            r = c.get("/api/user/history", headers=auth_header(make_token(secret="wrong-secret-of-adequate-length-32b")))
        assert r.status_code == 401
        assert r.json()["message"] == "Invalid token"
        assert app.state.backend.initialized is False

    def test_history_for_user(self, client, backend):
        backend.rows = [ROW, {**ROW, "id": "gen-0", "text": None, "voice_name": None, "characters_used": 0}]
        r = client.get("/api/user/history", params={"limit": "5"}, headers=auth_header())

        assert r.status_code == 200
        history = r.json()["history"]
        assert [h["id"] for h in history] == ["gen-1", "gen-0"]
        assert history[1]["text"] == "Voice Generation"
        assert history[1]["voiceName"] == "Unknown Voice"
        assert history[1]["duration"] == "Audio"
        assert backend.selects[0]["filters"] == {"user_id": "user-1"}
        assert backend.selects[0]["limit"] == 5

    def test_backend_failure_is_generic_500(self, client, backend):
        backend.fail_select = True
        r = client.get("/api/user/history", headers=auth_header())
        assert r.status_code == 500
        assert r.json()["error"] == "PERSISTENCE_FAILED"
        assert "db down" not in r.text

    def test_backend_not_configured(self):
        app = create_app(make_settings(backend={"url": None}))
        with TestClient(app) as c:
            r = c.get("/api/user/history", headers=auth_header())
        assert r.status_code == 500
        assert r.json()["error"] == "CONFIG_ERROR"
