"""Shared fixtures: settings, fake upstream clients, app and token helpers."""
from __future__ import annotations

import os
import time
from typing import Any, Dict, List, Optional

os.environ.setdefault("DECIBLE_NO_COLOR", "1")

import jwt
import pytest
from fastapi.testclient import TestClient

from decible.backend.client import BackendError
from decible.core.config import Settings
from decible.main import create_app
from decible.services.errors import ProviderError

JWT_SECRET = "test-jwt-secret-with-enough-length-for-hs256"
BACKEND_URL = "https://backend.test"
FAKE_MP3 = b"ID3\x03\x00fake-mpeg-frames"


def make_token(
    sub: Optional[str] = "user-1",
    secret: str = JWT_SECRET,
    audience: str = "authenticated",
    expires_in: int = 3600,
    **claims: Any,
) -> str:
    payload: Dict[str, Any] = {"aud": audience, "exp": int(time.time()) + expires_in, **claims}
    if sub is not None:
        payload["sub"] = sub
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_header(token: Optional[str] = None) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token or make_token()}"}


class FakeProvider:
    """Records synthesis calls; returns FAKE_MP3 or raises ``error``."""

    def __init__(self, audio: bytes = FAKE_MP3, error: Optional[Exception] = None):
        self.audio = audio
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    @property
    def configured(self) -> bool:
        return True

    def synthesize(self, text, voice_id, settings=None):
        self.calls.append({"text": text, "voice_id": voice_id, "settings": settings})
        if self.error is not None:
            raise self.error
        return self.audio

    def list_voices(self):
        return [{"id": "nPczCjzI2devNBz1zQrb", "name": "Brian", "category": "premade", "labels": {}}]

    def close(self):
        self.closed = True


PROFILES_TABLE = "user_profiles"
TRANSACTIONS_TABLE = "credit_transactions"


def make_profile(credits: int = 10000, tier: str = "pro", used: int = 0) -> Dict[str, Any]:
    return {"credits_remaining": credits, "subscription_tier": tier, "credits_used_this_month": used}


class FakeBackend:
    """
    In-memory stand-in for BackendClient with switchable failures.

    Every user has ``default_profile`` unless ``profiles`` says otherwise;
    set ``default_profile = None`` to simulate a user without a profile.
    Profile reads, profile updates and credit transactions are tracked
    apart from ``selects``/``inserts`` so history assertions stay exact.
    """

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None):
        self.rows = rows or []
        self.uploads: List[Dict[str, Any]] = []
        self.inserts: List[Dict[str, Any]] = []
        self.selects: List[Dict[str, Any]] = []
        self.profiles: Dict[str, Dict[str, Any]] = {}
        self.default_profile: Optional[Dict[str, Any]] = make_profile()
        self.profile_reads: List[str] = []
        self.updates: List[Dict[str, Any]] = []
        self.transactions: List[Dict[str, Any]] = []
        self.pages: List[Dict[str, Any]] = []
        self.fail_upload = False
        self.fail_insert = False
        self.fail_select = False
        self.fail_profile = False
        self.fail_update = False
        self.fail_transaction = False

    def upload(self, bucket, path, data, content_type="application/octet-stream", upsert=False):
        if self.fail_upload:
            raise BackendError("upload failed", status=503, body="bucket unavailable")
        self.uploads.append({"bucket": bucket, "path": path, "data": data, "content_type": content_type})
        return path

    def public_url(self, bucket, path):
        return f"{BACKEND_URL}/storage/v1/object/public/{bucket}/{path}"

    def insert(self, table, row):
        if table == TRANSACTIONS_TABLE:
            if self.fail_transaction:
                raise BackendError("insert failed", status=500, body="db down")
            stored = {"id": f"tx-{len(self.transactions) + 1}", **row}
            self.transactions.append(stored)
            return stored
        if self.fail_insert:
            raise BackendError("insert failed", status=500, body="db down")
        stored = {"id": f"gen-{len(self.inserts) + 1}", **row}
        self.inserts.append({"table": table, "row": stored})
        return stored

    def _profile(self, user_id):
        if user_id in self.profiles:
            return self.profiles[user_id]
        if self.default_profile is None:
            return None
        self.profiles[user_id] = dict(self.default_profile)
        return self.profiles[user_id]

    def select(self, table, filters=None, order=None, descending=False, limit=None, columns="*"):
        if table == PROFILES_TABLE:
            if self.fail_profile:
                raise BackendError("select failed", status=500, body="db down")
            user_id = (filters or {}).get("id")
            self.profile_reads.append(user_id)
            profile = self._profile(user_id)
            return [dict(profile)] if profile is not None else []
        if self.fail_select:
            raise BackendError("select failed", status=500, body="db down")
        self.selects.append({
            "table": table,
            "filters": filters,
            "order": order,
            "descending": descending,
            "limit": limit,
        })
        return list(self.rows)

    def select_page(self, table, filters=None, order=None, descending=False, limit=20, offset=0, columns="*"):
        if self.fail_select:
            raise BackendError("select failed", status=500, body="db down")
        self.pages.append({"table": table, "filters": filters, "order": order, "limit": limit, "offset": offset})
        user_id = (filters or {}).get("user_id")
        matching = [tx for tx in reversed(self.transactions) if tx.get("user_id") == user_id]
        return matching[offset:offset + limit], len(matching)

    def update(self, table, filters, values):
        if self.fail_update:
            raise BackendError("update failed", status=500, body="db down")
        self.updates.append({"table": table, "filters": filters, "values": values})
        profile = self._profile(filters.get("id"))
        if profile is None:
            return []
        profile.update(values)
        return [dict(profile)]

    def close(self):
        pass


def make_settings(**sections: Dict[str, Any]) -> Settings:
    raw: Dict[str, Any] = {
        "provider": {"api_key": "test-provider-key"},
        "backend": {"url": BACKEND_URL, "service_key": "service-role-key"},
        "auth": {"jwt_secret": JWT_SECRET},
    }
    for name, values in sections.items():
        raw.setdefault(name, {}).update(values)
    return Settings(raw=raw)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def app(settings, provider, backend):
    application = create_app(settings)
    application.state.provider.install(provider)
    application.state.backend.install(backend)
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def failing_provider() -> FakeProvider:
    return FakeProvider(error=ProviderError(details={"status": 500}))
