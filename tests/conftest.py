"""Pytest fixtures: test client, test DB (in-memory SQLite), kullanıcı ve push stub'ları."""
import os
import uuid

import pytest
from fastapi.testclient import TestClient

# Test ortamında in-memory SQLite (app import edilmeden önce set edilmeli)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("REDIS_URL", "")
# Rate limit yüksek olsun ki tüm testler geçebilsin
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "10000")
os.environ.setdefault("RATE_LIMIT_REGISTER_PER_MINUTE", "100")
os.environ.setdefault("SSE_HEARTBEAT_SECONDS", "30")

from pywebpush import WebPushException  # noqa: E402

from pushgate.main import app  # noqa: E402

FINGERPRINT_A = "a" * 64
FINGERPRINT_B = "b" * 64


@pytest.fixture(scope="function")
def client():
    """TestClient; lifespan ile in-memory DB, tablolar, hub ve token deposu hazır olur."""
    with TestClient(app) as c:
        yield c


def register_and_login(client: TestClient, email: str | None = None, password: str = "test123456") -> dict:
    email = email or f"user-{uuid.uuid4().hex[:10]}@example.com"
    r = client.post("/auth/register", data={"email": email, "password": password, "full_name": "Test User"})
    assert r.status_code == 200, r.text
    r = client.post("/auth/login", data={"email": email, "password": password})
    assert r.status_code == 200, f"Login failed: {r.status_code} {r.text}"
    # Çerez yerine başlık: aynı client ile birden fazla kullanıcı taşınabilsin
    client.cookies.clear()
    return {"email": email, "headers": {"Authorization": f"Bearer {r.json()['access_token']}"}}


@pytest.fixture
def user(client: TestClient) -> dict:
    """Kayıtlı, giriş yapmış kullanıcı: {'email', 'headers', 'push_token'}."""
    u = register_and_login(client)
    r = client.get("/api/vapid-keys", headers=u["headers"])
    assert r.status_code == 200, r.text
    u["push_token"] = r.json()["pushToken"]
    return u


def subscribe(client: TestClient, user: dict, fingerprint: str, endpoint: str | None = None) -> str:
    endpoint = endpoint or f"https://push.example.com/send/{fingerprint[:8]}"
    r = client.put(
        "/api/subscription",
        json={
            "deviceFingerprint": fingerprint,
            "subscription": {"endpoint": endpoint, "keys": {"p256dh": "BKey", "auth": "auth"}},
        },
        headers=user["headers"],
    )
    assert r.status_code in (200, 201), r.text
    return r.json()["id"]


class FakeResponse:
    def __init__(self, status_code: int):
        self.status_code = status_code
        self.text = ""


class PushRecorder:
    """pywebpush.webpush yerine geçer; endpoint'e göre hata döndürebilir."""

    def __init__(self):
        self.calls: list[dict] = []
        self.fail: dict[str, int] = {}

    def __call__(self, subscription_info, data=None, **kwargs):
        endpoint = subscription_info["endpoint"]
        self.calls.append({"endpoint": endpoint, "data": data, **kwargs})
        status = self.fail.get(endpoint)
        if status:
            raise WebPushException(f"Push failed: {status}", response=FakeResponse(status))
        return FakeResponse(201)


@pytest.fixture
def push_recorder(monkeypatch) -> PushRecorder:
    recorder = PushRecorder()
    monkeypatch.setattr("pushgate.services.web_push.webpush", recorder)
    return recorder


class WebhookRecorder:
    def __init__(self):
        self.calls: list[tuple[str, dict]] = []
        self.error: Exception | None = None

    async def __call__(self, url: str, payload: dict, timeout: float | None = None) -> None:
        self.calls.append((url, payload))
        if self.error is not None:
            raise self.error


@pytest.fixture
def webhook_recorder(monkeypatch) -> WebhookRecorder:
    recorder = WebhookRecorder()
    monkeypatch.setattr("pushgate.services.approval.send_webhook", recorder)
    return recorder
