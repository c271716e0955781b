"""POST /api/push: yayın, fan-out hata izolasyonu, boyut sınırı ve doğrulama."""
import asyncio
import json

from fastapi.testclient import TestClient
from sqlmodel import Session, select

from pushgate.core.database import engine
from pushgate.models import ApprovalProcess, Notification, Subscription
from pushgate.services.notifications import build_push_message
from pushgate.services.web_push import encode_message
from tests.conftest import FINGERPRINT_A, FINGERPRINT_B, subscribe


def _push(client: TestClient, token: str, content: str):
    return client.post("/api/push", json={"pushToken": token, "content": content})


def test_publish_plain_to_all_devices(client: TestClient, user: dict, push_recorder):
    subscribe(client, user, FINGERPRINT_A)
    subscribe(client, user, FINGERPRINT_B)
    r = _push(client, user["push_token"], "---\ntitle: Hi\ncategory: test\n---\nhello")
    assert r.status_code == 200, r.text
    j = r.json()
    assert j["success"] is True
    assert "approvalId" not in j
    assert len(push_recorder.calls) == 2
    payload = json.loads(push_recorder.calls[0]["data"])
    assert payload["id"] == j["notificationId"]
    assert payload["title"] == "Hi"
    assert payload["body"] == "hello"
    assert payload["category"] == "test"
    assert payload["type"] == "plain"
    assert isinstance(payload["createdAt"], int)
    call = push_recorder.calls[0]
    assert call["ttl"] == 60
    assert call["headers"] == {"Urgency": "normal", "Topic": "Default"}
    assert call["vapid_claims"] == {"sub": f"mailto:{user['email']}"}


def test_gone_subscription_reported_and_removed(client: TestClient, user: dict, push_recorder):
    subscribe(client, user, FINGERPRINT_A, endpoint="https://push.example.com/ok")
    gone_id = subscribe(client, user, FINGERPRINT_B, endpoint="https://push.example.com/gone")
    push_recorder.fail["https://push.example.com/gone"] = 410

    r = _push(client, user["push_token"], "---\ntitle: Hi\ncategory: test\n---\nhello")
    assert r.status_code == 200
    j = r.json()
    assert j["success"] is False
    assert j["error"] == "Some push notifications failed to send"
    assert [f["subscriptionId"] for f in j["failedPushes"]] == [gone_id]
    assert j["failedPushes"][0]["reason"]
    # Başarılı cihaz yine de mesajı aldı
    assert {c["endpoint"] for c in push_recorder.calls} == {"https://push.example.com/ok", "https://push.example.com/gone"}

    listed = client.get("/api/subscription", headers=user["headers"]).json()["subscriptions"]
    assert [s["deviceFingerprint"] for s in listed] == [FINGERPRINT_A]


def test_non_gone_failure_keeps_subscription(client: TestClient, user: dict, push_recorder):
    sub_id = subscribe(client, user, FINGERPRINT_A, endpoint="https://push.example.com/flaky")
    push_recorder.fail["https://push.example.com/flaky"] = 500
    r = _push(client, user["push_token"], "hello")
    j = r.json()
    assert j["success"] is False
    assert j["failedPushes"][0]["subscriptionId"] == sub_id
    with Session(engine) as db:
        assert db.get(Subscription, sub_id) is not None


def test_invalid_push_token(client: TestClient, push_recorder):
    r = _push(client, "NotARealTokenXYZ", "hello")
    assert r.status_code == 401
    assert r.json()["status_code"] == 401


def test_missing_push_token(client: TestClient, push_recorder):
    r = client.post("/api/push", json={"content": "hello"})
    assert r.status_code == 401


def test_push_token_via_bearer_header(client: TestClient, user: dict, push_recorder):
    r = client.post(
        "/api/push",
        json={"content": "hello"},
        headers={"Authorization": f"Bearer {user['push_token']}"},
    )
    assert r.status_code == 200
    assert r.json()["success"] is True


def test_missing_content(client: TestClient, user: dict):
    r = _push(client, user["push_token"], "   ")
    assert r.status_code == 400


def _content_of_size(target: int) -> str:
    """Push mesajı tam olarak `target` bayt olacak şekilde gövde üretir."""
    probe = Notification(id="0" * 32, content="", user_email="x@example.com", type="plain")
    base = len(encode_message(build_push_message(probe, None, None), max_bytes=10**6).encode("utf-8"))
    return "x" * (target - base)


def test_size_boundary(client: TestClient, user: dict, push_recorder):
    subscribe(client, user, FINGERPRINT_A)
    exact = _content_of_size(4096)
    r = _push(client, user["push_token"], exact)
    assert r.status_code == 200, r.text
    assert len(push_recorder.calls[0]["data"].encode("utf-8")) == 4096

    push_recorder.calls.clear()
    r = _push(client, user["push_token"], exact + "x")
    assert r.status_code == 400
    assert push_recorder.calls == []


def test_oversized_message_has_no_side_effects(client: TestClient, user: dict, push_recorder):
    with Session(engine) as db:
        before = len(db.exec(select(Notification).where(Notification.user_email == user["email"])).all())
    r = _push(client, user["push_token"], "y" * 5000)
    assert r.status_code == 400
    with Session(engine) as db:
        after = len(db.exec(select(Notification).where(Notification.user_email == user["email"])).all())
    assert before == after


def test_icon_url_must_be_https(client: TestClient, user: dict, push_recorder):
    r = _push(client, user["push_token"], "---\nicon_url: http://cdn.example.com/a.png\n---\nx")
    assert r.status_code == 400
    assert "HTTPS" in r.json()["error"]


def test_approval_requires_webhook(client: TestClient, user: dict, push_recorder):
    r = _push(client, user["push_token"], "---\ntype: approval-process\n---\nOnay?")
    assert r.status_code == 400


def test_private_webhook_rejected(client: TestClient, user: dict, push_recorder):
    r = _push(client, user["push_token"], "---\ntype: approval-process\nwebhook_url: http://10.1.2.3/hook\n---\nOnay?")
    assert r.status_code == 400


def test_approval_publish_creates_record_and_token(client: TestClient, user: dict, push_recorder):
    subscribe(client, user, FINGERPRINT_A)
    r = _push(
        client,
        user["push_token"],
        "---\ntitle: Deploy\ntype: approval-process\nwebhook_url: https://hooks.example.com/approve\n---\nShip it?",
    )
    assert r.status_code == 200, r.text
    j = r.json()
    payload = json.loads(push_recorder.calls[0]["data"])
    assert payload["approvalId"] == j["approvalId"]
    assert payload["approvalState"] == "pending"
    assert payload["tempAccessToken"]
    with Session(engine) as db:
        approval = db.get(ApprovalProcess, j["approvalId"])
        assert approval.notification_id == j["notificationId"]
        assert approval.state == "pending"
    token_store = client.app.state.token_store
    assert asyncio.run(token_store.get(j["approvalId"])) == payload["tempAccessToken"]


def test_partial_failure_still_reports_approval(client: TestClient, user: dict, push_recorder):
    subscribe(client, user, FINGERPRINT_A)
    failing = subscribe(client, user, FINGERPRINT_B, endpoint="https://push.example.com/down")
    push_recorder.fail["https://push.example.com/down"] = 500
    r = _push(
        client,
        user["push_token"],
        "---\ntype: approval-process\nwebhook_url: https://hooks.example.com/approve\n---\nShip it?",
    )
    j = r.json()
    assert j["success"] is False
    assert [f["subscriptionId"] for f in j["failedPushes"]] == [failing]
    with Session(engine) as db:
        approval = db.get(ApprovalProcess, j["approvalId"])
        assert approval.notification_id == j["notificationId"]


def test_encrypted_publish_carries_nonce(client: TestClient, user: dict, push_recorder):
    subscribe(client, user, FINGERPRINT_A)
    r = _push(client, user["push_token"], '---\ntype: encrypted\nextra: {"nonce": "bm9uY2U="}\n---\nY2lwaGVy')
    assert r.status_code == 200, r.text
    payload = json.loads(push_recorder.calls[0]["data"])
    assert payload["type"] == "encrypted"
    assert payload["extra"] == {"nonce": "bm9uY2U="}
    assert payload["body"] == "Y2lwaGVy"
