"""Fan-out motoru: abonelik başına hata izolasyonu ve 410 temizliği."""
import asyncio
import json
import uuid

import pytest
from sqlmodel import Session

from pushgate.core.database import engine, init_db
from pushgate.core.errors import ResourceExhaustedError
from pushgate.models import Subscription, UserCredentials
from pushgate.services.subscriptions import SubscriptionService
from pushgate.services.web_push import PushDeliveryError, encode_message, fan_out


class FakeSender:
    def __init__(self, failures: dict[str, Exception]):
        self.failures = failures
        self.delivered: list[str] = []

    async def send(self, subscription_info: dict, data: str, topic: str | None = None) -> None:
        await asyncio.sleep(0)
        endpoint = subscription_info["endpoint"]
        if endpoint in self.failures:
            raise self.failures[endpoint]
        self.delivered.append(endpoint)


@pytest.fixture
def db():
    init_db()
    with Session(engine) as session:
        yield session


def _setup_user(db: Session, count: int) -> tuple[UserCredentials, list[Subscription]]:
    email = f"fan-{uuid.uuid4().hex[:8]}@example.com"
    creds = UserCredentials(email=email, public_key="pub", private_key="priv", push_token=uuid.uuid4().hex[:16])
    db.add(creds)
    db.commit()
    db.refresh(creds)
    service = SubscriptionService(db)
    subs = []
    for i in range(count):
        sub, _ = service.upsert(email, f"{i:064x}", {"endpoint": f"https://push.example.com/{i}"})
        subs.append(sub)
    return creds, subs


def test_one_failure_does_not_stop_others(db: Session):
    creds, subs = _setup_user(db, 5)
    sender = FakeSender({"https://push.example.com/2": PushDeliveryError("HTTP error! status: 500", 500)})
    result = asyncio.run(fan_out(db, creds, "{}", sender=sender))
    assert len(sender.delivered) == 4
    assert [f.subscription_id for f in result.failed] == [subs[2].id]
    assert result.failed[0].reason == "HTTP error! status: 500"
    assert result.removed == []
    assert len(SubscriptionService(db).list_for_user(creds.email)) == 5


def test_unexpected_exception_is_isolated(db: Session):
    creds, subs = _setup_user(db, 3)
    sender = FakeSender({"https://push.example.com/0": RuntimeError("boom")})
    result = asyncio.run(fan_out(db, creds, "{}", sender=sender))
    assert [f.subscription_id for f in result.failed] == [subs[0].id]
    assert result.failed[0].reason == "boom"
    assert len(result.delivered) == 2


def test_gone_subscriptions_removed_after_loop(db: Session):
    creds, subs = _setup_user(db, 3)
    sender = FakeSender({
        "https://push.example.com/0": PushDeliveryError("HTTP error! status: 410", 410),
        "https://push.example.com/1": PushDeliveryError("HTTP error! status: 404", 404),
    })
    result = asyncio.run(fan_out(db, creds, "{}", sender=sender))
    assert {f.subscription_id for f in result.failed} == {subs[0].id, subs[1].id}
    assert result.removed == [subs[0].id]
    remaining = {s.id for s in SubscriptionService(db).list_for_user(creds.email)}
    assert remaining == {subs[1].id, subs[2].id}


def test_no_subscriptions(db: Session):
    creds, _ = _setup_user(db, 0)
    result = asyncio.run(fan_out(db, creds, "{}", sender=FakeSender({})))
    assert result.failed == [] and result.delivered == []


def test_encode_message_limit():
    message = {"body": "é" * 10}
    data = encode_message(message, max_bytes=100)
    assert json.loads(data) == message
    # UTF-8 bayt sayısı, karakter sayısı değil
    with pytest.raises(ResourceExhaustedError):
        encode_message({"body": "é" * 30}, max_bytes=50)
