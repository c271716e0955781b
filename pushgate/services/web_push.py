"""
Web Push gönderimi ve kullanıcı başına fan-out.

Her abonelik bağımsız denenir: birindeki hata diğerlerini durdurmaz,
hatalar (abonelik id, sebep) listesine toplanır. 410 Gone dönen
abonelikler döngü bittikten sonra silinir.
"""
import asyncio
import json
import logging
from dataclasses import dataclass, field

from pywebpush import WebPushException, webpush
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

from pushgate.core.config import settings
from pushgate.core.errors import ResourceExhaustedError
from pushgate.models import Subscription, UserCredentials
from pushgate.services.subscriptions import SubscriptionService

log = logging.getLogger("pushgate.push")

HTTP_GONE = 410


class PushDeliveryError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class FailedPush:
    subscription_id: str
    reason: str


@dataclass
class FanoutResult:
    delivered: list[str] = field(default_factory=list)
    failed: list[FailedPush] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)


def encode_message(message: dict, max_bytes: int | None = None) -> str:
    """Mesajı JSON'a çevirir; UTF-8 boyutu sınırı aşarsa hiçbir cihaza gitmeden reddedilir."""
    limit = max_bytes if max_bytes is not None else settings.max_message_bytes
    data = json.dumps(message, ensure_ascii=False, separators=(",", ":"))
    if len(data.encode("utf-8")) > limit:
        raise ResourceExhaustedError(f"Mesaj boyutu {limit} bayt sınırını aşıyor.")
    return data


class WebPushService:
    """Kullanıcının VAPID anahtarlarıyla tek bir aboneliğe gönderim."""

    def __init__(self, vapid_private_key: str, vapid_subject: str):
        self.vapid_private_key = vapid_private_key
        self.vapid_subject = vapid_subject

    @classmethod
    def for_credentials(cls, creds: UserCredentials) -> "WebPushService":
        return cls(creds.private_key, f"mailto:{creds.email}")

    async def send(self, subscription_info: dict, data: str, topic: str | None = None) -> None:
        headers = {"Urgency": settings.push_urgency, "Topic": topic or settings.push_default_topic}
        try:
            # pywebpush senkron (requests); event loop'u bloklamamak için threadpool
            await run_in_threadpool(
                webpush,
                subscription_info=subscription_info,
                data=data,
                vapid_private_key=self.vapid_private_key,
                vapid_claims={"sub": self.vapid_subject},
                ttl=settings.push_ttl_seconds,
                headers=headers,
                timeout=10,
            )
        except WebPushException as e:
            status = e.response.status_code if e.response is not None else None
            raise PushDeliveryError(f"HTTP error! status: {status}" if status else str(e), status) from e


async def _deliver(sender: WebPushService, sub: Subscription, data: str, topic: str | None) -> tuple[FailedPush | None, bool]:
    """(hata, abonelik_kalıcı_olarak_gitti_mi) döner; hiçbir zaman yükseltmez."""
    try:
        info = json.loads(sub.subscription)
        await sender.send(info, data, topic)
    except PushDeliveryError as e:
        log.warning("Push to subscription %s failed (status=%s): %s", sub.id, e.status_code, e)
        return FailedPush(subscription_id=sub.id, reason=str(e)), e.status_code == HTTP_GONE
    except Exception as e:
        log.warning("Push to subscription %s failed: %s", sub.id, e)
        return FailedPush(subscription_id=sub.id, reason=str(e) or type(e).__name__), False
    return None, False


async def fan_out(
    db: Session,
    creds: UserCredentials,
    data: str,
    topic: str | None = None,
    sender: WebPushService | None = None,
) -> FanoutResult:
    """Kullanıcının tüm aboneliklerine gönderir; hiçbir zaman yükseltmez."""
    subscriptions = SubscriptionService(db)
    subs = subscriptions.list_for_user(creds.email)
    sender = sender or WebPushService.for_credentials(creds)
    result = FanoutResult()
    outcomes = await asyncio.gather(*(_deliver(sender, sub, data, topic) for sub in subs))
    expired: list[str] = []
    for sub, (failure, gone) in zip(subs, outcomes):
        if failure is None:
            result.delivered.append(sub.id)
            continue
        result.failed.append(failure)
        if gone:
            expired.append(sub.id)
    for sub_id in expired:
        if subscriptions.delete_by_id(sub_id):
            log.info("Removed expired subscription: %s", sub_id)
            result.removed.append(sub_id)
        else:
            log.error("Failed to remove expired subscription: %s", sub_id)
    return result
