import json
import logging
from datetime import datetime

from sqlmodel import Session, select

from pushgate.models import Subscription

log = logging.getLogger("pushgate.subscriptions")


class SubscriptionService:
    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, email: str) -> list[Subscription]:
        stmt = select(Subscription).where(Subscription.user_email == email).order_by(Subscription.created_at)
        return list(self.db.exec(stmt).all())

    def get_for_device(self, email: str, fingerprint: str) -> Subscription | None:
        stmt = select(Subscription).where(
            Subscription.user_email == email,
            Subscription.device_fingerprint == fingerprint,
        )
        return self.db.exec(stmt).first()

    def upsert(self, email: str, fingerprint: str, subscription: dict) -> tuple[Subscription, bool]:
        """Aynı cihaz tekrar kaydolursa güncellenir. (kayıt, yeni_mi) döner."""
        existing = self.get_for_device(email, fingerprint)
        if existing:
            existing.subscription = json.dumps(subscription)
            existing.updated_at = datetime.utcnow()
            self.db.add(existing)
            self.db.commit()
            self.db.refresh(existing)
            return existing, False
        sub = Subscription(
            user_email=email,
            device_fingerprint=fingerprint,
            subscription=json.dumps(subscription),
        )
        self.db.add(sub)
        self.db.commit()
        self.db.refresh(sub)
        return sub, True

    def delete_for_device(self, email: str, fingerprint: str) -> str | None:
        sub = self.get_for_device(email, fingerprint)
        if not sub:
            return None
        sub_id = sub.id
        self.db.delete(sub)
        self.db.commit()
        return sub_id

    def delete_by_id(self, subscription_id: str) -> bool:
        """Süresi dolmuş abonelik temizliği; hata loglanır, yükseltilmez."""
        try:
            sub = self.db.get(Subscription, subscription_id)
            if not sub:
                return False
            self.db.delete(sub)
            self.db.commit()
            return True
        except Exception as e:
            self.db.rollback()
            log.warning("Failed to remove subscription %s: %s", subscription_id, e)
            return False
