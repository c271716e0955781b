"""PWA push bildirim abonelikleri (Web Push API)."""
from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from .notification import new_id


class Subscription(SQLModel, table=True):
    """(kullanıcı, cihaz parmak izi) başına bir kayıt; aynı cihaz tekrar kaydolursa güncellenir."""
    __tablename__ = "subscriptions"
    __table_args__ = (UniqueConstraint("user_email", "device_fingerprint", name="uq_subscription_device"),)
    id: str = Field(default_factory=new_id, primary_key=True)
    user_email: str = Field(index=True)
    device_fingerprint: str = Field(index=True)  # 64 hex (sha256)
    subscription: str  # JSON: {"endpoint": ..., "keys": {"p256dh": ..., "auth": ...}}
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
