from datetime import datetime
from enum import Enum

from sqlmodel import Field, SQLModel

from .notification import new_id


class ApprovalState(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalProcess(SQLModel, table=True):
    """Bir bildirime bağlı karar. pending -> approved | rejected, geri dönüş yok."""
    __tablename__ = "approval_processes"
    id: str = Field(default_factory=new_id, primary_key=True)
    notification_id: str = Field(foreign_key="push_notifications.id", unique=True, index=True)
    webhook_url: str
    user_email: str = Field(index=True)
    state: str = Field(default=ApprovalState.PENDING.value, index=True)
    # Sonuçlandırma hakkı (koşullu UPDATE ile alınır); webhook sürerken dolu
    claim_id: str | None = None
    claimed_at: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
