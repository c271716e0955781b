from datetime import datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class NotificationType(str, Enum):
    PLAIN = "plain"
    ENCRYPTED = "encrypted"
    APPROVAL_PROCESS = "approval-process"


def new_id() -> str:
    return uuid4().hex


class Notification(SQLModel, table=True):
    """Yayınlandıktan sonra değişmez; yalnızca silinir (onay kaydı da silinir)."""
    __tablename__ = "push_notifications"
    id: str = Field(default_factory=new_id, primary_key=True)
    content: str  # encrypted tipinde şifreli metin (base64)
    title: str | None = None
    category: str | None = None
    group: str | None = None
    user_email: str = Field(index=True)
    type: str = NotificationType.PLAIN.value
    icon_url: str | None = None
    extra: dict | None = Field(default=None, sa_column=Column(JSON))  # örn. {"nonce": "..."}
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
