"""Kullanıcı başına VAPID anahtar çifti ve push token (dış gönderici kimlik doğrulaması)."""
from datetime import datetime

from sqlmodel import Field, SQLModel


class UserCredentials(SQLModel, table=True):
    __tablename__ = "user_credentials"
    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    public_key: str  # base64url, sıkıştırılmamış P-256 noktası (65 bayt)
    private_key: str  # base64url, ham skaler (32 bayt)
    push_token: str = Field(unique=True, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
