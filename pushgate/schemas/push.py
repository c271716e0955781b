import json
import re

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

from pushgate.core.config import settings
from pushgate.models import NotificationType
from pushgate.services.network import is_http_url, is_local_network_url

# RFC 8030: Topic en fazla 32 karakter, URL-safe base64 alfabesi
_TOPIC_RE = re.compile(r"[A-Za-z0-9_-]{1,32}")


class PushRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    push_token: str | None = None
    content: str = ""


class MessageHeader(BaseModel):
    """Ön başlıkta tanınan alanlar; bilinmeyen anahtarlar yok sayılır."""
    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    category: str | None = None
    group: str | None = None
    type: str | None = None
    icon_url: str | None = None
    webhook_url: str | None = None
    extra: dict | None = None
    topic: str | None = None

    @field_validator("title", "category", "group", "type", "icon_url", "webhook_url", "topic", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("type")
    @classmethod
    def known_type(cls, v: str | None) -> str | None:
        allowed = {NotificationType.ENCRYPTED.value, NotificationType.APPROVAL_PROCESS.value, NotificationType.PLAIN.value}
        if v is not None and v not in allowed:
            raise ValueError("Bilinmeyen bildirim tipi.")
        return v

    @field_validator("icon_url")
    @classmethod
    def https_icon(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not is_http_url(v):
            raise ValueError("Geçersiz ikon URL'si.")
        if not v.lower().startswith("https://"):
            raise ValueError("İkon URL'si HTTPS kullanmalı.")
        return v

    @field_validator("topic")
    @classmethod
    def topic_format(cls, v: str | None) -> str | None:
        if v is not None and not _TOPIC_RE.fullmatch(v):
            raise ValueError("Topic en fazla 32 karakter, yalnızca harf, rakam, '-' ve '_' olabilir.")
        return v

    @field_validator("extra", mode="before")
    @classmethod
    def extra_mapping(cls, v):
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except ValueError:
                raise ValueError("extra bir nesne (JSON/YAML eşleme) olmalı.")
        if v is not None and not isinstance(v, dict):
            raise ValueError("extra bir nesne (JSON/YAML eşleme) olmalı.")
        return v

    @model_validator(mode="after")
    def type_requirements(self):
        if self.type == NotificationType.APPROVAL_PROCESS.value:
            if not self.webhook_url:
                raise ValueError("Onay süreci için webhook_url zorunlu.")
            if not is_http_url(self.webhook_url):
                raise ValueError("Geçersiz webhook URL'si.")
            if not settings.allow_private_webhook_urls and is_local_network_url(self.webhook_url):
                raise ValueError("Webhook URL'si yerel/özel ağ adresine işaret edemez.")
        if self.type == NotificationType.ENCRYPTED.value:
            if not self.extra or not isinstance(self.extra.get("nonce"), str):
                raise ValueError("Şifreli bildirim için extra.nonce zorunlu.")
        return self

    @property
    def notification_type(self) -> str:
        return self.type or NotificationType.PLAIN.value


class FailedPushOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    subscription_id: str
    reason: str
