import re

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

FINGERPRINT_RE = re.compile(r"[a-f0-9]{64}", re.I)


def is_valid_fingerprint(value: str | None) -> bool:
    """Cihaz parmak izi: sha256 hex (64 karakter)."""
    return bool(value) and bool(FINGERPRINT_RE.fullmatch(value))


class _FingerprintBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    device_fingerprint: str

    @field_validator("device_fingerprint")
    @classmethod
    def sha256_hex(cls, v: str) -> str:
        if not is_valid_fingerprint(v):
            raise ValueError("Geçersiz cihaz parmak izi biçimi.")
        return v.lower()


class SubscriptionUpsert(_FingerprintBody):
    subscription: dict

    @field_validator("subscription")
    @classmethod
    def has_endpoint(cls, v: dict) -> dict:
        endpoint = v.get("endpoint")
        if not isinstance(endpoint, str) or not endpoint.startswith("https://"):
            raise ValueError("Abonelik nesnesinde geçerli bir endpoint yok.")
        return v


class SubscriptionDelete(_FingerprintBody):
    pass
