from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

# .env proje kökünde: pushgate/core/config.py -> pushgate/core -> pushgate -> kök
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"
load_dotenv(_ENV_FILE)


class Settings(BaseSettings):
    secret_key: str = "change-me-in-production"
    database_url: str = "sqlite:///./pushgate.db"
    # CORS: virgülle ayrılmış origin listesi
    cors_origins: str = "*"
    # IP başına dakikada max istek (rate limit); /api/push ve auth için
    rate_limit_per_minute: int = 60
    rate_limit_register_per_minute: int = 3
    log_level: str = "INFO"
    environment: str = "development"  # production: session cookie Secure=True
    session_cookie_name: str = "pushgate_session"
    # Geçici onay token'ları: boşsa süreç içi bellek (cachetools), doluysa Redis
    redis_url: str = ""
    approval_token_ttl_seconds: int = 300
    # Web Push
    push_ttl_seconds: int = 60
    push_urgency: str = "normal"
    push_default_topic: str = "Default"
    max_message_bytes: int = 4096
    # Canlı akış (SSE)
    sse_heartbeat_seconds: float = 30.0
    sse_queue_size: int = 64
    # Onay webhook'u
    webhook_timeout_seconds: float = 10.0
    approval_claim_lease_seconds: int = 60
    # SSRF koruması varsayılan açık; yalnızca yerel geliştirmede True yapın
    allow_private_webhook_urls: bool = False

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
    }

    @field_validator("redis_url", "secret_key", mode="before")
    @classmethod
    def strip_value(cls, v: str | None) -> str:
        """Boşluk/yanlış kopya kaynaklı hataları azaltır."""
        return (v or "").strip()

    @model_validator(mode="after")
    def lease_outlives_webhook(self) -> "Settings":
        # Webhook sürerken hak başka isteğe geçerse webhook iki kez çağrılır
        if self.approval_claim_lease_seconds <= self.webhook_timeout_seconds:
            raise ValueError(
                "APPROVAL_CLAIM_LEASE_SECONDS, WEBHOOK_TIMEOUT_SECONDS değerinden büyük olmalı."
            )
        return self


settings = Settings()


def cors_origins_list() -> list[str]:
    if not settings.cors_origins or settings.cors_origins.strip() == "*":
        return ["*"]
    return [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
