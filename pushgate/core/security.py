"""Parola özetleri (bcrypt) ve oturum JWT'leri (HS256, konu = e-posta)."""
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from .config import settings

ALGORITHM = "HS256"
SESSION_EXPIRE_MINUTES = 60 * 24 * 7  # 7 gün
MAX_BCRYPT_BYTES = 72  # bcrypt limiti
_TOKEN_TYPE = "session"


def hash_password(password: str) -> str:
    p = password.encode("utf-8")[:MAX_BCRYPT_BYTES]
    return bcrypt.hashpw(p, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    p = plain.encode("utf-8")[:MAX_BCRYPT_BYTES]
    return bcrypt.checkpw(p, hashed.encode("utf-8"))


def create_session_token(email: str) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": email,
        "typ": _TOKEN_TYPE,
        "iat": now,
        "exp": now + timedelta(minutes=SESSION_EXPIRE_MINUTES),
    }
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def session_email(token: str | None) -> str | None:
    """Geçerli oturum token'ının e-postası; geçersiz/süresi dolmuşsa None."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if payload.get("typ") != _TOKEN_TYPE or not payload.get("sub"):
        return None
    return str(payload["sub"])
