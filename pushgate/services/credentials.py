"""Kullanıcı kimlik bilgileri: VAPID anahtar çifti + push token (ilk erişimde oluşturulur)."""
import base64
import logging
import secrets
import string
from datetime import datetime

from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from pushgate.models import UserCredentials

log = logging.getLogger("pushgate.credentials")

PUSH_TOKEN_LENGTH = 16
_PUSH_TOKEN_ALPHABET = string.ascii_letters


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def generate_vapid_keys() -> tuple[str, str]:
    """(public_key, private_key) base64url: 65 baytlık nokta ve 32 baytlık skaler."""
    private_key = ec.generate_private_key(ec.SECP256R1())
    private_bytes = private_key.private_numbers().private_value.to_bytes(32, "big")
    public_bytes = private_key.public_key().public_bytes(Encoding.X962, PublicFormat.UncompressedPoint)
    return _b64url(public_bytes), _b64url(private_bytes)


def generate_push_token() -> str:
    return "".join(secrets.choice(_PUSH_TOKEN_ALPHABET) for _ in range(PUSH_TOKEN_LENGTH))


class CredentialService:
    def __init__(self, db: Session):
        self.db = db

    def get(self, email: str) -> UserCredentials | None:
        return self.db.exec(select(UserCredentials).where(UserCredentials.email == email)).first()

    def get_by_push_token(self, push_token: str) -> UserCredentials | None:
        if not push_token:
            return None
        return self.db.exec(select(UserCredentials).where(UserCredentials.push_token == push_token)).first()

    def get_or_create(self, email: str) -> UserCredentials:
        creds = self.get(email)
        if creds:
            return creds
        public_key, private_key = generate_vapid_keys()
        creds = UserCredentials(
            email=email,
            public_key=public_key,
            private_key=private_key,
            push_token=generate_push_token(),
        )
        self.db.add(creds)
        try:
            self.db.commit()
        except IntegrityError:
            # Eşzamanlı ilk erişim: diğer istek önce yazdı
            self.db.rollback()
            existing = self.get(email)
            if existing is None:
                raise
            return existing
        self.db.refresh(creds)
        log.info("Created push credentials for %s", email)
        return creds

    def rotate_keys(self, email: str) -> UserCredentials:
        """Yalnızca anahtar çiftini yeniler; push token değişmez."""
        creds = self.get_or_create(email)
        creds.public_key, creds.private_key = generate_vapid_keys()
        creds.updated_at = datetime.utcnow()
        self.db.add(creds)
        self.db.commit()
        self.db.refresh(creds)
        log.info("Rotated VAPID keys for %s", email)
        return creds

    def reset_push_token(self, email: str) -> UserCredentials:
        """Yalnızca push token'ı yeniler; anahtar çifti değişmez."""
        creds = self.get_or_create(email)
        creds.push_token = generate_push_token()
        creds.updated_at = datetime.utcnow()
        self.db.add(creds)
        self.db.commit()
        self.db.refresh(creds)
        log.info("Reset push token for %s", email)
        return creds
