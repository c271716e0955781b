"""VAPID anahtarları ve push token: ilk erişimde oluşturulur, birbirinden bağımsız yenilenir."""
from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from pushgate.api.deps import get_current_email
from pushgate.core.database import get_db
from pushgate.core.errors import ValidationError
from pushgate.services.credentials import CredentialService

router = APIRouter(prefix="/api", tags=["credentials"])


@router.get("/vapid-keys")
def get_vapid_keys(email: str = Depends(get_current_email), db: Session = Depends(get_db)):
    creds = CredentialService(db).get_or_create(email)
    return {"publicKey": creds.public_key, "pushToken": creds.push_token}


@router.post("/vapid-keys")
def rotate_vapid_keys(email: str = Depends(get_current_email), db: Session = Depends(get_db)):
    """Yalnızca anahtar çifti yenilenir; mevcut cihaz abonelikleri yeniden kaydolmalıdır."""
    creds = CredentialService(db).rotate_keys(email)
    return {"publicKey": creds.public_key, "pushToken": creds.push_token}


@router.get("/push-token")
def get_push_token(email: str = Depends(get_current_email), db: Session = Depends(get_db)):
    creds = CredentialService(db).get_or_create(email)
    return {"pushToken": creds.push_token}


@router.post("/push-token")
async def reset_push_token(
    request: Request,
    email: str = Depends(get_current_email),
    db: Session = Depends(get_db),
):
    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict) or body.get("action") != "reset":
        raise ValidationError("Geçersiz işlem.")
    creds = CredentialService(db).reset_push_token(email)
    return {"pushToken": creds.push_token}
