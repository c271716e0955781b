from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError as PydanticValidationError
from sqlmodel import Session

from pushgate.api.deps import get_current_email
from pushgate.core.database import get_db
from pushgate.core.errors import NotFoundError, ValidationError, first_error_message
from pushgate.schemas import SubscriptionDelete, SubscriptionUpsert
from pushgate.services.subscriptions import SubscriptionService

router = APIRouter(prefix="/api/subscription", tags=["subscription"])


async def _parse(request: Request, model):
    try:
        return model.model_validate(await request.json())
    except PydanticValidationError as e:
        raise ValidationError(first_error_message(e))
    except ValueError:
        raise ValidationError("Geçersiz JSON gövdesi.")


@router.get("")
def list_subscriptions(email: str = Depends(get_current_email), db: Session = Depends(get_db)):
    subs = SubscriptionService(db).list_for_user(email)
    return {
        "subscriptions": [
            {
                "id": s.id,
                "deviceFingerprint": s.device_fingerprint,
                "createdAt": s.created_at.isoformat(),
                "updatedAt": s.updated_at.isoformat(),
            }
            for s in subs
        ]
    }


@router.put("")
async def upsert_subscription(
    request: Request,
    response: Response,
    email: str = Depends(get_current_email),
    db: Session = Depends(get_db),
):
    """Aynı cihaz için mevcut abonelik güncellenir (200), yoksa oluşturulur (201)."""
    body = await _parse(request, SubscriptionUpsert)
    sub, created = SubscriptionService(db).upsert(email, body.device_fingerprint, body.subscription)
    response.status_code = 201 if created else 200
    return {
        "message": "Abonelik oluşturuldu." if created else "Abonelik güncellendi.",
        "id": sub.id,
    }


@router.delete("")
async def delete_subscription(
    request: Request,
    email: str = Depends(get_current_email),
    db: Session = Depends(get_db),
):
    body = await _parse(request, SubscriptionDelete)
    deleted_id = SubscriptionService(db).delete_for_device(email, body.device_fingerprint)
    if not deleted_id:
        raise NotFoundError("Abonelik bulunamadı.")
    return {"message": "Abonelik silindi.", "id": deleted_id}
