"""Dış göndericilerin bildirim yayını: push token ile kimlik doğrulanır."""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlmodel import Session

from pushgate.api.deps import get_hub, get_token_store, security
from pushgate.core.database import get_db
from pushgate.core.errors import AuthError, ValidationError
from pushgate.core.rate_limit import DEFAULT_LIMIT, limiter
from pushgate.schemas import FailedPushOut, PushRequest
from pushgate.services.broadcast import BroadcastHub
from pushgate.services.credentials import CredentialService
from pushgate.services.notifications import NotificationService

log = logging.getLogger("pushgate.api.push")

router = APIRouter(prefix="/api", tags=["push"])


@router.post("/push")
@limiter.limit(DEFAULT_LIMIT)
async def publish(
    request: Request,
    body: PushRequest,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
    hub: BroadcastHub = Depends(get_hub),
    token_store=Depends(get_token_store),
):
    """
    İçerik isteğe bağlı bir ön başlık ('---' arası anahtar: değer) ve düz metinden oluşur.
    Bazı cihazlara gönderim başarısız olursa yine 200 döner, başarısız abonelikler listelenir.
    """
    push_token = (body.push_token or (credentials.credentials if credentials else "") or "").strip()
    if not body.content.strip():
        raise ValidationError("Geçersiz girdi: content zorunlu.")
    creds = CredentialService(db).get_by_push_token(push_token)
    if not creds:
        raise AuthError("Geçersiz push token.")

    result = await NotificationService(db, token_store, hub).publish(creds, body.content)
    if result.failed:
        log.info(
            "Notification %s: %d of %d push(es) failed",
            result.notification.id,
            len(result.failed),
            len(result.failed) + len(result.delivered),
        )
        failed = [
            FailedPushOut(subscription_id=f.subscription_id, reason=f.reason).model_dump(by_alias=True)
            for f in result.failed
        ]
        response = {
            "success": False,
            "error": "Some push notifications failed to send",
            "notificationId": result.notification.id,
            "failedPushes": failed,
        }
    else:
        response = {"success": True, "notificationId": result.notification.id}
    if result.approval is not None:
        response["approvalId"] = result.approval.id
    return response
