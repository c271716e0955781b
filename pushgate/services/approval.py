"""
Onay süreci durum makinesi: pending -> approved | rejected.

Yetkilendirme iki yoldan biriyle yapılır (sırayla): geçici token
(Authorization: Bearer) ya da oturum sahibi. Geçişin kendisi iki koşullu
UPDATE ile yapılır: önce sonuçlandırma hakkı alınır (claim), webhook
yalnızca hakkı alan istekte çağrılır, başarıdan sonra durum yazılır.
Webhook başarısız olursa hak bırakılır ve süreç pending kalır.
"""
import logging
from datetime import datetime, timedelta
from enum import Enum

from sqlalchemy import or_, update
from sqlmodel import Session

from pushgate.core.config import settings
from pushgate.core.errors import AuthError, NotFoundError, StateConflictError, UpstreamError, ValidationError
from pushgate.models import ApprovalProcess, ApprovalState
from pushgate.models.notification import new_id
from pushgate.services.broadcast import EVENT_APPROVAL_STATE_CHANGED, BroadcastHub
from pushgate.services.token_store import tokens_match
from pushgate.services.webhook import send_webhook

log = logging.getLogger("pushgate.approval")

TERMINAL_STATES = (ApprovalState.APPROVED.value, ApprovalState.REJECTED.value)


class AuthPath(str, Enum):
    TOKEN = "token"
    SESSION = "session"


def approval_to_dict(approval: ApprovalProcess) -> dict:
    return {
        "id": approval.id,
        "notificationId": approval.notification_id,
        "webhookUrl": approval.webhook_url,
        "userEmail": approval.user_email,
        "state": approval.state,
        "createdAt": approval.created_at.isoformat() if approval.created_at else None,
        "updatedAt": approval.updated_at.isoformat() if approval.updated_at else None,
    }


class ApprovalService:
    def __init__(self, db: Session, token_store, hub: BroadcastHub | None = None):
        self.db = db
        self.token_store = token_store
        self.hub = hub

    def get_for_user(self, approval_id: str, email: str) -> ApprovalProcess:
        approval = self.db.get(ApprovalProcess, approval_id)
        if not approval or approval.user_email != email:
            raise NotFoundError("Onay süreci bulunamadı.")
        return approval

    async def authorize(self, approval_id: str, bearer_token: str | None, session_email: str | None) -> AuthPath:
        """Önce geçici token, sonra oturum. İkisi de yoksa kayıt okunmadan AuthError."""
        if bearer_token:
            stored = await self.token_store.get(approval_id)
            if tokens_match(bearer_token, stored):
                return AuthPath.TOKEN
        if session_email:
            return AuthPath.SESSION
        raise AuthError("Yetkisiz.")

    def _claim(self, approval_id: str, claim_id: str) -> bool:
        now = datetime.utcnow()
        stale = now - timedelta(seconds=settings.approval_claim_lease_seconds)
        stmt = (
            update(ApprovalProcess)
            .where(
                ApprovalProcess.id == approval_id,
                ApprovalProcess.state == ApprovalState.PENDING.value,
                or_(ApprovalProcess.claim_id.is_(None), ApprovalProcess.claimed_at < stale),
            )
            .values(claim_id=claim_id, claimed_at=now)
            .execution_options(synchronize_session=False)
        )
        won = self.db.exec(stmt).rowcount == 1
        self.db.commit()
        return won

    def _complete(self, approval_id: str, claim_id: str, decision: str) -> bool:
        stmt = (
            update(ApprovalProcess)
            .where(
                ApprovalProcess.id == approval_id,
                ApprovalProcess.claim_id == claim_id,
                ApprovalProcess.state == ApprovalState.PENDING.value,
            )
            .values(state=decision, claim_id=None, claimed_at=None, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        done = self.db.exec(stmt).rowcount == 1
        self.db.commit()
        return done

    def _release(self, approval_id: str, claim_id: str) -> None:
        try:
            stmt = (
                update(ApprovalProcess)
                .where(ApprovalProcess.id == approval_id, ApprovalProcess.claim_id == claim_id)
                .values(claim_id=None, claimed_at=None)
                .execution_options(synchronize_session=False)
            )
            self.db.exec(stmt)
            self.db.commit()
        except Exception as e:
            # Hak süre dolunca (lease) kendiliğinden serbest kalır
            self.db.rollback()
            log.warning("Failed to release claim on approval %s: %s", approval_id, e)

    async def resolve(
        self,
        approval_id: str,
        decision: str,
        bearer_token: str | None = None,
        session_email: str | None = None,
    ) -> ApprovalProcess:
        if decision not in TERMINAL_STATES:
            raise ValidationError("Geçersiz karar.")
        path = await self.authorize(approval_id, bearer_token, session_email)

        approval = self.db.get(ApprovalProcess, approval_id)
        if not approval or (path is AuthPath.SESSION and approval.user_email != session_email):
            raise NotFoundError("Onay süreci bulunamadı.")
        if approval.state != ApprovalState.PENDING.value:
            raise StateConflictError("Onay süreci artık beklemede değil.")

        claim_id = new_id()
        if not self._claim(approval_id, claim_id):
            log.info("Approval %s already claimed by another resolver", approval_id)
            raise StateConflictError("Onay süreci artık beklemede değil.")

        payload = {"notificationId": approval.notification_id, "approvalId": approval.id, "state": decision}
        try:
            await send_webhook(approval.webhook_url, payload)
        except UpstreamError:
            self._release(approval_id, claim_id)
            raise
        except Exception:
            self._release(approval_id, claim_id)
            log.exception("Unexpected webhook failure for approval %s", approval_id)
            raise UpstreamError("Webhook çağrısı başarısız oldu.")

        if not self._complete(approval_id, claim_id, decision):
            # Webhook lease süresinden uzun sürdü ve başka bir istek hakkı aldı
            log.error("Approval %s claim lost after webhook delivery", approval_id)
            raise StateConflictError("Onay süreci artık beklemede değil.")
        self.db.refresh(approval)
        log.info("Approval %s resolved as %s via %s", approval_id, decision, path.value)

        if path is AuthPath.SESSION and self.hub is not None:
            self.hub.send_event(approval.user_email, EVENT_APPROVAL_STATE_CHANGED, {
                "approvalId": approval.id,
                "notificationId": approval.notification_id,
                "state": approval.state,
            })
        if path is AuthPath.TOKEN:
            await revoke_token(self.token_store, approval_id)
        return approval


async def revoke_token(token_store, approval_id: str) -> None:
    """Geçici token'ı siler; hata loglanır, TTL ile kendiliğinden düşer."""
    try:
        await token_store.delete(approval_id)
    except Exception as e:
        log.warning("Failed to revoke approval token %s: %s", approval_id, e)
