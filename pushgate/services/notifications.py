"""
Bildirim yayını, listeleme ve silme.

Yayın sırası: başlık doğrulama -> push mesajı boyut kontrolü (hiçbir yan
etkiden önce) -> geçici token -> bildirim (+ onay süreci) tek commit ->
cihazlara fan-out -> açık sekmelere SSE.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, func, select

from pushgate.core.errors import NotFoundError, UpstreamError, ValidationError, first_error_message
from pushgate.models import ApprovalProcess, ApprovalState, Notification, NotificationType, UserCredentials
from pushgate.models.notification import new_id
from pushgate.schemas import MessageHeader, NotificationOut
from pushgate.services.approval import revoke_token
from pushgate.services.broadcast import EVENT_NEW_NOTIFICATION, BroadcastHub
from pushgate.services.front_matter import split_front_matter
from pushgate.services.token_store import new_approval_token
from pushgate.services.web_push import FailedPush, encode_message, fan_out

log = logging.getLogger("pushgate.notifications")

MAX_PAGE_SIZE = 100


def parse_message(raw: str) -> tuple[MessageHeader, str]:
    header, content = split_front_matter(raw)
    try:
        return MessageHeader.model_validate(header), content
    except PydanticValidationError as e:
        raise ValidationError(first_error_message(e)) from e


def notification_out(notification: Notification, approval: ApprovalProcess | None = None) -> NotificationOut:
    out = NotificationOut.model_validate(notification)
    if approval is not None:
        out.approval_state = approval.state
        out.approval_id = approval.id
    return out


def build_push_message(
    notification: Notification,
    approval: ApprovalProcess | None,
    temp_token: str | None,
) -> dict:
    """Cihazdaki service worker'ın çözdüğü yük. Boş isteğe bağlı alanlar çıkarılır."""
    message = {
        "id": notification.id,
        "title": notification.title,
        "body": notification.content,
        "category": notification.category,
        "group": notification.group,
        "iconUrl": notification.icon_url,
        "type": notification.type,
    }
    if approval is not None:
        message["approvalState"] = approval.state
        message["approvalId"] = approval.id
    if temp_token:
        message["tempAccessToken"] = temp_token
    if notification.extra:
        message["extra"] = notification.extra
    created = notification.created_at or datetime.utcnow()
    message["createdAt"] = int(created.replace(tzinfo=timezone.utc).timestamp() * 1000)
    return message


@dataclass
class PublishResult:
    notification: Notification
    approval: ApprovalProcess | None = None
    delivered: list[str] = field(default_factory=list)
    failed: list[FailedPush] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)


class NotificationService:
    def __init__(self, db: Session, token_store=None, hub: BroadcastHub | None = None):
        self.db = db
        self.token_store = token_store
        self.hub = hub

    async def publish(self, creds: UserCredentials, raw: str) -> PublishResult:
        header, content = parse_message(raw)
        ntype = header.notification_type

        notification = Notification(
            id=new_id(),
            content=content,
            title=header.title,
            category=header.category,
            group=header.group,
            user_email=creds.email,
            type=ntype,
            icon_url=header.icon_url,
            extra=header.extra,
        )
        approval = None
        temp_token = None
        if ntype == NotificationType.APPROVAL_PROCESS.value:
            approval = ApprovalProcess(
                id=new_id(),
                notification_id=notification.id,
                webhook_url=header.webhook_url,
                user_email=creds.email,
                state=ApprovalState.PENDING.value,
            )
            temp_token = new_approval_token()

        # Boyut sınırı: kayıt ve token oluşturulmadan, cihazlara gitmeden önce
        data = encode_message(build_push_message(notification, approval, temp_token))

        if temp_token:
            try:
                await self.token_store.put(approval.id, temp_token)
            except Exception as e:
                log.error("Failed to store approval token for %s: %s", approval.id, e)
                raise UpstreamError("Onay token'ı oluşturulamadı.") from e
        # Kayıt ve onay süreci birlikte; await arasında açık yazma işlemi tutulmaz
        try:
            self.db.add(notification)
            if approval is not None:
                self.db.add(approval)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            log.error("Failed to persist notification for %s: %s", creds.email, e)
            if temp_token:
                await revoke_token(self.token_store, approval.id)
            raise UpstreamError("Bildirim kaydedilemedi.") from e
        self.db.refresh(notification)
        if approval is not None:
            self.db.refresh(approval)
        log.info("Notification %s (%s) created for %s", notification.id, ntype, creds.email)

        fanout = await fan_out(self.db, creds, data, header.topic)

        if self.hub is not None:
            event = notification_out(notification, approval).model_dump(by_alias=True, mode="json")
            self.hub.send_event(creds.email, EVENT_NEW_NOTIFICATION, event)
        return PublishResult(notification, approval, fanout.delivered, fanout.failed, fanout.removed)

    def list_for_user(self, email: str, page: int = 1, page_size: int = 10) -> tuple[list[NotificationOut], int, int]:
        """En yeni önce. (öğeler, toplam, sayfa sayısı) döner."""
        if page < 1 or page_size < 1 or page_size > MAX_PAGE_SIZE:
            raise ValidationError("Geçersiz sayfalama parametreleri.")
        total = self.db.exec(
            select(func.count(Notification.id)).where(Notification.user_email == email)
        ).one() or 0
        stmt = (
            select(Notification)
            .where(Notification.user_email == email)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        rows = list(self.db.exec(stmt).all())
        approvals = {}
        ids = [n.id for n in rows if n.type == NotificationType.APPROVAL_PROCESS.value]
        if ids:
            for approval in self.db.exec(select(ApprovalProcess).where(ApprovalProcess.notification_id.in_(ids))).all():
                approvals[approval.notification_id] = approval
        items = [notification_out(n, approvals.get(n.id)) for n in rows]
        return items, total, math.ceil(total / page_size)

    async def delete(self, email: str, notification_id: str) -> None:
        notification = self.db.get(Notification, notification_id)
        if not notification or notification.user_email != email:
            raise NotFoundError("Bildirim bulunamadı.")
        approval = self.db.exec(
            select(ApprovalProcess).where(ApprovalProcess.notification_id == notification_id)
        ).first()
        approval_id = approval.id if approval else None
        if approval is not None:
            self.db.delete(approval)
            self.db.flush()
        self.db.delete(notification)
        self.db.commit()
        log.info("Notification %s deleted by %s", notification_id, email)
        if approval_id and self.token_store is not None:
            await revoke_token(self.token_store, approval_id)
