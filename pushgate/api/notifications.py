from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from pushgate.api.deps import get_current_email, get_hub, get_token_store
from pushgate.core.database import get_db
from pushgate.schemas import NotificationListResponse
from pushgate.services.broadcast import BroadcastHub
from pushgate.services.notifications import MAX_PAGE_SIZE, NotificationService

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("")
def list_notifications(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=MAX_PAGE_SIZE, alias="pageSize"),
    email: str = Depends(get_current_email),
    db: Session = Depends(get_db),
):
    """En yeni bildirim önce; onay süreçli bildirimlerde güncel durum da döner."""
    items, total, pages = NotificationService(db).list_for_user(email, page, page_size)
    return NotificationListResponse(notifications=items, total_count=total, total_pages=pages).model_dump(
        by_alias=True, mode="json"
    )


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    email: str = Depends(get_current_email),
    db: Session = Depends(get_db),
    hub: BroadcastHub = Depends(get_hub),
    token_store=Depends(get_token_store),
):
    await NotificationService(db, token_store, hub).delete(email, notification_id)
    return {"ok": True, "id": notification_id}
