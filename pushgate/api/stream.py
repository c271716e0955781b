"""Canlı olay akışı (Server-Sent Events): cihaz başına tek uzun bağlantı."""
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlmodel import Session

from pushgate.api.deps import get_current_email, get_hub
from pushgate.core.database import get_db
from pushgate.core.errors import ValidationError
from pushgate.schemas import is_valid_fingerprint
from pushgate.services.broadcast import BroadcastHub
from pushgate.services.subscriptions import SubscriptionService

log = logging.getLogger("pushgate.sse")

router = APIRouter(prefix="/api", tags=["stream"])


@router.get("/stream")
async def stream(
    fingerprint: str | None = Query(None),
    email: str = Depends(get_current_email),
    db: Session = Depends(get_db),
    hub: BroadcastHub = Depends(get_hub),
):
    if not fingerprint:
        raise ValidationError("Cihaz parmak izi eksik.")
    if not is_valid_fingerprint(fingerprint):
        raise ValidationError("Geçersiz cihaz parmak izi.")
    fingerprint = fingerprint.lower()
    if not SubscriptionService(db).get_for_device(email, fingerprint):
        raise ValidationError("Geçersiz cihaz parmak izi.")

    channel = hub.connect(email, fingerprint)

    async def events():
        try:
            async for frame in channel.frames():
                yield frame
        finally:
            # İstemci ayrıldığında Starlette görevi iptal eder; temizlik burada
            hub.disconnect(channel)

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive", "X-Accel-Buffering": "no"},
    )
