"""
SSE yayın merkezi: kullanıcı -> cihaz parmak izi -> canlı kanal.

Süreç içi, kalıcı değil. Temizlik tek noktadan (BroadcastHub.disconnect)
yapılır ve idempotenttir; hata, istek iptali, heartbeat hatası ve aynı
cihazdan yeniden bağlanma hepsi aynı yolu kullanır.
"""
import asyncio
import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import AsyncIterator

from pushgate.core.config import settings

log = logging.getLogger("pushgate.sse")

EVENT_CONNECTED = "connected"
EVENT_HEARTBEAT = "heartbeat"
EVENT_NEW_NOTIFICATION = "newNotification"
EVENT_APPROVAL_STATE_CHANGED = "approvalStateChanged"


class ChannelState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class ChannelClosed(Exception):
    """Kanal kapalı ya da kuyruk dolu (istemci okumuyor)."""


def format_event(event: str, data) -> str:
    """`event: <ad>\\ndata: <json>\\n\\n` çerçevesi. Çok satırlı metin birden fazla data: satırı olur."""
    if isinstance(data, str):
        payload = data
    else:
        payload = json.dumps(data, ensure_ascii=False, default=str)
    lines = "".join(f"data: {line}\n" for line in payload.split("\n"))
    return f"event: {event}\n{lines}\n"


_CLOSE = object()


class Channel:
    """Tek bir sekmeye açık akış. close() en fazla bir kez etkili olur."""

    def __init__(self, user: str, fingerprint: str, queue_size: int | None = None):
        self.user = user
        self.fingerprint = fingerprint
        self.state = ChannelState.CONNECTING
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size or settings.sse_queue_size)
        self._heartbeat: asyncio.Task | None = None

    @property
    def closed(self) -> bool:
        return self.state in (ChannelState.CLOSING, ChannelState.CLOSED)

    def open(self) -> None:
        if self.state is ChannelState.CONNECTING:
            self.state = ChannelState.OPEN

    def write(self, frame: str) -> None:
        if self.closed:
            raise ChannelClosed(f"channel {self.fingerprint[:8]} is {self.state.value}")
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull as e:
            raise ChannelClosed(f"channel {self.fingerprint[:8]} queue full") from e

    def close(self) -> bool:
        """Kanalı kapatır. İlk çağrıda True, sonrakilerde False (no-op)."""
        if self.closed:
            return False
        self.state = ChannelState.CLOSING
        task = self._heartbeat
        self._heartbeat = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
        # Okuyucuyu uyandır; kuyruk doluysa frames() durumu zaten görür
        try:
            self._queue.put_nowait(_CLOSE)
        except asyncio.QueueFull:
            pass
        return True

    async def frames(self) -> AsyncIterator[str]:
        while True:
            if self.state is ChannelState.CLOSED:
                return
            item = await self._queue.get()
            if item is _CLOSE:
                self.state = ChannelState.CLOSED
                return
            yield item
            if self.state is ChannelState.CLOSING and self._queue.empty():
                self.state = ChannelState.CLOSED
                return


class BroadcastHub:
    def __init__(self, heartbeat_seconds: float | None = None):
        self.heartbeat_seconds = heartbeat_seconds if heartbeat_seconds is not None else settings.sse_heartbeat_seconds
        self._registry: dict[str, dict[str, Channel]] = {}

    def connect(self, user: str, fingerprint: str) -> Channel:
        """Yeni kanal kaydeder. Aynı (kullanıcı, cihaz) için eski kanal önce kapatılır."""
        existing = self._registry.get(user, {}).get(fingerprint)
        if existing is not None:
            log.info("Superseding SSE channel user=%s device=%s", user, fingerprint[:8])
            self.disconnect(existing)
        channel = Channel(user, fingerprint)
        self._registry.setdefault(user, {})[fingerprint] = channel
        channel.write(format_event(EVENT_CONNECTED, "SSE connection established"))
        channel.open()
        if self.heartbeat_seconds > 0:
            channel._heartbeat = asyncio.create_task(self._heartbeat_loop(channel))
        log.info("SSE connected user=%s device=%s", user, fingerprint[:8])
        return channel

    def disconnect(self, channel: Channel) -> None:
        """Tek temizlik noktası. Tekrar çağrılması hata vermez."""
        channel.close()
        devices = self._registry.get(channel.user)
        if devices is None:
            return
        # Yalnızca bu kanal kayıtlıysa sil; yerine geçen yeni kanala dokunma
        if devices.get(channel.fingerprint) is channel:
            del devices[channel.fingerprint]
            log.info("SSE disconnected user=%s device=%s", channel.user, channel.fingerprint[:8])
        if not devices:
            self._registry.pop(channel.user, None)

    async def _heartbeat_loop(self, channel: Channel) -> None:
        while not channel.closed:
            await asyncio.sleep(self.heartbeat_seconds)
            try:
                channel.write(format_event(EVENT_HEARTBEAT, datetime.now(timezone.utc).isoformat()))
            except ChannelClosed as e:
                log.debug("Heartbeat failed, cleaning up: %s", e)
                self.disconnect(channel)
                return

    def send_event(self, user: str, event: str, payload) -> int:
        """Kullanıcının tüm kanallarına yazar; başarısız kanal tek başına çıkarılır. Ulaşılan kanal sayısını döner."""
        frame = format_event(event, payload)
        delivered = 0
        for channel in list(self._registry.get(user, {}).values()):
            try:
                channel.write(frame)
                delivered += 1
            except ChannelClosed as e:
                log.warning("SSE write failed user=%s device=%s: %s", user, channel.fingerprint[:8], e)
                self.disconnect(channel)
        return delivered

    def channels_for(self, user: str) -> list[Channel]:
        return list(self._registry.get(user, {}).values())

    def connection_count(self) -> int:
        return sum(len(devices) for devices in self._registry.values())

    def close_all(self) -> None:
        for devices in list(self._registry.values()):
            for channel in list(devices.values()):
                self.disconnect(channel)
