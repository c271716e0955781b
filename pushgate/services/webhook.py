"""Onay kararını dış sisteme bildiren webhook çağrısı."""
import asyncio
import logging

import httpx

from pushgate.core.config import settings
from pushgate.core.errors import UpstreamError

log = logging.getLogger("pushgate.webhook")


async def send_webhook(url: str, payload: dict, timeout: float | None = None) -> None:
    """
    JSON POST. Ağ hatası, zaman aşımı veya 2xx dışı yanıt UpstreamError olur;
    yönlendirme izlenmez. `timeout` tüm çağrı için üst sınırdır, onay hakkının
    (claim lease) bundan uzun olması ayarlarda zorunlu tutulur.
    """
    timeout = timeout if timeout is not None else settings.webhook_timeout_seconds

    async def _post() -> httpx.Response:
        async with httpx.AsyncClient(timeout=httpx.Timeout(timeout, connect=min(timeout, 5.0))) as client:
            return await client.post(url, json=payload, follow_redirects=False)

    try:
        response = await asyncio.wait_for(_post(), timeout)
    except asyncio.TimeoutError as e:
        log.error("Webhook request to %s timed out after %.1fs", url, timeout)
        raise UpstreamError("Webhook çağrısı zaman aşımına uğradı.") from e
    except httpx.HTTPError as e:
        log.error("Webhook request to %s failed: %s", url, e)
        raise UpstreamError("Webhook çağrısı başarısız oldu.") from e
    if not response.is_success:
        log.error("Webhook %s returned status %s", url, response.status_code)
        raise UpstreamError(f"Webhook çağrısı başarısız oldu (HTTP {response.status_code}).")
    log.info("Webhook %s delivered (status=%s)", url, response.status_code)
