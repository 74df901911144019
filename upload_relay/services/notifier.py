# upload_relay/services/notifier.py
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from upload_relay.core.logging_config import logger
from upload_relay.observability.metrics import notification_counter


class WebhookNotifier:
    """JSON POST naar een automation-webhook (Zapier e.d.)."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = httpx.Timeout(timeout)
        self.transport = transport

    async def notify(self, url: str, payload: Dict[str, Any]) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            return await client.post(url, json=payload)


async def deliver(notifier: WebhookNotifier, url: str, payload: Dict[str, Any]) -> bool:
    """
    Best-effort: logt het resultaat en gooit nooit.

    Draait als BackgroundTask na de response, dus de uitkomst kan de
    response aan de caller niet meer veranderen.
    """
    try:
        r = await notifier.notify(url, payload)
    except Exception as e:
        notification_counter.labels(result="error").inc()
        logger.error("notification_error", error=repr(e))
        return False

    if not r.is_success:
        notification_counter.labels(result="failed").inc()
        logger.error("notification_failed", status=r.status_code, body=r.text)
        return False

    notification_counter.labels(result="sent").inc()
    logger.info("notification_sent", status=r.status_code)
    return True
