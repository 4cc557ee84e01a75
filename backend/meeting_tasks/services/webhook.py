from __future__ import annotations

import enum
import time
from contextlib import suppress
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from meeting_tasks.core.errors import TransportFailure
from meeting_tasks.core.settings import Settings
from meeting_tasks.logging_utils import get_logger
from meeting_tasks.obs.metrics import WEBHOOK_LATENCY

log = get_logger(__name__)


class DeliveryMode(str, enum.Enum):
    # at-most-once, response never inspected
    fire_and_forget = "fire_and_forget"
    # non-2xx is a failure, body is read back
    confirmed = "confirmed"


@dataclass(frozen=True)
class DeliveryReceipt:
    mode: DeliveryMode
    status_code: Optional[int] = None
    body: Any = None

    @property
    def confirmed(self) -> bool:
        return self.mode is DeliveryMode.confirmed


class WebhookSender:
    """
    One-way outbound POST of a JSON payload to a user-supplied URL.

    In ``fire_and_forget`` mode a call that does not raise counts as accepted,
    whatever the remote end answered. Only transport errors (DNS, refused
    connection, timeout, malformed URL) surface as ``TransportFailure``.
    """

    def __init__(
        self,
        mode: DeliveryMode | str = DeliveryMode.fire_and_forget,
        *,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.mode = DeliveryMode(mode)
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "WebhookSender":
        return cls(settings.WEBHOOK_DELIVERY_MODE, timeout=settings.WEBHOOK_TIMEOUT)

    async def send(self, url: str, payload: dict[str, Any]) -> DeliveryReceipt:
        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(
                    url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                if self.mode is DeliveryMode.confirmed:
                    r.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            log.warning(
                "webhook delivery failed",
                extra={"mode": self.mode.value, "error": type(exc).__name__},
            )
            raise TransportFailure("Failed to send transcript to Zapier. Please try again.") from exc
        finally:
            WEBHOOK_LATENCY.labels(mode=self.mode.value).observe(time.perf_counter() - start)

        if self.mode is DeliveryMode.fire_and_forget:
            log.info("webhook dispatched", extra={"mode": self.mode.value})
            return DeliveryReceipt(mode=self.mode)

        body: Any = r.text
        with suppress(ValueError):
            body = r.json()
        log.info(
            "webhook delivered",
            extra={"mode": self.mode.value, "status_code": r.status_code},
        )
        return DeliveryReceipt(mode=self.mode, status_code=r.status_code, body=body)
