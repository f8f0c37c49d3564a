"""Generic JSON webhook event sink.

Posts ReconcileEvent data as a JSON body to a configured HTTP endpoint. The
payload is ``ReconcileEvent.to_dict()``, already redacted.
"""

from __future__ import annotations

import asyncio

import httpx
import structlog

from kubespark.events.manager import EventSink
from kubespark.models.events import ReconcileEvent

_log = structlog.get_logger(component="events.webhook")


class WebhookEventSink(EventSink):
    """Delivers events by POSTing a JSON payload to a configurable URL.

    ``emit`` schedules the POST as a background task and returns at once.
    Call ``aclose`` to wait for deliveries still in flight.

    Args:
        url:     Full endpoint URL.
        headers: Optional extra headers (e.g. Authorization).
        timeout: HTTP request timeout in seconds. Defaults to 10.
    """

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
    ) -> None:
        if not url:
            raise ValueError("Webhook url must not be empty")
        self._url = url
        self._headers = headers or {}
        self._timeout = timeout
        self._pending: set[asyncio.Task[bool]] = set()

    @property
    def sink_name(self) -> str:
        return "webhook"

    def emit(self, event: ReconcileEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            _log.warning("webhook_no_running_loop", event_id=event.event_id)
            return
        task = loop.create_task(self.send(event), name=f"webhook-{event.event_id}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def send(self, event: ReconcileEvent) -> bool:
        """POST *event* as JSON. Returns True on a 2xx response, False otherwise."""
        request_headers = {
            "Content-Type": "application/json",
            **self._headers,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._url, json=event.to_dict(), headers=request_headers)
                if response.is_success:
                    return True
                _log.warning(
                    "webhook_non_2xx_response",
                    status_code=response.status_code,
                    body=response.text[:200],
                    event_id=event.event_id,
                )
                return False
        except httpx.TimeoutException:
            _log.warning("webhook_request_timeout", event_id=event.event_id, url=self._url)
            return False
        except httpx.HTTPError as exc:
            _log.warning("webhook_http_error", error=str(exc), event_id=event.event_id)
            return False

    async def aclose(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
