"""Reconcile event sinks.

Exports:
    EventSink         -- Abstract base for all sinks.
    FanOutEventSink   -- Sends an event to every registered sink, isolating failures.
    LogEventSink      -- structlog sink.
    MemoryEventSink   -- In-process list of events.
    WebhookEventSink  -- JSON POST webhook sink.
    build_event_sink  -- Factory driven by EventsConfig.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import structlog

from kubespark.events.log import LogEventSink
from kubespark.events.manager import EventSink, FanOutEventSink, MemoryEventSink
from kubespark.events.webhook import WebhookEventSink

if TYPE_CHECKING:
    from kubespark.models.config import EventsConfig

_log = structlog.get_logger(component="events")

__all__ = [
    "EventSink",
    "FanOutEventSink",
    "LogEventSink",
    "MemoryEventSink",
    "WebhookEventSink",
    "build_event_sink",
]


def build_event_sink(config: EventsConfig) -> FanOutEventSink:
    """Build the event sink from configuration.

    The webhook is enabled only when ``config.webhook_secret_ref`` names an
    environment variable holding a non-empty URL. The URL itself never sits
    in configuration or logs.
    """
    sinks: list[EventSink] = []

    if config.log_enabled:
        sinks.append(LogEventSink())

    webhook_ref = config.webhook_secret_ref
    if webhook_ref:
        webhook_url = os.environ.get(webhook_ref, "")
        if webhook_url:
            try:
                sinks.append(WebhookEventSink(url=webhook_url, timeout=config.webhook_timeout))
                _log.info("webhook_sink_enabled")
            except ValueError as exc:
                _log.warning("webhook_sink_disabled", reason=str(exc))
        else:
            _log.debug("webhook_sink_skipped", reason="secret ref env var is empty")

    if not sinks:
        _log.info("no_event_sinks_configured")

    return FanOutEventSink(sinks=sinks)
