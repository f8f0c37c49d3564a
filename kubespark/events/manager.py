"""Reconcile event sinks and fan-out.

EventSink        -- ABC every sink implements.
FanOutEventSink  -- Hands an event to every registered sink; a failing sink
                    never affects the others or the reconcile pass.
MemoryEventSink  -- Keeps events in a list for inspection.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import structlog

from kubespark.models.events import ReconcileEvent
from kubespark.observability.metrics import events_emitted_total

_log = structlog.get_logger(component="events.manager")


class EventSink(ABC):
    """Abstract base class for reconcile event sinks.

    ``emit`` is called from inside a reconcile pass, so it must not block:
    sinks that do I/O schedule it in the background.
    """

    @property
    @abstractmethod
    def sink_name(self) -> str:
        """Identifier used in metrics and logs."""

    @abstractmethod
    def emit(self, event: ReconcileEvent) -> None:
        """Accept *event*."""


class MemoryEventSink(EventSink):
    """Collects every event in ``events``."""

    def __init__(self) -> None:
        self.events: list[ReconcileEvent] = []

    @property
    def sink_name(self) -> str:
        return "memory"

    def emit(self, event: ReconcileEvent) -> None:
        self.events.append(event)

    def for_resource(self, kind: str, namespace: str, name: str) -> list[ReconcileEvent]:
        return [e for e in self.events if (e.kind, e.namespace, e.name) == (kind, namespace, name)]

    def clear(self) -> None:
        self.events.clear()


class FanOutEventSink(EventSink):
    """Delivers each event to all registered sinks.

    Never raises: exceptions from individual sinks are caught and logged.
    """

    def __init__(self, sinks: list[EventSink]) -> None:
        self._sinks = list(sinks)

    @property
    def sink_name(self) -> str:
        return "fanout"

    @property
    def sinks(self) -> list[EventSink]:
        return list(self._sinks)

    def emit(self, event: ReconcileEvent) -> None:
        for sink in self._sinks:
            try:
                sink.emit(event)
            except Exception as exc:  # noqa: BLE001
                _log.error(
                    "event_sink_unexpected_error",
                    sink=sink.sink_name,
                    event_id=event.event_id,
                    resource=event.resource,
                    error=str(exc),
                )
                events_emitted_total.labels(sink=sink.sink_name, success="false").inc()
                continue
            events_emitted_total.labels(sink=sink.sink_name, success="true").inc()
